"""
DynamoDB persistence for asset metadata and page options.

Includes mock mode with in-memory tables for local development.
"""
