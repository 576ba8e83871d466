"""
Core business logic for multimedia assets.

This module is framework-agnostic - it doesn't import FastAPI, boto3,
or any infrastructure concerns. Stores are reached through protocols,
so the orchestration can be tested against in-memory fakes.
"""
