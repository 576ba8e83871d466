"""
Multimedia - storage of multimedia assets across S3 and DynamoDB.

This package contains the complete application:
- core: Framework-agnostic asset model, validation and orchestration
- infrastructure: S3 and DynamoDB integrations
- api: FastAPI routes, dependencies and multipart ingestion
- config: Application configuration
"""

__version__ = "0.1.0"
