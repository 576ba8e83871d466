"""
Repository pattern implementations for DynamoDB.

Repositories translate between domain models and DynamoDB items.
"""

from .assets import DynamoDBAssetRepository, missing_ids
from .options import DynamoDBPageOptionRepository

__all__ = ["DynamoDBAssetRepository", "DynamoDBPageOptionRepository", "missing_ids"]
