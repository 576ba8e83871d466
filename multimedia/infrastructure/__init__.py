"""
Infrastructure layer - external service integrations.

Each subdirectory wraps an external dependency:
- storage: Object storage (S3)
- dynamodb: Metadata persistence

aws.py wires both against one boto3 session. These wrappers translate
between external formats and our domain models.
"""
