"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

Settings are only read at the edges (app factory, dependencies, scripts).
The asset core receives plain constructor arguments.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    For lists (like api_keys), use comma-separated values in env.
    """

    # API Configuration
    api_title: str = "Multimedia Asset API"
    api_version: str = "v1"
    api_keys: str = Field(
        default="dev-key-1,dev-key-2",
        description="Comma-separated API keys accepted in the X-API-Key header."
    )

    # AWS Configuration
    aws_region: str = Field(
        default="us-east-1",
        description="Region of the bucket and tables. Also decides the public bucket URL form."
    )
    aws_endpoint_url: Optional[str] = Field(
        default=None,
        description="Endpoint override for S3 and DynamoDB, e.g. a LocalStack URL."
    )

    # S3 Configuration
    s3_bucket_name: str = Field(
        default="",
        description="Bucket holding asset payloads"
    )
    s3_acl: str = Field(
        default="public-read",
        description="Canned ACL applied to every uploaded object"
    )
    s3_content_disposition: str = Field(
        default="attachment",
        description="Content-Disposition applied to every uploaded object"
    )
    s3_server_side_encryption: str = Field(
        default="AES256",
        description="Server-side encryption applied to every uploaded object"
    )
    storage_mock_mode: bool = Field(
        default=False,
        description="Use in-memory payload storage instead of S3. Enables local dev without a bucket."
    )

    # DynamoDB Configuration
    dynamodb_table_name: str = Field(
        default="",
        description="Table holding asset records, keyed by id"
    )
    page_options_table_name: str = Field(
        default="",
        description="Table holding page options, keyed by name"
    )
    metadata_mock_mode: bool = Field(
        default=False,
        description="Use in-memory tables instead of DynamoDB. Enables local dev without AWS."
    )

    # Upload Behavior
    max_upload_size_mb: int = Field(
        default=32,
        description="Maximum multipart upload size in MB."
    )
    upload_form_key: str = Field(
        default="file",
        description="Multipart form field carrying the uploaded file"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins. Use * for development only."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def api_keys_list(self) -> list[str]:
        """Parse comma-separated API keys into a list."""
        return [key.strip() for key in self.api_keys.split(",") if key.strip()]

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    def validate_required_fields(self) -> list[str]:
        """
        Validate that the required fields are set.

        Returns list of missing required fields. Bucket, table and
        region are needed even in mock mode because they shape the
        stored records.
        """
        missing = []

        if not self.aws_region:
            missing.append("AWS_REGION")
        if not self.s3_bucket_name:
            missing.append("S3_BUCKET_NAME")
        if not self.dynamodb_table_name:
            missing.append("DYNAMODB_TABLE_NAME")
        if not self.page_options_table_name:
            missing.append("PAGE_OPTIONS_TABLE_NAME")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache means we only load settings once per process.
    For tests, call get_settings.cache_clear() to reset.
    """
    return Settings()
