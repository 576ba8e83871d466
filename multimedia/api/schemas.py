"""
Request/response models shared by the API routes.

Kept separate from the domain dataclasses so the wire format can
change without touching the asset core.
"""

from typing import Optional

from pydantic import BaseModel, Field

from ..core.assets.models import MultimediaAsset
from ..core.assets.options import PageOption


class AssetResponse(BaseModel):
    """A persisted multimedia asset."""
    id: str = Field(description="Asset identifier")
    bucket: str = Field(description="Public base URL of the bucket")
    filename: str = Field(description="Object key within the bucket")
    type: str = Field(description="Asset type: sound, image or pdf")
    created_at: str = Field(description="Creation time, RFC 3339")
    url: str = Field(description="Public URL of the payload")

    @classmethod
    def from_asset(cls, asset: MultimediaAsset) -> "AssetResponse":
        return cls(
            id=asset.id,
            bucket=asset.bucket,
            filename=asset.filename,
            type=asset.type.value,
            created_at=asset.created_at,
            url=asset.url,
        )


class AssetBatchResponse(BaseModel):
    """Result of a batch lookup."""
    assets: list[AssetResponse] = Field(description="Assets found, in request order")
    missing_ids: list[str] = Field(
        default_factory=list,
        description="Requested ids with no record"
    )


class PageOptionRequest(BaseModel):
    """Body for creating or replacing a page option."""
    terms: str = Field(default="", description="Terms text shown on the page")
    wallpaper_id: Optional[str] = Field(
        default=None,
        description="Id of an uploaded asset to use as wallpaper"
    )


class PageOptionResponse(BaseModel):
    name: str
    terms: str
    wallpaper: Optional[AssetResponse] = None

    @classmethod
    def from_option(cls, option: PageOption) -> "PageOptionResponse":
        return cls(
            name=option.name,
            terms=option.terms,
            wallpaper=AssetResponse.from_asset(option.wallpaper) if option.wallpaper else None,
        )


class ErrorDetail(BaseModel):
    field: str
    message: str


class ValidationErrorResponse(BaseModel):
    detail: str
    errors: list[ErrorDetail]
