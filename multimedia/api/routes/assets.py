"""
Asset API endpoints.

Upload, lookup, download and delete of multimedia assets. Asset-layer
errors are not caught here; the handlers registered in main.py turn
them into HTTP responses.
"""

import logging

from fastapi import APIRouter, Query, Request, Response, status

from ...core.assets.errors import AssetNotFoundError
from ...infrastructure.dynamodb.repositories.assets import missing_ids
from ...infrastructure.storage.client import detect_content_type
from ..dependencies import (
    AssetUploaderDep,
    AuthenticatedUser,
    HttpFileUploaderDep,
    SettingsDep,
)
from ..schemas import AssetBatchResponse, AssetResponse, ValidationErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=AssetResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload an asset",
    description="Upload a file as multipart/form-data. The form field name is configurable (default: file).",
    responses={
        413: {"description": "File exceeds the upload size limit"},
        422: {"description": "Asset failed validation", "model": ValidationErrorResponse},
    },
)
async def upload_asset(
    request: Request,
    api_key: AuthenticatedUser,
    file_uploader: HttpFileUploaderDep,
    settings: SettingsDep,
) -> AssetResponse:
    asset = await file_uploader.move_file(request, settings.upload_form_key)
    return AssetResponse.from_asset(asset)


@router.get(
    "",
    response_model=AssetBatchResponse,
    summary="Look up several assets",
)
def list_assets(
    api_key: AuthenticatedUser,
    uploader: AssetUploaderDep,
    ids: str = Query(description="Comma-separated asset ids"),
) -> AssetBatchResponse:
    """
    Batch lookup by id.

    Ids with no record are reported in missing_ids instead of failing
    the whole request.
    """
    requested = [asset_id.strip() for asset_id in ids.split(",") if asset_id.strip()]
    assets = uploader.find_many(requested) if requested else []

    return AssetBatchResponse(
        assets=[AssetResponse.from_asset(asset) for asset in assets],
        missing_ids=missing_ids(requested, assets),
    )


@router.get(
    "/{asset_id}",
    response_model=AssetResponse,
    summary="Get an asset",
)
def get_asset(
    asset_id: str,
    api_key: AuthenticatedUser,
    uploader: AssetUploaderDep,
) -> AssetResponse:
    asset = uploader.find(asset_id)
    if asset is None:
        raise AssetNotFoundError(asset_id)
    return AssetResponse.from_asset(asset)


@router.get(
    "/{asset_id}/content",
    summary="Download an asset's payload",
    response_class=Response,
)
def download_asset(
    asset_id: str,
    api_key: AuthenticatedUser,
    uploader: AssetUploaderDep,
) -> Response:
    asset, payload = uploader.read(asset_id)

    return Response(
        content=payload,
        media_type=detect_content_type(payload),
        headers={"Content-Disposition": f'attachment; filename="{asset.filename}"'},
    )


@router.delete(
    "/{asset_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an asset",
    description="Removes the payload and then the record.",
)
def delete_asset(
    asset_id: str,
    api_key: AuthenticatedUser,
    uploader: AssetUploaderDep,
) -> Response:
    uploader.delete(asset_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
