"""Page option endpoints."""

import logging

from fastapi import APIRouter, HTTPException, status

from ...core.assets.errors import AssetNotFoundError
from ...core.assets.options import PageOption
from ..dependencies import AssetUploaderDep, AuthenticatedUser, PageOptionRepositoryDep
from ..schemas import PageOptionRequest, PageOptionResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.put(
    "/{name}",
    response_model=PageOptionResponse,
    summary="Create or replace a page option",
)
def put_option(
    name: str,
    body: PageOptionRequest,
    api_key: AuthenticatedUser,
    uploader: AssetUploaderDep,
    repository: PageOptionRepositoryDep,
) -> PageOptionResponse:
    wallpaper = None
    if body.wallpaper_id:
        wallpaper = uploader.find(body.wallpaper_id)
        if wallpaper is None:
            raise AssetNotFoundError(body.wallpaper_id)

    option = PageOption(name=name, terms=body.terms, wallpaper=wallpaper)
    repository.store(option)

    logger.info("Stored page option", extra={"option": name})

    return PageOptionResponse.from_option(option)


@router.get(
    "/{name}",
    response_model=PageOptionResponse,
    summary="Get a page option",
)
def get_option(
    name: str,
    api_key: AuthenticatedUser,
    repository: PageOptionRepositoryDep,
) -> PageOptionResponse:
    option = repository.find_by_name(name)
    if option is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Page option {name} not found",
        )
    return PageOptionResponse.from_option(option)
