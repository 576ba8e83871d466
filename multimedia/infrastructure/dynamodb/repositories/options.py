"""DynamoDB repository for page options, keyed by option name."""

import logging
from typing import Any, Optional

from botocore.exceptions import BotoCoreError, ClientError

from ....core.assets.errors import InvalidArgumentError, PersistError
from ....core.assets.options import PageOption
from .assets import asset_to_item, item_to_asset

logger = logging.getLogger(__name__)


def option_to_item(option: PageOption) -> dict[str, Any]:
    if option.wallpaper is None:
        wallpaper: dict[str, Any] = {"NULL": True}
    else:
        wallpaper = {"M": asset_to_item(option.wallpaper, option.wallpaper.id)}

    return {
        "name": {"S": option.name},
        "terms": {"S": option.terms},
        "wallpaper": wallpaper,
    }


def item_to_option(item: dict[str, Any]) -> PageOption:
    try:
        wallpaper_attr = item.get("wallpaper", {"NULL": True})
        wallpaper = None if "NULL" in wallpaper_attr else item_to_asset(wallpaper_attr["M"])
        return PageOption(
            name=item["name"]["S"],
            terms=item.get("terms", {"S": ""})["S"],
            wallpaper=wallpaper,
        )
    except (KeyError, TypeError, ValueError) as e:
        raise PersistError(f"Malformed page option record: {e!r}") from e


class DynamoDBPageOptionRepository:
    """Stores and loads PageOption records. Storing replaces any existing option."""

    def __init__(self, table_name: str, client: Any) -> None:
        if not table_name:
            raise InvalidArgumentError("Table name cannot be empty")

        self._table_name = table_name
        self._client = client

    def store(self, option: PageOption) -> None:
        # The wallpaper is referenced by id, so it must already exist
        if option.wallpaper is not None and not option.wallpaper.is_persisted:
            raise PersistError("Wallpaper asset must be persisted before it is referenced")

        try:
            self._client.put_item(TableName=self._table_name, Item=option_to_item(option))
        except (ClientError, BotoCoreError) as e:
            logger.error(
                "Failed to store page option",
                extra={"option": option.name, "error": str(e)},
            )
            raise PersistError(f"Failed to store page option {option.name}: {e}") from e

    def find_by_name(self, name: str) -> Optional[PageOption]:
        try:
            response = self._client.get_item(
                TableName=self._table_name,
                Key={"name": {"S": name}},
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(
                "Failed to load page option",
                extra={"option": name, "error": str(e)},
            )
            raise PersistError(f"Failed to load page option {name}: {e}") from e

        item = response.get("Item")
        if not item:
            return None

        return item_to_option(item)
