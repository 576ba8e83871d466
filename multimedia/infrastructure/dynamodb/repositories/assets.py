"""
DynamoDB repository for multimedia asset records.

This module implements the repository pattern for asset metadata.
The repository:
1. Translates between MultimediaAsset and DynamoDB items
2. Owns identifier assignment
3. Wraps every client failure in a PersistError

Items are flat string maps keyed by "id":

    {"id": {"S": ...}, "bucket": {"S": ...}, "filename": {"S": ...},
     "type": {"S": ...}, "createdAt": {"S": ...}}
"""

import logging
from typing import Any, Iterable, Optional
from uuid import uuid4

from botocore.exceptions import BotoCoreError, ClientError

from ....core.assets.errors import InvalidArgumentError, PersistError
from ....core.assets.models import AssetType, MultimediaAsset

logger = logging.getLogger(__name__)

KEY_ATTRIBUTE = "id"

# DynamoDB rejects BatchGetItem requests with more keys than this
BATCH_GET_LIMIT = 100


def asset_to_item(asset: MultimediaAsset, asset_id: str) -> dict[str, dict[str, str]]:
    """Marshal an asset into a DynamoDB item under asset_id."""
    return {
        "id": {"S": asset_id},
        "bucket": {"S": asset.bucket},
        "filename": {"S": asset.filename},
        "type": {"S": asset.type.value},
        "createdAt": {"S": asset.created_at},
    }


def item_to_asset(item: dict[str, Any]) -> MultimediaAsset:
    """
    Unmarshal a DynamoDB item.

    Raises PersistError for items missing an attribute or carrying an
    unknown type, so decode failures are never mistaken for absence.
    """
    try:
        return MultimediaAsset(
            id=item["id"]["S"],
            bucket=item["bucket"]["S"],
            filename=item["filename"]["S"],
            type=AssetType(item["type"]["S"]),
            created_at=item["createdAt"]["S"],
        )
    except (KeyError, TypeError, ValueError) as e:
        raise PersistError(f"Malformed asset record: {e!r}") from e


def missing_ids(requested: Iterable[str], found: Iterable[MultimediaAsset]) -> list[str]:
    """Requested ids with no asset in found, in request order, without repeats."""
    found_ids = {asset.id for asset in found}
    missing: list[str] = []
    for asset_id in requested:
        if asset_id not in found_ids and asset_id not in missing:
            missing.append(asset_id)
    return missing


def _chunks(values: list[str], size: int) -> Iterable[list[str]]:
    for start in range(0, len(values), size):
        yield values[start:start + size]


class DynamoDBAssetRepository:
    """
    Repository for asset metadata records.

    Each method maps to one DynamoDB call (find_many to one call per
    hundred ids). Nothing is retried; the orchestrator above decides
    what a failure means.
    """

    def __init__(self, table_name: str, client: Any) -> None:
        if not table_name:
            raise InvalidArgumentError("Table name cannot be empty")

        self._table_name = table_name
        self._client = client

    @property
    def table_name(self) -> str:
        return self._table_name

    def store(self, asset: MultimediaAsset) -> None:
        """
        Write a new record and assign the asset its id.

        The id is generated here and set on the asset only once the
        write succeeds. The conditional put refuses to overwrite an
        existing record.
        """
        if asset.id is not None:
            raise PersistError(f"Asset already persisted as {asset.id}")

        asset_id = str(uuid4())

        try:
            self._client.put_item(
                TableName=self._table_name,
                Item=asset_to_item(asset, asset_id),
                ConditionExpression=f"attribute_not_exists({KEY_ATTRIBUTE})",
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(
                "Failed to store asset record",
                extra={"table": self._table_name, "key": asset.filename, "error": str(e)},
            )
            raise PersistError(f"Failed to store asset: {e}") from e

        asset.id = asset_id

        logger.debug("Stored asset record", extra={"asset_id": asset_id, "table": self._table_name})

    def find(self, asset_id: str) -> Optional[MultimediaAsset]:
        """Load one asset, or None when no record exists."""
        try:
            response = self._client.get_item(
                TableName=self._table_name,
                Key={KEY_ATTRIBUTE: {"S": asset_id}},
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(
                "Failed to load asset record",
                extra={"asset_id": asset_id, "error": str(e)},
            )
            raise PersistError(f"Failed to load asset {asset_id}: {e}") from e

        item = response.get("Item")
        if not item:
            return None

        return item_to_asset(item)

    def find_many(self, asset_ids: list[str]) -> list[MultimediaAsset]:
        """
        Load several assets at once.

        Results follow the order of asset_ids, repeating an asset when
        its id is requested twice. Ids without a record are left out of
        the result and logged; use missing_ids() to report them.

        Keys DynamoDB hands back as unprocessed (throttling) fail the
        whole call with a PersistError naming them, rather than being
        retried or silently dropped.
        """
        unique_ids = list(dict.fromkeys(asset_ids))
        by_id: dict[str, MultimediaAsset] = {}

        for chunk in _chunks(unique_ids, BATCH_GET_LIMIT):
            try:
                response = self._client.batch_get_item(
                    RequestItems={
                        self._table_name: {
                            "Keys": [{KEY_ATTRIBUTE: {"S": asset_id}} for asset_id in chunk],
                        }
                    }
                )
            except (ClientError, BotoCoreError) as e:
                logger.error(
                    "Failed to batch load asset records",
                    extra={"count": len(chunk), "error": str(e)},
                )
                raise PersistError(f"Failed to load assets: {e}") from e

            unprocessed = response.get("UnprocessedKeys", {}).get(self._table_name)
            if unprocessed:
                pending = [key[KEY_ATTRIBUTE]["S"] for key in unprocessed.get("Keys", [])]
                raise PersistError(f"Assets not loaded, retry later: {', '.join(pending)}")

            for item in response.get("Responses", {}).get(self._table_name, []):
                asset = item_to_asset(item)
                by_id[asset.id] = asset

        assets = [by_id[asset_id] for asset_id in asset_ids if asset_id in by_id]

        absent = missing_ids(asset_ids, assets)
        if absent:
            logger.warning(
                "Some requested assets have no record",
                extra={"missing_ids": absent, "requested": len(unique_ids)},
            )

        return assets

    def remove(self, asset_id: str) -> None:
        """Delete a record. Deleting a missing record is not an error."""
        try:
            self._client.delete_item(
                TableName=self._table_name,
                Key={KEY_ATTRIBUTE: {"S": asset_id}},
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(
                "Failed to delete asset record",
                extra={"asset_id": asset_id, "error": str(e)},
            )
            raise PersistError(f"Failed to delete asset {asset_id}: {e}") from e

        logger.debug("Deleted asset record", extra={"asset_id": asset_id})

    def list_all(self) -> list[MultimediaAsset]:
        """
        Every record in the table.

        Scans the full table, so only the reconciliation sweep uses it.
        """
        assets: list[MultimediaAsset] = []
        scan_kwargs: dict[str, Any] = {"TableName": self._table_name}

        while True:
            try:
                response = self._client.scan(**scan_kwargs)
            except (ClientError, BotoCoreError) as e:
                logger.error("Failed to scan asset records", extra={"error": str(e)})
                raise PersistError(f"Failed to list assets: {e}") from e

            assets.extend(item_to_asset(item) for item in response.get("Items", []))

            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return assets
            scan_kwargs["ExclusiveStartKey"] = last_key
