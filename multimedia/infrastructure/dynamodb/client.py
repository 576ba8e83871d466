"""
DynamoDB client construction.

Repositories talk to the low-level boto3 DynamoDB client (typed
attribute values such as {"S": "..."}) so the marshalling they do is
explicit and reversible. Includes a mock client with in-memory tables
for local development, mirroring the handful of calls the repositories
make and the ClientError codes DynamoDB would raise.
"""

import copy
import logging
import re
from typing import Any, Optional

from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

_NOT_EXISTS = re.compile(r"^attribute_not_exists\((\w+)\)$")


def create_dynamodb_client(
    session: Any = None,
    region: Optional[str] = None,
    endpoint_url: Optional[str] = None,
    mock_mode: bool = False,
):
    """
    Create a DynamoDB client.

    Args:
        session: boto3 Session to build the client from, so it shares
            credentials and region with the S3 client
        region: Region used when no session is given
        endpoint_url: Override for local endpoints such as LocalStack
        mock_mode: If True, return an in-memory MockDynamoDBClient
    """
    if mock_mode:
        return MockDynamoDBClient()

    if session is None:
        import boto3

        session = boto3.session.Session(region_name=region)

    client = session.client("dynamodb", endpoint_url=endpoint_url)

    logger.debug(
        "Created DynamoDB client",
        extra={"region": session.region_name, "endpoint": endpoint_url},
    )

    return client


# ---------------------------------------------------------------------------
# Mock Client for Local Development
# ---------------------------------------------------------------------------

def _client_error(code: str, message: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


class MockDynamoDBClient:
    """
    In-memory stand-in for the low-level boto3 DynamoDB client.

    Tables are created on first write unless registered up front with
    create_table(), which also fixes the key attribute. Reads from a
    table that was never created raise ResourceNotFoundException, like
    DynamoDB does.

    Not suitable for production, but enough for:
    - Local development
    - Unit tests
    """

    def __init__(self) -> None:
        # {table_name: {key_value: item}}
        self._tables: dict[str, dict[str, dict]] = {}
        self._keys: dict[str, str] = {}
        logger.info("Initialized mock DynamoDB client (in-memory)")

    def create_table(self, table_name: str, key_attribute: str = "id") -> None:
        self._tables.setdefault(table_name, {})
        self._keys[table_name] = key_attribute

    def put_item(
        self,
        TableName: str,
        Item: dict,
        ConditionExpression: Optional[str] = None,
        **kwargs: Any,
    ) -> dict:
        if TableName not in self._tables:
            self.create_table(TableName, next(iter(Item)))

        key_value = self._key_value(TableName, Item, "PutItem")
        table = self._tables[TableName]

        if ConditionExpression:
            match = _NOT_EXISTS.match(ConditionExpression.strip())
            if match and key_value in table:
                raise _client_error(
                    "ConditionalCheckFailedException",
                    "The conditional request failed",
                    "PutItem",
                )

        table[key_value] = copy.deepcopy(Item)
        return {}

    def get_item(self, TableName: str, Key: dict, **kwargs: Any) -> dict:
        table = self._table(TableName, "GetItem")
        item = table.get(self._key_value(TableName, Key, "GetItem"))
        if item is None:
            return {}
        return {"Item": copy.deepcopy(item)}

    def delete_item(self, TableName: str, Key: dict, **kwargs: Any) -> dict:
        table = self._table(TableName, "DeleteItem")
        table.pop(self._key_value(TableName, Key, "DeleteItem"), None)
        return {}

    def batch_get_item(self, RequestItems: dict, **kwargs: Any) -> dict:
        responses: dict[str, list[dict]] = {}

        for table_name, request in RequestItems.items():
            table = self._table(table_name, "BatchGetItem")
            found = []
            for key in request["Keys"]:
                item = table.get(self._key_value(table_name, key, "BatchGetItem"))
                if item is not None:
                    found.append(copy.deepcopy(item))
            responses[table_name] = found

        return {"Responses": responses, "UnprocessedKeys": {}}

    def scan(self, TableName: str, **kwargs: Any) -> dict:
        table = self._table(TableName, "Scan")
        items = [copy.deepcopy(item) for item in table.values()]
        return {"Items": items, "Count": len(items)}

    def _table(self, table_name: str, operation: str) -> dict[str, dict]:
        if table_name not in self._tables:
            raise _client_error(
                "ResourceNotFoundException",
                f"Requested resource not found: Table: {table_name} not found",
                operation,
            )
        return self._tables[table_name]

    def _key_value(self, table_name: str, item: dict, operation: str) -> str:
        key_attribute = self._keys[table_name]
        attribute = item.get(key_attribute)
        if not attribute or "S" not in attribute:
            raise _client_error(
                "ValidationException",
                f"Missing the key {key_attribute} in the item",
                operation,
            )
        return attribute["S"]
