"""Thin DynamoDB adapter wrapping boto3 table operations."""

from typing import Any, Protocol, cast

import boto3

from core.config import ServiceSettings


class DynamoDBTable(Protocol):
    """Minimal DynamoDB Table protocol."""

    table_status: str

    def reload(self) -> None: ...

    def put_item(self, *, Item: dict[str, Any], **kwargs: Any) -> dict[str, Any]: ...
    def get_item(self, *, Key: dict[str, Any], **kwargs: Any) -> dict[str, Any]: ...
    def update_item(self, *, Key: dict[str, Any], **kwargs: Any) -> dict[str, Any]: ...
    def delete_item(self, *, Key: dict[str, Any], **kwargs: Any) -> dict[str, Any]: ...
    def query(self, **kwargs: Any) -> dict[str, Any]: ...
    def scan(self, **kwargs: Any) -> dict[str, Any]: ...


class DynamoDBAdapterProtocol(Protocol):
    """Minimal DynamoDB adapter protocol (repository-facing)."""

    def put_item(
        self,
        *,
        item: dict[str, Any],
        condition_expression: str | None = None,
    ) -> dict[str, Any]: ...

    def get_item(self, *, key: dict[str, Any]) -> dict[str, Any]: ...

    def update_item(self, **kwargs: Any) -> dict[str, Any]: ...

    def delete_item(
        self,
        *,
        key: dict[str, Any],
        condition_expression: str | None = None,
        return_values: str | None = None,
    ) -> dict[str, Any]: ...

    def query(self, **kwargs: Any) -> dict[str, Any]: ...

    def scan(self, **kwargs: Any) -> dict[str, Any]: ...

    def describe(self) -> str: ...


class DynamoDBAdapter:
    """Low-level DynamoDB operations (mechanical, no error handling).

    This adapter:
    - Wraps boto3 DynamoDB resource
    - Does NOT handle errors (lets them bubble up)
    - Domain implementations catch and translate errors
    """

    def __init__(
        self,
        settings: ServiceSettings,
        resource: Any | None = None,
        *,
        table_name: str | None = None,
    ) -> None:
        """Initialize a DynamoDB table (the metadata table unless named)."""
        dynamodb = resource or boto3.resource(
            "dynamodb",
            endpoint_url=settings.endpoint_url,
            region_name=settings.region,
            config=settings.boto_config(),
        )

        self.table: DynamoDBTable = cast(
            DynamoDBTable,
            dynamodb.Table(table_name or settings.table_name),
        )

    def put_item(
        self,
        *,
        item: dict[str, Any],
        condition_expression: str | None = None,
    ) -> dict[str, Any]:
        """Insert item into DynamoDB.

        Raises boto3 exceptions - caught by domain implementation.
        """
        kwargs: dict[str, Any] = {"Item": item}

        if condition_expression:
            kwargs["ConditionExpression"] = condition_expression

        return self.table.put_item(**kwargs)

    def get_item(self, *, key: dict[str, Any]) -> dict[str, Any]:
        """Retrieve item by key (strongly consistent read).

        Raises boto3 exceptions - caught by domain implementation.
        """
        return self.table.get_item(Key=key, ConsistentRead=True)

    def update_item(self, **kwargs: Any) -> dict[str, Any]:
        """Execute a DynamoDB update.

        Raises boto3 exceptions - caught by domain implementation.
        """
        return self.table.update_item(**kwargs)

    def delete_item(
        self,
        *,
        key: dict[str, Any],
        condition_expression: str | None = None,
        return_values: str | None = None,
    ) -> dict[str, Any]:
        """Delete item by key.

        Raises boto3 exceptions - caught by domain implementation.
        """
        kwargs: dict[str, Any] = {"Key": key}

        if condition_expression:
            kwargs["ConditionExpression"] = condition_expression
        if return_values:
            kwargs["ReturnValues"] = return_values

        return self.table.delete_item(**kwargs)

    def query(self, **kwargs: Any) -> dict[str, Any]:
        """Execute DynamoDB query.

        Raises boto3 exceptions - caught by domain implementation.
        """
        return self.table.query(**kwargs)

    def scan(self, **kwargs: Any) -> dict[str, Any]:
        """Execute DynamoDB scan.

        Raises boto3 exceptions - caught by domain implementation.
        """
        return self.table.scan(**kwargs)

    def describe(self) -> str:
        """Return the table status (triggers a DescribeTable call)."""
        self.table.reload()
        return self.table.table_status
