"""DynamoDB-backed implementation of OrphanRecorder."""

from aws_lambda_powertools import Logger
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError as PydanticValidationError

from core.config import ServiceSettings
from core.infrastructure.adapters.dynamodb_adapter import DynamoDBAdapter, DynamoDBAdapterProtocol
from core.models.errors import DynamoDBError
from core.repositories.orphan_repository import OrphanRecord, OrphanRecorder
from core.utils.constants import (
    ERROR_CODE_ORPHAN_LIST_FAILED,
    ERROR_CODE_ORPHAN_RESOLVE_FAILED,
    ORPHAN_KEY_ATTRIBUTE,
)

logger = Logger(UTC=True)


class DynamoDBOrphanRecorder(OrphanRecorder):
    """Orphans kept in their own table, keyed by storage key.

    Every Lambda container writes to the same table, so a scheduled cleanup
    run sees orphans recorded anywhere. Recording never raises: the
    error-level log line is written first and stays the record of last
    resort when the table cannot be reached.
    """

    def __init__(
        self,
        settings: ServiceSettings,
        adapter: DynamoDBAdapterProtocol | None = None,
    ) -> None:
        if adapter is None:
            if not settings.orphan_table_name:
                raise RuntimeError("orphan_table_name is not configured")
            adapter = DynamoDBAdapter(settings, table_name=settings.orphan_table_name)

        self._db: DynamoDBAdapterProtocol = adapter

    def record(self, orphan: OrphanRecord) -> None:
        logger.error("Orphaned storage object recorded", extra=orphan.model_dump())

        try:
            self._db.put_item(item=orphan.model_dump())
        except (ClientError, BotoCoreError):
            logger.exception(
                "Failed to persist orphan record",
                extra={"storage_key": orphan.storage_key, "image_id": orphan.image_id},
            )

    def pending(self) -> list[OrphanRecord]:
        """Return every recorded orphan, oldest first.

        Raises:
            DynamoDBError: If the table cannot be scanned
        """
        orphans: list[OrphanRecord] = []
        scan_kwargs: dict[str, object] = {}

        try:
            while True:
                response = self._db.scan(**scan_kwargs)

                for item in response.get("Items", []):
                    try:
                        orphans.append(OrphanRecord.model_validate(item))
                    except PydanticValidationError:
                        logger.warning(
                            "Skipping malformed orphan record",
                            extra={"storage_key": item.get(ORPHAN_KEY_ATTRIBUTE)},
                        )

                last_evaluated_key = response.get("LastEvaluatedKey")
                if not last_evaluated_key:
                    break
                scan_kwargs["ExclusiveStartKey"] = last_evaluated_key

        except (ClientError, BotoCoreError) as exc:
            logger.error("DynamoDB orphan scan failed")
            raise DynamoDBError(
                message="Unable to list orphaned objects",
                error_code=ERROR_CODE_ORPHAN_LIST_FAILED,
            ) from exc

        return sorted(orphans, key=lambda orphan: orphan.recorded_at)

    def resolve(self, *, storage_key: str) -> None:
        """Forget an orphan whose object has been removed.

        Raises:
            DynamoDBError: If the record cannot be deleted
        """
        try:
            self._db.delete_item(key={ORPHAN_KEY_ATTRIBUTE: storage_key})
        except (ClientError, BotoCoreError) as exc:
            logger.error("DynamoDB orphan delete failed", extra={"storage_key": storage_key})
            raise DynamoDBError(
                message="Unable to resolve orphaned object",
                error_code=ERROR_CODE_ORPHAN_RESOLVE_FAILED,
                details={"storage_key": storage_key},
            ) from exc

        logger.info("Orphaned storage object cleaned up", extra={"storage_key": storage_key})
