"""Orphan recorder that logs every orphan and keeps a pending set in memory."""

import threading

from aws_lambda_powertools import Logger

from core.repositories.orphan_repository import OrphanRecord, OrphanRecorder

logger = Logger(UTC=True)


class LoggingOrphanRecorder(OrphanRecorder):
    """Records orphans as structured error logs plus an in-process set.

    Used when no orphan table is configured (local runs, tests). The pending
    set only covers the current container; the log line is what outlives it.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: dict[str, OrphanRecord] = {}

    def record(self, orphan: OrphanRecord) -> None:
        logger.error(
            "Orphaned storage object recorded",
            extra=orphan.model_dump(),
        )
        with self._lock:
            self._pending[orphan.storage_key] = orphan

    def pending(self) -> list[OrphanRecord]:
        with self._lock:
            return sorted(self._pending.values(), key=lambda orphan: orphan.recorded_at)

    def resolve(self, *, storage_key: str) -> None:
        with self._lock:
            resolved = self._pending.pop(storage_key, None)

        if resolved is not None:
            logger.info(
                "Orphaned storage object cleaned up",
                extra={"storage_key": storage_key, "image_id": resolved.image_id},
            )
