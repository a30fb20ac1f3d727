"""Abstract contract for recording orphaned storage objects."""

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field, StrictStr


class OrphanRecord(BaseModel):
    """A blob that outlived (or never got) its descriptor."""

    storage_key: StrictStr = Field(..., description="Key of the orphaned object")
    image_id: StrictStr = Field(..., description="Image the object belonged to")
    operation: StrictStr = Field(..., description="Operation that left the orphan")
    reason: StrictStr = Field(..., description="Why the object could not be removed")
    recorded_at: StrictStr = Field(..., description="ISO-8601 timestamp (UTC)")


class OrphanRecorder(ABC):
    """Contract for tracking orphaned objects awaiting cleanup."""

    @abstractmethod
    def record(self, orphan: OrphanRecord) -> None:
        """Record an orphaned object for later reconciliation. Never raises."""

    @abstractmethod
    def pending(self) -> list[OrphanRecord]:
        """Return orphans not yet reconciled, oldest first.

        Raises:
            DynamoDBError: If a durable recorder cannot be read
        """

    @abstractmethod
    def resolve(self, *, storage_key: str) -> None:
        """Mark the orphan stored under `storage_key` as cleaned up.

        Raises:
            DynamoDBError: If a durable recorder cannot be updated
        """
