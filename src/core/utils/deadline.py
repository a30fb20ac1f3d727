"""Request deadlines derived from the Lambda invocation context."""

import time
from collections.abc import Callable
from typing import Any

from core.models.errors import DeadlineExceededError


class Deadline:
    """Absolute point in (monotonic) time after which work must stop."""

    def __init__(
        self,
        expires_at: float,
        *,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._expires_at = expires_at
        self._monotonic = monotonic

    @classmethod
    def after(
        cls,
        seconds: float,
        *,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> "Deadline":
        return cls(monotonic() + seconds, monotonic=monotonic)

    @classmethod
    def from_lambda_context(cls, context: Any, *, margin_ms: int = 0) -> "Deadline | None":
        """Build a deadline from ``context.get_remaining_time_in_millis``.

        Returns None when the context does not expose a remaining time
        (local invocations, tests).
        """
        get_remaining = getattr(context, "get_remaining_time_in_millis", None)
        if not callable(get_remaining):
            return None

        remaining_ms = int(get_remaining()) - margin_ms
        return cls.after(max(remaining_ms, 0) / 1000.0)

    @property
    def remaining(self) -> float:
        return self._expires_at - self._monotonic()

    @property
    def expired(self) -> bool:
        return self.remaining <= 0

    def check(self, operation: str) -> None:
        """Raise DeadlineExceededError when the deadline has passed."""
        if self.expired:
            raise DeadlineExceededError(
                message="The request ran out of time",
                details={"operation": operation},
            )
