"""Resilience – Deadline."""
from __future__ import annotations

import dataclasses
from datetime import UTC, datetime, timedelta


@dataclasses.dataclass(frozen=True)
class Deadline:
    """An absolute point in time after which outbound work should be abandoned."""
    expires_at: datetime

    @classmethod
    def after(cls, seconds: float) -> "Deadline":
        return cls(expires_at=datetime.now(UTC) + timedelta(seconds=seconds))

    @property
    def remaining_seconds(self) -> float:
        return max(0.0, (self.expires_at - datetime.now(UTC)).total_seconds())

    @property
    def is_expired(self) -> bool:
        return datetime.now(UTC) >= self.expires_at

    def budget(self, timeout: float) -> float:
        """Return the smaller of *timeout* and the time left before expiry."""
        return min(timeout, self.remaining_seconds)


__all__ = ["Deadline"]
