"""Resilience – Deadline propagation via contextvars."""
from secret_volume.resilience.deadline.context import (
    DeadlineContext,
    DeadlineExceededError,
    deadline_aware,
)

__all__ = ["DeadlineContext", "DeadlineExceededError", "deadline_aware"]
