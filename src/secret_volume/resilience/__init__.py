"""Resilience – deadlines that bound outbound secret fetches."""

from secret_volume.resilience.timeouts import Deadline
from secret_volume.resilience.deadline import DeadlineContext, DeadlineExceededError, deadline_aware

__all__ = [
    "Deadline",
    "DeadlineContext",
    "DeadlineExceededError",
    "deadline_aware",
]
