"""Resilience – absolute deadlines."""
from secret_volume.resilience.timeouts.deadline import Deadline

__all__ = ["Deadline"]
