"""Application-layer errors – wiring and deployment concerns."""

from __future__ import annotations

from secret_volume.kernel.errors.base import BaseError


class ApplicationError(BaseError):
    """Cross-cutting application-layer concern (configuration, startup)."""

    default_code = "application_error"


__all__ = ["ApplicationError"]
