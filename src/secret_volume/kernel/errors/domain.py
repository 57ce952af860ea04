"""Domain errors – conditions detected locally, never worth retrying."""

from __future__ import annotations

from typing import Any

from secret_volume.kernel.errors.base import BaseError


class DomainError(BaseError):
    """Raised when a request cannot be honoured given the current state."""

    default_code = "domain_error"


class ValidationError(DomainError):
    """Input data does not meet validation rules."""

    default_code = "validation_error"


class CredentialError(ValidationError):
    """A volume's keypair is missing or cannot be parsed."""

    default_code = "invalid_credential"


class NotFoundError(DomainError):
    """The requested resource does not exist."""

    default_code = "not_found"

    def __init__(
        self,
        resource: str,
        identifier: Any = None,
        **kwargs: Any,
    ) -> None:
        msg = f"{resource} not found"
        if identifier is not None:
            msg = f"{resource} '{identifier}' not found"
        kwargs.setdefault("detail", {"resource": resource, "id": identifier})
        super().__init__(msg, **kwargs)
        self.resource = resource
        self.identifier = identifier


class VolumeNotFoundError(NotFoundError):
    """No volume directory exists for the id."""

    default_code = "volume_not_found"

    def __init__(self, volume_id: str, **kwargs: Any) -> None:
        super().__init__("volume", volume_id, **kwargs)


class UnhandledSecretSourceError(NotFoundError):
    """No secret producer is registered for a volume's source."""

    default_code = "unhandled_secret_source"

    def __init__(self, source: Any, **kwargs: Any) -> None:
        super().__init__("secret producer for source", str(source), **kwargs)
        self.source = source


class ConflictError(DomainError):
    """The operation conflicts with existing state."""

    default_code = "conflict"


class VolumeExistsError(ConflictError):
    """Something already exists at the volume's mountpoint.

    This does not prove that a volume exists, only that a conflicting path does.
    """

    default_code = "volume_exists"

    def __init__(self, volume_id: str, path: str, **kwargs: Any) -> None:
        kwargs.setdefault("detail", {"id": volume_id, "path": path})
        super().__init__(f"volume '{volume_id}' exists at {path}", **kwargs)
        self.volume_id = volume_id
        self.path = path


__all__ = [
    "ConflictError",
    "CredentialError",
    "DomainError",
    "NotFoundError",
    "UnhandledSecretSourceError",
    "ValidationError",
    "VolumeExistsError",
    "VolumeNotFoundError",
]
