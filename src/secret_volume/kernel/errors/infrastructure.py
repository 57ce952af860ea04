"""Infrastructure errors – filesystem, mount, network and decode failures."""

from __future__ import annotations

from typing import Any

from secret_volume.kernel.errors.base import BaseError


class InfrastructureError(BaseError):
    """Infrastructure / I/O failure that is not a business rule violation."""

    default_code = "infrastructure_error"


class UnavailableError(InfrastructureError):
    """A resource the service depends on is missing; usually a deployment problem."""

    default_code = "unavailable"


class MountRootUnavailableError(UnavailableError):
    """The parent directory under which volumes are mounted does not exist."""

    default_code = "mount_root_unavailable"

    def __init__(self, root: str, **kwargs: Any) -> None:
        kwargs.setdefault("detail", {"path": root})
        super().__init__(f"parent directory {root} does not exist", **kwargs)
        self.root = root


class DecodeError(InfrastructureError):
    """Archive, metadata or wire content is corrupt or missing."""

    default_code = "decode_error"


class IncompleteVolumeError(DecodeError):
    """A volume directory exists but its metadata is missing or unreadable."""

    default_code = "volume_incomplete"

    def __init__(self, volume_id: str, message: str | None = None, **kwargs: Any) -> None:
        kwargs.setdefault("detail", {"id": volume_id})
        super().__init__(message or f"volume '{volume_id}' has no readable metadata", **kwargs)
        self.volume_id = volume_id


class TransportError(InfrastructureError):
    """Fetching secrets from a remote service failed (network, TLS, timeout, status)."""

    default_code = "transport_error"

    def __init__(
        self,
        service: str,
        message: str | None = None,
        *,
        status_code: int | None = None,
        **kwargs: Any,
    ) -> None:
        kwargs.setdefault("detail", {"service": service, "status_code": status_code})
        super().__init__(message or f"request to '{service}' failed", **kwargs)
        self.service = service
        self.status_code = status_code


class FilesystemError(InfrastructureError):
    """A filesystem or mount syscall failed."""

    default_code = "filesystem_error"

    def __init__(
        self,
        operation: str,
        path: str,
        message: str | None = None,
        *,
        errno: int | None = None,
        **kwargs: Any,
    ) -> None:
        kwargs.setdefault("detail", {"operation": operation, "path": path, "errno": errno})
        super().__init__(message or f"cannot {operation} {path}", **kwargs)
        self.operation = operation
        self.path = path
        self.errno = errno


__all__ = [
    "DecodeError",
    "FilesystemError",
    "IncompleteVolumeError",
    "InfrastructureError",
    "MountRootUnavailableError",
    "TransportError",
    "UnavailableError",
]
