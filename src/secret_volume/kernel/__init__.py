"""Kernel – framework-agnostic building blocks shared by every layer."""

from secret_volume.kernel.errors import (
    ApplicationError,
    BaseError,
    ConflictError,
    CredentialError,
    DecodeError,
    DomainError,
    FilesystemError,
    IncompleteVolumeError,
    InfrastructureError,
    MountRootUnavailableError,
    NotFoundError,
    TransportError,
    UnavailableError,
    UnhandledSecretSourceError,
    ValidationError,
    VolumeExistsError,
    VolumeNotFoundError,
)

__all__ = [
    "ApplicationError",
    "BaseError",
    "ConflictError",
    "CredentialError",
    "DecodeError",
    "DomainError",
    "FilesystemError",
    "IncompleteVolumeError",
    "InfrastructureError",
    "MountRootUnavailableError",
    "NotFoundError",
    "TransportError",
    "UnavailableError",
    "UnhandledSecretSourceError",
    "ValidationError",
    "VolumeExistsError",
    "VolumeNotFoundError",
]
