"""Kernel error hierarchy – public re-export surface.

Hierarchy::

    BaseError
    ├── DomainError              (domain.py)
    │   ├── ValidationError
    │   │   └── CredentialError
    │   ├── NotFoundError
    │   │   ├── VolumeNotFoundError
    │   │   └── UnhandledSecretSourceError
    │   └── ConflictError
    │       └── VolumeExistsError
    ├── ApplicationError         (application.py)
    └── InfrastructureError      (infrastructure.py)
        ├── UnavailableError
        │   └── MountRootUnavailableError
        ├── DecodeError
        │   └── IncompleteVolumeError
        ├── TransportError
        └── FilesystemError
"""

from secret_volume.kernel.errors.application import ApplicationError
from secret_volume.kernel.errors.base import BaseError
from secret_volume.kernel.errors.domain import (
    ConflictError,
    CredentialError,
    DomainError,
    NotFoundError,
    UnhandledSecretSourceError,
    ValidationError,
    VolumeExistsError,
    VolumeNotFoundError,
)
from secret_volume.kernel.errors.infrastructure import (
    DecodeError,
    FilesystemError,
    IncompleteVolumeError,
    InfrastructureError,
    MountRootUnavailableError,
    TransportError,
    UnavailableError,
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
