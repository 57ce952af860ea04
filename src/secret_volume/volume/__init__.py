"""Volume lifecycle: mounters, per-id locking and the VolumeManager."""

from secret_volume.volume.locks import KeyedLock
from secret_volume.volume.manager import VolumeManager, validate_volume_id
from secret_volume.volume.mounter import Mounter, NoopMounter
from secret_volume.volume.tmpfs import DEFAULT_MOUNT_FLAGS, TmpfsMounter

__all__ = [
    "DEFAULT_MOUNT_FLAGS",
    "KeyedLock",
    "Mounter",
    "NoopMounter",
    "TmpfsMounter",
    "VolumeManager",
    "validate_volume_id",
]
