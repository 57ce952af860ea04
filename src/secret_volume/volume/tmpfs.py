"""Volume – TmpfsMounter.

Mounts a size-bounded in-memory ``tmpfs`` at each volume directory by calling
``mount(2)`` and ``umount2(2)`` from libc. Linux only; requires
``CAP_SYS_ADMIN``.
"""
from __future__ import annotations

import ctypes
import ctypes.util
import logging
import os
import sys

from secret_volume.api.volume import Volume
from secret_volume.kernel.errors import FilesystemError, UnavailableError
from secret_volume.volume.mounter import Mounter

logger = logging.getLogger(__name__)

MS_NOSUID = 2
MS_NODEV = 4
MS_NOEXEC = 8
DEFAULT_MOUNT_FLAGS = MS_NOSUID | MS_NODEV | MS_NOEXEC


def _load_libc() -> ctypes.CDLL:
    name = ctypes.util.find_library("c") or "libc.so.6"
    libc = ctypes.CDLL(name, use_errno=True)
    libc.mount.argtypes = (ctypes.c_char_p, ctypes.c_char_p, ctypes.c_char_p, ctypes.c_ulong, ctypes.c_char_p)
    libc.mount.restype = ctypes.c_int
    libc.umount2.argtypes = (ctypes.c_char_p, ctypes.c_int)
    libc.umount2.restype = ctypes.c_int
    return libc


class TmpfsMounter(Mounter):
    """Mounter backed by tmpfs.

    Args:
        root: Directory under which volumes are mounted.
        max_size_mb: ``size=`` option; the most each volume may hold.
        mode: ``mode=`` option; permissions of each mountpoint.
        mount_flags: ``mountflags`` passed to ``mount(2)``.
        unmount_flags: ``flags`` passed to ``umount2(2)``.
    """

    def __init__(
        self,
        root: str,
        *,
        max_size_mb: int = 100,
        mode: int = 0o700,
        mount_flags: int = DEFAULT_MOUNT_FLAGS,
        unmount_flags: int = 0,
    ) -> None:
        if not sys.platform.startswith("linux"):
            raise UnavailableError(f"tmpfs mounts are not supported on {sys.platform}")
        super().__init__(root)
        self.max_size_mb = max_size_mb
        self.mode = mode
        self.mount_flags = mount_flags
        self.unmount_flags = unmount_flags
        self._libc: ctypes.CDLL | None = None

    @property
    def libc(self) -> ctypes.CDLL:
        if self._libc is None:
            self._libc = _load_libc()
        return self._libc

    def options(self) -> str:
        return f"size={self.max_size_mb}M,mode={self.mode:o}"

    def mount(self, volume: Volume) -> None:
        target = self.path(volume.id)
        opts = self.options()
        logger.debug("mounter.tmpfs.mount path=%s options=%s", target, opts)
        rc = self.libc.mount(b"tmpfs", os.fsencode(target), b"tmpfs", self.mount_flags, opts.encode())
        if rc != 0:
            self._raise("mount", target)

    def unmount(self, volume_id: str) -> None:
        target = self.path(volume_id)
        logger.debug("mounter.tmpfs.unmount path=%s", target)
        if self.libc.umount2(os.fsencode(target), self.unmount_flags) != 0:
            self._raise("unmount", target)

    def _raise(self, operation: str, target: str) -> None:
        err = ctypes.get_errno()
        raise FilesystemError(operation, target, f"cannot {operation} {target}: {os.strerror(err)}", errno=err)


__all__ = ["DEFAULT_MOUNT_FLAGS", "MS_NODEV", "MS_NOEXEC", "MS_NOSUID", "TmpfsMounter"]
