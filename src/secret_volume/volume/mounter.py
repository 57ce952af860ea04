"""Volume – Mounter port and the no-op mounter."""
from __future__ import annotations

import abc
import logging
import os

from secret_volume.api.volume import Volume

logger = logging.getLogger(__name__)


class Mounter(abc.ABC):
    """Mounts and unmounts the filesystem backing each volume directory.

    Every volume lives at ``path(id)``, directly under ``root()``.
    """

    def __init__(self, root: str) -> None:
        self._root = os.fspath(root)

    def root(self) -> str:
        return self._root

    def path(self, volume_id: str) -> str:
        return os.path.join(self._root, volume_id)

    @abc.abstractmethod
    def mount(self, volume: Volume) -> None: ...

    @abc.abstractmethod
    def unmount(self, volume_id: str) -> None: ...


class NoopMounter(Mounter):
    """Mounts nothing; volume directories are plain directories under the root."""

    def mount(self, volume: Volume) -> None:
        logger.debug("mounter.noop.mount path=%s", self.path(volume.id))

    def unmount(self, volume_id: str) -> None:
        logger.debug("mounter.noop.unmount path=%s", self.path(volume_id))


__all__ = ["Mounter", "NoopMounter"]
