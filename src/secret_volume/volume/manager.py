"""Volume – VolumeManager.

Creates, destroys and describes secret volumes. A volume exists exactly when a
directory named after its id exists under the mounter's root; the metadata
file inside that directory records the credential-free volume.

Creation order is fixed: existence check, producer lookup, remote fetch,
directory creation, mount, secret files, metadata. Nothing is rolled back when
a late step fails; such a volume is *incomplete*: ``get`` reports it with
:class:`IncompleteVolumeError`, ``list`` omits it and ``destroy`` removes it.
"""
from __future__ import annotations

import asyncio
import errno
import functools
import logging
import os
import shutil
import types
from typing import Any, Callable, TypeVar

from secret_volume.api.codec import read_volume_json, write_volume_json
from secret_volume.api.secrets import Secrets, SecretsHeader, SecretType
from secret_volume.api.volume import Volume
from secret_volume.kernel.errors import (
    DecodeError,
    FilesystemError,
    IncompleteVolumeError,
    MountRootUnavailableError,
    UnhandledSecretSourceError,
    ValidationError,
    VolumeExistsError,
    VolumeNotFoundError,
)
from secret_volume.secrets.merge import SecretsMerger, write_merged
from secret_volume.secrets.port import SecretProducers
from secret_volume.volume.locks import KeyedLock
from secret_volume.volume.mounter import Mounter

logger = logging.getLogger(__name__)

T = TypeVar("T")

_CHUNK = 64 * 1024
_MERGEABLE = (SecretType.JSON, SecretType.YAML)


def validate_volume_id(volume_id: str) -> str:
    """Reject ids that are not exactly one path component."""
    if not isinstance(volume_id, str) or not volume_id:
        raise ValidationError("volume id must be a non-empty string", detail={"id": volume_id})
    if volume_id in (".", "..") or "/" in volume_id or "\x00" in volume_id:
        raise ValidationError(f"invalid volume id {volume_id!r}", detail={"id": volume_id})
    return volume_id


class VolumeManager:
    """Manages the lifecycle of secret volumes under one mounter.

    Args:
        mounter: Decides where volumes live and mounts their filesystems.
        producers: Maps each :class:`SecretSource` to its producer.
        metadata_file: Name of the metadata record in each volume root.
        dir_mode: Permissions for every directory created in a volume.
        file_mode: Permissions for every file created in a volume.
        merged_secrets_file: When set, also write the JSON merge of every
            JSON/YAML secret file under this name.
    """

    def __init__(
        self,
        mounter: Mounter,
        producers: SecretProducers,
        *,
        metadata_file: str = ".meta",
        dir_mode: int = 0o700,
        file_mode: int = 0o600,
        merged_secrets_file: str | None = None,
    ) -> None:
        self._mounter = mounter
        self._producers = types.MappingProxyType(dict(producers))
        self._metadata_file = metadata_file
        self._dir_mode = dir_mode
        self._file_mode = file_mode
        self._merged_file = merged_secrets_file
        self._locks = KeyedLock()

    @property
    def metadata_file(self) -> str:
        return self._metadata_file

    @property
    def mounter(self) -> Mounter:
        return self._mounter

    async def _run(self, fn: Callable[..., T], *args: Any) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(fn, *args))

    async def _run_to_completion(self, fn: Callable[..., T], *args: Any) -> T:
        """Like :meth:`_run`, but a cancelled caller still waits for the worker thread.

        The thread cannot be interrupted, so the caller keeps the per-id lock and
        the open bundle until it is done.
        """
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(None, functools.partial(fn, *args))
        try:
            return await asyncio.shield(future)
        except asyncio.CancelledError:
            await asyncio.wait([future])
            if not future.cancelled() and future.exception() is not None:
                logger.warning("volume.cancelled.worker_failed error=%s", future.exception())
            raise

    # ------------------------------------------------------------------
    # create
    # ------------------------------------------------------------------

    async def create(self, volume: Volume) -> None:
        """Fetch secrets for *volume* and materialise them in a new mount."""
        validate_volume_id(volume.id)
        async with self._locks.hold(volume.id):
            root = self._mounter.path(volume.id)
            if await self._run(os.path.lexists, root):
                raise VolumeExistsError(volume.id, root)
            producer = self._producers.get(volume.source)
            if producer is None:
                raise UnhandledSecretSourceError(volume.source)
            secrets = await producer.secrets_for(volume)
            with secrets:
                await self._run(self._make_root, volume.id, root)
                try:
                    await self._run_to_completion(self._populate, volume, secrets, root)
                except Exception as exc:
                    logger.warning("volume.create.incomplete id=%s error=%s", volume.id, exc)
                    raise
        logger.info("volume.created id=%s source=%s", volume.id, volume.source)

    def _make_root(self, volume_id: str, root: str) -> None:
        try:
            os.mkdir(root, self._dir_mode)
        except FileExistsError as exc:
            raise VolumeExistsError(volume_id, root, cause=exc) from exc
        except FileNotFoundError as exc:
            raise MountRootUnavailableError(self._mounter.root(), cause=exc) from exc
        except OSError as exc:
            raise FilesystemError("create directory", root, errno=exc.errno, cause=exc) from exc

    def _populate(self, volume: Volume, secrets: Secrets, root: str) -> None:
        self._mounter.mount(volume)
        merger = SecretsMerger() if self._merged_file else None
        reserved = {self._entry_path(root, name) for name in (self._metadata_file, self._merged_file) if name}
        for header in secrets:
            target = self._entry_path(root, header.path)
            if target in reserved:
                raise DecodeError(f"secret path {header.path!r} is reserved", detail={"path": header.path})
            if header.is_dir:
                logger.debug("volume.mkdir path=%s type=explicit", target)
                self._makedirs(target)
                continue
            data = self._write_entry(secrets, header, target, buffer=merger is not None)
            if merger is not None and header.type in _MERGEABLE:
                merger.add(header, data)
        meta = os.path.join(root, self._metadata_file)
        with self._create_file(meta, text=True) as f:
            write_volume_json(volume.without_keypair(), f)
        if merger is not None and self._merged_file:
            merged = os.path.join(root, self._merged_file)
            with self._create_file(merged, text=True) as f:
                write_merged(merger.result(), f)

    def _entry_path(self, root: str, name: str) -> str:
        if os.path.isabs(name):
            raise DecodeError(f"secret path {name!r} is absolute", detail={"path": name})
        base = os.path.normpath(root)
        target = os.path.normpath(os.path.join(base, name))
        if target != base and not target.startswith(base.rstrip(os.sep) + os.sep):
            raise DecodeError(f"secret path {name!r} escapes the volume", detail={"path": name})
        return target

    def _makedirs(self, path: str) -> None:
        # os.makedirs only applies the mode to the leaf directory.
        parent = os.path.dirname(path)
        if parent and parent != path and not os.path.isdir(parent):
            self._makedirs(parent)
        try:
            os.mkdir(path, self._dir_mode)
        except FileExistsError:
            if not os.path.isdir(path):
                raise FilesystemError("create directory", path, f"{path} exists and is not a directory") from None
        except OSError as exc:
            raise FilesystemError("create directory", path, errno=exc.errno, cause=exc) from exc

    def _create_file(self, path: str, *, text: bool = False) -> Any:
        parent = os.path.dirname(path)
        if not os.path.isdir(parent):
            logger.debug("volume.mkdir path=%s type=implicit", parent)
            self._makedirs(parent)
        logger.debug("volume.create_file path=%s", path)
        try:
            fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, self._file_mode)
        except OSError as exc:
            raise FilesystemError("create file", path, errno=exc.errno, cause=exc) from exc
        if text:
            return os.fdopen(fd, "w", encoding="utf-8")
        return os.fdopen(fd, "wb")

    def _write_entry(self, secrets: Secrets, header: SecretsHeader, path: str, *, buffer: bool) -> bytes:
        kept = bytearray()
        with self._create_file(path) as f:
            while True:
                chunk = secrets.read(_CHUNK)
                if not chunk:
                    break
                try:
                    f.write(chunk)
                except OSError as exc:
                    raise FilesystemError("write file", path, errno=exc.errno, cause=exc) from exc
                if buffer:
                    kept.extend(chunk)
        return bytes(kept)

    # ------------------------------------------------------------------
    # destroy
    # ------------------------------------------------------------------

    async def destroy(self, volume_id: str) -> None:
        """Unmount and remove the volume *volume_id*."""
        validate_volume_id(volume_id)
        async with self._locks.hold(volume_id):
            root = self._mounter.path(volume_id)
            if not await self._run(os.path.isdir, root):
                raise VolumeNotFoundError(volume_id)
            await self._run(self._unmount, volume_id)
            await self._run(self._remove, root)
        logger.info("volume.destroyed id=%s", volume_id)

    def _unmount(self, volume_id: str) -> None:
        try:
            self._mounter.unmount(volume_id)
        except FilesystemError as exc:
            # A volume whose mount step failed is a plain directory.
            if exc.errno != errno.EINVAL:
                raise
            logger.warning("volume.destroy.not_mounted id=%s", volume_id)

    def _remove(self, root: str) -> None:
        try:
            shutil.rmtree(root)
        except OSError as exc:
            raise FilesystemError("remove", root, errno=exc.errno, cause=exc) from exc

    # ------------------------------------------------------------------
    # get / list
    # ------------------------------------------------------------------

    async def get(self, volume_id: str) -> Volume:
        """Return the credential-free volume recorded for *volume_id*."""
        validate_volume_id(volume_id)
        return await self._run(self._read, volume_id)

    def _read(self, volume_id: str) -> Volume:
        root = self._mounter.path(volume_id)
        if not os.path.isdir(root):
            raise VolumeNotFoundError(volume_id)
        meta = os.path.join(root, self._metadata_file)
        try:
            with open(meta, encoding="utf-8") as f:
                volume = read_volume_json(f)
        except OSError as exc:
            raise IncompleteVolumeError(volume_id, cause=exc) from exc
        except (DecodeError, UnicodeDecodeError) as exc:
            raise IncompleteVolumeError(volume_id, f"volume '{volume_id}' has corrupt metadata", cause=exc) from exc
        if volume.id != volume_id:
            raise IncompleteVolumeError(
                volume_id,
                f"volume '{volume_id}' has metadata for '{volume.id}'",
                detail={"id": volume_id, "recorded": volume.id},
            )
        return volume

    async def list(self) -> list[Volume]:
        """Every readable volume under the root, sorted by id."""
        return await self._run(self._list)

    def _list(self) -> list[Volume]:
        root = self._mounter.root()
        try:
            names = sorted(e.name for e in os.scandir(root) if e.is_dir())
        except FileNotFoundError as exc:
            raise MountRootUnavailableError(root, cause=exc) from exc
        except NotADirectoryError as exc:
            raise MountRootUnavailableError(root, cause=exc) from exc
        except OSError as exc:
            raise FilesystemError("list", root, errno=exc.errno, cause=exc) from exc
        volumes: list[Volume] = []
        for name in names:
            try:
                volumes.append(self._read(name))
            except (IncompleteVolumeError, VolumeNotFoundError) as exc:
                logger.debug("volume.list.skipped id=%s error=%s", name, exc)
        return volumes


__all__ = ["VolumeManager", "validate_volume_id"]
