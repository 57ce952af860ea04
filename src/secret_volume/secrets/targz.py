"""Secrets – gzip-compressed tar bundle."""
from __future__ import annotations

import logging
import os
import tarfile
import zlib
from typing import IO

from secret_volume.api.secrets import Secrets, SecretsHeader, SecretType
from secret_volume.api.volume import Volume
from secret_volume.kernel.errors import DecodeError

logger = logging.getLogger(__name__)

_DECODE_ERRORS = (tarfile.TarError, OSError, EOFError, zlib.error)


def _clean_path(name: str) -> str:
    while name.startswith("./"):
        name = name[2:]
    if name in ("", "."):
        return "."
    return name.rstrip("/")


class TarGzSecrets(Secrets):
    """Streams a ``.tar.gz`` body one member at a time.

    The stream is never seeked, so *fileobj* may be a socket-like object. The
    gzip header and the first tar header are decoded on construction; a
    corrupt archive raises :class:`DecodeError` here rather than on first use.
    Only regular files and directories are surfaced.
    """

    def __init__(
        self,
        volume: Volume,
        fileobj: IO[bytes],
        secret_type: SecretType = SecretType.UNKNOWN,
    ) -> None:
        self._volume = volume
        self._fileobj = fileobj
        self._type = secret_type
        self._current: IO[bytes] | None = None
        self._closed = False
        try:
            self._tar = tarfile.open(fileobj=fileobj, mode="r|gz")
        except _DECODE_ERRORS as exc:
            self._close_source()
            raise DecodeError("cannot decode secrets archive", cause=exc) from exc

    @property
    def volume(self) -> Volume:
        return self._volume

    def next(self) -> SecretsHeader | None:
        if self._closed:
            return None
        self._current = None
        while True:
            try:
                member = self._tar.next()
            except _DECODE_ERRORS as exc:
                raise DecodeError("cannot decode secrets archive", cause=exc) from exc
            if member is None:
                return None
            if member.isdir():
                return SecretsHeader(
                    path=_clean_path(member.name),
                    is_dir=True,
                    mode=member.mode,
                    type=self._type,
                )
            if member.isreg():
                try:
                    self._current = self._tar.extractfile(member)
                except _DECODE_ERRORS as exc:
                    raise DecodeError("cannot decode secrets archive", cause=exc) from exc
                return SecretsHeader(
                    path=_clean_path(member.name),
                    mode=member.mode,
                    size=member.size,
                    type=self._type,
                )
            logger.debug("secrets.targz.skipped path=%s type=%r", member.name, member.type)

    def read(self, size: int = -1) -> bytes:
        if self._current is None:
            return b""
        try:
            return self._current.read(size)
        except _DECODE_ERRORS as exc:
            raise DecodeError("cannot decode secrets archive", cause=exc) from exc

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._current = None
        try:
            self._tar.close()
        finally:
            self._close_source()

    def _close_source(self) -> None:
        close = getattr(self._fileobj, "close", None)
        if close is not None:
            close()


def open_targz(
    volume: Volume,
    path: str | os.PathLike[str],
    secret_type: SecretType = SecretType.UNKNOWN,
) -> TarGzSecrets:
    """Open an archive on disk as a bundle for *volume*."""
    try:
        f = open(path, "rb")
    except OSError as exc:
        raise DecodeError(f"cannot open secrets archive {path}", cause=exc) from exc
    return TarGzSecrets(volume, f, secret_type)


__all__ = ["TarGzSecrets", "open_targz"]
