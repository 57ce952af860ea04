"""Secrets – single-entry bundle."""
from __future__ import annotations

import io
from typing import IO

from secret_volume.api.secrets import Secrets, SecretsHeader, SecretType
from secret_volume.api.volume import Volume


class SingleFileSecrets(Secrets):
    """A bundle holding exactly one file named *name*.

    *source* is either the content itself or a binary stream that the bundle
    takes ownership of and closes.
    """

    def __init__(
        self,
        volume: Volume,
        name: str,
        source: bytes | IO[bytes],
        secret_type: SecretType = SecretType.UNKNOWN,
        *,
        mode: int = 0o600,
    ) -> None:
        self._volume = volume
        self._name = name
        self._type = secret_type
        self._mode = mode
        if isinstance(source, (bytes, bytearray)):
            self._size = len(source)
            self._source: IO[bytes] = io.BytesIO(bytes(source))
        else:
            self._size = 0
            self._source = source
        self._state = 0  # 0 before first next(), 1 on the entry, 2 exhausted
        self._closed = False

    @property
    def volume(self) -> Volume:
        return self._volume

    def next(self) -> SecretsHeader | None:
        if self._closed or self._state != 0:
            self._state = 2
            return None
        self._state = 1
        return SecretsHeader(path=self._name, mode=self._mode, size=self._size, type=self._type)

    def read(self, size: int = -1) -> bytes:
        if self._closed or self._state != 1:
            return b""
        return self._source.read(size)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._source.close()


__all__ = ["SingleFileSecrets"]
