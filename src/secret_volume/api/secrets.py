"""API – the Secrets bundle contract.

A :class:`Secrets` bundle behaves much like a :class:`tarfile.TarFile` opened in
stream mode: :meth:`Secrets.next` returns the header of the next secret file or
directory (``None`` once the bundle is exhausted) and :meth:`Secrets.read`
returns bytes of that entry only (``b""`` once the entry is consumed). Bundles
are single pass and must be closed.
"""
from __future__ import annotations

import abc
import dataclasses
import enum
from typing import Any, Iterator

from secret_volume.api.volume import Volume


class SecretType(enum.Enum):
    """Declared content format of the files in a bundle."""

    UNKNOWN = 0
    JSON = 1
    YAML = 2

    def __str__(self) -> str:
        return self.name


@dataclasses.dataclass(frozen=True)
class SecretsHeader:
    """Describes one entry of a :class:`Secrets` bundle."""

    path: str
    is_dir: bool = False
    mode: int = 0o600
    size: int = 0
    type: SecretType = SecretType.UNKNOWN


class Secrets(abc.ABC):
    """Port: a lazy, forward-only sequence of secret files."""

    @property
    @abc.abstractmethod
    def volume(self) -> Volume:
        """The volume these secrets were produced for."""

    @abc.abstractmethod
    def next(self) -> SecretsHeader | None:
        """Advance to the next secret file or directory."""

    @abc.abstractmethod
    def read(self, size: int = -1) -> bytes:
        """Read from the current secret file; ``b""`` when it is consumed."""

    @abc.abstractmethod
    def close(self) -> None:
        """Release any transport or decoder held by the bundle."""

    def readable(self) -> bool:
        return True

    def __iter__(self) -> Iterator[SecretsHeader]:
        while True:
            header = self.next()
            if header is None:
                return
            yield header

    def __enter__(self) -> "Secrets":
        return self

    def __exit__(self, *_: Any) -> None:
        self.close()


__all__ = ["SecretType", "Secrets", "SecretsHeader"]
