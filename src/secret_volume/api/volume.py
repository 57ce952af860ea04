"""API – Volume, SecretSource and KeyPair value types."""
from __future__ import annotations

import dataclasses
import enum
import os
import pathlib
import ssl
import tempfile

from secret_volume.kernel.errors import CredentialError


class SecretSource(enum.Enum):
    """Which secret producer should populate a volume."""

    UNKNOWN = 0
    TALOS = 1

    def __str__(self) -> str:
        return self.name.capitalize()

    @classmethod
    def parse(cls, token: str) -> "SecretSource":
        """Case-insensitive lookup; unrecognised tokens map to ``UNKNOWN``."""
        try:
            return cls[token.strip().upper()]
        except KeyError:
            return cls.UNKNOWN


@dataclasses.dataclass(frozen=True)
class KeyPair:
    """PEM encoded client certificate and private key.

    Only relevant while a volume is being created; it is never persisted.
    """

    certificate: str
    private_key: str

    def __repr__(self) -> str:
        return "KeyPair(certificate=<pem>, private_key=<redacted>)"

    def __bool__(self) -> bool:
        return bool(self.certificate and self.private_key)

    @classmethod
    def from_files(cls, cert: str | os.PathLike[str], key: str | os.PathLike[str]) -> "KeyPair":
        try:
            certificate = pathlib.Path(cert).read_text()
            private_key = pathlib.Path(key).read_text()
        except OSError as exc:
            raise CredentialError(f"cannot read keypair from {cert} and {key}", cause=exc) from exc
        return cls(certificate=certificate, private_key=private_key)

    def load_into(self, context: ssl.SSLContext) -> None:
        """Install this pair as *context*'s client certificate.

        :mod:`ssl` only loads certificate chains from files, so the PEM data is
        written to a private temporary directory that is removed straight after.
        """
        if not self:
            raise CredentialError("volume has no keypair")
        with tempfile.TemporaryDirectory(prefix="secret-volume-") as tmp:
            cert_path = os.path.join(tmp, "cert.pem")
            key_path = os.path.join(tmp, "key.pem")
            _write_private(cert_path, self.certificate)
            _write_private(key_path, self.private_key)
            try:
                context.load_cert_chain(cert_path, key_path)
            except (ssl.SSLError, ValueError) as exc:
                raise CredentialError("cannot parse keypair", cause=exc) from exc


def _write_private(path: str, data: str) -> None:
    fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o600)
    with os.fdopen(fd, "w") as f:
        f.write(data)


@dataclasses.dataclass
class Volume:
    """A secret volume: the directory in which secrets for one resource
    (i.e. a container) are stored.

    ``tags`` are passed opaquely to the secret producer to request or filter
    specific secrets. ``keypair`` authenticates to producers that need it and is
    left out of equality, ``repr`` and every serialised form.
    """

    id: str
    source: SecretSource = SecretSource.UNKNOWN
    tags: dict[str, list[str]] = dataclasses.field(default_factory=dict)
    keypair: KeyPair | None = dataclasses.field(default=None, repr=False, compare=False)

    def without_keypair(self) -> "Volume":
        return dataclasses.replace(self, tags={k: list(v) for k, v in self.tags.items()}, keypair=None)


__all__ = ["KeyPair", "SecretSource", "Volume"]
