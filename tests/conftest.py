"""Shared fixtures: client keypairs and volume roots."""
from __future__ import annotations

import datetime
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from secret_volume.api.volume import KeyPair, SecretSource, Volume


@pytest.fixture(scope="session")
def keypair() -> KeyPair:
    """A throwaway self-signed client certificate and its private key."""
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "secret-volume-test")])
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(minutes=1))
        .not_valid_after(now + datetime.timedelta(days=1))
        .sign(key, hashes.SHA256())
    )
    return KeyPair(
        certificate=cert.public_bytes(serialization.Encoding.PEM).decode(),
        private_key=key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        ).decode(),
    )


@pytest.fixture
def volume(keypair: KeyPair) -> Volume:
    return Volume(
        id="web-1",
        source=SecretSource.TALOS,
        tags={"service": ["web"], "env": ["prod", "canary"]},
        keypair=keypair,
    )


@pytest.fixture
def root(tmp_path: Path) -> Path:
    """An existing, empty mount root."""
    path = tmp_path / "secrets"
    path.mkdir()
    return path
