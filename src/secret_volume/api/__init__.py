"""Public value types shared by producers, mounters and the volume manager."""

from secret_volume.api.codec import (
    decode_volume,
    dumps_volume,
    dumps_volumes,
    encode_volume,
    loads_volume,
    read_volume_json,
    write_volume_json,
)
from secret_volume.api.secrets import Secrets, SecretsHeader, SecretType
from secret_volume.api.volume import KeyPair, SecretSource, Volume

__all__ = [
    "KeyPair",
    "SecretSource",
    "SecretType",
    "Secrets",
    "SecretsHeader",
    "Volume",
    "decode_volume",
    "dumps_volume",
    "dumps_volumes",
    "encode_volume",
    "loads_volume",
    "read_volume_json",
    "write_volume_json",
]
