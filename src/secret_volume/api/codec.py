"""API – JSON codec for volumes.

Used for the metadata file in every volume root and for the HTTP surface. Keys
are matched case-insensitively with underscores ignored, so ``"PrivateKey"``,
``"private_key"`` and ``"privatekey"`` all name the same field.
"""
from __future__ import annotations

import json
from typing import IO, Any, Iterable, Mapping

from secret_volume.api.volume import KeyPair, SecretSource, Volume
from secret_volume.kernel.errors import DecodeError


def _norm(key: str) -> str:
    return key.replace("_", "").lower()


def _lookup(data: Mapping[str, Any], name: str) -> Any:
    want = _norm(name)
    for key, value in data.items():
        if isinstance(key, str) and _norm(key) == want:
            return value
    return None


def encode_volume(volume: Volume) -> dict[str, Any]:
    """Credential-free plain dict for *volume*."""
    return {
        "id": volume.id,
        "source": str(volume.source),
        "tags": {k: list(v) for k, v in volume.tags.items()},
    }


def _decode_tags(raw: Any) -> dict[str, list[str]]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise DecodeError("volume tags must be an object")
    tags: dict[str, list[str]] = {}
    for key, values in raw.items():
        if isinstance(values, str):
            values = [values]
        if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
            raise DecodeError(f"tag {key!r} must be a list of strings")
        tags[str(key)] = list(values)
    return tags


def _decode_keypair(raw: Any) -> KeyPair | None:
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        raise DecodeError("volume keypair must be an object")
    certificate = _lookup(raw, "certificate") or ""
    private_key = _lookup(raw, "private_key") or ""
    if not isinstance(certificate, str) or not isinstance(private_key, str):
        raise DecodeError("keypair fields must be PEM strings")
    return KeyPair(certificate=certificate, private_key=private_key)


def decode_volume(data: Any, *, with_keypair: bool = False) -> Volume:
    """Build a :class:`Volume` from a decoded JSON object.

    The keypair is only honoured when *with_keypair* is true, i.e. for creation
    requests; persisted records never carry one.
    """
    if not isinstance(data, Mapping):
        raise DecodeError("volume must be a JSON object")
    volume_id = _lookup(data, "id")
    if not isinstance(volume_id, str):
        raise DecodeError("volume id must be a string")
    source = _lookup(data, "source")
    if source is None:
        parsed = SecretSource.UNKNOWN
    elif isinstance(source, str):
        parsed = SecretSource.parse(source)
    else:
        raise DecodeError("volume source must be a string")
    keypair = _decode_keypair(_lookup(data, "keypair")) if with_keypair else None
    return Volume(id=volume_id, source=parsed, tags=_decode_tags(_lookup(data, "tags")), keypair=keypair)


def dumps_volume(volume: Volume) -> str:
    return json.dumps(encode_volume(volume), ensure_ascii=False)


def loads_volume(text: str | bytes, *, with_keypair: bool = False) -> Volume:
    try:
        data = json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DecodeError("volume is not valid JSON", cause=exc) from exc
    return decode_volume(data, with_keypair=with_keypair)


def dumps_volumes(volumes: Iterable[Volume]) -> str:
    return json.dumps([encode_volume(v) for v in volumes], ensure_ascii=False)


def write_volume_json(volume: Volume, stream: IO[str]) -> None:
    """Write the metadata record for *volume*, newline terminated."""
    stream.write(dumps_volume(volume))
    stream.write("\n")


def read_volume_json(stream: IO[str] | IO[bytes]) -> Volume:
    return loads_volume(stream.read())


__all__ = [
    "decode_volume",
    "dumps_volume",
    "dumps_volumes",
    "encode_volume",
    "loads_volume",
    "read_volume_json",
    "write_volume_json",
]
