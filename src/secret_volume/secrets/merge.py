"""Secrets – merge JSON/YAML secret files into one key/value document."""
from __future__ import annotations

import json
import logging
from typing import IO, Any

import yaml

from secret_volume.api.secrets import Secrets, SecretsHeader, SecretType
from secret_volume.kernel.errors import DecodeError

logger = logging.getLogger(__name__)


def decode_secret_file(data: bytes, secret_type: SecretType) -> dict[str, str]:
    """Decode one secret file into a flat ``str -> str`` mapping."""
    try:
        if secret_type is SecretType.JSON:
            doc: Any = json.loads(data)
        elif secret_type is SecretType.YAML:
            doc = yaml.safe_load(data)
        else:
            raise DecodeError(f"unknown secret file type {secret_type}")
    except (UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise DecodeError("cannot decode secret file", cause=exc) from exc
    if not isinstance(doc, dict):
        raise DecodeError("secret file is not a mapping")
    out: dict[str, str] = {}
    for key, value in doc.items():
        if not isinstance(value, str):
            raise DecodeError(f"secret {key!r} is not a string")
        out[str(key)] = value
    return out


class SecretsMerger:
    """Accumulates secret files; a key keeps the value from the first file that set it."""

    def __init__(self) -> None:
        self._merged: dict[str, str] = {}

    def add(self, header: SecretsHeader, data: bytes) -> None:
        if header.is_dir:
            return
        try:
            chunk = decode_secret_file(data, header.type)
        except DecodeError as exc:
            logger.debug("secrets.merge.skipped path=%s type=%s error=%s", header.path, header.type, exc)
            return
        for key, value in chunk.items():
            self._merged.setdefault(key, value)

    def result(self) -> dict[str, str]:
        return dict(self._merged)


def merge_secrets(secrets: Secrets) -> dict[str, str]:
    """Consume *secrets* and merge every decodable file."""
    merger = SecretsMerger()
    for header in secrets:
        merger.add(header, b"" if header.is_dir else secrets.read())
    return merger.result()


def write_merged(merged: dict[str, str], stream: IO[str]) -> None:
    """Write *merged* as compact JSON with sorted keys and a trailing newline."""
    json.dump(merged, stream, sort_keys=True, separators=(",", ":"))
    stream.write("\n")


def write_json(secrets: Secrets, stream: IO[str]) -> None:
    write_merged(merge_secrets(secrets), stream)


__all__ = ["SecretsMerger", "decode_secret_file", "merge_secrets", "write_json", "write_merged"]
