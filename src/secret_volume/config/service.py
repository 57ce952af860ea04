"""Config – ServiceSettings for the secret volume service."""
from __future__ import annotations

import dataclasses
import logging

from secret_volume.config.settings.base import Settings
from secret_volume.config.validation.errors import InvalidSettingValueError


@dataclasses.dataclass
class ServiceSettings(Settings):
    """Every knob of the service, read from ``SECRET_VOLUME_*`` variables.

    ``talos_addresses`` (a comma separated list of ``host:port``) takes
    precedence over SRV discovery through ``talos_srv``.
    """

    _prefix = "SECRET_VOLUME"

    talos_srv: str = ""
    talos_addresses: list[str] = dataclasses.field(default_factory=list)
    nameserver: str | None = None
    host: str = "0.0.0.0"
    port: int = 10002
    parent: str = "/secrets"
    virtual: bool = False
    max_size_mb: int = 100
    mount_mode: str = "700"
    metadata_file: str = ".meta"
    merged_secrets_file: str | None = None
    fetch_timeout: float = 15.0
    verify_server_certificate: bool = False
    ca_bundle: str | None = None
    log_level: str = "INFO"
    json_logs: bool = True
    close_after: float = 60.0

    def _validate(self) -> None:
        if not 0 < self.port < 65536:
            raise InvalidSettingValueError("port", self.port, "must be between 1 and 65535")
        if self.max_size_mb <= 0:
            raise InvalidSettingValueError("max_size_mb", self.max_size_mb, "must be positive")
        if self.fetch_timeout <= 0:
            raise InvalidSettingValueError("fetch_timeout", self.fetch_timeout, "must be positive")
        if self.close_after < 0:
            raise InvalidSettingValueError("close_after", self.close_after, "must not be negative")
        try:
            int(self.mount_mode, 8)
        except (TypeError, ValueError):
            raise InvalidSettingValueError("mount_mode", self.mount_mode, "must be an octal mode") from None
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise InvalidSettingValueError("log_level", self.log_level, "unknown logging level")
        if not self.metadata_file or "/" in self.metadata_file:
            raise InvalidSettingValueError("metadata_file", self.metadata_file, "must be a file name")

    @property
    def mount_mode_bits(self) -> int:
        return int(self.mount_mode, 8)


__all__ = ["ServiceSettings"]
