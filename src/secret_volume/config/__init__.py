"""Config – 12-factor settings and loaders."""

from secret_volume.config.service import ServiceSettings
from secret_volume.config.settings import (
    DotenvSettingsLoader,
    EnvSettingsLoader,
    Settings,
    SettingsFactory,
    SettingsLoader,
)
from secret_volume.config.validation import ConfigError, InvalidSettingValueError, MissingRequiredSettingError

__all__ = [
    "ConfigError",
    "DotenvSettingsLoader",
    "EnvSettingsLoader",
    "InvalidSettingValueError",
    "MissingRequiredSettingError",
    "ServiceSettings",
    "Settings",
    "SettingsFactory",
    "SettingsLoader",
]
