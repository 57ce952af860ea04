"""Config settings – 12-factor env-based configuration."""
from secret_volume.config.settings.base import Settings
from secret_volume.config.settings.factory import SettingsFactory
from secret_volume.config.settings.loaders import DotenvSettingsLoader, EnvSettingsLoader, SettingsLoader

__all__ = ["DotenvSettingsLoader", "EnvSettingsLoader", "Settings", "SettingsFactory", "SettingsLoader"]
