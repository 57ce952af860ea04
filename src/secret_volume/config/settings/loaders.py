"""Config settings – EnvSettingsLoader, DotenvSettingsLoader."""
from __future__ import annotations

import abc
import dataclasses
import os
from typing import Any, TypeVar

from secret_volume.config.settings.base import Settings
from secret_volume.config.validation import ConfigError, InvalidSettingValueError, MissingRequiredSettingError

T = TypeVar("T", bound=Settings)

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off", "")


def _type_name(type_hint: Any) -> str:
    """Normalise a field annotation to a bare name such as ``int`` or ``list``.

    Annotations arrive as strings when the settings module uses postponed
    evaluation, so both forms are handled.
    """
    name = type_hint if isinstance(type_hint, str) else getattr(type_hint, "__name__", str(type_hint))
    name = name.replace(" ", "")
    for optional in ("|None", "None|"):
        name = name.replace(optional, "")
    if name.startswith("Optional[") and name.endswith("]"):
        name = name[len("Optional["):-1]
    return name.split("[", 1)[0]


def _is_required(field: dataclasses.Field[Any]) -> bool:
    return field.default is dataclasses.MISSING and field.default_factory is dataclasses.MISSING


class SettingsLoader(abc.ABC):
    """Port: load settings from an external source."""

    @abc.abstractmethod
    def values(self, settings_class: type[Settings]) -> dict[str, Any]:
        """Return only the fields this source sets explicitly."""

    def load(self, settings_class: type[T]) -> T:
        kwargs = self.values(settings_class)
        for field in dataclasses.fields(settings_class):  # type: ignore[arg-type]
            if field.name not in kwargs and _is_required(field):
                raise MissingRequiredSettingError(field.name)
        try:
            return settings_class(**kwargs)
        except ConfigError:
            raise
        except Exception as exc:
            raise ConfigError(f"Failed to load settings: {exc}") from exc


class EnvSettingsLoader(SettingsLoader):
    """Load settings from OS environment variables named ``PREFIX_FIELD``."""

    def __init__(self, environ: dict[str, str] | None = None) -> None:
        self._environ = environ

    def values(self, settings_class: type[Settings]) -> dict[str, Any]:
        environ = os.environ if self._environ is None else self._environ
        prefix = getattr(settings_class, "_prefix", "").upper()
        kwargs: dict[str, Any] = {}

        for field in dataclasses.fields(settings_class):  # type: ignore[arg-type]
            env_key = f"{prefix}_{field.name}".upper().lstrip("_")
            raw = environ.get(env_key)
            if raw is None:
                continue
            kwargs[field.name] = self._coerce(env_key, raw, field.type)
        return kwargs

    def _coerce(self, key: str, value: str, type_hint: Any) -> Any:  # noqa: PLR0911
        name = _type_name(type_hint)
        try:
            if name == "bool":
                lowered = value.strip().lower()
                if lowered in _TRUE:
                    return True
                if lowered in _FALSE:
                    return False
                raise ValueError("expected a boolean")
            if name == "int":
                return int(value)
            if name == "float":
                return float(value)
        except ValueError as exc:
            raise InvalidSettingValueError(key, value, str(exc)) from exc
        if name in ("list", "tuple"):
            return [v.strip() for v in value.split(",") if v.strip()]
        return value


class DotenvSettingsLoader(EnvSettingsLoader):
    """Load settings from a ``.env`` file then fall back to the environment."""

    def __init__(self, env_file: str = ".env", override: bool = False) -> None:
        super().__init__()
        self._env_file = env_file
        self._override = override

    def values(self, settings_class: type[Settings]) -> dict[str, Any]:
        try:
            from dotenv import load_dotenv  # type: ignore[import-untyped]
        except ImportError as exc:
            raise ImportError("Install 'secret-volume[dotenv]' to use DotenvSettingsLoader") from exc
        load_dotenv(self._env_file, override=self._override)
        return super().values(settings_class)


__all__ = ["DotenvSettingsLoader", "EnvSettingsLoader", "SettingsLoader"]
