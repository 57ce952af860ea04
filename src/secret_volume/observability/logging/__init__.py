"""Observability – structured logging setup."""
from secret_volume.observability.logging.factory import JsonLoggerFactory
from secret_volume.observability.logging.filters import DEFAULT_SENSITIVE_FIELDS, SensitiveFieldsFilter

__all__ = [
    "DEFAULT_SENSITIVE_FIELDS",
    "JsonLoggerFactory",
    "SensitiveFieldsFilter",
]
