"""Observability – logging configuration."""

from secret_volume.observability.logging import JsonLoggerFactory, SensitiveFieldsFilter

__all__ = ["JsonLoggerFactory", "SensitiveFieldsFilter"]
