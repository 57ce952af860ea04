"""FastAPI adapter – volume router, exception mapper and request logging."""
from secret_volume.adapters.fastapi.app import create_app
from secret_volume.adapters.fastapi.exception_mapper import VolumeExceptionMapper
from secret_volume.adapters.fastapi.middleware import RequestLoggingMiddleware
from secret_volume.adapters.fastapi.routers import VolumeRouter

__all__ = [
    "RequestLoggingMiddleware",
    "VolumeExceptionMapper",
    "VolumeRouter",
    "create_app",
]
