"""FastAPI adapter – application factory."""
from __future__ import annotations

from typing import Any

from secret_volume.adapters.fastapi.exception_mapper import VolumeExceptionMapper, _require_fastapi
from secret_volume.adapters.fastapi.middleware import RequestLoggingMiddleware
from secret_volume.adapters.fastapi.routers import VolumeRouter


def create_app(manager: Any, *, title: str = "secret-volume") -> Any:
    """Build the HTTP application serving *manager*."""
    _require_fastapi()
    from fastapi import FastAPI  # type: ignore[import-untyped]

    app = FastAPI(title=title)
    app.include_router(VolumeRouter(manager))
    VolumeExceptionMapper().register(app)
    app.add_middleware(RequestLoggingMiddleware)
    return app


__all__ = ["create_app"]
