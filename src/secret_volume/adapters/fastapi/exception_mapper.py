"""FastAPI adapter – VolumeExceptionMapper."""
from __future__ import annotations

import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)


def _require_fastapi() -> None:
    try:
        import fastapi  # noqa: F401
    except ImportError as exc:
        raise ImportError(
            "Install 'secret-volume[server]' to use the FastAPI adapter"
        ) from exc


class VolumeExceptionMapper:
    """Register error → HTTP status-code mappings on a FastAPI app.

    Error body schema::

        {"code": "volume_not_found", "message": "...", "detail": {...}}

    Mappings
    --------
    ``ValidationError``   → 400
    ``NotFoundError``     → 404
    ``ConflictError``     → 409
    ``TransportError``    → 502
    ``UnavailableError``  → 503
    ``BaseError``         → 500
    """

    def __init__(self) -> None:
        _require_fastapi()
        from secret_volume.kernel.errors import (
            BaseError,
            ConflictError,
            NotFoundError,
            TransportError,
            UnavailableError,
            ValidationError,
        )

        # ORDER MATTERS: more-specific subtypes first
        self._map: list[tuple[type[Exception], int]] = [
            (ValidationError, 400),
            (NotFoundError, 404),
            (ConflictError, 409),
            (TransportError, 502),
            (UnavailableError, 503),
            (BaseError, 500),
        ]

    def status_for(self, exc: BaseException) -> int:
        for exc_type, status in self._map:
            if isinstance(exc, exc_type):
                return status
        return 500

    def register(self, app: Any) -> None:
        """Register all error handlers on a ``FastAPI`` or ``Starlette`` app."""
        from fastapi.responses import JSONResponse  # type: ignore[import-untyped]

        for exc_type, status in self._map:

            def make_handler(code: int) -> Callable[[Any, Any], Any]:
                def handler(request: Any, exc: Any) -> Any:
                    level = logging.ERROR if code >= 500 else logging.INFO
                    logger.log(
                        level,
                        "http.error method=%s url=%s status=%d code=%s error=%s",
                        request.method,
                        request.url,
                        code,
                        exc.code,
                        exc,
                    )
                    return JSONResponse(status_code=code, content=exc.to_dict())

                return handler

            app.add_exception_handler(exc_type, make_handler(status))


__all__ = ["VolumeExceptionMapper"]
