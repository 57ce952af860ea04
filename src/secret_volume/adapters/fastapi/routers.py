"""FastAPI adapter – the volume router.

Annotations here are evaluated eagerly: FastAPI must see the real ``Request``
class, which is only imported inside :func:`VolumeRouter`.
"""

from typing import Any

from secret_volume.adapters.fastapi.exception_mapper import _require_fastapi
from secret_volume.api.codec import encode_volume, loads_volume
from secret_volume.kernel.errors import DecodeError, ValidationError


def VolumeRouter(manager: Any, tags: list[str] | None = None) -> Any:
    """Return a router exposing *manager* over HTTP.

    ``GET /``            list volumes
    ``POST /``           create a volume from a JSON body (with keypair)
    ``GET /{id}``        describe one volume
    ``DELETE /{id}``     destroy one volume

    Responses never include the keypair.
    """
    _require_fastapi()
    from fastapi import APIRouter, Request, Response  # type: ignore[import-untyped]

    router = APIRouter(tags=tags or ["volumes"])

    @router.get("/")
    async def list_volumes() -> list[dict[str, Any]]:
        return [encode_volume(v) for v in await manager.list()]

    @router.post("/")
    async def create_volume(request: Request) -> dict[str, Any]:
        body = await request.body()
        try:
            volume = loads_volume(body, with_keypair=True)
        except DecodeError as exc:
            raise ValidationError(f"cannot decode volume: {exc}", cause=exc) from exc
        await manager.create(volume)
        return encode_volume(volume)

    @router.get("/{volume_id}")
    async def get_volume(volume_id: str) -> dict[str, Any]:
        return encode_volume(await manager.get(volume_id))

    @router.delete("/{volume_id}")
    async def destroy_volume(volume_id: str) -> Any:
        await manager.destroy(volume_id)
        return Response(status_code=200)

    return router


__all__ = ["VolumeRouter"]
