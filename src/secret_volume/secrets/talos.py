"""Secrets – Talos producer.

Fetches a ``.tar.gz`` bundle over HTTPS from a Talos endpoint, authenticating
with the volume's client keypair. Volume tags become the query string.
"""
from __future__ import annotations

import io
import logging
import ssl
from urllib.parse import urlencode

import httpx

from secret_volume.api.secrets import Secrets, SecretType
from secret_volume.api.volume import Volume
from secret_volume.kernel.errors import CredentialError, TransportError
from secret_volume.resilience import DeadlineExceededError, deadline_aware
from secret_volume.secrets.balancer import LoadBalancer
from secret_volume.secrets.port import SecretProducer
from secret_volume.secrets.targz import TarGzSecrets

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0


def query_string(tags: dict[str, list[str]]) -> str:
    """Encode *tags* with sorted keys and one pair per value."""
    return urlencode([(k, v) for k in sorted(tags) for v in tags[k]])


class TalosProducer(SecretProducer):
    """Retrieves secrets from https://github.com/spotify/talos.

    Server certificates are not verified unless *verify_server_certificate* is
    set: endpoints come from internal service discovery rather than public PKI.
    *transport* replaces the network layer (tests use ``httpx.MockTransport``).
    """

    service = "talos"

    def __init__(
        self,
        balancer: LoadBalancer,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        verify_server_certificate: bool = False,
        ca_bundle: str | None = None,
        secret_type: SecretType = SecretType.UNKNOWN,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._balancer = balancer
        self._timeout = timeout
        self._verify = verify_server_certificate
        self._ca_bundle = ca_bundle
        self._secret_type = secret_type
        self._transport = transport

    def ssl_context_for(self, volume: Volume) -> ssl.SSLContext:
        if volume.keypair is None:
            raise CredentialError(f"volume '{volume.id}' has no keypair")
        ctx = ssl.create_default_context(cafile=self._ca_bundle)
        if not self._verify:
            ctx.check_hostname = False
            ctx.verify_mode = ssl.CERT_NONE
        volume.keypair.load_into(ctx)
        return ctx

    async def url_for(self, volume: Volume) -> str:
        try:
            host = await self._balancer.next()
        except TransportError:
            raise
        except Exception as exc:
            raise TransportError(self.service, "cannot determine next talos endpoint", cause=exc) from exc
        return f"https://{host}?{query_string(volume.tags)}"

    async def secrets_for(self, volume: Volume) -> Secrets:
        url = await self.url_for(volume)
        ctx = self.ssl_context_for(volume)
        logger.debug("talos.fetch.start volume=%s url=%s", volume.id, url)
        try:
            body = await deadline_aware(self._fetch(url, ctx), self._timeout)
        except DeadlineExceededError as exc:
            raise TransportError(self.service, f"timed out fetching secrets from {url}", cause=exc) from exc
        except httpx.HTTPError as exc:
            raise TransportError(self.service, f"cannot fetch secrets from {url}", cause=exc) from exc
        logger.debug("talos.fetch.done volume=%s bytes=%d", volume.id, len(body))
        return TarGzSecrets(volume, io.BytesIO(body), self._secret_type)

    async def _fetch(self, url: str, ctx: ssl.SSLContext) -> bytes:
        async with httpx.AsyncClient(verify=ctx, timeout=None, transport=self._transport) as client:
            response = await client.get(url)
            if not response.is_success:
                raise TransportError(
                    self.service,
                    f"HTTP {response.status_code} from {url}",
                    status_code=response.status_code,
                )
            return await response.aread()


__all__ = ["DEFAULT_TIMEOUT", "TalosProducer", "query_string"]
