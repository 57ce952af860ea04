"""Secrets – load balancers that choose the next remote endpoint."""
from __future__ import annotations

import abc
import itertools
import logging
import random
from typing import Any, Sequence

from secret_volume.kernel.errors import TransportError

logger = logging.getLogger(__name__)


def _require_dns() -> Any:
    try:
        import dns.asyncresolver  # type: ignore[import-untyped]
        import dns.exception  # type: ignore[import-untyped]
        return dns
    except ImportError as exc:
        raise ImportError("Install 'secret-volume[dns]' (dnspython) to use SRV discovery") from exc


class LoadBalancer(abc.ABC):
    """Port: returns the ``host:port`` of the next endpoint to call."""

    @abc.abstractmethod
    async def next(self) -> str: ...


class StaticLoadBalancer(LoadBalancer):
    """Picks from a fixed list of ``host:port`` addresses."""

    def __init__(self, addresses: Sequence[str], strategy: str = "random") -> None:
        if strategy not in ("random", "round_robin"):
            raise ValueError(f"unknown balancing strategy {strategy!r}")
        self._addresses = list(addresses)
        self._strategy = strategy
        self._cycle = itertools.cycle(self._addresses)

    async def next(self) -> str:
        if not self._addresses:
            raise TransportError("load balancer", "cannot determine next endpoint: no addresses configured")
        if self._strategy == "round_robin":
            return next(self._cycle)
        return random.choice(self._addresses)


class SrvLoadBalancer(LoadBalancer):
    """Resolves a DNS SRV record on every call and picks one target at random.

    *nameserver* is an optional ``host[:port]`` that replaces the system
    resolver configuration.
    """

    def __init__(self, record: str, nameserver: str | None = None) -> None:
        dns = _require_dns()
        self._record = record
        self._resolver = dns.asyncresolver.Resolver(configure=nameserver is None)
        if nameserver:
            host, sep, port = nameserver.rpartition(":")
            if not sep:
                host, port = nameserver, ""
            if port:
                self._resolver.port = int(port)
            self._resolver.nameservers = [host]

    async def next(self) -> str:
        dns = _require_dns()
        try:
            answer = await self._resolver.resolve(self._record, "SRV")
        except dns.exception.DNSException as exc:
            raise TransportError(
                "load balancer", f"cannot determine next endpoint for {self._record}", cause=exc
            ) from exc
        targets = list(answer)
        if not targets:
            raise TransportError("load balancer", f"no SRV targets for {self._record}")
        target = random.choice(targets)
        address = f"{target.target.to_text(omit_final_dot=True)}:{target.port}"
        logger.debug("balancer.srv.resolved record=%s address=%s", self._record, address)
        return address


__all__ = ["LoadBalancer", "SrvLoadBalancer", "StaticLoadBalancer"]
