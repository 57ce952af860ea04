"""Unit tests for the load balancers."""
from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import dns.exception
import pytest

from secret_volume.kernel.errors import TransportError
from secret_volume.secrets import SrvLoadBalancer, StaticLoadBalancer


class TestStaticLoadBalancer:
    def test_round_robin_cycles(self) -> None:
        lb = StaticLoadBalancer(["a:1", "b:2"], strategy="round_robin")

        async def run() -> list[str]:
            return [await lb.next() for _ in range(3)]

        assert asyncio.run(run()) == ["a:1", "b:2", "a:1"]

    def test_random_picks_configured_address(self) -> None:
        lb = StaticLoadBalancer(["a:1", "b:2"])
        assert asyncio.run(lb.next()) in ("a:1", "b:2")

    def test_empty_raises_transport_error(self) -> None:
        with pytest.raises(TransportError):
            asyncio.run(StaticLoadBalancer([]).next())

    def test_unknown_strategy(self) -> None:
        with pytest.raises(ValueError):
            StaticLoadBalancer(["a:1"], strategy="weighted")


def _srv(target: str, port: int) -> MagicMock:
    record = MagicMock()
    record.target.to_text.return_value = target
    record.port = port
    return record


class TestSrvLoadBalancer:
    def test_resolves_target_and_port(self) -> None:
        lb = SrvLoadBalancer("_talos._tcp.example.com", nameserver="127.0.0.1")
        lb._resolver.resolve = AsyncMock(return_value=[_srv("talos1.example.com", 4443)])  # noqa: SLF001
        assert asyncio.run(lb.next()) == "talos1.example.com:4443"
        lb._resolver.resolve.assert_awaited_once_with("_talos._tcp.example.com", "SRV")  # noqa: SLF001

    def test_dns_failure_raises_transport_error(self) -> None:
        lb = SrvLoadBalancer("_talos._tcp.example.com", nameserver="127.0.0.1")
        lb._resolver.resolve = AsyncMock(side_effect=dns.exception.Timeout())  # noqa: SLF001
        with pytest.raises(TransportError):
            asyncio.run(lb.next())

    def test_custom_nameserver(self) -> None:
        lb = SrvLoadBalancer("_talos._tcp.example.com", nameserver="10.0.0.53:5353")
        assert lb._resolver.port == 5353  # noqa: SLF001
