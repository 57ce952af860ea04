"""Unit tests – command-line parsing and settings resolution."""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

import pytest

from secret_volume import cli
from secret_volume.cli import load_settings, main, parse_addr, parse_args


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    import os

    for key in list(os.environ):
        if key.startswith("SECRET_VOLUME_"):
            monkeypatch.delenv(key)


class TestParseAddr:
    def test_host_and_port(self) -> None:
        assert parse_addr("127.0.0.1:8080") == ("127.0.0.1", 8080)

    def test_empty_host_means_all_interfaces(self) -> None:
        assert parse_addr(":10002") == (None, 10002)

    @pytest.mark.parametrize("value", ["10002", "host:port"])
    def test_rejects_malformed(self, value: str) -> None:
        with pytest.raises(argparse.ArgumentTypeError):
            parse_addr(value)


class TestParseArgs:
    def test_defaults_are_unset(self) -> None:
        args = parse_args([])
        assert args.talos_srv is None
        assert args.addr is None
        assert args.parent is None
        assert args.virtual is None
        assert args.talos_addresses is None

    def test_all_flags(self) -> None:
        args = parse_args(
            [
                "_talos._tcp.example.com",
                "--addr", ":9000",
                "--ns", "10.0.0.2:53",
                "-p", "/tmp/secrets",
                "--virtual",
                "--talos-address", "t1:4443",
                "--talos-address", "t2:4443",
                "--close-after", "5",
                "--log-level", "DEBUG",
            ]
        )
        assert args.talos_srv == "_talos._tcp.example.com"
        assert args.addr == (None, 9000)
        assert args.nameserver == "10.0.0.2:53"
        assert args.parent == "/tmp/secrets"
        assert args.virtual is True
        assert args.talos_addresses == ["t1:4443", "t2:4443"]
        assert args.close_after == 5.0
        assert args.log_level == "DEBUG"

    def test_bad_addr_exits(self) -> None:
        with pytest.raises(SystemExit):
            parse_args(["--addr", "nope"])


class TestLoadSettings:
    def test_flags_override_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SECRET_VOLUME_PARENT", "/env/secrets")
        monkeypatch.setenv("SECRET_VOLUME_PORT", "7000")
        settings = load_settings(parse_args(["-p", "/flag/secrets"]))
        assert settings.parent == "/flag/secrets"
        assert settings.port == 7000

    def test_unset_flags_keep_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SECRET_VOLUME_VIRTUAL", "true")
        monkeypatch.setenv("SECRET_VOLUME_TALOS_SRV", "_talos._tcp.env")
        settings = load_settings(parse_args([]))
        assert settings.virtual is True
        assert settings.talos_srv == "_talos._tcp.env"

    def test_addr_sets_host_and_port(self) -> None:
        settings = load_settings(parse_args(["--addr", "127.0.0.1:8081"]))
        assert (settings.host, settings.port) == ("127.0.0.1", 8081)

    def test_empty_host_keeps_default(self) -> None:
        settings = load_settings(parse_args(["--addr", ":8081"]))
        assert (settings.host, settings.port) == ("0.0.0.0", 8081)


class TestMain:
    def test_invalid_environment_exits_2(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SECRET_VOLUME_PORT", "not-a-port")
        assert main([]) == 2

    def test_setup_failure_exits_1(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setattr(cli.JsonLoggerFactory, "configure", staticmethod(lambda *a, **k: None))
        # no Talos endpoint configured
        assert main(["--virtual", "-p", str(tmp_path / "secrets")]) == 1

    def test_serves_app(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        calls: list[dict] = []

        class FakeUvicorn:
            @staticmethod
            def run(app: Any, **kwargs: Any) -> None:
                calls.append({"app": app, **kwargs})

        monkeypatch.setattr(cli.JsonLoggerFactory, "configure", staticmethod(lambda *a, **k: None))
        monkeypatch.setattr(cli, "_require_uvicorn", lambda: FakeUvicorn)
        rc = main(
            [
                "--virtual",
                "-p", str(tmp_path / "secrets"),
                "--talos-address", "talos.test:4443",
                "--addr", "127.0.0.1:9999",
                "--close-after", "3",
            ]
        )
        assert rc == 0
        assert calls[0]["host"] == "127.0.0.1"
        assert calls[0]["port"] == 9999
        assert calls[0]["timeout_graceful_shutdown"] == 3.0
        assert (tmp_path / "secrets").is_dir()
