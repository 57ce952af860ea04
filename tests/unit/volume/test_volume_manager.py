"""Unit tests – VolumeManager."""
from __future__ import annotations

import asyncio
import errno
import hashlib
import json
import os
from pathlib import Path
import stat
import threading
from typing import Any

import pytest

from secret_volume.api import SecretSource, SecretType, Volume
from secret_volume.kernel.errors import (
    DecodeError,
    FilesystemError,
    IncompleteVolumeError,
    MountRootUnavailableError,
    TransportError,
    UnhandledSecretSourceError,
    ValidationError,
    VolumeExistsError,
    VolumeNotFoundError,
)
from secret_volume.testing import FakeSecretProducer, RecordingMounter, build_targz
from secret_volume.volume import VolumeManager

FILES = {
    "conf/": None,
    "conf/db.json": b'{"password": "hunter2"}',
    "nested/deeper/api.yaml": b"token: abc\n",
    "top.txt": b"plain",
}


def _manager(
    root: Path, archive: bytes | None = None, **kwargs: Any
) -> tuple[VolumeManager, RecordingMounter, FakeSecretProducer]:
    producer = FakeSecretProducer(build_targz(FILES) if archive is None else archive)
    mounter = RecordingMounter(str(root))
    return VolumeManager(mounter, {SecretSource.TALOS: producer}, **kwargs), mounter, producer


class _BlockingMounter(RecordingMounter):
    """Holds ``mount`` in its worker thread until ``release`` is set."""

    def __init__(self, root: str) -> None:
        super().__init__(root)
        self.entered = threading.Event()
        self.release = threading.Event()

    def mount(self, volume: Volume) -> None:
        super().mount(volume)
        self.entered.set()
        self.release.wait(5)


class TestCreate:
    def test_materialises_every_entry(self, root: Path, volume: Volume) -> None:
        manager, mounter, _ = _manager(root)
        asyncio.run(manager.create(volume))
        base = root / "web-1"
        assert (base / "conf" / "db.json").read_bytes() == FILES["conf/db.json"]
        assert (base / "nested" / "deeper" / "api.yaml").read_bytes() == FILES["nested/deeper/api.yaml"]
        assert (base / "top.txt").read_bytes() == b"plain"
        assert mounter.events == [("mount", "web-1")]

    def test_files_and_dirs_get_configured_modes(self, root: Path, volume: Volume) -> None:
        manager, _, _ = _manager(root, file_mode=0o600, dir_mode=0o700)
        old = os.umask(0)
        try:
            asyncio.run(manager.create(volume))
        finally:
            os.umask(old)
        base = root / "web-1"
        assert stat.S_IMODE((base / "top.txt").stat().st_mode) == 0o600
        assert stat.S_IMODE((base / "nested").stat().st_mode) == 0o700
        assert stat.S_IMODE(base.stat().st_mode) == 0o700

    def test_writes_credential_free_metadata(self, root: Path, volume: Volume) -> None:
        manager, _, _ = _manager(root)
        asyncio.run(manager.create(volume))
        text = (root / "web-1" / ".meta").read_text()
        assert text.endswith("\n")
        assert json.loads(text) == {
            "id": "web-1",
            "source": "Talos",
            "tags": {"service": ["web"], "env": ["prod", "canary"]},
        }
        assert "PRIVATE KEY" not in text

    def test_custom_metadata_file(self, root: Path, volume: Volume) -> None:
        manager, _, _ = _manager(root, metadata_file=".volume.json")
        asyncio.run(manager.create(volume))
        assert manager.metadata_file == ".volume.json"
        assert (root / "web-1" / ".volume.json").exists()

    def test_symlinks_never_materialise(self, root: Path, volume: Volume) -> None:
        files = {"a": b"1" * 7, "b": b"2" * 11, "c": b"3" * 13}
        archive = build_targz(files, symlinks={"evil": "/etc/shadow"})
        manager, _, _ = _manager(root, archive)
        asyncio.run(manager.create(volume))
        base = root / "web-1"
        found = {p.name: hashlib.sha256(p.read_bytes()).hexdigest() for p in base.iterdir() if p.name != ".meta"}
        assert found == {k: hashlib.sha256(v).hexdigest() for k, v in files.items()}

    def test_second_create_conflicts(self, root: Path, volume: Volume) -> None:
        manager, _, producer = _manager(root)
        asyncio.run(manager.create(volume))
        with pytest.raises(VolumeExistsError):
            asyncio.run(manager.create(volume))
        assert len(producer.calls) == 1

    def test_existing_file_at_path_conflicts(self, root: Path, volume: Volume) -> None:
        (root / "web-1").write_text("squatter")
        manager, _, _ = _manager(root)
        with pytest.raises(VolumeExistsError):
            asyncio.run(manager.create(volume))

    def test_unhandled_source(self, root: Path) -> None:
        manager, _, _ = _manager(root)
        with pytest.raises(UnhandledSecretSourceError):
            asyncio.run(manager.create(Volume(id="v", source=SecretSource.UNKNOWN)))
        assert list(root.iterdir()) == []

    def test_producer_failure_leaves_no_trace(self, root: Path, volume: Volume) -> None:
        manager, mounter, producer = _manager(root)
        producer.fail_with(TransportError("talos", status_code=500))
        with pytest.raises(TransportError):
            asyncio.run(manager.create(volume))
        assert list(root.iterdir()) == []
        assert mounter.events == []

    def test_missing_root(self, tmp_path: Path, volume: Volume) -> None:
        manager, _, _ = _manager(tmp_path / "absent")
        with pytest.raises(MountRootUnavailableError):
            asyncio.run(manager.create(volume))

    @pytest.mark.parametrize("bad", ["", ".", "..", "a/b", "a\x00b"])
    def test_invalid_ids(self, root: Path, bad: str) -> None:
        manager, _, _ = _manager(root)
        with pytest.raises(ValidationError):
            asyncio.run(manager.create(Volume(id=bad, source=SecretSource.TALOS)))

    @pytest.mark.parametrize("name", ["../escape.txt", "/etc/evil", "a/../../escape.txt"])
    def test_escaping_entries_rejected(self, root: Path, volume: Volume, name: str) -> None:
        manager, _, _ = _manager(root, build_targz({name: b"x"}))
        with pytest.raises(DecodeError):
            asyncio.run(manager.create(volume))
        assert not (root / "escape.txt").exists()

    def test_mount_failure_leaves_incomplete_volume(self, root: Path, volume: Volume) -> None:
        manager, mounter, _ = _manager(root)
        mounter.fail_mount = FilesystemError("mount", str(root / "web-1"), errno=errno.EPERM)
        with pytest.raises(FilesystemError):
            asyncio.run(manager.create(volume))
        assert (root / "web-1").is_dir()
        with pytest.raises(IncompleteVolumeError):
            asyncio.run(manager.get("web-1"))

    @pytest.mark.parametrize("name", [".meta", "./.meta", "sub/../.meta"])
    def test_archive_cannot_supply_metadata(self, root: Path, volume: Volume, name: str) -> None:
        forged = b'{"id":"web-1","source":"Talos","tags":{"forged":["yes"]}}'
        manager, _, _ = _manager(root, build_targz({name: forged}))
        with pytest.raises(DecodeError):
            asyncio.run(manager.create(volume))
        assert not (root / "web-1" / ".meta").exists()
        with pytest.raises(IncompleteVolumeError):
            asyncio.run(manager.get("web-1"))
        assert asyncio.run(manager.list()) == []

    def test_archive_cannot_supply_merged_file(self, root: Path, volume: Volume) -> None:
        archive = build_targz({"secrets.json": b'{"secret":"forged"}'})
        manager, _, _ = _manager(root, archive, merged_secrets_file="secrets.json")
        with pytest.raises(DecodeError):
            asyncio.run(manager.create(volume))
        assert not (root / "web-1" / "secrets.json").exists()

    def test_non_ascii_tags_are_stored_as_utf8(self, root: Path, volume: Volume) -> None:
        manager, _, _ = _manager(root)
        tagged = Volume(id="web-1", source=SecretSource.TALOS, tags={"owner": ["José"]}, keypair=volume.keypair)
        asyncio.run(manager.create(tagged))
        assert "José".encode("utf-8") in (root / "web-1" / ".meta").read_bytes()
        assert asyncio.run(manager.get("web-1")).tags == {"owner": ["José"]}

    def test_cancelled_create_waits_for_worker(self, root: Path, volume: Volume) -> None:
        mounter = _BlockingMounter(str(root))
        manager = VolumeManager(mounter, {SecretSource.TALOS: FakeSecretProducer(build_targz(FILES))})

        async def run() -> None:
            task = asyncio.create_task(manager.create(volume))
            loop = asyncio.get_running_loop()
            assert await loop.run_in_executor(None, mounter.entered.wait, 5)
            task.cancel()
            await asyncio.sleep(0.05)
            assert not task.done()
            destroy = asyncio.create_task(manager.destroy(volume.id))
            await asyncio.sleep(0.05)
            assert not destroy.done()
            mounter.release.set()
            with pytest.raises(asyncio.CancelledError):
                await task
            await destroy

        asyncio.run(run())
        assert mounter.events == [("mount", "web-1"), ("unmount", "web-1")]
        assert not (root / "web-1").exists()

    def test_writes_merged_secrets(self, root: Path, volume: Volume) -> None:
        archive = build_targz({"a.yaml": b"secret: A\nsecretA: A\n", "b.yaml": b"secret: B\nsecretB: B\n"})
        producer = FakeSecretProducer(archive, SecretType.YAML)
        manager = VolumeManager(
            RecordingMounter(str(root)),
            {SecretSource.TALOS: producer},
            merged_secrets_file="secrets.json",
        )
        asyncio.run(manager.create(volume))
        merged = (root / "web-1" / "secrets.json").read_text()
        assert merged == '{"secret":"A","secretA":"A","secretB":"B"}\n'
        assert (root / "web-1" / "a.yaml").read_bytes() == b"secret: A\nsecretA: A\n"

    def test_concurrent_creates_of_one_id(self, root: Path, volume: Volume) -> None:
        manager, _, producer = _manager(root)

        async def run() -> list[object]:
            return await asyncio.gather(
                manager.create(volume), manager.create(volume), return_exceptions=True
            )

        results = asyncio.run(run())
        assert sum(r is None for r in results) == 1
        assert sum(isinstance(r, VolumeExistsError) for r in results) == 1
        assert len(producer.calls) == 1


class TestGet:
    def test_round_trip_without_keypair(self, root: Path, volume: Volume) -> None:
        manager, _, _ = _manager(root)
        asyncio.run(manager.create(volume))
        got = asyncio.run(manager.get("web-1"))
        assert (got.id, got.source, got.tags) == (volume.id, volume.source, volume.tags)
        assert got.keypair is None

    def test_absent(self, root: Path) -> None:
        manager, _, _ = _manager(root)
        with pytest.raises(VolumeNotFoundError):
            asyncio.run(manager.get("nope"))

    def test_corrupt_metadata(self, root: Path) -> None:
        (root / "bad").mkdir()
        (root / "bad" / ".meta").write_text("{not json")
        manager, _, _ = _manager(root)
        with pytest.raises(IncompleteVolumeError):
            asyncio.run(manager.get("bad"))

    def test_reads_records_with_original_key_casing(self, root: Path) -> None:
        (root / "legacy").mkdir()
        (root / "legacy" / ".meta").write_text('{"Id":"legacy","Source":"Talos","Tags":{"a":["b"]}}\n')
        manager, _, _ = _manager(root)
        got = asyncio.run(manager.get("legacy"))
        assert got == Volume(id="legacy", source=SecretSource.TALOS, tags={"a": ["b"]})


    def test_metadata_for_another_id(self, root: Path) -> None:
        (root / "web-1").mkdir()
        (root / "web-1" / ".meta").write_text('{"id":"web-2","source":"Talos","tags":{}}\n')
        manager, _, _ = _manager(root)
        with pytest.raises(IncompleteVolumeError):
            asyncio.run(manager.get("web-1"))
        assert asyncio.run(manager.list()) == []


class TestList:
    def test_sorted_and_skips_corrupt(self, root: Path) -> None:
        manager, _, _ = _manager(root)
        for vid in ("zeta", "alpha"):
            asyncio.run(manager.create(Volume(id=vid, source=SecretSource.TALOS)))
        (root / "broken").mkdir()
        (root / "broken" / ".meta").write_text("garbage")
        (root / "empty").mkdir()
        (root / "stray-file").write_text("ignored")
        assert [v.id for v in asyncio.run(manager.list())] == ["alpha", "zeta"]

    def test_empty_root(self, root: Path) -> None:
        manager, _, _ = _manager(root)
        assert asyncio.run(manager.list()) == []

    def test_missing_root(self, tmp_path: Path) -> None:
        manager, _, _ = _manager(tmp_path / "absent")
        with pytest.raises(MountRootUnavailableError):
            asyncio.run(manager.list())


class TestDestroy:
    def test_unmounts_then_removes(self, root: Path, volume: Volume) -> None:
        manager, mounter, _ = _manager(root)
        asyncio.run(manager.create(volume))
        asyncio.run(manager.destroy("web-1"))
        assert mounter.events == [("mount", "web-1"), ("unmount", "web-1")]
        assert not (root / "web-1").exists()
        with pytest.raises(VolumeNotFoundError):
            asyncio.run(manager.get("web-1"))
        assert asyncio.run(manager.list()) == []

    def test_absent(self, root: Path) -> None:
        manager, mounter, _ = _manager(root)
        with pytest.raises(VolumeNotFoundError):
            asyncio.run(manager.destroy("nope"))
        assert mounter.events == []

    def test_unmount_failure_keeps_directory(self, root: Path, volume: Volume) -> None:
        manager, mounter, _ = _manager(root)
        asyncio.run(manager.create(volume))
        mounter.fail_unmount = FilesystemError("unmount", str(root / "web-1"), errno=errno.EBUSY)
        with pytest.raises(FilesystemError):
            asyncio.run(manager.destroy("web-1"))
        assert (root / "web-1").is_dir()

    def test_removes_never_mounted_volume(self, root: Path) -> None:
        (root / "orphan").mkdir()
        manager, mounter, _ = _manager(root)
        mounter.fail_unmount = FilesystemError("unmount", str(root / "orphan"), errno=errno.EINVAL)
        asyncio.run(manager.destroy("orphan"))
        assert not (root / "orphan").exists()

    def test_create_after_destroy(self, root: Path, volume: Volume) -> None:
        manager, _, _ = _manager(root)
        asyncio.run(manager.create(volume))
        asyncio.run(manager.destroy("web-1"))
        asyncio.run(manager.create(volume))
        assert asyncio.run(manager.get("web-1")).id == "web-1"
