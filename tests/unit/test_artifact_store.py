"""Tests for the cross-run artifact store."""

from __future__ import annotations

import os
import time
from pathlib import Path

import pytest

from acornforge.core.artifact_store import ArtifactStore
from acornforge.core.errors import BuildError
from acornforge.models.artifacts import ArtifactKind

KEY = "ab" + "0" * 62


@pytest.fixture
def image(tmp_dir: Path) -> Path:
    path = tmp_dir / "output" / "filesystem.erofs"
    path.parent.mkdir()
    path.write_bytes(b"erofs image" * 200)
    return path


class TestDisabledStore:
    def test_misses_and_skips(self, image: Path, tmp_dir: Path):
        store = ArtifactStore(None)
        assert store.enabled is False
        assert store.try_store(ArtifactKind.ROOTFS, KEY, image) is None
        assert store.try_restore(ArtifactKind.ROOTFS, KEY, tmp_dir / "out") is False
        assert store.lookup(ArtifactKind.ROOTFS, KEY) is None


class TestStoreAndRestore:
    def test_layout(self, artifact_store: ArtifactStore, image: Path, tmp_dir: Path):
        stored = artifact_store.try_store(ArtifactKind.ROOTFS, KEY, image, {"source": "test"})
        entry = tmp_dir / "store" / "rootfs" / "ab" / KEY
        assert (entry / "payload").read_bytes() == image.read_bytes()
        assert (entry / "meta.json").is_file()
        assert stored.content_address.startswith("sha256:")
        assert stored.size_bytes == image.stat().st_size
        assert stored.metadata == {"source": "test"}

    def test_restore_round_trip(self, artifact_store: ArtifactStore, image: Path, tmp_dir: Path):
        artifact_store.try_store(ArtifactKind.ROOTFS, KEY, image)
        dest = tmp_dir / "restored" / "filesystem.erofs"
        assert artifact_store.try_restore(ArtifactKind.ROOTFS, KEY, dest) is True
        assert dest.read_bytes() == image.read_bytes()
        assert not dest.with_name(dest.name + ".restore").exists()

    def test_restore_has_fresh_mtime(self, artifact_store: ArtifactStore, image: Path, tmp_dir: Path):
        artifact_store.try_store(ArtifactKind.ROOTFS, KEY, image)
        past = time.time() - 3600
        payload = tmp_dir / "store" / "rootfs" / "ab" / KEY / "payload"
        os.utime(payload, (past, past))
        dest = tmp_dir / "filesystem.erofs"
        artifact_store.try_restore(ArtifactKind.ROOTFS, KEY, dest)
        assert dest.stat().st_mtime > past + 60

    def test_unknown_key_misses(self, artifact_store: ArtifactStore, tmp_dir: Path):
        assert artifact_store.try_restore(ArtifactKind.INITRAMFS, KEY, tmp_dir / "x") is False

    def test_store_is_idempotent(self, artifact_store: ArtifactStore, image: Path):
        first = artifact_store.try_store(ArtifactKind.ROOTFS, KEY, image)
        image.write_bytes(b"different bytes")
        second = artifact_store.try_store(ArtifactKind.ROOTFS, KEY, image)
        assert second == first

    def test_kinds_are_separate(self, artifact_store: ArtifactStore, image: Path):
        artifact_store.try_store(ArtifactKind.ROOTFS, KEY, image)
        assert artifact_store.lookup(ArtifactKind.INITRAMFS, KEY) is None

    def test_directories_rejected(self, artifact_store: ArtifactStore, tmp_dir: Path):
        with pytest.raises(BuildError, match="single files only"):
            artifact_store.try_store(ArtifactKind.ROOTFS, KEY, tmp_dir)


class TestIntegrity:
    @pytest.fixture
    def corrupted(self, artifact_store: ArtifactStore, image: Path, tmp_dir: Path) -> Path:
        artifact_store.try_store(ArtifactKind.ROOTFS, KEY, image)
        payload = tmp_dir / "store" / "rootfs" / "ab" / KEY / "payload"
        payload.write_bytes(b"bit rot")
        return payload

    def test_restore_refuses_corrupted_payload(
        self, artifact_store: ArtifactStore, corrupted: Path, tmp_dir: Path
    ):
        dest = tmp_dir / "dest.erofs"
        dest.write_bytes(b"current artifact")
        assert artifact_store.verify(ArtifactKind.ROOTFS, KEY) is False
        assert artifact_store.try_restore(ArtifactKind.ROOTFS, KEY, dest) is False
        assert dest.read_bytes() == b"current artifact"

    def test_store_replaces_corrupted_entry(
        self, artifact_store: ArtifactStore, corrupted: Path, image: Path, tmp_dir: Path
    ):
        stored = artifact_store.try_store(ArtifactKind.ROOTFS, KEY, image)
        assert stored is not None
        assert corrupted.read_bytes() == image.read_bytes()
        assert artifact_store.verify(ArtifactKind.ROOTFS, KEY) is True
        dest = tmp_dir / "dest.erofs"
        assert artifact_store.try_restore(ArtifactKind.ROOTFS, KEY, dest) is True
        assert dest.read_bytes() == image.read_bytes()

    def test_malformed_metadata_is_a_miss(
        self, artifact_store: ArtifactStore, image: Path, tmp_dir: Path
    ):
        artifact_store.try_store(ArtifactKind.ROOTFS, KEY, image)
        (tmp_dir / "store" / "rootfs" / "ab" / KEY / "meta.json").write_text("{")
        assert artifact_store.lookup(ArtifactKind.ROOTFS, KEY) is None
