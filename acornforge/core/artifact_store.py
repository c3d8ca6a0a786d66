"""Cross-run artifact store, keyed by input fingerprint.

Storage layout: {root}/{kind}/{key[0:2]}/{key}/payload  (+ meta.json)
An entry is complete only once its meta.json exists; the payload's SHA-256
is recorded there and re-verified on every restore. No delete method;
an entry is only ever rewritten when it fails verification on store.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Any

from acornforge.core.atomic import build_atomic
from acornforge.core.errors import BuildError
from acornforge.core.hasher import file_digest
from acornforge.models.artifacts import ArtifactKind, StoredArtifact

logger = logging.getLogger(__name__)


class _DigestMatches:
    """Sanity check: the restored copy hashes to the recorded address."""

    def __init__(self, digest: str) -> None:
        self.digest = digest

    def problems(self, path: Path) -> list[str]:
        if file_digest(path) != self.digest:
            return ["restored copy does not match the stored digest"]
        return []


class ArtifactStore:
    """Optional side cache for expensive single-file artifacts.

    Storing the same key twice is a no-op (idempotent). With no root
    configured the store is disabled: every restore misses and every store
    is skipped.

    Parameters
    ----------
    root:
        Directory outside the project tree, or None to disable.
    """

    def __init__(self, root: Path | None) -> None:
        self._root = Path(root) if root is not None else None

    @property
    def enabled(self) -> bool:
        return self._root is not None

    def _entry_dir(self, kind: ArtifactKind, key: str) -> Path:
        """Layout: {root}/{kind}/{key[0:2]}/{key}"""
        assert self._root is not None
        return self._root / kind.value / key[:2] / key

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def lookup(self, kind: ArtifactKind, key: str) -> StoredArtifact | None:
        """Metadata for a complete entry, or None."""
        if self._root is None:
            return None
        meta = self._entry_dir(kind, key) / "meta.json"
        try:
            return StoredArtifact.model_validate_json(meta.read_bytes())
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable store metadata %s: %s", meta, exc)
            return None

    def verify(self, kind: ArtifactKind, key: str) -> bool:
        """Re-hash the stored payload and compare against its metadata."""
        stored = self.lookup(kind, key)
        if stored is None:
            return False
        payload = self._entry_dir(kind, key) / "payload"
        try:
            digest = file_digest(payload)
        except OSError:
            return False
        return f"sha256:{digest}" == stored.content_address

    # ------------------------------------------------------------------
    # Restore
    # ------------------------------------------------------------------

    def try_restore(self, kind: ArtifactKind, key: str, destination: Path) -> bool:
        """Copy a cached payload onto *destination*; False on any miss.

        The copy goes through the atomic builder, so a half-finished restore
        never replaces a good artifact. The restored file gets a fresh
        modification time, which downstream freshness checks rely on.
        """
        stored = self.lookup(kind, key)
        if stored is None:
            return False
        if not self.verify(kind, key):
            logger.warning(
                "Cached %s artifact %s failed its integrity check; ignoring it",
                kind.value, key[:16],
            )
            return False

        payload = self._entry_dir(kind, key) / "payload"
        destination = Path(destination)
        digest = stored.content_address.removeprefix("sha256:")
        build_atomic(
            destination.with_name(destination.name + ".restore"),
            destination,
            lambda work: shutil.copyfile(payload, work),
            _DigestMatches(digest),
        )
        logger.info("Restored %s from artifact store (%s)", destination.name, key[:16])
        return True

    # ------------------------------------------------------------------
    # Store
    # ------------------------------------------------------------------

    def try_store(
        self,
        kind: ArtifactKind,
        key: str,
        source: Path,
        metadata: dict[str, Any] | None = None,
    ) -> StoredArtifact | None:
        """Store *source* under *key*; returns None when the store is disabled.

        If a complete entry already exists it is verified and returned
        without being rewritten. An entry that fails verification is
        overwritten with *source*.
        """
        if self._root is None:
            return None
        source = Path(source)
        if not source.is_file():
            raise BuildError(f"Artifact store accepts single files only: {source}")

        existing = self.lookup(kind, key)
        if existing is not None:
            if self.verify(kind, key):
                return existing
            logger.warning(
                "Stored %s entry %s failed its integrity check; replacing it",
                kind.value, key[:16],
            )

        entry = self._entry_dir(kind, key)
        entry.mkdir(parents=True, exist_ok=True)
        # Drop the old metadata first so a crash mid-write leaves no entry.
        (entry / "meta.json").unlink(missing_ok=True)
        tmp = entry / "payload.tmp"
        shutil.copyfile(source, tmp)
        digest = file_digest(tmp)
        os.replace(tmp, entry / "payload")

        stored = StoredArtifact(
            kind=kind,
            key=key,
            content_address=f"sha256:{digest}",
            size_bytes=(entry / "payload").stat().st_size,
            metadata=metadata or {},
        )
        meta_tmp = entry / "meta.json.tmp"
        meta_tmp.write_text(stored.model_dump_json(indent=2), encoding="utf-8")
        os.replace(meta_tmp, entry / "meta.json")
        logger.info("Stored %s artifact in store (%s)", kind.value, key[:16])
        return stored
