"""Canonical hashing helpers for fingerprints and content addressing."""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any, Collection, Iterable, Mapping

_CHUNK_SIZE = 1024 * 1024


def canonical_json_bytes(obj: Any) -> bytes:
    """Canonical JSON bytes with sorted keys and compact separators."""
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True
    ).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def file_digest(path: Path, algorithm: str = "sha256") -> str:
    """Hash a file's bytes in 1 MiB chunks.

    Symlinks are followed; the digest describes content, never metadata
    such as the modification time.
    """
    hasher = hashlib.new(algorithm)
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(_CHUNK_SIZE), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


def hash_files(
    files: Iterable[tuple[str, Path]],
    parameters: Mapping[str, str] | None = None,
    optional: Collection[str] = (),
) -> str | None:
    """Digest-of-digests over an explicitly declared list of named files.

    Each entry is a ``(name, path)`` pair; only the *name* and the file's
    content enter the digest, never the path, so the same inputs give the
    same digest wherever they live. The order is significant: reordering
    or renaming an input changes the result. *parameters* are mixed in as
    canonical JSON.

    Returns ``None`` if any input is missing or unreadable, which callers
    treat as "rebuild". A missing file whose name is in *optional* is
    hashed as absent instead.
    """
    entries: list[list[str | None]] = []
    for name, path in files:
        try:
            digest: str | None = file_digest(Path(path))
        except FileNotFoundError:
            if name not in optional:
                return None
            digest = None
        except OSError:
            return None
        entries.append([name, digest])
    return sha256_hex(
        canonical_json_bytes({"files": entries, "parameters": dict(parameters or {})})
    )
