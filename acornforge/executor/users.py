"""Account upsert into colon-delimited account files.

Files are seeded from the upstream tree when staging has none yet. A line
is appended only if no existing line starts with ``<name>:``; existing lines
are never rewritten.
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path

PASSWD = "etc/passwd"
SHADOW = "etc/shadow"
GROUP = "etc/group"


def seed_account_file(source: Path, staging: Path, rel: str, mode: int | None = None) -> Path:
    """Ensure ``staging/rel`` exists, copying the upstream file if there is one."""
    dst = staging / rel
    if not dst.exists():
        dst.parent.mkdir(parents=True, exist_ok=True)
        src = source / rel
        if src.is_file():
            shutil.copy2(src, dst)
        else:
            dst.touch()
    if mode is not None:
        os.chmod(dst, mode)
    return dst


def has_entry(path: Path, name: str) -> bool:
    prefix = f"{name}:"
    with open(path, encoding="utf-8") as fh:
        return any(line.startswith(prefix) for line in fh)


def append_entry(path: Path, name: str, line: str) -> bool:
    """Append *line* unless an entry for *name* exists; True if appended."""
    if has_entry(path, name):
        return False
    text = path.read_text(encoding="utf-8")
    with open(path, "a", encoding="utf-8") as fh:
        if text and not text.endswith("\n"):
            fh.write("\n")
        fh.write(line + "\n")
    return True


def handle_user(
    source: Path, staging: Path, name: str, uid: int, gid: int, home: str, shell: str
) -> bool:
    passwd = seed_account_file(source, staging, PASSWD)
    shadow = seed_account_file(source, staging, SHADOW, mode=0o640)
    added = append_entry(passwd, name, f"{name}:x:{uid}:{gid}:{name}:{home}:{shell}")
    append_entry(shadow, name, f"{name}:!::0:::::")
    return added


def handle_group(source: Path, staging: Path, name: str, gid: int) -> bool:
    group = seed_account_file(source, staging, GROUP)
    return append_entry(group, name, f"{name}:x:{gid}:")
