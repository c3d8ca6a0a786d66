"""Child-process contract for external tools.

Producers run to completion synchronously. ``run_interactive`` inherits the
parent's stdio so long-running tools show progress; ``run_capture`` collects
output for parsing. A non-zero exit raises ``ChildProcessFailure`` with an
install hint unless the call is marked ``allow_fail`` (probes such as the
dependency lister run against a static binary).
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Sequence

from acornforge.core.errors import ChildProcessFailure
from acornforge.core.preflight import install_hint

logger = logging.getLogger(__name__)


def which(tool: str) -> str | None:
    return shutil.which(tool)


def exists(tool: str) -> bool:
    return which(tool) is not None


def _argv(command: Sequence[str | Path]) -> list[str]:
    return [str(part) for part in command]


def run_interactive(
    command: Sequence[str | Path],
    *,
    cwd: Path | None = None,
    allow_fail: bool = False,
) -> int:
    """Run *command* with inherited stdio; return its exit code."""
    argv = _argv(command)
    logger.debug("Running: %s", " ".join(argv))
    try:
        completed = subprocess.run(argv, cwd=cwd, check=False)
    except OSError as exc:
        if allow_fail:
            logger.debug("Could not start %s: %s", argv[0], exc)
            return 127
        raise ChildProcessFailure(argv, None, install_hint(argv[0])) from exc
    if completed.returncode != 0 and not allow_fail:
        raise ChildProcessFailure(argv, completed.returncode, install_hint(argv[0]))
    return completed.returncode


def run_capture(
    command: Sequence[str | Path],
    *,
    cwd: Path | None = None,
    input: bytes | None = None,
    allow_fail: bool = False,
) -> subprocess.CompletedProcess[bytes]:
    """Run *command* capturing stdout/stderr as bytes."""
    argv = _argv(command)
    logger.debug("Running (captured): %s", " ".join(argv))
    try:
        completed = subprocess.run(
            argv, cwd=cwd, input=input, capture_output=True, check=False
        )
    except OSError as exc:
        if allow_fail:
            logger.debug("Could not start %s: %s", argv[0], exc)
            return subprocess.CompletedProcess(argv, 127, b"", str(exc).encode())
        raise ChildProcessFailure(argv, None, install_hint(argv[0])) from exc
    if completed.returncode != 0 and not allow_fail:
        stderr = completed.stderr.decode("utf-8", errors="replace").strip()
        if stderr:
            logger.error("%s: %s", argv[0], stderr)
        raise ChildProcessFailure(argv, completed.returncode, install_hint(argv[0]))
    return completed
