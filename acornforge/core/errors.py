"""Build error taxonomy.

Every failure is terminal for the current build attempt; nothing here is
retried. Each error carries enough context (path, component, operation,
command) to be actionable without a traceback.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Sequence


class BuildError(RuntimeError):
    """Base class for every error raised by the build pipeline."""


class MissingRequiredInput(BuildError):
    """A required copy source does not exist upstream."""

    def __init__(self, path: Path | str, hint: str = "") -> None:
        self.path = Path(path)
        self.hint = hint
        message = f"Required input not found: {self.path}"
        if hint:
            message += f"\n{hint}"
        super().__init__(message)


class AggregateMissingBinaries(BuildError):
    """A batch binary copy found one or more binaries missing.

    Every missing name across the batch is collected before raising, so a
    single run reports every broken binary.
    """

    def __init__(self, failures: Mapping[str, str], dest_dir: str = "usr/bin") -> None:
        self.failures = dict(failures)
        self.missing = list(self.failures)
        self.dest_dir = dest_dir
        lines = [f"{name}: {reason}" for name, reason in self.failures.items()]
        super().__init__(f"Missing binaries for {dest_dir}:\n  " + "\n  ".join(lines))


class CustomOpFailure(BuildError):
    """A dispatched custom handler failed.

    The original exception is preserved as ``__cause__``.
    """

    def __init__(self, component: str, tag: str, reason: str) -> None:
        self.component = component
        self.tag = tag
        super().__init__(
            f"Custom operation {tag!r} in component {component!r} failed: {reason}"
        )


class ComponentExecutionError(BuildError):
    """An operation failed; names the owning component and the operation."""

    def __init__(self, component: str, operation: str, reason: str) -> None:
        self.component = component
        self.operation = operation
        super().__init__(f"in component '{component}': {operation}: {reason}")


class SanityCheckFailure(BuildError):
    """A produced artifact failed its post-production verification."""

    def __init__(self, path: Path | str, problems: Sequence[str]) -> None:
        self.path = Path(path)
        self.problems = list(problems)
        super().__init__(
            f"Sanity check failed for {self.path}:\n  " + "\n  ".join(self.problems)
        )


class ChildProcessFailure(BuildError):
    """A wrapped external tool exited non-zero.

    This is a host-environment problem, so the message carries a remediation
    hint (which package provides the tool).
    """

    def __init__(
        self, command: Sequence[str], returncode: int | None, hint: str = ""
    ) -> None:
        self.command = list(command)
        self.returncode = returncode
        self.hint = hint
        status = "could not be started" if returncode is None else f"exited {returncode}"
        message = f"Command {self.command[0]!r} {status}: {' '.join(self.command)}"
        if hint:
            message += f"\n{hint}"
        super().__init__(message)


class RegistryError(BuildError):
    """The static component registry violates one of its invariants."""
