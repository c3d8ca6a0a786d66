"""Build phases: the total order that controls inter-component ordering."""

from __future__ import annotations

from enum import IntEnum


class Phase(IntEnum):
    """Totally ordered phase buckets.

    Components execute in registry order, and the registry's declared order
    must be non-decreasing in phase. Two components writing the same path
    are tie-broken by this order: the later phase wins.
    """

    FILESYSTEM = 1
    BINARIES = 2
    INIT = 3
    SERVICES = 5
    CONFIG = 6
    FIRMWARE = 8
    FINAL = 9

    @property
    def display_name(self) -> str:
        return self.name.capitalize()
