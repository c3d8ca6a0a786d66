"""Component model: a named, phase-tagged, ordered list of operations."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator

from acornforge.models.operations import Operation
from acornforge.models.phases import Phase


class Component(BaseModel):
    """One unit of the registry.

    Operations within a component execute in list order. A component with
    no operations is rejected at definition time.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    phase: Phase
    ops: tuple[Operation, ...]

    @field_validator("ops")
    @classmethod
    def _ops_not_empty(cls, value: tuple) -> tuple:
        if not value:
            raise ValueError("component must declare at least one operation")
        return value
