"""Tests for the static component registry."""

from __future__ import annotations

import pytest

from acornforge.core.errors import RegistryError
from acornforge.models.components import Component
from acornforge.models.operations import CustomOp, CustomOperation, dir_
from acornforge.models.phases import Phase
from acornforge.registry import (
    ALL_COMPONENTS,
    BUSYBOX,
    FILESYSTEM,
    LIVE_FINAL,
    validate_registry,
)


class TestRegistry:
    def test_declared_registry_is_valid(self):
        validate_registry(ALL_COMPONENTS)

    def test_names_are_unique(self):
        names = [c.name for c in ALL_COMPONENTS]
        assert len(names) == len(set(names))

    def test_starts_with_filesystem_and_ends_with_live_final(self):
        assert ALL_COMPONENTS[0] is FILESYSTEM
        assert ALL_COMPONENTS[-1] is LIVE_FINAL

    def test_every_custom_tag_is_used_except_license_flush(self):
        used = {
            op.tag
            for component in ALL_COMPONENTS
            for op in component.ops
            if isinstance(op, CustomOperation)
        }
        assert used == set(CustomOp) - {CustomOp.COPY_LICENSES}

    def test_duplicate_name_rejected(self):
        with pytest.raises(RegistryError, match="declared twice"):
            validate_registry([FILESYSTEM, BUSYBOX, FILESYSTEM])

    def test_decreasing_phase_rejected(self):
        late = Component(name="late", phase=Phase.FINAL, ops=(dir_("x"),))
        early = Component(name="early", phase=Phase.INIT, ops=(dir_("y"),))
        with pytest.raises(RegistryError, match="out of order"):
            validate_registry([late, early])

    def test_equal_phases_allowed(self):
        a = Component(name="a", phase=Phase.CONFIG, ops=(dir_("a"),))
        b = Component(name="b", phase=Phase.CONFIG, ops=(dir_("b"),))
        validate_registry([a, b])
