"""Tests for core/layouts.py — build step definitions."""

from __future__ import annotations

import pytest

from core.layouts import BUILD_STEPS, BuildStepSlot, get_step, next_step, required_steps
from core.loader import part_from_dict
from core.models import BuildSelection, Category


class TestBuildStepSlot:
    """Test the BuildStepSlot dataclass."""

    def test_slot_is_frozen(self):
        slot = BuildStepSlot(Category.RAM, "RAM", required=True, multiple=True)
        with pytest.raises(AttributeError):
            slot.required = False

    def test_slot_defaults(self):
        slot = BuildStepSlot(Category.CPU, "CPU", required=True)
        assert slot.multiple is False


class TestBuildSteps:

    def test_eight_steps_in_order(self):
        assert [s.step for s in BUILD_STEPS] == [
            Category.CASE,
            Category.MOTHERBOARD,
            Category.CPU,
            Category.CPU_COOLER,
            Category.RAM,
            Category.GPU,
            Category.STORAGE,
            Category.PSU,
        ]

    def test_gpu_is_optional(self):
        assert Category.GPU not in required_steps()
        assert len(required_steps()) == 7

    def test_only_ram_takes_multiple(self):
        assert [s.step for s in BUILD_STEPS if s.multiple] == [Category.RAM]

    def test_get_step_by_value(self):
        assert get_step("cpu_cooler").label == "CPU Cooler"
        assert get_step(Category.PSU).label == "PSU"

    def test_get_step_unknown(self):
        with pytest.raises(ValueError):
            get_step("fan")


class TestNextStep:

    def test_empty_selection_starts_with_case(self):
        assert next_step(BuildSelection()).step == Category.CASE

    def test_skips_filled_steps(self):
        selection = BuildSelection()
        selection.select(part_from_dict({"id": "case_a", "category": "case"}))
        selection.select(part_from_dict({"id": "mobo_a", "category": "motherboard"}))
        assert next_step(selection).step == Category.CPU

    def test_complete_selection(self):
        selection = BuildSelection()
        for category in Category:
            selection.select(part_from_dict({"id": f"{category.value}_a", "category": category.value}))
        assert next_step(selection) is None
        assert selection.missing_required_steps == []
