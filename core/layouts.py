"""Build step definitions.

A PC build is filled in as a fixed sequence of steps.  Each step takes
parts of one category; memory is the only step that takes several
identical modules.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from core.models import Category

if TYPE_CHECKING:
    from core.models import BuildSelection


@dataclass(frozen=True)
class BuildStepSlot:
    """A single step in the build sequence."""

    step: Category
    label: str
    required: bool  # whether the step must be filled for a complete build
    multiple: bool = False  # whether a quantity > 1 is meaningful


BUILD_STEPS: list[BuildStepSlot] = [
    BuildStepSlot(Category.CASE, "Case", required=True),
    BuildStepSlot(Category.MOTHERBOARD, "Motherboard", required=True),
    BuildStepSlot(Category.CPU, "CPU", required=True),
    BuildStepSlot(Category.CPU_COOLER, "CPU Cooler", required=True),
    BuildStepSlot(Category.RAM, "RAM", required=True, multiple=True),
    BuildStepSlot(Category.GPU, "GPU", required=False),
    BuildStepSlot(Category.STORAGE, "Storage", required=True),
    BuildStepSlot(Category.PSU, "PSU", required=True),
]

_BY_STEP = {slot.step: slot for slot in BUILD_STEPS}


def get_step(step: Category | str) -> BuildStepSlot:
    """Return the slot definition for a step id ('cpu_cooler', Category.CPU, ...)."""
    return _BY_STEP[Category.parse(step)]


def required_steps() -> list[Category]:
    return [slot.step for slot in BUILD_STEPS if slot.required]


def next_step(selection: BuildSelection) -> BuildStepSlot | None:
    """First step, in build order, that the selection has not filled."""
    for slot in BUILD_STEPS:
        if slot.step not in selection:
            return slot
    return None
