"""Placement composer — world transforms for every part in a build.

No part is positioned by hand.  The case sits at the origin and every
other part hangs off a parent part through a pair of matched anchors:

    child_rotation = parent_rotation + parent_anchor.rotation (+ correction)
    child_position = parent_position
                     + rotate(parent_anchor.position * SCALE, parent_rotation)
                     - rotate(child_anchor.position * SCALE, child_rotation)

The chain is the declarative ``PLACEMENT_EDGES`` table below.  When the
parent anchor is missing, the child goes to the edge's fixed fallback
offset from the parent, so every selected part always gets a placement.
``compose`` is a pure function of the selection.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from core.models import ZERO, Anchor, AnchorType, BuildSelection, Category, Part, Vec3
from core.transform import WorldTransform, rotate

logger = logging.getLogger(__name__)

# Models are authored in centimeters; the scene uses 1 unit = 10 cm.
SCALE_FACTOR = 0.1

# Motherboard models are exported lying flat; stand them up.
MOBO_UPRIGHT_CORRECTION: Vec3 = (math.pi / 2, 0.0, 0.0)

# Memory modules beyond the authored slots, in motherboard space (scene units).
RAM_EXTRA_BASE: Vec3 = (1.5, 0.1, 0.0)
RAM_EXTRA_STEP: Vec3 = (0.3, 0.0, 0.0)


@dataclass(frozen=True)
class PlacementEdge:
    """One link of the placement chain."""

    child: Category
    parent: Category
    parent_anchor_types: tuple[AnchorType, ...]
    child_anchor_type: AnchorType | None  # None: no child-local correction
    fallback_offset: Vec3  # scene units, added to the parent position
    rotation_correction: Vec3 = ZERO


A = AnchorType

# Evaluation order matters: parents come before their children.  A child
# listed on several edges takes the first one whose parent anchor exists.
PLACEMENT_EDGES: tuple[PlacementEdge, ...] = (
    PlacementEdge(Category.MOTHERBOARD, Category.CASE, (A.MOBO_MOUNT_AREA,), A.MOBO_BACKPLATE,
                  fallback_offset=(0.0, 1.0, 0.0), rotation_correction=MOBO_UPRIGHT_CORRECTION),
    PlacementEdge(Category.CPU, Category.MOTHERBOARD, (A.CPU_SOCKET,), A.CPU_BOTTOM,
                  fallback_offset=(0.0, 0.5, 0.0)),
    PlacementEdge(Category.CPU_COOLER, Category.CPU, (A.COOLER_PLATE,), A.COOLER_BASE,
                  fallback_offset=(0.0, 0.5, 0.0)),
    PlacementEdge(Category.GPU, Category.MOTHERBOARD, (A.PCIE_X16,), A.PCIE_EDGE,
                  fallback_offset=(0.0, 0.0, 2.0)),
    PlacementEdge(Category.PSU, Category.CASE, (A.PSU_BAY,), A.PSU_MOUNT,
                  fallback_offset=(0.0, -2.0, 0.0)),
    PlacementEdge(Category.STORAGE, Category.MOTHERBOARD, (A.M2_SLOT,), A.M2_EDGE,
                  fallback_offset=(-2.0, 0.0, 0.0)),
    PlacementEdge(Category.STORAGE, Category.CASE, (A.DRIVE_BAY_25, A.DRIVE_BAY_35), None,
                  fallback_offset=(-2.0, 0.0, 0.0)),
)

RAM_EDGE = PlacementEdge(Category.RAM, Category.MOTHERBOARD, (A.RAM_SLOT,), A.RAM_EDGE,
                         fallback_offset=RAM_EXTRA_BASE)


def _scaled(vec: Vec3) -> np.ndarray:
    return np.asarray(vec, dtype=np.float64) * SCALE_FACTOR


def attach(
    edge: PlacementEdge,
    parent: WorldTransform,
    parent_anchor: Anchor,
    child: Part | None,
) -> WorldTransform:
    """Place a child on one parent anchor."""
    parent_rotation = np.asarray(parent.rotation, dtype=np.float64)
    rotation = (
        parent_rotation
        + np.asarray(parent_anchor.rotation, dtype=np.float64)
        + np.asarray(edge.rotation_correction, dtype=np.float64)
    )

    position = np.asarray(parent.position, dtype=np.float64)
    position = position + rotate(_scaled(parent_anchor.position), parent_rotation)

    if edge.child_anchor_type is not None and child is not None:
        connector = child.find_anchor(edge.child_anchor_type)
        if connector is not None:
            position = position - rotate(_scaled(connector.position), rotation)

    return WorldTransform(position=position, rotation=rotation)


def fallback(edge: PlacementEdge, parent: WorldTransform) -> WorldTransform:
    """Fixed placement used when the parent anchor is missing."""
    position = np.asarray(parent.position) + np.asarray(edge.fallback_offset)
    return WorldTransform(position=position, rotation=parent.rotation)


def _place_single(
    step: Category,
    edges: list[PlacementEdge],
    selection: BuildSelection,
    placed: dict[Category, WorldTransform],
) -> WorldTransform:
    child = selection.get(step)
    available = [e for e in edges if e.parent in placed and selection.get(e.parent) is not None]

    for edge in available:
        parent_part = selection.get(edge.parent)
        anchor = parent_part.find_anchor(*edge.parent_anchor_types)
        if anchor is not None:
            return attach(edge, placed[edge.parent], anchor, child)

    if available:
        edge = available[-1]
        logger.debug("No %s anchor on %s; %s uses its fallback",
                     "/".join(t.value for t in edge.parent_anchor_types),
                     edge.parent.value, step.value)
        return fallback(edge, placed[edge.parent])

    logger.debug("%s has no parent in the build; placing from the origin", step.value)
    return fallback(edges[-1], WorldTransform.identity())


def place_ram(
    motherboard: Part | None,
    motherboard_transform: WorldTransform,
    ram: Part | None,
    quantity: int,
) -> list[WorldTransform]:
    """One transform per memory module.

    Slots are taken in label order.  Modules beyond the authored slots are
    lined up along the motherboard's X axis, each at a distinct position.
    """
    quantity = max(quantity, 1)
    transforms: list[WorldTransform] = []

    if motherboard is not None:
        slots = sorted(motherboard.anchors_of(AnchorType.RAM_SLOT), key=lambda a: a.label)
        for slot in slots[:quantity]:
            transforms.append(attach(RAM_EDGE, motherboard_transform, slot, ram))

    base_position = np.asarray(motherboard_transform.position, dtype=np.float64)
    mobo_rotation = np.asarray(motherboard_transform.rotation, dtype=np.float64)
    base = np.asarray(RAM_EXTRA_BASE, dtype=np.float64)
    step = np.asarray(RAM_EXTRA_STEP, dtype=np.float64)

    k = len(transforms)
    while len(transforms) < quantity:
        position = base_position + rotate(base + step * k, mobo_rotation)
        k += 1
        if any(np.allclose(position, t.position) for t in transforms):
            continue
        transforms.append(WorldTransform(position=position, rotation=mobo_rotation))

    return transforms


def compose(selection: BuildSelection) -> dict[str, WorldTransform]:
    """Compute the world transform of every selected part.

    Keys are build-step ids (``case``, ``motherboard``, ``cpu``, ...);
    memory modules are ``ram_0`` .. ``ram_{n-1}``.
    """
    placed: dict[Category, WorldTransform] = {Category.CASE: WorldTransform.identity()}

    ordered_steps: list[Category] = []
    for edge in PLACEMENT_EDGES:
        if edge.child not in ordered_steps:
            ordered_steps.append(edge.child)

    for step in ordered_steps:
        if step not in selection:
            continue
        edges = [e for e in PLACEMENT_EDGES if e.child == step]
        placed[step] = _place_single(step, edges, selection, placed)

    result: dict[str, WorldTransform] = {
        step.value: transform
        for step, transform in placed.items()
        if step in selection
    }

    if Category.RAM in selection:
        motherboard = selection.get(Category.MOTHERBOARD)
        mobo_transform = placed.get(Category.MOTHERBOARD, WorldTransform.identity())
        modules = place_ram(
            motherboard,
            mobo_transform,
            selection.get(Category.RAM),
            selection.quantity(Category.RAM),
        )
        for i, transform in enumerate(modules):
            result[f"ram_{i}"] = transform

    return result
