"""Anchor type catalog — default semantics for every anchor kind.

Pure lookup table, fixed at import time.  The anchor store uses it for
defaults when an anchor is first created; the loader uses it to fill in
fields missing from older persisted records.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.models import (
    AnchorCategory,
    AnchorDirection,
    AnchorType,
    Category,
    ConnectionAxis,
)

_OUT = AnchorDirection.OUTPUT
_IN = AnchorDirection.INPUT
_PROVIDER = AnchorCategory.PROVIDER
_CONNECTOR = AnchorCategory.CONNECTOR


@dataclass(frozen=True)
class AnchorTypeDescriptor:
    type: AnchorType
    label: str
    direction: AnchorDirection
    default_axis: ConnectionAxis
    default_compatible: frozenset[AnchorType]
    category: AnchorCategory
    host: Category | None = None  # part category that normally carries this anchor


def _d(
    anchor_type: AnchorType,
    label: str,
    direction: AnchorDirection,
    axis: str,
    compatible: tuple[AnchorType, ...],
    host: Category | None,
) -> AnchorTypeDescriptor:
    return AnchorTypeDescriptor(
        type=anchor_type,
        label=label,
        direction=direction,
        default_axis=ConnectionAxis(axis),
        default_compatible=frozenset(compatible),
        category=_PROVIDER if direction == _OUT else _CONNECTOR,
        host=host,
    )


T = AnchorType

ANCHOR_TYPE_INFO: dict[AnchorType, AnchorTypeDescriptor] = {
    d.type: d
    for d in (
        # Motherboard slots
        _d(T.CPU_SOCKET, "CPU Socket", _OUT, "Y_NEG", (T.CPU_BOTTOM,), Category.MOTHERBOARD),
        _d(T.RAM_SLOT, "RAM Slot", _OUT, "Y_NEG", (T.RAM_EDGE,), Category.MOTHERBOARD),
        _d(T.PCIE_X16, "PCIe x16 Slot", _OUT, "Z_NEG", (T.PCIE_EDGE,), Category.MOTHERBOARD),
        _d(T.PCIE_X4, "PCIe x4 Slot", _OUT, "Z_NEG", (T.PCIE_EDGE,), Category.MOTHERBOARD),
        _d(T.PCIE_X1, "PCIe x1 Slot", _OUT, "Z_NEG", (T.PCIE_EDGE,), Category.MOTHERBOARD),
        _d(T.M2_SLOT, "M.2 Slot", _OUT, "Z_NEG", (T.M2_EDGE,), Category.MOTHERBOARD),
        _d(T.SATA_PORT, "SATA Port", _OUT, "Z_NEG", (T.SATA_PLUG,), Category.MOTHERBOARD),
        # CPU top surface
        _d(T.COOLER_PLATE, "Cooler Plate", _OUT, "Y_POS", (T.COOLER_BASE,), Category.CPU),
        # Case mounts
        _d(T.MOBO_MOUNT_AREA, "Motherboard Mount Area", _OUT, "Y_POS", (T.MOBO_BACKPLATE,), Category.CASE),
        _d(T.PSU_BAY, "PSU Bay", _OUT, "Z_NEG", (T.PSU_MOUNT,), Category.CASE),
        _d(T.FAN_MOUNT_120, "Fan Mount 120mm", _OUT, "Z_NEG", (T.FAN_MOUNT,), Category.CASE),
        _d(T.FAN_MOUNT_140, "Fan Mount 140mm", _OUT, "Z_NEG", (T.FAN_MOUNT,), Category.CASE),
        _d(T.DRIVE_BAY_25, '2.5" Drive Bay', _OUT, "Z_NEG", (T.DRIVE_MOUNT,), Category.CASE),
        _d(T.DRIVE_BAY_35, '3.5" Drive Bay', _OUT, "Z_NEG", (T.DRIVE_MOUNT,), Category.CASE),
        # Component connectors
        _d(T.CPU_BOTTOM, "CPU Contact", _IN, "Y_NEG", (T.CPU_SOCKET,), Category.CPU),
        _d(T.COOLER_BASE, "Cooler Base", _IN, "Y_POS", (T.COOLER_PLATE,), Category.CPU_COOLER),
        _d(T.RAM_EDGE, "RAM Edge", _IN, "Y_NEG", (T.RAM_SLOT,), Category.RAM),
        _d(T.PCIE_EDGE, "PCIe Edge", _IN, "Z_NEG", (T.PCIE_X16, T.PCIE_X4, T.PCIE_X1), Category.GPU),
        _d(T.M2_EDGE, "M.2 Edge", _IN, "Z_NEG", (T.M2_SLOT,), Category.STORAGE),
        _d(T.SATA_PLUG, "SATA Plug", _IN, "Z_NEG", (T.SATA_PORT,), Category.STORAGE),
        _d(T.MOBO_BACKPLATE, "Motherboard Backplate", _IN, "Y_NEG", (T.MOBO_MOUNT_AREA,), Category.MOTHERBOARD),
        _d(T.PSU_MOUNT, "PSU Mount", _IN, "Z_NEG", (T.PSU_BAY,), Category.PSU),
        _d(T.FAN_MOUNT, "Fan Mount", _IN, "Z_NEG", (T.FAN_MOUNT_120, T.FAN_MOUNT_140), None),
        _d(T.DRIVE_MOUNT, "Drive Mount", _IN, "Z_NEG", (T.DRIVE_BAY_25, T.DRIVE_BAY_35), Category.STORAGE),
    )
}


def describe(anchor_type: AnchorType | str) -> AnchorTypeDescriptor:
    """Return the catalog descriptor for an anchor type (enum or value)."""
    if isinstance(anchor_type, str):
        anchor_type = AnchorType(anchor_type)
    return ANCHOR_TYPE_INFO[anchor_type]


def anchor_types(
    direction: AnchorDirection | None = None,
    category: AnchorCategory | None = None,
) -> list[AnchorType]:
    """List anchor types in declaration order, optionally filtered."""
    return [
        t for t, info in ANCHOR_TYPE_INFO.items()
        if (direction is None or info.direction == direction)
        and (category is None or info.category == category)
    ]


def accepts(provider: AnchorType, connector: AnchorType) -> bool:
    """Whether two anchor kinds mate under their default semantics."""
    return (
        connector in ANCHOR_TYPE_INFO[provider].default_compatible
        or provider in ANCHOR_TYPE_INFO[connector].default_compatible
    )


def mounts_on(parent: Category, child: Category) -> bool:
    """Whether parts of *child* category physically attach to *parent* parts.

    True when a connector normally carried by *child* mates, by default,
    with a provider normally carried by *parent* (a CPU mounts on a
    motherboard; a GPU mounts on a motherboard, not on the case).
    """
    for info in ANCHOR_TYPE_INFO.values():
        if info.category != _CONNECTOR or info.host != child:
            continue
        if any(ANCHOR_TYPE_INFO[p].host == parent for p in info.default_compatible):
            return True
    return False
