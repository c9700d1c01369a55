"""Data models for PC Builder."""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from core.specs import TechnicalSpecs

Vec3 = tuple[float, float, float]

ZERO: Vec3 = (0.0, 0.0, 0.0)


class AnchorType(enum.Enum):
    # Slots (outputs) exposed by host parts
    CPU_SOCKET = "cpu_socket"
    RAM_SLOT = "ram_slot"
    PCIE_X16 = "pcie_x16"
    PCIE_X4 = "pcie_x4"
    PCIE_X1 = "pcie_x1"
    M2_SLOT = "m2_slot"
    SATA_PORT = "sata_port"
    COOLER_PLATE = "cooler_plate"
    MOBO_MOUNT_AREA = "mobo_mount_area"
    PSU_BAY = "psu_bay"
    FAN_MOUNT_120 = "fan_mount_120"
    FAN_MOUNT_140 = "fan_mount_140"
    DRIVE_BAY_25 = "drive_bay_25"
    DRIVE_BAY_35 = "drive_bay_35"

    # Connectors (inputs) exposed by attachable parts
    CPU_BOTTOM = "cpu_bottom"
    COOLER_BASE = "cooler_base"
    RAM_EDGE = "ram_edge"
    PCIE_EDGE = "pcie_edge"
    M2_EDGE = "m2_edge"
    SATA_PLUG = "sata_plug"
    MOBO_BACKPLATE = "mobo_backplate"
    PSU_MOUNT = "psu_mount"
    FAN_MOUNT = "fan_mount"
    DRIVE_MOUNT = "drive_mount"


class AnchorDirection(enum.Enum):
    INPUT = "input"
    OUTPUT = "output"


class ConnectionAxis(enum.Enum):
    """Direction of insertion/mounting for a connection."""

    Y_NEG = "Y_NEG"  # from top going down (CPU into socket, RAM into slot)
    Y_POS = "Y_POS"  # from bottom going up (cooler onto CPU)
    Z_NEG = "Z_NEG"  # from front going back (GPU into PCIe)
    Z_POS = "Z_POS"
    X_NEG = "X_NEG"
    X_POS = "X_POS"


class AnchorCategory(enum.Enum):
    PROVIDER = "provider"  # belongs to a host component
    CONNECTOR = "connector"  # belongs to an attachable component


class Category(enum.Enum):
    """Part categories. Doubles as the build-step identifier."""

    CASE = "case"
    MOTHERBOARD = "motherboard"
    CPU = "cpu"
    CPU_COOLER = "cpu_cooler"
    RAM = "ram"
    GPU = "gpu"
    STORAGE = "storage"
    PSU = "psu"

    @classmethod
    def parse(cls, value: str | Category) -> Category:
        """Accept 'cpu_cooler', 'CPU_COOLER' or a Category."""
        if isinstance(value, Category):
            return value
        return cls(str(value).strip().lower())


class Severity(enum.Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


def new_anchor_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Anchor:
    """A named, positioned, oriented attachment point on a part.

    Position is part-local in centimeters, rotation is an XYZ Euler
    vector in radians.  ``id`` is session-local and does not take part
    in equality, so an anchor list that went through the persisted form
    compares equal to the original.
    """

    type: AnchorType
    label: str
    position: Vec3 = ZERO
    rotation: Vec3 = ZERO
    direction: AnchorDirection = AnchorDirection.OUTPUT
    connection_axis: ConnectionAxis = ConnectionAxis.Y_NEG
    compatible_with: frozenset[AnchorType] = frozenset()
    id: str = field(default_factory=new_anchor_id, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", _vec3(self.position))
        object.__setattr__(self, "rotation", _vec3(self.rotation))
        object.__setattr__(self, "compatible_with", frozenset(self.compatible_with))

    def mates_with(self, other: Anchor) -> bool:
        """True if either side lists the other's type as compatible."""
        return other.type in self.compatible_with or self.type in other.compatible_with


def _vec3(value: Any) -> Vec3:
    x, y, z = value
    return (float(x), float(y), float(z))


@dataclass(frozen=True)
class Part:
    """A catalog part.  Owned by the product catalog; never mutated here."""

    id: str
    name: str
    category: Category
    price: float
    specs: TechnicalSpecs
    anchors: tuple[Anchor, ...] = ()
    model_url: str = ""

    def get(self, field_name: str, default: Any = None) -> Any:
        """Read a technical-spec attribute, or a top-level attribute."""
        value = getattr(self.specs, field_name, None)
        if value is not None:
            return value
        if field_name in ("id", "name", "category", "price"):
            return getattr(self, field_name)
        return default

    def anchors_of(self, *types: AnchorType) -> list[Anchor]:
        """Anchors of the given types, in list order."""
        return [a for a in self.anchors if a.type in types]

    def find_anchor(self, *types: AnchorType) -> Anchor | None:
        """First anchor matching any of *types*, or None."""
        for anchor in self.anchors:
            if anchor.type in types:
                return anchor
        return None


@dataclass
class SelectedPart:
    part: Part
    quantity: int = 1  # only meaningful for memory modules


@dataclass
class BuildSelection:
    """The parts a user picked for each build step."""

    name: str = "Unnamed Build"
    parts: dict[Category, SelectedPart] = field(default_factory=dict)

    def select(self, part: Part, quantity: int = 1) -> None:
        self.parts[part.category] = SelectedPart(part, quantity)

    def remove(self, step: Category) -> None:
        self.parts.pop(step, None)

    def get(self, step: Category) -> Part | None:
        selected = self.parts.get(step)
        return selected.part if selected else None

    def quantity(self, step: Category) -> int:
        selected = self.parts.get(step)
        return selected.quantity if selected else 0

    def __contains__(self, step: Category) -> bool:
        return step in self.parts

    @property
    def total_price(self) -> float:
        total = 0.0
        for step, selected in self.parts.items():
            qty = max(selected.quantity, 1) if step == Category.RAM else 1
            total += selected.part.price * qty
        return total

    @property
    def completed_steps(self) -> list[Category]:
        return [step for step in Category if step in self.parts]

    @property
    def missing_required_steps(self) -> list[Category]:
        from core.layouts import required_steps

        return [step for step in required_steps() if step not in self.parts]


@dataclass(frozen=True)
class PairingRule:
    """A single compatibility rule loaded from YAML."""

    id: str
    name: str
    child: Category
    parent: Category
    severity: Severity
    check: dict[str, Any]
    message_template: str
    gate_field: str | None = None  # candidate attribute consulted by the anchor gate
    description: str = ""


@dataclass
class RuleResult:
    """Result of evaluating one rule against a parent/child pair."""

    rule_id: str
    rule_name: str
    severity: Severity
    passed: bool
    message: str
    skipped: bool = False
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Verdict:
    compatible: bool
    reason: str | None = None
