"""Load and normalize the part catalog, rule table, and build selections.

Also owns the persisted anchor representation shared with the catalog and
build services:

    {"name": "ram_slot", "label": "RAM Slot 1",
     "position": {"x": 0, "y": 0, "z": 0},
     "rotation": {"x": 0, "y": 0, "z": 0},
     "direction": "output", "connection_axis": "Y_NEG",
     "compatible_types": ["ram_edge"]}
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import yaml

from core.catalog import describe
from core.models import (
    Anchor,
    AnchorDirection,
    AnchorType,
    BuildSelection,
    Category,
    ConnectionAxis,
    PairingRule,
    Part,
    Severity,
    Vec3,
)
from core.resolver import OPERATORS
from core.specs import parse_specs, specs_to_dict

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent
COMPONENTS_DIR = PROJECT_ROOT / "components"
CONSTRAINTS_DIR = PROJECT_ROOT / "constraints"
BUILDS_DIR = PROJECT_ROOT / "builds"
RULES_FILE = CONSTRAINTS_DIR / "pairings.yaml"

# Map JSON filenames to part categories
_FILE_TO_CATEGORY = {
    "cases.json": Category.CASE,
    "motherboards.json": Category.MOTHERBOARD,
    "cpus.json": Category.CPU,
    "cpu_coolers.json": Category.CPU_COOLER,
    "ram.json": Category.RAM,
    "gpus.json": Category.GPU,
    "storage.json": Category.STORAGE,
    "psus.json": Category.PSU,
}


# ---------------------------------------------------------------------------
# Anchor codec
# ---------------------------------------------------------------------------

def _vec_from_dict(raw: Any, key: str) -> Vec3:
    if raw is None:
        return (0.0, 0.0, 0.0)
    if not isinstance(raw, dict):
        raise ValueError(f"{key}: expected an {{x, y, z}} object, got {raw!r}")
    try:
        return (float(raw.get("x", 0)), float(raw.get("y", 0)), float(raw.get("z", 0)))
    except (TypeError, ValueError):
        raise ValueError(f"{key}: non-numeric component in {raw!r}") from None


def _vec_to_dict(vec: Vec3) -> dict[str, float]:
    x, y, z = vec
    return {"x": x, "y": y, "z": z}


def anchor_from_dict(raw: dict[str, Any]) -> Anchor:
    """Parse one persisted anchor.  Missing optional fields take the catalog
    defaults for the anchor's type; an unknown type raises ValueError."""
    try:
        anchor_type = AnchorType(raw["name"])
    except KeyError:
        raise ValueError(f"Anchor record without a name: {raw!r}") from None
    except ValueError:
        raise ValueError(f"Unknown anchor type: {raw['name']!r}") from None

    info = describe(anchor_type)

    compatible = raw.get("compatible_types")
    if compatible is None:
        compatible_with = info.default_compatible
    else:
        try:
            compatible_with = frozenset(AnchorType(t) for t in compatible)
        except ValueError as exc:
            raise ValueError(f"{anchor_type.value}: {exc}") from None

    return Anchor(
        type=anchor_type,
        label=raw.get("label", info.label),
        position=_vec_from_dict(raw.get("position"), "position"),
        rotation=_vec_from_dict(raw.get("rotation"), "rotation"),
        direction=AnchorDirection(raw.get("direction", info.direction.value)),
        connection_axis=ConnectionAxis(raw.get("connection_axis", info.default_axis.value)),
        compatible_with=compatible_with,
    )


def anchor_to_dict(anchor: Anchor) -> dict[str, Any]:
    """Serialize an anchor to the persisted representation."""
    return {
        "name": anchor.type.value,
        "label": anchor.label,
        "position": _vec_to_dict(anchor.position),
        "rotation": _vec_to_dict(anchor.rotation),
        "direction": anchor.direction.value,
        "connection_axis": anchor.connection_axis.value,
        "compatible_types": sorted(t.value for t in anchor.compatible_with),
    }


def parse_anchors(raw_list: Any) -> list[Anchor]:
    """Parse a persisted anchor array.  ``None`` yields an empty list."""
    if raw_list is None:
        return []
    if not isinstance(raw_list, list):
        raise ValueError(f"anchor_points must be a list, got {type(raw_list).__name__}")
    return [anchor_from_dict(r) for r in raw_list]


def dump_anchors(anchors: Iterable[Anchor]) -> list[dict[str, Any]]:
    return [anchor_to_dict(a) for a in anchors]


def load_anchor_file(path: str | Path) -> list[Anchor]:
    """Read an anchor array, or a part record holding ``anchor_points``."""
    with open(path) as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("anchor_points", [])
    return parse_anchors(data)


def save_anchor_file(path: str | Path, anchors: Iterable[Anchor]) -> None:
    """Write anchors back, keeping the rest of a part record intact."""
    path = Path(path)
    payload: Any = dump_anchors(anchors)
    if path.exists():
        existing = json.loads(path.read_text(encoding="utf-8"))
        if isinstance(existing, dict):
            existing["anchor_points"] = payload
            payload = existing
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


# ---------------------------------------------------------------------------
# Parts
# ---------------------------------------------------------------------------

def part_from_dict(raw: dict[str, Any], category: Category | None = None) -> Part:
    """Validate a raw catalog record into a Part.  Raises ValueError."""
    try:
        part_id = str(raw["id"])
    except KeyError:
        raise ValueError("Part record without an id") from None

    category = Category.parse(raw.get("category", category.value if category else ""))
    try:
        price = float(raw.get("price", 0.0))
    except (TypeError, ValueError):
        raise ValueError(f"{part_id}: price must be a number") from None

    try:
        specs = parse_specs(category, raw.get("technical_specs"))
        anchors = parse_anchors(raw.get("anchor_points"))
    except ValueError as exc:
        raise ValueError(f"{part_id}: {exc}") from None

    return Part(
        id=part_id,
        name=raw.get("name", part_id),
        category=category,
        price=price,
        specs=specs,
        anchors=tuple(anchors),
        model_url=raw.get("model_url", "") or "",
    )


def part_to_dict(part: Part) -> dict[str, Any]:
    return {
        "id": part.id,
        "name": part.name,
        "category": part.category.value,
        "price": part.price,
        "model_url": part.model_url,
        "technical_specs": specs_to_dict(part.specs),
        "anchor_points": dump_anchors(part.anchors),
    }


def load_parts(
    category: Category | str | None = None,
    components_dir: Path | None = None,
) -> dict[Category, list[Part]]:
    """Load the part catalog.  Returns {category: [Part, ...]}.

    Malformed entries are logged and skipped.
    """
    components_dir = components_dir or COMPONENTS_DIR
    wanted = Category.parse(category) if category else None

    result: dict[Category, list[Part]] = {}
    for filename, cat in _FILE_TO_CATEGORY.items():
        if wanted and cat != wanted:
            continue
        filepath = components_dir / filename
        if not filepath.exists():
            continue
        with open(filepath) as f:
            raw_list = json.load(f)

        parts: list[Part] = []
        for raw in raw_list:
            try:
                parts.append(part_from_dict(raw, cat))
            except ValueError as exc:
                logger.warning("Skipping %s entry: %s", filename, exc)
        result[cat] = parts
    return result


def load_parts_by_id(components_dir: Path | None = None) -> dict[str, Part]:
    """Load all parts indexed by their id."""
    by_id: dict[str, Part] = {}
    for part_list in load_parts(components_dir=components_dir).values():
        for part in part_list:
            by_id[part.id] = part
    return by_id


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------

def load_rules(path: Path | None = None) -> list[PairingRule]:
    """Load the compatibility rule table from YAML."""
    path = path or RULES_FILE
    with open(path) as f:
        data = yaml.safe_load(f)
    if not data or "rules" not in data:
        return []

    rules: list[PairingRule] = []
    for rule in data["rules"]:
        operator = rule.get("check", {}).get("operator", "eq")
        if operator not in OPERATORS:
            raise ValueError(f"Rule {rule.get('id')!r}: unknown operator {operator!r}")
        rules.append(
            PairingRule(
                id=rule["id"],
                name=rule["name"],
                child=Category.parse(rule["child"]),
                parent=Category.parse(rule["parent"]),
                severity=Severity(rule.get("severity", "critical")),
                check=rule.get("check", {}),
                message_template=rule.get("message_template", ""),
                gate_field=rule.get("gate_field"),
                description=rule.get("description", ""),
            )
        )
    return rules


# ---------------------------------------------------------------------------
# Build selections
# ---------------------------------------------------------------------------

def load_selection(
    build_data: dict[str, Any],
    parts_by_id: dict[str, Part] | None = None,
) -> BuildSelection:
    """Create a BuildSelection from a dict of part IDs.

    Expected format:
    {
        "name": "Compact AM5",
        "case": "case_coolermaster_nr200p",
        "motherboard": "mobo_asus_rog_strix_b650e_i",
        "ram": {"id": "ram_gskill_flare_x5_ddr5_6000", "quantity": 2},
        ...
    }
    """
    if parts_by_id is None:
        parts_by_id = load_parts_by_id()

    selection = BuildSelection(name=build_data.get("name", "Unnamed Build"))

    for key, value in build_data.items():
        if key in ("name", "notes"):
            continue
        try:
            step = Category.parse(key)
        except ValueError:
            logger.warning("Ignoring unknown build step %r", key)
            continue

        quantity = 1
        if isinstance(value, dict):
            part_id = value.get("id")
            try:
                quantity = int(value.get("quantity", 1))
            except (TypeError, ValueError):
                logger.warning("Bad quantity %r for step %s", value.get("quantity"), step.value)
                continue
        else:
            part_id = value

        part = parts_by_id.get(part_id) if isinstance(part_id, str) else None
        if part is None:
            logger.warning("Unknown part %r for step %s", part_id, step.value)
            continue
        if part.category != step:
            logger.warning(
                "Part %s is a %s, not a %s; skipping", part.id, part.category.value, step.value
            )
            continue
        selection.select(part, quantity)

    return selection


def selection_to_dict(selection: BuildSelection) -> dict[str, Any]:
    """Inverse of load_selection: step -> part id (RAM keeps its quantity)."""
    data: dict[str, Any] = {"name": selection.name}
    for step in selection.completed_steps:
        selected = selection.parts[step]
        if step == Category.RAM:
            data[step.value] = {"id": selected.part.id, "quantity": selected.quantity}
        else:
            data[step.value] = selected.part.id
    return data


def snapshot_build(selection: BuildSelection) -> dict[str, Any]:
    """Saved-build record: every component carries its anchors verbatim."""
    components = []
    for step in selection.completed_steps:
        selected = selection.parts[step]
        entry = part_to_dict(selected.part)
        if step == Category.RAM:
            entry["quantity"] = selected.quantity
        components.append(entry)

    return {
        "name": selection.name,
        "components": components,
        "total_price": round(selection.total_price, 2),
    }


def load_build_file(path: str | Path) -> dict[str, Any]:
    with open(path) as f:
        return json.load(f)
