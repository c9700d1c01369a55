"""Typed technical specifications, one schema per part category.

Catalog records carry an open ``technical_specs`` map.  It is validated
once, here, when parts are ingested; downstream code reads typed
attributes and never does untyped key lookups.  Every field is optional
because catalog data is frequently incomplete and the compatibility
checks skip what is missing.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from typing import Any, Union

from core.models import Category

logger = logging.getLogger(__name__)

FORM_FACTORS = ("ATX", "mATX", "ITX")
RAM_TYPES = ("DDR4", "DDR5")
STORAGE_TYPES = ("M.2", "SATA")


@dataclass(frozen=True)
class CaseSpecs:
    supported_motherboards: tuple[str, ...] | None = None
    max_gpu_length_mm: float | None = None
    max_cpu_cooler_height_mm: float | None = None


@dataclass(frozen=True)
class MotherboardSpecs:
    socket: str | None = None
    form_factor: str | None = None
    ram_type: str | None = None
    ram_slots: float | None = None
    m2_slots: float | None = None


@dataclass(frozen=True)
class CpuSpecs:
    socket: str | None = None
    tdp_watts: float | None = None
    integrated_graphics: bool | None = None


@dataclass(frozen=True)
class CpuCoolerSpecs:
    supported_sockets: tuple[str, ...] | None = None
    height_mm: float | None = None
    tdp_rating_watts: float | None = None
    fan_size_mm: float | None = None


@dataclass(frozen=True)
class RamSpecs:
    type: str | None = None
    capacity_gb: float | None = None
    modules_count: float | None = None
    speed_mhz: float | None = None


@dataclass(frozen=True)
class GpuSpecs:
    length_mm: float | None = None
    tdp_watts: float | None = None
    vram_gb: float | None = None


@dataclass(frozen=True)
class StorageSpecs:
    type: str | None = None
    interface: str | None = None


@dataclass(frozen=True)
class PsuSpecs:
    wattage: float | None = None
    form_factor: str | None = None


TechnicalSpecs = Union[
    CaseSpecs,
    MotherboardSpecs,
    CpuSpecs,
    CpuCoolerSpecs,
    RamSpecs,
    GpuSpecs,
    StorageSpecs,
    PsuSpecs,
]

SPEC_TYPES: dict[Category, type] = {
    Category.CASE: CaseSpecs,
    Category.MOTHERBOARD: MotherboardSpecs,
    Category.CPU: CpuSpecs,
    Category.CPU_COOLER: CpuCoolerSpecs,
    Category.RAM: RamSpecs,
    Category.GPU: GpuSpecs,
    Category.STORAGE: StorageSpecs,
    Category.PSU: PsuSpecs,
}

# Enumerated fields: (category, field) -> allowed values
_ENUMS: dict[tuple[Category, str], tuple[str, ...]] = {
    (Category.MOTHERBOARD, "form_factor"): FORM_FACTORS,
    (Category.MOTHERBOARD, "ram_type"): RAM_TYPES,
    (Category.CASE, "supported_motherboards"): FORM_FACTORS,
    (Category.RAM, "type"): RAM_TYPES,
    (Category.STORAGE, "type"): STORAGE_TYPES,
}


def _coerce_number(name: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError(f"{name}: expected a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name}: expected a number, got {value!r}") from None


def _coerce_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValueError(f"{name}: expected true/false, got {value!r}")


def _coerce_str(name: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{name}: expected a string, got {value!r}")
    return value.strip()


def _coerce_str_list(name: str, value: Any) -> tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"{name}: expected a list of strings, got {value!r}")
    return tuple(_coerce_str(name, v) for v in value)


def parse_specs(category: Category, raw: dict[str, Any] | None) -> TechnicalSpecs:
    """Validate a raw ``technical_specs`` map into its category's schema.

    Raises ValueError on wrongly-typed or out-of-enum values.  Unknown keys
    are dropped.
    """
    spec_cls = SPEC_TYPES[category]
    raw = raw or {}
    if not isinstance(raw, dict):
        raise ValueError(f"technical_specs must be an object, got {type(raw).__name__}")

    known = {f.name: f for f in fields(spec_cls)}
    values: dict[str, Any] = {}

    for key, value in raw.items():
        if key not in known:
            logger.debug("Dropping unknown %s spec %r", category.value, key)
            continue
        if value is None or value == "":
            continue

        annotation = str(known[key].type)
        if "tuple" in annotation:
            coerced: Any = _coerce_str_list(key, value)
        elif "bool" in annotation:
            coerced = _coerce_bool(key, value)
        elif "float" in annotation:
            coerced = _coerce_number(key, value)
        else:
            coerced = _coerce_str(key, value)

        allowed = _ENUMS.get((category, key))
        if allowed is not None:
            members = coerced if isinstance(coerced, tuple) else (coerced,)
            bad = [m for m in members if m not in allowed]
            if bad:
                raise ValueError(
                    f"{key}: {', '.join(bad)} not one of {', '.join(allowed)}"
                )

        values[key] = coerced

    return spec_cls(**values)


def specs_to_dict(specs: TechnicalSpecs) -> dict[str, Any]:
    """Serialize specs back to a plain map, omitting absent fields."""
    out: dict[str, Any] = {}
    for key, value in asdict(specs).items():
        if value is None:
            continue
        if isinstance(value, tuple):
            value = list(value)
        elif isinstance(value, float) and value.is_integer():
            value = int(value)
        out[key] = value
    return out
