"""PC Builder core - anchors, parts, data loading, and rule resolution."""

from core.models import (
    Anchor,
    AnchorType,
    BuildSelection,
    Category,
    PairingRule,
    Part,
    RuleResult,
    Severity,
    Verdict,
)
from core.anchor_store import AnchorStore
from core.loader import load_parts, load_rules, load_selection
from core.resolver import resolve_field, evaluate_rule
from core.transform import WorldTransform

__all__ = [
    "Anchor",
    "AnchorType",
    "AnchorStore",
    "BuildSelection",
    "Category",
    "PairingRule",
    "Part",
    "RuleResult",
    "Severity",
    "Verdict",
    "WorldTransform",
    "load_parts",
    "load_rules",
    "load_selection",
    "resolve_field",
    "evaluate_rule",
]
