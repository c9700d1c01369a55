"""Resolve rule field references and evaluate pairing rules."""

from __future__ import annotations

from typing import Any

from core.models import Part, PairingRule, RuleResult

OPERATORS = ("eq", "neq", "lt", "lte", "gt", "gte", "in", "contains")


def resolve_field(path: Any, parent: Part | None, child: Part | None) -> Any:
    """Resolve a reference like 'child.length_mm' against a part pair.

    Supports:
    - parent.field / child.field  (typed spec attributes, or id/name/price)
    - literal numbers             (e.g. 300, 2.5)
    Anything unresolvable yields None.
    """
    if isinstance(path, bool):
        return path
    if isinstance(path, (int, float)):
        return path

    path = str(path).strip()

    try:
        return float(path)
    except ValueError:
        pass

    side, _, field_name = path.partition(".")
    if not field_name:
        return None
    if side == "parent":
        part = parent
    elif side == "child":
        part = child
    else:
        return None
    if part is None:
        return None
    return part.get(field_name)


def format_value(value: Any) -> str:
    """Render a value for a human-readable reason string."""
    if value is None:
        return "?"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple, set, frozenset)):
        return ", ".join(format_value(v) for v in value)
    return str(value)


def _compare(operator: str, val_a: Any, val_b: Any) -> bool:
    if operator == "lt":
        return val_a < val_b
    if operator == "lte":
        return val_a <= val_b
    if operator == "gt":
        return val_a > val_b
    if operator == "gte":
        return val_a >= val_b
    if operator == "eq":
        return val_a == val_b
    if operator == "neq":
        return val_a != val_b
    if operator == "in":
        if isinstance(val_b, (list, tuple, set, frozenset)):
            return val_a in val_b
        return val_a == val_b
    if operator == "contains":
        if isinstance(val_a, (list, tuple, set, frozenset)):
            return val_b in val_a
        return val_a == val_b
    raise ValueError(f"Unknown operator: {operator!r}")


def evaluate_rule(rule: PairingRule, parent: Part | None, child: Part | None) -> RuleResult:
    """Evaluate one rule against a parent/child pair.

    A rule whose fields cannot be resolved on either side passes as
    skipped: missing catalog data never makes a pair incompatible.
    """
    check = rule.check
    operator = check.get("operator", "eq")
    field_a_raw = check.get("field_a", "")
    field_b_raw = check.get("field_b", "")

    val_a = resolve_field(field_a_raw, parent, child)
    val_b = resolve_field(field_b_raw, parent, child)

    if val_a is None or val_b is None:
        return RuleResult(
            rule_id=rule.id,
            rule_name=rule.name,
            severity=rule.severity,
            passed=True,
            message="Skipped — could not resolve fields.",
            skipped=True,
            details={"field_a": str(field_a_raw), "field_b": str(field_b_raw)},
        )

    try:
        passed = _compare(operator, val_a, val_b)
    except TypeError:
        # e.g. a number compared with a string in hand-edited catalog data
        return RuleResult(
            rule_id=rule.id,
            rule_name=rule.name,
            severity=rule.severity,
            passed=True,
            message="Skipped — fields are not comparable.",
            skipped=True,
            details={"actual": val_a, "limit": val_b},
        )

    message = rule.message_template
    message = message.replace("{field_a}", format_value(val_a))
    message = message.replace("{field_b}", format_value(val_b))
    message = message.replace("{actual}", format_value(val_a))
    message = message.replace("{limit}", format_value(val_b))

    return RuleResult(
        rule_id=rule.id,
        rule_name=rule.name,
        severity=rule.severity,
        passed=passed,
        message=message.strip(),
        details={"actual": val_a, "limit": val_b},
    )
