"""Tests for core/resolver.py — field resolution and rule evaluation."""

from __future__ import annotations

from core.loader import part_from_dict
from core.models import Category, PairingRule, Part, Severity
from core.resolver import evaluate_rule, format_value, resolve_field


def _make_part(part_id: str, category: str, **specs) -> Part:
    return part_from_dict({"id": part_id, "category": category, "technical_specs": specs})


def _make_rule(operator: str, field_a: str, field_b, template: str = "{actual} vs {limit}") -> PairingRule:
    return PairingRule(
        id="r1",
        name="Test rule",
        child=Category.GPU,
        parent=Category.CASE,
        severity=Severity.CRITICAL,
        check={"operator": operator, "field_a": field_a, "field_b": field_b},
        message_template=template,
    )


class TestResolveField:

    def test_parent_and_child(self):
        case = _make_part("case_a", "case", max_gpu_length_mm=300)
        gpu = _make_part("gpu_a", "gpu", length_mm=280)
        assert resolve_field("parent.max_gpu_length_mm", case, gpu) == 300.0
        assert resolve_field("child.length_mm", case, gpu) == 280.0

    def test_top_level_attribute(self):
        gpu = _make_part("gpu_a", "gpu")
        assert resolve_field("child.id", None, gpu) == "gpu_a"

    def test_literals(self):
        assert resolve_field(300, None, None) == 300
        assert resolve_field("2.5", None, None) == 2.5

    def test_unresolvable_is_none(self):
        gpu = _make_part("gpu_a", "gpu")
        assert resolve_field("child.length_mm", None, gpu) is None
        assert resolve_field("parent.length_mm", None, gpu) is None
        assert resolve_field("sibling.length_mm", None, gpu) is None
        assert resolve_field("length_mm", None, gpu) is None


class TestFormatValue:

    def test_integral_float(self):
        assert format_value(300.0) == "300"

    def test_fraction(self):
        assert format_value(2.5) == "2.5"

    def test_list(self):
        assert format_value(("ATX", "ITX")) == "ATX, ITX"

    def test_none(self):
        assert format_value(None) == "?"


class TestEvaluateRule:

    def test_lte_pass(self):
        case = _make_part("case_a", "case", max_gpu_length_mm=400)
        gpu = _make_part("gpu_a", "gpu", length_mm=350)
        result = evaluate_rule(_make_rule("lte", "child.length_mm", "parent.max_gpu_length_mm"), case, gpu)
        assert result.passed
        assert not result.skipped

    def test_lte_fail_message(self):
        case = _make_part("case_a", "case", max_gpu_length_mm=300)
        gpu = _make_part("gpu_a", "gpu", length_mm=350)
        result = evaluate_rule(
            _make_rule("lte", "child.length_mm", "parent.max_gpu_length_mm", "max {limit}mm, got {actual}mm"),
            case,
            gpu,
        )
        assert not result.passed
        assert result.message == "max 300mm, got 350mm"
        assert result.details == {"actual": 350.0, "limit": 300.0}

    def test_in_operator(self):
        case = _make_part("case_a", "case", supported_motherboards=["ITX"])
        mobo = _make_part("mobo_a", "motherboard", form_factor="ATX")
        result = evaluate_rule(
            _make_rule("in", "child.form_factor", "parent.supported_motherboards", "supports {limit}"),
            case,
            mobo,
        )
        assert not result.passed
        assert result.message == "supports ITX"

    def test_literal_limit(self):
        gpu = _make_part("gpu_a", "gpu", length_mm=250)
        result = evaluate_rule(_make_rule("lt", "child.length_mm", 300), None, gpu)
        assert result.passed

    def test_missing_field_is_skipped_and_passes(self):
        case = _make_part("case_a", "case")
        gpu = _make_part("gpu_a", "gpu", length_mm=350)
        result = evaluate_rule(_make_rule("lte", "child.length_mm", "parent.max_gpu_length_mm"), case, gpu)
        assert result.passed
        assert result.skipped

    def test_incomparable_values_are_skipped(self):
        case = _make_part("case_a", "case", max_gpu_length_mm=300)
        gpu = _make_part("gpu_a", "gpu")
        result = evaluate_rule(_make_rule("lte", "child.name", "parent.max_gpu_length_mm"), case, gpu)
        assert result.passed
        assert result.skipped
