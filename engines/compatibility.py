"""Compatibility engine — decides which parts may attach to which.

Two stages read the same rule table (``constraints/pairings.yaml``):

- the catalog-level gate (``gate_candidate`` / ``filter_admissible``)
  first checks that the parent's anchors accept the candidate at all,
  then applies the rule comparisons;
- the builder-level check (``check_pair`` / ``check_candidates`` /
  ``check_against_selection``) returns a verdict with a human-readable
  reason for every candidate.  Incompatible candidates are flagged, never
  dropped.

Missing data on a candidate never excludes it: absent anchors or
attributes make the corresponding check pass.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from core.catalog import describe, mounts_on
from core.loader import load_rules
from core.models import (
    BuildSelection,
    Category,
    PairingRule,
    Part,
    RuleResult,
    Severity,
    Verdict,
)
from core.resolver import evaluate_rule

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# ANSI color codes
# ---------------------------------------------------------------------------
_RED = "\033[91m"
_YELLOW = "\033[93m"
_GREEN = "\033[92m"
_CYAN = "\033[96m"
_BOLD = "\033[1m"
_DIM = "\033[2m"
_RESET = "\033[0m"


# ---------------------------------------------------------------------------
# CompatibilityReport
# ---------------------------------------------------------------------------
@dataclass
class CompatibilityReport:
    """Structured report produced by running the rule table against a build."""

    build_name: str
    results: list[RuleResult] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        """True only if there are zero critical failures."""
        return len(self.critical_failures) == 0

    @property
    def failures(self) -> list[RuleResult]:
        return [r for r in self.results if not r.passed]

    @property
    def critical_failures(self) -> list[RuleResult]:
        return [r for r in self.failures if r.severity == Severity.CRITICAL]

    @property
    def warnings(self) -> list[RuleResult]:
        return [r for r in self.failures if r.severity == Severity.WARNING]

    @property
    def skipped(self) -> list[RuleResult]:
        return [r for r in self.results if r.skipped]

    def summary(self) -> str:
        """Return a human-readable, ANSI-colored summary of the report."""
        lines: list[str] = []

        status = f"{_GREEN}PASSED{_RESET}" if self.passed else f"{_RED}FAILED{_RESET}"
        lines.append(f"{_BOLD}Compatibility Report: {self.build_name}{_RESET}  [{status}]")
        lines.append(f"{_DIM}{'=' * 60}{_RESET}")

        total = len(self.results)
        passed_count = sum(1 for r in self.results if r.passed and not r.skipped)
        lines.append(
            f"  Total checks: {total}  |  "
            f"Passed: {_GREEN}{passed_count}{_RESET}  |  "
            f"Skipped: {_DIM}{len(self.skipped)}{_RESET}  |  "
            f"Failed: {_RED}{len(self.failures)}{_RESET}"
        )
        lines.append("")

        if self.critical_failures:
            lines.append(f"{_RED}{_BOLD}CRITICAL FAILURES:{_RESET}")
            for r in self.critical_failures:
                lines.append(f"  {_RED}[FAIL]{_RESET} {r.rule_id}: {r.rule_name}")
                lines.append(f"         {r.message}")
            lines.append("")

        if self.warnings:
            lines.append(f"{_YELLOW}{_BOLD}WARNINGS:{_RESET}")
            for r in self.warnings:
                lines.append(f"  {_YELLOW}[WARN]{_RESET} {r.rule_id}: {r.rule_name}")
                lines.append(f"         {r.message}")
            lines.append("")

        lines.append(f"{_DIM}{'=' * 60}{_RESET}")
        if self.passed:
            lines.append(f"{_GREEN}{_BOLD}Build is compatible.{_RESET} No critical issues found.")
        else:
            lines.append(
                f"{_RED}{_BOLD}Build has {len(self.critical_failures)} critical issue(s).{_RESET} "
                f"Resolve before building."
            )
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def rules_for(
    parent: Category | None,
    child: Category,
    rules: list[PairingRule],
) -> list[PairingRule]:
    """Rules that apply when *child* attaches to *parent* (any parent if None)."""
    return [
        r for r in rules
        if r.child == child and (parent is None or r.parent == parent)
    ]


def _verdict_from_results(results: list[RuleResult]) -> Verdict:
    failed = [r for r in results if not r.passed]
    if not failed:
        return Verdict(compatible=True)
    return Verdict(compatible=False, reason="; ".join(r.message for r in failed))


# ---------------------------------------------------------------------------
# Catalog-level anchor gate
# ---------------------------------------------------------------------------

def anchor_gate(parent: Part, candidate: Part) -> Verdict:
    """Check the parent's anchors accept the candidate at all.

    The union of every parent anchor's compatible types is widened with the
    part categories that carry those types, then matched against the
    candidate's category and its own anchor types.  A candidate whose
    category is offered passes even without a matching anchor or gate
    attribute; a declared gate value that mismatches (e.g. the CPU socket)
    is left to the pairing rules.  A parent with no anchors offers nothing.
    A pairing where the candidate does not physically mount on the parent
    is admitted (a GPU is only size-checked against the case).
    """
    if not mounts_on(parent.category, candidate.category):
        return Verdict(compatible=True)

    if not parent.anchors:
        return Verdict(compatible=False, reason="No anchor points defined for this part")

    offered = {t for a in parent.anchors for t in a.compatible_with}
    hosts = {describe(t).host for t in offered} - {None}

    if candidate.category in hosts:
        return Verdict(compatible=True)
    if any(a.type in offered for a in candidate.anchors):
        return Verdict(compatible=True)
    return Verdict(
        compatible=False,
        reason=f"No anchor on {parent.name} accepts a {candidate.category.value}",
    )


def gate_candidate(
    parent: Part,
    candidate: Part,
    rules: list[PairingRule] | None = None,
) -> Verdict:
    """Catalog-level verdict: anchor gate, then the rule comparisons."""
    if rules is None:
        rules = load_rules()

    verdict = anchor_gate(parent, candidate)
    if not verdict.compatible:
        return verdict
    return check_pair(parent, candidate, rules)


def filter_admissible(
    parent: Part,
    candidates: list[Part],
    rules: list[PairingRule] | None = None,
) -> list[Part]:
    """Candidates the catalog should offer for attaching to *parent*."""
    if rules is None:
        rules = load_rules()
    admitted = [c for c in candidates if gate_candidate(parent, c, rules).compatible]
    logger.debug("%d of %d candidates admissible for %s", len(admitted), len(candidates), parent.id)
    return admitted


# ---------------------------------------------------------------------------
# Builder-level verdicts
# ---------------------------------------------------------------------------

def check_pair(
    parent: Part,
    candidate: Part,
    rules: list[PairingRule] | None = None,
) -> Verdict:
    """Verdict for attaching *candidate* to a specific *parent*."""
    if rules is None:
        rules = load_rules()
    results = [
        evaluate_rule(rule, parent, candidate)
        for rule in rules_for(parent.category, candidate.category, rules)
    ]
    return _verdict_from_results(results)


def check_candidates(
    parent: Part,
    candidates: list[Part],
    rules: list[PairingRule] | None = None,
) -> list[tuple[Part, Verdict]]:
    """One verdict per candidate, in input order."""
    if rules is None:
        rules = load_rules()
    return [(c, check_pair(parent, c, rules)) for c in candidates]


def check_candidate(
    selection: BuildSelection,
    candidate: Part,
    rules: list[PairingRule] | None = None,
) -> Verdict:
    """Verdict for *candidate* against whatever the build already holds."""
    if rules is None:
        rules = load_rules()
    results: list[RuleResult] = []
    for rule in rules_for(None, candidate.category, rules):
        parent = selection.get(rule.parent)
        if parent is None:
            continue
        results.append(evaluate_rule(rule, parent, candidate))
    return _verdict_from_results(results)


def check_against_selection(
    selection: BuildSelection,
    candidates: list[Part],
    rules: list[PairingRule] | None = None,
) -> list[tuple[Part, Verdict]]:
    """Verdicts for a step's candidate list against the current build."""
    if rules is None:
        rules = load_rules()
    return [(c, check_candidate(selection, c, rules)) for c in candidates]


# ---------------------------------------------------------------------------
# Full build
# ---------------------------------------------------------------------------

def validate_selection(
    selection: BuildSelection,
    rules: list[PairingRule] | None = None,
) -> CompatibilityReport:
    """Run every rule against a build.

    Rules whose parent or child step is empty are recorded as passed with
    ``skipped=True``.
    """
    if rules is None:
        rules = load_rules()
    report = CompatibilityReport(build_name=selection.name)

    for rule in rules:
        missing = [s for s in (rule.parent, rule.child) if s not in selection]
        if missing:
            report.results.append(
                RuleResult(
                    rule_id=rule.id,
                    rule_name=rule.name,
                    severity=rule.severity,
                    passed=True,
                    message=f"Skipped — {missing[0].value} not present in build.",
                    skipped=True,
                )
            )
            continue
        report.results.append(
            evaluate_rule(rule, selection.get(rule.parent), selection.get(rule.child))
        )

    return report
