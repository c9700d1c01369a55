"""PC Builder CLI -- Click-based command-line interface.

Usage:
    pcbuilder list <category>
    pcbuilder check <parent_id> <candidate_id>
    pcbuilder candidates <build_json> <step>
    pcbuilder validate <build_json>
    pcbuilder place <build_json> [--json]
    pcbuilder snapshot <build_json>
    pcbuilder anchors <command> ...
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click

from core.layouts import BUILD_STEPS, get_step
from core.loader import load_parts, load_parts_by_id, load_rules, load_selection, snapshot_build
from core.models import BuildSelection, Category, Part, Severity
from core.resolver import evaluate_rule
from engines.compatibility import anchor_gate, check_against_selection, rules_for, validate_selection
from engines.placement import compose

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

VALID_STEPS = [slot.step.value for slot in BUILD_STEPS]


def _truncate(text: str, width: int) -> str:
    """Truncate text to *width* characters, adding ellipsis if needed."""
    if len(text) <= width:
        return text
    return text[: width - 1] + "…"


def _severity_style(severity: Severity, text: str) -> str:
    """Apply Click ANSI styling based on severity level."""
    if severity == Severity.CRITICAL:
        return click.style(text, fg="red", bold=True)
    if severity == Severity.WARNING:
        return click.style(text, fg="yellow")
    return click.style(text, fg="cyan")


def _fail(message: str) -> None:
    click.echo(click.style(f"Error: {message}", fg="red"))
    sys.exit(1)


def _load_selection_file(filepath: str) -> BuildSelection:
    """Load a build selection from a JSON file path."""
    path = Path(filepath)
    if not path.exists():
        _fail(f"file not found: {filepath}")
    try:
        with open(path) as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        _fail(f"invalid JSON in {filepath}: {exc}")
    if not isinstance(data, dict):
        _fail(f"{filepath} does not hold a build object")
    return load_selection(data)


def _lookup(by_id: dict[str, Part], part_id: str) -> Part:
    if part_id not in by_id:
        _fail(f"unknown part ID '{part_id}'")
    return by_id[part_id]


def _fmt_vec(vec) -> str:
    return "(" + ", ".join(f"{v:7.3f}" for v in vec) + ")"


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------

@click.group()
@click.version_option(version="1.0.0", prog_name="pcbuilder")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool):
    """PC Builder -- anchor-based PC part compatibility and placement."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# list
# ---------------------------------------------------------------------------

@cli.command("list")
@click.argument("category", type=click.Choice(VALID_STEPS, case_sensitive=False))
def list_parts(category: str):
    """List all catalog parts of a given category."""
    cat = Category.parse(category)
    part_list = load_parts(cat).get(cat, [])

    if not part_list:
        click.echo(click.style(f"No {cat.value} parts found.", fg="yellow"))
        return

    id_w = min(max(max(len(p.id) for p in part_list), 4), 40)
    name_w = min(max(max(len(p.name) for p in part_list), 4), 40)

    header = (
        f"{'ID':<{id_w}}  "
        f"{'Name':<{name_w}}  "
        f"{'Price($)':>8}  "
        f"{'Anchors':>7}"
    )
    click.echo()
    click.echo(click.style(f"  {get_step(cat).label} Parts", bold=True) + f"  ({len(part_list)} found)")
    click.echo(click.style(f"  {'=' * len(header)}", dim=True))
    click.echo(f"  {click.style(header, bold=True)}")
    click.echo(click.style(f"  {'-' * len(header)}", dim=True))

    for p in part_list:
        click.echo(
            f"  {_truncate(p.id, id_w):<{id_w}}  "
            f"{_truncate(p.name, name_w):<{name_w}}  "
            f"{p.price:>8.2f}  "
            f"{len(p.anchors):>7}"
        )

    click.echo(click.style(f"  {'-' * len(header)}", dim=True))
    click.echo()


# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------

@cli.command("check")
@click.argument("parent_id")
@click.argument("candidate_id")
def check_parts(parent_id: str, candidate_id: str):
    """Check whether a candidate part may attach to a parent part."""
    by_id = load_parts_by_id()
    parent = _lookup(by_id, parent_id)
    candidate = _lookup(by_id, candidate_id)
    rules = load_rules()

    click.echo()
    click.echo(click.style("  Compatibility Check", bold=True))
    click.echo(click.style(f"  {'=' * 56}", dim=True))
    click.echo(f"  Parent    : {click.style(parent.id, fg='bright_white')}  ({parent.name})")
    click.echo(f"  Candidate : {click.style(candidate.id, fg='bright_white')}  ({candidate.name})")
    click.echo(click.style(f"  {'-' * 56}", dim=True))

    gate = anchor_gate(parent, candidate)
    if gate.compatible:
        click.echo(f"  {click.style('[PASS]', fg='green', bold=True)} Anchor gate")
    else:
        click.echo(f"  {click.style('[FAIL]', fg='red', bold=True)} Anchor gate")
        click.echo(f"         {gate.reason}")

    results = [
        evaluate_rule(rule, parent, candidate)
        for rule in rules_for(parent.category, candidate.category, rules)
    ]
    if not results:
        click.echo(click.style("  No compatibility rules apply to this pair.", fg="cyan"))

    fail_count = 0 if gate.compatible else 1
    for r in results:
        if r.skipped:
            click.echo(f"  {click.style('[SKIP]', dim=True)} {r.rule_name}")
            continue
        if r.passed:
            tag = click.style("[PASS]", fg="green", bold=True)
        else:
            tag = _severity_style(r.severity, "[FAIL]" if r.severity == Severity.CRITICAL else "[WARN]")
            fail_count += 1
        click.echo(f"  {tag} {r.rule_name}")
        if not r.passed:
            click.echo(f"         {r.message}")

    click.echo(click.style(f"  {'-' * 56}", dim=True))
    if fail_count == 0:
        click.echo(click.style("  Compatible.", fg="green", bold=True))
    else:
        click.echo(click.style(f"  Incompatible ({fail_count} issue(s)).", fg="red", bold=True))
    click.echo()


# ---------------------------------------------------------------------------
# candidates
# ---------------------------------------------------------------------------

@cli.command("candidates")
@click.argument("build_json_file", type=click.Path(exists=True))
@click.argument("step", type=click.Choice(VALID_STEPS, case_sensitive=False))
def list_candidates(build_json_file: str, step: str):
    """Show every catalog part for a step, flagged against the build."""
    selection = _load_selection_file(build_json_file)
    cat = Category.parse(step)
    parts = load_parts(cat).get(cat, [])

    click.echo()
    click.echo(click.style(f"  {get_step(cat).label} candidates for ", bold=True) + selection.name)
    click.echo(click.style(f"  {'=' * 56}", dim=True))

    if not parts:
        click.echo(click.style(f"  No {cat.value} parts in the catalog.", fg="yellow"))
        click.echo()
        return

    for part, verdict in check_against_selection(selection, parts):
        if verdict.compatible:
            tag = click.style("[ OK ]", fg="green", bold=True)
        else:
            tag = click.style("[FAIL]", fg="red", bold=True)
        click.echo(f"  {tag} {part.id}  ({part.name}, ${part.price:.2f})")
        if verdict.reason:
            click.echo(f"         {verdict.reason}")
    click.echo()


# ---------------------------------------------------------------------------
# validate
# ---------------------------------------------------------------------------

@cli.command("validate")
@click.argument("build_json_file", type=click.Path(exists=True))
def validate_build_cmd(build_json_file: str):
    """Validate a full build from a JSON file."""
    selection = _load_selection_file(build_json_file)

    click.echo()
    report = validate_selection(selection)
    click.echo(report.summary())

    missing = selection.missing_required_steps
    if missing:
        click.echo(click.style(
            f"  Incomplete build, missing: {', '.join(s.value for s in missing)}", fg="yellow"
        ))
    click.echo(f"  Total cost: ${selection.total_price:.2f}")
    click.echo()


# ---------------------------------------------------------------------------
# place
# ---------------------------------------------------------------------------

@cli.command("place")
@click.argument("build_json_file", type=click.Path(exists=True))
@click.option("--json", "as_json", is_flag=True, help="Print transforms as JSON.")
def place_build(build_json_file: str, as_json: bool):
    """Compute the world transform of every part in a build."""
    selection = _load_selection_file(build_json_file)
    transforms = compose(selection)

    if as_json:
        click.echo(json.dumps({key: t.to_dict() for key, t in transforms.items()}, indent=2))
        return

    click.echo()
    click.echo(click.style("  Placement: ", bold=True) + selection.name)
    click.echo(click.style(f"  {'=' * 72}", dim=True))
    click.echo(click.style(f"  {'Part':<12}  {'Position':<27}  {'Rotation':<27}", bold=True))
    click.echo(click.style(f"  {'-' * 72}", dim=True))
    for key, t in transforms.items():
        click.echo(f"  {key:<12}  {_fmt_vec(t.position):<27}  {_fmt_vec(t.rotation):<27}")
    click.echo()


# ---------------------------------------------------------------------------
# snapshot
# ---------------------------------------------------------------------------

@cli.command("snapshot")
@click.argument("build_json_file", type=click.Path(exists=True))
def snapshot_cmd(build_json_file: str):
    """Print the saved-build record, anchors included, as JSON."""
    selection = _load_selection_file(build_json_file)
    click.echo(json.dumps(snapshot_build(selection), indent=2, ensure_ascii=False))


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main():
    # Register anchor authoring commands
    from cli.anchors import anchors_group
    cli.add_command(anchors_group)

    cli()


if __name__ == "__main__":
    main()
