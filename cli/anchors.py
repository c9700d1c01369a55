"""Anchor authoring CLI commands for PC Builder.

Each command opens an authoring session on one part file (a part record
with ``anchor_points``, or a bare anchor array), applies one edit through
an ``AnchorStore`` and writes the result back.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from core.anchor_store import AnchorStore
from core.catalog import anchor_types, describe
from core.loader import load_anchor_file, save_anchor_file
from core.models import Anchor, AnchorType

VALID_ANCHOR_TYPES = [t.value for t in AnchorType]


def _open_session(part_file: str) -> AnchorStore:
    """Load a part file into a fresh store, or exit with an error."""
    try:
        return AnchorStore(load_anchor_file(part_file))
    except json.JSONDecodeError as exc:
        click.echo(click.style(f"Error: invalid JSON in {part_file}: {exc}", fg="red"))
        sys.exit(1)
    except ValueError as exc:
        click.echo(click.style(f"Error: {part_file}: {exc}", fg="red"))
        sys.exit(1)


def _find_by_label(store: AnchorStore, label: str) -> Anchor:
    anchor = store.find_by_label(label)
    if anchor is None:
        click.echo(click.style(f"Error: no anchor labeled '{label}'", fg="red"))
        sys.exit(1)
    return anchor


def _describe_anchor(anchor: Anchor) -> str:
    x, y, z = anchor.position
    rx, ry, rz = anchor.rotation
    compatible = ", ".join(sorted(t.value for t in anchor.compatible_with)) or "-"
    return (
        f"  {click.style(anchor.label, bold=True)}  [{anchor.type.value}]\n"
        f"      position ({x:g}, {y:g}, {z:g})  rotation ({rx:g}, {ry:g}, {rz:g})\n"
        f"      {anchor.direction.value}, axis {anchor.connection_axis.value}, accepts {compatible}"
    )


# ---------------------------------------------------------------------------
# Anchors command group
# ---------------------------------------------------------------------------

@click.group("anchors")
def anchors_group():
    """Author the anchor points of a part."""


# ---------------------------------------------------------------------------
# anchors types
# ---------------------------------------------------------------------------

@anchors_group.command("types")
def anchors_types():
    """List every anchor type with its default semantics."""
    click.echo()
    click.echo(click.style(f"  {'Type':<16}  {'Label':<24}  {'Dir':<6}  {'Axis':<5}  Accepts", bold=True))
    click.echo(click.style(f"  {'-' * 72}", dim=True))
    for anchor_type in anchor_types():
        info = describe(anchor_type)
        accepts = ", ".join(sorted(t.value for t in info.default_compatible))
        click.echo(
            f"  {anchor_type.value:<16}  {info.label:<24}  "
            f"{info.direction.value:<6}  {info.default_axis.value:<5}  {accepts}"
        )
    click.echo()


# ---------------------------------------------------------------------------
# anchors show
# ---------------------------------------------------------------------------

@anchors_group.command("show")
@click.argument("part_file", type=click.Path(exists=True))
def anchors_show(part_file: str):
    """Show the anchors of a part file."""
    store = _open_session(part_file)

    if not len(store):
        click.echo(click.style("  No anchors defined.", fg="yellow"))
        return

    click.echo()
    click.echo(click.style(f"  {Path(part_file).name}", bold=True) + f"  ({len(store)} anchor(s))")
    for anchor in store:
        click.echo(_describe_anchor(anchor))
    click.echo()


# ---------------------------------------------------------------------------
# anchors add / duplicate / move / remove
# ---------------------------------------------------------------------------

@anchors_group.command("add")
@click.argument("part_file", type=click.Path(exists=True))
@click.argument("anchor_type", type=click.Choice(VALID_ANCHOR_TYPES))
@click.option("--label", "-l", default=None, help="Anchor label (default: '<Type label> <N>').")
def anchors_add(part_file: str, anchor_type: str, label: str | None):
    """Add an anchor of the given type at the part origin."""
    store = _open_session(part_file)
    anchor = store.add_anchor(AnchorType(anchor_type), label)
    save_anchor_file(part_file, store.anchors)
    click.echo(click.style(f"  Added '{anchor.label}'", fg="green"))


@anchors_group.command("duplicate")
@click.argument("part_file", type=click.Path(exists=True))
@click.argument("label")
def anchors_duplicate(part_file: str, label: str):
    """Duplicate an anchor, shifted along X."""
    store = _open_session(part_file)
    source = _find_by_label(store, label)
    clone = store.duplicate_anchor(source.id)
    save_anchor_file(part_file, store.anchors)
    click.echo(click.style(f"  Duplicated '{label}' as '{clone.label}'", fg="green"))


@anchors_group.command("move")
@click.argument("part_file", type=click.Path(exists=True))
@click.argument("label")
@click.option("--position", "-p", nargs=3, type=float, default=None, help="New position x y z (cm).")
@click.option("--rotation", "-r", nargs=3, type=float, default=None, help="New rotation x y z (radians).")
def anchors_move(part_file: str, label: str, position, rotation):
    """Set an anchor's position and/or rotation."""
    if not position and not rotation:
        raise click.UsageError("Give --position and/or --rotation.")

    store = _open_session(part_file)
    anchor = _find_by_label(store, label)
    store.update_anchor(
        anchor.id,
        position=tuple(position) if position else None,
        rotation=tuple(rotation) if rotation else None,
    )
    save_anchor_file(part_file, store.anchors)
    click.echo(click.style(f"  Moved '{label}'", fg="green"))


@anchors_group.command("remove")
@click.argument("part_file", type=click.Path(exists=True))
@click.argument("label")
def anchors_remove(part_file: str, label: str):
    """Remove an anchor."""
    store = _open_session(part_file)
    anchor = _find_by_label(store, label)
    store.remove_anchor(anchor.id)
    save_anchor_file(part_file, store.anchors)
    click.echo(click.style(f"  Removed '{label}'", fg="green"))
