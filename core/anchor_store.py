"""Editable anchor list for one part during an authoring session.

One ``AnchorStore`` is created per editing session and handed to whatever
edits and then saves the part.  All operations are synchronous and total:
an unknown anchor id leaves the store untouched.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable, Iterator

from core.catalog import describe
from core.models import (
    ZERO,
    Anchor,
    AnchorDirection,
    AnchorType,
    ConnectionAxis,
    Vec3,
    new_anchor_id,
)

logger = logging.getLogger(__name__)

# A duplicate is shifted by this much (cm) so it never sits on its source.
DUPLICATE_OFFSET: Vec3 = (1.0, 0.0, 0.0)


def default_label(anchor_type: AnchorType, existing: Iterable[Anchor]) -> str:
    """'<Catalog label> <N>' with N = same-type anchors so far + 1."""
    same_type = sum(1 for a in existing if a.type == anchor_type)
    return f"{describe(anchor_type).label} {same_type + 1}"


class AnchorStore:
    """CRUD over the anchor list of the part being authored."""

    def __init__(self, anchors: Iterable[Anchor] = ()) -> None:
        self._anchors: list[Anchor] = list(anchors)
        self._selected_id: str | None = None

    # -- read access ---------------------------------------------------------

    @property
    def anchors(self) -> tuple[Anchor, ...]:
        return tuple(self._anchors)

    @property
    def selected_anchor_id(self) -> str | None:
        return self._selected_id

    @property
    def selected_anchor(self) -> Anchor | None:
        return self.get(self._selected_id) if self._selected_id else None

    def get(self, anchor_id: str) -> Anchor | None:
        for anchor in self._anchors:
            if anchor.id == anchor_id:
                return anchor
        return None

    def find_by_label(self, label: str) -> Anchor | None:
        for anchor in self._anchors:
            if anchor.label == label:
                return anchor
        return None

    def __len__(self) -> int:
        return len(self._anchors)

    def __iter__(self) -> Iterator[Anchor]:
        return iter(tuple(self._anchors))

    # -- mutations -----------------------------------------------------------

    def add_anchor(self, anchor_type: AnchorType, label: str | None = None) -> Anchor:
        info = describe(anchor_type)
        anchor = Anchor(
            type=info.type,
            label=label or default_label(info.type, self._anchors),
            position=ZERO,
            rotation=ZERO,
            direction=info.direction,
            connection_axis=info.default_axis,
            compatible_with=info.default_compatible,
        )
        self._anchors.append(anchor)
        self._selected_id = None
        logger.debug("Added anchor %s (%s)", anchor.label, anchor.type.value)
        return anchor

    def duplicate_anchor(self, anchor_id: str) -> Anchor | None:
        source = self.get(anchor_id)
        if source is None:
            return None

        x, y, z = source.position
        dx, dy, dz = DUPLICATE_OFFSET
        clone = dataclasses.replace(
            source,
            id=new_anchor_id(),
            label=default_label(source.type, self._anchors),
            position=(x + dx, y + dy, z + dz),
        )
        self._anchors.append(clone)
        self._selected_id = clone.id
        return clone

    def update_anchor(
        self,
        anchor_id: str,
        *,
        position: Vec3 | None = None,
        rotation: Vec3 | None = None,
        direction: AnchorDirection | None = None,
        label: str | None = None,
        connection_axis: ConnectionAxis | None = None,
        compatible_with: Iterable[AnchorType] | None = None,
    ) -> Anchor | None:
        """Merge the given fields into an anchor.  Fields left as None keep
        their value."""
        changes = {
            key: value
            for key, value in (
                ("position", position),
                ("rotation", rotation),
                ("direction", direction),
                ("label", label),
                ("connection_axis", connection_axis),
                ("compatible_with", compatible_with),
            )
            if value is not None
        }
        for i, anchor in enumerate(self._anchors):
            if anchor.id == anchor_id:
                updated = dataclasses.replace(anchor, **changes)
                self._anchors[i] = updated
                return updated
        return None

    def remove_anchor(self, anchor_id: str) -> None:
        self._anchors = [a for a in self._anchors if a.id != anchor_id]
        if self._selected_id == anchor_id:
            self._selected_id = None

    def select_anchor(self, anchor_id: str | None) -> None:
        if anchor_id is None or self.get(anchor_id) is not None:
            self._selected_id = anchor_id

    def set_anchors(self, anchors: Iterable[Anchor]) -> None:
        """Bulk replace, e.g. when loading a saved part or switching parts."""
        self._anchors = list(anchors)
        self._selected_id = None

    def clear_anchors(self) -> None:
        self._anchors = []
        self._selected_id = None
