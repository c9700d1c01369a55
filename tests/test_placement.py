"""Tests for engines/placement.py and core/transform.py."""

from __future__ import annotations

import math

import numpy as np
import pytest

from core.loader import BUILDS_DIR, load_build_file, load_selection, part_from_dict
from core.models import BuildSelection, Part
from core.transform import WorldTransform, rotate, rotation_matrix
from engines.placement import SCALE_FACTOR, compose, place_ram

HALF_PI = math.pi / 2


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _anchor(name: str, position=(0, 0, 0), label: str | None = None, rotation=(0, 0, 0)) -> dict:
    x, y, z = position
    rx, ry, rz = rotation
    raw = {
        "name": name,
        "position": {"x": x, "y": y, "z": z},
        "rotation": {"x": rx, "y": ry, "z": rz},
    }
    if label:
        raw["label"] = label
    return raw


def _make_part(part_id: str, category: str, *anchors: dict) -> Part:
    return part_from_dict({"id": part_id, "category": category, "anchor_points": list(anchors)})


def _select(*parts: Part, ram_quantity: int = 1) -> BuildSelection:
    selection = BuildSelection(name="Fixture")
    for part in parts:
        selection.select(part, ram_quantity if part.category.value == "ram" else 1)
    return selection


def _case(*extra: dict) -> Part:
    return _make_part("case", "case", _anchor("mobo_mount_area", (0, 5, 0)), *extra)


def _board(*extra: dict) -> Part:
    return _make_part(
        "mobo",
        "motherboard",
        _anchor("mobo_backplate"),
        _anchor("cpu_socket", (2, 0, 0)),
        *extra,
    )


def _board_with_ram_slots() -> Part:
    # Listed out of label order on purpose.
    return _make_part(
        "mobo",
        "motherboard",
        _anchor("mobo_backplate"),
        _anchor("ram_slot", (3, 0, 0), "RAM Slot 3"),
        _anchor("ram_slot", (1, 0, 0), "RAM Slot 1"),
        _anchor("ram_slot", (4, 0, 0), "RAM Slot 4"),
        _anchor("ram_slot", (2, 0, 0), "RAM Slot 2"),
    )


def _cpu() -> Part:
    return _make_part("cpu", "cpu", _anchor("cpu_bottom"), _anchor("cooler_plate", (0, 1, 0)))


# ---------------------------------------------------------------------------
# Rotation convention
# ---------------------------------------------------------------------------

class TestTransform:

    def test_rotate_about_z(self):
        assert rotate((1, 0, 0), (0, 0, HALF_PI)) == pytest.approx(np.array([0, 1, 0]), abs=1e-12)

    def test_xyz_order(self):
        # Rx @ Ry @ Rz: Y is applied before X.
        assert rotate((0, 0, 1), (HALF_PI, HALF_PI, 0)) == pytest.approx(np.array([1, 0, 0]), abs=1e-12)

    def test_rotation_matrix_is_orthonormal(self):
        m = rotation_matrix((0.3, -1.2, 2.0))
        assert m @ m.T == pytest.approx(np.eye(3), abs=1e-12)

    def test_world_transform_matrix(self):
        t = WorldTransform(position=(1, 2, 3), rotation=(0, 0, HALF_PI))
        m = t.to_matrix()
        assert m[:3, 3] == pytest.approx(np.array([1, 2, 3]))
        assert m @ np.array([1, 0, 0, 1]) == pytest.approx(np.array([1, 3, 3, 1]), abs=1e-12)

    def test_identity(self):
        assert WorldTransform.identity() == WorldTransform((0, 0, 0), (0, 0, 0))

    def test_to_dict(self):
        t = WorldTransform(position=(1, 2, 3))
        assert t.to_dict()["position"] == {"x": 1.0, "y": 2.0, "z": 3.0}


# ---------------------------------------------------------------------------
# Chain composition
# ---------------------------------------------------------------------------

class TestChain:

    def test_case_is_root(self):
        result = compose(_select(_case()))
        assert result == {"case": WorldTransform.identity()}

    def test_motherboard_on_case(self):
        result = compose(_select(_case(), _board()))
        mobo = result["motherboard"]
        assert mobo.position == pytest.approx((0, 0.5, 0))
        assert mobo.rotation == pytest.approx((HALF_PI, 0, 0))

    def test_cpu_on_motherboard(self):
        result = compose(_select(_case(), _board(), _cpu()))
        assert result["cpu"].position == pytest.approx((0.2, 0.5, 0), abs=1e-12)
        assert result["cpu"].rotation == pytest.approx((HALF_PI, 0, 0))

    def test_cooler_on_cpu(self):
        cooler = _make_part("cooler", "cpu_cooler", _anchor("cooler_base"))
        result = compose(_select(_case(), _board(), _cpu(), cooler))
        # cooler_plate (0, 1, 0) on a CPU stood up about X lands on +Z
        assert result["cpu_cooler"].position == pytest.approx((0.2, 0.5, 0.1), abs=1e-12)

    def test_child_connector_offset_is_rotated(self):
        board = _board(_anchor("pcie_x16"))
        gpu = _make_part("gpu", "gpu", _anchor("pcie_edge", (0, -1, 0)))
        result = compose(_select(_case(), board, gpu))
        assert result["gpu"].position == pytest.approx((0, 0.5, 0.1), abs=1e-12)

    def test_anchor_rotation_adds_up(self):
        case = _make_part("case", "case", _anchor("psu_bay", (0, -10, 0), rotation=(0, HALF_PI, 0)))
        psu = _make_part("psu", "psu", _anchor("psu_mount"))
        result = compose(_select(case, psu))
        assert result["psu"].rotation == pytest.approx((0, HALF_PI, 0))
        assert result["psu"].position == pytest.approx((0, -1.0, 0))

    def test_storage_prefers_m2_slot(self):
        case = _case(_anchor("drive_bay_25", (-10, -10, 0)))
        board = _board(_anchor("m2_slot", (0, 0, 4)))
        ssd = _make_part("ssd", "storage", _anchor("m2_edge"))
        result = compose(_select(case, board, ssd))
        # m2_slot (0, 0, 4) on a board stood up about X points down -Y
        assert result["storage"].position == pytest.approx((0, 0.1, 0), abs=1e-12)

    def test_storage_falls_back_to_drive_bay(self):
        case = _case(_anchor("drive_bay_25", (-10, -12, 5)))
        ssd = _make_part("ssd", "storage", _anchor("drive_mount", (3, 3, 3)))
        result = compose(_select(case, _board(), ssd))
        assert result["storage"].position == pytest.approx((-1.0, -1.2, 0.5))
        assert result["storage"].rotation == pytest.approx((0, 0, 0))

    def test_example_build_keys(self):
        selection = load_selection(load_build_file(BUILDS_DIR / "example_atx.json"))
        result = compose(selection)
        assert set(result) == {
            "case", "motherboard", "cpu", "cpu_cooler", "gpu", "psu", "storage", "ram_0", "ram_1",
        }


# ---------------------------------------------------------------------------
# Fallbacks
# ---------------------------------------------------------------------------

class TestFallbacks:

    def test_psu_without_bay(self):
        psu = _make_part("psu", "psu", _anchor("psu_mount", (4, 4, 4)))
        result = compose(_select(_case(), psu))
        assert result["psu"] == WorldTransform(position=(0, -2, 0), rotation=(0, 0, 0))

    def test_psu_fallback_is_recomputed(self):
        psu = _make_part("psu", "psu", _anchor("psu_mount"))
        with_bay = _case(_anchor("psu_bay", (0, -15, 0)))
        assert compose(_select(with_bay, psu))["psu"].position == pytest.approx((0, -1.5, 0))
        assert compose(_select(_case(), psu))["psu"].position == pytest.approx((0, -2, 0))

    def test_motherboard_without_mount_area(self):
        case = _make_part("case", "case")
        result = compose(_select(case, _board()))
        assert result["motherboard"] == WorldTransform(position=(0, 1, 0), rotation=(0, 0, 0))

    def test_cpu_without_socket(self):
        board = _make_part("mobo", "motherboard", _anchor("mobo_backplate"))
        result = compose(_select(_case(), board, _cpu()))
        assert result["cpu"].position == pytest.approx((0, 1.0, 0))
        assert result["cpu"].rotation == pytest.approx((HALF_PI, 0, 0))

    def test_gpu_without_pcie(self):
        gpu = _make_part("gpu", "gpu", _anchor("pcie_edge"))
        result = compose(_select(_case(), _board(), gpu))
        assert result["gpu"].position == pytest.approx((0, 0.5, 2))

    def test_storage_without_any_slot(self):
        ssd = _make_part("ssd", "storage")
        result = compose(_select(_case(), _board(), ssd))
        assert result["storage"].position == pytest.approx((-2, 0, 0))

    def test_orphan_part_placed_from_origin(self):
        result = compose(_select(_cpu()))
        assert result == {"cpu": WorldTransform(position=(0, 0.5, 0))}

    def test_parts_without_anchors(self):
        parts = [
            _make_part("case", "case"),
            _make_part("mobo", "motherboard"),
            _make_part("cpu", "cpu"),
            _make_part("cooler", "cpu_cooler"),
            _make_part("gpu", "gpu"),
            _make_part("ssd", "storage"),
            _make_part("psu", "psu"),
            _make_part("ram", "ram"),
        ]
        result = compose(_select(*parts, ram_quantity=2))
        assert result["cpu_cooler"].position == pytest.approx((0, 2.0, 0))
        assert len(result) == 9


# ---------------------------------------------------------------------------
# Memory replication
# ---------------------------------------------------------------------------

class TestRamReplication:

    def _positions(self, quantity: int) -> list[tuple]:
        ram = _make_part("ram", "ram")
        result = compose(_select(_make_part("case", "case"), _board_with_ram_slots(), ram, ram_quantity=quantity))
        keys = sorted(k for k in result if k.startswith("ram_"))
        assert keys == [f"ram_{i}" for i in range(len(keys))]
        return [result[k].position for k in keys]

    def test_slots_used_in_label_order(self):
        positions = self._positions(3)
        assert len(positions) == 3
        # motherboard falls back to (0, 1, 0) without rotation
        for i, pos in enumerate(positions, start=1):
            assert pos == pytest.approx((i * SCALE_FACTOR, 1.0, 0))

    def test_extra_modules_are_synthesized(self):
        positions = self._positions(6)
        assert len(positions) == 6
        assert positions[4] == pytest.approx((2.7, 1.1, 0))
        assert positions[5] == pytest.approx((3.0, 1.1, 0))
        assert len({tuple(round(c, 9) for c in p) for p in positions}) == 6

    def test_quantity_below_one_places_one(self):
        assert len(self._positions(0)) == 1

    def test_no_motherboard(self):
        ram = _make_part("ram", "ram")
        result = compose(_select(ram, ram_quantity=2))
        assert result["ram_0"].position == pytest.approx((1.5, 0.1, 0))
        assert result["ram_1"].position == pytest.approx((1.8, 0.1, 0))

    def test_connector_correction_on_every_module(self):
        ram = _make_part("ram", "ram", _anchor("ram_edge", (0, -1, 0)))
        transforms = place_ram(_board_with_ram_slots(), WorldTransform.identity(), ram, 2)
        assert transforms[0].position == pytest.approx((0.1, 0.1, 0))
        assert transforms[1].position == pytest.approx((0.2, 0.1, 0))

    def test_synthesized_positions_skip_occupied(self):
        board = _make_part("mobo", "motherboard", _anchor("ram_slot", (18, 1, 0), "RAM Slot 1"))
        transforms = place_ram(board, WorldTransform.identity(), None, 2)
        # (1.8, 0.1, 0) is taken by the slot; the extra moves one step on
        assert transforms[0].position == pytest.approx((1.8, 0.1, 0))
        assert transforms[1].position == pytest.approx((2.1, 0.1, 0))


# ---------------------------------------------------------------------------
# Purity
# ---------------------------------------------------------------------------

class TestPurity:

    def test_same_input_same_output(self):
        selection = load_selection(load_build_file(BUILDS_DIR / "example_atx.json"))
        assert compose(selection) == compose(selection)

    def test_selection_is_not_mutated(self):
        selection = load_selection(load_build_file(BUILDS_DIR / "compact_itx.json"))
        before = dict(selection.parts)
        compose(selection)
        assert selection.parts == before
