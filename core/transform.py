"""World transforms and Euler rotation helpers."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray

from core.models import ZERO, Vec3


def rotation_matrix(euler: ArrayLike) -> NDArray[np.float64]:
    """3x3 rotation matrix for an XYZ Euler vector in radians.

    Uses the renderer's convention for the 'XYZ' order: the matrix is
    Rx @ Ry @ Rz, so applying it to a vector rotates about Z first.
    """
    rx, ry, rz = np.asarray(euler, dtype=np.float64)

    cos_x, sin_x = np.cos(rx), np.sin(rx)
    cos_y, sin_y = np.cos(ry), np.sin(ry)
    cos_z, sin_z = np.cos(rz), np.sin(rz)

    rot_x = np.array([
        [1, 0, 0],
        [0, cos_x, -sin_x],
        [0, sin_x, cos_x],
    ], dtype=np.float64)

    rot_y = np.array([
        [cos_y, 0, sin_y],
        [0, 1, 0],
        [-sin_y, 0, cos_y],
    ], dtype=np.float64)

    rot_z = np.array([
        [cos_z, -sin_z, 0],
        [sin_z, cos_z, 0],
        [0, 0, 1],
    ], dtype=np.float64)

    return rot_x @ rot_y @ rot_z


def rotate(vector: ArrayLike, euler: ArrayLike) -> NDArray[np.float64]:
    """Rotate a 3D vector by an XYZ Euler vector."""
    return rotation_matrix(euler) @ np.asarray(vector, dtype=np.float64)


def _as_vec3(values: ArrayLike) -> Vec3:
    x, y, z = (float(v) for v in np.asarray(values, dtype=np.float64))
    return (x, y, z)


@dataclass(frozen=True)
class WorldTransform:
    """A part's final placement in scene space.

    Position is in scene units, rotation an XYZ Euler vector in radians.
    """

    position: Vec3 = ZERO
    rotation: Vec3 = ZERO

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", _as_vec3(self.position))
        object.__setattr__(self, "rotation", _as_vec3(self.rotation))

    @staticmethod
    def identity() -> WorldTransform:
        return WorldTransform()

    def to_matrix(self) -> NDArray[np.float64]:
        """4x4 homogeneous matrix (rotate, then translate)."""
        m = np.eye(4, dtype=np.float64)
        m[:3, :3] = rotation_matrix(self.rotation)
        m[:3, 3] = self.position
        return m

    def to_dict(self) -> dict[str, dict[str, float]]:
        x, y, z = self.position
        rx, ry, rz = self.rotation
        return {
            "position": {"x": x, "y": y, "z": z},
            "rotation": {"x": rx, "y": ry, "z": rz},
        }
