"""
Rigid garment transforms and small vector helpers.

A GarmentTransform holds the pose written onto a garment render node:
position (3,), rotation as a unit quaternion in (x, y, z, w) order (the
order used by scipy.spatial.transform.Rotation) and per-axis scale (3,).
"""
import numbers
from dataclasses import dataclass, field
from typing import Any

import numpy as np
from scipy.spatial.transform import Rotation


IDENTITY_QUATERNION = (0.0, 0.0, 0.0, 1.0)


def keypoint_to_vector(keypoint: Any) -> np.ndarray:
    """Convert a landmark into render space (Y up, Z towards the viewer).

    The oracle reports y growing downwards and z growing away from the
    camera, so both are sign-flipped. Missing keypoints map to the origin.
    """
    if keypoint is None:
        return np.zeros(3)
    x = getattr(keypoint, 'x', None)
    if not isinstance(x, numbers.Real):
        return np.zeros(3)
    return np.array([float(x), -float(keypoint.y), -float(keypoint.z)])


def midpoint(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    return (a + b) * 0.5


def distance(a: np.ndarray, b: np.ndarray) -> float:
    return float(np.linalg.norm(a - b))


def normalize(v: np.ndarray) -> np.ndarray:
    """Unit vector along v; the zero vector stays zero."""
    n = np.linalg.norm(v)
    if n == 0 or not np.isfinite(n):
        return np.zeros(3)
    return v / n


def quaternion_from_basis(x_axis: np.ndarray, y_axis: np.ndarray, z_axis: np.ndarray) -> np.ndarray:
    """Quaternion (x, y, z, w) for the rotation whose columns are the given axes.

    Axes that are not exactly orthogonal are projected onto the nearest
    rotation. A collapsed or mirrored basis gives the identity.
    """
    m = np.column_stack([x_axis, y_axis, z_axis])
    if not np.all(np.isfinite(m)) or np.linalg.det(m) <= 1e-9:
        return np.array(IDENTITY_QUATERNION)
    return Rotation.from_matrix(m).as_quat()


@dataclass
class GarmentTransform:
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    rotation: np.ndarray = field(default_factory=lambda: np.array(IDENTITY_QUATERNION))
    scale: np.ndarray = field(default_factory=lambda: np.ones(3))

    def __post_init__(self):
        self.position = np.asarray(self.position, dtype=float).reshape(3)
        self.rotation = np.asarray(self.rotation, dtype=float).reshape(4)
        self.scale = np.asarray(self.scale, dtype=float).reshape(3)

    @classmethod
    def identity(cls) -> 'GarmentTransform':
        return cls()

    def is_finite(self) -> bool:
        return bool(np.all(np.isfinite(self.position)) and np.all(np.isfinite(self.rotation))
                    and np.all(np.isfinite(self.scale)))

    def copy(self) -> 'GarmentTransform':
        return GarmentTransform(self.position.copy(), self.rotation.copy(), self.scale.copy())

    def rotation_matrix(self) -> np.ndarray:
        return Rotation.from_quat(self.rotation).as_matrix()

    def as_dict(self) -> dict:
        return {
            'position': self.position.tolist(),
            'rotation': self.rotation.tolist(),
            'scale': self.scale.tolist(),
        }
