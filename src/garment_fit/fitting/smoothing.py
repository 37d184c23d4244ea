"""
Exponential smoothing of garment transforms.

The state lives in an explicit SmoothingState owned by the caller (one per
try-on session) and is keyed by a stable garment instance key. Each call
blends the target into the previously applied transform with weight
(1 - smoothing_factor): lerp for position and scale, slerp for rotation.
"""
import logging
from typing import Dict, Hashable, Optional

import numpy as np
from scipy.spatial.transform import Rotation, Slerp

from garment_fit.fitting.transforms import GarmentTransform

logger = logging.getLogger(__name__)

DEFAULT_SMOOTHING_FACTOR = 0.8


def clamp_smoothing_factor(factor: float) -> float:
    return max(0.0, min(1.0, float(factor)))


def lerp(a: np.ndarray, b: np.ndarray, t: float) -> np.ndarray:
    return a + (b - a) * t


def slerp(q0: np.ndarray, q1: np.ndarray, t: float) -> np.ndarray:
    """Spherical interpolation between two (x, y, z, w) quaternions along the short arc."""
    if t <= 0.0:
        return np.array(q0, dtype=float)
    if t >= 1.0:
        return np.array(q1, dtype=float)
    key_rotations = Rotation.from_quat(np.vstack([q0, q1]))
    return Slerp([0.0, 1.0], key_rotations)([t]).as_quat()[0]


class SmoothingState:
    """Previously applied transform per garment instance."""

    def __init__(self):
        self._transforms: Dict[Hashable, GarmentTransform] = {}

    def get(self, key: Hashable) -> Optional[GarmentTransform]:
        return self._transforms.get(key)

    def set(self, key: Hashable, transform: GarmentTransform):
        self._transforms[key] = transform

    def discard(self, key: Hashable):
        self._transforms.pop(key, None)

    def clear(self):
        self._transforms.clear()

    def __contains__(self, key) -> bool:
        return key in self._transforms

    def __len__(self) -> int:
        return len(self._transforms)


def smooth_transform(state: SmoothingState, key: Hashable, target: GarmentTransform,
                     smoothing_factor: float = DEFAULT_SMOOTHING_FACTOR) -> GarmentTransform:
    """Blend target into the state for key and return the new applied transform.

    The first call for a key adopts the target unchanged. A target with
    non-finite values is not blended in; the previous transform is returned.
    """
    previous = state.get(key)
    if not target.is_finite():
        logger.debug("Ignoring non-finite target for %r", key)
        return previous.copy() if previous is not None else GarmentTransform.identity()
    if previous is None:
        applied = target.copy()
    else:
        t = 1.0 - clamp_smoothing_factor(smoothing_factor)
        applied = GarmentTransform(
            lerp(previous.position, target.position, t),
            slerp(previous.rotation, target.rotation, t),
            lerp(previous.scale, target.scale, t),
        )
    state.set(key, applied)
    return applied.copy()


class TransformSmoother:
    """Smooths targets and writes the result onto garment render nodes.

    During a try-on session this is the only writer of a node's transform.
    """

    def __init__(self, smoothing_factor: float = DEFAULT_SMOOTHING_FACTOR,
                 state: Optional[SmoothingState] = None):
        self.smoothing_factor = clamp_smoothing_factor(smoothing_factor)
        self.state = state if state is not None else SmoothingState()

    def set_smoothing_factor(self, factor: float):
        self.smoothing_factor = clamp_smoothing_factor(factor)

    def smooth(self, key: Hashable, target: GarmentTransform) -> GarmentTransform:
        return smooth_transform(self.state, key, target, self.smoothing_factor)

    def apply(self, node, target: GarmentTransform) -> GarmentTransform:
        """Smooth towards target for node.uuid and copy the result onto the node."""
        applied = self.smooth(node.uuid, target)
        node.position[:] = applied.position
        node.quaternion[:] = applied.rotation
        node.scale[:] = applied.scale
        return applied

    def forget(self, node):
        self.state.discard(node.uuid)

    def reset(self):
        if len(self.state):
            logger.debug("Discarding smoothing state for %d garment(s)", len(self.state))
        self.state.clear()
