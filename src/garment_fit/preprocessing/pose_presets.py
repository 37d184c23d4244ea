"""
Synthetic landmark sets for reproducible poses.

Landmarks follow the pose oracle's world-coordinate convention: meters, origin
at the hip centre, y growing downwards, the subject facing the camera with
their left side on +x. These presets drive the demo app and the tests; they
are not a replacement for real pose data.
"""
import math
from typing import List, Sequence

import numpy as np

from garment_fit.preprocessing import preprocess as lm
from garment_fit.preprocessing.preprocess import Landmark

LIST_PRESETS = ['T-pose', 'A-pose', 'hands-down']

# arm direction per preset, as (outward, downward) components
_ARM_DIRECTIONS = {
    't-pose': (1.0, 0.0),
    'a-pose': (math.cos(math.radians(45)), math.sin(math.radians(45))),
    'hands-down': (0.0, 1.0),
}


def pose_preset_landmarks(preset: str = 'T-pose', shoulder_width: float = 0.4, hip_width: float = 0.3,
                          torso_length: float = 0.5, upper_arm: float = 0.3, forearm: float = 0.25,
                          thigh: float = 0.45, shin: float = 0.4, visibility: float = 0.9,
                          offset: Sequence[float] = (0.0, 0.0, 0.0)) -> List[Landmark]:
    """Return 33 landmarks for a standing body in the given preset."""
    key = preset.lower().replace('_', '-')
    if key in ('tpose', 't pose'):
        key = 't-pose'
    if key not in _ARM_DIRECTIONS:
        raise ValueError(f"Unknown pose preset {preset!r}; expected one of {LIST_PRESETS}")
    out, down = _ARM_DIRECTIONS[key]

    points = np.zeros((lm.NUM_LANDMARKS, 3))
    shoulder_y = -torso_length
    # person's left on +x
    for side, (shoulder, elbow, wrist, hip, knee, ankle) in (
        (1.0, (lm.LEFT_SHOULDER, lm.LEFT_ELBOW, lm.LEFT_WRIST, lm.LEFT_HIP, lm.LEFT_KNEE, lm.LEFT_ANKLE)),
        (-1.0, (lm.RIGHT_SHOULDER, lm.RIGHT_ELBOW, lm.RIGHT_WRIST, lm.RIGHT_HIP, lm.RIGHT_KNEE, lm.RIGHT_ANKLE)),
    ):
        arm_dir = np.array([side * out, down, 0.0])
        points[shoulder] = [side * shoulder_width / 2, shoulder_y, 0.0]
        points[elbow] = points[shoulder] + arm_dir * upper_arm
        points[wrist] = points[elbow] + arm_dir * forearm
        points[hip] = [side * hip_width / 2, 0.0, 0.0]
        points[knee] = points[hip] + [0.0, thigh, 0.0]
        points[ankle] = points[knee] + [0.0, shin, 0.0]

    # face (0-10) above the shoulders, hands on the wrists, feet on the ankles
    points[0:11] = [0.0, shoulder_y - 0.25, 0.0]
    points[[17, 19, 21]] = points[lm.LEFT_WRIST]
    points[[18, 20, 22]] = points[lm.RIGHT_WRIST]
    points[[29, 31]] = points[lm.LEFT_ANKLE]
    points[[30, 32]] = points[lm.RIGHT_ANKLE]

    points = points + np.asarray(offset, dtype=float)
    return [Landmark(float(x), float(y), float(z), visibility) for x, y, z in points]


def lean_sequence(frames: int = 10, start_width: float = 0.4, step: float = 0.01,
                  preset: str = 'hands-down', **kwargs) -> List[List[Landmark]]:
    """Frames of a body whose shoulders widen steadily, as when leaning towards the camera."""
    return [
        pose_preset_landmarks(preset, shoulder_width=start_width + i * step, **kwargs)
        for i in range(frames)
    ]
