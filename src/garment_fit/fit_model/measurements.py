"""
Body measurements derived from a single frame of pose landmarks.

All lengths are in the units of the landmark source (meters for MediaPipe
world landmarks). No temporal smoothing happens here; the transform
smoother works downstream on the derived garment pose.
"""
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Optional, Sequence

from garment_fit.fitting.transforms import distance, keypoint_to_vector, midpoint
from garment_fit.preprocessing import preprocess as lm


# Model-intrinsic baseline used until a calibration succeeds (meters)
DEFAULT_BASE_MEASUREMENTS = {
    'shoulder_width': 0.4,
    'torso_length': 0.6,
    'arm_length': 0.7,
    'leg_length': 0.9,
    'hip_width': 0.35,
}

# Denominators of the solver's scale ratios
RATIO_FIELDS = ('shoulder_width', 'torso_length', 'hip_width', 'leg_length')


class DegenerateBaseMeasurementError(ValueError):
    """A base measurement that would be divided into is not strictly positive."""


@dataclass(frozen=True)
class BodyMeasurements:
    shoulder_width: float = 0.0
    hip_width: float = 0.0
    torso_length: float = 0.0
    arm_length: float = 0.0
    leg_length: float = 0.0

    @classmethod
    def zero(cls) -> 'BodyMeasurements':
        return cls()

    @classmethod
    def defaults(cls) -> 'BodyMeasurements':
        return cls(**DEFAULT_BASE_MEASUREMENTS)

    def merged(self, updates: Optional[Dict[str, float]]) -> 'BodyMeasurements':
        """Copy with the given fields replaced; unknown keys are ignored."""
        if not updates:
            return self
        known = {k: float(v) for k, v in updates.items() if k in DEFAULT_BASE_MEASUREMENTS}
        return replace(self, **known)

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


def check_base_measurements(base: BodyMeasurements) -> BodyMeasurements:
    bad = [name for name in RATIO_FIELDS if not getattr(base, name) > 0]
    if bad:
        raise DegenerateBaseMeasurementError(
            f"Base measurements must be positive, got {', '.join(f'{n}={getattr(base, n)}' for n in bad)}"
        )
    return base


def extract_measurements(keypoints: Optional[Sequence[Any]]) -> BodyMeasurements:
    """Measure shoulder/hip width, torso length and two-segment limb lengths.

    Returns zeroed measurements when fewer than 33 landmarks are supplied.
    """
    if not lm.has_full_pose(keypoints):
        return BodyMeasurements.zero()

    ls = keypoint_to_vector(keypoints[lm.LEFT_SHOULDER])
    rs = keypoint_to_vector(keypoints[lm.RIGHT_SHOULDER])
    le = keypoint_to_vector(keypoints[lm.LEFT_ELBOW])
    re = keypoint_to_vector(keypoints[lm.RIGHT_ELBOW])
    lw = keypoint_to_vector(keypoints[lm.LEFT_WRIST])
    rw = keypoint_to_vector(keypoints[lm.RIGHT_WRIST])
    lh = keypoint_to_vector(keypoints[lm.LEFT_HIP])
    rh = keypoint_to_vector(keypoints[lm.RIGHT_HIP])
    lk = keypoint_to_vector(keypoints[lm.LEFT_KNEE])
    rk = keypoint_to_vector(keypoints[lm.RIGHT_KNEE])
    la = keypoint_to_vector(keypoints[lm.LEFT_ANKLE])
    ra = keypoint_to_vector(keypoints[lm.RIGHT_ANKLE])

    left_arm = distance(ls, le) + distance(le, lw)
    right_arm = distance(rs, re) + distance(re, rw)
    left_leg = distance(lh, lk) + distance(lk, la)
    right_leg = distance(rh, rk) + distance(rk, ra)

    return BodyMeasurements(
        shoulder_width=distance(ls, rs),
        hip_width=distance(lh, rh),
        torso_length=distance(midpoint(ls, rs), midpoint(lh, rh)),
        arm_length=(left_arm + right_arm) / 2,
        leg_length=(left_leg + right_leg) / 2,
    )
