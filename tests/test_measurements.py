import numpy as np
import pytest

from garment_fit.fit_model.measurements import (
    BodyMeasurements,
    DegenerateBaseMeasurementError,
    check_base_measurements,
    extract_measurements,
)
from garment_fit.fitting.transforms import keypoint_to_vector
from garment_fit.preprocessing import preprocess as lm
from garment_fit.preprocessing.preprocess import Landmark
from garment_fit.preprocessing.pose_presets import LIST_PRESETS, pose_preset_landmarks


def test_extract_tpose_measurements(tpose):
    m = extract_measurements(tpose)
    assert m.shoulder_width == pytest.approx(0.4)
    assert m.hip_width == pytest.approx(0.3)
    assert m.torso_length == pytest.approx(0.5)
    assert m.arm_length == pytest.approx(0.55)
    assert m.leg_length == pytest.approx(0.85)


def test_limb_lengths_are_two_segment_sums(tpose):
    keypoints = list(tpose)
    # bend both elbows 0.1m forward
    for elbow in (lm.LEFT_ELBOW, lm.RIGHT_ELBOW):
        e = keypoints[elbow]
        keypoints[elbow] = Landmark(e.x, e.y, e.z - 0.1, e.visibility)
    m = extract_measurements(keypoints)

    ls, le, lw = (keypoint_to_vector(keypoints[i]) for i in (lm.LEFT_SHOULDER, lm.LEFT_ELBOW, lm.LEFT_WRIST))
    segments = np.linalg.norm(le - ls) + np.linalg.norm(lw - le)
    direct = np.linalg.norm(lw - ls)
    assert m.arm_length == pytest.approx(segments)
    assert m.arm_length > direct


@pytest.mark.parametrize('preset', LIST_PRESETS)
def test_measurements_non_negative(preset):
    m = extract_measurements(pose_preset_landmarks(preset, offset=(0.3, -0.2, 1.5)))
    assert all(v >= 0 for v in m.as_dict().values())


def test_extract_is_pure(tpose):
    assert extract_measurements(tpose) == extract_measurements(tpose)


def test_extract_insufficient_landmarks_returns_zero(tpose):
    assert extract_measurements(tpose[:32]) == BodyMeasurements.zero()
    assert extract_measurements([]) == BodyMeasurements.zero()
    assert extract_measurements(None) == BodyMeasurements.zero()


def test_axis_convention_flips_y_and_z():
    v = keypoint_to_vector(Landmark(0.1, 0.2, 0.3, 1.0))
    assert np.allclose(v, [0.1, -0.2, -0.3])
    assert np.allclose(keypoint_to_vector(None), 0)


def test_check_base_measurements_rejects_zero():
    with pytest.raises(DegenerateBaseMeasurementError):
        check_base_measurements(BodyMeasurements.zero())
    with pytest.raises(DegenerateBaseMeasurementError):
        check_base_measurements(BodyMeasurements.defaults().merged({'hip_width': 0.0}))
    assert check_base_measurements(BodyMeasurements.defaults()).shoulder_width == 0.4


def test_merged_ignores_unknown_fields():
    m = BodyMeasurements.defaults().merged({'torso_length': 0.55, 'neck': 0.1})
    assert m.torso_length == 0.55
    assert m.shoulder_width == 0.4
