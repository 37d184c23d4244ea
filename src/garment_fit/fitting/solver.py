"""Garment transform solving.

This module provides the high-level entry point `solve_transform` that turns one
frame of body landmarks into the target (pre-smoothing) pose of a garment mesh:
where it sits, how it is oriented and how much it is stretched per axis.

Supported categories (see `garments.categories`):
- upper_fitted: centred on the torso, scaled by shoulder width and torso length
- upper_loose: same as fitted with inflated ratios
- lower_body: anchored at the hips, scaled by hip width and leg length
- generic: follows the shoulders with a uniform scale and no rotation

Scale ratios divide by the base measurements. Callers must install non-zero
base measurements (see `fit_model.measurements.check_base_measurements`);
nothing here guards the division.
"""

from typing import Any, Optional, Sequence

import numpy as np

from garment_fit.fit_model.measurements import BodyMeasurements
from garment_fit.fitting.transforms import (
	GarmentTransform,
	distance,
	keypoint_to_vector,
	midpoint,
	normalize,
	quaternion_from_basis,
)
from garment_fit.garments.categories import GarmentCategory, LOOSE_INFLATION, parse_category
from garment_fit.preprocessing import preprocess as lm


class _Body:
	"""Render-space landmark vectors needed by the category solvers."""

	def __init__(self, keypoints: Sequence[Any]):
		self.left_shoulder = keypoint_to_vector(keypoints[lm.LEFT_SHOULDER])
		self.right_shoulder = keypoint_to_vector(keypoints[lm.RIGHT_SHOULDER])
		self.left_hip = keypoint_to_vector(keypoints[lm.LEFT_HIP])
		self.right_hip = keypoint_to_vector(keypoints[lm.RIGHT_HIP])
		self.left_ankle = keypoint_to_vector(keypoints[lm.LEFT_ANKLE])
		self.right_ankle = keypoint_to_vector(keypoints[lm.RIGHT_ANKLE])
		self.shoulder_mid = midpoint(self.left_shoulder, self.right_shoulder)
		self.hip_mid = midpoint(self.left_hip, self.right_hip)
		self.ankle_mid = midpoint(self.left_ankle, self.right_ankle)


def _torso_rotation(body: _Body) -> np.ndarray:
	right = normalize(body.right_shoulder - body.left_shoulder)
	up = normalize(body.shoulder_mid - body.hip_mid)
	forward = normalize(np.cross(right, up))
	return quaternion_from_basis(right, up, forward)


def _upper_body(body: _Body, base: BodyMeasurements, size_adjustment: float,
				inflation=(1.0, 1.0)) -> GarmentTransform:
	position = midpoint(body.shoulder_mid, body.hip_mid)
	shoulder_width = distance(body.left_shoulder, body.right_shoulder)
	torso_length = distance(body.shoulder_mid, body.hip_mid)

	shoulder_scale = shoulder_width / base.shoulder_width * inflation[0]
	torso_scale = torso_length / base.torso_length * inflation[1]
	scale = np.array([
		shoulder_scale,
		torso_scale,
		(shoulder_scale + torso_scale) / 2,
	]) * size_adjustment
	return GarmentTransform(position, _torso_rotation(body), scale)


def solve_upper_fitted(body: _Body, base: BodyMeasurements, size_adjustment: float) -> GarmentTransform:
	return _upper_body(body, base, size_adjustment)


def solve_upper_loose(body: _Body, base: BodyMeasurements, size_adjustment: float) -> GarmentTransform:
	return _upper_body(body, base, size_adjustment, inflation=LOOSE_INFLATION)


def solve_lower_body(body: _Body, base: BodyMeasurements, size_adjustment: float) -> GarmentTransform:
	position = body.hip_mid.copy()
	hip_width = distance(body.left_hip, body.right_hip)
	# direct hip-to-ankle distance per side
	leg_length = (distance(body.left_hip, body.left_ankle) + distance(body.right_hip, body.right_ankle)) / 2

	hip_scale = hip_width / base.hip_width
	leg_scale = leg_length / base.leg_length
	scale = np.array([hip_scale, leg_scale, hip_scale]) * size_adjustment

	hip_axis = normalize(body.right_hip - body.left_hip)
	leg_direction = normalize(body.ankle_mid - body.hip_mid)
	up = -leg_direction
	forward = normalize(np.cross(hip_axis, up))
	return GarmentTransform(position, quaternion_from_basis(hip_axis, up, forward), scale)


def solve_generic(body: _Body, base: BodyMeasurements, size_adjustment: float) -> GarmentTransform:
	return GarmentTransform(body.shoulder_mid.copy(), scale=np.ones(3) * size_adjustment)


_SOLVERS = {
	GarmentCategory.UPPER_FITTED: solve_upper_fitted,
	GarmentCategory.UPPER_LOOSE: solve_upper_loose,
	GarmentCategory.LOWER_BODY: solve_lower_body,
	GarmentCategory.GENERIC: solve_generic,
}


def solve_transform(keypoints: Optional[Sequence[Any]], base: BodyMeasurements,
					category=GarmentCategory.GENERIC, size_adjustment: float = 1.0) -> GarmentTransform:
	"""Target garment transform for one frame.

	Parameters
	- keypoints: 33 landmarks (x, y, z, visibility)
	- base: reference measurements the scale ratios are taken against
	- category: GarmentCategory or a model type name ('tshirt', 'pants', ...);
	  unrecognised names use the generic policy
	- size_adjustment: user size multiplier applied to every scale axis

	Returns the identity transform when fewer than 33 landmarks are supplied.
	"""
	if not lm.has_full_pose(keypoints):
		return GarmentTransform.identity()
	solver = _SOLVERS[parse_category(category)]
	return solver(_Body(keypoints), base, float(size_adjustment))
