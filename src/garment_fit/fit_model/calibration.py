"""
T-pose calibration of the base body measurements.

The user raises both arms horizontally; while they hold the pose the arm
vectors (shoulder to wrist) are close to perpendicular to the torso axis
(hip midpoint to shoulder midpoint). A frame that passes the check commits
its measurements as the new base measurements.

Polling is an explicit state machine driven by the caller's clock:

    IDLE --start--> POLLING --T-pose seen--> CALIBRATED
                       |----timeout-------> TIMED_OUT
                       |----cancel--------> IDLE
"""
import logging
from enum import Enum
from typing import Any, Optional, Sequence

import numpy as np

from garment_fit.fit_model.measurements import (
    BodyMeasurements,
    DegenerateBaseMeasurementError,
    check_base_measurements,
    extract_measurements,
)
from garment_fit.fitting.transforms import keypoint_to_vector, midpoint, normalize
from garment_fit.preprocessing import preprocess as lm

logger = logging.getLogger(__name__)

TPOSE_THRESHOLD = 0.3


def is_tpose(keypoints: Optional[Sequence[Any]], threshold: float = TPOSE_THRESHOLD) -> bool:
    """Both arms roughly perpendicular to the torso axis (|cos| below threshold)."""
    if not lm.has_full_pose(keypoints):
        return False
    ls = keypoint_to_vector(keypoints[lm.LEFT_SHOULDER])
    rs = keypoint_to_vector(keypoints[lm.RIGHT_SHOULDER])
    lw = keypoint_to_vector(keypoints[lm.LEFT_WRIST])
    rw = keypoint_to_vector(keypoints[lm.RIGHT_WRIST])
    lh = keypoint_to_vector(keypoints[lm.LEFT_HIP])
    rh = keypoint_to_vector(keypoints[lm.RIGHT_HIP])

    left_arm = normalize(lw - ls)
    right_arm = normalize(rw - rs)
    torso = normalize(midpoint(ls, rs) - midpoint(lh, rh))

    left_dot = abs(float(np.dot(left_arm, torso)))
    right_dot = abs(float(np.dot(right_arm, torso)))
    return left_dot < threshold and right_dot < threshold


class CalibrationState:
    """Base measurements for the session and whether they came from a calibration."""

    def __init__(self, base_measurements: Optional[BodyMeasurements] = None):
        self.is_calibrated = False
        self.base_measurements = check_base_measurements(base_measurements or BodyMeasurements.defaults())

    def calibrate(self, keypoints: Optional[Sequence[Any]], threshold: float = TPOSE_THRESHOLD) -> bool:
        """Commit this frame's measurements if it shows a T-pose; state is untouched otherwise."""
        if not is_tpose(keypoints, threshold):
            return False
        measured = extract_measurements(keypoints)
        try:
            check_base_measurements(measured)
        except DegenerateBaseMeasurementError as e:
            logger.debug("Rejected calibration frame: %s", e)
            return False
        self.base_measurements = measured
        self.is_calibrated = True
        return True

    def install_defaults(self, base_measurements: BodyMeasurements):
        """Use asset defaults as the baseline unless a calibration is in force."""
        if not self.is_calibrated:
            self.base_measurements = check_base_measurements(base_measurements)


class CalibrationStatus(str, Enum):
    IDLE = 'idle'
    POLLING = 'polling'
    CALIBRATED = 'calibrated'
    TIMED_OUT = 'timed_out'


class CalibrationPoller:
    """Retries calibration every `interval` seconds until success or `timeout`."""

    def __init__(self, state: CalibrationState, interval: float = 0.5, timeout: float = 10.0,
                 threshold: float = TPOSE_THRESHOLD):
        if interval <= 0:
            raise ValueError(f"Calibration poll interval must be positive, got {interval}")
        self.state = state
        self.interval = float(interval)
        self.timeout = float(timeout)
        self.threshold = threshold
        self.status = CalibrationStatus.IDLE
        self.started_at = None
        self._next_poll = None
        self.attempts = 0

    @property
    def active(self) -> bool:
        return self.status == CalibrationStatus.POLLING

    def start(self, now: float) -> CalibrationStatus:
        self.status = CalibrationStatus.POLLING
        self.started_at = now
        self._next_poll = now + self.interval
        self.attempts = 0
        return self.status

    def cancel(self) -> CalibrationStatus:
        if self.status == CalibrationStatus.POLLING:
            self.status = CalibrationStatus.IDLE
        return self.status

    def tick(self, now: float, keypoints: Optional[Sequence[Any]]) -> CalibrationStatus:
        """Advance the clock to `now`, polling with the latest landmark snapshot if one is due."""
        if self.status != CalibrationStatus.POLLING:
            return self.status
        if now - self.started_at >= self.timeout:
            self.status = CalibrationStatus.TIMED_OUT
            logger.info("Calibration timed out after %.1fs (%d attempts)", self.timeout, self.attempts)
            return self.status
        if now < self._next_poll:
            return self.status
        while self._next_poll <= now:
            self._next_poll += self.interval
        self.attempts += 1
        if self.state.calibrate(keypoints, self.threshold):
            self.status = CalibrationStatus.CALIBRATED
            logger.info("Calibration succeeded after %d attempts", self.attempts)
        return self.status
