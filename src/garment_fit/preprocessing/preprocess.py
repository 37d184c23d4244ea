"""
Preprocessing module: pose landmark contract and MediaPipe keypoint detection.

The pose oracle delivers 33 ordered landmarks per frame. MediaPipe reports two
arrays per result: `pose_landmarks` (normalized image space, with visibility)
and `pose_world_landmarks` (metric 3D, no usable visibility). The fitting core
consumes the pairing of both, index for index.

Dependencies: pip install mediapipe pillow
"""
import logging
import time
from typing import Any, List, NamedTuple, Optional, Sequence

import numpy as np

from garment_fit.config import PoseDetectionConfig

logger = logging.getLogger(__name__)

NUM_LANDMARKS = 33

# MediaPipe Pose indices used by the fitting core
LEFT_SHOULDER = 11
RIGHT_SHOULDER = 12
LEFT_ELBOW = 13
RIGHT_ELBOW = 14
LEFT_WRIST = 15
RIGHT_WRIST = 16
LEFT_HIP = 23
RIGHT_HIP = 24
LEFT_KNEE = 25
RIGHT_KNEE = 26
LEFT_ANKLE = 27
RIGHT_ANKLE = 28

MODEL_COMPLEXITY = {'lite': 0, 'full': 1, 'heavy': 2}


class Landmark(NamedTuple):
	"""One tracked body point. Unpacks like the (x, y, z, visibility) tuples used elsewhere."""
	x: float
	y: float
	z: float
	visibility: float = 0.0


def has_full_pose(keypoints: Optional[Sequence[Any]]) -> bool:
	return keypoints is not None and len(keypoints) >= NUM_LANDMARKS


def _landmark_list(container):
	# MediaPipe wraps landmarks in a proto with a `.landmark` field; plain lists pass through
	if container is None:
		return None
	return getattr(container, 'landmark', container)


def extract_keypoints_3d(results: Any) -> List[Landmark]:
	"""Pair world-landmark coordinates with image-landmark visibility.

	Returns an empty list unless both arrays are present.
	"""
	image_lms = _landmark_list(getattr(results, 'pose_landmarks', None))
	world_lms = _landmark_list(getattr(results, 'pose_world_landmarks', None))
	if not image_lms or not world_lms:
		return []
	keypoints = []
	for i, lm in enumerate(world_lms):
		visibility = 0.0
		if i < len(image_lms):
			visibility = float(getattr(image_lms[i], 'visibility', 0.0) or 0.0)
		keypoints.append(Landmark(float(lm.x), float(lm.y), float(lm.z), visibility))
	return keypoints


class FrameRateMeter:
	"""Frames per second, refreshed once at least a second has elapsed."""

	def __init__(self, clock=time.monotonic):
		self._clock = clock
		self.fps = 0
		self._frames = 0
		self._window_start = clock()

	def tick(self) -> int:
		self._frames += 1
		now = self._clock()
		elapsed = now - self._window_start
		if elapsed >= 1.0:
			self.fps = int(round(self._frames / elapsed))
			self._frames = 0
			self._window_start = now
		return self.fps


def _clamp01(value: float) -> float:
	return max(0.0, min(1.0, float(value)))


class PoseDetector:
	"""Thin wrapper around MediaPipe Pose producing paired 3D keypoints.

	mediapipe is imported when the detector is built so the fitting core and
	its tests do not need it installed.
	"""

	def __init__(self, model_complexity: int = 1, enable_smoothing: bool = True,
				 min_detection_confidence: float = 0.15, min_tracking_confidence: float = 0.2,
				 static_image_mode: bool = False, clock=time.monotonic):
		try:
			import mediapipe as mp
		except ImportError:
			raise ImportError("mediapipe is not installed. Please install with 'pip install mediapipe'.")
		self._mp_pose = mp.solutions.pose
		self.model_complexity = int(model_complexity)
		self.enable_smoothing = bool(enable_smoothing)
		self.min_detection_confidence = _clamp01(min_detection_confidence)
		self.min_tracking_confidence = _clamp01(min_tracking_confidence)
		self.static_image_mode = static_image_mode
		self._clock = clock
		self.meter = FrameRateMeter(clock)
		self.last_pose_time = None
		self._pose = None
		self._build()

	@classmethod
	def from_config(cls, pose_config: Optional[PoseDetectionConfig] = None, **kwargs) -> 'PoseDetector':
		pose_config = pose_config or PoseDetectionConfig()
		return cls(
			model_complexity=pose_config.model_complexity,
			enable_smoothing=pose_config.enable_smoothing,
			min_detection_confidence=pose_config.min_detection_confidence,
			min_tracking_confidence=pose_config.min_tracking_confidence,
			**kwargs,
		)

	def _build(self):
		if self._pose is not None:
			self._pose.close()
		self._pose = self._mp_pose.Pose(
			static_image_mode=self.static_image_mode,
			model_complexity=self.model_complexity,
			smooth_landmarks=self.enable_smoothing,
			enable_segmentation=False,
			min_detection_confidence=self.min_detection_confidence,
			min_tracking_confidence=self.min_tracking_confidence,
		)
		logger.debug("MediaPipe Pose built (complexity=%d)", self.model_complexity)

	def set_detection_confidence(self, confidence: float):
		self.min_detection_confidence = _clamp01(confidence)
		self._build()

	def set_tracking_confidence(self, confidence: float):
		self.min_tracking_confidence = _clamp01(confidence)
		self._build()

	def set_smoothing(self, enable: bool):
		self.enable_smoothing = bool(enable)
		self._build()

	def set_model_complexity(self, name: str):
		self.model_complexity = MODEL_COMPLEXITY.get(name, 1)
		self._build()

	@property
	def fps(self) -> int:
		return self.meter.fps

	def process(self, image) -> List[Landmark]:
		"""Run pose inference on an RGB image (PIL image or HxWx3 uint8 array)."""
		if hasattr(image, 'convert'):
			image = np.array(image.convert('RGB'))
		results = self._pose.process(np.ascontiguousarray(image))
		if results is None or results.pose_landmarks is None:
			return []
		self.meter.tick()
		self.last_pose_time = self._clock()
		return extract_keypoints_3d(results)

	def close(self):
		if self._pose is not None:
			self._pose.close()
			self._pose = None


def detect_keypoints(image, pose_config: Optional[PoseDetectionConfig] = None) -> List[Landmark]:
	"""Detect paired 3D body keypoints on a single photo."""
	detector = PoseDetector.from_config(pose_config, static_image_mode=True)
	try:
		return detector.process(image)
	finally:
		detector.close()
