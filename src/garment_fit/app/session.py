"""
Try-on session controller.

Owns every collaborator of one try-on session: the current garment asset,
the calibration state and poller, the transform smoother and (optionally) a
pose detector. Per-frame processing, calibration commits and stop() share one
lock, so a calibration running on a background thread can never commit after
stop() has returned.

Per frame:  landmarks -> measurements -> target transform -> smoothed
transform (written onto the garment node) -> fit quality.
"""
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence

from garment_fit.config import SIZE_ADJUSTMENT_RANGE, FitConfig, clamp, load_config
from garment_fit.fit_model.calibration import CalibrationPoller, CalibrationState, CalibrationStatus
from garment_fit.fit_model.fit_metrics import FitQuality, fit_label, score_fit
from garment_fit.fit_model.measurements import BodyMeasurements, extract_measurements
from garment_fit.fitting.smoothing import TransformSmoother
from garment_fit.fitting.solver import solve_transform
from garment_fit.fitting.transforms import GarmentTransform
from garment_fit.garments.garment_loader import GarmentAsset, default_base_measurements, load_garment
from garment_fit.preprocessing.preprocess import PoseDetector, extract_keypoints_3d, has_full_pose

logger = logging.getLogger(__name__)


@dataclass
class FrameResult:
    target: GarmentTransform
    applied: GarmentTransform
    measurements: BodyMeasurements
    fit_quality: FitQuality

    @property
    def label(self) -> Optional[str]:
        return fit_label(self.fit_quality)


class TryOnSession:

    def __init__(self, config: Optional[FitConfig] = None,
                 garment_loader: Callable[..., GarmentAsset] = load_garment,
                 pose_detector: Any = None,
                 clock: Callable[[], float] = time.monotonic):
        self.config = config or load_config()
        self._load_asset = garment_loader
        self.pose_detector = pose_detector
        self._owns_detector = False
        self._clock = clock
        self._lock = threading.RLock()

        self.calibration = CalibrationState(default_base_measurements())
        self.poller = self._new_poller()
        self.smoother = TransformSmoother(self.config.smoothing_factor)
        self.garment: Optional[GarmentAsset] = None
        self.is_running = False

        self.latest_keypoints: Optional[List[Any]] = None
        self.last_result: Optional[FrameResult] = None

        self._calibration_stop = threading.Event()
        self._calibration_done = threading.Event()
        self._calibration_thread: Optional[threading.Thread] = None

    def _new_poller(self) -> CalibrationPoller:
        cal = self.config.calibration
        return CalibrationPoller(self.calibration, interval=cal.poll_interval, timeout=cal.timeout,
                                 threshold=cal.tpose_threshold)

    # -- lifecycle --

    def start(self):
        with self._lock:
            if self.is_running:
                logger.warning("Try-on session already running")
                return
            if self.garment is None:
                self.load_garment(self.config.default_category)
            self.is_running = True
        logger.info("Try-on session started with %r", self.garment.model_type)

    def stop(self):
        """Stop frames and calibration together and discard all smoothing state."""
        with self._lock:
            self._calibration_stop.set()
            self.poller.cancel()
            self.smoother.reset()
            self.latest_keypoints = None
            self.last_result = None
            was_running = self.is_running
            self.is_running = False
        thread = self._calibration_thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self.config.calibration.poll_interval * 2)
        self._calibration_thread = None
        if self._owns_detector and self.pose_detector is not None:
            self.pose_detector.close()
            self.pose_detector = None
            self._owns_detector = False
        if was_running:
            logger.info("Try-on session stopped")

    # -- garment --

    def load_garment(self, model_type: str, **kwargs) -> GarmentAsset:
        """Swap in a new garment; the old node's smoothing state is dropped."""
        kwargs.setdefault('size_adjustment', self.config.size_adjustment)
        asset = self._load_asset(model_type, **kwargs)
        with self._lock:
            if self.garment is not None:
                self.smoother.forget(self.garment.root)
            self.calibration.install_defaults(asset.base_measurements)
            if self.calibration.is_calibrated:
                asset.update_base_measurements(self.calibration.base_measurements.as_dict())
            self.garment = asset
        return asset

    def set_size_adjustment(self, value: float) -> float:
        value = clamp(value, *SIZE_ADJUSTMENT_RANGE)
        with self._lock:
            if self.garment is not None:
                self.garment.root.user_data['size_adjustment'] = value
        return value

    def set_smoothing_factor(self, factor: float):
        self.smoother.set_smoothing_factor(factor)

    @property
    def base_measurements(self) -> BodyMeasurements:
        return self.calibration.base_measurements

    # -- frames --

    def on_pose_results(self, results: Any) -> Optional[FrameResult]:
        """Pose oracle callback: pair image and world landmarks, then fit."""
        return self.on_keypoints(extract_keypoints_3d(results))

    def process_frame(self, image) -> Optional[FrameResult]:
        """Detect landmarks on one camera frame and fit to them.

        Without an injected detector one is built from config.pose on first use
        and closed again by stop().
        """
        if self.pose_detector is None:
            self.pose_detector = PoseDetector.from_config(self.config.pose)
            self._owns_detector = True
        return self.on_keypoints(self.pose_detector.process(image))

    def on_keypoints(self, keypoints: Optional[Sequence[Any]]) -> Optional[FrameResult]:
        """Fit the current garment to one frame; None when the frame is skipped."""
        with self._lock:
            if not self.is_running or self.garment is None:
                logger.debug("Frame skipped: session not running")
                return None
            if not has_full_pose(keypoints):
                logger.debug("Frame skipped: %d landmarks", len(keypoints or []))
                return None

            node = self.garment.root
            category = self.garment.category
            size_adjustment = float(node.user_data.get('size_adjustment', self.config.size_adjustment))

            measurements = extract_measurements(keypoints)
            target = solve_transform(keypoints, self.calibration.base_measurements, category, size_adjustment)
            if not target.is_finite():
                logger.debug("Frame skipped: non-finite landmarks")
                return None
            self.latest_keypoints = list(keypoints)
            applied = self.smoother.apply(node, target)
            quality = score_fit(category, measurements, applied.scale)

            self.last_result = FrameResult(target, applied, measurements, quality)
            return self.last_result

    # -- calibration --

    def start_calibration(self, background: bool = False) -> CalibrationStatus:
        """Begin polling for a T-pose; prior calibration stays in force until one succeeds."""
        with self._lock:
            if not self.is_running:
                logger.warning("Calibration requested while the session is not running")
                return self.poller.status
            if self.poller.active:
                return self.poller.status
            self.poller = self._new_poller()
            self.poller.start(self._clock())
            self._calibration_stop = threading.Event()
            self._calibration_done = threading.Event()
            stop_event = self._calibration_stop
            done_event = self._calibration_done
        if background:
            self._calibration_thread = threading.Thread(
                target=self._poll_calibration, args=(stop_event, done_event),
                name='calibration-poller', daemon=True,
            )
            self._calibration_thread.start()
        return CalibrationStatus.POLLING

    def calibration_tick(self, now: Optional[float] = None) -> CalibrationStatus:
        """Advance calibration polling to `now` (defaults to the session clock)."""
        with self._lock:
            if self._calibration_stop.is_set():
                return self.poller.status
            status = self.poller.tick(self._clock() if now is None else now, self.latest_keypoints)
            if status == CalibrationStatus.CALIBRATED and self.garment is not None:
                self.garment.update_base_measurements(self.calibration.base_measurements.as_dict())
            if status != CalibrationStatus.POLLING:
                self._calibration_done.set()
            return status

    def _poll_calibration(self, stop_event: threading.Event, done_event: threading.Event):
        interval = self.poller.interval
        while not stop_event.wait(interval):
            with self._lock:
                if stop_event.is_set():
                    break
                status = self.calibration_tick()
            if status != CalibrationStatus.POLLING:
                break
        done_event.set()

    def wait_for_calibration(self, timeout: Optional[float] = None) -> CalibrationStatus:
        self._calibration_done.wait(timeout)
        return self.poller.status

    @property
    def is_calibrated(self) -> bool:
        return self.calibration.is_calibrated
