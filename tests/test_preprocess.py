import sys
from types import SimpleNamespace

import numpy as np
import pytest

from garment_fit.config import load_config
from garment_fit.preprocessing.pose_presets import pose_preset_landmarks
from garment_fit.preprocessing.preprocess import (
    FrameRateMeter,
    Landmark,
    PoseDetector,
    detect_keypoints,
    extract_keypoints_3d,
    has_full_pose,
)
from garment_fit.preprocessing.recording import load_recording, save_recording


def _results(n=33, with_world=True, with_image=True):
    image = [SimpleNamespace(x=0.1 * i, y=0.2, z=0.0, visibility=i / n) for i in range(n)]
    world = [SimpleNamespace(x=float(i), y=-float(i), z=0.5, visibility=0.0) for i in range(n)]
    return SimpleNamespace(
        pose_landmarks=image if with_image else None,
        pose_world_landmarks=world if with_world else None,
    )


def test_pairs_world_coordinates_with_image_visibility():
    keypoints = extract_keypoints_3d(_results())
    assert len(keypoints) == 33
    assert keypoints[4] == Landmark(4.0, -4.0, 0.5, pytest.approx(4 / 33))
    assert has_full_pose(keypoints)


def test_landmark_container_is_unwrapped():
    raw = _results()
    wrapped = SimpleNamespace(
        pose_landmarks=SimpleNamespace(landmark=raw.pose_landmarks),
        pose_world_landmarks=SimpleNamespace(landmark=raw.pose_world_landmarks),
    )
    assert extract_keypoints_3d(wrapped) == extract_keypoints_3d(raw)


def test_missing_array_gives_no_keypoints():
    assert extract_keypoints_3d(_results(with_world=False)) == []
    assert extract_keypoints_3d(_results(with_image=False)) == []
    assert extract_keypoints_3d(SimpleNamespace()) == []


def test_frame_rate_meter(clock):
    meter = FrameRateMeter(clock)
    clock.advance(0.5)
    assert meter.tick() == 0
    clock.advance(0.5)
    assert meter.tick() == 2
    clock.advance(0.25)
    assert meter.tick() == 2


def test_pose_presets_reject_unknown_name():
    with pytest.raises(ValueError):
        pose_preset_landmarks('star-jump')


def test_recording_round_trip(tmp_path):
    frames = [pose_preset_landmarks('T-pose'), pose_preset_landmarks('hands-down', shoulder_width=0.45)]
    path = save_recording(frames, tmp_path / 'rec' / 'session.csv')
    loaded = load_recording(path)
    assert len(loaded) == 2
    assert len(loaded[1]) == 33
    assert loaded[1][12].x == pytest.approx(-0.225)
    assert loaded[0][15].visibility == pytest.approx(0.9)


def test_recording_without_visibility_column(tmp_path):
    path = tmp_path / 'bare.csv'
    path.write_text('frame,index,x,y,z\n0,0,0.1,0.2,0.3\n0,1,0.4,0.5,0.6\n')
    frames = load_recording(path)
    assert len(frames) == 1 and len(frames[0]) == 2
    assert frames[0][1].x == pytest.approx(0.4)
    assert [lm.visibility for lm in frames[0]] == [0.0, 0.0]


def test_recording_missing_columns(tmp_path):
    path = tmp_path / 'broken.csv'
    path.write_text('frame,x,y\n0,0.1,0.2\n')
    with pytest.raises(ValueError):
        load_recording(path)


def test_detector_built_from_pose_config(fake_mediapipe):
    config = load_config(pose={'model_complexity': 2, 'enable_smoothing': False, 'min_detection_confidence': 0.5})
    detector = PoseDetector.from_config(config.pose)
    options = fake_mediapipe[-1].options
    assert options['model_complexity'] == 2
    assert options['smooth_landmarks'] is False
    assert options['min_detection_confidence'] == 0.5
    assert options['min_tracking_confidence'] == 0.2
    assert options['static_image_mode'] is False

    PoseDetector.from_config()
    assert fake_mediapipe[-1].options['model_complexity'] == 1
    detector.close()
    assert fake_mediapipe[0].closed


def test_detector_setters_clamp_and_rebuild(fake_mediapipe):
    detector = PoseDetector()
    first = fake_mediapipe[-1]

    detector.set_detection_confidence(1.5)
    assert first.closed
    assert fake_mediapipe[-1].options['min_detection_confidence'] == 1.0
    detector.set_tracking_confidence(-0.3)
    assert fake_mediapipe[-1].options['min_tracking_confidence'] == 0.0
    detector.set_smoothing(False)
    assert fake_mediapipe[-1].options['smooth_landmarks'] is False
    assert len(fake_mediapipe) == 4


@pytest.mark.parametrize('name, complexity', [('lite', 0), ('full', 1), ('heavy', 2), ('ultra', 1)])
def test_model_complexity_names(fake_mediapipe, name, complexity):
    detector = PoseDetector(model_complexity=0)
    detector.set_model_complexity(name)
    assert detector.model_complexity == complexity
    assert fake_mediapipe[-1].options['model_complexity'] == complexity


def test_detector_process_uses_injected_clock(fake_mediapipe, clock, make_pose_results):
    detector = PoseDetector(clock=clock)
    pose = fake_mediapipe[-1]
    frame = np.zeros((4, 4, 3), dtype=np.uint8)

    assert detector.process(frame) == []
    assert detector.last_pose_time is None

    pose.results = make_pose_results(pose_preset_landmarks('T-pose'))
    clock.advance(0.5)
    keypoints = detector.process(frame)
    assert len(keypoints) == 33
    assert keypoints[11].visibility == 0.9
    assert detector.last_pose_time == 0.5

    clock.advance(0.5)
    detector.process(frame)
    assert detector.fps == 2


def test_detect_keypoints_on_photo(fake_mediapipe):
    config = load_config(pose={'model_complexity': 0})
    assert detect_keypoints(np.zeros((4, 4, 3), dtype=np.uint8), config.pose) == []
    pose = fake_mediapipe[-1]
    assert pose.options['static_image_mode'] is True
    assert pose.options['model_complexity'] == 0
    assert pose.closed


def test_detector_requires_mediapipe(monkeypatch):
    monkeypatch.setitem(sys.modules, 'mediapipe', None)
    with pytest.raises(ImportError, match='pip install mediapipe'):
        PoseDetector()
