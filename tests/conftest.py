# Test fixtures and configuration
import sys
import types
from pathlib import Path
from types import SimpleNamespace

import pytest

# Make the src tree importable without an editable install
SRC = Path(__file__).resolve().parents[1] / 'src'
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from garment_fit.fit_model.measurements import BodyMeasurements
from garment_fit.preprocessing.pose_presets import pose_preset_landmarks


class FakeClock:
    """Manually advanced clock for deterministic calibration tests."""

    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds
        return self.now


@pytest.fixture
def tpose():
    return pose_preset_landmarks('T-pose')


@pytest.fixture
def arms_down():
    return pose_preset_landmarks('hands-down')


@pytest.fixture
def preset_base():
    """Base measurements matching the default preset body."""
    return BodyMeasurements(shoulder_width=0.4, hip_width=0.3, torso_length=0.5, arm_length=0.55, leg_length=0.85)


@pytest.fixture
def clock():
    return FakeClock()


class FakePose:
    """Stands in for mediapipe.solutions.pose.Pose; returns `results` from process()."""

    def __init__(self, **options):
        self.options = options
        self.results = None
        self.closed = False

    def process(self, image):
        return self.results

    def close(self):
        self.closed = True


@pytest.fixture
def fake_mediapipe(monkeypatch):
    """Install a minimal mediapipe module; returns every Pose built, in order."""
    built = []

    def make_pose(**options):
        pose = FakePose(**options)
        built.append(pose)
        return pose

    module = types.ModuleType('mediapipe')
    module.solutions = SimpleNamespace(pose=SimpleNamespace(Pose=make_pose))
    monkeypatch.setitem(sys.modules, 'mediapipe', module)
    return built


@pytest.fixture
def make_pose_results():
    """Build MediaPipe-shaped results pairing world landmarks with constant image visibility."""

    def build(world, visibility=0.9):
        image = [SimpleNamespace(x=0.5, y=0.5, z=0.0, visibility=visibility) for _ in world]
        return SimpleNamespace(
            pose_landmarks=SimpleNamespace(landmark=image),
            pose_world_landmarks=SimpleNamespace(landmark=[SimpleNamespace(x=k.x, y=k.y, z=k.z) for k in world]),
        )

    return build
