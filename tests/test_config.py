import pytest
from pydantic import ValidationError

from garment_fit.config import FitConfig, load_config


def test_defaults():
    config = FitConfig()
    assert config.smoothing_factor == 0.8
    assert config.size_adjustment == 1.0
    assert config.calibration.poll_interval == 0.5
    assert config.calibration.timeout == 10.0
    assert config.pose.model_complexity == 1


def test_values_are_clamped():
    config = load_config(smoothing_factor=1.7, size_adjustment=9.0)
    assert config.smoothing_factor == 1.0
    assert config.size_adjustment == 2.0
    assert load_config(size_adjustment=0.1).size_adjustment == 0.5
    assert load_config(pose={'min_detection_confidence': 3}).pose.min_detection_confidence == 1.0


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv('GARMENT_FIT_SMOOTHING_FACTOR', '0.5')
    monkeypatch.setenv('GARMENT_FIT_CALIBRATION__TIMEOUT', '3')
    config = load_config()
    assert config.smoothing_factor == 0.5
    assert config.calibration.timeout == 3.0


def test_non_positive_poll_interval_rejected():
    with pytest.raises(ValidationError):
        load_config(calibration={'poll_interval': 0})
