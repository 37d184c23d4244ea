import pytest

from garment_fit.fit_model.fit_metrics import FitQuality, fit_label, quality_score, score_fit
from garment_fit.fit_model.measurements import BodyMeasurements
from garment_fit.garments.categories import FIT_RULES


def test_band_edges_are_inclusive():
    assert quality_score(0.9, 0.9, 1.1) == 1.0
    assert quality_score(1.1, 0.9, 1.1) == 1.0
    assert quality_score(1.0, 0.9, 1.1) == 1.0


def test_score_degrades_linearly_outside_band():
    assert quality_score(1.2, 0.9, 1.1) == pytest.approx(0.8)
    assert quality_score(0.8, 0.9, 1.1) == pytest.approx(0.8)
    assert quality_score(0.5, 0.9, 1.1) == pytest.approx(0.2)
    assert quality_score(3.0, 0.9, 1.1) == 0.0


def test_weights_sum_to_one():
    for category, rules in FIT_RULES.items():
        if rules:
            assert sum(r.weight for r in rules.values()) == pytest.approx(1.0), category


def test_fitted_shirt_score():
    live = BodyMeasurements(shoulder_width=0.44, torso_length=0.5, hip_width=0.3, arm_length=0.55, leg_length=0.85)
    q = score_fit('tshirt', live, [1.1, 1.0, 1.05])
    assert q.shoulders == 1.0
    # 0.5 / 0.6 = 0.833, 0.0667 below the band
    assert q.torso == pytest.approx(1 - 2 * (0.9 - 0.5 / 0.6))
    assert q.overall == pytest.approx(0.6 * q.shoulders + 0.4 * q.torso)
    assert q.arms == 0.0 and q.legs == 0.0


def test_loose_garment_scores_arms():
    live = BodyMeasurements(shoulder_width=0.44, torso_length=0.63, arm_length=0.7, hip_width=0.3, leg_length=0.9)
    q = score_fit('jacket', live, [1.0, 1.0, 1.0])
    assert q.shoulders == 1.0
    assert q.torso == 1.0
    assert q.arms == 1.0
    assert q.overall == pytest.approx(1.0)


def test_pants_report_hip_as_torso():
    live = BodyMeasurements(shoulder_width=0.4, torso_length=0.5, arm_length=0.6, hip_width=0.4, leg_length=0.9 * 1.3)
    q = score_fit('pants', live, [1.0, 1.0, 1.0])
    assert q.torso == 1.0
    assert q.legs == pytest.approx(1 - 2 * (1.3 - 1.1))
    assert q.shoulders == 0.0
    assert q.overall == pytest.approx(0.4 + 0.6 * q.legs)


def test_generic_and_zero_scale_score_zero():
    live = BodyMeasurements.defaults()
    assert score_fit('scarf', live, [1.0, 1.0, 1.0]) == FitQuality()
    assert score_fit('tshirt', live, [0.0, 0.0, 0.0]).overall == 0.0


def test_fit_label_thresholds():
    assert fit_label(FitQuality(overall=0.95)) == 'Perfect Fit!'
    assert fit_label(FitQuality(overall=0.7)) == 'Good Fit'
    assert fit_label(FitQuality(overall=0.6)) is None
    assert fit_label(None) is None
