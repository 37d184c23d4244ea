"""
Fit evaluation metrics for virtual try-on.
Compares live body measurements against the scale currently applied to a garment.
"""
from dataclasses import asdict, dataclass
from typing import Dict, Optional, Sequence

from garment_fit.fit_model.measurements import BodyMeasurements
from garment_fit.garments.categories import FIT_RULES, parse_category

PERFECT_FIT = 0.8
GOOD_FIT = 0.6


@dataclass(frozen=True)
class FitQuality:
	overall: float = 0.0
	shoulders: float = 0.0
	torso: float = 0.0
	arms: float = 0.0
	legs: float = 0.0

	def as_dict(self) -> Dict[str, float]:
		return asdict(self)


def quality_score(ratio: float, min_ideal: float, max_ideal: float) -> float:
	"""1.0 inside [min_ideal, max_ideal] (inclusive), then losing 2 points per unit outside."""
	if min_ideal <= ratio <= max_ideal:
		return 1.0
	if ratio < min_ideal:
		deviation = min_ideal - ratio
	else:
		deviation = ratio - max_ideal
	return max(0.0, 1.0 - deviation * 2)


def score_fit(category, live: BodyMeasurements, applied_scale: Sequence[float]) -> FitQuality:
	"""
	Score how well the applied garment scale matches the wearer.
	Args:
		category: GarmentCategory or model type name
		live: measurements of the current frame
		applied_scale: post-smoothing (x, y, z) scale of the garment
	Returns:
		FitQuality with per-region scores and their weighted overall (0-1).
		Regions a category does not score stay at 0; generic garments score 0 everywhere.
	"""
	rules = FIT_RULES[parse_category(category)]
	scores = {}
	overall = 0.0
	for region, rule in rules.items():
		denominator = float(applied_scale[rule.axis]) * rule.reference
		if denominator <= 0:
			score = 0.0
		else:
			ratio = getattr(live, rule.measurement) / denominator
			score = quality_score(ratio, *rule.band)
		scores[region] = score
		overall += score * rule.weight
	return FitQuality(overall=overall, **scores)


def fit_label(quality: Optional[FitQuality]) -> Optional[str]:
	if quality is None:
		return None
	if quality.overall > PERFECT_FIT:
		return 'Perfect Fit!'
	if quality.overall > GOOD_FIT:
		return 'Good Fit'
	return None
