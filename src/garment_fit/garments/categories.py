"""
Garment categories and the per-category fitting constants.

Each 3D garment asset belongs to exactly one category; the category picks the
transform-solving policy and the fit-scoring bands:

  upper_fitted  tshirt, shirt
  upper_loose   jacket, hoodie (sits slightly looser)
  lower_body    pants
  generic       anything else (follows the shoulders, uniform scale)
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple, Union


class GarmentCategory(str, Enum):
    UPPER_FITTED = 'upper_fitted'
    UPPER_LOOSE = 'upper_loose'
    LOWER_BODY = 'lower_body'
    GENERIC = 'generic'


# Asset model types, as named by the storefront, per category
MODEL_TYPES = {
    'tshirt': GarmentCategory.UPPER_FITTED,
    't-shirt': GarmentCategory.UPPER_FITTED,
    'tee': GarmentCategory.UPPER_FITTED,
    'shirt': GarmentCategory.UPPER_FITTED,
    'jacket': GarmentCategory.UPPER_LOOSE,
    'hoodie': GarmentCategory.UPPER_LOOSE,
    'pants': GarmentCategory.LOWER_BODY,
    'jeans': GarmentCategory.LOWER_BODY,
}

LIST_MODEL_TYPES = ['tshirt', 'shirt', 'jacket', 'hoodie', 'pants']

# Loose garments: ratio inflation applied before scale assembly (shoulder, torso)
LOOSE_INFLATION = (1.1, 1.05)


def parse_category(value: Union[str, GarmentCategory, None]) -> GarmentCategory:
    """Resolve a category enum value or a model type name; unknown names are generic."""
    if isinstance(value, GarmentCategory):
        return value
    if not value:
        return GarmentCategory.GENERIC
    key = str(value).strip().lower()
    if key in MODEL_TYPES:
        return MODEL_TYPES[key]
    for category in GarmentCategory:
        if category.value == key:
            return category
    return GarmentCategory.GENERIC


@dataclass(frozen=True)
class RegionRule:
    """How one body region is scored.

    ratio = live[measurement] / (applied_scale[axis] * reference); 1.0 inside band.
    """
    measurement: str
    axis: int
    reference: float
    band: Tuple[float, float]
    weight: float


# Region keys are the FitQuality fields; for pants the hip score is reported as "torso"
FIT_RULES: Dict[GarmentCategory, Dict[str, RegionRule]] = {
    GarmentCategory.UPPER_FITTED: {
        'shoulders': RegionRule('shoulder_width', 0, 0.4, (0.9, 1.1), 0.6),
        'torso': RegionRule('torso_length', 1, 0.6, (0.9, 1.1), 0.4),
    },
    GarmentCategory.UPPER_LOOSE: {
        'shoulders': RegionRule('shoulder_width', 0, 0.44, (0.85, 1.05), 0.4),
        'torso': RegionRule('torso_length', 1, 0.63, (0.85, 1.05), 0.3),
        'arms': RegionRule('arm_length', 0, 0.7, (0.9, 1.1), 0.3),
    },
    GarmentCategory.LOWER_BODY: {
        'torso': RegionRule('hip_width', 0, 0.4, (0.9, 1.1), 0.4),
        'legs': RegionRule('leg_length', 1, 0.9, (0.9, 1.1), 0.6),
    },
    GarmentCategory.GENERIC: {},
}
