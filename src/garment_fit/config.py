"""Configuration management for the garment fitting pipeline."""

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SIZE_ADJUSTMENT_RANGE = (0.5, 2.0)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, float(value)))


class PoseDetectionConfig(BaseModel):
    """MediaPipe Pose options."""
    model_complexity: int = Field(default=1, ge=0, le=2)  # 0=lite, 1=full, 2=heavy
    enable_smoothing: bool = True
    min_detection_confidence: float = 0.15
    min_tracking_confidence: float = 0.2

    @field_validator("min_detection_confidence", "min_tracking_confidence")
    @classmethod
    def _clamp_confidence(cls, v: float) -> float:
        return clamp(v, 0.0, 1.0)


class CalibrationConfig(BaseModel):
    """T-pose calibration polling."""
    poll_interval: float = Field(default=0.5, gt=0)  # seconds between attempts
    timeout: float = Field(default=10.0, gt=0)  # give up after this many seconds
    tpose_threshold: float = Field(default=0.3, gt=0, le=1)


class FitConfig(BaseSettings):
    """Main fitting configuration."""

    smoothing_factor: float = 0.8  # higher = more lag, less jitter
    size_adjustment: float = 1.0
    default_category: str = "tshirt"

    pose: PoseDetectionConfig = Field(default_factory=PoseDetectionConfig)
    calibration: CalibrationConfig = Field(default_factory=CalibrationConfig)

    model_config = SettingsConfigDict(
        env_prefix="GARMENT_FIT_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("smoothing_factor")
    @classmethod
    def _clamp_smoothing(cls, v: float) -> float:
        return clamp(v, 0.0, 1.0)

    @field_validator("size_adjustment")
    @classmethod
    def _clamp_size(cls, v: float) -> float:
        return clamp(v, *SIZE_ADJUSTMENT_RANGE)


def load_config(**overrides) -> FitConfig:
    """Load configuration from environment and defaults."""
    return FitConfig(**overrides)
