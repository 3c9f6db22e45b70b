# crowdvision/services/density_classifier.py
"""
Density Classifier — maps a zone detection count to a DensityLevel.
Thresholds are operator configuration (DENSITY_* in config), not constants.
"""

from dataclasses import dataclass

from crowdvision.config import settings
from crowdvision.domain import DensityLevel
from crowdvision.errors import InvalidInputError


@dataclass(frozen=True)
class DensityThresholds:
    medium: int = 50
    high: int = 100
    critical_ceiling: int = 110

    def __post_init__(self):
        if not (0 <= self.medium < self.high < self.critical_ceiling):
            raise InvalidInputError(
                f"Thresholds must be increasing: medium={self.medium} "
                f"high={self.high} critical={self.critical_ceiling}"
            )

    @classmethod
    def from_settings(cls, cfg=settings) -> "DensityThresholds":
        return cls(
            medium=cfg.DENSITY_MEDIUM_THRESHOLD,
            high=cfg.DENSITY_HIGH_THRESHOLD,
            critical_ceiling=cfg.DENSITY_CRITICAL_CEILING,
        )


def _check_count(count) -> int:
    # bool is an int subclass; a True/False count is always a caller bug
    if isinstance(count, bool) or not isinstance(count, int):
        raise InvalidInputError(f"Detection count must be an integer, got {count!r}")
    if count < 0:
        raise InvalidInputError(f"Detection count must be non-negative, got {count}")
    return count


def classify_raw(count: int, thresholds: DensityThresholds = None) -> DensityLevel:
    """3-bucket ingestion classification: LOW / MEDIUM / HIGH."""
    t = thresholds or DensityThresholds.from_settings()
    count = _check_count(count)
    if count > t.high:
        return DensityLevel.HIGH
    if count > t.medium:
        return DensityLevel.MEDIUM
    return DensityLevel.LOW


def classify(count: int, thresholds: DensityThresholds = None) -> DensityLevel:
    """Full classification; CRITICAL once the facility-wide ceiling is exceeded."""
    t = thresholds or DensityThresholds.from_settings()
    if _check_count(count) > t.critical_ceiling:
        return DensityLevel.CRITICAL
    return classify_raw(count, t)
