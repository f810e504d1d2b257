"""Coverage level classification."""

from dataclasses import dataclass
from enum import Enum


class CoverageLevel(Enum):
    """Three-level coverage severity."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True, slots=True)
class CoverageLevelThresholds:
    """Percentages in (0, 100]; sufficient >= low.

    Validated at the threshold source (``covtree.config.thresholds``), only
    read here.
    """

    sufficient_coverage_threshold: float
    low_coverage_threshold: float


def coverage_percent(covered: int, total: int) -> float:
    """Covered share in percent; zero countable lines count as fully covered."""
    if total == 0:
        return 100.0
    # Multiply first so exact boundaries (4/5 -> 80.0) stay exact
    return covered * 100 / total


def classify(covered: int, total: int, thresholds: CoverageLevelThresholds) -> CoverageLevel:
    percent = coverage_percent(covered, total)
    if percent >= thresholds.sufficient_coverage_threshold:
        return CoverageLevel.HIGH
    if percent >= thresholds.low_coverage_threshold:
        return CoverageLevel.MEDIUM
    return CoverageLevel.LOW
