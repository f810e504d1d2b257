"""Threshold source: validated coverage level thresholds per project root.

Invalid threshold combinations never fail a run. Each violated rule is
reported and the offending value falls back to the default.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Protocol

import structlog

from covtree.config.loader import load_config
from covtree.config.models import (
    DEFAULT_LOW_COVERAGE_THRESHOLD,
    DEFAULT_SUFFICIENT_COVERAGE_THRESHOLD,
    CovtreeConfig,
)
from covtree.core.errors import ConfigError
from covtree.tree.levels import CoverageLevelThresholds

logger = structlog.get_logger()

DEFAULT_THRESHOLDS = CoverageLevelThresholds(
    sufficient_coverage_threshold=DEFAULT_SUFFICIENT_COVERAGE_THRESHOLD,
    low_coverage_threshold=DEFAULT_LOW_COVERAGE_THRESHOLD,
)


class ThresholdSource(Protocol):
    """Pull-based accessor, called once per project root on every run."""

    def thresholds(self, project_root: Path) -> CoverageLevelThresholds: ...


def validate_thresholds(
    sufficient: float,
    low: float,
    defaults: CoverageLevelThresholds = DEFAULT_THRESHOLDS,
) -> tuple[CoverageLevelThresholds, list[str]]:
    """Validate a threshold pair, replacing invalid values with defaults.

    Rules:
        0 < sufficient <= 100
        0 <= low < 99
        sufficient >= low (checked after the range fallbacks; on violation
        both values fall back)

    Returns:
        (valid thresholds, list of violated rule descriptions)
    """
    invalid_rules: list[str] = []

    if not 0 < sufficient <= 100:
        invalid_rules.append(f"0 < sufficient_coverage_threshold({sufficient}) <= 100")
        sufficient = defaults.sufficient_coverage_threshold
    if not 0 <= low < 99:
        invalid_rules.append(f"0 <= low_coverage_threshold({low}) < 99")
        low = defaults.low_coverage_threshold
    if sufficient < low:
        invalid_rules.append(
            f"sufficient_coverage_threshold({sufficient}) >= low_coverage_threshold({low})"
        )
        sufficient = defaults.sufficient_coverage_threshold
        low = defaults.low_coverage_threshold

    return (
        CoverageLevelThresholds(
            sufficient_coverage_threshold=sufficient, low_coverage_threshold=low
        ),
        invalid_rules,
    )


class StaticThresholdSource:
    """Serves the same thresholds for every project root."""

    def __init__(self, thresholds: CoverageLevelThresholds = DEFAULT_THRESHOLDS) -> None:
        self._thresholds = thresholds

    def thresholds(self, project_root: Path) -> CoverageLevelThresholds:  # noqa: ARG002
        return self._thresholds


class ConfigThresholdSource:
    """Reads thresholds from each project root's configuration."""

    def __init__(
        self,
        loader: Callable[[Path], CovtreeConfig] = load_config,
        defaults: CoverageLevelThresholds = DEFAULT_THRESHOLDS,
    ) -> None:
        self._loader = loader
        self._defaults = defaults

    def thresholds(self, project_root: Path) -> CoverageLevelThresholds:
        try:
            coverage = self._loader(project_root).coverage
        except ConfigError as e:
            logger.warning(
                "thresholds_config_unreadable",
                project_root=str(project_root),
                error=str(e),
            )
            return self._defaults

        valid, invalid_rules = validate_thresholds(
            coverage.sufficient_coverage_threshold,
            coverage.low_coverage_threshold,
            self._defaults,
        )
        if invalid_rules:
            logger.warning(
                "thresholds_invalid",
                project_root=str(project_root),
                rules=invalid_rules,
                sufficient_coverage_threshold=valid.sufficient_coverage_threshold,
                low_coverage_threshold=valid.low_coverage_threshold,
            )
        return valid
