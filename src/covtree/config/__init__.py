"""Config module exports."""

from covtree.config.loader import load_config
from covtree.config.models import (
    CoverageConfig,
    CovtreeConfig,
    ExecutionConfig,
    LoggingConfig,
    LogOutputConfig,
)
from covtree.config.thresholds import (
    DEFAULT_THRESHOLDS,
    ConfigThresholdSource,
    StaticThresholdSource,
    ThresholdSource,
    validate_thresholds,
)

__all__ = [
    "load_config",
    "CoverageConfig",
    "CovtreeConfig",
    "ExecutionConfig",
    "LoggingConfig",
    "LogOutputConfig",
    "DEFAULT_THRESHOLDS",
    "ConfigThresholdSource",
    "StaticThresholdSource",
    "ThresholdSource",
    "validate_thresholds",
]
