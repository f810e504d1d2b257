"""Core module exports."""

from covtree.core.errors import (
    AggregationError,
    ConfigError,
    CovtreeError,
    ErrorCode,
    InternalError,
)
from covtree.core.logging import (
    clear_run_id,
    configure_logging,
    get_run_id,
    set_run_id,
)

__all__ = [
    # Errors
    "AggregationError",
    "ConfigError",
    "CovtreeError",
    "ErrorCode",
    "InternalError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_run_id",
    "set_run_id",
]
