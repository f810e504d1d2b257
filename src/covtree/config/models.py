"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (COVTREE__SECTION__KEY)
3. Project YAML (<project root>/.covtree/config.yaml)
4. Global YAML (~/.config/covtree/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    COVTREE__<SECTION>__<KEY>=<VALUE>

Examples:
    COVTREE__LOGGING__LEVEL=DEBUG
    COVTREE__COVERAGE__SUFFICIENT_COVERAGE_THRESHOLD=85
    COVTREE__EXECUTION__MAX_WORKERS=8
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

DEFAULT_COVERAGE_FILE_NAMES = (
    "lcov.info",
    "cov.xml",
    "coverage.xml",
    "jacoco.xml",
    "coverage.cobertura.xml",
)
DEFAULT_COVERAGE_FILE_PATHS = ("coverage",)
DEFAULT_IGNORED_PATH_GLOBS = (
    "**/node_modules/**",
    "**/venv/**",
    "**/.venv/**",
    "**/vendor/**",
)
DEFAULT_LOW_COVERAGE_THRESHOLD = 50.0
DEFAULT_SUFFICIENT_COVERAGE_THRESHOLD = 70.0


def _unique(values: list[str]) -> list[str]:
    return list(dict.fromkeys(values))


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        COVTREE__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG reports every reconciled path.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class CoverageConfig(BaseModel):
    """Where to find coverage reports and how to classify them.

    Thresholds are deliberately unconstrained here: out-of-range values are
    replaced by defaults in ``covtree.config.thresholds`` with a warning
    instead of failing the whole config load.

    Env vars:
        COVTREE__COVERAGE__LOW_COVERAGE_THRESHOLD
        COVTREE__COVERAGE__SUFFICIENT_COVERAGE_THRESHOLD
    """

    coverage_file_names: list[str] = Field(
        default_factory=lambda: list(DEFAULT_COVERAGE_FILE_NAMES),
        description="File name globs of coverage reports.",
    )
    coverage_file_paths: list[str] = Field(
        default_factory=lambda: list(DEFAULT_COVERAGE_FILE_PATHS),
        description="Directory globs (relative to the project root) searched for reports.",
    )
    ignored_path_globs: list[str] = Field(
        default_factory=lambda: list(DEFAULT_IGNORED_PATH_GLOBS),
        description="Globs excluded from both report discovery and the project file listing.",
    )
    low_coverage_threshold: float = Field(
        default=DEFAULT_LOW_COVERAGE_THRESHOLD,
        description="Below this percentage coverage is low. Valid range: [0, 99).",
    )
    sufficient_coverage_threshold: float = Field(
        default=DEFAULT_SUFFICIENT_COVERAGE_THRESHOLD,
        description="At or above this percentage coverage is sufficient. Valid range: (0, 100].",
    )

    @field_validator("coverage_file_names", "coverage_file_paths")
    @classmethod
    def dedupe(cls, v: list[str]) -> list[str]:
        return _unique(v)


class ExecutionConfig(BaseModel):
    """Aggregation worker pool.

    Env vars:
        COVTREE__EXECUTION__MAX_WORKERS: Threads used for parsing and per-root work
    """

    max_workers: int = Field(
        default=4,
        description="Threads used to load/parse reports and process project roots.",
    )

    @field_validator("max_workers")
    @classmethod
    def validate_max_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_workers must be >= 1, got {v}")
        return v


class CovtreeConfig(BaseModel):
    """Root configuration for covtree."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    coverage: CoverageConfig = Field(default_factory=CoverageConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
