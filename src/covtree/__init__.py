"""covtree - coverage report aggregation into a per-folder coverage tree."""

from covtree.pipeline import aggregate

__version__ = "0.1.0"

__all__ = ["__version__", "aggregate"]
