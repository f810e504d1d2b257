"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages.
"""

import os
import sys
from pathlib import Path

import pytest

# Insert local src directory at the beginning of sys.path
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

from covtree.diagnostics import CollectingDiagnosticSink  # noqa: E402
from covtree.tree.levels import CoverageLevelThresholds  # noqa: E402


@pytest.fixture
def sink() -> CollectingDiagnosticSink:
    return CollectingDiagnosticSink()


@pytest.fixture
def thresholds() -> CoverageLevelThresholds:
    """The 80/50 pair used across tree and pipeline tests."""
    return CoverageLevelThresholds(sufficient_coverage_threshold=80.0, low_coverage_threshold=50.0)


@pytest.fixture(autouse=True)
def isolated_config(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Keep the user's global config and COVTREE__ env vars out of tests."""
    import covtree.config.loader as loader

    home = tmp_path_factory.mktemp("home")
    monkeypatch.setattr(loader, "GLOBAL_CONFIG_PATH", home / "config.yaml")
    for key in list(os.environ):
        if key.startswith("COVTREE__"):
            monkeypatch.delenv(key)
