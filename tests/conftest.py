import sys
from pathlib import Path
from typing import Iterator

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
if SRC.exists():
    sys.path.insert(0, str(SRC))

# Register shared Hypothesis profiles for deterministic CI runs and fast local loops.
from tests.util import hypothesis_profiles  # noqa: E402,F401  pylint: disable=unused-import

from croquette import api  # noqa: E402


@pytest.fixture(name="fresh_api")
def _fresh_api_fixture() -> Iterator[object]:
    """Tear down the process-wide table before and after a test."""

    api.destroy()
    api.clear_error()
    yield api
    api.destroy()
    api.clear_error()
