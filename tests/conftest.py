"""Root test configuration: source path and a controllable clock."""

# Standard Library
import sys
from pathlib import Path

# Third-Party
import pytest

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
sys.path.insert(0, str(SRC_DIR))


class ManualClock:
    """Clock whose time only moves when a test says so."""

    def __init__(self, start_ms: int = 0) -> None:
        self.now = start_ms

    def now_ms(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock():
    """Manual clock starting at t=0."""

    return ManualClock()
