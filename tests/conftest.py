import sys
from pathlib import Path

import pytest

# Ensure the repository root is importable as package root for scfguess
root = Path(__file__).resolve().parents[1]
if str(root) not in sys.path:
    sys.path.insert(0, str(root))


class PresetSumComm:
    """Stand-in for one member of a multi-process group.

    The group total is computed beforehand by the test, which runs every
    simulated rank serially.
    """

    def __init__(self, total, rank=0, size=2):
        self.total = total
        self.rank = rank
        self.size = size
        self.calls = 0

    def sum(self, value):
        self.calls += 1
        return self.total

    def abort(self, code=1):
        raise SystemExit(code)


@pytest.fixture
def preset_sum_comm():
    return PresetSumComm
