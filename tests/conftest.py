import sys, os, pytest

# Ensure repository root and core src are on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
CORE_SRC = os.path.join(ROOT, 'packages', 'core', 'src')
if CORE_SRC not in sys.path:
    sys.path.insert(0, CORE_SRC)

from radarhub_core.repositories import Repositories  # noqa: E402
from radarhub_core.store import KVStore  # noqa: E402


class FakeClock:
    """Unix-seconds clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int = 1) -> int:
        self.now += seconds
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(tmp_path):
    s = KVStore.open(str(tmp_path / 'leveldb'))
    yield s
    s.close()


@pytest.fixture
def repos(store, clock):
    return Repositories.build(store, clock=clock, tz_offset_hours=7)
