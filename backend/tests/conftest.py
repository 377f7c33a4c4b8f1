# --- test import path bootstrap (backend/ layout) ---
import sys as _sys
from pathlib import Path as _Path

_SRC = _Path(__file__).resolve().parents[1]
if (_SRC / "osmanage").is_dir():
    _p = str(_SRC)
    if _p not in _sys.path:
        _sys.path.insert(0, _p)
# --- end bootstrap ---

import io
from pathlib import Path

import pytest
from rich.console import Console

from osmanage.config import Settings
from osmanage.services.k8s.polling import Poller

from fakes import FakeCluster, make_connection, write_deployment


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def settings() -> Settings:
    return Settings(show_progress=False, poll_interval_seconds=2.0, log_level="DEBUG")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_poller(clock):
    def factory(timeout: float = 60.0, interval: float = 2.0) -> Poller:
        return Poller(interval=interval, timeout=timeout, clock=clock, sleep=clock.sleep)

    return factory


@pytest.fixture
def console() -> Console:
    return Console(file=io.StringIO(), width=200, force_terminal=False, color_system=None)


@pytest.fixture
def cluster() -> FakeCluster:
    return FakeCluster()


@pytest.fixture
def conn(cluster, settings):
    return make_connection(cluster, settings)



@pytest.fixture
def instance_dir(tmp_path: Path) -> Path:
    """my.instance.dir.org with a namespace manifest and a two replica backend deployment."""
    root = tmp_path / "my.instance.dir.org"
    (root / "stack").mkdir(parents=True)
    (root / "namespace.yaml").write_text(
        "apiVersion: v1\nkind: Namespace\nmetadata:\n  name: myinstancedirorg\n",
        encoding="utf-8",
    )
    write_deployment(root / "stack" / "backend-deployment.yaml", "backend", 2)
    return root
