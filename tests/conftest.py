# tests/conftest.py
from pathlib import Path

import pytest

from ead_planner.config.models import FineNeighborsModel, MovesCostModel
from ead_planner.domain.ead.ead_cost import MovesFuelCostModel
from ead_planner.sim.hooks import NoopHooks

DATA = Path(__file__).parent / "data"


# --- test hook that records every call by name ---
class RecordingHooks(NoopHooks):
    def __init__(self):
        self.calls: list[tuple[str, tuple, dict]] = []

    def _rec(self, name, *args, **kw):
        self.calls.append((name, args, kw))

    def named(self, name: str) -> list[tuple[tuple, dict]]:
        return [(a, kw) for n, a, kw in self.calls if n == name]

    def search_start(self, **kw):
        self._rec("search_start", **kw)

    def search_end(self, **kw):
        self._rec("search_end", **kw)

    def invalid_edge(self, *a, **kw):
        self._rec("invalid_edge", *a, **kw)

    def opmode_fallback(self, *a, **kw):
        self._rec("opmode_fallback", *a, **kw)

    def dead_end(self, *a, **kw):
        self._rec("dead_end", *a, **kw)

    def candidate_rejected(self, *a, **kw):
        self._rec("candidate_rejected", *a, **kw)

    def goal_reached(self, *a, **kw):
        self._rec("goal_reached", *a, **kw)

    def initialized(self, **kw):
        self._rec("initialized", **kw)


@pytest.fixture
def table_path() -> str:
    return str(DATA / "moves_base_rates.csv")


@pytest.fixture
def cost_cfg(table_path) -> MovesCostModel:
    return MovesCostModel(base_rate_table=table_path, max_velocity_mps=20.0, max_accel_mps2=2.0)


@pytest.fixture
def hooks() -> RecordingHooks:
    return RecordingHooks()


@pytest.fixture
def cost_model(cost_cfg, hooks) -> MovesFuelCostModel:
    return MovesFuelCostModel(cost_cfg, hooks=hooks)


@pytest.fixture
def fine_cfg() -> FineNeighborsModel:
    return FineNeighborsModel(
        default_accel=2.0,
        maximum_speed_mps=20.0,
        crawling_speed_mps=2.0,
        time_buffer_s=4.0,
        response_lag_s=1.9,
        debug_threshold_m=0.0,
    )
