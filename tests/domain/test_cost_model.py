# tests/domain/test_cost_model.py
import math
from functools import lru_cache

import pytest

from ead_planner.app.protocols import MAX_COST
from ead_planner.config.models import MovesCostModel
from ead_planner.domain.ead.ead_base_rates import BaseRateTable
from ead_planner.domain.ead.ead_cost import (
    MovesFuelCostModel,
    ToleranceNotSetError,
    operating_mode,
)
from ead_planner.domain.ead.ead_neighbors_fine import FinePathNeighbors
from ead_planner.domain.ead.ead_oracles import FixedTimingOracle
from ead_planner.domain.entities.intersection import SignalPhase
from ead_planner.domain.entities.node import Node


def _expected(rate_kj_hr: float, dt: float, cfg: MovesCostModel) -> float:
    fuel = 1000.0 * rate_kj_hr / 3600.0 * dt / cfg.fuel_normalization_denominator
    time = dt / cfg.time_normalization_denominator
    return fuel * (1 - cfg.percent_cost_for_time) + time * cfg.percent_cost_for_time


# ---------- operating modes


@pytest.mark.parametrize(
    "vsp, v, a, mode",
    [
        (5.0, 10.0, -1.0, 0),  # hard braking wins over everything
        (0.0, 0.2, 0.0, 1),  # idle
        (-1.0, 5.0, 0.0, 11),
        (1.5, 10.0, 0.0, 12),
        (13.0, 5.0, 0.5, 16),
        (-0.5, 15.0, 0.0, 21),
        (20.0, 15.0, 0.5, 28),
        (31.0, 15.0, 1.0, 30),
        (5.0, 25.0, 0.0, 33),
        (8.7, 25.0, 0.0, 35),
        (45.0, 25.0, 1.0, 40),
    ],
)
def test_operating_mode_bins(vsp, v, a, mode):
    assert operating_mode(vsp, v, a) == mode


def test_operating_mode_outside_domain():
    assert operating_mode(0.0, -5.0, 0.0) is None


# ---------- cost


def test_cruise_edge_uses_table_rate(cost_model, cost_cfg):
    n1, n2 = Node(0.0, 0.0, 10.0), Node(20.0, 2.0, 10.0)  # VSP ~1.5 -> mode 12
    assert cost_model.cost(n1, n2) == pytest.approx(_expected(45000.0, 2.0, cost_cfg))


def test_braking_and_idle_edges(cost_model, cost_cfg):
    brake = cost_model.cost(Node(0.0, 0.0, 10.0), Node(16.0, 2.0, 6.0))
    assert brake == pytest.approx(_expected(15000.0, 2.0, cost_cfg))
    idle = cost_model.cost(Node(50.0, 4.0, 0.0), Node(50.0, 6.0, 0.0))  # stopped at a light
    assert idle == pytest.approx(_expected(11000.0, 2.0, cost_cfg))


def test_high_speed_edge(cost_model, cost_cfg):
    c = cost_model.cost(Node(0.0, 0.0, 25.0), Node(50.0, 2.0, 25.0))
    assert c == pytest.approx(_expected(200000.0, 2.0, cost_cfg))


def test_valid_edges_are_finite_and_non_negative(cost_model):
    for v1 in (0.0, 2.0, 7.5, 12.0, 19.0, 26.0):
        for v2 in (0.0, 3.0, 11.0, 18.0, 27.0):
            for dt in (0.5, 2.0, 4.0):
                n1 = Node(10.0, 1.0, v1)
                n2 = Node(10.0 + dt * (v1 + v2) / 2, 1.0 + dt, v2)
                c = cost_model.cost(n1, n2)
                assert math.isfinite(c) and c >= 0.0


@pytest.mark.parametrize(
    "n1, n2",
    [
        (Node(0.0, 2.0, 5.0), Node(10.0, 2.0, 5.0)),  # no time elapsed
        (Node(0.0, 3.0, 5.0), Node(10.0, 2.0, 5.0)),  # time backwards
        (Node(10.0, 0.0, 5.0), Node(5.0, 2.0, 5.0)),  # distance backwards
        (Node(0.0, 0.0, -1.0), Node(5.0, 2.0, 5.0)),
        (Node(0.0, 0.0, 5.0), Node(5.0, 2.0, -0.1)),
    ],
)
def test_invalid_edge_returns_sentinel_and_logs_once(cost_model, hooks, n1, n2):
    assert cost_model.cost(n1, n2) == MAX_COST
    calls = hooks.named("invalid_edge")
    assert len(calls) == 1
    args, _ = calls[0]
    assert args == (n1, n2)


def test_invalid_edge_reports_and_resets_counter(cost_model, hooks):
    cost_model.set_goal(Node(100.0, 0.0, 10.0))
    for i in range(3):
        cost_model.cost(Node(0.0, i, 5.0), Node(10.0, i + 2.0, 5.0))
    assert cost_model.cost_count == 3
    cost_model.cost(Node(0.0, 2.0, 5.0), Node(0.0, 1.0, 5.0))
    (_, kw), = hooks.named("invalid_edge")
    assert kw["evaluated"] == 3
    assert cost_model.cost_count == 0

    cost_model.cost(Node(0.0, 0.0, 5.0), Node(10.0, 2.0, 5.0))
    cost_model.set_goal(Node(100.0, 0.0, 10.0))
    assert cost_model.cost_count == 0


def test_missing_mode_falls_back_to_peak_rate(cost_cfg, hooks):
    table = BaseRateTable({1: [0, 0, 0, 11000.0, 0, 0], 40: [0, 0, 0, 520000.0, 0, 0]})
    cm = MovesFuelCostModel(cost_cfg, table=table, hooks=hooks)
    c = cm.cost(Node(0.0, 0.0, 10.0), Node(20.0, 2.0, 10.0))  # mode 12 is absent
    assert c == pytest.approx(_expected(520000.0, 2.0, cost_cfg))
    (args, kw), = hooks.named("opmode_fallback")
    assert kw["op_mode"] == 12 and kw["energy_rate"] == 520000.0


def test_time_only_weighting(table_path):
    cm = MovesFuelCostModel(MovesCostModel(base_rate_table=table_path, percent_cost_for_time=1.0))
    assert cm.cost(Node(0.0, 0.0, 10.0), Node(20.0, 2.0, 10.0)) == pytest.approx(2.0)


# ---------- goal / unusable


def test_goal_with_tolerances(cost_model):
    cost_model.set_goal(Node(200.0, 0.0, 15.0))
    cost_model.set_tolerances(Node(5.0, 0.0, 1.0))
    assert cost_model.is_goal(Node(195.0, 30.0, 14.0))
    assert cost_model.is_goal(Node(260.0, 30.0, 16.0))
    assert not cost_model.is_goal(Node(194.9, 30.0, 15.0))
    assert not cost_model.is_goal(Node(200.0, 30.0, 13.5))


def test_goal_without_tolerances(cost_model):
    cost_model.set_goal(Node(200.0, 0.0, 8.0))
    cost_model.set_tolerances(None)
    assert cost_model.is_goal(Node(200.0, 1e6, 8.0))
    assert cost_model.is_goal(Node(230.0, 0.0, 19.0))
    assert not cost_model.is_goal(Node(199.0, 0.0, 19.0))
    assert not cost_model.is_goal(Node(230.0, 0.0, 7.9))


def test_goal_is_monotonic_in_tolerance(cost_model):
    cost_model.set_goal(Node(100.0, 0.0, 10.0))
    nodes = [Node(d, 0.0, v) for d in (80.0, 95.0, 100.0, 130.0) for v in (5.0, 9.0, 10.0, 12.5)]
    tols = [Node(d, 0.0, v) for d in (0.0, 5.0, 25.0) for v in (0.0, 1.0, 3.0, 6.0)]
    for narrow in tols:
        for wide in tols:
            if wide.distance < narrow.distance or wide.speed < narrow.speed:
                continue
            for n in nodes:
                cost_model.set_tolerances(narrow)
                before = cost_model.is_goal(n)
                cost_model.set_tolerances(wide)
                assert cost_model.is_goal(n) or not before


def test_unusable_only_when_overshot_at_wrong_speed(cost_model):
    cost_model.set_goal(Node(100.0, 0.0, 10.0))
    cost_model.set_tolerances(Node(5.0, 0.0, 1.0))
    assert cost_model.is_unusable(Node(106.0, 0.0, 12.0))
    assert not cost_model.is_unusable(Node(106.0, 0.0, 10.5))
    assert not cost_model.is_unusable(Node(104.0, 0.0, 2.0))


def test_window_checks_require_tolerances(cost_model):
    cost_model.set_goal(Node(100.0, 0.0, 10.0))
    with pytest.raises(ToleranceNotSetError):
        cost_model.is_unusable(Node(10.0, 0.0, 10.0))
    with pytest.raises(ToleranceNotSetError):
        cost_model.heuristic(Node(10.0, 0.0, 10.0))


# ---------- heuristic


@pytest.fixture
def goal_set(cost_model):
    cost_model.set_goal(Node(200.0, 0.0, 20.0))
    cost_model.set_tolerances(Node(10.0, 0.0, 2.0))
    return cost_model


def test_heuristic_zero_at_goal(goal_set):
    for n in (Node(190.0, 12.0, 18.0), Node(200.0, 0.0, 20.0), Node(400.0, 99.0, 21.0)):
        assert goal_set.is_goal(n)
        assert goal_set.heuristic(n) == 0.0


def test_only_goal_tests_report_goal_reached(goal_set, hooks):
    n = Node(195.0, 12.0, 19.0)
    assert goal_set.heuristic(n) == 0.0
    assert hooks.named("goal_reached") == []
    assert goal_set.is_goal(n)
    ((args, kw),) = hooks.named("goal_reached")
    assert args == (n,) and kw["goal"] == Node(200.0, 0.0, 20.0)

def test_heuristic_infinite_past_window_or_unable_to_reach_cruise(goal_set):
    assert goal_set.heuristic(Node(211.0, 0.0, 5.0)) == math.inf
    # 5 -> 20 m/s at 2 m/s^2 needs 93.75 m, only 60 m left in the window
    assert goal_set.heuristic(Node(150.0, 0.0, 5.0)) == math.inf


def test_heuristic_accelerate_then_cruise(goal_set, cost_cfg):
    # 10 -> 20 m/s takes 5 s and 75 m, then 115 m at 20 m/s to the window start
    min_sec = 5.0 + 115.0 / 20.0
    assert goal_set.heuristic(Node(0.0, 0.0, 10.0)) == pytest.approx(
        _expected(11000.0, min_sec, cost_cfg)
    )


def test_heuristic_weight_scales(table_path):
    base = MovesFuelCostModel(MovesCostModel(base_rate_table=table_path))
    heavy = MovesFuelCostModel(MovesCostModel(base_rate_table=table_path, heuristic_weight=2.5))
    for cm in (base, heavy):
        cm.set_goal(Node(200.0, 0.0, 20.0))
        cm.set_tolerances(Node(10.0, 0.0, 2.0))
    n = Node(20.0, 3.0, 12.0)
    assert heavy.heuristic(n) == pytest.approx(2.5 * base.heuristic(n))


def test_heuristic_is_admissible_against_brute_force(cost_model, fine_cfg):
    goal, tol = Node(120.0, 0.0, 18.0), Node(10.0, 0.0, 3.0)
    cost_model.set_goal(goal)
    cost_model.set_tolerances(tol)
    gen = FinePathNeighbors(fine_cfg, FixedTimingOracle.always(SignalPhase.GREEN))
    gen.initialize([], 0, 2.0, 1.0)

    @lru_cache(maxsize=None)
    def best(n: Node) -> float:
        if cost_model.is_goal(n):
            return 0.0
        if cost_model.is_unusable(n) or n.time >= 12.0:
            return math.inf
        return min(
            (cost_model.cost(n, m) + best(m) for m in gen.neighbors(n)), default=math.inf
        )

    checked = 0
    for start in (Node(0.0, 0.0, 10.0), Node(0.0, 0.0, 14.0), Node(20.0, 2.0, 16.0)):
        h = cost_model.heuristic(start)
        optimal = best(start)
        assert math.isfinite(optimal)
        if math.isfinite(h):
            assert h <= optimal + 1e-9
            checked += 1
    assert checked == 3
