# runtime/registries.py
from collections.abc import Callable
from typing import Any

from ead_planner.app.protocols import CostModel, NeighborGenerator, SignalPhaseOracle
from ead_planner.config.models import (
    CoarseNeighborsModel,
    CostModelUnion,
    FineNeighborsModel,
    MovesCostModel,
    NeighborsUnion,
)
from ead_planner.domain.ead.ead_cost import MovesFuelCostModel
from ead_planner.domain.ead.ead_neighbors_coarse import CoarsePathNeighbors
from ead_planner.domain.ead.ead_neighbors_fine import FinePathNeighbors
from ead_planner.runtime.resources import load_base_rate_table
from ead_planner.sim.hooks import PlannerHooks

CostModelFactory = Callable[[CostModelUnion, dict[str, Any]], CostModel]
NeighborsFactory = Callable[[NeighborsUnion, dict[str, Any]], NeighborGenerator]

_cost_registry: dict[str, CostModelFactory] = {}
_neighbors_registry: dict[str, NeighborsFactory] = {}


# ------------------- Cost model registries ---------------------------


def register_cost_model(kind: str):
    def deco(fn: CostModelFactory):
        _cost_registry[kind] = fn
        return fn

    return deco


def make_cost_model(cfg: CostModelUnion, *, hooks: PlannerHooks | None = None) -> CostModel:
    try:
        factory = _cost_registry[cfg.kind]
    except KeyError:
        raise ValueError(f"Unknown cost model kind {cfg.kind!r}")
    return factory(cfg, {"hooks": hooks})


@register_cost_model("moves")
def _make_moves(cfg: MovesCostModel, deps: dict[str, Any]) -> CostModel:
    return MovesFuelCostModel(
        cfg, table=load_base_rate_table(cfg.base_rate_table), hooks=deps.get("hooks")
    )


# ------------------- Neighbor generator registries ---------------------------


def register_neighbors(kind: str):
    def deco(fn: NeighborsFactory):
        _neighbors_registry[kind] = fn
        return fn

    return deco


def make_neighbors(
    cfg: NeighborsUnion, *, oracle: SignalPhaseOracle, hooks: PlannerHooks | None = None
) -> NeighborGenerator:
    try:
        factory = _neighbors_registry[cfg.kind]
    except KeyError:
        raise ValueError(f"Unknown neighbors kind {cfg.kind!r}")
    return factory(cfg, {"oracle": oracle, "hooks": hooks})


@register_neighbors("coarse")
def _make_coarse(cfg: CoarseNeighborsModel, deps: dict[str, Any]) -> NeighborGenerator:
    return CoarsePathNeighbors(cfg, deps["oracle"], hooks=deps.get("hooks"))


@register_neighbors("fine")
def _make_fine(cfg: FineNeighborsModel, deps: dict[str, Any]) -> NeighborGenerator:
    return FinePathNeighbors(cfg, deps["oracle"], hooks=deps.get("hooks"))
