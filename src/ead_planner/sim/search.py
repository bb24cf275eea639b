# sim/search.py

import heapq
import math
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from ead_planner.app.protocols import MAX_COST, CostModel, NeighborGenerator
from ead_planner.config.models import SearchModel
from ead_planner.domain.entities.node import Node

from .hooks import NoopHooks, PlannerHooks


class SearchStatus(Enum):
    INITIALIZED = "initialized"
    RUNNING = "running"
    GOAL_FOUND = "goal_found"
    EXHAUSTED = "exhausted"
    BUDGET_EXCEEDED = "budget_exceeded"


@dataclass(frozen=True)
class SearchContext:
    """Goal and acceptance region of a single planning invocation."""

    goal: Node
    tolerances: Node


@dataclass
class SearchResult:
    status: SearchStatus
    path: list[Node] = field(default_factory=list)
    cost: float = math.inf
    expansions: int = 0
    wall_ms: float = 0.0

    @property
    def found(self) -> bool:
        return self.status is SearchStatus.GOAL_FOUND


class AStarSolver:
    """
    Best-first search over nodes produced by a neighbor generator and scored by a cost model.

    Frontier order is g + h; ties prefer the larger distance, then insertion order.
    Nodes are identified by value. Work is bounded by expansions, frontier size and wall
    clock; running out of budget yields BUDGET_EXCEEDED with no path.
    """

    def __init__(
        self,
        cost_model: CostModel,
        neighbors: NeighborGenerator,
        cfg: SearchModel | None = None,
        *,
        hooks: PlannerHooks | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.cost_model = cost_model
        self.neighbors = neighbors
        self.cfg = cfg or SearchModel()
        self._hooks = hooks or NoopHooks()
        self._clock = clock
        self.status = SearchStatus.INITIALIZED

    def solve(self, start: Node, context: SearchContext) -> SearchResult:
        cm = self.cost_model
        cm.set_goal(context.goal)
        cm.set_tolerances(context.tolerances)

        t0 = self._clock()
        self.status = SearchStatus.RUNNING
        self._hooks.search_start(start=start, goal=context.goal, tolerances=context.tolerances)

        seq = 0
        frontier: list[tuple[float, float, int, float, Node]] = []
        best_g: dict[Node, float] = {start: 0.0}
        parents: dict[Node, Node] = {}
        heapq.heappush(frontier, (cm.heuristic(start), -start.distance, seq, 0.0, start))

        expansions = 0
        result: SearchResult | None = None
        while frontier:
            if self._over_budget(expansions, len(frontier), t0):
                result = SearchResult(SearchStatus.BUDGET_EXCEEDED, expansions=expansions)
                break

            f, _, _, g, node = heapq.heappop(frontier)
            if g > best_g[node]:
                # stale entry: a cheaper route to this node was found after it was pushed
                continue

            if cm.is_goal(node):
                path = self._reconstruct(parents, node)
                result = SearchResult(SearchStatus.GOAL_FOUND, path, g, expansions)
                break
            if cm.is_unusable(node):
                continue

            expansions += 1
            self._hooks.expand(node, g=g, f=f, frontier=len(frontier))
            for nxt in self.neighbors.neighbors(node):
                edge = cm.cost(node, nxt)
                if edge >= MAX_COST:
                    continue
                g2 = g + edge
                if g2 >= best_g.get(nxt, math.inf):
                    continue
                best_g[nxt] = g2
                parents[nxt] = node
                seq += 1
                heapq.heappush(frontier, (g2 + cm.heuristic(nxt), -nxt.distance, seq, g2, nxt))

        if result is None:
            result = SearchResult(SearchStatus.EXHAUSTED, expansions=expansions)
        result.wall_ms = (self._clock() - t0) * 1000
        self.status = result.status
        self._hooks.search_end(
            status=result.status,
            expansions=expansions,
            path_len=len(result.path),
            frontier=len(frontier),
            wall_ms=result.wall_ms,
        )
        return result

    # ------------------------------------------------------------------

    def _over_budget(self, expansions: int, frontier: int, t0: float) -> bool:
        c = self.cfg
        if c.max_expansions is not None and expansions >= c.max_expansions:
            return True
        if c.max_frontier_size is not None and frontier > c.max_frontier_size:
            return True
        if c.time_budget_s is not None and (self._clock() - t0) > c.time_budget_s:
            return True
        return False

    @staticmethod
    def _reconstruct(parents: dict[Node, Node], node: Node) -> list[Node]:
        path = [node]
        while node in parents:
            node = parents[node]
            path.append(node)
        path.reverse()
        return path
