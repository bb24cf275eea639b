# sim/hooks.py
from typing import Protocol

from ead_planner.domain.entities.node import Node


class PlannerHooks(Protocol):
    # search lifecycle
    def search_start(self, *, start: Node, goal: Node, tolerances: Node | None): ...
    def search_end(self, *, status, expansions, path_len, frontier, wall_ms): ...
    def expand(self, node: Node, *, g, f, frontier): ...

    # cost model
    def invalid_edge(self, n1: Node, n2: Node, *, evaluated: int): ...
    def opmode_fallback(self, n1: Node, n2: Node, *, op_mode, energy_rate): ...
    def goal_reached(self, node: Node, *, goal: Node, tolerances: Node | None): ...

    # neighbor generation
    def initialized(self, *, generator: str, **kw): ...
    def dead_end(self, node: Node, *, reason: str): ...
    def candidate_rejected(self, node: Node, *, speed: float, reason: str): ...


class NoopHooks:
    def search_start(self, **_):
        pass

    def search_end(self, **_):
        pass

    def expand(self, *_, **__):
        pass

    def invalid_edge(self, *_, **__):
        pass

    def opmode_fallback(self, *_, **__):
        pass

    def goal_reached(self, *_, **__):
        pass

    def initialized(self, **_):
        pass

    def dead_end(self, *_, **__):
        pass

    def candidate_rejected(self, *_, **__):
        pass
