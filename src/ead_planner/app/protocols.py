import sys
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from ead_planner.domain.entities.intersection import IntersectionData, PhasePrediction
from ead_planner.domain.entities.node import Node
from ead_planner.domain.entities.obstacle import TrackedObstacle

# returned by CostModel.cost for an edge that must never be taken
MAX_COST = sys.float_info.max


# ------------- Collaborators --------------------
@runtime_checkable
class SignalPhaseOracle(Protocol):
    """
    Responsibilities:
    • Predict the phase of an intersection's signal at an absolute plan time.
    Intersection index refers to the ordered list handed to the neighbor generator.
    """

    def phase_at_time(self, intersection_index: int, time: float) -> PhasePrediction: ...


@runtime_checkable
class CollisionChecker(Protocol):
    """
    Responsibilities:
    • Report whether the host travelling from `start` to `candidate` conflicts
      with the predicted occupancy of any tracked obstacle.
    """

    def conflicts(
        self, start: Node, candidate: Node, obstacles: Sequence[TrackedObstacle]
    ) -> bool: ...


# ------------- Planner components --------------------
@runtime_checkable
class CostModel(Protocol):
    def cost(self, n1: Node, n2: Node) -> float: ...
    def heuristic(self, n: Node) -> float: ...
    def is_goal(self, n: Node) -> bool: ...
    def is_unusable(self, n: Node) -> bool: ...
    def set_goal(self, goal: Node) -> None: ...
    def set_tolerances(self, tolerances: Node | None) -> None: ...


@runtime_checkable
class NeighborGenerator(Protocol):
    """
    Responsibilities:
    • Produce the reachable successors of a node in a deterministic order.
    Must be initialized before each planning invocation.
    """

    def initialize(
        self,
        intersections: Sequence[IntersectionData],
        num_intersections: int,
        time_increment: float,
        speed_increment: float,
        collision_checker: CollisionChecker | None = None,
    ) -> None: ...
    def neighbors(self, node: Node) -> list[Node]: ...


@runtime_checkable
class CorridorFollower(Protocol):
    def set_coarse_plan(self, path: Sequence[Node] | None) -> None: ...


@runtime_checkable
class ObstacleAware(Protocol):
    def set_obstacles(self, obstacles: Sequence[TrackedObstacle]) -> None: ...
