# ead_planner/app/controllers/ead.py
from collections.abc import Sequence

from ead_planner.app.protocols import CollisionChecker, CorridorFollower, ObstacleAware
from ead_planner.domain.entities.intersection import IntersectionData
from ead_planner.domain.entities.node import Node
from ead_planner.domain.entities.obstacle import TrackedObstacle
from ead_planner.io.recorder import PlanPublished, Recorder
from ead_planner.sim.search import AStarSolver, SearchContext, SearchResult, SearchStatus


class EadPlanner:
    """
    Two-pass planning: a coarse search lays out a corridor, the fine search refines it
    under tighter kinematic and signal constraints. One call per guidance cycle; the
    caller must not overlap calls for the same vehicle.

    `fine_step` and `coarse_step` are the (time increment s, speed increment m/s) grids
    each generator is initialized with.
    """

    def __init__(
        self,
        fine: AStarSolver,
        coarse: AStarSolver | None = None,
        *,
        collision_checker: CollisionChecker | None = None,
        recorder: Recorder | None = None,
        require_coarse: bool = False,
        run_id: str = "local",
        fine_step: tuple[float, float] = (2.0, 1.0),
        coarse_step: tuple[float, float] = (4.0, 2.0),
    ):
        self.fine = fine
        self.coarse = coarse
        self.collision_checker = collision_checker
        self.recorder = recorder
        self.require_coarse = require_coarse
        self.run_id = run_id
        self.fine_step = fine_step
        self.coarse_step = coarse_step
        self.last_coarse: SearchResult | None = None

    def plan(
        self,
        start: Node,
        goal: Node,
        tolerances: Node,
        intersections: Sequence[IntersectionData],
        obstacles: Sequence[TrackedObstacle] = (),
    ) -> SearchResult:
        ctx = SearchContext(goal=goal, tolerances=tolerances)
        fine_gen = self.fine.neighbors

        corridor: list[Node] | None = None
        self.last_coarse = None
        if self.coarse is not None:
            self.coarse.neighbors.initialize(intersections, len(intersections), *self.coarse_step)
            self.last_coarse = self.coarse.solve(start, ctx)
            if self.last_coarse.found:
                corridor = self.last_coarse.path
            elif self.require_coarse:
                return self._publish(
                    SearchResult(self.last_coarse.status, expansions=self.last_coarse.expansions)
                )

        fine_gen.initialize(
            intersections, len(intersections), *self.fine_step, self.collision_checker
        )
        if isinstance(fine_gen, CorridorFollower):
            fine_gen.set_coarse_plan(corridor)
        if isinstance(fine_gen, ObstacleAware):
            fine_gen.set_obstacles(obstacles)

        return self._publish(self.fine.solve(start, ctx))

    def _publish(self, result: SearchResult) -> SearchResult:
        if self.recorder is not None and result.status is SearchStatus.GOAL_FOUND:
            self.recorder.publish(PlanPublished.from_result(self.run_id, result))
        return result
