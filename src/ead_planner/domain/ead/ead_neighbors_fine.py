# ead_planner/domain/ead/ead_neighbors_fine.py
from collections.abc import Sequence

from ead_planner.app.protocols import CollisionChecker, SignalPhaseOracle
from ead_planner.config.models import FineNeighborsModel
from ead_planner.domain.ead.ead_signals import SignalTiming
from ead_planner.domain.entities.intersection import IntersectionData, SignalPhase
from ead_planner.domain.entities.node import Node
from ead_planner.domain.entities.obstacle import TrackedObstacle
from ead_planner.sim.hooks import NoopHooks, PlannerHooks

FLOATING_POINT_EPSILON = 0.1  # m/s, below this a node is considered stopped
FINE_BUFFER_FRACTION = 0.25  # fine plan uses a quarter of the configured time buffer


def stopping_profile(speed: float, decel: float) -> tuple[float, float]:
    """(time, distance) to come to rest from `speed` under constant `decel`."""
    t = speed / decel
    return t, 0.5 * speed * t


def unique(speeds: list[float]) -> list[float]:
    seen: set[float] = set()
    out = []
    for v in speeds:
        if v not in seen:
            seen.add(v)
            out.append(v)
    return out


class FinePathNeighbors:
    """
    Viable neighbors of a node in the fine grid: a response-lag aware time step,
    an optional corridor around a coarse plan and an optional collision filter.
    """

    def __init__(
        self,
        cfg: FineNeighborsModel,
        oracle: SignalPhaseOracle,
        *,
        hooks: PlannerHooks | None = None,
    ):
        self.cfg = cfg
        self.hooks = hooks or NoopHooks()
        self.signals = SignalTiming(oracle)

        self.max_accel = cfg.default_accel
        self.speed_limit = cfg.maximum_speed_mps
        self.crawling_speed = cfg.crawling_speed_mps
        self.time_buffer = cfg.time_buffer_s * FINE_BUFFER_FRACTION
        self.response_lag = cfg.response_lag_s
        self.allowable_speed_region = cfg.allowable_speed_region_mps
        self.acceptable_stop_dist = cfg.acceptable_stop_distance_m

        self.time_inc = cfg.time_increment_s
        self.speed_inc = cfg.speed_increment_mps
        self.collision_checker: CollisionChecker | None = None
        self.obstacles: tuple[TrackedObstacle, ...] = ()
        self.path: list[Node] | None = None

    def initialize(
        self,
        intersections: Sequence[IntersectionData],
        num_intersections: int,
        time_increment: float,
        speed_increment: float,
        collision_checker: CollisionChecker | None = None,
    ) -> None:
        self.signals.reset(intersections, num_intersections)
        self.time_inc, self.speed_inc = time_increment, speed_increment
        self.collision_checker = collision_checker
        # never narrower than the distance covered by a couple of increments
        self.acceptable_stop_dist = max(
            1.1 * 2.0 * time_increment * speed_increment, self.cfg.acceptable_stop_distance_m
        )
        self.hooks.initialized(
            generator="fine",
            time_inc=time_increment,
            speed_inc=speed_increment,
            acceptable_stop_dist=self.acceptable_stop_dist,
            intersections=len(self.signals.intersections),
        )

    def set_coarse_plan(self, path: Sequence[Node] | None) -> None:
        self.path = list(path) if path else None

    def set_obstacles(self, obstacles: Sequence[TrackedObstacle]) -> None:
        self.obstacles = tuple(obstacles)

    # ------------------------------------------------------------------

    def neighbors(self, node: Node) -> list[Node]:
        cur_t, cur_d, cur_v = node.time, node.distance, node.speed

        # stopping from here would still run a red: this branch is dead
        t_stop, d_stop = stopping_profile(cur_v, self.max_accel)
        if self.signals.violation(cur_d, cur_d + d_stop, cur_t, cur_t + t_stop, self.time_buffer):
            self.hooks.dead_end(node, reason="signal_violation")
            return []

        dt = max(self.time_inc, self.response_lag)
        new_t = cur_t + dt

        out: list[Node] = []
        for v in self.viable_speeds(node, dt):
            new_d = cur_d + dt * (cur_v + v) * 0.5
            if self.signals.violation(cur_d, new_d, cur_t, new_t, self.time_buffer):
                self._debug(node, v, "signal_violation")
            elif not self.in_allowable_speed_region(v, new_d):
                self._debug(node, v, "outside_corridor")
            else:
                out.append(Node(new_d, new_t, v))

        if self.collision_checker is not None and self.obstacles:
            kept = []
            for n in out:
                if self.collision_checker.conflicts(node, n, self.obstacles):
                    self._debug(node, n.speed, "conflict")
                else:
                    kept.append(n)
            out = kept
        return out

    def viable_speeds(self, node: Node, dt: float) -> list[float]:
        cur_t, cur_d, cur_v = node.time, node.distance, node.speed
        min_v = max(cur_v - self.max_accel * dt, 0.0)
        max_v = min(cur_v + self.max_accel * dt, self.speed_limit)

        index = self.signals.current_index(cur_d)
        near_bar = index >= 0 and self.signals.dist_to_stop_bar(index, cur_d) <= self.acceptable_stop_dist
        green_next = (
            near_bar and self.signals.phase_at(index, cur_t + dt).phase is SignalPhase.GREEN
        )

        # stopped at the bar: stay stopped until the light turns green
        if near_bar and cur_v < FLOATING_POINT_EPSILON and not green_next:
            return [0.0]

        if near_bar and min_v < FLOATING_POINT_EPSILON and not green_next:
            speeds = [min_v]  # 0.0 whenever a full stop is reachable within dt
        else:
            speeds = [min(max(min_v, self.crawling_speed), max_v)]

        if self.crawling_speed < cur_v <= max_v:
            speeds.append(cur_v)

        v = cur_v - self.speed_inc
        while v > min_v:
            if self.crawling_speed < v <= max_v:
                speeds.append(v)
            v -= self.speed_inc

        v = cur_v + self.speed_inc
        while v < max_v:
            if v > self.crawling_speed:
                speeds.append(v)
            v += self.speed_inc
        speeds.append(max_v)

        return unique(speeds)

    def in_allowable_speed_region(self, speed: float, distance: float) -> bool:
        """Within the corridor around the coarse plan's speed, interpolated at `distance`."""
        path = self.path
        if not path:
            return True
        if distance <= path[0].distance or distance >= path[-1].distance:
            return True
        for prev, nxt in zip(path, path[1:]):
            if prev.distance <= distance <= nxt.distance:
                span = nxt.distance - prev.distance
                if span <= 0.0:
                    planned = max(prev.speed, nxt.speed)
                else:
                    planned = prev.speed + (distance - prev.distance) / span * (nxt.speed - prev.speed)
                return abs(planned - speed) <= self.allowable_speed_region
        return True

    def _debug(self, node: Node, speed: float, reason: str) -> None:
        threshold = self.cfg.debug_threshold_m
        if threshold >= 0.0 and node.distance >= threshold:
            self.hooks.candidate_rejected(node, speed=speed, reason=reason)
