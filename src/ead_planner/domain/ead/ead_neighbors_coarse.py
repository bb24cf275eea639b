# ead_planner/domain/ead/ead_neighbors_coarse.py
from collections.abc import Sequence

from ead_planner.app.protocols import CollisionChecker, SignalPhaseOracle
from ead_planner.config.models import CoarseNeighborsModel
from ead_planner.domain.ead.ead_neighbors_fine import (
    FLOATING_POINT_EPSILON,
    stopping_profile,
    unique,
)
from ead_planner.domain.ead.ead_signals import SignalTiming
from ead_planner.domain.entities.intersection import IntersectionData
from ead_planner.domain.entities.node import Node
from ead_planner.sim.hooks import NoopHooks, PlannerHooks


class CoarsePathNeighbors:
    """
    Neighbors on the coarse grid: fixed time step, speeds on a regular grid between the
    acceleration bounds, full time buffer around stop bar crossings.
    """

    def __init__(
        self,
        cfg: CoarseNeighborsModel,
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
        self.time_buffer = cfg.time_buffer_s
        self.acceptable_stop_dist = cfg.acceptable_stop_distance_m
        self.time_inc = cfg.time_increment_s
        self.speed_inc = cfg.speed_increment_mps

    def initialize(
        self,
        intersections: Sequence[IntersectionData],
        num_intersections: int,
        time_increment: float,
        speed_increment: float,
        collision_checker: CollisionChecker | None = None,
    ) -> None:
        # the coarse grid ignores other road users; the fine pass filters them
        self.signals.reset(intersections, num_intersections)
        self.time_inc, self.speed_inc = time_increment, speed_increment
        self.acceptable_stop_dist = max(
            time_increment * speed_increment, self.cfg.acceptable_stop_distance_m
        )
        self.hooks.initialized(
            generator="coarse",
            time_inc=time_increment,
            speed_inc=speed_increment,
            intersections=len(self.signals.intersections),
        )

    def neighbors(self, node: Node) -> list[Node]:
        cur_t, cur_d, cur_v = node.time, node.distance, node.speed

        t_stop, d_stop = stopping_profile(cur_v, self.max_accel)
        if self.signals.violation(cur_d, cur_d + d_stop, cur_t, cur_t + t_stop, self.time_buffer):
            self.hooks.dead_end(node, reason="signal_violation")
            return []

        dt = self.time_inc
        new_t = cur_t + dt
        min_v = max(cur_v - self.max_accel * dt, 0.0)
        max_v = min(cur_v + self.max_accel * dt, self.speed_limit)

        index = self.signals.current_index(cur_d)
        near_bar = index >= 0 and self.signals.dist_to_stop_bar(index, cur_d) <= self.acceptable_stop_dist
        floor = min(max(min_v, self.crawling_speed), max_v)
        speeds = [floor]
        if near_bar and min_v < FLOATING_POINT_EPSILON:
            speeds.insert(0, min_v)

        v = floor + self.speed_inc
        while v < max_v:
            speeds.append(v)
            v += self.speed_inc
        speeds.append(max_v)

        out = []
        for v in unique(speeds):
            new_d = cur_d + dt * (cur_v + v) * 0.5
            if self.signals.violation(cur_d, new_d, cur_t, new_t, self.time_buffer):
                continue
            out.append(Node(new_d, new_t, v))
        return out
