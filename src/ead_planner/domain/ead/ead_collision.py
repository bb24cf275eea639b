# ead_planner/domain/ead/ead_collision.py
from collections.abc import Sequence

import numpy as np

from ead_planner.app.protocols import CollisionChecker
from ead_planner.domain.entities.node import Node
from ead_planner.domain.entities.obstacle import TrackedObstacle


class ConstantVelocityCollisionChecker(CollisionChecker):
    """
    Predicts each obstacle downtrack at constant speed and flags a host edge that comes
    within `min_gap_m` of an obstacle's occupied interval at any sample time.
    """

    def __init__(self, min_gap_m: float = 2.0, sample_dt: float = 0.25, horizon_s: float = 30.0):
        self.min_gap = min_gap_m
        self.sample_dt = sample_dt
        self.horizon = horizon_s

    def conflicts(
        self, start: Node, candidate: Node, obstacles: Sequence[TrackedObstacle]
    ) -> bool:
        if not obstacles or candidate.time <= start.time:
            return False
        n = max(2, int(np.ceil((candidate.time - start.time) / self.sample_dt)) + 1)
        ts = np.linspace(start.time, candidate.time, n)
        # uniform acceleration along the edge
        a = (candidate.speed - start.speed) / (candidate.time - start.time)
        tau = ts - start.time
        host = start.distance + start.speed * tau + 0.5 * a * tau**2

        for ob in obstacles:
            live = ts <= ob.time + self.horizon
            if not live.any():
                continue
            front = ob.distance + ob.speed * (ts[live] - ob.time)
            rear = front - ob.length
            h = host[live]
            if np.any((h >= rear - self.min_gap) & (h <= front + self.min_gap)):
                return True
        return False
