# ead_planner/domain/ead/ead_signals.py
import math
from collections.abc import Sequence

from ead_planner.app.protocols import SignalPhaseOracle
from ead_planner.domain.entities.intersection import IntersectionData, PhasePrediction, SignalPhase


class SignalTiming:
    """Stop bar geometry of the intersections ahead plus phase lookup through the oracle."""

    def __init__(self, oracle: SignalPhaseOracle):
        self.oracle = oracle
        self.intersections: list[IntersectionData] = []
        # caller's index of each entry in `intersections`; the oracle is keyed by it
        self._order: list[int] = []

    def reset(self, intersections: Sequence[IntersectionData], num_intersections: int) -> None:
        """Keep the first `num_intersections` entries, walked nearest stop bar first."""
        n = min(num_intersections, len(intersections))
        self._order = sorted(range(n), key=lambda i: intersections[i].stop_bar_distance)
        self.intersections = [intersections[i] for i in self._order]

    def current_index(self, distance: float) -> int:
        """Index of the first intersection whose stop bar is still ahead, or -1."""
        for i, ix in enumerate(self.intersections):
            if ix.stop_bar_distance > distance:
                return i
        return -1

    def dist_to_stop_bar(self, index: int, distance: float) -> float:
        if index < 0:
            return math.inf
        return self.intersections[index].stop_bar_distance - distance

    def phase_at(self, index: int, time: float) -> PhasePrediction:
        return self.oracle.phase_at_time(self._order[index], time)

    def crossing_time(
        self, index: int, start_dist: float, end_dist: float, start_time: float, end_time: float
    ) -> float:
        bar = self.intersections[index].stop_bar_distance
        if end_dist <= start_dist:
            return start_time
        frac = (bar - start_dist) / (end_dist - start_dist)
        return start_time + frac * (end_time - start_time)

    def violation(
        self,
        start_dist: float,
        end_dist: float,
        start_time: float,
        end_time: float,
        buffer: float,
    ) -> bool:
        """
        True when moving from start to end crosses a stop bar while the signal is red at
        the crossing instant, or at the instant minus or plus `buffer` seconds.
        """
        index = self.current_index(start_dist)
        if index < 0:
            return False

        # a long step may cross more than one stop bar
        while index < len(self.intersections) and self.dist_to_stop_bar(index, end_dist) <= 0.0:
            t = self.crossing_time(index, start_dist, end_dist, start_time, end_time)
            if any(
                self.phase_at(index, probe).phase is SignalPhase.RED
                for probe in (t - buffer, t, t + buffer)
            ):
                return True
            index += 1
        return False
