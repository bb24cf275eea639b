# ead_planner/domain/ead/ead_oracles.py
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from ead_planner.app.protocols import SignalPhaseOracle
from ead_planner.domain.entities.intersection import PhasePrediction, SignalPhase


@dataclass(frozen=True)
class PhaseInterval:
    start: float  # inclusive, s
    end: float  # inclusive, s
    phase: SignalPhase


@dataclass(frozen=True)
class CyclePlan:
    """Fixed-time plan: green, yellow, red durations repeating from `offset`."""

    green: float
    yellow: float
    red: float
    offset: float = 0.0

    @property
    def length(self) -> float:
        return self.green + self.yellow + self.red

    def phase_at(self, t: float) -> PhasePrediction:
        x = (t - self.offset) % self.length
        if x < self.green:
            return PhasePrediction(SignalPhase.GREEN, time_remaining=self.green - x)
        if x < self.green + self.yellow:
            return PhasePrediction(SignalPhase.YELLOW, time_remaining=self.green + self.yellow - x)
        return PhasePrediction(SignalPhase.RED, time_remaining=self.length - x)


class FixedTimingOracle(SignalPhaseOracle):
    """
    Phase predictions from known timing. Per intersection index either a cycle plan or a
    list of explicit intervals; times outside every interval get `default`.
    """

    def __init__(
        self,
        intervals: Mapping[int, Sequence[PhaseInterval]] | None = None,
        cycles: Mapping[int, CyclePlan] | None = None,
        default: SignalPhase = SignalPhase.GREEN,
    ):
        self.intervals = {k: list(v) for k, v in (intervals or {}).items()}
        self.cycles = dict(cycles or {})
        self.default = default
        self.queries = 0

    @classmethod
    def always(cls, phase: SignalPhase) -> "FixedTimingOracle":
        return cls(default=phase)

    def phase_at_time(self, intersection_index: int, time: float) -> PhasePrediction:
        self.queries += 1
        if intersection_index in self.cycles:
            return self.cycles[intersection_index].phase_at(time)
        for iv in self.intervals.get(intersection_index, ()):
            if iv.start <= time <= iv.end:
                return PhasePrediction(iv.phase, time_remaining=iv.end - time)
        return PhasePrediction(self.default)
