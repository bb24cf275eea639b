from dataclasses import dataclass
from enum import Enum


class SignalPhase(Enum):
    RED = "red"
    YELLOW = "yellow"
    GREEN = "green"


@dataclass(frozen=True)
class PhasePrediction:
    phase: SignalPhase
    confidence: float = 1.0
    time_remaining: float | None = None  # seconds until the phase changes, if known


@dataclass(frozen=True)
class IntersectionData:
    id: int
    stop_bar_distance: float  # meters downtrack of plan origin
