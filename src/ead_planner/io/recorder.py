# io/recorder.py
"""
Hand-off of finished trajectories to the execution side. The planner publishes only
plans that reached the goal; every sink sees them in publication order.
"""
import json
import sys
from dataclasses import dataclass, field
from typing import Protocol, TextIO

from ead_planner.domain.entities.node import Node
from ead_planner.sim.search import SearchResult


@dataclass
class PlanPublished:
    run_id: str
    status: str
    cost: float
    path: list[Node] = field(default_factory=list)
    expansions: int = 0

    @classmethod
    def from_result(cls, run_id: str, result: SearchResult) -> "PlanPublished":
        return cls(
            run_id=run_id,
            status=result.status.value,
            cost=result.cost,
            path=list(result.path),
            expansions=result.expansions,
        )

    def as_dict(self) -> dict:
        return {
            "run_id": self.run_id,
            "status": self.status,
            "cost": self.cost,
            "expansions": self.expansions,
            "path": [n.as_dict() for n in self.path],
        }


class PlanSink(Protocol):
    def write(self, plan: PlanPublished) -> None: ...


class JsonlSink:
    """One plan per line; flushed so a follower reading the stream sees it at once."""

    def __init__(self, fp: TextIO = sys.stdout):
        self.fp = fp

    def write(self, plan: PlanPublished) -> None:
        self.fp.write(json.dumps(plan.as_dict()) + "\n")
        self.fp.flush()


class MemorySink:
    def __init__(self):
        self.plans: list[PlanPublished] = []

    def write(self, plan: PlanPublished) -> None:
        self.plans.append(plan)

    @property
    def latest(self) -> PlanPublished | None:
        return self.plans[-1] if self.plans else None


class Recorder:
    def __init__(self, *sinks: PlanSink):
        self.sinks = sinks or (JsonlSink(),)

    def publish(self, plan: PlanPublished) -> None:
        for s in self.sinks:
            s.write(plan)
