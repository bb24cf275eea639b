from dataclasses import dataclass


@dataclass(frozen=True)
class Node:
    """A point in the planning state space.

    distance: meters downtrack of the plan origin
    time: seconds since plan start
    speed: meters/second
    """

    distance: float
    time: float
    speed: float

    def as_dict(self) -> dict[str, float]:
        return {"distance": self.distance, "time": self.time, "speed": self.speed}

    def __str__(self) -> str:
        return f"Node(d={self.distance:.2f}, t={self.time:.2f}, v={self.speed:.2f})"
