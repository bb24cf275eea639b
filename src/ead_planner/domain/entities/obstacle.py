from dataclasses import dataclass


@dataclass(frozen=True)
class TrackedObstacle:
    id: str
    distance: float  # meters downtrack of plan origin, at `time`
    speed: float  # m/s along the host route
    time: float = 0.0  # seconds since plan start of the observation
    length: float = 5.0

    def distance_at(self, t: float) -> float:
        return self.distance + self.speed * (t - self.time)
