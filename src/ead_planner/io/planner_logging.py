# io/planner_logging.py
import json
import logging
import math
import sys

from ead_planner.domain.entities.node import Node
from ead_planner.sim.hooks import NoopHooks


class PlanRecordFormatter(logging.Formatter):
    """
    One JSON object per record. Planner fields ride in `record.extra`; floats that
    are not finite (an unreachable heuristic, a missing cost) are written as strings
    so every line stays valid JSON.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload = {"level": record.levelname, "msg": record.getMessage(), "logger": record.name}
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update({k: _finite_or_str(v) for k, v in extra.items()})
        return json.dumps(payload, default=str, allow_nan=False)


def _finite_or_str(v):
    if isinstance(v, float) and not math.isfinite(v):
        return str(v)
    return v


def _default_json_logger(name="ead_planner", level="INFO", stream=None):
    logger = logging.getLogger(name)
    if not logger.handlers:
        h = logging.StreamHandler(stream or sys.stdout)
        h.setFormatter(PlanRecordFormatter())
        logger.addHandler(h)
        logger.setLevel(level)
    return logger


class PlannerLogging(NoopHooks):
    """
    One place to shape and emit structured logs for the search, the cost model
    and the neighbor generators.
    """

    def __init__(
        self,
        run_id: str = "local",
        level: str = "INFO",
        debug: bool = False,
        sample_every: int = 1000,
        logger: logging.Logger | None = None,
    ):
        self.run_id, self.debug, self.sample_every = run_id, debug, max(1, sample_every)
        self.log = logger or _default_json_logger(level=level)
        self._expanded = 0

    # --------------- Helpers -----------------------------

    def _emit(self, level: str, msg: str, **extra):
        payload = {"run_id": self.run_id}
        for k, v in extra.items():
            payload[k] = v.as_dict() if isinstance(v, Node) else v
        self.log.log(getattr(logging, level), msg, extra={"extra": payload})

    # --------------------------------------------------------

    # search lifecycle

    def search_start(self, *, start, goal, tolerances):
        self._expanded = 0
        self._emit("INFO", "search_start", start=start, goal=goal, tolerances=tolerances)

    def search_end(self, *, status, expansions, path_len, frontier, wall_ms):
        self._emit(
            "INFO",
            "search_end",
            status=getattr(status, "name", status),
            expansions=expansions,
            path_len=path_len,
            frontier=frontier,
            wall_ms=round(wall_ms, 3),
        )

    def expand(self, node, *, g, f, frontier):
        self._expanded += 1
        if self.debug and (self._expanded % self.sample_every) == 0:
            self._emit("DEBUG", "expand", node=node, g=g, f=f, frontier=frontier)

    # cost model

    def invalid_edge(self, n1, n2, *, evaluated):
        self._emit("WARNING", "invalid_edge", n1=n1, n2=n2, evaluated=evaluated)

    def opmode_fallback(self, n1, n2, *, op_mode, energy_rate):
        self._emit(
            "INFO", "opmode_fallback", n1=n1, n2=n2, op_mode=op_mode, energy_rate=energy_rate
        )

    def goal_reached(self, node, *, goal, tolerances):
        if self.debug:
            self._emit("DEBUG", "goal_reached", node=node, goal=goal, tolerances=tolerances)

    # neighbor generation

    def initialized(self, *, generator, **kw):
        self._emit("INFO", "neighbors_initialized", generator=generator, **kw)

    def dead_end(self, node, *, reason):
        if self.debug:
            self._emit("DEBUG", "dead_end", node=node, reason=reason)

    def candidate_rejected(self, node, *, speed, reason):
        if self.debug:
            self._emit("DEBUG", "candidate_rejected", node=node, speed=speed, reason=reason)
