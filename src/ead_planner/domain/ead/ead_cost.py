# ead_planner/domain/ead/ead_cost.py
"""
MOVES-based fuel cost model for the EAD trajectory search.

Edge cost is a linear combination of normalized fuel energy and normalized
travel time. Fuel energy comes from the vehicle specific power (VSP) of the
edge, binned into a MOVES operating mode and looked up in the base rate table.
Assumes a flat road and uniform acceleration between the two nodes.
"""

import math

from ead_planner.app.protocols import MAX_COST
from ead_planner.config.models import MovesCostModel
from ead_planner.domain.ead.ead_base_rates import BaseRateTable
from ead_planner.domain.entities.node import Node
from ead_planner.sim.hooks import NoopHooks, PlannerHooks

GRAVITY = 9.8  # m/s^2
ROAD_GRADE = 0.0  # rad
SEC_PER_HR = 3600.0
J_PER_KJ = 1000.0

IDLE_MODE = 1
BRAKING_MODE = 0

# MOVES bins are defined in mph; converted here
FIFTY_MPH_IN_MPS = 22.352
TWENTY_FIVE_MPH_IN_MPS = 11.176
ONE_MPH_IN_MPS = 0.44704

# (upper VSP bound, mode) per speed band, checked in order; last entry catches the rest
_HIGH_SPEED_BINS = ((6.0, 33), (12.0, 35), (18.0, 37), (24.0, 38), (30.0, 39), (math.inf, 40))
_MID_SPEED_BINS = (
    (0.0, 21),
    (3.0, 22),
    (6.0, 23),
    (9.0, 24),
    (12.0, 25),
    (18.0, 27),
    (24.0, 28),
    (30.0, 29),
    (math.inf, 30),
)
_LOW_SPEED_BINS = ((0.0, 11), (3.0, 12), (6.0, 13), (9.0, 14), (12.0, 15), (math.inf, 16))


class ToleranceNotSetError(RuntimeError):
    pass


def _bin(vsp: float, bins) -> int:
    for upper, mode in bins:
        if vsp < upper:
            return mode
    return bins[-1][1]


def operating_mode(vsp: float, velocity: float, acceleration: float) -> int | None:
    """
    MOVES operating mode for the given VSP (kW/ton), speed (m/s) and acceleration (m/s^2).
    Returns None outside the table's domain.
    """
    # Simplification of: a <= -2 OR (a < -1 for three consecutive seconds)
    if acceleration <= -1.0:
        return BRAKING_MODE
    if velocity >= FIFTY_MPH_IN_MPS:
        return _bin(vsp, _HIGH_SPEED_BINS)
    if -ONE_MPH_IN_MPS <= velocity < ONE_MPH_IN_MPS:
        return IDLE_MODE
    if TWENTY_FIVE_MPH_IN_MPS <= velocity < FIFTY_MPH_IN_MPS:
        return _bin(vsp, _MID_SPEED_BINS)
    if 0.0 <= velocity < TWENTY_FIVE_MPH_IN_MPS:
        return _bin(vsp, _LOW_SPEED_BINS)
    return None


def kj_per_hr_to_j_per_s(kj_per_hr: float) -> float:
    return J_PER_KJ * (kj_per_hr / SEC_PER_HR)


class MovesFuelCostModel:
    def __init__(
        self,
        cfg: MovesCostModel,
        *,
        table: BaseRateTable | None = None,
        hooks: PlannerHooks | None = None,
    ):
        self.cfg = cfg
        # loading happens once; a bad table fails construction
        self.table = table if table is not None else BaseRateTable.from_csv(cfg.base_rate_table)
        self.hooks = hooks or NoopHooks()

        self.percent_cost_for_time = cfg.percent_cost_for_time
        self.percent_cost_for_fuel = cfg.percent_cost_for_fuel
        self.peak_energy_rate = self.table.peak_energy_rate

        self.goal = Node(0.0, 0.0, 0.0)
        self.tolerances: Node | None = None
        self._num_costs = 0

    # ---------------- invocation state ----------------

    def set_goal(self, goal: Node) -> None:
        self.goal = goal
        self._num_costs = 0

    def set_tolerances(self, tolerances: Node | None) -> None:
        self.tolerances = tolerances

    @property
    def cost_count(self) -> int:
        """Costs evaluated since the goal was set or the previous invalid edge."""
        return self._num_costs

    def _require_tolerances(self) -> Node:
        if self.tolerances is None:
            raise ToleranceNotSetError("tolerances must be set before goal window evaluation")
        return self.tolerances

    # ---------------- physics ----------------

    def vsp(self, acceleration: float, average_speed: float) -> float:
        c = self.cfg
        v = average_speed
        return (
            c.rolling_term_a * v
            + c.rotating_term_b * v * v
            + c.drag_term_c * v * v * v
            + c.vehicle_mass_in_tons * v * (acceleration + GRAVITY * math.sin(ROAD_GRADE))
        ) / c.fixed_mass_factor

    def energy_joules(self, op_mode: int, dt: float) -> float:
        return kj_per_hr_to_j_per_s(self.table.energy_rate(op_mode)) * dt

    def _combine(self, joules: float, dt: float) -> float:
        fuel = joules / self.cfg.fuel_normalization_denominator
        time = dt / self.cfg.time_normalization_denominator
        return fuel * self.percent_cost_for_fuel + time * self.percent_cost_for_time

    # ---------------- cost model ----------------

    def cost(self, n1: Node, n2: Node) -> float:
        if (
            n2.time <= n1.time
            or n2.distance < n1.distance
            or n1.speed < 0
            or n2.speed < 0
        ):
            self.hooks.invalid_edge(n1, n2, evaluated=self._num_costs)
            self._num_costs = 0
            return MAX_COST
        self._num_costs += 1

        dt = n2.time - n1.time
        avg_v = (n1.speed + n2.speed) / 2.0
        a = (n2.speed - n1.speed) / dt
        op_mode = operating_mode(self.vsp(a, avg_v), avg_v, a)

        if op_mode is None or op_mode not in self.table:
            # conservative: the highest rate known to the table
            self.hooks.opmode_fallback(n1, n2, op_mode=op_mode, energy_rate=self.peak_energy_rate)
            joules = kj_per_hr_to_j_per_s(self.peak_energy_rate) * dt
        else:
            joules = self.energy_joules(op_mode, dt)

        return self._combine(joules, dt)

    def heuristic(self, n: Node) -> float:
        """
        Fastest trajectory to the goal ignoring signals and other vehicles, costed at idle
        fuel rate. With heuristic_weight == 1 this never overestimates the remaining cost.
        """
        if self._in_goal_window(n):
            return 0.0
        tol = self._require_tolerances()

        window_end = self.goal.distance + tol.distance
        if n.distance > window_end:
            return math.inf

        v_max, a_max = self.cfg.max_velocity_mps, self.cfg.max_accel_mps2
        time_to_cruise = max(v_max - n.speed, 0.0) / a_max
        dist_to_cruise = n.speed * time_to_cruise + 0.5 * a_max * time_to_cruise**2
        if dist_to_cruise > window_end - n.distance:
            return math.inf

        remaining = max(self.goal.distance - tol.distance - n.distance, 0.0)
        if remaining <= dist_to_cruise:
            # goal window opens while still accelerating
            min_sec = (math.sqrt(n.speed**2 + 2.0 * a_max * remaining) - n.speed) / a_max
        else:
            min_sec = time_to_cruise + (remaining - dist_to_cruise) / v_max

        joules = self.energy_joules(IDLE_MODE, min_sec)
        return self._combine(joules, min_sec) * self.cfg.heuristic_weight

    def is_goal(self, n: Node) -> bool:
        """
        Past the target distance at the target speed. Time is left out since there is no
        way to predict how long will be spent at a light; cost still minimizes it.
        """
        if not self._in_goal_window(n):
            return False
        self.hooks.goal_reached(n, goal=self.goal, tolerances=self.tolerances)
        return True

    def _in_goal_window(self, n: Node) -> bool:
        goal, tol = self.goal, self.tolerances
        if tol is None:
            return n.distance >= goal.distance and n.speed >= goal.speed
        return n.distance >= goal.distance - tol.distance and abs(n.speed - goal.speed) <= tol.speed

    def is_unusable(self, n: Node) -> bool:
        tol = self._require_tolerances()
        return (
            n.distance > self.goal.distance + tol.distance
            and abs(n.speed - self.goal.speed) > tol.speed
        )
