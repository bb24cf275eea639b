import os
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator


class LogModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False
    sample_every: int = 1


# ----------------- COST MODELS ---------------------


class MovesCostModel(BaseModel):
    """MOVES fuel cost model. Default vehicle terms are MOVES passenger car values."""

    model_config = ConfigDict(extra="forbid")
    kind: Literal["moves"] = "moves"
    rolling_term_a: float = 0.156461  # kW - s/m
    rotating_term_b: float = 0.002002  # kW - s^2/m^2
    drag_term_c: float = 0.000493  # kW - s^3/m^3
    vehicle_mass_in_tons: float = 1.4788
    fixed_mass_factor: float = 1.4788
    base_rate_table: str
    fuel_normalization_denominator: float = 12_500.0  # J
    time_normalization_denominator: float = 1.0  # s
    heuristic_weight: float = 1.0
    percent_cost_for_time: float = 0.5
    max_velocity_mps: float = 20.0
    max_accel_mps2: float = 2.0

    @field_validator("base_rate_table")
    @classmethod
    def _expand(cls, v: str) -> str:
        return os.path.expandvars(os.path.expanduser(v))

    @field_validator(
        "fuel_normalization_denominator",
        "time_normalization_denominator",
        "heuristic_weight",
        "max_velocity_mps",
        "max_accel_mps2",
        "fixed_mass_factor",
    )
    @classmethod
    def _positive(cls, v: float, info: ValidationInfo) -> float:
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v

    @field_validator("percent_cost_for_time")
    @classmethod
    def _fraction(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("percent_cost_for_time must be within [0, 1]")
        return v

    @property
    def percent_cost_for_fuel(self) -> float:
        return 1.0 - self.percent_cost_for_time


CostModelUnion = Annotated[MovesCostModel, Field(discriminator="kind")]


# ----------------- NEIGHBOR GENERATORS ---------------------


class CoarseNeighborsModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["coarse"] = "coarse"
    default_accel: float = 2.0  # m/s^2
    maximum_speed_mps: float = 20.0
    crawling_speed_mps: float = 2.0
    acceptable_stop_distance_m: float = 6.0
    time_buffer_s: float = 4.0
    time_increment_s: float = 4.0
    speed_increment_mps: float = 2.0

    @field_validator("default_accel", "maximum_speed_mps", "time_increment_s", "speed_increment_mps")
    @classmethod
    def _positive(cls, v: float, info: ValidationInfo) -> float:
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v

    @model_validator(mode="after")
    def _check_speeds(self):
        if self.crawling_speed_mps < 0 or self.crawling_speed_mps > self.maximum_speed_mps:
            raise ValueError("crawling_speed_mps must be within [0, maximum_speed_mps]")
        return self


class FineNeighborsModel(CoarseNeighborsModel):
    kind: Literal["fine"] = "fine"
    time_increment_s: float = 2.0
    speed_increment_mps: float = 1.0
    debug_threshold_m: float = -1.0  # < 0 disables distance-gated debug output
    response_lag_s: float = 1.9
    allowable_speed_region_mps: float = 5.0


NeighborsUnion = Annotated[CoarseNeighborsModel | FineNeighborsModel, Field(discriminator="kind")]


# ----------------- SEARCH ---------------------


class SearchModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    max_expansions: int | None = 20_000
    max_frontier_size: int | None = 200_000
    time_budget_s: float | None = None  # wall clock, None => unbounded

    @field_validator("max_expansions", "max_frontier_size")
    @classmethod
    def _positive(cls, v: int | None, info: ValidationInfo) -> int | None:
        if v is not None and v <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v


# ------------------------------------------------------------------


class PlannerModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str = "ead"
    run_id: str = "local"
    log: LogModel = LogModel()
    cost: CostModelUnion
    coarse: CoarseNeighborsModel | None = None
    fine: FineNeighborsModel = Field(default_factory=FineNeighborsModel)
    search: SearchModel = Field(default_factory=SearchModel)
    require_coarse: bool = False  # fail the plan when the coarse pass finds nothing
