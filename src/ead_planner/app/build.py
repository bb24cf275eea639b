# ead_planner/app/build.py
from collections.abc import Mapping
from dataclasses import dataclass

from ead_planner.app.controllers.ead import EadPlanner
from ead_planner.app.protocols import CollisionChecker, CostModel, SignalPhaseOracle
from ead_planner.config.models import PlannerModel
from ead_planner.io.planner_logging import PlannerLogging  # JSON logs
from ead_planner.io.recorder import PlanSink, Recorder
from ead_planner.runtime.registries import make_cost_model, make_neighbors
from ead_planner.sim.hooks import NoopHooks, PlannerHooks
from ead_planner.sim.search import AStarSolver


@dataclass
class App:
    config: PlannerModel
    hooks: PlannerHooks
    cost_model: CostModel
    planner: EadPlanner
    recorder: Recorder | None


def build(
    cfg: PlannerModel | Mapping,
    *,
    oracle: SignalPhaseOracle,
    collision_checker: CollisionChecker | None = None,
    sinks: tuple[PlanSink, ...] = (),
    use_logging: bool = True,
    hooks: PlannerHooks | None = None,
) -> App:
    # 0) Validate config
    model = cfg if isinstance(cfg, PlannerModel) else PlannerModel.model_validate(cfg)

    # 1) Hooks
    if hooks is None:
        hooks = (
            PlannerLogging(
                run_id=model.run_id,
                level=model.log.level,
                debug=model.log.debug,
                sample_every=model.log.sample_every,
            )
            if use_logging
            else NoopHooks()
        )

    # 2) Cost model (loads the base rate table; a bad table stops here)
    cost_model = make_cost_model(model.cost, hooks=hooks)

    # 3) Neighbor generators and solvers; one cost model serves both passes
    fine = AStarSolver(
        cost_model, make_neighbors(model.fine, oracle=oracle, hooks=hooks), model.search, hooks=hooks
    )
    coarse = None
    if model.coarse is not None:
        coarse = AStarSolver(
            cost_model,
            make_neighbors(model.coarse, oracle=oracle, hooks=hooks),
            model.search,
            hooks=hooks,
        )

    # 4) Trajectory hand-off
    recorder = Recorder(*sinks) if sinks else None

    # 5) Grid increments each pass initializes its generator with
    steps = {"fine_step": (model.fine.time_increment_s, model.fine.speed_increment_mps)}
    if model.coarse is not None:
        steps["coarse_step"] = (model.coarse.time_increment_s, model.coarse.speed_increment_mps)

    planner = EadPlanner(
        fine,
        coarse,
        collision_checker=collision_checker,
        recorder=recorder,
        require_coarse=model.require_coarse,
        run_id=model.run_id,
        **steps,
    )
    return App(model, hooks, cost_model, planner, recorder)
