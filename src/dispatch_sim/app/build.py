# dispatch_sim/app/build.py
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from dispatch_sim.app.controllers.agents import AgentLifecycle
from dispatch_sim.app.controllers.batch import BatchWindowController
from dispatch_sim.app.controllers.resources import ResourceLifecycle
from dispatch_sim.app.events import AgentDropoff
from dispatch_sim.app.wiring import wire
from dispatch_sim.config.models import ScenarioModel
from dispatch_sim.domain.city_map import CityMap
from dispatch_sim.domain.entities.agent import Agent
from dispatch_sim.domain.entities.geography import LocationOnRoad
from dispatch_sim.domain.entities.resource import TripRecord
from dispatch_sim.domain.state import SimulationState
from dispatch_sim.io.kernel_logging import KernelLogging, configure_json_logging
from dispatch_sim.io.recorder import JsonlSink, MemorySink, Recorder
from dispatch_sim.io.report import Report
from dispatch_sim.runtime.registries import make_matching, resolve_agent_factory
from dispatch_sim.sim.hooks import NoopHooks
from dispatch_sim.sim.kernel import Kernel
from dispatch_sim.sim.rng import RNGRegistry


@dataclass
class App:
    kernel: Kernel
    rng: RNGRegistry
    state: SimulationState
    agents: AgentLifecycle
    resources: ResourceLifecycle
    batch: BatchWindowController
    recorder: Recorder
    start_time: float
    end_time: float

    def run(self) -> Report:
        self.kernel.run(until=self.end_time)
        self.batch.finish(self.kernel.now)
        return Report.from_state(self.state, end_time=self.end_time)


def build(
    cfg: ScenarioModel | Mapping,
    *,
    city_map: CityMap,
    trips: Iterable[TripRecord],
    hubs: Sequence[LocationOnRoad] = (),
    use_logging: bool = True,
    recorder: Recorder | None = None,
) -> App:
    # 0) Validate config
    model = cfg if isinstance(cfg, ScenarioModel) else ScenarioModel.model_validate(cfg)
    sim = model.sim

    # 1) RNG & trips (chronological; stable for equal times)
    rng_registry = RNGRegistry(sim.seed, scenario=model.name)
    records = sorted(trips, key=lambda tr: tr.available_time)
    t0 = records[0].available_time if records else 0.0
    end_time = max((tr.available_time for tr in records), default=t0) + sim.max_life_time_s

    # 2) Kernel (with hooks) & analytics
    if use_logging:
        configure_json_logging(level=model.log.level)
    hooks = (
        KernelLogging(
            run_id=model.run_id,
            level=model.log.level,
            debug=model.log.debug,
            sample_every=model.log.sample_every,
        )
        if use_logging
        else NoopHooks()
    )
    kernel = Kernel(hooks=hooks)
    if recorder is None:
        sink = JsonlSink() if use_logging else MemorySink()
        recorder = Recorder(sink, run_id=model.run_id)

    # 3) State & handlers (inject deps explicitly)
    state = SimulationState(max_life_time=sim.max_life_time_s, hubs=list(hubs))
    agents = AgentLifecycle(state, city_map, hub_detour_threshold=sim.hub_detour_threshold_s)
    resources = ResourceLifecycle(state, city_map, recorder=recorder)
    batch = BatchWindowController(
        kernel,
        state,
        agents,
        resources,
        make_matching(model.matching),
        period=sim.batch_period_s,
        window_start=t0 + sim.batch_period_s,
        recorder=recorder,
    )

    # 4) Wiring
    wire(kernel, agents=agents, resources=resources, batch=batch)

    # 5) Agents: random placement; introduction counts as a drop-off at t0
    make_strategy = resolve_agent_factory(model.routing.kind)
    placement = rng_registry.placement()
    deps = {"rng": rng_registry}
    for aid in range(sim.agents):
        loc = city_map.random_location(placement)
        strategy = make_strategy(aid, city_map, deps)
        state.add_agent(Agent(id=aid, loc=loc, strategy=strategy, start_search_time=t0))
        kernel.schedule(AgentDropoff(t=t0, agent_id=aid))

    # 6) Resources
    for rid, tr in enumerate(records):
        kernel.schedule(resources.create(rid, tr.pickup, tr.dropoff, tr.available_time))

    return App(kernel, rng_registry, state, agents, resources, batch, recorder, t0, end_time)
