# dispatch_sim/domain/state.py
from dataclasses import dataclass, field

from dispatch_sim.domain.entities.agent import Agent
from dispatch_sim.domain.entities.geography import LocationOnRoad
from dispatch_sim.domain.entities.resource import Resource


@dataclass
class Counters:
    total_resources: int = 0
    total_assignments: int = 0
    expired_resources: int = 0
    total_resource_wait_time: float = 0.0
    total_resource_trip_time: float = 0.0
    total_agent_search_time: float = 0.0
    total_agent_cruise_time: float = 0.0
    total_agent_approach_time: float = 0.0
    round_benefits: list[float] = field(default_factory=list)
    round_wall_ms: list[float] = field(default_factory=list)


@dataclass
class SimulationState:
    max_life_time: float = 600.0
    hubs: list[LocationOnRoad] = field(default_factory=list)
    agents: dict[int, Agent] = field(default_factory=dict)
    resources: dict[int, Resource] = field(default_factory=dict)
    idle_agent_ids: set[int] = field(default_factory=set)
    pool: list[int] = field(default_factory=list)  # resource ids, insertion order
    waiting: dict[int, Resource] = field(default_factory=dict)  # expired, expiration event pending
    counters: Counters = field(default_factory=Counters)

    def add_agent(self, a: Agent) -> None:
        self.agents[a.id] = a

    def add_resource(self, r: Resource) -> None:
        self.resources[r.id] = r

    def is_searching(self, agent_id: int) -> bool:
        return agent_id in self.idle_agent_ids

    def return_idle(self, a: Agent) -> None:
        self.idle_agent_ids.add(a.id)

    def take_idle(self, a: Agent) -> None:
        self.idle_agent_ids.discard(a.id)

    def idle_agents(self) -> list[Agent]:
        """Snapshot of searching agents in ascending id order."""
        return [self.agents[i] for i in sorted(self.idle_agent_ids)]

    def pooled_resources(self) -> list[Resource]:
        return [self.resources[i] for i in self.pool]
