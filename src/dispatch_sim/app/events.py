from dataclasses import dataclass

from dispatch_sim.sim.event import BaseEvent


# Supply-side: one pending event per agent
@dataclass(order=True)
class AgentEvent(BaseEvent):
    agent_id: int

    def owner(self):
        return ("agent", self.agent_id)


@dataclass(order=True)
class AgentIntersectionReached(AgentEvent):
    pass


@dataclass(order=True)
class AgentDropoff(AgentEvent):
    """Also used for an agent's introduction into the system."""

    resource_id: int | None = None


# Demand-side
@dataclass(order=True)
class ResourceEvent(BaseEvent):
    resource_id: int

    def owner(self):
        return ("resource", self.resource_id)


@dataclass(order=True)
class ResourceAvailable(ResourceEvent):
    pass


@dataclass(order=True)
class ResourceExpired(ResourceEvent):
    pass
