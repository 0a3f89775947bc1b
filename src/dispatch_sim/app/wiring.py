# dispatch_sim/app/wiring.py
from dispatch_sim.app.controllers.agents import AgentLifecycle
from dispatch_sim.app.controllers.batch import BatchWindowController
from dispatch_sim.app.controllers.resources import ResourceLifecycle
from dispatch_sim.app.events import (
    AgentDropoff,
    AgentIntersectionReached,
    ResourceAvailable,
    ResourceExpired,
)
from dispatch_sim.sim.kernel import Kernel


def wire(
    kernel: Kernel,
    *,
    agents: AgentLifecycle,
    resources: ResourceLifecycle,
    batch: BatchWindowController,
) -> None:
    k = kernel

    # supply
    k.on(AgentIntersectionReached, agents.on_intersection_reached)
    k.on(AgentDropoff, agents.on_dropoff)

    # demand: the round must run before the arriving resource joins the next pool
    k.on(ResourceAvailable, batch.on_resource_available)
    k.on(ResourceAvailable, resources.on_resource_available)
    k.on(ResourceExpired, resources.on_resource_expired)
