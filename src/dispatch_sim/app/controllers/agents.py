# dispatch_sim/app/controllers/agents.py
from dataclasses import dataclass

from dispatch_sim.app.events import AgentDropoff, AgentIntersectionReached
from dispatch_sim.app.protocols import RoadNetwork
from dispatch_sim.domain.entities.agent import Agent
from dispatch_sim.domain.entities.geography import LocationOnRoad
from dispatch_sim.domain.entities.resource import Resource
from dispatch_sim.domain.errors import RoutingContractError
from dispatch_sim.domain.state import SimulationState
from dispatch_sim.sim.event import BaseEvent


@dataclass
class Assignment:
    agent_id: int
    resource_id: int
    position: LocationOnRoad  # where the agent was at match time
    arrival: float  # at pickup
    target: LocationOnRoad  # dropoff location or redirect hub
    detour: float  # dropoff -> hub time, 0 when not redirected
    via_hub: bool
    event: AgentDropoff


class AgentLifecycle:
    """
    Searching <-> Busy transitions of agents.

    Searching agents are exactly the ids in state.idle_agent_ids; each has one
    pending AgentIntersectionReached (or its introduction AgentDropoff).
    """

    def __init__(
        self,
        state: SimulationState,
        network: RoadNetwork,
        hub_detour_threshold: float = 60.0,
    ):
        self.state = state
        self.network = network
        self.hub_detour_threshold = hub_detour_threshold

    # ------------ causal event handlers --------------

    def on_intersection_reached(self, ev: AgentIntersectionReached):
        a = self.state.agents[ev.agent_id]
        loc = a.loc
        if not loc.at_intersection:
            raise RoutingContractError(a.id, f"not at an intersection: {loc}")

        nxt = a.strategy.next_intersection(loc, ev.t)
        if nxt is None:
            raise RoutingContractError(a.id, "strategy returned no next intersection")
        if not self.network.is_adjacent(loc.road.end, nxt):
            raise RoutingContractError(
                a.id, f"intersection {nxt.id} is not adjacent to {loc.road.end.id}"
            )

        road = self.network.road_to(loc.road.end, nxt)
        a.loc = LocationOnRoad.at_end(road)
        return [AgentIntersectionReached(t=ev.t + road.travel_time, agent_id=a.id)]

    def on_dropoff(self, ev: AgentDropoff):
        a = self.state.agents[ev.agent_id]
        a.start_search_time = ev.t
        a.strategy.plan_search_route(a.loc, ev.t)
        self.state.return_idle(a)

        # finish the current road, then hand over to the strategy
        t_next = ev.t + a.loc.remaining
        a.loc = LocationOnRoad.at_end(a.loc.road)
        return [AgentIntersectionReached(t=t_next, agent_id=a.id)]

    # ------------ match transition --------------

    def position_at(self, agent: Agent, now: float, pending: BaseEvent | None) -> LocationOnRoad:
        """Interpolate back from the pending event: agent.loc is reached at pending.t."""
        loc = agent.loc
        if pending is None:
            return loc
        elapsed = loc.elapsed - (pending.t - now)
        elapsed = min(max(elapsed, 0.0), loc.road.travel_time)
        return LocationOnRoad(loc.road, elapsed)

    def nearest_hub(self, loc: LocationOnRoad) -> tuple[float, LocationOnRoad] | None:
        best = None
        for hub in self.state.hubs:
            tt = self.network.travel_time_between(loc, hub)
            if best is None or tt < best[0]:
                best = (tt, hub)
        return best

    def assign(
        self, agent: Agent, resource: Resource, now: float, pending: BaseEvent | None
    ) -> Assignment:
        """
        Agent leaves Searching for `resource`. `pending` is the agent's cancelled
        event; the caller owns removal from the kernel.
        """
        position = self.position_at(agent, now, pending)
        arrival = now + self.network.travel_time_between(position, resource.pickup)
        agent.strategy.assigned_to(position, now, resource.id, resource.pickup, resource.dropoff)

        hub = self.nearest_hub(resource.dropoff)
        via_hub = hub is not None and hub[0] < self.hub_detour_threshold
        if via_hub:
            detour, target = hub
        else:
            detour, target = 0.0, resource.dropoff

        self.state.take_idle(agent)
        agent.loc = target
        ev = AgentDropoff(
            t=arrival + resource.trip_time + detour, agent_id=agent.id, resource_id=resource.id
        )
        return Assignment(
            agent_id=agent.id,
            resource_id=resource.id,
            position=position,
            arrival=arrival,
            target=target,
            detour=detour,
            via_hub=via_hub,
            event=ev,
        )
