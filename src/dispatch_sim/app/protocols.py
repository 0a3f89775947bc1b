from typing import Protocol, runtime_checkable

import numpy as np

from dispatch_sim.domain.entities.geography import Intersection, LocationOnRoad, Road


# ------------- Road network --------------------
@runtime_checkable
class RoadNetwork(Protocol):
    """
    Responsibilities:
    • Shortest travel time between two on-road locations (seconds, memoized).
    • Adjacency test and road lookup between intersections.
    Treated as a pure query service by the dispatch core.
    """

    def travel_time_between(self, a: LocationOnRoad, b: LocationOnRoad) -> float: ...
    def is_adjacent(self, a: Intersection, b: Intersection) -> bool: ...
    def road_to(self, a: Intersection, b: Intersection) -> Road: ...


# ------------- Routing strategies --------------------
@runtime_checkable
class RoutingStrategy(Protocol):
    """
    Search behaviour of one agent. Locations passed in are frozen values.
    Return values are untrusted: the agent lifecycle validates them.
    """

    def next_intersection(self, loc: LocationOnRoad, t: float) -> Intersection | None: ...
    def plan_search_route(self, loc: LocationOnRoad, t: float) -> None: ...
    def assigned_to(
        self,
        loc: LocationOnRoad,
        t: float,
        resource_id: int,
        pickup: LocationOnRoad,
        dropoff: LocationOnRoad,
    ) -> None: ...


# --------------- Policies -------------------------


@runtime_checkable
class MatchingPolicy(Protocol):
    """Turn a (resources x agents) benefit matrix into (resource_idx, agent_idx) pairs."""

    name: str

    def match(self, benefits: np.ndarray) -> list[tuple[int, int]]: ...
