# dispatch_sim/policy/routing.py
from collections import deque

import numpy as np

from dispatch_sim.app.protocols import RoutingStrategy
from dispatch_sim.domain.city_map import CityMap
from dispatch_sim.domain.entities.geography import Intersection, LocationOnRoad


class RandomWalkRouting(RoutingStrategy):
    """Cruise by picking a uniformly random outgoing road at every intersection."""

    def __init__(self, agent_id: int, city_map: CityMap, rng: np.random.Generator):
        self.agent_id = agent_id
        self.map = city_map
        self.rng = rng

    def next_intersection(self, loc: LocationOnRoad, t: float) -> Intersection | None:
        options = self.map.neighbors(loc.road.end)
        if not options:
            return None
        return options[int(self.rng.integers(0, len(options)))]

    def plan_search_route(self, loc: LocationOnRoad, t: float) -> None:
        pass

    def assigned_to(self, loc, t, resource_id, pickup, dropoff) -> None:
        pass


class RandomDestinationRouting(RoutingStrategy):
    """
    Drive the shortest path to a random intersection, then pick another one.
    The route is dropped when the agent is assigned and re-planned after drop-off.
    """

    def __init__(self, agent_id: int, city_map: CityMap, rng: np.random.Generator):
        self.agent_id = agent_id
        self.map = city_map
        self.rng = rng
        self.route: deque[Intersection] = deque()

    def _random_destination(self) -> Intersection:
        ids = list(self.map.intersections)
        return self.map.intersections[ids[int(self.rng.integers(0, len(ids)))]]

    def plan_search_route(self, loc: LocationOnRoad, t: float) -> None:
        start = loc.road.end
        dest = self._random_destination()
        if dest == start:
            self.route = deque()
            return
        path = self.map.shortest_path(start, dest)
        self.route = deque(path[1:])

    def next_intersection(self, loc: LocationOnRoad, t: float) -> Intersection | None:
        if not self.route:
            self.plan_search_route(loc, t)
        if not self.route:
            # destination was the current intersection; take any road out
            options = self.map.neighbors(loc.road.end)
            return options[int(self.rng.integers(0, len(options)))] if options else None
        return self.route.popleft()

    def assigned_to(self, loc, t, resource_id, pickup, dropoff) -> None:
        self.route.clear()
