# domain/city_map.py
import logging
import math

import networkx as nx
import numpy as np

from dispatch_sim.domain.entities.geography import Intersection, LocationOnRoad, Road

logger = logging.getLogger(__name__)


class CityMap:
    """
    Road-network oracle over a directed networkx graph.

    Nodes carry "lat"/"lon", edges carry "travel_time" (seconds). Shortest
    intersection-to-intersection times are computed with Dijkstra on first use
    per source node and memoized.

    Only the largest strongly connected component of the input graph is kept,
    so every location on the map can reach every other one.
    """

    def __init__(self, graph: nx.DiGraph):
        graph = largest_strong_component(graph)
        self.graph = graph
        self.intersections: dict[int, Intersection] = {
            n: Intersection(n, float(d["lat"]), float(d["lon"])) for n, d in graph.nodes(data=True)
        }
        self.roads: dict[tuple[int, int], Road] = {
            (u, v): Road(self.intersections[u], self.intersections[v], float(d["travel_time"]))
            for u, v, d in graph.edges(data=True)
        }
        self._road_list = list(self.roads.values())
        self._sssp: dict[int, dict[int, float]] = {}

    @classmethod
    def grid(
        cls,
        rows: int,
        cols: int,
        *,
        travel_time: float = 20.0,
        spacing_deg: float = 0.001,
        origin: tuple[float, float] = (40.75, -73.99),
    ) -> "CityMap":
        """Two-way grid city; node id = r * cols + c."""
        g = nx.grid_2d_graph(rows, cols).to_directed()
        g = nx.convert_node_labels_to_integers(g, ordering="sorted", label_attribute="rc")
        for n, d in g.nodes(data=True):
            r, c = d.pop("rc")
            d["lat"] = origin[0] + r * spacing_deg
            d["lon"] = origin[1] + c * spacing_deg
        nx.set_edge_attributes(g, float(travel_time), "travel_time")
        return cls(g)

    # ---- topology -------------------------------------------------

    def is_adjacent(self, a: Intersection, b: Intersection) -> bool:
        return self.graph.has_edge(a.id, b.id)

    def road_to(self, a: Intersection, b: Intersection) -> Road:
        return self.roads[(a.id, b.id)]

    def neighbors(self, a: Intersection) -> list[Intersection]:
        return [self.intersections[v] for v in self.graph.successors(a.id)]

    def location_of(self, node_id: int) -> LocationOnRoad:
        """Location exactly at an intersection, expressed on one of its incoming roads."""
        preds = sorted(self.graph.predecessors(node_id))
        if not preds:
            raise ValueError(f"intersection {node_id} has no incoming road")
        return LocationOnRoad.at_end(self.roads[(preds[0], node_id)])

    def random_location(self, rng: np.random.Generator) -> LocationOnRoad:
        road = self._road_list[int(rng.integers(0, len(self._road_list)))]
        return LocationOnRoad(road, float(rng.uniform(0.0, road.travel_time)))

    # ---- travel times ----------------------------------------------

    def travel_time_from(self, source: int) -> dict[int, float]:
        times = self._sssp.get(source)
        if times is None:
            times = nx.single_source_dijkstra_path_length(self.graph, source, weight="travel_time")
            self._sssp[source] = times
        return times

    def intersection_travel_time(self, a: Intersection, b: Intersection) -> float:
        return self.travel_time_from(a.id).get(b.id, math.inf)

    def travel_time_between(self, a: LocationOnRoad, b: LocationOnRoad) -> float:
        if a.road == b.road and a.elapsed <= b.elapsed:
            return b.elapsed - a.elapsed
        return a.remaining + self.intersection_travel_time(a.road.end, b.road.start) + b.elapsed

    def shortest_path(self, a: Intersection, b: Intersection) -> list[Intersection]:
        ids = nx.dijkstra_path(self.graph, a.id, b.id, weight="travel_time")
        return [self.intersections[n] for n in ids]


def largest_strong_component(graph: nx.DiGraph) -> nx.DiGraph:
    """Subgraph on the biggest strongly connected node set; ties go to the lowest node id."""
    if graph.number_of_nodes() == 0 or nx.is_strongly_connected(graph):
        return graph
    keep = max(nx.strongly_connected_components(graph), key=lambda c: (len(c), -min(c)))
    logger.warning(
        "road graph is not strongly connected; keeping %d of %d intersections",
        len(keep),
        graph.number_of_nodes(),
    )
    return graph.subgraph(keep).copy()
