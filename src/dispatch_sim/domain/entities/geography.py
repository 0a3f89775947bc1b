import math
from dataclasses import dataclass

EARTH_RADIUS_M = 6_371_000.0


@dataclass(frozen=True)
class Intersection:
    id: int
    lat: float
    lon: float


@dataclass(frozen=True)
class Road:
    """Directed road segment; travel_time in simulated seconds."""

    start: Intersection
    end: Intersection
    travel_time: float

    @property
    def key(self) -> tuple[int, int]:
        return self.start.id, self.end.id


@dataclass(frozen=True)
class LocationOnRoad:
    road: Road
    elapsed: float  # travel time from road.start

    def __post_init__(self):
        if not (0.0 <= self.elapsed <= self.road.travel_time):
            raise ValueError(
                f"elapsed {self.elapsed} outside [0, {self.road.travel_time}] on road {self.road.key}"
            )

    @classmethod
    def at_end(cls, road: Road) -> "LocationOnRoad":
        return cls(road, road.travel_time)

    @property
    def at_intersection(self) -> bool:
        return self.elapsed == self.road.travel_time

    @property
    def remaining(self) -> float:
        return self.road.travel_time - self.elapsed

    def lat_lon(self) -> tuple[float, float]:
        tt = self.road.travel_time
        f = self.elapsed / tt if tt > 0 else 1.0
        a, b = self.road.start, self.road.end
        return a.lat + f * (b.lat - a.lat), a.lon + f * (b.lon - a.lon)


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    p1, p2 = math.radians(lat1), math.radians(lat2)
    dp = p2 - p1
    dl = math.radians(lon2 - lon1)
    h = math.sin(dp / 2) ** 2 + math.cos(p1) * math.cos(p2) * math.sin(dl / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(h)))


def great_circle_distance(a: LocationOnRoad, b: LocationOnRoad) -> float:
    """Great-circle distance in metres between two on-road locations."""
    return haversine_m(*a.lat_lon(), *b.lat_lon())
