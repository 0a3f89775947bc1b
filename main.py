# main.py
import json

import numpy as np

from dispatch_sim.app.build import build
from dispatch_sim.domain.city_map import CityMap
from dispatch_sim.domain.entities.resource import TripRecord


def random_trips(city_map: CityMap, n: int, *, start: float, horizon_s: float, seed: int):
    rng = np.random.default_rng(seed)
    times = np.sort(rng.uniform(start, start + horizon_s, size=n))
    return [
        TripRecord(city_map.random_location(rng), city_map.random_location(rng), float(t))
        for t in times
    ]


def run(horizon_s: float = 3600.0):
    city = CityMap.grid(12, 12, travel_time=25.0)
    start = 1_700_000_000.0  # simulation time is Unix seconds
    cfg = {
        "name": "grid-demo",
        "run_id": "demo-1",
        "sim": {"seed": 7, "agents": 40},
        "log": {"level": "WARNING"},
        "matching": {"kind": "hungarian"},
        "routing": {"kind": "random_destination"},
    }
    hubs = [city.location_of(0), city.location_of(143)]
    trips = random_trips(city, 400, start=start, horizon_s=horizon_s, seed=11)

    app = build(cfg, city_map=city, trips=trips, hubs=hubs, use_logging=False)
    report = app.run()
    print(json.dumps(report.as_dict(), indent=2))


if __name__ == "__main__":
    run()
