# dispatch_sim/policy/cost_matrix.py
from collections.abc import Callable, Sequence

import numpy as np

from dispatch_sim.domain.entities.agent import Agent
from dispatch_sim.domain.entities.geography import LocationOnRoad, great_circle_distance
from dispatch_sim.domain.entities.resource import Resource

BenefitMatrixBuilder = Callable[[Sequence[Resource], Sequence[Agent]], np.ndarray]


def benefit(trip_m: float, approach_m: float) -> float:
    """Share of the driven distance that is paid trip; 1.0 when nothing has to be driven."""
    total = trip_m + approach_m
    if total <= 0.0:
        return 1.0
    return trip_m / total


def build_benefit_matrix(
    resources: Sequence[Resource],
    agents: Sequence[Agent],
    distance: Callable[[LocationOnRoad, LocationOnRoad], float] = great_circle_distance,
) -> np.ndarray:
    """Rows follow `resources` order, columns follow `agents` order."""
    out = np.zeros((len(resources), len(agents)), dtype=float)
    for i, r in enumerate(resources):
        trip = distance(r.pickup, r.dropoff)
        for j, a in enumerate(agents):
            out[i, j] = benefit(trip, distance(a.loc, r.pickup))
    return out
