# domain/entities/resource.py
from dataclasses import dataclass
from enum import Enum

from dispatch_sim.domain.entities.geography import LocationOnRoad


class ResourceState(Enum):
    CREATED = "created"
    PENDING = "pending"  # in the batch pool
    MATCHED = "matched"
    EXPIRED = "expired"


@dataclass(eq=False)
class Resource:
    id: int
    pickup: LocationOnRoad
    dropoff: LocationOnRoad
    available_time: float
    expiration_time: float  # informational; expiry is decided by batch rounds
    trip_time: float
    state: ResourceState = ResourceState.CREATED

    def owner(self) -> tuple[str, int]:
        return ("resource", self.id)


@dataclass(frozen=True)
class TripRecord:
    """One already map-matched request from the ingestion stream."""

    pickup: LocationOnRoad
    dropoff: LocationOnRoad
    available_time: float
