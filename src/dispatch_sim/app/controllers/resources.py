# dispatch_sim/app/controllers/resources.py
from dispatch_sim.app.events import ResourceAvailable, ResourceExpired
from dispatch_sim.app.protocols import RoadNetwork
from dispatch_sim.domain.entities.geography import LocationOnRoad
from dispatch_sim.domain.entities.resource import Resource, ResourceState
from dispatch_sim.domain.state import SimulationState
from dispatch_sim.io.business_events import ResourceExpiredBiz
from dispatch_sim.io.recorder import Recorder


class ResourceLifecycle:
    """
    Created -> Pending (pooled) -> Matched | Expired.

    Expiry is decided by batch rounds (a resource left over when resources
    outnumber agents), never by a per-resource timer. expire() does the
    counting; the ResourceExpired event that follows is bookkeeping only.
    """

    def __init__(
        self, state: SimulationState, network: RoadNetwork, recorder: Recorder | None = None
    ):
        self.state = state
        self.network = network
        self.recorder = recorder

    def create(
        self, rid: int, pickup: LocationOnRoad, dropoff: LocationOnRoad, available_time: float
    ) -> ResourceAvailable:
        r = Resource(
            id=rid,
            pickup=pickup,
            dropoff=dropoff,
            available_time=available_time,
            expiration_time=available_time + self.state.max_life_time,
            trip_time=self.network.travel_time_between(pickup, dropoff),
        )
        self.state.add_resource(r)
        return ResourceAvailable(t=available_time, resource_id=rid)

    # ------------ causal event handlers --------------

    def on_resource_available(self, ev: ResourceAvailable):
        r = self.state.resources[ev.resource_id]
        r.state = ResourceState.PENDING
        self.state.pool.append(r.id)
        self.state.counters.total_resources += 1
        return []

    def on_resource_expired(self, ev: ResourceExpired):
        self.state.waiting.pop(ev.resource_id, None)
        return []

    # ------------ transitions driven by batch rounds --------------

    def _count_expired(self, r: Resource, now: float, reason: str) -> None:
        r.state = ResourceState.EXPIRED
        c = self.state.counters
        c.expired_resources += 1
        c.total_resource_wait_time += self.state.max_life_time
        if self.recorder:
            self.recorder.emit(
                ResourceExpiredBiz(
                    run_id=self.recorder.run_id,
                    t=now,
                    name="ResourceExpired",
                    resource_id=r.id,
                    reason=reason,
                )
            )

    def expire(self, r: Resource, now: float) -> ResourceExpired:
        self._count_expired(r, now, "round_overflow")
        self.state.waiting[r.id] = r
        return ResourceExpired(t=max(now, r.expiration_time), resource_id=r.id)

    def match(self, r: Resource) -> None:
        r.state = ResourceState.MATCHED

    def finish(self, now: float) -> int:
        """Count whatever never reached a terminal state. Returns how many were counted."""
        late = [
            r
            for r in self.state.resources.values()
            if r.state in (ResourceState.CREATED, ResourceState.PENDING)
            and r.id not in self.state.pool
        ]
        late += [r for r in self.state.waiting.values() if r.state is not ResourceState.EXPIRED]
        for r in late:
            if r.state is ResourceState.CREATED:
                self.state.counters.total_resources += 1
            self._count_expired(r, now, "end_of_run")
        return len(late)
