# tests/app/test_batch_rounds.py
from types import SimpleNamespace

import numpy as np
import pytest

from dispatch_sim.app.controllers.agents import AgentLifecycle
from dispatch_sim.app.controllers.batch import BatchWindowController, RoundOutcome
from dispatch_sim.app.controllers.resources import ResourceLifecycle
from dispatch_sim.app.events import (
    AgentDropoff,
    AgentIntersectionReached,
    ResourceAvailable,
    ResourceExpired,
)
from dispatch_sim.app.wiring import wire
from dispatch_sim.domain.city_map import CityMap
from dispatch_sim.domain.entities.agent import Agent
from dispatch_sim.domain.entities.geography import LocationOnRoad
from dispatch_sim.domain.entities.resource import ResourceState
from dispatch_sim.domain.state import SimulationState
from dispatch_sim.io.recorder import MemorySink, Recorder
from dispatch_sim.policy.cost_matrix import build_benefit_matrix
from dispatch_sim.policy.matching import HungarianMatchingPolicy, StableMatchingPolicy
from dispatch_sim.sim.kernel import Kernel

# ---------- Helpers ----------


class ParkedRouting:
    """Never asked to move in these tests; records assignment callbacks."""

    def __init__(self):
        self.assigned = []

    def next_intersection(self, loc, t):
        return None

    def plan_search_route(self, loc, t):
        pass

    def assigned_to(self, loc, t, resource_id, pickup, dropoff):
        self.assigned.append((t, resource_id))


def on(city: CityMap, u: int, v: int, elapsed: float) -> LocationOnRoad:
    return LocationOnRoad(city.roads[(u, v)], elapsed)


def build_world(n_agents, n_resources, *, matrix=None, policy=None, available_time=10.0):
    city = CityMap.grid(3, 3, travel_time=20.0)
    state = SimulationState()
    kernel = Kernel()
    sink = MemorySink()
    rec = Recorder(sink, run_id="t")
    agents = AgentLifecycle(state, city)
    resources = ResourceLifecycle(state, city, recorder=rec)

    for aid in range(n_agents):
        a = Agent(aid, city.location_of(aid), ParkedRouting(), start_search_time=0.0)
        state.add_agent(a)
        state.return_idle(a)
    for rid in range(n_resources):
        ev = resources.create(rid, on(city, 3, 4, 5.0), on(city, 4, 5, 15.0), available_time)
        resources.on_resource_available(ev)

    if matrix is not None:
        fixed = np.array(matrix, dtype=float)

        def build_matrix(rs, ags):
            assert fixed.shape == (len(rs), len(ags))
            return fixed

    else:
        build_matrix = build_benefit_matrix

    batch = BatchWindowController(
        kernel,
        state,
        agents,
        resources,
        policy or HungarianMatchingPolicy(),
        window_start=30.0,
        build_matrix=build_matrix,
        recorder=rec,
    )
    return SimpleNamespace(
        city=city,
        state=state,
        kernel=kernel,
        sink=sink,
        agents=agents,
        resources=resources,
        batch=batch,
    )


# ---------- Round semantics ----------


def test_two_resources_three_agents_leaves_one_agent_idle():
    w = build_world(3, 2, matrix=[[0.9, 0.1, 0.2], [0.2, 0.8, 0.3]])
    rnd, out = w.batch.run_round(40.0)

    assert rnd.outcome is RoundOutcome.AGENT_SURPLUS
    assert rnd.matched == [(0, 0), (1, 1)]
    assert rnd.surplus_agents == [2]
    assert rnd.expired == []
    assert rnd.benefit == pytest.approx(1.7)

    c = w.state.counters
    assert c.total_assignments == 2
    assert c.expired_resources == 0
    assert w.state.idle_agent_ids == {2}
    assert w.state.pool == []
    assert all(isinstance(ev, AgentDropoff) for ev in out)
    assert sorted((ev.agent_id, ev.resource_id) for ev in out) == [(0, 0), (1, 1)]
    assert all(w.state.resources[r].state is ResourceState.MATCHED for r in (0, 1))


def test_three_resources_two_agents_expires_the_leftover():
    w = build_world(2, 3, matrix=[[0.9, 0.1], [0.2, 0.8], [0.5, 0.5]])
    rnd, out = w.batch.run_round(40.0)

    assert rnd.outcome is RoundOutcome.RESOURCE_SURPLUS
    assert rnd.matched == [(0, 0), (1, 1)]
    assert rnd.expired == [2]
    assert w.state.counters.expired_resources == 1
    assert w.state.resources[2].state is ResourceState.EXPIRED
    assert w.state.idle_agent_ids == set()

    expired = [ev for ev in out if isinstance(ev, ResourceExpired)]
    assert expired == [ResourceExpired(t=610.0, resource_id=2)]
    assert 2 in w.state.waiting

    biz = w.sink.named("ResourceExpired")
    assert [(b.resource_id, b.reason) for b in biz] == [(2, "round_overflow")]



def test_unmatched_resource_in_the_middle_of_the_pool_expires():
    w = build_world(2, 3, matrix=[[0.9, 0.1], [0.05, 0.05], [0.2, 0.8]])
    rnd, _ = w.batch.run_round(40.0)

    assert rnd.matched == [(0, 0), (2, 1)]
    assert rnd.expired == [1]
    assert w.state.resources[1].state is ResourceState.EXPIRED
    assert w.state.resources[2].state is ResourceState.MATCHED
    assert w.state.counters.expired_resources == 1

@pytest.mark.parametrize("n_res,n_ag", [(1, 3), (3, 3), (5, 2), (4, 1)])
def test_matched_and_expired_counts(n_res, n_ag):
    w = build_world(n_ag, n_res)
    rnd, _ = w.batch.run_round(40.0)
    assert len(rnd.matched) == min(n_res, n_ag)
    assert w.state.counters.total_assignments == min(n_res, n_ag)
    assert w.state.counters.expired_resources == max(0, n_res - n_ag)
    assert len({r for r, _ in rnd.matched}) == len(rnd.matched)
    assert len({a for _, a in rnd.matched}) == len(rnd.matched)


def test_balanced_round():
    w = build_world(2, 2, matrix=[[0.9, 0.1], [0.2, 0.8]])
    rnd, _ = w.batch.run_round(40.0)
    assert rnd.outcome is RoundOutcome.BALANCED
    assert rnd.surplus_agents == [] and rnd.expired == []


def test_assignment_timing_and_counters():
    w = build_world(1, 1, matrix=[[1.0]])
    _, out = w.batch.run_round(40.0)
    (ev,) = out
    # agent 0 waits at intersection 0; pickup is 20 + 5 away, trip is 15 + 15
    assert ev == AgentDropoff(t=40.0 + 25.0 + 30.0, agent_id=0, resource_id=0)

    c = w.state.counters
    assert c.total_agent_cruise_time == 40.0
    assert c.total_agent_approach_time == 25.0
    assert c.total_agent_search_time == 65.0
    assert c.total_resource_wait_time == 65.0 - 10.0
    assert c.total_resource_trip_time == 30.0

    agent = w.state.agents[0]
    assert agent.loc == w.state.resources[0].dropoff
    assert agent.strategy.assigned == [(40.0, 0)]
    (biz,) = w.sink.named("Assignment")
    assert biz.approach_s == 25.0 and biz.benefit == 1.0


def test_empty_pool_is_a_no_op():
    w = build_world(2, 0)
    rnd, out = w.batch.run_round(40.0)
    assert rnd.outcome is RoundOutcome.EMPTY_POOL
    assert out == []
    assert w.batch.window_start == 30.0
    assert w.batch.rounds == []
    assert w.state.counters.round_benefits == []


def test_window_advances_by_one_period_per_round():
    w = build_world(2, 1)
    w.batch.run_round(40.0)
    assert (w.batch.window_start, w.batch.window_end) == (60.0, 90.0)
    assert [r.window for r in w.batch.rounds] == [(30.0, 60.0)]
    (biz,) = w.sink.named("BatchRound")
    assert biz.outcome == "agent_surplus" and biz.matched == 1


def test_stable_policy_differs_from_hungarian():
    matrix = [[0.9, 0.8], [0.85, 0.1]]
    hung = build_world(2, 2, matrix=matrix)
    rnd_h, _ = hung.batch.run_round(40.0)
    stab = build_world(2, 2, matrix=matrix, policy=StableMatchingPolicy())
    rnd_s, _ = stab.batch.run_round(40.0)

    assert rnd_h.matched == [(0, 1), (1, 0)]
    assert rnd_h.benefit == pytest.approx(1.65)
    assert rnd_s.matched == [(0, 0), (1, 1)]
    assert rnd_s.benefit == pytest.approx(1.0)


def test_matching_agent_cancels_its_pending_event():
    w = build_world(1, 1, matrix=[[1.0]])
    # pretend agent 0 is driving 1->0 and reaches 0 at t=50
    agent = w.state.agents[0]
    w.kernel.schedule(AgentIntersectionReached(t=50.0, agent_id=0))
    _, out = w.batch.run_round(40.0)
    assert w.kernel.pending(agent.owner()) is None
    assert len(w.kernel) == 0
    # the agent was 10s short of intersection 0 at match time
    assert out[0].t == 40.0 + (10.0 + 20.0 + 5.0) + 30.0


# ---------- Through the kernel ----------


def test_arrival_past_window_start_drains_pool_first():
    w = build_world(2, 0)
    wire(w.kernel, agents=w.agents, resources=w.resources, batch=w.batch)
    for rid, t in enumerate((10.0, 35.0)):
        w.kernel.schedule(
            w.resources.create(rid, on(w.city, 3, 4, 5.0), on(w.city, 4, 5, 15.0), t)
        )
    w.kernel.run(until=35.0)

    assert [r.matched for r in w.batch.rounds] == [[(0, 0)]]
    assert w.state.pool == [1]
    assert w.state.counters.total_resources == 2
    assert w.batch.window_start == 60.0


def test_arrivals_before_window_only_pool():
    w = build_world(2, 0)
    wire(w.kernel, agents=w.agents, resources=w.resources, batch=w.batch)
    ev = w.resources.create(0, on(w.city, 3, 4, 5.0), on(w.city, 4, 5, 15.0), 29.0)
    assert ev == ResourceAvailable(t=29.0, resource_id=0)
    w.kernel.schedule(ev)
    w.kernel.run()
    assert w.batch.rounds == []
    assert w.state.pool == [0]


def test_finish_drains_pool_and_counts_leftovers():
    w = build_world(1, 2, matrix=[[0.9], [0.1]])
    w.resources.create(9, on(w.city, 3, 4, 5.0), on(w.city, 4, 5, 15.0), 500.0)
    rnd = w.batch.finish(100.0)

    assert rnd.matched == [(0, 0)]
    assert rnd.expired == [1]
    c = w.state.counters
    # resource 9 never became available: counted as both created and expired
    assert c.total_resources == 3
    assert c.expired_resources == 2
    assert w.state.resources[9].state is ResourceState.EXPIRED
    assert [b.reason for b in w.sink.named("ResourceExpired")] == ["round_overflow", "end_of_run"]
