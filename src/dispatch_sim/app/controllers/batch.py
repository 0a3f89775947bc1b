# dispatch_sim/app/controllers/batch.py
import logging
import time
from dataclasses import dataclass, field
from enum import Enum

from dispatch_sim.app.controllers.agents import AgentLifecycle
from dispatch_sim.app.controllers.resources import ResourceLifecycle
from dispatch_sim.app.events import ResourceAvailable
from dispatch_sim.app.protocols import MatchingPolicy
from dispatch_sim.domain.state import SimulationState
from dispatch_sim.io.business_events import AssignmentBiz, BatchRoundBiz
from dispatch_sim.io.recorder import Recorder
from dispatch_sim.policy.cost_matrix import BenefitMatrixBuilder, build_benefit_matrix
from dispatch_sim.sim.event import BaseEvent
from dispatch_sim.sim.kernel import Kernel

logger = logging.getLogger(__name__)


class RoundOutcome(Enum):
    EMPTY_POOL = "empty_pool"
    BALANCED = "balanced"
    AGENT_SURPLUS = "agent_surplus"  # leftover agents keep searching
    RESOURCE_SURPLUS = "resource_surplus"  # leftover resources expire


@dataclass
class BatchRound:
    index: int
    t: float
    window: tuple[float, float]
    outcome: RoundOutcome
    matched: list[tuple[int, int]] = field(default_factory=list)  # (resource_id, agent_id)
    expired: list[int] = field(default_factory=list)
    surplus_agents: list[int] = field(default_factory=list)
    benefit: float = 0.0


class BatchWindowController:
    """
    Pools resources over fixed windows and matches them to searching agents.

    Subscribed to ResourceAvailable ahead of the resource lifecycle: an arrival
    at or past window_start first drains the pool, then is pooled itself.
    """

    def __init__(
        self,
        kernel: Kernel,
        state: SimulationState,
        agents: AgentLifecycle,
        resources: ResourceLifecycle,
        matching: MatchingPolicy,
        *,
        period: float = 30.0,
        window_start: float = 0.0,
        build_matrix: BenefitMatrixBuilder = build_benefit_matrix,
        recorder: Recorder | None = None,
    ):
        self.kernel = kernel
        self.state = state
        self.agents = agents
        self.resources = resources
        self.matching = matching
        self.period = period
        self.window_start = window_start
        self.window_end = window_start + period
        self.build_matrix = build_matrix
        self.recorder = recorder
        self.rounds: list[BatchRound] = []

    def on_resource_available(self, ev: ResourceAvailable):
        if ev.t < self.window_start:
            return []
        _, out = self.run_round(ev.t)
        return out

    def run_round(self, now: float) -> tuple[BatchRound, list[BaseEvent]]:
        window = (self.window_start, self.window_end)
        if not self.state.pool:
            return BatchRound(len(self.rounds), now, window, RoundOutcome.EMPTY_POOL), []

        t0 = time.perf_counter()
        resources = self.state.pooled_resources()
        agents = self.state.idle_agents()
        benefits = self.build_matrix(resources, agents)
        pairs = self.matching.match(benefits.copy())

        c = self.state.counters
        out: list[BaseEvent] = []
        rnd = BatchRound(len(self.rounds), now, window, RoundOutcome.BALANCED)
        limit = min(len(resources), len(agents))
        matched_r: set[int] = set()
        matched_a: set[int] = set()

        for k, (ri, ai) in enumerate(pairs):
            if k >= limit:
                break
            r, a = resources[ri], agents[ai]
            pending = self.kernel.cancel(a.owner())
            cruise = now - a.start_search_time
            asg = self.agents.assign(a, r, now, pending)
            approach = asg.arrival - now
            wait = asg.arrival - r.available_time

            c.total_agent_cruise_time += cruise
            c.total_agent_approach_time += approach
            c.total_agent_search_time += cruise + approach
            c.total_resource_wait_time += wait
            c.total_resource_trip_time += r.trip_time
            c.total_assignments += 1
            rnd.benefit += float(benefits[ri, ai])

            self.kernel.cancel(r.owner())
            self.resources.match(r)
            out.append(asg.event)
            matched_r.add(ri)
            matched_a.add(ai)
            rnd.matched.append((r.id, a.id))

            if self.recorder:
                self.recorder.emit(
                    AssignmentBiz(
                        run_id=self.recorder.run_id,
                        t=now,
                        name="Assignment",
                        resource_id=r.id,
                        agent_id=a.id,
                        benefit=float(benefits[ri, ai]),
                        cruise_s=cruise,
                        approach_s=approach,
                        wait_s=wait,
                        via_hub=asg.via_hub,
                    )
                )

        if len(agents) > len(resources):
            rnd.outcome = RoundOutcome.AGENT_SURPLUS
            for j, a in enumerate(agents):
                if j not in matched_a:
                    self.state.return_idle(a)
                    rnd.surplus_agents.append(a.id)
        elif len(resources) > len(agents):
            rnd.outcome = RoundOutcome.RESOURCE_SURPLUS
            for i, r in enumerate(resources):
                if i not in matched_r:
                    out.append(self.resources.expire(r, now))
                    rnd.expired.append(r.id)

        c.round_benefits.append(rnd.benefit)
        c.round_wall_ms.append((time.perf_counter() - t0) * 1000)
        self.state.pool.clear()
        self.window_start += self.period
        self.window_end += self.period
        self.rounds.append(rnd)
        self._report(rnd, len(resources), len(agents))
        return rnd, out

    def finish(self, now: float) -> BatchRound | None:
        """End of run: drain a non-empty pool once, then settle leftover resources."""
        rnd = None
        if self.state.pool:
            rnd, _ = self.run_round(now)
        self.resources.finish(now)
        return rnd

    def _report(self, rnd: BatchRound, n_res: int, n_ag: int) -> None:
        logger.info(
            "batch_round",
            extra={
                "extra": {
                    "t": rnd.t,
                    "round": rnd.index,
                    "outcome": rnd.outcome.value,
                    "resources": n_res,
                    "agents": n_ag,
                    "matched": len(rnd.matched),
                    "expired": len(rnd.expired),
                    "benefit": rnd.benefit,
                    "policy": self.matching.name,
                }
            },
        )
        if self.recorder:
            self.recorder.emit(
                BatchRoundBiz(
                    run_id=self.recorder.run_id,
                    t=rnd.t,
                    name="BatchRound",
                    index=rnd.index,
                    outcome=rnd.outcome.value,
                    resources=n_res,
                    agents=n_ag,
                    matched=len(rnd.matched),
                    expired=len(rnd.expired),
                    benefit=rnd.benefit,
                    window=rnd.window,
                )
            )
