# dispatch_sim/io/report.py
from dataclasses import asdict, dataclass

from dispatch_sim.domain.state import SimulationState


def _avg(total: float, n: int) -> float:
    return total / n if n else 0.0


@dataclass(frozen=True)
class Report:
    """End-of-run summary; formatting and printing belong to the caller."""

    total_agents: int
    total_resources: int
    total_assignments: int
    expired_resources: int
    expiration_pct: float
    avg_agent_search_s: float
    avg_resource_wait_s: float
    avg_agent_cruise_s: float
    avg_agent_approach_s: float
    avg_resource_trip_s: float
    total_benefit: float
    avg_benefit_per_agent: float
    rounds: int
    total_round_ms: float
    avg_round_ms: float

    @classmethod
    def from_state(cls, state: SimulationState, *, end_time: float) -> "Report":
        c = state.counters
        n_agents = len(state.agents)
        # agents still searching at the end count their search time up to end_time
        remaining = sum(end_time - a.start_search_time for a in state.idle_agents())
        total_benefit = float(sum(c.round_benefits))
        total_ms = float(sum(c.round_wall_ms))
        return cls(
            total_agents=n_agents,
            total_resources=c.total_resources,
            total_assignments=c.total_assignments,
            expired_resources=c.expired_resources,
            expiration_pct=100.0 * _avg(c.expired_resources, c.total_resources),
            avg_agent_search_s=_avg(
                c.total_agent_search_time + remaining,
                c.total_assignments + len(state.idle_agent_ids),
            ),
            avg_resource_wait_s=_avg(c.total_resource_wait_time, c.total_resources),
            avg_agent_cruise_s=_avg(c.total_agent_cruise_time, c.total_assignments),
            avg_agent_approach_s=_avg(c.total_agent_approach_time, c.total_assignments),
            avg_resource_trip_s=_avg(c.total_resource_trip_time, c.total_assignments),
            total_benefit=total_benefit,
            avg_benefit_per_agent=_avg(total_benefit, n_agents),
            rounds=len(c.round_benefits),
            total_round_ms=total_ms,
            avg_round_ms=_avg(total_ms, len(c.round_wall_ms)),
        )

    def as_dict(self) -> dict:
        return asdict(self)
