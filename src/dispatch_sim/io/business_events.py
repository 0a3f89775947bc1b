# dispatch_sim/io/business_events.py

from dataclasses import dataclass, field


# Analytics records (not scheduled in the kernel!)
@dataclass
class BizEvent:
    run_id: str
    t: float  # simulation time
    name: str  # stable event name


@dataclass
class AssignmentBiz(BizEvent):
    resource_id: int
    agent_id: int
    benefit: float
    cruise_s: float
    approach_s: float
    wait_s: float
    via_hub: bool = False


@dataclass
class ResourceExpiredBiz(BizEvent):
    resource_id: int
    reason: str  # "round_overflow" | "end_of_run"


@dataclass
class BatchRoundBiz(BizEvent):
    index: int
    outcome: str
    resources: int
    agents: int
    matched: int
    expired: int
    benefit: float
    window: tuple[float, float] = field(default=(0.0, 0.0))
