# domain/entities/agent.py
from dataclasses import dataclass

from dispatch_sim.app.protocols import RoutingStrategy
from dispatch_sim.domain.entities.geography import LocationOnRoad


@dataclass(eq=False)
class Agent:
    id: int
    loc: LocationOnRoad  # where the agent will be when its pending event fires
    strategy: RoutingStrategy
    start_search_time: float = 0.0

    def owner(self) -> tuple[str, int]:
        return ("agent", self.id)
