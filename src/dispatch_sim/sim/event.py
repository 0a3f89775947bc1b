# sim/event.py
from collections.abc import Hashable
from dataclasses import dataclass


@dataclass(order=True)
class BaseEvent:
    t: float

    def owner(self) -> Hashable | None:
        """Entity key used by Kernel.cancel; None means the event can't be cancelled."""
        return None
