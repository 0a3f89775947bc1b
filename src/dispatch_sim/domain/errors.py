# domain/errors.py


class DispatchError(Exception):
    """Base class for fatal simulation errors."""


class RoutingContractError(DispatchError):
    """A routing strategy broke its contract; the run cannot continue."""

    def __init__(self, agent_id: int, msg: str):
        super().__init__(f"agent {agent_id}: {msg}")
        self.agent_id = agent_id
