from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class SimModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    seed: int
    agents: int = Field(ge=0)
    max_life_time_s: float = Field(default=600.0, gt=0)
    batch_period_s: float = Field(default=30.0, gt=0)
    hub_detour_threshold_s: float = Field(default=60.0, ge=0)


class LogModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False
    sample_every: int = Field(default=1, ge=1)


# ------------------ POLICIES -----------------------------


class MatchingHungarianModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["hungarian"] = "hungarian"


class MatchingStableModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["stable"] = "stable"


MatchingPolicyUnion = Annotated[
    MatchingHungarianModel | MatchingStableModel, Field(discriminator="kind")
]


class RoutingRandomWalkModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["random_walk"] = "random_walk"


class RoutingRandomDestinationModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["random_destination"] = "random_destination"


RoutingUnion = Annotated[
    RoutingRandomWalkModel | RoutingRandomDestinationModel, Field(discriminator="kind")
]


# ------------------------------------------------------------------


class ScenarioModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str
    run_id: str
    sim: SimModel
    log: LogModel = LogModel()
    matching: MatchingPolicyUnion = Field(default_factory=MatchingHungarianModel)
    routing: RoutingUnion = Field(default_factory=RoutingRandomWalkModel)
