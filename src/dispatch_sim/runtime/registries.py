# runtime/registries.py
from collections.abc import Callable
from typing import Any

from dispatch_sim.app.protocols import MatchingPolicy, RoutingStrategy
from dispatch_sim.config.models import (
    MatchingHungarianModel,
    MatchingPolicyUnion,
    MatchingStableModel,
)
from dispatch_sim.domain.city_map import CityMap
from dispatch_sim.policy.matching import HungarianMatchingPolicy, StableMatchingPolicy
from dispatch_sim.policy.routing import RandomDestinationRouting, RandomWalkRouting

# (agent_id, city_map, deps) -> the agent's routing strategy
AgentFactory = Callable[[int, CityMap, dict[str, Any]], RoutingStrategy]
MatchingFactory = Callable[[MatchingPolicyUnion, dict[str, Any]], MatchingPolicy]

_agent_registry: dict[str, AgentFactory] = {}
_matching_registry: dict[str, MatchingFactory] = {}


# ------------------- Agent (routing strategy) factories ---------------------------


def register_agent(kind: str):
    def deco(fn: AgentFactory):
        _agent_registry[kind] = fn
        return fn

    return deco


def resolve_agent_factory(kind: str) -> AgentFactory:
    """Look the factory up once at build time; agents are then created without lookups."""
    try:
        return _agent_registry[kind]
    except KeyError:
        raise ValueError(f"Unknown agent kind {kind!r}") from None


@register_agent("random_walk")
def _make_random_walk(agent_id: int, city_map: CityMap, deps):
    return RandomWalkRouting(agent_id, city_map, deps["rng"].routing(agent_id))


@register_agent("random_destination")
def _make_random_destination(agent_id: int, city_map: CityMap, deps):
    return RandomDestinationRouting(agent_id, city_map, deps["rng"].routing(agent_id))


# ----- Matching policies --------------------------


def register_matching(kind: str):
    def deco(fn: MatchingFactory):
        _matching_registry[kind] = fn
        return fn

    return deco


def make_matching(cfg: MatchingPolicyUnion, *, deps: dict | None = None) -> MatchingPolicy:
    try:
        factory = _matching_registry[cfg.kind]
    except KeyError:
        raise ValueError(f"Unknown matching kind {cfg.kind!r}") from None
    return factory(cfg, deps or {})


@register_matching("hungarian")
def _make_hungarian(cfg: MatchingHungarianModel, deps):
    return HungarianMatchingPolicy()


@register_matching("stable")
def _make_stable(cfg: MatchingStableModel, deps):
    return StableMatchingPolicy()
