# dispatch_sim/policy/matching.py
from dataclasses import dataclass

import numpy as np

from dispatch_sim.algorithms.hungarian import SolveMode, solve
from dispatch_sim.algorithms.stable_matching import preferences_from_benefits, stable_match
from dispatch_sim.app.protocols import MatchingPolicy


@dataclass
class HungarianMatchingPolicy(MatchingPolicy):
    """Batched-optimal: maximize the round's total benefit."""

    mode: SolveMode = "maximize"
    name: str = "hungarian"

    def match(self, benefits: np.ndarray) -> list[tuple[int, int]]:
        return solve(benefits, self.mode)


@dataclass
class StableMatchingPolicy(MatchingPolicy):
    """Fair: resource-proposing Gale-Shapley over benefit-ranked preferences."""

    name: str = "stable"

    def match(self, benefits: np.ndarray) -> list[tuple[int, int]]:
        res_prefs, ag_prefs = preferences_from_benefits(benefits)
        return stable_match(res_prefs, ag_prefs)
