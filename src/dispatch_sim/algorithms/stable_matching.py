# algorithms/stable_matching.py
"""
Gale-Shapley stable matching with resources proposing.

Because resources propose, the result is resource-optimal: every resource gets
the best agent it can have in any stable matching, and every agent gets the
worst resource it can have in any stable matching (agent-pessimal).
"""

from collections import deque
from collections.abc import Sequence

import numpy as np


def _validate_prefs(prefs: Sequence[Sequence[int]], n_other: int, side: str) -> None:
    for i, p in enumerate(prefs):
        if sorted(p) != list(range(n_other)):
            raise ValueError(f"{side} {i}: preference list must be a permutation of 0..{n_other - 1}")


def _rank_table(prefs: Sequence[Sequence[int]]) -> list[dict[int, int]]:
    return [{other: k for k, other in enumerate(p)} for p in prefs]


def stable_match(
    resource_prefs: Sequence[Sequence[int]], agent_prefs: Sequence[Sequence[int]]
) -> list[tuple[int, int]]:
    """
    resource_prefs[r] orders all agent indices best-first; agent_prefs[a] orders
    all resource indices best-first. Returns (resource, agent) pairs sorted by
    resource, min(R, A) of them, with no blocking pair.

    Each resource's proposal pointer only moves forward, so there are at most
    R * A proposals.
    """
    n_res, n_ag = len(resource_prefs), len(agent_prefs)
    if n_res == 0 or n_ag == 0:
        return []
    _validate_prefs(resource_prefs, n_ag, "resource")
    _validate_prefs(agent_prefs, n_res, "agent")
    ag_ranks = _rank_table(agent_prefs)

    next_choice = [0] * n_res
    partner_of_agent: list[int | None] = [None] * n_ag
    free = deque(range(n_res))

    while free:
        r = free.popleft()
        if next_choice[r] >= n_ag:
            continue  # exhausted its list; stays unmatched
        a = resource_prefs[r][next_choice[r]]
        next_choice[r] += 1
        current = partner_of_agent[a]
        if current is None:
            partner_of_agent[a] = r
        elif ag_ranks[a][r] < ag_ranks[a][current]:
            partner_of_agent[a] = r
            free.appendleft(current)
        else:
            free.appendleft(r)

    return sorted((r, a) for a, r in enumerate(partner_of_agent) if r is not None)


def blocking_pairs(
    pairs: Sequence[tuple[int, int]],
    resource_prefs: Sequence[Sequence[int]],
    agent_prefs: Sequence[Sequence[int]],
) -> list[tuple[int, int]]:
    """All (r, a) that would both rather be with each other than with their partners."""
    res_partner = {r: a for r, a in pairs}
    ag_partner = {a: r for r, a in pairs}
    res_rank = _rank_table(resource_prefs)
    ag_rank = _rank_table(agent_prefs)
    out = []
    for r in range(len(resource_prefs)):
        for a in range(len(agent_prefs)):
            if res_partner.get(r) == a:
                continue
            r_wants = r not in res_partner or res_rank[r][a] < res_rank[r][res_partner[r]]
            a_wants = a not in ag_partner or ag_rank[a][r] < ag_rank[a][ag_partner[a]]
            if r_wants and a_wants:
                out.append((r, a))
    return out


def preferences_from_benefits(benefits: np.ndarray) -> tuple[list[list[int]], list[list[int]]]:
    """Both sides rank the other by descending benefit; ties go to the lower index."""
    b = np.asarray(benefits, dtype=float)
    res_prefs = [list(map(int, np.argsort(-row, kind="stable"))) for row in b]
    ag_prefs = [list(map(int, np.argsort(-col, kind="stable"))) for col in b.T]
    return res_prefs, ag_prefs
