# algorithms/hungarian.py
"""
Kuhn-Munkres (Hungarian) assignment for rectangular matrices.

The solver works on a private square copy of the input. Rectangular inputs are
padded with (max + 1) so padding never displaces a real cell from an optimal
slot; in maximize mode every cell c becomes (max + 1) - c and the transformed
matrix is minimized. Each step of the classic Munkres procedure is a function
taking the MunkresState and returning the next Step.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

import numpy as np

SolveMode = Literal["minimize", "maximize"]

NONE, STAR, PRIME = 0, 1, 2


class Step(Enum):
    REDUCE_ROWS = 1
    STAR_ZEROS = 2
    COVER_STARRED = 3
    PRIME_ZEROS = 4
    AUGMENT_PATH = 5
    ADJUST_COSTS = 6
    DONE = 7


@dataclass
class MunkresState:
    cost: np.ndarray  # square working matrix, owned by one solve() call
    mask: np.ndarray = field(init=False)
    row_cover: np.ndarray = field(init=False)
    col_cover: np.ndarray = field(init=False)
    primed: tuple[int, int] | None = None  # last uncovered prime with no star in its row
    step: Step = Step.REDUCE_ROWS

    def __post_init__(self):
        n = self.cost.shape[0]
        self.mask = np.zeros((n, n), dtype=np.int8)
        self.row_cover = np.zeros(n, dtype=bool)
        self.col_cover = np.zeros(n, dtype=bool)

    @property
    def n(self) -> int:
        return self.cost.shape[0]

    @classmethod
    def from_matrix(cls, matrix: np.ndarray, mode: SolveMode) -> "MunkresState":
        rows, cols = matrix.shape
        n = max(rows, cols)
        pad = float(matrix.max()) + 1.0
        cost = np.full((n, n), pad, dtype=float)
        cost[:rows, :cols] = matrix
        if mode == "maximize":
            cost = pad - cost
        return cls(cost=cost)

    def clear_covers(self) -> None:
        self.row_cover[:] = False
        self.col_cover[:] = False

    def starred(self, rows: int, cols: int) -> list[tuple[int, int]]:
        hits = np.argwhere(self.mask[:rows, :cols] == STAR)
        return [(int(i), int(j)) for i, j in hits]


def _reduce_rows(s: MunkresState) -> Step:
    s.cost -= s.cost.min(axis=1, keepdims=True)
    return Step.STAR_ZEROS


def _star_zeros(s: MunkresState) -> Step:
    for i in range(s.n):
        for j in np.flatnonzero(s.cost[i] == 0):
            if not s.col_cover[j]:
                s.mask[i, j] = STAR
                s.row_cover[i] = True
                s.col_cover[j] = True
                break
    s.clear_covers()
    return Step.COVER_STARRED


def _cover_starred(s: MunkresState) -> Step:
    s.col_cover[:] = (s.mask == STAR).any(axis=0)
    if int(s.col_cover.sum()) >= s.n:
        return Step.DONE
    return Step.PRIME_ZEROS


def _prime_zeros(s: MunkresState) -> Step:
    while True:
        free = (s.cost == 0) & ~s.row_cover[:, None] & ~s.col_cover[None, :]
        hits = np.argwhere(free)
        if len(hits) == 0:
            return Step.ADJUST_COSTS
        i, j = int(hits[0][0]), int(hits[0][1])
        s.mask[i, j] = PRIME
        stars = np.flatnonzero(s.mask[i] == STAR)
        if stars.size:
            s.row_cover[i] = True
            s.col_cover[stars[0]] = False
        else:
            s.primed = (i, j)
            return Step.AUGMENT_PATH


def _augment_path(s: MunkresState) -> Step:
    # alternate star-in-column / prime-in-row starting from the uncovered prime
    path = [s.primed]
    while True:
        col = path[-1][1]
        star_rows = np.flatnonzero(s.mask[:, col] == STAR)
        if not star_rows.size:
            break
        r = int(star_rows[0])
        path.append((r, col))
        c = int(np.flatnonzero(s.mask[r] == PRIME)[0])
        path.append((r, c))
    for i, j in path:
        s.mask[i, j] = NONE if s.mask[i, j] == STAR else STAR
    s.mask[s.mask == PRIME] = NONE
    s.clear_covers()
    s.primed = None
    return Step.COVER_STARRED


def _adjust_costs(s: MunkresState) -> Step:
    m = s.cost[~s.row_cover][:, ~s.col_cover].min()
    s.cost[s.row_cover, :] += m
    s.cost[:, ~s.col_cover] -= m
    return Step.PRIME_ZEROS


STEPS: dict[Step, Callable[[MunkresState], Step]] = {
    Step.REDUCE_ROWS: _reduce_rows,
    Step.STAR_ZEROS: _star_zeros,
    Step.COVER_STARRED: _cover_starred,
    Step.PRIME_ZEROS: _prime_zeros,
    Step.AUGMENT_PATH: _augment_path,
    Step.ADJUST_COSTS: _adjust_costs,
}


def _as_matrix(matrix) -> np.ndarray:
    a = np.array(matrix, dtype=float)  # always a copy
    if a.size == 0:
        return a.reshape(0, 0) if a.ndim < 2 else a
    if a.ndim != 2:
        raise ValueError(f"expected a 2-D matrix, got shape {a.shape}")
    if not np.isfinite(a).all():
        raise ValueError("matrix contains non-finite values")
    if (a < 0).any():
        raise ValueError("matrix values must be >= 0")
    return a


def solve(matrix: np.ndarray | Sequence[Sequence[float]], mode: SolveMode = "minimize") -> list[tuple[int, int]]:
    """
    Optimal assignment over a rows x cols matrix of non-negative values.

    Returns min(rows, cols) (row, col) pairs in row-major order; each row and
    each column appears at most once. The caller's matrix is never modified.
    """
    if mode not in ("minimize", "maximize"):
        raise ValueError(f"unknown mode {mode!r}")
    a = _as_matrix(matrix)
    if a.size == 0:
        return []
    rows, cols = a.shape
    s = MunkresState.from_matrix(a, mode)
    while s.step is not Step.DONE:
        s.step = STEPS[s.step](s)
    return s.starred(rows, cols)


def assignment_total(matrix, pairs: Sequence[tuple[int, int]]) -> float:
    a = np.asarray(matrix, dtype=float)
    return float(sum(a[i, j] for i, j in pairs))
