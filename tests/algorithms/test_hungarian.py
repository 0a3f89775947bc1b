# tests/algorithms/test_hungarian.py
import itertools

import numpy as np
import pytest

from dispatch_sim.algorithms.hungarian import MunkresState, Step, assignment_total, solve


def brute_force(matrix: np.ndarray, maximize: bool) -> float:
    rows, cols = matrix.shape
    best = None
    if rows <= cols:
        for perm in itertools.permutations(range(cols), rows):
            total = sum(matrix[i, j] for i, j in enumerate(perm))
            if best is None or (total > best if maximize else total < best):
                best = total
    else:
        for perm in itertools.permutations(range(rows), cols):
            total = sum(matrix[i, j] for j, i in enumerate(perm))
            if best is None or (total > best if maximize else total < best):
                best = total
    return float(best)


def assert_valid(pairs, rows, cols):
    assert len(pairs) == min(rows, cols)
    assert len({i for i, _ in pairs}) == len(pairs)
    assert len({j for _, j in pairs}) == len(pairs)
    assert all(0 <= i < rows and 0 <= j < cols for i, j in pairs)
    assert pairs == sorted(pairs)


def test_diagonal_benefits_maximized():
    m = [[0.9, 0.1, 0.2], [0.2, 0.8, 0.3], [0.1, 0.2, 0.7]]
    pairs = solve(m, "maximize")
    assert set(pairs) == {(0, 0), (1, 1), (2, 2)}
    assert assignment_total(m, pairs) == pytest.approx(2.4)


def test_wide_matrix_leaves_one_column_free():
    m = [[0.9, 0.1, 0.2], [0.2, 0.8, 0.3]]
    pairs = solve(m, "maximize")
    assert pairs == [(0, 0), (1, 1)]


def test_minimize_is_default():
    m = [[4.0, 1.0, 3.0], [2.0, 0.0, 5.0], [3.0, 2.0, 2.0]]
    pairs = solve(m)
    assert assignment_total(m, pairs) == pytest.approx(5.0)
    assert_valid(pairs, 3, 3)


@pytest.mark.parametrize("mode", ["minimize", "maximize"])
def test_matches_brute_force_on_random_matrices(mode):
    rng = np.random.default_rng(2024)
    for _ in range(40):
        rows, cols = (int(x) for x in rng.integers(1, 6, size=2))
        m = np.round(rng.uniform(0.0, 10.0, size=(rows, cols)), 2)
        pairs = solve(m, mode)
        assert_valid(pairs, rows, cols)
        assert assignment_total(m, pairs) == pytest.approx(brute_force(m, mode == "maximize"))


def test_ties_and_zero_matrix_still_give_full_assignment():
    pairs = solve(np.zeros((4, 4)))
    assert_valid(pairs, 4, 4)
    pairs = solve(np.ones((2, 5)), "maximize")
    assert_valid(pairs, 2, 5)


def test_input_is_not_modified_and_repeat_solves_agree():
    m = np.array([[0.5, 0.2, 0.9], [0.4, 0.4, 0.1], [0.3, 0.7, 0.6], [0.8, 0.1, 0.2]])
    before = m.copy()
    a = solve(m, "maximize")
    b = solve(m, "maximize")
    assert np.array_equal(m, before)
    assert assignment_total(m, a) == pytest.approx(assignment_total(m, b))


def test_empty_matrix():
    assert solve([]) == []
    assert solve(np.zeros((0, 3))) == []


@pytest.mark.parametrize(
    "bad",
    [
        [[1.0, -0.5], [0.2, 0.3]],
        [[1.0, float("nan")], [0.2, 0.3]],
        [[1.0, float("inf")], [0.2, 0.3]],
        [1.0, 2.0],
    ],
)
def test_rejects_invalid_matrices(bad):
    with pytest.raises(ValueError):
        solve(bad)


def test_rejects_unknown_mode():
    with pytest.raises(ValueError):
        solve([[1.0]], mode="best")


def test_state_pads_rectangular_input():
    s = MunkresState.from_matrix(np.array([[1.0, 2.0, 3.0]]), "minimize")
    assert s.cost.shape == (3, 3)
    assert np.all(s.cost[1:] == 4.0)
    assert s.step is Step.REDUCE_ROWS
    assert not s.row_cover.any() and not s.col_cover.any()
