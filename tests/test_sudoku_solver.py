"""End-to-end tests for the SAT pipeline and the solver backends."""

from math import isqrt
from pathlib import Path

import pytest

import sudoku_solver
from sat_backend import Contradiction, SatAdapter, Satisfiable, TimedOut, Unsatisfiable, check_timeout
from sudoku import Puzzle, load_puzzle
from sudoku_cnf import InvalidModelError, vid
from sudoku_pysat import PySatAdapter
from sudoku_solver import (SOLVED, TIMEOUT, UNSOLVABLE, EncodingContradiction, count_solutions,
                           make_adapter, solve_sudoku)


PUZZLES = Path(__file__).resolve().parent.parent / "puzzles"

SCENARIO_4 = [[0, 0, 0, 4], [0, 0, 0, 0], [2, 0, 0, 3], [4, 0, 1, 2]]
SCENARIO_4_SOLUTION = [[1, 2, 3, 4], [3, 4, 2, 1], [2, 1, 4, 3], [4, 3, 1, 2]]

EASY_SOLUTION = [
    [5, 3, 4, 6, 7, 8, 9, 1, 2],
    [6, 7, 2, 1, 9, 5, 3, 4, 8],
    [1, 9, 8, 3, 4, 2, 5, 6, 7],
    [8, 5, 9, 7, 6, 1, 4, 2, 3],
    [4, 2, 6, 8, 5, 3, 7, 9, 1],
    [7, 1, 3, 9, 2, 4, 8, 5, 6],
    [9, 6, 1, 5, 3, 7, 2, 8, 4],
    [2, 8, 7, 4, 1, 9, 6, 3, 5],
    [3, 4, 5, 2, 8, 6, 1, 7, 9],
]

EVIL_SOLUTION = [
    [8, 1, 2, 7, 5, 3, 6, 4, 9],
    [9, 4, 3, 6, 8, 2, 1, 7, 5],
    [6, 7, 5, 4, 9, 1, 2, 8, 3],
    [1, 5, 4, 2, 3, 7, 8, 9, 6],
    [3, 6, 9, 8, 4, 5, 7, 2, 1],
    [2, 8, 7, 1, 6, 9, 5, 3, 4],
    [5, 2, 1, 9, 7, 4, 3, 6, 8],
    [4, 3, 8, 5, 2, 6, 9, 1, 7],
    [7, 9, 6, 3, 1, 8, 4, 5, 2],
]


def _solved_grid(N):
    n = isqrt(N)
    return [[(n * (r % n) + r // n + c) % N + 1 for c in range(N)] for r in range(N)]


def _empty(N):
    return Puzzle([[0] * N for _ in range(N)])


def _model_of(grid):
    N = len(grid)
    return [vid(r, c, v, N) if grid[r][c] == v + 1 else -vid(r, c, v, N)
            for r in range(N) for c in range(N) for v in range(N)]


class _StubAdapter(SatAdapter):
    """Records clauses and replays canned solve() outcomes."""

    def __init__(self, outcomes=(), reject_at=None):
        super().__init__()
        self.clauses = []
        self.outcomes = list(outcomes)
        self.reject_at = reject_at
        self.closed = False

    def add_clause(self, literals):
        clause = self._check_clause(literals)
        if self.reject_at is not None and len(self.clauses) == self.reject_at:
            raise Contradiction(f"rejected {clause}")
        self.clauses.append(clause)

    def solve(self, timeout):
        check_timeout(timeout)
        return self.outcomes.pop(0)

    def close(self):
        self.closed = True


def _use_stub(monkeypatch, stub):
    monkeypatch.setattr(sudoku_solver, "make_adapter", lambda *a, **kw: stub)
    return stub


# ---------- pysat backend ----------
def test_solves_4x4_scenario():
    result = solve_sudoku(Puzzle(SCENARIO_4))
    assert result.status == SOLVED
    grid = result.solution
    assert grid.is_solved()
    for r, c, v in [(2, 0, 2), (2, 3, 3), (3, 0, 4), (3, 2, 1), (3, 3, 2)]:
        assert grid[r, c] == v
    assert grid.to_lists() == SCENARIO_4_SOLUTION


def test_duplicate_clue_in_row_is_unsolvable():
    rows = [[0] * 4 for _ in range(4)]
    rows[0][0] = rows[0][1] = 1
    result = solve_sudoku(Puzzle(rows))
    assert result.status == UNSOLVABLE
    assert result.solution is None
    assert result.exhausted


def test_unsolvable_file_puzzle():
    assert solve_sudoku(load_puzzle(PUZZLES / "unsolvable.txt")).status == UNSOLVABLE


@pytest.mark.parametrize("N", [1, 4, 9, 16])
def test_solved_grid_round_trips(N):
    grid = _solved_grid(N)
    assert Puzzle(grid).is_solved()
    result = solve_sudoku(Puzzle(grid), max_solutions=2, timeout=30)
    assert result.is_unique
    assert result.solution.to_lists() == grid


def test_empty_4x4_has_288_solutions():
    result = solve_sudoku(_empty(4), max_solutions=None, timeout=60)
    assert result.status == SOLVED
    assert result.exhausted
    assert len(result.solutions) == 288
    assert len(set(result.solutions)) == 288
    assert all(s.is_solved() for s in result.solutions)


def test_empty_9x9_solutions_are_valid():
    result = solve_sudoku(_empty(9), max_solutions=5, timeout=30)
    assert len(result.solutions) == 5
    assert not result.exhausted
    assert len(set(result.solutions)) == 5
    assert all(s.is_solved() for s in result.solutions)


def test_easy_puzzle():
    result = solve_sudoku(load_puzzle(PUZZLES / "easy.txt"))
    assert result.solution.to_lists() == EASY_SOLUTION


def test_evil_puzzle_has_unique_solution():
    puzzle = load_puzzle(PUZZLES / "evil.txt")
    result = solve_sudoku(puzzle, max_solutions=2, timeout=30)
    assert result.is_unique
    assert result.solution.to_lists() == EVIL_SOLUTION
    assert count_solutions(puzzle, timeout=30) == 1


def test_count_solutions_stops_at_limit():
    assert count_solutions(_empty(4), limit=3) == 3


def test_pysat_adapter_reports_contradiction():
    with PySatAdapter() as adapter:
        adapter.declare_variables(2)
        adapter.add_clause([1])
        with pytest.raises(Contradiction):
            adapter.add_clause([-1])


def test_pysat_adapter_solves_small_formula():
    with PySatAdapter("g3") as adapter:
        adapter.declare_variables(3)
        for clause in ([1, -2], [-1, 3], [3]):
            adapter.add_clause(clause)
        outcome = adapter.solve(5)
    assert isinstance(outcome, Satisfiable)
    assert 3 in outcome.model


def test_adapter_enforces_declared_range():
    with PySatAdapter() as adapter:
        adapter.declare_variables(2)
        with pytest.raises(ValueError):
            adapter.add_clause([1, 3])
        with pytest.raises(ValueError):
            adapter.add_clause([])


@pytest.mark.parametrize("timeout", [0, -1, None])
def test_solve_requires_positive_timeout(timeout):
    with pytest.raises(ValueError):
        solve_sudoku(Puzzle(SCENARIO_4), timeout=timeout)


def test_unknown_backend():
    with pytest.raises(ValueError, match="Unknown backend"):
        make_adapter("minisat-cli")


# ---------- z3 backend ----------
def test_z3_backend_solves_4x4_scenario():
    result = solve_sudoku(Puzzle(SCENARIO_4), backend="z3", timeout=30)
    assert result.status == SOLVED
    assert result.solution.to_lists() == SCENARIO_4_SOLUTION


def test_z3_backend_reports_unsolvable():
    rows = [[0] * 4 for _ in range(4)]
    rows[1][0] = rows[3][0] = 2
    assert solve_sudoku(Puzzle(rows), backend="z3", timeout=30).status == UNSOLVABLE


def test_z3_backend_agrees_on_uniqueness():
    result = solve_sudoku(Puzzle(SCENARIO_4), backend="z3", max_solutions=2, timeout=30)
    assert result.is_unique


# ---------- outcome handling ----------
def test_timeout_is_not_unsolvable(monkeypatch):
    stub = _use_stub(monkeypatch, _StubAdapter([TimedOut()]))
    result = solve_sudoku(Puzzle(SCENARIO_4))
    assert result.status == TIMEOUT
    assert not result.exhausted
    assert result.solutions == []
    assert stub.closed


def test_unsatisfiable_outcome(monkeypatch):
    _use_stub(monkeypatch, _StubAdapter([Unsatisfiable()]))
    result = solve_sudoku(Puzzle(SCENARIO_4))
    assert result.status == UNSOLVABLE
    assert result.exhausted


def test_structural_contradiction_is_fatal(monkeypatch):
    stub = _use_stub(monkeypatch, _StubAdapter(reject_at=10))
    with pytest.raises(EncodingContradiction):
        solve_sudoku(Puzzle(SCENARIO_4))
    assert stub.closed


def test_clue_contradiction_means_unsolvable(monkeypatch):
    # 448 structural clauses for N=4; reject the second clue unit
    _use_stub(monkeypatch, _StubAdapter(reject_at=449))
    result = solve_sudoku(Puzzle(SCENARIO_4))
    assert result.status == UNSOLVABLE
    assert result.exhausted


def test_invalid_model_is_fatal(monkeypatch):
    _use_stub(monkeypatch, _StubAdapter([Satisfiable([1, 2, 3])]))
    with pytest.raises(EncodingContradiction):
        solve_sudoku(Puzzle(SCENARIO_4))


def test_formula_is_loaded_in_order(monkeypatch):
    stub = _use_stub(monkeypatch, _StubAdapter([Unsatisfiable()]))
    solve_sudoku(Puzzle(SCENARIO_4))
    assert stub.num_vars == 64
    assert len(stub.clauses) == 454
    assert stub.clauses[0] == [1, 2, 3, 4]
    assert stub.clauses[-1] == [vid(3, 3, 1, 4)]


def test_bundled_4x4_matches_scenario():
    assert load_puzzle(PUZZLES / "4x4.txt") == Puzzle(SCENARIO_4)


@pytest.mark.parametrize("name", ["cd", "cd15", "lgl", "no-such-solver"])
def test_pysat_adapter_rejects_uninterruptible_solvers(name):
    with pytest.raises(ValueError, match="cannot be interrupted"):
        PySatAdapter(name)


def test_out_of_range_model_literal_is_fatal(monkeypatch):
    _use_stub(monkeypatch, _StubAdapter([Satisfiable([65])]))
    with pytest.raises(InvalidModelError):
        solve_sudoku(Puzzle(SCENARIO_4))


def test_timeout_after_first_solution_stays_solved(monkeypatch):
    outcomes = [Satisfiable(_model_of(SCENARIO_4_SOLUTION)), TimedOut()]
    _use_stub(monkeypatch, _StubAdapter(outcomes))
    result = solve_sudoku(Puzzle(SCENARIO_4), max_solutions=2)
    assert result.status == SOLVED
    assert result.timed_out
    assert not result.exhausted
    assert not result.is_unique
    assert result.solution.to_lists() == SCENARIO_4_SOLUTION


def test_count_solutions_raises_when_search_times_out(monkeypatch):
    outcomes = [Satisfiable(_model_of(SCENARIO_4_SOLUTION)), TimedOut()]
    _use_stub(monkeypatch, _StubAdapter(outcomes))
    with pytest.raises(TimeoutError):
        count_solutions(Puzzle(SCENARIO_4))
