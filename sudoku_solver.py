# sudoku_solver.py
# Puzzle -> CNF -> SAT backend -> model -> solved Puzzle.

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

from sat_backend import (Contradiction, SatAdapter, Satisfiable, TimedOut,
                         check_timeout)
from sudoku import Puzzle
from sudoku_cnf import Formula, blocking_clause, decode_model, encode_puzzle

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0  # seconds
DEFAULT_BACKEND = "pysat"
DEFAULT_SOLVER = "g4"
BACKENDS = ("pysat", "z3")

SOLVED = "SOLVED"
UNSOLVABLE = "UNSOLVABLE"
TIMEOUT = "TIMEOUT"


class EncodingContradiction(RuntimeError):
    """The structural clauses alone were rejected: the encoder is broken."""


def make_adapter(backend: str = DEFAULT_BACKEND, solver_name: str = DEFAULT_SOLVER) -> SatAdapter:
    if backend == "pysat":
        from sudoku_pysat import PySatAdapter
        return PySatAdapter(solver_name)
    if backend == "z3":
        from sudoku_z3 import Z3Adapter
        return Z3Adapter()
    raise ValueError(f"Unknown backend {backend!r}; choose from {', '.join(BACKENDS)}")


@dataclass
class SolveResult:
    status: str
    solutions: List[Puzzle] = field(default_factory=list)
    # True when the search proved there are no solutions beyond `solutions`
    exhausted: bool = False
    # the time budget ran out; status stays SOLVED if a solution was already found
    timed_out: bool = False
    num_vars: int = 0
    num_clauses: int = 0
    elapsed: float = 0.0

    @property
    def solution(self) -> Optional[Puzzle]:
        return self.solutions[0] if self.solutions else None

    @property
    def is_unique(self) -> bool:
        return self.status == SOLVED and self.exhausted and len(self.solutions) == 1


def load_formula(adapter: SatAdapter, formula: Formula) -> bool:
    """
    Feed `formula` to `adapter`. Returns False when the clue units
    contradict each other, which is a puzzle without solutions.
    """
    adapter.declare_variables(formula.num_vars)
    structural = formula.num_structural
    for i, clause in enumerate(formula.clauses):
        try:
            adapter.add_clause(clause)
        except Contradiction as e:
            if i < structural:
                raise EncodingContradiction(
                    f"Structural clause #{i} {clause} rejected for N={formula.size}") from e
            log.info("Clues contradict each other (clause #%d %s)", i, clause)
            return False
    return True


def solve_sudoku(
    puzzle: Puzzle,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    backend: str = DEFAULT_BACKEND,
    solver_name: str = DEFAULT_SOLVER,
    max_solutions: Optional[int] = 1,
) -> SolveResult:
    """
    Solve an N x N Sudoku via SAT.
    - timeout: total seconds for all solver calls
    - max_solutions: stop after this many solutions (None = enumerate all)
    Returns a SolveResult; UNSOLVABLE and TIMEOUT are results, not errors.
    """
    timeout = check_timeout(timeout)
    if max_solutions is not None and max_solutions < 1:
        raise ValueError(f"max_solutions must be >= 1 or None; got {max_solutions}")

    N = puzzle.size
    started = time.perf_counter()
    formula = encode_puzzle(puzzle)
    result = SolveResult(status=UNSOLVABLE, num_vars=formula.num_vars,
                         num_clauses=formula.num_clauses)
    log.info("Solving %dx%d puzzle (%d clues) with %s: %d vars, %d clauses",
             N, N, puzzle.num_clues, backend, formula.num_vars, formula.num_clauses)

    with make_adapter(backend, solver_name) as adapter:
        if not load_formula(adapter, formula):
            result.exhausted = True
        else:
            deadline = started + timeout
            while True:
                remaining = deadline - time.perf_counter()
                outcome = adapter.solve(remaining) if remaining > 0 else TimedOut()
                if isinstance(outcome, TimedOut):
                    result.timed_out = True
                    if not result.solutions:
                        result.status = TIMEOUT
                    break
                if not isinstance(outcome, Satisfiable):
                    result.exhausted = True
                    break

                grid = decode_model(outcome.model, N)
                if not (grid.is_solved() and grid.extends(puzzle)):
                    raise EncodingContradiction(
                        f"Decoded model is not a valid completion:\n{grid}")
                result.status = SOLVED
                result.solutions.append(grid)
                if max_solutions is not None and len(result.solutions) >= max_solutions:
                    break
                try:
                    adapter.add_clause(blocking_clause(outcome.model, N))
                except Contradiction:
                    result.exhausted = True
                    break

    result.elapsed = time.perf_counter() - started
    log.info("%s: %d solution(s) in %.3fs", result.status, len(result.solutions), result.elapsed)
    return result


def count_solutions(puzzle: Puzzle, limit: int = 2, **kwargs) -> int:
    """Count solutions up to `limit`; raises TimeoutError if the search does not finish."""
    result = solve_sudoku(puzzle, max_solutions=limit, **kwargs)
    if result.timed_out:
        raise TimeoutError(f"Counting solutions did not finish ({len(result.solutions)} found)")
    return len(result.solutions)
