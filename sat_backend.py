# sat_backend.py
# Capability interface every SAT backend exposes to the Sudoku pipeline.

from dataclasses import dataclass
from typing import List, Sequence


class Contradiction(Exception):
    """The backend found the clauses added so far trivially unsatisfiable."""


@dataclass(frozen=True)
class Satisfiable:
    model: List[int]


@dataclass(frozen=True)
class Unsatisfiable:
    pass


@dataclass(frozen=True)
class TimedOut:
    pass


class SatAdapter:
    """
    Incremental SAT engine:
      declare_variables(count) -> None
      add_clause(literals)     -> None, raises Contradiction
      solve(timeout)           -> Satisfiable | Unsatisfiable | TimedOut
    Adapters are context managers; leaving the block frees the engine.
    """

    def __init__(self):
        self.num_vars = 0

    def declare_variables(self, count: int) -> None:
        if count < 0:
            raise ValueError(f"Variable count must be non-negative; got {count}")
        self.num_vars = max(self.num_vars, count)

    def _check_clause(self, literals: Sequence[int]) -> List[int]:
        clause = list(literals)
        if not clause:
            raise ValueError("Clause must not be empty")
        for lit in clause:
            if lit == 0 or abs(lit) > self.num_vars:
                raise ValueError(
                    f"Literal {lit} outside declared range 1..{self.num_vars}")
        return clause

    def add_clause(self, literals: Sequence[int]) -> None:
        raise NotImplementedError

    def solve(self, timeout: float):
        raise NotImplementedError

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def check_timeout(timeout: float) -> float:
    if timeout is None or timeout <= 0:
        raise ValueError(f"solve() needs a positive timeout; got {timeout!r}")
    return float(timeout)
