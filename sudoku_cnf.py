# sudoku_cnf.py
# Reduce an N x N Sudoku to CNF and read a solved grid back from a model.
#
# Variable mapping (all zero-based, r,c,v in [0, N)):
#     x_{r,c,v} -> r*N*N + c*N + v + 1   in [1 .. N^3]
# x_{r,c,v} true means cell (r,c) holds the digit v+1.

import logging
from dataclasses import dataclass, field
from math import isqrt
from pathlib import Path
from typing import Dict, Iterable, List, Tuple, Union

from pysat.formula import CNF

from sudoku import Puzzle

log = logging.getLogger(__name__)

Clause = List[int]


class InvalidModelError(RuntimeError):
    """A model asserted a variable outside the Sudoku variable range."""


# ----- Variable mapping
def vid(r: int, c: int, v: int, N: int) -> int:
    if not (0 <= r < N and 0 <= c < N and 0 <= v < N):
        raise ValueError(f"(r={r}, c={c}, v={v}) out of range for N={N}")
    return r * N * N + c * N + v + 1


def inv_vid(var: int, N: int) -> Tuple[int, int, int]:
    if not (1 <= var <= N * N * N):
        raise ValueError(f"Variable {var} out of range 1..{N * N * N}")
    x = var - 1
    v = x % N
    c = (x // N) % N
    r = x // (N * N)
    return r, c, v


# ----- Exactly-one
def exactly_one(lits: List[int]) -> List[Clause]:
    """Encoding: at-least-one + pairwise at-most-one."""
    clauses = [list(lits)]
    k = len(lits)
    for i in range(k):
        for j in range(i + 1, k):
            clauses.append([-lits[i], -lits[j]])
    return clauses


# ----- Constraint families
def cell_clauses(N: int) -> List[Clause]:
    """Each cell holds exactly one digit."""
    cls = []
    for r in range(N):
        for c in range(N):
            cls += exactly_one([vid(r, c, v, N) for v in range(N)])
    return cls


def row_clauses(N: int) -> List[Clause]:
    """Each digit appears exactly once per row."""
    cls = []
    for r in range(N):
        for v in range(N):
            cls += exactly_one([vid(r, c, v, N) for c in range(N)])
    return cls


def column_clauses(N: int) -> List[Clause]:
    """Each digit appears exactly once per column."""
    cls = []
    for c in range(N):
        for v in range(N):
            cls += exactly_one([vid(r, c, v, N) for r in range(N)])
    return cls


def block_clauses(N: int) -> List[Clause]:
    """Each digit appears exactly once per n x n block."""
    n = isqrt(N)
    cls = []
    for br in range(n):
        for bc in range(n):
            rows = range(br * n, br * n + n)
            cols = range(bc * n, bc * n + n)
            for v in range(N):
                cls += exactly_one([vid(r, c, v, N) for r in rows for c in cols])
    return cls


def clue_clauses(puzzle: Puzzle) -> List[Clause]:
    N = puzzle.size
    return [[vid(r, c, d - 1, N)] for r, c, d in puzzle.clues()]


@dataclass
class Formula:
    """Variable count plus clauses in family order: cell, row, column, block, clue."""

    size: int
    num_vars: int
    clauses: List[Clause] = field(default_factory=list)
    families: Dict[str, int] = field(default_factory=dict)

    @property
    def num_clauses(self) -> int:
        return len(self.clauses)

    @property
    def num_structural(self) -> int:
        # clauses preceding the clue family
        return self.num_clauses - self.families.get("clue", 0)

    def add_family(self, name: str, clauses: List[Clause]) -> None:
        self.clauses.extend(clauses)
        self.families[name] = len(clauses)

    def to_cnf(self) -> CNF:
        cnf = CNF(from_clauses=self.clauses)
        cnf.nv = self.num_vars
        return cnf

    def write_dimacs(self, path: Union[str, Path]) -> None:
        comments = [f"c sudoku N={self.size} families="
                    + ",".join(f"{k}:{v}" for k, v in self.families.items())]
        self.to_cnf().to_file(str(path), comments=comments)


def structural_clause_count(N: int) -> int:
    """4 families x N^2 groups x (1 ALO + C(N,2) AMO)."""
    return 4 * N * N * (1 + N * (N - 1) // 2)


def encode_puzzle(puzzle: Puzzle) -> Formula:
    """Build the CNF whose models are exactly the completions of `puzzle`."""
    N = puzzle.size
    formula = Formula(size=N, num_vars=N * N * N)
    formula.add_family("cell", cell_clauses(N))
    formula.add_family("row", row_clauses(N))
    formula.add_family("column", column_clauses(N))
    formula.add_family("block", block_clauses(N))
    formula.add_family("clue", clue_clauses(puzzle))
    log.debug("Encoded N=%d: %d vars, %d clauses %s",
              N, formula.num_vars, formula.num_clauses, formula.families)
    return formula


# ----- Decoding
def decode_model(model: Iterable[int], N: int) -> Puzzle:
    """
    Build a grid from the positive literals of a model; negative literals
    are ignored and cells with no positive literal stay 0.
    """
    limit = N * N * N
    out = [[0] * N for _ in range(N)]
    for lit in model:
        if lit <= 0:
            continue
        if lit > limit:
            raise InvalidModelError(f"Model literal {lit} outside 1..{limit}")
        r, c, v = inv_vid(lit, N)
        if out[r][c] == 0:
            out[r][c] = v + 1
        else:
            log.warning("Cell (%d,%d) asserted twice: kept %d, ignored %d",
                        r, c, out[r][c], v + 1)
    return Puzzle(out)


def blocking_clause(model: Iterable[int], N: int) -> Clause:
    """Clause forbidding the primary assignment of `model`."""
    limit = N * N * N
    return [-l for l in model if 0 < l <= limit]
