# sudoku.py
# N x N Sudoku board: validation, file format, full-grid check and printing.

import logging
from math import isqrt
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple, Union

log = logging.getLogger(__name__)

Grid = Tuple[Tuple[int, ...], ...]


class PuzzleError(ValueError):
    """Raised for malformed puzzle input or an invalid board shape."""


class Puzzle:
    """
    Immutable N x N Sudoku board, N = n^2.
    0 marks an empty cell, 1..N a filled one.
    """

    __slots__ = ("_grid", "_size", "_block")

    def __init__(self, rows: Sequence[Sequence[int]]):
        if not rows:
            raise PuzzleError("Board must not be empty")
        size = len(rows)
        for r, row in enumerate(rows):
            if len(row) != size:
                raise PuzzleError(
                    f"Board must be square: row {r} has {len(row)} cells, expected {size}")
        block = isqrt(size)
        if block * block != size:
            raise PuzzleError(f"N must be a perfect square; got N={size}")
        for r in range(size):
            for c in range(size):
                v = rows[r][c]
                if isinstance(v, bool) or not isinstance(v, int):
                    raise PuzzleError(f"Cell ({r},{c}) is not an integer: {v!r}")
                if v < 0 or v > size:
                    raise PuzzleError(f"Cell ({r},{c}) value {v} out of range 0..{size}")
        self._grid: Grid = tuple(tuple(row) for row in rows)
        self._size = size
        self._block = block

    @property
    def size(self) -> int:
        return self._size

    @property
    def block_size(self) -> int:
        return self._block

    @property
    def grid(self) -> Grid:
        return self._grid

    def __getitem__(self, rc: Tuple[int, int]) -> int:
        r, c = rc
        return self._grid[r][c]

    def __eq__(self, other):
        if not isinstance(other, Puzzle):
            return NotImplemented
        return self._grid == other._grid

    def __hash__(self):
        return hash(self._grid)

    def __repr__(self):
        return f"Puzzle(size={self._size}, clues={self.num_clues})"

    def __str__(self):
        return "\n".join(" ".join(str(v) for v in row) for row in self._grid)

    def to_lists(self) -> List[List[int]]:
        return [list(row) for row in self._grid]

    def clues(self) -> Iterable[Tuple[int, int, int]]:
        """Yield (row, col, value) for every filled cell, row-major."""
        for r, row in enumerate(self._grid):
            for c, v in enumerate(row):
                if v:
                    yield r, c, v

    @property
    def num_clues(self) -> int:
        return sum(1 for _ in self.clues())

    def is_filled(self) -> bool:
        return all(v for row in self._grid for v in row)

    def is_solved(self) -> bool:
        """
        True when every cell is filled and each row, column and block
        holds 1..N exactly once.
        """
        if not self.is_filled():
            return False
        N, n = self._size, self._block
        want = set(range(1, N + 1))
        for r in range(N):
            if set(self._grid[r]) != want:
                return False
        for c in range(N):
            if {self._grid[r][c] for r in range(N)} != want:
                return False
        for br in range(n):
            for bc in range(n):
                cells = {self._grid[r][c]
                         for r in range(br * n, br * n + n)
                         for c in range(bc * n, bc * n + n)}
                if cells != want:
                    return False
        return True

    def extends(self, other: "Puzzle") -> bool:
        """True if every clue of `other` is present in this board."""
        if other.size != self._size:
            return False
        return all(self._grid[r][c] == v for r, c, v in other.clues())


# ---------- file format ----------
def parse_puzzle(lines: Iterable[str]) -> Puzzle:
    """
    Parse the puzzle file format:

        N
        v11 v12 ... v1N
        ...
        vN1 vN2 ... vNN

    Blank lines are skipped; 0 marks an empty cell.
    """
    rows = [line.strip() for line in lines]
    rows = [line for line in rows if line]
    if not rows:
        raise PuzzleError("Empty puzzle input")

    header = rows[0].split()
    if len(header) != 1:
        raise PuzzleError(f"First line must hold the board size only, got {rows[0]!r}")
    try:
        N = int(header[0])
    except ValueError:
        raise PuzzleError(f"Invalid board size: {header[0]!r}") from None
    if N <= 0:
        raise PuzzleError(f"Board size must be positive; got {N}")

    body = rows[1:]
    if len(body) != N:
        raise PuzzleError(f"Expected {N} rows, found {len(body)}")

    grid: List[List[int]] = []
    for r, line in enumerate(body):
        toks = line.split()
        if len(toks) != N:
            raise PuzzleError(f"Row {r} has {len(toks)} values, expected {N}")
        try:
            grid.append([int(t) for t in toks])
        except ValueError:
            raise PuzzleError(f"Invalid number in row {r}: {line!r}") from None
    return Puzzle(grid)


def load_puzzle(path: Union[str, Path]) -> Puzzle:
    path = Path(path)
    try:
        text = path.read_text()
    except OSError as e:
        raise PuzzleError(f"Cannot read puzzle file {path}: {e}") from e
    puzzle = parse_puzzle(text.splitlines())
    log.debug("Loaded %dx%d puzzle with %d clues from %s",
              puzzle.size, puzzle.size, puzzle.num_clues, path)
    return puzzle


def dump_puzzle(puzzle: Puzzle) -> str:
    """Inverse of parse_puzzle."""
    return f"{puzzle.size}\n{puzzle}\n"


# ---------- printing ----------
def _symbol(v: int) -> str:
    # pretty printing up to base-36: 1..9, A..Z
    if v == 0:
        return "."
    if 1 <= v <= 9:
        return str(v)
    return chr(ord("A") + (v - 10))


def format_grid(grid: Union[Puzzle, Sequence[Sequence[int]]]) -> str:
    rows = grid.grid if isinstance(grid, Puzzle) else grid
    N = len(rows)
    n = isqrt(N)
    cellw = 2 if N <= 9 else 3  # wider for 16x16 etc.

    lines = []
    for r in range(N):
        if r % n == 0 and r != 0:
            lines.append(hsep)
        parts = []
        for c in range(N):
            if c % n == 0 and c != 0:
                parts.append("|")
            parts.append(_symbol(rows[r][c]).rjust(cellw))
        line = " ".join(parts)
        hsep = "-" * len(line)
        lines.append(line)
    return "\n".join(lines)


def print_grid(grid: Union[Puzzle, Sequence[Sequence[int]]]) -> None:
    print(format_grid(grid))
    print()
