# sudoku_app.py
# Command-line entry point: load a puzzle file, solve it via SAT, print the result.

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from sudoku import PuzzleError, load_puzzle, print_grid
from sudoku_cnf import InvalidModelError, encode_puzzle
from sudoku_solver import (BACKENDS, DEFAULT_BACKEND, DEFAULT_SOLVER, DEFAULT_TIMEOUT,
                           SOLVED, TIMEOUT, EncodingContradiction, solve_sudoku)

log = logging.getLogger(__name__)

PUZZLE_DIR = Path(__file__).resolve().parent / "puzzles"
DEFAULT_PUZZLE = PUZZLE_DIR / "easy.txt"

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_TIMEOUT = 2


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Solve an N x N Sudoku by reduction to SAT.")
    ap.add_argument("puzzle", nargs="?", type=Path, default=DEFAULT_PUZZLE,
                    help="Puzzle file: size N on the first line, then N rows of N numbers (0 = empty)")
    ap.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT,
                    help="Seconds allowed for the SAT search")
    ap.add_argument("--backend", choices=BACKENDS, default=DEFAULT_BACKEND,
                    help="SAT engine to use")
    ap.add_argument("--solver", default=DEFAULT_SOLVER,
                    help="Interruptible PySAT solver name, e.g. g4, g3, m22, mcb (pysat backend only)")
    ap.add_argument("--max-solutions", type=int, default=1,
                    help="Enumerate up to this many solutions (0 = all)")
    ap.add_argument("--dimacs", type=Path, default=None,
                    help="Also write the CNF formula to this path in DIMACS format")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return ap.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        puzzle = load_puzzle(args.puzzle)
    except PuzzleError as e:
        print(f"Error loading puzzle: {e}", file=sys.stderr)
        return EXIT_FAILED

    print("Input puzzle:")
    print_grid(puzzle)

    if args.dimacs is not None:
        encode_puzzle(puzzle).write_dimacs(args.dimacs)
        log.info("Wrote DIMACS formula to %s", args.dimacs)

    try:
        result = solve_sudoku(
            puzzle,
            timeout=args.timeout,
            backend=args.backend,
            solver_name=args.solver,
            max_solutions=args.max_solutions or None,
        )
    except (EncodingContradiction, InvalidModelError):
        log.exception("Internal encoding error")
        return EXIT_FAILED
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILED

    for i, grid in enumerate(result.solutions, 1):
        print("Solution found:" if len(result.solutions) == 1 else f"Solution {i}:")
        print_grid(grid)

    if result.status == TIMEOUT:
        print(f"Solving did not complete within {args.timeout:g}s.", file=sys.stderr)
        return EXIT_TIMEOUT
    if result.status != SOLVED:
        print("No solution found for the given puzzle.", file=sys.stderr)
        return EXIT_FAILED

    if result.timed_out:
        print(f"Search for more solutions stopped after {args.timeout:g}s.", file=sys.stderr)
    elif result.exhausted:
        print(f"Number of solutions: {len(result.solutions)}")
    print(f"({result.num_vars} variables, {result.num_clauses} clauses, {result.elapsed:.3f}s)")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
