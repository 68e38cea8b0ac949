# sudoku_pysat.py
# SAT backend on top of PySAT.
# Requires: pip install python-sat

import logging
from threading import Timer
from typing import Sequence

from pysat.solvers import Solver, SolverNames

from sat_backend import (Contradiction, SatAdapter, Satisfiable, TimedOut,
                         Unsatisfiable, check_timeout)

log = logging.getLogger(__name__)

# solver families whose solve_limited() honours interrupt()
INTERRUPTIBLE = (
    "glucose3", "glucose4", "glucose42", "gluecard3", "gluecard4",
    "maplechrono", "maplecm", "maplesat", "mergesat3",
    "minicard", "minisat22", "minisatgh",
)


def interruptible_names():
    names = set()
    for family in INTERRUPTIBLE:
        names.update(getattr(SolverNames, family, ()))
    return names


class PySatAdapter(SatAdapter):
    """
    Wraps any pysat.solvers.Solver that supports interruption
    (Glucose, MiniSat, MapleSAT families; default Glucose 4).
    """

    def __init__(self, solver_name: str = "g4"):
        super().__init__()
        if solver_name.lower() not in interruptible_names():
            raise ValueError(
                f"PySAT solver {solver_name!r} is unknown or cannot be interrupted; "
                f"choose one of {', '.join(sorted(interruptible_names()))}")
        self._solver = Solver(name=solver_name)
        self.solver_name = solver_name

    def add_clause(self, literals: Sequence[int]) -> None:
        clause = self._check_clause(literals)
        # no_return=False: the engine reports a level-0 conflict
        if self._solver.add_clause(clause, no_return=False) is False:
            raise Contradiction(f"Clause {clause} made the formula trivially false")

    def solve(self, timeout: float):
        timeout = check_timeout(timeout)
        timer = Timer(timeout, self._solver.interrupt)
        timer.start()
        try:
            status = self._solver.solve_limited(expect_interrupt=True)
        finally:
            timer.cancel()
        self._solver.clear_interrupt()

        if status is None:
            log.debug("%s interrupted after %.3fs", self.solver_name, timeout)
            return TimedOut()
        if not status:
            return Unsatisfiable()
        return Satisfiable(list(self._solver.get_model()))

    def close(self) -> None:
        if self._solver is not None:
            self._solver.delete()
            self._solver = None
