# sudoku_z3.py
# SAT backend on top of Z3: one Bool per variable, one Or per clause.

import logging
from typing import Sequence

from z3 import Bool, Not, Or, Solver, is_true, sat, unsat

from sat_backend import SatAdapter, Satisfiable, TimedOut, Unsatisfiable, check_timeout

log = logging.getLogger(__name__)


class Z3Adapter(SatAdapter):
    """Z3 used as a plain SAT engine."""

    def __init__(self):
        super().__init__()
        self._solver = Solver()
        self._vars = [None]  # 1-based

    def declare_variables(self, count: int) -> None:
        super().declare_variables(count)
        while len(self._vars) <= self.num_vars:
            self._vars.append(Bool(f"x_{len(self._vars)}"))

    def _lit(self, lit: int):
        x = self._vars[abs(lit)]
        return x if lit > 0 else Not(x)

    def add_clause(self, literals: Sequence[int]) -> None:
        clause = self._check_clause(literals)
        self._solver.add(Or([self._lit(l) for l in clause]))

    def solve(self, timeout: float):
        timeout = check_timeout(timeout)
        self._solver.set("timeout", max(1, int(timeout * 1000)))
        res = self._solver.check()
        if res == sat:
            m = self._solver.model()
            model = []
            for i in range(1, self.num_vars + 1):
                v = m.eval(self._vars[i], model_completion=True)
                model.append(i if is_true(v) else -i)
            return Satisfiable(model)
        if res == unsat:
            return Unsatisfiable()
        log.debug("z3 returned unknown: %s", self._solver.reason_unknown())
        return TimedOut()
