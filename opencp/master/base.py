"""
Master problem abstract base class.

The master problem is an outer approximation of the true problem that
only knows the columns / cuts generated so far. It owns an explicit,
append-only LinearProgram and an Oracle; every solve hands the full model
to the oracle, so no hidden solver state is shared.

Two concrete masters ship with OpenCP:
1. CuttingStockMaster: column-wise growth (one variable per pattern)
2. KelleyMaster: row-wise growth (one constraint per cut)

Customization Guide:
-------------------
To create a custom master problem:

1. Subclass MasterProblem
2. Implement _build_model (seed the model) and _build_solution
3. Implement _add_column_impl and/or _add_cut_impl
4. Optionally override hooks (_before_solve, _after_solve, _on_item_added)
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from opencp.core.column import Column
from opencp.core.cut import Cut
from opencp.errors import InfeasibleMaster, OracleError, StaleDuals, UnboundedMaster
from opencp.master.solution import MasterSolution
from opencp.oracle import LinearProgram, Oracle, OracleResult, OracleStatus, Sense, get_default_oracle

logger = logging.getLogger(__name__)


class MasterProblem(ABC):
    """
    Abstract base class for master problems.

    Lifecycle:
    ---------
    1. Create: master = CuttingStockMaster(instance)  (seeds the model)
    2. Solve: solution = master.solve()
    3. Read duals / candidate point from the solution
    4. Append: master.add_column(col) or master.add_cut(cut)
    5. Repeat 2-4

    Appending invalidates the duals of the previous solve: reading
    `duals` before the next solve raises StaleDuals.

    Attributes:
        sense: Objective sense of the master
        oracle: LP/MIP oracle used for every solve
    """

    def __init__(self, sense: Sense, oracle: Optional[Oracle] = None, name: str = "master"):
        """
        Initialize the master problem.

        Args:
            sense: Objective sense
            oracle: LP/MIP oracle (defaults to get_default_oracle())
            name: Model name
        """
        self._oracle = oracle if oracle is not None else get_default_oracle()
        self._lp = LinearProgram(sense, name=name)

        self._columns: Dict[int, Column] = {}
        self._cuts: List[Cut] = []

        self._last_solution: Optional[MasterSolution] = None
        self._duals_valid = False
        self._num_solves = 0

        # Seed the model
        self._build_model()

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def lp(self) -> LinearProgram:
        """The underlying model (do not modify directly)."""
        return self._lp

    @property
    def oracle(self) -> Oracle:
        return self._oracle

    @property
    def sense(self) -> Sense:
        return self._lp.sense

    @property
    def num_columns(self) -> int:
        """Number of columns currently in the master."""
        return len(self._columns)

    @property
    def columns(self) -> List[Column]:
        return list(self._columns.values())

    @property
    def num_cuts(self) -> int:
        """Number of cuts currently in the master."""
        return len(self._cuts)

    @property
    def cuts(self) -> List[Cut]:
        return list(self._cuts)

    @property
    def num_solves(self) -> int:
        return self._num_solves

    @property
    def last_solution(self) -> Optional[MasterSolution]:
        return self._last_solution

    @property
    def duals(self) -> Dict[int, float]:
        """
        Dual prices of the last solve.

        Raises:
            StaleDuals: If the master changed since the last solve
        """
        if not self._duals_valid or self._last_solution is None:
            raise StaleDuals("Master changed since the last solve; call solve() first")
        return dict(self._last_solution.dual_values)

    @property
    def has_valid_duals(self) -> bool:
        return self._duals_valid

    # =========================================================================
    # Abstract Methods (MUST be implemented by subclasses)
    # =========================================================================

    @abstractmethod
    def _build_model(self) -> None:
        """
        Build the seed master.

        Called once from __init__. Must leave a model that is feasible and,
        for bounded problems, bounded.
        """
        pass

    @abstractmethod
    def _build_solution(self, result: OracleResult) -> MasterSolution:
        """
        Translate an optimal OracleResult into a MasterSolution.

        Args:
            result: Optimal oracle result for self._lp

        Returns:
            MasterSolution with primals, duals and/or candidate point
        """
        pass

    # =========================================================================
    # Public API - Appending
    # =========================================================================

    def add_column(self, column: Column) -> Column:
        """
        Append a column (new decision variable).

        Args:
            column: The column to add

        Returns:
            The stored column (with column_id set)
        """
        stored = self._add_column_impl(column)
        self._columns[stored.column_id] = stored
        self._invalidate()
        self._on_item_added(stored)
        return stored

    def add_cut(self, cut: Cut) -> Cut:
        """
        Append a cut (new linear inequality over existing variables).

        Args:
            cut: The cut to add

        Returns:
            The stored cut (with cut_id set)
        """
        stored = self._add_cut_impl(cut)
        self._cuts.append(stored)
        self._invalidate()
        self._on_item_added(stored)
        return stored

    def add(self, item) -> object:
        """Append a Column or a Cut."""
        if isinstance(item, Column):
            return self.add_column(item)
        if isinstance(item, Cut):
            return self.add_cut(item)
        raise TypeError(f"Expected Column or Cut, got {type(item).__name__}")

    def get_column(self, column_id: int) -> Optional[Column]:
        return self._columns.get(column_id)

    # =========================================================================
    # Public API - Solving
    # =========================================================================

    def solve(self) -> MasterSolution:
        """
        Solve the master problem.

        Returns:
            MasterSolution (always optimal)

        Raises:
            InfeasibleMaster: If the oracle reports infeasibility
            UnboundedMaster: If the oracle reports unboundedness
            OracleError: For any other non-optimal status
        """
        self._before_solve()

        result = self._oracle.solve(self._lp)
        self._num_solves += 1
        self._check_status(result)

        solution = self._build_solution(result)
        solution.variable_values = {
            var.name: value for var, value in zip(self._lp.variables, result.values)
        }
        solution.solve_time = result.solve_time
        solution.iterations = result.iterations
        solution.num_columns = self.num_columns
        solution.num_cuts = self.num_cuts

        solution = self._after_solve(solution)

        self._last_solution = solution
        # Integer solves carry no duals
        self._duals_valid = not self._lp.is_mip

        logger.debug(
            "%s solve #%d: objective=%.6f", self._lp.name, self._num_solves,
            solution.objective_value,
        )
        return solution

    def _check_status(self, result: OracleResult) -> None:
        """Raise the error matching a non-optimal oracle status."""
        if result.status == OracleStatus.OPTIMAL:
            return

        self._invalidate()
        if result.status == OracleStatus.INFEASIBLE:
            raise InfeasibleMaster(
                f"Master problem {self._lp.name!r} is infeasible", result.status
            )
        if result.status in (OracleStatus.UNBOUNDED, OracleStatus.INF_OR_UNBOUNDED):
            raise UnboundedMaster(
                f"Master problem {self._lp.name!r} is unbounded "
                f"(status {result.status.name}); supply a valid bound",
                result.status,
            )
        raise OracleError(
            f"Master problem {self._lp.name!r} not solved to optimality: {result.status.name}",
            result.status,
        )

    # =========================================================================
    # Optional Implementation Methods (override in subclasses)
    # =========================================================================

    def _add_column_impl(self, column: Column) -> Column:
        """
        Add a column to the model.

        Default implementation raises NotImplementedError.
        """
        raise NotImplementedError(
            f"{self.__class__.__name__} does not support columns"
        )

    def _add_cut_impl(self, cut: Cut) -> Cut:
        """
        Add a cut to the model.

        Default implementation raises NotImplementedError.
        """
        raise NotImplementedError(
            f"{self.__class__.__name__} does not support cuts"
        )

    # =========================================================================
    # Hooks (override for custom behavior)
    # =========================================================================

    def _on_item_added(self, item) -> None:
        """Hook called after a column or cut is added."""
        pass

    def _before_solve(self) -> None:
        """Hook called before each solve."""
        pass

    def _after_solve(self, solution: MasterSolution) -> MasterSolution:
        """Hook called after each successful solve."""
        return solution

    # =========================================================================
    # Internal Methods
    # =========================================================================

    def _invalidate(self) -> None:
        self._duals_valid = False

    def summary(self) -> str:
        """Return a human-readable summary."""
        lines = [
            f"{self.__class__.__name__}: {self._lp.name}",
            f"  Sense: {self.sense.name}",
            f"  Variables: {self._lp.num_variables}",
            f"  Constraints: {self._lp.num_constraints}",
            f"  Columns: {self.num_columns}",
            f"  Cuts: {self.num_cuts}",
            f"  Solves: {self._num_solves}",
        ]
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"columns={self.num_columns}, "
            f"cuts={self.num_cuts})"
        )
