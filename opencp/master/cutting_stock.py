"""
Master problem for the Cutting Stock Problem.

    min  sum_p c_p * x_p                 (number of rolls)
    s.t. sum_p n_ip * x_p >= d_i          (demand of piece i, dual pi_i)
         x_p >= 0

Where n_ip = number of copies of piece i in pattern p. Unlike a set
covering master, the coefficients are general non-negative integers.

The master is seeded with patterns that make it feasible:
- 'trivial': one pattern per piece, floor(W / w_i) copies of piece i
- 'ffd': patterns from the First Fit Decreasing heuristic
- 'both': the union of the two
"""

import logging
import math
from typing import Dict, List, Optional

from opencp.config import config as global_config
from opencp.core.column import Column, ColumnPool
from opencp.core.instance import CuttingStockInstance
from opencp.master.base import MasterProblem
from opencp.master.solution import MasterSolution
from opencp.oracle import Oracle, OracleResult, OracleStatus, Sense, VarType

logger = logging.getLogger(__name__)

SEED_STRATEGIES = ('trivial', 'ffd', 'both')


def trivial_patterns(instance: CuttingStockInstance) -> List[Column]:
    """One pattern per piece holding as many copies as fit on a roll."""
    return [
        Column({i: instance.max_copies(i)}, attributes={'origin': 'trivial'})
        for i in range(instance.num_items)
    ]


def first_fit_decreasing(instance: CuttingStockInstance) -> List[Dict[int, int]]:
    """
    Pack every demanded piece with the First Fit Decreasing heuristic.

    Pieces are sorted by width (decreasing, ties by index) and each one goes
    on the first roll with room left, up to the feasibility tolerance.

    Returns:
        One {item: count} mapping per roll used
    """
    slack = global_config.get_tolerance("feasibility")
    pieces = []
    for i, piece in enumerate(instance.pieces):
        pieces.extend([(piece.width, i)] * piece.demand)
    pieces.sort(key=lambda p: (-p[0], p[1]))

    rolls: List[Dict[int, int]] = []
    used: List[float] = []

    for width, item in pieces:
        for r, load in enumerate(used):
            if load + width <= instance.roll_width + slack:
                rolls[r][item] = rolls[r].get(item, 0) + 1
                used[r] += width
                break
        else:
            rolls.append({item: 1})
            used.append(width)

    return rolls


def ffd_patterns(instance: CuttingStockInstance) -> List[Column]:
    """Patterns of the First Fit Decreasing packing; identical rolls collapse into one."""
    rolls = first_fit_decreasing(instance)
    unique = dict.fromkeys(Column(r, attributes={'origin': 'ffd'}) for r in rolls)
    return list(unique)


class CuttingStockMaster(MasterProblem):
    """
    Restricted master problem for Cutting Stock.

    Example:
        >>> master = CuttingStockMaster(instance)
        >>> solution = master.solve()
        >>> duals = master.duals           # one price per piece
        >>> master.add_column(Column({0: 1, 2: 3}))
    """

    def __init__(
        self,
        instance: CuttingStockInstance,
        oracle: Optional[Oracle] = None,
        seed: str = 'trivial',
        column_cost: float = 1.0,
    ):
        """
        Initialize and seed the cutting stock master.

        Args:
            instance: The cutting stock instance
            oracle: LP/MIP oracle (default from config)
            seed: Seeding strategy ('trivial', 'ffd' or 'both')
            column_cost: Cost of one roll

        Raises:
            ValueError: For an unknown seed strategy
        """
        if seed not in SEED_STRATEGIES:
            raise ValueError(f"seed must be one of {SEED_STRATEGIES}, got {seed!r}")

        self._instance = instance
        self._seed = seed
        self._column_cost = float(column_cost)
        self._pool = ColumnPool()

        # column_id -> variable index in the LP
        self._column_to_var: Dict[int, int] = {}

        super().__init__(Sense.MINIMIZE, oracle, name="cutting_stock_master")

    @property
    def instance(self) -> CuttingStockInstance:
        return self._instance

    @property
    def column_pool(self) -> ColumnPool:
        return self._pool

    @property
    def column_cost(self) -> float:
        return self._column_cost

    # =========================================================================
    # MasterProblem implementation
    # =========================================================================

    def _build_model(self) -> None:
        """Add one demand row per piece, then the seed patterns."""
        for i, piece in enumerate(self._instance.pieces):
            self._lp.add_constraint({}, '>=', float(piece.demand), name=f"demand[{i}]")

        seeds: List[Column] = []
        if self._seed in ('trivial', 'both'):
            seeds.extend(trivial_patterns(self._instance))
        if self._seed in ('ffd', 'both'):
            seeds.extend(ffd_patterns(self._instance))

        for column in seeds:
            self.add_column(column)

        logger.debug("Seeded cutting stock master with %d patterns", self.num_columns)

    def _add_column_impl(self, column: Column) -> Column:
        """Add a pattern as a new variable (duplicates are not re-added)."""
        if column.is_empty:
            raise ValueError("Cannot add an empty pattern")
        for item in column.items:
            if not 0 <= item < self._instance.num_items:
                raise ValueError(f"Pattern refers to unknown piece {item}")
        if not column.fits(self._instance.widths, self._instance.roll_width):
            raise ValueError(
                f"Pattern {column.as_dict()} has width "
                f"{column.width(self._instance.widths)} > roll width {self._instance.roll_width}"
            )

        existing = self._pool.find(column)
        if existing is not None:
            logger.debug("Pattern %s already in master as column %d",
                         column.as_dict(), existing.column_id)
            return existing

        if column.cost != self._column_cost:
            column = Column(
                pattern=column.pattern,
                cost=self._column_cost,
                reduced_cost=column.reduced_cost,
                attributes=column.attributes,
            )
        stored = self._pool.add(column)

        var = self._lp.add_variable(
            f"x[{stored.column_id}]",
            lower=0.0,
            cost=stored.cost,
            column={item: float(count) for item, count in stored.pattern},
        )
        self._column_to_var[stored.column_id] = var
        return stored

    def _build_solution(self, result: OracleResult) -> MasterSolution:
        solution = MasterSolution(
            status=result.status,
            objective_value=result.objective_value,
        )

        for col_id, var in self._column_to_var.items():
            value = result.values[var]
            if abs(value) > 1e-10:
                solution.column_values[col_id] = value

        for i, dual in enumerate(result.duals[:self._instance.num_items]):
            solution.dual_values[i] = dual

        return solution

    # =========================================================================
    # Integer solutions
    # =========================================================================

    def solve_integer(self, oracle: Optional[Oracle] = None) -> MasterSolution:
        """
        Solve the restricted master with integer x_p.

        Uses only the columns generated so far, so the result is a feasible
        plan (an upper bound on the integer optimum), not a proven optimum.
        The master itself stays an LP.

        Args:
            oracle: Oracle for the integer solve (e.g. with a time limit)

        Returns:
            MasterSolution with is_relaxation=False. A TIME_LIMIT or
            ITERATION_LIMIT status comes back with the incumbent if there is
            one, otherwise with objective_value None and no column values.

        Raises:
            OracleError: For any other non-optimal status
        """
        lp = self._lp.copy()
        lp.name = "cutting_stock_master_ip"
        lp.set_integrality(VarType.INTEGER)

        result = (oracle or self._oracle).solve(lp)
        if not result.has_solution:
            if result.status in (OracleStatus.TIME_LIMIT, OracleStatus.ITERATION_LIMIT):
                logger.warning("Restricted master IP stopped without an incumbent (%s)",
                               result.status.name)
                return MasterSolution(
                    status=result.status,
                    num_columns=self.num_columns,
                    solve_time=result.solve_time,
                    iterations=result.iterations,
                    is_relaxation=False,
                )
            self._check_status(result)

        solution = MasterSolution(
            status=result.status,
            objective_value=result.objective_value,
            num_columns=self.num_columns,
            solve_time=result.solve_time,
            iterations=result.iterations,
            is_relaxation=False,
        )
        for col_id, var in self._column_to_var.items():
            value = round(result.values[var])
            if value > 0:
                solution.column_values[col_id] = float(value)

        return solution

    def rounded_solution(self, lp_solution: Optional[MasterSolution] = None) -> MasterSolution:
        """
        Round an LP solution up to integers.

        Rounding up keeps every demand row satisfied (coefficients are
        non-negative), so this is always a feasible plan.

        Args:
            lp_solution: LP solution to round (default: last solve)
        """
        lp_solution = lp_solution or self._last_solution
        if lp_solution is None:
            raise ValueError("No LP solution to round; call solve() first")

        tol = global_config.get_tolerance("integrality")
        values = {
            col_id: float(math.ceil(value - tol))
            for col_id, value in lp_solution.column_values.items()
            if math.ceil(value - tol) > 0
        }
        objective = sum(
            self._columns[col_id].cost * value for col_id, value in values.items()
        )
        return MasterSolution(
            status=lp_solution.status,
            objective_value=objective,
            column_values=values,
            num_columns=self.num_columns,
            is_relaxation=False,
        )

    def produced(self, solution: MasterSolution) -> List[float]:
        """Number of pieces of each type produced by a solution."""
        produced = [0.0] * self._instance.num_items
        for col_id, value in solution.column_values.items():
            for item, count in self._columns[col_id].pattern:
                produced[item] += count * value
        return produced
