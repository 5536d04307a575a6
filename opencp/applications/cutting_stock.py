"""
Cutting Stock Problem (CSP) application.

The Cutting Stock Problem:
- Given: Rolls of width W, pieces of width w_i with demand d_i
- Find: Minimum number of rolls to cut all pieces

Column Generation Formulation:
- Master: min sum(x_p) s.t. sum(n_ip * x_p) >= d_i for all i
- Pricing: Integer knapsack max sum(pi_i * y_i) s.t. sum(w_i * y_i) <= W

Bounds during column generation:
- the restricted master objective z is an upper bound on the LP optimum
- with v* the pricing optimum, Farley's bound z * min(1, c / v*) is a
  lower bound on it (c = cost of one roll)

After the LP converges an integer plan is obtained by re-solving the
restricted master with integer x_p, and the LP solution rounded up gives a
second, always feasible plan.

For comparison, solve_compact_model() solves the naive assignment MILP
(one binary per roll, one integer per piece and roll) directly.

Example:
    >>> instance = example_instance()
    >>> solution = solve_cutting_stock(instance)
    >>> print(f"LP bound: {solution.lp_objective:.2f}, rolls: {solution.num_rolls_ip}")
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from opencp.config import config as global_config
from opencp.core.column import Column
from opencp.core.instance import CuttingStockInstance, Piece, example_instance
from opencp.master.cutting_stock import CuttingStockMaster, ffd_patterns, first_fit_decreasing
from opencp.master.solution import MasterSolution
from opencp.oracle import (
    LinearProgram,
    Oracle,
    OracleStatus,
    Sense,
    VarType,
    get_default_oracle,
)
from opencp.pricing.base import PricingConfig
from opencp.pricing.knapsack import KnapsackPricing
from opencp.solver import CPConfig, CPIteration, CPStatus, CuttingPlaneSolver, Decomposition, Separation

logger = logging.getLogger(__name__)

Pattern = Dict[int, int]


def farley_bound(master_objective: float, pricing_value: float, column_cost: float = 1.0) -> float:
    """
    Lagrangian lower bound on the LP optimum.

    Scaling the duals by c / v* makes them dual feasible, so
    z * min(1, c / v*) bounds the full LP from below.

    Args:
        master_objective: Restricted master objective z
        pricing_value: Optimal pricing value v* = max sum pi_i y_i
        column_cost: Cost c of one column
    """
    if pricing_value <= column_cost:
        return master_objective
    return master_objective * column_cost / pricing_value


class CuttingStockDecomposition(Decomposition):
    """
    Cutting stock master plus knapsack pricing as the separation step.

    Example:
        >>> decomposition = CuttingStockDecomposition(instance)
        >>> solution = CuttingPlaneSolver(decomposition).solve()
        >>> decomposition.master.solve_integer()
    """

    def __init__(
        self,
        instance: CuttingStockInstance,
        master: Optional[CuttingStockMaster] = None,
        pricing: Optional[KnapsackPricing] = None,
        seed: str = 'trivial',
        pricing_config: Optional[PricingConfig] = None,
        oracle: Optional[Oracle] = None,
    ):
        """
        Args:
            instance: The cutting stock instance
            master: Master problem (default: CuttingStockMaster)
            pricing: Pricing problem (default: KnapsackPricing)
            seed: Seeding strategy of the default master
            pricing_config: Configuration of the default pricing
            oracle: LP/MIP oracle for the default master and, with
                method='oracle', the default pricing. It must solve MIPs to
                a zero gap or pricing may miss an improving pattern.
        """
        self._instance = instance
        pricing_config = pricing_config or PricingConfig()

        if master is None:
            master = CuttingStockMaster(
                instance, oracle=oracle, seed=seed, column_cost=pricing_config.column_cost,
            )
        if pricing is None:
            pricing = KnapsackPricing(instance, pricing_config, oracle=oracle)

        self._master = master
        self._pricing = pricing
        self._last_pricing_value: Optional[float] = None

    @property
    def master(self) -> CuttingStockMaster:
        return self._master

    @property
    def pricing(self) -> KnapsackPricing:
        return self._pricing

    @property
    def instance(self) -> CuttingStockInstance:
        return self._instance

    @property
    def last_pricing_value(self) -> Optional[float]:
        return self._last_pricing_value

    def separate(self, master_solution: MasterSolution) -> Separation:
        """Price the master duals; the bound is Farley's Lagrangian bound."""
        self._pricing.set_dual_values(self._master.duals)
        pricing_solution = self._pricing.solve()
        self._last_pricing_value = pricing_solution.best_value

        bound = farley_bound(
            master_solution.objective_value,
            pricing_solution.best_value,
            self._pricing.config.column_cost,
        )
        return Separation(
            bound=bound,
            candidate=dict(master_solution.column_values),
            item=pricing_solution.column,
        )

    def best_candidate(self) -> Optional[Dict[int, float]]:
        last = self._master.last_solution
        return None if last is None else dict(last.column_values)


@dataclass
class CuttingStockSolution:
    """
    Solution to a cutting stock problem.

    Attributes:
        num_rolls: LP relaxation value (may be fractional)
        num_rolls_ip: Rolls used by the restricted master IP (None if not solved)
        num_rolls_rounded: Rolls used by the LP solution rounded up
        patterns: (pattern, count) pairs of the best integer plan, or of the
            LP solution if no integer plan was computed
        lp_objective: Final restricted master objective
        lp_lower_bound: Best Lagrangian lower bound on the LP optimum
        ip_objective: Objective of the restricted master IP
        ip_status: Oracle status of the IP solve
        status: CPStatus of column generation
        solve_time: Total time in seconds
        iterations: Column generation iterations
        num_columns: Columns in the final master
        lower_bound: L2 lower bound ceil(sum w_i d_i / W)
        history: Per-iteration information
    """
    num_rolls: float
    num_rolls_ip: Optional[int]
    num_rolls_rounded: int
    patterns: List[Tuple[Pattern, float]]
    lp_objective: float
    lp_lower_bound: float
    ip_objective: Optional[float]
    ip_status: Optional[OracleStatus]
    status: CPStatus
    solve_time: float
    iterations: int
    num_columns: int
    lower_bound: Optional[float] = None
    history: List[CPIteration] = field(default_factory=list)

    @property
    def is_lp_optimal(self) -> bool:
        """True if column generation proved the LP optimum."""
        return self.status == CPStatus.CONVERGED

    @property
    def best_integer_rolls(self) -> int:
        """Smallest number of rolls of the integer plans found."""
        if self.num_rolls_ip is None:
            return self.num_rolls_rounded
        return min(self.num_rolls_ip, self.num_rolls_rounded)

    def produced(self, instance: CuttingStockInstance) -> List[float]:
        """Number of pieces of each type cut by the reported patterns."""
        produced = [0.0] * instance.num_items
        for pattern, count in self.patterns:
            for item, copies in pattern.items():
                produced[item] += copies * count
        return produced

    def satisfies_demand(self, instance: CuttingStockInstance, tol: float = 1e-6) -> bool:
        """True if the reported patterns cut every demanded piece."""
        return all(
            made >= piece.demand - tol
            for made, piece in zip(self.produced(instance), instance.pieces)
        )

    def summary(self) -> str:
        lines = [
            "Cutting Stock Solution:",
            f"  Status: {self.status.name}",
            f"  LP objective: {self.lp_objective:.6f}",
            f"  LP lower bound: {self.lp_lower_bound:.6f}",
        ]
        if self.num_rolls_ip is not None:
            lines.append(f"  Rolls (restricted IP): {self.num_rolls_ip}")
        lines.append(f"  Rolls (rounded LP): {self.num_rolls_rounded}")
        if self.lower_bound is not None:
            lines.append(f"  L2 lower bound: {self.lower_bound:.0f}")
        lines.extend([
            f"  Iterations: {self.iterations}",
            f"  Columns: {self.num_columns}",
            f"  Patterns used: {len(self.patterns)}",
            f"  Solve time: {self.solve_time:.3f}s",
        ])
        return "\n".join(lines)


def _patterns_from(master: CuttingStockMaster, solution: MasterSolution) -> List[Tuple[Pattern, float]]:
    tol = global_config.get_tolerance("integrality")
    patterns = []
    for col_id, value in sorted(solution.column_values.items()):
        if value > tol:
            column = master.get_column(col_id)
            patterns.append((column.as_dict(), value))
    return patterns


def solve_cutting_stock(
    instance: CuttingStockInstance,
    seed: str = 'trivial',
    pricing_method: str = 'oracle',
    tolerance: Optional[float] = None,
    iteration_limit: int = 100,
    time_limit: Optional[float] = None,
    solve_ip: bool = True,
    ip_time_limit: Optional[float] = None,
    oracle: Optional[Oracle] = None,
    verbose: bool = False,
) -> CuttingStockSolution:
    """
    Solve a cutting stock problem using column generation.

    Args:
        instance: The problem instance
        seed: Initial patterns ('trivial', 'ffd' or 'both')
        pricing_method: 'oracle' (knapsack MIP) or 'dp'
        tolerance: Absolute gap at which column generation stops
            (default: the "optimality" tolerance of opencp.config)
        iteration_limit: Maximum column generation iterations
        time_limit: Wall-clock limit for column generation
        solve_ip: Whether to re-solve the restricted master with integer x_p
        ip_time_limit: Time limit for the integer re-solve
        oracle: LP/MIP oracle for the master
        verbose: Log every iteration at INFO

    Returns:
        CuttingStockSolution with results
    """
    start_time = time.time()

    lower_bound = instance.l2_lower_bound()
    logger.info("Solving %r (L2 lower bound: %d rolls)", instance, lower_bound)

    pricing_config = PricingConfig(method=pricing_method)
    decomposition = CuttingStockDecomposition(
        instance, seed=seed, pricing_config=pricing_config, oracle=oracle,
    )
    master = decomposition.master

    if tolerance is None:
        tolerance = global_config.get_tolerance("optimality")
    config = CPConfig(
        tolerance=tolerance,
        iteration_limit=iteration_limit,
        time_limit=time_limit,
        verbose=verbose,
    )
    result = CuttingPlaneSolver(decomposition, config).solve()

    # A deadline can pass before the first master solve
    lp_solution = master.last_solution or master.solve()
    lp_objective = lp_solution.objective_value
    patterns = _patterns_from(master, lp_solution)

    rounded = master.rounded_solution(lp_solution)
    num_rolls_rounded = int(round(rounded.objective_value))

    ip_objective = None
    ip_rolls = None
    ip_status = None
    if solve_ip:
        ip_oracle = None
        if ip_time_limit is not None:
            ip_oracle = get_default_oracle(time_limit=ip_time_limit)
        ip_solution = master.solve_integer(ip_oracle)
        ip_status = ip_solution.status
        best = rounded
        if ip_solution.has_solution:
            ip_objective = ip_solution.objective_value
            ip_rolls = int(round(ip_objective))
            logger.info("Restricted master IP: %d rolls (%s)", ip_rolls, ip_status.name)
            if ip_rolls <= num_rolls_rounded:
                best = ip_solution
        else:
            logger.info("Restricted master IP found no plan (%s); keeping the rounded LP",
                        ip_status.name)
        patterns = [(p, int(round(v))) for p, v in _patterns_from(master, best)]

    return CuttingStockSolution(
        num_rolls=lp_objective,
        num_rolls_ip=ip_rolls,
        num_rolls_rounded=num_rolls_rounded,
        patterns=patterns,
        lp_objective=lp_objective,
        lp_lower_bound=result.lower_bound,
        ip_objective=ip_objective,
        ip_status=ip_status,
        status=result.status,
        solve_time=time.time() - start_time,
        iterations=result.iterations,
        num_columns=master.num_columns,
        lower_bound=lower_bound,
        history=result.iteration_history,
    )


# =============================================================================
# Compact model
# =============================================================================


@dataclass
class CompactSolution:
    """
    Result of the naive assignment MILP.

    Attributes:
        status: Oracle status (TIME_LIMIT with an incumbent is a normal outcome)
        num_rolls: Rolls used by the best incumbent (None if none was found)
        patterns: (pattern, count) pairs of the incumbent
        max_rolls: Number of candidate rolls in the model
        gap: Relative MIP gap reported by the oracle
        solve_time: Oracle time in seconds
    """
    status: OracleStatus
    num_rolls: Optional[int]
    patterns: List[Tuple[Pattern, int]] = field(default_factory=list)
    max_rolls: int = 0
    gap: Optional[float] = None
    solve_time: float = 0.0

    @property
    def has_solution(self) -> bool:
        return self.num_rolls is not None


def ffd_roll_count(instance: CuttingStockInstance) -> int:
    """Rolls used by First Fit Decreasing (a feasible number of rolls)."""
    return len(first_fit_decreasing(instance))


def solve_compact_model(
    instance: CuttingStockInstance,
    max_rolls: Optional[int] = None,
    time_limit: Optional[float] = 60.0,
    oracle: Optional[Oracle] = None,
) -> CompactSolution:
    """
    Solve the naive assignment formulation of the cutting stock problem.

        min  sum_k u_k
        s.t. sum_k y_ik >= d_i                  for every piece i
             sum_i w_i * y_ik <= W * u_k        for every roll k
             u_k binary, y_ik >= 0 integer

    The LP relaxation of this model is weak and its rolls are
    interchangeable, so it is typically much slower than column generation.

    Args:
        instance: The problem instance
        max_rolls: Candidate rolls K (default: rolls used by First Fit Decreasing)
        time_limit: Oracle time limit (ignored when oracle is given)
        oracle: LP/MIP oracle

    Returns:
        CompactSolution (infeasible if max_rolls is too small)
    """
    if max_rolls is None:
        max_rolls = ffd_roll_count(instance)
    if max_rolls < 0:
        raise ValueError(f"max_rolls must be non-negative, got {max_rolls}")

    if oracle is None:
        oracle = get_default_oracle(time_limit=time_limit) if time_limit else get_default_oracle()

    lp = LinearProgram(Sense.MINIMIZE, name="cutting_stock_compact")
    use = [
        lp.add_variable(f"u[{k}]", lower=0.0, upper=1.0, var_type=VarType.INTEGER, cost=1.0)
        for k in range(max_rolls)
    ]
    cut = {}
    for k in range(max_rolls):
        for i in range(instance.num_items):
            cut[i, k] = lp.add_variable(
                f"y[{i},{k}]", lower=0.0, upper=float(instance.max_copies(i)),
                var_type=VarType.INTEGER,
            )

    for i, piece in enumerate(instance.pieces):
        lp.add_constraint(
            {cut[i, k]: 1.0 for k in range(max_rolls)}, '>=', float(piece.demand),
            name=f"demand[{i}]",
        )
    for k in range(max_rolls):
        coefficients = {cut[i, k]: piece.width for i, piece in enumerate(instance.pieces)}
        coefficients[use[k]] = -instance.roll_width
        lp.add_constraint(coefficients, '<=', 0.0, name=f"capacity[{k}]")

    logger.info(
        "Compact model: %d rolls, %d variables, %d constraints",
        max_rolls, lp.num_variables, lp.num_constraints,
    )
    result = oracle.solve(lp)

    solution = CompactSolution(
        status=result.status,
        num_rolls=None,
        max_rolls=max_rolls,
        gap=result.gap,
        solve_time=result.solve_time,
    )
    if not result.has_solution:
        logger.info("Compact model returned no incumbent (%s)", result.status.name)
        return solution

    counts: Dict[Column, int] = {}
    for k in range(max_rolls):
        if result.values[use[k]] < 0.5:
            continue
        pattern = {
            i: int(round(result.values[cut[i, k]]))
            for i in range(instance.num_items)
            if round(result.values[cut[i, k]]) > 0
        }
        if pattern:
            column = Column(pattern)
            counts[column] = counts.get(column, 0) + 1

    solution.num_rolls = sum(counts.values())
    solution.patterns = [(column.as_dict(), count) for column, count in counts.items()]
    return solution


__all__ = [
    'Piece',
    'CuttingStockInstance',
    'example_instance',
    'CuttingStockDecomposition',
    'CuttingStockSolution',
    'CompactSolution',
    'farley_bound',
    'ffd_patterns',
    'ffd_roll_count',
    'first_fit_decreasing',
    'solve_cutting_stock',
    'solve_compact_model',
]
