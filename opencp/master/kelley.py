"""
Master problem for Kelley's cutting-plane method.

Maximizing a concave f over x in R^n (or a box) is approximated by

    max  theta
    s.t. theta <= M                                      (seed bound)
         theta <= f(x_k) + grad_f(x_k) . (x - x_k)       (one row per cut)
         l <= x <= u

Each cut is a supporting hyperplane of f, so the master's optimum is an
upper bound on max f that can only decrease as cuts are added. M must be a
valid upper bound on the optimum; without it the seed master is unbounded.
"""

import logging
from typing import Optional, Sequence

import numpy as np

from opencp.core.cut import Cut
from opencp.master.base import MasterProblem
from opencp.master.solution import MasterSolution
from opencp.oracle import INF, Oracle, OracleResult, Sense

logger = logging.getLogger(__name__)


def _bounds(values: Optional[Sequence[float]], default: float, dimension: int, name: str) -> np.ndarray:
    if values is None:
        return np.full(dimension, default)
    array = np.asarray(values, dtype=float).reshape(-1)
    if array.size == 1:
        array = np.full(dimension, float(array[0]))
    if array.size != dimension:
        raise ValueError(f"{name} has {array.size} entries, expected {dimension}")
    return array


class KelleyMaster(MasterProblem):
    """
    Outer-approximation master for concave maximization.

    Example:
        >>> master = KelleyMaster(dimension=2, upper_bound=10.0)
        >>> solution = master.solve()
        >>> solution.theta
        10.0
    """

    def __init__(
        self,
        dimension: int,
        upper_bound: Optional[float],
        lower_bounds: Optional[Sequence[float]] = None,
        upper_bounds: Optional[Sequence[float]] = None,
        oracle: Optional[Oracle] = None,
    ):
        """
        Initialize and seed the master.

        Args:
            dimension: Number of decision variables n
            upper_bound: M, a valid upper bound on max f (None leaves theta unbounded)
            lower_bounds: Lower bounds on x (default -inf)
            upper_bounds: Upper bounds on x (default +inf)
            oracle: LP oracle (default from config)
        """
        if dimension < 1:
            raise ValueError(f"dimension must be positive, got {dimension}")

        self._dimension = int(dimension)
        self._upper_bound = None if upper_bound is None else float(upper_bound)
        self._lower = _bounds(lower_bounds, -INF, self._dimension, "lower_bounds")
        self._upper = _bounds(upper_bounds, INF, self._dimension, "upper_bounds")
        if np.any(self._lower > self._upper):
            raise ValueError("lower_bounds exceed upper_bounds")

        self._x_vars: list[int] = []
        self._theta_var: int = -1
        self._bound_row: Optional[int] = None

        super().__init__(Sense.MAXIMIZE, oracle, name="kelley_master")

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def upper_bound(self) -> Optional[float]:
        return self._upper_bound

    # =========================================================================
    # MasterProblem implementation
    # =========================================================================

    def _build_model(self) -> None:
        """Create x, theta and the seed row theta <= M."""
        for j in range(self._dimension):
            self._x_vars.append(self._lp.add_variable(
                f"x[{j}]", lower=self._lower[j], upper=self._upper[j],
            ))
        self._theta_var = self._lp.add_variable("theta", lower=-INF, upper=INF, cost=1.0)

        if self._upper_bound is not None:
            self._bound_row = self._lp.add_constraint(
                {self._theta_var: 1.0}, '<=', self._upper_bound, name="theta_bound",
            )
        else:
            logger.warning("KelleyMaster created without an upper bound; the seed master is unbounded")

    def _add_cut_impl(self, cut: Cut) -> Cut:
        """Add theta - grad . x <= f(x_k) - grad . x_k."""
        if cut.dimension != self._dimension:
            raise ValueError(
                f"Cut has dimension {cut.dimension}, master has {self._dimension}"
            )
        coefficients = {self._theta_var: 1.0}
        for var, g in zip(self._x_vars, cut.gradient):
            if g != 0.0:
                coefficients[var] = -float(g)

        stored = cut.with_id(self.num_cuts)
        self._lp.add_constraint(coefficients, '<=', stored.intercept, name=f"cut[{stored.cut_id}]")
        return stored

    def _build_solution(self, result: OracleResult) -> MasterSolution:
        point = np.array([result.values[v] for v in self._x_vars], dtype=float)
        solution = MasterSolution(
            status=result.status,
            objective_value=result.objective_value,
            point=point,
            theta=result.values[self._theta_var],
        )
        # Row 0 is the seed bound (when present), then one row per cut
        for row, dual in enumerate(result.duals):
            solution.dual_values[row] = dual
        return solution
