"""
Kelley's cutting-plane method for concave maximization.

    max f(x),  x in R^n (optionally within a box)

f is replaced by the pointwise minimum of its supporting hyperplanes,
which over-estimates a concave function everywhere. Each iteration
maximizes this outer approximation, evaluates f at the maximizer and
adds the hyperplane there:

- the master objective theta_k is an upper bound on max f
- f(x_k) is a lower bound (x_k is feasible)

so the loop stops once the best f(x_k) is within tolerance of theta_k.

Example:
    >>> f = lambda x: -(x[0] - 1) ** 2 - 2 * (x[1] + 2) ** 2 + 1
    >>> solution = solve_kelley(f, dimension=2, upper_bound=10.0, iteration_limit=50)
    >>> solution.lower_bound <= 1.0 <= solution.upper_bound
    True
"""

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

import numpy as np

from opencp.master.kelley import KelleyMaster
from opencp.master.solution import MasterSolution
from opencp.oracle import Oracle
from opencp.pricing.linearize import Linearizer
from opencp.solver import CPConfig, CPIteration, CPStatus, CuttingPlaneSolver, Decomposition, Separation

logger = logging.getLogger(__name__)


class KelleyDecomposition(Decomposition):
    """
    Kelley master plus linearization as the separation step.

    Tracks the best evaluated point, which is the candidate reported when
    the loop stops.
    """

    def __init__(self, linearizer: Linearizer, master: KelleyMaster):
        self._linearizer = linearizer
        self._master = master

        self._best_point: Optional[np.ndarray] = None
        self._best_value = -math.inf

    @property
    def master(self) -> KelleyMaster:
        return self._master

    @property
    def linearizer(self) -> Linearizer:
        return self._linearizer

    @property
    def best_value(self) -> float:
        """Largest f(x_k) seen so far."""
        return self._best_value

    def best_candidate(self) -> Optional[np.ndarray]:
        return None if self._best_point is None else self._best_point.copy()

    def separate(self, master_solution: MasterSolution) -> Separation:
        """Evaluate f at the master's maximizer and build the cut there."""
        x = master_solution.point
        cut = self._linearizer.linearize(x)

        if cut.value > self._best_value:
            self._best_value = cut.value
            self._best_point = cut.point.copy()

        # theta <= f(x_k): the approximation is exact at its own maximizer
        if not cut.is_violated_by(x, master_solution.theta, tol=0.0):
            return Separation(bound=cut.value, candidate=cut.point, item=None)

        return Separation(bound=cut.value, candidate=cut.point, item=cut)


@dataclass
class KelleySolution:
    """
    Result of Kelley's method.

    Attributes:
        x: Best point found (largest f)
        value: f(x)
        lower_bound: Best lower bound (f(x) unless the bounds were closed)
        upper_bound: Smallest master objective
        status: CPStatus of the loop
        iterations: Number of master solves
        num_cuts: Cuts in the final master
        solve_time: Total time in seconds
        history: Per-iteration information
    """
    x: Optional[np.ndarray]
    value: float
    lower_bound: float
    upper_bound: float
    status: CPStatus
    iterations: int
    num_cuts: int
    solve_time: float = 0.0
    history: List[CPIteration] = field(default_factory=list)

    @property
    def gap(self) -> float:
        if math.isinf(self.lower_bound) or math.isinf(self.upper_bound):
            return math.inf
        return self.upper_bound - self.lower_bound

    @property
    def is_optimal(self) -> bool:
        return self.status == CPStatus.CONVERGED

    def __repr__(self) -> str:
        x_str = "None" if self.x is None else np.array2string(self.x, precision=6)
        return (
            f"KelleySolution({self.status.name}, x={x_str}, "
            f"lb={self.lower_bound:.6g}, ub={self.upper_bound:.6g})"
        )


def solve_kelley(
    f: Callable[[np.ndarray], float],
    dimension: int,
    upper_bound: Optional[float],
    gradient: Optional[Callable[[np.ndarray], np.ndarray]] = None,
    tolerance: float = 1e-6,
    iteration_limit: int = 20,
    lower_bounds: Optional[Sequence[float]] = None,
    upper_bounds: Optional[Sequence[float]] = None,
    oracle: Optional[Oracle] = None,
    time_limit: Optional[float] = None,
    verbose: bool = False,
) -> KelleySolution:
    """
    Maximize a concave function with Kelley's cutting-plane method.

    Args:
        f: Concave objective, called with a 1-d float array
        dimension: Number of variables
        upper_bound: Valid upper bound M on max f (None makes the first
            master unbounded, which raises UnboundedMaster)
        gradient: Analytic gradient (default: central differences)
        tolerance: Stop once upper_bound - lower_bound < tolerance
        iteration_limit: Maximum number of master solves
        lower_bounds: Box lower bounds on x
        upper_bounds: Box upper bounds on x
        oracle: LP oracle for the master
        time_limit: Wall-clock limit in seconds
        verbose: Log every iteration at INFO

    Returns:
        KelleySolution

    Raises:
        UnboundedMaster: If the master is unbounded
        NonDifferentiable: If f or its gradient cannot be evaluated
    """
    start_time = time.time()

    linearizer = Linearizer(f, gradient)
    master = KelleyMaster(
        dimension, upper_bound,
        lower_bounds=lower_bounds, upper_bounds=upper_bounds, oracle=oracle,
    )
    decomposition = KelleyDecomposition(linearizer, master)

    config = CPConfig(
        tolerance=tolerance,
        iteration_limit=iteration_limit,
        time_limit=time_limit,
        verbose=verbose,
    )
    result = CuttingPlaneSolver(decomposition, config).solve()

    solution = KelleySolution(
        x=decomposition.best_candidate(),
        value=decomposition.best_value,
        lower_bound=result.lower_bound,
        upper_bound=result.upper_bound,
        status=result.status,
        iterations=result.iterations,
        num_cuts=master.num_cuts,
        solve_time=time.time() - start_time,
        history=result.iteration_history,
    )
    logger.info("Kelley's method: %r", solution)
    return solution
