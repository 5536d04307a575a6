"""
Cutting-plane controller.

This module implements the loop shared by Kelley's method and column
generation: an outer approximation (the master) is solved, its optimum is
separated against the true problem, and the resulting column or cut is
appended until the bounds close.

Algorithm Overview:
------------------
1. Stop with ITERATION_LIMIT / TIME_LIMIT if a limit is reached
   (the deadline is only checked between iterations)
2. Solve the master; its objective updates the upper bound
3. Separate; the bound it reports updates the lower bound
4. If separation finds no improving item, lb := ub and stop (CONVERGED)
5. If ub - lb < tolerance, stop (CONVERGED)
6. Append the item and go to 1

Oracle, pricing and evaluation errors propagate unchanged; nothing is
retried. Reaching a limit is not an error: the solution is returned with
an uncertified status.

Key Features:
------------
- Configurable stopping criteria (tolerance, iterations, time)
- Callback hooks for monitoring and early stopping
- Iteration history tracking
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from opencp.config import config as global_config
from opencp.solver.controller import BoundTracker
from opencp.solver.decomposition import Decomposition
from opencp.solver.solution import CPIteration, CPSolution, CPStatus

logger = logging.getLogger(__name__)


@dataclass
class CPConfig:
    """
    Configuration for the cutting-plane loop.

    Attributes:
        tolerance: Stop once upper_bound - lower_bound < tolerance
        iteration_limit: Maximum number of master solves (0 = unlimited)
        time_limit: Wall-clock limit in seconds (None = unlimited)
        verbose: Log every iteration at INFO instead of DEBUG
    """
    tolerance: float = field(default_factory=lambda: global_config.get_tolerance("optimality"))
    iteration_limit: int = field(default_factory=lambda: global_config.iteration_limit)
    time_limit: Optional[float] = None
    verbose: bool = False

    def __post_init__(self):
        if self.tolerance < 0:
            raise ValueError(f"tolerance must be non-negative, got {self.tolerance}")
        if self.iteration_limit < 0:
            raise ValueError(f"iteration_limit must be non-negative, got {self.iteration_limit}")
        if self.time_limit is not None and self.time_limit <= 0:
            raise ValueError(f"time_limit must be positive, got {self.time_limit}")


# Type alias for callback functions
CPCallback = Callable[['CuttingPlaneSolver', CPIteration], bool]


class CuttingPlaneSolver:
    """
    Generic cutting-plane / column-generation controller.

    Example:
        >>> from opencp.solver import CuttingPlaneSolver, CPConfig
        >>> solver = CuttingPlaneSolver(decomposition, CPConfig(iteration_limit=50))
        >>> solution = solver.solve()
        >>> print(solution.lower_bound, solution.upper_bound)

    Callbacks:
        Register callbacks to monitor progress:

        >>> def my_callback(solver, iteration):
        ...     print(f"Iteration {iteration.iteration}: gap={iteration.gap}")
        ...     return True  # Continue solving
        >>> solver.add_callback(my_callback)
    """

    def __init__(
        self,
        decomposition: Decomposition,
        config: Optional[CPConfig] = None,
    ):
        """
        Initialize the controller.

        Args:
            decomposition: Master problem plus separation
            config: Configuration options (uses defaults if not provided)
        """
        self._decomposition = decomposition
        self._config = config or CPConfig()
        self._tracker = BoundTracker(self._config.tolerance)

        # Callbacks
        self._callbacks: list[CPCallback] = []

        # State
        self._status = CPStatus.NOT_SOLVED
        self._solution: Optional[CPSolution] = None

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def decomposition(self) -> Decomposition:
        return self._decomposition

    @property
    def config(self) -> CPConfig:
        """Configuration options."""
        return self._config

    @property
    def tracker(self) -> BoundTracker:
        """Current bounds."""
        return self._tracker

    @property
    def status(self) -> CPStatus:
        return self._status

    @property
    def is_solved(self) -> bool:
        """Whether solve() has finished."""
        return self._solution is not None

    @property
    def solution(self) -> Optional[CPSolution]:
        """The solution (None if not yet solved)."""
        return self._solution

    # =========================================================================
    # Configuration
    # =========================================================================

    def add_callback(self, callback: CPCallback) -> None:
        """
        Add a callback function.

        Callbacks are called after each iteration with the solver and the
        iteration info. Return False to stop the loop (status STOPPED).

        Args:
            callback: Function taking (CuttingPlaneSolver, CPIteration) -> bool
        """
        self._callbacks.append(callback)

    # =========================================================================
    # Main Algorithm
    # =========================================================================

    def solve(self) -> CPSolution:
        """
        Run the cutting-plane loop.

        Returns:
            CPSolution with bounds, candidate and statistics

        Raises:
            OracleError: If a master solve fails (incl. InfeasibleMaster,
                UnboundedMaster)
            PricingFailure: If pricing cannot be solved to optimality
            NonDifferentiable: If the objective cannot be evaluated
        """
        start_time = time.time()
        deadline = None
        if self._config.time_limit is not None:
            deadline = start_time + self._config.time_limit

        master = self._decomposition.master
        tracker = self._tracker
        tracker.reset()

        iteration_history: list[CPIteration] = []
        total_master_time = 0.0
        total_separation_time = 0.0
        last_master_solution = None

        iteration = 0
        self._status = CPStatus.RUNNING
        logger.info(
            "Starting cutting-plane loop (tolerance=%g, iteration_limit=%s, time_limit=%s)",
            self._config.tolerance, self._config.iteration_limit or "none",
            self._config.time_limit,
        )

        while True:
            iteration += 1

            # Check stopping criteria
            if self._config.iteration_limit > 0 and iteration > self._config.iteration_limit:
                self._status = CPStatus.ITERATION_LIMIT
                break

            if deadline is not None and time.time() >= deadline:
                self._status = CPStatus.TIME_LIMIT
                break

            # Solve master problem
            master_start = time.time()
            master_solution = master.solve()
            master_time = time.time() - master_start
            total_master_time += master_time
            last_master_solution = master_solution

            master_obj = master_solution.objective_value
            tracker.update_upper(master_obj)

            # Separate
            separation_start = time.time()
            separation = self._decomposition.separate(master_solution)
            separation_time = time.time() - separation_start
            total_separation_time += separation_time

            if separation.bound is not None:
                tracker.update_lower(separation.bound)

            converged = False
            if separation.item is None:
                # Nothing separates the master optimum: it is the true optimum
                tracker.close()
                converged = True
            elif tracker.is_converged:
                converged = True
            else:
                self._decomposition.add(separation.item)

            iter_info = CPIteration(
                iteration=iteration,
                master_objective=master_obj,
                lower_bound=tracker.lower,
                upper_bound=tracker.upper,
                gap=tracker.gap,
                item_added=not converged,
                master_time=master_time,
                separation_time=separation_time,
                num_columns=master.num_columns,
                num_cuts=master.num_cuts,
                separation_bound=separation.bound,
            )
            iteration_history.append(iter_info)
            self._log_iteration(iter_info)

            if converged:
                self._status = CPStatus.CONVERGED
                self._invoke_callbacks(iter_info)
                break

            if not self._invoke_callbacks(iter_info):
                self._status = CPStatus.STOPPED
                break

        solution = self._build_solution(
            master_solution=last_master_solution,
            iteration_history=iteration_history,
            total_master_time=total_master_time,
            total_separation_time=total_separation_time,
        )
        solution.total_time = time.time() - start_time
        self._solution = solution

        logger.info(
            "Cutting-plane loop finished: %s after %d iterations (lb=%.9g, ub=%.9g)",
            solution.status.name, solution.iterations,
            solution.lower_bound, solution.upper_bound,
        )
        return solution

    def _build_solution(
        self,
        master_solution,
        iteration_history: list[CPIteration],
        total_master_time: float,
        total_separation_time: float,
    ) -> CPSolution:
        """Build the CPSolution from components."""
        candidate = self._decomposition.best_candidate()
        if candidate is None and master_solution is not None:
            if master_solution.point is not None:
                candidate = master_solution.point
            else:
                candidate = dict(master_solution.column_values)

        master = self._decomposition.master
        return CPSolution(
            status=self._status,
            lower_bound=self._tracker.lower,
            upper_bound=self._tracker.upper,
            master_objective=(
                master_solution.objective_value if master_solution is not None else None
            ),
            candidate=candidate,
            iterations=len(iteration_history),
            num_columns=master.num_columns,
            num_cuts=master.num_cuts,
            master_time=total_master_time,
            separation_time=total_separation_time,
            iteration_history=iteration_history,
        )

    def _log_iteration(self, info: CPIteration) -> None:
        level = logging.INFO if self._config.verbose else logging.DEBUG
        logger.log(
            level,
            "Iteration %d: master=%.9g lb=%.9g ub=%.9g gap=%.3g added=%s",
            info.iteration, info.master_objective, info.lower_bound,
            info.upper_bound, info.gap, info.item_added,
        )

    def _invoke_callbacks(self, iteration: CPIteration) -> bool:
        """
        Invoke all callbacks.

        Args:
            iteration: Current iteration info

        Returns:
            True to continue, False to stop
        """
        for callback in self._callbacks:
            if not callback(self, iteration):
                return False
        return True

    # =========================================================================
    # Utility Methods
    # =========================================================================

    def get_iteration_history(self) -> list[CPIteration]:
        """
        Get the history of all iterations.

        Returns:
            List of CPIteration objects
        """
        if self._solution is None:
            return []
        return self._solution.iteration_history

    def summary(self) -> str:
        """
        Return a human-readable summary.

        Returns:
            Summary string
        """
        lines = [
            f"CuttingPlaneSolver: {self._decomposition.__class__.__name__}",
            "  Config:",
            f"    Tolerance: {self._config.tolerance:g}",
            f"    Iteration limit: {self._config.iteration_limit}",
            f"    Time limit: {self._config.time_limit}",
        ]

        if self._solution is not None:
            lines.extend([
                "",
                self._solution.summary(),
            ])
        else:
            lines.append("\n  Status: Not yet solved")

        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"CuttingPlaneSolver({self._decomposition.__class__.__name__}, {self._status.name})"
