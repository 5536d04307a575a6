"""
Solver module - the generic cutting-plane loop.

This module provides:
- CuttingPlaneSolver: Main loop controller
- CPConfig: Configuration options
- BoundTracker: Monotone lower / upper bounds
- Decomposition, Separation: Interface between the loop and a problem
- CPSolution, CPStatus, CPIteration: Results

Usage:
------
    >>> from opencp.solver import CuttingPlaneSolver, CPConfig
    >>> solver = CuttingPlaneSolver(decomposition, CPConfig(tolerance=1e-6))
    >>> solution = solver.solve()
    >>> if solution.is_certified:
    ...     print(f"Optimal value: {solution.upper_bound}")

With callbacks for monitoring:

    >>> def progress_callback(solver, iteration):
    ...     print(f"Iter {iteration.iteration}: gap={iteration.gap:.2e}")
    ...     return iteration.iteration < 50  # Stop after 50 iterations
    >>> solver.add_callback(progress_callback)

Status semantics:
----------------
- CONVERGED: ub - lb < tolerance, or no improving item exists (certified)
- ITERATION_LIMIT / TIME_LIMIT / STOPPED: bounds valid but not certified
"""

from opencp.solver.solution import CPIteration, CPSolution, CPStatus
from opencp.solver.controller import BoundTracker
from opencp.solver.decomposition import Decomposition, Separation
from opencp.solver.cutting_plane import CPCallback, CPConfig, CuttingPlaneSolver

__all__ = [
    # Main class
    'CuttingPlaneSolver',

    # Configuration
    'CPConfig',
    'CPCallback',

    # Bounds and interface
    'BoundTracker',
    'Decomposition',
    'Separation',

    # Solution
    'CPSolution',
    'CPStatus',
    'CPIteration',
]
