"""
Cutting-plane solution module.

This module defines the data structures for representing the results
of the cutting-plane loop.
"""

import math
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Tuple

import numpy as np


class CPStatus(Enum):
    """
    Status of the cutting-plane loop.
    """
    RUNNING = auto()           # Loop in progress
    CONVERGED = auto()         # Bounds closed (certified)
    ITERATION_LIMIT = auto()   # Iteration limit reached
    TIME_LIMIT = auto()        # Wall-clock deadline passed
    STOPPED = auto()           # A callback asked to stop
    NOT_SOLVED = auto()        # Not yet solved


@dataclass
class CPIteration:
    """
    Information about a single cutting-plane iteration.

    Attributes:
        iteration: Iteration number (1-based)
        master_objective: Master problem objective value
        lower_bound: Lower bound after this iteration
        upper_bound: Upper bound after this iteration
        gap: upper_bound - lower_bound
        item_added: Whether a column or cut was appended to the master
        master_time: Time spent on the master problem
        separation_time: Time spent on separation
        num_columns: Columns in the master after this iteration
        num_cuts: Cuts in the master after this iteration
        separation_bound: Bound reported by separation (if any)
    """
    iteration: int
    master_objective: float
    lower_bound: float
    upper_bound: float
    gap: float
    item_added: bool
    master_time: float
    separation_time: float
    num_columns: int = 0
    num_cuts: int = 0
    separation_bound: Optional[float] = None


@dataclass
class CPSolution:
    """
    Result of the cutting-plane loop.

    Attributes:
        status: Solution status
        lower_bound: Best lower bound
        upper_bound: Best upper bound
        master_objective: Objective of the last master solve
        candidate: Best point / last master primal
        iterations: Number of master solves
        num_columns: Columns in the final master
        num_cuts: Cuts in the final master
        total_time: Total solve time
        master_time: Time spent on master problems
        separation_time: Time spent on separation
        iteration_history: History of each iteration
        metadata: Additional info

    Example:
        >>> solution = solver.solve()
        >>> if solution.is_optimal:
        ...     print(f"Bounds: [{solution.lower_bound}, {solution.upper_bound}]")
    """
    # Status
    status: CPStatus = CPStatus.NOT_SOLVED

    # Bounds
    lower_bound: float = -math.inf
    upper_bound: float = math.inf
    master_objective: Optional[float] = None

    # Best candidate (point for cut masters, column values for column masters)
    candidate: Any = None

    # Statistics
    iterations: int = 0
    num_columns: int = 0
    num_cuts: int = 0
    total_time: float = 0.0
    master_time: float = 0.0
    separation_time: float = 0.0

    # Iteration history
    iteration_history: List[CPIteration] = field(default_factory=list)

    # Additional info
    metadata: Dict[str, Any] = field(default_factory=dict)

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def gap(self) -> float:
        """upper_bound - lower_bound (inf while either bound is infinite)."""
        if math.isinf(self.lower_bound) or math.isinf(self.upper_bound):
            return math.inf
        return self.upper_bound - self.lower_bound

    @property
    def is_certified(self) -> bool:
        """True only if the bounds were closed within tolerance."""
        return self.status == CPStatus.CONVERGED

    @property
    def is_optimal(self) -> bool:
        """Check if the solution is proven optimal."""
        return self.is_certified

    # =========================================================================
    # Methods
    # =========================================================================

    def get_bound_history(self) -> List[Tuple[float, float]]:
        """
        Get (lower_bound, upper_bound) over iterations.

        Returns:
            List of bound pairs, one per iteration
        """
        return [(it.lower_bound, it.upper_bound) for it in self.iteration_history]

    def get_convergence_history(self) -> List[float]:
        """
        Get master objective values over iterations.

        Returns:
            List of objective values, one per iteration
        """
        return [it.master_objective for it in self.iteration_history]

    def summary(self) -> str:
        """
        Return a human-readable summary.

        Returns:
            Summary string
        """
        lines = [
            "Cutting-Plane Solution:",
            f"  Status: {self.status.name}",
            f"  Lower bound: {self.lower_bound:.6f}",
            f"  Upper bound: {self.upper_bound:.6f}",
            f"  Gap: {self.gap:.6g}",
        ]

        if isinstance(self.candidate, np.ndarray):
            lines.append(f"  Candidate: {np.array2string(self.candidate, precision=6)}")

        lines.extend([
            "",
            f"  Iterations: {self.iterations}",
            f"  Columns: {self.num_columns}",
            f"  Cuts: {self.num_cuts}",
            "",
            f"  Total time: {self.total_time:.3f}s",
            f"  Master time: {self.master_time:.3f}s ({100*self.master_time/max(self.total_time, 1e-6):.1f}%)",
            f"  Separation time: {self.separation_time:.3f}s ({100*self.separation_time/max(self.total_time, 1e-6):.1f}%)",
        ])

        if self.is_certified:
            lines.append("\n  Bounds certified")
        else:
            lines.append("\n  Bounds not certified")

        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"CPSolution({self.status.name}, lb={self.lower_bound:.6g}, "
            f"ub={self.upper_bound:.6g}, iter={self.iterations})"
        )
