"""Primal and dual values of one master solve."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from opencp.config import config as global_config
from opencp.oracle.solution import OracleStatus


@dataclass
class MasterSolution:
    """
    Snapshot of the master after one oracle call.

    Attributes:
        status: Oracle status (always OPTIMAL for a solution returned by solve())
        objective_value: Objective value of the master
        column_values: Mapping from column_id to its value (column masters)
        variable_values: Mapping from variable name to its value (all masters)
        dual_values: Mapping from constraint key to dual price
        point: Candidate point x_k (cut masters)
        theta: Value of the epigraph variable (cut masters)
        solve_time: Time spent in the oracle (seconds)
        iterations: Simplex iterations
        num_columns: Number of columns in the master when solved
        num_cuts: Number of cuts in the master when solved
        is_relaxation: True for the LP relaxation, False for an integer re-solve

    Example:
        >>> solution = master.solve()
        >>> if solution.is_optimal:
        ...     for item, price in solution.dual_values.items():
        ...         print(f"  pi[{item}] = {price}")
    """
    status: OracleStatus = OracleStatus.NOT_SOLVED
    objective_value: Optional[float] = None

    # Primal solution: column_id -> value
    column_values: Dict[int, float] = field(default_factory=dict)
    variable_values: Dict[str, float] = field(default_factory=dict)

    # Dual solution: constraint key -> price
    dual_values: Dict[int, float] = field(default_factory=dict)

    # Cut masters: candidate point and epigraph value
    point: Optional[np.ndarray] = None
    theta: Optional[float] = None

    # Solver statistics
    solve_time: float = 0.0
    iterations: int = 0
    num_columns: int = 0
    num_cuts: int = 0
    is_relaxation: bool = True

    # =========================================================================
    # Convenience Properties
    # =========================================================================

    @property
    def is_optimal(self) -> bool:
        return self.status == OracleStatus.OPTIMAL

    @property
    def has_solution(self) -> bool:
        return self.objective_value is not None

    @property
    def is_integer(self) -> bool:
        """Check if all column values are integer up to the integrality tolerance."""
        tol = global_config.get_tolerance("integrality")
        return all(abs(v - round(v)) <= tol for v in self.column_values.values())

    # =========================================================================
    # Methods
    # =========================================================================

    def get_active_columns(self, tol: Optional[float] = None) -> List[int]:
        """Column IDs with value > tol (tol defaults to the integrality tolerance)."""
        if tol is None:
            tol = global_config.get_tolerance("integrality")
        return [
            col_id for col_id, value in self.column_values.items()
            if value > tol
        ]

    def get_fractional_columns(self, tol: Optional[float] = None) -> List[int]:
        """Column IDs with a fractional value (tol defaults to the integrality tolerance)."""
        if tol is None:
            tol = global_config.get_tolerance("integrality")
        return [
            col_id for col_id, value in self.column_values.items()
            if value > tol and abs(value - round(value)) > tol
        ]

    def get_dual(self, key: int, default: float = 0.0) -> float:
        return self.dual_values.get(key, default)

    def summary(self) -> str:
        """Return a human-readable summary of the solution."""
        lines = [
            "MasterSolution:",
            f"  Status: {self.status.name}",
        ]

        if self.objective_value is not None:
            lines.append(f"  Objective: {self.objective_value:.6f}")

        if self.point is not None:
            lines.append(f"  Point: {np.array2string(self.point, precision=6)}")
            lines.append(f"  Cuts: {self.num_cuts}")
        else:
            active = self.get_active_columns()
            lines.append(f"  Active columns: {len(active)} / {self.num_columns}")
            if self.is_integer:
                lines.append("  Solution is integer")
            else:
                lines.append(f"  Fractional columns: {len(self.get_fractional_columns())}")

        lines.extend([
            f"  Solve time: {self.solve_time:.3f}s",
            f"  Iterations: {self.iterations}",
        ])

        return "\n".join(lines)

    def __repr__(self) -> str:
        obj_str = f", obj={self.objective_value:.4f}" if self.objective_value is not None else ""
        return f"MasterSolution({self.status.name}{obj_str})"
