"""
Oracle solution module.

This module defines the data structures returned by an LP/MIP oracle.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional


class OracleStatus(Enum):
    """
    Termination status of an oracle solve.

    Only OPTIMAL certifies the returned values. TIME_LIMIT and
    ITERATION_LIMIT may still carry an incumbent (see has_solution).
    """
    OPTIMAL = auto()
    INFEASIBLE = auto()
    UNBOUNDED = auto()
    INF_OR_UNBOUNDED = auto()  # presolve could not tell which
    TIME_LIMIT = auto()
    ITERATION_LIMIT = auto()
    NOT_SOLVED = auto()
    ERROR = auto()             # includes an empty model


@dataclass
class OracleResult:
    """
    Result of an oracle solve.

    Attributes:
        status: Termination status
        objective_value: Objective value (None if no solution)
        values: Primal value per variable, in model order
        duals: Dual value per constraint, in model order (pure LPs only)
        solve_time: Wall-clock time spent in the solver (seconds)
        iterations: Simplex iterations
        nodes: Branch-and-bound nodes (MIP only)
        gap: Relative MIP gap (MIP only)
    """
    status: OracleStatus = OracleStatus.NOT_SOLVED
    objective_value: Optional[float] = None
    values: list[float] = field(default_factory=list)
    duals: list[float] = field(default_factory=list)
    solve_time: float = 0.0
    iterations: int = 0
    nodes: int = 0
    gap: Optional[float] = None

    @property
    def is_optimal(self) -> bool:
        return self.status == OracleStatus.OPTIMAL

    @property
    def is_infeasible(self) -> bool:
        return self.status == OracleStatus.INFEASIBLE

    @property
    def is_unbounded(self) -> bool:
        return self.status in (OracleStatus.UNBOUNDED, OracleStatus.INF_OR_UNBOUNDED)

    @property
    def has_solution(self) -> bool:
        """Check if a feasible primal solution is available."""
        return self.status in (
            OracleStatus.OPTIMAL,
            OracleStatus.TIME_LIMIT,
            OracleStatus.ITERATION_LIMIT,
        ) and self.objective_value is not None and bool(self.values)

    @property
    def has_duals(self) -> bool:
        return bool(self.duals)

    def summary(self) -> str:
        """Return a human-readable summary of the result."""
        lines = [
            "OracleResult:",
            f"  Status: {self.status.name}",
        ]
        if self.objective_value is not None:
            lines.append(f"  Objective: {self.objective_value:.6f}")
        if self.gap is not None:
            lines.append(f"  Gap: {self.gap:.4%}")
        lines.extend([
            f"  Variables: {len(self.values)}",
            f"  Duals: {len(self.duals)}",
            f"  Solve time: {self.solve_time:.3f}s",
            f"  Iterations: {self.iterations}",
        ])
        if self.nodes > 0:
            lines.append(f"  Nodes: {self.nodes}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        obj_str = f", obj={self.objective_value:.4f}" if self.objective_value is not None else ""
        return f"OracleResult({self.status.name}{obj_str})"
