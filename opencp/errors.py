"""
Exceptions raised by OpenCP.

All failures of the cutting-plane loop are fatal and surfaced to the caller
immediately. The master and pricing subproblems are deterministic given
their inputs, so nothing is retried.

Hierarchy:
    OpenCPError
    ├── OracleError          (LP/MIP oracle returned an unusable status)
    │   ├── InfeasibleMaster
    │   └── UnboundedMaster
    ├── PricingFailure
    ├── NonDifferentiable
    └── StaleDuals

Reaching the iteration limit is not an error; it is reported through
CPStatus.ITERATION_LIMIT on the solution.
"""

from typing import Any, Optional


class OpenCPError(Exception):
    """Base class for all OpenCP errors."""


class OracleError(OpenCPError):
    """
    The LP/MIP oracle did not return an optimal solution.

    Attributes:
        status: The OracleStatus reported by the oracle (if any)
    """

    def __init__(self, message: str, status: Optional[Any] = None):
        super().__init__(message)
        self.status = status


class InfeasibleMaster(OracleError):
    """The (seeded or augmented) master problem has no feasible point."""


class UnboundedMaster(OracleError):
    """The master problem is unbounded (missing or invalid upper bound)."""


class PricingFailure(OpenCPError):
    """
    The pricing subproblem could not be solved to optimality.

    Attributes:
        status: The OracleStatus reported for the pricing solve
    """

    def __init__(self, message: str, status: Optional[Any] = None):
        super().__init__(message)
        self.status = status


class NonDifferentiable(OpenCPError):
    """
    The objective or its gradient is undefined at an evaluation point.

    Attributes:
        point: The point at which evaluation failed
    """

    def __init__(self, message: str, point: Optional[Any] = None):
        super().__init__(message)
        self.point = point


class StaleDuals(OpenCPError):
    """Dual values were requested after the master changed without a re-solve."""
