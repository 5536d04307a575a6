"""
Oracle module - the LP/MIP solve oracle used by master and pricing problems.

This module provides:
- LinearProgram, Variable, LinearConstraint: solver-independent model
- Sense, VarType: objective sense and variable integrality
- Oracle: Abstract base class for solver backends
- HiGHSOracle: Default implementation using HiGHS
- OracleResult, OracleStatus: Solve results

Usage:
------
    >>> from opencp.oracle import LinearProgram, Sense, VarType, get_default_oracle
    >>> lp = LinearProgram(Sense.MAXIMIZE)
    >>> y = lp.add_variable("y", cost=1.0, var_type=VarType.INTEGER)
    >>> lp.add_constraint({y: 3.0}, '<=', 10.0)
    >>> result = get_default_oracle().solve(lp)
"""

from opencp.oracle.solution import OracleResult, OracleStatus
from opencp.oracle.base import (
    INF,
    LinearConstraint,
    LinearProgram,
    Oracle,
    Sense,
    Variable,
    VarType,
)
from opencp.oracle.highs import HIGHS_AVAILABLE, HiGHSOracle


def get_default_oracle(**options) -> Oracle:
    """
    Create the oracle named by config.default_solver.

    Keyword options (time_limit, verbosity, mip_rel_gap) override the
    configured defaults.

    Raises:
        ValueError: If the configured solver is unknown
        ImportError: If the solver's Python package is missing
    """
    from opencp.config import config

    if config.default_solver.lower() != 'highs':
        raise ValueError(f"Unknown solver {config.default_solver!r}; only 'highs' is supported")
    settings = {"time_limit": config.time_limit, "verbosity": config.verbosity}
    settings.update(options)
    return HiGHSOracle(**settings)


__all__ = [
    # Model
    'INF',
    'LinearProgram',
    'LinearConstraint',
    'Variable',
    'Sense',
    'VarType',

    # Results
    'OracleResult',
    'OracleStatus',

    # Backends
    'Oracle',
    'HiGHSOracle',
    'HIGHS_AVAILABLE',
    'get_default_oracle',
]
