"""
HiGHS implementation of the LP/MIP oracle.

HiGHS is the default oracle for OpenCP because:
- Open source (MIT license)
- Solves both LPs (with duals) and MIPs
- Good Python bindings (highspy)

Each call to solve() loads the given LinearProgram into a fresh
highspy.Highs instance, so no solver state leaks between the master
problem, the pricing problem and successive iterations.

Usage:
    >>> from opencp.oracle import HiGHSOracle
    >>> oracle = HiGHSOracle(time_limit=10.0)
    >>> result = oracle.solve(lp)
    >>> if result.is_optimal:
    ...     print(result.objective_value, result.duals)
"""

import logging
import math
import time
from typing import Any, Dict, Optional

import numpy as np

try:
    import highspy
    HIGHS_AVAILABLE = True
except ImportError:
    HIGHS_AVAILABLE = False

from opencp.oracle.base import LinearProgram, Oracle, Sense
from opencp.oracle.solution import OracleResult, OracleStatus

logger = logging.getLogger(__name__)


# HiGHS status mapping
def _map_highs_status(status: Any) -> OracleStatus:
    """Map HiGHS model status to our OracleStatus."""
    if not HIGHS_AVAILABLE:
        return OracleStatus.ERROR

    status_map = {
        highspy.HighsModelStatus.kNotset: OracleStatus.NOT_SOLVED,
        highspy.HighsModelStatus.kLoadError: OracleStatus.ERROR,
        highspy.HighsModelStatus.kModelError: OracleStatus.ERROR,
        highspy.HighsModelStatus.kPresolveError: OracleStatus.ERROR,
        highspy.HighsModelStatus.kSolveError: OracleStatus.ERROR,
        highspy.HighsModelStatus.kPostsolveError: OracleStatus.ERROR,
        highspy.HighsModelStatus.kModelEmpty: OracleStatus.ERROR,
        highspy.HighsModelStatus.kOptimal: OracleStatus.OPTIMAL,
        highspy.HighsModelStatus.kInfeasible: OracleStatus.INFEASIBLE,
        highspy.HighsModelStatus.kUnbounded: OracleStatus.UNBOUNDED,
        highspy.HighsModelStatus.kUnboundedOrInfeasible: OracleStatus.INF_OR_UNBOUNDED,
        highspy.HighsModelStatus.kTimeLimit: OracleStatus.TIME_LIMIT,
        highspy.HighsModelStatus.kIterationLimit: OracleStatus.ITERATION_LIMIT,
    }

    return status_map.get(status, OracleStatus.ERROR)


def _finite(value: float) -> float:
    """Translate +-inf into HiGHS infinity."""
    if math.isinf(value):
        return highspy.kHighsInf if value > 0 else -highspy.kHighsInf
    return float(value)


class HiGHSOracle(Oracle):
    """
    LP/MIP oracle backed by HiGHS.

    Attributes:
        time_limit: Maximum solve time in seconds (None = no limit)
        verbosity: HiGHS output level (0 = silent, 1 = normal)
        mip_rel_gap: Relative MIP gap at which HiGHS stops (None = HiGHS default)
    """

    def __init__(
        self,
        time_limit: Optional[float] = None,
        verbosity: int = 0,
        mip_rel_gap: Optional[float] = None,
    ):
        """
        Initialize the HiGHS oracle.

        Args:
            time_limit: Maximum solve time in seconds (None = no limit)
            verbosity: HiGHS output level (0 = silent)
            mip_rel_gap: Relative MIP gap (0.0 proves optimality exactly)

        Raises:
            ImportError: If highspy is not installed
        """
        if not HIGHS_AVAILABLE:
            raise ImportError(
                "HiGHS is not available. Install it with: pip install highspy"
            )
        if time_limit is not None and time_limit <= 0:
            raise ValueError(f"time_limit must be positive, got {time_limit}")

        self._time_limit = time_limit
        self._verbosity = verbosity
        self._mip_rel_gap = mip_rel_gap

    @property
    def time_limit(self) -> Optional[float]:
        return self._time_limit

    def with_time_limit(self, seconds: Optional[float]) -> 'HiGHSOracle':
        """Return a copy of this oracle with a different time limit."""
        return HiGHSOracle(
            time_limit=seconds, verbosity=self._verbosity, mip_rel_gap=self._mip_rel_gap,
        )

    # =========================================================================
    # Solving
    # =========================================================================

    def solve(self, lp: LinearProgram) -> OracleResult:
        """Load the model into a fresh HiGHS instance and solve it."""
        highs = self._load(lp)

        start_time = time.time()
        highs.run()
        solve_time = time.time() - start_time

        status = _map_highs_status(highs.getModelStatus())
        info = highs.getInfo()

        result = OracleResult(
            status=status,
            solve_time=solve_time,
            iterations=max(int(info.simplex_iteration_count), 0),
        )

        is_mip = lp.is_mip
        if is_mip:
            result.nodes = max(int(info.mip_node_count), 0)

        sol = highs.getSolution()
        if status in (OracleStatus.OPTIMAL, OracleStatus.TIME_LIMIT,
                      OracleStatus.ITERATION_LIMIT) and sol.value_valid:
            result.objective_value = float(info.objective_function_value)
            result.values = [float(v) for v in sol.col_value]

            if is_mip:
                result.gap = float(info.mip_gap)
            elif sol.dual_valid:
                result.duals = [float(d) for d in sol.row_dual]

        logger.debug(
            "HiGHS solved %r: %s in %.3fs", lp.name, status.name, solve_time
        )
        return result

    def _load(self, lp: LinearProgram) -> 'highspy.Highs':
        """Build a highspy.Highs model from a LinearProgram."""
        highs = highspy.Highs()

        # Set options
        highs.setOptionValue('output_flag', self._verbosity > 0)
        highs.setOptionValue('log_to_console', self._verbosity > 0)
        if self._time_limit is not None:
            highs.setOptionValue('time_limit', float(self._time_limit))
        if self._mip_rel_gap is not None:
            highs.setOptionValue('mip_rel_gap', float(self._mip_rel_gap))

        if lp.sense == Sense.MAXIMIZE:
            highs.changeObjectiveSense(highspy.ObjSense.kMaximize)
        else:
            highs.changeObjectiveSense(highspy.ObjSense.kMinimize)

        empty_idx = np.array([], dtype=np.int32)
        empty_val = np.array([], dtype=np.float64)

        for j, var in enumerate(lp.variables):
            highs.addCol(
                float(var.cost),
                _finite(var.lower),
                _finite(var.upper),
                0,
                empty_idx,
                empty_val,
            )
            if var.is_integer:
                highs.changeColIntegrality(j, highspy.HighsVarType.kInteger)

        for con in lp.constraints:
            lower, upper = con.bounds
            indices = np.array(list(con.coefficients.keys()), dtype=np.int32)
            values = np.array(list(con.coefficients.values()), dtype=np.float64)
            highs.addRow(
                _finite(lower),
                _finite(upper),
                len(indices),
                indices,
                values,
            )

        return highs

    def get_model_stats(self, lp: LinearProgram) -> Dict[str, Any]:
        """
        Get statistics about a model as HiGHS sees it.

        Returns:
            Dictionary with model statistics
        """
        highs = self._load(lp)
        return {
            'num_columns': highs.getNumCol(),
            'num_rows': highs.getNumRow(),
            'num_nonzeros': highs.getNumNz(),
        }

    def __repr__(self) -> str:
        return f"HiGHSOracle(time_limit={self._time_limit}, verbosity={self._verbosity})"
