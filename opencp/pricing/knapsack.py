"""
Knapsack pricing for the Cutting Stock Problem.

Given the demand-row duals pi of the master LP, the most attractive new
pattern solves

    max  sum_i pi_i * y_i
    s.t. sum_i w_i * y_i <= W
         y_i >= 0, integer

A pattern improves the master when its value exceeds the cost of one roll
(plus a tolerance), i.e. when its reduced cost 1 - sum_i pi_i y_i is
negative.

Two methods are available:
- 'oracle': the knapsack MIP is solved by the LP/MIP oracle (any widths)
- 'dp': unbounded-knapsack dynamic programming over the roll capacity,
  exact for integral widths; other instances fall back to the oracle
"""

import logging
import time
from typing import Dict, List, Optional, Tuple

from opencp.config import config as global_config
from opencp.core.column import Column
from opencp.core.instance import CuttingStockInstance
from opencp.errors import PricingFailure
from opencp.oracle import LinearProgram, Oracle, OracleStatus, Sense, VarType, get_default_oracle
from opencp.pricing.base import PricingConfig, PricingProblem, PricingSolution, PricingStatus

logger = logging.getLogger(__name__)


class KnapsackPricing(PricingProblem):
    """
    Pricing problem for Cutting Stock (integer knapsack).

    Example:
        >>> pricing = KnapsackPricing(instance)
        >>> column = pricing.price({0: 0.5, 1: 0.3, 2: 0.25})
        >>> if column is not None:
        ...     master.add_column(column)
    """

    def __init__(
        self,
        instance: CuttingStockInstance,
        config: Optional[PricingConfig] = None,
        oracle: Optional[Oracle] = None,
    ):
        """
        Initialize pricing for cutting stock.

        Args:
            instance: The cutting stock instance
            config: Pricing configuration
            oracle: LP/MIP oracle for method='oracle' (default: the configured
                oracle with a zero MIP gap)
        """
        super().__init__(config)
        self._instance = instance

        if oracle is None:
            # A gap-limited knapsack could miss a marginally improving pattern
            oracle = get_default_oracle(
                time_limit=self._config.time_limit or global_config.time_limit,
                mip_rel_gap=0.0,
            )
        self._oracle = oracle

        self._use_dp = self._config.method == 'dp' and instance.has_integral_widths
        if self._config.method == 'dp' and not self._use_dp:
            logger.info("Widths are not integral; knapsack pricing falls back to the oracle")

    @property
    def instance(self) -> CuttingStockInstance:
        return self._instance

    @property
    def uses_dp(self) -> bool:
        return self._use_dp

    @property
    def oracle(self) -> Oracle:
        return self._oracle

    # =========================================================================
    # PricingProblem implementation
    # =========================================================================

    def _solve_impl(self) -> PricingSolution:
        """Solve the knapsack and compare its value with the column cost."""
        start_time = time.time()

        duals = [self._dual_values.get(i, 0.0) for i in range(self._instance.num_items)]

        if not any(pi > 0.0 for pi in duals):
            # Every piece is worthless: the empty pattern is optimal
            pattern, value = {}, 0.0
        elif self._use_dp:
            pattern, value = self._solve_knapsack_dp(duals)
        else:
            pattern, value = self._solve_knapsack_oracle(duals)

        reduced_cost = self._config.column_cost - value
        solve_time = time.time() - start_time

        if value > self._config.threshold and pattern:
            column = Column(
                pattern,
                cost=self._config.column_cost,
                reduced_cost=reduced_cost,
                attributes={'origin': 'pricing'},
            )
            logger.debug("Pricing found %s (value=%.6f, rc=%.6g)", column.as_dict(), value, reduced_cost)
            return PricingSolution(
                status=PricingStatus.COLUMNS_FOUND,
                column=column,
                best_value=value,
                best_reduced_cost=reduced_cost,
                solve_time=solve_time,
            )

        return PricingSolution(
            status=PricingStatus.NO_COLUMNS,
            best_value=value,
            best_reduced_cost=reduced_cost,
            solve_time=solve_time,
        )

    def _solve_knapsack_oracle(self, duals: List[float]) -> Tuple[Dict[int, int], float]:
        """
        Solve the knapsack MIP through the oracle.

        Returns:
            (pattern, value) where pattern is {item: count}

        Raises:
            PricingFailure: If the oracle does not prove optimality
        """
        lp = LinearProgram(Sense.MAXIMIZE, name="knapsack_pricing")
        capacity: Dict[int, float] = {}
        var_to_item: Dict[int, int] = {}

        for i, piece in enumerate(self._instance.pieces):
            if duals[i] <= 0.0:
                continue
            var = lp.add_variable(
                f"y[{i}]",
                lower=0.0,
                upper=float(self._instance.max_copies(i)),
                var_type=VarType.INTEGER,
                cost=duals[i],
            )
            capacity[var] = piece.width
            var_to_item[var] = i

        lp.add_constraint(capacity, '<=', float(self._instance.roll_width), name="capacity")

        result = self._oracle.solve(lp)
        if result.status != OracleStatus.OPTIMAL:
            raise PricingFailure(
                f"Knapsack pricing not solved to optimality: {result.status.name}",
                result.status,
            )

        pattern = {}
        for var, item in var_to_item.items():
            count = int(round(result.values[var]))
            if count > 0:
                pattern[item] = count

        value = sum(duals[item] * count for item, count in pattern.items())
        return pattern, value

    def _solve_knapsack_dp(self, duals: List[float]) -> Tuple[Dict[int, int], float]:
        """
        Solve the unbounded knapsack by dynamic programming.

        dp[w] = best value achievable with total width at most w; the
        pattern is reconstructed from the last item placed at each width.

        Returns:
            (pattern, value) where pattern is {item: count}
        """
        W = int(round(self._instance.roll_width))
        dp = [0.0] * (W + 1)
        choice = [-1] * (W + 1)

        for w in range(1, W + 1):
            # Carrying dp[w - 1] forward makes dp monotone in w
            dp[w] = dp[w - 1]
            choice[w] = -1
            for i, piece in enumerate(self._instance.pieces):
                size = int(round(piece.width))
                if duals[i] <= 0.0 or size > w:
                    continue
                candidate = dp[w - size] + duals[i]
                if candidate > dp[w] + 1e-12:
                    dp[w] = candidate
                    choice[w] = i

        pattern: Dict[int, int] = {}
        w = W
        while w > 0:
            i = choice[w]
            if i < 0:
                w -= 1
                continue
            pattern[i] = pattern.get(i, 0) + 1
            w -= int(round(self._instance.pieces[i].width))

        value = sum(duals[item] * count for item, count in pattern.items())
        return pattern, value
