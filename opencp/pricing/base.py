"""
Column pricing interface shared by the knapsack solvers.

The pricing problem receives the dual prices of the master's last LP
solve and decides whether a column with attractive reduced cost exists.
For a minimization master with column cost c_p the reduced cost is

    rc(p) = c_p - sum_i pi_i * a_ip

and a column is worth adding when rc(p) < -tolerance.

The column cost and the tolerance are independent parameters of
PricingConfig: the cost of activating a new column is a modelling
constant, the tolerance is a numerical safeguard against cycling on
marginal columns.

A new pricing method subclasses PricingProblem and implements
_solve_impl. The _on_duals_updated, _before_solve and _after_solve hooks
are no-ops unless overridden.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, Optional

from opencp.config import config as global_config
from opencp.core.column import Column


class PricingStatus(Enum):
    """Outcome of one pricing round."""
    COLUMNS_FOUND = auto()
    NO_COLUMNS = auto()
    ERROR = auto()            # oracle gave no usable answer


@dataclass
class PricingSolution:
    """
    What one pricing round produced.

    Attributes:
        status: Outcome of the round
        column: The improving column (None if none exists)
        best_value: Optimal pricing objective sum_i pi_i * y_i
        best_reduced_cost: column_cost - best_value
        solve_time: Wall time of the round in seconds
    """
    status: PricingStatus = PricingStatus.NO_COLUMNS
    column: Optional[Column] = None
    best_value: Optional[float] = None
    best_reduced_cost: Optional[float] = None
    solve_time: float = 0.0

    @property
    def has_improving_column(self) -> bool:
        return self.status == PricingStatus.COLUMNS_FOUND and self.column is not None

    def summary(self) -> str:
        """Return a human-readable summary."""
        lines = [
            "PricingSolution:",
            f"  Status: {self.status.name}",
        ]
        if self.column is not None:
            lines.append(f"  Column: {self.column.as_dict()}")
        if self.best_value is not None:
            lines.append(f"  Best value: {self.best_value:.6f}")
        if self.best_reduced_cost is not None:
            lines.append(f"  Best reduced cost: {self.best_reduced_cost:.6f}")
        lines.append(f"  Solve time: {self.solve_time:.3f}s")
        return "\n".join(lines)

    def __repr__(self) -> str:
        rc_str = f", rc={self.best_reduced_cost:.4f}" if self.best_reduced_cost is not None else ""
        return f"PricingSolution({self.status.name}{rc_str})"


@dataclass
class PricingConfig:
    """
    Settings shared by every pricing method.

    Attributes:
        column_cost: Cost of activating one new column (one roll)
        tolerance: A column improves only if its value exceeds column_cost + tolerance
            (default: the "reduced_cost" tolerance of opencp.config)
        method: 'oracle' (MIP through the LP/MIP oracle) or 'dp' (dynamic programming)
        time_limit: Time limit per pricing solve in seconds (None = no limit)
    """
    column_cost: float = 1.0
    tolerance: float = field(default_factory=lambda: global_config.get_tolerance("reduced_cost"))
    method: str = 'oracle'
    time_limit: Optional[float] = None

    def __post_init__(self):
        if self.method not in ('oracle', 'dp'):
            raise ValueError(f"method must be 'oracle' or 'dp', got {self.method!r}")
        if self.tolerance < 0:
            raise ValueError(f"tolerance must be non-negative, got {self.tolerance}")

    @property
    def threshold(self) -> float:
        """Pricing value above which a column is improving."""
        return self.column_cost + self.tolerance


class PricingProblem(ABC):
    """
    Finds the most attractive cutting pattern for a vector of duals.

    Typical round:
    1. Create: pricing = KnapsackPricing(instance)
    2. Set duals: pricing.set_dual_values(duals)
    3. Solve: solution = pricing.solve()
    4. Add solution.column to the master if present; repeat

    Attributes:
        config: Pricing configuration
    """

    def __init__(self, config: Optional[PricingConfig] = None):
        """
        Args:
            config: Pricing settings, PricingConfig() when omitted
        """
        self._config = config or PricingConfig()

        # Dual values (item index -> pi)
        self._dual_values: Dict[int, float] = {}

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def config(self) -> PricingConfig:
        """Pricing configuration."""
        return self._config

    @property
    def dual_values(self) -> Dict[int, float]:
        """Current dual values."""
        return self._dual_values.copy()

    # =========================================================================
    # Public API
    # =========================================================================

    def set_dual_values(self, dual_values: Dict[int, float]) -> None:
        """
        Store the demand-row duals of the last master solve.

        Args:
            dual_values: Mapping from item index to dual value (pi)
        """
        self._dual_values = dict(dual_values)
        self._on_duals_updated()

    def solve(self) -> PricingSolution:
        """
        Solve the pricing problem for the current duals.

        Returns:
            PricingSolution with the improving column, if any
        """
        self._before_solve()
        solution = self._solve_impl()
        return self._after_solve(solution)

    def price(self, dual_values: Dict[int, float]) -> Optional[Column]:
        """
        Find the most attractive column for the given duals.

        Returns:
            The improving column, or None if no column improves
        """
        self.set_dual_values(dual_values)
        return self.solve().column

    # =========================================================================
    # Abstract Methods
    # =========================================================================

    @abstractmethod
    def _solve_impl(self) -> PricingSolution:
        """
        Implementation of the pricing algorithm.

        Returns:
            PricingSolution
        """
        pass

    # =========================================================================
    # Hooks (override for custom behavior)
    # =========================================================================

    def _on_duals_updated(self) -> None:
        """Hook called when dual values are updated."""
        pass

    def _before_solve(self) -> None:
        """Hook called before solving."""
        pass

    def _after_solve(self, solution: PricingSolution) -> PricingSolution:
        """Hook called after solving."""
        return solution

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(method={self._config.method!r})"
