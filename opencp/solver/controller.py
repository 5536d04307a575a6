"""
Bound tracking for the cutting-plane loop.

Both instantiations share the same bookkeeping:
- the master objective is an upper bound (it optimizes over an outer
  approximation), so ub = min(ub, master value)
- separation evaluates the true objective or a Lagrangian bound, so
  lb = max(lb, bound)

Bounds therefore never move the wrong way, even if an individual master
value or evaluation does. A master value above the current ub means the
approximation was loosened, which only an unsound cut or column can do.
"""

import logging
import math

logger = logging.getLogger(__name__)


class BoundTracker:
    """
    Monotone lower / upper bounds.

    Example:
        >>> tracker = BoundTracker(tolerance=1e-6)
        >>> tracker.update_upper(10.0)
        10.0
        >>> tracker.update_lower(9.5)
        9.5
        >>> tracker.gap
        0.5
    """

    def __init__(self, tolerance: float = 1e-6):
        if tolerance < 0:
            raise ValueError(f"tolerance must be non-negative, got {tolerance}")
        self._tolerance = float(tolerance)
        self._lower = -math.inf
        self._upper = math.inf

    @property
    def tolerance(self) -> float:
        return self._tolerance

    @property
    def lower(self) -> float:
        return self._lower

    @property
    def upper(self) -> float:
        return self._upper

    @property
    def gap(self) -> float:
        """upper - lower, inf while either bound is infinite."""
        if math.isinf(self._lower) or math.isinf(self._upper):
            return math.inf
        return self._upper - self._lower

    @property
    def is_converged(self) -> bool:
        return self.gap < self._tolerance

    def update_upper(self, value: float) -> float:
        """Record a master objective; returns the new upper bound."""
        if value > self._upper + self._tolerance:
            logger.warning(
                "Master value %.9g exceeds upper bound %.9g; a cut or column may be unsound",
                value, self._upper,
            )
        self._upper = min(self._upper, value)
        return self._upper

    def update_lower(self, value: float) -> float:
        """Record an evaluation or Lagrangian bound; returns the new lower bound."""
        self._lower = max(self._lower, value)
        return self._lower

    def close(self) -> None:
        """No improving item exists: the master optimum is the true optimum."""
        self._lower = self._upper

    def reset(self) -> None:
        self._lower = -math.inf
        self._upper = math.inf

    def __repr__(self) -> str:
        return f"BoundTracker(lb={self._lower:.6g}, ub={self._upper:.6g}, tol={self._tolerance:g})"
