"""
Linearization of a concave objective at a point.

Separation for Kelley's method: evaluate f and its gradient at the master's
candidate x_k and return the supporting hyperplane as a Cut. If no
analytic gradient is given it is estimated by central differences

    df/dx_j ~ (f(x + h e_j) - f(x - h e_j)) / (2h)

which is exact for quadratics up to rounding.
"""

import logging
from typing import Callable, Optional

import numpy as np

from opencp.core.cut import Cut
from opencp.errors import NonDifferentiable

logger = logging.getLogger(__name__)


class Linearizer:
    """
    Builds supporting hyperplanes of f.

    Example:
        >>> lin = Linearizer(lambda x: -(x[0] - 1) ** 2)
        >>> cut = lin.linearize([0.0])
        >>> cut.value
        -1.0
    """

    def __init__(
        self,
        f: Callable[[np.ndarray], float],
        gradient: Optional[Callable[[np.ndarray], np.ndarray]] = None,
        step: float = 1e-6,
    ):
        """
        Args:
            f: Concave objective, called with a 1-d float array
            gradient: Analytic gradient (default: central differences)
            step: Finite-difference step h
        """
        if step <= 0:
            raise ValueError(f"step must be positive, got {step}")
        self._f = f
        self._gradient = gradient
        self._step = float(step)
        self._num_evaluations = 0

    @property
    def num_evaluations(self) -> int:
        """Number of calls made to f."""
        return self._num_evaluations

    @property
    def has_analytic_gradient(self) -> bool:
        return self._gradient is not None

    def evaluate(self, x) -> float:
        """
        Evaluate f at x.

        Raises:
            NonDifferentiable: If f fails or returns a non-finite value
        """
        x = np.asarray(x, dtype=float).reshape(-1)
        self._num_evaluations += 1
        try:
            with np.errstate(all='ignore'):
                value = float(self._f(x.copy()))
        except (ArithmeticError, ValueError) as exc:
            raise NonDifferentiable(f"f could not be evaluated at {x}: {exc}", x) from exc
        if not np.isfinite(value):
            raise NonDifferentiable(f"f({x}) = {value} is not finite", x)
        return value

    def gradient(self, x) -> np.ndarray:
        """
        Gradient of f at x (analytic or central differences).

        Raises:
            NonDifferentiable: If the gradient is undefined, non-finite or
                has the wrong shape
        """
        x = np.asarray(x, dtype=float).reshape(-1)

        if self._gradient is None:
            grad = np.empty_like(x)
            for j in range(x.size):
                e = np.zeros_like(x)
                e[j] = self._step
                grad[j] = (self.evaluate(x + e) - self.evaluate(x - e)) / (2.0 * self._step)
            return grad

        try:
            with np.errstate(all='ignore'):
                grad = np.asarray(self._gradient(x.copy()), dtype=float)
        except (ArithmeticError, ValueError) as exc:
            raise NonDifferentiable(f"Gradient could not be evaluated at {x}: {exc}", x) from exc

        if grad.shape != x.shape:
            raise NonDifferentiable(
                f"Gradient at {x} has shape {grad.shape}, expected {x.shape}", x
            )
        if not np.all(np.isfinite(grad)):
            raise NonDifferentiable(f"Gradient at {x} is not finite: {grad}", x)
        return grad

    def linearize(self, x) -> Cut:
        """
        Supporting hyperplane of f at x.

        Returns:
            Cut with point=x, value=f(x), gradient=grad f(x)
        """
        x = np.asarray(x, dtype=float).reshape(-1)
        value = self.evaluate(x)
        grad = self.gradient(x)
        logger.debug("Linearized f at %s: value=%.6g", x, value)
        return Cut(point=x, value=value, gradient=grad)

    def __repr__(self) -> str:
        kind = "analytic" if self.has_analytic_gradient else f"central(h={self._step:g})"
        return f"Linearizer(gradient={kind})"
