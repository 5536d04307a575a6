"""
Cut module - supporting hyperplanes for Kelley's cutting-plane method.

For a concave function f, the first-order condition gives, for every x:

    f(x) <= f(x_k) + grad_f(x_k) . (x - x_k)

so adding the cut  theta <= f(x_k) + grad_f(x_k) . (x - x_k)  to the master
problem never removes the true optimum. Cuts are created once per
iteration and never removed.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np


def _frozen_array(values, name: str) -> np.ndarray:
    array = np.array(values, dtype=float).reshape(-1)
    if not np.all(np.isfinite(array)):
        raise ValueError(f"Cut {name} must be finite, got {array}")
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class Cut:
    """
    A supporting hyperplane  theta <= value + gradient . (x - point).

    Attributes:
        point: Evaluation point x_k
        value: f(x_k)
        gradient: grad f(x_k)
        cut_id: Optional identifier (position in the master)

    Example:
        >>> cut = Cut(point=[0.0, 0.0], value=-4.0, gradient=[2.0, -4.0])
        >>> cut.intercept
        -4.0
        >>> cut.evaluate([1.0, 0.0])
        -2.0
    """
    point: np.ndarray
    value: float
    gradient: np.ndarray
    cut_id: Optional[int] = None

    def __post_init__(self):
        point = _frozen_array(self.point, "point")
        gradient = _frozen_array(self.gradient, "gradient")
        if point.shape != gradient.shape:
            raise ValueError(
                f"Cut point has dimension {point.size} but gradient has {gradient.size}"
            )
        if not np.isfinite(self.value):
            raise ValueError(f"Cut value must be finite, got {self.value}")
        object.__setattr__(self, 'point', point)
        object.__setattr__(self, 'gradient', gradient)
        object.__setattr__(self, 'value', float(self.value))

    @property
    def dimension(self) -> int:
        return int(self.point.size)

    @property
    def intercept(self) -> float:
        """Constant term: f(x_k) - grad . x_k."""
        return float(self.value - self.gradient @ self.point)

    def evaluate(self, x) -> float:
        """Value of the hyperplane at x."""
        x = np.asarray(x, dtype=float).reshape(-1)
        return float(self.value + self.gradient @ (x - self.point))

    def is_violated_by(self, x, theta: float, tol: float = 1e-9) -> bool:
        """True if (x, theta) lies strictly above the hyperplane."""
        return theta > self.evaluate(x) + tol

    def with_id(self, cut_id: int) -> 'Cut':
        return Cut(self.point, self.value, self.gradient, cut_id)

    def __repr__(self) -> str:
        id_str = f"#{self.cut_id} " if self.cut_id is not None else ""
        return (
            f"Cut({id_str}x={np.array2string(self.point, precision=4)}, "
            f"f={self.value:.6g}, grad={np.array2string(self.gradient, precision=4)})"
        )
