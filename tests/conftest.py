"""
Shared pytest fixtures for OpenCP tests.
"""

import numpy as np
import pytest


def pytest_configure(config):
    """Add custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")


@pytest.fixture
def simple_csp_instance():
    """A simple CSP instance for testing."""
    from opencp.core.instance import CuttingStockInstance

    return CuttingStockInstance.from_arrays(
        roll_width=100,
        widths=[45, 36, 31, 14],
        demands=[10, 10, 10, 10],
        name="test_csp",
    )


@pytest.fixture
def tiny_csp_instance():
    """Three piece types on a roll of width 10."""
    from opencp.core.instance import CuttingStockInstance

    return CuttingStockInstance.from_arrays(
        roll_width=10,
        widths=[5, 3, 2],
        demands=[4, 6, 5],
        name="tiny_csp",
    )


@pytest.fixture
def tutorial_instance():
    """The 20-piece tutorial instance (W = 100)."""
    from opencp.core.instance import example_instance

    return example_instance()


@pytest.fixture
def concave_quadratic():
    """f(x) = -(x1 - 1)^2 - 2 (x2 + 2)^2 + 1, maximized at (1, -2) with value 1."""

    def f(x):
        return -(x[0] - 1.0) ** 2 - 2.0 * (x[1] + 2.0) ** 2 + 1.0

    def gradient(x):
        return np.array([-2.0 * (x[0] - 1.0), -4.0 * (x[1] + 2.0)])

    return f, gradient
