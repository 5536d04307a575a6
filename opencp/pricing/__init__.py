"""
Pricing module - separation subproblems.

This module provides:
- PricingProblem: Abstract base class for column pricing
- PricingConfig: Configuration (column cost, tolerance, method)
- PricingSolution: Solution data structure
- KnapsackPricing: Integer knapsack pricing for Cutting Stock
- Linearizer: Supporting hyperplanes for Kelley's method

Usage:
------
    >>> from opencp.pricing import KnapsackPricing
    >>> pricing = KnapsackPricing(instance)
    >>> column = pricing.price(master.duals)
    >>> if column is not None:
    ...     master.add_column(column)
"""

from opencp.pricing.base import (
    PricingConfig,
    PricingProblem,
    PricingSolution,
    PricingStatus,
)
from opencp.pricing.knapsack import KnapsackPricing
from opencp.pricing.linearize import Linearizer

__all__ = [
    # Base classes
    'PricingProblem',
    'PricingConfig',
    'PricingSolution',
    'PricingStatus',

    # Implementations
    'KnapsackPricing',
    'Linearizer',
]
