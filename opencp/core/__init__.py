"""
Core module - fundamental data structures for the cutting-plane loop.

Components:
----------
- Column: A cutting pattern (solution of the knapsack pricing problem)
- ColumnPool: Id assignment and deduplication of columns
- Cut: A supporting hyperplane for Kelley's method
- Piece, CuttingStockInstance: Cutting Stock problem data
- ObjectiveSense: Objective sense of a master problem
"""

from opencp.core.column import Column, ColumnPool
from opencp.core.cut import Cut
from opencp.core.instance import CuttingStockInstance, Piece, example_instance
from opencp.oracle.base import Sense as ObjectiveSense

__all__ = [
    # Master problem items
    "Column",
    "ColumnPool",
    "Cut",
    "ObjectiveSense",
    # Problem data
    "Piece",
    "CuttingStockInstance",
    "example_instance",
]
