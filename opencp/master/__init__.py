"""
Master problem module - outer approximations solved by the LP/MIP oracle.

This module provides:
- MasterProblem: Abstract base class (explicit, append-only model + oracle)
- MasterSolution: Solution data structure
- CuttingStockMaster: Column-wise master for Cutting Stock
- KelleyMaster: Cut-wise master for Kelley's method

Usage:
------
    >>> from opencp.master import CuttingStockMaster
    >>> master = CuttingStockMaster(instance)
    >>> solution = master.solve()
    >>> duals = master.duals
    >>> master.add_column(new_column)

Customization Points:
--------------------
1. Required methods (must implement):
   - _build_model(): Seed the model
   - _build_solution(): Translate an oracle result

2. Optional methods:
   - _add_column_impl(): Add a column
   - _add_cut_impl(): Add a cut

3. Hooks:
   - _on_item_added(), _before_solve(), _after_solve()
"""

from opencp.master.solution import MasterSolution
from opencp.master.base import MasterProblem
from opencp.master.cutting_stock import (
    CuttingStockMaster,
    ffd_patterns,
    first_fit_decreasing,
    trivial_patterns,
)
from opencp.master.kelley import KelleyMaster

__all__ = [
    # Solution
    'MasterSolution',

    # Base class
    'MasterProblem',

    # Implementations
    'CuttingStockMaster',
    'KelleyMaster',

    # Seeding
    'trivial_patterns',
    'first_fit_decreasing',
    'ffd_patterns',
]
