"""
Application-specific implementations of the cutting-plane loop.

This package provides ready-to-use solvers for:
- Kelley's method (concave maximization by supporting hyperplanes)
- Cutting Stock Problem (column generation with knapsack pricing)

Each application provides:
- A Decomposition (master + separation) for the generic solver
- An easy-to-use solve function

Usage:
------
Kelley's method:
    from opencp.applications import solve_kelley
    solution = solve_kelley(f, dimension=2, upper_bound=10.0)

Cutting Stock:
    from opencp.applications import CuttingStockInstance, solve_cutting_stock
    instance = CuttingStockInstance.from_arrays(100, widths=[45, 36], demands=[10, 20])
    solution = solve_cutting_stock(instance)
"""

# Kelley's method
from opencp.applications.kelley import (
    KelleyDecomposition,
    KelleySolution,
    solve_kelley,
)

# Cutting Stock Problem
from opencp.applications.cutting_stock import (
    CompactSolution,
    CuttingStockDecomposition,
    CuttingStockInstance,
    CuttingStockSolution,
    Piece,
    example_instance,
    farley_bound,
    solve_compact_model,
    solve_cutting_stock,
)

__all__ = [
    # Kelley
    'KelleyDecomposition',
    'KelleySolution',
    'solve_kelley',
    # Cutting Stock
    'Piece',
    'CuttingStockInstance',
    'example_instance',
    'CuttingStockDecomposition',
    'CuttingStockSolution',
    'CompactSolution',
    'farley_bound',
    'solve_cutting_stock',
    'solve_compact_model',
]
