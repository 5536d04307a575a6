"""
OpenCP: Open-Source Cutting-Plane Framework

A small, extensible framework for outer-approximation algorithms: Kelley's
cutting-plane method and column generation, driven by one loop that keeps
monotone lower / upper bounds.
"""

__version__ = "0.1.0"

# Applications (ready-to-use solvers)
from opencp.applications import (
    CuttingStockInstance,
    CuttingStockSolution,
    KelleySolution,
    Piece,
    example_instance,
    solve_compact_model,
    solve_cutting_stock,
    solve_kelley,
)

# Configuration
from opencp.config import config, configure_logging

# Core classes
from opencp.core import Column, ColumnPool, Cut

# Errors
from opencp.errors import (
    InfeasibleMaster,
    NonDifferentiable,
    OpenCPError,
    OracleError,
    PricingFailure,
    StaleDuals,
    UnboundedMaster,
)

# Master problem
from opencp.master import CuttingStockMaster, KelleyMaster, MasterProblem, MasterSolution

# LP/MIP oracle
from opencp.oracle import HIGHS_AVAILABLE, HiGHSOracle, LinearProgram, Oracle, OracleStatus

# Pricing problem
from opencp.pricing import KnapsackPricing, Linearizer, PricingConfig, PricingProblem

# Cutting-plane solver
from opencp.solver import (
    BoundTracker,
    CPConfig,
    CPSolution,
    CPStatus,
    CuttingPlaneSolver,
    Decomposition,
    Separation,
)

__all__ = [
    # Version
    "__version__",
    # Configuration
    "config",
    "configure_logging",
    # Core classes
    "Column",
    "ColumnPool",
    "Cut",
    # Errors
    "OpenCPError",
    "OracleError",
    "InfeasibleMaster",
    "UnboundedMaster",
    "PricingFailure",
    "NonDifferentiable",
    "StaleDuals",
    # Oracle
    "Oracle",
    "HiGHSOracle",
    "HIGHS_AVAILABLE",
    "LinearProgram",
    "OracleStatus",
    # Master problem
    "MasterProblem",
    "MasterSolution",
    "CuttingStockMaster",
    "KelleyMaster",
    # Pricing problem
    "PricingProblem",
    "PricingConfig",
    "KnapsackPricing",
    "Linearizer",
    # Cutting-plane solver
    "CuttingPlaneSolver",
    "CPConfig",
    "CPSolution",
    "CPStatus",
    "BoundTracker",
    "Decomposition",
    "Separation",
    # Applications
    "Piece",
    "CuttingStockInstance",
    "CuttingStockSolution",
    "example_instance",
    "solve_cutting_stock",
    "solve_compact_model",
    "KelleySolution",
    "solve_kelley",
]
