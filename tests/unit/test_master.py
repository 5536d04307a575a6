"""
Tests for the master problem module.

This module tests:
- MasterSolution dataclass
- MasterProblem ABC (status mapping, stale duals) with a scripted oracle
- CuttingStockMaster seeding, column handling and integer re-solves
- KelleyMaster cut rows
"""

import logging

import numpy as np
import pytest

from opencp.config import config
from opencp.core.column import Column
from opencp.core.cut import Cut
from opencp.core.instance import CuttingStockInstance
from opencp.errors import InfeasibleMaster, OracleError, StaleDuals, UnboundedMaster
from opencp.master import (
    CuttingStockMaster,
    KelleyMaster,
    MasterSolution,
    ffd_patterns,
    first_fit_decreasing,
    trivial_patterns,
)
from opencp.oracle import HIGHS_AVAILABLE, Oracle, OracleResult, OracleStatus, Sense


# =============================================================================
# Test Fixtures
# =============================================================================


class ScriptedOracle(Oracle):
    """Oracle returning a fixed status; optimal results carry dummy values."""

    def __init__(self, status=OracleStatus.OPTIMAL, value=1.0, dual=0.5):
        self.status = status
        self.value = value
        self.dual = dual
        self.calls = 0
        self.last_lp = None

    def solve(self, lp):
        self.calls += 1
        self.last_lp = lp
        if self.status != OracleStatus.OPTIMAL:
            return OracleResult(status=self.status)
        values = [self.value] * lp.num_variables
        duals = [] if lp.is_mip else [self.dual] * lp.num_constraints
        objective = sum(var.cost * v for var, v in zip(lp.variables, values))
        return OracleResult(
            status=OracleStatus.OPTIMAL,
            objective_value=objective,
            values=values,
            duals=duals,
        )


@pytest.fixture
def small_instance():
    return CuttingStockInstance.from_arrays(10, [5, 3, 2], [4, 6, 5])


# =============================================================================
# MasterSolution Tests
# =============================================================================


class TestMasterSolution:
    """Tests for MasterSolution dataclass."""

    def test_default_values(self):
        sol = MasterSolution()

        assert sol.status == OracleStatus.NOT_SOLVED
        assert sol.objective_value is None
        assert not sol.is_optimal
        assert not sol.has_solution
        assert sol.is_relaxation

    def test_active_and_fractional_columns(self):
        sol = MasterSolution(
            status=OracleStatus.OPTIMAL,
            objective_value=3.5,
            column_values={0: 1.0, 1: 2.5, 2: 0.0},
        )

        assert sorted(sol.get_active_columns()) == [0, 1]
        assert sol.get_fractional_columns() == [1]
        assert not sol.is_integer

    def test_integrality_tolerance_from_config(self, monkeypatch):
        sol = MasterSolution(column_values={0: 1.2, 1: 3.0})

        assert not sol.is_integer
        assert sol.get_fractional_columns() == [0]

        monkeypatch.setitem(config.tolerances, "integrality", 0.3)

        assert sol.is_integer
        assert sol.get_fractional_columns() == []
        assert sol.get_fractional_columns(tol=0.1) == [0]

    def test_get_dual(self):
        sol = MasterSolution(dual_values={0: 0.25})

        assert sol.get_dual(0) == 0.25
        assert sol.get_dual(5) == 0.0

    def test_summary(self):
        sol = MasterSolution(status=OracleStatus.OPTIMAL, objective_value=2.0)

        assert "OPTIMAL" in sol.summary()
        assert "2.000000" in sol.summary()


# =============================================================================
# Seeding
# =============================================================================


class TestSeedPatterns:
    """Tests for the seed pattern generators."""

    def test_trivial_patterns(self, small_instance):
        patterns = trivial_patterns(small_instance)

        assert [p.as_dict() for p in patterns] == [{0: 2}, {1: 3}, {2: 5}]

    def test_first_fit_decreasing(self, small_instance):
        rolls = first_fit_decreasing(small_instance)

        assert rolls == [{0: 2}, {0: 2}, {1: 3}, {1: 3}, {2: 5}]
        assert [p.as_dict() for p in ffd_patterns(small_instance)] == [{0: 2}, {1: 3}, {2: 5}]

    def test_ffd_patterns_fit_and_cover(self, small_instance):
        patterns = ffd_patterns(small_instance)

        assert len(set(patterns)) == len(patterns)
        for p in patterns:
            assert p.fits(small_instance.widths, small_instance.roll_width)
        covered = {item for p in patterns for item in p.items}
        assert covered == {0, 1, 2}


# =============================================================================
# MasterProblem behaviour (scripted oracle)
# =============================================================================


class TestCuttingStockMasterModel:
    """Model building and bookkeeping of CuttingStockMaster."""

    def test_seeded_model(self, small_instance):
        master = CuttingStockMaster(small_instance, oracle=ScriptedOracle())

        assert master.sense == Sense.MINIMIZE
        assert master.num_columns == 3
        assert master.lp.num_constraints == 3
        assert master.lp.num_variables == 3
        assert master.lp.constraints[1].coefficients == {1: 3.0}
        assert master.lp.constraints[1].bounds[0] == 6.0

    def test_seed_both(self, small_instance):
        master = CuttingStockMaster(small_instance, oracle=ScriptedOracle(), seed='both')

        assert master.num_columns >= 3
        assert master.num_columns == master.column_pool.size

    def test_unknown_seed(self, small_instance):
        with pytest.raises(ValueError):
            CuttingStockMaster(small_instance, oracle=ScriptedOracle(), seed='random')

    def test_add_column(self, small_instance):
        master = CuttingStockMaster(small_instance, oracle=ScriptedOracle())
        stored = master.add_column(Column({0: 1, 1: 1, 2: 1}))

        assert stored.column_id == 3
        assert master.num_columns == 4
        assert master.get_column(3) is stored
        for row in range(3):
            assert master.lp.constraints[row].coefficients[3] == 1.0

    def test_add_duplicate_column(self, small_instance):
        master = CuttingStockMaster(small_instance, oracle=ScriptedOracle())
        stored = master.add_column(Column({0: 2}))

        assert stored.column_id == 0
        assert master.num_columns == 3
        assert master.lp.num_variables == 3

    def test_column_cost_applied(self, small_instance):
        master = CuttingStockMaster(small_instance, oracle=ScriptedOracle(), column_cost=2.0)
        stored = master.add_column(Column({0: 1, 1: 1}))

        assert stored.cost == 2.0
        assert master.lp.variables[-1].cost == 2.0

    def test_invalid_columns(self, small_instance):
        master = CuttingStockMaster(small_instance, oracle=ScriptedOracle())

        with pytest.raises(ValueError):
            master.add_column(Column({}))
        with pytest.raises(ValueError):
            master.add_column(Column({5: 1}))
        with pytest.raises(ValueError):
            master.add_column(Column({0: 1, 1: 2}))  # width 11 > 10

    def test_cuts_not_supported(self, small_instance):
        master = CuttingStockMaster(small_instance, oracle=ScriptedOracle())

        with pytest.raises(NotImplementedError):
            master.add_cut(Cut(point=[0.0], value=0.0, gradient=[0.0]))

    def test_add_rejects_other_types(self, small_instance):
        master = CuttingStockMaster(small_instance, oracle=ScriptedOracle())

        with pytest.raises(TypeError):
            master.add("not a column")


class TestMasterSolveAndDuals:
    """Status mapping and dual invalidation."""

    def test_duals_before_solve(self, small_instance):
        master = CuttingStockMaster(small_instance, oracle=ScriptedOracle())

        with pytest.raises(StaleDuals):
            master.duals

    def test_solve_gives_duals(self, small_instance):
        master = CuttingStockMaster(small_instance, oracle=ScriptedOracle(value=1.0, dual=0.25))
        solution = master.solve()

        assert solution.is_optimal
        assert solution.objective_value == 3.0
        assert solution.column_values == {0: 1.0, 1: 1.0, 2: 1.0}
        assert solution.variable_values == {"x[0]": 1.0, "x[1]": 1.0, "x[2]": 1.0}
        assert master.duals == {0: 0.25, 1: 0.25, 2: 0.25}
        assert master.has_valid_duals
        assert master.num_solves == 1

    def test_append_invalidates_duals(self, small_instance):
        master = CuttingStockMaster(small_instance, oracle=ScriptedOracle())
        master.solve()
        master.add_column(Column({0: 1, 1: 1, 2: 1}))

        assert not master.has_valid_duals
        with pytest.raises(StaleDuals):
            master.duals

        master.solve()
        assert len(master.duals) == 3

    @pytest.mark.parametrize("status, error", [
        (OracleStatus.INFEASIBLE, InfeasibleMaster),
        (OracleStatus.UNBOUNDED, UnboundedMaster),
        (OracleStatus.INF_OR_UNBOUNDED, UnboundedMaster),
        (OracleStatus.TIME_LIMIT, OracleError),
        (OracleStatus.ERROR, OracleError),
    ])
    def test_status_mapping(self, small_instance, status, error):
        master = CuttingStockMaster(small_instance, oracle=ScriptedOracle(status=status))

        with pytest.raises(error) as excinfo:
            master.solve()
        assert excinfo.value.status == status
        assert not master.has_valid_duals

    def test_integer_resolve_uses_copy(self, small_instance):
        oracle = ScriptedOracle(value=2.0)
        master = CuttingStockMaster(small_instance, oracle=oracle)
        master.solve()
        solution = master.solve_integer()

        assert oracle.last_lp.is_mip
        assert not master.lp.is_mip
        assert not solution.is_relaxation
        assert solution.column_values == {0: 2.0, 1: 2.0, 2: 2.0}
        assert master.has_valid_duals

    def test_rounded_solution(self, small_instance):
        master = CuttingStockMaster(small_instance, oracle=ScriptedOracle())
        lp_solution = MasterSolution(
            status=OracleStatus.OPTIMAL,
            objective_value=4.2,
            column_values={0: 2.0, 1: 2.0000000001, 2: 0.2},
        )
        rounded = master.rounded_solution(lp_solution)

        assert rounded.column_values == {0: 2.0, 1: 2.0, 2: 1.0}
        assert rounded.objective_value == 5.0
        assert not rounded.is_relaxation

    def test_rounded_solution_integrality_tolerance(self, small_instance, monkeypatch):
        monkeypatch.setitem(config.tolerances, "integrality", 0.3)
        master = CuttingStockMaster(small_instance, oracle=ScriptedOracle())
        rounded = master.rounded_solution(MasterSolution(
            status=OracleStatus.OPTIMAL, objective_value=3.4, column_values={0: 2.2, 1: 1.2},
        ))

        assert rounded.column_values == {0: 2.0, 1: 1.0}

    def test_integer_resolve_time_limit_without_incumbent(self, small_instance):
        master = CuttingStockMaster(small_instance, oracle=ScriptedOracle())
        master.solve()
        solution = master.solve_integer(ScriptedOracle(status=OracleStatus.TIME_LIMIT))

        assert solution.status == OracleStatus.TIME_LIMIT
        assert not solution.has_solution
        assert solution.column_values == {}
        assert not solution.is_relaxation
        assert master.has_valid_duals

    def test_integer_resolve_error_raises(self, small_instance):
        master = CuttingStockMaster(small_instance, oracle=ScriptedOracle())
        master.solve()

        with pytest.raises(OracleError):
            master.solve_integer(ScriptedOracle(status=OracleStatus.ERROR))

    def test_rounded_solution_requires_solve(self, small_instance):
        master = CuttingStockMaster(small_instance, oracle=ScriptedOracle())

        with pytest.raises(ValueError):
            master.rounded_solution()

    def test_produced(self, small_instance):
        master = CuttingStockMaster(small_instance, oracle=ScriptedOracle())
        produced = master.produced(MasterSolution(column_values={0: 2.0, 2: 1.0}))

        assert produced == [4.0, 0.0, 5.0]


class TestKelleyMasterModel:
    """Model building of KelleyMaster."""

    def test_seeded_model(self):
        master = KelleyMaster(dimension=2, upper_bound=10.0, oracle=ScriptedOracle())

        assert master.sense == Sense.MAXIMIZE
        assert master.lp.num_variables == 3
        assert master.lp.num_constraints == 1
        assert master.lp.constraints[0].bounds[1] == 10.0
        assert master.lp.variables[0].lower == -np.inf

    def test_add_cut_row(self):
        master = KelleyMaster(dimension=2, upper_bound=10.0, oracle=ScriptedOracle())
        cut = master.add_cut(Cut(point=[1.0, 1.0], value=-2.0, gradient=[0.5, -1.0]))
        row = master.lp.constraints[-1]

        assert cut.cut_id == 0
        assert master.num_cuts == 1
        # theta - 0.5 x1 + x2 <= -2 - (0.5 - 1)
        assert row.coefficients == {2: 1.0, 0: -0.5, 1: 1.0}
        assert row.bounds[1] == pytest.approx(-1.5)
        assert row.name == "cut[0]"

    def test_cut_dimension_mismatch(self):
        master = KelleyMaster(dimension=2, upper_bound=10.0, oracle=ScriptedOracle())

        with pytest.raises(ValueError):
            master.add_cut(Cut(point=[1.0], value=0.0, gradient=[1.0]))

    def test_columns_not_supported(self):
        master = KelleyMaster(dimension=1, upper_bound=1.0, oracle=ScriptedOracle())

        with pytest.raises(NotImplementedError):
            master.add_column(Column({0: 1}))

    def test_box_bounds(self):
        master = KelleyMaster(
            dimension=2, upper_bound=1.0, lower_bounds=[-1, -2], upper_bounds=3.0,
            oracle=ScriptedOracle(),
        )

        assert [v.lower for v in master.lp.variables[:2]] == [-1.0, -2.0]
        assert [v.upper for v in master.lp.variables[:2]] == [3.0, 3.0]

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            KelleyMaster(dimension=0, upper_bound=1.0, oracle=ScriptedOracle())
        with pytest.raises(ValueError):
            KelleyMaster(dimension=2, upper_bound=1.0, lower_bounds=[0, 0, 0], oracle=ScriptedOracle())
        with pytest.raises(ValueError):
            KelleyMaster(
                dimension=1, upper_bound=1.0, lower_bounds=[2.0], upper_bounds=[1.0],
                oracle=ScriptedOracle(),
            )

    def test_missing_upper_bound_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="opencp"):
            master = KelleyMaster(dimension=1, upper_bound=None, oracle=ScriptedOracle())

        assert master.lp.num_constraints == 0
        assert "unbounded" in caplog.text

    def test_solution_point(self):
        master = KelleyMaster(dimension=2, upper_bound=10.0, oracle=ScriptedOracle(value=3.0))
        solution = master.solve()

        np.testing.assert_allclose(solution.point, [3.0, 3.0])
        assert solution.theta == 3.0
        assert solution.variable_values["theta"] == 3.0


# =============================================================================
# HiGHS
# =============================================================================


@pytest.mark.skipif(not HIGHS_AVAILABLE, reason="HiGHS not installed")
class TestMastersWithHiGHS:
    """Masters solved by the real oracle."""

    def test_cutting_stock_lp(self, small_instance):
        master = CuttingStockMaster(small_instance)
        solution = master.solve()

        # Trivial seed: 4/2 + 6/3 + 5/5 rolls
        assert solution.objective_value == pytest.approx(5.0)
        assert master.duals[0] == pytest.approx(0.5)
        assert master.duals[1] == pytest.approx(1.0 / 3.0)
        assert master.duals[2] == pytest.approx(0.2)

    def test_cutting_stock_integer(self, small_instance):
        master = CuttingStockMaster(small_instance)
        master.solve()
        solution = master.solve_integer()

        assert solution.objective_value == pytest.approx(5.0)
        assert solution.is_integer

    def test_kelley_seed_master(self):
        master = KelleyMaster(dimension=2, upper_bound=10.0)
        solution = master.solve()

        assert solution.theta == pytest.approx(10.0)
        assert solution.point.shape == (2,)

    def test_kelley_without_bound_is_unbounded(self):
        master = KelleyMaster(dimension=2, upper_bound=None)

        with pytest.raises(UnboundedMaster):
            master.solve()
