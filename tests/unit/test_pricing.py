"""
Tests for the pricing module.

This module tests:
- PricingConfig validation
- PricingSolution helpers
- KnapsackPricing (oracle and dynamic programming methods)
- Linearizer (separation for Kelley's method)
"""

import itertools

import numpy as np
import pytest

from opencp.config import config
from opencp.core.column import Column
from opencp.core.instance import CuttingStockInstance, example_instance
from opencp.errors import NonDifferentiable, PricingFailure
from opencp.oracle import HIGHS_AVAILABLE, Oracle, OracleResult, OracleStatus, Sense
from opencp.pricing import (
    KnapsackPricing,
    Linearizer,
    PricingConfig,
    PricingSolution,
    PricingStatus,
)


# =============================================================================
# Helpers
# =============================================================================


class RecordingOracle(Oracle):
    """Oracle returning a prepared result and remembering the models it saw."""

    def __init__(self, result=None):
        self.result = result or OracleResult(status=OracleStatus.OPTIMAL, objective_value=0.0)
        self.models = []

    def solve(self, lp):
        self.models.append(lp)
        return self.result


def best_pattern_by_enumeration(instance, duals):
    """Exhaustive search over every pattern that fits on a roll."""
    ranges = [range(instance.max_copies(i) + 1) for i in range(instance.num_items)]
    best_value, best = 0.0, {}
    for counts in itertools.product(*ranges):
        width = sum(w * c for w, c in zip(instance.widths, counts))
        if width > instance.roll_width:
            continue
        value = sum(duals.get(i, 0.0) * c for i, c in enumerate(counts))
        if value > best_value + 1e-12:
            best_value = value
            best = {i: c for i, c in enumerate(counts) if c > 0}
    return best, best_value


TINY_DUALS = {0: 0.5, 1: 0.35, 2: 0.2}


# =============================================================================
# PricingConfig / PricingSolution
# =============================================================================


class TestPricingConfig:
    """Tests for PricingConfig."""

    def test_defaults(self):
        cfg = PricingConfig()

        assert cfg.column_cost == 1.0
        assert cfg.tolerance == 1e-8
        assert cfg.method == 'oracle'
        assert cfg.threshold == pytest.approx(1.0 + 1e-8)

    def test_tolerance_follows_global_config(self, monkeypatch):
        monkeypatch.setitem(config.tolerances, "reduced_cost", 0.25)

        assert PricingConfig().tolerance == 0.25
        assert PricingConfig(tolerance=0.1).tolerance == 0.1

    def test_cost_and_tolerance_independent(self):
        cfg = PricingConfig(column_cost=2.0, tolerance=0.1)

        assert cfg.threshold == pytest.approx(2.1)

    def test_invalid_method(self):
        with pytest.raises(ValueError):
            PricingConfig(method='greedy')

    def test_negative_tolerance(self):
        with pytest.raises(ValueError):
            PricingConfig(tolerance=-1e-6)


class TestPricingSolution:
    """Tests for PricingSolution."""

    def test_default(self):
        sol = PricingSolution()

        assert sol.status == PricingStatus.NO_COLUMNS
        assert not sol.has_improving_column

    def test_improving_column(self):
        sol = PricingSolution(
            status=PricingStatus.COLUMNS_FOUND,
            column=Column({0: 1}),
            best_value=1.2,
            best_reduced_cost=-0.2,
        )

        assert sol.has_improving_column
        assert "COLUMNS_FOUND" in sol.summary()
        assert "rc=-0.2000" in repr(sol)


# =============================================================================
# KnapsackPricing
# =============================================================================


class TestKnapsackPricingDP:
    """Dynamic programming pricing (no LP/MIP solver needed)."""

    def test_uses_dp(self, tiny_csp_instance):
        pricing = KnapsackPricing(tiny_csp_instance, PricingConfig(method='dp'), oracle=RecordingOracle())

        assert pricing.uses_dp

    def test_best_pattern(self, tiny_csp_instance):
        pricing = KnapsackPricing(tiny_csp_instance, PricingConfig(method='dp'), oracle=RecordingOracle())
        pricing.set_dual_values(TINY_DUALS)
        solution = pricing.solve()

        assert solution.status == PricingStatus.COLUMNS_FOUND
        assert solution.column.as_dict() == {1: 2, 2: 2}
        assert solution.best_value == pytest.approx(1.1)
        assert solution.best_reduced_cost == pytest.approx(-0.1)
        assert solution.column.reduced_cost == pytest.approx(-0.1)
        assert solution.column.get_attribute('origin') == 'pricing'

    def test_no_improving_column(self, tiny_csp_instance):
        """Duals proportional to width price every pattern at most 1."""
        pricing = KnapsackPricing(tiny_csp_instance, PricingConfig(method='dp'), oracle=RecordingOracle())
        column = pricing.price({0: 0.5, 1: 0.3, 2: 0.2})

        assert column is None

    def test_tolerance_blocks_marginal_column(self, tiny_csp_instance):
        strict = KnapsackPricing(
            tiny_csp_instance, PricingConfig(method='dp', tolerance=0.2), oracle=RecordingOracle(),
        )

        assert strict.price(TINY_DUALS) is None

    def test_configured_tolerance_blocks_marginal_column(self, tiny_csp_instance, monkeypatch):
        monkeypatch.setitem(config.tolerances, "reduced_cost", 0.2)
        pricing = KnapsackPricing(tiny_csp_instance, PricingConfig(method='dp'), oracle=RecordingOracle())
        pricing.set_dual_values(TINY_DUALS)
        solution = pricing.solve()

        # value 1.1 does not clear 1 + 0.2
        assert solution.status == PricingStatus.NO_COLUMNS
        assert solution.best_value == pytest.approx(1.1)

    def test_column_cost_raises_threshold(self, tiny_csp_instance):
        pricing = KnapsackPricing(
            tiny_csp_instance, PricingConfig(method='dp', column_cost=1.5), oracle=RecordingOracle(),
        )
        pricing.set_dual_values(TINY_DUALS)
        solution = pricing.solve()

        assert solution.column is None
        assert solution.best_reduced_cost == pytest.approx(0.4)

    def test_matches_enumeration(self, simple_csp_instance):
        rng = np.random.default_rng(7)
        pricing = KnapsackPricing(simple_csp_instance, PricingConfig(method='dp'), oracle=RecordingOracle())

        for _ in range(10):
            duals = {i: float(v) for i, v in enumerate(rng.uniform(-0.1, 0.6, size=4))}
            pricing.set_dual_values(duals)
            solution = pricing.solve()
            _, expected = best_pattern_by_enumeration(simple_csp_instance, duals)

            assert solution.best_value == pytest.approx(expected)
            if solution.column is not None:
                assert solution.column.fits(simple_csp_instance.widths, simple_csp_instance.roll_width)

    def test_non_integral_widths_fall_back(self):
        inst = CuttingStockInstance.from_arrays(100, [53.8, 20.5], [2, 3])
        pricing = KnapsackPricing(inst, PricingConfig(method='dp'), oracle=RecordingOracle())

        assert not pricing.uses_dp


class TestKnapsackPricingOracle:
    """MIP pricing through a scripted oracle."""

    def test_non_positive_duals_skip_oracle(self, tiny_csp_instance):
        oracle = RecordingOracle()
        pricing = KnapsackPricing(tiny_csp_instance, oracle=oracle)
        pricing.set_dual_values({0: 0.0, 1: -0.5})
        solution = pricing.solve()

        assert oracle.models == []
        assert solution.column is None
        assert solution.best_value == 0.0
        assert solution.best_reduced_cost == 1.0

    @pytest.mark.parametrize("method", ['oracle', 'dp'])
    def test_zero_duals_on_fractional_widths(self, method):
        instance = example_instance()
        oracle = RecordingOracle()
        pricing = KnapsackPricing(instance, PricingConfig(method=method), oracle=oracle)
        pricing.set_dual_values({i: 0.0 for i in range(instance.num_items)})
        solution = pricing.solve()

        assert not pricing.uses_dp
        assert oracle.models == []
        assert solution.status == PricingStatus.NO_COLUMNS
        assert solution.column is None
        assert solution.best_value == 0.0
        assert solution.best_reduced_cost == 1.0

    def test_model_and_rounding(self, tiny_csp_instance):
        oracle = RecordingOracle(OracleResult(
            status=OracleStatus.OPTIMAL,
            objective_value=1.1,
            values=[1.9999999, 2.0000001],
        ))
        pricing = KnapsackPricing(tiny_csp_instance, oracle=oracle)
        column = pricing.price({0: 0.0, 1: 0.35, 2: 0.2})

        lp = oracle.models[0]
        assert lp.sense == Sense.MAXIMIZE
        assert lp.is_mip
        # Only pieces with a positive dual get a variable
        assert lp.num_variables == 2
        assert [v.upper for v in lp.variables] == [3.0, 5.0]
        assert lp.constraints[0].coefficients == {0: 3, 1: 2}

        assert column.as_dict() == {1: 2, 2: 2}
        assert column.reduced_cost == pytest.approx(-0.1)

    @pytest.mark.parametrize("status", [
        OracleStatus.TIME_LIMIT,
        OracleStatus.INFEASIBLE,
        OracleStatus.ERROR,
    ])
    def test_non_optimal_raises(self, tiny_csp_instance, status):
        oracle = RecordingOracle(OracleResult(status=status))
        pricing = KnapsackPricing(tiny_csp_instance, oracle=oracle)

        with pytest.raises(PricingFailure) as excinfo:
            pricing.price(TINY_DUALS)
        assert excinfo.value.status == status

    def test_missing_duals_default_to_zero(self, tiny_csp_instance):
        oracle = RecordingOracle(OracleResult(
            status=OracleStatus.OPTIMAL, objective_value=1.0, values=[2.0],
        ))
        pricing = KnapsackPricing(tiny_csp_instance, oracle=oracle)
        column = pricing.price({0: 0.5})

        assert oracle.models[0].num_variables == 1
        assert column is None


@pytest.mark.skipif(not HIGHS_AVAILABLE, reason="HiGHS not installed")
class TestKnapsackPricingHiGHS:
    """MIP pricing with the real oracle agrees with dynamic programming."""

    def test_best_pattern(self, tiny_csp_instance):
        pricing = KnapsackPricing(tiny_csp_instance)
        pricing.set_dual_values(TINY_DUALS)
        solution = pricing.solve()

        assert solution.column.as_dict() == {1: 2, 2: 2}
        assert solution.best_value == pytest.approx(1.1)

    def test_agrees_with_dp(self, simple_csp_instance):
        rng = np.random.default_rng(11)
        mip = KnapsackPricing(simple_csp_instance, PricingConfig(method='oracle'))
        dp = KnapsackPricing(simple_csp_instance, PricingConfig(method='dp'))

        for _ in range(5):
            duals = {i: float(v) for i, v in enumerate(rng.uniform(0.0, 0.6, size=4))}
            mip.set_dual_values(duals)
            dp.set_dual_values(duals)

            assert mip.solve().best_value == pytest.approx(dp.solve().best_value, abs=1e-7)

    def test_non_integral_widths(self):
        inst = CuttingStockInstance.from_arrays(100, [53.8, 20.5], [2, 3])
        pricing = KnapsackPricing(inst, PricingConfig(method='dp'))
        column = pricing.price({0: 0.6, 1: 0.25})

        # 53.8 + 2 * 20.5 (value 1.1) beats 4 * 20.5 (value 1.0)
        assert column.as_dict() == {0: 1, 1: 2}


# =============================================================================
# Linearizer
# =============================================================================


class TestLinearizer:
    """Tests for Linearizer."""

    def test_numeric_gradient(self, concave_quadratic):
        f, _ = concave_quadratic
        lin = Linearizer(f)
        cut = lin.linearize([0.0, 0.0])

        assert cut.value == pytest.approx(-8.0)
        np.testing.assert_allclose(cut.gradient, [2.0, -8.0], atol=1e-5)
        assert not lin.has_analytic_gradient
        # One evaluation at x, two per coordinate for the differences
        assert lin.num_evaluations == 5

    def test_analytic_gradient(self, concave_quadratic):
        f, gradient = concave_quadratic
        lin = Linearizer(f, gradient=gradient)
        cut = lin.linearize(np.array([1.0, -2.0]))

        assert cut.value == pytest.approx(1.0)
        np.testing.assert_allclose(cut.gradient, [0.0, 0.0])
        assert lin.num_evaluations == 1

    def test_cut_supports_concave_function(self, concave_quadratic):
        """f(y) <= f(x) + grad f(x) . (y - x) everywhere."""
        f, gradient = concave_quadratic
        cut = Linearizer(f, gradient=gradient).linearize([3.0, 1.0])
        rng = np.random.default_rng(0)

        for y in rng.uniform(-5.0, 5.0, size=(20, 2)):
            assert f(y) <= cut.evaluate(y) + 1e-9

    def test_scalar_input(self):
        lin = Linearizer(lambda x: -(x[0] - 1.0) ** 2)
        cut = lin.linearize(0.0)

        assert cut.dimension == 1
        assert cut.value == -1.0

    def test_non_finite_value(self):
        lin = Linearizer(lambda x: np.log(x[0]))

        with pytest.raises(NonDifferentiable) as excinfo:
            lin.linearize([-1.0])
        np.testing.assert_array_equal(excinfo.value.point, [-1.0])

    def test_evaluation_error(self):
        def f(x):
            raise ValueError("outside the domain")

        with pytest.raises(NonDifferentiable):
            Linearizer(f).evaluate([0.0])

    def test_gradient_shape_mismatch(self):
        lin = Linearizer(lambda x: 0.0, gradient=lambda x: np.zeros(3))

        with pytest.raises(NonDifferentiable):
            lin.linearize([0.0, 0.0])

    def test_non_finite_gradient(self):
        lin = Linearizer(lambda x: 0.0, gradient=lambda x: np.array([np.inf]))

        with pytest.raises(NonDifferentiable):
            lin.gradient([0.0])

    def test_invalid_step(self):
        with pytest.raises(ValueError):
            Linearizer(lambda x: 0.0, step=0.0)
