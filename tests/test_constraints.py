"""Tests for constraint checks, recompute and formatting."""

import pytest

from analysis.constraints import OperationalLimits, check_constraints
from analysis.snapshot import AppState, recompute
from models.aggregator import ResultAggregator
from models.context import build_context
from models.formatting import format_currency, format_number
from models.formulas import FormulaRegistry
from models.inputs import OperationalInputs
from models.parameters import ParameterStore


def headlines_for(inputs):
    context = build_context(inputs, ParameterStore())
    return ResultAggregator(FormulaRegistry.with_defaults()).evaluate_all(context).headlines


def test_defaults_satisfy_limits():
    inputs = OperationalInputs()
    status = check_constraints(inputs, headlines_for(inputs), OperationalLimits())
    assert status.all_satisfied
    assert status.violations() == []


def test_limits_are_inclusive():
    inputs = OperationalInputs()
    limits = OperationalLimits(max_production=50000, max_sales=50000,
                               max_inventory=0, max_emissions=126_500.0001)
    assert check_constraints(inputs, headlines_for(inputs), limits).all_satisfied


def test_violations():
    inputs = OperationalInputs().apply_change('production_volume', 70000)
    inputs = inputs.apply_change('sales_volume_percent', 50)
    status = check_constraints(inputs, headlines_for(inputs), OperationalLimits())

    assert not status.production  # 70000 > 60000
    assert status.sales  # 35000
    assert status.inventory  # 35000
    assert not status.emissions  # 177100 > 150000
    assert status.violations() == ["production", "emissions"]


def test_emissions_limit():
    inputs = OperationalInputs()
    status = check_constraints(inputs, headlines_for(inputs),
                               OperationalLimits(max_emissions=100_000))
    assert not status.emissions
    assert status.violations() == ['emissions']


class TestRecompute:
    def test_default_state(self):
        derived = recompute(AppState())
        assert derived.aggregate.headlines.net_profit == pytest.approx(106_050_000)
        assert derived.constraints.all_satisfied
        assert len(derived.sweep) == 37
        assert derived.break_even.sales_percent == pytest.approx(94.7887, abs=1e-4)
        assert derived.context['productionVolume'] == 50000

    def test_mutation_then_recompute(self):
        state = AppState()
        param = state.parameters.add("Carbon Tax", "carbonTax", "10")
        state.formulas.add("Carbon Tax", "carbonTax * co2EmissionFactor * productionVolume",
                           "₹", subtract_from_profit=True)
        before = recompute(state)

        state.parameters.set_value(param.id, "20")
        after = recompute(state)

        assert before.aggregate.headlines.profit_deductions == pytest.approx(1_265_000)
        assert after.aggregate.headlines.profit_deductions == pytest.approx(2_530_000)
        assert after.break_even.sales_percent > before.break_even.sales_percent

    def test_zero_production(self):
        state = AppState()
        state.inputs = state.inputs.apply_change('production_volume', 0)
        derived = recompute(state)
        assert derived.sweep == []
        assert derived.break_even is None
        assert derived.aggregate.headlines.revenue == 0
        assert derived.aggregate.headlines.net_profit == 0


class TestFormatting:
    @pytest.mark.parametrize("value, expected", [
        (106_050_000, "₹10,60,50,000"),
        (-16_050_000, "-₹1,60,50,000"),
        (999, "₹999"),
        (0, "₹0"),
        (1234.6, "₹1,235"),
    ])
    def test_currency(self, value, expected):
        assert format_currency(value) == expected

    @pytest.mark.parametrize("value, expected", [
        (50000, "50,000"),
        (126_500, "1,26,500"),
        (2.53, "2.53"),
        (-0.001, "0"),
        (12_345_678.9, "1,23,45,678.9"),
    ])
    def test_number(self, value, expected):
        assert format_number(value) == expected

    def test_non_finite(self):
        assert format_currency(float('nan')) == "N/A"
        assert format_number(None) == "N/A"
