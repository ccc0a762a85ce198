"""Tests for formulas, context building and result aggregation."""

import math

import pytest

from models.aggregator import ResultAggregator
from models.context import build_context
from models.exceptions import InvalidFormulaError
from models.formulas import (
    FormulaRegistry,
    SEEDED_IDS,
    TOTAL_COST,
    NET_PROFIT,
    REVENUE,
    EMISSIONS,
)
from models.inputs import OperationalInputs
from models.parameters import ParameterStore


@pytest.fixture
def formulas():
    return FormulaRegistry.with_defaults()


@pytest.fixture
def parameters():
    return ParameterStore()


@pytest.fixture
def context(parameters):
    return build_context(OperationalInputs(), parameters)


class TestFormulaRegistry:
    def test_seeded_ids(self, formulas):
        assert [f.id for f in formulas] == list(SEEDED_IDS)

    def test_add_generates_id(self, formulas):
        formula = formulas.add("Carbon Tax", "productionVolume * 2", "₹",
                               subtract_from_profit=True)
        assert formula.id not in SEEDED_IDS
        assert formulas.get(formula.id).subtract_from_profit

    @pytest.mark.parametrize("name, expression", [
        ("", "1 + 1"),
        ("   ", "1 + 1"),
        ("Thing", ""),
        ("Thing", "   "),
    ])
    def test_add_rejects_empty(self, formulas, name, expression):
        with pytest.raises(InvalidFormulaError):
            formulas.add(name, expression)
        assert len(formulas) == len(SEEDED_IDS)

    def test_invalid_syntax_allowed_by_default(self, formulas):
        formula = formulas.add("Broken", "2 +")
        assert formula.expression == "2 +"

    def test_strict_registry_rejects_invalid_syntax(self):
        registry = FormulaRegistry.with_defaults(strict_syntax=True)
        with pytest.raises(InvalidFormulaError, match="Invalid expression"):
            registry.add("Broken", "2 +")

    def test_edit_rejects_empty_expression_without_mutation(self, formulas):
        before = formulas.get(REVENUE)
        with pytest.raises(InvalidFormulaError):
            formulas.edit(REVENUE, expression="")
        assert formulas.get(REVENUE) == before

    def test_edit(self, formulas):
        updated = formulas.edit(REVENUE, expression="sellingPrice * salesVolume * 1.1")
        assert updated.name == "Total Revenue"
        assert formulas.get(REVENUE).expression.endswith("1.1")

    def test_remove_seeded(self, formulas):
        formulas.remove(TOTAL_COST)
        assert TOTAL_COST not in formulas
        with pytest.raises(KeyError):
            formulas.get(TOTAL_COST)


class TestContext:
    def test_builtins_and_custom(self, parameters):
        parameters.add("Carbon Tax", "carbonTax", "120")
        context = build_context(OperationalInputs(), parameters)
        assert context['sellingPrice'] == 40000
        assert context['carbonTax'] == 120

    def test_custom_value_wins_on_collision(self):
        parameters = ParameterStore(reserved_names=())
        parameters.add("Price", "sellingPrice", "1")
        context = build_context(OperationalInputs(), parameters)
        assert context['sellingPrice'] == 1.0

    def test_overrides_win(self, parameters):
        context = build_context(OperationalInputs(), parameters,
                                overrides={'salesVolume': 10.0})
        assert context['salesVolume'] == 10.0


class TestResultAggregator:
    def test_default_results(self, formulas, context):
        aggregate = ResultAggregator(formulas).evaluate_all(context)
        headlines = aggregate.headlines

        assert headlines.revenue == pytest.approx(2_000_000_000)
        assert headlines.manufacturing_cost == pytest.approx(1_830_000_000)
        assert headlines.storage_cost == pytest.approx(0)
        assert headlines.transportation_cost == pytest.approx(26_000_000)
        assert headlines.total_emissions == pytest.approx(126_500)
        assert headlines.sustainability_cost == pytest.approx(37_950_000)
        assert headlines.total_cost == pytest.approx(1_893_950_000)
        assert headlines.net_profit == pytest.approx(106_050_000)
        assert headlines.profit_deductions == 0
        assert not aggregate.errors()

    def test_deduction_adjusts_headlines_only(self, formulas, parameters):
        parameters.add("Carbon Tax", "carbonTax", "100")
        formulas.add("Carbon Tax", "carbonTax * productionVolume", "₹",
                     subtract_from_profit=True)
        context = build_context(OperationalInputs(), parameters)
        aggregate = ResultAggregator(formulas).evaluate_all(context)

        assert aggregate.headlines.profit_deductions == pytest.approx(5_000_000)
        assert aggregate.headlines.total_cost == pytest.approx(1_898_950_000)
        assert aggregate.headlines.net_profit == pytest.approx(101_050_000)
        # Raw formula values are untouched
        assert aggregate.value_of(NET_PROFIT) == pytest.approx(106_050_000)

        display = {r.id: r.value for r in aggregate.display_results()}
        assert display[TOTAL_COST] == pytest.approx(1_898_950_000)
        assert display[NET_PROFIT] == pytest.approx(101_050_000)
        assert display[REVENUE] == pytest.approx(2_000_000_000)

    def test_errored_deduction_contributes_zero(self, formulas, context):
        broken = formulas.add("Levy", "levyRate * productionVolume",
                              subtract_from_profit=True)
        aggregate = ResultAggregator(formulas).evaluate_all(context)

        assert aggregate.headlines.profit_deductions == 0
        assert aggregate.headlines.net_profit == pytest.approx(106_050_000)
        result = aggregate.get(broken.id)
        assert result.value is None
        assert "levyRate" in result.error

    def test_missing_total_cost_counts_as_zero(self, formulas, context):
        formulas.remove(TOTAL_COST)
        formulas.add("Fee", "1000", subtract_from_profit=True)
        aggregate = ResultAggregator(formulas).evaluate_all(context)

        assert aggregate.headlines.total_cost == pytest.approx(1000)
        assert aggregate.headlines.net_profit == pytest.approx(106_049_000)
        assert aggregate.get(TOTAL_COST) is None
        assert all(r.ok for r in aggregate.results)

    def test_one_failure_does_not_affect_others(self, formulas, context):
        formulas.edit(EMISSIONS, expression="co2EmissionFactor / 0")
        aggregate = ResultAggregator(formulas).evaluate_all(context)

        assert aggregate.get(EMISSIONS).error == "result is not a finite number"
        assert aggregate.headlines.total_emissions == 0
        assert aggregate.value_of(REVENUE) == pytest.approx(2_000_000_000)
        assert set(aggregate.errors()) == {EMISSIONS}

    def test_errored_headline_row_keeps_error(self, formulas, context):
        formulas.edit(NET_PROFIT, expression="revenue - cost")
        aggregate = ResultAggregator(formulas).evaluate_all(context)
        row = next(r for r in aggregate.display_results() if r.id == NET_PROFIT)
        assert row.value is None
        assert row.error

    def test_overflowing_deductions_report_non_finite_totals(self, formulas, context):
        formulas.add("Levy A", "10 ^ 308", subtract_from_profit=True)
        formulas.add("Levy B", "10 ^ 308", subtract_from_profit=True)
        aggregate = ResultAggregator(formulas).evaluate_all(context)
        headlines = aggregate.headlines

        assert math.isnan(headlines.profit_deductions)
        assert math.isnan(headlines.total_cost)
        assert math.isnan(headlines.net_profit)
        assert headlines.revenue == pytest.approx(2_000_000_000)

        display = {r.id: r for r in aggregate.display_results()}
        assert display[NET_PROFIT].value is None
        assert display[NET_PROFIT].error == "result is not a finite number"
        assert display[TOTAL_COST].error == "result is not a finite number"
