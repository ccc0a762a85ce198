"""Tests for the sales sensitivity sweep and break-even interpolation."""

import pytest

from analysis.sensitivity import (
    AnalysisPoint,
    SensitivitySweep,
    SweepRange,
    break_even_points,
    insert_break_even_points,
    interpolate_break_even,
    to_frame,
)
from models.formulas import FormulaRegistry, TOTAL_COST
from models.inputs import OperationalInputs
from models.parameters import ParameterStore

# Net profit with default formulas is 20,350,000 * p - 1,928,950,000
DEFAULT_BREAK_EVEN = 1_928_950_000 / 20_350_000


def make_point(percent, net_profit, revenue=0.0, total_cost=0.0):
    return AnalysisPoint(
        sales_percent=percent,
        sales_volume=percent * 10,
        inventory_volume=1000 - percent * 10,
        manufacturing_cost=0.0,
        sustainability_cost=0.0,
        total_cost=total_cost,
        revenue=revenue,
        net_profit=net_profit,
        total_emissions=0.0,
    )


@pytest.fixture
def sweep():
    return SensitivitySweep(FormulaRegistry.with_defaults())


@pytest.fixture
def parameters():
    return ParameterStore()


def test_sweep_range_default():
    values = SweepRange().get_values()
    assert len(values) == 36
    assert values[0] == 65
    assert values[-1] == 100


def test_default_sweep_has_single_break_even(sweep, parameters):
    series = sweep.run(OperationalInputs(), parameters)

    assert len(series) == 37
    crossings = break_even_points(series)
    assert len(crossings) == 1
    point = crossings[0]
    assert 94 < point.sales_percent < 95
    assert point.sales_percent == pytest.approx(DEFAULT_BREAK_EVEN)
    assert point.net_profit == 0.0
    assert point.net_profit_positive == 0.0
    assert point.net_profit_negative is None


def test_series_is_ascending(sweep, parameters):
    series = sweep.run(OperationalInputs(production_volume=50000), parameters)
    percents = [p.sales_percent for p in series]
    assert percents == sorted(percents)
    assert len(set(percents)) == len(percents)

    for i, point in enumerate(series):
        if point.is_break_even:
            assert series[i - 1].sales_percent < point.sales_percent < series[i + 1].sales_percent


def test_sweep_point_values(sweep, parameters):
    raw = sweep.raw_points(OperationalInputs(), parameters)
    point = raw[0]
    assert point.sales_percent == 65
    assert point.sales_volume == pytest.approx(32500)
    assert point.inventory_volume == pytest.approx(17500)
    assert point.revenue == pytest.approx(40000 * 32500)
    assert point.net_profit == pytest.approx(20_350_000 * 65 - 1_928_950_000)
    assert point.net_profit_negative == point.net_profit
    assert point.net_profit_positive is None


def test_sweep_ignores_current_sales_volume(sweep, parameters):
    inputs = OperationalInputs().apply_change('sales_volume', 1000)
    assert sweep.raw_points(inputs, parameters) == sweep.raw_points(OperationalInputs(), parameters)


def test_zero_production_gives_empty_series(sweep, parameters):
    inputs = OperationalInputs().apply_change('production_volume', 0)
    assert sweep.run(inputs, parameters) == []
    assert inputs.sales_volume == 0
    assert inputs.inventory_volume == 0


def test_negative_production_gives_empty_series(sweep, parameters):
    inputs = OperationalInputs(production_volume=-1000)
    assert sweep.run(inputs, parameters) == []


def test_overflowing_deductions_give_no_break_even(parameters):
    formulas = FormulaRegistry.with_defaults()
    formulas.add("Levy A", "10 ^ 308", subtract_from_profit=True)
    formulas.add("Levy B", "10 ^ 308", subtract_from_profit=True)
    series = SensitivitySweep(formulas).run(OperationalInputs(), parameters)

    assert len(series) == 36
    assert not break_even_points(series)
    assert all(p.net_profit_positive is None and p.net_profit_negative is None
               for p in series)


def test_deductions_are_reevaluated_per_point(parameters):
    formulas = FormulaRegistry.with_defaults()
    formulas.add("Sales Commission", "salesVolume * 100", subtract_from_profit=True)
    sweep = SensitivitySweep(formulas)
    base = SensitivitySweep(FormulaRegistry.with_defaults())

    with_fee = sweep.raw_points(OperationalInputs(), parameters)
    without = base.raw_points(OperationalInputs(), parameters)
    for a, b in zip(with_fee, without):
        assert a.net_profit == pytest.approx(b.net_profit - a.sales_volume * 100)
        assert a.total_cost == pytest.approx(b.total_cost + a.sales_volume * 100)


def test_missing_total_cost_formula_in_sweep(parameters):
    formulas = FormulaRegistry.with_defaults()
    formulas.remove(TOTAL_COST)
    series = SensitivitySweep(formulas).raw_points(OperationalInputs(), parameters)
    assert all(p.total_cost == 0 for p in series)


def test_custom_range():
    sweep = SensitivitySweep(FormulaRegistry.with_defaults(), SweepRange(90, 100, 5))
    raw = sweep.raw_points(OperationalInputs(), ParameterStore())
    assert [p.sales_percent for p in raw] == [90, 95, 100]


class TestInterpolation:
    def test_crossing_point(self):
        p1 = make_point(70, -100, revenue=1000, total_cost=1100)
        p2 = make_point(71, 50, revenue=1300, total_cost=1250)
        point = interpolate_break_even(p1, p2)

        ratio = 100 / 150
        assert point.sales_percent == pytest.approx(70 + ratio)
        assert point.net_profit == 0.0
        assert point.revenue == pytest.approx(1000 + ratio * 300)
        assert point.total_cost == pytest.approx(1100 + ratio * 150)
        assert point.is_break_even

    def test_inserted_before_later_point(self):
        points = [make_point(69, -200), make_point(70, -100),
                  make_point(71, 50), make_point(72, 200)]
        series = insert_break_even_points(points)

        assert [p.sales_percent for p in series][:2] == [69, 70]
        assert series[2].is_break_even
        assert series[2].sales_percent == pytest.approx(70.6667, abs=1e-4)
        assert series[3] is points[2]
        assert len(series) == 5

    def test_downward_crossing(self):
        series = insert_break_even_points([make_point(80, 300), make_point(81, -100)])
        assert len(series) == 3
        assert series[1].sales_percent == pytest.approx(80.75)

    def test_touching_zero_is_not_a_crossing(self):
        points = [make_point(70, -100), make_point(71, 0), make_point(72, 100)]
        assert insert_break_even_points(points) == points

    def test_multiple_crossings(self):
        points = [make_point(65, -1), make_point(66, 1), make_point(67, -1)]
        series = insert_break_even_points(points)
        assert len(break_even_points(series)) == 2

    def test_empty(self):
        assert insert_break_even_points([]) == []


def test_profit_split_fields():
    assert make_point(70, 5).net_profit_positive == 5
    assert make_point(70, 5).net_profit_negative is None
    assert make_point(70, -5).net_profit_negative == -5
    assert make_point(70, -5).net_profit_positive is None
    assert make_point(70, 0).net_profit_positive == 0


def test_to_frame(sweep, parameters):
    df = to_frame(sweep.run(OperationalInputs(), parameters))
    assert len(df) == 37
    assert df['is_break_even'].sum() == 1
    assert {'sales_percent', 'net_profit_positive', 'net_profit_negative'} <= set(df.columns)


def test_to_frame_empty():
    df = to_frame([])
    assert df.empty
    assert 'net_profit' in df.columns
