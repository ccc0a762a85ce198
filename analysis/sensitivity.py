"""
Sensitivity Sweep Engine for the Supply Chain Calculator

Recomputes every formula while sales (as a share of production) moves
across a range, and inserts interpolated break-even points wherever net
profit changes sign between two samples.

Break-even points come from linear interpolation between adjacent samples.
They are exact when net profit is linear in the sales share (as with the
default formulas) and an approximation otherwise; no root finding is done
on the formulas themselves.
"""

import logging
import math
from dataclasses import dataclass, field, asdict
from typing import List, Optional

import numpy as np
import pandas as pd

import config
from models.aggregator import ResultAggregator
from models.context import build_context
from models.formulas import FormulaRegistry
from models.inputs import OperationalInputs
from models.parameters import ParameterStore

logger = logging.getLogger(__name__)

# Numeric fields interpolated at a synthetic break-even point
_INTERPOLATED_FIELDS = (
    'sales_volume', 'inventory_volume', 'manufacturing_cost',
    'sustainability_cost', 'total_cost', 'revenue', 'total_emissions',
)


@dataclass(frozen=True)
class SweepRange:
    """Inclusive range of sales percentages to sample."""
    start: int = config.SWEEP_START_PERCENT
    stop: int = config.SWEEP_STOP_PERCENT
    step: int = config.SWEEP_STEP_PERCENT

    def get_values(self) -> np.ndarray:
        """Generate array of percentages to test."""
        return np.arange(self.start, self.stop + self.step, self.step)


@dataclass(frozen=True)
class AnalysisPoint:
    """One row of the sensitivity series."""
    sales_percent: float
    sales_volume: float
    inventory_volume: float
    manufacturing_cost: float
    sustainability_cost: float
    total_cost: float
    revenue: float
    net_profit: float
    total_emissions: float
    is_break_even: bool = False

    # Presentation split for two-coloured profit series
    net_profit_positive: Optional[float] = field(init=False, default=None)
    net_profit_negative: Optional[float] = field(init=False, default=None)

    def __post_init__(self):
        if math.isnan(self.net_profit):
            return
        if self.net_profit >= 0:
            object.__setattr__(self, 'net_profit_positive', self.net_profit)
        else:
            object.__setattr__(self, 'net_profit_negative', self.net_profit)


def interpolate_break_even(p1: AnalysisPoint, p2: AnalysisPoint) -> AnalysisPoint:
    """
    Synthetic zero-profit point on the segment between p1 and p2.

    intercept = x1 - y1 * (x2 - x1) / (y2 - y1), with every other numeric
    field interpolated at the same ratio along the segment.
    """
    x1, x2 = p1.sales_percent, p2.sales_percent
    y1, y2 = p1.net_profit, p2.net_profit
    intercept = x1 - y1 * (x2 - x1) / (y2 - y1)
    ratio = (intercept - x1) / (x2 - x1)

    values = {
        name: getattr(p1, name) + ratio * (getattr(p2, name) - getattr(p1, name))
        for name in _INTERPOLATED_FIELDS
    }
    return AnalysisPoint(
        sales_percent=intercept,
        net_profit=0.0,
        is_break_even=True,
        **values
    )


def insert_break_even_points(points: List[AnalysisPoint]) -> List[AnalysisPoint]:
    """
    Insert a break-even point before every raw point whose net profit has
    the opposite sign to its predecessor. Points must be in ascending
    percentage order.
    """
    series = []
    previous = None
    for point in points:
        if previous is not None and previous.net_profit * point.net_profit < 0:
            series.append(interpolate_break_even(previous, point))
        series.append(point)
        previous = point
    return series


def break_even_points(points: List[AnalysisPoint]) -> List[AnalysisPoint]:
    return [p for p in points if p.is_break_even]


def to_frame(points: List[AnalysisPoint]) -> pd.DataFrame:
    """Series as a DataFrame, one row per point."""
    columns = list(AnalysisPoint.__dataclass_fields__)
    return pd.DataFrame([asdict(p) for p in points], columns=columns)


class SensitivitySweep:
    """Sweeps sales share of production and evaluates the formulas at each step."""

    def __init__(self, formulas: FormulaRegistry,
                 sweep_range: Optional[SweepRange] = None):
        self.aggregator = ResultAggregator(formulas)
        self.sweep_range = sweep_range or SweepRange()

    def _calculate_point(self, inputs: OperationalInputs,
                         parameters: ParameterStore,
                         percent: float) -> AnalysisPoint:
        """Evaluate all formulas with sales fixed at percent of production."""
        production = inputs.production_volume
        sales = production * percent / 100
        inventory = production - sales

        context = build_context(inputs, parameters, overrides={
            'salesVolume': sales,
            'inventoryVolume': inventory,
        })
        headlines = self.aggregator.evaluate_all(context).headlines

        return AnalysisPoint(
            sales_percent=percent,
            sales_volume=sales,
            inventory_volume=inventory,
            manufacturing_cost=headlines.manufacturing_cost,
            sustainability_cost=headlines.sustainability_cost,
            total_cost=headlines.total_cost,
            revenue=headlines.revenue,
            net_profit=headlines.net_profit,
            total_emissions=headlines.total_emissions,
        )

    def raw_points(self, inputs: OperationalInputs,
                   parameters: ParameterStore) -> List[AnalysisPoint]:
        if inputs.production_volume <= 0:
            return []
        return [
            self._calculate_point(inputs, parameters, float(percent))
            for percent in self.sweep_range.get_values()
        ]

    def run(self, inputs: OperationalInputs,
            parameters: ParameterStore) -> List[AnalysisPoint]:
        """Full analysis series including break-even points."""
        raw = self.raw_points(inputs, parameters)
        series = insert_break_even_points(raw)
        logger.debug("Sweep produced %d points (%d break-even)",
                     len(series), len(series) - len(raw))
        return series

    def run_frame(self, inputs: OperationalInputs,
                  parameters: ParameterStore) -> pd.DataFrame:
        return to_frame(self.run(inputs, parameters))
