"""
Result Aggregator

Evaluates every formula against one context and derives the headline
totals. Formulas flagged ``subtract_from_profit`` add to total cost and
come off net profit; those two headline rows are the only place the seeded
formula ids carry structural meaning.
"""

import logging
import math
from dataclasses import dataclass, replace
from typing import Dict, List, Mapping, Optional, Tuple

from models.expression import NON_FINITE_MESSAGE, evaluate
from models.formulas import (
    FormulaRegistry,
    REVENUE,
    MANUFACTURING_COST,
    STORAGE_COST,
    TRANSPORTATION_COST,
    EMISSIONS,
    SUSTAINABILITY_COST,
    TOTAL_COST,
    NET_PROFIT,
)

logger = logging.getLogger(__name__)


def _finite_or_nan(value: float) -> float:
    return value if math.isfinite(value) else math.nan


@dataclass(frozen=True)
class FormulaResult:
    id: str
    name: str
    value: Optional[float]
    error: Optional[str]
    unit: str
    subtract_from_profit: bool

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class Headlines:
    """Dashboard totals for one context. Sums that overflow are reported as NaN."""
    revenue: float
    manufacturing_cost: float
    storage_cost: float
    transportation_cost: float
    sustainability_cost: float
    total_emissions: float
    total_cost: float  # includes profit deductions
    net_profit: float  # net of profit deductions
    profit_deductions: float


@dataclass(frozen=True)
class AggregateResult:
    results: Tuple[FormulaResult, ...]
    headlines: Headlines

    def get(self, formula_id: str) -> Optional[FormulaResult]:
        for result in self.results:
            if result.id == formula_id:
                return result
        return None

    def value_of(self, formula_id: str, default: float = 0.0) -> float:
        """Raw value of a formula; default when it is missing or errored."""
        result = self.get(formula_id)
        if result is None or not result.ok:
            return default
        return result.value

    def display_results(self) -> List[FormulaResult]:
        """Rows to show: headline overrides for total cost and net profit."""
        overrides = {
            TOTAL_COST: self.headlines.total_cost,
            NET_PROFIT: self.headlines.net_profit,
        }
        rows = []
        for result in self.results:
            if result.id in overrides and result.ok:
                if math.isfinite(overrides[result.id]):
                    result = replace(result, value=overrides[result.id])
                else:
                    result = replace(result, value=None, error=NON_FINITE_MESSAGE)
            rows.append(result)
        return rows

    def errors(self) -> Dict[str, str]:
        return {r.id: r.error for r in self.results if not r.ok}


class ResultAggregator:
    """Evaluates a formula registry against evaluation contexts."""

    def __init__(self, formulas: FormulaRegistry):
        self.formulas = formulas

    def evaluate_formulas(self, context: Mapping[str, float]) -> Tuple[FormulaResult, ...]:
        results = []
        for formula in self.formulas:
            outcome = evaluate(formula.expression, context)
            if not outcome.ok:
                logger.debug("Formula %r failed: %s", formula.name, outcome.error)
            results.append(FormulaResult(
                id=formula.id,
                name=formula.name,
                value=outcome.value,
                error=outcome.error,
                unit=formula.unit,
                subtract_from_profit=formula.subtract_from_profit,
            ))
        return tuple(results)

    @staticmethod
    def profit_deductions(results) -> float:
        """Sum of deduction formulas; errored ones contribute nothing."""
        return float(sum(r.value for r in results if r.subtract_from_profit and r.ok))

    def evaluate_all(self, context: Mapping[str, float]) -> AggregateResult:
        results = self.evaluate_formulas(context)
        deductions = self.profit_deductions(results)

        values = {r.id: r.value for r in results if r.ok}
        total_cost = _finite_or_nan(values.get(TOTAL_COST, 0.0) + deductions)
        net_profit = _finite_or_nan(values.get(NET_PROFIT, 0.0) - deductions)
        if math.isnan(net_profit) or math.isnan(total_cost):
            logger.debug("Headline totals overflowed with deductions of %s", deductions)
        headlines = Headlines(
            revenue=values.get(REVENUE, 0.0),
            manufacturing_cost=values.get(MANUFACTURING_COST, 0.0),
            storage_cost=values.get(STORAGE_COST, 0.0),
            transportation_cost=values.get(TRANSPORTATION_COST, 0.0),
            sustainability_cost=values.get(SUSTAINABILITY_COST, 0.0),
            total_emissions=values.get(EMISSIONS, 0.0),
            total_cost=total_cost,
            net_profit=net_profit,
            profit_deductions=_finite_or_nan(deductions),
        )
        return AggregateResult(results=results, headlines=headlines)
