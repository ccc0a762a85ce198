"""
Formula Registry

Named arithmetic expressions over parameters. Eight formulas are seeded
with fixed ids; the aggregator looks those ids up to build the headline
totals. Formulas never reference one another, so the total cost and net
profit formulas spell out their sub-expressions inline.
"""

import logging
import uuid
from dataclasses import dataclass, replace
from typing import Dict, Iterator, List, Optional

from models.exceptions import InvalidFormulaError
from models.expression import check_syntax

logger = logging.getLogger(__name__)

REVENUE = 'revenue'
MANUFACTURING_COST = 'manufacturing-cost'
STORAGE_COST = 'storage-cost'
TRANSPORTATION_COST = 'transportation-cost'
EMISSIONS = 'emissions'
SUSTAINABILITY_COST = 'sustainability-cost'
TOTAL_COST = 'total-cost'
NET_PROFIT = 'net-profit'

SEEDED_IDS = (
    REVENUE, MANUFACTURING_COST, STORAGE_COST, TRANSPORTATION_COST,
    EMISSIONS, SUSTAINABILITY_COST, TOTAL_COST, NET_PROFIT,
)

_REVENUE_EXPR = "sellingPrice * salesVolume"
_MANUFACTURING_EXPR = "manufacturingCostPerTon * productionVolume"
_STORAGE_EXPR = "sellingPrice * (storageCostPercent / 100) * inventoryVolume"
_TRANSPORT_EXPR = "sellingPrice * (transportationCostPercent / 100) * productionVolume"
_EMISSIONS_EXPR = "co2EmissionFactor * productionVolume"
_SUSTAINABILITY_EXPR = "sustainabilityCostPerTonCO2 * co2EmissionFactor * productionVolume"
_TOTAL_COST_EXPR = (
    f"{_MANUFACTURING_EXPR} + {_STORAGE_EXPR} + {_TRANSPORT_EXPR} + {_SUSTAINABILITY_EXPR}"
)
_NET_PROFIT_EXPR = f"{_REVENUE_EXPR} - ({_TOTAL_COST_EXPR})"


@dataclass(frozen=True)
class Formula:
    """A named expression, optionally deducted from net profit."""
    id: str
    name: str
    expression: str
    unit: str = ""
    description: str = ""
    subtract_from_profit: bool = False


def default_formulas() -> List[Formula]:
    return [
        Formula(REVENUE, "Total Revenue", _REVENUE_EXPR, "₹",
                "Selling price times tons sold"),
        Formula(MANUFACTURING_COST, "Manufacturing Cost", _MANUFACTURING_EXPR, "₹",
                "Cost of every ton produced"),
        Formula(STORAGE_COST, "Storage Cost", _STORAGE_EXPR, "₹",
                "Holding cost on unsold inventory"),
        Formula(TRANSPORTATION_COST, "Transportation Cost", _TRANSPORT_EXPR, "₹",
                "Freight on every ton produced"),
        Formula(EMISSIONS, "Total CO₂ Emission", _EMISSIONS_EXPR, "tons CO₂",
                "Emissions from production"),
        Formula(SUSTAINABILITY_COST, "Sustainability Cost", _SUSTAINABILITY_EXPR, "₹",
                "Carbon cost of production emissions"),
        Formula(TOTAL_COST, "Total Cost", _TOTAL_COST_EXPR, "₹",
                "Manufacturing, storage, transportation and sustainability"),
        Formula(NET_PROFIT, "Net Profit", _NET_PROFIT_EXPR, "₹",
                "Revenue less total cost"),
    ]


class FormulaRegistry:
    """Ordered collection of formulas keyed by id."""

    EDITABLE_FIELDS = ('name', 'expression', 'unit', 'description', 'subtract_from_profit')

    def __init__(self, formulas: Optional[List[Formula]] = None,
                 strict_syntax: bool = False):
        self.strict_syntax = strict_syntax
        self._formulas: Dict[str, Formula] = {}
        for formula in formulas or []:
            self._formulas[formula.id] = formula

    @classmethod
    def with_defaults(cls, strict_syntax: bool = False) -> 'FormulaRegistry':
        return cls(default_formulas(), strict_syntax=strict_syntax)

    def __iter__(self) -> Iterator[Formula]:
        return iter(self._formulas.values())

    def __len__(self) -> int:
        return len(self._formulas)

    def __contains__(self, formula_id: str) -> bool:
        return formula_id in self._formulas

    def get(self, formula_id: str) -> Formula:
        if formula_id not in self._formulas:
            raise KeyError(f"Formula {formula_id} not found")
        return self._formulas[formula_id]

    def _validate(self, name: str, expression: str):
        if not name or not name.strip():
            raise InvalidFormulaError("Formula name cannot be empty")
        if not expression or not expression.strip():
            raise InvalidFormulaError("Formula expression cannot be empty")
        if self.strict_syntax:
            error = check_syntax(expression)
            if error:
                raise InvalidFormulaError(f"Invalid expression: {error}")

    def add(self, name: str, expression: str, unit: str = "",
            description: str = "", subtract_from_profit: bool = False) -> Formula:
        """
        Add a user formula with a freshly generated id.

        Raises:
            InvalidFormulaError: if name or expression is empty, or (in strict
                mode) the expression does not parse.
        """
        self._validate(name, expression)
        formula = Formula(
            id=uuid.uuid4().hex,
            name=name.strip(),
            expression=expression.strip(),
            unit=unit,
            description=description,
            subtract_from_profit=bool(subtract_from_profit),
        )
        self._formulas[formula.id] = formula
        logger.debug("Added formula %r (%s)", formula.name, formula.id)
        return formula

    def edit(self, formula_id: str, **fields) -> Formula:
        current = self.get(formula_id)
        unknown = set(fields) - set(self.EDITABLE_FIELDS)
        if unknown:
            raise TypeError(f"Cannot edit formula fields: {sorted(unknown)}")

        updated = replace(current, **fields)
        self._validate(updated.name, updated.expression)
        updated = replace(updated, name=updated.name.strip(),
                          expression=updated.expression.strip(),
                          subtract_from_profit=bool(updated.subtract_from_profit))
        self._formulas[formula_id] = updated
        logger.debug("Edited formula %s", formula_id)
        return updated

    def remove(self, formula_id: str) -> Formula:
        formula = self.get(formula_id)
        del self._formulas[formula_id]
        logger.debug("Removed formula %r (%s)", formula.name, formula_id)
        return formula
