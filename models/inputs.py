"""
Operational Inputs

The nine builtin numeric inputs of the steel supply chain model, the two
linked percentage fields, and the rules that keep production, sales and
inventory consistent when one of them is edited.
"""

import math
import re
from dataclasses import dataclass, replace, asdict
from typing import Dict, List, NamedTuple, Optional

# Digits with at most one decimal point, or empty. No sign, no exponent.
NUMERIC_TEXT_RE = re.compile(r'^\d*\.?\d*$')


def parse_number(text) -> float:
    """Parse text as a float, treating empty or unparseable text as zero."""
    try:
        value = float(text)
    except (TypeError, ValueError):
        return 0.0
    return value if math.isfinite(value) else 0.0


def is_numeric_text(text: str) -> bool:
    return bool(NUMERIC_TEXT_RE.match(text))


class InputField(NamedTuple):
    """Metadata for one builtin input."""
    attr: str          # OperationalInputs attribute
    name: str          # identifier used inside formulas
    label: str
    unit: str
    category: str


BUILTIN_INPUTS: List[InputField] = [
    InputField('selling_price', 'sellingPrice',
               'Selling Price per Ton', '₹', 'Input Parameters'),
    InputField('manufacturing_cost_per_ton', 'manufacturingCostPerTon',
               'Manufacturing Cost per Ton', '₹', 'Input Parameters'),
    InputField('storage_cost_percent', 'storageCostPercent',
               'Storage/Holding Cost', '%', 'Input Parameters'),
    InputField('transportation_cost_percent', 'transportationCostPercent',
               'Transportation Cost', '%', 'Input Parameters'),
    InputField('sustainability_cost_per_ton_co2', 'sustainabilityCostPerTonCO2',
               'Sustainability Cost per CO₂ Ton', '₹', 'Input Parameters'),
    InputField('co2_emission_factor', 'co2EmissionFactor',
               'CO₂ Emission Factor', 'CO₂/ton', 'Input Parameters'),
    InputField('production_volume', 'productionVolume',
               'Production Volume', 'tons', 'Operational Inputs'),
    InputField('sales_volume', 'salesVolume',
               'Sales Volume', 'tons', 'Operational Inputs'),
    InputField('inventory_volume', 'inventoryVolume',
               'Inventory Volume', 'tons', 'Operational Inputs'),
]

BUILTIN_NAMES = frozenset(f.name for f in BUILTIN_INPUTS)

PERCENT_FIELDS = ('sales_volume_percent', 'inventory_volume_percent')


@dataclass(frozen=True)
class OperationalInputs:
    """Builtin inputs. Instances are immutable; edits return a new instance."""

    # Financial and environmental assumptions
    selling_price: float = 40000.0  # ₹ per ton
    manufacturing_cost_per_ton: float = 36600.0  # ₹ per ton
    storage_cost_percent: float = 1.75  # % of selling price per inventory ton
    transportation_cost_percent: float = 1.3  # % of selling price per produced ton
    sustainability_cost_per_ton_co2: float = 300.0  # ₹ per ton CO₂
    co2_emission_factor: float = 2.53  # tons CO₂ per ton produced

    # Volumes (tons)
    production_volume: float = 50000.0
    sales_volume: float = 50000.0
    inventory_volume: float = 0.0

    # Linked percentages of production
    sales_volume_percent: float = 100.0
    inventory_volume_percent: float = 0.0

    def as_context(self) -> Dict[str, float]:
        """Builtin inputs keyed by their formula identifiers."""
        return {f.name: float(getattr(self, f.attr)) for f in BUILTIN_INPUTS}

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    def apply_change(self, field_name: str, value: float) -> 'OperationalInputs':
        """
        Return a copy with field_name set to value and linked volumes updated.

        Editing production keeps the previous sales share; editing sales or
        inventory (as tons or as a percentage) moves the remainder to the
        other one. Percentages are clamped to [0, 100], tons are not.
        """
        if field_name not in self.__dataclass_fields__:
            raise KeyError(f"Unknown input field: {field_name}")

        if field_name in PERCENT_FIELDS:
            value = min(max(value, 0.0), 100.0)

        updated = replace(self, **{field_name: value})
        production = updated.production_volume
        sales = updated.sales_volume
        inventory = updated.inventory_volume

        if field_name == 'production_volume':
            sales = production * (self.sales_volume_percent / 100)
            inventory = production - sales
        elif field_name == 'sales_volume':
            inventory = production - sales
        elif field_name == 'sales_volume_percent':
            sales = production * (value / 100)
            inventory = production - sales
        elif field_name == 'inventory_volume':
            sales = production - inventory
        elif field_name == 'inventory_volume_percent':
            inventory = production * (value / 100)
            sales = production - inventory

        if production > 0:
            return replace(
                updated,
                sales_volume=sales,
                inventory_volume=inventory,
                sales_volume_percent=sales / production * 100,
                inventory_volume_percent=inventory / production * 100,
            )
        return replace(
            updated,
            sales_volume=0.0,
            inventory_volume=0.0,
            sales_volume_percent=0.0,
            inventory_volume_percent=0.0,
        )

    def set_text(self, field_name: str, text: str) -> Optional['OperationalInputs']:
        """Apply a keystroke-level text edit; None if the text is rejected."""
        if not is_numeric_text(text):
            return None
        return self.apply_change(field_name, parse_number(text))
