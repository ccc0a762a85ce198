"""Operational constraint checks against configured limits."""

from dataclasses import dataclass

import config
from models.aggregator import Headlines
from models.inputs import OperationalInputs


@dataclass(frozen=True)
class OperationalLimits:
    """Capacity limits supplied by the settings surface (tons)."""
    max_inventory: float = config.MAX_INVENTORY_TONS
    max_production: float = config.MAX_PRODUCTION_TONS
    max_sales: float = config.MAX_SALES_TONS
    max_emissions: float = config.MAX_EMISSIONS_TONS


@dataclass(frozen=True)
class ConstraintStatus:
    production: bool
    sales: bool
    inventory: bool
    emissions: bool

    @property
    def all_satisfied(self) -> bool:
        return self.production and self.sales and self.inventory and self.emissions

    def violations(self):
        return [name for name in ('production', 'sales', 'inventory', 'emissions')
                if not getattr(self, name)]


def check_constraints(inputs: OperationalInputs,
                      headlines: Headlines,
                      limits: OperationalLimits) -> ConstraintStatus:
    return ConstraintStatus(
        production=inputs.production_volume <= limits.max_production,
        sales=inputs.sales_volume <= limits.max_sales,
        inventory=inputs.inventory_volume <= limits.max_inventory,
        emissions=headlines.total_emissions <= limits.max_emissions,
    )
