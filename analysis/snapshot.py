"""
Application state and the recompute step.

Every mutation (input edit, parameter or formula change, new limits) is
followed by a call to ``recompute``, which derives all results from scratch.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from analysis.constraints import (
    ConstraintStatus,
    OperationalLimits,
    check_constraints
)
from analysis.sensitivity import (
    AnalysisPoint,
    SensitivitySweep,
    SweepRange,
    break_even_points
)
from models.aggregator import AggregateResult, ResultAggregator
from models.context import build_context
from models.formulas import FormulaRegistry
from models.inputs import OperationalInputs
from models.parameters import ParameterStore


@dataclass
class AppState:
    """Everything a user can change."""
    inputs: OperationalInputs = field(default_factory=OperationalInputs)
    parameters: ParameterStore = field(default_factory=ParameterStore)
    formulas: FormulaRegistry = field(default_factory=FormulaRegistry.with_defaults)
    limits: OperationalLimits = field(default_factory=OperationalLimits)
    sweep_range: SweepRange = field(default_factory=SweepRange)


@dataclass(frozen=True)
class DerivedState:
    """Everything shown to the user, derived from an AppState."""
    context: Dict[str, float]
    aggregate: AggregateResult
    constraints: ConstraintStatus
    sweep: List[AnalysisPoint]

    @property
    def break_even(self) -> Optional[AnalysisPoint]:
        """First break-even point in the sweep, if net profit crosses zero."""
        points = break_even_points(self.sweep)
        return points[0] if points else None


def recompute(state: AppState) -> DerivedState:
    context = build_context(state.inputs, state.parameters)
    aggregate = ResultAggregator(state.formulas).evaluate_all(context)
    constraints = check_constraints(state.inputs, aggregate.headlines, state.limits)
    sweep = SensitivitySweep(state.formulas, state.sweep_range).run(
        state.inputs, state.parameters
    )
    return DerivedState(
        context=context,
        aggregate=aggregate,
        constraints=constraints,
        sweep=sweep,
    )
