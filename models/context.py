"""Builds the flat name -> value mapping formulas are evaluated against."""

from typing import Dict, Mapping, Optional

from models.inputs import OperationalInputs
from models.parameters import ParameterStore


def build_context(inputs: OperationalInputs,
                  parameters: ParameterStore,
                  overrides: Optional[Mapping[str, float]] = None) -> Dict[str, float]:
    """
    Merge builtin inputs, custom parameters and overrides.

    Later sources win: a custom parameter shadows a builtin input of the same
    name (the store normally prevents that), and overrides shadow both.
    """
    context = inputs.as_context()
    context.update(parameters.values())
    if overrides:
        context.update(overrides)
    return context
