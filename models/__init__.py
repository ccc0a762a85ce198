"""Parameter, formula and evaluation models for the supply chain calculator."""

from .exceptions import (
    CalculatorError,
    InvalidNameError,
    InvalidFormulaError,
    ExpressionSyntaxError,
    EvaluationError,
    InvalidValueError
)
from .expression import EvaluationResult, evaluate, parse, check_syntax
from .inputs import OperationalInputs, BUILTIN_INPUTS, parse_number
from .parameters import Parameter, ParameterStore, sanitize_name
from .formulas import Formula, FormulaRegistry, default_formulas
from .context import build_context
from .aggregator import FormulaResult, Headlines, AggregateResult, ResultAggregator

__all__ = [
    'CalculatorError',
    'InvalidNameError',
    'InvalidFormulaError',
    'ExpressionSyntaxError',
    'EvaluationError',
    'InvalidValueError',
    'EvaluationResult',
    'evaluate',
    'parse',
    'check_syntax',
    'OperationalInputs',
    'BUILTIN_INPUTS',
    'parse_number',
    'Parameter',
    'ParameterStore',
    'sanitize_name',
    'Formula',
    'FormulaRegistry',
    'default_formulas',
    'build_context',
    'FormulaResult',
    'Headlines',
    'AggregateResult',
    'ResultAggregator'
]
