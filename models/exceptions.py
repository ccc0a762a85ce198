"""Exceptions raised by the calculator core."""


class CalculatorError(Exception):
    """Base class for calculator errors."""


class InvalidNameError(CalculatorError, ValueError):
    """Parameter name is empty, malformed or already taken."""


class InvalidFormulaError(CalculatorError, ValueError):
    """Formula cannot be saved (empty name/expression or bad syntax)."""


class ExpressionSyntaxError(CalculatorError):
    """Expression text does not match the arithmetic grammar."""


class EvaluationError(CalculatorError):
    """Expression parsed but could not be evaluated against a context."""


class InvalidValueError(CalculatorError, ValueError):
    """Numeric text contains something other than digits and one decimal point."""
