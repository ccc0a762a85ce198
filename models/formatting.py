"""Indian-rupee currency and en-IN number formatting for reports."""

import math

from config import CURRENCY_SYMBOL


def _group_indian(digits: str) -> str:
    """Group an integer digit string as 12,34,56,789."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ','.join(groups + [tail])


def format_number(value: float, max_decimals: int = 2) -> str:
    """Format with lakh/crore grouping and up to max_decimals decimals."""
    if value is None or not math.isfinite(value):
        return "N/A"
    text = f"{abs(value):.{max_decimals}f}"
    if '.' in text:
        text = text.rstrip('0').rstrip('.')
    whole, _, fraction = text.partition('.')
    grouped = _group_indian(whole)
    if fraction:
        grouped = f"{grouped}.{fraction}"
    sign = '-' if value < 0 and grouped.strip('0.,') else ''
    return f"{sign}{grouped}"


def format_currency(value: float) -> str:
    """Whole-rupee amount, e.g. ₹10,60,50,000 or -₹1,60,50,000."""
    if value is None or not math.isfinite(value):
        return "N/A"
    amount = format_number(value, max_decimals=0)
    if amount.startswith('-'):
        return f"-{CURRENCY_SYMBOL}{amount[1:]}"
    return f"{CURRENCY_SYMBOL}{amount}"
