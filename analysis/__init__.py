"""Sensitivity sweep, constraint checks and recompute for the supply chain calculator."""

from .sensitivity import (
    SweepRange,
    AnalysisPoint,
    SensitivitySweep,
    interpolate_break_even,
    insert_break_even_points,
    break_even_points,
    to_frame
)
from .constraints import OperationalLimits, ConstraintStatus, check_constraints
from .snapshot import AppState, DerivedState, recompute

__all__ = [
    'SweepRange',
    'AnalysisPoint',
    'SensitivitySweep',
    'interpolate_break_even',
    'insert_break_even_points',
    'break_even_points',
    'to_frame',
    'OperationalLimits',
    'ConstraintStatus',
    'check_constraints',
    'AppState',
    'DerivedState',
    'recompute'
]
