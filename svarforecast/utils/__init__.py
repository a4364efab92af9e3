"""
SVAR Forecast Toolbox Utilities Module

Matrix helpers for the structural-to-reduced-form mapping and miscellaneous
helpers for array conversion, random stream splitting and time formatting.
"""

from .matrix_ops import (
    ensure_symmetric,
    invert_structural_matrix,
    reduced_form_covariance,
)
from .misc import ensure_array, format_time, spawn_generators

__all__ = [
    "ensure_symmetric",
    "invert_structural_matrix",
    "reduced_form_covariance",
    "ensure_array",
    "format_time",
    "spawn_generators",
]
