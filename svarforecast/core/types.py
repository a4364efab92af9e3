# svarforecast/core/types.py

"""
Core type annotations for the SVAR forecast toolbox.

This module collects the type aliases shared across the toolbox so that the
shape conventions of posterior draw arrays, forecast requests and forecast
outputs are documented in one place.
"""

from enum import Enum
from typing import Callable, Optional, Union

import numpy as np
import pandas as pd

# NumPy array type aliases
Vector = np.ndarray  # 1D array
Matrix = np.ndarray  # 2D array
Tensor3D = np.ndarray  # 3D array, last axis indexes posterior draws
Tensor4D = np.ndarray  # 4D array, last axis indexes posterior draws

# Inputs accepted where the toolbox expects a matrix of future values
MatrixLike = Union[np.ndarray, pd.DataFrame, list]

# Root of the random stream of a forecast call
RandomState = Optional[Union[int, np.random.Generator, np.random.SeedSequence]]

# Callback for progress reporting: (fraction completed, message)
ProgressCallback = Callable[[float, str], None]


class HeteroskedasticityType(str, Enum):
    """Enumeration of structural shock variance processes."""

    HOMOSKEDASTIC = "homoskedastic"
    MARKOV_SWITCHING = "msh"
    FINITE_MIXTURE = "mixture"
    STOCHASTIC_VOLATILITY = "sv"
    STUDENT_T = "t"

    @classmethod
    def from_string(cls, name: str) -> 'HeteroskedasticityType':
        """Convert a string to a HeteroskedasticityType enum value.

        Args:
            name: String representation of the variant

        Returns:
            HeteroskedasticityType: The corresponding enum value

        Raises:
            ValueError: If the string does not match any enum value
        """
        try:
            return cls(name.lower())
        except ValueError:
            valid = [m.value for m in cls]
            raise ValueError(
                f"Invalid heteroskedasticity type: {name}. "
                f"Valid types are: {', '.join(valid)}"
            )
