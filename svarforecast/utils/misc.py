# svarforecast/utils/misc.py
"""
Miscellaneous utility functions for the SVAR forecast toolbox.

Functions:
    ensure_array: Convert input to a float NumPy array
    spawn_generators: Split a random root into independent per-draw generators
    format_time: Format elapsed time for log messages
"""

import logging
from typing import Any, List

import numpy as np
import pandas as pd

from svarforecast.core.types import RandomState

logger = logging.getLogger("svarforecast.utils.misc")


def ensure_array(data: Any, dtype: Any = float) -> np.ndarray:
    """
    Ensure input is a NumPy array.

    Args:
        data: Input data to convert to a NumPy array
        dtype: NumPy data type to use for the array

    Returns:
        Input data as a NumPy array

    Examples:
        >>> from svarforecast.utils.misc import ensure_array
        >>> ensure_array([1, 2, 3])
        array([1., 2., 3.])
    """
    if isinstance(data, (pd.Series, pd.DataFrame)):
        return data.to_numpy(dtype=dtype)
    return np.asarray(data, dtype=dtype)


def spawn_generators(random_state: RandomState, n: int) -> List[np.random.Generator]:
    """
    Create n statistically independent generators from one random root.

    Child i depends only on the root and on i, so posterior draw i consumes
    the same stream whatever the number of worker threads.

    Args:
        random_state: Integer seed, SeedSequence, Generator, or None for
            fresh operating-system entropy
        n: Number of child generators

    Returns:
        List of n generators

    Examples:
        >>> from svarforecast.utils.misc import spawn_generators
        >>> a = spawn_generators(7, 3)
        >>> b = spawn_generators(7, 3)
        >>> float(a[2].standard_normal()) == float(b[2].standard_normal())
        True
    """
    if isinstance(random_state, np.random.Generator):
        return list(random_state.spawn(n))

    if isinstance(random_state, np.random.SeedSequence):
        seed_sequence = random_state
    else:
        seed_sequence = np.random.SeedSequence(random_state)

    return [np.random.default_rng(child) for child in seed_sequence.spawn(n)]


def format_time(seconds: float) -> str:
    """
    Format time in seconds to a human-readable string.

    Examples:
        >>> from svarforecast.utils.misc import format_time
        >>> format_time(125.3)
        '2m 5.3s'
        >>> format_time(45.7)
        '45.7s'
    """
    if seconds < 60:
        return f"{seconds:.1f}s"

    minutes, seconds = divmod(seconds, 60)
    if minutes < 60:
        return f"{int(minutes)}m {seconds:.1f}s"

    hours, minutes = divmod(minutes, 60)
    return f"{int(hours)}h {int(minutes)}m {seconds:.1f}s"
