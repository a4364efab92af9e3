# svarforecast/core/validation.py

"""
Validation utilities for the SVAR forecast toolbox.

This module hosts the conditioning validator, which normalises the forecast
horizon, the matrix of future exogenous values and the conditional-forecast
matrix against the model dimensions before any simulation work starts, plus
the small shape checks reused by the posterior containers.

Missing entries of the conditional-forecast matrix (NaN or None) are the
"free" sentinel: they leave the corresponding variable unconstrained in that
period. Finite numbers are hard constraints on the simulated paths.
"""

import logging
import numbers
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from svarforecast.core.exceptions import (
    raise_dimension_error, raise_invalid_value_error, raise_missing_input_error
)
from svarforecast.core.types import Matrix, MatrixLike

logger = logging.getLogger("svarforecast.core.validation")


@dataclass(frozen=True)
class ForecastRequest:
    """Normalised inputs of a forecast call.

    Attributes:
        horizon: Number of periods to forecast
        exogenous_forecast: (horizon, d) future exogenous values, or a
            (horizon, 1) NaN placeholder when the model has no exogenous
            regressors
        conditional_forecast: (horizon, N) matrix, NaN marks free entries
    """

    horizon: int
    exogenous_forecast: Matrix
    conditional_forecast: Matrix

    @property
    def is_conditional(self) -> bool:
        """Whether any future value is constrained."""
        return bool(np.isfinite(self.conditional_forecast).any())


def validate_array_shape(
    array: np.ndarray,
    expected_shape: Tuple[int, ...],
    array_name: str = "array"
) -> np.ndarray:
    """Validate that an array has the expected shape.

    Args:
        array: Array to validate
        expected_shape: Expected shape, -1 marks a free dimension
        array_name: Name of the array for error messages

    Returns:
        np.ndarray: The validated array

    Raises:
        DimensionError: If array shape doesn't match expected shape
    """
    array = np.asarray(array)
    matches = array.ndim == len(expected_shape) and all(
        dim == -1 or dim == actual for dim, actual in zip(expected_shape, array.shape)
    )
    if not matches:
        raise_dimension_error(
            f"{array_name} has invalid shape {array.shape}, expected {expected_shape}",
            array_name=array_name,
            expected_shape=expected_shape,
            actual_shape=array.shape
        )
    return array


def validate_horizon(horizon: Any) -> int:
    """Validate that the forecast horizon is a positive integer.

    Integral floats such as ``3.0`` are accepted; booleans are not.

    Args:
        horizon: Requested forecast horizon

    Returns:
        int: The horizon as a Python int

    Raises:
        DimensionError: If horizon is not a positive integer
    """
    valid = (
        isinstance(horizon, numbers.Real)
        and not isinstance(horizon, (bool, np.bool_))
        and np.isfinite(horizon)
        and float(horizon) == int(horizon)
        and horizon > 0
    )
    if not valid:
        raise_dimension_error(
            f"Argument horizon must be a positive integer number, got {horizon!r}",
            array_name="horizon",
            expected_shape="positive integer"
        )
    return int(horizon)


def _to_float_matrix(data: MatrixLike, name: str, allow_missing: bool) -> np.ndarray:
    """Convert a matrix-like input to a float array.

    None entries become NaN when allow_missing is True. Anything that is not
    numeric raises InvalidValueError.
    """
    if isinstance(data, (pd.DataFrame, pd.Series)):
        data = data.to_numpy()

    raw = np.asarray(data, dtype=object) if not isinstance(data, np.ndarray) else data

    if raw.dtype.kind in "iuf":
        return raw.astype(float)

    flat = raw.ravel()
    converted = np.empty(flat.shape, dtype=float)
    for i, entry in enumerate(flat):
        if entry is None or (allow_missing and entry is pd.NA):
            converted[i] = np.nan
        elif isinstance(entry, numbers.Real) and not isinstance(entry, (bool, np.bool_)):
            converted[i] = float(entry)
        else:
            raise_invalid_value_error(
                f"{name} must contain numeric values only, found {entry!r}",
                data_name=name,
                issue="non-numeric entry",
                index=tuple(int(k) for k in np.unravel_index(i, raw.shape))
            )
    return converted.reshape(raw.shape)


def validate_exogenous_forecast(
    exogenous_forecast: Optional[MatrixLike],
    horizon: int,
    n_exogenous: int
) -> np.ndarray:
    """Normalise the matrix of future exogenous values.

    Args:
        exogenous_forecast: (horizon, d) future values of the exogenous
            regressors, or None
        horizon: Validated forecast horizon
        n_exogenous: Number of exogenous regressors d of the model

    Returns:
        np.ndarray: (horizon, d) float matrix, or a (horizon, 1) NaN
        placeholder when d is zero

    Raises:
        MissingInputError: If d > 0 and no exogenous forecast is provided
        DimensionError: If the shape is not exactly (horizon, d)
        InvalidValueError: If entries are non-numeric or missing
    """
    if n_exogenous == 0:
        if exogenous_forecast is not None:
            logger.debug("Model has no exogenous regressors; ignoring exogenous_forecast")
        return np.full((horizon, 1), np.nan)

    if exogenous_forecast is None:
        raise_missing_input_error(
            "Forecasted values of exogenous variables are missing.",
            input_name="exogenous_forecast",
            reason=f"model includes {n_exogenous} exogenous regressor(s)"
        )

    exog = _to_float_matrix(exogenous_forecast, "exogenous_forecast", allow_missing=True)
    if exog.ndim != 2 or exog.shape[1] != n_exogenous:
        raise_dimension_error(
            "The matrix of exogenous_forecast does not have a correct number of columns.",
            array_name="exogenous_forecast",
            expected_shape=(horizon, n_exogenous),
            actual_shape=exog.shape
        )
    if exog.shape[0] != horizon:
        raise_dimension_error(
            "Provide exogenous_forecast for all forecast periods specified by argument horizon.",
            array_name="exogenous_forecast",
            expected_shape=(horizon, n_exogenous),
            actual_shape=exog.shape
        )

    missing = ~np.isfinite(exog)
    if missing.any():
        first = tuple(int(k) for k in np.argwhere(missing)[0])
        raise_invalid_value_error(
            "Argument exogenous_forecast cannot include missing values.",
            data_name="exogenous_forecast",
            issue=f"{int(missing.sum())} missing or non-finite entries",
            index=first
        )

    return exog


def validate_conditional_forecast(
    conditional_forecast: Optional[MatrixLike],
    horizon: int,
    n_variables: int
) -> np.ndarray:
    """Normalise the conditional-forecast matrix.

    Args:
        conditional_forecast: (horizon, N) matrix of future values; NaN or
            None entries are unconstrained
        horizon: Validated forecast horizon
        n_variables: Number of dependent variables N

    Returns:
        np.ndarray: (horizon, N) float matrix with NaN for free entries

    Raises:
        DimensionError: If the shape is not exactly (horizon, N)
        InvalidValueError: If any entry is neither numeric nor free
    """
    if conditional_forecast is None:
        return np.full((horizon, n_variables), np.nan)

    cond = _to_float_matrix(conditional_forecast, "conditional_forecast", allow_missing=True)

    if cond.ndim != 2 or cond.shape[0] != horizon:
        raise_dimension_error(
            "Argument conditional_forecast must have the number of rows equal to "
            "the value of argument horizon.",
            array_name="conditional_forecast",
            expected_shape=(horizon, n_variables),
            actual_shape=cond.shape
        )
    if cond.shape[1] != n_variables:
        raise_dimension_error(
            "Argument conditional_forecast must have the number of columns equal to "
            "the number of variables in the model.",
            array_name="conditional_forecast",
            expected_shape=(horizon, n_variables),
            actual_shape=cond.shape
        )

    infinite = np.isinf(cond)
    if infinite.any():
        raise_invalid_value_error(
            "Argument conditional_forecast cannot include infinite values.",
            data_name="conditional_forecast",
            issue="infinite entry",
            index=tuple(int(k) for k in np.argwhere(infinite)[0])
        )

    return cond


def validate_forecast_request(
    horizon: Any,
    exogenous_forecast: Optional[MatrixLike],
    conditional_forecast: Optional[MatrixLike],
    n_variables: int,
    n_exogenous: int
) -> ForecastRequest:
    """Validate and normalise all per-call forecast inputs.

    Args:
        horizon: Requested forecast horizon
        exogenous_forecast: Future values of exogenous regressors, or None
        conditional_forecast: Future values of dependent variables, or None
        n_variables: Number of dependent variables N
        n_exogenous: Number of exogenous regressors d

    Returns:
        ForecastRequest: The normalised request
    """
    h = validate_horizon(horizon)
    exog = validate_exogenous_forecast(exogenous_forecast, h, n_exogenous)
    cond = validate_conditional_forecast(conditional_forecast, h, n_variables)

    request = ForecastRequest(horizon=h, exogenous_forecast=exog, conditional_forecast=cond)
    logger.debug(
        f"Validated forecast request: horizon={h}, exogenous={n_exogenous}, "
        f"constrained entries={int(np.isfinite(cond).sum())}"
    )
    return request


def validate_draw_counts(arrays: Sequence[np.ndarray], names: Sequence[str], n_draws: int) -> None:
    """Validate that posterior arrays share the same number of draws.

    The draw index is the last axis of every posterior array.

    Raises:
        DimensionError: If an array holds a different number of draws
    """
    for array, name in zip(arrays, names):
        if array.shape[-1] != n_draws:
            raise_dimension_error(
                f"{name} holds {array.shape[-1]} posterior draws, expected {n_draws}",
                array_name=name,
                expected_shape=f"last axis of length {n_draws}",
                actual_shape=array.shape
            )
