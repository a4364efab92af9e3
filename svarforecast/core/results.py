'''
Result containers for posterior predictive forecasts.

The forecast bundle collects the simulated predictive paths of every posterior
draw together with the reduced-form covariances and the forecast structural
variances, in the draw order of the posterior. The last axis of every array
indexes posterior draws.
'''

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from svarforecast.core.exceptions import raise_dimension_error
from svarforecast.core.types import HeteroskedasticityType, Matrix, Tensor3D, Tensor4D

logger = logging.getLogger("svarforecast.core.results")


@dataclass
class ForecastBundle:
    """Draws from the posterior predictive density of a structural VAR.

    Attributes:
        forecasts: (N, horizon, S) simulated predictive paths
        forecast_covariance: (N, N, horizon, S) reduced-form error covariances
        forecasts_sigma: (N, horizon, S) forecast structural variances, all
            ones for homoskedastic models
        Y: (N, T) historical data
        heteroskedasticity: Variance process of the structural shocks
        creation_time: Timestamp when the bundle was created
        metadata: Additional metadata about the forecast call
    """

    forecasts: Tensor3D
    forecast_covariance: Tensor4D
    forecasts_sigma: Tensor3D
    Y: Matrix
    heteroskedasticity: Union[HeteroskedasticityType, str] = HeteroskedasticityType.HOMOSKEDASTIC
    creation_time: datetime = field(default_factory=datetime.now)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate result object after initialization."""
        if isinstance(self.heteroskedasticity, str) and \
                not isinstance(self.heteroskedasticity, HeteroskedasticityType):
            self.heteroskedasticity = HeteroskedasticityType.from_string(self.heteroskedasticity)

        self.forecasts = np.asarray(self.forecasts, dtype=float)
        self.forecast_covariance = np.asarray(self.forecast_covariance, dtype=float)
        self.forecasts_sigma = np.asarray(self.forecasts_sigma, dtype=float)

        n_variables, horizon, n_draws = self.forecasts.shape
        expected = (n_variables, n_variables, horizon, n_draws)
        if self.forecast_covariance.shape != expected:
            raise_dimension_error(
                "Forecast covariances do not match the forecast paths",
                array_name="forecast_covariance",
                expected_shape=expected,
                actual_shape=self.forecast_covariance.shape
            )
        if self.forecasts_sigma.shape != self.forecasts.shape:
            raise_dimension_error(
                "Forecast structural variances do not match the forecast paths",
                array_name="forecasts_sigma",
                expected_shape=self.forecasts.shape,
                actual_shape=self.forecasts_sigma.shape
            )

    @property
    def horizon(self) -> int:
        return self.forecasts.shape[1]

    @property
    def n_draws(self) -> int:
        return self.forecasts.shape[2]

    @property
    def n_variables(self) -> int:
        return self.forecasts.shape[0]

    def mean(self) -> Matrix:
        """Posterior predictive mean.

        Returns:
            Matrix: (N, horizon) mean over posterior draws
        """
        return self.forecasts.mean(axis=2)

    def quantiles(self, probs: Sequence[float] = (0.05, 0.5, 0.95)) -> np.ndarray:
        """Posterior predictive quantiles.

        Args:
            probs: Probabilities in [0, 1]

        Returns:
            np.ndarray: (len(probs), N, horizon) quantiles over posterior draws
        """
        probs = np.asarray(probs, dtype=float)
        if ((probs < 0) | (probs > 1)).any():
            raise ValueError(f"Quantile probabilities must lie in [0, 1], got {probs}")
        return np.quantile(self.forecasts, probs, axis=2)

    def to_dataframe(self, variable_names: Optional[List[str]] = None) -> pd.DataFrame:
        """Convert the predictive draws to a long-format DataFrame.

        Args:
            variable_names: Names of the N variables, defaults to
                ``y1, ..., yN``

        Returns:
            pd.DataFrame: One row per variable, horizon and draw with columns
            ``variable``, ``horizon`` (1-based), ``draw``, ``forecast`` and
            ``sigma2``
        """
        if variable_names is None:
            variable_names = [f"y{i + 1}" for i in range(self.n_variables)]
        if len(variable_names) != self.n_variables:
            raise ValueError(
                f"Expected {self.n_variables} variable names, got {len(variable_names)}"
            )

        variable, horizon, draw = np.meshgrid(
            np.arange(self.n_variables), np.arange(1, self.horizon + 1),
            np.arange(self.n_draws), indexing="ij"
        )
        df = pd.DataFrame({
            "variable": np.asarray(variable_names, dtype=object)[variable.ravel()],
            "horizon": horizon.ravel(),
            "draw": draw.ravel(),
            "forecast": self.forecasts.ravel()
        })
        df["sigma2"] = self.forecasts_sigma.ravel()
        return df


def assemble_forecast_bundle(
    draw_results: Sequence[Any],
    forecasts_sigma: Tensor3D,
    Y: Matrix,
    heteroskedasticity: Union[HeteroskedasticityType, str] = HeteroskedasticityType.HOMOSKEDASTIC,
    metadata: Optional[Dict[str, Any]] = None
) -> ForecastBundle:
    """Stack per-draw simulation results into a forecast bundle.

    Entries of draw_results are per-draw results in posterior draw order; an
    entry that is an exception records the failure of that draw.

    Args:
        draw_results: One result or exception per posterior draw
        forecasts_sigma: (N, horizon, S) forecast structural variances
        Y: (N, T) historical data, copied into the bundle
        heteroskedasticity: Variance process of the structural shocks
        metadata: Additional metadata about the forecast call

    Returns:
        ForecastBundle: The assembled bundle

    Raises:
        Exception: The first recorded per-draw error, in draw order
    """
    for result in draw_results:
        if isinstance(result, BaseException):
            raise result

    if isinstance(heteroskedasticity, str) and \
            not isinstance(heteroskedasticity, HeteroskedasticityType):
        heteroskedasticity = HeteroskedasticityType.from_string(heteroskedasticity)

    forecasts = np.stack([result.forecasts for result in draw_results], axis=2)
    covariance = np.stack([result.covariance for result in draw_results], axis=3)
    forecasts_sigma = np.asarray(forecasts_sigma, dtype=float)

    if forecasts_sigma.shape != forecasts.shape:
        raise_dimension_error(
            "Forecast structural variances do not match the forecast paths",
            array_name="forecasts_sigma",
            expected_shape=forecasts.shape,
            actual_shape=forecasts_sigma.shape
        )

    bundle = ForecastBundle(
        forecasts=forecasts,
        forecast_covariance=covariance,
        forecasts_sigma=forecasts_sigma,
        Y=np.array(Y, dtype=float, copy=True),
        heteroskedasticity=heteroskedasticity,
        metadata=dict(metadata or {})
    )
    logger.debug(f"Assembled forecast bundle with {bundle.n_draws} draws")
    return bundle
