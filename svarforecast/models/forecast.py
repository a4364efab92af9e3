"""
Posterior predictive forecasting for structural VARs.

This module is the single call surface of the toolbox. A forecast call
validates the request against the model dimensions, forecasts the structural
variances of every posterior draw, simulates one predictive path per draw and
assembles the results into a ForecastBundle.

Posterior draws are simulated independently on a thread pool. Each draw owns
a generator spawned from the caller's random root and consumes it in a fixed
order, first the volatility innovations and then the structural shocks, so
the output is identical for any number of workers.

Functions:
    forecast: Sample from the posterior predictive density
    forecast_posterior: Same, taking structural draws paired with their variant
"""

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, List, Optional

from svarforecast.core.config import get_config
from svarforecast.core.exceptions import SVARForecastError
from svarforecast.core.results import ForecastBundle, assemble_forecast_bundle
from svarforecast.core.types import MatrixLike, ProgressCallback, RandomState
from svarforecast.core.validation import validate_forecast_request
from svarforecast.models.posterior import (
    LastInSampleState, PosteriorDraws, StructuralDraws, check_model_dimensions
)
from svarforecast.models.simulator import simulate_draw
from svarforecast.models.volatility import HeteroskedasticityVariant, forecast_volatility
from svarforecast.utils.misc import format_time, spawn_generators

logger = logging.getLogger("svarforecast.models.forecast")


def _resolve_max_workers(max_workers: Optional[int]) -> int:
    if max_workers is None:
        max_workers = get_config("performance", "max_workers")
    if max_workers is None:
        max_workers = os.cpu_count() or 1
    if int(max_workers) < 1:
        raise ValueError(f"max_workers must be a positive integer, got {max_workers}")
    return int(max_workers)


def forecast(
    structural: StructuralDraws,
    variant: HeteroskedasticityVariant,
    last_state: LastInSampleState,
    horizon: int = 1,
    exogenous_forecast: Optional[MatrixLike] = None,
    conditional_forecast: Optional[MatrixLike] = None,
    random_state: RandomState = None,
    max_workers: Optional[int] = None,
    progress_callback: Optional[ProgressCallback] = None
) -> ForecastBundle:
    """Sample from the joint posterior predictive density of a structural VAR.

    Args:
        structural: Posterior draws of A and B
        variant: Heteroskedasticity variant with its posterior parameter draws
        last_state: Terminal state of the estimation sample
        horizon: Number of periods to forecast
        exogenous_forecast: (horizon, d) future values of the exogenous
            regressors; required when the model has exogenous regressors
        conditional_forecast: (horizon, N) known future values of the
            dependent variables, NaN or None marks unconstrained entries
        random_state: Root of the random stream; defaults to the
            ``core.random_seed`` configuration option
        max_workers: Number of worker threads; defaults to the
            ``performance.max_workers`` option or the number of CPUs
        progress_callback: Called with (fraction completed, message) as
            draws finish

    Returns:
        ForecastBundle: Predictive paths, covariances and structural
        variances of all posterior draws

    Raises:
        DimensionError: If the request or the posterior inputs have
            inconsistent dimensions
        MissingInputError: If the exogenous forecast is required but absent
        InvalidValueError: If the request contains invalid values
        SingularStructuralMatrixError: If a draw of B cannot be inverted
        InfeasibleConstraintError: If the constraints of a period cannot be
            satisfied under some draw

    Examples:
        >>> import numpy as np
        >>> from svarforecast import (
        ...     Homoskedastic, LastInSampleState, StructuralDraws, forecast
        ... )
        >>> A = np.tile(np.array([[0.5, 0.0, 1.0], [0.0, 0.5, 0.0]])[:, :, None], (1, 1, 3))
        >>> B = np.tile(np.eye(2)[:, :, None], (1, 1, 3))
        >>> state = LastInSampleState(X_T=[1.0, 1.0, 1.0], Y=np.ones((2, 10)), p=1)
        >>> bundle = forecast(StructuralDraws(A, B), Homoskedastic(), state,
        ...                   horizon=2, random_state=0)
        >>> bundle.forecasts.shape
        (2, 2, 3)
    """
    start_time = time.time()

    request = validate_forecast_request(
        horizon, exogenous_forecast, conditional_forecast,
        n_variables=structural.n_variables, n_exogenous=last_state.d
    )
    check_model_dimensions(structural, variant, last_state)

    if random_state is None:
        random_state = get_config("core", "random_seed")
    max_workers = _resolve_max_workers(max_workers)
    parallel_threshold = get_config("performance", "parallel_threshold", 64)

    n_draws = structural.n_draws
    n_variables = structural.n_variables
    generators = spawn_generators(random_state, n_draws)

    sigma2 = forecast_volatility(variant, request.horizon, n_variables, generators)

    def simulate(s: int):
        return simulate_draw(
            s, structural.A[:, :, s], structural.B[:, :, s], sigma2[:, :, s],
            last_state, request, generators[s]
        )

    def report(completed: int) -> None:
        if progress_callback is not None:
            progress_callback(completed / n_draws, f"Simulated {completed}/{n_draws} draws")

    results: List[Any] = [None] * n_draws

    if max_workers == 1 or n_draws < parallel_threshold:
        for s in range(n_draws):
            try:
                results[s] = simulate(s)
            except SVARForecastError as e:
                logger.error(f"Forecast failed for posterior draw {s}: {e.message}")
                results[s] = e
                break
            report(s + 1)
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = {executor.submit(simulate, s): s for s in range(n_draws)}
            for completed, future in enumerate(as_completed(futures), start=1):
                s = futures[future]
                try:
                    results[s] = future.result()
                except SVARForecastError as e:
                    logger.error(f"Forecast failed for posterior draw {s}: {e.message}")
                    results[s] = e
                report(completed)

    bundle = assemble_forecast_bundle(
        results, sigma2, last_state.Y,
        heteroskedasticity=variant.kind,
        metadata={
            "conditional": request.is_conditional,
            "exogenous": last_state.d > 0,
            "max_workers": max_workers
        }
    )

    logger.info(
        f"Forecast {request.horizon} periods for {n_draws} posterior draws "
        f"({variant.kind.value}) in {format_time(time.time() - start_time)}"
    )
    return bundle


def forecast_posterior(
    posterior: PosteriorDraws,
    last_state: LastInSampleState,
    horizon: int = 1,
    **kwargs: Any
) -> ForecastBundle:
    """Forecast from structural draws paired with their variant.

    Args:
        posterior: Structural draws and heteroskedasticity variant
        last_state: Terminal state of the estimation sample
        horizon: Number of periods to forecast
        **kwargs: Further keyword arguments of :func:`forecast`

    Returns:
        ForecastBundle: The forecast bundle
    """
    return forecast(posterior.structural, posterior.variant, last_state,
                    horizon=horizon, **kwargs)
