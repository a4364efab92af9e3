"""
SVAR Forecast Toolbox Models Module

Posterior draw containers, volatility path forecasters for each
heteroskedasticity variant, the predictive path simulator and the forecast
entry point.
"""

import logging

logger = logging.getLogger("svarforecast.models")

from .forecast import forecast, forecast_posterior
from .posterior import LastInSampleState, PosteriorDraws, StructuralDraws
from .simulator import DrawResult, conditional_shock_moments, simulate_draw
from .volatility import (
    FiniteMixture,
    Homoskedastic,
    MarkovSwitching,
    StochasticVolatility,
    StudentT,
    forecast_volatility,
)

__all__ = [
    "forecast",
    "forecast_posterior",
    "LastInSampleState",
    "PosteriorDraws",
    "StructuralDraws",
    "DrawResult",
    "conditional_shock_moments",
    "simulate_draw",
    "FiniteMixture",
    "Homoskedastic",
    "MarkovSwitching",
    "StochasticVolatility",
    "StudentT",
    "forecast_volatility",
]
