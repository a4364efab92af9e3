# svarforecast/__init__.py
"""
SVAR Forecast Toolbox

Posterior predictive forecasting for Bayesian structural vector
autoregressions whose structural shocks may be heteroskedastic.

The toolbox provides:
- Volatility path forecasts for Markov-switching, finite mixture, stochastic
  volatility and Student-t structural shocks
- Joint predictive path simulation with exogenous regressors
- Exact conditional forecasting given known future values of some variables
- Reproducible, thread-parallel simulation across posterior draws

Estimation of the posterior itself is left to the sampler that produces the
draws; this package consumes them.
"""

import logging

from svarforecast.version import __version__, get_version_info

# Package-wide logger; handlers are attached by the configuration manager
logger = logging.getLogger("svarforecast")
logger.addHandler(logging.NullHandler())

from svarforecast.core.config import get_config, reset_config, save_config, set_config
from svarforecast.core.exceptions import (
    ConfigurationError,
    DimensionError,
    InfeasibleConstraintError,
    InvalidValueError,
    MissingInputError,
    NumericWarning,
    SingularStructuralMatrixError,
    SVARForecastError,
)
from svarforecast.core.results import ForecastBundle
from svarforecast.core.types import HeteroskedasticityType
from svarforecast.models.forecast import forecast, forecast_posterior
from svarforecast.models.posterior import LastInSampleState, PosteriorDraws, StructuralDraws
from svarforecast.models.volatility import (
    FiniteMixture,
    Homoskedastic,
    MarkovSwitching,
    StochasticVolatility,
    StudentT,
)

__all__ = [
    "__version__",
    "get_version_info",
    # Entry points
    "forecast",
    "forecast_posterior",
    # Inputs
    "StructuralDraws",
    "LastInSampleState",
    "PosteriorDraws",
    "Homoskedastic",
    "MarkovSwitching",
    "FiniteMixture",
    "StochasticVolatility",
    "StudentT",
    # Outputs
    "ForecastBundle",
    "HeteroskedasticityType",
    # Configuration
    "get_config",
    "set_config",
    "reset_config",
    "save_config",
    # Exceptions
    "SVARForecastError",
    "DimensionError",
    "MissingInputError",
    "InvalidValueError",
    "SingularStructuralMatrixError",
    "InfeasibleConstraintError",
    "ConfigurationError",
    "NumericWarning",
]
