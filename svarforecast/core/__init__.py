"""
SVAR Forecast Toolbox Core Module

Foundation shared by the forecasting components: exception hierarchy, type
aliases, configuration management, request validation and result containers.
"""

import logging

logger = logging.getLogger("svarforecast.core")

from .config import ConfigManager, get_config, get_config_manager, reset_config, set_config
from .exceptions import (
    ConfigurationError,
    DimensionError,
    InfeasibleConstraintError,
    InvalidValueError,
    MissingInputError,
    NumericWarning,
    SingularStructuralMatrixError,
    SVARForecastError,
)
from .results import ForecastBundle, assemble_forecast_bundle
from .types import HeteroskedasticityType
from .validation import ForecastRequest, validate_forecast_request

__all__ = [
    "ConfigManager",
    "get_config",
    "get_config_manager",
    "reset_config",
    "set_config",
    "ConfigurationError",
    "DimensionError",
    "InfeasibleConstraintError",
    "InvalidValueError",
    "MissingInputError",
    "NumericWarning",
    "SingularStructuralMatrixError",
    "SVARForecastError",
    "ForecastBundle",
    "assemble_forecast_bundle",
    "HeteroskedasticityType",
    "ForecastRequest",
    "validate_forecast_request",
]
