'''
Custom exception classes for the SVAR forecast toolbox.

This module defines the exception hierarchy used throughout the toolbox. Each
exception carries a primary message, optional details, and a dictionary of
contextual information (array names, shapes, posterior draw indices, forecast
horizons) that is rendered into the final error string, so a failing forecast
call can be traced back to the offending input or draw.

Validation errors (DimensionError, MissingInputError, InvalidValueError) are
raised before any simulation work begins. Numerical errors
(SingularStructuralMatrixError, InfeasibleConstraintError) are raised from
inside the per-draw simulation and abort the whole forecast call.
'''

import inspect
import warnings
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import numpy as np


class SVARForecastError(Exception):
    """Base exception class for all SVAR forecast toolbox errors.

    Attributes:
        message: The error message
        details: Additional details about the error
        context: Dictionary containing contextual information about the error
    """

    def __init__(self,
                 message: str,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        """Initialize the SVARForecastError.

        Args:
            message: The primary error message
            details: Additional details about the error
            context: Dictionary containing contextual information about the error
        """
        self.message = message
        self.details = details
        self.context = context or {}

        full_message = message
        if details:
            full_message += f"\n\nDetails: {details}"

        if self.context:
            context_str = "\n".join(f"  {k}: {v}" for k, v in self.context.items())
            full_message += f"\n\nContext:\n{context_str}"

        # Add caller information for better debugging
        frame = inspect.currentframe()
        if frame:
            try:
                frame = frame.f_back
                # Skip the constructors of subclasses
                while frame and frame.f_code.co_name == "__init__":
                    frame = frame.f_back
                if frame:
                    caller_info = inspect.getframeinfo(frame)
                    full_message += f"\n\nLocation: {Path(caller_info.filename).name}:{caller_info.lineno}"
            finally:
                del frame  # Avoid reference cycles

        super().__init__(full_message)


class DimensionError(SVARForecastError):
    """Exception raised for shape mismatches against model dimensions.

    Attributes:
        array_name: The name of the array that caused the error
        expected_shape: The expected shape of the array
        actual_shape: The actual shape of the array
    """

    def __init__(self,
                 message: str,
                 array_name: Optional[str] = None,
                 expected_shape: Optional[Union[Tuple[int, ...], str]] = None,
                 actual_shape: Optional[Tuple[int, ...]] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        """Initialize the DimensionError.

        Args:
            message: The primary error message
            array_name: The name of the array that caused the error
            expected_shape: The expected shape of the array
            actual_shape: The actual shape of the array
            details: Additional details about the error
            context: Dictionary containing contextual information about the error
        """
        self.array_name = array_name
        self.expected_shape = expected_shape
        self.actual_shape = actual_shape

        context_dict = context or {}
        if array_name:
            context_dict["Array"] = array_name
        if expected_shape is not None:
            context_dict["Expected Shape"] = expected_shape
        if actual_shape is not None:
            context_dict["Actual Shape"] = actual_shape

        super().__init__(message, details, context_dict)


class MissingInputError(SVARForecastError):
    """Exception raised when a required input is absent.

    The typical case is a model estimated with exogenous regressors being
    forecast without future values of those regressors.

    Attributes:
        input_name: The name of the missing input
        reason: Why the input is required
    """

    def __init__(self,
                 message: str,
                 input_name: Optional[str] = None,
                 reason: Optional[str] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        """Initialize the MissingInputError.

        Args:
            message: The primary error message
            input_name: The name of the missing input
            reason: Why the input is required
            details: Additional details about the error
            context: Dictionary containing contextual information about the error
        """
        self.input_name = input_name
        self.reason = reason

        context_dict = context or {}
        if input_name:
            context_dict["Input"] = input_name
        if reason:
            context_dict["Reason"] = reason

        super().__init__(message, details, context_dict)


class InvalidValueError(SVARForecastError):
    """Exception raised for non-numeric or unexpectedly missing entries.

    Attributes:
        data_name: The name of the data that caused the error
        issue: Description of the issue with the data
        index: The location where the issue was detected
    """

    def __init__(self,
                 message: str,
                 data_name: Optional[str] = None,
                 issue: Optional[str] = None,
                 index: Optional[Union[int, Tuple[int, ...], str]] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        """Initialize the InvalidValueError.

        Args:
            message: The primary error message
            data_name: The name of the data that caused the error
            issue: Description of the issue with the data
            index: The location where the issue was detected
            details: Additional details about the error
            context: Dictionary containing contextual information about the error
        """
        self.data_name = data_name
        self.issue = issue
        self.index = index

        context_dict = context or {}
        if data_name:
            context_dict["Data"] = data_name
        if issue:
            context_dict["Issue"] = issue
        if index is not None:
            context_dict["Index"] = index

        super().__init__(message, details, context_dict)


class SingularStructuralMatrixError(SVARForecastError):
    """Exception raised when a posterior draw of B cannot be inverted.

    Attributes:
        draw: Index of the posterior draw whose B matrix is singular
        condition_number: Condition number of the offending matrix
    """

    def __init__(self,
                 message: str,
                 draw: Optional[int] = None,
                 condition_number: Optional[float] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        """Initialize the SingularStructuralMatrixError.

        Args:
            message: The primary error message
            draw: Index of the posterior draw whose B matrix is singular
            condition_number: Condition number of the offending matrix
            details: Additional details about the error
            context: Dictionary containing contextual information about the error
        """
        self.draw = draw
        self.condition_number = condition_number

        context_dict = context or {}
        if draw is not None:
            context_dict["Draw"] = draw
        if condition_number is not None:
            context_dict["Condition Number"] = condition_number

        super().__init__(message, details, context_dict)


class InfeasibleConstraintError(SVARForecastError):
    """Exception raised when conditional-forecast constraints contradict each other.

    Attributes:
        draw: Index of the posterior draw being simulated
        horizon: Forecast period (1-based) whose constraints are inconsistent
        residual: Norm of the residual of the solved constraint system
    """

    def __init__(self,
                 message: str,
                 draw: Optional[int] = None,
                 horizon: Optional[int] = None,
                 residual: Optional[float] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        """Initialize the InfeasibleConstraintError.

        Args:
            message: The primary error message
            draw: Index of the posterior draw being simulated
            horizon: Forecast period whose constraints are inconsistent
            residual: Norm of the residual of the solved constraint system
            details: Additional details about the error
            context: Dictionary containing contextual information about the error
        """
        self.draw = draw
        self.horizon = horizon
        self.residual = residual

        context_dict = context or {}
        if draw is not None:
            context_dict["Draw"] = draw
        if horizon is not None:
            context_dict["Horizon"] = horizon
        if residual is not None:
            context_dict["Residual"] = residual

        super().__init__(message, details, context_dict)


class ConfigurationError(SVARForecastError):
    """Exception raised for invalid configuration settings.

    Attributes:
        section: The configuration section
        option: The configuration option
        value: The rejected value
    """

    def __init__(self,
                 message: str,
                 section: Optional[str] = None,
                 option: Optional[str] = None,
                 value: Optional[Any] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        """Initialize the ConfigurationError.

        Args:
            message: The primary error message
            section: The configuration section
            option: The configuration option
            value: The rejected value
            details: Additional details about the error
            context: Dictionary containing contextual information about the error
        """
        self.section = section
        self.option = option
        self.value = value

        context_dict = context or {}
        if section:
            context_dict["Section"] = section
        if option:
            context_dict["Option"] = option
        if value is not None:
            context_dict["Value"] = value

        super().__init__(message, details, context_dict)


class NumericWarning(UserWarning):
    """Warning issued for non-fatal numerical conditions.

    Used when a computation succeeds but its inputs are close to a numerical
    boundary, e.g. a constraint system that is rank deficient yet consistent.

    Attributes:
        operation: The operation where the issue was detected
        value: The value that triggered the warning
    """

    def __init__(self,
                 message: str,
                 operation: Optional[str] = None,
                 value: Optional[Any] = None) -> None:
        self.message = message
        self.operation = operation
        self.value = value

        full_message = message
        if operation:
            full_message += f" (operation: {operation})"
        if value is not None:
            if isinstance(value, np.ndarray) and value.size > 10:
                full_message += f" [array with shape {value.shape}]"
            else:
                full_message += f" [value: {value}]"

        super().__init__(full_message)


# Helper functions for raising exceptions with consistent formatting

def raise_dimension_error(message: str,
                          array_name: Optional[str] = None,
                          expected_shape: Optional[Union[Tuple[int, ...], str]] = None,
                          actual_shape: Optional[Tuple[int, ...]] = None,
                          details: Optional[str] = None,
                          context: Optional[Dict[str, Any]] = None) -> None:
    """Raise a DimensionError with consistent formatting.

    Raises:
        DimensionError: The formatted dimension error
    """
    raise DimensionError(message, array_name, expected_shape, actual_shape, details, context)


def raise_missing_input_error(message: str,
                              input_name: Optional[str] = None,
                              reason: Optional[str] = None,
                              details: Optional[str] = None,
                              context: Optional[Dict[str, Any]] = None) -> None:
    """Raise a MissingInputError with consistent formatting.

    Raises:
        MissingInputError: The formatted missing input error
    """
    raise MissingInputError(message, input_name, reason, details, context)


def raise_invalid_value_error(message: str,
                              data_name: Optional[str] = None,
                              issue: Optional[str] = None,
                              index: Optional[Union[int, Tuple[int, ...], str]] = None,
                              details: Optional[str] = None,
                              context: Optional[Dict[str, Any]] = None) -> None:
    """Raise an InvalidValueError with consistent formatting.

    Raises:
        InvalidValueError: The formatted invalid value error
    """
    raise InvalidValueError(message, data_name, issue, index, details, context)


def warn_numeric(message: str,
                 operation: Optional[str] = None,
                 value: Optional[Any] = None) -> None:
    """Issue a NumericWarning with consistent formatting.

    Args:
        message: The primary warning message
        operation: The operation where the issue was detected
        value: The value that may cause numerical issues
    """
    warnings.warn(NumericWarning(message, operation, value), stacklevel=2)
