"""
Posterior draw containers consumed by the forecaster.

The estimation sampler that produces these draws lives outside this package.
The containers only normalise the arrays it hands over and check that their
dimensions agree; posterior draws are never modified once wrapped.

Classes:
    StructuralDraws: Posterior draws of the autoregressive matrix A and the
        structural matrix B
    LastInSampleState: Regressor vector of the first forecast period and the
        historical data
    PosteriorDraws: Structural draws paired with their heteroskedasticity
        variant
"""

import logging
from dataclasses import dataclass, field

import numpy as np

from svarforecast.core.exceptions import raise_dimension_error, raise_invalid_value_error
from svarforecast.core.types import Matrix, Tensor3D, Vector
from svarforecast.core.validation import validate_array_shape, validate_draw_counts
from svarforecast.models._numba_core import roll_lags
from svarforecast.models.volatility import (
    HeteroskedasticityVariant, Homoskedastic, check_variant_dimensions
)
from svarforecast.utils.misc import ensure_array

logger = logging.getLogger("svarforecast.models.posterior")


@dataclass(frozen=True)
class StructuralDraws:
    """Posterior draws of the structural VAR coefficients.

    The model for period t is ``B y_t = B A x_t + u_t``, so that
    ``y_t = A x_t + B^{-1} u_t``.

    Attributes:
        A: (N, K, S) autoregressive coefficient draws
        B: (N, N, S) structural matrix draws
    """

    A: Tensor3D
    B: Tensor3D

    def __post_init__(self) -> None:
        A = ensure_array(self.A)
        B = ensure_array(self.B)

        if A.ndim != 3:
            raise_dimension_error(
                "Posterior draws of A must be a 3D array of shape (N, K, S)",
                array_name="A",
                expected_shape="(N, K, S)",
                actual_shape=A.shape
            )
        n_variables, _, n_draws = A.shape
        validate_array_shape(B, (n_variables, n_variables, -1), "B")
        validate_draw_counts([B], ["B"], n_draws)

        if not np.isfinite(A).all():
            raise_invalid_value_error(
                "Posterior draws of A contain non-finite values",
                data_name="A",
                issue="non-finite entries"
            )

        object.__setattr__(self, "A", A)
        object.__setattr__(self, "B", B)

    @property
    def n_variables(self) -> int:
        return self.A.shape[0]

    @property
    def n_regressors(self) -> int:
        return self.A.shape[1]

    @property
    def n_draws(self) -> int:
        return self.A.shape[2]


@dataclass(frozen=True)
class LastInSampleState:
    """Terminal state of the estimation sample.

    Attributes:
        X_T: (K,) regressor vector of the first forecast period, laid out as
            ``[y_T; ...; y_{T-p+1}; 1 (if constant); exogenous]``. Its
            exogenous entries are replaced by the exogenous forecast.
        Y: (N, T) historical data
        p: Lag order
        d: Number of exogenous regressors
        constant: Whether the model includes an intercept
    """

    X_T: Vector
    Y: Matrix
    p: int
    d: int = 0
    constant: bool = True

    def __post_init__(self) -> None:
        X_T = ensure_array(self.X_T).ravel()
        Y = ensure_array(self.Y)
        if Y.ndim == 1:
            Y = Y.reshape(-1, 1)

        if int(self.p) < 1:
            raise_invalid_value_error(
                "Lag order p must be a positive integer",
                data_name="p",
                issue=f"got {self.p}"
            )
        if int(self.d) < 0:
            raise_invalid_value_error(
                "Number of exogenous regressors d cannot be negative",
                data_name="d",
                issue=f"got {self.d}"
            )

        n_regressors = Y.shape[0] * int(self.p) + int(bool(self.constant)) + int(self.d)
        validate_array_shape(X_T, (n_regressors,), "X_T")
        if not np.isfinite(X_T).all():
            raise_invalid_value_error(
                "Last in-sample regressor vector contains non-finite values",
                data_name="X_T",
                issue="non-finite entries"
            )

        object.__setattr__(self, "X_T", X_T)
        object.__setattr__(self, "Y", Y)
        object.__setattr__(self, "p", int(self.p))
        object.__setattr__(self, "d", int(self.d))
        object.__setattr__(self, "constant", bool(self.constant))

    @classmethod
    def from_data_matrices(cls, Y: Matrix, X: Matrix, p: int,
                           constant: bool = True) -> 'LastInSampleState':
        """Build the terminal state from in-sample data matrices.

        Column t of X holds the regressors of column t of Y, so the regressor
        vector of the first forecast period is the last column of X with the
        newest observation rolled into its lag block.

        Args:
            Y: (N, T) dependent variables
            X: (K, T) regressors
            p: Lag order
            constant: Whether X contains an intercept row after the lags

        Returns:
            LastInSampleState: Terminal state with d = K - N p - 1 when the
            model has an intercept

        Raises:
            DimensionError: If X and Y do not have the same number of columns
                or X has fewer rows than the lags and intercept require
        """
        Y = ensure_array(Y)
        X = ensure_array(X)
        validate_array_shape(X, (-1, Y.shape[1]), "X")

        n_variables = Y.shape[0]
        d = X.shape[0] - n_variables * int(p) - int(bool(constant))
        if d < 0:
            raise_dimension_error(
                "Regressor matrix X has too few rows for the lag order and intercept",
                array_name="X",
                expected_shape=f"at least {n_variables * int(p) + int(bool(constant))} rows",
                actual_shape=X.shape
            )

        x_next = roll_lags(np.ascontiguousarray(X[:, -1]), np.ascontiguousarray(Y[:, -1]),
                           n_variables, int(p))
        return cls(X_T=x_next, Y=Y, p=p, d=d, constant=constant)

    @property
    def n_variables(self) -> int:
        return self.Y.shape[0]

    @property
    def n_regressors(self) -> int:
        return self.X_T.shape[0]

    @property
    def exogenous_slice(self) -> slice:
        """Position of the exogenous regressors within the regressor vector."""
        start = self.n_regressors - self.d
        return slice(start, self.n_regressors)


@dataclass(frozen=True)
class PosteriorDraws:
    """Structural draws paired with the heteroskedasticity variant they were
    estimated with."""

    structural: StructuralDraws
    variant: HeteroskedasticityVariant = field(default_factory=Homoskedastic)

    def __post_init__(self) -> None:
        check_variant_dimensions(self.variant, self.structural.n_variables,
                                 self.structural.n_draws)


def check_model_dimensions(structural: StructuralDraws, variant: HeteroskedasticityVariant,
                           last_state: LastInSampleState) -> None:
    """Cross-check all posterior inputs of a forecast call.

    Raises:
        DimensionError: If the number of variables, regressors or posterior
            draws disagree between inputs
    """
    if last_state.n_variables != structural.n_variables:
        raise_dimension_error(
            f"Historical data has {last_state.n_variables} variables, "
            f"but the posterior draws describe {structural.n_variables}",
            array_name="Y",
            expected_shape=(structural.n_variables, -1),
            actual_shape=last_state.Y.shape
        )
    if last_state.n_regressors != structural.n_regressors:
        raise_dimension_error(
            f"Regressor vector has {last_state.n_regressors} entries, "
            f"but A has {structural.n_regressors} columns",
            array_name="X_T",
            expected_shape=(structural.n_regressors,),
            actual_shape=last_state.X_T.shape,
            details="K must equal N * p + constant + d"
        )
    check_variant_dimensions(variant, structural.n_variables, structural.n_draws)
    logger.debug(
        f"Model dimensions: N={structural.n_variables}, K={structural.n_regressors}, "
        f"p={last_state.p}, d={last_state.d}, S={structural.n_draws}"
    )
