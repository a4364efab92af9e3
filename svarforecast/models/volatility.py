"""
Volatility path forecasting for heteroskedastic structural VARs.

Each heteroskedasticity variant is a frozen dataclass holding the posterior
draws of its variance-process parameters. The variants form a closed set;
``forecast_volatility`` dispatches on the variant type and returns an
(N, horizon, S) array of forecast conditional variances of the structural
shocks, one path per posterior draw.

Variants:
    Homoskedastic: constant unit variances
    MarkovSwitching: expectation over the forward-propagated regime distribution
    FiniteMixture: finite or sparse mixture of normals, same recursion with a
        transition matrix whose rows are the mixture probabilities
    StochasticVolatility: simulated AR(1) log-volatility paths
    StudentT: normal scale mixture with inverse chi-square mixing variables

Stochastic variants draw exclusively from the per-draw generators they are
given: variant draw s uses generators[s] and nothing else.
"""

import logging
from dataclasses import dataclass
from functools import singledispatch
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from svarforecast.core.config import get_config
from svarforecast.core.exceptions import (
    raise_dimension_error, raise_invalid_value_error
)
from svarforecast.core.types import HeteroskedasticityType, Tensor3D
from svarforecast.core.validation import validate_array_shape, validate_draw_counts
from svarforecast.models._numba_core import msh_variance_path, sv_variance_path

logger = logging.getLogger("svarforecast.models.volatility")


def _as_float(array, name: str, ndim: int) -> np.ndarray:
    array = np.asarray(array, dtype=float)
    if array.ndim != ndim:
        raise_dimension_error(
            f"{name} must be {ndim}-dimensional, got {array.ndim} dimensions",
            array_name=name,
            expected_shape=f"{ndim}D array",
            actual_shape=array.shape
        )
    if not np.isfinite(array).all():
        raise_invalid_value_error(
            f"{name} contains missing or non-finite values",
            data_name=name,
            issue="non-finite entries"
        )
    return array


@dataclass(frozen=True)
class Homoskedastic:
    """Homoskedastic structural shocks.

    Shock variances are normalised to one; scale is absorbed by the posterior
    draws of A and B.
    """

    kind = HeteroskedasticityType.HOMOSKEDASTIC

    @property
    def n_draws(self) -> Optional[int]:
        return None


def _check_regime_arrays(sigma2, transition, xi_T) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Validate the arrays of a regime-based variant.

    Raises:
        DimensionError: If the arrays disagree in regimes or draws
        InvalidValueError: If variances are negative or probabilities do not
            sum to one
    """
    sigma2 = _as_float(sigma2, "sigma2", 3)
    transition = _as_float(transition, "transition", 3)
    xi_T = _as_float(xi_T, "xi_T", 2)
    n_regimes, n_draws = sigma2.shape[1], sigma2.shape[2]

    validate_array_shape(transition, (n_regimes, n_regimes, -1), "transition")
    validate_array_shape(xi_T, (n_regimes, -1), "xi_T")
    validate_draw_counts([transition, xi_T], ["transition", "xi_T"], n_draws)

    tol = get_config("numerical", "stochastic_tolerance", 1e-6)
    if (sigma2 < 0).any():
        raise_invalid_value_error(
            "Regime variances must be non-negative",
            data_name="sigma2",
            issue="negative variance"
        )
    if (transition < 0).any() or not np.allclose(transition.sum(axis=1), 1.0, atol=tol):
        raise_invalid_value_error(
            "Each row of every transition matrix must be a probability distribution",
            data_name="transition",
            issue="rows do not sum to one"
        )
    if (xi_T < 0).any() or not np.allclose(xi_T.sum(axis=0), 1.0, atol=tol):
        raise_invalid_value_error(
            "Terminal regime probabilities must sum to one for every draw",
            data_name="xi_T",
            issue="columns do not sum to one"
        )
    return sigma2, transition, xi_T


@dataclass(frozen=True)
class MarkovSwitching:
    """Markov-switching heteroskedasticity.

    Attributes:
        sigma2: (N, M, S) regime-specific structural variances
        transition: (M, M, S) row-stochastic transition matrices
        xi_T: (M, S) regime distribution at the last in-sample period
    """

    sigma2: Tensor3D
    transition: Tensor3D
    xi_T: np.ndarray

    kind = HeteroskedasticityType.MARKOV_SWITCHING

    def __post_init__(self) -> None:
        sigma2, transition, xi_T = _check_regime_arrays(self.sigma2, self.transition, self.xi_T)
        object.__setattr__(self, "sigma2", sigma2)
        object.__setattr__(self, "transition", transition)
        object.__setattr__(self, "xi_T", xi_T)

    @property
    def n_draws(self) -> int:
        return self.sigma2.shape[2]

    @property
    def n_variables(self) -> int:
        return self.sigma2.shape[0]

    @property
    def n_regimes(self) -> int:
        return self.sigma2.shape[1]


@dataclass(frozen=True)
class FiniteMixture:
    """Finite or sparse mixture of normal structural shocks.

    Mixture allocations are independent over time, so every row of the
    transition matrix equals the vector of mixture probabilities. Components
    left empty by a sparse mixture simply carry zero probability.

    Attributes:
        sigma2: (N, M, S) component variances
        transition: (M, M, S) transition matrices with identical rows
        xi_T: (M, S) component allocation probabilities at the last
            in-sample period
    """

    sigma2: Tensor3D
    transition: Tensor3D
    xi_T: np.ndarray

    kind = HeteroskedasticityType.FINITE_MIXTURE

    def __post_init__(self) -> None:
        sigma2, transition, xi_T = _check_regime_arrays(self.sigma2, self.transition, self.xi_T)
        object.__setattr__(self, "sigma2", sigma2)
        object.__setattr__(self, "transition", transition)
        object.__setattr__(self, "xi_T", xi_T)

    @classmethod
    def from_probabilities(cls, sigma2: Tensor3D, probabilities: np.ndarray,
                           xi_T: np.ndarray) -> 'FiniteMixture':
        """Build a mixture from its (M, S) component probabilities.

        Args:
            sigma2: (N, M, S) component variances
            probabilities: (M, S) mixture probabilities per draw
            xi_T: (M, S) component allocation probabilities at the last
                in-sample period

        Returns:
            FiniteMixture: Mixture with row-repeated transition matrices
        """
        probabilities = _as_float(probabilities, "probabilities", 2)
        n_regimes = probabilities.shape[0]
        transition = np.repeat(probabilities[np.newaxis, :, :], n_regimes, axis=0)
        return cls(sigma2=sigma2, transition=transition, xi_T=xi_T)

    @property
    def n_draws(self) -> int:
        return self.sigma2.shape[2]

    @property
    def n_variables(self) -> int:
        return self.sigma2.shape[0]

    @property
    def n_regimes(self) -> int:
        return self.sigma2.shape[1]


@dataclass(frozen=True)
class StochasticVolatility:
    """Stochastic volatility of structural shocks.

    Attributes:
        rho: (N, S) autoregressive coefficients of the log-volatilities
        omega: (N, S) volatility scale; in the non-centred parameterisation
            it multiplies the log-volatility, in the centred one it is the
            standard deviation of the log-volatility innovations
        h_T: (N, S) log-volatility at the last in-sample period
        centred: Whether the model was estimated with centred SV
    """

    rho: np.ndarray
    omega: np.ndarray
    h_T: np.ndarray
    centred: bool = False

    kind = HeteroskedasticityType.STOCHASTIC_VOLATILITY

    def __post_init__(self) -> None:
        rho = _as_float(self.rho, "rho", 2)
        omega = _as_float(self.omega, "omega", 2)
        h_T = _as_float(self.h_T, "h_T", 2)
        validate_array_shape(omega, rho.shape, "omega")
        validate_array_shape(h_T, rho.shape, "h_T")

        if self.centred and (omega < 0).any():
            raise_invalid_value_error(
                "Centred SV innovation standard deviations must be non-negative",
                data_name="omega",
                issue="negative standard deviation"
            )

        object.__setattr__(self, "rho", rho)
        object.__setattr__(self, "omega", omega)
        object.__setattr__(self, "h_T", h_T)
        object.__setattr__(self, "centred", bool(self.centred))

    @property
    def n_draws(self) -> int:
        return self.rho.shape[1]

    @property
    def n_variables(self) -> int:
        return self.rho.shape[0]


@dataclass(frozen=True)
class StudentT:
    """Multivariate Student-t structural shocks.

    Attributes:
        df: (S,) posterior draws of the degrees of freedom
    """

    df: np.ndarray

    kind = HeteroskedasticityType.STUDENT_T

    def __post_init__(self) -> None:
        df = _as_float(np.atleast_1d(self.df), "df", 1)
        if (df <= 0).any():
            raise_invalid_value_error(
                "Degrees of freedom must be positive",
                data_name="df",
                issue="non-positive degrees of freedom"
            )
        object.__setattr__(self, "df", df)

    @property
    def n_draws(self) -> int:
        return self.df.shape[0]


HeteroskedasticityVariant = Union[
    Homoskedastic, MarkovSwitching, FiniteMixture, StochasticVolatility, StudentT
]


@singledispatch
def variance_path(variant, draw: int, horizon: int, n_variables: int,
                  rng: np.random.Generator) -> np.ndarray:
    """Forecast the (N, horizon) structural variances of one posterior draw.

    Args:
        variant: Heteroskedasticity variant holding the posterior draws
        draw: Index of the posterior draw
        horizon: Number of periods to forecast
        n_variables: Number of structural shocks N
        rng: Generator dedicated to this posterior draw

    Returns:
        np.ndarray: (N, horizon) forecast variances
    """
    raise TypeError(f"Unsupported heteroskedasticity variant: {type(variant).__name__}")


@variance_path.register
def _(variant: Homoskedastic, draw: int, horizon: int, n_variables: int,
      rng: np.random.Generator) -> np.ndarray:
    return np.ones((n_variables, horizon))


@variance_path.register(MarkovSwitching)
@variance_path.register(FiniteMixture)
def _(variant, draw: int, horizon: int, n_variables: int,
      rng: np.random.Generator) -> np.ndarray:
    return msh_variance_path(
        np.ascontiguousarray(variant.sigma2[:, :, draw]),
        np.ascontiguousarray(variant.transition[:, :, draw]),
        np.ascontiguousarray(variant.xi_T[:, draw]),
        horizon
    )


@variance_path.register
def _(variant: StochasticVolatility, draw: int, horizon: int, n_variables: int,
      rng: np.random.Generator) -> np.ndarray:
    innovations = rng.standard_normal((n_variables, horizon))
    return sv_variance_path(
        np.ascontiguousarray(variant.h_T[:, draw]),
        np.ascontiguousarray(variant.rho[:, draw]),
        np.ascontiguousarray(variant.omega[:, draw]),
        innovations,
        variant.centred
    )


@variance_path.register
def _(variant: StudentT, draw: int, horizon: int, n_variables: int,
      rng: np.random.Generator) -> np.ndarray:
    # lambda = df / chi2(df) is the inverse-gamma mixing variable of a t(df)
    df = variant.df[draw]
    lambdas = df / rng.chisquare(df, size=horizon)
    return np.broadcast_to(lambdas, (n_variables, horizon)).copy()


def check_variant_dimensions(variant: HeteroskedasticityVariant, n_variables: int,
                             n_draws: int) -> None:
    """Cross-check a variant's posterior arrays against the structural draws.

    Raises:
        TypeError: If variant is not a heteroskedasticity variant
        DimensionError: If the variant's number of draws or variables differs
    """
    if not isinstance(variant, (Homoskedastic, MarkovSwitching, FiniteMixture,
                                StochasticVolatility, StudentT)):
        raise TypeError(f"Unsupported heteroskedasticity variant: {type(variant).__name__}")

    if variant.n_draws is not None and variant.n_draws != n_draws:
        raise_dimension_error(
            f"{type(variant).__name__} parameters hold {variant.n_draws} posterior draws, "
            f"but the structural draws hold {n_draws}",
            array_name=type(variant).__name__,
            expected_shape=f"{n_draws} draws",
            actual_shape=(variant.n_draws,)
        )
    variant_n = getattr(variant, "n_variables", n_variables)
    if variant_n != n_variables:
        raise_dimension_error(
            f"{type(variant).__name__} parameters describe {variant_n} shocks, "
            f"but the model has {n_variables} variables",
            array_name=type(variant).__name__,
            expected_shape=f"{n_variables} variables",
            actual_shape=(variant_n,)
        )


def forecast_volatility(variant: HeteroskedasticityVariant, horizon: int, n_variables: int,
                        generators: Sequence[np.random.Generator]) -> np.ndarray:
    """Forecast structural variances for every posterior draw.

    Args:
        variant: Heteroskedasticity variant holding the posterior draws
        horizon: Number of periods to forecast
        n_variables: Number of structural shocks N
        generators: One generator per posterior draw

    Returns:
        np.ndarray: (N, horizon, S) forecast variances
    """
    n_draws = len(generators)
    check_variant_dimensions(variant, n_variables, n_draws)

    paths: List[np.ndarray] = [
        variance_path(variant, s, horizon, n_variables, generators[s]) for s in range(n_draws)
    ]
    logger.debug(f"Forecast {variant.kind.value} volatility paths for {n_draws} draws")
    return np.stack(paths, axis=2)
