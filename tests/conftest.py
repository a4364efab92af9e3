'''
Pytest configuration and fixtures for the SVAR forecast test suite.

The fixtures describe a small bivariate VAR(1) with an intercept, three
posterior draws and one parameter set per heteroskedasticity variant, which is
enough to exercise every code path while keeping the suite fast.
'''

import numpy as np
import pytest
from hypothesis import settings

from svarforecast.core.config import reset_config
from svarforecast.models.posterior import LastInSampleState, StructuralDraws
from svarforecast.models.volatility import (
    FiniteMixture, Homoskedastic, MarkovSwitching, StochasticVolatility, StudentT
)

settings.register_profile("svarforecast", deadline=None, max_examples=50)
settings.load_profile("svarforecast")


# ---- Configuration Isolation ----

@pytest.fixture(autouse=True)
def _restore_config():
    """Restore default configuration after every test."""
    yield
    reset_config()


# ---- Basic Fixtures ----

@pytest.fixture
def rng() -> np.random.Generator:
    """Provide a seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def n_variables() -> int:
    return 2


@pytest.fixture
def n_draws() -> int:
    return 3


@pytest.fixture
def horizon() -> int:
    return 2


# ---- Posterior Draw Fixtures ----

@pytest.fixture
def structural_draws(rng: np.random.Generator, n_variables: int, n_draws: int) -> StructuralDraws:
    """Posterior draws of a stationary bivariate VAR(1) with intercept."""
    A_mean = np.array([[0.5, 0.1, 0.2],
                       [0.0, 0.4, -0.1]])
    A = A_mean[:, :, np.newaxis] + 0.05 * rng.standard_normal((n_variables, 3, n_draws))

    B = np.empty((n_variables, n_variables, n_draws))
    for s in range(n_draws):
        B[:, :, s] = np.array([[1.0, 0.0],
                               [0.5 + 0.1 * s, 1.2]])
    return StructuralDraws(A=A, B=B)


@pytest.fixture
def last_state(rng: np.random.Generator, n_variables: int) -> LastInSampleState:
    """Terminal state of a VAR(1) with intercept and no exogenous regressors."""
    Y = rng.standard_normal((n_variables, 20))
    X_T = np.concatenate([Y[:, -1], [1.0]])
    return LastInSampleState(X_T=X_T, Y=Y, p=1, d=0, constant=True)


# ---- Heteroskedasticity Variant Fixtures ----

@pytest.fixture
def homoskedastic() -> Homoskedastic:
    return Homoskedastic()


@pytest.fixture
def msh_variant(n_draws: int) -> MarkovSwitching:
    """Two-regime Markov-switching variances, a calm and a volatile regime."""
    sigma2 = np.repeat(np.array([[0.5, 2.0],
                                 [1.0, 3.0]])[:, :, np.newaxis], n_draws, axis=2)
    transition = np.repeat(np.array([[0.9, 0.1],
                                     [0.2, 0.8]])[:, :, np.newaxis], n_draws, axis=2)
    xi_T = np.repeat(np.array([[1.0], [0.0]]), n_draws, axis=1)
    return MarkovSwitching(sigma2=sigma2, transition=transition, xi_T=xi_T)


@pytest.fixture
def mixture_variant(n_draws: int) -> FiniteMixture:
    """Sparse three-component mixture with one empty component."""
    sigma2 = np.repeat(np.array([[0.5, 1.5, 4.0],
                                 [0.8, 1.2, 5.0]])[:, :, np.newaxis], n_draws, axis=2)
    probabilities = np.repeat(np.array([[0.7], [0.3], [0.0]]), n_draws, axis=1)
    xi_T = np.repeat(np.array([[0.0], [1.0], [0.0]]), n_draws, axis=1)
    return FiniteMixture.from_probabilities(sigma2, probabilities, xi_T)


@pytest.fixture
def sv_variant(n_variables: int, n_draws: int) -> StochasticVolatility:
    """Non-centred stochastic volatility."""
    return StochasticVolatility(
        rho=np.full((n_variables, n_draws), 0.9),
        omega=np.full((n_variables, n_draws), 0.3),
        h_T=np.zeros((n_variables, n_draws)),
        centred=False
    )


@pytest.fixture
def t_variant(n_draws: int) -> StudentT:
    return StudentT(df=np.full(n_draws, 6.0))


@pytest.fixture(params=["homoskedastic", "msh_variant", "mixture_variant", "sv_variant", "t_variant"])
def any_variant(request):
    """Each heteroskedasticity variant in turn."""
    return request.getfixturevalue(request.param)
