# tests/test_simulator.py

"""
Tests for the predictive path simulator.

Covers the VAR recursion, the exact conditional shock distribution used for
conditional forecasting, and the numerical error paths of a single draw.
"""

import warnings

import numpy as np
import pytest

from svarforecast.core.exceptions import (
    InfeasibleConstraintError, NumericWarning, SingularStructuralMatrixError
)
from svarforecast.core.validation import validate_forecast_request
from svarforecast.models._numba_core import roll_lags
from svarforecast.models.posterior import LastInSampleState
from svarforecast.models.simulator import DrawResult, conditional_shock_moments, simulate_draw
from svarforecast.utils.misc import spawn_generators


@pytest.fixture
def var1_state() -> LastInSampleState:
    """VAR(1) with intercept whose last observation is (1, 2)."""
    return LastInSampleState(X_T=np.array([1.0, 2.0, 1.0]), Y=np.ones((2, 5)), p=1)


@pytest.fixture
def var1_A() -> np.ndarray:
    return np.array([[0.5, 0.0, 1.0],
                     [0.2, 0.3, 0.0]])


def _request(horizon, conditional=None, exogenous=None, n_variables=2, n_exogenous=0):
    return validate_forecast_request(horizon, exogenous, conditional, n_variables, n_exogenous)


class TestRollLags:

    def test_single_lag(self):
        x = np.array([1.0, 2.0, 1.0])
        np.testing.assert_array_equal(roll_lags(x, np.array([7.0, 8.0]), 2, 1), [7.0, 8.0, 1.0])

    def test_two_lags_with_exogenous(self):
        # [y_{t-1}; y_{t-2}; const; exog]
        x = np.array([1.0, 2.0, 3.0, 4.0, 1.0, 9.0])
        out = roll_lags(x, np.array([5.0, 6.0]), 2, 2)
        np.testing.assert_array_equal(out, [5.0, 6.0, 1.0, 2.0, 1.0, 9.0])
        np.testing.assert_array_equal(x, [1.0, 2.0, 3.0, 4.0, 1.0, 9.0])


class TestUnconditionalPaths:
    """Tests for the recursion without constraints."""

    def test_zero_variance_is_deterministic_recursion(self, var1_A, var1_state, rng):
        result = simulate_draw(0, var1_A, np.eye(2), np.zeros((2, 3)), var1_state,
                               _request(3), rng)
        assert isinstance(result, DrawResult)

        x = var1_state.X_T.copy()
        for h in range(3):
            y = var1_A @ x
            np.testing.assert_allclose(result.forecasts[:, h], y)
            x = np.concatenate([y, [1.0]])

    def test_covariance_is_reduced_form(self, var1_A, var1_state, rng):
        B = np.array([[2.0, 0.0], [1.0, 1.0]])
        sigma2 = np.array([[1.0, 4.0], [0.5, 2.0]])
        result = simulate_draw(0, var1_A, B, sigma2, var1_state, _request(2), rng)

        B_inv = np.linalg.inv(B)
        for h in range(2):
            expected = B_inv @ np.diag(sigma2[:, h]) @ B_inv.T
            np.testing.assert_allclose(result.covariance[:, :, h], expected)
            np.testing.assert_allclose(result.covariance[:, :, h], result.covariance[:, :, h].T)

    def test_exogenous_values_enter_regressor(self, rng):
        state = LastInSampleState(X_T=np.array([0.0, 1.0, 0.0]), Y=np.zeros((1, 4)), p=1, d=1)
        A = np.array([[0.0, 0.0, 2.0]])
        request = _request(2, exogenous=[[1.5], [-1.0]], n_variables=1, n_exogenous=1)
        result = simulate_draw(0, A, np.eye(1), np.zeros((1, 2)), state, request, rng)
        np.testing.assert_allclose(result.forecasts[0], [3.0, -2.0])

    def test_same_generator_seed_same_path(self, var1_A, var1_state):
        sigma2 = np.ones((2, 4))
        first = simulate_draw(0, var1_A, np.eye(2), sigma2, var1_state, _request(4),
                              np.random.default_rng(3))
        second = simulate_draw(0, var1_A, np.eye(2), sigma2, var1_state, _request(4),
                               np.random.default_rng(3))
        np.testing.assert_array_equal(first.forecasts, second.forecasts)


class TestConditionalPaths:
    """Tests for the exact constrained-normal shock draw."""

    def test_constraints_hold_exactly(self, var1_A, var1_state, rng):
        conditional = [[5.0, np.nan], [np.nan, -1.25]]
        B = np.array([[1.0, 0.0], [0.7, 1.3]])
        result = simulate_draw(0, var1_A, B, np.ones((2, 2)), var1_state,
                               _request(2, conditional), rng)
        assert result.forecasts[0, 0] == 5.0
        assert result.forecasts[1, 1] == -1.25

    def test_fully_constrained_period(self, var1_A, var1_state, rng):
        result = simulate_draw(0, var1_A, np.eye(2), np.ones((2, 1)), var1_state,
                               _request(1, [[0.5, -0.5]]), rng)
        np.testing.assert_array_equal(result.forecasts[:, 0], [0.5, -0.5])

    def test_constraint_propagates_through_lags(self, var1_A, var1_state, rng):
        # Shocks only in the first period, so the second is the exact recursion
        sigma2 = np.array([[1.0, 0.0], [1.0, 0.0]])
        result = simulate_draw(0, var1_A, np.eye(2), sigma2, var1_state,
                               _request(2, [[4.0, np.nan], [np.nan, np.nan]]), rng)
        y1 = result.forecasts[:, 0]
        assert y1[0] == 4.0
        np.testing.assert_allclose(result.forecasts[:, 1], var1_A @ np.concatenate([y1, [1.0]]))

    def test_monte_carlo_conditional_moments(self):
        """Draws match the closed-form conditional distribution."""
        state = LastInSampleState(X_T=np.zeros(2), Y=np.zeros((2, 3)), p=1, constant=False)
        A = np.zeros((2, 2))
        B = np.linalg.inv(np.array([[1.0, 0.0], [0.5, 1.0]]))
        request = _request(1, [[2.0, np.nan]])

        generators = spawn_generators(2024, 4000)
        y2 = np.array([
            simulate_draw(0, A, B, np.ones((2, 1)), state, request, g).forecasts[1, 0]
            for g in generators
        ])
        # y2 = 0.5 * y1 + u2 with y1 fixed at 2
        assert abs(y2.mean() - 1.0) < 0.1
        assert abs(y2.var() - 1.0) < 0.15

    def test_closed_form_moments(self):
        B_inv = np.array([[1.0, 0.0], [0.5, 1.0]])
        mean, cov = conditional_shock_moments(np.array([0.5, 0.0]), B_inv, np.array([1.0, 2.0]),
                                              np.array([0]), np.array([2.0]))
        np.testing.assert_allclose(mean, [1.5, 0.0])
        np.testing.assert_allclose(cov, np.diag([0.0, 2.0]), atol=1e-12)

    def test_closed_form_moments_constrain_combination(self):
        # Constraint on the second variable involves both shocks
        B_inv = np.array([[1.0, 0.0], [1.0, 1.0]])
        mean, cov = conditional_shock_moments(np.zeros(2), B_inv, np.ones(2),
                                              np.array([1]), np.array([2.0]))
        np.testing.assert_allclose(mean, [1.0, 1.0])
        np.testing.assert_allclose(cov, [[0.5, -0.5], [-0.5, 0.5]])
        np.testing.assert_allclose(B_inv[1] @ cov @ B_inv[1], 0.0, atol=1e-12)

    def test_inconsistent_constraint_raises(self, var1_A, var1_state, rng):
        # First shock has zero variance, so y1 is pinned at its conditional mean
        sigma2 = np.array([[0.0, 0.0], [1.0, 1.0]])
        with pytest.raises(InfeasibleConstraintError) as exc_info:
            simulate_draw(4, var1_A, np.eye(2), sigma2, var1_state,
                          _request(2, [[np.nan, np.nan], [10.0, np.nan]]), rng)
        assert exc_info.value.draw == 4
        assert exc_info.value.horizon == 2
        assert exc_info.value.residual > 0

    def test_degenerate_but_consistent_constraint_warns(self, var1_A, var1_state, rng):
        sigma2 = np.array([[0.0], [1.0]])
        mean = var1_A @ var1_state.X_T
        with pytest.warns(NumericWarning, match="rank deficient"):
            result = simulate_draw(0, var1_A, np.eye(2), sigma2, var1_state,
                                   _request(1, [[mean[0], np.nan]]), rng)
        assert result.forecasts[0, 0] == mean[0]

    def test_regular_constraint_does_not_warn(self, var1_A, var1_state, rng):
        with warnings.catch_warnings():
            warnings.simplefilter("error", NumericWarning)
            simulate_draw(0, var1_A, np.eye(2), np.ones((2, 1)), var1_state,
                          _request(1, [[1.0, np.nan]]), rng)


class TestStructuralMatrixErrors:

    def test_singular_B_raises_with_draw(self, var1_A, var1_state, rng):
        B = np.array([[1.0, 2.0], [2.0, 4.0]])
        with pytest.raises(SingularStructuralMatrixError) as exc_info:
            simulate_draw(7, var1_A, B, np.ones((2, 1)), var1_state, _request(1), rng)
        assert exc_info.value.draw == 7

    def test_condition_limit_is_configurable(self, var1_A, var1_state, rng):
        B = np.array([[1.0, 0.0], [0.0, 1e-4]])
        simulate_draw(0, var1_A, B, np.ones((2, 1)), var1_state, _request(1), rng)
        with pytest.raises(SingularStructuralMatrixError, match="numerically singular"):
            simulate_draw(0, var1_A, B, np.ones((2, 1)), var1_state, _request(1), rng,
                          max_condition_number=1e3)
