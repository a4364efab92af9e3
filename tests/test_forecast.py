# tests/test_forecast.py

"""
End-to-end tests for the forecast entry point.

Runs the full pipeline (validation, volatility forecasts, path simulation and
aggregation) on a bivariate VAR(1) with three posterior draws and a horizon of
two periods, for every heteroskedasticity variant.
"""

import numpy as np
import pandas as pd
import pytest
from hypothesis import given, strategies as st

from svarforecast import (
    ForecastBundle,
    HeteroskedasticityType,
    LastInSampleState,
    MarkovSwitching,
    PosteriorDraws,
    StructuralDraws,
    forecast,
    forecast_posterior,
    set_config,
)
from svarforecast.core.exceptions import (
    DimensionError, InvalidValueError, MissingInputError, SingularStructuralMatrixError
)


class TestUnconditionalForecast:

    def test_bundle_shapes(self, structural_draws, any_variant, last_state):
        bundle = forecast(structural_draws, any_variant, last_state, horizon=2, random_state=1)

        assert isinstance(bundle, ForecastBundle)
        assert bundle.forecasts.shape == (2, 2, 3)
        assert bundle.forecast_covariance.shape == (2, 2, 2, 3)
        assert bundle.forecasts_sigma.shape == (2, 2, 3)
        assert bundle.horizon == 2
        assert bundle.n_draws == 3
        assert bundle.n_variables == 2
        assert np.isfinite(bundle.forecasts).all()

    def test_homoskedastic_sigma_is_all_ones(self, structural_draws, homoskedastic, last_state):
        bundle = forecast(structural_draws, homoskedastic, last_state, horizon=2, random_state=1)
        assert bundle.heteroskedasticity is HeteroskedasticityType.HOMOSKEDASTIC
        np.testing.assert_array_equal(bundle.forecasts_sigma, np.ones((2, 2, 3)))

    def test_homoskedastic_covariance_is_B_inverse_outer(self, structural_draws, homoskedastic,
                                                         last_state):
        bundle = forecast(structural_draws, homoskedastic, last_state, horizon=3, random_state=1)
        for s in range(3):
            B_inv = np.linalg.inv(structural_draws.B[:, :, s])
            for h in range(3):
                np.testing.assert_allclose(bundle.forecast_covariance[:, :, h, s],
                                           B_inv @ B_inv.T)

    def test_heteroskedastic_sigma_attached(self, structural_draws, sv_variant, last_state):
        bundle = forecast(structural_draws, sv_variant, last_state, horizon=2, random_state=1)
        assert bundle.heteroskedasticity is HeteroskedasticityType.STOCHASTIC_VOLATILITY
        assert (bundle.forecasts_sigma > 0).all()
        assert not np.allclose(bundle.forecasts_sigma, 1.0)

    def test_covariance_matches_sigma(self, structural_draws, msh_variant, last_state):
        bundle = forecast(structural_draws, msh_variant, last_state, horizon=2, random_state=1)
        for s in range(3):
            B_inv = np.linalg.inv(structural_draws.B[:, :, s])
            for h in range(2):
                expected = B_inv @ np.diag(bundle.forecasts_sigma[:, h, s]) @ B_inv.T
                np.testing.assert_allclose(bundle.forecast_covariance[:, :, h, s], expected)

    def test_history_is_copied(self, structural_draws, homoskedastic, last_state):
        bundle = forecast(structural_draws, homoskedastic, last_state, horizon=1, random_state=1)
        np.testing.assert_array_equal(bundle.Y, last_state.Y)
        assert not np.shares_memory(bundle.Y, last_state.Y)

    def test_posterior_draws_not_modified(self, structural_draws, msh_variant, last_state):
        A = structural_draws.A.copy()
        sigma2 = msh_variant.sigma2.copy()
        forecast(structural_draws, msh_variant, last_state, horizon=2, random_state=1,
                 conditional_forecast=[[5.0, np.nan], [np.nan, np.nan]])
        np.testing.assert_array_equal(structural_draws.A, A)
        np.testing.assert_array_equal(msh_variant.sigma2, sigma2)


class TestConditionalForecast:

    def test_constraint_holds_in_every_draw(self, structural_draws, any_variant, last_state):
        conditional = [[5.0, np.nan], [np.nan, np.nan]]
        bundle = forecast(structural_draws, any_variant, last_state, horizon=2,
                          conditional_forecast=conditional, random_state=3)
        np.testing.assert_array_equal(bundle.forecasts[0, 0, :], 5.0)
        assert bundle.metadata["conditional"]

    def test_dataframe_with_missing_values(self, structural_draws, homoskedastic, last_state):
        conditional = pd.DataFrame({"y1": [5.0, None], "y2": [None, 0.0]})
        bundle = forecast(structural_draws, homoskedastic, last_state, horizon=2,
                          conditional_forecast=conditional, random_state=3)
        np.testing.assert_array_equal(bundle.forecasts[0, 0, :], 5.0)
        np.testing.assert_array_equal(bundle.forecasts[1, 1, :], 0.0)

    def test_unconstrained_entries_vary_across_draws(self, structural_draws, homoskedastic,
                                                     last_state):
        bundle = forecast(structural_draws, homoskedastic, last_state, horizon=2,
                          conditional_forecast=[[5.0, np.nan], [np.nan, np.nan]], random_state=3)
        assert np.unique(bundle.forecasts[1, 0, :]).size == 3


class TestReproducibility:

    def test_same_seed_same_result(self, structural_draws, sv_variant, last_state):
        first = forecast(structural_draws, sv_variant, last_state, horizon=2, random_state=9)
        second = forecast(structural_draws, sv_variant, last_state, horizon=2, random_state=9)
        np.testing.assert_array_equal(first.forecasts, second.forecasts)
        np.testing.assert_array_equal(first.forecasts_sigma, second.forecasts_sigma)

    def test_different_seed_different_result(self, structural_draws, sv_variant, last_state):
        first = forecast(structural_draws, sv_variant, last_state, horizon=2, random_state=9)
        second = forecast(structural_draws, sv_variant, last_state, horizon=2, random_state=10)
        assert not np.array_equal(first.forecasts, second.forecasts)

    @pytest.mark.parametrize("max_workers", [2, 4])
    def test_identical_across_worker_counts(self, structural_draws, any_variant, last_state,
                                            max_workers):
        set_config("performance", "parallel_threshold", 0)
        conditional = [[np.nan, np.nan], [np.nan, 0.5]]
        serial = forecast(structural_draws, any_variant, last_state, horizon=2,
                          conditional_forecast=conditional, random_state=77, max_workers=1)
        parallel = forecast(structural_draws, any_variant, last_state, horizon=2,
                            conditional_forecast=conditional, random_state=77,
                            max_workers=max_workers)
        np.testing.assert_array_equal(serial.forecasts, parallel.forecasts)
        np.testing.assert_array_equal(serial.forecast_covariance, parallel.forecast_covariance)

    def test_generator_and_seed_sequence_roots(self, structural_draws, t_variant, last_state):
        from_sequence = forecast(structural_draws, t_variant, last_state, horizon=2,
                                 random_state=np.random.SeedSequence(5))
        again = forecast(structural_draws, t_variant, last_state, horizon=2,
                         random_state=np.random.SeedSequence(5))
        np.testing.assert_array_equal(from_sequence.forecasts, again.forecasts)

        generator_bundle = forecast(structural_draws, t_variant, last_state, horizon=2,
                                    random_state=np.random.default_rng(5))
        assert generator_bundle.forecasts.shape == (2, 2, 3)

    def test_configured_seed_used_by_default(self, structural_draws, sv_variant, last_state):
        set_config("core", "random_seed", 123)
        first = forecast(structural_draws, sv_variant, last_state, horizon=2)
        second = forecast(structural_draws, sv_variant, last_state, horizon=2, random_state=123)
        np.testing.assert_array_equal(first.forecasts, second.forecasts)


class TestExogenousForecast:

    @pytest.fixture
    def exogenous_model(self):
        """Deterministic VAR(1) with intercept and one exogenous regressor."""
        n_draws = 2
        A = np.repeat(np.array([[0.5, 0.0, 1.0, 2.0],
                                [0.0, 0.5, 0.0, -1.0]])[:, :, np.newaxis], n_draws, axis=2)
        B = np.repeat(np.eye(2)[:, :, np.newaxis], n_draws, axis=2)
        variant = MarkovSwitching(sigma2=np.zeros((2, 1, n_draws)),
                                  transition=np.ones((1, 1, n_draws)),
                                  xi_T=np.ones((1, n_draws)))
        state = LastInSampleState(X_T=np.array([1.0, 1.0, 1.0, 0.0]), Y=np.ones((2, 8)), p=1, d=1)
        return StructuralDraws(A=A, B=B), variant, state

    def test_exogenous_values_drive_paths(self, exogenous_model):
        structural, variant, state = exogenous_model
        bundle = forecast(structural, variant, state, horizon=2,
                          exogenous_forecast=[[1.0], [0.0]], random_state=0)
        # h=1: [0.5 + 1 + 2, 0.5 - 1]; h=2: [0.5 * 3.5 + 1, 0.5 * -0.5]
        np.testing.assert_allclose(bundle.forecasts[:, 0, 0], [3.5, -0.5])
        np.testing.assert_allclose(bundle.forecasts[:, 1, 0], [2.75, -0.25])
        assert bundle.metadata["exogenous"]

    def test_missing_exogenous_raises(self, exogenous_model):
        structural, variant, state = exogenous_model
        with pytest.raises(MissingInputError):
            forecast(structural, variant, state, horizon=2)

    def test_exogenous_with_missing_value_raises(self, exogenous_model):
        structural, variant, state = exogenous_model
        with pytest.raises(InvalidValueError):
            forecast(structural, variant, state, horizon=2, exogenous_forecast=[[1.0], [np.nan]])


class TestErrors:

    def test_invalid_horizon(self, structural_draws, homoskedastic, last_state):
        with pytest.raises(DimensionError, match="horizon"):
            forecast(structural_draws, homoskedastic, last_state, horizon=0)

    def test_conditional_shape(self, structural_draws, homoskedastic, last_state):
        with pytest.raises(DimensionError):
            forecast(structural_draws, homoskedastic, last_state, horizon=2,
                     conditional_forecast=[[5.0, np.nan, np.nan], [np.nan, np.nan, np.nan]])

    def test_singular_draw_reported(self, structural_draws, homoskedastic, last_state):
        B = structural_draws.B.copy()
        B[:, :, 1] = [[1.0, 1.0], [1.0, 1.0]]
        broken = StructuralDraws(A=structural_draws.A, B=B)
        with pytest.raises(SingularStructuralMatrixError) as exc_info:
            forecast(broken, homoskedastic, last_state, horizon=2, random_state=0)
        assert exc_info.value.draw == 1

    def test_first_failing_draw_reported_in_parallel(self, structural_draws, homoskedastic,
                                                     last_state):
        set_config("performance", "parallel_threshold", 0)
        B = structural_draws.B.copy()
        B[:, :, 1] = 0.0
        B[:, :, 2] = 0.0
        broken = StructuralDraws(A=structural_draws.A, B=B)
        with pytest.raises(SingularStructuralMatrixError) as exc_info:
            forecast(broken, homoskedastic, last_state, horizon=2, random_state=0, max_workers=3)
        assert exc_info.value.draw == 1

    def test_invalid_max_workers(self, structural_draws, homoskedastic, last_state):
        with pytest.raises(ValueError, match="max_workers"):
            forecast(structural_draws, homoskedastic, last_state, horizon=1, max_workers=0)


class TestProgressAndPosterior:

    def test_progress_reported_per_draw(self, structural_draws, homoskedastic, last_state):
        calls = []
        forecast(structural_draws, homoskedastic, last_state, horizon=2, random_state=0,
                 progress_callback=lambda fraction, message: calls.append((fraction, message)))
        assert len(calls) == 3
        assert calls[-1][0] == 1.0
        assert "3/3" in calls[-1][1]

    def test_forecast_posterior_matches_forecast(self, structural_draws, t_variant, last_state):
        posterior = PosteriorDraws(structural=structural_draws, variant=t_variant)
        via_posterior = forecast_posterior(posterior, last_state, horizon=2, random_state=4)
        direct = forecast(structural_draws, t_variant, last_state, horizon=2, random_state=4)
        np.testing.assert_array_equal(via_posterior.forecasts, direct.forecasts)


@given(value=st.floats(min_value=-1e3, max_value=1e3, allow_nan=False),
       column=st.integers(min_value=0, max_value=1),
       period=st.integers(min_value=0, max_value=1))
def test_any_single_constraint_is_met(value, column, period):
    """A single finite constraint is met exactly whatever its value."""
    A = np.repeat(np.array([[0.5, 0.1, 0.2], [0.0, 0.4, -0.1]])[:, :, np.newaxis], 2, axis=2)
    B = np.repeat(np.array([[1.0, 0.0], [0.5, 1.2]])[:, :, np.newaxis], 2, axis=2)
    state = LastInSampleState(X_T=np.array([0.3, -0.2, 1.0]), Y=np.zeros((2, 4)), p=1)
    conditional = np.full((2, 2), np.nan)
    conditional[period, column] = value

    bundle = forecast(StructuralDraws(A=A, B=B), MarkovSwitching(
        sigma2=np.ones((2, 1, 2)), transition=np.ones((1, 1, 2)), xi_T=np.ones((1, 2))
    ), state, horizon=2, conditional_forecast=conditional, random_state=0)
    np.testing.assert_array_equal(bundle.forecasts[column, period, :], value)


def test_unknown_variant_rejected(structural_draws, last_state):
    with pytest.raises(TypeError, match="Unsupported heteroskedasticity variant"):
        forecast(structural_draws, "sv", last_state, horizon=1)
