"""
Numba-accelerated core functions for SVAR forecasting.

This module provides JIT-compiled implementations of the recursions executed
once per posterior draw: the forward propagation of regime probabilities for
Markov-switching and mixture models, the log-volatility autoregression of
stochastic volatility models, and the rolling of the lag block of the VAR
regressor vector.

All kernels are compiled with ``nogil=True`` so that posterior draws can be
simulated concurrently on a thread pool. Random numbers are never drawn inside
a kernel; innovations are passed in from the per-draw generator so the random
stream consumed by each draw is fixed.
"""

import logging

import numpy as np
from numba import jit

logger = logging.getLogger("svarforecast.models._numba_core")


# ============================================================================
# Volatility path recursions
# ============================================================================

@jit(nopython=True, cache=True, nogil=True)
def msh_variance_path(sigma2: np.ndarray,
                      transition: np.ndarray,
                      xi_T: np.ndarray,
                      horizon: int) -> np.ndarray:
    """
    Forecast structural variances of a Markov-switching or mixture model.

    The regime distribution is propagated one step per period with the
    row-stochastic transition matrix, xi_{h} = P' xi_{h-1}, and the variance
    of each shock is the expectation of its regime-specific variances under
    xi_{h}.

    Args:
        sigma2: (N, M) regime-specific variances
        transition: (M, M) transition matrix, rows sum to one
        xi_T: (M,) regime distribution at the last in-sample period
        horizon: Number of periods to forecast

    Returns:
        np.ndarray: (N, horizon) forecast variances
    """
    n_variables, n_regimes = sigma2.shape
    out = np.empty((n_variables, horizon))
    xi = xi_T.copy()

    for h in range(horizon):
        xi_next = np.zeros(n_regimes)
        for i in range(n_regimes):
            for j in range(n_regimes):
                xi_next[j] += transition[i, j] * xi[i]
        xi = xi_next

        for n in range(n_variables):
            acc = 0.0
            for m in range(n_regimes):
                acc += sigma2[n, m] * xi[m]
            out[n, h] = acc

    return out


@jit(nopython=True, cache=True, nogil=True)
def sv_variance_path(h_T: np.ndarray,
                     rho: np.ndarray,
                     omega: np.ndarray,
                     innovations: np.ndarray,
                     centred: bool) -> np.ndarray:
    """
    Simulate structural variances of a stochastic volatility model.

    Non-centred: h_t = rho h_{t-1} + v_t, variance exp(omega h_t).
    Centred: h_t = rho h_{t-1} + omega v_t, variance exp(h_t).
    In both cases v_t are the standard normal innovations supplied.

    Args:
        h_T: (N,) log-volatility state at the last in-sample period
        rho: (N,) autoregressive coefficients
        omega: (N,) volatility scale parameters
        innovations: (N, horizon) standard normal innovations
        centred: Whether the centred parameterisation is used

    Returns:
        np.ndarray: (N, horizon) forecast variances
    """
    n_variables, horizon = innovations.shape
    out = np.empty((n_variables, horizon))

    for n in range(n_variables):
        h = h_T[n]
        for t in range(horizon):
            if centred:
                h = rho[n] * h + omega[n] * innovations[n, t]
                out[n, t] = np.exp(h)
            else:
                h = rho[n] * h + innovations[n, t]
                out[n, t] = np.exp(omega[n] * h)

    return out


# ============================================================================
# VAR recursion helpers
# ============================================================================

@jit(nopython=True, cache=True, nogil=True)
def roll_lags(x: np.ndarray, y: np.ndarray, n_variables: int, n_lags: int) -> np.ndarray:
    """
    Shift the lag block of a regressor vector and insert a new observation.

    The lag block occupies the first n_variables * n_lags entries of x, most
    recent lag first. The deterministic and exogenous entries that follow are
    copied unchanged.

    Args:
        x: (K,) current regressor vector
        y: (N,) newest observation, becomes the first lag
        n_variables: Number of dependent variables N
        n_lags: Lag order p

    Returns:
        np.ndarray: (K,) regressor vector for the next period
    """
    out = x.copy()
    lag_block = n_variables * n_lags
    for i in range(lag_block - 1, n_variables - 1, -1):
        out[i] = x[i - n_variables]
    for i in range(n_variables):
        out[i] = y[i]
    return out
