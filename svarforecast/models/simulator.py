"""
Predictive path simulator for structural VARs.

For one posterior draw the simulator runs the VAR recursion forward over the
forecast horizon. At every step the regressor vector is built from the
recursively refreshed lags, the intercept and the exogenous forecast; a
vector of structural shocks is drawn with the forecast variances and mapped
into reduced-form errors through B^{-1}:

    y_h = A x_h + B^{-1} u_h,    u_h ~ N(0, diag(sigma2_h))

When some entries of y_h are known in advance, u_h is drawn from its exact
distribution conditional on the linear constraint

    (A x_h + B^{-1} u_h)[idx] = c_h

by correcting an unconstrained draw u0 with the Gaussian conditioning update

    u = u0 + D G' (G D G')^+ (c_h - mu[idx] - G u0),  G = B^{-1}[idx, :],
    D = diag(sigma2_h)

after which the constrained entries of y_h are set to c_h exactly.

Every draw consumes its generator in the same order, one standard normal
vector of length N per period, whether or not the period is constrained.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from scipy import linalg

from svarforecast.core.config import get_config
from svarforecast.core.exceptions import InfeasibleConstraintError, warn_numeric
from svarforecast.core.types import Matrix, Tensor3D, Vector
from svarforecast.core.validation import ForecastRequest
from svarforecast.models._numba_core import roll_lags
from svarforecast.models.posterior import LastInSampleState
from svarforecast.utils.matrix_ops import invert_structural_matrix, reduced_form_covariance

logger = logging.getLogger("svarforecast.models.simulator")


@dataclass
class DrawResult:
    """Simulated predictive path of one posterior draw.

    Attributes:
        draw: Index of the posterior draw
        forecasts: (N, horizon) simulated path
        covariance: (N, N, horizon) reduced-form error covariances
    """

    draw: int
    forecasts: Matrix
    covariance: Tensor3D


def conditional_shock_moments(
    mean: Vector,
    B_inv: Matrix,
    sigma2: Vector,
    constrained: np.ndarray,
    values: Vector
) -> Tuple[Vector, Matrix]:
    """Mean and covariance of the structural shocks given a linear constraint.

    The unconditional shocks are N(0, diag(sigma2)); the constraint is
    ``(mean + B_inv u)[constrained] = values``.

    Args:
        mean: (N,) conditional mean A x_h of the observation
        B_inv: (N, N) inverse of the structural matrix
        sigma2: (N,) structural shock variances
        constrained: Indices of the constrained variables
        values: Values the constrained variables must take

    Returns:
        Tuple[Vector, Matrix]: (N,) mean and (N, N) covariance of the shocks

    Examples:
        >>> import numpy as np
        >>> from svarforecast.models.simulator import conditional_shock_moments
        >>> m, V = conditional_shock_moments(np.zeros(2), np.eye(2), np.ones(2),
        ...                                  np.array([0]), np.array([5.0]))
        >>> m
        array([5., 0.])
    """
    constrained = np.asarray(constrained, dtype=int)
    G = B_inv[constrained, :]
    DG = sigma2[:, np.newaxis] * G.T
    gain = DG @ linalg.pinv(G @ DG)

    shock_mean = gain @ (np.asarray(values, dtype=float) - mean[constrained])
    shock_cov = np.diag(sigma2) - gain @ DG.T
    return shock_mean, (shock_cov + shock_cov.T) / 2


def _constrain_shocks(
    shocks: Vector,
    mean: Vector,
    B_inv: Matrix,
    sigma2: Vector,
    constrained: np.ndarray,
    values: Vector,
    tolerance: float,
    draw: int,
    horizon: int
) -> Vector:
    """Turn an unconstrained shock draw into a draw from the conditional law."""
    G = B_inv[constrained, :]
    DG = sigma2[:, np.newaxis] * G.T
    system = G @ DG
    rhs = values - mean[constrained] - G @ shocks

    solution, _, rank, _ = linalg.lstsq(system, rhs, check_finite=False)
    residual = float(np.linalg.norm(system @ solution - rhs))
    if residual > tolerance * max(1.0, float(np.linalg.norm(rhs))):
        raise InfeasibleConstraintError(
            "Conditional forecast constraints cannot be satisfied jointly",
            draw=draw,
            horizon=horizon,
            residual=residual,
            details="The constrained variables are linearly dependent under this draw "
                    "and the requested values are inconsistent with that dependence"
        )
    if rank < constrained.size:
        warn_numeric(
            f"Constraint system of draw {draw} at horizon {horizon} is rank deficient",
            operation="conditional shock draw",
            value=rank
        )

    return shocks + DG @ solution


def simulate_draw(
    draw: int,
    A: Matrix,
    B: Matrix,
    sigma2: Matrix,
    last_state: LastInSampleState,
    request: ForecastRequest,
    rng: np.random.Generator,
    max_condition_number: Optional[float] = None,
    constraint_tolerance: Optional[float] = None
) -> DrawResult:
    """Simulate the predictive path of a single posterior draw.

    Args:
        draw: Index of the posterior draw, used in error context
        A: (N, K) autoregressive coefficients
        B: (N, N) structural matrix
        sigma2: (N, horizon) forecast structural variances
        last_state: Terminal state of the estimation sample
        request: Validated forecast request
        rng: Generator dedicated to this posterior draw
        max_condition_number: Largest acceptable condition number of B,
            defaults to the ``numerical`` configuration
        constraint_tolerance: Relative residual above which a constraint
            system is declared infeasible, defaults to the ``numerical``
            configuration

    Returns:
        DrawResult: Simulated path and covariances

    Raises:
        SingularStructuralMatrixError: If B cannot be inverted
        InfeasibleConstraintError: If the constraints of a period are
            inconsistent
    """
    if max_condition_number is None:
        max_condition_number = get_config("numerical", "max_condition_number", 1e12)
    if constraint_tolerance is None:
        constraint_tolerance = get_config("numerical", "constraint_tolerance", 1e-8)

    B_inv = invert_structural_matrix(B, draw=draw, max_condition_number=max_condition_number)

    n_variables = A.shape[0]
    horizon = request.horizon
    exogenous = last_state.exogenous_slice if last_state.d > 0 else None
    conditional = request.conditional_forecast

    forecasts = np.empty((n_variables, horizon))
    covariance = np.empty((n_variables, n_variables, horizon))
    x = last_state.X_T.copy()

    for h in range(horizon):
        if exogenous is not None:
            x[exogenous] = request.exogenous_forecast[h]

        mean = A @ x
        variances = sigma2[:, h]
        shocks = np.sqrt(variances) * rng.standard_normal(n_variables)

        constrained = np.flatnonzero(np.isfinite(conditional[h]))
        if constrained.size:
            values = conditional[h, constrained]
            shocks = _constrain_shocks(shocks, mean, B_inv, variances, constrained, values,
                                       constraint_tolerance, draw, h + 1)

        y = mean + B_inv @ shocks
        if constrained.size:
            y[constrained] = values

        forecasts[:, h] = y
        covariance[:, :, h] = reduced_form_covariance(B_inv, variances)
        x = roll_lags(x, y, n_variables, last_state.p)

    return DrawResult(draw=draw, forecasts=forecasts, covariance=covariance)
