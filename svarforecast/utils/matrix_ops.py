# svarforecast/utils/matrix_ops.py
"""
Matrix Operations Module

This module provides the matrix utilities used by the predictive path
simulator: a guarded inversion of the structural matrix B, the reduced-form
covariance implied by B and a vector of structural variances, and symmetry
and positive definiteness helpers.

Functions:
    invert_structural_matrix: Invert B, rejecting (numerically) singular draws
    reduced_form_covariance: Compute B^{-1} diag(sigma2) B^{-1}'
    ensure_symmetric: Ensure a matrix is symmetric
"""

import logging
from typing import Optional

import numpy as np
from scipy import linalg

from svarforecast.core.exceptions import SingularStructuralMatrixError, raise_dimension_error
from svarforecast.core.types import Matrix, Vector

logger = logging.getLogger("svarforecast.utils.matrix_ops")


def invert_structural_matrix(
    B: Matrix,
    draw: Optional[int] = None,
    max_condition_number: float = 1e12
) -> Matrix:
    """
    Invert a posterior draw of the structural matrix B.

    The inverse maps structural shocks into reduced-form errors. A draw whose
    condition number exceeds max_condition_number is treated as singular.

    Args:
        B: (N, N) structural matrix
        draw: Index of the posterior draw, used in the error context
        max_condition_number: Largest acceptable condition number

    Returns:
        (N, N) inverse of B

    Raises:
        DimensionError: If B is not square
        SingularStructuralMatrixError: If B is singular or ill-conditioned

    Examples:
        >>> import numpy as np
        >>> from svarforecast.utils.matrix_ops import invert_structural_matrix
        >>> invert_structural_matrix(np.array([[2.0, 0.0], [1.0, 1.0]]))
        array([[ 0.5,  0. ],
               [-0.5,  1. ]])
    """
    B = np.asarray(B, dtype=float)
    if B.ndim != 2 or B.shape[0] != B.shape[1]:
        raise_dimension_error(
            "Structural matrix B must be square",
            array_name="B",
            expected_shape="(N, N)",
            actual_shape=B.shape
        )

    if not np.isfinite(B).all():
        raise SingularStructuralMatrixError(
            "Structural matrix B contains non-finite entries",
            draw=draw
        )

    condition_number = np.linalg.cond(B)
    if not np.isfinite(condition_number) or condition_number > max_condition_number:
        raise SingularStructuralMatrixError(
            "Structural matrix B is numerically singular and cannot be inverted",
            draw=draw,
            condition_number=float(condition_number),
            details=f"Condition number exceeds the limit of {max_condition_number:g}"
        )

    try:
        return linalg.inv(B, check_finite=False)
    except linalg.LinAlgError as e:
        raise SingularStructuralMatrixError(
            f"Structural matrix B cannot be inverted: {e}",
            draw=draw,
            condition_number=float(condition_number)
        ) from e


def reduced_form_covariance(B_inv: Matrix, sigma2: Vector) -> Matrix:
    """
    Compute the reduced-form error covariance B^{-1} diag(sigma2) B^{-1}'.

    Args:
        B_inv: (N, N) inverse of the structural matrix
        sigma2: (N,) structural shock variances

    Returns:
        (N, N) symmetric covariance matrix
    """
    scaled = B_inv * sigma2[np.newaxis, :]
    return ensure_symmetric(scaled @ B_inv.T)


def ensure_symmetric(matrix: Matrix, tol: float = 1e-8) -> Matrix:
    """
    Ensure a matrix is symmetric by averaging with its transpose.

    Args:
        matrix: Matrix to make symmetric
        tol: Tolerance for checking symmetry

    Returns:
        Symmetric matrix

    Raises:
        DimensionError: If the input matrix is not square
    """
    matrix = np.asarray(matrix)

    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise_dimension_error(
            "Input must be a square matrix",
            array_name="matrix",
            expected_shape="(n, n)",
            actual_shape=matrix.shape
        )

    if np.array_equal(matrix, matrix.T):
        return matrix

    if not np.allclose(matrix, matrix.T, rtol=tol, atol=tol):
        logger.debug("Symmetrising a matrix outside tolerance")

    return (matrix + matrix.T) / 2

