"""
Core RBF fitting and evaluation functions.

Pure functional interface for JAX autodiff compatibility.
"""

import logging

import jax
import jax.numpy as jnp
from jax import Array

from .errors import PreconditionError
from .kernels import Kernel, KernelType, thin_plate_spline_kernel
from .rbf import (
    build_augmented_matrix,
    build_evaluation_matrix,
    build_gram_matrix,
    build_polynomial_basis,
    check_conditioning,
    check_solution,
    polynomial_basis_size,
    solve_augmented_system_direct,
    solve_rbf_system,
)
from .types import FitConfig, InterpolatorState

logger = logging.getLogger(__name__)


def _normalize_points(points: Array) -> Array:
    """Ensure points is 2D: (n_dims, n_points)."""
    if points.ndim == 1:
        return points[None, :]
    return points


def validate_data(points, values) -> tuple[Array, Array]:
    """
    Copy and validate a dataset.

    Parameters
    ----------
    points : array_like
        Data points, shape (n_points,) or (n_dims, n_points).
    values : array_like
        Target values, shape (n_points,).

    Returns
    -------
    tuple[Array, Array]
        Float arrays of shape (n_dims, n_points) and (n_points,).

    Raises
    ------
    PreconditionError
        On empty data or mismatched point/value counts.
    """
    points = _normalize_points(jnp.array(points, dtype=float))
    values = jnp.array(values, dtype=float)

    if points.ndim != 2:
        raise PreconditionError(f"Points must be 1D or 2D (n_dims, n_points), got shape {points.shape}")
    if values.ndim != 1:
        raise PreconditionError(f"Values must be 1D (n_points,), got shape {values.shape}")

    n_dims, n_points = points.shape
    if n_points < 1 or n_dims < 1:
        raise PreconditionError(f"At least one point of dimension >= 1 is required, got shape {points.shape}")
    if values.shape[0] != n_points:
        raise PreconditionError(f"Mismatch: {n_points} points vs {values.shape[0]} values")

    return points, values


def fit(
    points,
    values,
    kernel: Kernel = thin_plate_spline_kernel(),
    config: FitConfig = FitConfig(),
) -> InterpolatorState:
    """
    Compute RBF interpolation weights.

    Parameters
    ----------
    points : array_like
        Data points, shape (n_points,) or (n_dims, n_points).
        Each column is one point.
    values : array_like
        Target values, shape (n_points,).
    kernel : Kernel
        Radial kernel. Default is the thin-plate spline.
    config : FitConfig
        Regularization, polynomial augmentation and conditioning limit.

    Returns
    -------
    InterpolatorState
        Fitted state for evaluate() and gradient().

    Raises
    ------
    PreconditionError
        On invalid data or configuration.
    SingularMatrixError
        If the system is singular or too ill-conditioned to solve.
    """
    points, values = validate_data(points, values)
    n_dims, n_points = points.shape

    if config.lam < 0.0:
        raise PreconditionError(f"Regularization lam must be non-negative, got {config.lam}")
    if config.poly_degree not in (0, 1, 2):
        raise PreconditionError(f"poly_degree must be 0, 1 or 2, got {config.poly_degree}")
    if not config.residual_tol > 0.0:
        raise PreconditionError(f"residual_tol must be positive, got {config.residual_tol}")

    G = build_gram_matrix(points, kernel)
    if config.use_regularization:
        G = G + config.lam * jnp.eye(n_points, dtype=G.dtype)

    poly_degree = config.poly_degree
    if poly_degree > 0:
        n_poly = polynomial_basis_size(n_dims, poly_degree)
        if n_points < n_poly:
            raise PreconditionError(
                f"Polynomial degree {poly_degree} in {n_dims}D needs at least {n_poly} points, got {n_points}"
            )
        P = build_polynomial_basis(points, poly_degree)
        A = build_augmented_matrix(G, P)
        cond = check_conditioning(A, config.max_condition)
        weights, poly_coeffs = solve_augmented_system_direct(G, P, values)
        solution = jnp.concatenate([weights, poly_coeffs])
        rhs = jnp.concatenate([values, jnp.zeros((P.shape[1],), dtype=values.dtype)])
    else:
        A = G
        cond = check_conditioning(A, config.max_condition)
        weights = solve_rbf_system(G, values, positive_definite=kernel.positive_definite)
        poly_coeffs = None
        solution, rhs = weights, values

    residual = check_solution(A, solution, rhs, cond, config.residual_tol)

    logger.debug(
        "Fitted %s kernel on %d points in %dD (cond=%.3e, residual=%.3e, regularized=%s, poly_degree=%d)",
        KernelType(kernel.kind).value,
        n_points,
        n_dims,
        cond,
        residual,
        config.use_regularization,
        poly_degree,
    )

    return InterpolatorState(
        points=points,
        values=values,
        weights=weights,
        kernel=kernel,
        poly_coeffs=poly_coeffs,
        poly_degree=poly_degree,
        condition_number=cond,
    )


def _evaluate_impl(
    points: Array,
    weights: Array,
    kernel: Kernel,
    poly_coeffs: Array | None,
    poly_degree: int,
    query_points: Array,
) -> Array:
    """Core evaluation implementation, differentiable in query_points."""
    F = build_evaluation_matrix(points, query_points, kernel)  # (n_query, n_points)

    # RBF contribution
    result = F @ weights

    # Add polynomial contribution if used
    if poly_coeffs is not None:
        P_query = build_polynomial_basis(query_points, poly_degree)
        result = result + P_query @ poly_coeffs

    return result


def _check_dims(state: InterpolatorState, query_points: Array) -> None:
    n_dims = state.points.shape[0]
    if query_points.ndim != 2 or query_points.shape[0] != n_dims:
        raise PreconditionError(
            f"Query dimension mismatch: data points are {n_dims}D, got query shape {query_points.shape}"
        )


def evaluate(state: InterpolatorState, query_points) -> Array:
    """
    Evaluate the interpolant at multiple points.

    Parameters
    ----------
    state : InterpolatorState
        Fitted state from fit().
    query_points : array_like
        Query points, shape (n_dims, n_query) or (n_query,) for 1D data.

    Returns
    -------
    Array
        Interpolated values, shape (n_query,).
    """
    query_points = _normalize_points(jnp.asarray(query_points, dtype=state.points.dtype))
    _check_dims(state, query_points)

    return _evaluate_impl(
        state.points,
        state.weights,
        state.kernel,
        state.poly_coeffs,
        state.poly_degree,
        query_points,
    )


def _as_column(state: InterpolatorState, query_point) -> Array:
    """Shape a single query point to (n_dims, 1)."""
    query_point = jnp.asarray(query_point, dtype=state.points.dtype)

    # Handle scalar input
    if query_point.ndim == 0:
        query_point = query_point[None]

    if query_point.ndim != 1:
        raise PreconditionError(f"Expected a single point of shape (n_dims,), got {query_point.shape}")

    query_points = query_point[:, None]
    _check_dims(state, query_points)
    return query_points


def evaluate_single(state: InterpolatorState, query_point) -> Array:
    """
    Evaluate the interpolant at a single point.

    Parameters
    ----------
    state : InterpolatorState
        Fitted state from fit().
    query_point : array_like
        Single point, scalar or shape (n_dims,).

    Returns
    -------
    Array
        Interpolated value, shape ().
    """
    query_points = _as_column(state, query_point)
    return _evaluate_impl(
        state.points,
        state.weights,
        state.kernel,
        state.poly_coeffs,
        state.poly_degree,
        query_points,
    )[0]


def gradient(state: InterpolatorState, query_point) -> Array:
    """
    Gradient of the interpolant at a single point via autodiff.

    Parameters
    ----------
    state : InterpolatorState
        Fitted state from fit().
    query_point : array_like
        Single point, scalar or shape (n_dims,).

    Returns
    -------
    Array
        Gradient, shape (n_dims,).
    """
    query_points = _as_column(state, query_point)

    def value_fn(q: Array) -> Array:
        return _evaluate_impl(
            state.points,
            state.weights,
            state.kernel,
            state.poly_coeffs,
            state.poly_degree,
            q[:, None],
        )[0]

    return jax.grad(value_fn)(query_points[:, 0])
