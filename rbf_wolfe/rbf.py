"""
Radial Basis Function (RBF) matrix construction and linear solves.

Points are stored column-wise: shape (n_dims, n_points).
"""

import logging

import jax
import jax.numpy as jnp
import jax.scipy.linalg as jla
from jax import Array

from .errors import SingularMatrixError
from .kernels import Kernel

logger = logging.getLogger(__name__)

# Cholesky results above this relative residual are re-solved with LU
CHOLESKY_RESIDUAL_TOL = 1e-10


def pairwise_squared_distances(points_a: Array, points_b: Array) -> Array:
    """
    Squared Euclidean distances between two point sets.

    Parameters
    ----------
    points_a : Array
        Points, shape (n_dims, n_a).
    points_b : Array
        Points, shape (n_dims, n_b).

    Returns
    -------
    Array
        Squared distances, shape (n_a, n_b).
    """
    n_dims = points_a.shape[0]
    n_a = points_a.shape[1]
    n_b = points_b.shape[1]
    dtype = jnp.result_type(points_a, points_b)

    def accumulate_r2(i: int, r2: Array) -> Array:
        diff = points_a[i, :, None] - points_b[i, None, :]  # (n_a, n_b)
        return r2 + diff**2

    return jax.lax.fori_loop(0, n_dims, accumulate_r2, jnp.zeros((n_a, n_b), dtype=dtype))


def build_gram_matrix(points: Array, kernel: Kernel) -> Array:
    """
    Build the RBF Gram matrix G[i, j] = phi(||x_j - x_i||).

    Parameters
    ----------
    points : Array
        Data points, shape (n_dims, n_points).
    kernel : Kernel
        Radial kernel.

    Returns
    -------
    Array
        Gram matrix, shape (n_points, n_points). Symmetric, with phi(0) on
        the diagonal.
    """
    r2 = pairwise_squared_distances(points, points)
    return kernel.evaluate_squared(r2)


def build_evaluation_matrix(points: Array, query_points: Array, kernel: Kernel) -> Array:
    """
    Build the RBF matrix for evaluation at new points.

    Parameters
    ----------
    points : Array
        Data points, shape (n_dims, n_points).
    query_points : Array
        Query points, shape (n_dims, n_query).
    kernel : Kernel
        Radial kernel.

    Returns
    -------
    Array
        Evaluation matrix, shape (n_query, n_points).
    """
    r2 = pairwise_squared_distances(query_points, points)
    return kernel.evaluate_squared(r2)


def polynomial_basis_size(n_dims: int, degree: int) -> int:
    """Number of columns produced by build_polynomial_basis()."""
    if degree <= 0:
        return 1
    if degree == 1:
        return n_dims + 1
    return (n_dims + 1) * (n_dims + 2) // 2


def build_polynomial_basis(points: Array, degree: int = 1) -> Array:
    """
    Build polynomial basis matrix for RBF augmentation.

    Parameters
    ----------
    points : Array
        Points, shape (n_dims, n_points).
    degree : int
        Polynomial degree (0=constant, 1=linear, 2=quadratic).
        Note: This should be a Python int, not a traced value.

    Returns
    -------
    Array
        Polynomial basis matrix, shape (n_points, n_poly).
        - degree 0: [1] -> 1 column
        - degree 1: [1, x1, x2, ...] -> n_dims + 1 columns
        - degree 2: [1, x1, ..., xn, x1², ..., xn², x1*x2, ...] -> (n+1)(n+2)/2 cols
    """
    n_dims, n_points = points.shape

    terms = [jnp.ones((n_points,), dtype=points.dtype)]

    if degree >= 1:
        for i in range(n_dims):
            terms.append(points[i, :])

    if degree >= 2:
        for i in range(n_dims):
            terms.append(points[i, :] ** 2)
        for i in range(n_dims):
            for j in range(i + 1, n_dims):
                terms.append(points[i, :] * points[j, :])

    return jnp.stack(terms, axis=1)


def condition_number(A: Array) -> float:
    """2-norm condition number of A (inf for an exactly singular matrix)."""
    return float(jnp.linalg.cond(A))


def check_conditioning(A: Array, max_condition: float | None = None) -> float:
    """
    Compute the condition number of A, optionally enforcing an upper limit.

    Gaussian and inverse quadratic Gram matrices on distinct points are
    positive definite yet often have condition numbers far above 1 / eps,
    so no limit is applied unless the caller asks for one.

    Parameters
    ----------
    A : Array
        Square system matrix.
    max_condition : float | None
        Largest accepted condition number. None disables the limit.

    Returns
    -------
    float
        The 2-norm condition number of A.

    Raises
    ------
    SingularMatrixError
        If max_condition is given and the condition number is not finite or
        exceeds it.
    """
    cond = condition_number(A)
    if max_condition is not None and not cond <= max_condition:
        raise SingularMatrixError(
            cond, f"condition number exceeds the limit {max_condition:.3e}", max_condition
        )
    return cond


def relative_residual(A: Array, solution: Array, rhs: Array) -> float:
    """
    Relative residual ||A @ solution - rhs|| / ||rhs|| of a linear solve.

    A zero right-hand side is measured in absolute terms. Non-finite
    solutions give inf.
    """
    if not jnp.all(jnp.isfinite(solution)):
        return float("inf")
    residual = jnp.linalg.norm(A @ solution - rhs)
    scale = jnp.linalg.norm(rhs)
    return float(residual / jnp.where(scale > 0.0, scale, 1.0))


def check_solution(A: Array, solution: Array, rhs: Array, cond: float, tol: float) -> float:
    """
    Reject solves that do not reproduce the right-hand side.

    Raises
    ------
    SingularMatrixError
        If the solution is not finite or its relative residual exceeds tol.
    """
    residual = relative_residual(A, solution, rhs)
    if not residual <= tol:
        if jnp.isfinite(residual):
            detail = f"relative residual {residual:.3e} exceeds {tol:.3e}"
        else:
            detail = "solve produced non-finite weights"
        raise SingularMatrixError(cond, detail)
    return residual


def solve_rbf_system(G: Array, values: Array, positive_definite: bool = False) -> Array:
    """
    Solve G @ w = values for the RBF weights.

    Parameters
    ----------
    G : Array
        Gram matrix (possibly regularized), shape (n_points, n_points).
    values : Array
        Target values, shape (n_points,).
    positive_definite : bool
        If True, try a Cholesky solve first and fall back to LU when the
        factorization breaks down or loses accuracy.

    Returns
    -------
    Array
        Weights, shape (n_points,).
    """
    if positive_definite:
        cho_G = jla.cho_factor(G)
        weights = jla.cho_solve(cho_G, values)
        residual = relative_residual(G, weights, values)
        if residual <= CHOLESKY_RESIDUAL_TOL:
            logger.debug("Solved %d x %d Gram system via Cholesky", *G.shape)
            return weights
        logger.debug("Cholesky solve rejected (relative residual %.3e), falling back to LU solve", residual)

    weights = jnp.linalg.solve(G, values)
    logger.debug("Solved %d x %d Gram system via LU", *G.shape)
    return weights


def solve_augmented_system_direct(
    G: Array,
    P: Array,
    values: Array,
) -> tuple[Array, Array]:
    """
    Solve augmented RBF system by direct assembly and solve.

    Solves the saddle-point system:
        [G  P] [w]   [values]
        [P.T 0] [c] = [0]

    This works for kernels where G is not positive definite (e.g.
    thin-plate splines and the linear kernel).

    Parameters
    ----------
    G : Array
        RBF Gram matrix, shape (n_points, n_points).
    P : Array
        Polynomial basis matrix, shape (n_points, n_poly).
    values : Array
        Target values, shape (n_points,).

    Returns
    -------
    tuple[Array, Array]
        rbf_weights : shape (n_points,)
        poly_coeffs : shape (n_poly,)
    """
    A_aug = build_augmented_matrix(G, P)
    n_points = G.shape[0]
    n_poly = P.shape[1]

    rhs_aug = jnp.concatenate([values, jnp.zeros((n_poly,), dtype=values.dtype)])

    solution = jnp.linalg.solve(A_aug, rhs_aug)

    return solution[:n_points], solution[n_points:]


def build_augmented_matrix(G: Array, P: Array) -> Array:
    """
    Assemble the saddle-point matrix [[G, P], [P.T, 0]].

    Parameters
    ----------
    G : Array
        RBF Gram matrix, shape (n_points, n_points).
    P : Array
        Polynomial basis matrix, shape (n_points, n_poly).

    Returns
    -------
    Array
        Augmented matrix, shape (n_points + n_poly, n_points + n_poly).
    """
    n_poly = P.shape[1]
    top = jnp.hstack([G, P])
    bottom = jnp.hstack([P.T, jnp.zeros((n_poly, n_poly), dtype=G.dtype)])
    return jnp.vstack([top, bottom])
