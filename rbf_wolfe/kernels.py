"""
RBF kernel functions and dispatcher.

Supports multiple kernel types:
- Gaussian: phi(r) = exp(-theta * r²)
- Thin-plate spline: phi(r) = r² * log(r), phi(0) = 0
- Linear: phi(r) = |r|
- Inverse quadratic: phi(r) = 1 / sqrt(r² + theta²)

Kernels are evaluated on squared distances so that the Gram matrix never
takes sqrt or log of zero.
"""

from enum import Enum
from typing import NamedTuple

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike


class KernelType(str, Enum):
    """RBF kernel types."""

    GAUSSIAN = "gaussian"
    THIN_PLATE_SPLINE = "thin_plate_spline"
    LINEAR = "linear"
    INVERSE_QUADRATIC = "inverse_quadratic"


def kernel_gaussian(r2: Array, theta: float) -> Array:
    """
    Gaussian kernel.

    phi(r) = exp(-theta * r²)

    Parameters
    ----------
    r2 : Array
        Squared distances between points.
    theta : float
        Shape parameter, larger values localize the kernel.

    Returns
    -------
    Array
        Kernel values, same shape as r2.
    """
    return jnp.exp(-theta * r2)


def kernel_thin_plate_spline(r2: Array) -> Array:
    """
    Thin-plate spline kernel.

    phi(r) = r² * log(r) = (1/2) * r² * log(r²)

    Parameters
    ----------
    r2 : Array
        Squared distances between points.

    Returns
    -------
    Array
        Kernel values, same shape as r2.

    Notes
    -----
    phi(0) is defined as the limit 0. The inner where keeps log away from
    zero so the gradient stays finite at r=0 as well.
    """
    positive = r2 > 1e-30
    safe_r2 = jnp.where(positive, r2, 1.0)
    return jnp.where(positive, 0.5 * r2 * jnp.log(safe_r2), 0.0)


def kernel_linear(r2: Array) -> Array:
    """
    Linear kernel.

    phi(r) = |r| = sqrt(r²)

    Parameters
    ----------
    r2 : Array
        Squared distances between points.

    Returns
    -------
    Array
        Kernel values, same shape as r2.
    """
    positive = r2 > 0.0
    safe_r2 = jnp.where(positive, r2, 1.0)
    return jnp.where(positive, jnp.sqrt(safe_r2), 0.0)


def kernel_inverse_quadratic(r2: Array, theta: float) -> Array:
    """
    Inverse quadratic kernel.

    phi(r) = 1 / sqrt(r² + theta²)

    Parameters
    ----------
    r2 : Array
        Squared distances between points.
    theta : float
        Shape parameter, larger values flatten the kernel.

    Returns
    -------
    Array
        Kernel values, same shape as r2.
    """
    return 1.0 / jnp.sqrt(r2 + theta**2)


def apply_kernel(
    r2: Array,
    kernel: str,
    theta: float | None = None,
) -> Array:
    """
    Apply RBF kernel to a squared distance array.

    Dispatcher function that selects and applies the appropriate kernel
    based on the kernel type string.

    Parameters
    ----------
    r2 : Array
        Squared distances between points.
    kernel : str
        Kernel type: 'gaussian', 'thin_plate_spline', 'linear' or
        'inverse_quadratic'.
    theta : float | None, optional
        Shape parameter for Gaussian and inverse quadratic kernels.
        Ignored for the others. None selects the kernel default.

    Returns
    -------
    Array
        Kernel values applied to the distance array.

    Raises
    ------
    ValueError
        If kernel type is not recognized.
    """
    kernel_type = KernelType(kernel)
    if theta is None:
        theta = KERNEL_DEFAULTS.get(kernel_type.value, {}).get("theta")

    if kernel_type == KernelType.GAUSSIAN:
        return kernel_gaussian(r2, theta)
    elif kernel_type == KernelType.THIN_PLATE_SPLINE:
        return kernel_thin_plate_spline(r2)
    elif kernel_type == KernelType.LINEAR:
        return kernel_linear(r2)
    elif kernel_type == KernelType.INVERSE_QUADRATIC:
        return kernel_inverse_quadratic(r2, theta)
    else:
        raise ValueError(f"Unknown kernel type: {kernel}")


# Kernel-specific default shape parameters
KERNEL_DEFAULTS = {
    "gaussian": {"theta": 1.0},
    "inverse_quadratic": {"theta": 1.0},
}

_POSITIVE_DEFINITE = frozenset({KernelType.GAUSSIAN, KernelType.INVERSE_QUADRATIC})


class Kernel(NamedTuple):
    """
    Immutable radial kernel: a kernel type plus its shape parameter.

    Build instances with make_kernel() or the per-type factories so that
    theta is validated. One instance may be shared by any number of
    interpolators.
    """

    kind: KernelType
    theta: float | None = None

    @property
    def positive_definite(self) -> bool:
        """True if the Gram matrix over distinct points is positive definite."""
        return KernelType(self.kind) in _POSITIVE_DEFINITE

    def evaluate_squared(self, r2: ArrayLike) -> Array:
        """Kernel value from squared distance(s)."""
        return apply_kernel(jnp.asarray(r2), self.kind, self.theta)

    def evaluate(self, r: ArrayLike) -> Array:
        """Kernel value from distance(s) r >= 0."""
        r = jnp.asarray(r)
        return self.evaluate_squared(r * r)

    def __call__(self, r: ArrayLike) -> Array:
        return self.evaluate(r)


def make_kernel(kernel: str, theta: float | None = None) -> Kernel:
    """
    Build a kernel by name.

    Parameters
    ----------
    kernel : str
        Kernel type: 'gaussian', 'thin_plate_spline', 'linear' or
        'inverse_quadratic'.
    theta : float | None, optional
        Shape parameter for Gaussian and inverse quadratic kernels.
        If None, uses the kernel-specific default. Must be None for kernels
        without a shape parameter.

    Returns
    -------
    Kernel

    Raises
    ------
    ValueError
        If the kernel type is not recognized or theta is invalid.
    """
    kernel_type = KernelType(kernel)
    defaults = KERNEL_DEFAULTS.get(kernel_type.value)

    if defaults is None:
        if theta is not None:
            raise ValueError(f"Kernel '{kernel_type.value}' takes no shape parameter, got theta={theta}")
        return Kernel(kernel_type, None)

    theta = defaults["theta"] if theta is None else float(theta)
    if not theta > 0.0:
        raise ValueError(f"Shape parameter theta must be positive, got {theta}")
    return Kernel(kernel_type, theta)


def gaussian_kernel(theta: float = 1.0) -> Kernel:
    """Gaussian kernel exp(-theta * r²)."""
    return make_kernel(KernelType.GAUSSIAN, theta)


def thin_plate_spline_kernel() -> Kernel:
    """Thin-plate spline kernel r² * log(r)."""
    return make_kernel(KernelType.THIN_PLATE_SPLINE)


def linear_kernel() -> Kernel:
    """Linear kernel |r|."""
    return make_kernel(KernelType.LINEAR)


def inverse_quadratic_kernel(theta: float = 1.0) -> Kernel:
    """Inverse quadratic kernel 1 / sqrt(r² + theta²)."""
    return make_kernel(KernelType.INVERSE_QUADRATIC, theta)
