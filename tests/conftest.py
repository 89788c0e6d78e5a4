"""Pytest configuration and shared fixtures."""

import jax
import jax.numpy as jnp
import pytest

# Ensure float64 is enabled for all tests
jax.config.update("jax_enable_x64", True)


@pytest.fixture
def scattered_2d():
    """Five irregular 2D points (as columns) with arbitrary values."""
    points = jnp.array([
        [0.0, 0.9, 0.2, 1.3, 0.6],
        [0.1, 0.0, 1.1, 0.8, 0.45],
    ])
    values = jnp.array([1.0, -2.0, 0.5, 3.0, 0.7])
    return points, values


@pytest.fixture
def plane_data():
    """Unit square corners sampled from the plane z = x + y."""
    points = jnp.array([
        [0.0, 1.0, 0.0, 1.0],
        [0.0, 0.0, 1.0, 1.0],
    ])
    values = jnp.array([0.0, 1.0, 1.0, 2.0])
    return points, values
