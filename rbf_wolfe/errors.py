"""
Exception types raised by rbf_wolfe.
"""

import numpy as np


class RbfWolfeError(Exception):
    """Base exception for rbf_wolfe errors."""

    pass


class PreconditionError(RbfWolfeError, ValueError):
    """Raised when a call violates its contract (shapes, lifecycle, parameters)."""

    pass


class SingularMatrixError(RbfWolfeError, np.linalg.LinAlgError):
    """Exception for interpolation systems that cannot be solved reliably."""

    def __init__(self, condition_number: float, detail: str, max_condition: float | None = None):
        self.condition_number = condition_number
        self.detail = detail
        self.max_condition = max_condition
        message = f"Interpolation matrix is singular or ill-conditioned (cond={condition_number:.3e}): {detail}"
        message += "\nTry calc_weights(use_regularization=True) or remove duplicate points."
        super().__init__(message)


class LineSearchDivergence(RbfWolfeError, RuntimeError):
    """Exception for line searches that found no step satisfying the strong Wolfe conditions."""

    def __init__(self, result):
        self.result = result
        super().__init__(f"Failed to perform the line search: {result.message}")
