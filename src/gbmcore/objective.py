"""
Objective functions for gradient boosting.

Each objective maps labels ``y``, raw predictions ``yhat`` and instance
weights to one loss, gradient and hessian value per row. The booster picks
an objective once, through :func:`gradient_hessian_callables`, and then
calls the returned functions on every iteration.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, Dict, Optional, Tuple, Type, Union

import numpy as np

from .data import resolve_float_dtype
from .errors import ParseStringError
from .utils import ArrayLike


ObjFn = Callable[[ArrayLike, ArrayLike, Optional[ArrayLike]], np.ndarray]


# =============================================================================
# Objective Type
# =============================================================================

class ObjectiveType(Enum):
    """Objectives available to the booster."""
    LOG_LOSS = "LogLoss"
    SQUARED_LOSS = "SquaredLoss"

    @classmethod
    def from_str(cls, s: str) -> "ObjectiveType":
        """
        Parse an objective name.

        Matching is case-insensitive and ignores ``-`` and ``_``, so
        ``"LogLoss"``, ``"log_loss"`` and ``"logloss"`` are equivalent.
        """
        key = str(s).lower().replace("-", "").replace("_", "")
        if key in _OBJECTIVE_ALIASES:
            return _OBJECTIVE_ALIASES[key]
        raise ParseStringError(s, cls.__name__, [member.value for member in cls])


_OBJECTIVE_ALIASES: Dict[str, ObjectiveType] = {
    "logloss": ObjectiveType.LOG_LOSS,
    "binary": ObjectiveType.LOG_LOSS,
    "binarycrossentropy": ObjectiveType.LOG_LOSS,
    "squaredloss": ObjectiveType.SQUARED_LOSS,
    "squarederror": ObjectiveType.SQUARED_LOSS,
    "mse": ObjectiveType.SQUARED_LOSS,
    "l2": ObjectiveType.SQUARED_LOSS,
}


# =============================================================================
# Helpers
# =============================================================================

def _check_inputs(
    y: ArrayLike,
    yhat: ArrayLike,
    sample_weight: Optional[ArrayLike],
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    yhat = np.asarray(yhat)
    dtype = resolve_float_dtype(yhat.dtype)
    yhat = yhat.astype(dtype, copy=False)
    y = np.asarray(y, dtype=dtype)

    if sample_weight is None:
        sample_weight = np.ones_like(yhat)
    else:
        sample_weight = np.asarray(sample_weight, dtype=dtype)

    if not (y.shape == yhat.shape == sample_weight.shape) or yhat.ndim != 1:
        raise ValueError(
            "y, yhat and sample_weight must be 1D with the same length, got "
            f"shapes {y.shape}, {yhat.shape} and {sample_weight.shape}."
        )
    return y, yhat, sample_weight


def sigmoid(x: np.ndarray) -> np.ndarray:
    """Logistic function, evaluated without overflow for large ``|x|``."""
    x = np.asarray(x)
    out = np.empty_like(x)
    pos = x >= 0
    out[pos] = 1.0 / (1.0 + np.exp(-x[pos]))
    exp_x = np.exp(x[~pos])
    out[~pos] = exp_x / (1.0 + exp_x)
    return out


# =============================================================================
# Base Objective Class
# =============================================================================

class ObjectiveFunction(ABC):
    """
    Abstract base class for objective functions.

    All objectives implement static, row-wise functions computing:
    - The weighted loss
    - First-order gradients
    - Second-order hessians
    """

    @staticmethod
    @abstractmethod
    def calc_loss(
        y: ArrayLike, yhat: ArrayLike, sample_weight: Optional[ArrayLike] = None
    ) -> np.ndarray:
        """
        Compute the weighted loss of every row.

        Parameters
        ----------
        y : array-like of shape (n_samples,)
            True target values.
        yhat : array-like of shape (n_samples,)
            Raw predicted values.
        sample_weight : array-like of shape (n_samples,) or None
            Instance weights, ``None`` for all ones.

        Returns
        -------
        loss : np.ndarray of shape (n_samples,)
        """

    @staticmethod
    @abstractmethod
    def calc_grad(
        y: ArrayLike, yhat: ArrayLike, sample_weight: Optional[ArrayLike] = None
    ) -> np.ndarray:
        """Compute the weighted first-order gradient of every row."""

    @staticmethod
    @abstractmethod
    def calc_hess(
        y: ArrayLike, yhat: ArrayLike, sample_weight: Optional[ArrayLike] = None
    ) -> np.ndarray:
        """Compute the weighted second-order hessian of every row."""

    @classmethod
    def gradient_hessian(
        cls, y: ArrayLike, yhat: ArrayLike, sample_weight: Optional[ArrayLike] = None
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Compute both gradient and hessian at once."""
        return cls.calc_grad(y, yhat, sample_weight), cls.calc_hess(y, yhat, sample_weight)


# =============================================================================
# Classification Objective
# =============================================================================

class LogLoss(ObjectiveFunction):
    """
    Binary cross-entropy on raw scores.

    L(y, f) = -[y * log(sigmoid(f)) + (1-y) * log(1 - sigmoid(f))] * w

    Predictions are logits, not probabilities.
    """

    @staticmethod
    def calc_loss(y, yhat, sample_weight=None):
        y, yhat, w = _check_inputs(y, yhat, sample_weight)
        # -(y*log(p) + (1-y)*log(1-p)) == log(1 + e^f) - y*f
        return (np.logaddexp(0.0, yhat) - y * yhat) * w

    @staticmethod
    def calc_grad(y, yhat, sample_weight=None):
        """d/df = (sigmoid(f) - y) * w"""
        y, yhat, w = _check_inputs(y, yhat, sample_weight)
        return (sigmoid(yhat) - y) * w

    @staticmethod
    def calc_hess(y, yhat, sample_weight=None):
        """d^2/df^2 = sigmoid(f) * (1 - sigmoid(f)) * w"""
        _, yhat, w = _check_inputs(y, yhat, sample_weight)
        p = sigmoid(yhat)
        return p * (1.0 - p) * w


# =============================================================================
# Regression Objective
# =============================================================================

class SquaredLoss(ObjectiveFunction):
    """
    Squared error for regression.

    L(y, f) = (y - f)^2 * w

    The gradient and hessian are those of ``0.5 * (y - f)^2``, the usual
    boosting convention, so the hessian is simply the weight.
    """

    @staticmethod
    def calc_loss(y, yhat, sample_weight=None):
        y, yhat, w = _check_inputs(y, yhat, sample_weight)
        residual = y - yhat
        return residual * residual * w

    @staticmethod
    def calc_grad(y, yhat, sample_weight=None):
        y, yhat, w = _check_inputs(y, yhat, sample_weight)
        return (yhat - y) * w

    @staticmethod
    def calc_hess(y, yhat, sample_weight=None):
        _, _, w = _check_inputs(y, yhat, sample_weight)
        return w.copy()


# =============================================================================
# Objective Resolution
# =============================================================================

_OBJECTIVES: Dict[ObjectiveType, Type[ObjectiveFunction]] = {
    ObjectiveType.LOG_LOSS: LogLoss,
    ObjectiveType.SQUARED_LOSS: SquaredLoss,
}


def get_objective(objective_type: Union[ObjectiveType, str]) -> Type[ObjectiveFunction]:
    """
    Return the objective class for an objective type or its name.

    Raises
    ------
    ParseStringError
        If a string does not name a known objective.
    """
    if not isinstance(objective_type, ObjectiveType):
        objective_type = ObjectiveType.from_str(objective_type)
    return _OBJECTIVES[objective_type]


def gradient_hessian_callables(
    objective_type: Union[ObjectiveType, str],
) -> Tuple[ObjFn, ObjFn]:
    """Resolve an objective once into its gradient and hessian functions."""
    objective = get_objective(objective_type)
    return objective.calc_grad, objective.calc_hess


def loss_callable(objective_type: Union[ObjectiveType, str]) -> ObjFn:
    """Resolve an objective once into its (diagnostic) loss function."""
    return get_objective(objective_type).calc_loss


__all__ = [
    "ObjectiveType",
    "ObjectiveFunction",
    "LogLoss",
    "SquaredLoss",
    "sigmoid",
    "get_objective",
    "gradient_hessian_callables",
    "loss_callable",
]
