"""
Column-major matrix container and input validation.

Binning walks the data one column at a time, so matrices are stored
column-contiguous: column ``c``, row ``r`` lives at ``c * rows + r`` of a
flat buffer. Validation is done from scratch using only NumPy.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .utils import ArrayLike


# =============================================================================
# Supported Numeric Types
# =============================================================================

FLOAT_DTYPES = (np.dtype(np.float32), np.dtype(np.float64))


def resolve_float_dtype(dtype: Optional[np.dtype]) -> np.dtype:
    """
    Return the float dtype to compute in.

    float32 and float64 are kept as is, anything else (integers, bools,
    float16) is promoted to float64.
    """
    if dtype is not None and np.dtype(dtype) in FLOAT_DTYPES:
        return np.dtype(dtype)
    return np.dtype(np.float64)


# =============================================================================
# Matrix
# =============================================================================

@dataclass(frozen=True, eq=False)
class Matrix:
    """
    Rectangular numeric buffer stored column-contiguous.

    Parameters
    ----------
    data : np.ndarray of shape (rows * cols,)
        Flat buffer, column after column.
    rows : int
        Number of rows.
    cols : int
        Number of columns.
    """
    data: np.ndarray
    rows: int
    cols: int

    def __post_init__(self) -> None:
        data = np.array(self.data, copy=True).reshape(-1)
        if self.rows < 0 or self.cols < 0:
            raise ValueError(
                f"rows and cols must be non-negative, got ({self.rows}, {self.cols})"
            )
        if data.shape[0] != self.rows * self.cols:
            raise ValueError(
                f"Buffer has {data.shape[0]} elements, expected "
                f"{self.rows} * {self.cols} = {self.rows * self.cols}."
            )
        data.flags.writeable = False
        object.__setattr__(self, "data", data)

    @classmethod
    def from_array(cls, X: ArrayLike, dtype: Optional[type] = None) -> "Matrix":
        """
        Build a matrix from an array-like of shape (n_rows, n_cols).

        A 1D input is treated as a single column.
        """
        X_out = check_array(X, dtype=dtype)
        rows, cols = X_out.shape
        return cls(np.ravel(X_out, order="F"), rows, cols)

    @property
    def shape(self) -> Tuple[int, int]:
        return self.rows, self.cols

    @property
    def dtype(self) -> np.dtype:
        return self.data.dtype

    def get_col(self, col: int) -> np.ndarray:
        """Return a read-only view of column ``col``."""
        if not 0 <= col < self.cols:
            raise IndexError(f"Column {col} out of range for {self.cols} columns.")
        start = col * self.rows
        return self.data[start:start + self.rows]

    def get(self, row: int, col: int):
        """Return the element at (row, col)."""
        return self.get_col(col)[row]

    def to_array(self) -> np.ndarray:
        """Return a read-only (rows, cols) view of the buffer."""
        return self.data.reshape((self.rows, self.cols), order="F")

    def __repr__(self) -> str:
        return f"Matrix(rows={self.rows}, cols={self.cols}, dtype={self.dtype})"


# =============================================================================
# Input Validation Functions
# =============================================================================

def check_array(
    X: ArrayLike,
    *,
    ensure_2d: bool = True,
    dtype: Optional[type] = None,
) -> np.ndarray:
    """
    Validate and convert input array to a float numpy array.

    Non-finite values are kept, they are treated as missing downstream.

    Parameters
    ----------
    X : array-like
        Input data to validate. Objects exposing ``.values`` (pandas
        DataFrame/Series) are unwrapped first.
    ensure_2d : bool, default=True
        Whether to reshape 1D input to a single column and reject >2D input.
    dtype : type or None, default=None
        Float dtype of the output. ``None`` keeps float32/float64 input
        and promotes anything else to float64.

    Returns
    -------
    X_converted : np.ndarray
        Validated and converted array.

    Raises
    ------
    ValueError
        If validation fails.
    TypeError
        If input type is not supported.
    """
    if hasattr(X, "values") and not isinstance(X, np.ndarray):
        X = X.values

    try:
        X_out = np.asarray(X)
    except Exception as e:
        raise TypeError(
            f"Cannot convert input of type {type(X).__name__} to numpy array: {e}"
        ) from e

    if X_out.dtype == object:
        raise TypeError("Input array must be numeric, got dtype object.")

    if dtype is not None and np.dtype(dtype) not in FLOAT_DTYPES:
        raise ValueError(
            f"dtype must be float32 or float64, got {np.dtype(dtype)}"
        )
    target = resolve_float_dtype(dtype if dtype is not None else X_out.dtype)
    if X_out.dtype != target:
        X_out = X_out.astype(target)

    if ensure_2d:
        if X_out.ndim == 1:
            X_out = X_out.reshape(-1, 1)
        elif X_out.ndim != 2:
            raise ValueError(
                f"Expected 2D array, got {X_out.ndim}D array instead."
            )

    if X_out.size == 0:
        raise ValueError("Input array cannot be empty.")

    return X_out


def check_sample_weight(
    sample_weight: Optional[ArrayLike],
    n_samples: int,
    dtype: type = np.float64,
) -> np.ndarray:
    """
    Validate sample weights.

    Parameters
    ----------
    sample_weight : array-like of shape (n_samples,) or None
        Sample weights. ``None`` means every row has weight 1.
    n_samples : int
        Expected number of samples.
    dtype : type, default=np.float64
        Dtype of the returned weights.

    Returns
    -------
    sample_weight : np.ndarray of shape (n_samples,)
        Validated sample weights.

    Raises
    ------
    ValueError
        If sample_weight has incorrect shape or contains invalid values.
    """
    if sample_weight is None:
        return np.ones(n_samples, dtype=dtype)

    sample_weight = np.asarray(sample_weight, dtype=dtype)

    if sample_weight.ndim != 1:
        raise ValueError(
            f"sample_weight must be 1D, got shape {sample_weight.shape}"
        )

    if len(sample_weight) != n_samples:
        raise ValueError(
            f"sample_weight has {len(sample_weight)} elements, "
            f"expected {n_samples}."
        )

    if not np.all(np.isfinite(sample_weight)):
        raise ValueError("sample_weight contains NaN or infinite values.")

    if np.any(sample_weight < 0):
        raise ValueError("sample_weight must contain non-negative values.")

    total = sample_weight.sum()
    if not np.isfinite(total) or total <= 0:
        raise ValueError(
            f"sample_weight must sum to a positive finite value, got {total}"
        )

    return sample_weight


__all__ = [
    "FLOAT_DTYPES",
    "Matrix",
    "resolve_float_dtype",
    "check_array",
    "check_sample_weight",
]
