"""
Numeric helpers shared by the binning and sampling modules.

This module holds the weighted percentile routine used to derive bin
boundaries, the boundary searches used to map values to bins, and the
small logging helpers used throughout the package.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Sequence, Tuple, Union

import numpy as np


# =============================================================================
# Type Aliases
# =============================================================================

ArrayLike = Union[np.ndarray, List[Any], Tuple[Any, ...]]


# =============================================================================
# Weighted Percentiles
# =============================================================================

def percentiles_nunique(
    v: ArrayLike,
    sample_weight: ArrayLike,
    percentiles: ArrayLike,
) -> Tuple[np.ndarray, int]:
    """
    Compute weighted percentiles and the number of distinct values.

    Values are walked in ascending order while accumulating
    ``sample_weight / sum(sample_weight)``. Whenever the running mass reaches
    the next pending fraction, the current value is emitted as that
    fraction's boundary. A fraction of 0 is satisfied by the smallest value.
    Each value emits at most one boundary: when a heavy value reaches
    several fractions at once, the later ones move on to the following
    values, and fractions left over once the values run out are dropped.
    Missing values are not supported and must be removed by the caller.

    Parameters
    ----------
    v : array-like of shape (n_samples,)
        Values to find percentiles for.
    sample_weight : array-like of shape (n_samples,)
        Positive instance weights for each value.
    percentiles : array-like of shape (n_percentiles,)
        Fractions between 0 and 1, in ascending order.

    Returns
    -------
    boundaries : np.ndarray of shape (<= n_percentiles,)
        At most one value of ``v`` per requested fraction, in ascending
        order.
    nunique : int
        Number of distinct values in ``v``.

    Raises
    ------
    ValueError
        If no percentiles are given, ``v`` is empty, the weights do not match
        ``v`` or the weights do not sum to a positive finite total.

    Examples
    --------
    >>> v = np.arange(1.0, 11.0)
    >>> percentiles_nunique(v, np.ones(10), [0.3, 0.5, 0.75])
    (array([3., 5., 8.]), 10)
    """
    v = np.asarray(v)
    sample_weight = np.asarray(sample_weight)
    pcts = np.asarray(percentiles, dtype=np.float64)

    if pcts.size == 0:
        raise ValueError("No percentiles were provided.")
    if v.size == 0:
        raise ValueError("Cannot compute percentiles of an empty array.")
    if sample_weight.shape != v.shape:
        raise ValueError(
            f"sample_weight has shape {sample_weight.shape}, "
            f"expected {v.shape}."
        )

    total = sample_weight.sum()
    if not np.isfinite(total) or total <= 0:
        raise ValueError(
            f"sample_weight must sum to a positive finite value, got {total}"
        )

    order = np.argsort(v, kind="stable")
    sorted_v = v[order]

    # Running mass after each sorted value; cumsum accumulates left to right
    cum_weight = np.cumsum(sample_weight[order] / total, dtype=np.float64)

    # First position whose running mass reaches each fraction
    reached = np.searchsorted(cum_weight, pcts, side="left")

    # Each sorted value emits at most one boundary, so fraction k lands on
    # max(reached[k], position[k-1] + 1), i.e. k + max_{j<=k}(reached[j] - j)
    steps = np.arange(len(pcts))
    positions = np.maximum.accumulate(reached - steps) + steps
    positions = positions[positions < len(sorted_v)]

    nunique = 1 + int(np.count_nonzero(sorted_v[1:] != sorted_v[:-1]))

    return sorted_v[positions], nunique


def percentiles(
    v: ArrayLike,
    sample_weight: ArrayLike,
    percentiles: ArrayLike,
) -> np.ndarray:
    """Weighted percentiles of ``v``, see :func:`percentiles_nunique`."""
    boundaries, _ = percentiles_nunique(v, sample_weight, percentiles)
    return boundaries


# =============================================================================
# Boundary Search
# =============================================================================

def first_greater_than(x: Sequence[float], v: float) -> int:
    """
    Return the index of the first element of sorted ``x`` greater than ``v``.

    This is also the number of elements less than or equal to ``v``.
    Comparisons with NaN are always false, so a missing ``v`` drives the
    search to the bottom and returns 0.

    Examples
    --------
    >>> first_greater_than([1.0, 4.0, 8.0, 9.0], 2.0)
    1
    >>> first_greater_than([1.0, 4.0, 8.0, 9.0], float("nan"))
    0
    """
    low = 0
    high = len(x)
    while low != high:
        mid = (low + high) // 2
        if x[mid] <= v:
            low = mid + 1
        else:
            high = mid
    return low


def map_bins(cuts: ArrayLike, values: ArrayLike) -> np.ndarray:
    """
    Map values to bin indices given a column's cut table.

    Non-finite values go to bin 0. A finite value goes to
    ``1 + #{cuts < v}``, so bin ``k`` holds values in
    ``(cuts[k-2], cuts[k-1]]``.

    Returns
    -------
    bins : np.ndarray of shape (n_values,), dtype uint16
    """
    values = np.asarray(values)
    bins = np.zeros(values.shape[0], dtype=np.uint16)
    finite = np.isfinite(values)
    bins[finite] = 1 + np.searchsorted(cuts, values[finite], side="left")
    return bins


def map_bin(cuts: ArrayLike, v: float) -> int:
    """Map a single value to its bin index, see :func:`map_bins`."""
    return int(map_bins(cuts, [v])[0])


# =============================================================================
# Formatting and Logging
# =============================================================================

def items_to_strings(items: Iterable[Any]) -> str:
    """Render items as a comma separated list of quoted strings."""
    return ", ".join(f"'{item}'" for item in items)


def log_message(message: str, *, verbose: int = 0) -> None:
    """
    Print a log message if verbose level is sufficient.

    Parameters
    ----------
    message : str
        Message to print.
    verbose : int, default=0
        Verbosity level. Message is printed if verbose >= 1.
    """
    if verbose >= 1:
        print(f"[gbmcore] {message}")


def log_debug(message: str, *, verbose: int = 0) -> None:
    """Print a message only at debug verbosity (verbose >= 2)."""
    if verbose >= 2:
        print(f"[gbmcore] [debug] {message}")


__all__ = [
    "ArrayLike",
    "percentiles_nunique",
    "percentiles",
    "first_greater_than",
    "map_bins",
    "map_bin",
    "items_to_strings",
    "log_message",
    "log_debug",
]
