"""
Quantile binning of numeric features.

Continuous features are discretised into a bounded number of bins so that
histograms can be accumulated per bin instead of sorting every feature at
every split.

For each column we compute cut points with weighted percentiles (or use the
raw distinct values when a column has few of them), terminate them with the
dtype's maximum value as a sentinel and map every entry to a bin:

- bin 0 holds missing (non-finite) values,
- bin ``k >= 1`` holds values in ``(cuts[k-2], cuts[k-1]]`` where
  ``cuts[-1]`` is taken as ``-inf``.

If we generated the cuts ``[0.0, 7.9, 14.5, 31.0, MAX]`` a value of ``-3.0``
or ``0.0`` lands in bin 1, ``10.0`` in bin 3 and ``NaN`` in bin 0. A split
"bin <= 3" translates back to "feature <= 14.5".
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from .data import FLOAT_DTYPES, Matrix, check_sample_weight, resolve_float_dtype
from .errors import NoVarianceError
from .utils import ArrayLike, log_debug, log_message, map_bins, percentiles_nunique


# Bin indices are stored as uint16
MAX_BIN = int(np.iinfo(np.uint16).max)

# Largest fraction count bin_matrix uses. The distinct-values branch then
# yields at most MAX_BIN - 1 cuts, so with the sentinel the top bin index
# is still MAX_BIN.
MAX_FRACTIONS = MAX_BIN - 2


# =============================================================================
# Binned Data Container
# =============================================================================

@dataclass(frozen=True, eq=False)
class BinnedData:
    """
    Result of binning a matrix.

    Attributes
    ----------
    binned_data : Matrix
        Bin indices (uint16), same shape as the source matrix.
    cuts : list of np.ndarray
        Strictly increasing cut table for each column, ending with the
        dtype's maximum value.
    nunique : list of int
        Number of distinct finite values in each column.
    """
    binned_data: Matrix
    cuts: List[np.ndarray]
    nunique: List[int]

    @property
    def n_features(self) -> int:
        return len(self.cuts)

    def n_bins(self, col: int) -> int:
        """Number of bins of a column, the missing bin included."""
        return len(self.cuts[col]) + 1

    def bin_threshold(self, col: int, bin_idx: int) -> float:
        """
        Translate a split on bin index back into a feature threshold.

        Rows in bins ``1..bin_idx`` are exactly the non-missing rows with
        ``value <= threshold``.
        """
        cuts = self.cuts[col]
        if not 1 <= bin_idx <= len(cuts):
            raise ValueError(
                f"bin_idx must be in [1, {len(cuts)}] for feature {col}, "
                f"got {bin_idx}"
            )
        return cuts[bin_idx - 1].item()


# =============================================================================
# Cut Computation
# =============================================================================

def _check_nbins(nbins: int) -> int:
    if isinstance(nbins, bool) or not isinstance(nbins, (int, np.integer)):
        raise TypeError(f"nbins must be an integer, got {type(nbins).__name__}")
    if not 1 <= nbins <= MAX_BIN:
        raise ValueError(f"nbins must be in [1, {MAX_BIN}], got {nbins}")
    return int(nbins)


def bin_percentiles(nbins: int) -> np.ndarray:
    """Evenly spaced fractions ``0, 1/nbins, ..., (nbins-1)/nbins``."""
    nbins = _check_nbins(nbins)
    return np.arange(nbins, dtype=np.float64) / nbins


def percentiles_or_values(
    v: np.ndarray,
    sample_weight: np.ndarray,
    pcts: np.ndarray,
) -> Tuple[np.ndarray, int]:
    """
    Compute candidate cuts for one column of finite values.

    If there are no more than ``len(pcts) + 1`` distinct values, the sorted
    distinct values themselves are returned. Otherwise weighted percentiles
    are computed.

    Returns
    -------
    cuts : np.ndarray
        Sorted candidate cuts, possibly with repeats.
    nunique : int
        Number of distinct values in ``v``.
    """
    unique_values = np.unique(v)
    if len(unique_values) <= len(pcts) + 1:
        return unique_values, len(unique_values)
    return percentiles_nunique(v, sample_weight, pcts)


def column_cuts(
    v: np.ndarray,
    sample_weight: np.ndarray,
    pcts: np.ndarray,
    column: Optional[int] = None,
) -> Tuple[np.ndarray, int]:
    """
    Build the final cut table of a single column.

    Missing values are dropped together with their weights, the sentinel is
    appended and consecutive duplicates are removed.

    Raises
    ------
    NoVarianceError
        If fewer than 3 cuts remain.
    """
    finite = np.isfinite(v)
    values = v[finite]
    weights = sample_weight[finite]

    cuts, nunique = percentiles_or_values(values, weights, pcts)

    sentinel = np.finfo(v.dtype).max
    cuts = np.append(cuts.astype(v.dtype, copy=False), v.dtype.type(sentinel))
    cuts = cuts[np.concatenate(([True], cuts[1:] != cuts[:-1]))]

    if len(cuts) < 3:
        raise NoVarianceError(column)
    return cuts, nunique


# =============================================================================
# Bin Mapping
# =============================================================================

def bin_column(values: np.ndarray, cuts: np.ndarray) -> np.ndarray:
    """
    Map a column of values to bin indices with a given cut table.

    Non-finite values go to bin 0, finite values to ``1 + #{cuts < v}``.

    Raises
    ------
    ValueError
        If the cut table is too long for bin indices to fit in uint16.
    """
    if len(cuts) > MAX_BIN:
        raise ValueError(
            f"Cut table has {len(cuts)} entries, bin indices would not fit "
            f"in uint16 (max {MAX_BIN})."
        )
    return map_bins(cuts, values)


def bin_matrix_from_cuts(
    data: Union[Matrix, ArrayLike],
    cuts: Sequence[np.ndarray],
) -> Matrix:
    """
    Convert a matrix of data into a binned matrix with existing cuts.

    Parameters
    ----------
    data : Matrix or array-like of shape (n_rows, n_cols)
        Numeric data to be binned.
    cuts : sequence of np.ndarray
        Cut table of each column, as produced by :func:`bin_matrix`.

    Returns
    -------
    binned : Matrix
        uint16 bin indices, same shape as ``data``.
    """
    if not isinstance(data, Matrix):
        data = Matrix.from_array(data)

    if len(cuts) != data.cols:
        raise ValueError(
            f"Got {len(cuts)} cut tables for a matrix with {data.cols} columns."
        )

    binned = np.empty(data.rows * data.cols, dtype=np.uint16)
    for col, col_cuts in enumerate(cuts):
        if len(col_cuts) > MAX_BIN:
            raise ValueError(
                f"Feature {col} has {len(col_cuts)} cuts, bin indices would "
                f"not fit in uint16 (max {MAX_BIN})."
            )
        start = col * data.rows
        binned[start:start + data.rows] = bin_column(data.get_col(col), col_cuts)

    return Matrix(binned, data.rows, data.cols)


def bin_matrix(
    data: Union[Matrix, ArrayLike],
    sample_weight: Optional[ArrayLike] = None,
    nbins: int = 256,
    *,
    verbose: int = 0,
) -> BinnedData:
    """
    Bin a numeric matrix.

    Parameters
    ----------
    data : Matrix or array-like of shape (n_rows, n_cols)
        Numeric data to be binned. Non-finite values are treated as missing.
    sample_weight : array-like of shape (n_rows,) or None
        Instance weights for each row. ``None`` weights every row by 1.
    nbins : int, default=256
        Number of percentile bins each column should be binned into, in
        ``[1, MAX_BIN]``. Requests above ``MAX_FRACTIONS`` are served with
        ``MAX_FRACTIONS`` fractions so bin indices fit in uint16.
    verbose : int, default=0
        Verbosity level.

    Returns
    -------
    binned : BinnedData
        Bin indices, cut tables and distinct counts of every column.

    Raises
    ------
    NoVarianceError
        If any column has no usable variance. No partial result is returned.
    """
    if not isinstance(data, Matrix):
        data = Matrix.from_array(data)
    elif data.dtype not in FLOAT_DTYPES:
        data = Matrix(data.data.astype(resolve_float_dtype(data.dtype)), data.rows, data.cols)

    nbins = _check_nbins(nbins)
    pcts = bin_percentiles(min(nbins, MAX_FRACTIONS))
    weights = check_sample_weight(sample_weight, data.rows, dtype=data.dtype)

    cuts = []
    nunique = []
    for col in range(data.cols):
        col_cuts, col_nunique = column_cuts(data.get_col(col), weights, pcts, column=col)
        log_debug(
            f"Feature {col}: {col_nunique} distinct values, {len(col_cuts)} cuts",
            verbose=verbose,
        )
        cuts.append(col_cuts)
        nunique.append(col_nunique)

    binned_data = bin_matrix_from_cuts(data, cuts)

    log_message(
        f"Binned {data.rows} rows x {data.cols} features into at most {nbins} bins",
        verbose=verbose,
    )

    return BinnedData(binned_data=binned_data, cuts=cuts, nunique=nunique)


# =============================================================================
# Quantizer
# =============================================================================

class Quantizer:
    """
    Learns cut tables on training data and bins any matrix with them.

    Parameters
    ----------
    nbins : int, default=256
        Number of percentile bins per feature.
    verbose : int, default=0
        Verbosity level.

    Attributes
    ----------
    cuts_ : list of np.ndarray
        Cut table for each feature.
    nunique_ : list of int
        Number of distinct finite values per feature.
    n_features_ : int
        Number of features seen during fit.
    """

    def __init__(self, nbins: int = 256, verbose: int = 0):
        self.nbins = _check_nbins(nbins)
        self.verbose = verbose

        # State
        self.cuts_: Optional[List[np.ndarray]] = None
        self.nunique_: Optional[List[int]] = None
        self.n_features_: Optional[int] = None

    def fit_transform(
        self,
        X: Union[Matrix, ArrayLike],
        sample_weight: Optional[ArrayLike] = None,
    ) -> BinnedData:
        """Learn the cuts on ``X`` and return its binned form."""
        binned = bin_matrix(X, sample_weight, self.nbins, verbose=self.verbose)
        self.cuts_ = binned.cuts
        self.nunique_ = binned.nunique
        self.n_features_ = binned.n_features
        return binned

    def fit(
        self,
        X: Union[Matrix, ArrayLike],
        sample_weight: Optional[ArrayLike] = None,
    ) -> "Quantizer":
        """Learn the cuts on ``X``."""
        self.fit_transform(X, sample_weight)
        return self

    def transform(self, X: Union[Matrix, ArrayLike]) -> Matrix:
        """Bin ``X`` with the learned cuts."""
        if self.cuts_ is None:
            raise RuntimeError("Quantizer has not been fitted yet.")
        return bin_matrix_from_cuts(X, self.cuts_)

    def __repr__(self) -> str:
        return f"Quantizer(nbins={self.nbins}, verbose={self.verbose})"


__all__ = [
    "MAX_BIN",
    "MAX_FRACTIONS",
    "BinnedData",
    "bin_percentiles",
    "percentiles_or_values",
    "column_cuts",
    "bin_column",
    "bin_matrix_from_cuts",
    "bin_matrix",
    "Quantizer",
]
