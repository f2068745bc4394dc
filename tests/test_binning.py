"""
Test suite for quantile binning.
"""

import numpy as np
import pytest

from gbmcore.binning import (
    MAX_BIN,
    MAX_FRACTIONS,
    BinnedData,
    Quantizer,
    bin_column,
    bin_matrix,
    bin_matrix_from_cuts,
    bin_percentiles,
)
from gbmcore.data import Matrix
from gbmcore.errors import NoVarianceError


F64_MAX = np.finfo(np.float64).max


def _random_matrix(seed=0, n_rows=500, n_cols=4, missing_rate=0.1):
    rng = np.random.default_rng(seed)
    X = rng.normal(size=(n_rows, n_cols))
    X[:, 1] = np.round(X[:, 1] * 3)  # repeated values
    X[rng.random(X.shape) < missing_rate] = np.nan
    return X


# =============================================================================
# Cut Tables
# =============================================================================

def test_bin_percentiles_are_evenly_spaced():
    np.testing.assert_allclose(bin_percentiles(4), [0.0, 0.25, 0.5, 0.75])


def test_few_distinct_values_become_cuts():
    """Columns with few distinct values use them directly as cuts."""
    X = np.array([[1.0], [2.0], [3.0], [1.0], [2.0], [3.0], [np.nan]])
    binned = bin_matrix(X, None, 4)

    np.testing.assert_array_equal(binned.cuts[0], [1.0, 2.0, 3.0, F64_MAX])
    np.testing.assert_array_equal(
        binned.binned_data.get_col(0), [1, 2, 3, 1, 2, 3, 0]
    )
    assert binned.nunique == [3]


def test_percentile_cuts_example():
    X = np.arange(1.0, 11.0).reshape(-1, 1)
    binned = bin_matrix(X, np.ones(10), 4)

    np.testing.assert_array_equal(binned.cuts[0], [1.0, 3.0, 5.0, 8.0, F64_MAX])
    np.testing.assert_array_equal(
        binned.binned_data.get_col(0), [1, 2, 2, 3, 3, 4, 4, 4, 5, 5]
    )
    assert binned.nunique == [10]


def test_heavy_weight_keeps_cut_resolution():
    """A heavy row does not collapse the cuts that follow it."""
    X = np.arange(1.0, 7.0).reshape(-1, 1)
    w = np.array([1.0, 10.0, 1.0, 1.0, 1.0, 1.0])
    binned = bin_matrix(X, w, 4)

    np.testing.assert_array_equal(
        binned.cuts[0], [1.0, 2.0, 3.0, 4.0, F64_MAX]
    )
    np.testing.assert_array_equal(
        binned.binned_data.get_col(0), [1, 2, 3, 4, 5, 5]
    )


def test_cuts_are_strictly_increasing_and_end_with_sentinel():
    X = _random_matrix(seed=3)
    binned = bin_matrix(X, None, 16)
    for cuts in binned.cuts:
        assert np.all(np.diff(cuts) > 0)
        assert cuts[-1] == F64_MAX
        assert len(cuts) <= 16 + 2


def test_repeated_percentiles_are_deduplicated():
    X = np.concatenate([np.zeros(90), np.arange(1.0, 31.0)]).reshape(-1, 1)
    binned = bin_matrix(X, None, 20)
    cuts = binned.cuts[0]

    # Most of the 20 fractions fall on the repeated zero
    assert 3 <= len(cuts) < 20
    assert np.all(np.diff(cuts) > 0)
    assert cuts[0] == 0.0
    assert binned.nunique == [31]


def test_float32_uses_float32_sentinel():
    X = np.arange(1.0, 11.0, dtype=np.float32).reshape(-1, 1)
    binned = bin_matrix(X, None, 4)
    assert binned.cuts[0].dtype == np.float32
    assert binned.cuts[0][-1] == np.finfo(np.float32).max


# =============================================================================
# Bin Assignments
# =============================================================================

def test_round_trip_intervals():
    """Bin k holds values in (cuts[k-2], cuts[k-1]], bin 0 holds missing."""
    X = _random_matrix(seed=1)
    binned = bin_matrix(X, None, 20)

    for col in range(X.shape[1]):
        values = X[:, col]
        bins = binned.binned_data.get_col(col).astype(int)
        cuts = binned.cuts[col]

        np.testing.assert_array_equal(bins == 0, ~np.isfinite(values))

        finite = bins > 0
        upper = cuts[bins[finite] - 1]
        lower = np.where(bins[finite] >= 2, cuts[np.maximum(bins[finite] - 2, 0)], -np.inf)
        assert np.all(values[finite] <= upper)
        assert np.all(values[finite] > lower)


def test_infinite_values_are_missing():
    X = np.array([[1.0], [2.0], [np.inf], [3.0], [-np.inf], [4.0]])
    binned = bin_matrix(X, None, 8)
    bins = binned.binned_data.get_col(0)
    assert bins[2] == 0
    assert bins[4] == 0
    assert np.all(bins[[0, 1, 3, 5]] > 0)


def test_binned_data_is_uint16_column_major():
    X = _random_matrix(seed=2)
    binned = bin_matrix(X, None, 32)

    assert isinstance(binned.binned_data, Matrix)
    assert binned.binned_data.dtype == np.uint16
    assert binned.binned_data.shape == X.shape
    assert binned.n_features == X.shape[1]


def test_binning_is_idempotent():
    X = _random_matrix(seed=4)
    w = np.random.default_rng(4).uniform(0.5, 2.0, size=X.shape[0])

    first = bin_matrix(X, w, 25)
    second = bin_matrix(X, w, 25)

    for c1, c2 in zip(first.cuts, second.cuts):
        np.testing.assert_array_equal(c1, c2)
    np.testing.assert_array_equal(first.binned_data.data, second.binned_data.data)
    assert first.nunique == second.nunique


def test_accepts_matrix_input():
    X = _random_matrix(seed=5, missing_rate=0.0)
    from_array = bin_matrix(X, None, 10)
    from_matrix = bin_matrix(Matrix.from_array(X), None, 10)
    np.testing.assert_array_equal(from_array.binned_data.data, from_matrix.binned_data.data)


def test_weights_of_missing_rows_are_ignored():
    """Missing rows are dropped together with their weights."""
    X = np.array([[np.nan], [1.0], [2.0], [3.0], [4.0], [5.0], [6.0]])
    w_light = np.array([1.0, 1, 1, 1, 1, 1, 1])
    w_heavy = np.array([1000.0, 1, 1, 1, 1, 1, 1])

    light = bin_matrix(X, w_light, 2)
    heavy = bin_matrix(X, w_heavy, 2)
    np.testing.assert_array_equal(light.cuts[0], heavy.cuts[0])


# =============================================================================
# Failure Modes
# =============================================================================

def test_constant_column_has_no_variance():
    X = np.column_stack([np.arange(10.0), np.full(10, 5.0)])
    with pytest.raises(NoVarianceError) as exc_info:
        bin_matrix(X, None, 8)
    assert exc_info.value.column == 1


def test_all_missing_column_has_no_variance():
    X = np.column_stack([np.arange(10.0), np.full(10, np.nan)])
    with pytest.raises(NoVarianceError):
        bin_matrix(X, None, 8)


def test_no_variance_is_a_value_error():
    with pytest.raises(ValueError):
        bin_matrix(np.ones((5, 1)), None, 8)


@pytest.mark.parametrize("nbins", [0, -1, MAX_BIN + 1])
def test_invalid_nbins(nbins):
    with pytest.raises(ValueError):
        bin_matrix(np.arange(10.0).reshape(-1, 1), None, nbins)


def test_non_integer_nbins():
    with pytest.raises(TypeError):
        bin_matrix(np.arange(10.0).reshape(-1, 1), None, 2.5)


def test_weight_length_mismatch():
    with pytest.raises(ValueError):
        bin_matrix(np.arange(10.0).reshape(-1, 1), np.ones(9), 4)


def test_max_nbins_continuous_column():
    X = np.arange(70000.0).reshape(-1, 1)
    binned = bin_matrix(X, None, MAX_BIN)

    cuts = binned.cuts[0]
    bins = binned.binned_data.get_col(0)
    assert len(cuts) <= MAX_BIN
    assert bins.min() == 1
    assert bins.max() <= len(cuts)
    assert np.all(np.diff(bins.astype(np.int64)) >= 0)


def test_max_nbins_distinct_values_column():
    X = np.arange(float(MAX_FRACTIONS + 1)).reshape(-1, 1)
    binned = bin_matrix(X, None, MAX_BIN)

    # Every distinct value is its own cut
    assert len(binned.cuts[0]) == MAX_BIN
    bins = binned.binned_data.get_col(0)
    assert bins.max() == MAX_BIN - 1
    np.testing.assert_array_equal(bins, np.arange(1, MAX_BIN))


def test_bin_column_rejects_oversized_cut_table():
    cuts = np.arange(MAX_BIN + 1.0)
    with pytest.raises(ValueError):
        bin_column(np.array([1.0]), cuts)


# =============================================================================
# BinnedData Helpers
# =============================================================================

def test_bin_threshold_and_n_bins():
    X = np.arange(1.0, 11.0).reshape(-1, 1)
    binned = bin_matrix(X, None, 4)

    assert binned.n_bins(0) == 6
    assert binned.bin_threshold(0, 2) == 3.0

    values = X[:, 0]
    bins = binned.binned_data.get_col(0)
    np.testing.assert_array_equal(bins <= 2, values <= binned.bin_threshold(0, 2))

    with pytest.raises(ValueError):
        binned.bin_threshold(0, 0)


def test_bin_column_directly():
    cuts = np.array([1.0, 4.0, 8.0, F64_MAX])
    values = np.array([np.nan, 0.0, 1.0, 2.0, 4.0, 9.0])
    np.testing.assert_array_equal(bin_column(values, cuts), [0, 1, 1, 2, 2, 4])


def test_bin_matrix_from_cuts_column_mismatch():
    with pytest.raises(ValueError):
        bin_matrix_from_cuts(np.ones((3, 2)), [np.array([1.0, 2.0, F64_MAX])])


# =============================================================================
# Quantizer
# =============================================================================

class TestQuantizer:
    """Tests for the fit/transform wrapper."""

    def test_transform_matches_fit_transform(self):
        X = _random_matrix(seed=6)
        quantizer = Quantizer(nbins=12)
        binned = quantizer.fit_transform(X)

        assert isinstance(binned, BinnedData)
        np.testing.assert_array_equal(
            quantizer.transform(X).data, binned.binned_data.data
        )

    def test_unseen_values(self):
        X_train = np.arange(1.0, 11.0).reshape(-1, 1)
        quantizer = Quantizer(nbins=4).fit(X_train)

        X_new = np.array([[-100.0], [np.nan], [100.0], [3.0]])
        bins = quantizer.transform(X_new).get_col(0)

        # Below the training minimum still lands in the first real bin
        np.testing.assert_array_equal(bins, [1, 0, 5, 2])

    def test_fitted_attributes(self):
        X = _random_matrix(seed=7)
        quantizer = Quantizer(nbins=8).fit(X)
        assert quantizer.n_features_ == X.shape[1]
        assert len(quantizer.cuts_) == X.shape[1]
        assert len(quantizer.nunique_) == X.shape[1]

    def test_transform_before_fit(self):
        with pytest.raises(RuntimeError):
            Quantizer().transform(np.ones((2, 2)))

    def test_invalid_nbins(self):
        with pytest.raises(ValueError):
            Quantizer(nbins=0)
