"""
Test suite for the Matrix container and input validation.
"""

import numpy as np
import pandas as pd
import pytest

from gbmcore.data import Matrix, check_array, check_sample_weight


class TestMatrix:
    """Tests for the column-major Matrix."""

    def test_column_major_layout(self):
        m = Matrix(np.arange(6.0), rows=2, cols=3)
        np.testing.assert_array_equal(m.get_col(0), [0.0, 1.0])
        np.testing.assert_array_equal(m.get_col(1), [2.0, 3.0])
        assert m.get(1, 2) == 5.0
        assert m.shape == (2, 3)

    def test_from_array(self):
        X = np.array([[1.0, 2.0], [3.0, 4.0], [5.0, 6.0]])
        m = Matrix.from_array(X)

        np.testing.assert_array_equal(m.data, [1.0, 3.0, 5.0, 2.0, 4.0, 6.0])
        np.testing.assert_array_equal(m.to_array(), X)

    def test_from_1d_array_is_single_column(self):
        m = Matrix.from_array([1.0, 2.0, 3.0])
        assert m.shape == (3, 1)

    def test_buffer_length_mismatch(self):
        with pytest.raises(ValueError):
            Matrix(np.arange(5.0), rows=2, cols=3)

    def test_is_immutable(self):
        source = np.arange(4.0)
        m = Matrix(source, rows=2, cols=2)

        with pytest.raises(ValueError):
            m.data[0] = 10.0

        # The source buffer is copied
        source[0] = 10.0
        assert m.data[0] == 0.0

    def test_column_out_of_range(self):
        m = Matrix(np.arange(4.0), rows=2, cols=2)
        with pytest.raises(IndexError):
            m.get_col(2)

    def test_dtype_is_preserved_for_float32(self):
        m = Matrix.from_array(np.ones((3, 2), dtype=np.float32))
        assert m.dtype == np.float32

    def test_integers_are_promoted(self):
        m = Matrix.from_array(np.ones((3, 2), dtype=np.int64))
        assert m.dtype == np.float64


class TestCheckArray:
    """Tests for check_array."""

    def test_keeps_missing_values(self):
        X = check_array([[1.0, np.nan], [np.inf, 2.0]])
        assert np.isnan(X[0, 1])
        assert np.isinf(X[1, 0])

    def test_rejects_3d(self):
        with pytest.raises(ValueError):
            check_array(np.ones((2, 2, 2)))

    def test_rejects_empty(self):
        with pytest.raises(ValueError):
            check_array(np.empty((0, 3)))

    def test_rejects_non_float_dtype_request(self):
        with pytest.raises(ValueError):
            check_array([[1.0]], dtype=np.int32)

    def test_rejects_object_arrays(self):
        with pytest.raises(TypeError):
            check_array(np.array([["a", None]], dtype=object))

    def test_accepts_dataframe(self):
        df = pd.DataFrame({"a": [1.0, 3.0], "b": [2.0, np.nan]})
        X = check_array(df)
        assert X.shape == (2, 2)
        assert np.isnan(X[1, 1])

    def test_accepts_series(self):
        X = check_array(pd.Series([1, 2, 3]))
        assert X.shape == (3, 1)
        assert X.dtype == np.float64

    def test_matrix_from_dataframe(self):
        df = pd.DataFrame({"a": [1.0, 2.0, 3.0], "b": [4.0, 5.0, 6.0]})
        m = Matrix.from_array(df)
        np.testing.assert_array_equal(m.get_col(1), [4.0, 5.0, 6.0])


class TestCheckSampleWeight:
    """Tests for check_sample_weight."""

    def test_none_gives_ones(self):
        w = check_sample_weight(None, 4)
        np.testing.assert_array_equal(w, np.ones(4))

    def test_dtype(self):
        w = check_sample_weight([1, 2, 3], 3, dtype=np.float32)
        assert w.dtype == np.float32

    @pytest.mark.parametrize(
        "weights",
        [
            [1.0, 2.0],
            [1.0, -1.0, 1.0],
            [1.0, np.nan, 1.0],
            [1.0, np.inf, 1.0],
            [0.0, 0.0, 0.0],
            [[1.0, 1.0, 1.0]],
        ],
    )
    def test_invalid_weights(self, weights):
        with pytest.raises(ValueError):
            check_sample_weight(weights, 3)
