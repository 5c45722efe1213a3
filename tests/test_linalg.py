"""
Tests for the linear algebra module.

Tests cover:
- vector helpers: norms, permutation, allocation
- Matrix: views, metadata, reshaping operations, pandas bridge
- Tensor and convolve: layout, padding, known correlations
"""

import numpy as np
import pandas as pd
import pytest

from learnml.base import DimensionError
from learnml.linalg import (
    ColumnInfo,
    Matrix,
    Tensor,
    conv_padding,
    convolve,
    new_vector,
    norm,
    outer,
    permute,
)


class TestVector:
    """Test suite for the dense vector helpers."""

    def test_norms(self):
        """p = 0 selects the infinity norm; 1 and 2 are the usual norms."""
        v = np.array([3.0, -4.0, 1.0])

        assert norm(v, 0) == 4.0
        assert norm(v, 1) == 8.0
        assert norm(v, 2) == pytest.approx(np.sqrt(26.0))
        assert norm(v, 3) == pytest.approx((27 + 64 + 1) ** (1 / 3))

    def test_norm_of_empty_vector(self):
        assert norm(np.array([]), 2) == 0.0

    def test_new_vector_copies(self):
        """new_vector should own its storage."""
        source = np.array([1.0, 2.0])
        v = new_vector(2, source)
        v[0] = 10.0

        assert source[0] == 1.0
        assert np.array_equal(new_vector(3), np.zeros(3))

    def test_new_vector_wrong_length(self):
        with pytest.raises(DimensionError):
            new_vector(3, [1.0, 2.0])

    def test_outer(self):
        result = outer([1.0, 2.0], [3.0, 4.0, 5.0])

        assert result.shape == (2, 3)
        assert np.array_equal(result[1], [6.0, 8.0, 10.0])

    def test_permute_in_place(self):
        """New element i should be old element perm[i]."""
        v = np.array([10.0, 20.0, 30.0])
        result = permute(v, [2, 0, 1])

        assert result is v
        assert np.array_equal(v, [30.0, 10.0, 20.0])

    def test_permute_rejects_non_permutation(self):
        with pytest.raises(ValueError):
            permute(np.zeros(3), [0, 0, 1])


class TestMatrix:
    """Test suite for the row-major Matrix."""

    def test_rejects_empty_shape(self):
        with pytest.raises(ValueError):
            Matrix(0, 3)

    def test_rejects_wrong_value_count(self):
        with pytest.raises(DimensionError):
            Matrix(2, 2, [1.0, 2.0, 3.0])

    def test_row_is_a_view(self):
        """Writing through row(i) should change the matrix."""
        m = Matrix(2, 3, np.arange(6))
        m.row(1)[0] = 100.0

        assert m[1, 0] == 100.0
        assert m.data[3] == 100.0

    def test_col_is_a_copy(self):
        m = Matrix(2, 2, [1.0, 2.0, 3.0, 4.0])
        column = m.col(1)
        column[0] = -1.0

        assert np.array_equal(m.col(1), [2.0, 4.0])

    def test_fill_col_negative_index(self):
        m = Matrix(3, 2)
        m.fill_col(-1, 7.0)

        assert np.array_equal(m.values[:, 1], [7.0, 7.0, 7.0])
        assert np.array_equal(m.values[:, 0], [0.0, 0.0, 0.0])

    def test_swap_cols_moves_metadata(self):
        m = Matrix(1, 2, [1.0, 2.0])
        m.columns[0] = ColumnInfo("a")
        m.columns[1] = ColumnInfo("b", "nominal", ["x", "y"])
        m.swap_cols(0, 1)

        assert np.array_equal(m.row(0), [2.0, 1.0])
        assert [c.name for c in m.columns] == ["b", "a"]

    def test_swap_and_permute_rows(self):
        m = Matrix(3, 1, [1.0, 2.0, 3.0])
        m.swap_rows(0, 2)
        assert np.array_equal(m.col(0), [3.0, 2.0, 1.0])

        m.permute_rows([1, 2, 0])
        assert np.array_equal(m.col(0), [2.0, 1.0, 3.0])

    def test_permute_cols(self):
        m = Matrix(2, 3, np.arange(6))
        m.permute_cols([2, 0, 1])

        assert np.array_equal(m.row(0), [2.0, 0.0, 1.0])
        assert [c.name for c in m.columns] == ["col_2", "col_0", "col_1"]

    def test_transpose_and_scale(self):
        m = Matrix(2, 3, np.arange(6)).scale(2.0)
        t = m.transpose()

        assert t.shape == (3, 2)
        assert np.array_equal(t.values, 2.0 * np.arange(6).reshape(2, 3).T)

    def test_add_cols_keeps_data(self):
        m = Matrix(2, 2, [1.0, 2.0, 3.0, 4.0])
        m.add_cols(1)

        assert m.shape == (2, 3)
        assert np.array_equal(m.values, [[1.0, 2.0, 0.0], [3.0, 4.0, 0.0]])
        assert m.columns[2].name == "col_2"

    def test_copy_is_independent(self):
        m = Matrix(2, 2, [1.0, 2.0, 3.0, 4.0])
        c = m.copy()
        c[0, 0] = 9.0

        assert m[0, 0] == 1.0
        assert m.equal(np.array([[1.0, 2.0], [3.0, 4.0]]))
        assert not m.equal(c)

    def test_random_is_seeded(self):
        a = Matrix(3, 3).random(7)
        b = Matrix(3, 3).random(7)

        assert a.equal(b)
        assert not a.equal(Matrix(3, 3).random(8))

    def test_numpy_interop(self):
        """numpy routines should accept a Matrix directly."""
        m = Matrix(2, 2, [1.0, 2.0, 3.0, 4.0])

        assert np.array_equal(np.asarray(m) @ np.ones(2), [3.0, 7.0])

    def test_frame_round_trip(self):
        """Categorical and datetime columns should survive the pandas bridge."""
        frame = pd.DataFrame({
            "x": [1.5, 2.5, 3.5],
            "color": ["b", "a", "b"],
            "day": pd.to_datetime(["1970-01-01", "1970-01-02", "1970-01-03"]),
        })
        m = Matrix.from_frame(frame, relation="colors")

        assert m.relation == "colors"
        assert [c.kind for c in m.columns] == ["real", "nominal", "date"]
        assert m.columns[1].categories == ["a", "b"]
        assert np.array_equal(m.col(1), [1.0, 0.0, 1.0])
        assert np.array_equal(m.col(2), [0.0, 86400.0, 172800.0])
        assert m.columns[1].value_name(0.0) == "a"

        back = m.to_frame()
        assert list(back["x"]) == [1.5, 2.5, 3.5]
        assert list(back["color"]) == ["b", "a", "b"]
        assert list(back["day"]) == list(frame["day"])

    def test_invalid_column_kind(self):
        with pytest.raises(ValueError):
            ColumnInfo("a", "complex")


class TestTensor:
    """Test suite for Tensor and the convolution kernel."""

    def test_first_axis_fastest(self):
        data = np.arange(6.0)
        t = Tensor(data, (2, 3))

        assert t.array[1, 0] == 1.0
        assert t.array[0, 1] == 2.0
        t.array[1, 2] = -1.0
        assert data[5] == -1.0

    def test_size_mismatch(self):
        with pytest.raises(DimensionError):
            Tensor(np.zeros(5), (2, 3))

    def test_padding_rounds_toward_zero(self):
        assert conv_padding(4, 3, 4) == 1
        assert conv_padding(5, 3, 3) == 0
        assert conv_padding(5, 2, 3) == 0
        assert conv_padding(3, 4, 4) == 2

    def test_known_correlation(self):
        """out[x] = sum_k filt[k] * inp[x + k - 1] with zero padding."""
        inp = Tensor(np.array([1.0, 2.0, 3.0]), (3,))
        filt = Tensor(np.array([1.0, 0.0, -1.0]), (3,))
        out = Tensor(np.zeros(3), (3,))

        convolve(inp, filt, out)
        assert np.allclose(out.data, [-2.0, -2.0, 2.0])

    def test_flipped_filter(self):
        inp = Tensor(np.array([1.0, 2.0, 3.0]), (3,))
        filt = Tensor(np.array([1.0, 0.0, -1.0]), (3,))
        out = Tensor(np.zeros(3), (3,))

        convolve(inp, filt, out, flip_filter=True)
        assert np.allclose(out.data, [2.0, 2.0, -2.0])

    def test_accumulates(self):
        inp = Tensor(np.ones(4), (4,))
        filt = Tensor(np.ones(1), (1,))
        out = Tensor(np.ones(4), (4,))

        convolve(inp, filt, out)
        convolve(inp, filt, out)
        assert np.allclose(out.data, 3.0)

    def test_all_ones_interior_equals_filter_volume(self):
        inp = Tensor(np.ones(25), (5, 5))
        filt = Tensor(np.ones(9), (3, 3))
        out = Tensor(np.zeros(25), (5, 5))

        convolve(inp, filt, out)
        result = out.array
        assert np.allclose(result[1:4, 1:4], 9.0)
        assert result[0, 0] == 4.0
        assert result[0, 2] == 6.0

    def test_three_dimensional(self):
        inp = Tensor(np.ones(27), (3, 3, 3))
        filt = Tensor(np.ones(27), (3, 3, 3))
        out = Tensor(np.zeros(1), (1, 1, 1))

        convolve(inp, filt, out)
        assert out.data[0] == 27.0

    def test_stride(self):
        """With stride 2 and a unit filter every other input is picked."""
        inp = Tensor(np.arange(5.0), (5,))
        filt = Tensor(np.ones(1), (1,))
        out = Tensor(np.zeros(3), (3,))

        convolve(inp, filt, out, stride=2)
        assert np.allclose(out.data, [0.0, 2.0, 4.0])

    def test_rank_mismatch(self):
        with pytest.raises(DimensionError):
            convolve(Tensor(np.ones(4), (4,)), Tensor(np.ones(4), (2, 2)),
                     Tensor(np.ones(4), (4,)))
