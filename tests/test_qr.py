"""
Tests for the pivoted Householder QR and the least-squares solvers.
"""

import numpy as np
import pytest

from learnml.base import DimensionError
from learnml.linalg import householder_qr, least_squares, ols


def _regression_data(rows, weights, bias, noise, seed=0):
    rng = np.random.default_rng(seed)
    features = rng.normal(size=(rows, len(weights)))
    labels = features @ np.asarray(weights) + bias + noise * rng.normal(size=rows)
    return features, labels


class TestHouseholderQR:
    """Test suite for the factorisation itself."""

    def test_reconstructs_permuted_matrix(self):
        """Q [R; 0] should equal the row-sorted, column-pivoted input."""
        rng = np.random.default_rng(1)
        a = rng.normal(size=(6, 4))
        qr = householder_qr(a)

        assert qr.rank == 4
        stacked = np.zeros((6, 4))
        stacked[:4] = qr.r
        rebuilt = qr.apply_q(stacked)
        assert np.allclose(rebuilt, a[qr.row_perm][:, qr.col_perm])

    def test_r_is_upper_triangular(self):
        rng = np.random.default_rng(2)
        qr = householder_qr(rng.normal(size=(5, 3)))

        assert np.allclose(np.tril(qr.r, -1), 0.0)

    def test_rows_sorted_by_infinity_norm(self):
        a = np.array([[0.1, 0.2], [3.0, -4.0], [1.0, 0.5]])
        qr = householder_qr(a)

        assert list(qr.row_perm) == [1, 2, 0]

    def test_q_is_orthogonal(self):
        rng = np.random.default_rng(3)
        a = rng.normal(size=(5, 3))
        qr = householder_qr(a)
        b = rng.normal(size=(5, 2))

        assert np.allclose(qr.apply_q(qr.apply_qt(b)), b)
        assert np.allclose(np.linalg.norm(qr.apply_qt(b), axis=0),
                           np.linalg.norm(b, axis=0))

    def test_duplicated_column_lowers_rank(self):
        a = np.array([
            [5.0, 5.0, 0.0],
            [0.0, 0.0, 3.0],
            [0.0, 0.0, 0.0],
            [0.0, 0.0, 0.0],
        ])
        qr = householder_qr(a)

        assert qr.rank == 2

    def test_zero_matrix_has_rank_zero(self):
        assert householder_qr(np.zeros((3, 2))).rank == 0

    def test_non_finite_column(self):
        a = np.array([[1.0, np.nan], [2.0, 1.0]])
        with pytest.raises(ValueError):
            householder_qr(a)


class TestLeastSquares:
    """Test suite for least_squares and ols."""

    def test_matches_numpy_full_rank(self):
        rng = np.random.default_rng(4)
        a = rng.normal(size=(12, 4))
        y = rng.normal(size=12)

        expected = np.linalg.lstsq(a, y, rcond=None)[0]
        assert np.allclose(least_squares(a, y), expected)

    def test_multiple_right_hand_sides(self):
        """Each column of Y should be solved as if it were alone."""
        rng = np.random.default_rng(5)
        a = rng.normal(size=(10, 3))
        y = rng.normal(size=(10, 2))

        x = least_squares(a, y)
        assert x.shape == (3, 2)
        assert np.allclose(x[:, 0], least_squares(a, y[:, 0]))
        assert np.allclose(x[:, 1], least_squares(a, y[:, 1]))

    def test_ill_scaled_rows(self):
        rng = np.random.default_rng(6)
        a = rng.normal(size=(8, 3))
        a[:4] *= 1e6
        x_true = np.array([1.0, -2.0, 0.5])

        assert np.allclose(least_squares(a, a @ x_true), x_true)

    def test_rank_deficient_minimum_norm(self):
        """A duplicated column should give the smallest exact solution."""
        a = np.array([
            [5.0, 5.0, 0.0],
            [0.0, 0.0, 3.0],
            [0.0, 0.0, 0.0],
            [0.0, 0.0, 0.0],
        ])
        y = np.array([10.0, 3.0, 0.0, 0.0])

        x = least_squares(a, y)
        assert np.allclose(a @ x, y)
        assert np.allclose(x, [1.0, 1.0, 1.0])
        # (2, 0, 1) also solves the system exactly but is longer
        assert np.linalg.norm(x) < np.linalg.norm([2.0, 0.0, 1.0])
        assert np.allclose(x, np.linalg.lstsq(a, y, rcond=None)[0])

    def test_requires_tall_matrix(self):
        with pytest.raises(DimensionError):
            least_squares(np.ones((2, 3)), np.ones(2))

    def test_row_mismatch(self):
        with pytest.raises(DimensionError):
            least_squares(np.ones((4, 2)), np.ones(3))

    def test_ols_bias_is_last_row(self):
        x = np.array([[0.0], [1.0], [2.0], [3.0]])
        y = 3.0 * x[:, 0] + 2.0

        w = ols(x, y)
        assert w.shape == (2, 1)
        assert np.allclose(w[:, 0], [3.0, 2.0])

    def test_ols_recovers_weights_under_noise(self):
        """Noise with std 0.1 should leave every weight within 0.05."""
        weights = [1.5, -2.0, 0.25, 3.0]
        features, labels = _regression_data(200, weights, 0.7, 0.1)

        w = ols(features, labels)[:, 0]
        assert np.max(np.abs(w - np.append(weights, 0.7))) < 0.05

    def test_ols_multiple_labels(self):
        rng = np.random.default_rng(8)
        features = rng.normal(size=(20, 3))
        true = rng.normal(size=(4, 2))
        labels = features @ true[:-1] + true[-1]

        assert np.allclose(ols(features, labels), true)

    def test_ols_ridge_matches_normal_equations(self):
        """The ridge term should shrink feature weights but never the bias."""
        features, labels = _regression_data(30, [2.0, -1.0], 5.0, 0.3, seed=9)
        l2 = 4.0

        design = np.column_stack([features, np.ones(30)])
        penalty = np.diag([l2, l2, 0.0])
        expected = np.linalg.solve(design.T @ design + penalty, design.T @ labels)

        w = ols(features, labels, l2=l2)[:, 0]
        assert np.allclose(w, expected)
        assert np.linalg.norm(w[:2]) < np.linalg.norm(ols(features, labels)[:2, 0])

    def test_ols_negative_ridge(self):
        with pytest.raises(ValueError):
            ols(np.ones((3, 1)), np.ones(3), l2=-1.0)
