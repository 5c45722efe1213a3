# pylint: disable=missing-docstring
import numpy as np

from ..base import BaseLearner, require
from ..linalg import ols

_ERRORS = {
    "mse": lambda r: np.mean(r ** 2),
    "mae": lambda r: np.mean(np.abs(r)),
}

# pylint: disable=too-many-instance-attributes, invalid-name
class LinearRegression(BaseLearner):
    """Linear regression solved in closed form by pivoted Householder QR."""

    def __init__(self, l2: float = 0.0):
        require(l2 >= 0, f"l2 must be non-negative, got {l2}", error=ValueError)
        self.l2 = l2
        self.weights = None

    def train(self, features: np.ndarray, labels: np.ndarray, *args, **kwargs):
        """
        Fit the weights with ``ols``; the last row of ``weights`` is the bias.

        Parameters:
        features (np.ndarray): Training features of shape (N, d).
        labels (np.ndarray): Target values of shape (N,) or (N, k).

        Returns:
        self: Fitted model.
        """
        self.weights = ols(features, labels, l2=self.l2)
        return self

    def fit(self, X: np.ndarray, y: np.ndarray):
        return self.train(X, y)

    def _require_fitted(self):
        require(self.weights is not None,
                "LinearRegression: call train before predicting", error=ValueError)

    def predict(self, row: np.ndarray) -> np.ndarray:
        self._require_fitted()
        row = np.asarray(row, dtype=float).ravel()
        require(row.size == self.weights.shape[0] - 1,
                f"expected {self.weights.shape[0] - 1} features, got {row.size}")
        return row @ self.weights[:-1] + self.weights[-1]

    def predict_rows(self, features: np.ndarray) -> np.ndarray:
        self._require_fitted()
        features = np.asarray(features, dtype=float)
        if features.ndim == 1:
            features = features.reshape(-1, 1)
        return features @ self.weights[:-1] + self.weights[-1]

    def residuals(self, features: np.ndarray, labels: np.ndarray) -> np.ndarray:
        """``labels - predict_rows(features)``, shaped like ``labels``."""
        labels = np.asarray(labels, dtype=float)
        return labels - self.predict_rows(features).reshape(labels.shape)

    def evaluate(self, X: np.ndarray, y: np.ndarray, eval_type: str) -> float:
        """
        Average error over the rows of ``X``, every label column pooled.

        Parameters:
        X (np.ndarray): Feature rows of shape (N, d).
        y (np.ndarray): Labels of shape (N,) or (N, k).
        eval_type (str): 'mse' for the mean squared residual, 'mae' for the
            mean absolute one.

        Returns:
        float: The requested error.
        """
        if eval_type not in _ERRORS:
            raise ValueError(
                f"evaluate: unknown error '{eval_type}', expected one of {sorted(_ERRORS)}")
        return float(_ERRORS[eval_type](self.residuals(X, y)))
