# pylint: disable=missing-docstring
from abc import abstractmethod
from typing import Any
import numpy as np


class DimensionError(ValueError):
    """Raised when a buffer or matrix does not have the expected shape."""


def require(condition: bool, message: str, error=DimensionError):
    """Raise ``error(message)`` when ``condition`` does not hold."""
    if not condition:
        raise error(message)


# pylint: disable=too-many-instance-attributes, invalid-name line-too-long missing-docstring
class BaseLearner:
    """Supervised learner trained on row-aligned feature and label matrices."""

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def train(self, features: np.ndarray, labels: np.ndarray, *args, **kwargs) -> Any:
        """
        :param features: array of shape (N, d) with N being the number of samples and d being the number of feature dimensions
        :param labels: array of shape (N, k) with N being the number of samples as in the provided features and k being the number of target dimensions
        :return:
        """
        raise NotImplementedError

    @abstractmethod
    def predict(self, row: np.ndarray) -> np.ndarray:
        """
        :param row: one feature vector of shape (d,)
        :return: prediction of shape (k,)
        """
        raise NotImplementedError

    def predict_rows(self, features: np.ndarray) -> np.ndarray:
        """
        :param features: array of shape (N, d)
        :return: array of shape (N, k) with one prediction per row
        """
        features = np.asarray(features, dtype=float)
        return np.array([np.array(self.predict(row), copy=True) for row in features])

    def score(self, features: np.ndarray, labels: np.ndarray) -> float:
        """
        :param features: array of shape (N, d)
        :param labels: array of shape (N, k)
        :return: R2 score
        """
        labels = np.asarray(labels, dtype=float)
        predictions = self.predict_rows(features).reshape(labels.shape)

        ss_tot: float = float(np.sum((labels - np.mean(labels, axis=0)) ** 2))

        if ss_tot == 0:
            return 0.0  # Avoid division by zero

        ss_res: float = float(np.sum((labels - predictions) ** 2))

        return 1.0 - (ss_res / ss_tot)
