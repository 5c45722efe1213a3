"""Regression module for machine learning algorithms."""

from ._linear import LinearRegression

__all__ = ['LinearRegression']
