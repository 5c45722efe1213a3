"""
learnml: neural networks and least squares from first principles.
"""

__version__ = "0.1.0"
