"""Iteration stages for soft k-means."""

from .fuzzy_kmeans import FuzzyKMeansStep

__all__ = [
    'FuzzyKMeansStep'
]
