"""
Euclidean distance measures.

The most common choice for fuzzy k-means; the squared variant is cheaper and
gives the same ordering, but changes the membership weights since the
weighting formula uses distance ratios.
"""

import torch
from torch import Tensor

from ..base.interfaces import DistanceMeasure


class EuclideanDistance(DistanceMeasure):
    """Euclidean distance ||x - c||."""

    name = 'euclidean'

    def compute(self, points: Tensor, center: Tensor) -> Tensor:
        """Compute Euclidean distances from points to center.

        Args:
            points: (n, d) tensor of points
            center: (d,) tensor

        Returns:
            (n,) tensor of distances
        """
        diff = points - center.unsqueeze(0)
        return torch.sqrt(torch.sum(diff * diff, dim=1))


class SquaredEuclideanDistance(DistanceMeasure):
    """Squared Euclidean distance ||x - c||²."""

    name = 'squared_euclidean'

    def compute(self, points: Tensor, center: Tensor) -> Tensor:
        diff = points - center.unsqueeze(0)
        return torch.sum(diff * diff, dim=1)


class WeightedEuclideanDistance(DistanceMeasure):
    """Weighted Euclidean distance with feature weights.

    Computes sqrt(sum_i w_i * (x_i - c_i)²) where w_i are feature weights.
    """

    # Needs per-feature weights, so it is not resolvable by name
    name = ''

    def __init__(self, weights: Tensor, squared: bool = False):
        """
        Args:
            weights: (d,) tensor of non-negative feature weights
            squared: Whether to return squared distances
        """
        if not isinstance(weights, Tensor):
            weights = torch.as_tensor(weights, dtype=torch.float64)
        if weights.dim() != 1:
            raise ValueError(f"Feature weights must be 1D, got {weights.dim()}D")
        if (weights < 0).any():
            raise ValueError("Feature weights must be non-negative")
        self.weights = weights
        self.squared = squared

    def compute(self, points: Tensor, center: Tensor) -> Tensor:
        weights = self.weights.to(device=points.device, dtype=points.dtype)

        diff = points - center.unsqueeze(0)
        squared_distances = torch.sum(weights.unsqueeze(0) * diff * diff, dim=1)

        if self.squared:
            return squared_distances
        else:
            return torch.sqrt(squared_distances)

    def __repr__(self) -> str:
        return f"WeightedEuclideanDistance(dimension={self.weights.shape[0]}, squared={self.squared})"
