"""
Core interfaces for the soft k-means components.

This module defines the abstract base classes that pluggable pieces must
implement: the distance measure consumed by membership weighting and
convergence testing, and the convergence criterion shape.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any
import torch
from torch import Tensor


class DistanceMeasure(ABC):
    """Abstract base class for point-to-center distances.

    Implementations must be deterministic and return non-negative values.
    Instances are shared read-only by every cluster and worker of a run.
    """

    #: Registry name used by configuration mappings
    name: str = ''

    @abstractmethod
    def compute(self, points: Tensor, center: Tensor) -> Tensor:
        """Compute distances from points to a single center.

        Args:
            points: (n, d) tensor of points
            center: (d,) tensor

        Returns:
            (n,) tensor of non-negative distances
        """
        pass

    def distance(self, a: Tensor, b: Tensor) -> float:
        """Distance between two vectors as a Python float."""
        return float(self.compute(a.reshape(1, -1), b.reshape(-1))[0])

    def pairwise(self, points: Tensor, centers: Tensor) -> Tensor:
        """Distances from every point to every center.

        Args:
            points: (n, d) tensor
            centers: (K, d) tensor

        Returns:
            (n, K) tensor of distances
        """
        columns = [self.compute(points, centers[k]) for k in range(centers.shape[0])]
        if not columns:
            return torch.zeros(points.shape[0], 0, dtype=points.dtype, device=points.device)
        return torch.stack(columns, dim=1)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class ConvergenceCriterion(ABC):
    """Abstract base class for convergence checking."""

    def __init__(self):
        self.history = []

    @abstractmethod
    def check(self, current_state: Dict[str, Any]) -> bool:
        """Check if the monitored state has converged.

        Args:
            current_state: Dictionary containing the state to test

        Returns:
            True if converged, False otherwise
        """
        pass

    def reset(self):
        """Reset convergence history."""
        self.history = []
