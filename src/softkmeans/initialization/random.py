"""
Random seeding for soft k-means.

Selects random points from the dataset as initial cluster centers.
"""

from typing import List, Optional
import torch
from torch import Tensor

from ..base.data_structures import ClusterState, ClusterIdAllocator
from ..utils.validation import validate_points


class RandomSeeds:
    """Random initialization by selecting points from the dataset.

    Selects n_clusters distinct points (without replacement) and turns each
    into a ClusterState with a fresh id from the run's allocator.
    """

    def __init__(self, random_state: Optional[int] = None):
        """
        Args:
            random_state: Seed for a private generator; None uses torch's global RNG
        """
        self.random_state = random_state

    def initialize(self, points: Tensor, n_clusters: int,
                   allocator: ClusterIdAllocator,
                   dtype: Optional[torch.dtype] = None) -> List[ClusterState]:
        """Initialize clusters with random points.

        Args:
            points: (n, d) data points
            n_clusters: Number of clusters
            allocator: Id source for the run
            dtype: Floating point type of the centers

        Returns:
            List of n_clusters ClusterStates, ids in allocation order
        """
        points = validate_points(points, dtype=dtype)
        n_points = points.shape[0]

        if n_clusters < 1:
            raise ValueError(f"n_clusters must be >= 1, got {n_clusters}")
        if n_clusters > n_points:
            raise ValueError(f"Cannot create {n_clusters} clusters from {n_points} points")

        generator = None
        if self.random_state is not None:
            generator = torch.Generator()
            generator.manual_seed(self.random_state)

        indices = torch.randperm(n_points, generator=generator)[:n_clusters]

        return [ClusterState.seed(points[idx].clone(), allocator) for idx in indices.tolist()]
