"""
One iteration of fuzzy k-means over partitioned data.

The iteration is split into the stages a data-parallel job runs:

- map_partition: a worker soft-assigns its points against a read-only copy of
  the cluster centers and folds them into one PartialAccumulator per cluster.
- merge_partials: partials from all workers are summed per cluster id. The
  sum is commutative and associative, so worker count, partition order and
  merge-tree shape do not change the result beyond floating point rounding.
- reduce: each cluster absorbs its merged partial, tests convergence and
  moves its center to the centroid.

Points contribute u^m to a cluster, where u is their membership weight, so
the new center is Σ u^m x / Σ u^m.

Deciding how many iterations to run is up to the caller.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union
import warnings
import torch
from torch import Tensor

from ..base.config import RunConfig
from ..base.data_structures import ClusterState, PartialAccumulator
from ..assignments.fuzzy import (
    FuzzyMembership, ClusterObservation, assign_points, assign_point
)
from ..utils.codec import decode_cluster, parse_vector
from ..utils.convergence import CenterConvergence
from ..utils.validation import validate_points, validate_vector
from ..base.exceptions import DecodeError


class FuzzyKMeansStep:
    """Map, merge and reduce stages of one fuzzy k-means iteration.

    Parameters
    ----------
    config : RunConfig
        Fuzziness, convergence threshold and distance measure of the run
    verbose : int, default=0
        Verbosity level (0=silent, 1=per iteration, 2=per cluster)

    Examples
    --------
    >>> import torch
    >>> from softkmeans import RunConfig, ClusterIdAllocator, FuzzyKMeansStep
    >>> from softkmeans.initialization import RandomSeeds
    >>>
    >>> X = torch.randn(100, 2, dtype=torch.float64)
    >>> config = RunConfig(m=2.0, convergence_delta=1e-3)
    >>> clusters = RandomSeeds(0).initialize(X, 3, ClusterIdAllocator())
    >>> step = FuzzyKMeansStep(config)
    >>> clusters = step.step([X[:50], X[50:]], clusters)
    """

    def __init__(self, config: RunConfig, verbose: int = 0):
        self.config = config
        self.verbose = verbose
        self.membership = FuzzyMembership(config)
        self.evaluator = CenterConvergence(config)
        self.n_iter_ = 0

    # ------------------------------------------------------------------
    # Map side

    def map_partition(self, points: Union[Tensor, list],
                      clusters: Sequence[ClusterState]) -> Dict[int, PartialAccumulator]:
        """Fold one worker's points into per-cluster partial sums.

        Args:
            points: (n, d) points owned by the worker
            clusters: Broadcast clusters; not modified

        Returns:
            cluster_id -> PartialAccumulator, one entry per cluster

        Raises:
            ValueError: If the points would lose precision when cast to the
                clusters' dtype
        """
        _check_clusters(clusters)
        dtype = clusters[0].dtype
        dimension = clusters[0].dimension

        if _is_empty(points):
            return {cluster.cluster_id: PartialAccumulator.zeros(dimension, dtype)
                    for cluster in clusters}

        points = validate_points(points, dtype=dtype, dimension=dimension, lossless=True)
        _, weights = assign_points(points, clusters, self.membership, self.config)
        weights = weights ** self.config.m

        return {
            cluster.cluster_id: PartialAccumulator.from_points(points, weights[:, k])
            for k, cluster in enumerate(clusters)
        }

    def combine(self, cluster_key: str,
                observations: Iterable[Union[ClusterObservation, str]]) -> Tuple[ClusterState, PartialAccumulator]:
        """Fold per-cluster fan-out records into one partial.

        Args:
            cluster_key: Encoded cluster the records were routed by
            observations: ClusterObservations (or their text form) whose
                payload is the point, as a vector or vector text

        Returns:
            The decoded cluster and the partial sum of its observations

        Raises:
            DecodeError: If the key is not a valid cluster record
        """
        cluster = decode_cluster(cluster_key)
        if cluster is None:
            raise DecodeError(f"Invalid cluster key {cluster_key!r}", record=cluster_key)

        partial = PartialAccumulator.zeros(cluster.dimension, cluster.dtype)
        for observation in observations:
            if isinstance(observation, str):
                observation = ClusterObservation.parse(observation)
            point = observation.payload
            if isinstance(point, str):
                point = parse_vector(point, dtype=cluster.dtype)
            point = validate_vector(point, dtype=cluster.dtype, dimension=cluster.dimension,
                                    lossless=True)
            weight = observation.weight ** self.config.m
            partial = partial + PartialAccumulator(weight, point * weight)
        return cluster, partial

    # ------------------------------------------------------------------
    # Merge

    @staticmethod
    def merge_partials(partials: Iterable[Mapping[int, PartialAccumulator]]) -> Dict[int, PartialAccumulator]:
        """Sum partials from any number of workers, per cluster id."""
        merged: Dict[int, PartialAccumulator] = {}
        for worker_partials in partials:
            for cluster_id, partial in worker_partials.items():
                if cluster_id in merged:
                    merged[cluster_id] = merged[cluster_id] + partial
                else:
                    merged[cluster_id] = partial
        return merged

    # ------------------------------------------------------------------
    # Reduce side

    def reduce_cluster(self, cluster: ClusterState,
                       partials: Iterable[PartialAccumulator],
                       iteration: Optional[int] = None) -> ClusterState:
        """Absorb partials, test convergence and advance one cluster.

        Returns a new ClusterState; the input cluster is not modified.
        """
        updated = cluster.copy()
        updated.add_all(partials)

        if updated.is_degenerate:
            warnings.warn(
                f"Cluster {updated.identifier} received no probability mass; "
                f"its center falls back to the unnormalized point total"
            )

        self.evaluator.check({
            'iteration': self.n_iter_ if iteration is None else iteration,
            'cluster': updated
        })
        updated.recompute_center()

        if self.verbose >= 2:
            print(f"  {updated!r} ({'converged' if updated.converged else 'moving'})")

        return updated

    def reduce(self, clusters: Sequence[ClusterState],
               merged: Mapping[int, PartialAccumulator]) -> List[ClusterState]:
        """Advance every cluster using its merged partial.

        Clusters missing from merged are treated as having received no mass.
        """
        unknown = set(merged) - {cluster.cluster_id for cluster in clusters}
        if unknown:
            raise ValueError(f"Partials for unknown cluster ids {sorted(unknown)}")

        updated = []
        for cluster in clusters:
            partial = merged.get(cluster.cluster_id)
            partials = [] if partial is None else [partial]
            updated.append(self.reduce_cluster(cluster, partials))
        return updated

    # ------------------------------------------------------------------
    # Whole iteration

    def step(self, partitions: Iterable[Union[Tensor, list]],
             clusters: Sequence[ClusterState]) -> List[ClusterState]:
        """Run one full iteration over all partitions.

        Args:
            partitions: One (n_i, d) batch of points per worker
            clusters: Clusters from the previous iteration

        Returns:
            New clusters with moved centers and updated converged flags
        """
        _check_clusters(clusters)

        partials = [self.map_partition(points, clusters) for points in partitions]
        updated = self.reduce(clusters, self.merge_partials(partials))

        if self.verbose >= 1:
            n_converged = sum(cluster.converged for cluster in updated)
            shifts = [entry['shift'] for entry in self.evaluator.history[-len(updated):]]
            print(f"Iteration {self.n_iter_:3d}: {n_converged}/{len(updated)} clusters converged, "
                  f"max shift = {max(shifts):.6f}")

        self.n_iter_ += 1
        return updated

    # ------------------------------------------------------------------
    # Output

    def label(self, points: Union[Tensor, list], clusters: Sequence[ClusterState],
              point_keys: Optional[Sequence[Any]] = None) -> List[Tuple[Any, List[Tuple[int, float]]]]:
        """Per-point membership summaries for final output.

        Args:
            points: (n, d) points
            clusters: Final clusters
            point_keys: Optional key per point; defaults to the row index

        Returns:
            [(point_key, [(cluster_id, weight), ...]), ...]
        """
        _check_clusters(clusters)
        if _is_empty(points):
            return []

        _, weights = assign_points(points, clusters, self.membership, self.config)
        if point_keys is None:
            point_keys = range(weights.shape[0])
        elif len(point_keys) != weights.shape[0]:
            raise ValueError(f"Expected {weights.shape[0]} point keys, got {len(point_keys)}")

        cluster_ids = [cluster.cluster_id for cluster in clusters]
        return [
            (key, list(zip(cluster_ids, row)))
            for key, row in zip(point_keys, weights.tolist())
        ]

    def assign(self, point: Union[Tensor, list], clusters: Sequence[ClusterState]):
        """Soft-assign a single point; see assignments.fuzzy.assign_point."""
        return assign_point(point, clusters, self.membership, self.config)


def _check_clusters(clusters: Sequence[ClusterState]) -> None:
    if not clusters:
        raise ValueError("At least one cluster is required")
    ids = [cluster.cluster_id for cluster in clusters]
    if len(set(ids)) != len(ids):
        raise ValueError(f"Duplicate cluster ids in {ids}")
    dimensions = {cluster.dimension for cluster in clusters}
    if len(dimensions) != 1:
        raise ValueError(f"Clusters have mixed dimensions {sorted(dimensions)}")


def _is_empty(points) -> bool:
    if isinstance(points, Tensor):
        return points.numel() == 0
    return len(points) == 0
