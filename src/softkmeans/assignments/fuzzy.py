"""
Fuzzy membership weighting and soft point-to-cluster assignment.

Each point belongs to every cluster with a fractional weight computed from
its distances to all cluster centers:

    u_i = 1 / Σ_j (d_i / d_j)^(2/(m-1))

Zero distances are replaced by a tiny epsilon before taking ratios, so a
point sitting on a center gets (almost) all of its membership there.
"""

from typing import Any, Callable, List, Optional, Sequence, Tuple, Union
from dataclasses import dataclass
import math
import torch
from torch import Tensor

from ..base.config import RunConfig
from ..base.data_structures import ClusterState
from ..utils.codec import format_cluster
from ..utils.validation import validate_points, validate_vector


#: Receives (key, value) text records, like an output collector
Collector = Callable[[str, str], None]


class FuzzyMembership:
    """Membership weight calculator for one run.

    Pure: holds only the read-only fuzziness exponent and epsilon from the
    run configuration.
    """

    def __init__(self, config: RunConfig):
        """
        Args:
            config: Run configuration; m > 1 is guaranteed by RunConfig
        """
        self.m = config.m
        self.epsilon = config.epsilon
        self.power = config.exponent

    def _clamp(self, distance: float) -> float:
        return distance if distance != 0 else self.epsilon

    def compute_prob_weight(self, cluster_distance: float,
                            cluster_distances: Sequence[float]) -> float:
        """Membership weight of one cluster given the distances to all clusters.

        Args:
            cluster_distance: Distance from the point to this cluster
            cluster_distances: Distances from the point to every cluster,
                including this one

        Returns:
            Weight in [0, 1]; 0 when a ratio overflows
        """
        d_i = self._clamp(float(cluster_distance))
        denom = 0.0
        for d_j in cluster_distances:
            try:
                denom += math.pow(d_i / self._clamp(float(d_j)), self.power)
            except OverflowError:
                # A far cluster next to a near one; the weight underflows to 0
                denom = math.inf
        return 1.0 / denom

    def compute_memberships(self, distances: Tensor) -> Tensor:
        """Vectorized membership weights.

        Args:
            distances: (K,) distances for one point or (n, K) for a batch

        Returns:
            Tensor of the same shape; each row sums to 1
        """
        distances = torch.as_tensor(distances)
        if not distances.dtype.is_floating_point:
            distances = distances.to(torch.float64)
        if distances.dim() not in (1, 2):
            raise ValueError(f"Expected 1D or 2D distances, got {distances.dim()}D")

        clamped = torch.where(distances == 0,
                              torch.full_like(distances, self.epsilon),
                              distances)

        # ratios[..., i, j] = d_i / d_j
        ratios = clamped.unsqueeze(-1) / clamped.unsqueeze(-2)
        denom = torch.sum(ratios ** self.power, dim=-1)
        return 1.0 / denom

    def __repr__(self) -> str:
        return f"FuzzyMembership(m={self.m}, epsilon={self.epsilon})"


@dataclass(frozen=True)
class ClusterObservation:
    """A point's weight for one cluster, routed to that cluster's reducer."""

    weight: float
    payload: Any

    def format(self) -> str:
        """'<weight>:<payload>' text form."""
        return f"{self.weight!r}:{self.payload}"

    @classmethod
    def parse(cls, text: str) -> 'ClusterObservation':
        """Inverse of format(); the payload comes back as text."""
        weight, sep, payload = text.partition(':')
        if not sep:
            raise ValueError(f"Missing ':' separator in observation {text!r}")
        return cls(float(weight), payload)


@dataclass(frozen=True)
class PointAssignment:
    """Distances and membership weights of one point over all clusters.

    Computed once; both record layouts are packaged from it.
    """

    clusters: Tuple[ClusterState, ...]
    distances: Tensor
    weights: Tensor

    def cluster_records(self, payload: Any) -> List[Tuple[str, ClusterObservation]]:
        """Per-cluster fan-out: one (encoded cluster, observation) per cluster."""
        return [
            (format_cluster(cluster), ClusterObservation(float(weight), payload))
            for cluster, weight in zip(self.clusters, self.weights.tolist())
        ]

    def memberships(self) -> List[Tuple[int, float]]:
        """(cluster_id, weight) for every cluster, in cluster order."""
        return [
            (cluster.cluster_id, float(weight))
            for cluster, weight in zip(self.clusters, self.weights.tolist())
        ]

    def summary_record(self, point_key: Any) -> Tuple[Any, List[Tuple[int, float]]]:
        """Per-point summary: (point key, [(cluster_id, weight), ...])."""
        return point_key, self.memberships()

    def best_cluster(self) -> ClusterState:
        """Cluster holding the largest membership (first on ties)."""
        return self.clusters[int(torch.argmax(self.weights))]


def assign_point(point: Union[Tensor, list], clusters: Sequence[ClusterState],
                 membership: FuzzyMembership, config: RunConfig) -> PointAssignment:
    """Soft-assign one point against the current cluster centers.

    Args:
        point: (d,) point
        clusters: Clusters whose centers are compared against
        membership: Weight calculator of the run
        config: Run configuration supplying the distance measure

    Returns:
        PointAssignment with distances and weights in cluster order
    """
    if not clusters:
        raise ValueError("Cannot assign a point without clusters")

    clusters = tuple(clusters)
    point = validate_vector(point, dtype=clusters[0].dtype, dimension=clusters[0].dimension,
                            lossless=True)
    centers = torch.stack([cluster.center for cluster in clusters])

    distances = config.distance_measure.pairwise(point.unsqueeze(0), centers)[0]
    weights = membership.compute_memberships(distances)
    return PointAssignment(clusters, distances, weights)


def assign_points(points: Union[Tensor, list], clusters: Sequence[ClusterState],
                  membership: FuzzyMembership, config: RunConfig) -> Tuple[Tensor, Tensor]:
    """Batched soft assignment.

    Returns:
        distances: (n, K) distances to every center
        weights: (n, K) membership weights
    """
    if not clusters:
        raise ValueError("Cannot assign points without clusters")

    points = validate_points(points, dtype=clusters[0].dtype, dimension=clusters[0].dimension,
                             lossless=True)
    centers = torch.stack([cluster.center for cluster in clusters])

    distances = config.distance_measure.pairwise(points, centers)
    weights = membership.compute_memberships(distances)
    return distances, weights


def format_summary(memberships: Sequence[Tuple[int, float]]) -> str:
    """'[<id>:<weight> <id>:<weight> ...]' text form of a per-point summary."""
    return '[' + ' '.join(f"{cluster_id}:{weight!r}" for cluster_id, weight in memberships) + ']'


def emit_point_prob_to_cluster(point: Union[Tensor, list], clusters: Sequence[ClusterState],
                               payload: Any, output: Collector,
                               membership: FuzzyMembership, config: RunConfig,
                               assignment: Optional[PointAssignment] = None) -> PointAssignment:
    """Emit one text record per cluster: encoded cluster -> '<weight>:<payload>'.

    Pass an existing assignment to reuse its weights instead of measuring
    the point again.
    """
    if assignment is None:
        assignment = assign_point(point, clusters, membership, config)
    for key, observation in assignment.cluster_records(payload):
        output(key, observation.format())
    return assignment


def output_point_with_cluster_probabilities(point: Union[Tensor, list],
                                            clusters: Sequence[ClusterState],
                                            payload: Any, output: Collector,
                                            membership: FuzzyMembership, config: RunConfig,
                                            point_key: Optional[Any] = None,
                                            assignment: Optional[PointAssignment] = None) -> PointAssignment:
    """Emit one text record per point: point key -> '[<id>:<weight> ...]'.

    The point key defaults to the payload text. As with
    emit_point_prob_to_cluster, an existing assignment is reused if given.
    """
    if assignment is None:
        assignment = assign_point(point, clusters, membership, config)
    key = str(payload).strip() if point_key is None else str(point_key)
    output(key, format_summary(assignment.memberships()))
    return assignment
