"""
Core data structures for soft k-means.

ClusterState holds one cluster's center and the accumulator that collects
membership-weighted points during an iteration. PartialAccumulator is the
per-worker partial sum that gets merged into it, and ClusterIdAllocator hands
out cluster ids for a run.
"""

from typing import Optional, Iterable, Union, TYPE_CHECKING
from dataclasses import dataclass
import torch
from torch import Tensor

from ..utils.validation import validate_vector, validate_points, validate_weight

if TYPE_CHECKING:
    from ..utils.convergence import CenterConvergence


class ClusterIdAllocator:
    """Monotonically increasing cluster ids, scoped to one run.

    Create one per run (or call reset() at the start of a run) so repeated
    runs in the same process produce the same id sequence starting at 0.
    """

    def __init__(self, start: int = 0):
        if start < 0:
            raise ValueError(f"start must be non-negative, got {start}")
        self._start = start
        self._next = start

    def next_id(self) -> int:
        """Return the next id and advance."""
        cluster_id = self._next
        self._next += 1
        return cluster_id

    def peek(self) -> int:
        """The id the next call to next_id() will return."""
        return self._next

    def reset(self) -> None:
        """Restart the sequence."""
        self._next = self._start

    def __repr__(self) -> str:
        return f"ClusterIdAllocator(next={self._next})"


@dataclass(frozen=True)
class PartialAccumulator:
    """Pre-aggregated (probability sum, weighted point total) for one cluster.

    Produced independently by each worker; merging with + is commutative and
    associative up to floating point rounding.
    """

    prob_sum: float
    weighted_total: Tensor

    def __post_init__(self):
        object.__setattr__(self, 'prob_sum', validate_weight(self.prob_sum, 'prob_sum'))
        object.__setattr__(self, 'weighted_total', validate_vector(self.weighted_total))

    @property
    def dimension(self) -> int:
        return self.weighted_total.shape[0]

    @classmethod
    def zeros(cls, dimension: int, dtype: torch.dtype = torch.float64) -> 'PartialAccumulator':
        return cls(0.0, torch.zeros(dimension, dtype=dtype))

    @classmethod
    def from_points(cls, points: Tensor, weights: Tensor) -> 'PartialAccumulator':
        """Fold a batch of points with their weights.

        Args:
            points: (n, d) tensor
            weights: (n,) non-negative weights
        """
        points = validate_points(points)
        weights = torch.as_tensor(weights, dtype=points.dtype, device=points.device)
        if weights.shape != (points.shape[0],):
            raise ValueError(f"Expected weights of shape ({points.shape[0]},), got {tuple(weights.shape)}")
        if (weights < 0).any():
            raise ValueError("Weights must be non-negative")
        total = torch.sum(points * weights.unsqueeze(1), dim=0)
        return cls(float(weights.sum()), total)

    def __add__(self, other: 'PartialAccumulator') -> 'PartialAccumulator':
        if not isinstance(other, PartialAccumulator):
            return NotImplemented
        if other.dimension != self.dimension:
            raise ValueError(f"Cannot merge dimension {self.dimension} with {other.dimension}")
        return PartialAccumulator(self.prob_sum + other.prob_sum,
                                  self.weighted_total + other.weighted_total)

    def __radd__(self, other) -> 'PartialAccumulator':
        # Lets sum() start from 0
        if isinstance(other, (int, float)) and other == 0:
            return self
        return NotImplemented


class ClusterState:
    """One soft cluster: id, center, accumulator and converged flag.

    The accumulator holds the probability sum and the weighted point total
    collected during the current iteration. The centroid is derived from it
    lazily; the cache carries an explicit dirty tag that every accumulator
    mutation sets.

    Lifecycle per iteration: accumulate (add_point / add_points), then
    optionally compute_convergence(), then recompute_center() which moves
    the center and zeroes the accumulator.
    """

    def __init__(self, center: Union[Tensor, list], cluster_id: int,
                 converged: bool = False, dtype: Optional[torch.dtype] = None):
        """
        Args:
            center: (d,) initial center
            cluster_id: Identifier, unique within the run
            converged: Initial converged flag (set when decoding)
            dtype: Optional floating point type for center and accumulator
        """
        if isinstance(cluster_id, bool) or int(cluster_id) != cluster_id or cluster_id < 0:
            raise ValueError(f"cluster_id must be a non-negative integer, got {cluster_id!r}")

        self._cluster_id = int(cluster_id)
        self.center = validate_vector(center, dtype=dtype).clone()
        self.converged = bool(converged)

        self._point_prob_sum = 0.0
        self._weighted_point_total = torch.zeros_like(self.center)

        self._centroid: Optional[Tensor] = None
        self._centroid_dirty = True

    @classmethod
    def seed(cls, center: Union[Tensor, list], allocator: ClusterIdAllocator,
             dtype: Optional[torch.dtype] = None) -> 'ClusterState':
        """New cluster centered on a seed point, with a fresh id."""
        return cls(center, allocator.next_id(), dtype=dtype)

    # ------------------------------------------------------------------
    # Read-only views

    @property
    def cluster_id(self) -> int:
        return self._cluster_id

    @property
    def identifier(self) -> str:
        """'V<id>' once converged, 'C<id>' otherwise."""
        return f"{'V' if self.converged else 'C'}{self._cluster_id}"

    @property
    def dimension(self) -> int:
        return self.center.shape[0]

    @property
    def dtype(self) -> torch.dtype:
        return self.center.dtype

    @property
    def point_prob_sum(self) -> float:
        return self._point_prob_sum

    @property
    def weighted_point_total(self) -> Tensor:
        return self._weighted_point_total.clone()

    @property
    def accumulator(self) -> PartialAccumulator:
        """Snapshot of the accumulator, e.g. for shipping to a reducer."""
        return PartialAccumulator(self._point_prob_sum, self._weighted_point_total.clone())

    # ------------------------------------------------------------------
    # Accumulation

    def _accumulate(self, prob: float, weighted: Tensor) -> None:
        """Single mutation path for the accumulator."""
        self._centroid_dirty = True
        self._centroid = None
        self._point_prob_sum += prob
        self._weighted_point_total = self._weighted_point_total + weighted

    def add_point(self, point: Union[Tensor, list], weight: float) -> None:
        """Add a point with its membership weight.

        Args:
            point: (d,) point
            weight: Non-negative weight for this point
        """
        weight = validate_weight(weight)
        point = validate_vector(point, dtype=self.dtype, dimension=self.dimension)
        self._accumulate(weight, point * weight)

    def add_points(self, partial_prob_sum: float,
                   partial_weighted_total: Union[Tensor, list]) -> None:
        """Merge a partial result produced elsewhere.

        Equivalent to the add_point calls that produced the partial.

        Args:
            partial_prob_sum: Sum of the weights in the partial
            partial_weighted_total: (d,) sum of weight * point in the partial
        """
        partial_prob_sum = validate_weight(partial_prob_sum, 'partial_prob_sum')
        total = validate_vector(partial_weighted_total, dtype=self.dtype,
                                dimension=self.dimension)
        self._accumulate(partial_prob_sum, total)

    def merge(self, partial: PartialAccumulator) -> None:
        """add_points for a PartialAccumulator."""
        self.add_points(partial.prob_sum, partial.weighted_total)

    def add_all(self, partials: Iterable[PartialAccumulator]) -> None:
        for partial in partials:
            self.merge(partial)

    # ------------------------------------------------------------------
    # Derived values

    @property
    def is_degenerate(self) -> bool:
        """True when no probability mass has been accumulated."""
        return self._point_prob_sum == 0

    def compute_centroid(self) -> Tensor:
        """Weighted mean of the accumulated points.

        With zero probability mass the raw weighted total is returned
        unchanged instead of dividing by zero.
        """
        if self._point_prob_sum == 0:
            return self._weighted_point_total.clone()
        if self._centroid_dirty or self._centroid is None:
            self._centroid = self._weighted_point_total / self._point_prob_sum
            self._centroid_dirty = False
        return self._centroid.clone()

    def compute_convergence(self, evaluator: 'CenterConvergence') -> bool:
        """Test whether the centroid is within the threshold of the center.

        Sets and returns the converged flag. Does not move the center or
        touch the accumulator.
        """
        self.converged = bool(evaluator.is_converged(self.compute_centroid(), self.center))
        return self.converged

    def recompute_center(self) -> None:
        """Move the center to the centroid and start a fresh accumulator."""
        self.center = self.compute_centroid()
        self._point_prob_sum = 0.0
        self._weighted_point_total = torch.zeros_like(self.center)
        self._centroid = None
        self._centroid_dirty = True

    def copy(self) -> 'ClusterState':
        """Same id, center and flag, with an empty accumulator."""
        return ClusterState(self.center, self._cluster_id, converged=self.converged)

    def __repr__(self) -> str:
        values = ', '.join(f"{v:.4g}" for v in self.center.tolist())
        return f"{self.identifier} - [{values}]"
