"""
softkmeans: per-cluster state and soft assignment for fuzzy k-means.

Every point belongs to every cluster with a fractional weight controlled by
the fuzziness exponent m. Clusters accumulate weighted points through a
commutative merge, so partial results from parallel workers can be combined
in any order.

Example usage:
    >>> import torch
    >>> from softkmeans import (
    ...     RunConfig, ClusterIdAllocator, FuzzyKMeansStep, all_converged, dump_clusters
    ... )
    >>> from softkmeans.initialization import RandomSeeds
    >>>
    >>> X = torch.randn(1000, 10, dtype=torch.float64)
    >>> config = RunConfig(m=2.0, convergence_delta=1e-3, distance_measure='euclidean')
    >>> clusters = RandomSeeds(random_state=0).initialize(X, 5, ClusterIdAllocator())
    >>>
    >>> step = FuzzyKMeansStep(config, verbose=1)
    >>> for _ in range(20):
    ...     clusters = step.step(torch.chunk(X, 4), clusters)
    ...     if all_converged(clusters):
    ...         break
    >>>
    >>> lines = dump_clusters(clusters)
"""

__version__ = '0.1.0'

from .base import (
    ConfigurationError,
    DecodeError,
    DistanceMeasure,
    RunConfig,
    ClusterState,
    PartialAccumulator,
    ClusterIdAllocator
)

from .distances import get_distance_measure
from .assignments import FuzzyMembership, PointAssignment, assign_point
from .algorithms import FuzzyKMeansStep
from .utils import CenterConvergence, all_converged
from .utils.codec import format_cluster, decode_cluster, dump_clusters, load_clusters

__all__ = [
    # Configuration and errors
    'RunConfig',
    'ConfigurationError',
    'DecodeError',

    # Core data structures
    'ClusterState',
    'PartialAccumulator',
    'ClusterIdAllocator',

    # Components
    'DistanceMeasure',
    'get_distance_measure',
    'FuzzyMembership',
    'PointAssignment',
    'assign_point',
    'CenterConvergence',
    'all_converged',
    'FuzzyKMeansStep',

    # Codec
    'format_cluster',
    'decode_cluster',
    'dump_clusters',
    'load_clusters',

    # Version
    '__version__'
]
