"""Base classes, configuration and data structures for soft k-means."""

from .exceptions import (
    ConfigurationError,
    DecodeError
)

from .interfaces import (
    DistanceMeasure,
    ConvergenceCriterion
)

from .config import RunConfig

from .data_structures import (
    ClusterState,
    PartialAccumulator,
    ClusterIdAllocator
)

__all__ = [
    # Errors
    'ConfigurationError',
    'DecodeError',

    # Interfaces
    'DistanceMeasure',
    'ConvergenceCriterion',

    # Configuration
    'RunConfig',

    # Data structures
    'ClusterState',
    'PartialAccumulator',
    'ClusterIdAllocator'
]
