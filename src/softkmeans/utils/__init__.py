"""Utility functions for soft k-means.

The cluster text codec lives in ``softkmeans.utils.codec``; it depends on
ClusterState and is not re-exported here.
"""

from .validation import (
    validate_vector,
    validate_points,
    validate_weight
)

from .convergence import (
    CenterConvergence,
    all_converged
)

__all__ = [
    # Validation
    'validate_vector',
    'validate_points',
    'validate_weight',

    # Convergence
    'CenterConvergence',
    'all_converged'
]
