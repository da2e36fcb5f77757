"""
Convergence testing for individual soft clusters.

A cluster has converged when the centroid of the mass it collected this
iteration lies within convergence_delta of its current center, measured with
the run's distance measure. Deciding when the whole run stops is left to the
caller; all_converged() is the usual building block.
"""

from typing import Dict, Any, Iterable
from torch import Tensor

from ..base.interfaces import ConvergenceCriterion
from ..base.config import RunConfig


class CenterConvergence(ConvergenceCriterion):
    """Per-cluster center/centroid shift test."""

    def __init__(self, config: RunConfig):
        """
        Args:
            config: Run configuration supplying the distance measure and delta
        """
        super().__init__()
        self.measure = config.distance_measure
        self.convergence_delta = config.convergence_delta
        self.last_shift = None

    def shift(self, centroid: Tensor, center: Tensor) -> float:
        """Distance the center would move if it were replaced by the centroid."""
        return self.measure.distance(centroid, center)

    def is_converged(self, centroid: Tensor, center: Tensor) -> bool:
        """Shift test; the measured shift is kept in last_shift."""
        self.last_shift = self.shift(centroid, center)
        return self.last_shift <= self.convergence_delta

    def check(self, current_state: Dict[str, Any]) -> bool:
        """Run compute_convergence on current_state['cluster'] and record it."""
        cluster = current_state['cluster']
        converged = cluster.compute_convergence(self)
        shift = self.last_shift

        self.history.append({
            'iteration': current_state.get('iteration', len(self.history)),
            'cluster_id': cluster.cluster_id,
            'shift': shift,
            'converged': converged
        })

        return converged

    def reset(self):
        super().reset()
        self.last_shift = None


def all_converged(clusters: Iterable) -> bool:
    """True when every cluster carries the converged flag."""
    return all(cluster.converged for cluster in clusters)
