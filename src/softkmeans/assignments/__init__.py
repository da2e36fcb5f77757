"""Membership weighting and soft assignment."""

from .fuzzy import (
    FuzzyMembership,
    ClusterObservation,
    PointAssignment,
    assign_point,
    assign_points,
    format_summary,
    emit_point_prob_to_cluster,
    output_point_with_cluster_probabilities
)

__all__ = [
    'FuzzyMembership',
    'ClusterObservation',
    'PointAssignment',
    'assign_point',
    'assign_points',
    'format_summary',

    # Text record emission
    'emit_point_prob_to_cluster',
    'output_point_with_cluster_probabilities'
]
