# tests/test_cluster_state.py
"""
ClusterState accumulation, centroid and lifecycle

Covers:
- add_point / add_points update the accumulator and invalidate the centroid
- Degenerate accumulator (zero mass): centroid is the raw total, not a division
- compute_convergence never moves the center; recompute_center does and resets
- Dimensionality and weight validation
- ClusterIdAllocator sequences and explicit reset
"""

from __future__ import annotations

import pytest

try:
    import torch
except Exception:  # pragma: no cover
    torch = None  # type: ignore

from softkmeans import ClusterState, ClusterIdAllocator, CenterConvergence, RunConfig


pytestmark = pytest.mark.skipif(torch is None, reason="PyTorch is required for these tests")


def _t(values):
    return torch.tensor(values, dtype=torch.float64)


def test_new_cluster_has_zero_accumulator():
    cluster = ClusterState([1.0, 2.0], cluster_id=7)

    assert cluster.cluster_id == 7
    assert cluster.identifier == "C7"
    assert cluster.converged is False
    assert cluster.point_prob_sum == 0.0
    assert torch.equal(cluster.weighted_point_total, _t([0.0, 0.0]))
    assert cluster.dtype == torch.float64


def test_cluster_id_is_read_only():
    cluster = ClusterState([0.0], cluster_id=1)
    with pytest.raises(AttributeError):
        cluster.cluster_id = 2


def test_add_point_scales_by_weight():
    cluster = ClusterState([0.0, 0.0], cluster_id=0)
    cluster.add_point([2.0, 4.0], 0.5)
    cluster.add_point([1.0, 0.0], 1.5)

    assert cluster.point_prob_sum == pytest.approx(2.0)
    assert torch.allclose(cluster.weighted_point_total, _t([2.5, 2.0]))
    assert torch.allclose(cluster.compute_centroid(), _t([1.25, 1.0]))


def test_partial_merge_example():
    """(probSum=2, total=[4,0]) + (probSum=3, total=[6,0]) -> (5, [10,0]), centroid [2,0]."""
    cluster = ClusterState([0.0, 0.0], cluster_id=0)
    cluster.add_points(2.0, [4.0, 0.0])
    cluster.add_points(3.0, [6.0, 0.0])

    assert cluster.point_prob_sum == pytest.approx(5.0)
    assert torch.allclose(cluster.weighted_point_total, _t([10.0, 0.0]))
    assert torch.allclose(cluster.compute_centroid(), _t([2.0, 0.0]))


def test_centroid_is_never_stale():
    cluster = ClusterState([0.0, 0.0], cluster_id=0)
    cluster.add_point([4.0, 0.0], 1.0)
    first = cluster.compute_centroid()
    assert torch.allclose(first, _t([4.0, 0.0]))

    cluster.add_points(1.0, [0.0, 4.0])
    assert torch.allclose(cluster.compute_centroid(), _t([2.0, 2.0]))

    cluster.add_point([6.0, 6.0], 2.0)
    assert torch.allclose(cluster.compute_centroid(), _t([4.0, 4.0]))

    # Returned centroids are copies
    first += 100.0
    assert torch.allclose(cluster.compute_centroid(), _t([4.0, 4.0]))


def test_degenerate_accumulator_returns_raw_total():
    """Boundary case: with no mass the centroid is the unnormalized total."""
    cluster = ClusterState([3.0, -1.0], cluster_id=0)
    assert cluster.is_degenerate
    assert torch.equal(cluster.compute_centroid(), _t([0.0, 0.0]))

    # Zero-weight points leave the total at zero too
    cluster.add_point([5.0, 5.0], 0.0)
    assert cluster.is_degenerate
    assert torch.equal(cluster.compute_centroid(), _t([0.0, 0.0]))


def test_compute_convergence_does_not_move_center(config):
    evaluator = CenterConvergence(config)
    cluster = ClusterState([0.0, 0.0], cluster_id=0)
    cluster.add_point([3.0, 4.0], 1.0)

    assert cluster.compute_convergence(evaluator) is False
    assert cluster.converged is False
    assert torch.equal(cluster.center, _t([0.0, 0.0]))
    assert cluster.point_prob_sum == 1.0
    assert torch.allclose(cluster.compute_centroid(), _t([3.0, 4.0]))


def test_compute_convergence_within_delta():
    evaluator = CenterConvergence(RunConfig(convergence_delta=0.6))
    cluster = ClusterState([1.0, 1.0], cluster_id=3)
    cluster.add_point([1.3, 1.4], 2.0)

    assert cluster.compute_convergence(evaluator) is True
    assert cluster.identifier == "V3"
    assert torch.equal(cluster.center, _t([1.0, 1.0]))


def test_recompute_center_moves_and_resets():
    cluster = ClusterState([0.0, 0.0], cluster_id=0)
    cluster.add_point([2.0, 2.0], 1.0)
    cluster.add_point([4.0, 0.0], 1.0)

    cluster.recompute_center()

    assert torch.allclose(cluster.center, _t([3.0, 1.0]))
    assert cluster.point_prob_sum == 0.0
    assert torch.equal(cluster.weighted_point_total, _t([0.0, 0.0]))
    assert cluster.weighted_point_total.shape == cluster.center.shape


def test_recompute_keeps_converged_flag():
    evaluator = CenterConvergence(RunConfig(convergence_delta=1.0))
    cluster = ClusterState([0.0], cluster_id=0)
    cluster.add_point([0.5], 1.0)
    cluster.compute_convergence(evaluator)
    cluster.recompute_center()

    assert cluster.converged is True
    assert torch.allclose(cluster.center, _t([0.5]))


def test_degenerate_recompute_falls_back_to_total():
    cluster = ClusterState([5.0, 5.0], cluster_id=0)
    cluster.recompute_center()
    assert torch.equal(cluster.center, _t([0.0, 0.0]))


def test_dimension_mismatch_is_rejected():
    cluster = ClusterState([0.0, 0.0], cluster_id=0)
    with pytest.raises(ValueError):
        cluster.add_point([1.0, 2.0, 3.0], 1.0)
    with pytest.raises(ValueError):
        cluster.add_points(1.0, [1.0])


@pytest.mark.parametrize("weight", [-0.1, float("nan"), float("inf")])
def test_bad_weights_are_rejected(weight):
    cluster = ClusterState([0.0], cluster_id=0)
    with pytest.raises(ValueError):
        cluster.add_point([1.0], weight)
    with pytest.raises(ValueError):
        cluster.add_points(weight, [1.0])
    assert cluster.point_prob_sum == 0.0


def test_integer_center_becomes_float():
    cluster = ClusterState([1, 2, 3], cluster_id=0)
    assert cluster.center.dtype == torch.float64


def test_constructor_copies_center():
    center = _t([1.0, 1.0])
    cluster = ClusterState(center, cluster_id=0)
    center[0] = 99.0
    assert cluster.center[0].item() == 1.0


def test_copy_has_empty_accumulator():
    cluster = ClusterState([1.0], cluster_id=4, converged=True)
    cluster.add_point([3.0], 1.0)
    clone = cluster.copy()

    assert clone.cluster_id == 4
    assert clone.converged is True
    assert clone.is_degenerate
    assert torch.equal(clone.center, cluster.center)


def test_repr_shows_identifier_and_center():
    cluster = ClusterState([1.0, 2.5], cluster_id=2)
    assert repr(cluster) == "C2 - [1, 2.5]"


def test_allocator_sequence_and_reset(allocator):
    ids = [ClusterState.seed([float(i)], allocator).cluster_id for i in range(3)]
    assert ids == [0, 1, 2]
    assert allocator.peek() == 3

    allocator.reset()
    assert [allocator.next_id() for _ in range(3)] == [0, 1, 2]


def test_allocators_are_independent():
    first = ClusterIdAllocator()
    second = ClusterIdAllocator()
    first.next_id()
    first.next_id()
    assert second.next_id() == 0


@pytest.mark.parametrize("bad_id", [-1, 1.5, True])
def test_invalid_cluster_ids(bad_id):
    with pytest.raises(ValueError):
        ClusterState([0.0], cluster_id=bad_id)


def test_float_list_center_is_double_precision():
    cluster = ClusterState([0.1], cluster_id=0)
    assert cluster.center.dtype == torch.float64
    assert cluster.center[0].item() == 0.1


def test_explicit_single_precision_is_kept():
    cluster = ClusterState(torch.tensor([0.5, 0.5], dtype=torch.float32), cluster_id=0)
    assert cluster.dtype == torch.float32
    assert cluster.compute_centroid().dtype == torch.float32


def test_tiny_move_is_not_converged_at_zero_delta():
    cluster = ClusterState([0.1, 0.2], cluster_id=0)
    cluster.add_point([0.1 + 1e-9, 0.2], 1.0)

    evaluator = CenterConvergence(RunConfig(convergence_delta=0.0))
    assert cluster.compute_convergence(evaluator) is False
