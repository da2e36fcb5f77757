"""
Cosine distance measure.

Useful for text-like vectors where direction matters more than magnitude.
Not a true metric, which the convergence test tolerates.
"""

import torch
from torch import Tensor

from ..base.interfaces import DistanceMeasure


class CosineDistance(DistanceMeasure):
    """1 - cos(x, c), clamped to [0, 2].

    A zero vector has no direction; its distance to anything is 1.
    """

    name = 'cosine'

    def __init__(self, eps: float = 1e-12):
        self.eps = eps

    def compute(self, points: Tensor, center: Tensor) -> Tensor:
        dots = torch.matmul(points, center)
        norms = torch.linalg.norm(points, dim=1) * torch.linalg.norm(center)
        cos = dots / norms.clamp(min=self.eps)
        return torch.clamp(1.0 - cos, min=0.0, max=2.0)
