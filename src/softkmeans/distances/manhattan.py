"""Manhattan (L1) distance measure."""

import torch
from torch import Tensor

from ..base.interfaces import DistanceMeasure


class ManhattanDistance(DistanceMeasure):
    """Sum of absolute coordinate differences."""

    name = 'manhattan'

    def compute(self, points: Tensor, center: Tensor) -> Tensor:
        return torch.sum(torch.abs(points - center.unsqueeze(0)), dim=1)
