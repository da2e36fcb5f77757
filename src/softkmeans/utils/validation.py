"""
Input validation and conversion utilities.

Centers, points and partial sums arrive as tensors, NumPy arrays or plain
lists; everything is converted to a floating point tensor before it touches
an accumulator.
"""

from typing import Optional, Union
import torch
from torch import Tensor
import numpy as np


ArrayLike = Union[Tensor, np.ndarray, list, tuple]


def _to_tensor(X: ArrayLike, dtype: Optional[torch.dtype], lossless: bool = False) -> Tensor:
    if isinstance(X, Tensor):
        pass
    elif isinstance(X, np.ndarray):
        X = torch.from_numpy(np.ascontiguousarray(X))
    elif isinstance(X, (list, tuple)):
        # Python floats are doubles; torch would default them to float32
        X = torch.tensor(X, dtype=dtype or torch.float64)
    else:
        raise TypeError(f"Cannot convert {type(X)} to tensor")

    if (lossless and dtype is not None and X.dtype.is_floating_point
            and torch.promote_types(X.dtype, dtype) != dtype):
        raise ValueError(f"Refusing to cast {X.dtype} input down to {dtype}")

    if dtype is not None:
        X = X.to(dtype=dtype)
    elif not X.dtype.is_floating_point:
        X = X.to(dtype=torch.float64)
    return X


def validate_vector(x: ArrayLike,
                    dtype: Optional[torch.dtype] = None,
                    dimension: Optional[int] = None,
                    ensure_finite: bool = True,
                    lossless: bool = False) -> Tensor:
    """Validate and convert a single vector.

    Args:
        x: Input vector (tensor, numpy array, or list)
        dtype: Target data type; lists and integer input default to float64
        dimension: Expected length, if already fixed
        ensure_finite: Whether to check for inf/nan
        lossless: Reject floating input that casting to dtype would narrow

    Returns:
        (d,) floating point tensor

    Raises:
        ValueError: If validation fails
    """
    x = _to_tensor(x, dtype, lossless)

    if x.dim() != 1:
        raise ValueError(f"Expected 1D vector, got {x.dim()}D")

    if dimension is not None and x.shape[0] != dimension:
        raise ValueError(f"Expected dimension {dimension}, got {x.shape[0]}")

    if ensure_finite and not torch.isfinite(x).all():
        raise ValueError("Vector contains NaN or infinite values")

    return x


def validate_points(X: ArrayLike,
                    dtype: Optional[torch.dtype] = None,
                    dimension: Optional[int] = None,
                    ensure_finite: bool = True,
                    lossless: bool = False) -> Tensor:
    """Validate and convert a batch of points.

    A 1D input is treated as a single point.

    Returns:
        (n, d) floating point tensor

    Raises:
        ValueError: If validation fails
    """
    X = _to_tensor(X, dtype, lossless)

    if X.dim() == 1:
        X = X.unsqueeze(0)
    elif X.dim() != 2:
        raise ValueError(f"Expected 2D array, got {X.dim()}D")

    if dimension is not None and X.shape[1] != dimension:
        raise ValueError(f"Expected dimension {dimension}, got {X.shape[1]}")

    if ensure_finite and not torch.isfinite(X).all():
        raise ValueError("Input contains NaN or infinite values")

    return X


def validate_weight(weight: float, name: str = 'weight') -> float:
    """Check that a membership weight or probability mass is usable."""
    weight = float(weight)
    if not np.isfinite(weight):
        raise ValueError(f"{name} must be finite, got {weight}")
    if weight < 0:
        raise ValueError(f"{name} must be non-negative, got {weight}")
    return weight
