"""Initialization strategies for soft k-means."""

from .random import RandomSeeds

__all__ = [
    'RandomSeeds'
]
