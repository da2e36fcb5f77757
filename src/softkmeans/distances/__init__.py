"""Distance measures and the registry used to resolve them by name."""

from typing import Callable, Dict, Union

from ..base.exceptions import ConfigurationError
from ..base.interfaces import DistanceMeasure
from .euclidean import EuclideanDistance, SquaredEuclideanDistance, WeightedEuclideanDistance
from .manhattan import ManhattanDistance
from .cosine import CosineDistance


_REGISTRY: Dict[str, Callable[[], DistanceMeasure]] = {
    EuclideanDistance.name: EuclideanDistance,
    SquaredEuclideanDistance.name: SquaredEuclideanDistance,
    ManhattanDistance.name: ManhattanDistance,
    CosineDistance.name: CosineDistance,
}


def available_distance_measures() -> list:
    """Names accepted by get_distance_measure."""
    return sorted(_REGISTRY)


def register_distance_measure(name: str, factory: Callable[[], DistanceMeasure]) -> None:
    """Add a named distance measure factory to the registry.

    Raises:
        ValueError: If the name is already taken
    """
    if name in _REGISTRY:
        raise ValueError(f"Distance measure '{name}' is already registered")
    _REGISTRY[name] = factory


def get_distance_measure(spec: Union[str, DistanceMeasure]) -> DistanceMeasure:
    """Resolve a distance measure from a registry name or pass an instance through.

    Raises:
        ConfigurationError: If the name is unknown or the value is not a measure
    """
    if isinstance(spec, DistanceMeasure):
        return spec
    if isinstance(spec, str):
        key = spec.strip().lower()
        if key not in _REGISTRY:
            raise ConfigurationError(
                f"Unknown distance measure '{spec}'; "
                f"expected one of {available_distance_measures()}"
            )
        return _REGISTRY[key]()
    raise ConfigurationError(
        f"Distance measure must be a name or DistanceMeasure, got {type(spec).__name__}"
    )


__all__ = [
    'DistanceMeasure',
    'EuclideanDistance',
    'SquaredEuclideanDistance',
    'WeightedEuclideanDistance',
    'ManhattanDistance',
    'CosineDistance',

    # Registry
    'get_distance_measure',
    'register_distance_measure',
    'available_distance_measures'
]
