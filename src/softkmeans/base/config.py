"""
Run-wide configuration for soft k-means.

A RunConfig is built once at the start of a run and shared read-only by the
membership calculator, the convergence evaluator and every worker.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Union
import math

from .exceptions import ConfigurationError
from .interfaces import DistanceMeasure


#: Job-configuration keys understood by RunConfig.from_mapping
DISTANCE_MEASURE_KEY = 'softkmeans.measure'
CONVERGENCE_KEY = 'softkmeans.convergence'
M_KEY = 'softkmeans.m'

DEFAULT_M = 2.0
MINIMAL_VALUE = 1e-10


@dataclass(frozen=True)
class RunConfig:
    """Immutable parameters of one clustering run.

    Args:
        m: Fuzziness exponent (m > 1). Larger values spread membership
           more evenly, m→1 approaches hard assignment.
        convergence_delta: A cluster is converged when its centroid lies
           within this distance of its center.
        distance_measure: Registry name or DistanceMeasure instance;
           resolved to an instance at construction.
        epsilon: Stand-in for zero distances in the weighting formula.
    """

    m: float = DEFAULT_M
    convergence_delta: float = 0.0
    distance_measure: Union[str, DistanceMeasure] = 'euclidean'
    epsilon: float = MINIMAL_VALUE

    def __post_init__(self):
        # Imported here: the distance registry depends on base
        from ..distances import get_distance_measure

        m = _as_float(self.m, 'm')
        if not m > 1.0:
            raise ConfigurationError(f"Fuzziness exponent m must be > 1, got {self.m}")

        delta = _as_float(self.convergence_delta, 'convergence_delta')
        if delta < 0:
            raise ConfigurationError(
                f"convergence_delta must be >= 0, got {self.convergence_delta}"
            )

        epsilon = _as_float(self.epsilon, 'epsilon')
        if not epsilon > 0:
            raise ConfigurationError(f"epsilon must be > 0, got {self.epsilon}")

        object.__setattr__(self, 'm', m)
        object.__setattr__(self, 'convergence_delta', delta)
        object.__setattr__(self, 'epsilon', epsilon)
        object.__setattr__(self, 'distance_measure', get_distance_measure(self.distance_measure))

    @property
    def exponent(self) -> float:
        """Power 2/(m-1) applied to distance ratios."""
        return 2.0 / (self.m - 1.0)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any], **overrides) -> 'RunConfig':
        """Build a configuration from job-style string settings.

        Missing keys fall back to the defaults, except the convergence
        threshold which must be present.

        Raises:
            ConfigurationError: On a missing or unparsable value
        """
        if CONVERGENCE_KEY not in mapping:
            raise ConfigurationError(f"Missing required setting '{CONVERGENCE_KEY}'")

        kwargs = {
            'convergence_delta': mapping[CONVERGENCE_KEY],
            'm': mapping.get(M_KEY, DEFAULT_M),
            'distance_measure': mapping.get(DISTANCE_MEASURE_KEY, 'euclidean'),
        }
        kwargs.update(overrides)
        return cls(**kwargs)

    def to_mapping(self) -> Dict[str, str]:
        """Inverse of from_mapping for measures that live in the registry."""
        name = getattr(self.distance_measure, 'name', '')
        if not name:
            raise ConfigurationError(
                f"{self.distance_measure!r} has no registry name and cannot be written to a mapping"
            )
        return {
            DISTANCE_MEASURE_KEY: name,
            CONVERGENCE_KEY: repr(self.convergence_delta),
            M_KEY: repr(self.m),
        }


def _as_float(value: Any, name: str) -> float:
    """Parse a numeric setting, rejecting non-numbers and NaN."""
    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    try:
        result = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from e
    if math.isnan(result):
        raise ConfigurationError(f"{name} must not be NaN")
    return result
