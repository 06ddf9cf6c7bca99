"""Configuration for the cellular automaton driver."""

from dataclasses import asdict, dataclass, fields
from enum import Enum
from numbers import Integral
from typing import Any, Dict

from .errors import InvalidParameterError

MAX_CACHE_CAPACITY = 256


class EvictionPolicy(Enum):
    """What to do when an iteration older than the cache window is requested."""

    REGENERATE = "regenerate"  # rebuild from iteration 0
    RAISE = "raise"  # fail with IterationEvictedError


@dataclass
class AutomatonConfig:
    """Configuration for a CellularAutomaton."""

    cache_capacity: int = MAX_CACHE_CAPACITY
    eviction_policy: EvictionPolicy = EvictionPolicy.REGENERATE
    vectorized: bool = True

    def __post_init__(self) -> None:
        if isinstance(self.cache_capacity, bool) or not isinstance(self.cache_capacity, Integral):
            raise InvalidParameterError(
                f"Cache capacity must be an integer, got {self.cache_capacity!r}"
            )
        if self.cache_capacity < 1:
            raise InvalidParameterError(
                f"Cache capacity must be at least 1, got {self.cache_capacity}"
            )
        self.cache_capacity = int(self.cache_capacity)
        if not isinstance(self.eviction_policy, EvictionPolicy):
            try:
                self.eviction_policy = EvictionPolicy(self.eviction_policy)
            except ValueError:
                raise InvalidParameterError(
                    f"Unknown eviction policy {self.eviction_policy!r}"
                ) from None
        self.vectorized = bool(self.vectorized)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the configuration to a dictionary."""
        data = asdict(self)
        data["eviction_policy"] = self.eviction_policy.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AutomatonConfig":
        """Create a configuration from a dictionary.

        Args:
            data: Dictionary with any subset of the configuration fields

        Returns:
            New AutomatonConfig instance

        Raises:
            InvalidParameterError: If data has unknown keys or invalid values
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise InvalidParameterError(
                f"Unknown configuration keys: {', '.join(sorted(unknown))}"
            )
        return cls(**data)
