"""Cellular automaton driver with a bounded iteration cache."""

from collections import deque
from numbers import Integral
from typing import Deque, Iterator, Optional
import logging

import numpy as np

from .cell_group import CellGroup, ReadOnlyCellGroup, freeze
from .config import AutomatonConfig, EvictionPolicy
from .dimensions import CellGroupDimensions
from .errors import DimensionMismatchError, InvalidIterationError, IterationEvictedError
from .rules import Rule

logger = logging.getLogger(__name__)


class CellularAutomaton:
    """Generates iterations of a cell group under a rule.

    Iterations are generated lazily and kept in a cache holding the most
    recent ``config.cache_capacity`` generations. The cache only grows
    forward: requesting an iteration past the cached window generates every
    step up to it, evicting the oldest generations as needed.

    The driver is not thread-safe; callers sharing one instance must
    serialize calls to :meth:`get_iteration`.
    """

    def __init__(
        self,
        initial_group: CellGroup,
        rule: Rule,
        config: Optional[AutomatonConfig] = None,
    ) -> None:
        """Initialize the automaton.

        Args:
            initial_group: Cell group used for iteration 0. A read-only copy
                is kept, so later edits to the argument have no effect.
            rule: Rule used to generate subsequent iterations
            config: Cache and generation settings (defaults if omitted)

        Raises:
            DimensionMismatchError: If the rule requires a different number
                of axes than the initial group has
        """
        if initial_group.num_axes != rule.required_dimensions:
            raise DimensionMismatchError(
                f"The rule for this cellular automaton requires a "
                f"{rule.required_dimensions}-dimensional cell group, "
                f"got {initial_group.num_axes} dimensions"
            )
        self._initial_group = freeze(initial_group)
        self._rule = rule
        self._config = config or AutomatonConfig()
        self._cache: Deque[CellGroup] = deque(maxlen=self._config.cache_capacity)
        self._cache_offset = 0
        self.reset()

    @property
    def dimensions(self) -> CellGroupDimensions:
        """Dimensions shared by every iteration."""
        return self._initial_group.dimensions

    @property
    def rule(self) -> Rule:
        """Rule used to generate iterations."""
        return self._rule

    @property
    def initial_group(self) -> CellGroup:
        """Iteration 0."""
        return self._initial_group

    @property
    def config(self) -> AutomatonConfig:
        """Cache and generation settings."""
        return self._config

    @property
    def cache_offset(self) -> int:
        """Iteration number of the oldest cached generation."""
        return self._cache_offset

    @property
    def cached_iterations(self) -> range:
        """Iterations currently held in the cache."""
        return range(self._cache_offset, self._cache_offset + len(self._cache))

    def reset(self) -> None:
        """Drop every generated iteration, keeping only iteration 0."""
        if len(self._cache) > 1:
            logger.debug("Clearing %d cached iterations", len(self._cache) - 1)
        self._cache.clear()
        self._cache.append(self._initial_group)
        self._cache_offset = 0

    def get_iteration(self, iteration: int) -> CellGroup:
        """Get the cell group at an iteration.

        Args:
            iteration: Iteration number, 0 being the initial group

        Returns:
            Read-only cell group for that iteration

        Raises:
            InvalidIterationError: If iteration is negative or not an integer
            IterationEvictedError: If the iteration was evicted from the cache
                and the eviction policy is RAISE
        """
        if isinstance(iteration, bool) or not isinstance(iteration, Integral):
            raise InvalidIterationError(f"Iteration must be an integer, got {iteration!r}")
        if iteration < 0:
            raise InvalidIterationError(
                f"Cellular automaton cannot get iteration {iteration}. Valid iterations are >= 0."
            )
        if iteration == 0:
            return self._initial_group

        window = self.cached_iterations
        if iteration < window.start:
            self._handle_evicted(iteration)
        elif iteration >= window.stop:
            self._fill_cache_to(iteration)
        return self._cache[iteration - self._cache_offset]

    def iterations(self, stop: int, start: int = 0) -> Iterator[CellGroup]:
        """Yield iterations start through stop - 1 in order.

        Args:
            stop: Iteration to stop before
            start: First iteration to yield
        """
        for iteration in range(start, stop):
            yield self.get_iteration(iteration)

    def _handle_evicted(self, iteration: int) -> None:
        """Deal with a request below the cached window."""
        if self._config.eviction_policy is EvictionPolicy.RAISE:
            raise IterationEvictedError(
                f"Iteration {iteration} was evicted; the cache holds iterations "
                f"{self.cached_iterations.start} to {self.cached_iterations.stop - 1}"
            )
        logger.debug(
            "Iteration %d is below the cached window starting at %d; regenerating from 0",
            iteration,
            self._cache_offset,
        )
        self.reset()
        self._fill_cache_to(iteration)

    def _fill_cache_to(self, iteration: int) -> None:
        """Generate forward until the newest cached generation is iteration."""
        latest = self._cache[-1]
        last_cached = self._cache_offset + len(self._cache) - 1
        start_offset = self._cache_offset

        for _ in range(iteration - last_cached):
            latest = self._generate_iteration(latest)
            if len(self._cache) == self._cache.maxlen:
                # The append below drops the oldest generation
                self._cache_offset += 1
            self._cache.append(latest)

        logger.debug("Generated iterations %d to %d", last_cached + 1, iteration)
        if self._cache_offset != start_offset:
            logger.debug(
                "Evicted %d iterations; cache now holds %d to %d",
                self._cache_offset - start_offset,
                self._cache_offset,
                iteration,
            )

    def _generate_iteration(self, previous: CellGroup) -> ReadOnlyCellGroup:
        """Generate the iteration following previous.

        Args:
            previous: The previous iteration

        Returns:
            The subsequent iteration
        """
        values = self._rule.next_values(previous) if self._config.vectorized else None
        if values is None:
            dims = self.dimensions
            values = np.empty(dims.total_elements, dtype=np.int64)
            # Row-major visiting order matches the flat layout
            for flat, index in enumerate(dims.indices()):
                values[flat] = self._rule.next_value(previous, index)
        return ReadOnlyCellGroup(self.dimensions, values)
