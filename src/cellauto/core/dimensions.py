"""Axis sizes shared by every cell group of an automaton."""

from numbers import Integral
from typing import Iterator, Sequence, Tuple

from .errors import InvalidDimensionError


class CellGroupDimensions:
    """Immutable description of the size of each axis of a cell group.

    Sizes are given first axis first. The first axis varies slowest when
    cells are laid out in flat storage.
    """

    def __init__(self, sizes: Sequence[int]) -> None:
        """Validate and store axis sizes.

        Args:
            sizes: Size of each axis, one positive integer per axis

        Raises:
            InvalidDimensionError: If the sequence is empty or any size is
                not an integer >= 1
        """
        sizes = tuple(sizes)
        if not sizes:
            raise InvalidDimensionError("A cell group needs at least one axis")

        total = 1
        for axis, size in enumerate(sizes):
            if isinstance(size, bool) or not isinstance(size, Integral):
                raise InvalidDimensionError(
                    f"Size for axis {axis} must be an integer, got {size!r}"
                )
            if size < 1:
                raise InvalidDimensionError(
                    f"Size for axis {axis} is invalid. Size given: {size}"
                )
            total *= int(size)

        self._sizes: Tuple[int, ...] = tuple(int(size) for size in sizes)
        self._total = total

        # Sub-size of each axis: product of all later axis sizes
        strides = []
        sub_size = 1
        for size in reversed(self._sizes):
            strides.append(sub_size)
            sub_size *= size
        self._strides: Tuple[int, ...] = tuple(reversed(strides))

    @property
    def sizes(self) -> Tuple[int, ...]:
        """Axis sizes, first axis first."""
        return self._sizes

    @property
    def strides(self) -> Tuple[int, ...]:
        """Flat-storage step of each axis (product of later axis sizes)."""
        return self._strides

    @property
    def num_axes(self) -> int:
        """Number of axes."""
        return len(self._sizes)

    @property
    def total_elements(self) -> int:
        """Number of cells in a group with these dimensions."""
        return self._total

    def axis_size(self, axis: int) -> int:
        """Get the size of a zero-indexed axis."""
        return self._sizes[axis]

    def contains(self, index: Sequence[int]) -> bool:
        """Check whether an n-dimensional index lies inside the grid.

        Args:
            index: One integer per axis

        Returns:
            True if the arity matches and every component is an integer in range
        """
        if len(index) != len(self._sizes):
            return False
        for component, size in zip(index, self._sizes):
            if not isinstance(component, Integral):
                return False
            if component < 0 or component >= size:
                return False
        return True

    def indices(self) -> Iterator[Tuple[int, ...]]:
        """Yield every index in row-major order.

        The last axis advances fastest; when a counter reaches its axis size
        it resets to zero and carries into the previous axis.
        """
        sizes = self._sizes
        current = [0] * len(sizes)
        for _ in range(self._total):
            yield tuple(current)
            for axis in range(len(sizes) - 1, -1, -1):
                current[axis] += 1
                if current[axis] < sizes[axis]:
                    break
                current[axis] = 0

    def __len__(self) -> int:
        return len(self._sizes)

    def __iter__(self) -> Iterator[int]:
        return iter(self._sizes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CellGroupDimensions):
            return NotImplemented
        return self._sizes == other._sizes

    def __hash__(self) -> int:
        return hash(self._sizes)

    def __repr__(self) -> str:
        return f"CellGroupDimensions({list(self._sizes)})"
