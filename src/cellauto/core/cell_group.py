"""Cell group data structure for n-dimensional cellular automata."""

from typing import Any, Optional, Sequence, Tuple, Union
import numpy as np

from .dimensions import CellGroupDimensions
from .errors import DimensionMismatchError, ImmutableGroupError, IndexOutOfRangeError


class CellGroup:
    """One generation of integer cell values over n axes.

    Values live in a flat numpy array. An n-dimensional index maps to its
    flat position in row-major order, so the first axis varies slowest.
    """

    def __init__(
        self,
        dimensions: Union[CellGroupDimensions, Sequence[int]],
        values: Optional[Any] = None,
    ) -> None:
        """Initialize a new cell group.

        Args:
            dimensions: Axis sizes, either as a descriptor or a plain sequence
            values: Optional initial values in row-major order; any array-like
                holding exactly one value per cell. Defaults to all zeros.

        Raises:
            InvalidDimensionError: If an axis size is not a positive integer
            DimensionMismatchError: If values does not hold one value per cell
        """
        if not isinstance(dimensions, CellGroupDimensions):
            dimensions = CellGroupDimensions(dimensions)
        self._dimensions = dimensions
        self._cells = np.zeros(dimensions.total_elements, dtype=np.int64)

        if values is not None:
            flat = np.asarray(values, dtype=np.int64).reshape(-1)
            if flat.size != dimensions.total_elements:
                raise DimensionMismatchError(
                    f"Got {flat.size} values for a group of {dimensions.total_elements} cells"
                )
            self._cells[:] = flat

    @classmethod
    def from_array(cls, data: Any) -> "CellGroup":
        """Create a cell group from a nested list or numpy array.

        Args:
            data: Array-like whose shape gives the axis sizes

        Returns:
            New cell group holding a copy of the data
        """
        arr = np.asarray(data, dtype=np.int64)
        return cls(CellGroupDimensions(arr.shape), arr)

    @property
    def dimensions(self) -> CellGroupDimensions:
        """Axis sizes of this group."""
        return self._dimensions

    @property
    def num_axes(self) -> int:
        """Number of axes of this group."""
        return self._dimensions.num_axes

    @property
    def num_elements(self) -> int:
        """Number of cells in this group."""
        return self._dimensions.total_elements

    @property
    def shape(self) -> Tuple[int, ...]:
        """Axis sizes as a tuple."""
        return self._dimensions.sizes

    @property
    def cells(self) -> np.ndarray:
        """Get the flat cell array."""
        return self._cells

    @property
    def read_only(self) -> bool:
        """Whether writes to this group are refused."""
        return False

    def flat_index(self, *index: int) -> int:
        """Convert an n-dimensional index to its flat storage position.

        Args:
            index: One integer per axis

        Returns:
            Position of the cell in the flat array

        Raises:
            IndexOutOfRangeError: If the arity is wrong or a component is
                out of bounds
        """
        if not self._dimensions.contains(index):
            raise IndexOutOfRangeError(
                f"Index {index} out of bounds for group of size {self.shape}"
            )
        return self._to_flat(index)

    def _to_flat(self, index: Sequence[int]) -> int:
        """Row-major flattening without bounds checks."""
        if len(index) == 1:
            return index[0]
        if len(index) == 2:
            return index[1] + index[0] * self._dimensions.sizes[1]
        flat = 0
        for component, stride in zip(index, self._dimensions.strides):
            flat += component * stride
        return flat

    def get_value(self, *index: int) -> int:
        """Get the value of a cell.

        Args:
            index: One integer per axis

        Returns:
            The cell value

        Raises:
            IndexOutOfRangeError: If the index is outside the group
        """
        return int(self._cells[self.flat_index(*index)])

    def get_or_default(self, index: Sequence[int], default: int) -> int:
        """Get the value of a cell, or a default for an index outside the group.

        Args:
            index: One integer per axis
            default: Value returned when the index is out of bounds

        Returns:
            The cell value or the default
        """
        if not self._dimensions.contains(index):
            return default
        return int(self._cells[self._to_flat(index)])

    def set_value(self, value: int, *index: int) -> None:
        """Set the value of a cell.

        Args:
            value: New value
            index: One integer per axis

        Raises:
            IndexOutOfRangeError: If the index is outside the group
        """
        self._cells[self.flat_index(*index)] = value

    def fill(self, value: int) -> None:
        """Set every cell to the same value."""
        self._cells.fill(value)

    def copy(self) -> "CellGroup":
        """Return an independent, mutable copy of this group."""
        return CellGroup(self._dimensions, self._cells)

    def to_array(self) -> np.ndarray:
        """Copy of the values shaped by the axis sizes."""
        return self._cells.reshape(self.shape).copy()

    def to_list(self) -> list:
        """Convert the group to a nested list.

        Returns:
            Nested list with one level per axis
        """
        return self.to_array().tolist()

    def __eq__(self, other: object) -> bool:
        """Groups are equal when sizes and values match."""
        if not isinstance(other, CellGroup):
            return False
        return self._dimensions == other._dimensions and np.array_equal(
            self._cells, other._cells
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(sizes={list(self.shape)}, values={self._cells.tolist()})"

    def __str__(self) -> str:
        """Binary 1-D and 2-D groups render as rows of '*' and '.'."""
        if self.num_axes <= 2 and np.isin(self._cells, (0, 1)).all():
            rows = self._cells.reshape(self.shape)
            if self.num_axes == 1:
                rows = rows.reshape(1, -1)
            return "\n".join("".join("*" if v else "." for v in row) for row in rows)
        return str(self.to_array())


class ReadOnlyCellGroup(CellGroup):
    """A cell group whose values cannot be changed after construction.

    Create one with :func:`freeze`. The group owns its own storage, so the
    group it was copied from can keep changing without affecting it.
    """

    def __init__(
        self,
        dimensions: Union[CellGroupDimensions, Sequence[int]],
        values: Optional[Any] = None,
    ) -> None:
        super().__init__(dimensions, values)
        self._cells.setflags(write=False)

    @property
    def read_only(self) -> bool:
        return True

    def set_value(self, value: int, *index: int) -> None:
        raise ImmutableGroupError("This cell group is read-only; cannot call set_value()")

    def fill(self, value: int) -> None:
        raise ImmutableGroupError("This cell group is read-only; cannot call fill()")


def freeze(source: CellGroup) -> ReadOnlyCellGroup:
    """Create a read-only copy of a cell group.

    Args:
        source: Group to copy

    Returns:
        Read-only group with the same dimensions and values
    """
    return ReadOnlyCellGroup(source.dimensions, source.cells)
