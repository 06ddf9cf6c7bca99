"""Transition rules for cellular automata.

A rule computes the next value of a single cell from a read of the previous
generation. Neighbor reads that fall outside the grid see the rule's border
value instead of failing.

The one-dimensional rules also offer an array form, :meth:`Rule.next_values`,
which computes a whole generation at once with PyTorch tensor ops and gives
exactly the same values as calling :meth:`Rule.next_value` per cell.
"""

from abc import ABC, abstractmethod
from enum import Enum
from numbers import Integral
from typing import Any, Dict, Optional, Sequence, Tuple, Type
import math

import numpy as np
import torch
import torch.nn.functional as F

from .cell_group import CellGroup
from .errors import DimensionMismatchError, InvalidParameterError

# Largest input magnitude the tensor path handles; beyond it int64 sums can
# overflow and float64 stops representing every integer.
ARRAY_FORM_LIMIT = 2 ** 52


class AdditionMode(Enum):
    """Which neighbors an additive rule adds to a cell."""

    LEFT_ONLY = "left_only"
    RIGHT_ONLY = "right_only"
    BOTH = "both"


class OverflowMode(Enum):
    """What an additive rule does with values outside its range."""

    WRAP = "wrap"
    CLAMP = "clamp"


def _coerce_enum(enum_cls: Type[Enum], value: Any, name: str) -> Any:
    """Accept an enum member, its value or its name."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        pass
    if isinstance(value, str) and value.upper() in enum_cls.__members__:
        return enum_cls[value.upper()]
    choices = ", ".join(member.value for member in enum_cls)
    raise InvalidParameterError(f"Invalid {name} {value!r}; expected one of: {choices}")


class Rule(ABC):
    """Contract for a cellular automaton transition rule."""

    kind = ""

    def __init__(self, border_value: int = 0) -> None:
        """Initialize the rule.

        Args:
            border_value: Value seen for neighbors outside the grid
        """
        self._border_value = int(border_value)

    @property
    @abstractmethod
    def required_dimensions(self) -> int:
        """Number of axes a cell group must have to use this rule."""

    @property
    def default_border_value(self) -> int:
        """Value substituted for neighbor reads outside the grid."""
        return self._border_value

    def read_cell(self, group: CellGroup, *index: int) -> int:
        """Read a cell, or the border value if the index is outside the grid."""
        return group.get_or_default(index, self._border_value)

    def next_value(self, previous: CellGroup, index: Sequence[int]) -> int:
        """Compute the next value of one cell.

        Args:
            previous: Cell group from the previous iteration
            index: Index of the cell to update

        Returns:
            Next value of the cell at index

        Raises:
            DimensionMismatchError: If previous has the wrong number of axes
        """
        self._check_dimensions(previous)
        return self._next_value(previous, tuple(index))

    def next_values(self, previous: CellGroup) -> Optional[np.ndarray]:
        """Compute every next value at once.

        Returns:
            Flat int64 array in row-major order, or None if this rule has
            no array form or the values are too large for exact tensor math
        """
        return None

    def _check_dimensions(self, previous: CellGroup) -> None:
        if previous.num_axes != self.required_dimensions:
            raise DimensionMismatchError(
                f"{type(self).__name__} requires a {self.required_dimensions}-dimensional "
                f"cell group, got {previous.num_axes} dimensions"
            )

    @abstractmethod
    def _next_value(self, previous: CellGroup, index: Tuple[int, ...]) -> int:
        """Rule-specific next value; dimensions are already checked."""

    def to_dict(self) -> Dict[str, Any]:
        """Convert the rule to a dictionary for serialization."""
        return {"type": self.kind, "border_value": self._border_value}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Rule):
            return False
        return type(self) is type(other) and self.to_dict() == other.to_dict()

    def __hash__(self) -> int:
        return hash(tuple(sorted(self.to_dict().items())))

    def __repr__(self) -> str:
        params = ", ".join(f"{k}={v!r}" for k, v in self.to_dict().items() if k != "type")
        return f"{type(self).__name__}({params})"


class OneDimensionalRule(Rule):
    """Base for rules reading the left, self and right cells of a 1-D group."""

    @property
    def required_dimensions(self) -> int:
        return 1

    def _neighborhood(self, previous: CellGroup, index: Tuple[int, ...]) -> Tuple[int, int, int]:
        x = index[0]
        return (
            self.read_cell(previous, x - 1),
            self.read_cell(previous, x),
            self.read_cell(previous, x + 1),
        )

    def _next_value(self, previous: CellGroup, index: Tuple[int, ...]) -> int:
        left, center, right = self._neighborhood(previous, index)
        return self._combine(left, center, right)

    @abstractmethod
    def _combine(self, left: int, center: int, right: int) -> int:
        """Next value of a cell given its neighborhood."""

    def next_values(self, previous: CellGroup) -> Optional[np.ndarray]:
        self._check_dimensions(previous)
        cells = previous.cells
        magnitude = max(abs(int(cells.max())), abs(int(cells.min())), abs(self._border_value))
        if not self._fits_array_form(magnitude):
            return None
        center = torch.from_numpy(np.array(cells, dtype=np.int64))
        # Constant padding plays the role of the border value
        padded = F.pad(center, (1, 1), mode="constant", value=self._border_value)
        result = self._combine_tensors(padded[:-2], center, padded[2:])
        return result.numpy()

    def _fits_array_form(self, magnitude: int) -> bool:
        """Whether int64/float64 tensor arithmetic is exact for inputs up to magnitude."""
        return magnitude < ARRAY_FORM_LIMIT

    @abstractmethod
    def _combine_tensors(
        self, left: torch.Tensor, center: torch.Tensor, right: torch.Tensor
    ) -> torch.Tensor:
        """Array form of :meth:`_combine` over whole int64 tensors."""


class ElementaryRule(OneDimensionalRule):
    """Wolfram's elementary binary rules.

    The neighborhood pattern is ``4 * left + 2 * self + right`` and the next
    value is bit ``pattern`` of the rule number. Values are not masked to
    {0, 1}, so non-binary inputs produce patterns outside [0, 7]; those map
    to 0.
    """

    kind = "elementary"

    def __init__(self, rule_number: int, border_value: int = 0) -> None:
        """Create an elementary rule.

        Args:
            rule_number: Wolfram rule number in [0, 255]
            border_value: Value seen for neighbors outside the grid

        Raises:
            InvalidParameterError: If rule_number is outside [0, 255]
        """
        super().__init__(border_value)
        if isinstance(rule_number, bool) or not isinstance(rule_number, Integral):
            raise InvalidParameterError(f"Rule number must be an integer, got {rule_number!r}")
        if not 0 <= rule_number <= 255:
            raise InvalidParameterError(
                f"1-dimensional binary rules range from [0, 255], got {rule_number}"
            )
        self.rule_number = int(rule_number)
        self._table = torch.tensor(
            [(self.rule_number >> bit) & 1 for bit in range(8)], dtype=torch.int64
        )

    def _combine(self, left: int, center: int, right: int) -> int:
        pattern = 4 * left + 2 * center + right
        if pattern < 0:
            return 0
        return (self.rule_number >> pattern) & 1

    def _combine_tensors(self, left, center, right):
        pattern = 4 * left + 2 * center + right
        in_table = (pattern >= 0) & (pattern < 8)
        bits = self._table[pattern.clamp(0, 7)]
        return torch.where(in_table, bits, torch.zeros_like(bits))

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["rule_number"] = self.rule_number
        return data


class AdditiveRule(OneDimensionalRule):
    """Adds a share of the neighbor values to each cell.

    The next value is ``self + floor(mix * neighbors)``, where neighbors is
    the left value, the right value or their sum depending on the addition
    mode. Results outside [minimum, maximum] are wrapped or clamped back in.
    """

    kind = "additive"

    def __init__(
        self,
        minimum: int,
        maximum: int,
        mix: float = 1.0,
        addition: Any = AdditionMode.BOTH,
        overflow: Any = OverflowMode.WRAP,
        border_value: int = 0,
    ) -> None:
        """Create an additive rule.

        Args:
            minimum: Lowest value a cell can take
            maximum: Highest value a cell can take (inclusive, > minimum)
            mix: Strength of the neighbor addition
            addition: AdditionMode or its value ("left_only", "right_only", "both")
            overflow: OverflowMode or its value ("wrap", "clamp")
            border_value: Value seen for neighbors outside the grid

        Raises:
            InvalidParameterError: If the bounds are degenerate, mix is not
                finite, or a mode is unknown
        """
        super().__init__(border_value)
        if maximum <= minimum:
            raise InvalidParameterError(
                "Minimum and maximum bounds invalid (max must be strictly greater than min)"
            )
        mix = float(mix)
        if not math.isfinite(mix):
            raise InvalidParameterError(f"Mix must be a finite number, got {mix}")

        self.minimum = int(minimum)
        self.maximum = int(maximum)
        self.mix = mix
        self.addition = _coerce_enum(AdditionMode, addition, "addition mode")
        self.overflow = _coerce_enum(OverflowMode, overflow, "overflow mode")
        self._span = self.maximum + 1 - self.minimum

    def _fits_array_form(self, magnitude: int) -> bool:
        if not super()._fits_array_form(magnitude):
            return False
        bound = max(abs(self.minimum), abs(self.maximum))
        # center + floor(mix * (left + right)) - minimum must stay inside int64
        return magnitude * (1 + 2 * abs(self.mix)) + bound < 2 ** 62

    def apply_overflow(self, value: int) -> int:
        """Bring a value back into [minimum, maximum].

        WRAP uses a true modulo, so negative values land in range as well.
        """
        if self.overflow is OverflowMode.CLAMP:
            return min(max(value, self.minimum), self.maximum)
        return self.minimum + (value - self.minimum) % self._span

    def _select(self, left, right):
        if self.addition is AdditionMode.LEFT_ONLY:
            return left
        if self.addition is AdditionMode.RIGHT_ONLY:
            return right
        return left + right

    def _combine(self, left: int, center: int, right: int) -> int:
        added = math.floor(self.mix * self._select(left, right))
        return self.apply_overflow(center + added)

    def _combine_tensors(self, left, center, right):
        neighbors = self._select(left, right).to(torch.float64)
        values = center + torch.floor(neighbors * self.mix).to(torch.int64)
        if self.overflow is OverflowMode.CLAMP:
            return torch.clamp(values, min=self.minimum, max=self.maximum)
        return self.minimum + torch.remainder(values - self.minimum, self._span)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "minimum": self.minimum,
                "maximum": self.maximum,
                "mix": self.mix,
                "addition": self.addition.value,
                "overflow": self.overflow.value,
            }
        )
        return data


class AveragingRule(OneDimensionalRule):
    """Blends each cell toward the average of its two neighbors.

    The next value is ``trunc((1 - mix) * self + mix * avg)``, where avg is
    the average of the left and right values truncated toward zero.
    """

    kind = "averaging"

    def __init__(self, mix: float, border_value: int = 0) -> None:
        """Create an averaging rule.

        Args:
            mix: How far to move toward the average; clamped to [0, 1]
            border_value: Value seen for neighbors outside the grid

        Raises:
            InvalidParameterError: If mix is NaN
        """
        super().__init__(border_value)
        mix = float(mix)
        if math.isnan(mix):
            raise InvalidParameterError("Mix must be a number, got NaN")
        self.mix = min(max(mix, 0.0), 1.0)

    def _combine(self, left: int, center: int, right: int) -> int:
        total = left + right
        average = total // 2 if total >= 0 else -(-total // 2)
        return int((1.0 - self.mix) * center + self.mix * average)

    def _combine_tensors(self, left, center, right):
        average = torch.div(left + right, 2, rounding_mode="trunc")
        blended = (1.0 - self.mix) * center.to(torch.float64) + self.mix * average.to(torch.float64)
        return torch.trunc(blended).to(torch.int64)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["mix"] = self.mix
        return data


RULE_TYPES: Dict[str, Type[Rule]] = {
    ElementaryRule.kind: ElementaryRule,
    AdditiveRule.kind: AdditiveRule,
    AveragingRule.kind: AveragingRule,
}


def build_rule(kind: str, **params: Any) -> Rule:
    """Create a rule by its registered name.

    Args:
        kind: One of the keys of RULE_TYPES
        **params: Constructor arguments of the rule

    Returns:
        New rule instance

    Raises:
        InvalidParameterError: If kind is not registered
    """
    rule_cls = RULE_TYPES.get(kind)
    if rule_cls is None:
        raise InvalidParameterError(
            f"Unknown rule type {kind!r}; expected one of: {', '.join(sorted(RULE_TYPES))}"
        )
    return rule_cls(**params)


def rule_from_dict(data: Dict[str, Any]) -> Rule:
    """Create a rule from the output of :meth:`Rule.to_dict`."""
    params = dict(data)
    kind = params.pop("type", None)
    return build_rule(kind, **params)
