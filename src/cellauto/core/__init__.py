"""Core cellular automata logic."""

from .dimensions import CellGroupDimensions
from .cell_group import CellGroup, ReadOnlyCellGroup, freeze
from .rules import (
    AdditionMode,
    AdditiveRule,
    AveragingRule,
    ElementaryRule,
    OneDimensionalRule,
    OverflowMode,
    Rule,
    build_rule,
    rule_from_dict,
)
from .config import AutomatonConfig, EvictionPolicy, MAX_CACHE_CAPACITY
from .automaton import CellularAutomaton
from .errors import (
    AutomatonError,
    DimensionMismatchError,
    ImmutableGroupError,
    IndexOutOfRangeError,
    InvalidDimensionError,
    InvalidIterationError,
    InvalidParameterError,
    IterationEvictedError,
)

__all__ = [
    "CellGroupDimensions",
    "CellGroup",
    "ReadOnlyCellGroup",
    "freeze",
    "Rule",
    "OneDimensionalRule",
    "ElementaryRule",
    "AdditiveRule",
    "AveragingRule",
    "AdditionMode",
    "OverflowMode",
    "build_rule",
    "rule_from_dict",
    "AutomatonConfig",
    "EvictionPolicy",
    "MAX_CACHE_CAPACITY",
    "CellularAutomaton",
    "AutomatonError",
    "DimensionMismatchError",
    "ImmutableGroupError",
    "IndexOutOfRangeError",
    "InvalidDimensionError",
    "InvalidIterationError",
    "InvalidParameterError",
    "IterationEvictedError",
]
