"""N-dimensional cellular automata with elementary, additive and averaging rules."""

import logging

__version__ = "0.1.0"

from .core.dimensions import CellGroupDimensions
from .core.cell_group import CellGroup, ReadOnlyCellGroup, freeze
from .core.rules import Rule, ElementaryRule, AdditiveRule, AveragingRule, AdditionMode, OverflowMode
from .core.config import AutomatonConfig, EvictionPolicy
from .core.automaton import CellularAutomaton

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "CellGroupDimensions",
    "CellGroup",
    "ReadOnlyCellGroup",
    "freeze",
    "Rule",
    "ElementaryRule",
    "AdditiveRule",
    "AveragingRule",
    "AdditionMode",
    "OverflowMode",
    "AutomatonConfig",
    "EvictionPolicy",
    "CellularAutomaton",
]
