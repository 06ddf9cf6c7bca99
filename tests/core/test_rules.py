"""Tests for the rule classes."""

import numpy as np
import pytest
from cellauto.core.cell_group import CellGroup, freeze
from cellauto.core.errors import DimensionMismatchError, InvalidParameterError
from cellauto.core.rules import (
    AdditionMode,
    AdditiveRule,
    AveragingRule,
    ElementaryRule,
    OverflowMode,
    Rule,
    build_rule,
    rule_from_dict,
)


def step(rule, values):
    """Apply a 1-D rule cell by cell and return the next values as a list."""
    group = CellGroup([len(values)], values)
    return [rule.next_value(group, (x,)) for x in range(len(values))]


def step_vectorized(rule, values):
    """Apply a 1-D rule in array form and return the next values as a list."""
    group = CellGroup([len(values)], values)
    return rule.next_values(group).tolist()


class TestElementaryRule:
    """Test cases for the ElementaryRule class."""

    def test_rule_90_single_seed(self):
        """Test rule 90 on a single live cell."""
        assert step(ElementaryRule(90), [0, 0, 1, 0, 0]) == [0, 1, 0, 1, 0]

    def test_rule_90_truth_table(self):
        """Test every neighborhood of rule 90 against its bits."""
        rule = ElementaryRule(90)
        for pattern in range(8):
            left, center, right = (pattern >> 2) & 1, (pattern >> 1) & 1, pattern & 1
            group = CellGroup([3], [left, center, right])
            assert rule.next_value(group, (1,)) == (90 >> pattern) & 1

    def test_rule_30_two_steps(self):
        """Test the first two rows of rule 30."""
        rule = ElementaryRule(30)
        first = step(rule, [0, 0, 0, 1, 0, 0, 0])
        assert first == [0, 0, 1, 1, 1, 0, 0]
        assert step(rule, first) == [0, 1, 1, 0, 0, 1, 0]

    def test_rule_0_all_zero(self):
        """Test that rule 0 always gives an all-zero generation."""
        rule = ElementaryRule(0)
        for values in ([1, 1, 1, 1], [0, 1, 0, 1], [3, 7, -2, 5]):
            assert step(rule, values) == [0] * len(values)

    def test_rule_255_all_one(self):
        """Test that rule 255 gives an all-one generation for binary inputs."""
        rule = ElementaryRule(255)
        for values in ([0, 0, 0, 0], [1, 0, 1, 1], [1, 1, 1, 1]):
            assert step(rule, values) == [1] * len(values)

    def test_border_value(self):
        """Test that out-of-grid neighbors read the border value."""
        assert step(ElementaryRule(90, border_value=1), [0, 0, 0]) == [1, 0, 1]

    def test_non_binary_inputs(self):
        """Test patterns outside [0, 7] for unmasked inputs."""
        rule = ElementaryRule(255)
        # 2 * 2 = 4 is still in the table; 2 * 5 = 10 is not
        assert step(rule, [2]) == [1]
        assert step(rule, [5]) == [0]
        assert step(ElementaryRule(255, border_value=-1), [0]) == [0]

    @pytest.mark.parametrize("rule_number", [-1, 256, 1000])
    def test_invalid_rule_number(self, rule_number):
        """Test that rule numbers outside [0, 255] are rejected."""
        with pytest.raises(InvalidParameterError):
            ElementaryRule(rule_number)

    def test_invalid_rule_number_type(self):
        """Test that non-integer rule numbers are rejected."""
        with pytest.raises(InvalidParameterError):
            ElementaryRule(30.5)

    def test_required_dimensions(self):
        """Test the declared dimensionality and default border."""
        rule = ElementaryRule(30)
        assert rule.required_dimensions == 1
        assert rule.default_border_value == 0

    def test_dimension_mismatch(self):
        """Test that applying a 1-D rule to a 2-D group fails."""
        rule = ElementaryRule(30)
        group = CellGroup([2, 2])
        with pytest.raises(DimensionMismatchError):
            rule.next_value(group, (0, 0))
        with pytest.raises(DimensionMismatchError):
            rule.next_values(group)


class TestAdditiveRule:
    """Test cases for the AdditiveRule class."""

    def test_both_wrap(self):
        """Test the basic additive step with both neighbors."""
        rule = AdditiveRule(0, 9, 1.0, AdditionMode.BOTH, OverflowMode.WRAP)
        assert step(rule, [1, 2, 3]) == [3, 6, 5]

    def test_defaults(self):
        """Test the default mix and modes."""
        rule = AdditiveRule(0, 9)
        assert rule.mix == 1.0
        assert rule.addition is AdditionMode.BOTH
        assert rule.overflow is OverflowMode.WRAP

    def test_left_only(self):
        """Test adding only the left neighbor."""
        rule = AdditiveRule(0, 9, addition=AdditionMode.LEFT_ONLY)
        assert step(rule, [1, 2, 3]) == [1, 3, 5]

    def test_right_only(self):
        """Test adding only the right neighbor."""
        rule = AdditiveRule(0, 9, addition=AdditionMode.RIGHT_ONLY)
        assert step(rule, [1, 2, 3]) == [3, 5, 3]

    def test_wrap_overflow(self):
        """Test that large sums wrap back into range."""
        rule = AdditiveRule(0, 9)
        assert step(rule, [9, 9, 9]) == [8, 7, 8]

    def test_wrap_with_negative_minimum(self):
        """Test wrapping into a range that does not start at zero."""
        rule = AdditiveRule(-3, 3, addition="left_only")
        assert step(rule, [3, 3, 3]) == [3, -1, -1]

    def test_wrap_negative_values_stay_in_range(self):
        """Test that wrapping uses a true modulo for negative sums."""
        rule = AdditiveRule(0, 9, border_value=-5)
        assert step(rule, [1]) == [1]
        assert step(rule, [0]) == [0]

    def test_clamp_overflow(self):
        """Test clamping at the maximum."""
        rule = AdditiveRule(0, 9, overflow=OverflowMode.CLAMP)
        assert step(rule, [8, 9, 5]) == [9, 9, 9]

    def test_clamp_underflow(self):
        """Test clamping at the minimum."""
        rule = AdditiveRule(0, 9, overflow="clamp", border_value=-100)
        assert step(rule, [0]) == [0]

    def test_mix_scales_addition(self):
        """Test a partial mix."""
        rule = AdditiveRule(0, 9, mix=0.5)
        assert step(rule, [1, 2, 3]) == [2, 4, 4]

    def test_mix_floors_negative_sums(self):
        """Test that the mixed addition rounds toward negative infinity."""
        rule = AdditiveRule(-5, 5, mix=0.5, addition="left_only", overflow="clamp", border_value=-3)
        assert step(rule, [0]) == [-2]

    @pytest.mark.parametrize("overflow", [OverflowMode.WRAP, OverflowMode.CLAMP])
    def test_never_leaves_range(self, overflow):
        """Test that repeated steps stay inside [min, max]."""
        rule = AdditiveRule(2, 11, mix=1.7, overflow=overflow, border_value=-40)
        values = [0, 5, 11, 2, 30, -7, 9]
        for _ in range(25):
            values = step(rule, values)
            assert all(2 <= v <= 11 for v in values)

    def test_clamp_holds_at_boundary(self):
        """Test that clamped values settle at the maximum instead of wrapping."""
        rule = AdditiveRule(0, 9, overflow="clamp")
        values = [1, 1, 1, 1]
        history = []
        for _ in range(6):
            values = step(rule, values)
            history.append(values)
        for previous, current in zip(history, history[1:]):
            assert all(c >= p for p, c in zip(previous, current))
        assert history[-1] == [9, 9, 9, 9]

    @pytest.mark.parametrize("minimum,maximum", [(5, 5), (5, 4), (0, -1)])
    def test_invalid_bounds(self, minimum, maximum):
        """Test that max must be strictly greater than min."""
        with pytest.raises(InvalidParameterError):
            AdditiveRule(minimum, maximum)

    def test_invalid_modes(self):
        """Test that unknown modes are rejected."""
        with pytest.raises(InvalidParameterError):
            AdditiveRule(0, 9, addition="middle")
        with pytest.raises(InvalidParameterError):
            AdditiveRule(0, 9, overflow="bounce")

    def test_invalid_mix(self):
        """Test that a non-finite mix is rejected."""
        with pytest.raises(InvalidParameterError):
            AdditiveRule(0, 9, mix=float("nan"))

    def test_mode_names_accepted(self):
        """Test that enum names work as well as values."""
        rule = AdditiveRule(0, 9, addition="LEFT_ONLY", overflow="CLAMP")
        assert rule.addition is AdditionMode.LEFT_ONLY
        assert rule.overflow is OverflowMode.CLAMP


class TestAveragingRule:
    """Test cases for the AveragingRule class."""

    def test_half_mix(self):
        """Test blending halfway toward the neighbor average."""
        assert step(AveragingRule(0.5), [4, 0, 8]) == [2, 3, 4]

    def test_full_mix(self):
        """Test replacing each cell by the neighbor average."""
        assert step(AveragingRule(1.0), [4, 0, 8]) == [0, 6, 0]

    def test_zero_mix_is_identity(self):
        """Test that a zero mix keeps every value."""
        assert step(AveragingRule(0.0), [4, -3, 8]) == [4, -3, 8]

    def test_mix_clamped(self):
        """Test that the mix is clamped to [0, 1]."""
        assert AveragingRule(2.0).mix == 1.0
        assert AveragingRule(-1.0).mix == 0.0

    def test_nan_mix_rejected(self):
        """Test that a NaN mix is rejected."""
        with pytest.raises(InvalidParameterError):
            AveragingRule(float("nan"))

    def test_truncates_toward_zero(self):
        """Test truncation of both the average and the blend."""
        assert step(AveragingRule(1.0), [3, 0, 0]) == [0, 1, 0]
        assert step(AveragingRule(1.0), [-3, 0, 0]) == [0, -1, 0]
        assert step(AveragingRule(0.5), [-1]) == [0]

    def test_border_value(self):
        """Test averaging against a non-zero border."""
        assert step(AveragingRule(1.0, border_value=10), [0, 0]) == [5, 5]


class TestVectorizedStep:
    """Test that the array form matches the per-cell form."""

    VALUES = [0, 1, 1, 0, 1, 0, 0, 0, 1, 1, 1, 0, 1]
    WIDE_VALUES = [5, -3, 12, 0, 7, 7, -20, 4, 9, 1, 0, 33]

    @pytest.mark.parametrize("rule_number", [0, 30, 90, 110, 184, 255])
    def test_elementary(self, rule_number):
        """Test elementary rules on binary values."""
        rule = ElementaryRule(rule_number)
        assert step_vectorized(rule, self.VALUES) == step(rule, self.VALUES)

    def test_elementary_non_binary(self):
        """Test elementary rules with patterns outside the table."""
        rule = ElementaryRule(201, border_value=-1)
        assert step_vectorized(rule, self.WIDE_VALUES) == step(rule, self.WIDE_VALUES)

    @pytest.mark.parametrize("addition", list(AdditionMode))
    @pytest.mark.parametrize("overflow", list(OverflowMode))
    @pytest.mark.parametrize("mix", [1.0, 0.3, -0.75])
    def test_additive(self, addition, overflow, mix):
        """Test additive rules over every mode combination."""
        rule = AdditiveRule(-4, 15, mix, addition, overflow, border_value=3)
        assert step_vectorized(rule, self.WIDE_VALUES) == step(rule, self.WIDE_VALUES)

    @pytest.mark.parametrize("mix", [0.0, 0.25, 0.5, 0.9, 1.0])
    def test_averaging(self, mix):
        """Test averaging rules with negative values and borders."""
        rule = AveragingRule(mix, border_value=-7)
        assert step_vectorized(rule, self.WIDE_VALUES) == step(rule, self.WIDE_VALUES)

    def test_read_only_input(self):
        """Test that the array form accepts read-only groups."""
        group = freeze(CellGroup([5], [0, 0, 1, 0, 0]))
        assert ElementaryRule(90).next_values(group).tolist() == [0, 1, 0, 1, 0]

    def test_returns_int64(self):
        """Test the dtype of the array form."""
        values = ElementaryRule(90).next_values(CellGroup([3], [0, 1, 0]))
        assert isinstance(values, np.ndarray)
        assert values.dtype == np.int64

    def test_additive_large_values_fall_back(self):
        """Test that sums beyond int64 are left to the per-cell form."""
        rule = AdditiveRule(0, 2 ** 62, 1.0, "both", "wrap")
        values = [2 ** 62] * 3
        assert rule.next_values(CellGroup([3], values)) is None
        assert step(rule, values) == [2 ** 62 - 1, 2 ** 62 - 2, 2 ** 62 - 1]

    def test_elementary_large_values_fall_back(self):
        """Test that huge cell values are left to the per-cell form."""
        rule = ElementaryRule(2)
        values = [2 ** 62, 0, 1]
        assert rule.next_values(CellGroup([3], values)) is None
        assert step(rule, values) == [0, 0, 0]

    def test_large_border_value_falls_back(self):
        """Test that a huge border value also disables the array form."""
        rule = ElementaryRule(90, border_value=2 ** 60)
        assert rule.next_values(CellGroup([3], [0, 1, 0])) is None


class PlusNeighborSumRule(Rule):
    """2-D rule summing the four orthogonal neighbors."""

    kind = "plus_sum"

    @property
    def required_dimensions(self):
        return 2

    def _next_value(self, previous, index):
        row, col = index
        return sum(
            self.read_cell(previous, row + dr, col + dc)
            for dr, dc in ((-1, 0), (1, 0), (0, -1), (0, 1))
        )


class TestCustomRule:
    """Test cases for rules defined outside the library."""

    def test_two_dimensional_rule(self):
        """Test a 2-D rule with border substitution."""
        rule = PlusNeighborSumRule(border_value=1)
        group = CellGroup.from_array([[1, 2], [3, 4]])
        # Corner (0, 0): up=1 (border), down=3, left=1 (border), right=2
        assert rule.next_value(group, (0, 0)) == 7
        assert rule.next_value(group, (1, 1)) == 2 + 1 + 3 + 1

    def test_no_array_form(self):
        """Test that rules without an array form return None."""
        assert PlusNeighborSumRule().next_values(CellGroup([2, 2])) is None

    def test_dimension_mismatch(self):
        """Test the shared dimension check."""
        with pytest.raises(DimensionMismatchError):
            PlusNeighborSumRule().next_value(CellGroup([4]), (0,))

    def test_abstract_rule(self):
        """Test that the base class cannot be instantiated."""
        with pytest.raises(TypeError):
            Rule()


class TestRuleSerialization:
    """Test cases for rule dictionaries and the rule registry."""

    @pytest.mark.parametrize(
        "rule",
        [
            ElementaryRule(110, border_value=1),
            AdditiveRule(0, 255, 0.25, "right_only", "clamp"),
            AveragingRule(0.4),
        ],
    )
    def test_from_dict(self, rule):
        """Test rebuilding a rule from its dictionary."""
        assert rule_from_dict(rule.to_dict()) == rule

    def test_to_dict(self):
        """Test the dictionary layout of an additive rule."""
        assert AdditiveRule(0, 9, overflow="clamp").to_dict() == {
            "type": "additive",
            "border_value": 0,
            "minimum": 0,
            "maximum": 9,
            "mix": 1.0,
            "addition": "both",
            "overflow": "clamp",
        }

    def test_build_rule(self):
        """Test building a rule by name."""
        rule = build_rule("elementary", rule_number=30)
        assert isinstance(rule, ElementaryRule)
        assert rule.rule_number == 30

    def test_unknown_rule_type(self):
        """Test that unknown rule names are rejected."""
        with pytest.raises(InvalidParameterError):
            build_rule("conway")
        with pytest.raises(InvalidParameterError):
            rule_from_dict({"rule_number": 30})

    def test_equality(self):
        """Test that rules compare by parameters."""
        assert ElementaryRule(30) == ElementaryRule(30)
        assert ElementaryRule(30) != ElementaryRule(90)
        assert ElementaryRule(30) != AveragingRule(0.5)
        assert hash(ElementaryRule(30)) == hash(ElementaryRule(30))
        assert repr(ElementaryRule(30)) == "ElementaryRule(border_value=0, rule_number=30)"
