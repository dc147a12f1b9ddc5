import pytest

from minplus.algebra.elements import Point, Segment
from minplus.algebra.sequence import Sequence
from minplus.algebra.settings import ComputationSettings
from minplus.exceptions import InvalidArgument, InvalidSequence, FixedPointNotReached
from minplus.numerics.rational import Rational, PLUS_INFINITY, MINUS_INFINITY


def ramp_then_step():
    # t over [0, 2[, 3 over [2, 4[
    return Sequence([Point(0, 0), Segment(0, 2, 0, 1), Point(2, 3), Segment(2, 4, 3, 0)])


class TestSequenceConstruction:
    """Validation of the element lists"""

    def test_points_must_alternate(self):
        with pytest.raises(InvalidSequence):
            Sequence([Point(0, 0), Point(1, 1)])

    def test_no_gaps(self):
        with pytest.raises(InvalidSequence) as info:
            Sequence([Point(0, 0), Segment(1, 2, 0, 0)])
        assert info.value.get_index() == 1

    def test_empty(self):
        with pytest.raises(InvalidSequence):
            Sequence([])

    def test_fill(self):
        """Missing parts are filled with +inf"""
        s = Sequence([Point(1, 1)], fill_from=0, fill_to=2)
        assert s.value_at(0) == PLUS_INFINITY
        assert s.value_at(1) == 1
        assert s.value_at(Rational(3, 2)) == PLUS_INFINITY
        assert s.defined_until == 2 and s.is_right_open

    def test_time_order(self):
        assert Sequence.are_in_time_order([Point(0, 0), Segment(0, 1, 0, 0), Point(3, 0)])
        assert not Sequence.are_in_time_order([Segment(0, 2, 0, 0), Point(1, 0)])


class TestSequenceEvaluation:
    """Values and limits"""

    def test_values(self):
        s = ramp_then_step()
        assert s.value_at(1) == 1
        assert s.value_at(2) == 3
        assert s.left_limit_at(2) == 2
        assert s.right_limit_at(2) == 3
        assert s.is_defined_at(0)
        assert not s.is_defined_at(4)

    def test_outside(self):
        with pytest.raises(InvalidArgument):
            ramp_then_step().value_at(4)

    def test_properties(self):
        s = ramp_then_step()
        assert s.is_finite()
        assert not s.is_continuous()
        assert s.is_right_continuous()
        assert not s.is_left_continuous()
        assert s.is_non_decreasing()
        assert s.min_value() == 0
        assert s.max_value() == 3
        assert s.first_non_zero_time() == 0

    def test_cut(self):
        cut = ramp_then_step().cut(1, 3)
        assert cut.elements == (Point(1, 1), Segment(1, 2, 1, 1), Point(2, 3), Segment(2, 3, 3, 0))

    def test_cut_open_start(self):
        cut = ramp_then_step().cut(2, 3, is_start_included=False, is_end_included=True)
        assert cut.elements == (Segment(2, 3, 3, 0), Point(3, 3))

    def test_cut_outside(self):
        with pytest.raises(InvalidArgument):
            ramp_then_step().cut(1, 5)

    def test_optimize_and_split(self):
        s = Sequence([Point(0, 0), Segment(0, 1, 0, 1), Point(1, 1), Segment(1, 2, 1, 1)])
        assert s.optimize().elements == (Point(0, 0), Segment(0, 2, 0, 1))
        assert s.optimize().enforce_split_at(1) == s
        assert s.equivalent(s.optimize())


class TestSequenceOperators:
    """Pointwise operators and min-plus operators over sequences"""

    def test_addition(self):
        s = ramp_then_step() + Sequence.constant(0, 4, 1)
        assert s.value_at(1) == 2
        assert s.value_at(3) == 4

    def test_addition_common_domain(self):
        s = ramp_then_step().addition(Sequence.zero(1, 3))
        assert s.defined_from == 1
        assert s.defined_until == 3
        assert s.value_at(1) == 1

    def test_subtraction_needs_the_flag(self):
        with pytest.raises(TypeError):
            ramp_then_step().subtraction(Sequence.constant(0, 4, 2))

    def test_subtraction(self):
        other = Sequence.constant(0, 4, 2)
        difference = ramp_then_step().subtraction(other, non_negative=False)
        assert difference.value_at(0) == -2
        assert difference.value_at(3) == 1
        clipped = ramp_then_step().subtraction(other, non_negative=True)
        assert clipped.value_at(0) == 0
        assert clipped.value_at(1) == 0
        assert clipped.value_at(3) == 1

    def test_minimum_maximum(self):
        ramp = Sequence([Point(0, 0), Segment(0, 4, 0, 1)])
        flat = Sequence.constant(0, 4, 2)
        lowest = ramp.minimum(flat)
        assert lowest.value_at(1) == 1
        assert lowest.value_at(3) == 2
        highest = ramp.maximum(flat)
        assert highest.value_at(1) == 2
        assert highest.value_at(3) == 3
        assert lowest <= highest

    def test_convolution(self):
        ramp = Sequence([Point(0, 0), Segment(0, 1, 0, 1)])
        square = ramp * ramp
        assert square.defined_until == 2
        assert square.is_right_open
        assert square.value_at(Rational(3, 2)) == Rational(3, 2)

    def test_convolution_of_points(self):
        a = Sequence([Point(0, 0), Segment.plus_infinite(0, 2), Point(2, 1)])
        square = a.convolution(a)
        assert square.value_at(4) == 2
        assert square.value_at(2) == 1
        assert square.value_at(3) == PLUS_INFINITY

    def test_convolution_cut(self):
        ramp = Sequence([Point(0, 0), Segment(0, 1, 0, 1)])
        square = ramp.convolution(ramp, cut_end=Rational(1, 2))
        assert square.defined_until == Rational(1, 2)

    def test_deconvolution(self):
        a = Sequence([Point(2, 4), Segment(2, 3, 4, 1)])
        b = Sequence([Point(2, 0)])
        result = a.deconvolution(b)
        assert result.value_at(0) == 4
        assert result.value_at(Rational(1, 2)) == Rational(9, 2)

    def test_deconvolution_with_infinite_dividend(self):
        """+inf parts of the dividend facing finite parts of the divisor give +inf"""
        a = Sequence([Point(0, 0), Segment.plus_infinite(0, 1), Point(1, 1), Segment(1, 2, 1, 1)])
        b = Sequence([Point(0, 0), Segment(0, 1, 0, 2)])
        result = a.deconvolution(b, 0, 1)
        assert result.value_at(0) == PLUS_INFINITY
        assert result.value_at(Rational(1, 2)) == PLUS_INFINITY
        assert result.defined_until == 1

    def test_max_plus_convolution(self):
        a = Sequence([Point(0, 0), Segment(0, 1, 0, 1)])
        result = a.max_plus_convolution(a)
        assert result.value_at(Rational(3, 2)) == Rational(3, 2)


class TestSequenceClosure:
    """Sub-additive closure over a bounded domain"""

    def points(self):
        return Sequence([Point(0, 0), Segment.plus_infinite(0, 2), Point(2, 1),
                         Segment.plus_infinite(2, 5), Point(5, PLUS_INFINITY)])

    def test_closure(self):
        closure = self.points().sub_additive_closure()
        assert closure.value_at(0) == 0
        assert closure.value_at(2) == 1
        assert closure.value_at(4) == 2
        assert closure.value_at(3) == PLUS_INFINITY
        assert closure.defined_until == 5

    def test_negative_slope_start(self):
        s = Sequence([Point(0, 0), Segment(0, 1, -1, 0)])
        closure = s.sub_additive_closure()
        assert closure.value_at(Rational(1, 2)) == MINUS_INFINITY

    def test_negative_origin(self):
        with pytest.raises(NotImplementedError):
            Sequence([Point(0, -1), Segment(0, 1, 0, 0)]).sub_additive_closure()

    def test_iteration_bound(self):
        """Each round doubles the number of steps reached, one round is not enough"""
        steps = Sequence([Point(0, 0), Segment(0, 1, 1, 0), Point(1, 1), Segment(1, 8, PLUS_INFINITY, 0)])
        with pytest.raises(FixedPointNotReached):
            steps.sub_additive_closure(ComputationSettings(closure_max_iterations=1))
