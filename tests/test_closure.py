import pytest

from minplus.algebra import closure
from minplus.algebra.curve import Curve, CurveShape
from minplus.algebra.elements import Point, Segment
from minplus.curves.shapes import (StaircaseCurve, SigmaRhoArrivalCurve, RateLatencyServiceCurve,
                                   ConstantCurve)
from minplus.numerics.rational import Rational, PLUS_INFINITY


def values(curve, times):
    return [curve.value_at(t) for t in times]


class TestElementClosure:
    """Closures of single points and segments"""

    def test_point(self):
        """A point at (2, 1) is reached again at every multiple of 2"""
        star = closure.element_closure(Point(2, 1))
        assert values(star, (0, 2, 4)) == [0, 1, 2]
        assert star.value_at(1) == PLUS_INFINITY
        assert star.value_at(3) == PLUS_INFINITY
        assert CurveShape.SUB_ADDITIVE in star.shape

    def test_point_at_origin(self):
        star = closure.element_closure(Point(0, 3))
        assert star.value_at(0) == 0
        assert star.value_at(1) == PLUS_INFINITY
        with pytest.raises(NotImplementedError):
            closure.element_closure(Point(0, -1))

    def test_segment_from_origin(self):
        star = closure.element_closure(Segment(0, 2, 1, 0))
        assert values(star, (0, 1, 2, 3, 4, 5)) == [0, 1, 2, 2, 3, 3]

    def test_segment_with_gaps(self):
        """Copies of ]1, 2[ leave holes until they overlap"""
        star = closure.element_closure(Segment(1, 2, 1, 0))
        assert star.value_at(0) == 0
        assert star.value_at(1) == PLUS_INFINITY
        assert star.value_at(Rational(3, 2)) == 1
        assert star.value_at(2) == PLUS_INFINITY
        assert values(star, (3, 4, 6, 7, 8)) == [2, 3, 4, 4, 5]

    def test_increasing_segment(self):
        star = closure.element_closure(Segment(1, 2, 0, 1))
        assert star.value_at(Rational(3, 2)) == Rational(1, 2)
        assert star.value_at(2) == PLUS_INFINITY
        assert star.value_at(3) == 1
        assert star.value_at(Rational(7, 2)) == Rational(1, 2)
        assert star.value_at(4) == 1

    def test_repeated_point(self):
        """(1, 1) repeated every 2 with height 2 closes into every integer"""
        star = Point(1, 1).sub_additive_closure(2, 2)
        assert values(star, (0, 1, 2, 3)) == [0, 1, 2, 3]
        assert star.value_at(Rational(1, 2)) == PLUS_INFINITY

    def test_infinite_segment(self):
        star = closure.element_closure(Segment.plus_infinite(0, 1))
        assert star.value_at(0) == 0
        assert star.value_at(5) == PLUS_INFINITY


class TestCurveClosure:
    """Closures of whole curves"""

    def test_single_point(self):
        f = Curve([Point(0, 0), Segment.plus_infinite(0, 2), Point(2, 1)], 3, 1, 0, is_partial_curve=True)
        star = f.sub_additive_closure()
        assert values(star, (0, 2, 4)) == [0, 1, 2]
        assert star.value_at(1) == PLUS_INFINITY
        assert star.value_at(3) == PLUS_INFINITY

    def test_staircase(self):
        """A staircase is its own closure"""
        star = StaircaseCurve(1, 2).as_generic().sub_additive_closure()
        assert star.equivalent(StaircaseCurve(1, 2))
        assert CurveShape.SUB_ADDITIVE in star.shape

    def test_tagged_curve(self):
        gamma = SigmaRhoArrivalCurve(2, 1)
        assert gamma.sub_additive_closure() is gamma

    def test_plus_infinite(self):
        """Nothing but the origin is left"""
        star = Curve.plus_infinite().sub_additive_closure()
        assert star.value_at(0) == 0
        assert star.value_at(3) == PLUS_INFINITY

    def test_negative_origin(self):
        with pytest.raises(NotImplementedError):
            ConstantCurve(-1).sub_additive_closure()

    def test_super_additive_closure(self):
        beta = RateLatencyServiceCurve(2, 1)
        assert beta.super_additive_closure().equivalent(beta)
