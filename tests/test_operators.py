import random

import pytest

from minplus.algebra import closure
from minplus.algebra.curve import Curve, CurveShape
from minplus.algebra.elements import Point, Segment
from minplus.algebra.settings import ComputationSettings
from minplus.curves.shapes import (RateLatencyServiceCurve, SigmaRhoArrivalCurve, StaircaseCurve,
                                   DelayServiceCurve, TwoRatesServiceCurve)
from minplus.exceptions import InvalidOperation
from minplus.numerics.rational import Rational, PLUS_INFINITY

GENERIC = ComputationSettings(use_shape_fast_paths=False)


def grid(count, step=Rational(1, 2)):
    return [step * k for k in range(count)]


def gapped_ramp():
    # +inf over ]0, 1[, then t
    return Curve([Point(0, 0), Segment.plus_infinite(0, 1), Point(1, 1), Segment(1, 2, 1, 1)], 1, 1, 1)


def brute_deconvolution(f, g, t, count=17):
    return max(f.value_at(t + u) - g.value_at(u) for u in grid(count, Rational(1, 4)))


class TestPointwiseOperators:
    """Addition, subtraction, minimum and maximum"""

    def test_addition(self):
        total = RateLatencyServiceCurve(2, 1) + SigmaRhoArrivalCurve(2, 1)
        assert [total.value_at(t) for t in (0, 1, 2, 10)] == [0, 3, 6, 30]

    def test_addition_of_many(self):
        total = Curve.addition_of([SigmaRhoArrivalCurve(1, 1)] * 3)
        assert total.value_at(2) == 9
        assert CurveShape.CONCAVE in total.shape

    def test_subtraction(self):
        difference = SigmaRhoArrivalCurve(2, 1).subtraction(RateLatencyServiceCurve(3, 2), non_negative=False)
        assert difference.value_at(1) == 3
        assert difference.value_at(2) == 4
        assert difference.value_at(4) == 0
        assert difference.value_at(10) == -12

    def test_non_negative_subtraction(self):
        difference = SigmaRhoArrivalCurve(2, 1).subtraction(RateLatencyServiceCurve(3, 2), non_negative=True)
        assert difference.value_at(3) == 2
        assert difference.value_at(10) == 0
        assert difference.is_non_negative()

    def test_vertical_deviation(self):
        """The backlog bound of a leaky bucket through a rate-latency server"""
        assert Curve.vertical_deviation(SigmaRhoArrivalCurve(2, 1), RateLatencyServiceCurve(3, 2)) == 4

    def test_minimum(self):
        lowest = SigmaRhoArrivalCurve(2, 1).minimum(SigmaRhoArrivalCurve(5, Rational(1, 2)))
        assert [lowest.value_at(t) for t in (0, 1, 6, 10)] == [0, 3, 8, 10]
        assert CurveShape.CONCAVE in lowest.shape

    def test_minimum_same_slope(self):
        """One curve below the other over a common pseudo-period is the minimum"""
        a = RateLatencyServiceCurve(1, 2)
        assert a.minimum(RateLatencyServiceCurve(1, 1)) is a

    def test_maximum(self):
        highest = SigmaRhoArrivalCurve(2, 1).maximum(RateLatencyServiceCurve(3, 2))
        assert highest.value_at(1) == 3
        assert highest.value_at(4) == 6
        assert highest.value_at(10) == 24

    def test_minimum_of_many(self):
        lowest = Curve.minimum_of([SigmaRhoArrivalCurve(2, 1), SigmaRhoArrivalCurve(5, Rational(1, 2)),
                                   RateLatencyServiceCurve(10, 0)])
        assert lowest.value_at(Rational(1, 10)) == 1
        assert lowest.value_at(10) == 10

    def test_minimum_with_infinite_pieces(self):
        """Pointwise minimum of curves with +inf pieces, checked value by value"""
        pairs = [(gapped_ramp(), RateLatencyServiceCurve(2, 1)),
                 (closure.element_closure(Point(2, 1)), closure.element_closure(Point(2, 3))),
                 (closure.element_closure(Point(2, 1)), DelayServiceCurve(3))]
        for f, g in pairs:
            lowest = f.minimum(g)
            for t in grid(25):
                assert lowest.value_at(t) == min(f.value_at(t), g.value_at(t))

    def test_minimum_through_infinite_gaps(self):
        """A faster curve seen through the +inf gaps of a slower one has no periodic representation"""
        gapped = closure.element_closure(Point(2, 1))
        with pytest.raises(InvalidOperation):
            gapped.minimum(RateLatencyServiceCurve(1, 0))
        with pytest.raises(InvalidOperation):
            RateLatencyServiceCurve(1, 0).minimum(gapped)
        assert not gapped <= RateLatencyServiceCurve(1, 0)
        assert not RateLatencyServiceCurve(1, 0) <= gapped


class TestConvolution:
    """Min-plus convolution, by shape and by the general algorithm"""

    def test_concave(self):
        a, b = SigmaRhoArrivalCurve(2, 1), SigmaRhoArrivalCurve(5, Rational(1, 2))
        assert (a * b).equivalent(a.minimum(b))
        assert a.convolution(b, GENERIC).equivalent(a.minimum(b))

    def test_rate_latency(self):
        """Rates take the minimum, latencies add up"""
        expected = RateLatencyServiceCurve(2, 3)
        a, b = RateLatencyServiceCurve(3, 1), RateLatencyServiceCurve(2, 2)
        assert (a * b).equivalent(expected)
        assert a.convolution(b, GENERIC).equivalent(expected)
        assert a.convolution(b, ComputationSettings(use_shape_fast_paths=False,
                                                     single_pass_convolution=False)).equivalent(expected)

    def test_convex(self):
        a = TwoRatesServiceCurve(0, 1, 2, 3)
        b = RateLatencyServiceCurve(2, 0)
        result = a * b
        assert result.value_at(1) == 1
        assert result.value_at(4) == 6
        assert result.equivalent(a.convolution(b, GENERIC))

    def test_staircases(self):
        a, b = StaircaseCurve(2, 3), StaircaseCurve(3, 3)
        assert (a * b).equivalent(a)

    def test_random_staircases(self):
        """The shortcut for staircases agrees with the general algorithm"""
        rng = random.Random(1729)
        lengths = [Rational(1, 2), 1, Rational(3, 2), 2, 3]
        for _ in range(20):
            length = rng.choice(lengths)
            a = StaircaseCurve(rng.randint(0, 6), length)
            b = StaircaseCurve(rng.randint(0, 6), length)
            assert (a * b).equivalent(a.convolution(b, GENERIC))
            c = StaircaseCurve(rng.randint(1, 6), rng.choice(lengths))
            assert (a * c).equivalent(a.convolution(c, GENERIC))

    def test_closures_with_gaps(self):
        """Points every 2 and every 3: every integer from 2 on is reached"""
        result = closure.element_closure(Point(2, 1)) * closure.element_closure(Point(3, 1))
        assert [result.value_at(t) for t in range(9)] == [0, PLUS_INFINITY, 1, 1, 2, 2, 2, 3, 3]
        assert result.value_at(13) == 5
        assert result.value_at(Rational(7, 2)) == PLUS_INFINITY

    def test_delay(self):
        shifted = DelayServiceCurve(2) * SigmaRhoArrivalCurve(1, 1)
        assert shifted.value_at(2) == 0
        assert shifted.value_at(Rational(5, 2)) == Rational(3, 2)
        assert shifted.value_at(3) == 2

    def test_neutral_element(self):
        gamma = SigmaRhoArrivalCurve(2, 1)
        assert DelayServiceCurve(0).convolution(gamma).equivalent(gamma)

    def test_zero(self):
        assert Curve.zero().convolution(SigmaRhoArrivalCurve(2, 1)).is_identically_zero()

    def test_plus_infinite(self):
        assert Curve.plus_infinite().convolution(SigmaRhoArrivalCurve(2, 1)).is_plus_infinite()

    def test_without_minimization(self):
        settings = ComputationSettings(use_representation_minimization=False)
        a, b = RateLatencyServiceCurve(3, 1), RateLatencyServiceCurve(2, 2)
        assert a.convolution(b, settings).equivalent(RateLatencyServiceCurve(2, 3))

    def test_convolution_of_many(self):
        result = Curve.convolution_of([RateLatencyServiceCurve(3, 1), RateLatencyServiceCurve(2, 2),
                                       RateLatencyServiceCurve(4, 1)])
        assert result.equivalent(RateLatencyServiceCurve(2, 4))

    def test_max_plus(self):
        assert Curve.zero().max_plus_convolution(Curve.zero()).is_identically_zero()


class TestDeconvolution:
    """Min-plus deconvolution"""

    def test_output_arrival_curve(self):
        """A leaky bucket through a rate-latency server keeps its rate and gets a larger burst"""
        output = SigmaRhoArrivalCurve(2, 1) / RateLatencyServiceCurve(3, 2)
        assert [output.value_at(t) for t in (0, 1, 3, 10)] == [4, 5, 7, 14]

    def test_faster_arrivals(self):
        output = SigmaRhoArrivalCurve(1, 3).deconvolution(RateLatencyServiceCurve(2, 0))
        assert output.is_plus_infinite()
        assert output.value_at(5) == PLUS_INFINITY

    def test_infinite_dividend(self):
        """+inf pieces of the dividend show through where the divisor is finite"""
        f = gapped_ramp()
        g = Curve([Point(0, 0), Segment(0, 1, 0, 2)], 0, 1, 2)
        output = f / g
        assert output.value_at(0) == PLUS_INFINITY
        assert output.value_at(Rational(1, 2)) == PLUS_INFINITY
        for t in grid(11):
            assert output.value_at(t) == brute_deconvolution(f, g, t)


class TestSyntax:
    """Operators as Python operators"""

    def test_same_results(self):
        a, b = SigmaRhoArrivalCurve(2, 1), RateLatencyServiceCurve(3, 2)
        assert (a + b).equivalent(a.addition(b))
        assert (a * b).equivalent(a.convolution(b))
        assert (a / b).equivalent(a.deconvolution(b))

    def test_subtraction_operator(self):
        with pytest.raises(TypeError):
            SigmaRhoArrivalCurve(2, 1) - RateLatencyServiceCurve(3, 2)
