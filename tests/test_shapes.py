import pytest

from minplus.algebra.curve import CurveShape
from minplus.curves.shapes import (RateLatencyServiceCurve, DelayServiceCurve, TwoRatesServiceCurve,
                                   RaisedRateLatencyServiceCurve, SigmaRhoArrivalCurve, StaircaseCurve,
                                   StepCurve, ConstantCurve, SubAdditiveCurve, SuperAdditiveCurve,
                                   ConcaveCurve, ConvexCurve)
from minplus.exceptions import InvalidArgument, InvalidOperation
from minplus.numerics.rational import Rational, PLUS_INFINITY


def values(curve, times):
    return [curve.value_at(t) for t in times]


class TestServiceCurves:
    """Service curves and their parameters"""

    def test_rate_latency(self):
        beta = RateLatencyServiceCurve(10, 5)
        assert values(beta, (0, 5, 6, 15)) == [0, 0, 10, 100]
        assert beta.rate == 10 and beta.latency == 5
        assert str(beta) == "RateLatency(R=10, T=5)"
        assert CurveShape.CONVEX in beta.shape

    def test_invalid_parameters(self):
        with pytest.raises(InvalidArgument):
            RateLatencyServiceCurve(-1, 1)
        with pytest.raises(InvalidArgument):
            RateLatencyServiceCurve(1, PLUS_INFINITY)

    def test_delay(self):
        delta = DelayServiceCurve(3)
        assert delta.value_at(3) == 0
        assert delta.value_at(Rational(7, 2)) == PLUS_INFINITY
        assert delta.value_at(100) == PLUS_INFINITY
        assert CurveShape.DELAY in delta.shape

    def test_null_delay(self):
        delta = DelayServiceCurve(0)
        assert delta.value_at(0) == 0
        assert delta.value_at(1) == PLUS_INFINITY

    def test_two_rates(self):
        beta = TwoRatesServiceCurve(1, 2, 3, 5)
        assert beta.value_at(1) == 0
        assert beta.value_at(3) == 4
        assert beta.value_at(4) == 9
        assert CurveShape.CONVEX in beta.shape
        assert CurveShape.CONVEX not in TwoRatesServiceCurve(1, 5, 3, 2).shape

    def test_two_rates_order(self):
        with pytest.raises(InvalidArgument):
            TwoRatesServiceCurve(3, 1, 2, 1)

    def test_raised_rate_latency(self):
        beta = RaisedRateLatencyServiceCurve(2, 1, 3)
        assert values(beta, (0, Rational(1, 2), 2)) == [3, 3, 5]
        assert RaisedRateLatencyServiceCurve(2, 1, 3, with_zero_origin=True).value_at(0) == 0

    def test_raised_without_latency(self):
        beta = RaisedRateLatencyServiceCurve(2, 0, 3)
        assert values(beta, (0, 1, 5)) == [3, 5, 13]


class TestArrivalCurves:
    """Arrival curves and step functions"""

    def test_sigma_rho(self):
        gamma = SigmaRhoArrivalCurve(2, 1)
        assert values(gamma, (0, Rational(1, 2), 10)) == [0, Rational(5, 2), 12]
        assert str(gamma) == "SigmaRho(sigma=2, rho=1)"
        assert CurveShape.SUB_ADDITIVE in gamma.shape

    def test_staircase(self):
        steps = StaircaseCurve(2, 3)
        assert values(steps, (0, 1, 3, 4, 6)) == [0, 2, 2, 4, 4]

    def test_staircase_step_length(self):
        with pytest.raises(InvalidArgument):
            StaircaseCurve(1, 0)

    def test_step(self):
        step = StepCurve(5, 2)
        assert step.value_at(2) == 0
        assert step.value_at(Rational(5, 2)) == 5
        assert step.value_at(50) == 5
        assert StepCurve(-2, 1).value_at(5) == -2

    def test_constant(self):
        f = ConstantCurve(5)
        assert f.value_at(0) == 5
        assert f.value_at(9) == 5


class TestCheckedCurves:
    """Curves checked for a property on construction"""

    def test_tagged_when_zero_at_zero(self):
        checked = ConcaveCurve(SigmaRhoArrivalCurve(2, 1).as_generic())
        assert CurveShape.CONCAVE in checked.shape
        assert CurveShape.SUB_ADDITIVE in checked.shape

    def test_not_tagged_otherwise(self):
        checked = SubAdditiveCurve(ConstantCurve(5))
        assert CurveShape.SUB_ADDITIVE not in checked.shape

    def test_sub_additive(self):
        assert CurveShape.SUB_ADDITIVE in SubAdditiveCurve(StaircaseCurve(1, 1).as_generic()).shape
        with pytest.raises(InvalidOperation):
            SubAdditiveCurve(RateLatencyServiceCurve(1, 1))

    def test_super_additive(self):
        assert CurveShape.SUPER_ADDITIVE in SuperAdditiveCurve(RateLatencyServiceCurve(1, 1).as_generic()).shape

    def test_convex(self):
        assert CurveShape.CONVEX in ConvexCurve(RateLatencyServiceCurve(1, 1).as_generic()).shape
        with pytest.raises(InvalidOperation):
            ConvexCurve(SigmaRhoArrivalCurve(1, 1))
