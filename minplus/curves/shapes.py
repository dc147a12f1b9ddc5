#!/usr/bin/python3
#
# This file is part of minplus
# Copyright (c) 2024 The minplus authors
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, version 3.
#
# This program is distributed in the hope that it will be useful, but
# WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the GNU
# General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program. If not, see <http://www.gnu.org/licenses/>.

"""
This module contains the classical curves of network calculus.

They are plain curves: the constructors only build the representation and
the shape tag, and the results of the operators are generic curves.
"""

from minplus.algebra.curve import Curve, CurveShape
from minplus.algebra.elements import Point, Segment
from minplus.algebra.sequence import Sequence
from minplus.exceptions import InvalidArgument, InvalidOperation
from minplus.numerics.rational import to_rational, ZERO, ONE, PLUS_INFINITY

DEFAULT_PERIOD_LENGTH = ONE


def _finite(name: str, value, non_negative: bool = True):
    value = to_rational(value)
    if value.is_infinite() or (non_negative and value < 0):
        raise InvalidArgument(string="%s must be finite%s, not %s" % (name, " and non-negative" if non_negative else "", value))
    return value


# Curves with a verified property

class SubAdditiveCurve(Curve):
    """
    A curve checked to be sub-additive. It is tagged only if it is 0 at the origin.

    Arguments:
        curve {Curve} -- the curve to check

    Raises:
        InvalidOperation: the curve is not sub-additive
    """

    def __init__(self, curve: Curve, **kargs) -> None:
        if not curve.is_sub_additive():
            raise InvalidOperation(string="The curve is not sub-additive")
        shape = CurveShape.SUB_ADDITIVE if curve.is_zero_at_zero() else CurveShape.NONE
        super().__init__(curve.base_sequence, curve.pseudo_period_start, curve.pseudo_period_length,
                         curve.pseudo_period_height, shape=shape | curve.shape, **kargs)


class SuperAdditiveCurve(Curve):
    """
    A curve checked to be super-additive. It is tagged only if it is 0 at the origin.

    Raises:
        InvalidOperation: the curve is not super-additive
    """

    def __init__(self, curve: Curve, **kargs) -> None:
        if not curve.is_super_additive():
            raise InvalidOperation(string="The curve is not super-additive")
        shape = CurveShape.SUPER_ADDITIVE if curve.is_zero_at_zero() else CurveShape.NONE
        super().__init__(curve.base_sequence, curve.pseudo_period_start, curve.pseudo_period_length,
                         curve.pseudo_period_height, shape=shape | curve.shape, **kargs)


class ConcaveCurve(Curve):
    """
    A curve checked to be concave. It is tagged only if it is 0 at the origin.

    Raises:
        InvalidOperation: the curve is not concave
    """

    def __init__(self, curve: Curve, **kargs) -> None:
        if not curve.is_concave():
            raise InvalidOperation(string="The curve is not concave")
        shape = CurveShape.CONCAVE if curve.is_zero_at_zero() else CurveShape.NONE
        super().__init__(curve.base_sequence, curve.pseudo_period_start, curve.pseudo_period_length,
                         curve.pseudo_period_height, shape=shape | curve.shape, **kargs)


class ConvexCurve(Curve):
    """
    A curve checked to be convex. It is tagged only if it is 0 at the origin.

    Raises:
        InvalidOperation: the curve is not convex
    """

    def __init__(self, curve: Curve, **kargs) -> None:
        if not curve.is_convex():
            raise InvalidOperation(string="The curve is not convex")
        shape = CurveShape.CONVEX if curve.is_zero_at_zero() else CurveShape.NONE
        super().__init__(curve.base_sequence, curve.pseudo_period_start, curve.pseudo_period_length,
                         curve.pseudo_period_height, shape=shape | curve.shape, **kargs)


# Service curves

class RateLatencyServiceCurve(Curve):
    """
    beta_{R,T}(t) = R * max(0, t - T)

    Arguments:
        rate {Rational} -- R, finite and non-negative
        latency {Rational} -- T, finite and non-negative
    """

    def __init__(self, rate, latency, **kargs) -> None:
        self.rate = _finite("The rate", rate)
        self.latency = _finite("The latency", latency)
        if self.latency == 0:
            elements = [Point.origin(), Segment(ZERO, DEFAULT_PERIOD_LENGTH, ZERO, self.rate)]
        else:
            elements = [Point.origin(), Segment.zero(ZERO, self.latency),
                        Point(self.latency, ZERO), Segment(self.latency, self.latency + DEFAULT_PERIOD_LENGTH, ZERO, self.rate)]
        super().__init__(Sequence(elements), self.latency, DEFAULT_PERIOD_LENGTH, self.rate * DEFAULT_PERIOD_LENGTH,
                         shape=CurveShape.CONVEX, **kargs)

    def __str__(self):
        return "RateLatency(R=%s, T=%s)" % (self.rate, self.latency)


class DelayServiceCurve(Curve):
    """
    delta_T(t) = 0 for t <= T, +inf after. delta_0 is the neutral element of the convolution.

    Arguments:
        delay {Rational} -- T, finite and non-negative
    """

    def __init__(self, delay, **kargs) -> None:
        self.delay = _finite("The delay", delay)
        if self.delay == 0:
            length = DEFAULT_PERIOD_LENGTH
            elements = [Point.origin(), Segment.plus_infinite(ZERO, length),
                        Point(length, PLUS_INFINITY), Segment.plus_infinite(length, 2 * length)]
            start = length
        else:
            length = self.delay
            elements = [Point.origin(), Segment.zero(ZERO, length), Point(length, ZERO),
                        Segment.plus_infinite(length, 2 * length), Point(2 * length, PLUS_INFINITY),
                        Segment.plus_infinite(2 * length, 3 * length)]
            start = 2 * length
        super().__init__(Sequence(elements), start, length, PLUS_INFINITY,
                         shape=CurveShape.DELAY | CurveShape.SUPER_ADDITIVE, **kargs)

    def __str__(self):
        return "Delay(T=%s)" % self.delay


class TwoRatesServiceCurve(Curve):
    """
    0 until delay, then transient_rate until transient_end, then steady_rate

    Raises:
        InvalidArgument: the delay comes after the end of the transient
    """

    def __init__(self, delay, transient_rate, transient_end, steady_rate, **kargs) -> None:
        self.delay = _finite("The delay", delay)
        self.transient_rate = _finite("The transient rate", transient_rate)
        self.transient_end = _finite("The transient end", transient_end)
        self.steady_rate = _finite("The steady rate", steady_rate)
        if self.delay > self.transient_end:
            raise InvalidArgument(string="The delay %s must precede the end of the transient %s"
                                         % (self.delay, self.transient_end))
        end_value = self.transient_rate * (self.transient_end - self.delay)
        elements = [Point.origin()]
        if self.delay > 0:
            elements += [Segment.zero(ZERO, self.delay), Point(self.delay, ZERO)]
        if self.transient_end > self.delay:
            elements += [Segment(self.delay, self.transient_end, ZERO, self.transient_rate),
                         Point(self.transient_end, end_value)]
        elements.append(Segment(self.transient_end, self.transient_end + DEFAULT_PERIOD_LENGTH, end_value, self.steady_rate))
        shape = CurveShape.CONVEX if self.transient_rate <= self.steady_rate else CurveShape.NONE
        super().__init__(Sequence(elements), self.transient_end, DEFAULT_PERIOD_LENGTH,
                         self.steady_rate * DEFAULT_PERIOD_LENGTH, shape=shape, **kargs)


class RaisedRateLatencyServiceCurve(Curve):
    """
    buffer_shift + rate * max(0, t - latency), optionally 0 at the origin
    """

    def __init__(self, rate, latency, buffer_shift, with_zero_origin: bool = False, **kargs) -> None:
        self.rate = _finite("The rate", rate)
        self.latency = _finite("The latency", latency)
        self.buffer_shift = _finite("The buffer shift", buffer_shift)
        origin = ZERO if with_zero_origin else self.buffer_shift
        if self.latency == 0 and self.buffer_shift == 0:
            start = ZERO
            elements = [Point.origin(), Segment(ZERO, DEFAULT_PERIOD_LENGTH, ZERO, self.rate)]
        elif self.latency == 0:
            start = DEFAULT_PERIOD_LENGTH
            start_value = self.buffer_shift + self.rate * start
            elements = [Point(ZERO, origin), Segment(ZERO, start, self.buffer_shift, self.rate),
                        Point(start, start_value), Segment(start, start + DEFAULT_PERIOD_LENGTH, start_value, self.rate)]
        else:
            start = self.latency
            elements = [Point(ZERO, origin), Segment.constant(ZERO, start, self.buffer_shift),
                        Point(start, self.buffer_shift),
                        Segment(start, start + DEFAULT_PERIOD_LENGTH, self.buffer_shift, self.rate)]
        super().__init__(Sequence(elements), start, DEFAULT_PERIOD_LENGTH, self.rate * DEFAULT_PERIOD_LENGTH, **kargs)


# Arrival curves

class SigmaRhoArrivalCurve(Curve):
    """
    gamma_{sigma,rho}(t) = sigma + rho * t for t > 0, 0 at the origin (leaky bucket)

    Arguments:
        sigma {Rational} -- burst, finite and non-negative
        rho {Rational} -- rate, finite and non-negative
    """

    def __init__(self, sigma, rho, **kargs) -> None:
        self.sigma = _finite("The burst", sigma)
        self.rho = _finite("The rate", rho)
        one = DEFAULT_PERIOD_LENGTH
        elements = [Point.origin(), Segment(ZERO, one, self.sigma, self.rho),
                    Point(one, self.sigma + self.rho * one), Segment(one, 2 * one, self.sigma + self.rho * one, self.rho)]
        super().__init__(Sequence(elements), one, one, self.rho * one, shape=CurveShape.CONCAVE, **kargs)

    def __str__(self):
        return "SigmaRho(sigma=%s, rho=%s)" % (self.sigma, self.rho)


class StaircaseCurve(Curve):
    """
    f(t) = a * ceil(t / b), the arrivals of a periodic flow

    Arguments:
        a {Rational} -- height of a step, finite and non-negative
        b {Rational} -- length of a step, finite and positive
    """

    def __init__(self, a, b, **kargs) -> None:
        self.a = _finite("The step height", a)
        self.b = _finite("The step length", b)
        if self.b == 0:
            raise InvalidArgument(string="The step length must be positive")
        elements = [Point.origin(), Segment.constant(ZERO, self.b, self.a)]
        super().__init__(Sequence(elements), ZERO, self.b, self.a,
                         shape=CurveShape.STAIRCASE | CurveShape.SUB_ADDITIVE, **kargs)

    def __str__(self):
        return "Staircase(a=%s, b=%s)" % (self.a, self.b)


class StepCurve(Curve):
    """
    0 until step_time (included), value after
    """

    def __init__(self, value, step_time, **kargs) -> None:
        self.value = _finite("The step value", value, non_negative=False)
        self.step_time = _finite("The step time", step_time)
        one = DEFAULT_PERIOD_LENGTH
        if self.step_time == 0:
            elements = [Point.origin(), Segment.constant(ZERO, one, self.value),
                        Point(one, self.value), Segment.constant(one, 2 * one, self.value)]
        else:
            elements = [Point.origin(), Segment.zero(ZERO, self.step_time), Point(self.step_time, ZERO),
                        Segment.constant(self.step_time, self.step_time + one, self.value),
                        Point(self.step_time + one, self.value),
                        Segment.constant(self.step_time + one, self.step_time + 2 * one, self.value)]
        super().__init__(Sequence(elements), self.step_time + one, one, ZERO, **kargs)


class ConstantCurve(Curve):
    """
    f(t) = value for all t >= 0, the origin included
    """

    def __init__(self, value, **kargs) -> None:
        self.value = to_rational(value)
        super().__init__(Sequence.constant(ZERO, DEFAULT_PERIOD_LENGTH, self.value), ZERO, DEFAULT_PERIOD_LENGTH, ZERO, **kargs)
