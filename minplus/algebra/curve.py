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
This module contains the ultimately pseudo-periodic curves and the min-plus
operations between them.

A curve is a finite base sequence over [0, T + d[ where the part over
[T, T + d[ repeats forever, shifted up by c at each repetition:
f(t + k*d) = f(t) + k*c for every t >= T.
"""

import enum
import functools
import logging
from typing import Iterable, List, Optional, Tuple

from minplus.algebra.elements import Element, Point, Segment
from minplus.algebra.envelope import fill, merge
from minplus.algebra.sequence import Sequence
from minplus.algebra.settings import ComputationSettings
from minplus.exceptions import InvalidArgument, InvalidOperation
from minplus.numerics.rational import Rational, to_rational, lcm, ZERO, ONE, PLUS_INFINITY, MINUS_INFINITY

lg = logging.getLogger("CURVE")


class CurveShape(enum.Flag):
    """
    Properties a curve is known to have, with value 0 at the origin.
    They select the fast paths of the operators.
    """
    NONE = 0
    SUB_ADDITIVE = enum.auto()
    SUPER_ADDITIVE = enum.auto()
    CONCAVE = enum.auto()
    CONVEX = enum.auto()
    STAIRCASE = enum.auto()
    DELAY = enum.auto()

    def closed(self) -> 'CurveShape':
        """The shape together with the properties it implies"""
        shape = self
        if CurveShape.CONCAVE in shape:
            shape |= CurveShape.SUB_ADDITIVE
        if CurveShape.CONVEX in shape:
            shape |= CurveShape.SUPER_ADDITIVE
        return shape

    def negated(self) -> 'CurveShape':
        """The shape of -f"""
        swaps = [(CurveShape.SUB_ADDITIVE, CurveShape.SUPER_ADDITIVE), (CurveShape.CONCAVE, CurveShape.CONVEX)]
        shape = CurveShape.NONE
        for first, second in swaps:
            if first in self:
                shape |= second
            if second in self:
                shape |= first
        return shape


_ADDITION_SHAPES = CurveShape.SUB_ADDITIVE | CurveShape.SUPER_ADDITIVE | CurveShape.CONCAVE | CurveShape.CONVEX
_CONVOLUTION_SHAPES = CurveShape.SUB_ADDITIVE | CurveShape.CONCAVE | CurveShape.CONVEX


def _memoized(method):
    # derived properties are computed once, the curve being immutable
    name = method.__name__

    @functools.wraps(method)
    def wrapper(self):
        try:
            return self._cache[name]
        except KeyError:
            value = self._cache[name] = method(self)
            return value
    return wrapper


class Curve:
    """
    An ultimately pseudo-periodic piecewise affine function over [0, +inf[.

    Arguments:
        base_sequence {Sequence} -- the function over [0, T + d[, or a list of elements
        pseudo_period_start {Rational} -- T
        pseudo_period_length {Rational} -- d > 0
        pseudo_period_height {Rational} -- c, may be infinite
        is_partial_curve {bool} -- if True, the parts of [0, T + d[ missing from the base sequence are +inf
        shape {CurveShape} -- properties the caller vouches for (default: none)
        name {str} -- name of the curve (keyword only)

    Raises:
        InvalidArgument: the base sequence does not cover [0, T + d[
        InvalidOperation: the base sequence goes beyond T + d and disagrees with the declared pseudo-period
    """

    def __init__(self, base_sequence, pseudo_period_start, pseudo_period_length, pseudo_period_height,
                 is_partial_curve: bool = False, shape: CurveShape = CurveShape.NONE, **kargs) -> None:
        self._name = kargs.get("name", "")
        if not isinstance(base_sequence, Sequence):
            base_sequence = Sequence(base_sequence)
        start = to_rational(pseudo_period_start)
        length = to_rational(pseudo_period_length)
        height = to_rational(pseudo_period_height)
        if start.is_infinite() or start < 0:
            raise InvalidArgument(string="The pseudo-period start must be finite and non-negative, not %s" % start)
        if length.is_infinite() or length <= 0:
            raise InvalidArgument(string="The pseudo-period length must be finite and positive, not %s" % length)
        end = start + length
        if is_partial_curve:
            base_sequence = Sequence(fill(list(base_sequence.elements), ZERO, end))
        if base_sequence.defined_from != 0 or base_sequence.is_left_open:
            raise InvalidArgument(string="The base sequence of a curve must start with a point at 0, it is defined over %s"
                                  % base_sequence._domain_str())
        if base_sequence.defined_until < end:
            raise InvalidArgument(string="The base sequence ends at %s, before the end %s of the first pseudo-period"
                                  % (base_sequence.defined_until, end))
        base = base_sequence.cut(ZERO, end).optimize().enforce_split_at(start)
        if height.is_infinite():
            base, start = _normalized_infinite_period(base, start, length, height)
        self._base = base
        self._T = start
        self._d = length
        self._c = height
        self._shape = shape.closed()
        self._cache = {}
        until = base_sequence.defined_until
        if until > end or (until == end and base_sequence.is_right_closed):
            closed = base_sequence.is_right_closed
            given = base_sequence.cut(end, until, is_end_included=closed)
            if not given.equivalent(self.cut(end, until, is_end_included=closed)):
                raise InvalidOperation(string="The base sequence after %s does not repeat the pseudo-period "
                                              "with height %s" % (end, height))

    # Factories

    @classmethod
    def zero(cls) -> 'Curve':
        return cls(Sequence.zero(ZERO, ONE), ZERO, ONE, ZERO)

    @classmethod
    def plus_infinite(cls) -> 'Curve':
        """ +inf everywhere, the origin included """
        return cls(Sequence.plus_infinite(ZERO, ONE), ZERO, ONE, ZERO)

    @classmethod
    def minus_infinite(cls) -> 'Curve':
        return cls(Sequence.minus_infinite(ZERO, ONE), ZERO, ONE, ZERO)

    # Accessors

    def set_name(self, name: str) -> None:
        self._name = name

    def get_name(self) -> str:
        return self._name

    @property
    def base_sequence(self) -> Sequence:
        return self._base

    @property
    def pseudo_period_start(self) -> Rational:
        return self._T

    @property
    def pseudo_period_length(self) -> Rational:
        return self._d

    @property
    def pseudo_period_height(self) -> Rational:
        return self._c

    @property
    def shape(self) -> CurveShape:
        return self._shape

    @property
    def first_pseudo_period_end(self) -> Rational:
        return self._T + self._d

    @property
    def second_pseudo_period_end(self) -> Rational:
        return self._T + 2 * self._d

    @property
    @_memoized
    def pseudo_period_average_slope(self) -> Rational:
        """ c / d, or the sign of the infinity when the pseudo-period is infinite everywhere """
        periodic = self.periodic_sequence()
        if all(e.is_infinite() for e in periodic):
            return periodic[0].value
        return self._c / self._d

    def has_transient(self) -> bool:
        return self._T > 0

    @_memoized
    def transient_sequence(self) -> Optional[Sequence]:
        """ The base sequence over [0, T[, None if T = 0 """
        if self._T == 0:
            return None
        return self._base.cut(ZERO, self._T)

    @_memoized
    def periodic_sequence(self) -> Sequence:
        """ The base sequence over [T, T + d[ """
        return self._base.cut(self._T, self.first_pseudo_period_end)

    @property
    def transient_elements(self) -> List[Element]:
        transient = self.transient_sequence()
        return [] if transient is None else list(transient.elements)

    @property
    def pseudo_periodic_elements(self) -> List[Element]:
        return list(self.periodic_sequence().elements)

    # Evaluation

    def _check_time(self, time) -> Rational:
        time = to_rational(time)
        if time.is_infinite() or time < 0:
            raise InvalidArgument(string="A curve is defined over [0, +inf[, not at %s" % time)
        return time

    def _periods_before(self, time: Rational) -> int:
        return int(((time - self._T) / self._d).floor())

    def value_at(self, time) -> Rational:
        """ Value of the curve at the given time

        Arguments:
            time {Rational} -- a finite non-negative time

        Returns:
            Rational -- f(time)
        """
        time = self._check_time(time)
        if time < self.first_pseudo_period_end:
            return self._base.value_at(time)
        k = self._periods_before(time)
        return self._base.value_at(time - k * self._d) + k * self._c

    def right_limit_at(self, time) -> Rational:
        time = self._check_time(time)
        if time < self.first_pseudo_period_end:
            return self._base.right_limit_at(time)
        k = self._periods_before(time)
        return self._base.right_limit_at(time - k * self._d) + k * self._c

    def left_limit_at(self, time) -> Rational:
        time = self._check_time(time)
        if time == 0:
            raise InvalidArgument(string="A curve has no left limit at 0")
        if time <= self.first_pseudo_period_end:
            return self._base.left_limit_at(time)
        k = int(((time - self._T) / self._d).ceil()) - 1
        return self._base.left_limit_at(time - k * self._d) + k * self._c

    def _elements_until(self, time: Rational) -> List[Element]:
        """Elements over [0, t[ for some t > time"""
        elements = list(self._base.elements)
        periodic = self.periodic_sequence().elements
        for k in range(1, self._periods_before(time) + 1):
            elements.extend(e.shift(k * self._d, k * self._c) for e in periodic)
        return elements

    def cut(self, start, end, is_start_included: bool = True, is_end_included: bool = False) -> Sequence:
        """ The curve over an interval, as a sequence

        Arguments:
            start {Rational} -- start of the interval, >= 0
            end {Rational} -- end of the interval, finite
            is_start_included {bool} -- (default: True)
            is_end_included {bool} -- (default: False)

        Returns:
            Sequence -- the restriction of the curve
        """
        start = self._check_time(start)
        end = self._check_time(end)
        limit = self.first_pseudo_period_end
        if end < limit or (end == limit and not is_end_included):
            return self._base.cut(start, end, is_start_included, is_end_included)
        return Sequence(self._elements_until(end)).cut(start, end, is_start_included, is_end_included)

    def extend(self, end) -> Sequence:
        """ The curve over [0, end[ """
        return self.cut(ZERO, end)

    # Properties

    @_memoized
    def is_finite(self) -> bool:
        return self._base.is_finite() and self._c.is_finite()

    @_memoized
    def is_ultimately_finite(self) -> bool:
        return self.periodic_sequence().is_finite() and self._c.is_finite()

    def is_plus_infinite(self) -> bool:
        return self._base.is_plus_infinite()

    def is_minus_infinite(self) -> bool:
        return self._base.is_minus_infinite()

    @_memoized
    def is_ultimately_infinite(self) -> bool:
        """ True if the curve takes no finite value after some time """
        return all(e.is_infinite() for e in self.periodic_sequence())

    def is_weakly_ultimately_infinite(self) -> bool:
        return self.is_ultimately_infinite()

    @_memoized
    def is_ultimately_plus_infinite(self) -> bool:
        return self.periodic_sequence().is_plus_infinite()

    @_memoized
    def is_ultimately_minus_infinite(self) -> bool:
        return self.periodic_sequence().is_minus_infinite()

    @_memoized
    def is_ultimately_affine(self) -> bool:
        """ True if the pseudo-periodic part is a single half-line """
        periodic = self.periodic_sequence()
        if len(periodic) != 2 or self._c.is_infinite():
            return False
        point, segment = periodic.elements
        return (point.is_finite() and segment.is_finite()
                and segment.slope * self._d == self._c
                and segment.right_limit_at_start_time == point.value)

    def is_ultimately_constant(self) -> bool:
        return self.is_ultimately_affine() and self._c == 0

    def is_zero_at_zero(self) -> bool:
        return self.value_at(ZERO) == 0

    @_memoized
    def is_identically_zero(self) -> bool:
        return self._base.is_zero() and self._c == 0

    def _is_continuous_at_period_end(self) -> bool:
        end = self.first_pseudo_period_end
        return self._base.left_limit_at(end) == self._base.value_at(self._T) + self._c

    @_memoized
    def is_continuous(self) -> bool:
        return self._base.is_continuous() and self._is_continuous_at_period_end()

    @_memoized
    def is_continuous_except_origin(self) -> bool:
        if not self._base.cut(ZERO, self.first_pseudo_period_end, is_start_included=False).is_continuous():
            return False
        if self._T == 0 and self._base.value_at(ZERO) != self._base.right_limit_at(ZERO):
            # the origin repeats at each pseudo-period
            return False
        return self._is_continuous_at_period_end()

    def is_left_continuous(self) -> bool:
        return self._base.is_left_continuous() and self._is_continuous_at_period_end()

    def is_right_continuous(self) -> bool:
        return self._base.is_right_continuous()

    @_memoized
    def is_non_negative(self) -> bool:
        return self.min_value() >= 0

    @_memoized
    def is_non_decreasing(self) -> bool:
        if not self._base.is_non_decreasing():
            return False
        end = self.first_pseudo_period_end
        return self._base.left_limit_at(end) <= self._base.value_at(self._T) + self._c

    def min_value(self) -> Rational:
        """ Infimum of the curve, limits included """
        if self._c < 0 and not self.is_ultimately_plus_infinite():
            return MINUS_INFINITY
        return self._base.min_value()

    def max_value(self) -> Rational:
        """ Supremum of the curve, limits included """
        if self._c > 0 and not self.is_ultimately_minus_infinite():
            return PLUS_INFINITY
        return self._base.max_value()

    def first_non_zero_time(self) -> Rational:
        """ Infimum of the times where the curve is not 0 """
        time = self._base.first_non_zero_time()
        if time.is_plus_infinite() and self._c != 0:
            return self.first_pseudo_period_end
        return time

    def first_finite_time(self) -> Rational:
        return self._base.first_finite_time()

    def first_finite_time_except_origin(self) -> Rational:
        time = self._base.first_finite_time_after(ZERO)
        if time.is_plus_infinite() and self._T == 0 and self._base[0].is_finite():
            # the origin comes back at each pseudo-period
            return self._d
        return time

    @_memoized
    def is_concave(self) -> bool:
        """ True if the curve is concave over ]0, +inf[ and f(0) <= f(0+)

        Only finite, ultimately affine curves are recognized.
        """
        if not (self.is_finite() and self.is_ultimately_affine() and self.is_continuous_except_origin()):
            return False
        if self.value_at(ZERO) > self.right_limit_at(ZERO):
            return False
        slopes = [s.slope for s in self._base.segments]
        return all(x >= y for x, y in zip(slopes, slopes[1:]))

    @_memoized
    def is_convex(self) -> bool:
        """ True if the curve is convex over ]0, +inf[ and f(0) >= f(0+)

        Only finite, ultimately affine curves are recognized.
        """
        if not (self.is_finite() and self.is_ultimately_affine() and self.is_continuous_except_origin()):
            return False
        if self.value_at(ZERO) < self.right_limit_at(ZERO):
            return False
        slopes = [s.slope for s in self._base.segments]
        return all(x <= y for x, y in zip(slopes, slopes[1:]))

    def is_regular_concave(self) -> bool:
        return self.is_concave() and self.is_zero_at_zero()

    def is_regular_convex(self) -> bool:
        return self.is_convex() and self.is_zero_at_zero()

    @_memoized
    def is_sub_additive(self) -> bool:
        """ True if f(s + t) <= f(s) + f(t) for all s, t >= 0

        Checked as f' * f' == f', where f' is f with 0 at the origin.
        """
        if CurveShape.SUB_ADDITIVE in self._shape:
            return True
        origin = self.value_at(ZERO)
        if origin < 0:
            return False
        if self.is_concave() and origin == 0:
            return True
        regular = self.with_zero_origin().as_generic()
        settings = ComputationSettings.default().replace(use_shape_fast_paths=False)
        return regular.convolution(regular, settings).equivalent(regular)

    def is_regular_sub_additive(self) -> bool:
        return self.is_zero_at_zero() and self.is_sub_additive()

    @_memoized
    def is_super_additive(self) -> bool:
        """ True if f(s + t) >= f(s) + f(t) for all s, t >= 0 """
        if CurveShape.SUPER_ADDITIVE in self._shape:
            return True
        return self.negate().as_generic().is_sub_additive()

    def is_regular_super_additive(self) -> bool:
        return self.is_zero_at_zero() and self.is_super_additive()

    def equivalent(self, other: 'Curve') -> bool:
        """ True if both curves are the same function, whatever their representation """
        end = max(self._T, other._T) + 2 * lcm(self._d, other._d)
        return self.cut(ZERO, end).equivalent(other.cut(ZERO, end))

    def __le__(self, other: 'Curve') -> bool:
        try:
            return self.minimum(other).equivalent(self)
        except InvalidOperation:
            return False

    def __ge__(self, other: 'Curve') -> bool:
        try:
            return self.maximum(other).equivalent(self)
        except InvalidOperation:
            return False

    def __eq__(self, other):
        if not isinstance(other, Curve):
            return NotImplemented
        return (self._base == other._base and self._T == other._T
                and self._d == other._d and self._c == other._c)

    def __hash__(self):
        return hash((self._base, self._T, self._d, self._c))

    # Transformations

    def with_shape(self, shape: CurveShape) -> 'Curve':
        """ Same curve tagged with shape, the caller vouches for the properties """
        return Curve(self._base, self._T, self._d, self._c, shape=shape, name=self._name)

    def as_generic(self) -> 'Curve':
        """ Same curve without any shape, so that only the general algorithms apply to it """
        return Curve(self._base, self._T, self._d, self._c, name=self._name)

    def negate(self) -> 'Curve':
        return Curve(self._base.negate(), self._T, self._d, -self._c, shape=self._shape.negated())

    def __neg__(self):
        return self.negate()

    def scale(self, factor) -> 'Curve':
        """ Multiplies the curve by a finite factor """
        factor = to_rational(factor)
        if factor.is_infinite():
            raise InvalidArgument(string="Cannot scale a curve by an infinite factor")
        if factor > 0:
            shape = self._shape
        elif factor < 0:
            shape = self._shape.negated()
        else:
            shape = CurveShape.NONE
        return Curve(self._base.scale(factor), self._T, self._d, self._c * factor, shape=shape)

    def _with_transient(self) -> 'Curve':
        # the origin must not belong to the pseudo-periodic part
        if self._T > 0:
            return self
        return Curve(self.cut(ZERO, 2 * self._d), self._d, self._d, self._c, shape=self._shape)

    def delay_by(self, delay) -> 'Curve':
        """ t -> f(t - delay) for t >= delay, 0 before

        Raises:
            InvalidArgument: the delay is negative or infinite
        """
        delay = to_rational(delay)
        if delay.is_infinite() or delay < 0:
            raise InvalidArgument(string="Cannot delay a curve by %s" % delay)
        if delay == 0:
            return self
        elements = [Point.origin(), Segment.zero(ZERO, delay)]
        elements.extend(e.delay(delay) for e in self._base.elements)
        shape = CurveShape.DELAY if CurveShape.DELAY in self._shape else CurveShape.NONE
        return Curve(Sequence(elements), self._T + delay, self._d, self._c, shape=shape)

    def anticipate_by(self, time) -> 'Curve':
        """ t -> f(t + time) """
        time = to_rational(time)
        if time.is_infinite() or time < 0:
            raise InvalidArgument(string="Cannot anticipate a curve by %s" % time)
        if time == 0:
            return self
        if time <= self._T:
            sequence = self._base.cut(time, self.first_pseudo_period_end)
            start = self._T - time
        else:
            # past T, the anticipated curve repeats from the origin
            sequence = self.cut(time, time + self._d)
            start = ZERO
        return Curve(sequence.anticipate(time), start, self._d, self._c)

    def vertical_shift(self, shift, except_origin: bool = True) -> 'Curve':
        """ f + shift

        Arguments:
            shift {Rational} -- the value added
            except_origin {bool} -- if True, f(0) is kept as it is (default: True)

        Returns:
            Curve -- the shifted curve
        """
        shift = to_rational(shift)
        if shift == 0:
            return self
        source = self._with_transient() if except_origin else self
        elements = []
        for e in source._base.elements:
            if except_origin and isinstance(e, Point) and e.time == 0:
                elements.append(e)
            else:
                elements.append(e.vertical_shift(shift))
        shape = CurveShape.NONE
        if except_origin and shift.is_finite() and shift > 0:
            shape = self._shape & (CurveShape.SUB_ADDITIVE | CurveShape.CONCAVE)
        return Curve(Sequence(elements), source._T, source._d, source._c, shape=shape)

    def to_non_negative(self, settings: ComputationSettings = None) -> 'Curve':
        """ max(f, 0) """
        return self.maximum(Curve.zero(), settings)

    def to_non_decreasing(self, settings: ComputationSettings = None) -> 'Curve':
        """ The lowest non-decreasing curve above f, t -> sup_{s <= t} f(s)

        This is the max-plus convolution of f with the zero curve.
        """
        if self.is_non_decreasing():
            return self
        return self.max_plus_convolution(Curve.zero(), settings)

    def lower_pseudo_inverse(self) -> 'Curve':
        """ x -> inf {t : f(t) >= x}, left-continuous

        Raises:
            InvalidArgument: the curve is not non-decreasing
        """
        return self._pseudo_inverse(upper=False)

    def upper_pseudo_inverse(self) -> 'Curve':
        """ x -> sup {t : f(t) <= x}, right-continuous

        Raises:
            InvalidArgument: the curve is not non-decreasing
        """
        return self._pseudo_inverse(upper=True)

    def _pseudo_inverse(self, upper: bool) -> 'Curve':
        if not self.is_non_decreasing():
            raise InvalidArgument(string="The pseudo-inverse is defined only for non-decreasing curves")
        if self.is_ultimately_plus_infinite():
            finite = []
            for e in self._base:
                if e.is_plus_infinite():
                    break
                finite.append(e)
            if not finite:
                return Curve.zero()
            last_time = finite[-1].end_time
            vertices = _graph_vertices(finite) or [(last_time, ZERO)]
            level = vertices[-1][1]
            start = max(level, ZERO)
            # every level above the last finite one is reached at last_time
            elements = _inverse_elements(vertices, upper)
            elements.extend([Segment.constant(level, start + 1, last_time), Point(start + 1, last_time),
                             Segment.constant(start + 1, start + 2, last_time)])
            return Curve(Sequence(elements).cut(ZERO, start + 2), start + 1, ONE, ZERO)
        if self._c == 0:
            level = self.value_at(self._T)
            vertices = _graph_vertices(self.cut(ZERO, self.first_pseudo_period_end, is_end_included=True))
            if not vertices or level < 0:
                return Curve.plus_infinite()
            # levels above the final value are never reached
            elements = _inverse_elements(vertices, upper)
            if upper:
                elements[-1] = Point(level, PLUS_INFINITY)
            elements.extend([Segment.plus_infinite(level, level + 1), Point(level + 1, PLUS_INFINITY),
                             Segment.plus_infinite(level + 1, level + 2)])
            return Curve(Sequence(elements).cut(ZERO, level + 2), level + 1, ONE, ZERO)
        # past f(T + d), the inverse repeats with the roles of d and c swapped
        end = self.first_pseudo_period_end
        while self.value_at(end) < 0:
            end += self._d
        start = self.value_at(end)
        vertices = _graph_vertices(self.cut(ZERO, end + self._d, is_end_included=True))
        sequence = Sequence(merge(_inverse_elements(vertices, upper))).cut(ZERO, start + self._c)
        return Curve(sequence, start, self._c, self._d)

    def with_zero_origin(self) -> 'Curve':
        """ f with min(f(0), 0) at the origin """
        origin = self.value_at(ZERO)
        if origin <= 0:
            return self
        source = self._with_transient()
        elements = (Point.origin(),) + source._base.elements[1:]
        return Curve(Sequence(elements), source._T, source._d, source._c, shape=self._shape)

    # Representation minimization

    def optimize(self, settings: ComputationSettings = None) -> 'Curve':
        """ Same function with the smallest representation that can be found

        The pseudo-period is factorized into shorter pseudo-periods,
        half-lines are normalized to a unit length, and the transient
        part is shortened while it repeats the pseudo-period.
        """
        settings = ComputationSettings.resolve(settings)
        curve = self._period_factorization(settings)
        curve = curve._affine_normalization()
        curve = curve._transient_reduction()
        if (curve._T, curve._d) != (self._T, self._d):
            lg.debug("optimize: T %s -> %s, d %s -> %s, %d -> %d elements", self._T, curve._T,
                     self._d, curve._d, len(self._base), len(curve._base))
        return curve

    def _period_factorization(self, settings: ComputationSettings) -> 'Curve':
        curve = self
        rounds = 0
        while settings.simplification_tolerance is None or rounds < settings.simplification_tolerance:
            factorized = curve._factorized_once()
            if factorized is None:
                break
            curve = factorized
            rounds += 1
        return curve

    def _factorized_once(self) -> Optional['Curve']:
        periodic = self.periodic_sequence()
        if len(periodic) <= 2 or self._c.is_infinite():
            return None
        breakpoints = len(periodic.points) - 1
        if not _is_seamless(periodic, self._c):
            breakpoints += 1
        start = self._T
        for p in _prime_factors(breakpoints):
            length = self._d / p
            height = self._c / p

            def window(i):
                return periodic.cut(start + i * length, start + (i + 1) * length)

            if all(window(i).delay(length).vertical_shift(height).equivalent(window(i + 1)) for i in range(p - 1)):
                return Curve(self._base.cut(ZERO, start + length), start, length, height, shape=self._shape)
        return None

    def _affine_normalization(self) -> 'Curve':
        if not self.is_ultimately_affine() or self._d == 1:
            return self
        return Curve(self.cut(ZERO, self._T + 1), self._T, ONE, self._c / self._d, shape=self._shape)

    def _transient_reduction(self) -> 'Curve':
        if self._T == 0:
            return self
        if self.is_ultimately_affine():
            return self._affine_transient_reduction()
        return self._transient_reduction_by_period()._transient_reduction_by_segment()

    def _affine_transient_reduction(self) -> 'Curve':
        curve = self
        while curve._T > 0 and len(curve._base) >= 4:
            point, segment, affine_point, affine_segment = curve._base.elements[-4:]
            if point.value != segment.right_limit_at_start_time:
                break
            if len(merge([segment, affine_point, affine_segment])) != 1:
                break
            curve = Curve(curve.cut(ZERO, point.time + curve._d), point.time, curve._d, curve._c, shape=curve._shape)
        return curve

    def _transient_reduction_by_period(self) -> 'Curve':
        curve = self
        while curve._T - curve._d >= 0:
            start, length, height = curve._T, curve._d, curve._c
            candidate = curve._base.cut(start - length, start)
            if not _shiftable(candidate, height):
                break
            if not candidate.vertical_shift(height).delay(length).equivalent(curve.periodic_sequence()):
                break
            curve = Curve(curve._base.cut(ZERO, start), start - length, length, height, shape=curve._shape)
        return curve

    def _transient_reduction_by_segment(self) -> 'Curve':
        curve = self
        while curve._T > 0 and len(curve.periodic_sequence()) > 2:
            start, length, height = curve._T, curve._d, curve._c
            tail = Sequence(curve._base.elements[-2:])
            tail_length = tail.defined_until - tail.defined_from
            if start - tail_length < 0:
                break
            candidate = curve._base.cut(start - tail_length, start)
            if not _shiftable(candidate, height):
                break
            if not candidate.vertical_shift(height).delay(length).equivalent(tail):
                break
            new_start = start - tail_length
            curve = Curve(curve._base.cut(ZERO, new_start + length), new_start, length, height, shape=curve._shape)
        return curve

    # Operators

    def addition(self, other: 'Curve', settings: ComputationSettings = None) -> 'Curve':
        """ Pointwise sum

        Arguments:
            other {Curve} -- the other operand
            settings {ComputationSettings} -- (default: process-wide settings)

        Returns:
            Curve -- self + other
        """
        settings = ComputationSettings.resolve(settings)
        start = max(self._T, other._T)
        length = lcm(self._d, other._d)
        height = self._c * (length / self._d) + other._c * (length / other._d)
        end = start + length
        sequence = self.cut(ZERO, end).addition(other.cut(ZERO, end))
        shape = self._shape & other._shape & _ADDITION_SHAPES
        return _finalized(Curve(sequence, start, length, height, shape=shape), settings)

    def subtraction(self, other: 'Curve', *, non_negative: bool, settings: ComputationSettings = None) -> 'Curve':
        """ Pointwise difference

        Arguments:
            other {Curve} -- the subtrahend
            non_negative {bool} -- if True, the result is max(self - other, 0)
            settings {ComputationSettings} -- (default: process-wide settings)

        Returns:
            Curve -- self - other
        """
        result = self.addition(other.negate(), settings)
        return result.to_non_negative(settings) if non_negative else result

    def minimum(self, other: 'Curve', settings: ComputationSettings = None) -> 'Curve':
        """ Pointwise minimum

        The result is computed up to the time where the lowest curve stays
        below the other one for good, or over a common pseudo-period when both
        grow at the same rate.
        """
        settings = ComputationSettings.resolve(settings)
        a, b = self, other
        slope_a = a.pseudo_period_average_slope
        slope_b = b.pseudo_period_average_slope
        shape = a._shape & b._shape & CurveShape.CONCAVE
        if slope_a == slope_b:
            common = lcm(a._d, b._d)
            window_end = max(a._T, b._T) + common
            window_a = a.cut(ZERO, window_end)
            window_b = b.cut(ZERO, window_end)
            lowest = window_a.minimum(window_b)
            if lowest.equivalent(window_a):
                return a
            if lowest.equivalent(window_b):
                return b
            if a.is_ultimately_affine():
                length = b._d
            elif b.is_ultimately_affine():
                length = a._d
            else:
                length = common
            height = length * slope_a if slope_a.is_finite() else slope_a
            start = max(a._T, b._T)
        else:
            lower, higher = (a, b) if slope_a < slope_b else (b, a)
            length = lower._d
            height = lower._c
            start = max(a._T, b._T)
            if lower.pseudo_period_average_slope.is_finite() and higher.pseudo_period_average_slope.is_finite():
                start = max(start, _bounds_intersection(lower, higher))
            if _shows_through_gaps(lower, higher, start, lcm(a._d, b._d)):
                raise InvalidOperation(string="The minimum is not ultimately pseudo-periodic: the curve with the "
                                              "higher slope shows through the infinite gaps of the other one")
        end = start + length
        sequence = a.cut(ZERO, end).minimum(b.cut(ZERO, end))
        return _finalized(Curve(sequence, start, length, height, shape=shape), settings)

    def maximum(self, other: 'Curve', settings: ComputationSettings = None) -> 'Curve':
        """ Pointwise maximum, -min(-self, -other) """
        return self.negate().minimum(other.negate(), settings).negate()

    def convolution(self, other: 'Curve', settings: ComputationSettings = None) -> 'Curve':
        """ Min-plus convolution, (f * g)(t) = inf_{0 <= s <= t} f(s) + g(t - s)

        Arguments:
            other {Curve} -- the other operand
            settings {ComputationSettings} -- (default: process-wide settings)

        Returns:
            Curve -- self * other
        """
        settings = ComputationSettings.resolve(settings)
        a, b = self, other
        if settings.use_shape_fast_paths:
            result = _shape_convolution(a, b, settings)
            if result is not None:
                return result
        shape = a._shape & b._shape & _CONVOLUTION_SHAPES
        for f, g in ((a, b), (b, a)):
            if f.first_finite_time_except_origin().is_plus_infinite():
                origin = f.value_at(ZERO)
                if origin.is_plus_infinite():
                    return Curve.plus_infinite()
                return g.vertical_shift(origin, except_origin=False)
            if f.is_identically_zero() and g.is_non_negative() and g.is_zero_at_zero():
                return Curve.zero()

        slope_a = a.pseudo_period_average_slope
        slope_b = b.pseudo_period_average_slope
        if settings.single_pass_convolution and slope_a == slope_b and slope_a.is_finite():
            lg.debug("convolution in a single pass, T %s and %s, d %s and %s", a._T, b._T, a._d, b._d)
            length = lcm(a._d, b._d)
            start = a._T + b._T + length
            end = start + length
            sequence = a.cut(ZERO, end).convolution(b.cut(ZERO, end), settings, cut_end=end)
            return _finalized(Curve(sequence, start, length, slope_a * length, shape=shape), settings)

        terms = []
        if a.equivalent(b):
            if a.has_transient():
                terms.append(_transient_transient(a, a, settings))
                if not a.is_ultimately_plus_infinite():
                    terms.append(_transient_periodic(a, a, settings))
            if not a.is_ultimately_plus_infinite():
                terms.append(_periodic_periodic(a, a, settings))
        else:
            if a.has_transient():
                if b.has_transient():
                    terms.append(_transient_transient(a, b, settings))
                if not b.is_ultimately_plus_infinite():
                    terms.append(_transient_periodic(a, b, settings))
            if not a.is_ultimately_plus_infinite():
                if b.has_transient():
                    terms.append(_transient_periodic(b, a, settings))
                if not b.is_ultimately_plus_infinite():
                    terms.append(_periodic_periodic(a, b, settings))
        if not terms:
            # both are +inf after the origin, handled above
            raise InvalidOperation(string="No term to convolve %s and %s" % (a, b))
        lg.debug("convolution by %d partial terms", len(terms))
        # lowest slopes first, so that a term only fills the infinite gaps left by slower ones
        terms.sort(key=lambda term: term.pseudo_period_average_slope)
        result = functools.reduce(lambda x, y: x.minimum(y, settings), terms)
        return _finalized(result.with_shape(shape), settings)

    def deconvolution(self, other: 'Curve', settings: ComputationSettings = None) -> 'Curve':
        """ Min-plus deconvolution, (f / g)(t) = sup_{u >= 0} f(t + u) - g(u)

        The result is +inf when f grows faster than g.
        """
        settings = ComputationSettings.resolve(settings)
        a, b = self, other
        if a.pseudo_period_average_slope > b.pseudo_period_average_slope:
            return Curve.plus_infinite()
        horizon = max(a._T, b._T) + lcm(a._d, b._d)
        end = a.first_pseudo_period_end
        sequence = a.cut(ZERO, horizon + end).deconvolution(b.cut(ZERO, horizon), ZERO, end, settings)
        return _finalized(Curve(sequence.optimize(), a._T, a._d, a._c), settings)

    def max_plus_convolution(self, other: 'Curve', settings: ComputationSettings = None) -> 'Curve':
        """ Max-plus convolution, -((-self) * (-other)) """
        return self.negate().convolution(other.negate(), settings).negate()

    def max_plus_deconvolution(self, other: 'Curve', settings: ComputationSettings = None) -> 'Curve':
        """ Max-plus deconvolution, -((-self) / (-other)) """
        return self.negate().deconvolution(other.negate(), settings).negate()

    def sub_additive_closure(self, settings: ComputationSettings = None) -> 'Curve':
        """ Sub-additive closure, f* = min(delta_0, f, f * f, f * f * f, ...)

        Raises:
            NotImplementedError: f(0) < 0
        """
        from minplus.algebra import closure
        settings = ComputationSettings.resolve(settings)
        if settings.use_shape_fast_paths and CurveShape.SUB_ADDITIVE in self._shape:
            return self
        return closure.curve_closure(self, settings)

    def super_additive_closure(self, settings: ComputationSettings = None) -> 'Curve':
        """ Super-additive closure, -((-f)*)

        Raises:
            NotImplementedError: f(0) > 0
        """
        return self.negate().sub_additive_closure(settings).negate()

    @staticmethod
    def addition_of(curves: Iterable['Curve'], settings: ComputationSettings = None) -> 'Curve':
        return functools.reduce(lambda a, b: a.addition(b, settings), curves)

    @staticmethod
    def minimum_of(curves: Iterable['Curve'], settings: ComputationSettings = None) -> 'Curve':
        return functools.reduce(lambda a, b: a.minimum(b, settings), curves)

    @staticmethod
    def maximum_of(curves: Iterable['Curve'], settings: ComputationSettings = None) -> 'Curve':
        return functools.reduce(lambda a, b: a.maximum(b, settings), curves)

    @staticmethod
    def convolution_of(curves: Iterable['Curve'], settings: ComputationSettings = None) -> 'Curve':
        return functools.reduce(lambda a, b: a.convolution(b, settings), curves)

    @staticmethod
    def vertical_deviation(a: 'Curve', b: 'Curve', settings: ComputationSettings = None) -> Rational:
        """ sup_t a(t) - b(t), the backlog bound when a is an arrival curve and b a service curve """
        return a.subtraction(b, non_negative=False, settings=settings).max_value()

    @staticmethod
    def horizontal_deviation(a: 'Curve', b: 'Curve', settings: ComputationSettings = None) -> Rational:
        """ sup_t inf {d >= 0 : a(t) <= b(t + d)}, the delay bound when a is an arrival curve and b a service curve

        It is the vertical deviation between the lower pseudo-inverses, b^-1 - a^-1.

        Arguments:
            a {Curve} -- non-decreasing
            b {Curve} -- non-decreasing
            settings {ComputationSettings} -- (default: process-wide settings)

        Returns:
            Rational -- a non-negative delay, +inf if b never catches up with a

        Raises:
            InvalidArgument: one of the curves is not non-decreasing
        """
        a_inverse = a.lower_pseudo_inverse()
        b_inverse = b.lower_pseudo_inverse()
        if a.pseudo_period_height == 0 and not a.is_ultimately_plus_infinite():
            # a is bounded, the levels above its maximum do not count
            top = a.max_value()
            if top < 0:
                return ZERO
            difference = b_inverse.cut(ZERO, top, is_end_included=True).subtraction(
                a_inverse.cut(ZERO, top, is_end_included=True), non_negative=False)
        else:
            difference = b_inverse.subtraction(a_inverse, non_negative=False, settings=settings)
        return max(difference.max_value(), ZERO)

    def __add__(self, curve: 'Curve') -> 'Curve':
        if isinstance(curve, Curve):
            return self.addition(curve)
        raise TypeError("unsupported operand type(s) for + or add(): %s and %s" % (type(self).__name__, type(curve).__name__))

    def __sub__(self, curve):
        raise TypeError("use subtraction(other, non_negative=...) to subtract curves")

    def __mul__(self, curve: 'Curve') -> 'Curve':
        if isinstance(curve, Curve):
            return self.convolution(curve)
        raise TypeError("unsupported operand type(s) for * or mul(): %s and %s" % (type(self).__name__, type(curve).__name__))

    def __truediv__(self, curve: 'Curve') -> 'Curve':
        if isinstance(curve, Curve):
            return self.deconvolution(curve)
        raise TypeError("unsupported operand type(s) for / or truediv(): %s and %s" % (type(self).__name__, type(curve).__name__))

    def __repr__(self):
        return "%s(%r, %s, %s, %s)" % (type(self).__name__, self._base, self._T, self._d, self._c)

    def __str__(self):
        name = ("%s: " % self._name) if self._name else ""
        return "%sCurve with T=%s, d=%s, c=%s over %d elements" % (name, self._T, self._d, self._c, len(self._base))


def _finalized(curve: Curve, settings: ComputationSettings) -> Curve:
    if settings.use_representation_minimization:
        return curve.optimize(settings)
    return curve


def _normalized_infinite_period(base: Sequence, start: Rational, length: Rational, height: Rational):
    """An infinite height only makes sense over a pseudo-period infinite everywhere:
    otherwise one more pseudo-period is unrolled and the next ones are infinite"""
    periodic = base.cut(start, start + length)
    if height.is_plus_infinite():
        if periodic.is_plus_infinite():
            return base, start
        opposite = any(e.is_minus_infinite() for e in periodic)
    else:
        if periodic.is_minus_infinite():
            return base, start
        opposite = any(e.is_plus_infinite() for e in periodic)
    if opposite:
        raise InvalidOperation(string="A pseudo-period height of %s cannot shift the opposite infinity" % height)
    end = start + length
    elements = list(base.elements) + [Point(end, height), Segment.constant(end, end + length, height)]
    return Sequence(elements), end


def _is_seamless(periodic: Sequence, height: Rational) -> bool:
    """True if the junction of two consecutive pseudo-periods is not a breakpoint"""
    point, first, last = periodic[0], periodic[1], periodic[-1]
    if point.is_infinite() or first.is_infinite() or last.is_infinite():
        return (point.value.is_infinite()
                and point.value == first.right_limit_at_start_time == last.left_limit_at_end_time)
    return (point.value == first.right_limit_at_start_time
            and last.left_limit_at_end_time - point.value == height
            and first.slope == last.slope)


def _prime_factors(n: int) -> List[int]:
    factors = []
    p = 2
    while p * p <= n:
        if n % p == 0:
            factors.append(p)
            while n % p == 0:
                n //= p
        p += 1
    if n > 1:
        factors.append(n)
    return factors


def _shiftable(sequence: Sequence, height: Rational) -> bool:
    if height.is_plus_infinite():
        return sequence.is_plus_infinite()
    if height.is_minus_infinite():
        return sequence.is_minus_infinite()
    return True


def _deviations(curve: Curve) -> List[Rational]:
    """Finite offsets of the pseudo-periodic part from the line through the origin with its average slope"""
    slope = curve.pseudo_period_average_slope
    deviations = []
    for e in curve.periodic_sequence():
        if e.is_infinite():
            continue
        if isinstance(e, Point):
            deviations.append(e.value - slope * e.time)
        else:
            deviations.append(e.right_limit_at_start_time - slope * e.start_time)
            deviations.append(e.left_limit_at_end_time - slope * e.end_time)
    return deviations


def _bounds_intersection(lower: Curve, higher: Curve) -> Rational:
    """Time after which the curve with the lower slope stays below the other one"""
    lower_deviations = _deviations(lower)
    higher_deviations = _deviations(higher)
    if not lower_deviations or not higher_deviations:
        return ZERO
    top = max(lower_deviations)
    bottom = min(higher_deviations)
    return (top - bottom) / (higher.pseudo_period_average_slope - lower.pseudo_period_average_slope)


def _shows_through_gaps(lower: Curve, higher: Curve, start: Rational, length: Rational) -> bool:
    """True if higher is finite somewhere in [start, start + length[ where lower is +inf"""
    end = start + length
    others = higher.cut(start, end)
    for e in lower.cut(start, end):
        if not e.is_plus_infinite():
            continue
        if isinstance(e, Point):
            facing = [others.get_element_at(e.time)]
        else:
            facing = others.cut(e.start_time, e.end_time, is_start_included=False)
        if any(f.is_finite() for f in facing):
            return True
    return False


def _graph_vertices(elements: Iterable[Element]) -> List[Tuple[Rational, Rational]]:
    """Corners (t, f(t)) of the graph of a non-decreasing function, jumps included, -inf values left out"""
    vertices = []
    for e in elements:
        if isinstance(e, Point):
            corners = [(e.time, e.value)]
        else:
            corners = [(e.start_time, e.right_limit_at_start_time), (e.end_time, e.left_limit_at_end_time)]
        for corner in corners:
            if corner[1].is_minus_infinite():
                continue
            if not vertices or vertices[-1] != corner:
                vertices.append(corner)
    return vertices


def _inverse_elements(vertices: List[Tuple[Rational, Rational]], upper: bool) -> List[Element]:
    """ Pseudo-inverse of the graph through the vertices, from level 0 to the last vertex included

    Flat parts of the graph become jumps and jumps become flat parts. The
    lower inverse keeps the first time a level is reached, the upper one the last.
    """
    first_time, first_level = vertices[0]
    elements = []
    if first_level > 0:
        elements.extend([Point(ZERO, first_time), Segment.constant(ZERO, first_level, first_time)])
    if not upper:
        elements.append(Point(first_level, first_time))
    for (time_a, level_a), (time_b, level_b) in zip(vertices, vertices[1:]):
        if level_b == level_a:
            continue
        if upper:
            elements.append(Point(level_a, time_a))
        elements.append(Segment(level_a, level_b, time_a, (time_b - time_a) / (level_b - level_a)))
        if not upper:
            elements.append(Point(level_b, time_b))
    if upper:
        last_time, last_level = vertices[-1]
        elements.append(Point(last_level, last_time))
    return elements


# Partial convolutions, see [BT07] section 4.4

def _transient_transient(a: Curve, b: Curve, settings: ComputationSettings) -> Curve:
    sequence = a.transient_sequence().convolution(b.transient_sequence(), settings)
    return Curve(sequence, sequence.defined_until, max(a._d, b._d), PLUS_INFINITY, is_partial_curve=True)


def _transient_periodic(transient: Curve, periodic: Curve, settings: ComputationSettings) -> Curve:
    start = transient._T + periodic._T
    end = start + periodic._d
    sequence = transient.transient_sequence().convolution(periodic.cut(periodic._T, end), settings)
    sequence = sequence.cut(periodic._T, end)
    return Curve(sequence, start, periodic._d, periodic._c, is_partial_curve=True)


def _periodic_periodic(a: Curve, b: Curve, settings: ComputationSettings) -> Curve:
    if a.is_ultimately_affine():
        length = b._d
    elif b.is_ultimately_affine():
        length = a._d
    else:
        length = lcm(a._d, b._d)
    start = a._T + b._T + length
    end = start + length
    slope = min(a.pseudo_period_average_slope, b.pseudo_period_average_slope)
    height = slope * length
    first = a.cut(a._T, a._T + 2 * length)
    second = b.cut(b._T, b._T + 2 * length)
    sequence = first.convolution(second, settings, cut_end=end)
    sequence = sequence.cut(a._T + b._T, end)
    return Curve(sequence, start, length, height, is_partial_curve=True)


# Shape fast paths

def _delay_of(curve: Curve) -> Rational:
    finite = [e for e in curve.base_sequence if e.is_finite()]
    return finite[-1].end_time


def _convex_convolution(a: Curve, b: Curve) -> Optional[Curve]:
    """Convex curves: the segments of both, sorted by slope, up to the lowest final slope"""
    if not (a.is_finite() and b.is_finite() and a.right_limit_at(ZERO) == 0 and b.right_limit_at(ZERO) == 0):
        return None
    tail = min(a.pseudo_period_average_slope, b.pseudo_period_average_slope)
    pieces = []
    for f in (a, b):
        for s in f.transient_elements:
            if isinstance(s, Segment) and s.slope < tail:
                pieces.append((s.slope, s.length))
    pieces.sort(key=lambda piece: piece[0])
    elements = [Point.origin()]
    time, value = ZERO, ZERO
    for slope, length in pieces:
        elements.append(Segment(time, time + length, value, slope))
        time += length
        value += slope * length
        elements.append(Point(time, value))
    elements.append(Segment(time, time + 1, value, tail))
    return Curve(Sequence(elements), time, ONE, tail, shape=CurveShape.CONVEX)


def _shape_convolution(a: Curve, b: Curve, settings: ComputationSettings) -> Optional[Curve]:
    for f, g in ((a, b), (b, a)):
        if CurveShape.DELAY in f.shape and g.is_non_decreasing() and g.is_zero_at_zero():
            lg.debug("convolution by a delay")
            return g.delay_by(_delay_of(f))
    shape = a.shape & b.shape
    if CurveShape.CONCAVE in shape:
        lg.debug("convolution of concave curves as a minimum")
        return a.minimum(b, settings)
    if CurveShape.CONVEX in shape:
        result = _convex_convolution(a, b)
        if result is not None:
            lg.debug("convolution of convex curves by slope sorting")
            return _finalized(result, settings)
    if CurveShape.STAIRCASE in shape and a.pseudo_period_length == b.pseudo_period_length:
        return a if a.pseudo_period_height <= b.pseudo_period_height else b
    if CurveShape.SUB_ADDITIVE in shape:
        try:
            lowest = a.minimum(b, settings)
        except InvalidOperation:
            # neither curve is below the other one
            return None
        if lowest.equivalent(a):
            return a
        if lowest.equivalent(b):
            return b
    return None
