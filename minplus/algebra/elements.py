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
This module contains the elementary pieces of piecewise affine functions:
points (a value at one instant) and open segments (an affine function over an
open interval), with the min-plus operators between two of them.

Convolution and deconvolution of elements follow [BT07] Section 3.2
(Lemmas 3, 4, 6 and 8). Pairwise results are returned as lists of elements,
ordered in time.
"""

from typing import List, Tuple

from minplus.exceptions import InvalidArgument
from minplus.numerics.rational import Rational, to_rational, ZERO, PLUS_INFINITY, MINUS_INFINITY


def copydoc(fromfunc, sep="\n"):
    """
    Decorator: Copy the docstring of `fromfunc`
    """
    def _decorator(func):
        sourcedoc = fromfunc.__doc__
        if func.__doc__ is None:
            func.__doc__ = sourcedoc
        else:
            func.__doc__ = sep.join([sourcedoc, func.__doc__])
        return func
    return _decorator


class Element:
    '''
    General interface for points and segments
    '''
    __slots__ = ()

    @property
    def start_time(self) -> Rational:
        raise NotImplementedError()

    @property
    def end_time(self) -> Rational:
        raise NotImplementedError()

    def value_at(self, time) -> Rational:
        """ Value of the element at the given time

        Arguments:
            time {Rational} -- a time where the element is defined

        Returns:
            Rational -- the value
        """
        raise NotImplementedError()

    def is_defined_at(self, time) -> bool:
        raise NotImplementedError()

    def is_finite(self) -> bool:
        raise NotImplementedError()

    def is_plus_infinite(self) -> bool:
        raise NotImplementedError()

    def is_minus_infinite(self) -> bool:
        raise NotImplementedError()

    def is_infinite(self) -> bool:
        return not self.is_finite()

    def is_zero(self) -> bool:
        raise NotImplementedError()

    # Transformations

    def negate(self) -> 'Element':
        raise NotImplementedError()

    def scale(self, factor) -> 'Element':
        """ Multiplies the values by a finite factor """
        raise NotImplementedError()

    def delay(self, delay) -> 'Element':
        """ Shifts the element forward in time """
        raise NotImplementedError()

    def anticipate(self, time) -> 'Element':
        return self.delay(-to_rational(time))

    def vertical_shift(self, shift) -> 'Element':
        raise NotImplementedError()

    def shift(self, time, value) -> 'Element':
        return self.delay(time).vertical_shift(value)

    def sort_key(self) -> Tuple[Rational, Rational]:
        """Key that orders elements in time: a point at t sorts after a segment
        ending at t and before a segment starting at t"""
        return (self.start_time, self.end_time)

    # Operators

    def addition(self, other: 'Element') -> 'Element':
        return addition(self, other)

    def minimum(self, other: 'Element') -> List['Element']:
        return minimum(self, other)

    def maximum(self, other: 'Element') -> List['Element']:
        return maximum(self, other)

    def convolution(self, other: 'Element') -> List['Element']:
        return convolution(self, other)

    def deconvolution(self, other: 'Element') -> List['Element']:
        return deconvolution(self, other)

    def max_plus_convolution(self, other: 'Element') -> List['Element']:
        return max_plus_convolution(self, other)

    def sub_additive_closure(self, period_length=None, period_height=None, settings=None):
        """ Sub-additive closure of the element, or of its pseudo-periodic repetition
        when a period is given

        Arguments:
            period_length {Rational} -- length of the pseudo-period (default: no repetition)
            period_height {Rational} -- height of the pseudo-period

        Returns:
            Curve -- the closure, a curve defined over the non-negative times
        """
        from minplus.algebra import closure
        if period_length is None:
            return closure.element_closure(self, settings=settings)
        return closure.periodic_element_closure(self, period_length, period_height, settings=settings)

    def __mul__(self, other):
        if isinstance(other, Element):
            return convolution(self, other)
        return NotImplemented

    def __neg__(self):
        return self.negate()


class Point(Element):
    """
    The value of a function at one instant
    """
    __slots__ = ("_time", "_value")

    def __init__(self, time, value) -> None:
        time = to_rational(time)
        if time.is_infinite():
            raise InvalidArgument(string="A point must have a finite time")
        self._time = time
        self._value = to_rational(value)

    @classmethod
    def origin(cls) -> 'Point':
        """The neutral element of the convolution"""
        return cls(ZERO, ZERO)

    @property
    def time(self) -> Rational:
        return self._time

    @property
    def value(self) -> Rational:
        return self._value

    @property
    def start_time(self) -> Rational:
        return self._time

    @property
    def end_time(self) -> Rational:
        return self._time

    @copydoc(Element.value_at)
    def value_at(self, time) -> Rational:
        if to_rational(time) != self._time:
            raise InvalidArgument(string="The point at %s is not defined at %s" % (self._time, time))
        return self._value

    def is_defined_at(self, time) -> bool:
        return to_rational(time) == self._time

    def is_finite(self) -> bool:
        return self._value.is_finite()

    def is_plus_infinite(self) -> bool:
        return self._value.is_plus_infinite()

    def is_minus_infinite(self) -> bool:
        return self._value.is_minus_infinite()

    def is_zero(self) -> bool:
        return self._value.is_zero()

    def negate(self) -> 'Point':
        return Point(self._time, -self._value)

    def scale(self, factor) -> 'Point':
        return Point(self._time, self._value * factor)

    def delay(self, delay) -> 'Point':
        return Point(self._time + to_rational(delay), self._value)

    def vertical_shift(self, shift) -> 'Point':
        return Point(self._time, self._value + to_rational(shift))

    def __eq__(self, other):
        if not isinstance(other, Point):
            return NotImplemented
        return self._time == other._time and self._value == other._value

    def __hash__(self):
        return hash(("point", self._time, self._value))

    def __repr__(self):
        return "Point(%s, %s)" % (self._time, self._value)


class Segment(Element):
    """
    An affine function over the open interval ]start_time, end_time[.

    An infinite segment is constant: its slope is always 0.
    """
    __slots__ = ("_start", "_end", "_rl", "_slope")

    def __init__(self, start_time, end_time, right_limit_at_start_time, slope) -> None:
        start_time = to_rational(start_time)
        end_time = to_rational(end_time)
        right_limit_at_start_time = to_rational(right_limit_at_start_time)
        slope = to_rational(slope)
        if start_time.is_infinite() or end_time.is_infinite():
            raise InvalidArgument(string="A segment must have finite start and end times")
        if not start_time < end_time:
            raise InvalidArgument(string="The start time %s of a segment must precede its end time %s" % (start_time, end_time))
        if slope.is_infinite():
            raise InvalidArgument(string="A segment cannot have an infinite slope")
        self._start = start_time
        self._end = end_time
        self._rl = right_limit_at_start_time
        self._slope = ZERO if right_limit_at_start_time.is_infinite() else slope

    @classmethod
    def constant(cls, start_time, end_time, value) -> 'Segment':
        return cls(start_time, end_time, value, ZERO)

    @classmethod
    def zero(cls, start_time, end_time) -> 'Segment':
        return cls(start_time, end_time, ZERO, ZERO)

    @classmethod
    def plus_infinite(cls, start_time, end_time) -> 'Segment':
        return cls(start_time, end_time, PLUS_INFINITY, ZERO)

    @classmethod
    def minus_infinite(cls, start_time, end_time) -> 'Segment':
        return cls(start_time, end_time, MINUS_INFINITY, ZERO)

    @property
    def start_time(self) -> Rational:
        return self._start

    @property
    def end_time(self) -> Rational:
        return self._end

    @property
    def right_limit_at_start_time(self) -> Rational:
        return self._rl

    @property
    def slope(self) -> Rational:
        return self._slope

    @property
    def length(self) -> Rational:
        return self._end - self._start

    @property
    def left_limit_at_end_time(self) -> Rational:
        if self._rl.is_infinite():
            return self._rl
        return self._rl + self._slope * (self._end - self._start)

    @copydoc(Element.value_at)
    def value_at(self, time) -> Rational:
        time = to_rational(time)
        if not self._start < time < self._end:
            raise InvalidArgument(string="The segment ]%s, %s[ is not defined at %s" % (self._start, self._end, time))
        return self.line_value_at(time)

    def line_value_at(self, time) -> Rational:
        """Value at any time of the line that carries the segment"""
        if self._rl.is_infinite():
            return self._rl
        return self._rl + self._slope * (to_rational(time) - self._start)

    def is_defined_at(self, time) -> bool:
        return self._start < to_rational(time) < self._end

    def is_finite(self) -> bool:
        return self._rl.is_finite()

    def is_plus_infinite(self) -> bool:
        return self._rl.is_plus_infinite()

    def is_minus_infinite(self) -> bool:
        return self._rl.is_minus_infinite()

    def is_zero(self) -> bool:
        return self._rl.is_zero() and self._slope.is_zero()

    def is_constant(self) -> bool:
        return self._slope.is_zero()

    def negate(self) -> 'Segment':
        return Segment(self._start, self._end, -self._rl, -self._slope)

    def scale(self, factor) -> 'Segment':
        return Segment(self._start, self._end, self._rl * factor, self._slope * factor)

    def delay(self, delay) -> 'Segment':
        delay = to_rational(delay)
        return Segment(self._start + delay, self._end + delay, self._rl, self._slope)

    def vertical_shift(self, shift) -> 'Segment':
        return Segment(self._start, self._end, self._rl + to_rational(shift), self._slope)

    def cut(self, start_time, end_time) -> 'Segment':
        """ Restriction of the segment to ]start_time, end_time[, which must be a non-empty sub-interval """
        start_time = max(to_rational(start_time), self._start)
        end_time = min(to_rational(end_time), self._end)
        return Segment(start_time, end_time, self.line_value_at(start_time), self._slope)

    def split(self, time) -> Tuple['Segment', Point, 'Segment']:
        """ Splits the segment at an inner time

        Arguments:
            time {Rational} -- the split time, strictly inside the segment

        Returns:
            (Segment, Point, Segment) -- the left part, the point at time and the right part
        """
        time = to_rational(time)
        value = self.value_at(time)
        return (Segment(self._start, time, self._rl, self._slope),
                Point(time, value),
                Segment(time, self._end, value, self._slope))

    def __eq__(self, other):
        if not isinstance(other, Segment):
            return NotImplemented
        return (self._start == other._start and self._end == other._end
                and self._rl == other._rl and self._slope == other._slope)

    def __hash__(self):
        return hash(("segment", self._start, self._end, self._rl, self._slope))

    def __repr__(self):
        return "Segment(%s, %s, %s, %s)" % (self._start, self._end, self._rl, self._slope)


# Pairwise operators

def _overlap(a: Element, b: Element) -> Tuple[Rational, Rational]:
    start = max(a.start_time, b.start_time)
    end = min(a.end_time, b.end_time)
    if start > end:
        raise InvalidArgument(string="The elements %r and %r do not overlap" % (a, b))
    if start == end:
        if not (a.is_defined_at(start) and b.is_defined_at(start)):
            raise InvalidArgument(string="The elements %r and %r do not overlap" % (a, b))
    return start, end


def addition(a: Element, b: Element) -> Element:
    """ Sum of two elements over the intersection of their domains

    Arguments:
        a {Element} -- first operand
        b {Element} -- second operand

    Returns:
        Element -- a point if the intersection is one instant, a segment otherwise
    """
    start, end = _overlap(a, b)
    if start == end:
        return Point(start, a.value_at(start) + b.value_at(start))
    # both are segments
    return Segment(start, end, a.line_value_at(start) + b.line_value_at(start), a.slope + b.slope)


def minimum(a: Element, b: Element) -> List[Element]:
    """ Pointwise minimum of two elements over the intersection of their domains

    Returns:
        List[Element] -- one element, or segment-point-segment when two segments cross
    """
    start, end = _overlap(a, b)
    if start == end:
        return [Point(start, min(a.value_at(start), b.value_at(start)))]
    a = a.cut(start, end)
    b = b.cut(start, end)
    if a.is_infinite() or b.is_infinite():
        return [a if a.right_limit_at_start_time <= b.right_limit_at_start_time else b]
    va, vb = a.right_limit_at_start_time, b.right_limit_at_start_time
    lower, upper = (a, b) if (va, a.slope) <= (vb, b.slope) else (b, a)
    if lower.slope <= upper.slope:
        return [lower]
    # the lower line at start has the larger slope, they cross at most once
    crossing = start + (upper.right_limit_at_start_time - lower.right_limit_at_start_time) / (lower.slope - upper.slope)
    if crossing >= end:
        return [lower]
    value = lower.line_value_at(crossing)
    return [Segment(start, crossing, lower.right_limit_at_start_time, lower.slope),
            Point(crossing, value),
            Segment(crossing, end, value, upper.slope)]


def maximum(a: Element, b: Element) -> List[Element]:
    """ Pointwise maximum of two elements over the intersection of their domains """
    return [e.negate() for e in minimum(a.negate(), b.negate())]


def convolution(a: Element, b: Element) -> List[Element]:
    """ Min-plus convolution of two elements, over the Minkowski sum of their domains

    Arguments:
        a {Element} -- first operand
        b {Element} -- second operand

    Returns:
        List[Element] -- the elements of the result, in time order
    """
    if isinstance(a, Point) and isinstance(b, Point):
        return [Point(a.time + b.time, a.value + b.value)]
    if isinstance(a, Point):
        a, b = b, a
    if isinstance(b, Point):
        return [Segment(a.start_time + b.time, a.end_time + b.time, a.right_limit_at_start_time + b.value, a.slope)]
    start = a.start_time + b.start_time
    end = a.end_time + b.end_time
    init_value = a.right_limit_at_start_time + b.right_limit_at_start_time
    if a.slope == b.slope or init_value.is_infinite():
        return [Segment(start, end, init_value, a.slope)]
    low, high = (a, b) if a.slope < b.slope else (b, a)
    middle_time = start + low.length
    middle_value = low.left_limit_at_end_time + high.right_limit_at_start_time
    return [Segment(start, middle_time, init_value, low.slope),
            Point(middle_time, middle_value),
            Segment(middle_time, end, middle_value, high.slope)]


def max_plus_convolution(a: Element, b: Element) -> List[Element]:
    """ Max-plus convolution of two elements """
    return [e.negate() for e in convolution(a.negate(), b.negate())]


def deconvolution(a: Element, b: Element) -> List[Element]:
    """ Min-plus deconvolution a (/) b of two elements, t -> sup_u a(t + u) - b(u)

    The result is defined over the Minkowski difference of the domains. An
    infinite operand gives a constant infinite result there: +inf when a is
    +inf or b is -inf, -inf when a is -inf or b is +inf (which constrains nothing).
    """
    if a.is_infinite() or b.is_infinite():
        if b.is_plus_infinite() or a.is_minus_infinite():
            value = MINUS_INFINITY
        else:
            value = PLUS_INFINITY
        if isinstance(a, Point) and isinstance(b, Point):
            return [Point(a.time - b.time, value)]
        return [Segment.constant(a.start_time - b.end_time, a.end_time - b.start_time, value)]
    if isinstance(a, Point) and isinstance(b, Point):
        return [Point(a.time - b.time, a.value - b.value)]
    if isinstance(b, Point):
        return [Segment(a.start_time - b.time, a.end_time - b.time, a.right_limit_at_start_time - b.value, a.slope)]
    if isinstance(a, Point):
        return [Segment(a.time - b.end_time, a.time - b.start_time, a.value - b.left_limit_at_end_time, b.slope)]
    start = a.start_time - b.end_time
    end = a.end_time - b.start_time
    init_value = a.right_limit_at_start_time - b.left_limit_at_end_time
    if a.slope == b.slope:
        return [Segment(start, end, init_value, a.slope)]
    low, high = (a, b) if a.slope < b.slope else (b, a)
    middle_time = start + high.length
    middle_value = init_value + high.slope * high.length
    return [Segment(start, middle_time, init_value, high.slope),
            Point(middle_time, middle_value),
            Segment(middle_time, end, middle_value, low.slope)]
