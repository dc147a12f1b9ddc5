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
This module contains the finite piecewise affine functions: sequences of
points and segments that alternate without gaps over a bounded interval.
"""

import bisect
import logging
from typing import Iterable, List, Tuple

from minplus.algebra import parallel
from minplus.algebra.elements import Element, Point, Segment
from minplus.algebra import elements as elem
from minplus.algebra.envelope import lower_envelope, upper_envelope, merge, fill
from minplus.algebra.settings import ComputationSettings
from minplus.exceptions import InvalidArgument, InvalidSequence, InvalidOperation, FixedPointNotReached
from minplus.numerics.rational import Rational, to_rational, ZERO, PLUS_INFINITY, MINUS_INFINITY

lg = logging.getLogger("SEQ")


class Sequence:
    """
    A piecewise affine function over a bounded interval.

    The elements are in time order, points and segments alternate, and each
    element starts where the previous one ends. The ends of the domain are
    closed when the sequence starts (or ends) with a point, open otherwise.

    Arguments:
        elements {Iterable[Element]} -- the elements, in time order
        fill_from {Rational} -- if given with fill_to, gaps of [fill_from, fill_to[ are filled
        fill_to {Rational} -- end of the filled domain
        fill_with {Rational} -- value used to fill (default: +inf)
    """

    def __init__(self, elements: Iterable[Element], fill_from=None, fill_to=None, fill_with=PLUS_INFINITY) -> None:
        elements = list(elements)
        if fill_from is not None or fill_to is not None:
            elements = fill(elements,
                            None if fill_from is None else to_rational(fill_from),
                            None if fill_to is None else to_rational(fill_to),
                            to_rational(fill_with))
        if not elements:
            raise InvalidSequence(string="A sequence needs at least one element")
        for i in range(1, len(elements)):
            previous, current = elements[i - 1], elements[i]
            if isinstance(previous, Point) == isinstance(current, Point):
                raise InvalidSequence(i, string="Points and segments must alternate (element %d: %r after %r)" % (i, current, previous))
            if previous.end_time != current.start_time:
                raise InvalidSequence(i, string="Element %d (%r) does not start where %r ends" % (i, current, previous))
        self._elements = tuple(elements)
        self._starts = None

    # Factories

    @classmethod
    def constant(cls, start, end, value) -> 'Sequence':
        """ Constant sequence over [start, end[ """
        return cls([Point(start, value), Segment.constant(start, end, value)])

    @classmethod
    def zero(cls, start, end) -> 'Sequence':
        return cls.constant(start, end, ZERO)

    @classmethod
    def plus_infinite(cls, start, end) -> 'Sequence':
        return cls.constant(start, end, PLUS_INFINITY)

    @classmethod
    def minus_infinite(cls, start, end) -> 'Sequence':
        return cls.constant(start, end, MINUS_INFINITY)

    @staticmethod
    def sort_elements(elements: Iterable[Element], settings: ComputationSettings = None) -> List[Element]:
        """Elements in time order, see Element.sort_key()"""
        return parallel.sort(elements, key=Element.sort_key, settings=settings)

    @staticmethod
    def are_in_time_order(elements: Iterable[Element]) -> bool:
        """True if the elements follow each other in time without overlapping"""
        previous = None
        for e in elements:
            if previous is not None:
                if previous.end_time > e.start_time:
                    return False
                if previous.end_time == e.start_time and isinstance(previous, Point) and isinstance(e, Point):
                    return False
            previous = e
        return True

    # Accessors

    @property
    def elements(self) -> Tuple[Element, ...]:
        return self._elements

    @property
    def defined_from(self) -> Rational:
        return self._elements[0].start_time

    @property
    def defined_until(self) -> Rational:
        return self._elements[-1].end_time

    @property
    def is_left_closed(self) -> bool:
        return isinstance(self._elements[0], Point)

    @property
    def is_right_closed(self) -> bool:
        return isinstance(self._elements[-1], Point)

    @property
    def is_left_open(self) -> bool:
        return not self.is_left_closed

    @property
    def is_right_open(self) -> bool:
        return not self.is_right_closed

    @property
    def points(self) -> List[Point]:
        return [e for e in self._elements if isinstance(e, Point)]

    @property
    def segments(self) -> List[Segment]:
        return [e for e in self._elements if isinstance(e, Segment)]

    def __len__(self):
        return len(self._elements)

    def __iter__(self):
        return iter(self._elements)

    def __getitem__(self, index):
        return self._elements[index]

    def _start_times(self) -> List[Rational]:
        if self._starts is None:
            self._starts = [e.start_time for e in self._elements]
        return self._starts

    def is_defined_at(self, time) -> bool:
        time = to_rational(time)
        if self.defined_from < time < self.defined_until:
            return True
        if time == self.defined_from and self.is_left_closed:
            return True
        return time == self.defined_until and self.is_right_closed

    def get_element_at(self, time) -> Element:
        """ The element whose domain contains time

        Raises:
            InvalidArgument: the sequence is not defined at time
        """
        time = to_rational(time)
        if not self.is_defined_at(time):
            raise InvalidArgument(string="The sequence over %s is not defined at %s" % (self._domain_str(), time))
        index = bisect.bisect_right(self._start_times(), time) - 1
        e = self._elements[index]
        if isinstance(e, Segment) and e.start_time == time:
            e = self._elements[index - 1]
        return e

    def get_segment_after(self, time) -> Segment:
        """ The segment just after time, the one that gives the right limit at time """
        time = to_rational(time)
        index = bisect.bisect_right(self._start_times(), time) - 1
        if index >= 0:
            e = self._elements[index]
            if isinstance(e, Segment) and e.start_time <= time < e.end_time:
                return e
        raise InvalidArgument(string="The sequence over %s has no right limit at %s" % (self._domain_str(), time))

    def get_segment_before(self, time) -> Segment:
        """ The segment just before time, the one that gives the left limit at time """
        time = to_rational(time)
        index = bisect.bisect_left(self._start_times(), time) - 1
        if index >= 0:
            e = self._elements[index]
            if isinstance(e, Segment) and e.start_time < time <= e.end_time:
                return e
        raise InvalidArgument(string="The sequence over %s has no left limit at %s" % (self._domain_str(), time))

    def value_at(self, time) -> Rational:
        time = to_rational(time)
        return self.get_element_at(time).value_at(time)

    def right_limit_at(self, time) -> Rational:
        return self.get_segment_after(time).line_value_at(time)

    def left_limit_at(self, time) -> Rational:
        return self.get_segment_before(time).line_value_at(time)

    # Properties

    def is_finite(self) -> bool:
        return all(e.is_finite() for e in self._elements)

    def is_plus_infinite(self) -> bool:
        return all(e.is_plus_infinite() for e in self._elements)

    def is_minus_infinite(self) -> bool:
        return all(e.is_minus_infinite() for e in self._elements)

    def is_zero(self) -> bool:
        return all(e.is_zero() for e in self._elements)

    def is_continuous(self) -> bool:
        """True if there is no jump at any inner point"""
        for i, e in enumerate(self._elements):
            if isinstance(e, Point):
                if i > 0 and self._elements[i - 1].left_limit_at_end_time != e.value:
                    return False
                if i + 1 < len(self._elements) and self._elements[i + 1].right_limit_at_start_time != e.value:
                    return False
        return True

    def is_left_continuous(self) -> bool:
        return all(self._elements[i - 1].left_limit_at_end_time == e.value
                   for i, e in enumerate(self._elements) if isinstance(e, Point) and i > 0)

    def is_right_continuous(self) -> bool:
        return all(self._elements[i + 1].right_limit_at_start_time == e.value
                   for i, e in enumerate(self._elements) if isinstance(e, Point) and i + 1 < len(self._elements))

    def is_non_negative(self) -> bool:
        return self.min_value() >= 0

    def is_non_decreasing(self) -> bool:
        for i, e in enumerate(self._elements):
            if isinstance(e, Segment):
                if e.slope < 0:
                    return False
            else:
                if i > 0 and self._elements[i - 1].left_limit_at_end_time > e.value:
                    return False
                if i + 1 < len(self._elements) and self._elements[i + 1].right_limit_at_start_time < e.value:
                    return False
        return True

    def first_non_zero_time(self) -> Rational:
        """ Infimum of the times where the sequence is not 0, +inf if it is 0 everywhere """
        for e in self._elements:
            if not e.is_zero():
                return e.start_time
        return PLUS_INFINITY

    def first_finite_time(self) -> Rational:
        """ Infimum of the times where the sequence is finite, +inf if there are none """
        for e in self._elements:
            if e.is_finite():
                return e.start_time
        return PLUS_INFINITY

    def first_finite_time_after(self, time) -> Rational:
        """ Infimum of the times strictly after time where the sequence is finite """
        time = to_rational(time)
        for e in self._elements:
            if e.end_time <= time:
                continue
            if e.is_finite():
                return max(e.start_time, time)
        return PLUS_INFINITY

    def min_value(self) -> Rational:
        """ Infimum of the values, limits included """
        values = []
        for e in self._elements:
            if isinstance(e, Point):
                values.append(e.value)
            else:
                values.append(e.right_limit_at_start_time)
                values.append(e.left_limit_at_end_time)
        return min(values)

    def max_value(self) -> Rational:
        """ Supremum of the values, limits included """
        values = []
        for e in self._elements:
            if isinstance(e, Point):
                values.append(e.value)
            else:
                values.append(e.right_limit_at_start_time)
                values.append(e.left_limit_at_end_time)
        return max(values)

    def equivalent(self, other: 'Sequence') -> bool:
        """True if both sequences describe the same function, whatever their elements"""
        return merge(list(self._elements)) == merge(list(other._elements))

    def __le__(self, other: 'Sequence') -> bool:
        return self.minimum(other).equivalent(self)

    def __ge__(self, other: 'Sequence') -> bool:
        return self.maximum(other).equivalent(self)

    def __eq__(self, other):
        if not isinstance(other, Sequence):
            return NotImplemented
        return self._elements == other._elements

    def __hash__(self):
        return hash(self._elements)

    # Transformations

    def cut(self, start, end, is_start_included: bool = True, is_end_included: bool = False) -> 'Sequence':
        """ Restriction of the sequence to an interval

        Arguments:
            start {Rational} -- start of the interval
            end {Rational} -- end of the interval
            is_start_included {bool} -- whether start belongs to the interval (default: True)
            is_end_included {bool} -- whether end belongs to the interval (default: False)

        Returns:
            Sequence -- the restricted sequence
        """
        start = to_rational(start)
        end = to_rational(end)
        if start > end or (start == end and not (is_start_included and is_end_included)):
            raise InvalidArgument(string="Cannot cut over an empty interval (%s, %s)" % (start, end))
        if (start < self.defined_from or end > self.defined_until
                or (is_start_included and not self.is_defined_at(start))
                or (is_end_included and not self.is_defined_at(end))):
            raise InvalidArgument(string="Cannot cut [%s, %s] out of a sequence over %s" % (start, end, self._domain_str()))
        if start == end:
            return Sequence([Point(start, self.value_at(start))])
        result = []
        first = max(0, bisect.bisect_left(self._start_times(), start) - 1)
        for e in self._elements[first:]:
            if e.start_time > end:
                break
            if isinstance(e, Point):
                t = e.time
                if (start < t or (t == start and is_start_included)) and (t < end or (t == end and is_end_included)):
                    result.append(e)
                continue
            if e.start_time < start < e.end_time and is_start_included:
                result.append(Point(start, e.line_value_at(start)))
            low = max(e.start_time, start)
            high = min(e.end_time, end)
            if low < high:
                result.append(e if (low == e.start_time and high == e.end_time) else e.cut(low, high))
            if e.start_time < end < e.end_time and is_end_included:
                result.append(Point(end, e.line_value_at(end)))
        return Sequence(result)

    def optimize(self) -> 'Sequence':
        """ Same function with collinear consecutive pieces merged """
        merged = merge(list(self._elements))
        if len(merged) == len(self._elements):
            return self
        return Sequence(merged)

    def enforce_split_at(self, time) -> 'Sequence':
        """ Same function, with a point at time if time is inside a segment """
        time = to_rational(time)
        if not self.defined_from < time < self.defined_until:
            return self
        e = self.get_element_at(time)
        if isinstance(e, Point):
            return self
        index = self._elements.index(e)
        return Sequence(self._elements[:index] + e.split(time) + self._elements[index + 1:])

    def split_at(self, times: Iterable[Rational]) -> 'Sequence':
        """ Same function, split at each of the given times """
        return Sequence(_split_at(self._elements, sorted(set(to_rational(t) for t in times))))

    def negate(self) -> 'Sequence':
        return Sequence([e.negate() for e in self._elements])

    def scale(self, factor) -> 'Sequence':
        factor = to_rational(factor)
        if factor.is_infinite():
            raise InvalidArgument(string="Cannot scale by an infinite factor")
        return Sequence([e.scale(factor) for e in self._elements])

    def delay(self, delay) -> 'Sequence':
        return Sequence([e.delay(delay) for e in self._elements])

    def anticipate(self, time) -> 'Sequence':
        return Sequence([e.anticipate(time) for e in self._elements])

    def vertical_shift(self, shift) -> 'Sequence':
        return Sequence([e.vertical_shift(shift) for e in self._elements])

    def to_non_negative(self) -> 'Sequence':
        """ max(f, 0) """
        result = []
        for e in self._elements:
            result.extend(elem.maximum(e, _zero_like(e)))
        return Sequence(merge(result))

    def with_zero_at(self, time) -> 'Sequence':
        """ min(f, 0) at time, f elsewhere """
        time = to_rational(time)
        e = self.get_element_at(time)
        if isinstance(e, Segment):
            return self.enforce_split_at(time).with_zero_at(time)
        index = self._elements.index(e)
        return Sequence(self._elements[:index] + (Point(time, min(ZERO, e.value)),) + self._elements[index + 1:])

    @staticmethod
    def concat(sequences: Iterable['Sequence']) -> 'Sequence':
        """ Joins sequences that follow each other """
        result = []
        for s in sequences:
            result.extend(s.elements)
        return Sequence(result)

    # Operators

    def addition(self, other: 'Sequence') -> 'Sequence':
        """ Sum over the intersection of the domains

        Arguments:
            other {Sequence} -- the other operand

        Returns:
            Sequence -- self + other
        """
        a, b = _aligned(self, other)
        return Sequence(merge([elem.addition(x, y) for x, y in zip(a, b)]))

    def subtraction(self, other: 'Sequence', *, non_negative: bool) -> 'Sequence':
        """ Difference over the intersection of the domains

        Arguments:
            other {Sequence} -- the subtrahend
            non_negative {bool} -- if True, the result is max(self - other, 0)

        Returns:
            Sequence -- self - other
        """
        result = self.addition(other.negate())
        return result.to_non_negative() if non_negative else result

    def minimum(self, other: 'Sequence') -> 'Sequence':
        """ Pointwise minimum over the intersection of the domains """
        a, b = _aligned(self, other)
        result = []
        for x, y in zip(a, b):
            result.extend(elem.minimum(x, y))
        return Sequence(merge(result))

    def maximum(self, other: 'Sequence') -> 'Sequence':
        """ Pointwise maximum over the intersection of the domains """
        a, b = _aligned(self, other)
        result = []
        for x, y in zip(a, b):
            result.extend(elem.maximum(x, y))
        return Sequence(merge(result))

    def convolution(self, other: 'Sequence', settings: ComputationSettings = None, cut_end=None) -> 'Sequence':
        """ Min-plus convolution, defined over the Minkowski sum of the domains

        Arguments:
            other {Sequence} -- the other operand
            settings {ComputationSettings} -- parallelism settings
            cut_end {Rational} -- if given, only the part before cut_end is computed
                                  and the result is defined over [start, cut_end[

        Returns:
            Sequence -- self (min-plus convolution) other
        """
        start = self.defined_from + other.defined_from
        end = self.defined_until + other.defined_until
        is_left_closed = self.is_left_closed and other.is_left_closed
        is_right_closed = self.is_right_closed and other.is_right_closed
        if cut_end is not None:
            cut_end = to_rational(cut_end)
            if cut_end > end:
                raise InvalidArgument(string="Cannot cut the convolution at %s, past its end %s" % (cut_end, end))
            if cut_end < end:
                end = cut_end
                is_right_closed = False
        if start == end:
            return Sequence([Point(start, self.value_at(self.defined_from) + other.value_at(other.defined_from))])
        left = [e for e in self._elements if not e.is_plus_infinite()]
        right = [e for e in other.elements if not e.is_plus_infinite()]
        pairs = [(a, b) for a in left for b in right
                 if a.start_time + b.start_time < end or (is_right_closed and a.start_time + b.start_time == end)]
        lg.debug("convolution of %d x %d elements, %d pairs", len(self), len(other), len(pairs))
        products = parallel.flat_map(lambda pair: elem.convolution(pair[0], pair[1]), pairs, settings)
        envelope = lower_envelope(products)
        result = Sequence(fill(envelope, start, end, PLUS_INFINITY, is_from_included=is_left_closed))
        if result.defined_until > end or (result.defined_until == end and result.is_right_closed and not is_right_closed):
            result = result.cut(start, end, is_start_included=is_left_closed, is_end_included=is_right_closed)
        elif is_right_closed and not result.is_right_closed:
            result = Sequence(list(result.elements) + [Point(end, PLUS_INFINITY)])
        return result

    def max_plus_convolution(self, other: 'Sequence', settings: ComputationSettings = None, cut_end=None) -> 'Sequence':
        """ Max-plus convolution, -((-self) * (-other)) """
        return self.negate().convolution(other.negate(), settings, cut_end).negate()

    def deconvolution(self, other: 'Sequence', cut_start=None, cut_end=None,
                      settings: ComputationSettings = None) -> 'Sequence':
        """ Min-plus deconvolution, t -> sup_u self(t + u) - other(u)

        Every pair of elements contributes, so +inf parts of self show through
        wherever other is finite.

        Arguments:
            other {Sequence} -- the other operand
            cut_start {Rational} -- if given, the result starts at cut_start (included)
            cut_end {Rational} -- if given, the result ends at cut_end (excluded), filled with +inf

        Returns:
            Sequence -- self (min-plus deconvolution) other
        """
        cut_start = None if cut_start is None else to_rational(cut_start)
        cut_end = None if cut_end is None else to_rational(cut_end)
        pairs = [(a, b) for a in self._elements
                 for b in other.elements
                 if cut_start is None or a.end_time - b.start_time >= cut_start]
        products = parallel.flat_map(lambda pair: elem.deconvolution(pair[0], pair[1]), pairs, settings)
        envelope = upper_envelope(products)
        if not envelope:
            if cut_start is None or cut_end is None:
                raise InvalidOperation(string="The deconvolution has no pair of elements")
            return Sequence.plus_infinite(cut_start, cut_end)
        result_start = envelope[0].start_time
        result_end = envelope[-1].end_time
        if cut_start is None and cut_end is None:
            return Sequence(fill(envelope))
        start = cut_start if cut_start is not None else result_start
        end = cut_end if cut_end is not None else result_end
        elements = fill(envelope, min(result_start, start), max(result_end, end) if cut_end is not None else None)
        return Sequence(elements).cut(start, end)

    def sub_additive_closure(self, settings: ComputationSettings = None) -> 'Sequence':
        """ Sub-additive closure restricted to the domain of the sequence, which must start with a point at 0

        The closure is the fixed point of g <- min(g, g * g), starting from min(f, delta_0).

        Raises:
            NotImplementedError: f(0) < 0
            FixedPointNotReached: no fixed point after settings.closure_max_iterations rounds
        """
        settings = ComputationSettings.resolve(settings)
        if self.defined_from != 0 or not self.is_left_closed:
            raise InvalidArgument(string="The closure of a sequence requires a sequence starting with a point at 0")
        if self.value_at(ZERO) < 0:
            raise NotImplementedError("Closure with a negative value at the origin")
        g = self.with_zero_at(ZERO)
        if len(g) == 1:
            return g
        end = self.defined_until
        if g.right_limit_at(ZERO) < 0:
            # arbitrarily many small negative steps
            result = [Point(ZERO, ZERO), Segment.minus_infinite(ZERO, end)]
            if self.is_right_closed:
                result.append(Point(end, MINUS_INFINITY))
            return Sequence(result)
        for iteration in range(settings.closure_max_iterations):
            square = g.convolution(g, settings, cut_end=end if self.is_right_open else None)
            square = square.cut(ZERO, end, is_end_included=self.is_right_closed)
            following = g.minimum(square)
            lg.debug("closure iteration %d: %d elements", iteration, len(following))
            if following.equivalent(g):
                return following.optimize()
            g = following
        raise FixedPointNotReached(settings.closure_max_iterations)

    def super_additive_closure(self, settings: ComputationSettings = None) -> 'Sequence':
        """ Super-additive closure restricted to the domain, -closure(-f) """
        return self.negate().sub_additive_closure(settings).negate()

    def __add__(self, other):
        if isinstance(other, Sequence):
            return self.addition(other)
        return NotImplemented

    def __mul__(self, other):
        if isinstance(other, Sequence):
            return self.convolution(other)
        return NotImplemented

    def __neg__(self):
        return self.negate()

    def _domain_str(self) -> str:
        return "%s%s, %s%s" % ("[" if self.is_left_closed else "]", self.defined_from,
                               self.defined_until, "]" if self.is_right_closed else "[")

    def __repr__(self):
        return "Sequence([%s])" % ", ".join(repr(e) for e in self._elements)

    def __str__(self):
        return "Sequence over %s with %d elements" % (self._domain_str(), len(self._elements))


def _zero_like(e: Element) -> Element:
    if isinstance(e, Point):
        return Point(e.time, ZERO)
    return Segment.zero(e.start_time, e.end_time)


def _split_at(elements, times: List[Rational]) -> List[Element]:
    result = []
    for e in elements:
        if isinstance(e, Point):
            result.append(e)
            continue
        low = bisect.bisect_right(times, e.start_time)
        high = bisect.bisect_left(times, e.end_time)
        remaining = e
        for t in times[low:high]:
            left, point, remaining = remaining.split(t)
            result.append(left)
            result.append(point)
        result.append(remaining)
    return result


def _aligned(a: Sequence, b: Sequence) -> Tuple[List[Element], List[Element]]:
    """Both sequences cut to their common domain and split at the same times"""
    start = max(a.defined_from, b.defined_from)
    end = min(a.defined_until, b.defined_until)
    start_included = a.is_defined_at(start) and b.is_defined_at(start)
    end_included = a.is_defined_at(end) and b.is_defined_at(end)
    if start > end or (start == end and not (start_included and end_included)):
        raise InvalidArgument(string="The sequences over %s and %s do not overlap" % (a._domain_str(), b._domain_str()))
    if (a.defined_from, a.defined_until, a.is_left_closed, a.is_right_closed) != (start, end, start_included, end_included):
        a = a.cut(start, end, start_included, end_included)
    if (b.defined_from, b.defined_until, b.is_left_closed, b.is_right_closed) != (start, end, start_included, end_included):
        b = b.cut(start, end, start_included, end_included)
    times = sorted(set(a._start_times()) | set(b._start_times()))
    x = _split_at(a.elements, times)
    y = _split_at(b.elements, times)
    return x, y
