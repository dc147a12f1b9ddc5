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
Lower and upper envelopes of unordered, overlapping sets of elements, and the
merge of consecutive elements that describe the same affine piece.
"""

from typing import Iterable, List

from minplus.algebra.elements import Element, Point, Segment
from minplus.numerics.rational import PLUS_INFINITY


def lower_envelope(elements: Iterable[Element]) -> List[Element]:
    """ Pointwise minimum of a set of elements

    At each time, the result is the minimum of the values of the elements
    defined there. Times where no element is defined are left out, so the
    result may have gaps. +inf elements only contribute their domain.

    Arguments:
        elements {Iterable[Element]} -- elements in any order, possibly overlapping

    Returns:
        List[Element] -- the envelope, in time order, with collinear pieces merged
    """
    elements = list(elements)
    if not elements:
        return []
    times = set()
    points = {}
    segments = []
    for e in elements:
        if isinstance(e, Point):
            times.add(e.time)
            points.setdefault(e.time, []).append(e)
        else:
            times.add(e.start_time)
            times.add(e.end_time)
            segments.append(e)
    times = sorted(times)
    segments.sort(key=lambda s: s.start_time)

    result = []
    active = []
    next_segment = 0
    for i, t in enumerate(times):
        active = [s for s in active if s.end_time > t]
        # value at the breakpoint: points there and segments strictly across it
        candidates = [p.value for p in points.get(t, ())]
        candidates.extend(s.line_value_at(t) for s in active)
        if candidates:
            result.append(Point(t, min(candidates)))
        while next_segment < len(segments) and segments[next_segment].start_time == t:
            active.append(segments[next_segment])
            next_segment += 1
        if i + 1 < len(times) and active:
            result.extend(_interval_envelope(active, t, times[i + 1]))
    return merge(result)


def upper_envelope(elements: Iterable[Element]) -> List[Element]:
    """ Pointwise maximum of a set of elements, see lower_envelope() """
    return [e.negate() for e in lower_envelope(e.negate() for e in elements)]


def _interval_envelope(segments: List[Segment], start, end) -> List[Element]:
    # every segment covers ]start, end[ entirely
    lines = [s for s in segments if not s.is_plus_infinite()]
    if not lines:
        return [Segment.plus_infinite(start, end)]
    if any(s.is_minus_infinite() for s in lines):
        return [Segment.minus_infinite(start, end)]
    lines = [(s.line_value_at(start), s.slope) for s in lines]
    value, slope = min(lines)
    time = start
    result = []
    while True:
        crossing = None
        for v, s in lines:
            if s >= slope:
                continue
            # the line is above at time, it crosses from above
            t = time + (v + s * (time - start) - value) / (slope - s)
            if time < t < end and (crossing is None or (t, s) < crossing):
                crossing = (t, s)
        if crossing is None:
            result.append(Segment(time, end, value, slope))
            return result
        t, s = crossing
        crossing_value = value + slope * (t - time)
        result.append(Segment(time, t, value, slope))
        result.append(Point(t, crossing_value))
        time, value, slope = t, crossing_value, s


def merge(elements: List[Element]) -> List[Element]:
    """ Merges segment-point-segment triplets that lie on the same line

    Arguments:
        elements {List[Element]} -- elements in time order

    Returns:
        List[Element] -- the same function with the fewest elements
    """
    result = []
    for e in elements:
        result.append(e)
        while len(result) >= 3 and _mergeable(result[-3], result[-2], result[-1]):
            right = result.pop()
            result.pop()
            left = result.pop()
            result.append(Segment(left.start_time, right.end_time, left.right_limit_at_start_time, left.slope))
    return result


def _mergeable(left, middle, right) -> bool:
    if not (isinstance(left, Segment) and isinstance(middle, Point) and isinstance(right, Segment)):
        return False
    if left.end_time != middle.time or right.start_time != middle.time:
        return False
    if left.is_infinite() or middle.is_infinite() or right.is_infinite():
        return (left.right_limit_at_start_time == middle.value == right.right_limit_at_start_time)
    return (left.slope == right.slope
            and left.left_limit_at_end_time == middle.value
            and right.right_limit_at_start_time == middle.value)


def fill(elements: List[Element], fill_from=None, fill_to=None, fill_with=PLUS_INFINITY,
         is_from_included: bool = True) -> List[Element]:
    """ Fills the gaps of an ordered list of elements with a constant value

    The filled domain is [fill_from, fill_to[; elements outside of it are kept.

    Arguments:
        elements {List[Element]} -- non-overlapping elements, in time order
        fill_from {Rational} -- start of the filled domain (default: start of the first element)
        fill_to {Rational} -- end of the filled domain (default: end of the last element)
        fill_with {Rational} -- the value of the filler elements (default: +inf)
        is_from_included {bool} -- False for the domain ]fill_from, fill_to[

    Returns:
        List[Element] -- the elements without gaps
    """
    if not elements and (fill_from is None or fill_to is None):
        return []
    result = []
    if elements and (fill_from is None or elements[0].start_time < fill_from):
        time = elements[0].start_time
        # an open start stays open
        covered = isinstance(elements[0], Segment)
    else:
        time = fill_from
        covered = not is_from_included

    def fill_gap(until):
        nonlocal time, covered
        if time < until:
            if not covered:
                result.append(Point(time, fill_with))
            result.append(Segment(time, until, fill_with, 0))
            time = until
            covered = False

    for e in elements:
        if isinstance(e, Point):
            fill_gap(e.time)
            result.append(e)
            time = e.time
            covered = True
        else:
            fill_gap(e.start_time)
            if not covered:
                result.append(Point(time, fill_with))
            result.append(e)
            time = e.end_time
            covered = False
    if fill_to is not None:
        fill_gap(fill_to)
    return result
