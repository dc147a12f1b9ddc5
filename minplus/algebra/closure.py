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
Sub-additive closures in closed form.

The closure of a curve is the convolution of the closures of its elements,
since the closure of a minimum is the convolution of the closures. Each
element, alone or repeated along the pseudo-period, has an exact closure.
"""

import logging

from minplus.algebra.curve import Curve, CurveShape
from minplus.algebra.elements import Element, Point, Segment
from minplus.algebra.envelope import fill, lower_envelope
from minplus.algebra.sequence import Sequence
from minplus.algebra.settings import ComputationSettings
from minplus.curves.shapes import DelayServiceCurve
from minplus.numerics.rational import to_rational, ZERO, ONE, MINUS_INFINITY

lg = logging.getLogger("CLOSURE")


def curve_closure(curve: Curve, settings: ComputationSettings = None) -> Curve:
    """ Sub-additive closure of a curve

    Arguments:
        curve {Curve} -- the curve
        settings {ComputationSettings} -- (default: process-wide settings)

    Returns:
        Curve -- the closure, tagged sub-additive

    Raises:
        NotImplementedError: the curve is negative at the origin
    """
    settings = ComputationSettings.resolve(settings)
    origin = curve.value_at(ZERO)
    if origin < 0:
        raise NotImplementedError("Closure of a curve with a negative value at the origin")
    closures = []
    for e in curve.transient_elements:
        if e.is_plus_infinite() or (isinstance(e, Point) and e.time == 0):
            continue
        closures.append(element_closure(e, settings))
    length, height = curve.pseudo_period_length, curve.pseudo_period_height
    for e in curve.pseudo_periodic_elements:
        if e.is_plus_infinite():
            continue
        closures.append(periodic_element_closure(e, length, height, settings))
    lg.debug("closure of a curve as the convolution of %d element closures", len(closures))
    if not closures:
        return DelayServiceCurve(ZERO)
    result = Curve.convolution_of(closures, settings)
    return result.with_shape(CurveShape.SUB_ADDITIVE)


def element_closure(element: Element, settings: ComputationSettings = None) -> Curve:
    """ Sub-additive closure of a single element, +inf outside of its domain

    Raises:
        NotImplementedError: the element is a point at the origin with a negative value
    """
    if isinstance(element, Point):
        return _point_closure(element.time, element.value)
    return _segment_closure(element)


def periodic_element_closure(element: Element, period_length, period_height,
                             settings: ComputationSettings = None) -> Curve:
    """ Sub-additive closure of an element repeated every period_length, shifted up by period_height

    With e the element and q the point (period_length, period_height), the
    repetition is e * q*, and its closure is min(delta_0, e * e* * q*).
    """
    settings = ComputationSettings.resolve(settings)
    period_length = to_rational(period_length)
    period_height = to_rational(period_height)
    if element.is_plus_infinite():
        return DelayServiceCurve(ZERO)
    single = Curve(Sequence([element]), element.end_time + 1, ONE, ZERO, is_partial_curve=True)
    repeated = single.convolution(element_closure(element, settings), settings)
    repeated = repeated.convolution(_point_closure(period_length, period_height), settings)
    return DelayServiceCurve(ZERO).minimum(repeated, settings).with_shape(CurveShape.SUB_ADDITIVE)


def _point_closure(time, value) -> Curve:
    # k * value at k * time, +inf elsewhere
    if time == 0:
        if value < 0:
            raise NotImplementedError("Closure of a point at the origin with a negative value")
        return DelayServiceCurve(ZERO)
    if value.is_plus_infinite():
        return DelayServiceCurve(ZERO)
    if value.is_minus_infinite():
        elements = [Point.origin(), Segment.plus_infinite(ZERO, time),
                    Point(time, MINUS_INFINITY), Segment.plus_infinite(time, 2 * time)]
        return Curve(Sequence(elements), time, time, ZERO, shape=CurveShape.SUB_ADDITIVE)
    elements = [Point.origin(), Segment.plus_infinite(ZERO, time)]
    return Curve(Sequence(elements), ZERO, time, value, shape=CurveShape.SUB_ADDITIVE)


def _segment_closure(segment: Segment) -> Curve:
    start, end = segment.start_time, segment.end_time
    value, slope = segment.right_limit_at_start_time, segment.slope
    if value.is_plus_infinite():
        return DelayServiceCurve(ZERO)
    if start == 0:
        # k copies cover ]0, k * end[, the fewest are the cheapest when value >= 0
        if value < 0:
            elements = [Point.origin(), Segment.minus_infinite(ZERO, ONE),
                        Point(ONE, MINUS_INFINITY), Segment.minus_infinite(ONE, 2)]
            return Curve(Sequence(elements), ONE, ONE, ZERO, shape=CurveShape.SUB_ADDITIVE)
        elements = [Point.origin(), Segment(ZERO, end, value, slope),
                    Point(end, 2 * value + slope * end), Segment(end, 2 * end, 2 * value + slope * end, slope)]
        return Curve(Sequence(elements), end, end, value + slope * end, shape=CurveShape.SUB_ADDITIVE)

    # the k-th self-convolution covers ]k * start, k * end[ with k * value + slope * (t - k * start);
    # they overlap for good from the k-th one on
    overlapping = int((start / (end - start)).floor()) + 1
    period_start = (overlapping + 1) * start
    offset = value - slope * start
    if value.is_minus_infinite():
        period_length, period_height = start, ZERO
    elif offset <= 0:
        # the most copies are the cheapest
        period_length, period_height = start, value
    else:
        period_length, period_height = end, value + slope * (end - start)
    horizon = period_start + period_length
    copies = [Point.origin()]
    k = 1
    while k * start < horizon:
        copies.append(Segment(k * start, k * end, k * value, slope))
        k += 1
    lg.debug("closure of %r from %d copies", segment, len(copies) - 1)
    elements = fill(lower_envelope(copies), ZERO, horizon)
    base = Sequence(elements).cut(ZERO, horizon)
    return Curve(base, period_start, period_length, period_height, shape=CurveShape.SUB_ADDITIVE)
