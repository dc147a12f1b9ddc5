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
Tagged structural encoding of the algebra objects.

Every object becomes a plain dict with a "type" tag:

    rational  {num, den}          den = 0 encodes +inf or -inf by the sign of num
    point     {time, value}
    segment   {startTime, endTime, rightLimitAtStartTime, slope}
    sequence  {elements}
    curve     {baseSequence, pseudoPeriodStart, pseudoPeriodLength, pseudoPeriodHeight}

Integers too large for a double are written as strings, so that any JSON
library reads them back exactly. Curves are decoded as generic curves.
"""

from minplus.algebra.curve import Curve
from minplus.algebra.elements import Point, Segment
from minplus.algebra.sequence import Sequence
from minplus.exceptions import InvalidArgument
from minplus.numerics.rational import Rational

_MAX_SAFE_INTEGER = 2 ** 53 - 1


def _encode_int(n: int):
    return n if -_MAX_SAFE_INTEGER <= n <= _MAX_SAFE_INTEGER else str(n)


def _decode_int(value) -> int:
    if isinstance(value, bool):
        raise InvalidArgument(string="Expected an integer, got %r" % value)
    if isinstance(value, (int, str)):
        try:
            return int(value)
        except ValueError:
            raise InvalidArgument(string="Expected an integer, got %r" % value)
    raise InvalidArgument(string="Expected an integer, got %r" % value)


def to_dict(obj) -> dict:
    """
    Encode a Rational, Point, Segment, Sequence or Curve

    Arguments:
        obj -- the object to encode

    Returns:
        dict -- its tagged structural form

    Raises:
        InvalidArgument: the object has no encoding
    """
    if isinstance(obj, Rational):
        return {"type": "rational", "num": _encode_int(obj.numerator), "den": _encode_int(obj.denominator)}
    if isinstance(obj, Point):
        return {"type": "point", "time": to_dict(obj.time), "value": to_dict(obj.value)}
    if isinstance(obj, Segment):
        return {"type": "segment",
                "startTime": to_dict(obj.start_time),
                "endTime": to_dict(obj.end_time),
                "rightLimitAtStartTime": to_dict(obj.right_limit_at_start_time),
                "slope": to_dict(obj.slope)}
    if isinstance(obj, Sequence):
        return {"type": "sequence", "elements": [to_dict(e) for e in obj]}
    if isinstance(obj, Curve):
        return {"type": "curve",
                "baseSequence": to_dict(obj.base_sequence),
                "pseudoPeriodStart": to_dict(obj.pseudo_period_start),
                "pseudoPeriodLength": to_dict(obj.pseudo_period_length),
                "pseudoPeriodHeight": to_dict(obj.pseudo_period_height)}
    raise InvalidArgument(string="Cannot encode an object of type %s" % type(obj).__name__)


def from_dict(data: dict):
    """
    Decode the tagged structural form produced by to_dict

    Raises:
        InvalidArgument: unknown tag, missing field or malformed value
    """
    if not isinstance(data, dict) or "type" not in data:
        raise InvalidArgument(string="Expected a tagged dict, got %r" % (data,))
    decoder = _DECODERS.get(data["type"])
    if decoder is None:
        raise InvalidArgument(string="Unknown type tag %r" % data["type"])
    try:
        return decoder(data)
    except KeyError as e:
        raise InvalidArgument(string="Missing field %s in a %s" % (e, data["type"]))


def _rational(data) -> Rational:
    value = from_dict(data)
    if not isinstance(value, Rational):
        raise InvalidArgument(string="Expected a rational, got a %s" % data["type"])
    return value


def _decode_rational(data) -> Rational:
    num, den = _decode_int(data["num"]), _decode_int(data["den"])
    if den < 0:
        raise InvalidArgument(string="The denominator of an encoded rational cannot be negative")
    if den == 0:
        if num == 0:
            raise InvalidArgument(string="0/0 is not a rational")
        return Rational.plus_infinity() if num > 0 else Rational.minus_infinity()
    return Rational(num, den)


def _decode_point(data) -> Point:
    return Point(_rational(data["time"]), _rational(data["value"]))


def _decode_segment(data) -> Segment:
    return Segment(_rational(data["startTime"]), _rational(data["endTime"]),
                   _rational(data["rightLimitAtStartTime"]), _rational(data["slope"]))


def _decode_sequence(data) -> Sequence:
    elements = [from_dict(e) for e in data["elements"]]
    if not all(isinstance(e, (Point, Segment)) for e in elements):
        raise InvalidArgument(string="A sequence only holds points and segments")
    return Sequence(elements)


def _decode_curve(data) -> Curve:
    base = from_dict(data["baseSequence"])
    if not isinstance(base, Sequence):
        raise InvalidArgument(string="The base of a curve must be a sequence")
    return Curve(base, _rational(data["pseudoPeriodStart"]), _rational(data["pseudoPeriodLength"]),
                 _rational(data["pseudoPeriodHeight"]))


_DECODERS = {
    "rational": _decode_rational,
    "point": _decode_point,
    "segment": _decode_segment,
    "sequence": _decode_sequence,
    "curve": _decode_curve,
}
