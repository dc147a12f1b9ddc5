import json

import pytest

from minplus.algebra.curve import Curve
from minplus.algebra.elements import Point, Segment
from minplus.algebra.sequence import Sequence
from minplus.curves.shapes import RateLatencyServiceCurve, DelayServiceCurve
from minplus.exceptions import InvalidArgument
from minplus.numerics.rational import Rational, PLUS_INFINITY, MINUS_INFINITY
from minplus.serialization import to_dict, from_dict


def through_json(obj):
    return from_dict(json.loads(json.dumps(to_dict(obj))))


class TestEncoding:
    """Tagged structural form"""

    def test_rational(self):
        assert to_dict(Rational(3, 4)) == {"type": "rational", "num": 3, "den": 4}
        assert to_dict(MINUS_INFINITY) == {"type": "rational", "num": -1, "den": 0}

    def test_large_integers_as_strings(self):
        encoded = to_dict(Rational(2 ** 60, 3))
        assert encoded["num"] == str(2 ** 60)
        assert encoded["den"] == 3

    def test_point(self):
        assert to_dict(Point(1, 2)) == {"type": "point",
                                        "time": {"type": "rational", "num": 1, "den": 1},
                                        "value": {"type": "rational", "num": 2, "den": 1}}

    def test_segment_fields(self):
        encoded = to_dict(Segment(0, 1, 2, Rational(1, 2)))
        assert encoded["type"] == "segment"
        assert set(encoded) == {"type", "startTime", "endTime", "rightLimitAtStartTime", "slope"}
        assert encoded["slope"] == {"type": "rational", "num": 1, "den": 2}

    def test_curve_fields(self):
        encoded = to_dict(RateLatencyServiceCurve(2, 1))
        assert encoded["type"] == "curve"
        assert encoded["baseSequence"]["type"] == "sequence"
        assert len(encoded["baseSequence"]["elements"]) == 4
        assert encoded["pseudoPeriodHeight"] == {"type": "rational", "num": 2, "den": 1}

    def test_unknown_object(self):
        with pytest.raises(InvalidArgument):
            to_dict(1.5)


class TestDecoding:
    """Back from the tagged form, through JSON"""

    def test_rationals(self):
        for r in (Rational(-7, 3), PLUS_INFINITY, MINUS_INFINITY, Rational(2 ** 70 + 1, 2 ** 65)):
            assert through_json(r) == r

    def test_elements(self):
        assert through_json(Point(Rational(1, 3), PLUS_INFINITY)) == Point(Rational(1, 3), PLUS_INFINITY)
        assert through_json(Segment.plus_infinite(0, 1)) == Segment.plus_infinite(0, 1)

    def test_sequence(self):
        s = Sequence([Point(0, 0), Segment(0, 2, 0, 1), Point(2, 3)])
        assert through_json(s) == s

    def test_curves(self):
        """Curves come back as generic curves with the same representation"""
        for curve in (RateLatencyServiceCurve(2, 1), DelayServiceCurve(3)):
            decoded = through_json(curve)
            assert type(decoded) is Curve
            assert decoded == curve

    def test_integers_as_strings(self):
        assert from_dict({"type": "rational", "num": "5", "den": "10"}) == Rational(1, 2)


class TestMalformedInput:
    """Every malformed input raises InvalidArgument"""

    def test_unknown_tag(self):
        with pytest.raises(InvalidArgument):
            from_dict({"type": "matrix"})

    def test_missing_tag(self):
        with pytest.raises(InvalidArgument):
            from_dict({"num": 1, "den": 2})
        with pytest.raises(InvalidArgument):
            from_dict([1, 2])

    def test_missing_field(self):
        with pytest.raises(InvalidArgument):
            from_dict({"type": "rational", "num": 1})

    def test_invalid_denominators(self):
        with pytest.raises(InvalidArgument):
            from_dict({"type": "rational", "num": 1, "den": -2})
        with pytest.raises(InvalidArgument):
            from_dict({"type": "rational", "num": 0, "den": 0})

    def test_invalid_integers(self):
        with pytest.raises(InvalidArgument):
            from_dict({"type": "rational", "num": "one", "den": 1})
        with pytest.raises(InvalidArgument):
            from_dict({"type": "rational", "num": True, "den": 1})
        with pytest.raises(InvalidArgument):
            from_dict({"type": "rational", "num": 1.5, "den": 1})

    def test_wrong_nested_type(self):
        point = to_dict(Point(0, 0))
        with pytest.raises(InvalidArgument):
            from_dict({"type": "point", "time": point, "value": point})
        with pytest.raises(InvalidArgument):
            from_dict({"type": "curve", "baseSequence": point,
                       "pseudoPeriodStart": to_dict(Rational(0)), "pseudoPeriodLength": to_dict(Rational(1)),
                       "pseudoPeriodHeight": to_dict(Rational(0))})
