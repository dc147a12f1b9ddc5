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
Exact rational numbers extended with +infinity and -infinity.

A rational is stored as a reduced pair (numerator, denominator) with a
positive denominator. A zero denominator encodes an infinity, whose sign is
the sign of the numerator (always +1 or -1 once normalized).

Two backings are available:

- :class:`Rational` uses Python integers and never overflows;
- :class:`LongRational` keeps both components in the signed 64-bit range and
  raises :class:`OverflowError` when a result leaves it.
"""

import math
import warnings
from decimal import Decimal
from fractions import Fraction
from typing import Union

from minplus.exceptions import UndeterminedResult, DivideByZero, InvalidArgument, LossyConversionWarning

_INT64_MIN = -(2 ** 63)
_INT64_MAX = 2 ** 63 - 1

_INFINITY_STRINGS = {
    "inf": 1, "+inf": 1, "infinity": 1, "+infinity": 1,
    "-inf": -1, "-infinity": -1,
}


def _normalize(num: int, den: int):
    if den == 0:
        if num == 0:
            raise UndeterminedResult(string="0/0 is undetermined")
        return (1 if num > 0 else -1), 0
    if den < 0:
        num, den = -num, -den
    g = math.gcd(num, den)
    if g > 1:
        num, den = num // g, den // g
    return num, den


def _as_pair(value):
    if isinstance(value, Rational):
        return value._num, value._den
    if isinstance(value, bool):
        raise TypeError("a boolean is not a rational")
    if isinstance(value, int):
        return value, 1
    if isinstance(value, Fraction):
        return value.numerator, value.denominator
    if isinstance(value, Decimal):
        r = Rational.from_decimal(value)
        return r._num, r._den
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _INFINITY_STRINGS:
            return _INFINITY_STRINGS[text], 0
        try:
            f = Fraction(text)
        except (ValueError, ZeroDivisionError):
            raise InvalidArgument(string="Cannot parse %r as a rational" % value)
        return f.numerator, f.denominator
    if isinstance(value, float):
        raise TypeError("floats are not exact, use Rational.from_float() explicitly")
    raise TypeError("Cannot build a rational from %s" % type(value).__name__)


class Rational:
    """
    Exact rational number, possibly infinite.

    Arguments:
        numerator {int, Rational, Fraction, Decimal, str} -- the numerator, or the whole value
        denominator {int, Rational, Fraction, Decimal} -- the denominator (default: 1)

    >>> Rational(6, 4)
    Rational(3, 2)
    >>> Rational(1, 0) > Rational(10 ** 40)
    True
    """
    __slots__ = ("_num", "_den")

    def __init__(self, numerator=0, denominator=1):
        num, den = _as_pair(numerator)
        if not (isinstance(denominator, int) and denominator == 1):
            dnum, dden = _as_pair(denominator)
            if den == 0 or dden == 0:
                value = type(self)._from_reduced(num, den) / type(self)._from_reduced(dnum, dden)
                num, den = value._num, value._den
            else:
                num, den = num * dden, den * dnum
        num, den = _normalize(num, den)
        self._num = num
        self._den = den
        self._check_bounds()

    @classmethod
    def _from_reduced(cls, num: int, den: int) -> "Rational":
        obj = object.__new__(cls)
        obj._num = num
        obj._den = den
        obj._check_bounds()
        return obj

    @classmethod
    def _build(cls, num: int, den: int) -> "Rational":
        num, den = _normalize(num, den)
        return cls._from_reduced(num, den)

    def _check_bounds(self) -> None:
        pass

    # Factories

    @classmethod
    def plus_infinity(cls) -> "Rational":
        return cls._from_reduced(1, 0)

    @classmethod
    def minus_infinity(cls) -> "Rational":
        return cls._from_reduced(-1, 0)

    @classmethod
    def from_decimal(cls, value: Decimal) -> "Rational":
        """Exact conversion from a decimal value

        Arguments:
            value {Decimal} -- the decimal, possibly infinite

        Returns:
            Rational -- the same value
        """
        if value.is_nan():
            raise InvalidArgument(string="Cannot convert NaN to a rational")
        if value.is_infinite():
            return cls._from_reduced(-1 if value.is_signed() else 1, 0)
        num, den = value.as_integer_ratio()
        return cls._build(num, den)

    @classmethod
    def from_float(cls, value: float) -> "Rational":
        """Conversion from a binary float.

        The float is converted to the exact value of its binary representation,
        which is usually not the decimal number that was typed, hence the warning.
        """
        if math.isnan(value):
            raise InvalidArgument(string="Cannot convert NaN to a rational")
        warnings.warn("Converting the float %r to a rational keeps its binary approximation" % value,
                      LossyConversionWarning, stacklevel=2)
        if math.isinf(value):
            return cls._from_reduced(1 if value > 0 else -1, 0)
        num, den = value.as_integer_ratio()
        return cls._build(num, den)

    # Accessors

    @property
    def numerator(self) -> int:
        return self._num

    @property
    def denominator(self) -> int:
        return self._den

    @property
    def sign(self) -> int:
        return (self._num > 0) - (self._num < 0)

    def is_finite(self) -> bool:
        return self._den != 0

    def is_infinite(self) -> bool:
        return self._den == 0

    def is_plus_infinite(self) -> bool:
        return self._den == 0 and self._num > 0

    def is_minus_infinite(self) -> bool:
        return self._den == 0 and self._num < 0

    def is_zero(self) -> bool:
        return self._num == 0

    def is_integer(self) -> bool:
        return self._den == 1

    # Arithmetic

    def _coerce(self, other):
        if isinstance(other, Rational):
            return other
        if isinstance(other, bool):
            return None
        if isinstance(other, (int, Fraction, Decimal)):
            return type(self)(other)
        return None

    @staticmethod
    def _result_type(a: "Rational", b: "Rational"):
        return type(a) if type(a) is type(b) else Rational

    def __add__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        cls = self._result_type(self, other)
        if self._den == 0 or other._den == 0:
            if self._den == 0 and other._den == 0:
                if self._num != other._num:
                    raise UndeterminedResult(string="Cannot sum opposite infinities")
                return cls._from_reduced(self._num, 0)
            return cls._from_reduced(self._num if self._den == 0 else other._num, 0)
        return cls._build(self._num * other._den + other._num * self._den, self._den * other._den)

    __radd__ = __add__

    def __sub__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return self + (-other)

    def __rsub__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return other + (-self)

    def __mul__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        cls = self._result_type(self, other)
        # zero is absorbing, also against infinities
        if self._num == 0 or other._num == 0:
            return cls._from_reduced(0, 1)
        if self._den == 0 or other._den == 0:
            return cls._from_reduced(self.sign * other.sign, 0)
        return cls._build(self._num * other._num, self._den * other._den)

    __rmul__ = __mul__

    def __truediv__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        cls = self._result_type(self, other)
        if other._num == 0:
            if self._num == 0:
                raise UndeterminedResult(string="0/0 is undetermined")
            raise DivideByZero(self)
        if self._num == 0:
            return cls._from_reduced(0, 1)
        if self._den == 0:
            if other._den == 0:
                raise UndeterminedResult(string="Cannot divide an infinity by an infinity")
            return cls._from_reduced(self.sign * other.sign, 0)
        if other._den == 0:
            return cls._from_reduced(0, 1)
        return cls._build(self._num * other._den, self._den * other._num)

    def __rtruediv__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return other / self

    def __mod__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        if self._den == 0 or other._den == 0:
            raise NotImplementedError("Modulo is not defined for infinite rationals")
        if other._num == 0:
            raise DivideByZero(self)
        return self - other * (self / other).floor()

    def __neg__(self):
        return self._from_reduced(-self._num, self._den)

    def __pos__(self):
        return self

    def __abs__(self):
        return self._from_reduced(abs(self._num), self._den)

    def invert(self) -> "Rational":
        """Multiplicative inverse, 1/self"""
        return type(self)._from_reduced(1, 1) / self

    def floor(self) -> "Rational":
        if self._den == 0:
            return self
        return type(self)._from_reduced(self._num // self._den, 1)

    def ceil(self) -> "Rational":
        if self._den == 0:
            return self
        return type(self)._from_reduced(-(-self._num // self._den), 1)

    def __floor__(self):
        if self._den == 0:
            raise OverflowError("cannot convert an infinite rational to an integer")
        return self._num // self._den

    def __ceil__(self):
        if self._den == 0:
            raise OverflowError("cannot convert an infinite rational to an integer")
        return -(-self._num // self._den)

    def gcd(self, other) -> "Rational":
        """Greatest common divisor of two finite rationals: the largest rational
        of which both are integer multiples"""
        other = self._coerce(other)
        if other is None:
            raise TypeError("unsupported operand type for gcd(): %s" % type(other).__name__)
        if self._den == 0 or other._den == 0:
            raise InvalidArgument(string="gcd is not defined for infinite rationals")
        cls = self._result_type(self, other)
        num = math.gcd(self._num * other._den, other._num * self._den)
        return cls._build(num, self._den * other._den)

    def lcm(self, other) -> "Rational":
        """Least common multiple of two finite rationals"""
        other = self._coerce(other)
        if other is None:
            raise TypeError("unsupported operand type for lcm(): %s" % type(other).__name__)
        if self._num == 0 or other._num == 0:
            return self._result_type(self, other)._from_reduced(0, 1)
        return abs(self * other) / self.gcd(other)

    # Comparison

    def _compare(self, other) -> int:
        if self._den == 0 and other._den == 0:
            return (self._num > other._num) - (self._num < other._num)
        if self._den == 0:
            return self._num
        if other._den == 0:
            return -other._num
        diff = self._num * other._den - other._num * self._den
        return (diff > 0) - (diff < 0)

    def __eq__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return self._num == other._num and self._den == other._den

    def __ne__(self, other):
        result = self.__eq__(other)
        return result if result is NotImplemented else not result

    def __lt__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return self._compare(other) < 0

    def __le__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return self._compare(other) <= 0

    def __gt__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return self._compare(other) > 0

    def __ge__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return self._compare(other) >= 0

    def __hash__(self):
        if self._den == 0:
            return hash(math.inf) if self._num > 0 else hash(-math.inf)
        return hash(Fraction(self._num, self._den))

    def __bool__(self):
        return self._num != 0

    # Conversions

    def __float__(self):
        if self._den == 0:
            return math.inf if self._num > 0 else -math.inf
        return self._num / self._den

    def __int__(self):
        if self._den == 0:
            raise OverflowError("cannot convert an infinite rational to an integer")
        return int(Fraction(self._num, self._den))

    def to_fraction(self) -> Fraction:
        if self._den == 0:
            raise OverflowError("a Fraction cannot hold an infinite value")
        return Fraction(self._num, self._den)

    def to_decimal(self) -> Decimal:
        """Conversion to a decimal.

        The conversion is exact when the denominator only has 2 and 5 as prime
        factors. Otherwise the value is rounded with the current decimal context
        and a LossyConversionWarning is emitted.
        """
        if self._den == 0:
            return Decimal("Infinity") if self._num > 0 else Decimal("-Infinity")
        den = self._den
        twos = fives = 0
        while den % 2 == 0:
            den //= 2
            twos += 1
        while den % 5 == 0:
            den //= 5
            fives += 1
        if den != 1:
            warnings.warn("%s has no finite decimal expansion" % self, LossyConversionWarning, stacklevel=2)
            return Decimal(self._num) / Decimal(self._den)
        digits = max(twos, fives)
        return Decimal(self._num * (10 ** digits // self._den)).scaleb(-digits)

    def __repr__(self):
        return "%s(%d, %d)" % (type(self).__name__, self._num, self._den)

    def __str__(self):
        if self._den == 0:
            return "+inf" if self._num > 0 else "-inf"
        if self._den == 1:
            return str(self._num)
        return "%d/%d" % (self._num, self._den)

    def __reduce__(self):
        return (type(self)._from_reduced, (self._num, self._den))

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


class LongRational(Rational):
    """
    Rational whose numerator and denominator are bounded to signed 64-bit integers.

    Results that do not fit once reduced raise OverflowError.
    """
    __slots__ = ()

    def _check_bounds(self) -> None:
        if not (_INT64_MIN <= self._num <= _INT64_MAX) or self._den > _INT64_MAX:
            raise OverflowError("%d/%d does not fit a 64-bit rational" % (self._num, self._den))


RationalLike = Union[Rational, int, Fraction, Decimal, str]
_SCALARS = (Rational, int, Fraction, Decimal, str)

ZERO = Rational(0)
ONE = Rational(1)
PLUS_INFINITY = Rational.plus_infinity()
MINUS_INFINITY = Rational.minus_infinity()


def to_rational(value) -> Rational:
    """Turn any exact numeric value into a rational (floats are refused, see Rational.from_float)"""
    if isinstance(value, Rational):
        return value
    if isinstance(value, float):
        raise TypeError("floats are not exact, use Rational.from_float() explicitly")
    return Rational(value)


def rational_min(*values) -> Rational:
    """Minimum of rationals, the arguments can also be a single iterable"""
    if len(values) == 1 and not isinstance(values[0], _SCALARS):
        values = tuple(values[0])
    return min(to_rational(v) for v in values)


def rational_max(*values) -> Rational:
    if len(values) == 1 and not isinstance(values[0], _SCALARS):
        values = tuple(values[0])
    return max(to_rational(v) for v in values)


def gcd(*values) -> Rational:
    """Greatest common divisor of a collection of finite rationals"""
    result = None
    for v in values:
        v = to_rational(v)
        result = v if result is None else result.gcd(v)
    if result is None:
        raise InvalidArgument(string="gcd of an empty collection")
    return abs(result)


def lcm(*values) -> Rational:
    """Least common multiple of a collection of finite rationals"""
    result = None
    for v in values:
        v = to_rational(v)
        result = abs(v) if result is None else result.lcm(v)
    if result is None:
        raise InvalidArgument(string="lcm of an empty collection")
    return result
