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
Min-plus and max-plus algebra of ultimately pseudo-periodic piecewise affine
functions over exact rationals, for deterministic network calculus.
"""

from minplus.numerics.rational import Rational, LongRational, ZERO, ONE, PLUS_INFINITY, MINUS_INFINITY
from minplus.exceptions import (UndeterminedResult, DivideByZero, InvalidArgument, InvalidSequence,
                                InvalidOperation, FixedPointNotReached, LossyConversionWarning)
from minplus.algebra.settings import ComputationSettings
from minplus.algebra.elements import Element, Point, Segment
from minplus.algebra.sequence import Sequence
from minplus.algebra.curve import Curve, CurveShape
from minplus.curves.shapes import (RateLatencyServiceCurve, DelayServiceCurve, TwoRatesServiceCurve,
                                   RaisedRateLatencyServiceCurve, SigmaRhoArrivalCurve, StaircaseCurve,
                                   StepCurve, ConstantCurve, SubAdditiveCurve, SuperAdditiveCurve,
                                   ConcaveCurve, ConvexCurve)
from minplus.serialization import to_dict, from_dict

__version__ = "1.0.0"
