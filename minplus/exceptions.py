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
Exceptions raised by the min-plus algebra
"""


class UndeterminedResult(ArithmeticError):
    """The result of the operation is not defined, e.g. +inf + -inf or 0/0"""
    def __init__(self, **kargs):
        self._string = kargs.get("string", "The result of the operation is undetermined")
        super().__init__(self._string)

    def __str__(self):
        return self._string


class DivideByZero(ZeroDivisionError):
    def __init__(self, dividend=None, **kargs):
        self._dividend = dividend
        self._string = kargs.get("string", "Cannot divide %s by zero" % (dividend if dividend is not None else "a finite value"))
        super().__init__(self._string)

    def __str__(self):
        return self._string

    def get_dividend(self):
        return self._dividend


class InvalidArgument(ValueError):
    """An argument does not respect the preconditions of the operation"""
    def __init__(self, **kargs):
        self._string = kargs.get("string", "Invalid argument")
        super().__init__(self._string)

    def __str__(self):
        return self._string


class InvalidSequence(InvalidArgument):
    """The elements do not form a valid sequence: unordered, overlapping, with gaps or not alternating"""
    def __init__(self, index=None, **kargs):
        self._index = index
        if "string" not in kargs:
            kargs["string"] = "Elements do not form a sequence" + ("" if index is None else " (at element %d)" % index)
        super().__init__(**kargs)

    def get_index(self):
        return self._index


class InvalidOperation(Exception):
    """The operation cannot be applied to these operands"""
    def __init__(self, **kargs):
        self._string = kargs.get("string", "Invalid operation")
        super().__init__(self._string)

    def __str__(self):
        return self._string


class FixedPointNotReached(ArithmeticError):
    def __init__(self, iterations, **kargs):
        self._iterations = iterations
        self._string = kargs.get("string", "The closure did not converge after %d iterations" % iterations)
        super().__init__(self._string)

    def __str__(self):
        return self._string

    def get_iterations(self):
        return self._iterations


class LossyConversionWarning(UserWarning):
    """A conversion to or from a binary floating point value lost precision"""
