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
This module contains the settings that tune how the operators are computed
"""

import copy
from typing import Optional

from minplus.exceptions import InvalidArgument


class ComputationSettings:
    """
    Knobs of the algorithms. None of them changes a result, only how it is obtained.

    The class attributes are the process-wide defaults, used by every operator
    called without explicit settings. Instances override them per call.
    """

    #These are only used at the class level (equal for all instances)
    USE_PARALLELISM = True
    CONVOLUTION_PARALLELIZATION_THRESHOLD = 2000
    SORT_PARALLELIZATION_THRESHOLD = 5000
    MAX_WORKERS = None
    USE_REPRESENTATION_MINIMIZATION = True
    SINGLE_PASS_CONVOLUTION = True
    USE_SHAPE_FAST_PATHS = True
    CLOSURE_MAX_ITERATIONS = 64
    SIMPLIFICATION_TOLERANCE = None

    _default = None

    def __init__(self, **kargs) -> None:
        self.use_parallelism: bool = kargs.get("use_parallelism", ComputationSettings.USE_PARALLELISM)
        self.convolution_parallelization_threshold: int = kargs.get(
            "convolution_parallelization_threshold", ComputationSettings.CONVOLUTION_PARALLELIZATION_THRESHOLD)
        self.sort_parallelization_threshold: int = kargs.get(
            "sort_parallelization_threshold", ComputationSettings.SORT_PARALLELIZATION_THRESHOLD)
        self.max_workers: Optional[int] = kargs.get("max_workers", ComputationSettings.MAX_WORKERS)
        self.use_representation_minimization: bool = kargs.get(
            "use_representation_minimization", ComputationSettings.USE_REPRESENTATION_MINIMIZATION)
        self.single_pass_convolution: bool = kargs.get("single_pass_convolution", ComputationSettings.SINGLE_PASS_CONVOLUTION)
        self.use_shape_fast_paths: bool = kargs.get("use_shape_fast_paths", ComputationSettings.USE_SHAPE_FAST_PATHS)
        self.closure_max_iterations: int = kargs.get("closure_max_iterations", ComputationSettings.CLOSURE_MAX_ITERATIONS)
        # maximum number of period factorization rounds per optimization, None for no bound
        self.simplification_tolerance: Optional[int] = kargs.get(
            "simplification_tolerance", ComputationSettings.SIMPLIFICATION_TOLERANCE)
        unknown = set(kargs) - set(vars(self))
        if unknown:
            raise InvalidArgument(string="unknown computation setting(s): %s" % ", ".join(sorted(unknown)))
        self._check()

    @classmethod
    def default(cls) -> 'ComputationSettings':
        """The process-wide settings, built from the class attributes on first use

        Returns:
            ComputationSettings: the shared instance
        """
        if cls._default is None:
            cls._default = cls()
        return cls._default

    @classmethod
    def reset_default(cls) -> None:
        """Forget the shared instance, so that changes to the class attributes are picked up"""
        cls._default = None

    @classmethod
    def resolve(cls, settings: Optional['ComputationSettings']) -> 'ComputationSettings':
        return settings if settings is not None else cls.default()

    def replace(self, **changes) -> 'ComputationSettings':
        """Copy of these settings with some fields changed

        Raises:
            InvalidArgument: a name is not one of the fields of the settings
        """
        unknown = set(changes) - set(vars(self))
        if unknown:
            raise InvalidArgument(string="unknown computation setting(s): %s" % ", ".join(sorted(unknown)))
        other = copy.copy(self)
        for key, value in changes.items():
            setattr(other, key, value)
        other._check()
        return other

    def _check(self) -> None:
        if self.closure_max_iterations < 1:
            raise InvalidArgument(string="closure_max_iterations must be positive")

    def __repr__(self):
        return "ComputationSettings(%s)" % ", ".join("%s=%r" % kv for kv in sorted(vars(self).items()))
