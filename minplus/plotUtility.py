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
This module defines a set of useful methods for plotting curves
"""

import matplotlib.pyplot as plt
import numpy as np

from minplus.algebra.curve import Curve
from minplus.numerics.rational import Rational, to_rational


def interesting_xmax_for_plot(curve: Curve) -> Rational:
    """End of the second pseudo-period, so that both the transient and the repetition are visible"""
    return curve.second_pseudo_period_end


def sample(curve: Curve, **kargs):
    """
    Values of a curve on a regular grid of exact times

    Args:
        curve (Curve): the curve to sample
        x_min: first time (default: 0)
        x_max: last time (default: end of the second pseudo-period)
        n_points (int): number of samples (default: 1000)

    Returns:
        (np.ndarray, np.ndarray): the times and the values as floats, infinite values as +-inf
    """
    x_min = to_rational(kargs.get("x_min", 0))
    x_max = to_rational(kargs.get("x_max", interesting_xmax_for_plot(curve)))
    n_points = kargs.get("n_points", 1000)
    if n_points < 2:
        raise ValueError("At least 2 points are needed to sample a curve")
    step = (x_max - x_min) / (n_points - 1)
    times = [x_min + step * i for i in range(n_points)]
    if kargs.get("without_zero", False):
        times = times[1:]
    x = np.array([float(t) for t in times])
    y = np.array([float(curve.value_at(t)) for t in times])
    return x, y


def plot_a_curve(curve: Curve, **kargs):
    x, y = sample(curve, **kargs)
    additionnalParams = dict()
    if 'color' in kargs.keys():
        additionnalParams["color"] = kargs.get("color")
    if (curve.get_name() != ""):
        label = curve.get_name() + " - " + curve.__str__()
    else:
        label = curve.__str__()
    pp = plt.plot(x, y, label=label, **additionnalParams)
    if (("y_min" in kargs.keys()) or ("y_max" in kargs.keys())):
        plt.ylim(kargs.get("y_min", 0), kargs.get("y_max", 10))
    return pp


def plot_curves(*curves: Curve, **kargs):
    """
    Plot several curves on the same new figure

    Args:
        *curves (Curve): the curves to plot
        colors (list): colors used in turn (optional)
        title (str): title of the figure
    """
    fig = plt.figure()
    fig.tight_layout()
    if ("x_max" not in kargs.keys()):
        kargs["x_max"] = max(interesting_xmax_for_plot(c) for c in curves)
    mColors = list()
    if "colors" in kargs.keys():
        mColors = kargs.pop("colors")
    for i, c in enumerate(curves):
        if (mColors):
            kargs["color"] = mColors[i % len(mColors)]
        plot_a_curve(c, **kargs)
    plt.legend()
    plt.xlabel(kargs.get("xlabel", "Time"))
    plt.ylabel(kargs.get("ylabel", "Value"))
    plt.title(kargs.get("title", "Curves"))
    return fig
