import math

import matplotlib
matplotlib.use("Agg")

import matplotlib.pyplot as plt
import pytest

from minplus import plotUtility
from minplus.curves.shapes import RateLatencyServiceCurve, SigmaRhoArrivalCurve, DelayServiceCurve


class TestSample:
    """Sampling curves as floats"""

    def test_grid(self):
        x, y = plotUtility.sample(RateLatencyServiceCurve(2, 1), x_max=2, n_points=5)
        assert list(x) == [0.0, 0.5, 1.0, 1.5, 2.0]
        assert list(y) == [0.0, 0.0, 0.0, 1.0, 2.0]

    def test_without_zero(self):
        x, _ = plotUtility.sample(SigmaRhoArrivalCurve(2, 1), x_max=1, n_points=3, without_zero=True)
        assert list(x) == [0.5, 1.0]

    def test_default_range(self):
        x, _ = plotUtility.sample(SigmaRhoArrivalCurve(2, 1), n_points=10)
        assert x[-1] == 3.0

    def test_infinite_values(self):
        _, y = plotUtility.sample(DelayServiceCurve(1), x_max=2, n_points=3)
        assert y[0] == 0.0
        assert math.isinf(y[2])

    def test_too_few_points(self):
        with pytest.raises(ValueError):
            plotUtility.sample(SigmaRhoArrivalCurve(2, 1), n_points=1)


class TestPlot:
    """Drawing on a headless backend"""

    def test_plot_curves(self):
        beta = RateLatencyServiceCurve(2, 1)
        beta.set_name("beta")
        fig = plotUtility.plot_curves(beta, SigmaRhoArrivalCurve(2, 1), colors=["red", "blue"], title="Server")
        axes = fig.gca()
        assert len(axes.get_lines()) == 2
        assert axes.get_title() == "Server"
        assert axes.get_lines()[0].get_label().startswith("beta - ")
        plt.close(fig)

    def test_y_range(self):
        fig = plt.figure()
        plotUtility.plot_a_curve(SigmaRhoArrivalCurve(2, 1), x_max=4, y_min=1, y_max=5)
        assert plt.gca().get_ylim() == (1.0, 5.0)
        plt.close(fig)
