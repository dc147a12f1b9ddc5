import pytest

from minplus.algebra import parallel
from minplus.algebra.elements import Point, Segment
from minplus.algebra.sequence import Sequence
from minplus.algebra.settings import ComputationSettings
from minplus.exceptions import InvalidArgument
from minplus.numerics.rational import Rational


@pytest.fixture
def default_settings(monkeypatch):
    """Changes to the process-wide defaults do not leak out of a test"""
    monkeypatch.setattr(ComputationSettings, "_default", None)
    yield ComputationSettings
    ComputationSettings.reset_default()


def stairs(count, height):
    elements = [Point(0, 0)]
    for i in range(count):
        elements.append(Segment(i, i + 1, height * (i + 1), Rational(1, 3)))
        elements.append(Point(i + 1, height * (i + 1) + Rational(1, 3)))
    return Sequence(elements)


class TestComputationSettings:
    """Validation and process-wide defaults"""

    def test_defaults(self):
        settings = ComputationSettings()
        assert settings.use_parallelism
        assert settings.use_representation_minimization
        assert settings.closure_max_iterations == 64
        assert settings.simplification_tolerance is None

    def test_unknown_setting(self):
        with pytest.raises(InvalidArgument):
            ComputationSettings(use_magic=True)
        with pytest.raises(InvalidArgument):
            ComputationSettings().replace(use_magic=True)

    def test_replace_only_fields(self):
        """Class attributes and methods are not fields"""
        settings = ComputationSettings()
        for name in ("default", "USE_PARALLELISM", "_default", "replace"):
            with pytest.raises(InvalidArgument):
                settings.replace(**{name: 1})
        assert settings.replace() is not settings

    def test_iterations_bound(self):
        with pytest.raises(ValueError):
            ComputationSettings(closure_max_iterations=0)
        with pytest.raises(InvalidArgument):
            ComputationSettings().replace(closure_max_iterations=0)

    def test_replace(self):
        settings = ComputationSettings()
        serial = settings.replace(use_parallelism=False)
        assert not serial.use_parallelism
        assert settings.use_parallelism

    def test_shared_default(self, default_settings):
        assert default_settings.default() is default_settings.default()
        assert default_settings.resolve(None) is default_settings.default()
        explicit = ComputationSettings(max_workers=2)
        assert default_settings.resolve(explicit) is explicit

    def test_class_attributes_after_reset(self, default_settings, monkeypatch):
        monkeypatch.setattr(ComputationSettings, "CLOSURE_MAX_ITERATIONS", 3)
        default_settings.reset_default()
        assert default_settings.default().closure_max_iterations == 3


class TestParallelHelpers:
    """Fork-join helpers keep the item order"""

    def test_flat_map_order(self):
        settings = ComputationSettings(max_workers=4)
        items = list(range(100))
        result = parallel.flat_map(lambda i: [i, -i], items, settings, threshold=10)
        assert result == [x for i in items for x in (i, -i)]

    def test_flat_map_serial(self):
        settings = ComputationSettings(use_parallelism=False)
        assert parallel.flat_map(lambda i: [i] * i, [1, 2, 3], settings, threshold=0) == [1, 2, 2, 3, 3, 3]

    def test_sort_is_stable(self):
        settings = ComputationSettings(max_workers=4, sort_parallelization_threshold=10)
        items = [(i % 7, i) for i in range(200)]
        assert parallel.sort(items, key=lambda item: item[0], settings=settings) == \
            sorted(items, key=lambda item: item[0])

    def test_chunks_cover_everything(self):
        chunks = parallel._chunk_bounds(10, 4)
        assert [len(c) for c in chunks] == [3, 3, 2, 2]
        assert parallel._chunk_bounds(2, 4) == [range(0, 1), range(1, 2)]


class TestParallelConvolution:
    """The parallel and serial sequence convolutions agree"""

    def test_same_result(self):
        a, b = stairs(12, 1), stairs(9, 2)
        serial = a.convolution(b, ComputationSettings(use_parallelism=False))
        forked = a.convolution(b, ComputationSettings(max_workers=4, convolution_parallelization_threshold=10,
                                                      sort_parallelization_threshold=10))
        assert forked == serial
