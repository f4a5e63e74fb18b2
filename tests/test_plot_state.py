"""Tests for placing, replacing and removing audiogram points."""

import numpy as np
import pytest

from masking_trainer.procedures.plot_state import AudiogramPlot
from masking_trainer.simulation.cases import Ear, Transducer, get_case
from masking_trainer.simulation.response_model import MaskingResponseModel
from masking_trainer.utils.defaults import TEST_FREQUENCIES, is_bc_testable, max_presentable_level


@pytest.fixture
def plot():
    return AudiogramPlot()


def test_place_above_ceiling_becomes_scale_out(plot):
    # L-AC@125 is scale-out in case C
    model = MaskingResponseModel(get_case('C'))
    result = plot.place('L', 'AC', False, 125, 90, model=model)
    assert result.clamped is True
    assert result.point.db == 70
    assert result.point.so is True


def test_place_at_ceiling_heard_is_not_scale_out(plot):
    model = MaskingResponseModel(get_case('A'))
    result = plot.place('R', 'AC', False, 125, 100, model=model)
    assert result.point.db == 70
    assert result.point.so is False


def test_bone_conduction_at_edge_frequency_is_suppressed(plot):
    for frequency in (125, 8000):
        result = plot.place('R', 'BC', False, frequency, 20)
        assert result.suppressed is True
        assert result.point is None
    assert len(plot) == 0


def test_levels_are_discretized(plot):
    assert plot.place('R', 'AC', False, 1000, 37).point.db == 35
    assert plot.place('R', 'AC', False, 2000, 38).point.db == 40
    assert plot.place('R', 'AC', False, 4000, -30).point.db == -10


def test_same_key_replaces_point(plot):
    first = plot.place('L', 'AC', False, 500, 20).point
    second = plot.place('L', 'AC', False, 500, 35)
    assert second.replaced == first
    assert len(plot) == 1
    assert plot.get('L', 'AC', False, 500).db == 35


def test_masked_and_unmasked_points_coexist(plot):
    plot.place('R', 'BC', False, 1000, 10)
    plot.place('R', 'BC', True, 1000, 30)
    assert len(plot) == 2
    found = plot.find('R', 'BC', 1000)
    assert found.masked is True
    assert found.db == 30


def test_remove_and_clear(plot):
    plot.place('R', 'AC', False, 1000, 10)
    plot.place('L', 'AC', False, 1000, 10)
    removed = plot.remove('R', 'AC', False, 1000)
    assert removed.ear is Ear.RIGHT
    assert plot.remove('R', 'AC', False, 1000) is None
    assert len(plot) == 1
    plot.clear()
    assert len(plot) == 0


def test_series_names(plot):
    plot.place('R', 'AC', False, 1000, 10)
    plot.place('L', 'BC', True, 2000, 30)
    assert set(plot.series()) == {'R-AC-U', 'L-BC-M'}


def test_unsupported_frequency_rejected(plot):
    with pytest.raises(ValueError):
        plot.place('R', 'AC', False, 3000, 10)


def test_arbitrary_placements_stay_on_the_grid(plot):
    case = get_case('B')
    model = MaskingResponseModel(case)
    rng = np.random.default_rng(7)
    for _ in range(300):
        ear = str(rng.choice(['R', 'L']))
        transducer = str(rng.choice(['AC', 'BC']))
        masked = bool(rng.random() < 0.5)
        frequency = int(rng.choice(TEST_FREQUENCIES))
        mask_level = int(rng.choice([-15, 0, 30, 60, 90, 110]))
        result = plot.place(ear, transducer, masked, frequency, float(rng.uniform(-40, 160)),
                            model=model, mask_level=mask_level)
        placed = result.point
        if placed is not None and placed.db == max_presentable_level(transducer, frequency):
            heard = model.responds(ear, transducer, frequency, placed.db, masked, mask_level)
            assert placed.so is (not heard)

        keys = [p.key for p in plot.points()]
        assert len(keys) == len(set(keys))
        for point in plot.points():
            ceiling = max_presentable_level(point.transducer.value, point.frequency)
            assert point.db % 5 == 0
            assert -10 <= point.db <= ceiling
            assert not (point.transducer is Transducer.BONE and not is_bc_testable(point.frequency))
            if point.so:
                assert point.db == ceiling


def test_scale_out_at_ceiling_depends_on_masking(plot):
    # Dead left ear in case C: unmasked AC at the ceiling crosses to the right ear
    model = MaskingResponseModel(get_case('C'))
    unmasked = plot.place('L', 'AC', False, 1000, 110, model=model)
    assert unmasked.point.db == 110
    assert model.responds('L', 'AC', 1000, 110) is True
    assert unmasked.point.so is False

    masked = plot.place('L', 'AC', True, 1000, 110, model=model, mask_level=70)
    assert model.responds('L', 'AC', 1000, 110, True, 70) is False
    assert masked.point.so is True
