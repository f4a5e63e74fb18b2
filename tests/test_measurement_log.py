"""Tests for the measurement log."""

from datetime import datetime

import pandas as pd

from masking_trainer.analysis.measurement_log import EXPORT_COLUMNS, MeasurementLog
from masking_trainer.procedures.plot_state import PlotPoint
from masking_trainer.simulation.cases import Ear, Transducer


def _fixed_now():
    return datetime(2024, 5, 1, 9, 30, 0)


def _point(ear=Ear.RIGHT, transducer=Transducer.AIR, masked=False, frequency=1000, db=30, so=False):
    return PlotPoint(ear, transducer, masked, frequency, db, so)


def test_ids_increase_in_append_order():
    log = MeasurementLog(now=_fixed_now)
    first = log.append(_point(), mask_level=-15, case_id='A')
    second = log.append(_point(frequency=2000), mask_level=-15, case_id='A')
    assert (first.id, second.id) == (1, 2)
    assert first.timestamp == '2024-05-01T09:30:00'
    assert first.case_id == 'A'


def test_unmasked_entries_record_masking_off():
    log = MeasurementLog(now=_fixed_now)
    entry = log.append(_point(masked=False), mask_level=40)
    assert entry.mask_level == -15
    entry = log.append(_point(masked=True), mask_level=40)
    assert entry.mask_level == 40


def test_log_is_append_only_prefix():
    log = MeasurementLog(now=_fixed_now)
    log.append(_point(), mask_level=-15)
    before = log.entries
    log.append(_point(ear=Ear.LEFT), mask_level=-15)
    after = log.entries
    assert after[:len(before)] == before


def test_clear_keeps_ids_increasing():
    log = MeasurementLog(now=_fixed_now)
    log.append(_point(), mask_level=-15)
    log.append(_point(), mask_level=-15)
    log.clear()
    assert len(log) == 0
    assert log.append(_point(), mask_level=-15).id == 3


def test_ear_counts():
    log = MeasurementLog(now=_fixed_now)
    log.append(_point(ear=Ear.RIGHT), mask_level=-15)
    log.append(_point(ear=Ear.LEFT), mask_level=-15)
    log.append(_point(ear=Ear.LEFT), mask_level=-15)
    assert log.ear_counts() == {'R': 1, 'L': 2}


def test_to_frame_columns():
    log = MeasurementLog(now=_fixed_now)
    assert list(log.to_frame().columns) == EXPORT_COLUMNS
    log.append(_point(masked=False, db=25), mask_level=-15)
    log.append(_point(transducer=Transducer.BONE, masked=True, db=40), mask_level=55)
    frame = log.to_frame()
    assert list(frame['index']) == [1, 2]
    assert list(frame['transducer']) == ['AC', 'BC']
    assert pd.isna(frame.loc[0, 'mask_level_db'])
    assert frame.loc[1, 'mask_level_db'] == 55
    assert list(frame['scale_out']) == [False, False]
