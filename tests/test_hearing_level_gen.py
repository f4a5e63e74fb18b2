"""Tests for random case generation."""

import pytest

from masking_trainer.simulation.cases import Ear, Transducer
from masking_trainer.simulation.hearing_level_gen import (
    AC_MIN_LEVELS,
    BC_MIN_LEVELS,
    PROFILES,
    generate_random_case,
)
from masking_trainer.utils.defaults import TEST_FREQUENCIES, is_bc_testable, max_presentable_level


def test_same_seed_same_case():
    first = generate_random_case(profile='CHL_AOM', severity=2, seed=42)
    second = generate_random_case(profile='CHL_AOM', severity=2, seed=42)
    assert first.entries == second.entries
    assert first.case_id == 'Custom-42'
    assert first.generated is True


def test_every_ear_has_full_audiogram():
    case = generate_random_case(seed=5)
    for ear in (Ear.RIGHT, Ear.LEFT):
        for frequency in TEST_FREQUENCIES:
            assert case.entry(ear, Transducer.AIR, frequency) is not None
            bc = case.entry(ear, Transducer.BONE, frequency)
            assert (bc is not None) == is_bc_testable(frequency)


@pytest.mark.parametrize('profile', PROFILES)
def test_generated_values_stay_on_the_audiometer(profile):
    for seed in range(15):
        case = generate_random_case(profile=profile, severity=seed % 4, seed=seed)
        thresholds = case.threshold_map()
        for entry in case.entries:
            ceiling = max_presentable_level(entry.transducer.value, entry.frequency)
            low = (AC_MIN_LEVELS if entry.transducer is Transducer.AIR else BC_MIN_LEVELS)[entry.frequency]
            assert entry.db % 5 == 0
            assert low <= entry.db <= ceiling
            if entry.so:
                assert entry.db == ceiling
            if entry.transducer is Transducer.BONE:
                ac = thresholds[(entry.ear, Transducer.AIR, entry.frequency)]
                assert entry.db <= ac.db + 5


def test_unilateral_profile_spares_other_ear():
    case = generate_random_case(profile='SNHL_Sudden', severity=3, affected_side='L',
                                seed=11, age_group='20s')
    right = [e.db for e in case.entries if e.ear is Ear.RIGHT and e.transducer is Transducer.AIR]
    left = [e.db for e in case.entries if e.ear is Ear.LEFT and e.transducer is Transducer.AIR]
    assert max(right) <= 15
    assert min(left) >= 40


def test_conductive_profile_keeps_air_bone_gap():
    case = generate_random_case(profile='CHL_OME', severity=2, seed=8, age_group='20s')
    ac = case.entry('R', 'AC', 500).db
    bc = case.entry('R', 'BC', 500).db
    assert ac - bc >= 15


@pytest.mark.parametrize('kwargs', [
    {'profile': 'Tinnitus'},
    {'severity': 4},
    {'affected_side': 'both'},
    {'age_group': '90s'},
])
def test_invalid_options_rejected(kwargs):
    with pytest.raises(ValueError):
        generate_random_case(seed=1, **kwargs)
