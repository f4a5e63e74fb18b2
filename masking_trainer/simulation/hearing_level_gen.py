"""
Random case generation.

Builds a synthetic, reproducible training case from a clinical profile and a
severity grade. Baseline thresholds are age-typical values drawn from a
truncated normal distribution; the profile then shifts air conduction and
shapes bone conduction (conductive losses keep near-normal BC with a minimum
air-bone gap, sensorineural losses pull BC along with AC).
"""

import logging

import numpy as np
from scipy.stats import truncnorm

from .cases import CaseDetails, Ear, ThresholdEntry, Transducer, build_case
from ..utils.defaults import (
    AIR_CONDUCTION_MAX_LEVELS,
    BONE_CONDUCTION_MAX_LEVELS,
    TEST_FREQUENCIES,
    clamp,
    is_bc_testable,
    round5,
)

logger = logging.getLogger(__name__)

PROFILES = [
    'Normal', 'SNHL_Age', 'SNHL_NoiseNotch', 'SNHL_Meniere', 'SNHL_Sudden', 'SNHL_Mumps',
    'CHL_OME', 'CHL_AOM', 'CHL_Otosclerosis', 'CHL_OssicularDiscontinuity',
]
UNILATERAL_PROFILES = {'SNHL_Sudden', 'SNHL_Meniere', 'SNHL_Mumps', 'CHL_OssicularDiscontinuity'}
CONDUCTIVE_PROFILES = {'CHL_OME', 'CHL_AOM', 'CHL_Otosclerosis', 'CHL_OssicularDiscontinuity'}

PROFILE_LABELS = {
    'Normal': 'Normal hearing',
    'SNHL_Age': 'Age-related hearing loss',
    'SNHL_NoiseNotch': 'Noise-induced hearing loss',
    'SNHL_Meniere': "Meniere's disease",
    'SNHL_Sudden': 'Sudden sensorineural hearing loss',
    'SNHL_Mumps': 'Mumps deafness',
    'CHL_OME': 'Otitis media with effusion',
    'CHL_AOM': 'Acute otitis media',
    'CHL_Otosclerosis': 'Otosclerosis',
    'CHL_OssicularDiscontinuity': 'Ossicular discontinuity',
}

AGE_GROUPS = ['20s', '30s', '40s', '50s', '60s', '70s']
SEXES = ['Male', 'Female']

# Lowest level drawn per frequency; the upper bound is the transducer ceiling
AC_MIN_LEVELS = {125: 5, 250: 5, 500: 5, 1000: 0, 2000: 0, 4000: -5, 8000: -5}
BC_MIN_LEVELS = {250: 5, 500: 5, 1000: 0, 2000: 0, 4000: -5}

# Median thresholds by age group (dB HL), in TEST_FREQUENCIES order
AGE_MEDIANS = {
    '20s': [0, 0, 0, 0, 0, 0, 0],
    '30s': [0, 0, 0, 0, 1, 2, 3],
    '40s': [1, 1, 1, 1, 3, 6, 9],
    '50s': [2, 2, 3, 4, 7, 13, 19],
    '60s': [4, 4, 5, 7, 12, 22, 32],
    '70s': [7, 7, 8, 11, 18, 33, 47],
}

# Sensorineural BC beyond these levels is recorded as no response
SNHL_BC_NO_RESPONSE = {250: 55, 500: 65, 1000: 70, 2000: 70, 4000: 60}

# Severity grade (0-3) -> maximum shift in dB
SEVERITY_DEPTHS = {
    'SNHL_NoiseNotch': [0, 14, 24, 32],
    'SNHL_Meniere': [0, 10, 20, 35],
    'SNHL_Sudden': [0, 25, 45, 65],
    'SNHL_Mumps': [0, 40, 65, 85],
    'CHL_OME': [0, 12, 20, 28],
    'CHL_AOM': [0, 15, 25, 35],
    'CHL_Otosclerosis': [0, 12, 22, 30],
    'CHL_OssicularDiscontinuity': [0, 30, 30, 30],
}

# Share of the severity depth applied per frequency
PROFILE_WEIGHTS = {
    'SNHL_NoiseNotch': {2000: 0.3, 4000: 1.1, 8000: 0.3},
    'SNHL_Meniere': {125: 1.0, 250: 1.0, 500: 0.8, 1000: 0.4, 2000: 0.2, 4000: 0.1, 8000: 0.05},
    'SNHL_Mumps': {f: 1.0 for f in TEST_FREQUENCIES},
    'CHL_OME': {125: 0.6, 250: 0.9, 500: 1.0, 1000: 0.9, 2000: 0.5, 4000: 0.3, 8000: 0.2},
    'CHL_AOM': {125: 0.7, 250: 1.0, 500: 1.0, 1000: 0.8, 2000: 0.4, 4000: 0.2, 8000: 0.1},
    'CHL_Otosclerosis': {125: 0.5, 250: 0.9, 500: 1.0, 1000: 0.8, 2000: 0.4, 4000: 0.2, 8000: 0.1},
    'CHL_OssicularDiscontinuity': {125: 0.8, 250: 1.0, 500: 1.0, 1000: 0.9, 2000: 0.9,
                                   4000: 0.7, 8000: 0.5},
}

# Conductive losses are raised until AC sits at least this far above BC
MIN_AIR_BONE_GAP = {
    'CHL_OME': {250: 10, 500: 15, 1000: 15, 2000: 8},
    'CHL_AOM': {250: 15, 500: 20, 1000: 15, 2000: 10, 4000: 5},
    'CHL_Otosclerosis': {250: 10, 500: 15, 1000: 15, 2000: 5},
    'CHL_OssicularDiscontinuity': {250: 20, 500: 25, 1000: 25, 2000: 20, 4000: 15},
}

# Carhart notch: BC elevation around 2 kHz in otosclerosis
CARHART_WEIGHTS = {1000: 0.3, 2000: 1.0, 4000: 0.2}
CARHART_DEPTHS = [0, 6, 10, 15]


def _ac_limits(frequency):
    return AC_MIN_LEVELS[frequency], AIR_CONDUCTION_MAX_LEVELS[frequency]


def _bc_limits(frequency):
    return BC_MIN_LEVELS[frequency], BONE_CONDUCTION_MAX_LEVELS[frequency]


def _age_band(age_group, frequency):
    """Median and standard deviation of the age-typical threshold."""
    median = AGE_MEDIANS[age_group][TEST_FREQUENCIES.index(frequency)]
    sd = 4.0 + 0.25 * median
    return median, sd


def _draw_baseline(rng, median, sd):
    """Near-normal threshold: truncated normal within two standard deviations."""
    scale = sd * 0.5
    value = truncnorm.rvs(-2 * sd / scale, 2 * sd / scale, loc=median, scale=scale, random_state=rng)
    return float(value) * (0.9 + 0.2 * rng.random())


def generate_ear_base(rng, age_group):
    """
    Age-typical thresholds for one ear.

    Args:
        rng (np.random.Generator): Random source
        age_group (str): One of AGE_GROUPS

    Returns:
        dict: frequency -> {'ac', 'bc', 'so_ac', 'so_bc'}; 'bc' is None where BC is not measured
    """
    rows = {}
    for frequency in TEST_FREQUENCIES:
        median, sd = _age_band(age_group, frequency)
        ac = round5(clamp(_draw_baseline(rng, median, sd), *_ac_limits(frequency)))
        bc = None
        if is_bc_testable(frequency):
            bc = round5(clamp(min(median + (rng.random() - 0.5) * 3.0, ac + 5), *_bc_limits(frequency)))
        rows[frequency] = {'ac': ac, 'bc': bc, 'so_ac': False, 'so_bc': False}
    return rows


def correlate_ear(rng, rows, age_group, rho=0.7):
    """Second ear of a bilateral case, correlated with the first."""
    out = {}
    for frequency, row in rows.items():
        median, sd = _age_band(age_group, frequency)
        target = median + rho * (row['ac'] - median) + rng.normal(0, sd * 0.3)
        ac = round5(clamp(target, *_ac_limits(frequency)))
        bc = row['bc']
        if bc is not None:
            bc_raw = median + rho * (bc - median) + (rng.random() - 0.5) * 2.0
            bc_low, bc_high = _bc_limits(frequency)
            bc = round5(clamp(min(bc_raw, ac + 5), bc_low, bc_high))
        out[frequency] = {'ac': ac, 'bc': bc, 'so_ac': False, 'so_bc': False}
    return out


def _profile_shift(rng, profile, severity, frequency):
    """Air conduction shift in dB for one frequency."""
    if profile == 'SNHL_Age':
        alpha = [0, 3, 6, 9][severity]
        khz = frequency / 1000.0
        oct_high = max(0.0, np.log2(khz))
        oct_low = np.log2(1.0 / khz) if khz < 1 else 0.0
        shift = alpha * oct_high + alpha * (0.25 + 0.1 * severity) * oct_low
        return shift * 0.1 if frequency == 1000 else shift
    if profile == 'SNHL_Sudden':
        return SEVERITY_DEPTHS[profile][severity] * (0.7 + 0.3 * rng.random())
    if profile in PROFILE_WEIGHTS:
        return PROFILE_WEIGHTS[profile].get(frequency, 0.0) * SEVERITY_DEPTHS[profile][severity]
    return 0.0


def apply_profile(rng, rows, profile, severity, age_group):
    """
    Shape an ear's thresholds to a hearing-loss profile.

    Args:
        rng (np.random.Generator): Random source
        rows (dict): Output of generate_ear_base
        profile (str): One of PROFILES
        severity (int): Grade 0-3
        age_group (str): Age group used for near-normal conductive BC

    Returns:
        dict: New rows; AC shifted past its ceiling is clamped and flagged scale-out
    """
    conductive = profile in CONDUCTIVE_PROFILES
    out = {}
    for frequency, row in rows.items():
        ac_low, ac_high = _ac_limits(frequency)
        raw = row['ac'] + _profile_shift(rng, profile, severity, frequency)
        ac = round5(clamp(raw, ac_low, ac_high))
        so_ac = row['so_ac'] or round5(raw) > ac_high

        bc = row['bc']
        if bc is not None:
            bc_low, bc_high = _bc_limits(frequency)
            if conductive:
                median, _ = _age_band(age_group, frequency)
                bc_raw = median + (rng.random() - 0.5) * 3.0
                if profile == 'CHL_Otosclerosis':
                    bc_raw += CARHART_WEIGHTS.get(frequency, 0.0) * CARHART_DEPTHS[severity]
                bc = round5(clamp(bc_raw, bc_low, bc_high))
                min_gap = MIN_AIR_BONE_GAP[profile].get(frequency, 0)
                if min_gap > 0 and ac - bc < min_gap:
                    ac = round5(clamp(ac + (min_gap - (ac - bc)), ac_low, ac_high))
            else:
                bc = round5(clamp(ac + (rng.random() - 0.5) * 6.0, bc_low, bc_high))
            # BC may sit at most 5 dB above AC
            bc = round5(clamp(min(bc, ac + 5), bc_low, bc_high))

        out[frequency] = {'ac': ac, 'bc': bc, 'so_ac': so_ac, 'so_bc': row['so_bc']}

    if profile.startswith('SNHL_'):
        apply_snhl_no_response(out)
    return out


def apply_snhl_no_response(rows):
    """Sensorineural BC scales out once AC exceeds the BC output limit."""
    for frequency, row in rows.items():
        limit = SNHL_BC_NO_RESPONSE.get(frequency)
        if row['bc'] is not None and limit is not None and row['ac'] > limit:
            row['bc'] = BONE_CONDUCTION_MAX_LEVELS[frequency]
            row['so_bc'] = True
    return rows


def _no_response(rows):
    """Total loss: AC and BC scale out at every frequency."""
    out = {}
    for frequency, row in rows.items():
        bc = BONE_CONDUCTION_MAX_LEVELS[frequency] if row['bc'] is not None else None
        out[frequency] = {'ac': AIR_CONDUCTION_MAX_LEVELS[frequency], 'bc': bc,
                          'so_ac': True, 'so_bc': bc is not None}
    return out


def _entries(ear, rows):
    entries = []
    for frequency in TEST_FREQUENCIES:
        row = rows[frequency]
        entries.append(ThresholdEntry(ear, Transducer.AIR, frequency, int(row['ac']), bool(row['so_ac'])))
        if row['bc'] is not None:
            entries.append(ThresholdEntry(ear, Transducer.BONE, frequency, int(row['bc']), bool(row['so_bc'])))
    return entries


def generate_random_case(profile=None, severity=None, affected_side=None, seed=None,
                         age_group=None, sex=None):
    """
    Generate a reproducible synthetic case.

    Args:
        profile (str, optional): One of PROFILES; drawn at random when omitted
        severity (int, optional): Grade 0-3; drawn at random when omitted
        affected_side (str, optional): 'R' or 'L' for unilateral profiles
        seed (int, optional): Random seed; the same seed and options give the same case
        age_group (str, optional): One of AGE_GROUPS
        sex (str, optional): One of SEXES

    Returns:
        Case: generated case with id 'Custom-<seed>'

    Raises:
        ValueError: If an option is outside its allowed values
    """
    if profile is not None and profile not in PROFILES:
        raise ValueError(f"Unknown profile {profile!r}; expected one of {PROFILES}")
    if severity is not None and severity not in (0, 1, 2, 3):
        raise ValueError(f"Severity must be an integer 0-3, got {severity!r}")
    if affected_side is not None and affected_side not in ('R', 'L'):
        raise ValueError(f"affected_side must be 'R' or 'L', got {affected_side!r}")
    if age_group is not None and age_group not in AGE_GROUPS:
        raise ValueError(f"Unknown age group {age_group!r}; expected one of {AGE_GROUPS}")
    if sex is not None and sex not in SEXES:
        raise ValueError(f"Unknown sex {sex!r}; expected one of {SEXES}")

    if seed is None:
        seed = int(np.random.default_rng().integers(0, 10**9))
    rng = np.random.default_rng(seed)

    sex = sex or str(rng.choice(SEXES))
    age_group = age_group or str(rng.choice(AGE_GROUPS))
    profile = profile or str(rng.choice(PROFILES))
    severity = int(rng.integers(0, 4)) if severity is None else int(severity)

    unilateral = profile in UNILATERAL_PROFILES
    if unilateral and profile.startswith('SNHL_') and severity == 0:
        severity = 1

    if unilateral:
        side = Ear(affected_side) if affected_side else (Ear.RIGHT if rng.random() < 0.5 else Ear.LEFT)
        affected = apply_profile(rng, generate_ear_base(rng, age_group), profile, severity, age_group)
        if profile == 'SNHL_Mumps' and rng.random() < 0.5:
            affected = _no_response(affected)
        normal = generate_ear_base(rng, age_group)
        ears = {side: affected, side.opposite: normal}
    else:
        side = None
        right = apply_profile(rng, generate_ear_base(rng, age_group), profile, severity, age_group)
        left = correlate_ear(rng, right, age_group)
        if profile.startswith('SNHL_'):
            apply_snhl_no_response(left)
        ears = {Ear.RIGHT: right, Ear.LEFT: left}

    details = CaseDetails(
        age=age_group,
        sex=sex.lower(),
        chief_complaint=PROFILE_LABELS[profile],
        history=f"Profile {profile}, severity {severity}"
                + (f", affected side {side.value}" if side is not None else ""),
        findings='Generated case',
    )
    case = build_case(f'Custom-{seed}', f'Generated case ({PROFILE_LABELS[profile]})',
                      _entries(Ear.RIGHT, ears[Ear.RIGHT]), _entries(Ear.LEFT, ears[Ear.LEFT]),
                      details=details, generated=True)
    logger.info("Generated case %s: profile=%s severity=%d", case.case_id, profile, severity)
    return case
