"""Constants and default values for masked pure-tone audiometry."""

import math

# Audiogram frequencies, in presentation order
TEST_FREQUENCIES = [125, 250, 500, 1000, 2000, 4000, 8000]

# Maximum output levels for different conduction types
AIR_CONDUCTION_MAX_LEVELS = {
    125: 70, 250: 90, 500: 110,
    1000: 110, 2000: 110, 4000: 110,
    8000: 100
}

BONE_CONDUCTION_MAX_LEVELS = {
    250: 55, 500: 65, 1000: 70,
    2000: 70, 4000: 60
}

DEFAULT_MAX_LEVEL = 110

# Bone conduction is not measured at the edges of the audiogram
BC_DISABLED_FREQUENCIES = frozenset({125, 8000})

# Minimum isolation between ears, per transducer
INTERAURAL_ATTENUATION = {'AC': 50, 'BC': 0}

# Presentation range of the audiogram (dB HL)
MIN_TEST_LEVEL = -10
MAX_TEST_LEVEL = 120
LEVEL_STEP = 5

# Masking noise range; -15 means masking is switched off
MASKING_OFF_LEVEL = -15
MIN_MASKING_LEVEL = 0
MAX_MASKING_LEVEL = 110

# A scale-out threshold sits this far above the transducer ceiling
SCALE_OUT_MARGIN = 50
# Masking above test-ear BC + margin reaches the test cochlea
OVER_MASKING_MARGIN = 50

# Selection installed when a case is loaded
DEFAULT_EAR = 'R'
DEFAULT_TRANSDUCER = 'AC'
DEFAULT_FREQUENCY = 1000
DEFAULT_LEVEL = 0
DEFAULT_LOADING_DELAY_S = 1.0


def round5(value):
    """Snap a level to the nearest 5 dB step (halves round up)."""
    return int(math.floor(value / LEVEL_STEP + 0.5)) * LEVEL_STEP


def clamp(value, low, high):
    return max(low, min(high, value))


def is_bc_testable(frequency):
    """Whether bone conduction can be presented at this frequency."""
    return frequency in BONE_CONDUCTION_MAX_LEVELS and frequency not in BC_DISABLED_FREQUENCIES


def max_presentable_level(transducer, frequency):
    """
    Maximum level the audiometer can present for a transducer and frequency.

    Bone conduction is never presented at 125/8000 Hz; the fallback ceiling only
    serves to resolve scale-out thresholds recorded at those frequencies.
    """
    table = AIR_CONDUCTION_MAX_LEVELS if transducer == 'AC' else BONE_CONDUCTION_MAX_LEVELS
    return table.get(frequency, DEFAULT_MAX_LEVEL)


def normalize_level(level):
    """Discretize a raw level onto the audiogram grid."""
    return clamp(round5(level), MIN_TEST_LEVEL, MAX_TEST_LEVEL)


def normalize_mask_level(level):
    """Discretize a masking level onto {-15} U [0, 110] in 5 dB steps."""
    stepped = round5(level)
    if stepped < MIN_MASKING_LEVEL:
        return MASKING_OFF_LEVEL
    return min(stepped, MAX_MASKING_LEVEL)
