"""Response model for masked pure-tone audiometry."""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from .cases import Case, Ear, Transducer, parse_ear, parse_transducer
from ..utils.defaults import (
    INTERAURAL_ATTENUATION,
    OVER_MASKING_MARGIN,
    SCALE_OUT_MARGIN,
    max_presentable_level,
)

logger = logging.getLogger(__name__)

NO_RESPONSE = float('inf')


@dataclass(frozen=True)
class AudibilityResult:
    """Outcome of one presentation, with the quantities behind it."""
    heard: bool
    test_ear_heard: bool
    cross_heard: bool
    over_masking: bool
    test_ear: Ear
    non_test_ear: Ear
    test_ear_threshold: float
    effective_threshold: float
    test_ear_bc: float
    non_test_ear_bc: float
    interaural_attenuation: int
    leaked_to_non_test_ear: int
    effective_mask: float
    over_masking_limit: float

    @property
    def cross_hearing(self) -> bool:
        return self.cross_heard

    def details(self) -> Dict[str, Optional[int]]:
        """Integer view of the intermediate levels; +inf is reported as None."""
        def as_int(value):
            return None if value == NO_RESPONSE else int(value)

        return {
            'test_ear': self.test_ear.value,
            'non_test_ear': self.non_test_ear.value,
            'test_ear_threshold': as_int(self.test_ear_threshold),
            'effective_threshold': as_int(self.effective_threshold),
            'interaural_attenuation': int(self.interaural_attenuation),
            'leaked_to_non_test_ear': int(self.leaked_to_non_test_ear),
            'non_test_ear_bc': as_int(self.non_test_ear_bc),
            'effective_mask': as_int(self.effective_mask),
            'over_masking_limit': as_int(self.over_masking_limit),
        }


class MaskingResponseModel:
    """Deterministic patient: decides response to a tone given the case ground truth."""

    def __init__(self, case: Optional[Case], interaural_attenuation=None):
        """
        Initialize the response model.

        Args:
            case (Case or None): Loaded case; None behaves as a patient with no response anywhere
            interaural_attenuation (dict): Optional per-frequency overrides,
                {frequency: {'AC': dB, 'BC': dB}}
        """
        self.case = case
        self.interaural_attenuation = {
            int(freq): dict(values) for freq, values in (interaural_attenuation or {}).items()
        }
        self._thresholds = case.threshold_map() if case is not None else {}

    def get_threshold(self, ear, transducer, frequency):
        """True threshold for (ear, transducer, frequency); +inf when undefined."""
        ear = parse_ear(ear)
        transducer = parse_transducer(transducer)
        entry = self._thresholds.get((ear, transducer, int(frequency)))
        if entry is None:
            return NO_RESPONSE
        if entry.so:
            return max_presentable_level(transducer.value, int(frequency)) + SCALE_OUT_MARGIN
        return entry.db

    def get_interaural_attenuation(self, transducer, frequency):
        transducer = parse_transducer(transducer)
        override = self.interaural_attenuation.get(int(frequency), {})
        return int(override.get(transducer.value, INTERAURAL_ATTENUATION[transducer.value]))

    def evaluate(self, ear, transducer, frequency, level, masked=False, mask_level=-15):
        """
        Decide whether the patient responds to a presentation.

        Args:
            ear: Test ear ('R' or 'L')
            transducer: 'AC' or 'BC'
            frequency (int): Test frequency in Hz
            level (int): Presentation level in dB HL
            masked (bool): Whether masking noise is routed to the non-test ear
            mask_level (int): Masking level in dB; -15 means off

        Returns:
            AudibilityResult: response plus over-masking and cross-hearing flags
        """
        test_ear = parse_ear(ear)
        transducer = parse_transducer(transducer)
        frequency = int(frequency)
        non_test_ear = test_ear.opposite

        te_thr = self.get_threshold(test_ear, transducer, frequency)
        te_bc = self.get_threshold(test_ear, Transducer.BONE, frequency)
        nte_bc = self.get_threshold(non_test_ear, Transducer.BONE, frequency)
        ia = self.get_interaural_attenuation(transducer, frequency)

        leak = level - ia
        if masked and mask_level > nte_bc:
            effective_mask = max(nte_bc, mask_level)
        else:
            effective_mask = nte_bc

        # Noise above test-ear BC + margin raises the test-ear threshold dB for dB
        over_masking_limit = te_bc + OVER_MASKING_MARGIN
        actual_te_thr = te_thr
        if masked:
            actual_te_thr = te_thr + max(0, mask_level - over_masking_limit)

        test_ear_heard = level >= actual_te_thr
        cross_heard = leak >= effective_mask
        over_masking = bool(masked and mask_level > over_masking_limit and te_bc < NO_RESPONSE)

        return AudibilityResult(
            heard=test_ear_heard or cross_heard,
            test_ear_heard=test_ear_heard,
            cross_heard=cross_heard,
            over_masking=over_masking,
            test_ear=test_ear,
            non_test_ear=non_test_ear,
            test_ear_threshold=te_thr,
            effective_threshold=actual_te_thr,
            test_ear_bc=te_bc,
            non_test_ear_bc=nte_bc,
            interaural_attenuation=ia,
            leaked_to_non_test_ear=leak,
            effective_mask=effective_mask,
            over_masking_limit=over_masking_limit,
        )

    def responds(self, ear, transducer, frequency, level, masked=False, mask_level=-15):
        return self.evaluate(ear, transducer, frequency, level, masked, mask_level).heard


def threshold(case, ear, transducer, frequency):
    """Threshold oracle for a case: ground-truth dB, ceiling + 50 for SO, +inf if missing."""
    return MaskingResponseModel(case).get_threshold(ear, transducer, frequency)


def audible(case, ear, transducer, frequency, level, masked=False, mask_level=-15,
            interaural_attenuation=None):
    """Evaluate one presentation against a case without keeping a model around."""
    model = MaskingResponseModel(case, interaural_attenuation=interaural_attenuation)
    return model.evaluate(ear, transducer, frequency, level, masked, mask_level)
