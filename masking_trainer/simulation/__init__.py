"""
Simulation module for masked audiometry.

This module contains functions and classes for:
- The preset case library and its ground-truth records
- Generating random cases from hearing-loss profiles
- Deciding patient responses, including cross-hearing and over-masking
"""

from .cases import Case, CaseDetails, Ear, ThresholdEntry, Transducer, get_case, list_cases
from .hearing_level_gen import PROFILES, generate_random_case
from .response_model import AudibilityResult, MaskingResponseModel, audible, threshold

__all__ = [
    "Case", "CaseDetails", "Ear", "ThresholdEntry", "Transducer", "get_case", "list_cases",
    "PROFILES", "generate_random_case",
    "AudibilityResult", "MaskingResponseModel", "audible", "threshold",
]
