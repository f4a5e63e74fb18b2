"""
Masking Trainer - Simulated patient for learning clinical masking in pure-tone audiometry
"""

__version__ = "0.1.0"

# Import main classes and functions for easy access
from .simulation.cases import get_case, list_cases
from .simulation.response_model import MaskingResponseModel, audible, threshold
from .procedures.session import TrainingSession
from .utils.config import TrainerConfig, load_config

__all__ = [
    "get_case",
    "list_cases",
    "MaskingResponseModel",
    "audible",
    "threshold",
    "TrainingSession",
    "TrainerConfig",
    "load_config",
]
