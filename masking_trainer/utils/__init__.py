"""
Utility module for common functions and constants.

This module contains:
- Default values and constants
- Configuration loading
- The clock used for timed case loads
"""

from .defaults import *
from .config import TrainerConfig, load_config
from .clock import Clock, MonotonicClock

__all__ = ["TrainerConfig", "load_config", "Clock", "MonotonicClock"]
