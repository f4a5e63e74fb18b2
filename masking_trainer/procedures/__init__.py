"""
Procedures module for a training session.

This module contains:
- Audiogram plot state (placed thresholds)
- The training session reducer with its lamp and warning selectors
"""

from .plot_state import AudiogramPlot, PlacementResult, PlotPoint
from .session import MaskingWarnings, Selection, SessionPhase, SessionSnapshot, TrainingSession

__all__ = [
    "AudiogramPlot", "PlacementResult", "PlotPoint",
    "MaskingWarnings", "Selection", "SessionPhase", "SessionSnapshot", "TrainingSession",
]
