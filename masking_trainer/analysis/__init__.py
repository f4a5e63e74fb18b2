"""
Analysis module for training results.

This module provides:
- The measurement log and its tabular export
- Scoring of placed thresholds against the case
- Learning progress and generated-case performance
"""

from .measurement_log import EXPORT_COLUMNS, LogEntry, MeasurementLog
from .scoring import LearningProgress, RandomCasePerformance, ScoreResult, score_case

__all__ = [
    "EXPORT_COLUMNS", "LogEntry", "MeasurementLog",
    "LearningProgress", "RandomCasePerformance", "ScoreResult", "score_case",
]
