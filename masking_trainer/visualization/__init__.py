"""
Visualization module for training sessions.

This module contains functions for:
- Plotting placed thresholds and the revealed answer on an audiogram
- Printing the measurement log
"""

from .audiogram_plot import plot_audiogram, print_measurement_log

__all__ = ["plot_audiogram", "print_measurement_log"]
