"""
Audiogram plot state: the thresholds the learner has placed.

Points are keyed by (ear, transducer, masked, frequency); placing at an existing
key replaces the point. Levels are snapped to 5 dB, clamped to the audiogram and
then to the transducer ceiling, where a point is promoted to scale-out if the
patient does not respond at the ceiling.
"""
# Standard library imports
import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

# Local imports
from ..simulation.cases import Ear, Transducer, parse_ear, parse_frequency, parse_transducer
from ..simulation.response_model import MaskingResponseModel
from ..utils.defaults import (
    MASKING_OFF_LEVEL,
    TEST_FREQUENCIES,
    is_bc_testable,
    max_presentable_level,
    normalize_level,
)

logger = logging.getLogger(__name__)

PointKey = Tuple[Ear, Transducer, bool, int]


@dataclass(frozen=True)
class PlotPoint:
    ear: Ear
    transducer: Transducer
    masked: bool
    frequency: int
    db: int
    so: bool = False

    @property
    def key(self) -> PointKey:
        return (self.ear, self.transducer, self.masked, self.frequency)

    @property
    def series(self) -> str:
        """Legend series name, e.g. 'R-AC-U' or 'L-BC-M'."""
        return f"{self.ear.value}-{self.transducer.value}-{'M' if self.masked else 'U'}"


@dataclass(frozen=True)
class PlacementResult:
    """What a placement did; ``point`` is None when the placement was suppressed."""
    point: Optional[PlotPoint]
    suppressed: bool = False
    clamped: bool = False
    replaced: Optional[PlotPoint] = None


class AudiogramPlot:
    """Placed points for one case, at most one per (ear, transducer, masked, frequency)."""

    def __init__(self):
        self._points: Dict[PointKey, PlotPoint] = {}

    def __len__(self):
        return len(self._points)

    def __iter__(self) -> Iterator[PlotPoint]:
        return iter(self.points())

    def points(self) -> List[PlotPoint]:
        """Points ordered by frequency, then level."""
        return sorted(self._points.values(), key=lambda p: (p.frequency, p.db, p.series))

    def get(self, ear, transducer, masked, frequency) -> Optional[PlotPoint]:
        key = (parse_ear(ear), parse_transducer(transducer), bool(masked), int(frequency))
        return self._points.get(key)

    def find(self, ear, transducer, frequency) -> Optional[PlotPoint]:
        """Placed threshold at a coordinate regardless of masking; masked points win."""
        masked = self.get(ear, transducer, True, frequency)
        return masked if masked is not None else self.get(ear, transducer, False, frequency)

    def series(self) -> Dict[str, List[PlotPoint]]:
        """Points grouped by legend series, each ordered by frequency."""
        out: Dict[str, List[PlotPoint]] = {}
        for point in sorted(self._points.values(), key=lambda p: TEST_FREQUENCIES.index(p.frequency)):
            out.setdefault(point.series, []).append(point)
        return out

    def place(self, ear, transducer, masked, frequency, db_raw,
              model: Optional[MaskingResponseModel] = None,
              mask_level=MASKING_OFF_LEVEL) -> PlacementResult:
        """
        Add or replace the point at (ear, transducer, masked, frequency).

        Args:
            db_raw (float): Requested level; snapped to 5 dB and clamped to [-10, 120]
            model (MaskingResponseModel): Patient used to decide scale-out at the ceiling
            mask_level (int): Masking level in effect when the point is placed

        Returns:
            PlacementResult: suppressed for bone conduction at 125/8000 Hz
        """
        ear = parse_ear(ear)
        transducer = parse_transducer(transducer)
        frequency = parse_frequency(frequency)
        masked = bool(masked)

        if transducer is Transducer.BONE and not is_bc_testable(frequency):
            logger.debug("BC placement at %d Hz suppressed", frequency)
            return PlacementResult(point=None, suppressed=True)

        db = normalize_level(db_raw)
        ceiling = max_presentable_level(transducer.value, frequency)
        so = False
        clamped = False
        if db >= ceiling:
            clamped = db > ceiling
            db = ceiling
            heard = False
            if model is not None:
                heard = model.responds(ear, transducer, frequency, ceiling, masked, mask_level)
            so = not heard

        point = PlotPoint(ear, transducer, masked, frequency, db, so)
        replaced = self._points.get(point.key)
        self._points[point.key] = point
        logger.debug("Placed %s at %d Hz: %d dB%s", point.series, frequency, db, " (SO)" if so else "")
        return PlacementResult(point=point, clamped=clamped, replaced=replaced)

    def remove(self, ear, transducer, masked, frequency) -> Optional[PlotPoint]:
        key = (parse_ear(ear), parse_transducer(transducer), bool(masked), int(frequency))
        return self._points.pop(key, None)

    def clear(self):
        self._points.clear()

