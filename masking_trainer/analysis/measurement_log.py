"""Append-only record of placements that evoked a response."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional

import pandas as pd

from ..simulation.cases import Ear, Transducer
from ..utils.defaults import MASKING_OFF_LEVEL

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    'index', 'timestamp', 'ear', 'transducer', 'frequency_hz',
    'db_hl', 'masking', 'mask_level_db', 'scale_out'
]


@dataclass(frozen=True)
class LogEntry:
    id: int
    timestamp: str
    ear: Ear
    transducer: Transducer
    frequency: int
    db: int
    masked: bool
    mask_level: int
    so: bool
    case_id: Optional[str]


class MeasurementLog:
    """Measurement entries in placement order; ids increase strictly."""

    def __init__(self, now: Callable[[], datetime] = datetime.now):
        self._entries: List[LogEntry] = []
        self._next_id = 1
        self._now = now

    def __len__(self):
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    @property
    def entries(self) -> List[LogEntry]:
        return list(self._entries)

    def append(self, point, mask_level, case_id=None) -> LogEntry:
        """Record a placed point that the patient responded to."""
        entry = LogEntry(
            id=self._next_id,
            timestamp=self._now().isoformat(timespec='seconds'),
            ear=point.ear,
            transducer=point.transducer,
            frequency=point.frequency,
            db=point.db,
            masked=point.masked,
            mask_level=mask_level if point.masked else MASKING_OFF_LEVEL,
            so=point.so,
            case_id=case_id,
        )
        self._next_id += 1
        self._entries.append(entry)
        logger.debug("Logged measurement #%d: %s %s %d Hz %d dB",
                     entry.id, entry.ear.value, entry.transducer.value, entry.frequency, entry.db)
        return entry

    def clear(self):
        """Drop all entries. Ids keep increasing across clears."""
        self._entries = []

    def ear_counts(self) -> Dict[str, int]:
        counts = {Ear.RIGHT.value: 0, Ear.LEFT.value: 0}
        for entry in self._entries:
            counts[entry.ear.value] += 1
        return counts

    def to_frame(self) -> pd.DataFrame:
        """Tabular export: one row per entry, masking level blank when unmasked."""
        rows = []
        for index, entry in enumerate(self._entries, start=1):
            rows.append({
                'index': index,
                'timestamp': entry.timestamp,
                'ear': entry.ear.value,
                'transducer': entry.transducer.value,
                'frequency_hz': entry.frequency,
                'db_hl': entry.db,
                'masking': entry.masked,
                'mask_level_db': entry.mask_level if entry.masked else None,
                'scale_out': entry.so,
            })
        return pd.DataFrame(rows, columns=EXPORT_COLUMNS)
