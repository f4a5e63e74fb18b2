"""
Scoring of placed thresholds against the hidden case, and learning progress.

Functions:
- expected_point: the (dB, SO) pair a correct placement must show for an entry
- score_case: compares the final placed thresholds with the ground truth
- LearningProgress / RandomCasePerformance: per-case and generated-case records
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

import pandas as pd

from ..simulation.cases import Case, ThresholdEntry, Transducer
from ..utils.defaults import is_bc_testable, max_presentable_level, round5

logger = logging.getLogger(__name__)


def _percent(correct, total):
    if total <= 0:
        return 0
    return int(math.floor(100.0 * correct / total + 0.5))


@dataclass(frozen=True)
class EntryScore:
    entry: ThresholdEntry
    expected_db: int
    expected_so: bool
    placed_db: Optional[int]
    placed_so: bool
    correct: bool

    @property
    def difference(self) -> Optional[int]:
        if self.placed_db is None:
            return None
        return abs(self.placed_db - self.expected_db)


@dataclass(frozen=True)
class ScoreResult:
    total: int
    correct: int
    accuracy: int
    entries: Tuple[EntryScore, ...] = ()

    @property
    def all_correct(self) -> bool:
        return self.total > 0 and self.correct == self.total

    def to_frame(self) -> pd.DataFrame:
        """Per-entry breakdown of the score."""
        rows = [{
            'ear': s.entry.ear.value,
            'transducer': s.entry.transducer.value,
            'frequency_hz': s.entry.frequency,
            'expected_db': s.expected_db,
            'expected_so': s.expected_so,
            'placed_db': s.placed_db,
            'placed_so': s.placed_so,
            'difference_db': s.difference,
            'correct': s.correct,
        } for s in self.entries]
        return pd.DataFrame(rows, columns=[
            'ear', 'transducer', 'frequency_hz', 'expected_db', 'expected_so',
            'placed_db', 'placed_so', 'difference_db', 'correct'])


EMPTY_SCORE = ScoreResult(total=0, correct=0, accuracy=0)


def is_scored(entry: ThresholdEntry) -> bool:
    return not (entry.transducer is Transducer.BONE and not is_bc_testable(entry.frequency))


def expected_point(entry: ThresholdEntry) -> Tuple[int, bool]:
    """
    The placement a correct answer shows for an entry.

    Scale-out entries, and entries recorded above the transducer ceiling, are
    answered by an SO point at the ceiling.
    """
    ceiling = max_presentable_level(entry.transducer.value, entry.frequency)
    if entry.so or entry.db > ceiling:
        return ceiling, True
    return round5(entry.db), False


def score_case(case: Optional[Case], plot) -> ScoreResult:
    """
    Compare placed thresholds with the case ground truth.

    Args:
        case (Case): Loaded case; None scores as zero
        plot (AudiogramPlot): Placed points; the masked flag is ignored

    Returns:
        ScoreResult: total, correct, rounded percentage accuracy and per-entry detail
    """
    if case is None:
        return EMPTY_SCORE

    scores = []
    for entry in case.entries:
        if not is_scored(entry):
            continue
        expected_db, expected_so = expected_point(entry)
        placed = plot.find(entry.ear, entry.transducer, entry.frequency)
        placed_db = placed.db if placed is not None else None
        placed_so = bool(placed is not None and placed.so)
        correct = placed is not None and (placed.db, placed.so) == (expected_db, expected_so)
        scores.append(EntryScore(entry, expected_db, expected_so, placed_db, placed_so, correct))

    total = len(scores)
    correct = sum(1 for s in scores if s.correct)
    return ScoreResult(total=total, correct=correct, accuracy=_percent(correct, total),
                       entries=tuple(scores))


@dataclass
class CaseAccuracy:
    total: int
    correct: int
    accuracy: int
    completed_at: str

    def to_dict(self) -> dict:
        return {'total': self.total, 'correct': self.correct,
                'accuracy': self.accuracy, 'completedAt': self.completed_at}

    @classmethod
    def from_dict(cls, data: dict) -> 'CaseAccuracy':
        return cls(total=int(data.get('total', 0)), correct=int(data.get('correct', 0)),
                   accuracy=int(data.get('accuracy', 0)),
                   completed_at=str(data.get('completedAt', data.get('completed_at', ''))))


@dataclass
class LearningProgress:
    """Progress across preset cases, in the persisted layout of the trainer."""
    total_sessions: int = 0
    completed_cases: List[str] = field(default_factory=list)
    case_accuracy: Dict[str, CaseAccuracy] = field(default_factory=dict)
    last_session_date: Optional[str] = None
    total_measurements: int = 0

    def record_session(self):
        self.total_sessions += 1

    def record_measurement(self, when: Optional[date] = None):
        self.total_measurements += 1
        self.last_session_date = (when or date.today()).isoformat()

    def record_score(self, case_id: str, result: ScoreResult, completed_at: Optional[datetime] = None):
        stamp = (completed_at or datetime.now()).isoformat(timespec='seconds')
        self.case_accuracy[case_id] = CaseAccuracy(result.total, result.correct, result.accuracy, stamp)
        if case_id not in self.completed_cases:
            self.completed_cases.append(case_id)
        logger.info("Case %s scored %d/%d (%d%%)", case_id, result.correct, result.total, result.accuracy)

    def average_accuracy(self) -> int:
        if not self.case_accuracy:
            return 0
        values = [record.accuracy for record in self.case_accuracy.values()]
        return int(math.floor(sum(values) / len(values) + 0.5))

    def reset(self):
        self.total_sessions = 0
        self.completed_cases = []
        self.case_accuracy = {}
        self.last_session_date = None
        self.total_measurements = 0

    def to_dict(self) -> dict:
        return {
            'totalSessions': self.total_sessions,
            'completedCases': list(self.completed_cases),
            'caseAccuracy': {case_id: record.to_dict() for case_id, record in self.case_accuracy.items()},
            'lastSessionDate': self.last_session_date,
            'totalMeasurements': self.total_measurements,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> 'LearningProgress':
        data = data or {}
        return cls(
            total_sessions=int(data.get('totalSessions', 0)),
            completed_cases=list(data.get('completedCases', [])),
            case_accuracy={case_id: CaseAccuracy.from_dict(record)
                           for case_id, record in (data.get('caseAccuracy') or {}).items()},
            last_session_date=data.get('lastSessionDate'),
            total_measurements=int(data.get('totalMeasurements', 0)),
        )

    def to_frame(self) -> pd.DataFrame:
        """One row per completed case, sorted by case id."""
        rows = [{'case_id': case_id, **record.to_dict()}
                for case_id, record in sorted(self.case_accuracy.items())]
        return pd.DataFrame(rows, columns=['case_id', 'total', 'correct', 'accuracy', 'completedAt'])


@dataclass
class RandomCasePerformance:
    """Streak tracking for generated cases; kept apart from preset progress."""
    total_cases: int = 0
    correct_cases: int = 0
    streak: int = 0
    max_streak: int = 0
    case_history: List[dict] = field(default_factory=list)

    def record(self, case_id: str, result: ScoreResult, timestamp: Optional[datetime] = None):
        perfect = result.all_correct
        self.total_cases += 1
        self.correct_cases += 1 if perfect else 0
        self.streak = self.streak + 1 if perfect else 0
        self.max_streak = max(self.max_streak, self.streak)
        self.case_history.append({
            'caseId': case_id,
            'correct': perfect,
            'timestamp': (timestamp or datetime.now()).isoformat(timespec='seconds'),
            'accuracy': result.accuracy,
        })
        logger.info("Generated case %s scored %d%% (streak %d)", case_id, result.accuracy, self.streak)

    def reset(self):
        self.total_cases = 0
        self.correct_cases = 0
        self.streak = 0
        self.max_streak = 0
        self.case_history = []

    def to_dict(self) -> dict:
        return {
            'totalCases': self.total_cases,
            'correctCases': self.correct_cases,
            'streak': self.streak,
            'maxStreak': self.max_streak,
            'caseHistory': [dict(item) for item in self.case_history],
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> 'RandomCasePerformance':
        data = data or {}
        return cls(
            total_cases=int(data.get('totalCases', 0)),
            correct_cases=int(data.get('correctCases', 0)),
            streak=int(data.get('streak', 0)),
            max_streak=int(data.get('maxStreak', 0)),
            case_history=[dict(item) for item in data.get('caseHistory', [])],
        )
