"""
Training session: the single owner of case, selection, plot, log and progress.

Every presentation event goes through a ``TrainingSession`` method (or
``dispatch``) and runs to completion before the next. The lamp and warnings are
selectors recomputed from the current (selection, case) pair; nothing about the
patient is cached between events.
"""
# Standard library imports
import logging
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

# Local imports
from ..analysis.measurement_log import MeasurementLog
from ..analysis.scoring import (
    EMPTY_SCORE,
    LearningProgress,
    RandomCasePerformance,
    ScoreResult,
    expected_point,
    is_scored,
    score_case,
)
from ..simulation.cases import Case, Ear, Transducer, get_case, parse_ear, parse_frequency, parse_transducer
from ..simulation.hearing_level_gen import generate_random_case
from ..simulation.response_model import AudibilityResult, MaskingResponseModel
from ..utils.clock import Clock, MonotonicClock
from ..utils.config import TrainerConfig
from ..utils.defaults import (
    LEVEL_STEP,
    MASKING_OFF_LEVEL,
    TEST_FREQUENCIES,
    is_bc_testable,
    normalize_level,
    normalize_mask_level,
    round5,
)
from .plot_state import AudiogramPlot, PlacementResult, PlotPoint

logger = logging.getLogger(__name__)


class SessionPhase(str, Enum):
    IDLE = 'idle'
    CASE_LOADED = 'case_loaded'
    MEASURING = 'measuring'
    REVEALED = 'revealed'
    COMPLETED = 'completed'


@dataclass(frozen=True)
class Selection:
    """Current audiometer settings."""
    ear: Ear = Ear.RIGHT
    transducer: Transducer = Transducer.AIR
    frequency: int = 1000
    level: int = 0
    masked: bool = False
    mask_level: int = MASKING_OFF_LEVEL

    @classmethod
    def from_config(cls, config: TrainerConfig) -> 'Selection':
        defaults = config.selection
        return cls(
            ear=parse_ear(defaults.ear),
            transducer=parse_transducer(defaults.transducer),
            frequency=defaults.frequency,
            level=defaults.level,
            masked=defaults.masked,
            mask_level=defaults.mask_level,
        )


@dataclass(frozen=True)
class MaskingWarnings:
    over_masking: bool = False
    cross_hearing: bool = False
    details: Optional[Dict[str, Optional[int]]] = None


NO_WARNINGS = MaskingWarnings()


@dataclass(frozen=True)
class SessionSnapshot:
    """Immutable view of a session for hosting shells."""
    phase: SessionPhase
    case_id: Optional[str]
    selection: Selection
    lamp: bool
    suppressed: bool
    warnings: MaskingWarnings
    points: Tuple[PlotPoint, ...]
    log_size: int
    show_answer: bool
    loading: bool
    last_score: Optional[ScoreResult]


class TrainingSession:
    """
    Reducer over presentation events for one learner.

    Args:
        config (TrainerConfig): Loading delay, interaural attenuation overrides,
            warning toggles and the selection installed on case load
        clock (Clock): Monotonic clock driving the case loading delay
        now (callable): Wall clock for log timestamps and progress dates
        progress (LearningProgress): Progress carried over from an earlier session
        random_performance (RandomCasePerformance): Generated-case record to continue
    """

    _ACTIONS = frozenset({
        'load_case',
        'load_random_case',
        'begin_load_case',
        'poll',
        'set_selection',
        'step_frequency',
        'step_level',
        'place',
        'remove',
        'clear',
        'clear_log',
        'toggle_answer',
        'check',
        'reset_progress',
    })

    def __init__(self, config: Optional[TrainerConfig] = None, clock: Optional[Clock] = None,
                 now: Callable[[], datetime] = datetime.now,
                 progress: Optional[LearningProgress] = None,
                 random_performance: Optional[RandomCasePerformance] = None):
        self.config = config or TrainerConfig()
        self.clock = clock or MonotonicClock()
        self._now = now
        self.case: Optional[Case] = None
        self.model = MaskingResponseModel(None, self.config.interaural_attenuation)
        self.plot = AudiogramPlot()
        self.log = MeasurementLog(now=now)
        self.progress = progress or LearningProgress()
        self.random_performance = random_performance or RandomCasePerformance()
        self.selection = Selection.from_config(self.config)
        self.suppressed = False
        self.phase = SessionPhase.IDLE
        self.show_answer = False
        self.last_score: Optional[ScoreResult] = None
        self._pending_case: Optional[Case] = None
        self._load_started: Optional[float] = None

    # ------------------------------------------------------------------
    # Case loading
    # ------------------------------------------------------------------
    def load_case(self, case_id) -> Case:
        """
        Install a case immediately.

        Clears the plot, resets the selection, hides the answer and counts a
        new session. The measurement log is kept.

        Raises:
            ValueError: If the case identifier is unknown
            RuntimeError: If a timed case load is still pending
        """
        if self.is_loading:
            logger.warning("Case load rejected: %s still loading", self._pending_case.case_id)
            raise RuntimeError(f"Case {self._pending_case.case_id} is still loading")
        case = get_case(case_id)
        self.case = case
        self.model = MaskingResponseModel(case, self.config.interaural_attenuation)
        self.plot.clear()
        self.selection = Selection.from_config(self.config)
        self.suppressed = False
        self.show_answer = False
        self.last_score = None
        self.phase = SessionPhase.CASE_LOADED
        self.progress.record_session()
        logger.info("Loaded case %s (%s)", case.case_id, case.name)
        return case

    def load_random_case(self, profile=None, severity=None, affected_side=None, seed=None) -> Case:
        case = generate_random_case(profile=profile, severity=severity,
                                    affected_side=affected_side, seed=seed)
        return self.load_case(case)

    @property
    def is_loading(self) -> bool:
        return self._pending_case is not None

    def begin_load_case(self, case_id) -> bool:
        """
        Start a timed case load; the case is installed by a later ``poll``.

        Returns:
            bool: False if another load is still pending
        """
        if self.is_loading:
            logger.debug("Case load ignored: %s still loading", self._pending_case.case_id)
            return False
        case = get_case(case_id)
        if self.config.loading_delay_s <= 0:
            self.load_case(case)
            return True
        self._pending_case = case
        self._load_started = self.clock.now()
        logger.debug("Loading case %s", case.case_id)
        return True

    def poll(self) -> bool:
        """Install the pending case once the loading delay has elapsed."""
        if self._pending_case is None:
            return False
        if self.clock.now() - self._load_started < self.config.loading_delay_s:
            return False
        case = self._pending_case
        self._pending_case = None
        self._load_started = None
        self.load_case(case)
        return True

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------
    def _touch(self):
        if self.phase is SessionPhase.CASE_LOADED:
            self.phase = SessionPhase.MEASURING

    def _check_bc_frequency(self):
        if self.selection.transducer is Transducer.BONE and not is_bc_testable(self.selection.frequency):
            self.suppressed = True

    def set_selection(self, ear=None, transducer=None, frequency=None, level=None,
                      masked=None, mask_level=None) -> Selection:
        """
        Update part of the selection.

        Changing ear, transducer or frequency suppresses the lamp until the
        level changes or a point is placed. Levels are snapped onto the
        audiogram grid and masking levels onto {-15} U [0, 110].
        """
        current = self.selection
        changes = {}
        if ear is not None:
            changes['ear'] = parse_ear(ear)
        if transducer is not None:
            changes['transducer'] = parse_transducer(transducer)
        if frequency is not None:
            changes['frequency'] = parse_frequency(frequency)
        if masked is not None:
            changes['masked'] = bool(masked)
        if mask_level is not None:
            changes['mask_level'] = normalize_mask_level(mask_level)
        if level is not None:
            changes['level'] = normalize_level(level)

        updated = replace(current, **changes)
        if (updated.ear, updated.transducer, updated.frequency) != \
                (current.ear, current.transducer, current.frequency):
            self.suppressed = True
        if level is not None:
            self.suppressed = False
        self.selection = updated
        self._check_bc_frequency()
        self._touch()
        return updated

    def step_frequency(self, direction: int) -> int:
        """
        Move to the neighbouring frequency.

        With bone conduction selected, 125 and 8000 Hz are skipped; if no
        testable frequency lies in that direction the selection stays put.
        """
        if direction not in (1, -1):
            raise ValueError(f"direction must be +1 or -1, got {direction!r}")
        index = TEST_FREQUENCIES.index(self.selection.frequency) + direction
        bone = self.selection.transducer is Transducer.BONE
        while 0 <= index < len(TEST_FREQUENCIES):
            candidate = TEST_FREQUENCIES[index]
            if not bone or is_bc_testable(candidate):
                self.set_selection(frequency=candidate)
                return candidate
            index += direction
        return self.selection.frequency

    def step_level(self, steps: int = 1, auto_place: bool = False) -> int:
        """Change the level by 5 dB per step, optionally placing a point there."""
        self.set_selection(level=self.selection.level + LEVEL_STEP * int(steps))
        if auto_place:
            self.place()
        return self.selection.level

    # ------------------------------------------------------------------
    # Plot
    # ------------------------------------------------------------------
    def place(self, ear=None, transducer=None, masked=None, frequency=None, db=None) -> PlacementResult:
        """
        Place a threshold; omitted coordinates come from the current selection.

        A placement the patient responds to is appended to the measurement log.

        Returns:
            PlacementResult: suppressed for bone conduction at 125/8000 Hz
        """
        sel = self.selection
        ear = parse_ear(ear) if ear is not None else sel.ear
        transducer = parse_transducer(transducer) if transducer is not None else sel.transducer
        masked = bool(masked) if masked is not None else sel.masked
        frequency = parse_frequency(frequency) if frequency is not None else sel.frequency
        db = db if db is not None else sel.level

        self._touch()
        result = self.plot.place(ear, transducer, masked, frequency, db,
                                 model=self.model, mask_level=sel.mask_level)
        if result.suppressed:
            self.suppressed = True
            return result

        point = result.point
        self.suppressed = False
        self.selection = replace(self.selection, level=point.db)

        outcome = self.model.evaluate(ear, transducer, frequency, point.db, masked, sel.mask_level)
        if outcome.heard:
            case_id = self.case.case_id if self.case is not None else None
            self.log.append(point, sel.mask_level, case_id)
            self.progress.record_measurement(self._now().date())
        return result

    def remove(self, ear=None, transducer=None, masked=None, frequency=None) -> Optional[PlotPoint]:
        sel = self.selection
        self._touch()
        return self.plot.remove(
            ear if ear is not None else sel.ear,
            transducer if transducer is not None else sel.transducer,
            masked if masked is not None else sel.masked,
            frequency if frequency is not None else sel.frequency,
        )

    def clear(self):
        self._touch()
        self.plot.clear()

    def clear_log(self):
        self.log.clear()

    def export(self):
        """Measurement log as a DataFrame with the export columns."""
        return self.log.to_frame()

    # ------------------------------------------------------------------
    # Selectors
    # ------------------------------------------------------------------
    def _presentable(self) -> bool:
        sel = self.selection
        return self.case is not None and not (sel.transducer is Transducer.BONE
                                              and not is_bc_testable(sel.frequency))

    def evaluate_selection(self) -> Optional[AudibilityResult]:
        """Engine result for the current selection; None when nothing can be presented."""
        if not self._presentable():
            return None
        sel = self.selection
        return self.model.evaluate(sel.ear, sel.transducer, sel.frequency, round5(sel.level),
                                   sel.masked, sel.mask_level)

    def lamp(self) -> bool:
        """Whether the patient response lamp is lit for the current selection."""
        if self.suppressed:
            return False
        result = self.evaluate_selection()
        return bool(result is not None and result.heard)

    def warnings(self) -> MaskingWarnings:
        result = self.evaluate_selection()
        if result is None:
            return NO_WARNINGS
        over_masking = result.over_masking and self.config.warn_over_masking
        cross_hearing = result.cross_hearing and self.config.warn_cross_hearing
        if over_masking or cross_hearing:
            logger.debug("Warnings at %s %s %d Hz: over_masking=%s cross_hearing=%s",
                         result.test_ear.value, self.selection.transducer.value,
                         self.selection.frequency, over_masking, cross_hearing)
        return MaskingWarnings(over_masking=over_masking, cross_hearing=cross_hearing,
                               details=result.details())

    # ------------------------------------------------------------------
    # Answer and scoring
    # ------------------------------------------------------------------
    def toggle_answer(self, show: Optional[bool] = None) -> bool:
        self.show_answer = (not self.show_answer) if show is None else bool(show)
        if self.show_answer and self.phase in (SessionPhase.CASE_LOADED, SessionPhase.MEASURING):
            self.phase = SessionPhase.REVEALED
        elif not self.show_answer and self.phase is SessionPhase.REVEALED:
            self.phase = SessionPhase.MEASURING
        return self.show_answer

    def answer_points(self) -> List[PlotPoint]:
        """Ground truth of the loaded case as unmasked plot points."""
        if self.case is None:
            return []
        points = []
        for entry in self.case.entries:
            if not is_scored(entry):
                continue
            db, so = expected_point(entry)
            points.append(PlotPoint(entry.ear, entry.transducer, False, entry.frequency, db, so))
        return sorted(points, key=lambda p: (p.series, p.frequency))

    def check(self) -> ScoreResult:
        """
        Score the placed thresholds and record the result.

        Preset cases update learning progress; generated cases update the
        generated-case record. Without a loaded case the zero score is returned
        and nothing is recorded.
        """
        if self.case is None:
            return EMPTY_SCORE
        result = score_case(self.case, self.plot)
        if self.case.generated:
            self.random_performance.record(self.case.case_id, result, self._now())
        else:
            self.progress.record_score(self.case.case_id, result, self._now())
        self.last_score = result
        self.phase = SessionPhase.COMPLETED
        return result

    def reset_progress(self):
        """Forget learning progress, generated-case results and the measurement log."""
        self.progress.reset()
        self.random_performance.reset()
        self.log.clear()
        logger.info("Progress reset")

    # ------------------------------------------------------------------
    # Host surface
    # ------------------------------------------------------------------
    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            phase=self.phase,
            case_id=self.case.case_id if self.case is not None else None,
            selection=self.selection,
            lamp=self.lamp(),
            suppressed=self.suppressed,
            warnings=self.warnings(),
            points=tuple(self.plot.points()),
            log_size=len(self.log),
            show_answer=self.show_answer,
            loading=self.is_loading,
            last_score=self.last_score,
        )

    def dispatch(self, action: str, **payload):
        """
        Apply one named action.

        Args:
            action (str): Name of a session operation, e.g. 'place' or 'set_selection'
            **payload: Keyword arguments of that operation

        Raises:
            ValueError: If the action is unknown
        """
        if action not in self._ACTIONS:
            raise ValueError(f"Unknown action {action!r}; expected one of {sorted(self._ACTIONS)}")
        logger.debug("Dispatch %s %s", action, payload)
        return getattr(self, action)(**payload)
