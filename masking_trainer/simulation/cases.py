"""
Preset training cases and the ground-truth records they are built from.

A case is an immutable set of thresholds keyed by (ear, transducer, frequency).
Scale-out entries carry ``so=True``: the patient gives no response even at the
transducer ceiling.
"""
# Standard library imports
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

# Local imports
from ..utils.defaults import TEST_FREQUENCIES


class Ear(str, Enum):
    RIGHT = 'R'
    LEFT = 'L'

    @property
    def opposite(self) -> 'Ear':
        return Ear.LEFT if self is Ear.RIGHT else Ear.RIGHT


class Transducer(str, Enum):
    AIR = 'AC'
    BONE = 'BC'


def parse_ear(value) -> Ear:
    try:
        return Ear(value)
    except ValueError:
        raise ValueError(f"Unknown ear {value!r}; expected 'R' or 'L'") from None


def parse_transducer(value) -> Transducer:
    try:
        return Transducer(value)
    except ValueError:
        raise ValueError(f"Unknown transducer {value!r}; expected 'AC' or 'BC'") from None


def parse_frequency(value) -> int:
    frequency = int(value)
    if frequency not in TEST_FREQUENCIES:
        raise ValueError(f"Unsupported frequency {value!r}; expected one of {TEST_FREQUENCIES}")
    return frequency


ThresholdKey = Tuple[Ear, Transducer, int]


@dataclass(frozen=True)
class ThresholdEntry:
    """Ground-truth threshold for one ear, transducer and frequency."""
    ear: Ear
    transducer: Transducer
    frequency: int
    db: int
    so: bool = False

    @property
    def key(self) -> ThresholdKey:
        return (self.ear, self.transducer, self.frequency)


@dataclass(frozen=True)
class CaseDetails:
    """Narrative shown alongside a case; not used by the engine."""
    age: str = ''
    sex: str = ''
    chief_complaint: str = ''
    history: str = ''
    findings: str = ''


@dataclass(frozen=True)
class Case:
    case_id: str
    name: str
    entries: Tuple[ThresholdEntry, ...]
    details: CaseDetails = field(default_factory=CaseDetails)
    generated: bool = False

    def __post_init__(self):
        seen = set()
        for entry in self.entries:
            if entry.key in seen:
                raise ValueError(f"Duplicate threshold for {entry.key} in case {self.case_id}")
            seen.add(entry.key)

    def threshold_map(self) -> Dict[ThresholdKey, ThresholdEntry]:
        return {entry.key: entry for entry in self.entries}

    def entry(self, ear, transducer, frequency) -> Optional[ThresholdEntry]:
        key = (parse_ear(ear), parse_transducer(transducer), int(frequency))
        for candidate in self.entries:
            if candidate.key == key:
                return candidate
        return None


def _series(ear: str, transducer: str, points: Iterable[tuple]) -> List[ThresholdEntry]:
    """Expand (frequency, dB[, so]) tuples into entries for one ear/transducer."""
    out = []
    for point in points:
        frequency, db = point[0], point[1]
        so = bool(point[2]) if len(point) > 2 else False
        out.append(ThresholdEntry(Ear(ear), Transducer(transducer), frequency, db, so))
    return out


def build_case(case_id: str, name: str, *series: List[ThresholdEntry],
               details: Optional[CaseDetails] = None, generated: bool = False) -> Case:
    entries = tuple(entry for part in series for entry in part)
    return Case(case_id=case_id, name=name, entries=entries,
                details=details or CaseDetails(), generated=generated)


PRESET_CASES: Dict[str, Case] = {}


def _register(case: Case) -> None:
    PRESET_CASES[case.case_id] = case


_register(build_case(
    'A', 'Case A',
    _series('R', 'AC', [(125, 5), (250, 5), (500, 5), (1000, 5), (2000, 5), (4000, 0), (8000, 0)]),
    _series('L', 'AC', [(125, 10), (250, 10), (500, 5), (1000, 5), (2000, 5), (4000, 0), (8000, -5)]),
    _series('R', 'BC', [(250, 5), (500, 10), (1000, 5), (2000, 5), (4000, -5)]),
    _series('L', 'BC', [(250, 5), (500, 5), (1000, 0), (2000, 5), (4000, 0)]),
    details=CaseDetails(
        age='12', sex='male',
        chief_complaint='Referred after failing the school hearing screen',
        history='Says the screening room was noisy and the tones were hard to hear',
        findings='Normal tympanic membranes'),
))

_register(build_case(
    'B', 'Case B',
    _series('R', 'AC', [(125, 10), (250, 10), (500, 30), (1000, 50), (2000, 70), (4000, 90), (8000, 100)]),
    _series('R', 'BC', [(125, 10), (250, 15), (500, 30), (1000, 50), (2000, 70), (4000, 110, True),
                        (8000, 100)]),
    _series('L', 'AC', [(125, 15), (250, 15), (500, 10), (1000, 10), (2000, 5), (4000, 5), (8000, 10)]),
    _series('L', 'BC', [(250, 15), (500, 10), (1000, 10), (2000, 5), (4000, 5)]),
    details=CaseDetails(
        age='45', sex='male',
        chief_complaint='Right hearing loss, tinnitus and dizziness',
        history='Sudden right aural fullness, tinnitus and vertigo since yesterday; '
                'the vertigo has settled but the hearing has not',
        findings='Normal tympanic membranes'),
))

_register(build_case(
    'C', 'Case C',
    _series('R', 'AC', [(125, 20), (250, 20), (500, 15), (1000, 10), (2000, 10), (4000, 5), (8000, 5)]),
    _series('R', 'BC', [(250, 15), (500, 15), (1000, 10), (2000, 5), (4000, 10)]),
    _series('L', 'AC', [(f, 110, True) for f in (125, 250, 500, 1000, 2000, 4000, 8000)]),
    _series('L', 'BC', [(f, 110, True) for f in (250, 500, 1000, 2000, 4000)]),
    details=CaseDetails(
        age='7', sex='female',
        chief_complaint='Poor hearing in the left ear',
        history='Left hearing loss found at the school entry screen',
        findings='Normal tympanic membranes'),
))

_register(build_case(
    'D', 'Case D',
    _series('R', 'AC', [(125, 5), (250, 5), (500, 5), (1000, 10), (2000, 25), (4000, 45), (8000, 65)]),
    _series('R', 'BC', [(125, 5), (250, 5), (500, 5), (1000, 10), (2000, 20), (4000, 35), (8000, 50)]),
    _series('L', 'AC', [(125, 25), (250, 30), (500, 20), (1000, 10), (2000, 5), (4000, 5), (8000, 10)]),
    _series('L', 'BC', [(125, 20), (250, 25), (500, 20), (1000, 10), (2000, 5), (4000, 5), (8000, 10)]),
    details=CaseDetails(
        age='32', sex='male',
        chief_complaint='Aural fullness, tinnitus and vertigo',
        history='Right sudden hearing loss at 20; episodic rotatory vertigo for a week; '
                'roaring tinnitus on the left',
        findings='Normal tympanic membranes'),
))

_register(build_case(
    'E', 'Case E',
    _series('R', 'AC', [(125, 15), (250, 20), (500, 20), (1000, 30), (2000, 35), (4000, 35), (8000, 45)]),
    _series('R', 'BC', [(125, 10), (250, 15), (500, 20), (1000, 25), (2000, 30), (4000, 35), (8000, 40)]),
    _series('L', 'AC', [(125, 40), (250, 45), (500, 40), (1000, 55), (2000, 60), (4000, 60), (8000, 70)]),
    _series('L', 'BC', [(125, 35), (250, 40), (500, 45), (1000, 50), (2000, 55), (4000, 60), (8000, 65)]),
    details=CaseDetails(
        age='55', sex='female',
        chief_complaint='Gradual hearing loss, worse on the left',
        history='Has moved the phone to the right ear; onset unclear',
        findings='Normal tympanic membranes'),
))

_register(build_case(
    'F', 'Case F',
    _series('R', 'AC', [(125, 15), (250, 15), (500, 15), (1000, 30), (2000, 45), (4000, 60), (8000, 80)]),
    _series('R', 'BC', [(250, 20), (500, 20), (1000, 25), (2000, 45), (4000, 60)]),
    _series('L', 'AC', [(125, 10), (250, 15), (500, 20), (1000, 30), (2000, 45), (4000, 65), (8000, 80)]),
    _series('L', 'BC', [(250, 15), (500, 20), (1000, 30), (2000, 45), (4000, 110, True)]),
    details=CaseDetails(
        age='70', sex='female',
        chief_complaint='Difficulty hearing the television',
        history='Spouse reports the TV is too loud and suggested hearing aids',
        findings='Normal tympanic membranes'),
))

_register(build_case(
    'G', 'Case G',
    _series('R', 'AC', [(125, 35), (250, 25), (500, 20), (1000, 25), (2000, 25), (4000, 10), (8000, 20)]),
    _series('R', 'BC', [(125, 5), (250, 5), (500, 10), (1000, 10), (2000, 5), (4000, 5), (8000, 5)]),
    _series('L', 'AC', [(125, 35), (250, 25), (500, 25), (1000, 20), (2000, 20), (4000, 25), (8000, 35)]),
    _series('L', 'BC', [(250, 10), (500, 15), (1000, 10), (2000, 15), (4000, 0)]),
    details=CaseDetails(
        age='12', sex='female',
        chief_complaint='Runny nose and poor hearing',
        history='Recurrent otitis media with effusion since early childhood',
        findings='Dull, retracted tympanic membranes'),
))

_register(build_case(
    'H', 'Case H',
    _series('R', 'AC', [(125, 10), (250, 10), (500, 10), (1000, 25), (2000, 30), (4000, 30), (8000, 50)]),
    _series('R', 'BC', [(250, 5), (500, 5), (1000, 30), (2000, 30), (4000, 25)]),
    _series('L', 'AC', [(125, 35), (250, 40), (500, 40), (1000, 50), (2000, 45), (4000, 40), (8000, 50)]),
    _series('L', 'BC', [(250, 10), (500, 15), (1000, 20), (2000, 25), (4000, 20)]),
    details=CaseDetails(
        age='68', sex='male',
        chief_complaint='Ear pain, poor hearing and aural fullness',
        history='Ear pain and fullness for two days',
        findings='Inflamed tympanic membrane'),
))


def list_cases() -> List[str]:
    """Identifiers of the preset library, in display order."""
    return sorted(PRESET_CASES)


def get_case(case_id) -> Case:
    """Look up a preset case by identifier."""
    if isinstance(case_id, Case):
        return case_id
    try:
        return PRESET_CASES[str(case_id)]
    except KeyError:
        raise ValueError(f"Unknown case {case_id!r}; available cases: {list_cases()}") from None
