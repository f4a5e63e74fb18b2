"""Tests for scoring and learning progress."""

from datetime import date, datetime

import pytest

from masking_trainer.analysis.scoring import (
    LearningProgress,
    RandomCasePerformance,
    ScoreResult,
    expected_point,
    score_case,
)
from masking_trainer.procedures.plot_state import AudiogramPlot
from masking_trainer.simulation.cases import Case, Ear, ThresholdEntry, Transducer, get_case
from masking_trainer.simulation.response_model import MaskingResponseModel
from masking_trainer.utils.defaults import is_bc_testable


def _small_case(n_entries):
    frequencies = [125, 250, 500, 1000, 2000, 4000, 8000]
    entries = [ThresholdEntry(Ear.RIGHT, Transducer.AIR, f, 20) for f in frequencies]
    entries.append(ThresholdEntry(Ear.RIGHT, Transducer.BONE, 1000, 15))
    return Case('T', 'Test case', tuple(entries[:n_entries]))


def test_no_case_scores_zero():
    result = score_case(None, AudiogramPlot())
    assert (result.total, result.correct, result.accuracy) == (0, 0, 0)


@pytest.mark.parametrize('case_id', ['A', 'B', 'C', 'D', 'E', 'F', 'G', 'H'])
def test_total_excludes_bone_conduction_at_edges(case_id):
    case = get_case(case_id)
    expected = sum(1 for e in case.entries
                   if not (e.transducer is Transducer.BONE and not is_bc_testable(e.frequency)))
    assert score_case(case, AudiogramPlot()).total == expected


def test_exact_placements_score_full_marks():
    case = get_case('A')
    plot = AudiogramPlot()
    for entry in case.entries:
        plot.place(entry.ear, entry.transducer, False, entry.frequency, entry.db)
    result = score_case(case, plot)
    assert result.total == 24
    assert result.correct == 24
    assert result.accuracy == 100
    assert result.all_correct


def test_masked_flag_is_ignored():
    case = get_case('A')
    plot = AudiogramPlot()
    plot.place('R', 'AC', True, 1000, 5)
    result = score_case(case, plot)
    assert result.correct == 1


def test_accuracy_rounds_half_up():
    plot = AudiogramPlot()
    plot.place('R', 'AC', False, 125, 20)
    assert score_case(_small_case(8), plot).accuracy == 13

    plot.place('R', 'AC', False, 250, 20)
    assert score_case(_small_case(3), plot).accuracy == 67


def test_wrong_level_is_not_correct():
    plot = AudiogramPlot()
    plot.place('R', 'AC', False, 125, 25)
    result = score_case(_small_case(1), plot)
    assert result.correct == 0
    assert result.entries[0].difference == 5


def test_scale_out_matches_on_level_and_flag():
    case = get_case('B')
    model = MaskingResponseModel(case)
    assert expected_point(case.entry('R', 'BC', 4000)) == (60, True)

    # Unmasked, the tone crosses to the left cochlea: heard at the ceiling, so no SO flag
    plot = AudiogramPlot()
    point = plot.place('R', 'BC', False, 4000, 60, model=model).point
    assert point.so is False
    scored = {(s.entry.ear, s.entry.transducer, s.entry.frequency): s
              for s in score_case(case, plot).entries}
    assert scored[(Ear.RIGHT, Transducer.BONE, 4000)].correct is False

    # Masked above the crossover level: no response, SO at the ceiling
    point = plot.place('R', 'BC', True, 4000, 60, model=model, mask_level=70).point
    assert point.so is True
    scored = {(s.entry.ear, s.entry.transducer, s.entry.frequency): s
              for s in score_case(case, plot).entries}
    assert scored[(Ear.RIGHT, Transducer.BONE, 4000)].correct is True


def test_entry_above_ceiling_expects_scale_out():
    entry = ThresholdEntry(Ear.LEFT, Transducer.AIR, 125, 90)
    assert expected_point(entry) == (70, True)


def test_score_frame_has_one_row_per_entry():
    frame = score_case(get_case('A'), AudiogramPlot()).to_frame()
    assert len(frame) == 24
    assert not frame['correct'].any()


def test_learning_progress_round_trip():
    progress = LearningProgress()
    progress.record_session()
    progress.record_measurement(date(2024, 5, 1))
    progress.record_score('A', ScoreResult(total=24, correct=18, accuracy=75),
                          completed_at=datetime(2024, 5, 1, 10, 0, 0))
    progress.record_score('B', ScoreResult(total=24, correct=24, accuracy=100),
                          completed_at=datetime(2024, 5, 1, 10, 5, 0))
    progress.record_score('A', ScoreResult(total=24, correct=24, accuracy=100),
                          completed_at=datetime(2024, 5, 1, 10, 9, 0))

    data = progress.to_dict()
    assert data['totalSessions'] == 1
    assert data['totalMeasurements'] == 1
    assert data['lastSessionDate'] == '2024-05-01'
    assert data['completedCases'] == ['A', 'B']
    assert data['caseAccuracy']['A'] == {'total': 24, 'correct': 24, 'accuracy': 100,
                                         'completedAt': '2024-05-01T10:09:00'}
    assert LearningProgress.from_dict(data).to_dict() == data
    assert progress.average_accuracy() == 100
    assert list(progress.to_frame()['case_id']) == ['A', 'B']

    progress.reset()
    assert progress.to_dict()['completedCases'] == []
    assert progress.average_accuracy() == 0


def test_random_case_streaks():
    performance = RandomCasePerformance()
    perfect = ScoreResult(total=24, correct=24, accuracy=100)
    partial = ScoreResult(total=24, correct=20, accuracy=83)
    for result in (perfect, perfect, partial, perfect):
        performance.record('Custom-1', result, datetime(2024, 5, 1, 10, 0, 0))
    assert performance.total_cases == 4
    assert performance.correct_cases == 3
    assert performance.streak == 1
    assert performance.max_streak == 2
    assert [item['correct'] for item in performance.case_history] == [True, True, False, True]
    assert RandomCasePerformance.from_dict(performance.to_dict()).to_dict() == performance.to_dict()
