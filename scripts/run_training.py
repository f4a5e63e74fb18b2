#!/usr/bin/env python3
"""
Replay a scripted training session.

Loads a case, applies a YAML list of session actions (each a mapping with an
``action`` key plus its arguments), then prints the measurement log, the
warnings at the final selection and the score.
"""

import argparse
import logging

import yaml

from masking_trainer.procedures import TrainingSession
from masking_trainer.simulation import list_cases
from masking_trainer.utils.config import TrainerConfig, load_config
from masking_trainer.visualization import plot_audiogram, print_measurement_log


def load_events(events_path):
    """Load the list of actions from a YAML file."""
    with open(events_path, 'r') as f:
        events = yaml.safe_load(f) or []
    if not isinstance(events, list):
        raise ValueError(f"{events_path} must contain a list of actions")
    return events


def run_training(config, case_id, events, seed=None):
    """Run one session and return it."""
    session = TrainingSession(config)
    if case_id == 'random':
        session.load_random_case(seed=seed)
    else:
        session.load_case(case_id)
    print(f"Case {session.case.case_id}: {session.case.name}")
    print(f"  {session.case.details.chief_complaint}")

    if not events:
        session.toggle_answer(True)
    for event in events:
        payload = dict(event)
        action = payload.pop('action')
        session.dispatch(action, **payload)

    return session


def print_progress(session):
    """Print per-case accuracy, or the generated-case streak."""
    if session.case.generated:
        performance = session.random_performance
        print(f"Generated cases: {performance.correct_cases}/{performance.total_cases} "
              f"(streak {performance.streak}, best {performance.max_streak})")
        return
    frame = session.progress.to_frame()
    print("\nProgress:")
    print(frame.to_string(index=False))
    print(f"Average accuracy: {session.progress.average_accuracy()}%")


def main():
    parser = argparse.ArgumentParser(description='Replay a masking training session')
    parser.add_argument('--config', type=str,
                        default='configs/default.yaml',
                        help='Path to configuration file')
    parser.add_argument('--case', type=str, default='A',
                        help=f"Case to load: one of {list_cases()} or 'random'")
    parser.add_argument('--seed', type=int,
                        help='Seed for a random case')
    parser.add_argument('--events', type=str,
                        help='YAML list of session actions to replay')
    parser.add_argument('--figure', type=str,
                        help='Save the audiogram to this path')

    args = parser.parse_args()

    # Load configuration
    try:
        config = load_config(args.config)
    except FileNotFoundError:
        print(f"Configuration file {args.config} not found. Using defaults.")
        config = TrainerConfig()

    logging.basicConfig(level=config.log_level,
                        format='%(asctime)s %(name)s %(levelname)s: %(message)s')

    events = load_events(args.events) if args.events else []
    session = run_training(config, args.case, events, seed=args.seed)

    print("\nMeasurement log:")
    print_measurement_log(session.log)

    warnings = session.warnings()
    print(f"\nLamp: {'on' if session.lamp() else 'off'}")
    print(f"Over-masking: {warnings.over_masking}  Cross-hearing: {warnings.cross_hearing}")

    score = session.check()
    print(f"\nScore: {score.correct}/{score.total} ({score.accuracy}%)")
    print_progress(session)

    if args.figure:
        answer = session.answer_points() if session.show_answer else None
        fig = plot_audiogram(session.plot.points(), answer=answer,
                             title=f"Case {session.case.case_id}")
        fig.savefig(args.figure)
        print(f"Audiogram saved to {args.figure}")


if __name__ == "__main__":
    main()
