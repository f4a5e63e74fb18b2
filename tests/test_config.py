"""Tests for loading configuration from YAML."""

import pytest
import yaml

from masking_trainer.procedures.session import TrainingSession
from masking_trainer.utils.config import TrainerConfig, load_config, save_config


def _write(tmp_path, data, name='config.yaml'):
    path = tmp_path / name
    path.write_text(yaml.safe_dump(data))
    return path


def test_defaults_without_path():
    config = load_config()
    assert config == TrainerConfig()
    assert config.loading_delay_s == 1.0
    assert config.warn_over_masking and config.warn_cross_hearing
    assert config.selection.frequency == 1000
    assert config.log_level == 'INFO'


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / 'missing.yaml')


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / 'empty.yaml'
    path.write_text('')
    assert load_config(path) == TrainerConfig()


def test_overrides_are_applied(tmp_path):
    path = _write(tmp_path, {
        'loading_delay_s': 0.25,
        'interaural_attenuation': {4000: {'AC': 60}},
        'warnings': {'cross_hearing': False},
        'selection': {'ear': 'L', 'frequency': 500, 'level': 33, 'mask_level': -3},
        'logging': {'level': 'debug'},
    })
    config = load_config(path)
    assert config.loading_delay_s == 0.25
    assert config.interaural_attenuation == {4000: {'AC': 60}}
    assert config.warn_cross_hearing is False
    assert config.warn_over_masking is True
    assert config.selection.ear == 'L'
    assert config.selection.level == 35
    assert config.selection.mask_level == -15
    assert config.log_level == 'DEBUG'


@pytest.mark.parametrize('data', [
    {'colour': 'blue'},
    {'warnings': {'loud': True}},
    {'loading_delay_s': -1},
    {'loading_delay_s': 'soon'},
    {'selection': {'ear': 'both'}},
    {'selection': {'frequency': 3000}},
    {'interaural_attenuation': {3000: {'AC': 40}}},
    {'interaural_attenuation': {1000: {'AC': -5}}},
    {'interaural_attenuation': {1000: {'XX': 40}}},
    {'logging': {'level': 'LOUD'}},
])
def test_invalid_values_rejected(tmp_path, data):
    with pytest.raises(ValueError):
        load_config(_write(tmp_path, data))


def test_negative_delay_rejected_directly():
    with pytest.raises(ValueError):
        TrainerConfig(loading_delay_s=-0.5)


def test_save_and_reload(tmp_path):
    config = TrainerConfig(loading_delay_s=2.0, interaural_attenuation={1000: {'AC': 55, 'BC': 5}},
                           warn_over_masking=False)
    path = tmp_path / 'saved.yaml'
    save_config(config, path)
    assert load_config(path) == config


def test_session_uses_configured_attenuation(tmp_path):
    # With 70 dB of AC attenuation at 2 kHz, case B no longer crosses at 60 dB
    config = load_config(_write(tmp_path, {'interaural_attenuation': {2000: {'AC': 70}}}))
    session = TrainingSession(config)
    session.load_case('B')
    session.set_selection(frequency=2000, level=60)
    assert session.lamp() is False
    assert session.warnings().cross_hearing is False
