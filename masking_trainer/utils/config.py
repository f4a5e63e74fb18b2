"""
Configuration for training sessions.

Configuration is read from YAML and mapped onto a frozen ``TrainerConfig``.
Every key is optional; omitted keys keep the defaults below.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

import yaml

from .defaults import (
    DEFAULT_EAR,
    DEFAULT_FREQUENCY,
    DEFAULT_LEVEL,
    DEFAULT_LOADING_DELAY_S,
    DEFAULT_TRANSDUCER,
    INTERAURAL_ATTENUATION,
    MASKING_OFF_LEVEL,
    TEST_FREQUENCIES,
    normalize_level,
    normalize_mask_level,
)

logger = logging.getLogger(__name__)

_TOP_LEVEL_KEYS = {'loading_delay_s', 'interaural_attenuation', 'warnings', 'selection', 'logging'}
_WARNING_KEYS = {'over_masking', 'cross_hearing'}
_SELECTION_KEYS = {'ear', 'transducer', 'frequency', 'level', 'masked', 'mask_level'}
_LOG_LEVELS = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}


@dataclass(frozen=True)
class SelectionDefaults:
    ear: str = DEFAULT_EAR
    transducer: str = DEFAULT_TRANSDUCER
    frequency: int = DEFAULT_FREQUENCY
    level: int = DEFAULT_LEVEL
    masked: bool = False
    mask_level: int = MASKING_OFF_LEVEL


@dataclass(frozen=True)
class TrainerConfig:
    loading_delay_s: float = DEFAULT_LOADING_DELAY_S
    interaural_attenuation: Dict[int, Dict[str, int]] = field(default_factory=dict)
    warn_over_masking: bool = True
    warn_cross_hearing: bool = True
    selection: SelectionDefaults = field(default_factory=SelectionDefaults)
    log_level: str = 'INFO'

    def __post_init__(self):
        if self.loading_delay_s < 0:
            raise ValueError(f"loading_delay_s must be non-negative, got {self.loading_delay_s}")

    def to_dict(self) -> dict:
        return {
            'loading_delay_s': self.loading_delay_s,
            'interaural_attenuation': {freq: dict(values)
                                       for freq, values in self.interaural_attenuation.items()},
            'warnings': {
                'over_masking': self.warn_over_masking,
                'cross_hearing': self.warn_cross_hearing,
            },
            'selection': {
                'ear': self.selection.ear,
                'transducer': self.selection.transducer,
                'frequency': self.selection.frequency,
                'level': self.selection.level,
                'masked': self.selection.masked,
                'mask_level': self.selection.mask_level,
            },
            'logging': {'level': self.log_level},
        }


def _check_keys(section, data, allowed):
    if not isinstance(data, dict):
        raise ValueError(f"'{section}' must be a mapping, got {type(data).__name__}")
    unknown = set(data) - allowed
    if unknown:
        raise ValueError(f"Unknown key(s) in '{section}': {sorted(unknown)}")


def _parse_interaural_attenuation(data) -> Dict[int, Dict[str, int]]:
    if not isinstance(data, dict):
        raise ValueError(f"'interaural_attenuation' must be a mapping, got {type(data).__name__}")
    out = {}
    for freq, values in data.items():
        try:
            frequency = int(freq)
        except (TypeError, ValueError):
            raise ValueError(f"Interaural attenuation frequency {freq!r} is not a number") from None
        if frequency not in TEST_FREQUENCIES:
            raise ValueError(f"Interaural attenuation given for unsupported frequency {frequency}")
        _check_keys(f'interaural_attenuation.{frequency}', values, set(INTERAURAL_ATTENUATION))
        entry = {}
        for transducer, ia in values.items():
            if not isinstance(ia, (int, float)) or isinstance(ia, bool) or ia < 0:
                raise ValueError(f"Interaural attenuation for {transducer} at {frequency} Hz "
                                 f"must be a non-negative number, got {ia!r}")
            entry[transducer] = int(ia)
        out[frequency] = entry
    return out


def _parse_selection(data) -> SelectionDefaults:
    _check_keys('selection', data, _SELECTION_KEYS)
    defaults = SelectionDefaults()
    ear = data.get('ear', defaults.ear)
    if ear not in ('R', 'L'):
        raise ValueError(f"selection.ear must be 'R' or 'L', got {ear!r}")
    transducer = data.get('transducer', defaults.transducer)
    if transducer not in ('AC', 'BC'):
        raise ValueError(f"selection.transducer must be 'AC' or 'BC', got {transducer!r}")
    frequency = int(data.get('frequency', defaults.frequency))
    if frequency not in TEST_FREQUENCIES:
        raise ValueError(f"selection.frequency must be one of {TEST_FREQUENCIES}, got {frequency}")
    return SelectionDefaults(
        ear=ear,
        transducer=transducer,
        frequency=frequency,
        level=normalize_level(data.get('level', defaults.level)),
        masked=bool(data.get('masked', defaults.masked)),
        mask_level=normalize_mask_level(data.get('mask_level', defaults.mask_level)),
    )


def config_from_dict(data: Optional[dict]) -> TrainerConfig:
    """Build a TrainerConfig from a parsed YAML mapping."""
    if data is None:
        return TrainerConfig()
    _check_keys('config', data, _TOP_LEVEL_KEYS)

    warnings = data.get('warnings') or {}
    _check_keys('warnings', warnings, _WARNING_KEYS)

    log_section = data.get('logging') or {}
    _check_keys('logging', log_section, {'level'})
    log_level = str(log_section.get('level', 'INFO')).upper()
    if log_level not in _LOG_LEVELS:
        raise ValueError(f"logging.level must be one of {sorted(_LOG_LEVELS)}, got {log_level!r}")

    try:
        delay = float(data.get('loading_delay_s', DEFAULT_LOADING_DELAY_S))
    except (TypeError, ValueError):
        raise ValueError(f"loading_delay_s must be a number, got {data['loading_delay_s']!r}") from None

    return TrainerConfig(
        loading_delay_s=delay,
        interaural_attenuation=_parse_interaural_attenuation(data.get('interaural_attenuation') or {}),
        warn_over_masking=bool(warnings.get('over_masking', True)),
        warn_cross_hearing=bool(warnings.get('cross_hearing', True)),
        selection=_parse_selection(data.get('selection') or {}),
        log_level=log_level,
    )


def load_config(config_path=None) -> TrainerConfig:
    """
    Load configuration from a YAML file.

    Args:
        config_path (str or Path): YAML file; None returns the defaults

    Returns:
        TrainerConfig: parsed configuration

    Raises:
        FileNotFoundError: if the file does not exist
        ValueError: on unknown keys or invalid values
    """
    if config_path is None:
        return TrainerConfig()
    with open(Path(config_path), 'r') as f:
        data = yaml.safe_load(f)
    config = config_from_dict(data)
    logger.debug("Loaded configuration from %s", config_path)
    return config


def save_config(config: TrainerConfig, config_path) -> None:
    with open(Path(config_path), 'w') as f:
        yaml.safe_dump(config.to_dict(), f, sort_keys=False)
