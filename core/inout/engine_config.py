# core/inout/engine_config.py
"""
Load and validate YAML engine configurations.
"""
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict

import yaml
from cerberus import Validator

from core.engine import EngineConfig
from core.exceptions import ConfigError
from core.solver import SolverConfig
from utils.logging_config import setup_logging


# Cerberus schema for engine configuration
ENGINE_CONFIG_SCHEMA = {
    'solver': {
        'type': 'dict',
        'required': False,
        'schema': {
            'tolerance': {'type': 'float', 'coerce': float, 'min': 0.0},
            'max_iterations': {'type': 'integer', 'coerce': int, 'min': 1},
            'min_damping': {'type': 'float', 'coerce': float, 'min': 0.0, 'max': 1.0},
            'damping_backoff': {'type': 'float', 'coerce': float, 'min': 0.0, 'max': 1.0},
            'stall_ratio': {'type': 'float', 'coerce': float, 'min': 0.0},
            'singular_tolerance': {'type': 'float', 'coerce': float, 'min': 0.0},
            'least_squares': {'type': 'boolean'},
        }
    },
    'builder': {
        'type': 'dict',
        'required': False,
        'schema': {
            'default_net_value': {'type': 'float', 'coerce': float},
            'strict_references': {'type': 'boolean'},
        }
    },
    'logging': {
        'type': 'dict',
        'required': False,
        'schema': {
            'level': {
                'type': 'string',
                'coerce': str.upper,
                'allowed': ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
            },
            'file': {'type': 'string'},
        }
    },
}


def parse_engine_config(raw: Any) -> EngineConfig:
    """
    Validate an already-parsed configuration document and turn it into an
    EngineConfig. Keys left out keep their defaults.

    Raises:
        ConfigError: If schema validation fails.
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError("Engine config must be a mapping at the top level.")

    validator = Validator(ENGINE_CONFIG_SCHEMA, allow_unknown=False)
    if not validator.validate(raw):
        raise ConfigError(f"Engine config schema validation errors: {validator.errors}")
    doc: Dict[str, Any] = validator.document

    solver_keys = {f.name for f in fields(SolverConfig)}
    solver = SolverConfig(**{k: v for k, v in (doc.get('solver') or {}).items() if k in solver_keys})
    builder = doc.get('builder') or {}
    log = doc.get('logging') or {}
    defaults = EngineConfig()
    return EngineConfig(
        solver=solver,
        default_net_value=builder.get('default_net_value', defaults.default_net_value),
        strict_references=builder.get('strict_references', defaults.strict_references),
        log_level=log.get('level'),
        log_file=log.get('file'),
    )


def configure_logging(config: EngineConfig) -> bool:
    """Install the configured log handlers. Returns False when no level is set."""
    if config.log_level is None:
        return False
    setup_logging(config.log_level, config.log_file)
    return True


def load_engine_config(path: Path) -> EngineConfig:
    """
    Load a YAML engine configuration file, validate its schema, and return an
    EngineConfig.

    Raises:
        ConfigError: If file read fails or schema validation fails.
    """
    try:
        raw = yaml.safe_load(Path(path).read_text())
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to read engine config YAML '{path}': {e}")
    return parse_engine_config(raw)
