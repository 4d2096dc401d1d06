"""
Configuration utilities for factorauth.
Provides environment and file based configuration loading.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


ENV_PREFIX = "FACTORAUTH_"


def load_config_from_env(prefix: str = ENV_PREFIX) -> Dict[str, str]:
    """
    Load configuration from environment variables with given prefix.
    """
    config = {}

    for key, value in os.environ.items():
        if key.startswith(prefix):
            # Remove prefix and convert to lowercase
            config_key = key[len(prefix):].lower()
            config[config_key] = value

    return config


def get_config_value(key: str, default: Any = None,
                     cast_type: Optional[type] = None,
                     env_prefix: str = ENV_PREFIX) -> Any:
    """
    Get configuration value from environment or return default.
    Optionally cast to specified type.
    """
    env_key = f"{env_prefix}{key.upper()}"
    value = os.environ.get(env_key, default)

    if value is None or cast_type is None:
        return value

    try:
        if cast_type == bool:
            # Handle boolean conversion specially
            if isinstance(value, str):
                return value.lower() in ('true', '1', 'yes', 'on')
            return bool(value)
        else:
            return cast_type(value)
    except (ValueError, TypeError):
        return default


def get_bool_config(key: str, default: bool = False,
                    env_prefix: str = ENV_PREFIX) -> bool:
    """Get boolean configuration value."""
    return get_config_value(key, default, bool, env_prefix)


def load_config_file(file_path: str) -> Dict[str, Any]:
    """
    Load configuration from a file (JSON or YAML).

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the format is unsupported or the content cannot be parsed
    """
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    file_ext = Path(file_path).suffix.lower()

    with open(file_path, 'r', encoding='utf-8') as f:
        if file_ext in ['.json']:
            return json.load(f)
        elif file_ext in ['.yaml', '.yml']:
            try:
                return yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {file_path}: {e}") from e
        else:
            raise ValueError(f"Unsupported configuration file format: {file_ext}")
