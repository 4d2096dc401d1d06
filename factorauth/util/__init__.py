"""
Utility package providing configuration helpers for factorauth.
"""

from .config import (
    ENV_PREFIX, load_config_from_env, get_config_value, get_bool_config,
    load_config_file
)

__all__ = [
    'ENV_PREFIX', 'load_config_from_env', 'get_config_value', 'get_bool_config',
    'load_config_file'
]
