# groupie_tracker/utils/config_loader.py

import copy
import json
import os
from typing import Dict, Any, Optional

from .errors import GroupieTrackerError


class ConfigError(GroupieTrackerError):
    """Custom exception for configuration errors"""

    def __init__(self, message: str = "Invalid or missing configuration", provider_name: Optional[str] = None):
        super().__init__(message=message, provider_name=provider_name)


PLACEHOLDER_VALUES = {
    'your_client_id_here',
    'your_client_secret_here',
    'your-spotify-client-id',
    'your-spotify-client-secret',
    '',
}

DEFAULT_CONFIG: Dict[str, Dict[str, Any]] = {
    'spotify': {
        'client_id': 'your_client_id_here',
        'client_secret': 'your_client_secret_here',
        'market': 'FR',
        'request_timeout': 10,
        'token_safety_margin': 60,
        'max_retries': 2,
        'max_retry_wait': 5,
    },
    'catalog': {
        'cache_ttl': 300,
        'per_query_limit': 20,
        'target_total': 150,
        'min_threshold': 50,
        'floor': 20,
        'show_progress': False,
        'featured_artist': ['GIMS', 'Gims', 'Maître Gims', 'Maitre Gims'],
    },
    'server': {
        'host': '127.0.0.1',
        'port': 8000,
        'debug': False,
    },
}

# (section, field) -> environment variable
ENV_OVERRIDES = {
    ('spotify', 'client_id'): 'SPOTIFY_CLIENT_ID',
    ('spotify', 'client_secret'): 'SPOTIFY_CLIENT_SECRET',
    ('server', 'host'): 'GROUPIE_HOST',
    ('server', 'port'): 'GROUPIE_PORT',
    ('server', 'debug'): 'GROUPIE_DEBUG',
    ('catalog', 'cache_ttl'): 'GROUPIE_CACHE_TTL',
}

NUMERIC_FIELDS = {
    'spotify': ['request_timeout', 'token_safety_margin', 'max_retries', 'max_retry_wait'],
    'catalog': ['cache_ttl', 'per_query_limit', 'target_total', 'min_threshold', 'floor'],
    'server': ['port'],
}


def default_config_path() -> str:
    return os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))),
                        'config', 'config.json')


def is_placeholder(value: Optional[str]) -> bool:
    """True when a credential is unset or still holds a documented placeholder"""
    if value is None:
        return True
    return value.strip() in PLACEHOLDER_VALUES


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in {'1', 'true', 'yes', 'y', 'on'}


def load_config(path: Optional[str] = None, environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """
    Load and validate the configuration.

    Defaults are overlaid with config/config.json (when it exists) and then
    with environment variables.

    Returns: Dict containing configuration
    Raises: ConfigError if the configuration file or a value is invalid
    """
    config_path = path or default_config_path()
    environ = os.environ if environ is None else environ
    config = copy.deepcopy(DEFAULT_CONFIG)

    if os.path.exists(config_path):
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                file_config = json.load(f)
        except json.JSONDecodeError:
            raise ConfigError(
                "\nInvalid JSON in configuration file!"
                "\nPlease check the syntax of " + config_path
            )
        if not isinstance(file_config, dict):
            raise ConfigError(f"\nConfiguration file {config_path} must contain a JSON object")

        for section, values in file_config.items():
            if section not in config:
                raise ConfigError(f"\nUnknown '{section}' section in config.json")
            if not isinstance(values, dict):
                raise ConfigError(f"\nSection '{section}' in config.json must be an object")
            config[section].update(values)
    elif path is not None:
        raise ConfigError(
            "\nConfiguration file not found!"
            "\nPath should be: " + config_path
        )

    for (section, field), env_name in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value is None or value == '':
            continue
        if field == 'debug':
            config[section][field] = _parse_bool(value)
        else:
            config[section][field] = value

    # Validate numeric fields
    for section, fields in NUMERIC_FIELDS.items():
        for field in fields:
            raw = config[section][field]
            if isinstance(raw, bool):
                raise ConfigError(f"\n{section}.{field} must be a number, got {raw!r}")
            try:
                number = int(raw)
            except (TypeError, ValueError):
                raise ConfigError(f"\n{section}.{field} must be a number, got {raw!r}")
            if number < 0:
                raise ConfigError(f"\n{section}.{field} must not be negative")
            config[section][field] = number

    variants = config['catalog']['featured_artist']
    if isinstance(variants, str):
        config['catalog']['featured_artist'] = [variants]
    elif not isinstance(variants, list) or not all(isinstance(v, str) for v in variants):
        raise ConfigError("\ncatalog.featured_artist must be a name or a list of names")

    return config
