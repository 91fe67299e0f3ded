import os
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Constants
CONFIG_FILE = ".config"
ENV_PREFIX = "COMPETENCY_"

DEFAULTS = {
    'api_base_url': '/api',
    'request_timeout': '30',
    'log_level': 'INFO',
}


@dataclass(frozen=True)
class Settings:
    api_base_url: str
    request_timeout: float
    log_level: str


def read_config(config_path=CONFIG_FILE):
    """Read key=value pairs from the config file (keys lower-cased)"""
    if not os.path.exists(config_path):
        return {}

    values = {}
    try:
        with open(config_path, 'r') as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith('#'):
                    continue
                if '=' in line:
                    key, value = line.split('=', 1)
                    key = key.strip().lower()
                    value = value.strip().strip('"').strip("'")
                    values[key] = value
    except OSError as e:
        logger.warning(f"Could not read config file {config_path}: {e}")
        return {}
    return values


def get_config(key, config_path=CONFIG_FILE):
    """
    Resolve a single setting.
    Environment (COMPETENCY_<KEY>) wins over the config file, which wins over defaults.
    """
    env_value = os.environ.get(f"{ENV_PREFIX}{key.upper()}")
    if env_value:
        return env_value
    file_value = read_config(config_path).get(key)
    if file_value:
        return file_value
    return DEFAULTS.get(key)


def get_settings(config_path=CONFIG_FILE) -> Settings:
    """Build the Settings object used by the API client and app entry point"""
    base_url = (get_config('api_base_url', config_path) or DEFAULTS['api_base_url']).rstrip('/')

    raw_timeout = get_config('request_timeout', config_path)
    try:
        timeout = float(raw_timeout)
    except (TypeError, ValueError):
        logger.warning(f"Invalid request_timeout '{raw_timeout}', using default")
        timeout = float(DEFAULTS['request_timeout'])

    log_level = (get_config('log_level', config_path) or DEFAULTS['log_level']).upper()

    return Settings(api_base_url=base_url, request_timeout=timeout, log_level=log_level)
