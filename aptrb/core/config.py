"""
Central configuration for aptrb paths and settings.

Sources, highest priority first:
    1. Command line options (--file, --config)
    2. Config file: $XDG_CONFIG_HOME/aptrb/aptrb.conf (~/.config/aptrb/aptrb.conf)
    3. Built-in defaults

Default transaction log:
    $XDG_DATA_HOME/aptrb/transactions.toml  (~/.local/share/aptrb/transactions.toml)

aptrb.conf format (optional, one setting per line):
    file=/path/to/transactions.toml
    package_manager=apt-get
    timeout=600
    # Comments start with #
"""

import logging
import os
from pathlib import Path
from typing import Optional

from .command import DEFAULT_PROGRAM

logger = logging.getLogger(__name__)

APP_NAME = "aptrb"
CONFIG_FILE_NAME = "aptrb.conf"
TRANSACTIONS_FILE_NAME = "transactions.toml"


def get_data_dir() -> Path:
    """Per-user data directory for aptrb."""
    base = os.environ.get('XDG_DATA_HOME') or os.path.expanduser('~/.local/share')
    return Path(base) / APP_NAME


def get_config_dir() -> Path:
    """Per-user config directory for aptrb."""
    base = os.environ.get('XDG_CONFIG_HOME') or os.path.expanduser('~/.config')
    return Path(base) / APP_NAME


def get_default_log_path() -> Path:
    """Default transaction log path.

    Returns:
        Path: <user-data-dir>/aptrb/transactions.toml
    """
    return get_data_dir() / TRANSACTIONS_FILE_NAME


def get_default_config_path() -> Path:
    return get_config_dir() / CONFIG_FILE_NAME


def _read_config_file(config_path: Path) -> Optional[dict]:
    """Read a key=value config file.

    Returns:
        Dict with config values, or None if file doesn't exist or can't be read
    """
    if not config_path.exists():
        return None

    config = {}
    try:
        with open(config_path) as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith('#'):
                    continue
                if '=' in line:
                    key, value = line.split('=', 1)
                    config[key.strip()] = value.strip()
                else:
                    logger.warning(f"{config_path}: ignoring line without '=': {line}")
    except OSError as e:
        logger.warning(f"Cannot read {config_path}: {e}")
        return None

    return config


def load_config(config_path: Path = None) -> dict:
    """Load settings from the config file, falling back to defaults.

    Args:
        config_path: Config file to read (default: per-user aptrb.conf)

    Returns:
        Dict with 'log_path', 'program', 'timeout', 'config_path',
        'default_log' (True when log_path is the built-in default)
    """
    if config_path is None:
        config_path = get_default_config_path()
    config_path = Path(config_path).expanduser()

    settings = {
        'log_path': get_default_log_path(),
        'program': DEFAULT_PROGRAM,
        'timeout': None,
        'config_path': config_path,
        'default_log': True,
    }

    values = _read_config_file(config_path)
    if values is None:
        logger.debug(f"No config file at {config_path}, using defaults")
        return settings

    if values.get('file'):
        settings['log_path'] = Path(values['file']).expanduser()
        settings['default_log'] = False
    if values.get('package_manager'):
        settings['program'] = values['package_manager']
    if values.get('timeout'):
        try:
            timeout = float(values['timeout'])
        except ValueError:
            logger.warning(f"{config_path}: invalid timeout '{values['timeout']}', ignoring")
        else:
            settings['timeout'] = timeout if timeout > 0 else None

    unknown = set(values) - {'file', 'package_manager', 'timeout'}
    for key in sorted(unknown):
        logger.warning(f"{config_path}: unknown setting '{key}'")

    return settings


def resolve_log_path(settings: dict, override: str = None) -> Path:
    """Log path to use: a command line override replaces the configured one."""
    if override:
        return Path(override).expanduser()
    return settings['log_path']
