"""
Shared utility functions for GalaChain Wallet.

Contains path helpers and common utilities used across packages.
"""

import json
import logging
import os
import sys
from pathlib import Path


# Overrides the data directory (useful for portable installs and tests)
HOME_ENV_VAR = "GALAWALLET_HOME"


def get_app_dir() -> Path:
    """Get the application data directory."""
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        app_dir = Path(override)
    elif getattr(sys, 'frozen', False):
        # Running as compiled
        app_dir = Path(sys.executable).parent / "data"
    else:
        # Running as script
        app_dir = Path(__file__).parent.parent / "data"

    app_dir.mkdir(parents=True, exist_ok=True)
    return app_dir


def get_secrets_dir() -> Path:
    """Get the directory used by the encrypted file secret store."""
    return get_app_dir() / "secrets"


def get_settings_path() -> Path:
    """Get path to settings file."""
    return get_app_dir() / "settings.json"


def get_logs_dir() -> Path:
    """Get the logs directory."""
    logs_dir = get_app_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    return logs_dir


def load_settings() -> dict:
    """Load settings from disk. Missing or unreadable file gives {}."""
    settings_path = get_settings_path()
    if settings_path.exists():
        try:
            with open(settings_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logging.getLogger(__name__).warning(f"Failed to load settings: {e}")
            return {}
        if isinstance(data, dict):
            return data
        logging.getLogger(__name__).warning("Settings file is not a JSON object, ignoring")
    return {}


def get_log_retention_days(settings: dict) -> int:
    """Days of daily log files to keep (0 = console logging only)."""
    value = settings.get("log_retention_days", 0)
    try:
        days = int(value)
    except (TypeError, ValueError):
        logging.getLogger(__name__).warning(f"Ignoring invalid log_retention_days: {value!r}")
        return 0
    return max(days, 0)
