"""
Shared utility functions for HD Vault.

Contains path helpers and the settings file used across packages.
"""

import json
import logging
import os
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


# Overrides the data directory (tests, portable installs)
APP_DIR_ENV = "HDVAULT_HOME"

DEFAULT_SETTINGS = {
    "network": 11155111,          # Sepolia
    "custom_rpcs": {},            # chain_id (as string) -> RPC URL
    "wallet_path": "",            # Empty = default wallet path
    "gas_limit": 21000,
    "log_level": "INFO",
    "log_retention_days": 7,      # 0 = no log files
}


def get_app_dir() -> Path:
    """Get the application data directory."""
    override = os.environ.get(APP_DIR_ENV)
    if override:
        app_dir = Path(override).expanduser()
    elif getattr(sys, 'frozen', False):
        # Running as compiled
        app_dir = Path(sys.executable).parent / "data"
    else:
        # Running as script
        app_dir = Path(__file__).parent.parent / "data"

    app_dir.mkdir(parents=True, exist_ok=True)
    return app_dir


def get_default_wallet_path() -> Path:
    """Get path to the wallet file."""
    return get_app_dir() / "wallet.json"


def get_settings_path() -> Path:
    """Get path to settings file."""
    return get_app_dir() / "settings.json"


def get_logs_dir() -> Path:
    """Get the logs directory."""
    logs_dir = get_app_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    return logs_dir


def load_settings(settings_path: Path = None) -> dict:
    """
    Load settings from disk, merged over DEFAULT_SETTINGS.

    A missing or unreadable file gives the defaults.
    """
    settings_path = settings_path or get_settings_path()
    settings = dict(DEFAULT_SETTINGS)
    if settings_path.exists():
        try:
            with open(settings_path, 'r') as f:
                stored = json.load(f)
            if isinstance(stored, dict):
                settings.update(stored)
            else:
                logger.warning(f"Ignoring settings file {settings_path}: not a JSON object")
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to load settings: {e}")
    return settings


def save_settings(settings: dict, settings_path: Path = None) -> None:
    """Save settings to disk."""
    settings_path = settings_path or get_settings_path()
    try:
        with open(settings_path, 'w') as f:
            json.dump(settings, f, indent=2)
    except OSError as e:
        logger.error(f"Failed to save settings: {e}")


def get_wallet_path(settings: dict) -> Path:
    """Wallet file from settings, or the default location."""
    configured = settings.get("wallet_path")
    if configured:
        return Path(configured).expanduser()
    return get_default_wallet_path()
