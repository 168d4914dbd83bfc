"""
Wallet Storage - JSON wallet file for a single profile.

The file holds the pad, the verification key and account metadata; no
key material. Writes go to a temp file that atomically replaces the
target, so an import or overwrite either fully happens or not at all.
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional

from .crypto import Wallet
from .errors import PersistenceError

logger = logging.getLogger(__name__)


# Secure file permissions (Unix only)
SECURE_FILE_MODE = 0o600  # Owner read/write only


def set_secure_permissions(filepath: Path) -> None:
    """
    Set restrictive file permissions on Unix systems.

    No-op on Windows (NTFS uses ACLs, not Unix permissions).
    """
    if os.name == 'posix':
        try:
            os.chmod(filepath, SECURE_FILE_MODE)
        except OSError as e:
            # Best effort - the wallet has already been written
            logger.warning(f"Could not restrict permissions on {filepath}: {e}")


def wallet_exists(filepath: str | Path) -> bool:
    """Check if a wallet file exists."""
    return Path(filepath).exists()


def load_wallet(filepath: str | Path) -> Optional[Wallet]:
    """
    Load the wallet stored at filepath (locked).

    Returns None if there is no wallet file yet.

    Raises: PersistenceError if the file exists but is unreadable,
    not JSON, or not a consistent wallet record.
    """
    filepath = Path(filepath)
    if not filepath.exists():
        return None

    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
        raise PersistenceError(f"Cannot read wallet file {filepath}: {e}") from e

    if not isinstance(data, dict):
        raise PersistenceError(f"Wallet file {filepath} is not a JSON object")

    try:
        wallet = Wallet.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise PersistenceError(f"Corrupt wallet file {filepath}: {e}") from e

    logger.info(f"Loaded wallet with {len(wallet.registry)} account(s) from {filepath}")
    return wallet


def save_wallet(wallet: Wallet, filepath: str | Path) -> None:
    """
    Write the wallet to filepath, replacing any existing wallet.

    Raises: PersistenceError if the file cannot be written.
    """
    filepath = Path(filepath)
    temp_path = filepath.with_suffix('.tmp')

    try:
        filepath.parent.mkdir(parents=True, exist_ok=True)
        with open(temp_path, 'w', encoding='utf-8') as f:
            json.dump(wallet.to_dict(), f, indent=2)
        set_secure_permissions(temp_path)
        temp_path.replace(filepath)
    except OSError as e:
        raise PersistenceError(f"Cannot write wallet file {filepath}: {e}") from e

    logger.info(f"Saved wallet to {filepath}")
