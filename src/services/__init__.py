"""
Services package - Session services for HD Vault.

Contains:
- SigningService: Transfer signing, broadcast and nonce handshake
- WalletSession: Account loop with tagged actions
"""

from .signing import SigningService, PreparedTransfer, BroadcastResult, is_confirmed
from .session import (
    WalletSession,
    Action,
    Continue,
    CreateAccount,
    SwitchAccount,
    Quit,
)

__all__ = [
    "SigningService",
    "PreparedTransfer",
    "BroadcastResult",
    "is_confirmed",
    "WalletSession",
    "Action",
    "Continue",
    "CreateAccount",
    "SwitchAccount",
    "Quit",
]
