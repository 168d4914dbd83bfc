"""
Models package - Data models for HD Vault.

Contains:
- Account: A derived account (persisted without its key)
- TransferTransaction: An unsigned value transfer
"""

from .account import Account, MAX_NONCE
from .transaction import TransferTransaction

__all__ = [
    "Account",
    "MAX_NONCE",
    "TransferTransaction",
]
