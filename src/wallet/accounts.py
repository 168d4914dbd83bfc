"""
Account Registry - The ordered accounts of one wallet.

Accounts are non-hardened children of the deriving key
(m/44'/60'/0'/0/0, /1, /2, ...). Indices are assigned sequentially and
never reused. Signing keys are derived on first use and kept only until
clear_secrets().
"""

import logging
from typing import Optional

from models import Account

from .derivation import (
    ExtendedPrivateKey,
    account_path,
    address_from_public_key,
    derive_child,
)
from .errors import PersistenceError

logger = logging.getLogger(__name__)


class AccountRegistry:
    """Ordered accounts plus the active-account pointer."""

    def __init__(self, accounts: Optional[list[Account]] = None):
        self._accounts: list[Account] = list(accounts or [])
        self._active_index = 0

    def __len__(self) -> int:
        return len(self._accounts)

    @property
    def accounts(self) -> list[Account]:
        """All accounts, in index order."""
        return self._accounts.copy()

    @property
    def active_index(self) -> int:
        return self._active_index

    @property
    def active_account(self) -> Account:
        """The account the session is acting on."""
        return self.get_account(self._active_index)

    def create_account(self, deriving_key: ExtendedPrivateKey) -> Account:
        """
        Derive and append the account at the next index.

        Only the public half is computed here; the private key is left
        for materialize_signing_key.
        """
        index = len(self._accounts)
        child = derive_child(deriving_key.neuter(), index)
        account = Account(
            index=index,
            path=account_path(index),
            address=address_from_public_key(child.key),
        )
        self._accounts.append(account)
        logger.info(f"Created account {index}: {account.address}")
        return account

    def get_account(self, index: int) -> Account:
        """
        Account at index.

        Raises: IndexError if there is no such account.
        """
        if not 0 <= index < len(self._accounts):
            raise IndexError(f"No account with index {index}")
        return self._accounts[index]

    def switch_active(self, index: int) -> Account:
        """
        Make the account at index the active one.

        Raises: IndexError if there is no such account.
        """
        account = self.get_account(index)
        self._active_index = index
        logger.info(f"Switched to account {index}: {account.address}")
        return account

    def list_accounts(self) -> list[tuple[int, str]]:
        """(index, address) pairs for display."""
        return [(a.index, a.address) for a in self._accounts]

    def materialize_signing_key(self, account: Account,
                                deriving_key: ExtendedPrivateKey) -> bytearray:
        """
        The account's private key, derived on first use.

        The key is cached on the account for the rest of the session.
        """
        if account.private_key is None:
            child = derive_child(deriving_key, account.index)
            account.private_key = child.key
        return account.private_key

    def verify_addresses(self, deriving_key: ExtendedPrivateKey) -> None:
        """
        Re-derive every stored address from the deriving key.

        Raises: PersistenceError if a stored address does not belong to
        the key at its index.
        """
        public_key = deriving_key.neuter()
        for account in self._accounts:
            child = derive_child(public_key, account.index)
            if address_from_public_key(child.key) != account.address:
                raise PersistenceError(
                    f"Stored address {account.address} does not match the key of account {account.index}"
                )

    def clear_secrets(self) -> None:
        """Wipe every cached signing key."""
        for account in self._accounts:
            account.clear_private_key()

    # ============================================
    # Persistence
    # ============================================

    def to_dict(self) -> dict:
        return {"accounts": [a.to_dict() for a in self._accounts]}

    @classmethod
    def from_dict(cls, data: dict) -> "AccountRegistry":
        """
        Rebuild from the persisted form.

        Raises: ValueError if accounts is not a list of objects, indices are
        not contiguous from 0 or a path is not the canonical path for its
        index.
        """
        items = data.get("accounts", [])
        if not isinstance(items, list):
            raise ValueError(f"accounts must be a list, got {type(items).__name__}")
        accounts = [Account.from_dict(item) for item in items]
        for position, account in enumerate(accounts):
            if account.index != position:
                raise ValueError(
                    f"Account indices must be contiguous from 0: found {account.index} at position {position}"
                )
            if account.path != account_path(position):
                raise ValueError(f"Unexpected path for account {position}: {account.path}")
        return cls(accounts)
