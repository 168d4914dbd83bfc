"""
Wallet Crypto - The HD wallet and its lock/unlock lifecycle.

- BIP-39 recovery phrase (12 or 24 words, empty BIP-39 passphrase)
- BIP-32/44 derivation on m/44'/60'/0'/0/{index}
- Password-masked seed pad plus a verification key for login

Only the pad, the verification key and the account metadata are ever
written to disk. The deriving key and account keys exist in memory
between a successful login and lock().
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from mnemonic import Mnemonic

from models import Account

from . import vault
from .accounts import AccountRegistry
from .derivation import ACCOUNT_DERIVING_PATH, ExtendedPrivateKey, derive_path
from .errors import AuthenticationMismatch, MnemonicFormatError, PersistenceError, WalletLockedError

logger = logging.getLogger(__name__)


WALLET_FORMAT_VERSION = 1

# Words -> entropy bits
WORD_COUNTS = {12: 128, 24: 256}

VERIFICATION_KEY_LEN = 33


def normalize_mnemonic(text: str) -> str:
    """
    Canonical form of a recovery phrase: lowercase, single spaces.

    Raises: MnemonicFormatError if the phrase is not valid BIP-39.
    """
    phrase = " ".join(text.lower().split())
    if not Mnemonic("english").check(phrase):
        raise MnemonicFormatError("Invalid recovery phrase")
    return phrase


class Wallet:
    """
    Single-profile HD wallet.

    Usage:
        # Create new wallet (unlocked, first account derived)
        wallet = Wallet.create("my-password")
        phrase = wallet.seed_phrase  # Show once, then lock()

        # Log back in to a loaded wallet
        with wallet.unlocked("my-password"):
            account = wallet.create_account()
            key = wallet.signing_key(account)
    """

    def __init__(self, pad: bytes, verification_key: bytes,
                 registry: Optional[AccountRegistry] = None):
        self.pad = bytes(pad)
        self.verification_key = bytes(verification_key)
        self.registry = registry if registry is not None else AccountRegistry()
        self._deriving_key: Optional[ExtendedPrivateKey] = None
        self._seed_phrase: Optional[str] = None

    @property
    def seed_phrase(self) -> Optional[str]:
        """The recovery phrase (only after create/restore, until lock)."""
        return self._seed_phrase

    @property
    def is_unlocked(self) -> bool:
        return self._deriving_key is not None

    @property
    def accounts(self) -> list[Account]:
        return self.registry.accounts

    @property
    def active_account(self) -> Account:
        return self.registry.active_account

    # ============================================
    # Creation
    # ============================================

    @classmethod
    def create(cls, password: str, word_count: int = 12) -> "Wallet":
        """
        Create a new wallet with a fresh recovery phrase.

        Args:
            password: Password masking the seed
            word_count: 12 (128-bit) or 24 (256-bit) word phrase
        """
        if word_count not in WORD_COUNTS:
            raise ValueError("word_count must be 12 or 24")

        seed_phrase = Mnemonic("english").generate(strength=WORD_COUNTS[word_count])
        wallet = cls._from_phrase(seed_phrase, password)
        logger.info(f"Created new wallet, first account {wallet.accounts[0].address}")
        return wallet

    @classmethod
    def restore(cls, seed_phrase: str, password: str) -> "Wallet":
        """
        Rebuild a wallet from a recovery phrase under a new password.

        Raises: MnemonicFormatError if the phrase is not valid BIP-39.
        """
        wallet = cls._from_phrase(normalize_mnemonic(seed_phrase), password)
        logger.info(f"Restored wallet, first account {wallet.accounts[0].address}")
        return wallet

    @classmethod
    def _from_phrase(cls, seed_phrase: str, password: str) -> "Wallet":
        seed = bytearray(Mnemonic.to_seed(seed_phrase, passphrase=""))
        try:
            wallet = cls.from_seed(seed, password)
        finally:
            vault.wipe(seed)
        wallet._seed_phrase = seed_phrase
        return wallet

    @classmethod
    def from_seed(cls, seed: bytes, password: str) -> "Wallet":
        """
        Fresh wallet for a raw seed: pad, verification key and account 0.

        The returned wallet is unlocked.
        """
        wallet = cls(vault.encode(seed, password), vault.verification_key(seed))
        wallet._deriving_key, _ = derive_path(seed, ACCOUNT_DERIVING_PATH)
        wallet.registry.create_account(wallet._deriving_key)
        return wallet

    # ============================================
    # Lock / Unlock
    # ============================================

    def login(self, password: str) -> None:
        """
        Unlock with the password.

        Raises:
            AuthenticationMismatch: the recovered seed does not reproduce
                the verification key
            PersistenceError: a stored account address does not match the
                key derived for it
        Nothing changes in either case.
        """
        with vault.recovered_seed(self.pad, password) as seed:
            if not vault.verify(seed, self.verification_key):
                logger.warning("Login failed: verification key mismatch")
                raise AuthenticationMismatch("Incorrect password")
            deriving_key, _ = derive_path(seed, ACCOUNT_DERIVING_PATH)

        try:
            self.registry.verify_addresses(deriving_key)
        except PersistenceError as e:
            deriving_key.wipe()
            logger.error(f"Login failed: {e}")
            raise

        if self._deriving_key is not None:
            self._deriving_key.wipe()
        self._deriving_key = deriving_key
        logger.info("Wallet unlocked")

    def lock(self) -> None:
        """
        Lock the wallet, clearing sensitive data from memory.

        After locking, the wallet cannot derive or sign until login().
        """
        if getattr(self, "_deriving_key", None) is not None:
            self._deriving_key.wipe()
            self._deriving_key = None
        if hasattr(self, "registry"):
            self.registry.clear_secrets()
        self._seed_phrase = None

    @contextmanager
    def session(self) -> Iterator["Wallet"]:
        """Yield this wallet and lock it on every exit path."""
        try:
            yield self
        finally:
            self.lock()

    @contextmanager
    def unlocked(self, password: str) -> Iterator["Wallet"]:
        """Log in, yield, then lock on every exit path."""
        self.login(password)
        with self.session():
            yield self

    def _require_unlocked(self) -> ExtendedPrivateKey:
        if self._deriving_key is None:
            raise WalletLockedError("Wallet is locked")
        return self._deriving_key

    # ============================================
    # Accounts
    # ============================================

    def create_account(self) -> Account:
        """Derive the account at the next index."""
        return self.registry.create_account(self._require_unlocked())

    def switch_account(self, index: int) -> Account:
        return self.registry.switch_active(index)

    def signing_key(self, account: Optional[Account] = None) -> bytearray:
        """Private key for account (default: the active one), derived on first use."""
        account = account or self.active_account
        return self.registry.materialize_signing_key(account, self._require_unlocked())

    # ============================================
    # Persistence
    # ============================================

    def to_dict(self) -> dict:
        """Persisted form. Contains no secrets."""
        return {
            "version": WALLET_FORMAT_VERSION,
            "pad": self.pad.hex(),
            "verification_key": self.verification_key.hex(),
            **self.registry.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Wallet":
        """Create from dictionary with input validation. Locked."""
        version = data.get("version")
        if version != WALLET_FORMAT_VERSION:
            raise ValueError(f"Unsupported wallet version: {version}")

        pad = bytes.fromhex(data["pad"])
        if not 0 < len(pad) <= vault.PASSWORD_HASH_LEN:
            raise ValueError(f"Invalid pad length: {len(pad)}")

        verification_key = bytes.fromhex(data["verification_key"])
        if len(verification_key) != VERIFICATION_KEY_LEN:
            raise ValueError(f"Invalid verification key length: {len(verification_key)}")

        registry = AccountRegistry.from_dict(data)
        if len(registry) == 0:
            raise ValueError("Wallet has no accounts")
        return cls(pad, verification_key, registry)

    def __del__(self):
        """Attempt to clear sensitive data on destruction."""
        self.lock()
