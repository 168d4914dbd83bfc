"""
Wallet package - Key management for HD Vault.

Contains:
- Wallet: HD wallet with password-masked seed and lock/unlock lifecycle
- AccountRegistry: Ordered derived accounts
- Derivation: BIP-32 keys and Ethereum addresses
- Vault: Seed pad encode/decode/verify
- Signer: Transfer building and EIP-155 signing
- Storage: JSON wallet file
- Errors: WalletError and its subclasses
"""

from .errors import (
    WalletError,
    InputFormatError,
    MnemonicFormatError,
    AddressFormatError,
    AmountFormatError,
    CryptoDerivationError,
    AuthenticationMismatch,
    WalletLockedError,
    PersistenceError,
    NetworkError,
)
from .derivation import (
    ExtendedPrivateKey,
    ExtendedPublicKey,
    VERIFICATION_PATH,
    ACCOUNT_DERIVING_PATH,
    account_path,
    address_from_public_key,
    derive_child,
    derive_path,
    parse_path,
)
from .accounts import AccountRegistry
from .signer import (
    TransactionSigner,
    DEFAULT_GAS_LIMIT,
    build_transaction,
    parse_amount,
    parse_ether_amount,
    parse_recipient,
    sign,
)
from .crypto import Wallet, normalize_mnemonic
from .storage import load_wallet, save_wallet, wallet_exists

__all__ = [
    # Errors
    "WalletError",
    "InputFormatError",
    "MnemonicFormatError",
    "AddressFormatError",
    "AmountFormatError",
    "CryptoDerivationError",
    "AuthenticationMismatch",
    "WalletLockedError",
    "PersistenceError",
    "NetworkError",
    # Derivation
    "ExtendedPrivateKey",
    "ExtendedPublicKey",
    "VERIFICATION_PATH",
    "ACCOUNT_DERIVING_PATH",
    "account_path",
    "address_from_public_key",
    "derive_child",
    "derive_path",
    "parse_path",
    # Accounts
    "AccountRegistry",
    # Signing
    "TransactionSigner",
    "DEFAULT_GAS_LIMIT",
    "build_transaction",
    "parse_amount",
    "parse_ether_amount",
    "parse_recipient",
    "sign",
    # Wallet
    "Wallet",
    "normalize_mnemonic",
    "load_wallet",
    "save_wallet",
    "wallet_exists",
]
