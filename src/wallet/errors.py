"""
Wallet errors.

Every failure the wallet core reports derives from WalletError, so the
console layer can catch one type and print a message. Input and derivation
errors are also ValueErrors, matching how the rest of the code validates.
"""


class WalletError(Exception):
    """Base class for wallet failures."""


class InputFormatError(WalletError, ValueError):
    """User supplied text could not be parsed. Nothing was changed."""


class MnemonicFormatError(InputFormatError):
    """Recovery phrase is not a valid BIP-39 mnemonic."""


class AddressFormatError(InputFormatError):
    """Recipient does not decode to exactly 20 bytes."""


class AmountFormatError(InputFormatError):
    """Value or gas field is not a non-negative integer in range."""


class CryptoDerivationError(WalletError, ValueError):
    """A key could not be derived for the requested path or index."""


class AuthenticationMismatch(WalletError):
    """
    The password-recovered seed does not reproduce the verification key.

    A wrong password and a corrupted pad look exactly the same.
    """


class WalletLockedError(WalletError):
    """The operation needs the deriving key but the wallet is locked."""


class PersistenceError(WalletError):
    """Wallet file exists but cannot be read, parsed or written."""


class NetworkError(WalletError):
    """The ledger RPC endpoint failed or returned something unusable."""
