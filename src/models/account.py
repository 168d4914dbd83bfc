"""
Account model.

One derived account of the HD wallet. The persisted form is only
nonce, path and address; the signing key lives in memory for a session.
"""

import re
from dataclasses import dataclass, field
from typing import Optional


MAX_NONCE = 2 ** 64 - 1

_ADDRESS_RE = re.compile(r"^0x[0-9a-f]{40}$")


@dataclass
class Account:
    """A derived account and its transaction counter."""
    index: int                        # Position in the wallet, never reused
    path: str                         # Full derivation path, e.g. m/44'/60'/0'/0/2
    address: str                      # 0x + 40 lowercase hex chars
    nonce: int = 0                    # Confirmed transactions sent from this account
    private_key: Optional[bytearray] = field(default=None, repr=False, compare=False)

    @property
    def has_signing_key(self) -> bool:
        return self.private_key is not None

    def increment_nonce(self) -> None:
        """Record one confirmed broadcast."""
        if self.nonce >= MAX_NONCE:
            raise ValueError("Nonce would overflow 64 bits")
        self.nonce += 1

    def clear_private_key(self) -> None:
        """Zero and drop the cached signing key."""
        if self.private_key is not None:
            for i in range(len(self.private_key)):
                self.private_key[i] = 0
            self.private_key = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON storage. Never includes the key."""
        return {
            "nonce": self.nonce,
            "path": self.path,
            "address": self.address,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Account":
        """Create from dictionary with input validation."""
        if not isinstance(data, dict):
            raise ValueError(f"Account entry must be an object, got {type(data).__name__}")

        nonce = data.get("nonce", 0)
        if isinstance(nonce, bool) or not isinstance(nonce, int) or not 0 <= nonce <= MAX_NONCE:
            raise ValueError(f"nonce must be a 64-bit non-negative integer, got {nonce!r}")

        path = data.get("path")
        if not isinstance(path, str) or "/" not in path:
            raise ValueError(f"Invalid account path: {path!r}")
        last = path.rsplit("/", 1)[1]
        if not (last.isascii() and last.isdigit()):
            raise ValueError(f"Account path must end in a plain index: {path!r}")

        address = data.get("address")
        if not isinstance(address, str) or not _ADDRESS_RE.match(address.lower()):
            raise ValueError(f"Invalid account address: {address!r}")

        return cls(index=int(last), path=path, address=address.lower(), nonce=nonce)
