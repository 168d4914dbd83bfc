"""
Key Derivation - BIP-32 hierarchical keys on secp256k1.

Provides:
- Path parsing for strings like m/44'/60'/0'/0/3
- Private and public child derivation
- The Ethereum address rule (keccak-256 of the uncompressed point)

Everything here is a pure function of its inputs. Private key bytes are
held in bytearrays so callers can wipe them when a session ends.
"""

import hashlib
import hmac
import re
from dataclasses import dataclass
from typing import Union

from ecdsa import SECP256k1, SigningKey, VerifyingKey
from ecdsa.ellipticcurve import INFINITY
from ecdsa.errors import MalformedPointError
from eth_utils import keccak

from .errors import CryptoDerivationError


# ============================================
# Constants
# ============================================

HARDENED_OFFSET = 0x80000000
MAX_INDEX = 0xFFFFFFFF
CURVE_ORDER = SECP256k1.order

# HMAC key for the master node (BIP-32)
SEED_KEY = b"Bitcoin seed"

# Account-level node, only used to prove the password at login
VERIFICATION_PATH = "m/44'/60'/0'"

# External chain node; accounts are its non-hardened children
ACCOUNT_DERIVING_PATH = "m/44'/60'/0'/0"

_SEGMENT = re.compile(r"^(\d+)(['hH]?)$")


# ============================================
# Extended Keys
# ============================================

@dataclass(eq=False)
class ExtendedPrivateKey:
    """A private key plus chain code."""
    key: bytearray          # 32-byte scalar, big endian
    chain_code: bytes       # 32 bytes
    depth: int = 0
    child_number: int = 0

    def public_key(self) -> bytes:
        """SEC1 compressed public key (33 bytes)."""
        return _public_from_private(bytes(self.key))

    def neuter(self) -> "ExtendedPublicKey":
        """The matching extended public key."""
        return ExtendedPublicKey(
            key=self.public_key(),
            chain_code=self.chain_code,
            depth=self.depth,
            child_number=self.child_number,
        )

    def wipe(self) -> None:
        """Zero the private key in place."""
        for i in range(len(self.key)):
            self.key[i] = 0


@dataclass(frozen=True)
class ExtendedPublicKey:
    """A compressed public key plus chain code."""
    key: bytes              # 33-byte SEC1 compressed point
    chain_code: bytes
    depth: int = 0
    child_number: int = 0

    @property
    def uncompressed(self) -> bytes:
        """SEC1 uncompressed point (65 bytes, 0x04 prefix)."""
        return _verifying_key(self.key).to_string("uncompressed")

    @property
    def address(self) -> str:
        return address_from_public_key(self.key)


ExtendedKey = Union[ExtendedPrivateKey, ExtendedPublicKey]


# ============================================
# Paths
# ============================================

def parse_path(path: str) -> tuple[int, ...]:
    """
    Parse a derivation path into child numbers.

    Hardened segments may be marked with ', h or H and come back with
    HARDENED_OFFSET added. "m" alone is the master node.

    Raises: CryptoDerivationError for anything malformed or out of range.
    """
    parts = path.strip().split("/")
    if parts[0] not in ("m", "M"):
        raise CryptoDerivationError(f"Derivation path must start with 'm': {path!r}")

    indices = []
    for part in parts[1:]:
        match = _SEGMENT.match(part)
        if not match:
            raise CryptoDerivationError(f"Bad path segment {part!r} in {path!r}")
        value = int(match.group(1))
        if value >= HARDENED_OFFSET:
            raise CryptoDerivationError(f"Path index {value} out of range in {path!r}")
        indices.append(value + HARDENED_OFFSET if match.group(2) else value)
    return tuple(indices)


def format_path(indices) -> str:
    """Inverse of parse_path, always using ' for hardened segments."""
    segments = ["m"]
    for index in indices:
        if index >= HARDENED_OFFSET:
            segments.append(f"{index - HARDENED_OFFSET}'")
        else:
            segments.append(str(index))
    return "/".join(segments)


def account_path(index: int) -> str:
    """Full path of the account at the given index."""
    return f"{ACCOUNT_DERIVING_PATH}/{index}"


def index_from_path(path: str) -> int:
    """
    Account index encoded in an account path.

    Raises: CryptoDerivationError if the path is not a direct
    non-hardened child of ACCOUNT_DERIVING_PATH.
    """
    indices = parse_path(path)
    parent = parse_path(ACCOUNT_DERIVING_PATH)
    if len(indices) != len(parent) + 1 or indices[:-1] != parent:
        raise CryptoDerivationError(f"Not an account path: {path!r}")
    if indices[-1] >= HARDENED_OFFSET:
        raise CryptoDerivationError(f"Account paths end in a non-hardened index: {path!r}")
    return indices[-1]


# ============================================
# Derivation
# ============================================

def master_key(seed: bytes) -> ExtendedPrivateKey:
    """Master node for a seed (HMAC-SHA512 keyed with "Bitcoin seed")."""
    digest = hmac.new(SEED_KEY, bytes(seed), hashlib.sha512).digest()
    scalar = int.from_bytes(digest[:32], "big")
    if scalar == 0 or scalar >= CURVE_ORDER:
        raise CryptoDerivationError("Seed produces an invalid master key")
    return ExtendedPrivateKey(key=bytearray(digest[:32]), chain_code=digest[32:])


def derive_child(parent: ExtendedKey, index: int, hardened: bool = False) -> ExtendedKey:
    """
    Derive one child of an extended key.

    Args:
        parent: Private parent gives a private child, public gives public
        index: Child number. With hardened=True it must be below 2^31 and
            the offset is added here; otherwise values >= 2^31 already
            mean hardened.
        hardened: Request a hardened child

    Raises:
        CryptoDerivationError: index out of range, hardened child of a
            public key, or an invalid child (tweak >= n, zero key or the
            point at infinity; BIP-32 says move to the next index).
    """
    if isinstance(index, bool) or not isinstance(index, int):
        raise CryptoDerivationError(f"Child index must be an integer, got {index!r}")
    if hardened:
        if not 0 <= index < HARDENED_OFFSET:
            raise CryptoDerivationError(f"Hardened index {index} out of range")
        index += HARDENED_OFFSET
    elif not 0 <= index <= MAX_INDEX:
        raise CryptoDerivationError(f"Child index {index} out of range")

    if isinstance(parent, ExtendedPublicKey):
        return _derive_public_child(parent, index)
    return _derive_private_child(parent, index)


def derive_path(seed: bytes, path: str) -> tuple[ExtendedPrivateKey, ExtendedPublicKey]:
    """Walk a path from the master node of seed. Returns (xprv, xpub)."""
    key = master_key(seed)
    for index in parse_path(path):
        child = derive_child(key, index)
        key.wipe()
        key = child
    return key, key.neuter()


def _derive_private_child(parent: ExtendedPrivateKey, index: int) -> ExtendedPrivateKey:
    index_bytes = index.to_bytes(4, "big")
    if index >= HARDENED_OFFSET:
        data = b"\x00" + bytes(parent.key) + index_bytes
    else:
        data = parent.public_key() + index_bytes

    digest = hmac.new(parent.chain_code, data, hashlib.sha512).digest()
    tweak = int.from_bytes(digest[:32], "big")
    if tweak >= CURVE_ORDER:
        raise CryptoDerivationError(f"Invalid child at index {index}")

    child = (tweak + int.from_bytes(parent.key, "big")) % CURVE_ORDER
    if child == 0:
        raise CryptoDerivationError(f"Invalid child at index {index}")

    return ExtendedPrivateKey(
        key=bytearray(child.to_bytes(32, "big")),
        chain_code=digest[32:],
        depth=parent.depth + 1,
        child_number=index,
    )


def _derive_public_child(parent: ExtendedPublicKey, index: int) -> ExtendedPublicKey:
    if index >= HARDENED_OFFSET:
        raise CryptoDerivationError("Cannot derive a hardened child from a public key")

    digest = hmac.new(parent.chain_code, parent.key + index.to_bytes(4, "big"), hashlib.sha512).digest()
    tweak = int.from_bytes(digest[:32], "big")
    if tweak >= CURVE_ORDER:
        raise CryptoDerivationError(f"Invalid child at index {index}")

    point = SECP256k1.generator * tweak + _verifying_key(parent.key).pubkey.point
    if point == INFINITY:
        raise CryptoDerivationError(f"Invalid child at index {index}")

    child_key = VerifyingKey.from_public_point(point, curve=SECP256k1)
    return ExtendedPublicKey(
        key=child_key.to_string("compressed"),
        chain_code=digest[32:],
        depth=parent.depth + 1,
        child_number=index,
    )


# ============================================
# Addresses
# ============================================

def address_from_public_key(public_key: bytes) -> str:
    """
    Ethereum address of a public key, as 0x + 40 lowercase hex chars.

    Accepts compressed (33), uncompressed (65) or raw (64) encodings. The
    hash covers the 64-byte point without its 0x04 prefix.
    """
    raw = _verifying_key(public_key).to_string("raw")
    return "0x" + keccak(raw)[-20:].hex()


def _public_from_private(private_key: bytes) -> bytes:
    signing_key = SigningKey.from_string(private_key, curve=SECP256k1)
    return signing_key.get_verifying_key().to_string("compressed")


def _verifying_key(public_key: bytes) -> VerifyingKey:
    if len(public_key) not in (33, 64, 65):
        raise CryptoDerivationError(f"Unexpected public key length: {len(public_key)}")
    try:
        return VerifyingKey.from_string(bytes(public_key), curve=SECP256k1)
    except (MalformedPointError, ValueError) as e:
        raise CryptoDerivationError("Public key is not a point on secp256k1") from e
