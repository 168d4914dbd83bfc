"""
Seed Vault - Password mask for the root seed.

The stored pad is seed XOR keccak-512(password). This is an
unauthenticated mask, not encryption: any password decodes to *some*
seed. The only way a wrong password is detected is that the recovered
seed does not reproduce the stored verification key.

Known limitation: a tampered pad and a wrong password are
indistinguishable, and the mask adds no work factor against guessing.
"""

import hmac
from contextlib import contextmanager
from typing import Iterator

from Crypto.Hash import keccak

from .derivation import VERIFICATION_PATH, derive_path


# keccak-512 output length; seeds longer than this cannot be masked
PASSWORD_HASH_LEN = 64


def password_hash(password: str) -> bytes:
    """keccak-512 of the UTF-8 password."""
    digest = keccak.new(digest_bits=512)
    digest.update(password.encode("utf-8"))
    return digest.digest()


def _xor(data: bytes, password: str) -> bytearray:
    if len(data) > PASSWORD_HASH_LEN:
        raise ValueError(f"Seed longer than {PASSWORD_HASH_LEN} bytes cannot be masked")
    mask = password_hash(password)
    return bytearray(a ^ b for a, b in zip(data, mask))


def encode(seed: bytes, password: str) -> bytes:
    """Mask a seed with the password hash (truncated to the seed length)."""
    return bytes(_xor(seed, password))


def decode(pad: bytes, password: str) -> bytearray:
    """
    Unmask a pad. Always succeeds; the result is only the right seed if
    the password is right. Returned as a bytearray so it can be wiped.
    """
    return _xor(pad, password)


def verification_key(seed: bytes) -> bytes:
    """Compressed public key at VERIFICATION_PATH."""
    xprv, xpub = derive_path(seed, VERIFICATION_PATH)
    xprv.wipe()
    return xpub.key


def verify(candidate_seed: bytes, expected_verification_key: bytes) -> bool:
    """True if candidate_seed reproduces the stored verification key."""
    return hmac.compare_digest(verification_key(candidate_seed), bytes(expected_verification_key))


def wipe(buffer: bytearray) -> None:
    """Zero a buffer in place."""
    for i in range(len(buffer)):
        buffer[i] = 0


@contextmanager
def recovered_seed(pad: bytes, password: str) -> Iterator[bytearray]:
    """
    Decode a pad for the duration of a with-block.

    The candidate seed is zeroed on every exit path, including errors.
    """
    seed = decode(pad, password)
    try:
        yield seed
    finally:
        wipe(seed)
