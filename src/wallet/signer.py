"""
Transaction Signer - Builds and signs legacy value transfers.

Signatures are chain-bound per EIP-155 and serialized as RLP, ready for
eth_sendRawTransaction. Parsing helpers turn user text into the exact
integers and bytes the transaction needs.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Union

from eth_account import Account
from eth_utils import is_checksum_address, to_wei

from models import MAX_NONCE, TransferTransaction

from .errors import AddressFormatError, AmountFormatError


MAX_U64 = MAX_NONCE
MAX_U128 = 2 ** 128 - 1

# Plain ETH transfer
DEFAULT_GAS_LIMIT = 21000

# 1 ETH = 10^18 wei
ETHER_DECIMALS = 18

_HEX_RE = re.compile(r"^(?:[0-9a-fA-F]{2})*\Z")


# ============================================
# Parsing
# ============================================

def parse_recipient(recipient: Union[str, bytes]) -> bytes:
    """
    Decode a recipient to 20 bytes.

    Accepts raw bytes or hex text with or without 0x. Mixed-case text
    must carry a valid EIP-55 checksum.

    Raises: AddressFormatError
    """
    if isinstance(recipient, (bytes, bytearray)):
        if len(recipient) != 20:
            raise AddressFormatError(f"Recipient must be 20 bytes, got {len(recipient)}")
        return bytes(recipient)

    if not isinstance(recipient, str):
        raise AddressFormatError(f"Unsupported recipient type: {type(recipient).__name__}")

    text = recipient.strip()
    if text.startswith("0x") or text.startswith("0X"):
        text = text[2:]

    if not _HEX_RE.match(text):
        raise AddressFormatError(f"Recipient is not valid hex: {recipient!r}")
    if len(text) != 40:
        raise AddressFormatError(f"Recipient must be 20 bytes, got {len(text) // 2}")
    raw = bytes.fromhex(text)

    if text != text.lower() and text != text.upper():
        if not is_checksum_address("0x" + text):
            raise AddressFormatError(f"Recipient checksum is invalid: {recipient!r}")

    return raw


def parse_amount(value: Union[int, str], field: str = "value", maximum: int = MAX_U128) -> int:
    """
    Parse a non-negative integer from an int or a decimal string.

    Raises: AmountFormatError
    """
    if isinstance(value, bool):
        raise AmountFormatError(f"{field} must be an integer, got {value!r}")
    if isinstance(value, str):
        text = value.strip()
        if not (text.isascii() and text.isdigit()):
            raise AmountFormatError(f"{field} must be a non-negative integer, got {value!r}")
        value = int(text)
    if not isinstance(value, int):
        raise AmountFormatError(f"{field} must be an integer, got {value!r}")
    if not 0 <= value <= maximum:
        raise AmountFormatError(f"{field} out of range: {value}")
    return value


def parse_ether_amount(text: str) -> int:
    """
    Convert a decimal ether amount such as "0.015" to wei.

    Raises: AmountFormatError
    """
    try:
        amount = Decimal(text.strip())
    except (InvalidOperation, AttributeError) as e:
        raise AmountFormatError(f"Not a number: {text!r}") from e

    if not amount.is_finite() or amount < 0:
        raise AmountFormatError(f"Amount must be a non-negative number, got {text!r}")
    if amount.as_tuple().exponent < -ETHER_DECIMALS:
        raise AmountFormatError(f"Amount has more than {ETHER_DECIMALS} decimal places: {text!r}")

    try:
        wei = to_wei(amount, "ether")
    except ValueError as e:
        raise AmountFormatError(f"Amount out of range: {text!r}") from e
    return parse_amount(wei)


# ============================================
# Build & Sign
# ============================================

def build_transaction(
    nonce: int,
    recipient: Union[str, bytes],
    value_wei: Union[int, str],
    gas_price_wei: Union[int, str],
    gas_limit: Union[int, str] = DEFAULT_GAS_LIMIT,
    data: bytes = b"",
) -> TransferTransaction:
    """
    Build an unsigned transfer.

    Raises:
        AddressFormatError: recipient is not exactly 20 bytes
        AmountFormatError: nonce, value or gas fields are not
            non-negative integers in range
    """
    return TransferTransaction(
        nonce=parse_amount(nonce, "nonce", MAX_U64),
        to=parse_recipient(recipient),
        value=parse_amount(value_wei, "value"),
        gas_price=parse_amount(gas_price_wei, "gas price"),
        gas=parse_amount(gas_limit, "gas limit", MAX_U64),
        data=bytes(data),
    )


def sign(transaction: TransferTransaction, private_key: bytes, chain_id: int) -> bytes:
    """
    Sign a transfer for chain_id (EIP-155). Returns the RLP wire bytes.
    """
    if isinstance(chain_id, bool) or not isinstance(chain_id, int) or chain_id <= 0:
        raise ValueError(f"chain_id must be a positive integer, got {chain_id!r}")
    signed = Account.sign_transaction(transaction.to_signable(chain_id), bytes(private_key))
    return bytes(signed.raw_transaction)


class TransactionSigner:
    """Builds and signs transfers for one chain."""

    def __init__(self, chain_id: int, gas_limit: int = DEFAULT_GAS_LIMIT):
        self.chain_id = chain_id
        self.gas_limit = gas_limit

    def build_transaction(self, nonce: int, recipient: Union[str, bytes], value_wei: Union[int, str],
                          gas_price_wei: Union[int, str], data: bytes = b"") -> TransferTransaction:
        return build_transaction(nonce, recipient, value_wei, gas_price_wei, self.gas_limit, data)

    def sign(self, transaction: TransferTransaction, private_key: bytes) -> bytes:
        return sign(transaction, private_key, self.chain_id)
