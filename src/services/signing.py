"""
Signing Service - Prepares, signs and broadcasts transfers.

Owns the nonce handshake with the broadcaster: an account's nonce moves
forward by exactly one when the node acknowledges the transaction with a
real hash, and never otherwise.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from models import Account, TransferTransaction
from networks import format_ether
from wallet.signer import DEFAULT_GAS_LIMIT, TransactionSigner, parse_ether_amount, parse_recipient

logger = logging.getLogger(__name__)


class Broadcaster(Protocol):
    """The ledger calls the signing flow depends on."""

    def get_balance(self, address: str) -> int:
        ...

    def get_gas_price(self) -> int:
        ...

    def send_raw_transaction(self, raw_transaction: bytes) -> Optional[str]:
        ...


@dataclass(frozen=True)
class PreparedTransfer:
    """A signed transfer waiting for the user's confirmation."""
    sender: str
    transaction: TransferTransaction
    raw_transaction: bytes

    @property
    def payload(self) -> str:
        """0x-prefixed hex, the form eth_sendRawTransaction takes."""
        return "0x" + self.raw_transaction.hex()

    def summary(self) -> str:
        tx = self.transaction
        return (
            f"Transaction details:\n"
            f"\tFROM: {self.sender}\n"
            f"\tTO: {tx.recipient}\n"
            f"\tAMOUNT: {format_ether(tx.value)}\n"
            f"\tGAS PRICE: {tx.gas_price} wei\n"
            f"\tMAX FEE: {format_ether(tx.max_fee)}\n"
            f"\tNONCE: {tx.nonce}"
        )


@dataclass(frozen=True)
class BroadcastResult:
    """Outcome of one broadcast."""
    tx_hash: Optional[str]
    confirmed: bool


def is_confirmed(result: Optional[str]) -> bool:
    """True for a present, non-zero transaction hash."""
    if not result:
        return False
    try:
        return int(result, 16) != 0
    except ValueError:
        return False


class SigningService:
    """Transfer flow for the active session."""

    def __init__(self, client: Broadcaster, chain_id: int, gas_limit: int = DEFAULT_GAS_LIMIT):
        self._client = client
        self._signer = TransactionSigner(chain_id, gas_limit)

    @property
    def chain_id(self) -> int:
        return self._signer.chain_id

    def balance(self, account: Account) -> int:
        """Balance of account in wei. Raises NetworkError."""
        return self._client.get_balance(account.address)

    def prepare_transfer(self, account: Account, private_key: bytes,
                         recipient: str, amount_ether: str) -> PreparedTransfer:
        """
        Build and sign a transfer at the account's current nonce.

        Raises:
            AddressFormatError / AmountFormatError: bad user input
            NetworkError: gas price query failed
        """
        # Validate input before touching the network
        to = parse_recipient(recipient)
        value_wei = parse_ether_amount(amount_ether)

        gas_price = self._client.get_gas_price()
        tx = self._signer.build_transaction(account.nonce, to, value_wei, gas_price)
        raw = self._signer.sign(tx, private_key)
        logger.info(f"Signed transfer from account {account.index} at nonce {tx.nonce}")
        return PreparedTransfer(sender=account.address, transaction=tx, raw_transaction=raw)

    def broadcast(self, account: Account, prepared: PreparedTransfer) -> BroadcastResult:
        """
        Send a prepared transfer and apply the nonce handshake.

        Raises: NetworkError, with the nonce left unchanged.
        """
        if prepared.transaction.nonce != account.nonce:
            raise ValueError(
                f"Transfer was signed at nonce {prepared.transaction.nonce}, account is at {account.nonce}"
            )

        result = self._client.send_raw_transaction(prepared.raw_transaction)
        if is_confirmed(result):
            account.increment_nonce()
            logger.info(f"Transaction {result} sent from account {account.index}, nonce now {account.nonce}")
            return BroadcastResult(tx_hash=result, confirmed=True)

        logger.warning(f"Broadcast from account {account.index} returned no transaction hash ({result!r})")
        return BroadcastResult(tx_hash=result, confirmed=False)
