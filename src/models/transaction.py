"""
Transfer transaction model.

An unsigned legacy (EIP-155) value transfer. Signing turns it into the
RLP bytes that go to eth_sendRawTransaction.
"""

from dataclasses import dataclass

from eth_utils import to_checksum_address


@dataclass(frozen=True)
class TransferTransaction:
    """An unsigned transfer."""
    nonce: int                        # Sender's transaction counter
    to: bytes                         # 20-byte recipient
    value: int                        # Wei
    gas_price: int                    # Wei per gas
    gas: int                          # Gas limit
    data: bytes = b""

    @property
    def recipient(self) -> str:
        """Checksummed recipient address."""
        return to_checksum_address(self.to)

    @property
    def max_fee(self) -> int:
        """Most this transfer can cost in gas, in wei."""
        return self.gas * self.gas_price

    def to_signable(self, chain_id: int) -> dict:
        """Transaction dict in the shape eth_account signs."""
        return {
            "nonce": self.nonce,
            "to": self.recipient,
            "value": self.value,
            "gas": self.gas,
            "gasPrice": self.gas_price,
            "data": "0x" + self.data.hex(),
            "chainId": chain_id,
        }
