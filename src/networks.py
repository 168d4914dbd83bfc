"""
HD Vault Networks - Chain configurations and the ledger RPC client

Supports Ethereum mainnet and its public test networks.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from web3 import Web3
from web3.exceptions import Web3Exception

from wallet.errors import NetworkError

logger = logging.getLogger(__name__)

# ============================================
# Network Configurations
# ============================================

@dataclass
class NetworkConfig:
    """Configuration for a blockchain network."""
    chain_id: int
    name: str
    display_name: str
    rpc_url: str
    explorer_url: str
    is_testnet: bool
    native_symbol: str = "ETH"
    native_decimals: int = 18


NETWORKS = {
    # Ethereum Mainnet
    1: NetworkConfig(
        chain_id=1,
        name="mainnet",
        display_name="Ethereum",
        rpc_url="https://ethereum-rpc.publicnode.com",
        explorer_url="https://etherscan.io",
        is_testnet=False,
    ),
    # Sepolia Testnet
    11155111: NetworkConfig(
        chain_id=11155111,
        name="sepolia",
        display_name="Sepolia",
        rpc_url="https://ethereum-sepolia-rpc.publicnode.com",
        explorer_url="https://sepolia.etherscan.io",
        is_testnet=True,
        native_symbol="SepoliaETH",
    ),
    # Holesky Testnet
    17000: NetworkConfig(
        chain_id=17000,
        name="holesky",
        display_name="Holesky",
        rpc_url="https://ethereum-holesky-rpc.publicnode.com",
        explorer_url="https://holesky.etherscan.io",
        is_testnet=True,
        native_symbol="HoleskyETH",
    ),
}

# Default network
DEFAULT_NETWORK = 11155111  # Sepolia for development


# ============================================
# Ledger Client
# ============================================

class LedgerClient:
    """
    JSON-RPC client for the few calls the wallet needs.

    Every transport or RPC failure surfaces as NetworkError. Retries are
    left to the caller.
    """

    def __init__(self, network: NetworkConfig, rpc_url: Optional[str] = None, timeout: int = 30):
        """
        Initialize the client.

        Args:
            network: Network configuration
            rpc_url: Custom RPC URL, or None to use network default
            timeout: Per-request timeout in seconds
        """
        self.network = network
        effective_rpc = rpc_url if rpc_url else network.rpc_url
        self.w3 = Web3(Web3.HTTPProvider(effective_rpc, request_kwargs={"timeout": timeout}))

    @property
    def chain_id(self) -> int:
        return self.network.chain_id

    @property
    def is_connected(self) -> bool:
        """Check if connected to the network."""
        try:
            return self.w3.is_connected()
        except (Web3Exception, OSError):
            return False

    def get_balance(self, address: str) -> int:
        """Balance of address in wei."""
        try:
            return self.w3.eth.get_balance(Web3.to_checksum_address(address))
        except (Web3Exception, ValueError, OSError) as e:
            raise NetworkError(f"Balance query failed: {e}") from e

    def get_gas_price(self) -> int:
        """Current gas price in wei."""
        try:
            return self.w3.eth.gas_price
        except (Web3Exception, ValueError, OSError) as e:
            raise NetworkError(f"Gas price query failed: {e}") from e

    def send_raw_transaction(self, raw_transaction: bytes) -> Optional[str]:
        """
        Broadcast a signed transaction.

        Returns the 0x transaction hash, or None if the node returned an
        empty result.
        """
        try:
            tx_hash = self.w3.eth.send_raw_transaction(raw_transaction)
        except (Web3Exception, ValueError, OSError) as e:
            raise NetworkError(f"Broadcast failed: {e}") from e
        if not tx_hash:
            return None
        return Web3.to_hex(tx_hash)


def create_client(chain_id: int, custom_rpcs: Optional[dict] = None) -> LedgerClient:
    """
    Client for a configured network.

    Args:
        chain_id: One of NETWORKS
        custom_rpcs: Dict of chain_id (int or str) -> custom RPC URL
    """
    network = get_network(chain_id)
    if network is None:
        raise ValueError(f"Unknown network: {chain_id}")
    custom_rpcs = custom_rpcs or {}
    rpc_url = custom_rpcs.get(str(chain_id)) or custom_rpcs.get(chain_id)
    logger.info(f"Using {network.display_name} via {rpc_url or network.rpc_url}")
    return LedgerClient(network, rpc_url)


# ============================================
# Utility Functions
# ============================================

def get_network(chain_id: int) -> Optional[NetworkConfig]:
    """Get network config by chain ID."""
    return NETWORKS.get(chain_id)


def get_network_by_name(name: str) -> Optional[NetworkConfig]:
    """Get network config by name."""
    for network in NETWORKS.values():
        if network.name == name:
            return network
    return None


def format_address(address: str, chars: int = 4) -> str:
    """Format address as 0x1234...5678"""
    if len(address) <= chars * 2 + 2:
        return address
    return f"{address[:chars+2]}...{address[-chars:]}"


def wei_to_ether(wei: int) -> Decimal:
    """Exact ether value of a wei amount."""
    return Web3.from_wei(wei, "ether")


def format_ether(wei: int, symbol: str = "ETH") -> str:
    """Human-readable amount, e.g. '0.015 ETH'."""
    value = wei_to_ether(wei)
    text = format(value.normalize(), "f") if value else "0"
    return f"{text} {symbol}"
