"""
Shared pytest fixtures for the HD Vault test suite.

Nothing here touches the network: the ledger is a scripted fake and the
app data directory is a per-test temp dir.
"""

import pytest
from mnemonic import Mnemonic

from wallet import Wallet, InputFormatError, NetworkError


# Well-known development mnemonic; its first accounts are public test vectors
MNEMONIC = "test test test test test test test test test test test junk"
PASSWORD = "correct horse battery staple"

ACCOUNT_VECTORS = [
    ("0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266",
     "ac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"),
    ("0x70997970c51812dc3a010c7d01b50e0d17dc79c8",
     "59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"),
]

RECIPIENT = "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC"


class FakeLedgerClient:
    """In-memory stand-in for networks.LedgerClient."""

    def __init__(self, gas_price: int = 1_000_000_000, balance: int = 0):
        self.gas_price = gas_price
        self.balances = {}
        self.default_balance = balance
        self.results = []             # Queued send_raw_transaction results
        self.sent = []                # Raw transactions handed to send
        self.gas_price_calls = 0
        self.fail = False

    def get_balance(self, address: str) -> int:
        if self.fail:
            raise NetworkError("node unreachable")
        return self.balances.get(address.lower(), self.default_balance)

    def get_gas_price(self) -> int:
        self.gas_price_calls += 1
        if self.fail:
            raise NetworkError("node unreachable")
        return self.gas_price

    def send_raw_transaction(self, raw_transaction: bytes):
        if self.fail:
            raise NetworkError("node unreachable")
        self.sent.append(raw_transaction)
        if self.results:
            return self.results.pop(0)
        return "0x" + "ab" * 32


class ScriptedPrompt:
    """Prompt that answers from a list and records what was shown."""

    def __init__(self, answers):
        self.answers = list(answers)
        self.output = []

    def show(self, message: str) -> None:
        self.output.append(message)

    def ask(self, message: str) -> str:
        if not self.answers:
            raise AssertionError(f"No scripted answer left for prompt {message!r}")
        return self.answers.pop(0)

    def ask_password(self, message: str) -> str:
        return self.ask(message)

    def prompt_until_valid(self, message, parser):
        while True:
            text = self.ask(message)
            try:
                return parser(text)
            except InputFormatError as e:
                self.show(str(e))

    def confirm(self, message: str) -> bool:
        self.show(message)
        return self.ask("").strip() == "1"

    @property
    def text(self) -> str:
        return "\n".join(self.output)


@pytest.fixture(autouse=True)
def app_home(tmp_path, monkeypatch):
    """Point the app data directory at a temp dir."""
    home = tmp_path / "hdvault"
    monkeypatch.setenv("HDVAULT_HOME", str(home))
    return home


@pytest.fixture(scope="session")
def seed():
    """BIP-39 seed of MNEMONIC with an empty passphrase."""
    return Mnemonic.to_seed(MNEMONIC, passphrase="")


@pytest.fixture
def wallet():
    """Unlocked wallet restored from MNEMONIC."""
    w = Wallet.restore(MNEMONIC, PASSWORD)
    yield w
    w.lock()


@pytest.fixture
def ledger():
    return FakeLedgerClient()
