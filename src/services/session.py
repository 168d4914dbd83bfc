"""
Wallet Session - The account loop of an unlocked wallet.

Each menu pass returns a tagged action instead of a numeric code:
Continue, CreateAccount, SwitchAccount(index) or Quit. The session
handles create/switch itself and hands Quit back to the caller, which
then saves and locks the wallet.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Protocol, TypeVar, Union

from networks import format_ether
from wallet import Wallet
from wallet.errors import InputFormatError, NetworkError
from wallet.signer import parse_ether_amount, parse_recipient

from .signing import SigningService

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Prompt(Protocol):
    """Console collaborator. Parsing retries live on this side."""

    def show(self, message: str) -> None:
        ...

    def prompt_until_valid(self, message: str, parser: Callable[[str], T]) -> T:
        ...

    def confirm(self, message: str) -> bool:
        ...


# ============================================
# Actions
# ============================================

@dataclass(frozen=True)
class Continue:
    """Stay on the current account."""


@dataclass(frozen=True)
class CreateAccount:
    """Derive a new account and make it active."""


@dataclass(frozen=True)
class SwitchAccount:
    """Make the account at index active."""
    index: int


@dataclass(frozen=True)
class Quit:
    """Leave the session."""


Action = Union[Continue, CreateAccount, SwitchAccount, Quit]


ACCOUNT_MENU = (
    "1) View account balance\n"
    "2) Send a transaction\n"
    "3) Create another account\n"
    "4) Switch account\n"
    "5) QUIT"
)


def parse_menu_option(text: str) -> int:
    try:
        option = int(text.strip())
    except ValueError as e:
        raise InputFormatError("Invalid option") from e
    if not 1 <= option <= 5:
        raise InputFormatError("Invalid option")
    return option


def parse_index(text: str) -> int:
    try:
        return int(text.strip())
    except ValueError as e:
        raise InputFormatError("Please enter an account number") from e


def _validated(parser: Callable[[str], object]) -> Callable[[str], str]:
    """Run parser for validation, keep the stripped text."""
    def check(text: str) -> str:
        parser(text)
        return text.strip()
    return check


class WalletSession:
    """Runs account actions against an unlocked wallet."""

    def __init__(self, wallet: Wallet, signing: SigningService, prompt: Prompt):
        self.wallet = wallet
        self.signing = signing
        self.prompt = prompt

    def run(self) -> Quit:
        """Loop over accounts until the user quits."""
        while True:
            action = self.run_account()
            if isinstance(action, Quit):
                return action
            self.apply(action)

    def run_account(self) -> Action:
        """Menu loop for the active account. Returns the first non-Continue action."""
        self.prompt.show(f"CURRENT ACCOUNT ADDRESS: {self.wallet.active_account.address}")
        while True:
            option = self.prompt.prompt_until_valid(ACCOUNT_MENU, parse_menu_option)
            action = self.handle_option(option)
            if not isinstance(action, Continue):
                return action

    def handle_option(self, option: int) -> Action:
        if option == 1:
            self.show_balance()
            return Continue()
        if option == 2:
            self.send_transaction()
            return Continue()
        if option == 3:
            return CreateAccount()
        if option == 4:
            self.show_accounts()
            return SwitchAccount(self.prompt.prompt_until_valid("Select account: ", parse_index))
        return Quit()

    def apply(self, action: Action) -> None:
        """Carry out a CreateAccount or SwitchAccount action."""
        if isinstance(action, CreateAccount):
            account = self.wallet.create_account()
            self.wallet.switch_account(account.index)
            self.prompt.show(f"Account {account.index} address: {account.address}")
        elif isinstance(action, SwitchAccount):
            try:
                self.wallet.switch_account(action.index)
            except IndexError:
                self.prompt.show(f"No account {action.index}")

    def show_accounts(self) -> None:
        for index, address in self.wallet.registry.list_accounts():
            self.prompt.show(f"{index}) {address}")

    def show_balance(self) -> None:
        account = self.wallet.active_account
        try:
            balance = self.signing.balance(account)
        except NetworkError as e:
            logger.warning(f"Balance query failed for account {account.index}: {e}")
            self.prompt.show(f"Could not fetch balance: {e}")
            return
        self.prompt.show(f"Balance: {format_ether(balance)}")

    def send_transaction(self) -> None:
        """Prompt, sign, confirm and broadcast one transfer."""
        account = self.wallet.active_account
        recipient = self.prompt.prompt_until_valid("Enter recipient address: ", _validated(parse_recipient))
        amount = self.prompt.prompt_until_valid("Enter ETH amount to send: ", _validated(parse_ether_amount))

        try:
            prepared = self.signing.prepare_transfer(
                account, self.wallet.signing_key(account), recipient, amount
            )
        except NetworkError as e:
            self.prompt.show(f"Could not prepare transaction: {e}")
            return

        if not self.prompt.confirm(prepared.summary()):
            self.prompt.show("Transaction canceled")
            return

        try:
            result = self.signing.broadcast(account, prepared)
        except NetworkError as e:
            self.prompt.show(f"Error occurred in sending transaction: {e}")
            return

        if result.confirmed:
            self.prompt.show(f"Transaction {result.tx_hash} successfully sent")
        else:
            self.prompt.show("Transaction not yet available")
