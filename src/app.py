"""
HD Vault - Console HD wallet for Ethereum

Create or import a wallet from a recovery phrase, log in with a password,
derive accounts and send signed transfers over JSON-RPC.

Entry point for the application.
"""

import getpass
import logging
import sys
from typing import Callable, Optional, TypeVar

from networks import create_client
from services import SigningService, WalletSession
from services.logging import configure_logging
from utils import get_wallet_path, load_settings
from wallet import (
    AuthenticationMismatch,
    InputFormatError,
    PersistenceError,
    Wallet,
    load_wallet,
    normalize_mnemonic,
    save_wallet,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ConsolePrompt:
    """Terminal input/output for the wallet session."""

    def show(self, message: str) -> None:
        print(message)

    def ask(self, message: str) -> str:
        return input(message)

    def ask_password(self, message: str) -> str:
        return getpass.getpass(message)

    def prompt_until_valid(self, message: str, parser: Callable[[str], T]) -> T:
        """Ask until parser accepts the answer, showing each rejection."""
        while True:
            text = self.ask(message)
            try:
                return parser(text)
            except InputFormatError as e:
                self.show(str(e))

    def confirm(self, message: str) -> bool:
        self.show(message)
        self.show("Press 1 to CONFIRM\nPress any other key to CANCEL")
        return self.ask("").strip() == "1"


def parse_start_option(text: str) -> int:
    try:
        option = int(text.strip())
    except ValueError as e:
        raise InputFormatError("Invalid option") from e
    if option not in (1, 2):
        raise InputFormatError("Invalid option")
    return option


# ============================================
# Start Menu
# ============================================

def create_wallet(prompt: ConsolePrompt) -> Wallet:
    password = prompt.ask_password("Enter new password: ")
    wallet = Wallet.create(password)
    prompt.show("Write down your recovery phrase and keep it somewhere safe:")
    prompt.show(wallet.seed_phrase)
    return wallet


def import_wallet(prompt: ConsolePrompt) -> Wallet:
    phrase = prompt.prompt_until_valid("Enter your recovery phrase: ", normalize_mnemonic)
    password = prompt.ask_password("Enter new password: ")
    return Wallet.restore(phrase, password)


def login(wallet: Wallet, prompt: ConsolePrompt) -> Optional[Wallet]:
    password = prompt.ask_password("Enter password: ")
    try:
        wallet.login(password)
    except AuthenticationMismatch:
        prompt.show("Incorrect password")
        return None
    return wallet


def start(existing: Optional[Wallet], prompt: ConsolePrompt) -> Optional[Wallet]:
    """
    Run the start menu.

    Returns an unlocked wallet, or None if login failed.
    """
    if existing is None:
        menu = "1) Create a new wallet\n2) Import a wallet"
    else:
        menu = "1) Login\n2) Import a wallet (replaces the stored one)"

    option = prompt.prompt_until_valid(menu, parse_start_option)
    if option == 2:
        return import_wallet(prompt)
    if existing is None:
        return create_wallet(prompt)
    return login(existing, prompt)


def main() -> int:
    """Application entry point."""
    settings = load_settings()
    configure_logging(
        level=getattr(logging, str(settings["log_level"]).upper(), logging.INFO),
        retention_days=int(settings["log_retention_days"]),
    )

    wallet_path = get_wallet_path(settings)
    prompt = ConsolePrompt()

    try:
        existing = load_wallet(wallet_path)
        client = create_client(int(settings["network"]), settings["custom_rpcs"])
    except PersistenceError as e:
        logger.error(f"Startup failed: {e}")
        prompt.show(f"Error loading wallet: {e}")
        return 1
    except ValueError as e:
        logger.error(f"Startup failed: {e}")
        prompt.show(str(e))
        return 1

    signing = SigningService(client, client.chain_id, int(settings["gas_limit"]))

    try:
        wallet = start(existing, prompt)
        if wallet is None:
            return 1

        with wallet.session():
            save_wallet(wallet, wallet_path)
            WalletSession(wallet, signing, prompt).run()
            save_wallet(wallet, wallet_path)
        prompt.show("Stored wallet data safely")
    except PersistenceError as e:
        logger.error(f"Wallet file error: {e}")
        prompt.show(f"Wallet file error: {e}")
        return 1
    except (KeyboardInterrupt, EOFError):
        prompt.show("")
        logger.info("Session interrupted")
        return 130

    return 0


if __name__ == "__main__":
    sys.exit(main())
