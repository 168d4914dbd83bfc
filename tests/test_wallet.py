"""
Tests for the Wallet lifecycle: create, restore, login, lock
"""
import pytest
from mnemonic import Mnemonic

from wallet import (
    AuthenticationMismatch,
    MnemonicFormatError,
    PersistenceError,
    Wallet,
    WalletLockedError,
    normalize_mnemonic,
)
from wallet.derivation import account_path, derive_path

from conftest import ACCOUNT_VECTORS, MNEMONIC, PASSWORD


def reload(wallet: Wallet) -> Wallet:
    """Fresh, locked copy through the persisted form."""
    return Wallet.from_dict(wallet.to_dict())


# --- Create / restore --- #

def test_create_wallet():
    wallet = Wallet.create(PASSWORD)
    assert wallet.is_unlocked
    assert len(wallet.seed_phrase.split()) == 12
    assert Mnemonic("english").check(wallet.seed_phrase)
    assert len(wallet.accounts) == 1
    assert wallet.active_account.index == 0
    assert len(wallet.pad) == 64
    assert len(wallet.verification_key) == 33


def test_create_24_word_wallet():
    assert len(Wallet.create(PASSWORD, word_count=24).seed_phrase.split()) == 24


def test_create_rejects_word_count():
    with pytest.raises(ValueError):
        Wallet.create(PASSWORD, word_count=15)


def test_restore_known_phrase(wallet):
    assert wallet.active_account.address == ACCOUNT_VECTORS[0][0]
    assert bytes(wallet.signing_key()).hex() == ACCOUNT_VECTORS[0][1]


def test_restore_is_password_independent_for_addresses():
    a = Wallet.restore(MNEMONIC, "one")
    b = Wallet.restore(MNEMONIC, "two")
    assert a.pad != b.pad
    assert a.verification_key == b.verification_key
    assert a.active_account.address == b.active_account.address


def test_restore_normalizes_phrase():
    messy = "  TEST test\ttest test test test test test test test test   junk "
    assert normalize_mnemonic(messy) == MNEMONIC
    assert Wallet.restore(messy, PASSWORD).active_account.address == ACCOUNT_VECTORS[0][0]


@pytest.mark.parametrize("phrase", [
    "",
    "test " * 10 + "junk",
    "not a real phrase at all",
])
def test_restore_rejects_invalid_phrase(phrase):
    with pytest.raises(MnemonicFormatError):
        Wallet.restore(phrase, PASSWORD)


# --- Accounts --- #

def test_create_account(wallet):
    account = wallet.create_account()
    assert account.index == 1
    assert account.address == ACCOUNT_VECTORS[1][0]
    assert wallet.switch_account(1) is account
    assert wallet.active_account is account


def test_signing_key_for_other_account(wallet):
    account = wallet.create_account()
    assert bytes(wallet.signing_key(account)).hex() == ACCOUNT_VECTORS[1][1]


# --- Lock / login --- #

def test_lock_clears_secrets(wallet):
    key = wallet.signing_key()
    wallet.lock()
    assert not wallet.is_unlocked
    assert wallet.seed_phrase is None
    assert key == bytearray(32)
    assert not wallet.active_account.has_signing_key
    with pytest.raises(WalletLockedError):
        wallet.create_account()
    with pytest.raises(WalletLockedError):
        wallet.signing_key()


def test_loaded_wallet_is_locked(wallet):
    loaded = reload(wallet)
    assert not loaded.is_unlocked
    assert loaded.seed_phrase is None
    assert loaded.accounts == wallet.accounts


def test_login(wallet):
    loaded = reload(wallet)
    loaded.login(PASSWORD)
    assert loaded.is_unlocked
    assert bytes(loaded.signing_key()).hex() == ACCOUNT_VECTORS[0][1]


def test_login_wrong_password(wallet):
    loaded = reload(wallet)
    with pytest.raises(AuthenticationMismatch):
        loaded.login("wrong password")
    assert not loaded.is_unlocked


def test_login_flipped_pad_bit(wallet):
    data = wallet.to_dict()
    pad = bytearray.fromhex(data["pad"])
    pad[0] ^= 0x80
    data["pad"] = pad.hex()
    tampered = Wallet.from_dict(data)
    with pytest.raises(AuthenticationMismatch):
        tampered.login(PASSWORD)


def test_unlocked_context_locks_on_exit(wallet):
    loaded = reload(wallet)
    with loaded.unlocked(PASSWORD) as w:
        assert w.is_unlocked
        w.signing_key()
    assert not loaded.is_unlocked

    with pytest.raises(RuntimeError):
        with loaded.unlocked(PASSWORD):
            raise RuntimeError("boom")
    assert not loaded.is_unlocked


def test_session_context_locks(wallet):
    with wallet.session():
        assert wallet.is_unlocked
    assert not wallet.is_unlocked


# --- Persisted form --- #

def test_to_dict_contains_no_secrets(wallet):
    data = wallet.to_dict()
    text = repr(data)
    assert set(data) == {"version", "pad", "verification_key", "accounts"}
    assert ACCOUNT_VECTORS[0][1] not in text
    assert "junk" not in text


@pytest.mark.parametrize("change", [
    {"version": 2},
    {"pad": ""},
    {"pad": "00" * 65},
    {"verification_key": "02" * 20},
    {"accounts": []},
])
def test_from_dict_rejects(wallet, change):
    data = {**wallet.to_dict(), **change}
    with pytest.raises(ValueError):
        Wallet.from_dict(data)


def test_persist_reload_and_derive_next_account(wallet, seed):
    """
    A reloaded wallet derives account 1 at the same address an
    independent derivation gives, distinct from account 0.
    """
    first = wallet.active_account.address
    loaded = reload(wallet)
    loaded.login(PASSWORD)
    second = loaded.create_account()

    _, expected = derive_path(seed, account_path(1))
    assert second.address == expected.address
    assert second.address != first
    assert loaded.accounts[0].address == first


def test_login_rejects_tampered_address(wallet):
    data = wallet.to_dict()
    data["accounts"][0]["address"] = "0x" + "11" * 20
    tampered = Wallet.from_dict(data)
    with pytest.raises(PersistenceError):
        tampered.login(PASSWORD)
    assert not tampered.is_unlocked
