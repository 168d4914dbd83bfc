"""
Tests for BIP-32 derivation and Ethereum addresses
"""
import pytest
from eth_account import Account as EthAccount
from eth_account.hdaccount import key_from_seed

from wallet.derivation import (
    ACCOUNT_DERIVING_PATH,
    HARDENED_OFFSET,
    VERIFICATION_PATH,
    ExtendedPublicKey,
    account_path,
    address_from_public_key,
    derive_child,
    derive_path,
    format_path,
    index_from_path,
    master_key,
    parse_path,
)
from wallet.errors import CryptoDerivationError

from conftest import ACCOUNT_VECTORS

# BIP-32 test vector 1
VECTOR_SEED = bytes.fromhex("000102030405060708090a0b0c0d0e0f")
VECTOR_1 = {
    "m": (
        "e8f32e723decf4051aefac8e2c93c9c5b214313817cdb01a1494b917c8436b35",
        "0339a36013301597daef41fbe593a02cc513d0b55527ec2df1050e2e8ff49c85c2",
    ),
    "m/0'": (
        "edb2e14f9ee77d26dd93b4ecede8d16ed408ce149b6cd80b0715a2d911a0afea",
        "035a784662a4a20a65bf6aab9ae98a6c068a81c52e4b032c0fb5400c706cfccc56",
    ),
    "m/0'/1": (
        "3c6cb8d0f6a264c91ea8b5030fadaa8e538b020f0a387421a12de9319dc93368",
        "03501e454bf00751f24b1b489aa925215d66af2234e3891c3b21a52bedb3cd711c",
    ),
}


# --- Paths --- #

def test_parse_path():
    assert parse_path("m") == ()
    assert parse_path("m/44'/60'/0'/0/3") == (
        44 + HARDENED_OFFSET, 60 + HARDENED_OFFSET, HARDENED_OFFSET, 0, 3
    )
    assert parse_path("m/44h/60H/0'") == parse_path(VERIFICATION_PATH)


@pytest.mark.parametrize("bad_path", [
    "44'/60'",
    "m/x",
    "m//1",
    "m/1''",
    "m/-1",
    f"m/{HARDENED_OFFSET}",
    "",
])
def test_parse_path_rejects_malformed(bad_path):
    with pytest.raises(CryptoDerivationError):
        parse_path(bad_path)


def test_format_path_inverts_parse():
    for path in ("m", VERIFICATION_PATH, account_path(7)):
        assert format_path(parse_path(path)) == path


def test_index_from_path():
    assert index_from_path(account_path(0)) == 0
    assert index_from_path(account_path(12)) == 12
    with pytest.raises(CryptoDerivationError):
        index_from_path(VERIFICATION_PATH)
    with pytest.raises(CryptoDerivationError):
        index_from_path("m/44'/60'/1'/0/0")
    with pytest.raises(CryptoDerivationError):
        index_from_path(ACCOUNT_DERIVING_PATH + "/3'")


# --- BIP-32 vectors --- #

def test_master_key_vector():
    master = master_key(VECTOR_SEED)
    assert bytes(master.key).hex() == VECTOR_1["m"][0]
    assert master.chain_code.hex() == "873dff81c02f525623fd1fe5167eac3a55a049de3d314bb42ee227ffed37d508"
    assert master.public_key().hex() == VECTOR_1["m"][1]
    assert master.depth == 0


@pytest.mark.parametrize("path", list(VECTOR_1))
def test_derive_path_vector(path):
    xprv, xpub = derive_path(VECTOR_SEED, path)
    expected_priv, expected_pub = VECTOR_1[path]
    assert bytes(xprv.key).hex() == expected_priv
    assert xpub.key.hex() == expected_pub
    assert xprv.depth == len(parse_path(path))


def test_public_child_matches_private_child():
    """
    Non-hardened public derivation must land on the public key of the
    private child.
    """
    xprv, xpub = derive_path(VECTOR_SEED, "m/0'")
    for index in (0, 1, 2, 1000):
        private_child = derive_child(xprv, index)
        public_child = derive_child(xpub, index)
        assert isinstance(public_child, ExtendedPublicKey)
        assert private_child.public_key() == public_child.key
        assert private_child.chain_code == public_child.chain_code


def test_hardened_flag_adds_offset():
    master = master_key(VECTOR_SEED)
    assert derive_child(master, 0, hardened=True).key == derive_child(master, HARDENED_OFFSET).key


def test_hardened_child_of_public_key_fails():
    _, xpub = derive_path(VECTOR_SEED, "m/0'")
    with pytest.raises(CryptoDerivationError):
        derive_child(xpub, 0, hardened=True)
    with pytest.raises(CryptoDerivationError):
        derive_child(xpub, HARDENED_OFFSET + 5)


@pytest.mark.parametrize("index, hardened", [
    (-1, False),
    (2 ** 32, False),
    (HARDENED_OFFSET, True),
    (True, False),
])
def test_child_index_out_of_range(index, hardened):
    master = master_key(VECTOR_SEED)
    with pytest.raises(CryptoDerivationError):
        derive_child(master, index, hardened=hardened)


def test_wipe_zeroes_key():
    master = master_key(VECTOR_SEED)
    key = master.key
    master.wipe()
    assert key == bytearray(32)


# --- Ethereum accounts --- #

@pytest.mark.parametrize("index", range(len(ACCOUNT_VECTORS)))
def test_account_vectors(seed, index):
    address, private_key = ACCOUNT_VECTORS[index]
    xprv, xpub = derive_path(seed, account_path(index))
    assert bytes(xprv.key).hex() == private_key
    assert xpub.address == address


def test_matches_eth_account_derivation(seed):
    for index in (0, 3, 19):
        xprv, _ = derive_path(seed, account_path(index))
        assert bytes(xprv.key) == key_from_seed(seed, account_path(index))


def test_address_from_public_key_encodings(seed):
    xprv, xpub = derive_path(seed, account_path(0))
    expected = EthAccount.from_key(bytes(xprv.key)).address.lower()
    assert address_from_public_key(xpub.key) == expected
    assert address_from_public_key(xpub.uncompressed) == expected
    assert address_from_public_key(xpub.uncompressed[1:]) == expected


@pytest.mark.parametrize("public_key", [
    b"",
    bytes(20),
    b"\x05" + bytes(32),
])
def test_address_from_bad_public_key(public_key):
    with pytest.raises(CryptoDerivationError):
        address_from_public_key(public_key)
