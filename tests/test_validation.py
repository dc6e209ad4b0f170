import pytest

from solana_testnet.errors import ValidationError
from solana_testnet.validation import (parse_node_address, sanitize_key_name, validate_amount,
                                       validate_index, validate_pubkey, validate_slot)

from conftest import PUBKEY


@pytest.mark.parametrize("text, expected", [
    ("192.168.1.100:8001", ("192.168.1.100", 8001)),
    ("10.0.0.1:1", ("10.0.0.1", 1)),
    ("255.255.255.255:65535", ("255.255.255.255", 65535)),
    ("validator-1.internal:8001", ("validator-1.internal", 8001)),
    ("localhost:8001", ("localhost", 8001)),
])
def test_parse_node_address(text, expected):
    assert parse_node_address(text) == expected


@pytest.mark.parametrize("text", [
    "",
    "192.168.1.100",
    "192.168.1.100:",
    ":8001",
    "256.1.1.1:8001",
    "1.2.3:8001",
    "1.2.3.4:0",
    "1.2.3.4:65536",
    "1.2.3.4:80a",
    "1.2.3.4:8001:1",
    "bad_host:8001",
    "-leading.dash:8001",
])
def test_parse_node_address_rejects(text):
    with pytest.raises(ValidationError, match="Invalid node address"):
        parse_node_address(text)


def test_validate_pubkey():
    assert validate_pubkey(PUBKEY) == PUBKEY
    for bad in ("", "short", PUBKEY[:-1] + "0", PUBKEY + "abcdefgh", "O" * 44):
        with pytest.raises(ValidationError):
            validate_pubkey(bad)


def test_validate_index():
    assert validate_index(1, 3) == 1
    assert validate_index("3", 3) == 3
    with pytest.raises(ValidationError, match="Valid range: 1-3"):
        validate_index(4, 3)
    with pytest.raises(ValidationError, match="Valid range: 1-3"):
        validate_index(0, 3)
    with pytest.raises(ValidationError, match="Valid range: 1-3"):
        validate_index("x", 3)
    with pytest.raises(ValidationError, match="No keys found"):
        validate_index(1, 0)


def test_validate_amount():
    assert validate_amount("10") == "10"
    assert validate_amount("0.5") == "0.5"
    assert validate_amount(100) == "100"
    for bad in ("0", "-1", "abc", "1e3", "", "0.0"):
        with pytest.raises(ValidationError):
            validate_amount(bad)


def test_validate_slot():
    assert validate_slot("12345") == 12345
    with pytest.raises(ValidationError):
        validate_slot("-5")


def test_sanitize_key_name():
    assert sanitize_key_name("my wallet!") == "my_wallet_"
    assert sanitize_key_name("../etc/passwd") == "___etc_passwd"
    assert sanitize_key_name("ok-name_1") == "ok-name_1"
