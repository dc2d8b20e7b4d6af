import pytest
from nacl.signing import SigningKey

from tests.conftest import Wallet
from vote_vision.core.security import (
    get_signature_verifier,
    normalize_address,
    verify_ed25519_signature,
    verify_eth_signature,
    verify_signature,
)


def _keypair() -> tuple[SigningKey, str]:
    key = SigningKey.generate()
    return key, key.verify_key.encode().hex()


def test_default_verifier_recovers_ethereum_signer() -> None:
    assert verify_signature is verify_eth_signature
    wallet = Wallet()
    assert verify_signature("hello", wallet.sign("hello"), wallet.checksum_address) is True


def test_eth_signature_accepts_any_address_casing() -> None:
    wallet = Wallet()
    signature = wallet.sign("hello")
    assert verify_eth_signature("hello", "0x" + signature.removeprefix("0x"), wallet.address) is True
    assert verify_eth_signature("hello", signature, wallet.checksum_address.lower()) is True
    assert verify_eth_signature("hello", signature, "0x" + wallet.address.upper()) is True


def test_eth_signature_rejects_other_signer() -> None:
    wallet, impostor = Wallet(), Wallet()
    assert verify_eth_signature("hello", impostor.sign("hello"), wallet.address) is False


def test_eth_signature_rejects_other_message() -> None:
    wallet = Wallet()
    assert verify_eth_signature("goodbye", wallet.sign("hello"), wallet.address) is False


def test_eth_signature_rejects_malformed_signature() -> None:
    wallet = Wallet()
    assert verify_eth_signature("hello", "zz", wallet.address) is False
    assert verify_eth_signature("hello", "ab" * 10, wallet.address) is False


def test_ed25519_signature_accepts_valid_signature() -> None:
    key, address = _keypair()
    signature = key.sign(b"hello").signature.hex()
    assert verify_ed25519_signature("hello", signature, address) is True


def test_ed25519_signature_accepts_prefixed_and_uppercase_inputs() -> None:
    key, address = _keypair()
    signature = key.sign(b"hello").signature.hex()
    assert verify_ed25519_signature("hello", "0x" + signature, "0x" + address.upper()) is True


def test_ed25519_signature_rejects_other_message() -> None:
    key, address = _keypair()
    signature = key.sign(b"hello").signature.hex()
    assert verify_ed25519_signature("goodbye", signature, address) is False


def test_ed25519_signature_rejects_bad_inputs() -> None:
    """Ensure the Ed25519 verifier returns False when given invalid hex inputs."""
    _, address = _keypair()
    assert verify_ed25519_signature("msg", "zz", address) is False
    assert verify_ed25519_signature("msg", "aa" * 64, "not-an-address") is False


def test_ed25519_rejects_ethereum_addresses() -> None:
    wallet = Wallet()
    assert verify_ed25519_signature("hello", wallet.sign("hello"), wallet.address) is False


def test_get_signature_verifier_by_scheme() -> None:
    assert get_signature_verifier("ethereum") is verify_eth_signature
    assert get_signature_verifier(" Ed25519 ") is verify_ed25519_signature
    with pytest.raises(ValueError, match="Unsupported signature scheme"):
        get_signature_verifier("rsa")


def test_normalize_address_strips_prefix_and_case() -> None:
    assert normalize_address("  0xABCdef ") == "abcdef"
    assert normalize_address("abcdef") == "abcdef"
