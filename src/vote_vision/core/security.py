"""Wallet signature verification.

Two schemes are supported. ``ethereum`` recovers the signer of an EIP-191
``personal_sign`` message and compares it with the claimed address.
``ed25519`` treats the address as a hex-encoded public key.
"""
from __future__ import annotations

import binascii
import logging
from collections.abc import Callable

from eth_account import Account
from eth_account.messages import encode_defunct
from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey

logger = logging.getLogger(__name__)

SignatureVerifier = Callable[[str, str, str], bool]

_PUBKEY_HEX_LENGTH = 64  # 32 bytes


def normalize_address(address: str) -> str:
    """Return the canonical comparison key for a wallet address.

    Addresses compare case-insensitively and may carry a ``0x`` prefix.
    """
    cleaned = address.strip().lower()
    if cleaned.startswith("0x"):
        cleaned = cleaned[2:]
    return cleaned


def _strip_hex_prefix(value: str) -> str:
    value = value.strip()
    if value.lower().startswith("0x"):
        return value[2:]
    return value


def verify_eth_signature(message: str, signature: str, address: str) -> bool:
    """Verify an Ethereum ``personal_sign`` signature over an auth message.

    Args:
        message: Exact text that was signed in the wallet.
        signature: Hex-encoded 65-byte signature, optionally ``0x``-prefixed.
        address: Wallet address claimed by the caller.

    Returns:
        True if the recovered signer matches `address`; False otherwise.
    """
    try:
        recovered = Account.recover_message(
            encode_defunct(text=message),
            signature=binascii.unhexlify(_strip_hex_prefix(signature)),
        )
    except Exception as err:  # eth_keys and eth_utils raise assorted types
        logger.debug("Signature recovery failed: %s", err)
        return False
    return normalize_address(recovered) == normalize_address(address)


def verify_ed25519_signature(message: str, signature: str, address: str) -> bool:
    """Verify a detached Ed25519 signature over an auth message.

    The wallet address is the hex-encoded 32-byte public key and the
    signature is the hex-encoded 64-byte detached signature over ``message``.
    """
    pubkey_hex = normalize_address(address)
    if len(pubkey_hex) != _PUBKEY_HEX_LENGTH:
        return False
    try:
        pubkey = VerifyKey(binascii.unhexlify(pubkey_hex))
        pubkey.verify(message.encode("utf-8"), binascii.unhexlify(_strip_hex_prefix(signature)))
        return True
    except (BadSignatureError, binascii.Error, ValueError, TypeError):
        return False


SIGNATURE_VERIFIERS: dict[str, SignatureVerifier] = {
    "ethereum": verify_eth_signature,
    "ed25519": verify_ed25519_signature,
}


def get_signature_verifier(scheme: str) -> SignatureVerifier:
    """Return the verifier for a configured signature scheme.

    Raises:
        ValueError: If the scheme is not supported.
    """
    try:
        return SIGNATURE_VERIFIERS[scheme.strip().lower()]
    except KeyError:
        raise ValueError(
            f"Unsupported signature scheme {scheme!r}; "
            f"expected one of: {', '.join(SIGNATURE_VERIFIERS)}"
        ) from None


# Default verifier used by the identity resolver.
verify_signature = verify_eth_signature
