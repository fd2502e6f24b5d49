"""Hashing capability and key/signature encodings."""

import hashlib
from collections.abc import Callable, Mapping
from typing import Any

import base58

from .types import ChainSigError, ErrorCode, RSVSignature

Hasher = Callable[[bytes], bytes]


def sha256(data: bytes) -> bytes:
    """SHA-256 digest of data."""
    return hashlib.sha256(data).digest()


# Resolved once; adapters take it as their default hasher.
DEFAULT_HASHER: Hasher = sha256


def bytes_to_hex(payload: bytes | list[int]) -> str:
    """Hex-encode a payload (no prefix)."""
    return bytes(payload).hex()


def naj_to_uncompressed_pubkey_sec1(naj_public_key: str) -> str:
    """
    Convert a NEAR-style secp256k1 key to uncompressed SEC1 hex.

    Example:
        >>> naj_to_uncompressed_pubkey_sec1("secp256k1:...")
        '04...'
    """
    curve, _, encoded = naj_public_key.partition(":")
    if curve != "secp256k1" or not encoded:
        raise ChainSigError(
            ErrorCode.SERIALIZATION_ERROR, f"Not a secp256k1 public key: {naj_public_key}"
        )
    point = base58.b58decode(encoded)
    if len(point) != 64:
        raise ChainSigError(
            ErrorCode.SERIALIZATION_ERROR,
            f"secp256k1 public key must be 64 bytes, got {len(point)}",
        )
    return "04" + point.hex()


def uncompressed_pubkey_sec1_to_naj(sec1_public_key: str) -> str:
    """Convert uncompressed SEC1 hex (04 || x || y) to NEAR's compact form."""
    raw = bytes.fromhex(sec1_public_key.removeprefix("0x"))
    if len(raw) != 65 or raw[0] != 0x04:
        raise ChainSigError(
            ErrorCode.SERIALIZATION_ERROR, "Expected an uncompressed SEC1 public key"
        )
    return "secp256k1:" + base58.b58encode(raw[1:]).decode()


def to_rsv(signature: Mapping[str, Any]) -> RSVSignature:
    """Convert an MPC ECDSA response into RSV form."""
    big_r = signature.get("big_r")
    s = signature.get("s")
    recovery_id = signature.get("recovery_id")

    if recovery_id is None:
        raise ChainSigError(ErrorCode.SIGNING_FAILED, "Invalid signature format")

    # Current contract: {"big_r": {"affine_point": ...}, "s": {"scalar": ...}}
    if isinstance(big_r, Mapping) and isinstance(s, Mapping):
        if "affine_point" in big_r and "scalar" in s:
            return RSVSignature(
                r=big_r["affine_point"][2:],
                s=s["scalar"],
                v=int(recovery_id) + 27,
            )
    # Legacy contract: flat hex strings
    elif isinstance(big_r, str) and isinstance(s, str):
        return RSVSignature(r=big_r[2:], s=s, v=int(recovery_id) + 27)

    raise ChainSigError(ErrorCode.SIGNING_FAILED, "Invalid signature format")
