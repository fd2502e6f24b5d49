"""Conventional Ed25519 key pairs for locally signed NEAR transactions."""

import base58
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from ...types import ChainSigError, ErrorCode
from .transactions import KeyKind, PublicKey


class KeyPair:
    """
    Ed25519 key pair in NEAR's text format.

    Example:
        >>> key_pair = KeyPair.from_string("ed25519:...")
        >>> key_pair.public_key.to_string()
        'ed25519:...'
        >>> signature = key_pair.sign(digest)
    """

    def __init__(self, private_key: Ed25519PrivateKey) -> None:
        self._private_key = private_key
        raw_public = private_key.public_key().public_bytes(
            serialization.Encoding.Raw, serialization.PublicFormat.Raw
        )
        self._public_key = PublicKey(KeyKind.ED25519, raw_public)

    @classmethod
    def from_random(cls) -> "KeyPair":
        """Generate a fresh key pair."""
        return cls(Ed25519PrivateKey.generate())

    @classmethod
    def from_string(cls, text: str) -> "KeyPair":
        """Load ``ed25519:<base58>`` holding a 32-byte seed or 64-byte seed||public key."""
        curve, sep, encoded = text.partition(":")
        if not sep or curve != "ed25519":
            raise ChainSigError(ErrorCode.INVALID_CONFIG, "Only ed25519 key pairs are supported")

        secret = base58.b58decode(encoded)
        if len(secret) not in (32, 64):
            raise ChainSigError(
                ErrorCode.INVALID_CONFIG, f"Invalid ed25519 secret key length: {len(secret)}"
            )

        key_pair = cls(Ed25519PrivateKey.from_private_bytes(secret[:32]))
        if len(secret) == 64 and secret[32:] != key_pair.public_key.data:
            raise ChainSigError(ErrorCode.INVALID_CONFIG, "Secret key does not match its public key")
        return key_pair

    @property
    def public_key(self) -> PublicKey:
        """Get the public key."""
        return self._public_key

    def sign(self, message: bytes) -> bytes:
        """Sign a message (64-byte signature)."""
        return self._private_key.sign(message)

    def to_string(self) -> str:
        """Export as ``ed25519:<base58 seed||public key>``."""
        seed = self._private_key.private_bytes(
            serialization.Encoding.Raw,
            serialization.PrivateFormat.Raw,
            serialization.NoEncryption(),
        )
        return "ed25519:" + base58.b58encode(seed + self._public_key.data).decode()
