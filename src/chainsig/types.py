"""Core type definitions for chainsig."""

from enum import Enum, IntEnum
from typing import Any, Union
from dataclasses import dataclass


class KeyType(str, Enum):
    """Key spaces exposed by the MPC signing contract."""

    ECDSA = "Ecdsa"  # secp256k1, domain 0
    EDDSA = "Eddsa"  # ed25519, domain 1

    @property
    def domain_id(self) -> int:
        """Get the contract domain selector for this key type."""
        return 1 if self is KeyType.EDDSA else 0


class ErrorCode(IntEnum):
    """Error codes for SDK operations."""

    INVALID_CONFIG = 1
    ACCOUNT_NOT_PROVISIONED = 2
    INVALID_SIGNATURE_SHAPE = 3
    EMPTY_SIGNATURE_SET = 4
    SIGNING_FAILED = 5
    TRANSACTION_FAILED = 6
    SERIALIZATION_ERROR = 7
    NETWORK_ERROR = 8
    RPC_ERROR = 9
    UNKNOWN = 99


class ChainSigError(Exception):
    """Base exception for chainsig."""

    def __init__(self, code: ErrorCode, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.cause = cause


class AccountNotProvisionedError(ChainSigError):
    """The derived account has not been created on chain yet."""

    def __init__(
        self,
        message: str,
        account_id: str,
        public_key: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(ErrorCode.ACCOUNT_NOT_PROVISIONED, message, cause)
        self.account_id = account_id
        self.public_key = public_key


class InvalidSignatureShapeError(ChainSigError):
    """Signature variant does not match the chain's signature scheme."""

    def __init__(self, message: str):
        super().__init__(ErrorCode.INVALID_SIGNATURE_SHAPE, message)


class EmptySignatureSetError(ChainSigError):
    """The signing contract returned fewer signatures than requested."""

    def __init__(self, message: str = "No signatures returned from MPC contract"):
        super().__init__(ErrorCode.EMPTY_SIGNATURE_SET, message)


class RpcError(ChainSigError):
    """Error reported by a JSON-RPC node."""

    def __init__(self, message: str, type: str | None = None, data: Any = None):
        super().__init__(ErrorCode.RPC_ERROR, message)
        self.type = type
        self.data = data


class TransactionFailedError(ChainSigError):
    """A submitted transaction executed with a failure status."""

    def __init__(self, message: str, outcome: dict[str, Any] | None = None):
        super().__init__(ErrorCode.TRANSACTION_FAILED, message)
        self.outcome = outcome


# Payload handed to the signing contract (a 32-byte digest for hash-based chains)
HashToSign = bytes


@dataclass(frozen=True)
class RSVSignature:
    """Recoverable ECDSA signature components."""

    r: str  # R component (hex, no prefix)
    s: str  # S component (hex, no prefix)
    v: int  # Recovery ID + 27


@dataclass(frozen=True)
class Ed25519Signature:
    """Raw Ed25519 signature."""

    signature: bytes
    scheme: str = "Ed25519"

    def __post_init__(self) -> None:
        if len(self.signature) != 64:
            raise InvalidSignatureShapeError(
                f"Ed25519 signature must be 64 bytes, got {len(self.signature)}"
            )


Signature = Union[RSVSignature, Ed25519Signature]


@dataclass(frozen=True)
class DerivedKey:
    """Foreign address and public key derived from (predecessor, path)."""

    address: str
    public_key: str


@dataclass
class Balance:
    """Balance information."""

    balance: int  # Raw balance in smallest unit
    decimals: int  # Number of decimals
    symbol: str = ""  # Currency symbol

    @property
    def formatted(self) -> str:
        """Human-readable balance with decimals."""
        divisor = 10**self.decimals
        whole = self.balance // divisor
        fraction = self.balance % divisor

        suffix = f" {self.symbol}" if self.symbol else ""
        if fraction == 0:
            return f"{whole}{suffix}"

        trimmed = str(fraction).zfill(self.decimals).rstrip("0")
        return f"{whole}.{trimmed}{suffix}"


@dataclass
class TxHash:
    """Transaction hash result."""

    hash: str  # Transaction hash
    explorer_url: str | None = None  # Explorer URL (if available)
