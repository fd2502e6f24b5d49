"""
NEAR transaction model and its canonical (Borsh) binary encoding.

Only the subset of the protocol needed to build, sign and broadcast
transactions is modelled: public keys, signatures, access keys, the
transaction actions, ``Transaction`` and ``SignedTransaction``. Integers are
little-endian, strings and byte vectors are u32-length-prefixed, enums are a
u8 tag followed by the variant body.
"""

import struct
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Union

import base58

from ...types import ChainSigError, ErrorCode


class KeyKind(IntEnum):
    """Key curves understood by NEAR."""

    ED25519 = 0
    SECP256K1 = 1


_KEY_LENGTHS = {KeyKind.ED25519: 32, KeyKind.SECP256K1: 64}
_SIGNATURE_LENGTHS = {KeyKind.ED25519: 64, KeyKind.SECP256K1: 65}


def _serialization_error(message: str) -> ChainSigError:
    return ChainSigError(ErrorCode.SERIALIZATION_ERROR, message)


class _Writer:
    def __init__(self) -> None:
        self._buf = bytearray()

    def u8(self, value: int) -> None:
        self._buf += struct.pack("<B", value)

    def u32(self, value: int) -> None:
        self._buf += struct.pack("<I", value)

    def u64(self, value: int) -> None:
        self._buf += struct.pack("<Q", value)

    def u128(self, value: int) -> None:
        if not 0 <= value < 1 << 128:
            raise _serialization_error(f"u128 out of range: {value}")
        self._buf += value.to_bytes(16, "little")

    def fixed(self, data: bytes, length: int) -> None:
        if len(data) != length:
            raise _serialization_error(f"Expected {length} bytes, got {len(data)}")
        self._buf += data

    def vec(self, data: bytes) -> None:
        self.u32(len(data))
        self._buf += data

    def string(self, value: str) -> None:
        self.vec(value.encode("utf-8"))

    def getvalue(self) -> bytes:
        return bytes(self._buf)


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    def _take(self, size: int) -> bytes:
        end = self._pos + size
        if end > len(self._data):
            raise _serialization_error("Unexpected end of data")
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def u8(self) -> int:
        return struct.unpack("<B", self._take(1))[0]

    def u32(self) -> int:
        return struct.unpack("<I", self._take(4))[0]

    def u64(self) -> int:
        return struct.unpack("<Q", self._take(8))[0]

    def u128(self) -> int:
        return int.from_bytes(self._take(16), "little")

    def fixed(self, length: int) -> bytes:
        return self._take(length)

    def vec(self) -> bytes:
        return self._take(self.u32())

    def string(self) -> str:
        return self.vec().decode("utf-8")

    def finish(self) -> None:
        if self._pos != len(self._data):
            raise _serialization_error(
                f"Unexpected {len(self._data) - self._pos} trailing bytes"
            )


def _key_kind(tag: int) -> KeyKind:
    try:
        return KeyKind(tag)
    except ValueError:
        raise _serialization_error(f"Unknown key type: {tag}") from None


@dataclass(frozen=True)
class PublicKey:
    """Public key with its curve tag."""

    key_type: KeyKind
    data: bytes

    def __post_init__(self) -> None:
        expected = _KEY_LENGTHS[self.key_type]
        if len(self.data) != expected:
            raise _serialization_error(
                f"{self.key_type.name.lower()} public key must be {expected} bytes, "
                f"got {len(self.data)}"
            )

    @classmethod
    def from_string(cls, text: str) -> "PublicKey":
        """Parse ``"<curve>:<base58>"``; a bare base58 string is ed25519."""
        curve, sep, encoded = text.partition(":")
        if not sep:
            curve, encoded = "ed25519", text
        try:
            key_type = KeyKind[curve.upper()]
        except KeyError:
            raise _serialization_error(f"Unknown key type: {curve}") from None
        return cls(key_type, base58.b58decode(encoded))

    def to_string(self) -> str:
        return f"{self.key_type.name.lower()}:{base58.b58encode(self.data).decode()}"

    def __str__(self) -> str:
        return self.to_string()

    def _encode(self, w: _Writer) -> None:
        w.u8(self.key_type)
        w.fixed(self.data, _KEY_LENGTHS[self.key_type])

    @classmethod
    def _decode(cls, r: _Reader) -> "PublicKey":
        key_type = _key_kind(r.u8())
        return cls(key_type, r.fixed(_KEY_LENGTHS[key_type]))


@dataclass(frozen=True)
class NearSignature:
    """Signature bytes tagged with the signing key's curve."""

    key_type: KeyKind
    data: bytes

    def _encode(self, w: _Writer) -> None:
        w.u8(self.key_type)
        w.fixed(self.data, _SIGNATURE_LENGTHS[self.key_type])

    @classmethod
    def _decode(cls, r: _Reader) -> "NearSignature":
        key_type = _key_kind(r.u8())
        return cls(key_type, r.fixed(_SIGNATURE_LENGTHS[key_type]))


@dataclass(frozen=True)
class FunctionCallPermission:
    """Access key limited to calling methods on one receiver."""

    receiver_id: str
    allowance: int | None = None
    method_names: tuple[str, ...] = ()


@dataclass(frozen=True)
class FullAccessPermission:
    """Unrestricted access key."""


@dataclass(frozen=True)
class AccessKey:
    """Access key record attached by ``AddKey``."""

    nonce: int = 0
    permission: FunctionCallPermission | FullAccessPermission = FullAccessPermission()

    def _encode(self, w: _Writer) -> None:
        w.u64(self.nonce)
        if isinstance(self.permission, FunctionCallPermission):
            w.u8(0)
            if self.permission.allowance is None:
                w.u8(0)
            else:
                w.u8(1)
                w.u128(self.permission.allowance)
            w.string(self.permission.receiver_id)
            w.u32(len(self.permission.method_names))
            for name in self.permission.method_names:
                w.string(name)
        else:
            w.u8(1)

    @classmethod
    def _decode(cls, r: _Reader) -> "AccessKey":
        nonce = r.u64()
        tag = r.u8()
        if tag == 1:
            return cls(nonce, FullAccessPermission())
        if tag != 0:
            raise _serialization_error(f"Unknown access key permission: {tag}")
        allowance = r.u128() if r.u8() else None
        receiver_id = r.string()
        method_names = tuple(r.string() for _ in range(r.u32()))
        return cls(nonce, FunctionCallPermission(receiver_id, allowance, method_names))


# ============================================================================
# Actions
# ============================================================================


@dataclass(frozen=True)
class CreateAccount:
    def _encode(self, w: _Writer) -> None:
        pass

    @classmethod
    def _decode(cls, r: _Reader) -> "CreateAccount":
        return cls()


@dataclass(frozen=True)
class DeployContract:
    code: bytes

    def _encode(self, w: _Writer) -> None:
        w.vec(self.code)

    @classmethod
    def _decode(cls, r: _Reader) -> "DeployContract":
        return cls(r.vec())


@dataclass(frozen=True)
class FunctionCall:
    method_name: str
    args: bytes
    gas: int
    deposit: int

    def _encode(self, w: _Writer) -> None:
        w.string(self.method_name)
        w.vec(self.args)
        w.u64(self.gas)
        w.u128(self.deposit)

    @classmethod
    def _decode(cls, r: _Reader) -> "FunctionCall":
        return cls(r.string(), r.vec(), r.u64(), r.u128())


@dataclass(frozen=True)
class Transfer:
    deposit: int

    def _encode(self, w: _Writer) -> None:
        w.u128(self.deposit)

    @classmethod
    def _decode(cls, r: _Reader) -> "Transfer":
        return cls(r.u128())


@dataclass(frozen=True)
class Stake:
    stake: int
    public_key: PublicKey

    def _encode(self, w: _Writer) -> None:
        w.u128(self.stake)
        self.public_key._encode(w)

    @classmethod
    def _decode(cls, r: _Reader) -> "Stake":
        return cls(r.u128(), PublicKey._decode(r))


@dataclass(frozen=True)
class AddKey:
    public_key: PublicKey
    access_key: AccessKey = AccessKey()

    def _encode(self, w: _Writer) -> None:
        self.public_key._encode(w)
        self.access_key._encode(w)

    @classmethod
    def _decode(cls, r: _Reader) -> "AddKey":
        return cls(PublicKey._decode(r), AccessKey._decode(r))


@dataclass(frozen=True)
class DeleteKey:
    public_key: PublicKey

    def _encode(self, w: _Writer) -> None:
        self.public_key._encode(w)

    @classmethod
    def _decode(cls, r: _Reader) -> "DeleteKey":
        return cls(PublicKey._decode(r))


@dataclass(frozen=True)
class DeleteAccount:
    beneficiary_id: str

    def _encode(self, w: _Writer) -> None:
        w.string(self.beneficiary_id)

    @classmethod
    def _decode(cls, r: _Reader) -> "DeleteAccount":
        return cls(r.string())


Action = Union[
    CreateAccount,
    DeployContract,
    FunctionCall,
    Transfer,
    Stake,
    AddKey,
    DeleteKey,
    DeleteAccount,
]

# Position is the on-chain enum tag
_ACTION_TYPES: tuple[type, ...] = (
    CreateAccount,
    DeployContract,
    FunctionCall,
    Transfer,
    Stake,
    AddKey,
    DeleteKey,
    DeleteAccount,
)


def _encode_action(w: _Writer, action: Action) -> None:
    try:
        tag = _ACTION_TYPES.index(type(action))
    except ValueError:
        raise _serialization_error(f"Unsupported action: {type(action).__name__}") from None
    w.u8(tag)
    action._encode(w)


def _decode_action(r: _Reader) -> Action:
    tag = r.u8()
    if tag >= len(_ACTION_TYPES):
        raise _serialization_error(f"Unknown action tag: {tag}")
    return _ACTION_TYPES[tag]._decode(r)


# ============================================================================
# Transactions
# ============================================================================


@dataclass(frozen=True)
class Transaction:
    """Unsigned NEAR transaction."""

    signer_id: str
    public_key: PublicKey
    nonce: int
    receiver_id: str
    block_hash: bytes
    actions: tuple[Action, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not isinstance(self.actions, tuple):
            object.__setattr__(self, "actions", tuple(self.actions))

    def _encode(self, w: _Writer) -> None:
        w.string(self.signer_id)
        self.public_key._encode(w)
        w.u64(self.nonce)
        w.string(self.receiver_id)
        w.fixed(self.block_hash, 32)
        w.u32(len(self.actions))
        for action in self.actions:
            _encode_action(w, action)

    @classmethod
    def _decode(cls, r: _Reader) -> "Transaction":
        signer_id = r.string()
        public_key = PublicKey._decode(r)
        nonce = r.u64()
        receiver_id = r.string()
        block_hash = r.fixed(32)
        actions = tuple(_decode_action(r) for _ in range(r.u32()))
        return cls(signer_id, public_key, nonce, receiver_id, block_hash, actions)

    def encode(self) -> bytes:
        """Canonical bytes; their digest is what gets signed."""
        w = _Writer()
        self._encode(w)
        return w.getvalue()

    @classmethod
    def decode(cls, data: bytes) -> "Transaction":
        r = _Reader(data)
        tx = cls._decode(r)
        r.finish()
        return tx


@dataclass(frozen=True)
class SignedTransaction:
    """Transaction plus the signature over its digest."""

    transaction: Transaction
    signature: NearSignature

    def encode(self) -> bytes:
        w = _Writer()
        self.transaction._encode(w)
        self.signature._encode(w)
        return w.getvalue()

    @classmethod
    def decode(cls, data: bytes) -> "SignedTransaction":
        r = _Reader(data)
        transaction = Transaction._decode(r)
        signature = NearSignature._decode(r)
        r.finish()
        return cls(transaction, signature)
