"""Chain adapter contract shared by every chain implementation."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from ..types import Balance, DerivedKey, HashToSign, Signature, TxHash

RequestT = TypeVar("RequestT")
UnsignedT = TypeVar("UnsignedT")


@dataclass
class PreparedTransaction(Generic[UnsignedT]):
    """Unsigned transaction plus the payloads the signer must sign, in order."""

    transaction: UnsignedT
    hashes_to_sign: list[HashToSign] = field(default_factory=list)


class ChainAdapter(ABC, Generic[RequestT, UnsignedT]):
    """
    Lifecycle every chain adapter implements.

    derive -> balance -> prepare -> (MPC sign) -> finalize -> broadcast.
    The i-th hash returned by ``prepare_transaction_for_signing`` pairs with
    the i-th signature handed to ``finalize_transaction_signing``.
    """

    @abstractmethod
    async def derive_address_and_public_key(self, predecessor: str, path: str) -> DerivedKey:
        """Derive the foreign address and public key for (predecessor, path)."""

    @abstractmethod
    async def get_balance(self, address: str) -> Balance:
        """Get the native balance of an address."""

    @abstractmethod
    def serialize_transaction(self, transaction: UnsignedT) -> str:
        """Encode an unsigned transaction for transport."""

    @abstractmethod
    def deserialize_transaction(self, serialized: str) -> UnsignedT:
        """Decode an unsigned transaction produced by ``serialize_transaction``."""

    @abstractmethod
    async def prepare_transaction_for_signing(
        self, request: RequestT
    ) -> PreparedTransaction[UnsignedT]:
        """Build an unsigned transaction and the hashes to sign."""

    @abstractmethod
    def finalize_transaction_signing(self, transaction: UnsignedT, signature: Signature) -> str:
        """Attach a signature and return the transport-encoded signed transaction."""

    @abstractmethod
    async def broadcast_tx(self, serialized: str) -> TxHash:
        """Submit a signed transaction."""
