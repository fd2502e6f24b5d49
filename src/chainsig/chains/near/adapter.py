"""NEAR chain adapter."""

import base64
import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import base58

from ...crypto import DEFAULT_HASHER, Hasher
from ...types import (
    AccountNotProvisionedError,
    Balance,
    DerivedKey,
    Ed25519Signature,
    InvalidSignatureShapeError,
    Signature,
    TxHash,
)
from ..base import ChainAdapter, PreparedTransaction
from .errors import is_account_does_not_exist_error
from .rpc import JsonRpcProvider
from .transactions import NearSignature, PublicKey, SignedTransaction, Transaction, Transfer

if TYPE_CHECKING:
    from ...contracts.chain_signature import ChainSignatureContract

logger = logging.getLogger(__name__)

# NEAR amounts are always denominated in yoctoNEAR
NEAR_DECIMALS = 24

_ACCOUNT_ID_RE = re.compile(r"^(([a-z\d]+[-_])*[a-z\d]+\.)*([a-z\d]+[-_])*[a-z\d]+$")


@dataclass
class NearChainConfig:
    """NEAR network configuration."""

    network_id: str
    rpc_urls: list[str]
    symbol: str = "NEAR"
    explorer_url: str | None = None


# Pre-configured networks
NEARNetworks = {
    "MAINNET": NearChainConfig(
        network_id="mainnet",
        rpc_urls=["https://rpc.mainnet.near.org", "https://free.rpc.fastnear.com"],
        explorer_url="https://nearblocks.io",
    ),
    "TESTNET": NearChainConfig(
        network_id="testnet",
        rpc_urls=["https://rpc.testnet.near.org", "https://test.rpc.fastnear.com"],
        explorer_url="https://testnet.nearblocks.io",
    ),
}


@dataclass
class NearTransactionRequest:
    """Transfer request for NEAR."""

    from_address: str  # Derived account id
    to: str
    amount: int  # In yoctoNEAR
    public_key: str  # Derived MPC public key (ed25519:...)


@dataclass
class NearUnsignedTransaction:
    """Unsigned NEAR transaction."""

    transaction: Transaction
    summary: dict[str, str] = field(default_factory=dict)


class NearAdapter(ChainAdapter[NearTransactionRequest, NearUnsignedTransaction]):
    """
    NEAR chain adapter.

    Example:
        >>> contract = ChainSignatureContract(contract_id="v1.signer-prod.testnet", network_id="testnet")
        >>> adapter = NearAdapter(NEARNetworks["TESTNET"], contract)
        >>>
        >>> # Derive the controlled account
        >>> derived = await adapter.derive_address_and_public_key("alice.testnet", "near-1")
        >>>
        >>> # Build transaction
        >>> prepared = await adapter.prepare_transaction_for_signing(NearTransactionRequest(
        ...     from_address=derived.address,
        ...     to="bob.testnet",
        ...     amount=10**24,  # 1 NEAR
        ...     public_key=derived.public_key,
        ... ))
    """

    def __init__(
        self,
        config: NearChainConfig,
        contract: "ChainSignatureContract",
        provider: JsonRpcProvider | None = None,
        hasher: Hasher = DEFAULT_HASHER,
    ) -> None:
        self._config = config
        self._contract = contract
        self._provider = provider or JsonRpcProvider(config.rpc_urls)
        self._hasher = hasher

    @property
    def network_id(self) -> str:
        """Get network id."""
        return self._config.network_id

    @property
    def symbol(self) -> str:
        """Get native currency symbol."""
        return self._config.symbol

    @property
    def decimals(self) -> int:
        """Get native currency decimals."""
        return NEAR_DECIMALS

    @property
    def provider(self) -> JsonRpcProvider:
        """Get the RPC provider."""
        return self._provider

    async def derive_address_and_public_key(self, predecessor: str, path: str) -> DerivedKey:
        """Derive the sub-account ``{path}.{predecessor}`` and its MPC ed25519 key."""
        derived_key = await self._contract.get_derived_public_key(
            path=path, predecessor=predecessor, is_ed25519=True
        )
        public_key = PublicKey.from_string(derived_key)
        return DerivedKey(address=f"{path}.{predecessor}", public_key=public_key.to_string())

    async def get_balance(self, address: str) -> Balance:
        """Get NEAR balance for an account."""
        try:
            account = await self._provider.view_account(address)
        except Exception as e:
            if is_account_does_not_exist_error(e):
                raise AccountNotProvisionedError(
                    f"NEAR derived account not found: {address}. Create & fund it or call "
                    "ensure_derived_account_exists(...) before sending.",
                    account_id=address,
                    cause=e,
                ) from e
            raise

        return Balance(
            balance=int(account["amount"]),
            decimals=NEAR_DECIMALS,
            symbol=self._config.symbol,
        )

    def serialize_transaction(self, transaction: NearUnsignedTransaction) -> str:
        """Encode an unsigned transaction as base64."""
        return base64.b64encode(transaction.transaction.encode()).decode()

    def deserialize_transaction(self, serialized: str) -> NearUnsignedTransaction:
        """Decode a base64 unsigned transaction."""
        return NearUnsignedTransaction(transaction=Transaction.decode(base64.b64decode(serialized)))

    async def prepare_transaction_for_signing(
        self, request: NearTransactionRequest
    ) -> PreparedTransaction[NearUnsignedTransaction]:
        """Build an unsigned transfer and the single hash to sign."""
        try:
            access_key = await self._provider.view_access_key(
                request.from_address, request.public_key
            )
        except Exception as e:
            if is_account_does_not_exist_error(e):
                raise AccountNotProvisionedError(
                    f"NEAR derived account not found: {request.from_address}. Create & fund it "
                    "or call ensure_derived_account_exists("
                    f'derived_account_id="{request.from_address}", '
                    f'mpc_public_key="{request.public_key}").',
                    account_id=request.from_address,
                    public_key=request.public_key,
                    cause=e,
                ) from e
            raise

        block_hash = access_key.get("block_hash")
        if not block_hash:
            block = await self._provider.block(finality="final")
            block_hash = block["header"]["hash"]

        tx = Transaction(
            signer_id=request.from_address,
            public_key=PublicKey.from_string(access_key.get("public_key") or request.public_key),
            nonce=(access_key.get("nonce") or 0) + 1,
            receiver_id=request.to,
            block_hash=base58.b58decode(block_hash),
            actions=(Transfer(deposit=request.amount),),
        )
        signing_hash = self._hasher(tx.encode())
        logger.debug(
            "Prepared transfer %s -> %s nonce=%d", tx.signer_id, tx.receiver_id, tx.nonce
        )

        return PreparedTransaction(
            transaction=NearUnsignedTransaction(
                transaction=tx,
                summary={
                    "from": request.from_address,
                    "to": request.to,
                    "amount": Balance(request.amount, self.decimals, self.symbol).formatted,
                },
            ),
            hashes_to_sign=[signing_hash],
        )

    def finalize_transaction_signing(
        self, transaction: NearUnsignedTransaction, signature: Signature
    ) -> str:
        """Attach an Ed25519 signature and return the base64 signed transaction."""
        if not isinstance(signature, Ed25519Signature):
            raise InvalidSignatureShapeError(
                "NEAR expects an Ed25519 signature object, not RSV array"
            )

        tx = transaction.transaction
        signed = SignedTransaction(
            transaction=tx,
            signature=NearSignature(key_type=tx.public_key.key_type, data=bytes(signature.signature)),
        )
        return base64.b64encode(signed.encode()).decode()

    async def broadcast_tx(self, serialized: str) -> TxHash:
        """Broadcast a base64 signed transaction."""
        signed = SignedTransaction.decode(base64.b64decode(serialized))
        outcome = await self._provider.send_transaction(signed)
        tx_hash = outcome["transaction"]["hash"]
        logger.info("Broadcast NEAR transaction %s", tx_hash)
        return TxHash(hash=tx_hash, explorer_url=self.get_explorer_tx_url(tx_hash))

    def is_valid_address(self, address: str) -> bool:
        """Check if an account id is valid."""
        return 2 <= len(address) <= 64 and bool(_ACCOUNT_ID_RE.match(address))

    def get_explorer_tx_url(self, tx_hash: str) -> str | None:
        """Get explorer URL for a transaction."""
        if not self._config.explorer_url:
            return None
        return f"{self._config.explorer_url}/txns/{tx_hash}"

    def get_explorer_address_url(self, address: str) -> str | None:
        """Get explorer URL for an account."""
        if not self._config.explorer_url:
            return None
        return f"{self._config.explorer_url}/address/{address}"
