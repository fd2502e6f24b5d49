"""
Chain signatures SDK

Control deterministically-derived accounts on other chains from one NEAR
account, using the MPC signing contract instead of a local private key.

Example:
    >>> from chainsig import ChainSignatureContract, KeyType, NearAdapter, NEARNetworks
    >>>
    >>> contract = ChainSignatureContract(
    ...     contract_id="v1.signer-prod.testnet",
    ...     network_id="testnet",
    ... )
    >>> near = NearAdapter(NEARNetworks["TESTNET"], contract)
    >>>
    >>> derived = await near.derive_address_and_public_key("alice.testnet", "near-1")
    >>> prepared = await near.prepare_transaction_for_signing(request)
    >>> signatures = await contract.sign(
    ...     payloads=prepared.hashes_to_sign,
    ...     path="near-1",
    ...     key_type=KeyType.EDDSA,
    ...     signer_account=account,
    ... )
    >>> signed = near.finalize_transaction_signing(prepared.transaction, signatures[0])
    >>> tx_hash = await near.broadcast_tx(signed)
"""

from .chains import ChainAdapter, PreparedTransaction
from .chains.near import (
    EnsureAccountResult,
    JsonRpcProvider,
    KeyPair,
    NearAdapter,
    NearChainConfig,
    NEARNetworks,
    NearTransactionRequest,
    NearUnsignedTransaction,
    ensure_derived_account_exists,
    is_account_does_not_exist_error,
)
from .contracts import (
    ChainSignatureContract,
    KeyPairSignerAccount,
    SignerAccount,
    TransactionIntent,
    get_near_account,
    response_to_mpc_signature,
)
from .crypto import DEFAULT_HASHER, Hasher, sha256
from .types import (
    AccountNotProvisionedError,
    Balance,
    ChainSigError,
    DerivedKey,
    Ed25519Signature,
    EmptySignatureSetError,
    ErrorCode,
    HashToSign,
    InvalidSignatureShapeError,
    KeyType,
    RpcError,
    RSVSignature,
    Signature,
    TransactionFailedError,
    TxHash,
)

__version__ = "0.1.0"
__all__ = [
    # Adapters
    "ChainAdapter",
    "PreparedTransaction",
    "NearAdapter",
    "NearChainConfig",
    "NEARNetworks",
    "NearTransactionRequest",
    "NearUnsignedTransaction",
    "JsonRpcProvider",
    "KeyPair",
    # Account bootstrap
    "EnsureAccountResult",
    "ensure_derived_account_exists",
    "is_account_does_not_exist_error",
    # Signing contract
    "ChainSignatureContract",
    "KeyPairSignerAccount",
    "SignerAccount",
    "TransactionIntent",
    "get_near_account",
    "response_to_mpc_signature",
    # Hashing
    "DEFAULT_HASHER",
    "Hasher",
    "sha256",
    # Types
    "KeyType",
    "HashToSign",
    "Signature",
    "RSVSignature",
    "Ed25519Signature",
    "DerivedKey",
    "Balance",
    "TxHash",
    # Errors
    "ErrorCode",
    "ChainSigError",
    "AccountNotProvisionedError",
    "InvalidSignatureShapeError",
    "EmptySignatureSetError",
    "RpcError",
    "TransactionFailedError",
]
