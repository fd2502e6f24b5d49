"""NEAR reference adapter."""

from .accounts import EnsureAccountResult, ensure_derived_account_exists, sign_and_send_with_key_pair
from .adapter import (
    NearAdapter,
    NearChainConfig,
    NEARNetworks,
    NearTransactionRequest,
    NearUnsignedTransaction,
)
from .errors import is_account_does_not_exist_error
from .keys import KeyPair
from .rpc import JsonRpcProvider, get_transaction_last_result

__all__ = [
    "NearAdapter",
    "NearChainConfig",
    "NEARNetworks",
    "NearTransactionRequest",
    "NearUnsignedTransaction",
    "EnsureAccountResult",
    "ensure_derived_account_exists",
    "sign_and_send_with_key_pair",
    "is_account_does_not_exist_error",
    "KeyPair",
    "JsonRpcProvider",
    "get_transaction_last_result",
]
