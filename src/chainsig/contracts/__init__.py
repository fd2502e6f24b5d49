"""MPC signing contract client."""

from .chain_signature import ChainSignatureContract, SignerAccount, TransactionIntent
from .sign_and_send import KeyPairSignerAccount, get_near_account
from .signature import response_to_mpc_signature

__all__ = [
    "ChainSignatureContract",
    "SignerAccount",
    "TransactionIntent",
    "KeyPairSignerAccount",
    "get_near_account",
    "response_to_mpc_signature",
]
