"""Normalization of signing contract responses."""

from collections.abc import Mapping
from typing import Any

from ..crypto import to_rsv
from ..types import ChainSigError, Ed25519Signature, ErrorCode, Signature


def response_to_mpc_signature(signature: Any) -> Signature | None:
    """
    Convert a raw MPC response into an Ed25519 or RSV signature.

    Responses tagged ``scheme == "Ed25519"`` carry raw signature bytes; every
    other response is treated as a compact ECDSA signature. Returns None for
    an empty response.
    """
    if not signature:
        return None
    if not isinstance(signature, Mapping):
        raise ChainSigError(ErrorCode.SIGNING_FAILED, "Invalid signature format")
    if signature.get("scheme") == "Ed25519" and "signature" in signature:
        return Ed25519Signature(signature=bytes(signature["signature"]))
    return to_rsv(signature)
