"""Provisioning of derived NEAR accounts."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

import base58

from ...crypto import DEFAULT_HASHER, Hasher
from ...types import TransactionFailedError
from .errors import is_account_does_not_exist_error
from .keys import KeyPair
from .rpc import FinalExecutionOutcome, JsonRpcProvider
from .transactions import (
    AccessKey,
    Action,
    AddKey,
    CreateAccount,
    FullAccessPermission,
    NearSignature,
    PublicKey,
    SignedTransaction,
    Transaction,
    Transfer,
)

logger = logging.getLogger(__name__)


@dataclass
class EnsureAccountResult:
    """Result of ``ensure_derived_account_exists``."""

    created: bool


async def sign_and_send_with_key_pair(
    provider: JsonRpcProvider,
    signer_id: str,
    key_pair: KeyPair,
    receiver_id: str,
    actions: Sequence[Action],
    hasher: Hasher = DEFAULT_HASHER,
) -> FinalExecutionOutcome:
    """Build, sign locally and submit a transaction from ``signer_id``."""
    public_key = key_pair.public_key
    access_key = await provider.view_access_key(signer_id, public_key.to_string())

    block_hash = access_key.get("block_hash")
    if not block_hash:
        block = await provider.block(finality="final")
        block_hash = block["header"]["hash"]

    tx = Transaction(
        signer_id=signer_id,
        public_key=public_key,
        nonce=(access_key.get("nonce") or 0) + 1,
        receiver_id=receiver_id,
        block_hash=base58.b58decode(block_hash),
        actions=tuple(actions),
    )

    signed = SignedTransaction(
        transaction=tx,
        signature=NearSignature(public_key.key_type, key_pair.sign(hasher(tx.encode()))),
    )
    outcome = await provider.send_transaction(signed)

    status = outcome.get("status")
    if isinstance(status, dict) and "Failure" in status:
        raise TransactionFailedError(
            f"Transaction from {signer_id} to {receiver_id} failed: {status['Failure']}",
            outcome,
        )
    return outcome


async def ensure_derived_account_exists(
    provider: JsonRpcProvider,
    controller_account_id: str,
    controller_key_pair: KeyPair,
    derived_account_id: str,
    mpc_public_key: str,
    initial_deposit_yocto: int,
    hasher: Hasher = DEFAULT_HASHER,
) -> EnsureAccountResult:
    """
    Create and fund a derived account unless it already exists.

    The account is created by the controller account, signed with the
    controller's own key, and receives the MPC public key as a full-access
    key so it can be driven through the signing contract afterwards.

    The existence check and the creation are not atomic. When two callers
    race, the chain rejects the second ``CreateAccount`` and that failure is
    raised as ``TransactionFailedError``.

    Example:
        >>> result = await ensure_derived_account_exists(
        ...     provider,
        ...     controller_account_id="alice.testnet",
        ...     controller_key_pair=KeyPair.from_string("ed25519:..."),
        ...     derived_account_id="near-1.alice.testnet",
        ...     mpc_public_key="ed25519:...",
        ...     initial_deposit_yocto=10**23,  # 0.1 NEAR
        ... )
        >>> result.created
        True
    """
    try:
        account = await provider.view_account(derived_account_id)
        if isinstance(account.get("amount"), str):
            logger.debug("Derived account %s already exists", derived_account_id)
            return EnsureAccountResult(created=False)
    except Exception as e:
        if not is_account_does_not_exist_error(e):
            raise

    actions = [
        CreateAccount(),
        Transfer(deposit=initial_deposit_yocto),
        AddKey(
            public_key=PublicKey.from_string(mpc_public_key),
            access_key=AccessKey(nonce=0, permission=FullAccessPermission()),
        ),
    ]

    await sign_and_send_with_key_pair(
        provider,
        signer_id=controller_account_id,
        key_pair=controller_key_pair,
        receiver_id=derived_account_id,
        actions=actions,
        hasher=hasher,
    )
    logger.info(
        "Created derived account %s from %s", derived_account_id, controller_account_id
    )
    return EnsureAccountResult(created=True)
