"""Client for the MPC chain-signatures contract."""

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from ..chains.near.rpc import FinalExecutionOutcome, JsonRpcProvider, get_transaction_last_result
from ..chains.near.transactions import Action, FunctionCall
from ..crypto import bytes_to_hex, naj_to_uncompressed_pubkey_sec1
from ..types import (
    ChainSigError,
    EmptySignatureSetError,
    ErrorCode,
    HashToSign,
    KeyType,
    Signature,
)
from .constants import NEAR_MAX_GAS, SIGNATURE_DEPOSIT
from .signature import response_to_mpc_signature

logger = logging.getLogger(__name__)


@dataclass
class TransactionIntent:
    """Transaction for a signer account to sign and submit."""

    signer_id: str
    receiver_id: str
    actions: list[Action] = field(default_factory=list)


class SignerAccount(Protocol):
    """Account able to authorize calls to the signing contract."""

    account_id: str

    async def sign_and_send_transactions(
        self, transactions: list[TransactionIntent]
    ) -> list[FinalExecutionOutcome]:
        """Submit transactions, returning one outcome per transaction in input order."""
        ...


class ChainSignatureContract:
    """
    MPC signing contract on NEAR.

    Signing is authorized by calling the contract's ``sign`` method from the
    predecessor account; the contract returns one signature per call.

    Example:
        >>> contract = ChainSignatureContract(
        ...     contract_id="v1.signer-prod.testnet",
        ...     network_id="testnet",
        ... )
        >>> signatures = await contract.sign(
        ...     payloads=prepared.hashes_to_sign,
        ...     path="near-1",
        ...     key_type=KeyType.EDDSA,
        ...     signer_account=account,
        ... )
    """

    def __init__(
        self,
        contract_id: str,
        network_id: str,
        fallback_rpc_urls: list[str] | None = None,
        provider: JsonRpcProvider | None = None,
    ) -> None:
        self._contract_id = contract_id
        self._network_id = network_id

        rpc_urls = fallback_rpc_urls or [f"https://rpc.{network_id}.near.org"]
        self._provider = provider or JsonRpcProvider(rpc_urls)

    @property
    def contract_id(self) -> str:
        """Get the contract account id."""
        return self._contract_id

    @property
    def network_id(self) -> str:
        """Get network id."""
        return self._network_id

    def get_current_signature_deposit(self) -> int:
        """Get the deposit attached to each sign call (yoctoNEAR)."""
        return SIGNATURE_DEPOSIT

    async def sign(
        self,
        payloads: Sequence[HashToSign],
        path: str,
        key_type: KeyType | str,
        signer_account: SignerAccount,
    ) -> list[Signature]:
        """Sign each payload; the i-th signature belongs to the i-th payload."""
        if not payloads:
            raise ChainSigError(ErrorCode.SIGNING_FAILED, "No payloads to sign")

        key_type = KeyType(key_type)
        transactions = [
            TransactionIntent(
                signer_id=signer_account.account_id,
                receiver_id=self._contract_id,
                actions=[self._sign_action(payload, path, key_type)],
            )
            for payload in payloads
        ]

        logger.debug(
            "Requesting %d %s signature(s) for path %r", len(transactions), key_type.value, path
        )
        outcomes = await signer_account.sign_and_send_transactions(transactions)

        if len(outcomes) != len(transactions):
            raise EmptySignatureSetError(
                f"Expected {len(transactions)} signatures, got {len(outcomes)} outcomes"
            )

        signatures: list[Signature] = []
        for index, outcome in enumerate(outcomes):
            signature = response_to_mpc_signature(get_transaction_last_result(outcome))
            if signature is None:
                raise EmptySignatureSetError(f"No signature returned for payload {index}")
            signatures.append(signature)

        return signatures

    async def get_public_key(self) -> str:
        """Get the contract's root ECDSA public key (uncompressed SEC1 hex)."""
        naj_public_key = await self._provider.call_function(self._contract_id, "public_key", {})
        return naj_to_uncompressed_pubkey_sec1(naj_public_key)

    async def get_derived_public_key(
        self, path: str, predecessor: str, is_ed25519: bool = False
    ) -> str:
        """
        Get the public key derived for (predecessor, path).

        Returns ``ed25519:<base58>`` for the Ed25519 domain and uncompressed
        SEC1 hex (``04 || x || y``) for the ECDSA domain.
        """
        key_type = KeyType.EDDSA if is_ed25519 else KeyType.ECDSA
        naj_public_key = await self._provider.call_function(
            self._contract_id,
            "derived_public_key",
            {"path": path, "predecessor": predecessor, "domain_id": key_type.domain_id},
        )
        if is_ed25519:
            return naj_public_key
        return naj_to_uncompressed_pubkey_sec1(naj_public_key)

    def _sign_action(self, payload: HashToSign, path: str, key_type: KeyType) -> FunctionCall:
        args: dict[str, Any] = {
            "request": {
                "payload_v2": {key_type.value: bytes_to_hex(payload)},
                "path": path,
                "domain_id": key_type.domain_id,
            }
        }
        return FunctionCall(
            method_name="sign",
            args=json.dumps(args).encode(),
            gas=NEAR_MAX_GAS,
            deposit=SIGNATURE_DEPOSIT,
        )
