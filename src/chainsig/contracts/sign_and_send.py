"""Signer account backed by a local key pair."""

from ..chains.near.accounts import sign_and_send_with_key_pair
from ..chains.near.keys import KeyPair
from ..chains.near.rpc import FinalExecutionOutcome, JsonRpcProvider
from ..crypto import DEFAULT_HASHER, Hasher
from ..types import ChainSigError, ErrorCode
from .chain_signature import TransactionIntent
from .constants import DONT_CARE_ACCOUNT_ID

_NETWORK_RPC_URLS = {
    "testnet": "https://rpc.testnet.near.org",
    "mainnet": "https://rpc.mainnet.near.org",
}


class KeyPairSignerAccount:
    """NEAR account that signs with a full-access key held in process."""

    def __init__(
        self,
        account_id: str,
        key_pair: KeyPair,
        provider: JsonRpcProvider,
        hasher: Hasher = DEFAULT_HASHER,
    ) -> None:
        self.account_id = account_id
        self._key_pair = key_pair
        self._provider = provider
        self._hasher = hasher

    @property
    def key_pair(self) -> KeyPair:
        return self._key_pair

    async def sign_and_send_transactions(
        self, transactions: list[TransactionIntent]
    ) -> list[FinalExecutionOutcome]:
        """Submit transactions one at a time; each re-reads the access key nonce."""
        outcomes: list[FinalExecutionOutcome] = []
        for tx in transactions:
            if tx.signer_id != self.account_id:
                raise ChainSigError(
                    ErrorCode.INVALID_CONFIG,
                    f"Transaction signer {tx.signer_id} does not match account {self.account_id}",
                )
            outcome = await sign_and_send_with_key_pair(
                self._provider,
                signer_id=self.account_id,
                key_pair=self._key_pair,
                receiver_id=tx.receiver_id,
                actions=tx.actions,
                hasher=self._hasher,
            )
            outcomes.append(outcome)
        return outcomes


def get_near_account(
    network_id: str,
    account_id: str = DONT_CARE_ACCOUNT_ID,
    key_pair: KeyPair | None = None,
) -> KeyPairSignerAccount:
    """Build a signer account against the public RPC of ``network_id``."""
    rpc_url = _NETWORK_RPC_URLS.get(network_id)
    if not rpc_url:
        raise ChainSigError(ErrorCode.INVALID_CONFIG, f"Unsupported network: {network_id}")

    return KeyPairSignerAccount(
        account_id=account_id,
        key_pair=key_pair or KeyPair.from_random(),
        provider=JsonRpcProvider(rpc_url),
    )
