"""Shared fixtures for chainsig tests."""

from unittest.mock import AsyncMock, MagicMock

import base58
import pytest

from chainsig.chains.near.rpc import JsonRpcProvider

MOCK_PUBLIC_KEY = "ed25519:" + base58.b58encode(bytes(range(32))).decode()
MOCK_BLOCK_HASH = base58.b58encode(bytes([7] * 32)).decode()
MOCK_ACCOUNT_ID = "test.testnet"
RECEIVER_ID = "recipient.testnet"


@pytest.fixture
def mock_provider():
    """JSON-RPC provider with every network call stubbed."""
    provider = MagicMock(spec=JsonRpcProvider)
    provider.query = AsyncMock()
    provider.view_account = AsyncMock()
    provider.view_access_key = AsyncMock()
    provider.block = AsyncMock(return_value={"header": {"hash": MOCK_BLOCK_HASH}})
    provider.call_function = AsyncMock()
    provider.send_transaction = AsyncMock()
    return provider


@pytest.fixture
def mock_contract():
    """Signing contract stub returning a fixed derived key."""
    contract = MagicMock()
    contract.contract_id = "v1.signer-prod.testnet"
    contract.get_derived_public_key = AsyncMock(return_value=MOCK_PUBLIC_KEY)
    contract.get_current_signature_deposit = MagicMock(return_value=1)
    return contract
