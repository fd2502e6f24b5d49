"""Tests for the signing contract client and signer accounts."""

from __future__ import annotations

import base64
import hashlib
import json

import base58
import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from chainsig import (
    ChainSigError,
    ChainSignatureContract,
    Ed25519Signature,
    EmptySignatureSetError,
    KeyPair,
    KeyPairSignerAccount,
    KeyType,
    NearAdapter,
    NEARNetworks,
    NearTransactionRequest,
    RSVSignature,
    TransactionIntent,
    get_near_account,
)
from chainsig.chains.near.transactions import FunctionCall, SignedTransaction, Transfer
from chainsig.contracts.constants import NEAR_MAX_GAS
from tests.conftest import MOCK_BLOCK_HASH, MOCK_PUBLIC_KEY

CONTRACT_ID = "v1.signer-prod.testnet"


def success_outcome(value) -> dict:
    encoded = base64.b64encode(json.dumps(value).encode()).decode()
    return {"status": {"SuccessValue": encoded}, "transaction": {"hash": "abc"}}


def ecdsa_response(marker: str, recovery_id: int = 0) -> dict:
    return {
        "scheme": "Secp256k1",
        "big_r": {"affine_point": "02" + marker * 32},
        "s": {"scalar": "ee" * 32},
        "recovery_id": recovery_id,
    }


class FakeSignerAccount:
    """Signer account returning queued outcomes."""

    def __init__(self, account_id: str, outcomes: list[dict]):
        self.account_id = account_id
        self.outcomes = outcomes
        self.calls: list[list[TransactionIntent]] = []

    async def sign_and_send_transactions(self, transactions):
        self.calls.append(transactions)
        return self.outcomes


@pytest.fixture
def contract(mock_provider):
    return ChainSignatureContract(
        contract_id=CONTRACT_ID, network_id="testnet", provider=mock_provider
    )


class TestSign:
    @pytest.mark.asyncio
    async def test_builds_one_call_per_payload(self, contract):
        payload = bytes([1] * 32)
        account = FakeSignerAccount(
            "alice.testnet",
            [success_outcome({"scheme": "Ed25519", "signature": [5] * 64})],
        )

        signatures = await contract.sign(
            payloads=[payload], path="near-1", key_type=KeyType.EDDSA, signer_account=account
        )

        assert signatures == [Ed25519Signature(signature=bytes([5] * 64))]
        [intents] = account.calls
        assert len(intents) == 1
        intent = intents[0]
        assert intent.signer_id == "alice.testnet"
        assert intent.receiver_id == CONTRACT_ID
        [action] = intent.actions
        assert isinstance(action, FunctionCall)
        assert action.method_name == "sign"
        assert action.gas == NEAR_MAX_GAS
        assert action.deposit == 1
        assert json.loads(action.args) == {
            "request": {
                "payload_v2": {"Eddsa": "01" * 32},
                "path": "near-1",
                "domain_id": 1,
            }
        }

    @pytest.mark.asyncio
    async def test_ecdsa_signatures_keep_payload_order(self, contract):
        account = FakeSignerAccount(
            "alice.testnet",
            [success_outcome(ecdsa_response("aa", 0)), success_outcome(ecdsa_response("bb", 1))],
        )

        signatures = await contract.sign(
            payloads=[bytes(32), bytes([1] * 32)],
            path="eth-1",
            key_type="Ecdsa",
            signer_account=account,
        )

        assert signatures == [
            RSVSignature(r="aa" * 32, s="ee" * 32, v=27),
            RSVSignature(r="bb" * 32, s="ee" * 32, v=28),
        ]
        args = [json.loads(intent.actions[0].args) for intent in account.calls[0]]
        assert [a["request"]["payload_v2"] for a in args] == [
            {"Ecdsa": "00" * 32},
            {"Ecdsa": "01" * 32},
        ]
        assert {a["request"]["domain_id"] for a in args} == {0}

    @pytest.mark.asyncio
    async def test_missing_outcomes(self, contract):
        account = FakeSignerAccount("alice.testnet", [])

        with pytest.raises(EmptySignatureSetError, match="Expected 1 signatures, got 0"):
            await contract.sign(
                payloads=[bytes(32)], path="p", key_type=KeyType.EDDSA, signer_account=account
            )

    @pytest.mark.asyncio
    async def test_outcome_without_result(self, contract):
        account = FakeSignerAccount("alice.testnet", [{"status": {"Failure": {}}}])

        with pytest.raises(EmptySignatureSetError, match="payload 0"):
            await contract.sign(
                payloads=[bytes(32)], path="p", key_type=KeyType.EDDSA, signer_account=account
            )

    @pytest.mark.parametrize("result", ["unexpected text", [1, 2, 3]])
    @pytest.mark.asyncio
    async def test_non_object_result(self, contract, result):
        account = FakeSignerAccount("alice.testnet", [success_outcome(result)])

        with pytest.raises(ChainSigError, match="Invalid signature format"):
            await contract.sign(
                payloads=[bytes(32)], path="p", key_type=KeyType.ECDSA, signer_account=account
            )

    @pytest.mark.asyncio
    async def test_non_json_result(self, contract):
        outcome = {"status": {"SuccessValue": base64.b64encode(b"not json").decode()}}
        account = FakeSignerAccount("alice.testnet", [outcome])

        with pytest.raises(ChainSigError, match="Invalid signature format"):
            await contract.sign(
                payloads=[bytes(32)], path="p", key_type=KeyType.ECDSA, signer_account=account
            )

    @pytest.mark.asyncio
    async def test_no_payloads(self, contract):
        account = FakeSignerAccount("alice.testnet", [])

        with pytest.raises(ChainSigError, match="No payloads to sign"):
            await contract.sign(payloads=[], path="p", key_type=KeyType.EDDSA, signer_account=account)

    def test_signature_deposit(self, contract):
        assert contract.get_current_signature_deposit() == 1


class TestViews:
    @pytest.mark.asyncio
    async def test_derived_ed25519_key_is_raw(self, contract, mock_provider):
        mock_provider.call_function.return_value = MOCK_PUBLIC_KEY

        key = await contract.get_derived_public_key(
            path="near-1", predecessor="alice.testnet", is_ed25519=True
        )

        assert key == MOCK_PUBLIC_KEY
        mock_provider.call_function.assert_awaited_once_with(
            CONTRACT_ID,
            "derived_public_key",
            {"path": "near-1", "predecessor": "alice.testnet", "domain_id": 1},
        )

    @pytest.mark.asyncio
    async def test_derived_ecdsa_key_is_uncompressed(self, contract, mock_provider):
        point = bytes(range(64))
        mock_provider.call_function.return_value = "secp256k1:" + base58.b58encode(point).decode()

        key = await contract.get_derived_public_key(path="eth-1", predecessor="alice.testnet")

        assert key == "04" + point.hex()
        args = mock_provider.call_function.await_args.args
        assert args[2]["domain_id"] == 0

    @pytest.mark.asyncio
    async def test_root_public_key(self, contract, mock_provider):
        point = bytes([9] * 64)
        mock_provider.call_function.return_value = "secp256k1:" + base58.b58encode(point).decode()

        assert await contract.get_public_key() == "04" + point.hex()
        mock_provider.call_function.assert_awaited_once_with(CONTRACT_ID, "public_key", {})

    def test_default_rpc_url(self):
        contract = ChainSignatureContract(contract_id=CONTRACT_ID, network_id="testnet")
        assert contract._provider.urls == ["https://rpc.testnet.near.org"]

    def test_fallback_rpc_urls(self):
        urls = ["https://a.example", "https://b.example"]
        contract = ChainSignatureContract(
            contract_id=CONTRACT_ID, network_id="testnet", fallback_rpc_urls=urls
        )
        assert contract._provider.urls == urls


class TestKeyPairSignerAccount:
    @pytest.mark.asyncio
    async def test_signs_and_sends_each_intent(self, mock_provider):
        key_pair = KeyPair.from_random()
        mock_provider.view_access_key.return_value = {"block_hash": MOCK_BLOCK_HASH, "nonce": 3}
        mock_provider.send_transaction.return_value = success_outcome("ok")
        account = KeyPairSignerAccount("alice.testnet", key_pair, mock_provider)
        action = FunctionCall(method_name="sign", args=b"{}", gas=1, deposit=1)

        outcomes = await account.sign_and_send_transactions(
            [TransactionIntent("alice.testnet", CONTRACT_ID, [action])]
        )

        assert outcomes == [success_outcome("ok")]
        mock_provider.view_access_key.assert_awaited_once_with(
            "alice.testnet", key_pair.public_key.to_string()
        )
        signed: SignedTransaction = mock_provider.send_transaction.await_args.args[0]
        assert signed.transaction.nonce == 4
        assert signed.transaction.receiver_id == CONTRACT_ID
        assert signed.transaction.actions == (action,)
        Ed25519PublicKey.from_public_bytes(key_pair.public_key.data).verify(
            signed.signature.data, hashlib.sha256(signed.transaction.encode()).digest()
        )

    @pytest.mark.asyncio
    async def test_rejects_foreign_signer(self, mock_provider):
        account = KeyPairSignerAccount("alice.testnet", KeyPair.from_random(), mock_provider)

        with pytest.raises(ChainSigError, match="does not match"):
            await account.sign_and_send_transactions(
                [TransactionIntent("bob.testnet", CONTRACT_ID, [])]
            )
        mock_provider.send_transaction.assert_not_awaited()

    def test_get_near_account(self):
        account = get_near_account("testnet")
        assert account.account_id == "dontcare"

    def test_get_near_account_unsupported_network(self):
        with pytest.raises(ChainSigError, match="Unsupported network: localnet"):
            get_near_account("localnet")


@pytest.mark.asyncio
async def test_end_to_end_transfer(mock_provider):
    """derive -> balance -> prepare -> sign -> finalize -> broadcast."""
    mpc_key = KeyPair.from_random()
    contract = ChainSignatureContract(
        contract_id=CONTRACT_ID, network_id="testnet", provider=mock_provider
    )
    near = NearAdapter(NEARNetworks["TESTNET"], contract, provider=mock_provider)

    mock_provider.call_function.return_value = mpc_key.public_key.to_string()
    derived = await near.derive_address_and_public_key("alice.testnet", "near-1")
    assert derived.address == "near-1.alice.testnet"

    mock_provider.view_account.return_value = {"amount": "1000000000000000000000000"}
    balance = await near.get_balance(derived.address)
    assert (balance.balance, balance.decimals) == (10**24, 24)

    mock_provider.view_access_key.return_value = {
        "block_hash": MOCK_BLOCK_HASH,
        "nonce": 41,
        "public_key": derived.public_key,
    }
    prepared = await near.prepare_transaction_for_signing(
        NearTransactionRequest(
            from_address=derived.address,
            to="bob.testnet",
            amount=10**22,
            public_key=derived.public_key,
        )
    )

    # The MPC network signs the payload with the derived key
    payload = prepared.hashes_to_sign[0]
    account = FakeSignerAccount(
        "alice.testnet",
        [success_outcome({"scheme": "Ed25519", "signature": list(mpc_key.sign(payload))})],
    )
    signatures = await contract.sign(
        payloads=prepared.hashes_to_sign,
        path="near-1",
        key_type=KeyType.EDDSA,
        signer_account=account,
    )

    signed_b64 = near.finalize_transaction_signing(prepared.transaction, signatures[0])

    mock_provider.send_transaction.return_value = {"transaction": {"hash": "FinalHash"}}
    tx_hash = await near.broadcast_tx(signed_b64)

    assert tx_hash.hash == "FinalHash"
    signed: SignedTransaction = mock_provider.send_transaction.await_args.args[0]
    assert signed.transaction.nonce == 42
    assert signed.transaction.actions == (Transfer(deposit=10**22),)
    Ed25519PublicKey.from_public_bytes(mpc_key.public_key.data).verify(
        signed.signature.data, hashlib.sha256(signed.transaction.encode()).digest()
    )
