#!/usr/bin/env python3
"""
Send NEAR from a derived account

Derives `{path}.{ACCOUNT_ID}`, optionally creates it, then signs a transfer
through the MPC contract and broadcasts it.

Environment (.env):
    ACCOUNT_ID=alice.testnet
    PRIVATE_KEY=ed25519:...
    CREATE_DERIVED_ACCOUNT=1   # optional
"""

import asyncio
import os

from dotenv import load_dotenv

from chainsig import (
    ChainSignatureContract,
    JsonRpcProvider,
    KeyPair,
    KeyPairSignerAccount,
    KeyType,
    NearAdapter,
    NEARNetworks,
    NearTransactionRequest,
    ensure_derived_account_exists,
)
from chainsig.contracts.constants import CONTRACT_IDS

load_dotenv()

DERIVATION_PATH = "near-3"


async def main() -> None:
    account_id = os.environ.get("ACCOUNT_ID")
    private_key = os.environ.get("PRIVATE_KEY")
    if not account_id or not private_key:
        raise SystemExit("ACCOUNT_ID and PRIVATE_KEY are required")

    key_pair = KeyPair.from_string(private_key)
    config = NEARNetworks["TESTNET"]
    provider = JsonRpcProvider(config.rpc_urls)

    contract = ChainSignatureContract(
        contract_id=CONTRACT_IDS["testnet"],
        network_id="testnet",
        provider=provider,
    )
    near = NearAdapter(config, contract, provider=provider)

    # [1] Derive the controlled account
    derived = await near.derive_address_and_public_key(account_id, DERIVATION_PATH)
    print(f"Derived account: {derived.address}")

    # [2] Optionally create & fund it with the MPC key as full-access key
    if os.environ.get("CREATE_DERIVED_ACCOUNT"):
        result = await ensure_derived_account_exists(
            provider,
            controller_account_id=account_id,
            controller_key_pair=key_pair,
            derived_account_id=derived.address,
            mpc_public_key=derived.public_key,
            initial_deposit_yocto=10**24,  # 1 NEAR
        )
        print(f"Created: {result.created}")

    balance = await near.get_balance(derived.address)
    print(f"Balance: {balance.formatted}")

    # [3] Prepare, sign through the MPC contract, finalize and broadcast
    prepared = await near.prepare_transaction_for_signing(NearTransactionRequest(
        from_address=derived.address,
        to="receiver.testnet",
        amount=10**22,
        public_key=derived.public_key,
    ))
    summary = prepared.transaction.summary
    print(f"Signing: {summary['amount']} from {summary['from']} to {summary['to']}")

    signatures = await contract.sign(
        payloads=prepared.hashes_to_sign,
        path=DERIVATION_PATH,
        key_type=KeyType.EDDSA,
        signer_account=KeyPairSignerAccount(account_id, key_pair, provider),
    )

    signed = near.finalize_transaction_signing(prepared.transaction, signatures[0])
    tx_hash = await near.broadcast_tx(signed)
    print(f"Sent: {tx_hash.explorer_url or tx_hash.hash}")


if __name__ == "__main__":
    asyncio.run(main())
