"""Signing contract constants."""

# Gas attached to each `sign` call (300 TGas)
NEAR_MAX_GAS = 300_000_000_000_000

# Minimal deposit attached to each `sign` call (yoctoNEAR)
SIGNATURE_DEPOSIT = 1

# Account id used for read-only connections
DONT_CARE_ACCOUNT_ID = "dontcare"

# Deployed signing contracts
CONTRACT_IDS = {
    "mainnet": "v1.signer",
    "testnet": "v1.signer-prod.testnet",
}
