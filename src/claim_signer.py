# ============================================================================
# PROJECT: SplitWithLockup Claim Signer
# MODULE: claim_signer.py
# PURPOSE: Build an EIP-712 Claim, sign it with a local key, print v/r/s.
# ============================================================================

import os
import sys

from sign_core import (
    SignerError,
    SigningError,
    TypedDataError,
    derive_address,
    hexstr,
    recover_address,
    sign_digest,
    split_signature,
)
from typed_data import typed_data_digest

# Test key only. DO NOT use private keys that hold real funds.
PRIVATE_KEY = "0x4646464646464646464646464646464646464646464646464646464646464646"
VERIFYING_CONTRACT = "0x5615dEB798BB3E4dFa0139dFa1b3D433Cc23b72f"
CHAIN_ID = 31337  # anvil / hardhat

DOMAIN_NAME = "SplitWithLockup"
DOMAIN_VERSION = "1"

CLAIM_TYPES = {
    "Claim": [
        {"name": "recipient", "type": "address"},
        {"name": "status", "type": "bool"},
        {"name": "nonce", "type": "uint256"},
    ],
}


def claim_domain(chain_id: int = CHAIN_ID, verifying_contract: str = VERIFYING_CONTRACT) -> dict:
    return {
        "name": DOMAIN_NAME,
        "version": DOMAIN_VERSION,
        "chainId": chain_id,
        "verifyingContract": verifying_contract,
    }


class TypedDataSigner:
    """
    Signs values of one EIP-712 primary type under a fixed domain.
    The private key is handed to each sign call and never stored.
    """

    def __init__(self, domain: dict, types: dict, primary_type: str = None):
        self.domain = domain
        self.types = types
        if primary_type is None:
            if len(types) != 1:
                raise TypedDataError("primary_type is required when types has more than one entry")
            primary_type = next(iter(types))
        self.primary_type = primary_type

    def digest(self, value: dict) -> bytes:
        return typed_data_digest(self.domain, self.types, self.primary_type, value)

    def sign(self, value: dict, private_key) -> bytes:
        digest = self.digest(value)
        signature = sign_digest(private_key, digest)

        # Local self-check: recovered signer must be the key's address
        if recover_address(digest, signature) != derive_address(private_key):
            raise SigningError("local signature verification failed")
        return signature

    def recover(self, value: dict, signature) -> str:
        return recover_address(self.digest(value), signature)


def sign_typed_data(domain: dict, types: dict, value: dict, private_key, primary_type: str = None) -> bytes:
    return TypedDataSigner(domain, types, primary_type).sign(value, private_key)


def load_config() -> dict:
    """Compiled-in defaults, each overridable from the environment."""
    return {
        "private_key": os.getenv("CLAIM_PRIVATE_KEY", PRIVATE_KEY),
        "verifying_contract": os.getenv("CLAIM_VERIFYING_CONTRACT", VERIFYING_CONTRACT),
        "chain_id": int(os.getenv("CLAIM_CHAIN_ID", CHAIN_ID)),
    }


def run(config: dict) -> dict:
    private_key = config["private_key"]

    public_key = derive_address(private_key)
    print("publicKey", public_key)

    value = {
        "recipient": public_key,
        "status": True,
        "nonce": 0,
    }
    print(value)

    signer = TypedDataSigner(
        claim_domain(config["chain_id"], config["verifying_contract"]),
        CLAIM_TYPES,
    )
    signature = signer.sign(value, private_key)
    v, r, s = split_signature(signature)

    print("User Address:", public_key)
    print("Signature:", hexstr(signature))
    print("v:", v)
    print("r:", hexstr(r))
    print("s:", hexstr(s))

    return {"address": public_key, "value": value, "signature": signature, "v": v, "r": r, "s": s}


def main():
    try:
        config = load_config()
        run(config)
    except (SignerError, ValueError) as e:
        print(f"[FATAL] Claim signing failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
