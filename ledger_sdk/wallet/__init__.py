"""
ledger_sdk.wallet
=================

Convenience exports for wallet helpers:

- secp256k1 account keys and the key-material provider seam.
- EVM partition flows (send, call, balance).
- Orchestration flows (add validator assignment record).
"""

from .evm import EvmTxResult, EvmWallet
from .orchestration import add_var, var_unit_id
from .signer import AccountKey, KeyMaterialProvider, Keyring, account_key, verify_owner_proof

__all__ = [
    # keys
    "AccountKey",
    "KeyMaterialProvider",
    "Keyring",
    "account_key",
    "verify_owner_proof",
    # evm
    "EvmWallet",
    "EvmTxResult",
    # orchestration
    "add_var",
    "var_unit_id",
]
