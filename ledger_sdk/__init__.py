"""
Ledger SDK (Python)
Client-side transaction core: build, sign, fee-check, submit and confirm
transaction orders against a ledger node.
"""

from .version import __version__  # noqa: F401

# Core config & errors
from .config import SDKConfig  # noqa: F401
from .errors import (  # noqa: F401
    EncodingError,
    FeeOverflowError,
    InsufficientFundsError,
    InvalidTransitionError,
    KeyMaterialError,
    LedgerSdkError,
    NotFoundError,
    ProtocolError,
)

# Types
from .types import (  # noqa: F401
    FeeCreditBill,
    RoundInfo,
    ShardID,
    TransactionOrder,
    TxRecordProof,
    compose_unit_id,
)

# RPC
from .rpc.http import RpcTransport  # noqa: F401
from .rpc.state import StateClient  # noqa: F401
from .rpc.evm import EvmClient  # noqa: F401

# Tx helpers
from .tx.build import TransactionBuilder, build_order, timeout_for_round  # noqa: F401
from .tx.encode import encode_order, sign_bytes, tx_hash  # noqa: F401
from .tx.fees import FeeCreditCalculator, check_sufficiency, convert_native_to_canonical  # noqa: F401
from .tx.send import ConfirmationOutcome, ConfirmationPoller, ConfirmationState  # noqa: F401

# Wallet
from .wallet.signer import AccountKey, Keyring  # noqa: F401
from .wallet.evm import EvmWallet  # noqa: F401
from .wallet.orchestration import add_var  # noqa: F401

__all__ = [
    "__version__",
    # Core
    "SDKConfig",
    "LedgerSdkError", "EncodingError", "KeyMaterialError", "ProtocolError", "NotFoundError",
    "InsufficientFundsError", "FeeOverflowError", "InvalidTransitionError",
    # Types
    "TransactionOrder", "RoundInfo", "FeeCreditBill", "TxRecordProof", "ShardID", "compose_unit_id",
    # RPC
    "RpcTransport", "StateClient", "EvmClient",
    # Tx
    "TransactionBuilder", "build_order", "timeout_for_round",
    "encode_order", "sign_bytes", "tx_hash",
    "FeeCreditCalculator", "check_sufficiency", "convert_native_to_canonical",
    "ConfirmationPoller", "ConfirmationState", "ConfirmationOutcome",
    # Wallet
    "AccountKey", "Keyring", "EvmWallet", "add_var",
]
