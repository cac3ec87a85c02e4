"""
ledger_sdk.types
----------------

Wire types (transaction orders, records, proofs), payload attributes and
unit id composition.

    from ledger_sdk.types import TransactionOrder, EvmTxAttributes, compose_unit_id
"""

from __future__ import annotations

from .attributes import (  # noqa: F401
    EVM_PARTITION_ID,
    ORCHESTRATION_PARTITION_ID,
    PAYLOAD_TYPE_ADD_VAR,
    PAYLOAD_TYPE_EVM_CALL,
    VAR_UNIT_TYPE,
    AddVarAttributes,
    CallEvmRequest,
    EvmLogEntry,
    EvmProcessingDetails,
    EvmTxAttributes,
    NodeInfo,
    PayloadAttributes,
    ValidatorAssignmentRecord,
    load_var_file,
)
from .core import (  # noqa: F401
    TX_STATUS_FAILED,
    TX_STATUS_SUCCESSFUL,
    FeeCreditBill,
    RoundInfo,
    ServerMetadata,
    TransactionOrder,
    TxProof,
    TxRecord,
    TxRecordProof,
)
from .unit_id import ShardID, UnitID, compose_unit_id, prnd_sh, unit_type_of  # noqa: F401

__all__ = [
    # core
    "TransactionOrder",
    "RoundInfo",
    "FeeCreditBill",
    "ServerMetadata",
    "TxRecord",
    "TxProof",
    "TxRecordProof",
    "TX_STATUS_FAILED",
    "TX_STATUS_SUCCESSFUL",
    # unit ids
    "UnitID",
    "ShardID",
    "compose_unit_id",
    "prnd_sh",
    "unit_type_of",
    # attributes
    "PayloadAttributes",
    "NodeInfo",
    "ValidatorAssignmentRecord",
    "load_var_file",
    "AddVarAttributes",
    "EvmTxAttributes",
    "CallEvmRequest",
    "EvmLogEntry",
    "EvmProcessingDetails",
    "EVM_PARTITION_ID",
    "ORCHESTRATION_PARTITION_ID",
    "PAYLOAD_TYPE_ADD_VAR",
    "PAYLOAD_TYPE_EVM_CALL",
    "VAR_UNIT_TYPE",
]
