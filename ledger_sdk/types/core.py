from __future__ import annotations

"""
Core ledger types for the Python SDK.

Every type that travels over the wire has an explicit, fixed field order and
is written as a CBOR array in exactly that order. `to_array()` / `from_array()`
are the only places that know the order; nothing relies on dataclass field
reflection, so renaming a Python attribute never changes the encoding.

TransactionOrder (array, 8 fields)
    0 networkID          uint16
    1 partitionID        uint32
    2 unitID             bytes
    3 payloadType        uint
    4 attributes         bytes   canonical CBOR of the payload attributes
    5 clientMetadata     [timeout uint64, maxFee uint64, feeCreditRecordID bytes|null]
    6 ownerProof         bytes|null
    7 feeProof           bytes|null

Fields 0..5 form the *payload*; the owner proof signs the CBOR of the payload
array and never covers the proof fields themselves.

ServerMetadata (array, 4 fields)
    [actualFee, targetUnits, successIndicator, processingDetails]

TxRecord (array, 2 fields)
    [transactionOrder (bytes or array), serverMetadata]

TxProof (array)
    [blockHeaderHash, chain, unicityCertificate]  (opaque to the client)

Nothing here performs network I/O; these are just types and converters.
"""

from dataclasses import dataclass, field, replace
from typing import Any, List, Optional, Sequence

from ..errors import EncodingError
from ..utils.cbor import dumps, expect_array, loads
from .unit_id import UnitID

MAX_UINT16 = 0xFFFF
MAX_UINT32 = 0xFFFFFFFF
MAX_UINT64 = 0xFFFFFFFFFFFFFFFF

# ServerMetadata.successIndicator values
TX_STATUS_FAILED = 0
TX_STATUS_SUCCESSFUL = 1


def _opt_bytes(v: Any, what: str) -> Optional[bytes]:
    if v is None:
        return None
    if isinstance(v, (bytes, bytearray)):
        return bytes(v)
    raise EncodingError(f"expected bytes or null, got {type(v).__name__}", type_name=what)


def _req_bytes(v: Any, what: str) -> bytes:
    b = _opt_bytes(v, what)
    if b is None:
        raise EncodingError("expected bytes, got null", type_name=what)
    return b


def _uint(v: Any, what: str, limit: int = MAX_UINT64) -> int:
    if isinstance(v, bool) or not isinstance(v, int) or v < 0 or v > limit:
        raise EncodingError(f"expected unsigned integer <= {limit}, got {v!r}", type_name=what)
    return v


# --- Transaction order -------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TransactionOrder:
    """
    A transaction order. Frozen: once an owner proof is attached, any change
    to the other fields would invalidate it, so proofs are attached by
    creating a new instance (`with_owner_proof`).
    """

    network_id: int
    partition_id: int
    unit_id: UnitID
    payload_type: int
    attributes: bytes
    timeout: int
    max_fee: int
    fee_credit_record_id: Optional[bytes] = None
    owner_proof: Optional[bytes] = None
    fee_proof: Optional[bytes] = None

    @property
    def is_signed(self) -> bool:
        return bool(self.owner_proof)

    def payload_array(self) -> List[Any]:
        return [
            int(self.network_id),
            int(self.partition_id),
            bytes(self.unit_id),
            int(self.payload_type),
            bytes(self.attributes),
            [int(self.timeout), int(self.max_fee), self.fee_credit_record_id],
        ]

    def to_array(self) -> List[Any]:
        return self.payload_array() + [self.owner_proof, self.fee_proof]

    @classmethod
    def from_array(cls, value: Any) -> "TransactionOrder":
        arr = expect_array(value, 8, "TransactionOrder")
        meta = expect_array(arr[5], 3, "ClientMetadata")
        unit_id = _opt_bytes(arr[2], "TransactionOrder.unitID")
        attributes = _opt_bytes(arr[4], "TransactionOrder.attributes")
        if unit_id is None or attributes is None:
            raise EncodingError("unit id and attributes are mandatory", type_name="TransactionOrder")
        return cls(
            network_id=_uint(arr[0], "TransactionOrder.networkID", MAX_UINT16),
            partition_id=_uint(arr[1], "TransactionOrder.partitionID", MAX_UINT32),
            unit_id=unit_id,
            payload_type=_uint(arr[3], "TransactionOrder.payloadType"),
            attributes=attributes,
            timeout=_uint(meta[0], "ClientMetadata.timeout"),
            max_fee=_uint(meta[1], "ClientMetadata.maxFee"),
            fee_credit_record_id=_opt_bytes(meta[2], "ClientMetadata.feeCreditRecordID"),
            owner_proof=_opt_bytes(arr[6], "TransactionOrder.ownerProof"),
            fee_proof=_opt_bytes(arr[7], "TransactionOrder.feeProof"),
        )

    def with_owner_proof(self, proof: bytes) -> "TransactionOrder":
        return replace(self, owner_proof=bytes(proof))


# --- Node state ---------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RoundInfo:
    """Current consensus round plus the latest round processed by the indexer."""

    round_number: int
    last_indexed_round_number: int

    @classmethod
    def from_round(cls, round_number: int) -> "RoundInfo":
        return cls(round_number=int(round_number), last_indexed_round_number=int(round_number))


@dataclass(frozen=True, slots=True)
class FeeCreditBill:
    """
    Fee credit record as seen by the client. `value` is in canonical units,
    `counter` is the replay-protection nonce.
    """

    id: bytes
    value: int
    counter: int = 0


# --- Records and proofs ---------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ServerMetadata:
    actual_fee: int
    target_units: Sequence[bytes] = field(default_factory=tuple)
    success_indicator: int = TX_STATUS_SUCCESSFUL
    processing_details: Any = None

    @property
    def succeeded(self) -> bool:
        return self.success_indicator != TX_STATUS_FAILED

    def to_array(self) -> List[Any]:
        return [
            int(self.actual_fee),
            [bytes(u) for u in self.target_units],
            int(self.success_indicator),
            self.processing_details,
        ]

    @classmethod
    def from_array(cls, value: Any) -> "ServerMetadata":
        arr = expect_array(value, 4, "ServerMetadata")
        units = arr[1] or []
        return cls(
            actual_fee=_uint(arr[0], "ServerMetadata.actualFee"),
            target_units=tuple(
                _req_bytes(u, "ServerMetadata.targetUnits") for u in expect_array(units, None, "ServerMetadata.targetUnits")
            ),
            success_indicator=_uint(arr[2], "ServerMetadata.successIndicator"),
            processing_details=arr[3],
        )


@dataclass(frozen=True, slots=True)
class TxRecord:
    """Execution record: the order as processed by the node plus its metadata."""

    transaction_order: bytes
    server_metadata: ServerMetadata

    def to_array(self) -> List[Any]:
        return [bytes(self.transaction_order), self.server_metadata.to_array()]

    @classmethod
    def from_array(cls, value: Any) -> "TxRecord":
        arr = expect_array(value, 2, "TxRecord")
        order = arr[0]
        if isinstance(order, (list, tuple)):
            # Some nodes embed the order instead of its encoded bytes.
            order = dumps(list(order))
        order_bytes = _opt_bytes(order, "TxRecord.transactionOrder") or b""
        return cls(transaction_order=order_bytes, server_metadata=ServerMetadata.from_array(arr[1]))

    def order(self) -> TransactionOrder:
        return TransactionOrder.from_array(loads(self.transaction_order))


@dataclass(frozen=True, slots=True)
class TxProof:
    """Inclusion proof. The client only carries it back to the caller."""

    block_header_hash: bytes = b""
    chain: Sequence[Any] = field(default_factory=tuple)
    unicity_certificate: Any = None

    def to_array(self) -> List[Any]:
        return [bytes(self.block_header_hash), list(self.chain), self.unicity_certificate]

    @classmethod
    def from_array(cls, value: Any) -> "TxProof":
        if value is None:
            return cls()
        arr = expect_array(value, None, "TxProof")
        arr = arr + [None] * (3 - len(arr))
        return cls(
            block_header_hash=_opt_bytes(arr[0], "TxProof.blockHeaderHash") or b"",
            chain=tuple(arr[1] or ()),
            unicity_certificate=arr[2],
        )


@dataclass(frozen=True, slots=True)
class TxRecordProof:
    tx_record: TxRecord
    tx_proof: TxProof

    @property
    def server_metadata(self) -> ServerMetadata:
        return self.tx_record.server_metadata

    def to_array(self) -> List[Any]:
        return [self.tx_record.to_array(), self.tx_proof.to_array()]

    @classmethod
    def from_array(cls, value: Any) -> "TxRecordProof":
        arr = expect_array(value, 2, "TxRecordProof")
        return cls(tx_record=TxRecord.from_array(arr[0]), tx_proof=TxProof.from_array(arr[1]))


__all__ = [
    "MAX_UINT16",
    "MAX_UINT32",
    "MAX_UINT64",
    "TX_STATUS_FAILED",
    "TX_STATUS_SUCCESSFUL",
    "TransactionOrder",
    "RoundInfo",
    "FeeCreditBill",
    "ServerMetadata",
    "TxRecord",
    "TxProof",
    "TxRecordProof",
]
