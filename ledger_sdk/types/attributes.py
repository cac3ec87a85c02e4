"""
ledger_sdk.types.attributes
===========================

Payload attribute types and their canonical field-order contracts.

Each attribute class documents its wire layout in `FIELD_ORDER` (a CBOR
array, always in that order) and carries a `LAYOUT_VERSION`. The layout is a
property of the protocol, not of the CBOR library: `to_array()` writes the
fields explicitly and `from_array()` rejects arrays of the wrong length.
Bump `LAYOUT_VERSION` whenever `FIELD_ORDER` changes.

Orchestration partition
-----------------------
- `AddVarAttributes` (payload type 1): registers a validator assignment
  record (VAR) on the orchestration partition.

EVM partition
-------------
- `EvmTxAttributes` (payload type 1): state-changing EVM call / deploy.
- `CallEvmRequest`: read-only call body for ``POST /evm/call``.
- `EvmProcessingDetails`: execution outcome attached to the server metadata.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Sequence, Tuple, Type, TypeVar, Union

from ..errors import EncodingError
from ..utils.bytes import from_hex, to_hex
from ..utils.cbor import dumps, expect_array, loads
from .unit_id import ShardID

A = TypeVar("A", bound="PayloadAttributes")

# Partition defaults of a local network
EVM_PARTITION_ID = 3
ORCHESTRATION_PARTITION_ID = 4

# Payload types
PAYLOAD_TYPE_ADD_VAR = 1
PAYLOAD_TYPE_EVM_CALL = 1

# Unit type tags
VAR_UNIT_TYPE = 1

EVM_ADDRESS_LEN = 20


def _bytes_field(v: Any, what: str, *, optional: bool = False) -> Optional[bytes]:
    if v is None and optional:
        return None
    if isinstance(v, (bytes, bytearray)):
        return bytes(v)
    raise EncodingError(f"expected bytes, got {type(v).__name__}", type_name=what)


def _int_field(v: Any, what: str) -> int:
    if isinstance(v, bool) or not isinstance(v, int) or v < 0:
        raise EncodingError(f"expected unsigned integer, got {v!r}", type_name=what)
    return v


def _str_field(v: Any, what: str) -> str:
    if not isinstance(v, str):
        raise EncodingError(f"expected text, got {type(v).__name__}", type_name=what)
    return v


class PayloadAttributes:
    """Base class: canonical CBOR (de)serialization driven by to_array/from_array."""

    PAYLOAD_TYPE: ClassVar[int]
    FIELD_ORDER: ClassVar[Tuple[str, ...]]
    LAYOUT_VERSION: ClassVar[int] = 1

    def to_array(self) -> List[Any]:  # pragma: no cover - abstract
        raise NotImplementedError

    @classmethod
    def from_array(cls: Type[A], value: Any) -> A:  # pragma: no cover - abstract
        raise NotImplementedError

    def to_cbor(self) -> bytes:
        try:
            arr = self.to_array()
        except (TypeError, ValueError, AttributeError) as e:
            raise EncodingError(str(e), type_name=type(self).__name__) from e
        return dumps(arr)

    @classmethod
    def from_cbor(cls: Type[A], raw: bytes) -> A:
        return cls.from_array(loads(raw))

    @classmethod
    def _check(cls, value: Any) -> List[Any]:
        return expect_array(value, len(cls.FIELD_ORDER), cls.__name__)


# --- Orchestration ---------------------------------------------------------------


@dataclass(frozen=True)
class NodeInfo:
    node_id: str
    sig_key: bytes
    stake: int = 1

    def to_array(self) -> List[Any]:
        return [str(self.node_id), bytes(self.sig_key), int(self.stake)]

    @classmethod
    def from_array(cls, value: Any) -> "NodeInfo":
        arr = expect_array(value, 3, "NodeInfo")
        return cls(
            node_id=_str_field(arr[0], "NodeInfo.nodeId"),
            sig_key=_bytes_field(arr[1], "NodeInfo.sigKey") or b"",
            stake=_int_field(arr[2], "NodeInfo.stake"),
        )


@dataclass(frozen=True)
class ValidatorAssignmentRecord:
    """
    Validator assignment record: the validator set of one shard for one epoch.

    Wire layout (v1): [networkId, partitionId, shardId, epochNo, epochStartRound, nodes]
    where shardId is `ShardID.key()`.
    """

    network_id: int
    partition_id: int
    shard_id: ShardID = field(default_factory=ShardID)
    epoch_number: int = 0
    epoch_start_round: int = 0
    nodes: Sequence[NodeInfo] = field(default_factory=tuple)

    def to_array(self) -> List[Any]:
        return [
            int(self.network_id),
            int(self.partition_id),
            self.shard_id.key(),
            int(self.epoch_number),
            int(self.epoch_start_round),
            [n.to_array() for n in self.nodes],
        ]

    @classmethod
    def from_array(cls, value: Any) -> "ValidatorAssignmentRecord":
        arr = expect_array(value, 6, "ValidatorAssignmentRecord")
        key = _bytes_field(arr[2], "ValidatorAssignmentRecord.shardId") or b""
        if len(key) < 2:
            raise EncodingError("shard id key too short", type_name="ValidatorAssignmentRecord")
        bit_len = int.from_bytes(key[:2], "big")
        return cls(
            network_id=_int_field(arr[0], "ValidatorAssignmentRecord.networkId"),
            partition_id=_int_field(arr[1], "ValidatorAssignmentRecord.partitionId"),
            shard_id=ShardID(bits=key[2:], length=bit_len),
            epoch_number=_int_field(arr[3], "ValidatorAssignmentRecord.epochNo"),
            epoch_start_round=_int_field(arr[4], "ValidatorAssignmentRecord.epochStartRound"),
            nodes=tuple(NodeInfo.from_array(n) for n in expect_array(arr[5], None, "nodes")),
        )

    # ---- JSON var-file ----

    @classmethod
    def from_json(cls, obj: Dict[str, Any]) -> "ValidatorAssignmentRecord":
        """
        Parse the JSON var-file shape:

            {"networkId": 3, "partitionId": 5, "shardId": "", "epochNo": 1,
             "epochStartRound": 100,
             "nodes": [{"nodeId": "...", "sigKey": "0x02...", "stake": 1}]}
        """
        try:
            nodes = tuple(
                NodeInfo(node_id=str(n["nodeId"]), sig_key=from_hex(str(n["sigKey"])), stake=int(n.get("stake", 1)))
                for n in obj.get("nodes") or []
            )
            return cls(
                network_id=int(obj["networkId"]),
                partition_id=int(obj["partitionId"]),
                shard_id=ShardID.parse(str(obj.get("shardId") or "")),
                epoch_number=int(obj.get("epochNo", 0)),
                epoch_start_round=int(obj.get("epochStartRound", 0)),
                nodes=nodes,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"invalid validator assignment record: {e}") from e

    def to_json(self) -> Dict[str, Any]:
        return {
            "networkId": int(self.network_id),
            "partitionId": int(self.partition_id),
            "shardId": str(self.shard_id),
            "epochNo": int(self.epoch_number),
            "epochStartRound": int(self.epoch_start_round),
            "nodes": [
                {"nodeId": n.node_id, "sigKey": to_hex(n.sig_key), "stake": int(n.stake)} for n in self.nodes
            ],
        }


def load_var_file(path: Union[str, os.PathLike]) -> ValidatorAssignmentRecord:
    """Read a validator assignment record from a JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        return ValidatorAssignmentRecord.from_json(json.load(f))


@dataclass(frozen=True)
class AddVarAttributes(PayloadAttributes):
    """Layout v1: [var]"""

    var: ValidatorAssignmentRecord

    PAYLOAD_TYPE: ClassVar[int] = PAYLOAD_TYPE_ADD_VAR
    FIELD_ORDER: ClassVar[Tuple[str, ...]] = ("var",)

    def to_array(self) -> List[Any]:
        return [self.var.to_array()]

    @classmethod
    def from_array(cls, value: Any) -> "AddVarAttributes":
        arr = cls._check(value)
        return cls(var=ValidatorAssignmentRecord.from_array(arr[0]))


# --- EVM ----------------------------------------------------------------------------


def _address(v: Any, what: str, *, optional: bool = False) -> Optional[bytes]:
    b = _bytes_field(v, what, optional=optional)
    if b is not None and len(b) != EVM_ADDRESS_LEN:
        raise EncodingError(f"expected {EVM_ADDRESS_LEN}-byte address, got {len(b)}", type_name=what)
    return b


@dataclass(frozen=True)
class EvmTxAttributes(PayloadAttributes):
    """
    Layout v1: [from, to, data, value, gas, nonce]

    `to` is null for contract deployment; `value` is in native units (wei).
    """

    from_addr: bytes
    to: Optional[bytes] = None
    data: bytes = b""
    value: int = 0
    gas: int = 0
    nonce: int = 0

    PAYLOAD_TYPE: ClassVar[int] = PAYLOAD_TYPE_EVM_CALL
    FIELD_ORDER: ClassVar[Tuple[str, ...]] = ("from", "to", "data", "value", "gas", "nonce")

    def to_array(self) -> List[Any]:
        return [
            _address(self.from_addr, "EvmTxAttributes.from"),
            _address(self.to, "EvmTxAttributes.to", optional=True),
            _bytes_field(self.data, "EvmTxAttributes.data"),
            _int_field(self.value, "EvmTxAttributes.value"),
            _int_field(self.gas, "EvmTxAttributes.gas"),
            _int_field(self.nonce, "EvmTxAttributes.nonce"),
        ]

    @classmethod
    def from_array(cls, value: Any) -> "EvmTxAttributes":
        arr = cls._check(value)
        return cls(
            from_addr=_address(arr[0], "EvmTxAttributes.from") or b"",
            to=_address(arr[1], "EvmTxAttributes.to", optional=True),
            data=_bytes_field(arr[2], "EvmTxAttributes.data") or b"",
            value=_int_field(arr[3], "EvmTxAttributes.value"),
            gas=_int_field(arr[4], "EvmTxAttributes.gas"),
            nonce=_int_field(arr[5], "EvmTxAttributes.nonce"),
        )


@dataclass(frozen=True)
class CallEvmRequest(PayloadAttributes):
    """Layout v1: [from, to, data, value, gas]"""

    from_addr: bytes
    to: Optional[bytes] = None
    data: bytes = b""
    value: int = 0
    gas: int = 0

    PAYLOAD_TYPE: ClassVar[int] = PAYLOAD_TYPE_EVM_CALL
    FIELD_ORDER: ClassVar[Tuple[str, ...]] = ("from", "to", "data", "value", "gas")

    def to_array(self) -> List[Any]:
        return [
            _address(self.from_addr, "CallEvmRequest.from"),
            _address(self.to, "CallEvmRequest.to", optional=True),
            _bytes_field(self.data, "CallEvmRequest.data"),
            _int_field(self.value, "CallEvmRequest.value"),
            _int_field(self.gas, "CallEvmRequest.gas"),
        ]

    @classmethod
    def from_array(cls, value: Any) -> "CallEvmRequest":
        arr = cls._check(value)
        return cls(
            from_addr=_address(arr[0], "CallEvmRequest.from") or b"",
            to=_address(arr[1], "CallEvmRequest.to", optional=True),
            data=_bytes_field(arr[2], "CallEvmRequest.data") or b"",
            value=_int_field(arr[3], "CallEvmRequest.value"),
            gas=_int_field(arr[4], "CallEvmRequest.gas"),
        )


@dataclass(frozen=True)
class EvmLogEntry:
    address: bytes
    topics: Sequence[bytes] = field(default_factory=tuple)
    data: bytes = b""

    @classmethod
    def from_array(cls, value: Any) -> "EvmLogEntry":
        arr = expect_array(value, 3, "EvmLogEntry")
        return cls(
            address=_bytes_field(arr[0], "EvmLogEntry.address") or b"",
            topics=tuple(
                _bytes_field(t, "EvmLogEntry.topics") for t in expect_array(arr[1] or [], None, "EvmLogEntry.topics")
            ),
            data=_bytes_field(arr[2], "EvmLogEntry.data") or b"",
        )

    def to_array(self) -> List[Any]:
        return [bytes(self.address), [bytes(t) for t in self.topics], bytes(self.data)]


@dataclass(frozen=True)
class EvmProcessingDetails(PayloadAttributes):
    """
    Layout v1: [errorDetails, returnData, contractAddr, logs]

    A non-empty `error_details` means the EVM execution failed (e.g. revert)
    even when the transaction itself was included.
    """

    error_details: str = ""
    return_data: bytes = b""
    contract_addr: Optional[bytes] = None
    logs: Sequence[EvmLogEntry] = field(default_factory=tuple)

    FIELD_ORDER: ClassVar[Tuple[str, ...]] = ("errorDetails", "returnData", "contractAddr", "logs")

    @property
    def reverted(self) -> bool:
        return bool(self.error_details)

    def to_array(self) -> List[Any]:
        return [
            str(self.error_details),
            bytes(self.return_data),
            self.contract_addr,
            [log.to_array() for log in self.logs],
        ]

    @classmethod
    def from_array(cls, value: Any) -> "EvmProcessingDetails":
        arr = cls._check(value)
        return cls(
            error_details=_str_field(arr[0] or "", "EvmProcessingDetails.errorDetails"),
            return_data=_bytes_field(arr[1] or b"", "EvmProcessingDetails.returnData") or b"",
            contract_addr=_bytes_field(arr[2], "EvmProcessingDetails.contractAddr", optional=True),
            logs=tuple(
                EvmLogEntry.from_array(x) for x in expect_array(arr[3] or [], None, "EvmProcessingDetails.logs")
            ),
        )

    @classmethod
    def from_metadata(cls, details: Any) -> Optional["EvmProcessingDetails"]:
        """Decode `ServerMetadata.processing_details` (CBOR bytes or decoded array)."""
        if details is None or details == b"":
            return None
        if isinstance(details, (bytes, bytearray)):
            return cls.from_cbor(bytes(details))
        return cls.from_array(details)


__all__ = [
    "EVM_PARTITION_ID",
    "ORCHESTRATION_PARTITION_ID",
    "PAYLOAD_TYPE_ADD_VAR",
    "PAYLOAD_TYPE_EVM_CALL",
    "VAR_UNIT_TYPE",
    "EVM_ADDRESS_LEN",
    "PayloadAttributes",
    "NodeInfo",
    "ValidatorAssignmentRecord",
    "load_var_file",
    "AddVarAttributes",
    "EvmTxAttributes",
    "CallEvmRequest",
    "EvmLogEntry",
    "EvmProcessingDetails",
]
