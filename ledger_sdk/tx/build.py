"""
ledger_sdk.tx.build
===================

Builders for transaction orders plus the timeout helper you use before
submitting.

The builders return the frozen dataclass `ledger_sdk.types.core.TransactionOrder`.
Attributes are put into their canonical CBOR layout first; only then, if a
signer was supplied, the owner proof is computed over `encode.sign_bytes`.
Without a signer the order is returned unsigned (``owner_proof is None``),
for flows that attach the proof out of band.

Examples
--------
    from ledger_sdk.tx.build import build_order, timeout_for_round

    round_info = state.get_round_info()
    order = build_order(
        attrs,
        unit_id=unit_id,
        network_id=3, partition_id=4,
        timeout=timeout_for_round(round_info.round_number),
        max_fee=10,
        signer=account_key,
        observed_round=round_info.round_number,
    )
"""

from __future__ import annotations

from typing import Any, Optional

from ..config import DEFAULT_TX_TIMEOUT_ROUNDS
from ..errors import EncodingError, KeyMaterialError
from ..types.attributes import (
    EVM_PARTITION_ID,
    ORCHESTRATION_PARTITION_ID,
    AddVarAttributes,
    EvmTxAttributes,
    PayloadAttributes,
    ValidatorAssignmentRecord,
)
from ..types.core import MAX_UINT16, MAX_UINT32, MAX_UINT64, TransactionOrder
from ..types.unit_id import UnitID
from .encode import encode_attributes, sign_bytes


def _require_uint(name: str, value: Any, limit: int = MAX_UINT64) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")
    if value > limit:
        raise ValueError(f"{name} must not exceed {limit}")
    return value


def timeout_for_round(current_round: int, margin: int = DEFAULT_TX_TIMEOUT_ROUNDS) -> int:
    """Timeout round for an order built while the node reports `current_round`."""
    _require_uint("current_round", current_round)
    _require_uint("margin", margin)
    return current_round + margin


def _sign(order: TransactionOrder, signer: Any) -> TransactionOrder:
    if not callable(getattr(signer, "owner_proof", None)) or not getattr(signer, "public_key", None):
        raise KeyMaterialError(f"signer {type(signer).__name__} cannot produce owner proofs")
    try:
        proof = signer.owner_proof(sign_bytes(order))
    except KeyMaterialError:
        raise
    except (TypeError, ValueError) as e:
        raise KeyMaterialError(f"signing failed: {e}") from e
    if not proof:
        raise KeyMaterialError("signer returned an empty owner proof")
    return order.with_owner_proof(proof)


def build_order(
    attributes: PayloadAttributes,
    *,
    unit_id: UnitID,
    network_id: int,
    partition_id: int,
    timeout: int,
    max_fee: int,
    signer: Optional[Any] = None,
    fee_credit_record_id: Optional[bytes] = None,
    observed_round: Optional[int] = None,
    timeout_margin: int = DEFAULT_TX_TIMEOUT_ROUNDS,
) -> TransactionOrder:
    """
    Construct (and optionally sign) a `TransactionOrder`.

    Args:
        attributes: payload attributes; the payload type comes from the class
        unit_id: target unit
        network_id / partition_id: destination network and partition
        timeout: round after which the node must drop the order
        max_fee: maximum fee in canonical units (>= 0)
        signer: `AccountKey` (or anything with `owner_proof()` and
            `public_key`); None builds an unsigned order
        fee_credit_record_id: fee credit record paying for the order
        observed_round: round seen at build time; when given, `timeout` must
            be at least `observed_round + timeout_margin`

    Raises:
        EncodingError: attributes have no canonical form
        KeyMaterialError: signing requested with an unusable key
        ValueError / TypeError: out-of-range numeric fields
    """
    _require_uint("network_id", network_id, MAX_UINT16)
    _require_uint("partition_id", partition_id, MAX_UINT32)
    _require_uint("timeout", timeout)
    _require_uint("max_fee", max_fee)
    if not isinstance(unit_id, (bytes, bytearray)) or len(unit_id) == 0:
        raise ValueError("unit_id must be non-empty bytes")
    if observed_round is not None:
        _require_uint("observed_round", observed_round)
        if timeout < observed_round + timeout_margin:
            raise ValueError(
                f"timeout {timeout} is less than {timeout_margin} rounds after observed round {observed_round}"
            )

    payload_type = getattr(type(attributes), "PAYLOAD_TYPE", None)
    if payload_type is None:
        raise EncodingError("attributes type has no payload type", type_name=type(attributes).__name__)
    attr_bytes = encode_attributes(attributes)

    order = TransactionOrder(
        network_id=network_id,
        partition_id=partition_id,
        unit_id=bytes(unit_id),
        payload_type=int(payload_type),
        attributes=attr_bytes,
        timeout=timeout,
        max_fee=max_fee,
        fee_credit_record_id=bytes(fee_credit_record_id) if fee_credit_record_id is not None else None,
    )
    if signer is None:
        return order
    return _sign(order, signer)


class TransactionBuilder:
    """
    Binds the destination network/partition and the timeout margin so
    call sites only pass what changes per order.
    """

    def __init__(
        self,
        *,
        network_id: int,
        partition_id: int,
        timeout_margin: int = DEFAULT_TX_TIMEOUT_ROUNDS,
    ) -> None:
        self.network_id = _require_uint("network_id", network_id, MAX_UINT16)
        self.partition_id = _require_uint("partition_id", partition_id, MAX_UINT32)
        self.timeout_margin = _require_uint("timeout_margin", timeout_margin)

    def timeout_for(self, current_round: int) -> int:
        return timeout_for_round(current_round, self.timeout_margin)

    def build(
        self,
        attributes: PayloadAttributes,
        *,
        unit_id: UnitID,
        timeout: int,
        max_fee: int,
        signer: Optional[Any] = None,
        fee_credit_record_id: Optional[bytes] = None,
        observed_round: Optional[int] = None,
    ) -> TransactionOrder:
        return build_order(
            attributes,
            unit_id=unit_id,
            network_id=self.network_id,
            partition_id=self.partition_id,
            timeout=timeout,
            max_fee=max_fee,
            signer=signer,
            fee_credit_record_id=fee_credit_record_id,
            observed_round=observed_round,
            timeout_margin=self.timeout_margin,
        )


def new_add_var_tx(
    var: ValidatorAssignmentRecord,
    *,
    network_id: int,
    unit_id: UnitID,
    timeout: int,
    max_fee: int,
    signer: Optional[Any] = None,
    partition_id: int = ORCHESTRATION_PARTITION_ID,
) -> TransactionOrder:
    """
    Build an 'addVar' order registering a validator assignment record on the
    orchestration partition. Orchestration orders carry no fee credit record.
    """
    return build_order(
        AddVarAttributes(var=var),
        unit_id=unit_id,
        network_id=network_id,
        partition_id=partition_id,
        timeout=timeout,
        max_fee=max_fee,
        signer=signer,
    )


def new_evm_tx(
    attrs: EvmTxAttributes,
    *,
    network_id: int,
    timeout: int,
    max_fee: int,
    signer: Optional[Any] = None,
    fee_credit_record_id: Optional[bytes] = None,
    partition_id: int = EVM_PARTITION_ID,
) -> TransactionOrder:
    """
    Build an EVM order. The unit id is the sender's address; the sender's
    fee credit record is addressed the same way.
    """
    return build_order(
        attrs,
        unit_id=bytes(attrs.from_addr),
        network_id=network_id,
        partition_id=partition_id,
        timeout=timeout,
        max_fee=max_fee,
        signer=signer,
        fee_credit_record_id=fee_credit_record_id,
    )


__all__ = [
    "timeout_for_round",
    "build_order",
    "TransactionBuilder",
    "new_add_var_tx",
    "new_evm_tx",
]
