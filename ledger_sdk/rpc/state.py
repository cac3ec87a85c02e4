"""
ledger_sdk.rpc.state
====================

Partition-independent node endpoints:

- POST /transactions           submit an encoded order (202 Accepted)
- GET  /rounds/latest          latest round number
- GET  /transactions/{hash}    ``[TxRecord, TxProof]`` once indexed, 404 before

All paths live under the transport's API prefix (``/api/v1``). The proof
endpoint needs a node that runs with the indexer enabled.
"""

from __future__ import annotations

from typing import Any, Optional

from ..errors import NotFoundError, ProtocolError
from ..types.core import RoundInfo, TransactionOrder, TxRecordProof
from ..utils.bytes import to_hex
from ..utils.cbor import expect_array
from ..tx.encode import encode_order
from ..tx.encode import tx_hash as compute_tx_hash
from .http import RpcTransport


def with_context(operation: str, e: ProtocolError) -> ProtocolError:
    """Copy of `e` whose message names the failed operation."""
    return ProtocolError(f"{operation}: {e.message}", status=e.status, reason=e.reason, url=e.url)


def _round_info(value: Any) -> RoundInfo:
    # Plain nodes answer with the round number only; the indexer is then
    # considered to be at the same round.
    if isinstance(value, bool):
        raise TypeError("round number must be an integer")
    if isinstance(value, int):
        return RoundInfo.from_round(value)
    arr = expect_array(value, 2, "RoundInfo")
    return RoundInfo(round_number=int(arr[0]), last_indexed_round_number=int(arr[1]))


class StateClient:
    """Node endpoints shared by every partition."""

    def __init__(self, transport: RpcTransport) -> None:
        self.transport = transport

    def post_transaction(self, order: TransactionOrder) -> bytes:
        """Submit `order`; returns its hash. Sent at most once."""
        raw = encode_order(order)
        try:
            self.transport.post("transactions", raw, expected_status=202)
        except ProtocolError as e:
            raise with_context("transaction send failed", e) from e
        return compute_tx_hash(raw)

    def get_round_info(self) -> RoundInfo:
        try:
            return self.transport.get("rounds/latest", shape=_round_info)
        except ProtocolError as e:
            raise with_context("get round-number request failed", e) from e

    def get_tx_proof(self, tx_hash: bytes) -> Optional[TxRecordProof]:
        """Proof for `tx_hash`, or None while the order is not (yet) indexed."""
        path = f"transactions/{to_hex(tx_hash, prefix=False)}"
        try:
            return self.transport.get(path, shape=TxRecordProof.from_array)
        except NotFoundError:
            return None
        except ProtocolError as e:
            raise with_context("get tx proof request failed", e) from e


__all__ = ["StateClient", "with_context"]
