"""
ledger_sdk.tx.encode
====================

Deterministic CBOR encoding for transaction orders.

This module provides:
- `encode_attributes(attrs)` → canonical attribute bytes carried in the order
- `sign_bytes(order)` → bytes covered by the owner proof
- `encode_order(order)` → raw CBOR blob ready for ``POST /transactions``
- `decode_order(raw)` → `TransactionOrder`
- `decode_attributes(order, cls)` → typed payload attributes
- `tx_hash(order_or_raw)` → SHA-256 of the encoded order

Design notes
------------
* Encoding goes through `ledger_sdk.utils.cbor.dumps` (cbor2, canonical mode)
  and the explicit array layouts of `ledger_sdk.types`.
* The signed bytes are the CBOR of the order *payload* only: every field
  except the owner and fee proofs.
* The hash covers the full encoded order, proofs included, and is what the
  node indexes proofs under.
"""

from __future__ import annotations

from typing import Type, TypeVar, Union

from ..errors import EncodingError
from ..types.attributes import PayloadAttributes
from ..types.core import TransactionOrder
from ..utils.bytes import to_hex
from ..utils.cbor import dumps, loads
from ..utils.hash import sha256

A = TypeVar("A", bound=PayloadAttributes)


def encode_attributes(attrs: PayloadAttributes) -> bytes:
    if not isinstance(attrs, PayloadAttributes):
        raise EncodingError(
            f"attributes must be PayloadAttributes, got {type(attrs).__name__}",
            type_name=type(attrs).__name__,
        )
    return attrs.to_cbor()


def decode_attributes(order: TransactionOrder, cls: Type[A]) -> A:
    """Decode the order's attribute bytes as `cls`."""
    return cls.from_cbor(order.attributes)


def sign_bytes(order: TransactionOrder) -> bytes:
    """
    Return the deterministic CBOR bytes that the owner proof signs.
    """
    return dumps(order.payload_array())


def encode_order(order: TransactionOrder) -> bytes:
    """Canonical CBOR encoding of the full order."""
    return dumps(order.to_array())


def decode_order(raw: bytes) -> TransactionOrder:
    if not isinstance(raw, (bytes, bytearray)):
        raise TypeError("raw must be bytes")
    return TransactionOrder.from_array(loads(bytes(raw)))


def tx_hash(data: Union[bytes, TransactionOrder]) -> bytes:
    """
    Compute the SHA-256 hash of an encoded order.

    Accepts either the raw CBOR encoding or a `TransactionOrder`.
    """
    if isinstance(data, TransactionOrder):
        raw = encode_order(data)
    elif isinstance(data, (bytes, bytearray)):
        raw = bytes(data)
    else:
        raise TypeError("tx_hash expects raw bytes or a TransactionOrder")
    return sha256(raw)


def tx_hash_hex(data: Union[bytes, TransactionOrder], *, prefix: bool = False) -> str:
    return to_hex(tx_hash(data), prefix=prefix)


__all__ = [
    "encode_attributes",
    "decode_attributes",
    "sign_bytes",
    "encode_order",
    "decode_order",
    "tx_hash",
    "tx_hash_hex",
]
