"""
Deterministic (canonical) CBOR encoder/decoder.

Goals
-----
- Produce *deterministic* byte-for-byte CBOR for the subset of types we use in
  transaction orders, records, proofs and the REST API bodies.
- Delegate the codec itself to `cbor2` in canonical mode: minimal integer
  encodings, definite lengths, map keys sorted by their encoded bytes
  (RFC 8949 deterministic ordering).

Every structured value we sign or hash is written as a CBOR *array* with a
fixed field order (see `ledger_sdk.types`), so map ordering only matters for
free-form payloads.

API
---
- dumps(obj) -> bytes
- loads(data: bytes|bytearray|memoryview) -> object
- expect_array(value, length, what) -> list
"""

from __future__ import annotations

from typing import Any, List, Optional

import cbor2

from ..errors import EncodingError
from .bytes import BytesLike, ensure_bytes


def dumps(obj: Any) -> bytes:
    """Encode *obj* to deterministic CBOR bytes."""
    try:
        return cbor2.dumps(obj, canonical=True)
    except (cbor2.CBOREncodeError, TypeError, ValueError) as e:
        raise EncodingError(str(e), type_name=type(obj).__name__) from e


def loads(data: BytesLike) -> Any:
    """Decode CBOR *data* (bytes-like) into Python objects."""
    buf = ensure_bytes(data)
    try:
        return cbor2.loads(buf)
    except (cbor2.CBORDecodeError, ValueError, EOFError) as e:
        raise EncodingError(f"cannot decode CBOR: {e}") from e


def expect_array(value: Any, length: Optional[int], what: str) -> List[Any]:
    """
    Check that a decoded value is a CBOR array (optionally of an exact length).

    Tags wrapping the array are stripped; the node tags some top-level values.
    """
    if isinstance(value, cbor2.CBORTag):
        value = value.value
    if not isinstance(value, (list, tuple)):
        raise EncodingError(f"expected CBOR array, got {type(value).__name__}", type_name=what)
    if length is not None and len(value) != length:
        raise EncodingError(f"expected {length} fields, got {len(value)}", type_name=what)
    return list(value)


__all__ = [
    "dumps",
    "loads",
    "expect_array",
]
