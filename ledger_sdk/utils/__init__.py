"""
Utility helpers for the ledger SDK.

Re-exports:
- bytes: hex helpers
- hash: SHA-256 / Keccak-256 convenience wrappers
- cbor: deterministic CBOR (de)serialization
"""

from .bytes import ensure_bytes, from_hex, to_hex, uint_to_bytes
from .cbor import dumps as cbor_dumps
from .cbor import loads as cbor_loads
from .hash import keccak256, sha256

__all__ = [
    # bytes
    "to_hex",
    "from_hex",
    "ensure_bytes",
    "uint_to_bytes",
    # hash
    "sha256",
    "keccak256",
    # cbor
    "cbor_dumps",
    "cbor_loads",
]
