from __future__ import annotations

import hashlib

from Crypto.Hash import keccak as _keccak

from .bytes import BytesLike, ensure_bytes


# --- SHA-256 ------------------------------------------------------------------
# Transaction hashes and unit id seeds use SHA-256.

def sha256(*parts: BytesLike) -> bytes:
    """Return SHA-256 digest of the concatenation of *parts*."""
    h = hashlib.sha256()
    for p in parts:
        h.update(ensure_bytes(p))
    return h.digest()


# --- Keccak-256 (Ethereum-style) ----------------------------------------------
# hashlib exposes NIST SHA3 only; EVM addresses need the original Keccak
# padding, which pycryptodome provides.

def keccak256(data: BytesLike) -> bytes:
    """Return Keccak-256 digest of *data* (bytes)."""
    h = _keccak.new(digest_bits=256)
    h.update(ensure_bytes(data))
    return h.digest()


__all__ = [
    "sha256",
    "keccak256",
]
