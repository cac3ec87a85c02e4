"""
ledger_sdk.wallet.signer
========================

secp256k1 account keys and the key-material provider seam.

This module provides a thin, well-typed facade over `cryptography`'s EC
primitives. Key storage and mnemonic derivation live outside the SDK; the
builder and wallet flows only see a `KeyMaterialProvider`, which hands out
`AccountKey` objects by account index.

Owner proofs
------------
An owner proof is the CBOR array ``[signature, publicKey]`` where

- ``signature`` is a DER encoded ECDSA/SHA-256 signature over the order's
  signed bytes (see `ledger_sdk.tx.encode.sign_bytes`), and
- ``publicKey`` is the 33-byte compressed SEC1 public key.
"""

from __future__ import annotations

from typing import List, Optional, Protocol, runtime_checkable

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec

from ..errors import EncodingError, KeyMaterialError
from ..utils.bytes import BytesLike, ensure_bytes, to_hex
from ..utils.cbor import dumps, expect_array, loads
from ..utils.hash import keccak256

__all__ = [
    "AccountKey",
    "KeyMaterialProvider",
    "Keyring",
    "verify_signature",
    "pack_owner_proof",
    "unpack_owner_proof",
    "verify_owner_proof",
    "account_key",
]

_CURVE = ec.SECP256K1()
_SIG_ALG = ec.ECDSA(hashes.SHA256())


class AccountKey:
    """
    A secp256k1 signing key.

    Create instances via:
        - AccountKey.from_secret(...)
        - AccountKey.generate()
    """

    def __init__(self, private_key: ec.EllipticCurvePrivateKey) -> None:
        if not isinstance(private_key, ec.EllipticCurvePrivateKey) or private_key.curve.name != _CURVE.name:
            raise KeyMaterialError("account key must be a secp256k1 private key")
        self._sk = private_key
        pub = private_key.public_key()
        self._pk = pub.public_bytes(serialization.Encoding.X962, serialization.PublicFormat.CompressedPoint)
        uncompressed = pub.public_bytes(serialization.Encoding.X962, serialization.PublicFormat.UncompressedPoint)
        self._evm_address = keccak256(uncompressed[1:])[-20:]

    # ---- Constructors ----

    @classmethod
    def from_secret(cls, secret: BytesLike | str) -> "AccountKey":
        """
        Construct from a 32-byte private scalar (bytes or hex).
        """
        try:
            raw = ensure_bytes(secret)
        except (TypeError, ValueError) as e:
            raise KeyMaterialError(f"invalid private key encoding: {e}") from e
        if len(raw) != 32:
            raise KeyMaterialError(f"private key must be 32 bytes, got {len(raw)}")
        try:
            sk = ec.derive_private_key(int.from_bytes(raw, "big"), _CURVE)
        except ValueError as e:
            raise KeyMaterialError(f"invalid private key: {e}") from e
        return cls(sk)

    @classmethod
    def generate(cls) -> "AccountKey":
        return cls(ec.generate_private_key(_CURVE))

    # ---- Properties ----

    @property
    def public_key(self) -> bytes:
        return self._pk

    @property
    def evm_address(self) -> bytes:
        return self._evm_address

    # ---- Operations ----

    def sign(self, message: bytes) -> bytes:
        """Sign `message` (ECDSA over SHA-256); returns a DER signature."""
        return self._sk.sign(bytes(message), _SIG_ALG)

    def verify(self, message: bytes, signature: bytes) -> bool:
        return verify_signature(self._pk, message, signature)

    def owner_proof(self, message: bytes) -> bytes:
        """Sign `message` and pack the signature with the public key."""
        return pack_owner_proof(self.sign(message), self._pk)

    def __repr__(self) -> str:  # never print the secret
        return f"AccountKey(public_key={to_hex(self._pk)})"


def verify_signature(public_key: bytes, message: bytes, signature: bytes) -> bool:
    try:
        pk = ec.EllipticCurvePublicKey.from_encoded_point(_CURVE, bytes(public_key))
        pk.verify(bytes(signature), bytes(message), _SIG_ALG)
        return True
    except (InvalidSignature, ValueError):
        return False


def pack_owner_proof(signature: bytes, public_key: bytes) -> bytes:
    return dumps([bytes(signature), bytes(public_key)])


def unpack_owner_proof(proof: bytes) -> tuple[bytes, bytes]:
    """Return (signature, public_key) from an owner proof."""
    arr = expect_array(loads(proof), 2, "OwnerProof")
    sig, pub = arr
    if not isinstance(sig, bytes) or not isinstance(pub, bytes):
        raise EncodingError("owner proof fields must be bytes", type_name="OwnerProof")
    return sig, pub


def verify_owner_proof(proof: Optional[bytes], message: bytes, public_key: Optional[bytes] = None) -> bool:
    """
    Check an owner proof against the signed bytes. When `public_key` is given
    the proof must also have been produced by that key.
    """
    if not proof:
        return False
    try:
        sig, pub = unpack_owner_proof(proof)
    except EncodingError:
        return False
    if public_key is not None and bytes(public_key) != pub:
        return False
    return verify_signature(pub, message, sig)


# --- Key-material provider -----------------------------------------------------


@runtime_checkable
class KeyMaterialProvider(Protocol):
    """
    Hands out signing keys by 0-based account index, raising
    `KeyMaterialError("account does not exist")` for unknown accounts.

    Callers that submit several orders with the same key are responsible for
    serializing them; nothing in the SDK orders nonces across threads.
    """

    def get_account_key(self, index: int) -> AccountKey: ...


class Keyring:
    """In-memory `KeyMaterialProvider`."""

    def __init__(self, keys: Optional[List[AccountKey]] = None) -> None:
        self._keys: List[AccountKey] = list(keys or [])

    def add(self, key: AccountKey) -> int:
        """Append a key; returns its account index."""
        self._keys.append(key)
        return len(self._keys) - 1

    def add_secret(self, secret: BytesLike | str) -> int:
        return self.add(AccountKey.from_secret(secret))

    def get_account_key(self, index: int) -> AccountKey:
        if index < 0 or index >= len(self._keys):
            raise KeyMaterialError("account does not exist", account=index)
        return self._keys[index]

    def __len__(self) -> int:
        return len(self._keys)


def account_key(keys: KeyMaterialProvider, account_number: int) -> AccountKey:
    """Key for a 1-based account number."""
    if account_number < 1:
        raise ValueError(f"invalid account number: {account_number}")
    try:
        return keys.get_account_key(account_number - 1)
    except KeyMaterialError as e:
        raise KeyMaterialError(f"account key read failed: {e.message}", account=account_number) from e
