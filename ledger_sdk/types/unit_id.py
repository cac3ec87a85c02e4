"""
Unit identifiers.

A unit id addresses an on-chain object. It is laid out as

    [ body (unit_id_len bytes) | type tag (type_id_len bytes) ]

where the leading bits of the body are replaced by the shard id bits, so a
unit id always routes to the shard that owns it. The remaining body bits come
from a pseudo-random seed; `prnd_sh` derives that seed from the partition id
and shard id, which yields one well-known unit per (partition, shard, type).

`compose_unit_id` is a pure function: equal inputs give equal unit ids.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..utils.bytes import BytesLike, ensure_bytes, uint_to_bytes
from ..utils.hash import sha256

UnitID = bytes

DEFAULT_UNIT_ID_LEN = 32
DEFAULT_TYPE_ID_LEN = 1


@dataclass(frozen=True)
class ShardID:
    """
    Bit-string identifying a shard inside a partition. The empty shard id
    (length 0) is used by single-shard partitions.
    """

    bits: bytes = b""
    length: int = 0

    def __post_init__(self) -> None:
        if self.length < 0 or self.length > len(self.bits) * 8:
            raise ValueError(f"shard id length {self.length} out of range for {len(self.bits)} bytes")
        # Only the leading `length` bits are significant; drop the rest so
        # equal shards compare, hash and compose equal.
        nbytes = (self.length + 7) // 8
        pad = nbytes * 8 - self.length
        value = int.from_bytes(self.bits[:nbytes], "big") >> pad << pad
        object.__setattr__(self, "bits", value.to_bytes(nbytes, "big"))

    @classmethod
    def parse(cls, text: str) -> "ShardID":
        """Parse a string of '0'/'1' characters, e.g. ``"0110"``."""
        text = text.strip()
        if any(c not in "01" for c in text):
            raise ValueError(f"invalid shard id {text!r}: only 0/1 allowed")
        n = len(text)
        if n == 0:
            return cls()
        padded = text + "0" * (-n % 8)
        value = int(padded, 2)
        return cls(bits=value.to_bytes(len(padded) // 8, "big"), length=n)

    def key(self) -> bytes:
        """Canonical byte form: 2-byte bit length followed by the significant bits."""
        nbytes = (self.length + 7) // 8
        return uint_to_bytes(self.length, 2) + self.bits[:nbytes]

    def apply(self, body: bytes) -> bytes:
        """Overwrite the leading `length` bits of `body` with the shard bits."""
        if self.length == 0:
            return body
        if self.length > len(body) * 8:
            raise ValueError("shard id is longer than the unit id body")
        width = len(body) * 8
        value = int.from_bytes(body, "big")
        shard = int.from_bytes(self.bits, "big") >> (len(self.bits) * 8 - self.length)
        keep_mask = (1 << (width - self.length)) - 1
        value = (shard << (width - self.length)) | (value & keep_mask)
        return value.to_bytes(len(body), "big")

    def __str__(self) -> str:
        if self.length == 0:
            return ""
        return bin(int.from_bytes(self.bits, "big"))[2:].zfill(len(self.bits) * 8)[: self.length]


def prnd_sh(partition_id: int, shard_id: ShardID) -> bytes:
    """Seed derived from partition id and shard id."""
    return sha256(uint_to_bytes(partition_id, 4), shard_id.key())


def compose_unit_id(
    partition_id: int,
    shard_id: ShardID,
    type_tag: int,
    seed: BytesLike,
    *,
    unit_id_len: int = DEFAULT_UNIT_ID_LEN,
    type_id_len: int = DEFAULT_TYPE_ID_LEN,
) -> UnitID:
    """
    Compose a unit id from partition id, shard id, unit type tag and seed.
    """
    if unit_id_len <= 0 or unit_id_len > 32:
        raise ValueError("unit_id_len must be in 1..32")
    body = sha256(uint_to_bytes(partition_id, 4), shard_id.key(), ensure_bytes(seed))[:unit_id_len]
    body = shard_id.apply(body)
    return body + uint_to_bytes(type_tag, type_id_len)


def unit_type_of(unit_id: UnitID, *, type_id_len: int = DEFAULT_TYPE_ID_LEN) -> int:
    """Extract the type tag from a composed unit id."""
    if len(unit_id) <= type_id_len:
        raise ValueError("unit id too short")
    return int.from_bytes(unit_id[-type_id_len:], "big")


__all__ = [
    "UnitID",
    "ShardID",
    "prnd_sh",
    "compose_unit_id",
    "unit_type_of",
    "DEFAULT_UNIT_ID_LEN",
    "DEFAULT_TYPE_ID_LEN",
]
