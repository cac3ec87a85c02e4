"""
Typed error classes for the ledger SDK.

These are raised by rpc/http, tx/build, tx/fees and the wallet flows so
callers can catch specific failure modes while still being able to catch the
base `LedgerSdkError`.

Confirmation results (timed out, execution failed) are *not* errors; see
`ledger_sdk.tx.send.ConfirmationState`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

__all__ = [
    "LedgerSdkError",
    "EncodingError",
    "KeyMaterialError",
    "ProtocolError",
    "NotFoundError",
    "InsufficientFundsError",
    "FeeOverflowError",
    "InvalidTransitionError",
]


class LedgerSdkError(Exception):
    """Base class for all SDK errors."""


@dataclass(slots=True)
class EncodingError(LedgerSdkError):
    """
    Raised when a value cannot be put into (or read back from) its canonical
    CBOR form. Fatal for the build that triggered it.
    """

    message: str
    type_name: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        where = f" [{self.type_name}]" if self.type_name else ""
        return f"EncodingError{where}: {self.message}"


@dataclass(slots=True)
class KeyMaterialError(LedgerSdkError):
    """Raised when a signing key was requested but is missing or unusable."""

    message: str
    account: Optional[int] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.account is not None:
            return f"{self.message} (account={self.account})"
        return self.message


@dataclass(slots=True)
class ProtocolError(LedgerSdkError):
    """
    Raised when the node answered with an unexpected HTTP status, returned a
    body that could not be decoded, or could not be reached at all.

    Fields:
      - message: description; the node's error string when it sent one
      - status: HTTP status code (None for transport-level failures)
      - reason: HTTP reason phrase
      - url: request URL if known
    """

    message: str
    status: Optional[int] = None
    reason: Optional[str] = None
    url: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        parts = []
        if self.status is not None:
            parts.append(f"{self.status} {self.reason or ''}".rstrip())
        parts.append(self.message)
        if self.url:
            parts.append(f"url={self.url}")
        return ", ".join(parts)


@dataclass(slots=True)
class NotFoundError(LedgerSdkError):
    """Raised when the node responds with 404. Often benign (nothing indexed yet)."""

    url: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"not found: {self.url}" if self.url else "not found"


@dataclass(slots=True)
class InsufficientFundsError(LedgerSdkError):
    """Raised by the pre-submission fee check; amounts are canonical units."""

    required: int
    available: int
    message: str = "insufficient fee credit balance for transaction"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.message}: required={self.required} available={self.available}"


@dataclass(slots=True)
class FeeOverflowError(LedgerSdkError, OverflowError):
    """Raised when fee arithmetic cannot be represented as an unsigned 64-bit amount."""

    message: str
    value: Optional[int] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.message} (value={self.value})" if self.value is not None else self.message


@dataclass(slots=True)
class InvalidTransitionError(LedgerSdkError):
    """Raised when a confirmation state machine is asked to leave a terminal state."""

    current: str
    requested: str

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"invalid confirmation transition {self.current} -> {self.requested}"
