"""
SDK configuration: node endpoint, network id, timeouts and polling cadence.

- Loads sane defaults and supports overrides via environment variables (LEDGER_*).
- Provides helpers for building HTTP headers and validating endpoints.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .version import user_agent

_DEFAULT_RPC = "http://127.0.0.1:26866"

# Local network; mainnet/testnet ids are assigned by the operators.
DEFAULT_NETWORK_ID = 3

# Rounds added to the latest round when picking an order timeout.
DEFAULT_TX_TIMEOUT_ROUNDS = 10

# Seconds between two confirmation polls.
DEFAULT_POLL_INTERVAL = 0.5

# Local wall-clock budget of one confirmation loop, in seconds.
DEFAULT_CONFIRM_DEADLINE = 60.0


_HEX_RE = re.compile(r"^0x[0-9a-fA-F]+$")


def _parse_int(val: Any, default: int) -> int:
    """
    Accepts int, decimal str, or 0x-hex str and returns int.
    """
    if val is None or val == "":
        return int(default)
    if isinstance(val, int):
        return val
    s = str(val).strip()
    if _HEX_RE.match(s):
        return int(s, 16)
    return int(s, 10)


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name)
    return v if v is not None else default


def _ensure_scheme(url: Optional[str], allowed: tuple[str, ...]) -> Optional[str]:
    if not url:
        return url
    lower = url.lower()
    if not any(lower.startswith(f"{sch}://") for sch in allowed):
        raise ValueError(f"URL must start with {allowed}, got: {url!r}")
    return url


@dataclass(slots=True)
class SDKConfig:
    # Core
    rpc_url: str = field(default_factory=lambda: _DEFAULT_RPC)
    network_id: int = DEFAULT_NETWORK_ID
    # HTTP behavior
    request_timeout: float = 10.0
    # Confirmation behavior
    poll_interval: float = DEFAULT_POLL_INTERVAL
    tx_timeout_rounds: int = DEFAULT_TX_TIMEOUT_ROUNDS
    confirm_deadline: float = DEFAULT_CONFIRM_DEADLINE
    # Headers / identity
    user_agent: str = field(default_factory=user_agent)

    @classmethod
    def from_env(cls, prefix: str = "LEDGER_") -> "SDKConfig":
        """
        Create config from environment variables:

        LEDGER_RPC_URL            (http/https)
        LEDGER_NETWORK_ID         (int or 0x-hex)
        LEDGER_TIMEOUT            (float seconds, HTTP)
        LEDGER_POLL_INTERVAL      (float seconds between confirmation polls)
        LEDGER_TX_TIMEOUT_ROUNDS  (int)
        LEDGER_CONFIRM_DEADLINE   (float seconds per confirmation loop)
        LEDGER_USER_AGENT         (str)
        """
        rpc = _env(f"{prefix}RPC_URL", _DEFAULT_RPC)
        network_id = _parse_int(_env(f"{prefix}NETWORK_ID", None), DEFAULT_NETWORK_ID)
        timeout = float(_env(f"{prefix}TIMEOUT", "10.0"))
        poll = float(_env(f"{prefix}POLL_INTERVAL", str(DEFAULT_POLL_INTERVAL)))
        rounds = _parse_int(_env(f"{prefix}TX_TIMEOUT_ROUNDS", None), DEFAULT_TX_TIMEOUT_ROUNDS)
        deadline = float(_env(f"{prefix}CONFIRM_DEADLINE", str(DEFAULT_CONFIRM_DEADLINE)))
        ua = _env(f"{prefix}USER_AGENT", user_agent())

        _ensure_scheme(rpc, ("http", "https"))

        return cls(
            rpc_url=rpc or _DEFAULT_RPC,
            network_id=network_id,
            request_timeout=timeout,
            poll_interval=poll,
            tx_timeout_rounds=rounds,
            confirm_deadline=deadline,
            user_agent=ua or user_agent(),
        )

    @classmethod
    def with_overrides(
        cls, base: Optional["SDKConfig"] = None, **overrides: Any
    ) -> "SDKConfig":
        """
        Build from an existing config plus keyword overrides.
        Unknown keys are ignored.
        """
        base = base or cls.from_env()
        data = base.to_dict()
        data.update({k: v for k, v in overrides.items() if k in data})
        if "network_id" in overrides:
            data["network_id"] = _parse_int(overrides["network_id"], base.network_id)
        if "rpc_url" in overrides:
            _ensure_scheme(data["rpc_url"], ("http", "https"))
        if int(data["tx_timeout_rounds"]) <= 0:
            raise ValueError("tx_timeout_rounds must be positive")
        if float(data["confirm_deadline"]) <= 0:
            raise ValueError("confirm_deadline must be positive")
        return cls(**data)

    def http_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/cbor",
            "Accept": "application/cbor",
            "User-Agent": self.user_agent,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rpc_url": self.rpc_url,
            "network_id": int(self.network_id),
            "request_timeout": float(self.request_timeout),
            "poll_interval": float(self.poll_interval),
            "tx_timeout_rounds": int(self.tx_timeout_rounds),
            "confirm_deadline": float(self.confirm_deadline),
            "user_agent": self.user_agent,
        }


__all__ = [
    "SDKConfig",
    "DEFAULT_NETWORK_ID",
    "DEFAULT_POLL_INTERVAL",
    "DEFAULT_CONFIRM_DEADLINE",
    "DEFAULT_TX_TIMEOUT_ROUNDS",
]
