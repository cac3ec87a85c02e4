"""
Version helpers for the ledger SDK.
We keep a static __version__ (PEP 440) used in the User-Agent header.
"""

from __future__ import annotations

# Bump this when publishing
__version__ = "0.1.0"


def user_agent(product: str = "ledger-sdk-py") -> str:
    """Default User-Agent value, e.g. 'ledger-sdk-py/0.1.0'."""
    return f"{product}/{__version__}"


__all__ = ["__version__", "user_agent"]
