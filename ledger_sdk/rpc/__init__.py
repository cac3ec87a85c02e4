"""
ledger_sdk.rpc
--------------

Node access over HTTP+CBOR.

- RpcTransport: request/response layer (see .http)
- StateClient:  partition-independent endpoints (see .state)
- EvmClient:    EVM partition endpoints (see .evm)

Import style:

    from ledger_sdk.rpc import EvmClient, RpcTransport
    client = EvmClient(RpcTransport("http://localhost:26866"))
"""

from __future__ import annotations

from .evm import EvmClient
from .http import API_PATH_PREFIX, RpcTransport
from .state import StateClient

__all__ = ["RpcTransport", "StateClient", "EvmClient", "API_PATH_PREFIX"]
