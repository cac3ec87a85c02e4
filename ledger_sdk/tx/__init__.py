"""
ledger_sdk.tx
=============

Transaction helpers: build, encode, check fees, send.

Submodules
----------
- build : `build_order`, `TransactionBuilder` and the per-payload builders.
- encode: canonical CBOR of orders, signed bytes and transaction hashes.
- fees  : native/canonical fee conversion and the sufficiency check.
- send  : `ConfirmationPoller`, the submit-and-poll state machine.

Typical usage
-------------
    from ledger_sdk.tx import build, fees, send

    fee = fees.estimate_required_fee(attrs.gas, client.get_gas_price())
    fees.check_sufficiency(fees.available_balance(bill), fee)
    order = build.new_evm_tx(attrs, network_id=3, timeout=round_no + 10, max_fee=fee, signer=key)
    outcome = send.ConfirmationPoller(client).confirm(order)
"""

from __future__ import annotations

from . import build as build
from . import encode as encode
from . import fees as fees
from . import send as send

__all__ = ["build", "encode", "fees", "send"]
