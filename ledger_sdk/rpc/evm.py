"""
EVM partition endpoints (sub-prefix ``evm``).

- GET  /evm/balance/{addr}           -> [balance (decimal wei string), counter]
- GET  /evm/transactionCount/{addr}  -> [nonce]
- GET  /evm/gasPrice                 -> [gasPrice (decimal wei string)]
- POST /evm/call                     -> [processingDetails]   (200 OK)

The EVM partition has no fee credit units of its own: an account's wei
balance *is* its fee credit, so `get_fee_credit_bill` simulates a bill by
converting the balance into canonical units.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Tuple

from ..errors import NotFoundError, ProtocolError
from ..tx.fees import DEFAULT_SCALING_FACTOR, convert_native_to_canonical, parse_amount
from ..types.attributes import CallEvmRequest, EvmProcessingDetails
from ..types.core import FeeCreditBill
from ..utils.bytes import to_hex
from ..utils.cbor import expect_array
from .http import RpcTransport
from .state import StateClient, with_context

log = logging.getLogger(__name__)

EVM_API_SUB_PREFIX = "evm"


def _balance(value: Any) -> Tuple[str, int]:
    arr = expect_array(value, 2, "BalanceResponse")
    balance, counter = arr
    if not isinstance(balance, str):
        raise TypeError("balance must be a decimal string")
    return balance, int(counter)


def _nonce(value: Any) -> int:
    return int(expect_array(value, 1, "TransactionCountResponse")[0])


def _gas_price(value: Any) -> str:
    price = expect_array(value, 1, "GasPriceResponse")[0]
    if not isinstance(price, str):
        raise TypeError("gas price must be a decimal string")
    return price


def _call_details(value: Any) -> Optional[EvmProcessingDetails]:
    return EvmProcessingDetails.from_metadata(expect_array(value, 1, "CallEvmResponse")[0])


class EvmClient(StateClient):
    """Node client for the EVM partition."""

    def __init__(self, transport: RpcTransport, *, scaling_factor: int = DEFAULT_SCALING_FACTOR) -> None:
        super().__init__(transport)
        self.scaling_factor = scaling_factor

    @staticmethod
    def _path(*parts: str) -> str:
        return "/".join((EVM_API_SUB_PREFIX,) + parts)

    def get_balance(self, address: bytes) -> Tuple[str, int]:
        """Returns (balance in wei as decimal string, counter). 404 raises `NotFoundError`."""
        try:
            return self.transport.get(self._path("balance", to_hex(address, prefix=False)), shape=_balance)
        except ProtocolError as e:
            raise with_context(f"failed to read balance for addr {to_hex(address)}", e) from e

    def get_transaction_count(self, address: bytes) -> int:
        try:
            return self.transport.get(self._path("transactionCount", to_hex(address, prefix=False)), shape=_nonce)
        except ProtocolError as e:
            raise with_context(f"failed to read transaction count for addr {to_hex(address)}", e) from e

    def get_gas_price(self) -> str:
        try:
            return self.transport.get(self._path("gasPrice"), shape=_gas_price)
        except ProtocolError as e:
            raise with_context("gas price request failed", e) from e

    def call(self, request: CallEvmRequest) -> Optional[EvmProcessingDetails]:
        """Execute a read-only call; nothing is stored on chain."""
        try:
            return self.transport.post(self._path("call"), request.to_cbor(), expected_status=200, shape=_call_details)
        except ProtocolError as e:
            raise with_context("evm call failed", e) from e

    def get_fee_credit_bill(self, unit_id: bytes) -> Optional[FeeCreditBill]:
        """
        Fee credit bill of the account at `unit_id` (its EVM address), or None
        when the node does not know the account.
        """
        try:
            balance, counter = self.get_balance(unit_id)
        except NotFoundError:
            log.debug("no fee credit bill for %s", to_hex(unit_id))
            return None
        try:
            wei = parse_amount(balance, name="balance")
        except ValueError as e:
            raise ProtocolError(f"account {to_hex(unit_id)} has invalid balance {balance!r}") from e
        return FeeCreditBill(
            id=bytes(unit_id),
            value=convert_native_to_canonical(wei, self.scaling_factor),
            counter=counter,
        )


__all__ = ["EvmClient", "EVM_API_SUB_PREFIX"]
