"""
ledger_sdk.wallet.evm
=====================

Account-level flows on the EVM partition: send a state-changing EVM
transaction, run a read-only call, read an account's fee credit.

Account numbers are 1-based (as shown to users); the key-material provider
is indexed from 0.

Two independent success dimensions are reported for sent transactions:

- ledger level: was the order included (`EvmTxResult.success`)
- execution level: did the EVM run succeed (`EvmTxResult.reverted`,
  `EvmTxResult.details.error_details`)
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from typing import Optional

from ..config import DEFAULT_TX_TIMEOUT_ROUNDS, SDKConfig
from ..errors import EncodingError
from ..rpc.evm import EvmClient
from ..rpc.http import RpcTransport
from ..tx.build import new_evm_tx, timeout_for_round
from ..tx.fees import FeeCreditCalculator
from ..tx.send import ConfirmationOutcome, ConfirmationPoller
from ..types.attributes import EVM_PARTITION_ID, CallEvmRequest, EvmProcessingDetails, EvmTxAttributes
from ..types.core import FeeCreditBill
from ..utils.bytes import to_hex
from .signer import KeyMaterialProvider, account_key

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvmTxResult:
    success: bool
    actual_fee: Optional[int]
    details: Optional[EvmProcessingDetails]
    outcome: ConfirmationOutcome

    @property
    def reverted(self) -> bool:
        return self.details is not None and self.details.reverted


class EvmWallet:
    def __init__(
        self,
        client: EvmClient,
        keys: KeyMaterialProvider,
        *,
        network_id: int,
        partition_id: int = EVM_PARTITION_ID,
        poller: Optional[ConfirmationPoller] = None,
        fees: Optional[FeeCreditCalculator] = None,
        timeout_rounds: int = DEFAULT_TX_TIMEOUT_ROUNDS,
    ) -> None:
        if partition_id == 0:
            raise ValueError("partition id is unassigned")
        if keys is None:
            raise ValueError("key material provider is None")
        self.client = client
        self.keys = keys
        self.network_id = network_id
        self.partition_id = partition_id
        self.poller = poller or ConfirmationPoller(client)
        self.fees = fees or FeeCreditCalculator(client.scaling_factor)
        self.timeout_rounds = timeout_rounds

    @classmethod
    def from_config(cls, config: SDKConfig, keys: KeyMaterialProvider, **kwargs) -> "EvmWallet":
        transport = RpcTransport(config.rpc_url, timeout=config.request_timeout, headers={"User-Agent": config.user_agent})
        client = EvmClient(transport)
        kwargs.setdefault(
            "poller",
            ConfirmationPoller(client, poll_interval=config.poll_interval, deadline_s=config.confirm_deadline),
        )
        kwargs.setdefault("timeout_rounds", config.tx_timeout_rounds)
        return cls(client, keys, network_id=config.network_id, **kwargs)

    def close(self) -> None:
        self.client.transport.close()

    def send_evm_tx(
        self,
        account_number: int,
        attrs: EvmTxAttributes,
        *,
        deadline_s: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> EvmTxResult:
        """
        Sign and send an EVM transaction from `account_number`, then wait
        for its confirmation.

        The sender address and nonce in `attrs` are replaced by the account's
        address and the node's current transaction count. Raises
        `InsufficientFundsError` before anything is submitted when the
        account cannot cover ``gas * gasPrice``.

        The confirmation wait is bounded by `deadline_s`, or by the poller's
        deadline when None.
        """
        key = account_key(self.keys, account_number)
        from_addr = key.evm_address

        bill = self.client.get_fee_credit_bill(from_addr)
        gas_price = self.client.get_gas_price()
        max_fee = self.fees.required_fee(attrs.gas, gas_price)
        self.fees.check(bill, max_fee)

        nonce = self.client.get_transaction_count(from_addr)
        round_info = self.client.get_round_info()
        order = new_evm_tx(
            replace(attrs, from_addr=from_addr, nonce=nonce),
            network_id=self.network_id,
            partition_id=self.partition_id,
            timeout=timeout_for_round(round_info.round_number, self.timeout_rounds),
            max_fee=max_fee,
            signer=key,
        )
        log.info("sending evm tx from %s (nonce=%d, max_fee=%d)", to_hex(from_addr), nonce, max_fee)
        outcome = self.poller.confirm(order, deadline_s=deadline_s, cancel=cancel)

        details = None
        if outcome.proof is not None:
            try:
                details = EvmProcessingDetails.from_metadata(outcome.processing_details)
            except EncodingError as e:
                # the order is already resolved; the raw value stays on the outcome
                log.warning("tx %s: undecodable evm processing details: %s", outcome.tx_hash_hex, e)
        return EvmTxResult(
            success=outcome.confirmed,
            actual_fee=outcome.actual_fee,
            details=details,
            outcome=outcome,
        )

    def evm_call(self, account_number: int, request: CallEvmRequest) -> Optional[EvmProcessingDetails]:
        """Read-only call from `account_number`'s address."""
        key = account_key(self.keys, account_number)
        return self.client.call(replace(request, from_addr=key.evm_address))

    def get_balance(self, account_number: int) -> Optional[FeeCreditBill]:
        """Fee credit of `account_number` in canonical units; None when the node has no account."""
        key = account_key(self.keys, account_number)
        return self.client.get_fee_credit_bill(key.evm_address)


__all__ = ["EvmWallet", "EvmTxResult"]
