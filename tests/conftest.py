from __future__ import annotations

from typing import Any, Callable

import pytest

from ledger_sdk.tx.encode import encode_order
from ledger_sdk.types.core import ServerMetadata, TransactionOrder, TxProof, TxRecord, TxRecordProof
from ledger_sdk.wallet.signer import AccountKey, Keyring


def _secret(n: int) -> bytes:
    return n.to_bytes(32, "big")


@pytest.fixture
def account_key() -> AccountKey:
    return AccountKey.from_secret(_secret(0xC0FFEE))


@pytest.fixture
def keyring(account_key: AccountKey) -> Keyring:
    return Keyring([account_key])


@pytest.fixture
def make_proof() -> Callable[..., TxRecordProof]:
    """Factory for the proof a node returns once an order is indexed."""

    def _make(
        order: TransactionOrder,
        *,
        success_indicator: int = 1,
        actual_fee: int = 1,
        processing_details: Any = None,
    ) -> TxRecordProof:
        meta = ServerMetadata(
            actual_fee=actual_fee,
            target_units=(order.unit_id,),
            success_indicator=success_indicator,
            processing_details=processing_details,
        )
        return TxRecordProof(
            tx_record=TxRecord(transaction_order=encode_order(order), server_metadata=meta),
            tx_proof=TxProof(block_header_hash=b"\x00" * 32),
        )

    return _make
