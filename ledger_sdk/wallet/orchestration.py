"""
Orchestration partition flows.

`add_var` registers a validator assignment record (VAR) for one shard of a
managed partition. The target unit is the well-known VAR unit of that shard:

    unit_id = compose_unit_id(orchestration_partition, shard, VAR_UNIT_TYPE,
                              prnd_sh(managed_partition, shard))
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from ..config import DEFAULT_TX_TIMEOUT_ROUNDS
from ..rpc.state import StateClient
from ..tx.build import new_add_var_tx, timeout_for_round
from ..tx.send import ConfirmationOutcome, ConfirmationPoller
from ..types.attributes import ORCHESTRATION_PARTITION_ID, VAR_UNIT_TYPE, ValidatorAssignmentRecord
from ..types.unit_id import ShardID, UnitID, compose_unit_id, prnd_sh
from .signer import KeyMaterialProvider, account_key

log = logging.getLogger(__name__)


def var_unit_id(
    partition_id: int,
    shard_id: ShardID,
    *,
    orchestration_partition_id: int = ORCHESTRATION_PARTITION_ID,
) -> UnitID:
    return compose_unit_id(
        orchestration_partition_id,
        shard_id,
        VAR_UNIT_TYPE,
        prnd_sh(partition_id, shard_id),
    )


def add_var(
    client: StateClient,
    keys: KeyMaterialProvider,
    var: ValidatorAssignmentRecord,
    *,
    network_id: int,
    partition_id: int,
    shard_id: Optional[ShardID] = None,
    account_number: int = 1,
    max_fee: int = 10,
    orchestration_partition_id: int = ORCHESTRATION_PARTITION_ID,
    timeout_rounds: int = DEFAULT_TX_TIMEOUT_ROUNDS,
    poller: Optional[ConfirmationPoller] = None,
    deadline_s: Optional[float] = None,
    cancel: Optional[threading.Event] = None,
) -> ConfirmationOutcome:
    """
    Build, sign and confirm an 'addVar' order for (`partition_id`, `shard_id`),
    signed by the proof-of-authority key `account_number` (1-based).

    `deadline_s` bounds the confirmation wait; None uses the poller's
    deadline (60 s by default).
    """
    shard = shard_id if shard_id is not None else ShardID()
    key = account_key(keys, account_number)
    unit_id = var_unit_id(partition_id, shard, orchestration_partition_id=orchestration_partition_id)

    round_info = client.get_round_info()
    order = new_add_var_tx(
        var,
        network_id=network_id,
        unit_id=unit_id,
        timeout=timeout_for_round(round_info.round_number, timeout_rounds),
        max_fee=max_fee,
        signer=key,
        partition_id=orchestration_partition_id,
    )

    poller = poller or ConfirmationPoller(client)
    outcome = poller.confirm(order, deadline_s=deadline_s, cancel=cancel)
    if outcome.confirmed:
        log.info("Validator Assignment Record added successfully.")
    else:
        log.warning("addVar tx %s ended as %s", outcome.tx_hash_hex, outcome.state.value)
    return outcome


__all__ = ["add_var", "var_unit_id"]
