"""
ledger_sdk.tx.send
==================

Submit transaction orders to a node and resolve their fate by polling.

The node has no push channel for inclusion, so confirmation is a loop over
two idempotent queries: the latest round and the proof for the order's hash.
The loop is modelled as an explicit state machine:

    SUBMITTED -> POLLING -> CONFIRMED
                         -> EXECUTION_FAILED
                         -> TIMED_OUT
                         -> ABORTED

The last four states are terminal; asking a terminal `PendingTransaction`
to move again raises `InvalidTransitionError`.

Outcomes
--------
- CONFIRMED: a proof exists and its success indicator is nonzero. Payload
  specific detail (e.g. an EVM revert) is still surfaced in
  `ConfirmationOutcome.processing_details`.
- EXECUTION_FAILED: a proof exists with success indicator 0; processing
  details are returned verbatim.
- TIMED_OUT: no proof and the indexed round passed the order's timeout, or
  the local deadline expired. Not an error: the order may still be included,
  which `may_still_be_included` states explicitly.
- ABORTED: the caller's cancellation event was set. Checked at each
  iteration boundary, never mid-request. The submitted order is NOT rolled
  back; it may still be executed by the node.

Nonces
------
Nothing here serializes submissions that share a signing key. Callers that
submit several orders from one account must order them (and their nonces or
counters) themselves.

Examples
--------
    from ledger_sdk.tx.send import ConfirmationPoller

    poller = ConfirmationPoller(state_client, poll_interval=0.5)
    outcome = poller.confirm(order, deadline_s=60)
    if outcome.state is ConfirmationState.TIMED_OUT:
        ...  # rebuild with a fresh timeout, do not resend the same order blindly
"""

from __future__ import annotations

import enum
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, Optional, Protocol

from ..config import DEFAULT_CONFIRM_DEADLINE, DEFAULT_POLL_INTERVAL
from ..errors import InvalidTransitionError
from ..types.core import RoundInfo, TransactionOrder, TxRecordProof
from ..utils.bytes import to_hex
from .encode import tx_hash as compute_tx_hash

log = logging.getLogger(__name__)


class NodeClient(Protocol):
    """What the poller needs from a node client (see `ledger_sdk.rpc.state.StateClient`)."""

    def post_transaction(self, order: TransactionOrder) -> bytes: ...

    def get_round_info(self) -> RoundInfo: ...

    def get_tx_proof(self, tx_hash: bytes) -> Optional[TxRecordProof]: ...


class ConfirmationState(str, enum.Enum):
    SUBMITTED = "submitted"
    POLLING = "polling"
    CONFIRMED = "confirmed"
    EXECUTION_FAILED = "execution_failed"
    TIMED_OUT = "timed_out"
    ABORTED = "aborted"

    @property
    def terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES: FrozenSet[ConfirmationState] = frozenset(
    {
        ConfirmationState.CONFIRMED,
        ConfirmationState.EXECUTION_FAILED,
        ConfirmationState.TIMED_OUT,
        ConfirmationState.ABORTED,
    }
)

_TRANSITIONS: Dict[ConfirmationState, FrozenSet[ConfirmationState]] = {
    ConfirmationState.SUBMITTED: frozenset({ConfirmationState.POLLING, ConfirmationState.ABORTED}),
    ConfirmationState.POLLING: TERMINAL_STATES,
    ConfirmationState.CONFIRMED: frozenset(),
    ConfirmationState.EXECUTION_FAILED: frozenset(),
    ConfirmationState.TIMED_OUT: frozenset(),
    ConfirmationState.ABORTED: frozenset(),
}


@dataclass
class PendingTransaction:
    """
    A submitted order and where its confirmation currently stands.

    One instance per order; never shared between poll loops.
    """

    order: TransactionOrder
    tx_hash: bytes
    submitted_round: int
    state: ConfirmationState = ConfirmationState.SUBMITTED
    polls: int = 0
    last_round: Optional[int] = None

    @property
    def tx_hash_hex(self) -> str:
        return to_hex(self.tx_hash, prefix=False)

    def transition(self, new_state: ConfirmationState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise InvalidTransitionError(current=self.state.value, requested=new_state.value)
        log.debug("tx %s: %s -> %s", self.tx_hash_hex, self.state.value, new_state.value)
        self.state = new_state


@dataclass(frozen=True)
class ConfirmationOutcome:
    """Terminal result of a poll loop."""

    state: ConfirmationState
    tx_hash: bytes
    submitted_round: int
    last_round: Optional[int]
    polls: int
    proof: Optional[TxRecordProof] = None
    actual_fee: Optional[int] = None
    processing_details: Any = None
    may_still_be_included: bool = False

    @property
    def confirmed(self) -> bool:
        return self.state is ConfirmationState.CONFIRMED

    @property
    def tx_hash_hex(self) -> str:
        return to_hex(self.tx_hash, prefix=False)


class ConfirmationPoller:
    """
    Submits orders through a `NodeClient` and polls them to a terminal state.

    The poller holds no per-order state, so one instance can drive any number
    of concurrent poll loops (one thread each).

    Every poll loop is bounded by a local wall-clock deadline (`deadline_s`,
    60 s unless overridden per poller or per call), so a node whose rounds
    stop advancing still yields TIMED_OUT.
    """

    def __init__(
        self,
        client: NodeClient,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        deadline_s: float = DEFAULT_CONFIRM_DEADLINE,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if poll_interval < 0:
            raise ValueError("poll_interval must be >= 0")
        if not 0 < deadline_s < float("inf"):
            raise ValueError("deadline_s must be a positive number of seconds")
        self.client = client
        self.poll_interval = float(poll_interval)
        self.deadline_s = float(deadline_s)
        self._clock = clock
        self._sleep = sleep

    def submit(self, order: TransactionOrder) -> PendingTransaction:
        """
        Send `order` once. The round is read before the POST so a failing
        round query never leaves an untracked submission behind.
        """
        round_info = self.client.get_round_info()
        txh = compute_tx_hash(order)
        self.client.post_transaction(order)
        pending = PendingTransaction(order=order, tx_hash=txh, submitted_round=round_info.round_number)
        log.info(
            "submitted tx %s at round %d (timeout round %d)",
            pending.tx_hash_hex,
            pending.submitted_round,
            order.timeout,
        )
        return pending

    def poll(
        self,
        pending: PendingTransaction,
        *,
        deadline_s: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> ConfirmationOutcome:
        """
        Poll until `pending` reaches a terminal state.

        Args:
            deadline_s: local wall-clock budget in seconds for this call
                (None: the poller's `deadline_s`)
            cancel: event checked before every iteration; when set the loop
                returns ABORTED

        Errors from the node client (`ProtocolError`) propagate; the pending
        transaction stays in POLLING and can be polled again.
        """
        if pending.state is not ConfirmationState.POLLING:
            pending.transition(ConfirmationState.POLLING)
        budget = self.deadline_s if deadline_s is None else float(deadline_s)
        started = self._clock()
        timeout_round = pending.order.timeout

        while True:
            if cancel is not None and cancel.is_set():
                log.info("tx %s: polling aborted by caller after %d polls", pending.tx_hash_hex, pending.polls)
                return self._finish(pending, ConfirmationState.ABORTED, may_still_be_included=True)

            round_info = self.client.get_round_info()
            proof = self.client.get_tx_proof(pending.tx_hash)
            pending.polls += 1
            pending.last_round = round_info.round_number

            if proof is not None:
                meta = proof.server_metadata
                state = ConfirmationState.CONFIRMED if meta.succeeded else ConfirmationState.EXECUTION_FAILED
                log.info(
                    "tx %s: %s after %d polls (fee=%d)",
                    pending.tx_hash_hex,
                    state.value,
                    pending.polls,
                    meta.actual_fee,
                )
                return self._finish(
                    pending,
                    state,
                    proof=proof,
                    actual_fee=meta.actual_fee,
                    processing_details=meta.processing_details,
                )

            if round_info.last_indexed_round_number > timeout_round:
                log.warning(
                    "tx %s: no proof by round %d (timeout round %d)",
                    pending.tx_hash_hex,
                    round_info.last_indexed_round_number,
                    timeout_round,
                )
                return self._finish(pending, ConfirmationState.TIMED_OUT, may_still_be_included=True)

            remaining = budget - (self._clock() - started)
            if remaining <= 0:
                log.warning("tx %s: local deadline of %ss expired", pending.tx_hash_hex, budget)
                return self._finish(pending, ConfirmationState.TIMED_OUT, may_still_be_included=True)
            wait = min(self.poll_interval, remaining)

            log.debug("tx %s: not yet confirmed (round %d)", pending.tx_hash_hex, round_info.round_number)
            if cancel is not None:
                cancel.wait(wait)
            elif wait > 0:
                self._sleep(wait)

    def confirm(
        self,
        order: TransactionOrder,
        *,
        deadline_s: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> ConfirmationOutcome:
        """Submit + poll."""
        pending = self.submit(order)
        return self.poll(pending, deadline_s=deadline_s, cancel=cancel)

    @staticmethod
    def _finish(pending: PendingTransaction, state: ConfirmationState, **extra: Any) -> ConfirmationOutcome:
        pending.transition(state)
        return ConfirmationOutcome(
            state=state,
            tx_hash=pending.tx_hash,
            submitted_round=pending.submitted_round,
            last_round=pending.last_round,
            polls=pending.polls,
            **extra,
        )


__all__ = [
    "NodeClient",
    "ConfirmationState",
    "TERMINAL_STATES",
    "PendingTransaction",
    "ConfirmationOutcome",
    "ConfirmationPoller",
]
