"""Bounded polling of the realized state of a freshly created resource.

The poll walks ``PENDING -> POLLING -> REALIZED | FAILED | TIMED_OUT |
CANCELLED``.  The first query is issued immediately; later queries wait
``policy.interval`` seconds on the caller's cancellation event, so setting
that event ends the poll at the next suspension point.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import Event
from typing import Optional

from .broker import NsxtBroker
from .config import RealizationPolicy
from .errors import (
    BrokerError,
    RealizationCancelledError,
    RealizationFailedError,
    RealizationTimeoutError,
)
from .model import RealizationState
from .translator import classify_realized, realized_states

LOG = logging.getLogger(__name__)


@dataclass
class RealizationResult:
    intent_path: str
    state: RealizationState
    attempts: int


class RealizationPoller:
    """Drive one intent path to REALIZED within a :class:`RealizationPolicy`."""

    def __init__(self, broker: NsxtBroker, policy: Optional[RealizationPolicy] = None) -> None:
        self._broker = broker
        self._policy = policy or RealizationPolicy()

    @property
    def policy(self) -> RealizationPolicy:
        return self._policy

    def poll(self, intent_path: str, cancel: Optional[Event] = None) -> RealizationResult:
        """Run the state machine and return its terminal state.

        Broker failures end the poll in ``FAILED``; the exception is chained
        onto the error raised by :meth:`wait`.
        """

        result, _ = self._run(intent_path, cancel or Event())
        return result

    def wait(self, intent_path: str, cancel: Optional[Event] = None) -> RealizationResult:
        """Like :meth:`poll` but raise unless the resource was realized."""

        result, cause = self._run(intent_path, cancel or Event())
        if result.state is RealizationState.REALIZED:
            return result

        if result.state is RealizationState.CANCELLED:
            raise RealizationCancelledError(
                f"realization of {intent_path} cancelled after {result.attempts} attempts",
                intent_path,
                result.attempts,
            )
        if result.state is RealizationState.TIMED_OUT:
            raise RealizationTimeoutError(
                f"{intent_path} not realized after {result.attempts} attempts",
                intent_path,
                result.attempts,
            )
        raise RealizationFailedError(
            f"realization of {intent_path} failed: {cause or 'ERROR state reported'}",
            intent_path,
            result.attempts,
        ) from cause

    def _run(self, intent_path: str, cancel: Event):
        state = RealizationState.PENDING
        attempts = 0
        cause: Optional[BrokerError] = None

        while not state.terminal:
            if cancel.is_set():
                state = RealizationState.CANCELLED
                break
            if attempts >= self._policy.max_attempts:
                state = RealizationState.TIMED_OUT
                break
            if attempts and cancel.wait(self._policy.interval):
                state = RealizationState.CANCELLED
                break

            attempts += 1
            state = RealizationState.POLLING
            try:
                entities = self._broker.list_realized_entities(intent_path).results
            except BrokerError as exc:
                cause = exc
                state = RealizationState.FAILED
                break

            state = classify_realized(entities, intent_path)
            LOG.debug(
                "Realization poll %d/%d for %s: %s",
                attempts,
                self._policy.max_attempts,
                intent_path,
                realized_states(entities) or "no entities",
            )

        LOG.debug("Realization of %s finished in state %s", intent_path, state.value)
        return RealizationResult(intent_path, state, attempts), cause
