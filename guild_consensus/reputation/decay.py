"""Periodic inactivity decay, run by the service scheduler."""

from __future__ import annotations

import logging
from datetime import datetime

from .ledger import ReputationLedger
from .models import DecayConfig, ReputationEvent, ReputationReason

logger = logging.getLogger(__name__)

_DECAY = frozenset({ReputationReason.INACTIVITY_DECAY})


class InactivityDecay:
    """
    Subtracts a fixed amount from reviewers idle for a whole cycle.

    Process-wide job; finalizing an application never triggers it.
    A reviewer is decayed at most once per idle period and never below 0.
    """

    def __init__(self, ledger: ReputationLedger, config: DecayConfig | None = None):
        self._ledger = ledger
        self._config = config or DecayConfig()

    def run_cycle(self, now: datetime) -> list[ReputationEvent]:
        """
        Apply one decay cycle.

        Returns:
            Events appended in this cycle
        """
        events: list[ReputationEvent] = []
        for reviewer_id in sorted(self._ledger.reviewers()):
            last_activity = self._ledger.last_activity(reviewer_id)
            if last_activity is None or now - last_activity < self._config.idle_period:
                continue

            last_decay = self._ledger.last_event_at(reviewer_id, include=_DECAY)
            if last_decay is not None and now - last_decay < self._config.idle_period:
                continue

            reputation = self._ledger.reputation_of(reviewer_id)
            amount = min(self._config.amount, reputation)
            if amount <= 0:
                continue

            events.append(
                ReputationEvent(
                    event_id=f"decay:{reviewer_id}:{now.isoformat()}",
                    reviewer_id=reviewer_id,
                    change_amount=-amount,
                    reason=ReputationReason.INACTIVITY_DECAY,
                    created_at=now,
                    reference=now.date().isoformat(),
                )
            )

        self._ledger.append_batch(events)
        logger.info(f"Inactivity decay cycle: {len(events)} reviewers decayed")
        return events
