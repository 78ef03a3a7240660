"""Append-only reputation event ledger."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime

from .errors import DuplicateReputationEventError
from .models import ReputationEvent, ReputationReason

logger = logging.getLogger(__name__)


class ReputationLedger:
    """
    Stores immutable reputation events; reputation is their running sum.

    `append_batch` is all-or-nothing: the whole batch is validated before any
    event is written, so a failed batch leaves the ledger untouched.
    """

    def __init__(self) -> None:
        self._events: list[ReputationEvent] = []
        self._event_ids: set[str] = set()
        self._by_reviewer: dict[str, list[ReputationEvent]] = {}

    def __len__(self) -> int:
        return len(self._events)

    def append(self, event: ReputationEvent) -> None:
        self.append_batch([event])

    def append_batch(self, events: Sequence[ReputationEvent]) -> None:
        """
        Append events atomically.

        Raises:
            DuplicateReputationEventError: If any event id is already recorded
                or repeated within the batch
        """
        batch_ids = [e.event_id for e in events]
        duplicates = {i for i in batch_ids if i in self._event_ids}
        if len(set(batch_ids)) != len(batch_ids):
            duplicates |= {i for i in batch_ids if batch_ids.count(i) > 1}
        if duplicates:
            raise DuplicateReputationEventError(
                f"Reputation events already recorded: {', '.join(sorted(duplicates))}"
            )

        for event in events:
            self._events.append(event)
            self._event_ids.add(event.event_id)
            self._by_reviewer.setdefault(event.reviewer_id, []).append(event)

        if events:
            logger.debug(f"Appended {len(events)} reputation events")

    def has_event(self, event_id: str) -> bool:
        return event_id in self._event_ids

    def events(self) -> tuple[ReputationEvent, ...]:
        return tuple(self._events)

    def events_for(self, reviewer_id: str) -> tuple[ReputationEvent, ...]:
        return tuple(self._by_reviewer.get(reviewer_id, ()))

    def reviewers(self) -> set[str]:
        return set(self._by_reviewer)

    def raw_balance(self, reviewer_id: str) -> int:
        """Unclamped sum of a reviewer's events."""
        return sum(e.change_amount for e in self._by_reviewer.get(reviewer_id, ()))

    def reputation_of(self, reviewer_id: str) -> int:
        """Displayed reputation: lifetime sum, never below 0."""
        return max(self.raw_balance(reviewer_id), 0)

    def reputations(self, reviewer_ids: Iterable[str]) -> dict[str, int]:
        return {r: self.reputation_of(r) for r in reviewer_ids}

    def last_event_at(
        self,
        reviewer_id: str,
        *,
        include: frozenset[ReputationReason] | None = None,
        exclude: frozenset[ReputationReason] = frozenset(),
    ) -> datetime | None:
        """Timestamp of the reviewer's latest event, optionally filtered by reason."""
        times = [
            e.created_at
            for e in self._by_reviewer.get(reviewer_id, ())
            if (include is None or e.reason in include) and e.reason not in exclude
        ]
        return max(times) if times else None

    def last_activity(self, reviewer_id: str) -> datetime | None:
        """Latest event that reflects reviewer activity (decay excluded)."""
        return self.last_event_at(
            reviewer_id,
            exclude=frozenset({ReputationReason.INACTIVITY_DECAY}),
        )
