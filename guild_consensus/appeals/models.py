"""Data models for appeals arbitration."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from ..consensus.models import Outcome, TallyResult

if TYPE_CHECKING:
    from ..reputation.models import ReputationEvent
    from ..treasury.models import LedgerEffect


class AppealDecision(StrEnum):
    UPHOLD_REJECTION = "uphold_rejection"
    APPROVE_APPEAL = "approve_appeal"


class AppealOutcome(StrEnum):
    UPHELD = "upheld"
    OVERTURNED = "overturned"


class AppealStatus(StrEnum):
    OPEN = "open"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class AppealConfig:
    """Guild-level appeal configuration."""

    appeal_window: timedelta = timedelta(days=7)
    """How long after finalization an appeal may be filed."""

    voting_period: timedelta = timedelta(days=3)
    """How long the panel has to vote."""

    panel_size: int = 5
    min_panel_size: int = 3
    min_appeal_stake: int = 0

    overturn_credit: int = 3
    """Reputation credit to the appellant when the appeal succeeds."""

    upheld_penalty: int = -5
    """Reputation change for the appellant when the appeal fails."""

    majority_vote_credit: int = 5
    """Reputation credit to panelists who voted with the majority."""


@dataclass(frozen=True)
class AppealVote:
    """A panelist's decision on an appeal."""

    panelist_id: str
    decision: AppealDecision
    reasoning: str
    cast_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "panelist_id": self.panelist_id,
            "decision": self.decision.value,
            "reasoning": self.reasoning,
            "cast_at": self.cast_at.isoformat(),
        }


@dataclass(frozen=True)
class AppealResolution:
    """Terminal result of an appeal."""

    appeal_id: str
    outcome: AppealOutcome
    original_outcome: Outcome
    final_outcome: Outcome
    tally: TallyResult[AppealDecision]
    reputation_events: tuple[ReputationEvent, ...]
    effects: tuple[LedgerEffect, ...]
    resolved_at: datetime

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "appeal_id": self.appeal_id,
            "outcome": self.outcome.value,
            "original_outcome": self.original_outcome.value,
            "final_outcome": self.final_outcome.value,
            "votes": {d.value: n for d, n in self.tally.counts},
            "decided_by_default": self.tally.decided_by_default,
            "reputation_events": [e.to_dict() for e in self.reputation_events],
            "resolved_at": self.resolved_at.isoformat(),
        }


@dataclass
class Appeal:
    """
    A request to re-examine a finalized application.

    Mutable only under the appeal's lock: votes are appended and the
    resolution is set exactly once.
    """

    appeal_id: str
    application_id: str
    guild_id: str
    appellant_id: str
    justification: str
    stake_amount: int
    panel: tuple[str, ...]
    filed_at: datetime
    voting_deadline: datetime
    votes: list[AppealVote] = field(default_factory=list)
    resolution: AppealResolution | None = None

    @property
    def status(self) -> AppealStatus:
        return AppealStatus.OPEN if self.resolution is None else AppealStatus.RESOLVED

    @property
    def outcome(self) -> AppealOutcome | None:
        return self.resolution.outcome if self.resolution else None

    def has_voted(self, panelist_id: str) -> bool:
        return any(v.panelist_id == panelist_id for v in self.votes)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "appeal_id": self.appeal_id,
            "application_id": self.application_id,
            "appellant_id": self.appellant_id,
            "justification": self.justification,
            "stake_amount": self.stake_amount,
            "panel": list(self.panel),
            "status": self.status.value,
            "filed_at": self.filed_at.isoformat(),
            "voting_deadline": self.voting_deadline.isoformat(),
            "votes": [v.to_dict() for v in self.votes],
            "outcome": self.outcome.value if self.outcome else None,
        }
