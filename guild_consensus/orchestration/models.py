"""Data models for application finalization."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..consensus.models import ConsensusResult, Outcome
    from ..incentives.models import RewardDistribution
    from ..reputation.models import AlignmentRecord, ReputationEvent
    from ..treasury.models import LedgerEffect


@dataclass(frozen=True)
class FinalizationResult:
    """
    Everything produced when an application is finalized.

    Stored once per application; repeated finalize calls return this same
    object instead of recomputing it.
    """

    application_id: str
    guild_id: str
    finalized_at: datetime

    consensus: ConsensusResult | None
    """None when the application expired without votes."""

    alignments: tuple[AlignmentRecord, ...]
    distribution: RewardDistribution
    reputation_events: tuple[ReputationEvent, ...]
    effects: tuple[LedgerEffect, ...]
    """Token movements for the treasury, dispatched after the lock is released."""

    @property
    def outcome(self) -> Outcome | None:
        return self.consensus.outcome if self.consensus else None

    @property
    def expired(self) -> bool:
        return self.consensus is None

    def alignment_for(self, reviewer_id: str) -> AlignmentRecord | None:
        for record in self.alignments:
            if record.reviewer_id == reviewer_id:
                return record
        return None

    def to_dict(self) -> dict[str, Any]:
        """
        Serialize for the ledger collaborator and the UI.

        Returns:
            Dictionary suitable for JSON serialization.
        """
        return {
            "application_id": self.application_id,
            "guild_id": self.guild_id,
            "finalized_at": self.finalized_at.isoformat(),
            "expired": self.expired,
            "consensus": self.consensus.to_dict() if self.consensus else None,
            "alignments": [r.to_dict() for r in self.alignments],
            "distribution": self.distribution.to_dict(),
            "reputation_events": [e.to_dict() for e in self.reputation_events],
            "effects": [e.to_dict() for e in self.effects],
        }
