"""Data models for applications, votes and voting phases."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..appeals.models import AppealResolution
    from ..consensus.models import Outcome
    from ..orchestration.models import FinalizationResult


class ApplicationStatus(StrEnum):
    ACTIVE = "active"
    CLOSED = "closed"
    EXPIRED = "expired"
    FINALIZED = "finalized"
    CANCELLED = "cancelled"


class VotingPhase(StrEnum):
    DIRECT = "direct"
    COMMIT = "commit"
    REVEAL = "reveal"
    FINALIZED = "finalized"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (VotingPhase.FINALIZED, VotingPhase.CANCELLED)


@dataclass(frozen=True)
class PhaseConfig:
    """Guild-level voting phase configuration."""

    requires_commit_reveal: bool = False
    """Hide scores until every reviewer has committed."""

    reveal_duration: timedelta = timedelta(hours=24)
    """Length of the reveal window, ending at the voting deadline."""


@dataclass(frozen=True)
class Application:
    """A candidate or expert submission under review by one guild."""

    application_id: str
    guild_id: str
    applicant_id: str
    expertise_level: str
    required_stake: int
    voting_deadline: datetime
    reward_pool: int = 0
    """Token base units released to aligned reviewers at finalization."""

    created_at: datetime | None = None


@dataclass(frozen=True)
class ReviewerAssignment:
    """Link between an application and an eligible reviewer."""

    reviewer_id: str
    stake: int


@dataclass(frozen=True)
class Vote:
    """
    One reviewer's score for one application.

    Immutable once recorded; corrections go through an appeal.
    """

    vote_id: str
    application_id: str
    reviewer_id: str
    score: float
    stake_amount: int
    submitted_at: datetime
    criteria_scores: tuple[tuple[str, float], ...] = ()
    red_flag_deductions: float = 0.0
    commit_hash: str | None = None
    revealed_at: datetime | None = None

    @staticmethod
    def make_id(application_id: str, reviewer_id: str) -> str:
        return f"{application_id}:{reviewer_id}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "vote_id": self.vote_id,
            "application_id": self.application_id,
            "reviewer_id": self.reviewer_id,
            "score": round(self.score, 6),
            "stake_amount": self.stake_amount,
            "criteria_scores": dict(self.criteria_scores),
            "red_flag_deductions": self.red_flag_deductions,
            "commit_hash": self.commit_hash,
            "submitted_at": self.submitted_at.isoformat(),
            "revealed_at": self.revealed_at.isoformat() if self.revealed_at else None,
        }


@dataclass(frozen=True)
class CommitRecord:
    """A reviewer's hidden commitment during the commit phase."""

    reviewer_id: str
    commit_hash: str
    stake_amount: int
    committed_at: datetime


@dataclass
class ApplicationState:
    """
    Mutable per-application aggregate guarded by the application's lock.

    Only the phase controller, the vote ledger and the engine mutate it.
    """

    application: Application
    assignments: dict[str, ReviewerAssignment]
    phase: VotingPhase
    commit_deadline: datetime | None = None
    reveal_deadline: datetime | None = None
    forfeited: set[str] = field(default_factory=set)
    """Reviewers whose reveal failed; treated as abstentions."""

    finalization: FinalizationResult | None = None
    appeal_resolution: AppealResolution | None = None
    cancelled_reason: str | None = None

    @property
    def application_id(self) -> str:
        return self.application.application_id

    @property
    def status(self) -> ApplicationStatus:
        if self.phase == VotingPhase.CANCELLED:
            return ApplicationStatus.CANCELLED
        if self.finalization is not None:
            if self.finalization.consensus is None:
                return ApplicationStatus.EXPIRED
            return ApplicationStatus.FINALIZED
        return ApplicationStatus.ACTIVE

    @property
    def final_outcome(self) -> Outcome | None:
        """Outcome after any appeal; None until finalized with votes."""
        if self.appeal_resolution is not None:
            return self.appeal_resolution.final_outcome
        if self.finalization is None or self.finalization.consensus is None:
            return None
        return self.finalization.consensus.outcome

    @property
    def is_commit_reveal(self) -> bool:
        return self.commit_deadline is not None

    def is_assigned(self, reviewer_id: str) -> bool:
        return reviewer_id in self.assignments


@dataclass(frozen=True)
class PhaseSnapshot:
    """Phase status for UI polling."""

    application_id: str
    phase: VotingPhase
    status: ApplicationStatus
    assigned_count: int
    vote_count: int
    commit_count: int
    reveal_count: int
    voting_deadline: datetime
    commit_deadline: datetime | None = None
    reveal_deadline: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "application_id": self.application_id,
            "phase": self.phase.value,
            "status": self.status.value,
            "assigned_count": self.assigned_count,
            "vote_count": self.vote_count,
            "commit_count": self.commit_count,
            "reveal_count": self.reveal_count,
            "voting_deadline": self.voting_deadline.isoformat(),
            "commit_deadline": (
                self.commit_deadline.isoformat() if self.commit_deadline else None
            ),
            "reveal_deadline": (
                self.reveal_deadline.isoformat() if self.reveal_deadline else None
            ),
        }
