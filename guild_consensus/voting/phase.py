"""Voting phase state machine."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime

from .errors import (
    ApplicationCancelledError,
    PhaseConfigurationError,
    VotingClosedError,
    WrongPhaseError,
)
from .models import (
    Application,
    ApplicationState,
    ApplicationStatus,
    CommitRecord,
    PhaseConfig,
    PhaseSnapshot,
    ReviewerAssignment,
    Vote,
    VotingPhase,
)

logger = logging.getLogger(__name__)


class PhaseController:
    """
    State machine governing how an application accepts votes.

    States:
        Open -> Direct                       (guild does not require commit-reveal)
        Open -> Commit -> Reveal             (commit-reveal guilds)
        Direct | Reveal -> Finalized         (voting deadline or quorum, first wins)
        any non-terminal -> Cancelled        (administrative)

    Time-driven transitions are evaluated against the submission timestamp, so
    a submission is accepted or rejected by when it was made, not by when it
    reached the ledger. Deadlines are inclusive.
    """

    def __init__(self, config: PhaseConfig | None = None):
        self._config = config or PhaseConfig()

    @property
    def requires_commit_reveal(self) -> bool:
        return self._config.requires_commit_reveal

    def initial_phase(self) -> VotingPhase:
        if self._config.requires_commit_reveal:
            return VotingPhase.COMMIT
        return VotingPhase.DIRECT

    def open(
        self,
        application: Application,
        assignments: Mapping[str, ReviewerAssignment],
        opened_at: datetime,
    ) -> ApplicationState:
        """
        Create the voting state for a newly opened application.

        Raises:
            PhaseConfigurationError: If the deadline leaves no room for the phases
        """
        if application.voting_deadline <= opened_at:
            raise PhaseConfigurationError(
                f"Voting deadline for {application.application_id} is not in the future"
            )

        phase = self.initial_phase()
        commit_deadline = None
        reveal_deadline = None
        if phase == VotingPhase.COMMIT:
            reveal_deadline = application.voting_deadline
            commit_deadline = reveal_deadline - self._config.reveal_duration
            if commit_deadline <= opened_at:
                raise PhaseConfigurationError(
                    f"Voting window for {application.application_id} is shorter "
                    f"than the reveal period ({self._config.reveal_duration})"
                )

        logger.info(
            f"Opened application {application.application_id} in {phase.value} phase "
            f"with {len(assignments)} reviewers"
        )
        return ApplicationState(
            application=application,
            assignments=dict(assignments),
            phase=phase,
            commit_deadline=commit_deadline,
            reveal_deadline=reveal_deadline,
        )

    def phase_at(self, state: ApplicationState, at: datetime) -> VotingPhase:
        """
        Phase the application is in at a given instant (no mutation).

        Commit/reveal is derived from `at` alone, so the stored phase (which
        `advance` may already have moved to reveal) never decides a submission.
        """
        if state.phase.is_terminal:
            return state.phase
        if state.commit_deadline is not None:
            if at <= state.commit_deadline:
                return VotingPhase.COMMIT
            return VotingPhase.REVEAL
        return state.phase

    def advance(self, state: ApplicationState, now: datetime) -> VotingPhase:
        """Apply time-driven transitions up to `now` (forward only)."""
        phase = self.phase_at(state, now)
        if state.phase == VotingPhase.COMMIT and phase == VotingPhase.REVEAL:
            logger.info(
                f"Application {state.application_id}: {state.phase.value} -> {phase.value}"
            )
            state.phase = phase
        return state.phase

    def _ensure_open(self, state: ApplicationState) -> None:
        if state.phase == VotingPhase.CANCELLED:
            raise ApplicationCancelledError(
                f"Application {state.application_id} was cancelled"
            )
        if state.phase == VotingPhase.FINALIZED:
            raise VotingClosedError(
                f"Application {state.application_id} is already finalized"
            )

    def _ensure_before_deadline(self, state: ApplicationState, at: datetime) -> None:
        if at > state.application.voting_deadline:
            raise VotingClosedError(
                f"Voting for {state.application_id} closed at "
                f"{state.application.voting_deadline.isoformat()}"
            )

    def ensure_accepting_votes(self, state: ApplicationState, at: datetime) -> None:
        """
        Raises:
            ApplicationCancelledError: Application was cancelled
            VotingClosedError: Finalized or past the voting deadline
            WrongPhaseError: Application uses commit-reveal
        """
        self._ensure_open(state)
        self._ensure_before_deadline(state, at)
        if self.phase_at(state, at) != VotingPhase.DIRECT:
            raise WrongPhaseError(
                f"Application {state.application_id} requires commit-reveal voting"
            )

    def ensure_accepting_commits(self, state: ApplicationState, at: datetime) -> None:
        self._ensure_open(state)
        phase = self.phase_at(state, at)
        if phase == VotingPhase.DIRECT:
            raise WrongPhaseError(
                f"Application {state.application_id} accepts direct votes only"
            )
        if phase != VotingPhase.COMMIT:
            raise VotingClosedError(
                f"Commit phase for {state.application_id} ended at "
                f"{state.commit_deadline.isoformat() if state.commit_deadline else 'n/a'}"
            )

    def ensure_accepting_reveals(self, state: ApplicationState, at: datetime) -> None:
        self._ensure_open(state)
        self._ensure_before_deadline(state, at)
        phase = self.phase_at(state, at)
        if phase == VotingPhase.DIRECT:
            raise WrongPhaseError(
                f"Application {state.application_id} accepts direct votes only"
            )
        if phase != VotingPhase.REVEAL:
            raise WrongPhaseError(
                f"Reveal phase for {state.application_id} has not started"
            )

    def quorum_reached(self, state: ApplicationState, votes: Iterable[Vote]) -> bool:
        """True when every assigned reviewer has voted, revealed or forfeited."""
        if not state.assignments:
            return False
        participated = {v.reviewer_id for v in votes} | state.forfeited
        return all(reviewer in participated for reviewer in state.assignments)

    def deadline_elapsed(self, state: ApplicationState, now: datetime) -> bool:
        return now > state.application.voting_deadline

    def ready_to_finalize(
        self, state: ApplicationState, votes: Iterable[Vote], now: datetime
    ) -> bool:
        """Deadline elapsed or quorum reached, whichever happens first."""
        if state.phase.is_terminal:
            return False
        return self.deadline_elapsed(state, now) or self.quorum_reached(state, votes)

    def mark_finalized(self, state: ApplicationState) -> None:
        logger.info(f"Application {state.application_id}: {state.phase.value} -> finalized")
        state.phase = VotingPhase.FINALIZED

    def mark_cancelled(self, state: ApplicationState, reason: str) -> None:
        logger.info(
            f"Application {state.application_id}: {state.phase.value} -> cancelled ({reason})"
        )
        state.phase = VotingPhase.CANCELLED
        state.cancelled_reason = reason

    def snapshot(
        self,
        state: ApplicationState,
        votes: tuple[Vote, ...],
        commits: Mapping[str, CommitRecord],
        now: datetime,
    ) -> PhaseSnapshot:
        """Phase status for UI polling."""
        status = state.status
        if status == ApplicationStatus.ACTIVE and self.ready_to_finalize(state, votes, now):
            status = ApplicationStatus.CLOSED

        return PhaseSnapshot(
            application_id=state.application_id,
            phase=self.phase_at(state, now),
            status=status,
            assigned_count=len(state.assignments),
            vote_count=len(votes),
            commit_count=len(commits),
            reveal_count=sum(1 for v in votes if v.revealed_at is not None),
            voting_deadline=state.application.voting_deadline,
            commit_deadline=state.commit_deadline,
            reveal_deadline=state.reveal_deadline,
        )
