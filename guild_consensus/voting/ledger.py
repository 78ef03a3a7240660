"""Append-only vote ledger."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from types import MappingProxyType

from ..rubric import VOTE_SCALE_MAX
from .commitments import canonical_score, verify_commit
from .errors import (
    DuplicateVoteError,
    InsufficientStakeError,
    InvalidScoreError,
    MissingCommitError,
    NotAssignedReviewerError,
    RevealMismatchError,
)
from .models import ApplicationState, CommitRecord, Vote
from .phase import PhaseController

logger = logging.getLogger(__name__)


class VoteLedger:
    """
    Append-only store of one vote per (application, reviewer).

    Every write checks the phase controller first, then reviewer eligibility,
    then uniqueness, and only then appends. Nothing is ever updated in place,
    so `replay()` reproduces the exact order votes were accepted in.

    Callers must hold the application's lock around each write.
    """

    def __init__(self, phase_controller: PhaseController):
        self._phase = phase_controller
        self._votes: dict[str, list[Vote]] = {}
        self._commits: dict[str, dict[str, CommitRecord]] = {}
        self._log: list[Vote | CommitRecord] = []

    def votes_for(self, application_id: str) -> tuple[Vote, ...]:
        return tuple(self._votes.get(application_id, ()))

    def commits_for(self, application_id: str) -> Mapping[str, CommitRecord]:
        return MappingProxyType(self._commits.get(application_id, {}))

    def has_voted(self, application_id: str, reviewer_id: str) -> bool:
        return any(v.reviewer_id == reviewer_id for v in self._votes.get(application_id, ()))

    def replay(self) -> tuple[Vote | CommitRecord, ...]:
        """All accepted writes in append order."""
        return tuple(self._log)

    def _check_reviewer(self, state: ApplicationState, reviewer_id: str, stake: int) -> None:
        if not state.is_assigned(reviewer_id):
            raise NotAssignedReviewerError(
                f"Reviewer {reviewer_id} is not assigned to {state.application_id}"
            )
        if stake < state.application.required_stake:
            raise InsufficientStakeError(
                f"Reviewer {reviewer_id} stake {stake} is below required "
                f"{state.application.required_stake}"
            )

    @staticmethod
    def _check_score(score: float) -> None:
        if not 0 <= score <= VOTE_SCALE_MAX:
            raise InvalidScoreError(f"Score {score} outside 0-{VOTE_SCALE_MAX:g}")

    def _append(self, vote: Vote) -> Vote:
        self._votes.setdefault(vote.application_id, []).append(vote)
        self._log.append(vote)
        return vote

    def record_vote(self, state: ApplicationState, vote: Vote) -> Vote:
        """
        Record a direct vote.

        Raises:
            ApplicationCancelledError, VotingClosedError, WrongPhaseError:
                Phase controller rejected the submission time
            NotAssignedReviewerError: Reviewer not assigned
            InsufficientStakeError: Stake below required stake
            InvalidScoreError: Score outside 0-100
            DuplicateVoteError: Reviewer already voted
        """
        self._phase.ensure_accepting_votes(state, vote.submitted_at)
        self._check_reviewer(state, vote.reviewer_id, vote.stake_amount)
        self._check_score(vote.score)
        if self.has_voted(state.application_id, vote.reviewer_id):
            raise DuplicateVoteError(
                f"Reviewer {vote.reviewer_id} already voted on {state.application_id}"
            )

        logger.debug(
            f"Recorded vote {vote.vote_id} score={vote.score:.2f} stake={vote.stake_amount}"
        )
        return self._append(vote)

    def record_commit(
        self,
        state: ApplicationState,
        reviewer_id: str,
        commit_hash: str,
        stake_amount: int,
        committed_at: datetime,
    ) -> CommitRecord:
        """
        Record a hidden commitment.

        Raises:
            ApplicationCancelledError, VotingClosedError, WrongPhaseError:
                Not in the commit phase at `committed_at`
            NotAssignedReviewerError: Reviewer not assigned
            InsufficientStakeError: Stake below required stake
            DuplicateVoteError: Reviewer already committed
        """
        self._phase.ensure_accepting_commits(state, committed_at)
        self._check_reviewer(state, reviewer_id, stake_amount)
        commits = self._commits.setdefault(state.application_id, {})
        if reviewer_id in commits:
            raise DuplicateVoteError(
                f"Reviewer {reviewer_id} already committed on {state.application_id}"
            )

        record = CommitRecord(
            reviewer_id=reviewer_id,
            commit_hash=commit_hash.lower(),
            stake_amount=stake_amount,
            committed_at=committed_at,
        )
        commits[reviewer_id] = record
        self._log.append(record)
        logger.debug(f"Recorded commit for {reviewer_id} on {state.application_id}")
        return record

    def record_reveal(
        self,
        state: ApplicationState,
        reviewer_id: str,
        score: float,
        salt: str,
        revealed_at: datetime,
    ) -> Vote:
        """
        Reveal a committed score and record it as a vote.

        A reveal that does not hash to the stored commit forfeits the reviewer's
        participation: the reviewer is marked as abstaining and
        RevealMismatchError is raised.

        Raises:
            ApplicationCancelledError, VotingClosedError, WrongPhaseError:
                Not in the reveal phase at `revealed_at`
            NotAssignedReviewerError: Reviewer not assigned
            MissingCommitError: No commit recorded for the reviewer
            DuplicateVoteError: Reviewer already revealed
            RevealMismatchError: Hash mismatch (or participation already forfeited)
        """
        self._phase.ensure_accepting_reveals(state, revealed_at)
        if not state.is_assigned(reviewer_id):
            raise NotAssignedReviewerError(
                f"Reviewer {reviewer_id} is not assigned to {state.application_id}"
            )
        if reviewer_id in state.forfeited:
            raise RevealMismatchError(
                f"Reviewer {reviewer_id} already forfeited participation on "
                f"{state.application_id}"
            )
        commit = self._commits.get(state.application_id, {}).get(reviewer_id)
        if commit is None:
            raise MissingCommitError(
                f"Reviewer {reviewer_id} has no commit on {state.application_id}"
            )
        if self.has_voted(state.application_id, reviewer_id):
            raise DuplicateVoteError(
                f"Reviewer {reviewer_id} already revealed on {state.application_id}"
            )

        if not (
            0 <= score <= VOTE_SCALE_MAX
            and verify_commit(commit.commit_hash, score, commit.stake_amount, salt)
        ):
            state.forfeited.add(reviewer_id)
            logger.warning(
                f"Reveal mismatch for {reviewer_id} on {state.application_id}; "
                f"recorded as abstention"
            )
            raise RevealMismatchError(
                f"Reveal from {reviewer_id} does not match its commit on "
                f"{state.application_id}"
            )

        vote = Vote(
            vote_id=Vote.make_id(state.application_id, reviewer_id),
            application_id=state.application_id,
            reviewer_id=reviewer_id,
            score=float(canonical_score(score)),
            stake_amount=commit.stake_amount,
            submitted_at=commit.committed_at,
            commit_hash=commit.commit_hash,
            revealed_at=revealed_at,
        )
        logger.debug(f"Revealed vote {vote.vote_id} score={vote.score:.2f}")
        return self._append(vote)
