"""Tests for VoteLedger and reviewer assignment."""

from datetime import UTC, datetime, timedelta

import pytest

from guild_consensus.voting import (
    Application,
    CommitRecord,
    DuplicateVoteError,
    InsufficientStakeError,
    InvalidScoreError,
    MissingCommitError,
    NotAssignedReviewerError,
    PhaseConfig,
    PhaseController,
    RevealMismatchError,
    Vote,
    VoteLedger,
    VotingClosedError,
    assign_reviewers,
    compute_commit_hash,
)

OPENED = datetime(2025, 3, 1, 12, tzinfo=UTC)
DEADLINE = OPENED + timedelta(days=3)


def make_application(required_stake: int = 100) -> Application:
    return Application(
        application_id="app-1",
        guild_id="engineering",
        applicant_id="candidate",
        expertise_level="senior",
        required_stake=required_stake,
        voting_deadline=DEADLINE,
    )


def make_vote(reviewer_id: str, score: float = 80.0, stake: int = 100, at=OPENED) -> Vote:
    return Vote(
        vote_id=Vote.make_id("app-1", reviewer_id),
        application_id="app-1",
        reviewer_id=reviewer_id,
        score=score,
        stake_amount=stake,
        submitted_at=at,
    )


def open_direct(*reviewer_ids: str):
    controller = PhaseController()
    application = make_application()
    state = controller.open(
        application,
        assign_reviewers(application, {r: 100 for r in reviewer_ids}),
        OPENED,
    )
    return VoteLedger(controller), state


def open_commit_reveal(*reviewer_ids: str):
    controller = PhaseController(PhaseConfig(requires_commit_reveal=True))
    application = make_application()
    state = controller.open(
        application,
        assign_reviewers(application, {r: 100 for r in reviewer_ids}),
        OPENED,
    )
    return VoteLedger(controller), state


class TestAssignReviewers:
    """Tests for assign_reviewers."""

    def test_drops_reviewers_below_required_stake(self):
        assignments = assign_reviewers(
            make_application(required_stake=100),
            {"carol": 100, "alice": 250, "bob": 99},
        )

        assert list(assignments) == ["alice", "carol"]
        assert assignments["alice"].stake == 250


class TestVoteLedgerDirect:
    """Tests for direct voting."""

    def test_records_vote(self):
        ledger, state = open_direct("alice", "bob")

        ledger.record_vote(state, make_vote("alice"))

        assert ledger.has_voted("app-1", "alice")
        assert not ledger.has_voted("app-1", "bob")
        assert [v.reviewer_id for v in ledger.votes_for("app-1")] == ["alice"]

    def test_duplicate_vote_rejected(self):
        """One vote per reviewer per application, and the first one stands."""
        ledger, state = open_direct("alice")
        ledger.record_vote(state, make_vote("alice", score=80))

        with pytest.raises(DuplicateVoteError):
            ledger.record_vote(state, make_vote("alice", score=20))

        assert ledger.votes_for("app-1")[0].score == 80

    def test_unassigned_reviewer_rejected(self):
        ledger, state = open_direct("alice")

        with pytest.raises(NotAssignedReviewerError):
            ledger.record_vote(state, make_vote("mallory"))

    def test_insufficient_stake_rejected(self):
        ledger, state = open_direct("alice")

        with pytest.raises(InsufficientStakeError):
            ledger.record_vote(state, make_vote("alice", stake=50))

    def test_score_outside_range_rejected(self):
        ledger, state = open_direct("alice")

        with pytest.raises(InvalidScoreError):
            ledger.record_vote(state, make_vote("alice", score=100.5))

    def test_vote_after_deadline_rejected(self):
        ledger, state = open_direct("alice")

        with pytest.raises(VotingClosedError):
            ledger.record_vote(
                state, make_vote("alice", at=DEADLINE + timedelta(seconds=1))
            )
        assert ledger.votes_for("app-1") == ()

    def test_replay_preserves_append_order(self):
        ledger, state = open_direct("alice", "bob")
        ledger.record_vote(state, make_vote("bob"))
        ledger.record_vote(state, make_vote("alice"))

        assert [v.reviewer_id for v in ledger.replay()] == ["bob", "alice"]


class TestVoteLedgerCommitReveal:
    """Tests for commit-reveal voting."""

    def reveal_time(self, state) -> datetime:
        return state.commit_deadline + timedelta(hours=1)

    def test_matching_reveal_becomes_vote(self):
        ledger, state = open_commit_reveal("alice")
        digest = compute_commit_hash(82.5, 100, "s3cret")
        ledger.record_commit(state, "alice", digest, 100, OPENED)

        vote = ledger.record_reveal(state, "alice", 82.5, "s3cret", self.reveal_time(state))

        assert vote.score == 82.5
        assert vote.commit_hash == digest
        assert vote.stake_amount == 100
        assert vote.submitted_at == OPENED
        assert vote.revealed_at == self.reveal_time(state)

    def test_reveal_records_committed_score(self):
        """Sub-precision noise in the reveal is dropped; the vote holds the committed value."""
        ledger, state = open_commit_reveal("alice")
        ledger.record_commit(state, "alice", compute_commit_hash(80, 100, "salt"), 100, OPENED)

        vote = ledger.record_reveal(state, "alice", 80.0000004, "salt", self.reveal_time(state))

        assert vote.score == 80.0

    def test_commit_is_case_insensitive(self):
        ledger, state = open_commit_reveal("alice")
        digest = compute_commit_hash(60, 100, "salt").upper()

        record = ledger.record_commit(state, "alice", digest, 100, OPENED)

        assert isinstance(record, CommitRecord)
        assert record.commit_hash == digest.lower()

    def test_mismatched_reveal_forfeits(self):
        """A bad reveal never becomes a vote and counts as abstention."""
        ledger, state = open_commit_reveal("alice")
        ledger.record_commit(state, "alice", compute_commit_hash(90, 100, "salt"), 100, OPENED)

        with pytest.raises(RevealMismatchError):
            ledger.record_reveal(state, "alice", 40, "salt", self.reveal_time(state))

        assert ledger.votes_for("app-1") == ()
        assert "alice" in state.forfeited

    def test_forfeited_reviewer_cannot_retry(self):
        ledger, state = open_commit_reveal("alice")
        ledger.record_commit(state, "alice", compute_commit_hash(90, 100, "salt"), 100, OPENED)
        with pytest.raises(RevealMismatchError):
            ledger.record_reveal(state, "alice", 40, "salt", self.reveal_time(state))

        with pytest.raises(RevealMismatchError, match="already forfeited"):
            ledger.record_reveal(state, "alice", 90, "salt", self.reveal_time(state))

    def test_reveal_without_commit_rejected(self):
        ledger, state = open_commit_reveal("alice")

        with pytest.raises(MissingCommitError):
            ledger.record_reveal(state, "alice", 90, "salt", self.reveal_time(state))

    def test_duplicate_commit_rejected(self):
        ledger, state = open_commit_reveal("alice")
        ledger.record_commit(state, "alice", compute_commit_hash(90, 100, "a"), 100, OPENED)

        with pytest.raises(DuplicateVoteError):
            ledger.record_commit(state, "alice", compute_commit_hash(10, 100, "b"), 100, OPENED)

    def test_double_reveal_rejected(self):
        ledger, state = open_commit_reveal("alice")
        ledger.record_commit(state, "alice", compute_commit_hash(90, 100, "salt"), 100, OPENED)
        ledger.record_reveal(state, "alice", 90, "salt", self.reveal_time(state))

        with pytest.raises(DuplicateVoteError):
            ledger.record_reveal(state, "alice", 90, "salt", self.reveal_time(state))
