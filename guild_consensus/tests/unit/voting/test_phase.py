"""Tests for PhaseController."""

from datetime import UTC, datetime, timedelta

import pytest

from guild_consensus.voting import (
    Application,
    ApplicationCancelledError,
    ApplicationStatus,
    PhaseConfig,
    PhaseConfigurationError,
    PhaseController,
    ReviewerAssignment,
    Vote,
    VotingClosedError,
    VotingPhase,
    WrongPhaseError,
)

OPENED = datetime(2025, 3, 1, 12, tzinfo=UTC)
DEADLINE = OPENED + timedelta(days=3)


def make_application(deadline: datetime = DEADLINE) -> Application:
    return Application(
        application_id="app-1",
        guild_id="engineering",
        applicant_id="candidate",
        expertise_level="senior",
        required_stake=100,
        voting_deadline=deadline,
        reward_pool=1000,
    )


def make_assignments(*reviewer_ids: str) -> dict[str, ReviewerAssignment]:
    return {r: ReviewerAssignment(reviewer_id=r, stake=100) for r in reviewer_ids}


def make_vote(reviewer_id: str, score: float = 80.0) -> Vote:
    return Vote(
        vote_id=Vote.make_id("app-1", reviewer_id),
        application_id="app-1",
        reviewer_id=reviewer_id,
        score=score,
        stake_amount=100,
        submitted_at=OPENED,
    )


class TestPhaseControllerOpen:
    """Tests for opening applications."""

    def test_direct_guild_opens_in_direct_phase(self):
        controller = PhaseController()

        state = controller.open(make_application(), make_assignments("a"), OPENED)

        assert state.phase == VotingPhase.DIRECT
        assert state.commit_deadline is None
        assert state.status == ApplicationStatus.ACTIVE

    def test_commit_reveal_guild_splits_window(self):
        """Reveal window ends at the voting deadline."""
        controller = PhaseController(
            PhaseConfig(requires_commit_reveal=True, reveal_duration=timedelta(hours=24))
        )

        state = controller.open(make_application(), make_assignments("a"), OPENED)

        assert state.phase == VotingPhase.COMMIT
        assert state.reveal_deadline == DEADLINE
        assert state.commit_deadline == DEADLINE - timedelta(hours=24)

    def test_deadline_in_past_rejected(self):
        controller = PhaseController()

        with pytest.raises(PhaseConfigurationError):
            controller.open(make_application(OPENED), make_assignments("a"), OPENED)

    def test_window_shorter_than_reveal_rejected(self):
        controller = PhaseController(
            PhaseConfig(requires_commit_reveal=True, reveal_duration=timedelta(days=5))
        )

        with pytest.raises(PhaseConfigurationError, match="reveal period"):
            controller.open(make_application(), make_assignments("a"), OPENED)


class TestPhaseControllerTransitions:
    """Tests for time-driven phase changes and acceptance checks."""

    def test_commit_becomes_reveal_after_commit_deadline(self):
        controller = PhaseController(PhaseConfig(requires_commit_reveal=True))
        state = controller.open(make_application(), make_assignments("a"), OPENED)

        assert controller.phase_at(state, state.commit_deadline) == VotingPhase.COMMIT
        after = state.commit_deadline + timedelta(seconds=1)
        assert controller.phase_at(state, after) == VotingPhase.REVEAL

        controller.advance(state, after)
        assert state.phase == VotingPhase.REVEAL

    def test_advanced_state_still_judges_by_submission_time(self):
        """After advance() stored reveal, earlier timestamps still fall in commit."""
        controller = PhaseController(PhaseConfig(requires_commit_reveal=True))
        state = controller.open(make_application(), make_assignments("a"), OPENED)
        controller.advance(state, state.commit_deadline + timedelta(seconds=1))

        assert controller.phase_at(state, state.commit_deadline) == VotingPhase.COMMIT
        controller.ensure_accepting_commits(state, state.commit_deadline)
        with pytest.raises(WrongPhaseError):
            controller.ensure_accepting_reveals(
                state, state.commit_deadline - timedelta(hours=1)
            )

        assert controller.advance(state, OPENED) == VotingPhase.REVEAL

    def test_vote_at_deadline_accepted(self):
        """Deadlines are inclusive."""
        controller = PhaseController()
        state = controller.open(make_application(), make_assignments("a"), OPENED)

        controller.ensure_accepting_votes(state, DEADLINE)

    def test_vote_after_deadline_rejected(self):
        controller = PhaseController()
        state = controller.open(make_application(), make_assignments("a"), OPENED)

        with pytest.raises(VotingClosedError):
            controller.ensure_accepting_votes(state, DEADLINE + timedelta(microseconds=1))

    def test_direct_vote_rejected_in_commit_reveal_guild(self):
        controller = PhaseController(PhaseConfig(requires_commit_reveal=True))
        state = controller.open(make_application(), make_assignments("a"), OPENED)

        with pytest.raises(WrongPhaseError):
            controller.ensure_accepting_votes(state, OPENED)

    def test_commit_rejected_in_direct_guild(self):
        controller = PhaseController()
        state = controller.open(make_application(), make_assignments("a"), OPENED)

        with pytest.raises(WrongPhaseError):
            controller.ensure_accepting_commits(state, OPENED)

    def test_commit_rejected_during_reveal(self):
        controller = PhaseController(PhaseConfig(requires_commit_reveal=True))
        state = controller.open(make_application(), make_assignments("a"), OPENED)

        with pytest.raises(VotingClosedError):
            controller.ensure_accepting_commits(
                state, state.commit_deadline + timedelta(minutes=1)
            )

    def test_reveal_rejected_during_commit(self):
        controller = PhaseController(PhaseConfig(requires_commit_reveal=True))
        state = controller.open(make_application(), make_assignments("a"), OPENED)

        with pytest.raises(WrongPhaseError):
            controller.ensure_accepting_reveals(state, OPENED)

    def test_cancelled_rejects_everything(self):
        controller = PhaseController()
        state = controller.open(make_application(), make_assignments("a"), OPENED)
        controller.mark_cancelled(state, "duplicate submission")

        with pytest.raises(ApplicationCancelledError):
            controller.ensure_accepting_votes(state, OPENED)
        assert state.status == ApplicationStatus.CANCELLED
        assert state.cancelled_reason == "duplicate submission"

    def test_finalized_rejects_votes(self):
        controller = PhaseController()
        state = controller.open(make_application(), make_assignments("a"), OPENED)
        controller.mark_finalized(state)

        with pytest.raises(VotingClosedError):
            controller.ensure_accepting_votes(state, OPENED)


class TestPhaseControllerFinalization:
    """Tests for quorum and readiness."""

    def test_quorum_requires_every_assigned_reviewer(self):
        controller = PhaseController()
        state = controller.open(make_application(), make_assignments("a", "b"), OPENED)

        assert not controller.quorum_reached(state, [make_vote("a")])
        assert controller.quorum_reached(state, [make_vote("a"), make_vote("b")])

    def test_forfeited_reviewer_counts_towards_quorum(self):
        controller = PhaseController()
        state = controller.open(make_application(), make_assignments("a", "b"), OPENED)
        state.forfeited.add("b")

        assert controller.quorum_reached(state, [make_vote("a")])

    def test_no_assignments_never_reach_quorum(self):
        controller = PhaseController()
        state = controller.open(make_application(), {}, OPENED)

        assert not controller.quorum_reached(state, [])
        assert controller.ready_to_finalize(state, [], DEADLINE + timedelta(seconds=1))

    def test_ready_after_deadline_without_quorum(self):
        controller = PhaseController()
        state = controller.open(make_application(), make_assignments("a", "b"), OPENED)

        assert not controller.ready_to_finalize(state, [make_vote("a")], DEADLINE)
        assert controller.ready_to_finalize(
            state, [make_vote("a")], DEADLINE + timedelta(seconds=1)
        )

    def test_snapshot_reports_closed_when_ready(self):
        controller = PhaseController()
        state = controller.open(make_application(), make_assignments("a"), OPENED)
        votes = (make_vote("a"),)

        snapshot = controller.snapshot(state, votes, {}, OPENED)

        assert snapshot.status == ApplicationStatus.CLOSED
        assert snapshot.vote_count == 1
        assert snapshot.assigned_count == 1
        assert snapshot.to_dict()["phase"] == "direct"
