"""Tests for AppealArbitrator."""

from datetime import UTC, datetime, timedelta

import pytest

from guild_consensus.appeals import (
    AppealArbitrator,
    AppealClosedError,
    AppealConfig,
    AppealDecision,
    AppealNotAllowedError,
    AppealOutcome,
    AppealStatus,
    AppealWindowClosedError,
    DuplicateAppealVoteError,
    InsufficientPanelSizeError,
    NotPanelMemberError,
)
from guild_consensus.consensus import ConsensusResult, Outcome
from guild_consensus.incentives import RewardDistribution
from guild_consensus.orchestration import FinalizationResult
from guild_consensus.reputation import AlignmentRecord, ReputationReason
from guild_consensus.treasury import EffectKind
from guild_consensus.voting import Application, PhaseController, ReviewerAssignment

OPENED = datetime(2025, 3, 1, tzinfo=UTC)
FINALIZED = OPENED + timedelta(days=3)
PANEL_CANDIDATES = {"p1": 500, "p2": 300, "p3": 900, "p4": 100, "r1": 2000}


def make_record(reviewer_id: str, reason: ReputationReason) -> AlignmentRecord:
    return AlignmentRecord(
        vote_id=f"app-1:{reviewer_id}",
        reviewer_id=reviewer_id,
        score=50.0,
        alignment_distance=0.0,
        reason=reason,
        is_outlier=False,
        reputation_delta=0,
        stake_amount=100,
        slash_percent=0,
        slash_amount=0,
    )


def make_finalized_state(outcome: Outcome = Outcome.REJECTED):
    """Application reviewed by r1 (aligned) and r2 (severe), finalized at FINALIZED."""
    application = Application(
        application_id="app-1",
        guild_id="design",
        applicant_id="candidate",
        expertise_level="senior",
        required_stake=100,
        voting_deadline=FINALIZED,
    )
    state = PhaseController().open(
        application,
        {r: ReviewerAssignment(reviewer_id=r, stake=100) for r in ("r1", "r2")},
        OPENED,
    )
    state.finalization = FinalizationResult(
        application_id="app-1",
        guild_id="design",
        finalized_at=FINALIZED,
        consensus=ConsensusResult(
            application_id="app-1",
            consensus_score=40.0,
            outcome=outcome,
            outlier_vote_ids=(),
            participation_count=2,
            approval_threshold=70.0,
            finalized_at=FINALIZED,
        ),
        alignments=(
            make_record("r1", ReputationReason.ALIGNED),
            make_record("r2", ReputationReason.SEVERE_DEVIATION),
        ),
        distribution=RewardDistribution(application_id="app-1", reward_pool=0),
        reputation_events=(),
        effects=(),
    )
    return state


def file_appeal(arbitrator: AppealArbitrator, state, appellant_id: str = "candidate"):
    return arbitrator.file(
        state,
        appellant_id,
        "Reviewers missed the portfolio link",
        50,
        PANEL_CANDIDATES,
        FINALIZED + timedelta(days=1),
    )


class TestAppealFiling:
    """Tests for AppealArbitrator.file."""

    def test_panel_is_top_reputation_outside_original_reviewers(self):
        arbitrator = AppealArbitrator(AppealConfig(panel_size=3))

        appeal = file_appeal(arbitrator, make_finalized_state())

        assert appeal.panel == ("p3", "p1", "p2")
        assert appeal.status == AppealStatus.OPEN
        assert appeal.voting_deadline == appeal.filed_at + timedelta(days=3)

    def test_applicant_cannot_appeal_approval(self):
        arbitrator = AppealArbitrator()

        with pytest.raises(AppealNotAllowedError):
            file_appeal(arbitrator, make_finalized_state(Outcome.APPROVED))

    def test_deviating_reviewer_may_appeal(self):
        arbitrator = AppealArbitrator(AppealConfig(panel_size=3))

        appeal = file_appeal(arbitrator, make_finalized_state(), appellant_id="r2")

        assert appeal.appellant_id == "r2"

    def test_aligned_reviewer_cannot_appeal(self):
        arbitrator = AppealArbitrator()

        with pytest.raises(AppealNotAllowedError, match="aligned"):
            file_appeal(arbitrator, make_finalized_state(), appellant_id="r1")

    def test_stranger_cannot_appeal(self):
        arbitrator = AppealArbitrator()

        with pytest.raises(AppealNotAllowedError):
            file_appeal(arbitrator, make_finalized_state(), appellant_id="p1")

    def test_unfinalized_application_cannot_be_appealed(self):
        state = make_finalized_state()
        state.finalization = None

        with pytest.raises(AppealNotAllowedError):
            file_appeal(AppealArbitrator(), state)

    def test_window_closed(self):
        arbitrator = AppealArbitrator()

        with pytest.raises(AppealWindowClosedError):
            arbitrator.file(
                make_finalized_state(),
                "candidate",
                "Late",
                50,
                PANEL_CANDIDATES,
                FINALIZED + timedelta(days=7, seconds=1),
            )

    def test_blank_justification_rejected(self):
        with pytest.raises(AppealNotAllowedError, match="justification"):
            AppealArbitrator().file(
                make_finalized_state(), "candidate", "  ", 50, PANEL_CANDIDATES, FINALIZED
            )

    def test_stake_below_minimum_rejected(self):
        arbitrator = AppealArbitrator(AppealConfig(min_appeal_stake=100))

        with pytest.raises(AppealNotAllowedError, match="below minimum"):
            file_appeal(arbitrator, make_finalized_state())

    def test_insufficient_panel(self):
        arbitrator = AppealArbitrator(AppealConfig(min_panel_size=5))

        with pytest.raises(InsufficientPanelSizeError):
            file_appeal(arbitrator, make_finalized_state())


class TestAppealVoting:
    """Tests for AppealArbitrator.cast_vote."""

    def test_non_panelist_rejected(self):
        arbitrator = AppealArbitrator(AppealConfig(panel_size=3))
        appeal = file_appeal(arbitrator, make_finalized_state())

        with pytest.raises(NotPanelMemberError):
            arbitrator.cast_vote(appeal, "p4", AppealDecision.APPROVE_APPEAL, "", FINALIZED)

    def test_duplicate_vote_rejected(self):
        arbitrator = AppealArbitrator(AppealConfig(panel_size=3))
        appeal = file_appeal(arbitrator, make_finalized_state())
        arbitrator.cast_vote(appeal, "p1", AppealDecision.APPROVE_APPEAL, "ok", appeal.filed_at)

        with pytest.raises(DuplicateAppealVoteError):
            arbitrator.cast_vote(
                appeal, "p1", AppealDecision.UPHOLD_REJECTION, "changed", appeal.filed_at
            )

    def test_vote_after_deadline_rejected(self):
        arbitrator = AppealArbitrator(AppealConfig(panel_size=3))
        appeal = file_appeal(arbitrator, make_finalized_state())

        with pytest.raises(AppealClosedError):
            arbitrator.cast_vote(
                appeal,
                "p1",
                AppealDecision.APPROVE_APPEAL,
                "late",
                appeal.voting_deadline + timedelta(seconds=1),
            )

    def test_ready_when_all_voted_or_deadline_passed(self):
        arbitrator = AppealArbitrator(AppealConfig(panel_size=3))
        appeal = file_appeal(arbitrator, make_finalized_state())

        assert not arbitrator.ready_to_resolve(appeal, appeal.filed_at)
        assert arbitrator.ready_to_resolve(appeal, appeal.voting_deadline + timedelta(seconds=1))

        for panelist in appeal.panel:
            arbitrator.cast_vote(
                appeal, panelist, AppealDecision.UPHOLD_REJECTION, "", appeal.filed_at
            )
        assert arbitrator.ready_to_resolve(appeal, appeal.filed_at)


class TestAppealResolution:
    """Tests for AppealArbitrator.resolve."""

    def vote(self, arbitrator, appeal, decisions):
        for panelist, decision in zip(appeal.panel, decisions, strict=False):
            arbitrator.cast_vote(appeal, panelist, decision, "reason", appeal.filed_at)

    def test_majority_overturns(self):
        arbitrator = AppealArbitrator(AppealConfig(panel_size=3))
        state = make_finalized_state()
        appeal = file_appeal(arbitrator, state)
        self.vote(
            arbitrator,
            appeal,
            [
                AppealDecision.APPROVE_APPEAL,
                AppealDecision.APPROVE_APPEAL,
                AppealDecision.UPHOLD_REJECTION,
            ],
        )

        resolution = arbitrator.resolve(appeal, state, appeal.filed_at)

        assert resolution.outcome == AppealOutcome.OVERTURNED
        assert resolution.original_outcome == Outcome.REJECTED
        assert resolution.final_outcome == Outcome.APPROVED

        changes = {e.reviewer_id: e.change_amount for e in resolution.reputation_events}
        assert changes == {"candidate": 3, "p3": 5, "p1": 5}

        [effect] = resolution.effects
        assert effect.kind == EffectKind.APPEAL_STAKE_RETURN
        assert effect.account_id == "candidate"
        assert effect.amount == 50

    def test_majority_upholds(self):
        arbitrator = AppealArbitrator(AppealConfig(panel_size=3))
        state = make_finalized_state()
        appeal = file_appeal(arbitrator, state)
        self.vote(
            arbitrator,
            appeal,
            [
                AppealDecision.UPHOLD_REJECTION,
                AppealDecision.UPHOLD_REJECTION,
                AppealDecision.APPROVE_APPEAL,
            ],
        )

        resolution = arbitrator.resolve(appeal, state, appeal.filed_at)

        assert resolution.outcome == AppealOutcome.UPHELD
        assert resolution.final_outcome == Outcome.REJECTED
        changes = {e.reviewer_id: e.change_amount for e in resolution.reputation_events}
        assert changes == {"candidate": -5, "p3": 5, "p1": 5}

        [effect] = resolution.effects
        assert effect.kind == EffectKind.APPEAL_STAKE_FORFEIT
        assert effect.account_id == "treasury:design"

    def test_tie_upholds_without_panel_credit(self):
        arbitrator = AppealArbitrator(AppealConfig(panel_size=4, min_panel_size=4))
        state = make_finalized_state()
        appeal = file_appeal(arbitrator, state)
        self.vote(
            arbitrator,
            appeal,
            [
                AppealDecision.APPROVE_APPEAL,
                AppealDecision.UPHOLD_REJECTION,
                AppealDecision.APPROVE_APPEAL,
                AppealDecision.UPHOLD_REJECTION,
            ],
        )

        resolution = arbitrator.resolve(appeal, state, appeal.filed_at)

        assert resolution.outcome == AppealOutcome.UPHELD
        assert resolution.tally.decided_by_default
        assert [e.reviewer_id for e in resolution.reputation_events] == ["candidate"]

    def test_no_votes_by_deadline_upholds(self):
        arbitrator = AppealArbitrator(AppealConfig(panel_size=3))
        state = make_finalized_state()
        appeal = file_appeal(arbitrator, state)

        resolution = arbitrator.resolve(
            appeal, state, appeal.voting_deadline + timedelta(seconds=1)
        )

        assert resolution.outcome == AppealOutcome.UPHELD
        assert resolution.tally.total == 0

    def test_reviewer_appeal_overturn_reverses_outcome(self):
        arbitrator = AppealArbitrator(AppealConfig(panel_size=3))
        state = make_finalized_state(Outcome.APPROVED)
        appeal = file_appeal(arbitrator, state, appellant_id="r2")
        self.vote(arbitrator, appeal, [AppealDecision.APPROVE_APPEAL] * 3)

        resolution = arbitrator.resolve(appeal, state, appeal.filed_at)

        assert resolution.final_outcome == Outcome.REJECTED
