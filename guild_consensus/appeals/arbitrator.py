"""Appeal panels: a second, smaller consensus over a finalized outcome."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import TYPE_CHECKING

from ..consensus.models import Outcome
from ..consensus.tally import tally_decisions
from ..reputation.models import ReputationEvent, ReputationReason
from ..treasury.models import EffectKind, LedgerEffect
from .errors import (
    AppealClosedError,
    AppealNotAllowedError,
    AppealWindowClosedError,
    DuplicateAppealVoteError,
    InsufficientPanelSizeError,
    NotPanelMemberError,
)
from .models import (
    Appeal,
    AppealConfig,
    AppealDecision,
    AppealOutcome,
    AppealResolution,
    AppealVote,
)

if TYPE_CHECKING:
    from ..voting.models import ApplicationState

logger = logging.getLogger(__name__)


def treasury_account(guild_id: str) -> str:
    """Ledger account id of a guild's treasury."""
    return f"treasury:{guild_id}"


class AppealArbitrator:
    """
    Runs a panel vote to uphold or overturn a finalized outcome.

    - Panel: highest-reputation reviewers outside the original assignment
    - Majority decides; a tie (or no votes) upholds the original outcome
    - Overturned: outcome reversed, appeal stake returned, appellant credited
    - Upheld: appeal stake forfeited to the treasury, appellant penalized
    - Panelists on the winning side are credited for voting with the majority

    Stateless: the engine owns appeal storage and locking.
    """

    def __init__(self, config: AppealConfig | None = None):
        self._config = config or AppealConfig()

    @property
    def config(self) -> AppealConfig:
        return self._config

    def select_panel(
        self,
        excluded: set[str],
        candidates: Mapping[str, int],
    ) -> tuple[str, ...]:
        """
        Pick the panel from eligible reviewers.

        Args:
            excluded: Original reviewers and the appellant
            candidates: Reviewer id -> current reputation

        Raises:
            InsufficientPanelSizeError: Fewer than min_panel_size eligible reviewers
        """
        eligible = sorted(
            (r for r in candidates if r not in excluded),
            key=lambda r: (-candidates[r], r),
        )
        if len(eligible) < self._config.min_panel_size:
            raise InsufficientPanelSizeError(
                f"Need at least {self._config.min_panel_size} panelists, "
                f"only {len(eligible)} eligible"
            )
        return tuple(eligible[: self._config.panel_size])

    def _check_appellant(self, state: ApplicationState, appellant_id: str) -> None:
        if appellant_id == state.application.applicant_id:
            if state.final_outcome != Outcome.REJECTED:
                raise AppealNotAllowedError(
                    f"Applicant can only appeal a rejection of {state.application_id}"
                )
            return

        alignments = state.finalization.alignments if state.finalization else ()
        for record in alignments:
            if record.reviewer_id == appellant_id:
                if record.is_aligned:
                    raise AppealNotAllowedError(
                        f"Reviewer {appellant_id} was aligned with consensus on "
                        f"{state.application_id}"
                    )
                return

        raise AppealNotAllowedError(
            f"{appellant_id} is neither the applicant nor a reviewer of "
            f"{state.application_id}"
        )

    def file(
        self,
        state: ApplicationState,
        appellant_id: str,
        justification: str,
        stake_amount: int,
        candidates: Mapping[str, int],
        filed_at: datetime,
    ) -> Appeal:
        """
        Open an appeal against a finalized application.

        Args:
            state: Finalized application state
            appellant_id: Rejected applicant or deviating reviewer
            justification: Appellant's reasoning
            stake_amount: Appeal stake in token base units
            candidates: Potential panelists -> reputation
            filed_at: Filing time

        Raises:
            AppealNotAllowedError: Application not appealable by this appellant
            AppealWindowClosedError: Filed after the appeal window
            InsufficientPanelSizeError: Not enough eligible panelists
        """
        finalization = state.finalization
        if finalization is None or finalization.consensus is None:
            raise AppealNotAllowedError(
                f"Application {state.application_id} has no finalized outcome to appeal"
            )
        if filed_at > finalization.finalized_at + self._config.appeal_window:
            raise AppealWindowClosedError(
                f"Appeal window for {state.application_id} closed at "
                f"{(finalization.finalized_at + self._config.appeal_window).isoformat()}"
            )
        if not justification.strip():
            raise AppealNotAllowedError("Appeal justification is required")
        if stake_amount < self._config.min_appeal_stake:
            raise AppealNotAllowedError(
                f"Appeal stake {stake_amount} is below minimum "
                f"{self._config.min_appeal_stake}"
            )
        self._check_appellant(state, appellant_id)

        excluded = set(state.assignments) | {appellant_id, state.application.applicant_id}
        panel = self.select_panel(excluded, candidates)

        appeal = Appeal(
            appeal_id=f"{state.application_id}:appeal",
            application_id=state.application_id,
            guild_id=state.application.guild_id,
            appellant_id=appellant_id,
            justification=justification,
            stake_amount=stake_amount,
            panel=panel,
            filed_at=filed_at,
            voting_deadline=filed_at + self._config.voting_period,
        )
        logger.info(
            f"Appeal {appeal.appeal_id} filed by {appellant_id} "
            f"with panel of {len(panel)}"
        )
        return appeal

    def cast_vote(
        self,
        appeal: Appeal,
        panelist_id: str,
        decision: AppealDecision,
        reasoning: str,
        cast_at: datetime,
    ) -> AppealVote:
        """
        Record a panelist's decision.

        Raises:
            AppealClosedError: Appeal resolved or past its voting deadline
            NotPanelMemberError: Reviewer not on the panel
            DuplicateAppealVoteError: Panelist already voted
        """
        if appeal.resolution is not None or cast_at > appeal.voting_deadline:
            raise AppealClosedError(f"Appeal {appeal.appeal_id} is closed")
        if panelist_id not in appeal.panel:
            raise NotPanelMemberError(
                f"{panelist_id} is not on the panel for {appeal.appeal_id}"
            )
        if appeal.has_voted(panelist_id):
            raise DuplicateAppealVoteError(
                f"{panelist_id} already voted on {appeal.appeal_id}"
            )

        vote = AppealVote(
            panelist_id=panelist_id,
            decision=AppealDecision(decision),
            reasoning=reasoning,
            cast_at=cast_at,
        )
        appeal.votes.append(vote)
        logger.debug(f"Appeal vote on {appeal.appeal_id}: {panelist_id} {vote.decision.value}")
        return vote

    def ready_to_resolve(self, appeal: Appeal, now: datetime) -> bool:
        if appeal.resolution is not None:
            return False
        all_voted = all(appeal.has_voted(p) for p in appeal.panel)
        return all_voted or now > appeal.voting_deadline

    def resolve(
        self,
        appeal: Appeal,
        state: ApplicationState,
        resolved_at: datetime,
    ) -> AppealResolution:
        """
        Tally the panel and compute the resolution (does not mutate the appeal).

        Args:
            appeal: Appeal to resolve
            state: Application the appeal targets
            resolved_at: Resolution time
        """
        original = state.final_outcome
        if original is None:
            raise AppealNotAllowedError(
                f"Application {state.application_id} has no outcome to appeal"
            )

        tally = tally_decisions(
            (v.decision for v in appeal.votes),
            default=AppealDecision.UPHOLD_REJECTION,
        )
        overturned = tally.winner == AppealDecision.APPROVE_APPEAL
        outcome = AppealOutcome.OVERTURNED if overturned else AppealOutcome.UPHELD
        final = original.reversed() if overturned else original

        events = [
            ReputationEvent(
                event_id=f"{appeal.appeal_id}:{appeal.appellant_id}:appellant",
                reviewer_id=appeal.appellant_id,
                change_amount=(
                    self._config.overturn_credit
                    if overturned
                    else self._config.upheld_penalty
                ),
                reason=(
                    ReputationReason.APPEAL_OVERTURNED
                    if overturned
                    else ReputationReason.APPEAL_UPHELD
                ),
                created_at=resolved_at,
                application_id=appeal.application_id,
                reference=appeal.appeal_id,
            )
        ]
        if not tally.decided_by_default:
            for vote in appeal.votes:
                if vote.decision != tally.winner:
                    continue
                events.append(
                    ReputationEvent(
                        event_id=f"{appeal.appeal_id}:{vote.panelist_id}:panel",
                        reviewer_id=vote.panelist_id,
                        change_amount=self._config.majority_vote_credit,
                        reason=ReputationReason.VOTE_WITH_MAJORITY,
                        created_at=resolved_at,
                        application_id=appeal.application_id,
                        reference=appeal.appeal_id,
                    )
                )

        effects: list[LedgerEffect] = []
        if appeal.stake_amount > 0:
            if overturned:
                effects.append(
                    LedgerEffect(
                        effect_id=f"{appeal.appeal_id}:stake_return",
                        kind=EffectKind.APPEAL_STAKE_RETURN,
                        application_id=appeal.application_id,
                        account_id=appeal.appellant_id,
                        amount=appeal.stake_amount,
                        reference=appeal.appeal_id,
                    )
                )
            else:
                effects.append(
                    LedgerEffect(
                        effect_id=f"{appeal.appeal_id}:stake_forfeit",
                        kind=EffectKind.APPEAL_STAKE_FORFEIT,
                        application_id=appeal.application_id,
                        account_id=treasury_account(appeal.guild_id),
                        amount=appeal.stake_amount,
                        reference=appeal.appeal_id,
                    )
                )

        logger.info(
            f"Appeal {appeal.appeal_id} {outcome.value}: "
            f"{tally.count(AppealDecision.APPROVE_APPEAL)} approve / "
            f"{tally.count(AppealDecision.UPHOLD_REJECTION)} uphold, "
            f"outcome {original.value} -> {final.value}"
        )

        return AppealResolution(
            appeal_id=appeal.appeal_id,
            outcome=outcome,
            original_outcome=original,
            final_outcome=final,
            tally=tally,
            reputation_events=tuple(events),
            effects=tuple(effects),
            resolved_at=resolved_at,
        )
