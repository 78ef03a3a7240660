"""Consensus engine - coordinates voting, finalization and appeals."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from ..appeals import (
    Appeal,
    AppealArbitrator,
    AppealDecision,
    AppealError,
    AppealNotAllowedError,
    AppealResolution,
    AppealVote,
    UnknownAppealError,
    treasury_account,
)
from ..consensus import ConsensusAggregator, ConsensusError, NoVotesError
from ..guilds import GuildConfig, UnknownGuildError, load_guild_configs
from ..incentives import IncentiveError, RewardDistribution, RewardDistributor
from ..reputation import (
    AlignmentEngine,
    DecayConfig,
    InactivityDecay,
    ReputationError,
    ReputationEvent,
    ReputationLedger,
    RewardTierProgress,
    get_reward_tier_progress,
)
from ..rubric import RubricScorer, RubricSubmission
from ..treasury.models import EffectKind, LedgerEffect
from ..utils import clock
from ..voting import (
    AlreadyFinalizedError,
    Application,
    ApplicationCancelledError,
    ApplicationState,
    CommitRecord,
    DuplicateApplicationError,
    FinalizationNotReadyError,
    PhaseController,
    PhaseSnapshot,
    RevealMismatchError,
    UnknownApplicationError,
    Vote,
    VoteLedger,
    VotingPhase,
    assign_reviewers,
)
from .models import FinalizationResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _GuildRuntime:
    """Components configured for one guild."""

    config: GuildConfig
    phase: PhaseController
    ledger: VoteLedger
    aggregator: ConsensusAggregator
    alignment: AlignmentEngine
    distributor: RewardDistributor
    arbitrator: AppealArbitrator

    @classmethod
    def from_config(cls, config: GuildConfig) -> _GuildRuntime:
        phase = PhaseController(config.phase)
        return cls(
            config=config,
            phase=phase,
            ledger=VoteLedger(phase),
            aggregator=ConsensusAggregator(config.consensus),
            alignment=AlignmentEngine(config.alignment),
            distributor=RewardDistributor(config.distributor),
            arbitrator=AppealArbitrator(config.appeals),
        )


class ConsensusEngine:
    """
    Entry point for every inbound operation.

    Each application has its own asyncio lock; "check phase -> validate ->
    append" always runs inside it, and no lock is ever shared across
    applications. Finalization is triggered either by the last required
    vote or by the deadline sweep; both call the same idempotent `finalize`.

    Finalization computes consensus, alignment, reputation events and reward
    shares before touching any state, then appends the reputation events as
    one batch and stores the result. If anything fails nothing is applied.

    Token movements are never performed here. They are queued as
    LedgerEffects and handed out by `drain_effects` once locks are released.
    """

    def __init__(
        self,
        guilds: Iterable[GuildConfig],
        reputation_ledger: ReputationLedger | None = None,
        decay_config: DecayConfig | None = None,
    ):
        """
        Initialize engine with guild configurations.

        Args:
            guilds: Configuration for every guild this engine serves
            reputation_ledger: Shared reputation ledger. New one if None.
            decay_config: Inactivity decay settings. Defaults if None.
        """
        self._runtimes = {g.guild_id: _GuildRuntime.from_config(g) for g in guilds}
        self._reputation = reputation_ledger or ReputationLedger()
        self._decay = InactivityDecay(self._reputation, decay_config)
        self._states: dict[str, ApplicationState] = {}
        self._appeals: dict[str, Appeal] = {}
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._effects: list[LedgerEffect] = []

    @classmethod
    def create(cls, *, guild_config_path: Path, **kwargs) -> ConsensusEngine:
        """Create an engine from a guild configuration YAML file."""
        return cls(load_guild_configs(guild_config_path), **kwargs)

    # --- Lookups ---

    @property
    def reputation_ledger(self) -> ReputationLedger:
        return self._reputation

    def _runtime(self, guild_id: str) -> _GuildRuntime:
        runtime = self._runtimes.get(guild_id)
        if runtime is None:
            raise UnknownGuildError(f"No configuration for guild {guild_id}")
        return runtime

    def get_state(self, application_id: str) -> ApplicationState:
        state = self._states.get(application_id)
        if state is None:
            raise UnknownApplicationError(f"Unknown application {application_id}")
        return state

    def get_appeal(self, appeal_id: str) -> Appeal:
        appeal = self._appeals.get(appeal_id)
        if appeal is None:
            raise UnknownAppealError(f"Unknown appeal {appeal_id}")
        return appeal

    def votes_for(self, application_id: str) -> tuple[Vote, ...]:
        state = self.get_state(application_id)
        return self._runtime(state.application.guild_id).ledger.votes_for(application_id)

    def reputation_of(self, reviewer_id: str) -> int:
        return self._reputation.reputation_of(reviewer_id)

    def reward_tier_of(self, guild_id: str, reviewer_id: str) -> RewardTierProgress:
        tiers = self._runtime(guild_id).config.distributor.tiers
        return get_reward_tier_progress(self.reputation_of(reviewer_id), tiers)

    def snapshot(self, application_id: str, now: datetime | None = None) -> PhaseSnapshot:
        """Phase status (counts and deadlines) for UI polling."""
        state = self.get_state(application_id)
        runtime = self._runtime(state.application.guild_id)
        return runtime.phase.snapshot(
            state,
            runtime.ledger.votes_for(application_id),
            runtime.ledger.commits_for(application_id),
            now or clock.now(),
        )

    # --- Effects ---

    def drain_effects(self) -> list[LedgerEffect]:
        """Hand out queued ledger effects (call with no locks held)."""
        effects, self._effects = self._effects, []
        return effects

    def requeue_effects(self, effects: Iterable[LedgerEffect]) -> None:
        """Put back effects whose dispatch failed, ahead of newer ones."""
        self._effects[:0] = list(effects)

    # --- Voting ---

    async def open_application(
        self,
        application: Application,
        candidate_stakes: Mapping[str, int],
        opened_at: datetime | None = None,
    ) -> ApplicationState:
        """
        Open an application for review.

        Args:
            application: Application to open
            candidate_stakes: Potential reviewers -> current stake
            opened_at: Opening time (defaults to now)

        Raises:
            UnknownGuildError: Guild not configured
            DuplicateApplicationError: Application id already opened
            RubricTemplateNotFoundError: Direct-vote guild lacks a rubric for the level
            PhaseConfigurationError: Deadlines leave no room for the phases
        """
        runtime = self._runtime(application.guild_id)
        if not runtime.config.requires_commit_reveal:
            runtime.config.rubric_for(application.expertise_level)

        async with self._locks[application.application_id]:
            if application.application_id in self._states:
                raise DuplicateApplicationError(
                    f"Application {application.application_id} is already open"
                )
            assignments = assign_reviewers(application, candidate_stakes)
            state = runtime.phase.open(application, assignments, opened_at or clock.now())
            self._states[application.application_id] = state
            return state

    async def submit_vote(
        self,
        application_id: str,
        reviewer_id: str,
        criteria_scores: Mapping[str, float],
        red_flags: Iterable[str] = (),
        stake_amount: int = 0,
        justifications: Mapping[str, str] | None = None,
        submitted_at: datetime | None = None,
    ) -> Vote:
        """
        Score a reviewer's rubric and record it as a direct vote.

        Finalizes the application when this was the last required vote. The
        phase is checked before the rubric, so a vote on a cancelled or closed
        application reports that rather than a rubric problem.

        Raises:
            IncompleteRubricError, UnknownCriterionError, ...: Rubric rejected
            NotAssignedReviewerError, VotingClosedError, InsufficientStakeError,
            DuplicateVoteError, ApplicationCancelledError: Ledger rejected the vote
        """
        state = self.get_state(application_id)
        runtime = self._runtime(state.application.guild_id)
        submitted_at = submitted_at or clock.now()

        template = runtime.config.rubric_for(state.application.expertise_level)

        async with self._locks[application_id]:
            runtime.phase.ensure_accepting_votes(state, submitted_at)
            rubric_score = RubricScorer(template).score(
                RubricSubmission(
                    criteria_scores=dict(criteria_scores),
                    justifications=dict(justifications or {}),
                    red_flags=frozenset(red_flags),
                )
            )
            vote = runtime.ledger.record_vote(
                state,
                Vote(
                    vote_id=Vote.make_id(application_id, reviewer_id),
                    application_id=application_id,
                    reviewer_id=reviewer_id,
                    score=rubric_score.normalized_score,
                    stake_amount=stake_amount,
                    submitted_at=submitted_at,
                    criteria_scores=rubric_score.criteria_scores,
                    red_flag_deductions=rubric_score.red_flag_deductions,
                ),
            )

        await self._finalize_if_ready(application_id)
        return vote

    async def submit_commit(
        self,
        application_id: str,
        reviewer_id: str,
        commit_hash: str,
        stake_amount: int,
        committed_at: datetime | None = None,
    ) -> CommitRecord:
        """
        Record a hidden commitment (commit-reveal guilds only).

        The hash must be compute_commit_hash(score, stake_amount, salt).
        """
        state = self.get_state(application_id)
        runtime = self._runtime(state.application.guild_id)
        async with self._locks[application_id]:
            return runtime.ledger.record_commit(
                state,
                reviewer_id,
                commit_hash,
                stake_amount,
                committed_at or clock.now(),
            )

    async def submit_reveal(
        self,
        application_id: str,
        reviewer_id: str,
        score: float,
        salt: str,
        revealed_at: datetime | None = None,
    ) -> Vote:
        """
        Reveal a committed score.

        A mismatching reveal records the reviewer as abstaining and raises
        RevealMismatchError; it still counts towards quorum so the rest of the
        panel can be finalized.
        """
        state = self.get_state(application_id)
        runtime = self._runtime(state.application.guild_id)
        try:
            async with self._locks[application_id]:
                vote = runtime.ledger.record_reveal(
                    state, reviewer_id, score, salt, revealed_at or clock.now()
                )
        except RevealMismatchError:
            await self._finalize_if_ready(application_id)
            raise

        await self._finalize_if_ready(application_id)
        return vote

    async def cancel(self, application_id: str, reason: str) -> None:
        """
        Administratively cancel an application before finalization.

        In-flight submissions waiting on the lock then fail with
        ApplicationCancelledError. The reward pool goes back to the treasury.

        Raises:
            AlreadyFinalizedError: Application already finalized
        """
        state = self.get_state(application_id)
        runtime = self._runtime(state.application.guild_id)
        async with self._locks[application_id]:
            if state.finalization is not None:
                raise AlreadyFinalizedError(
                    f"Application {application_id} is finalized and cannot be cancelled"
                )
            if state.phase == VotingPhase.CANCELLED:
                return
            runtime.phase.mark_cancelled(state, reason)
            pool = state.application.reward_pool
            if pool > 0:
                self._effects.append(
                    LedgerEffect(
                        effect_id=f"{application_id}:cancel_return",
                        kind=EffectKind.TREASURY_RETURN,
                        application_id=application_id,
                        account_id=treasury_account(state.application.guild_id),
                        amount=pool,
                        reference=reason,
                    )
                )

    # --- Finalization ---

    async def _finalize_if_ready(self, application_id: str) -> None:
        state = self.get_state(application_id)
        runtime = self._runtime(state.application.guild_id)
        votes = runtime.ledger.votes_for(application_id)
        if runtime.phase.ready_to_finalize(state, votes, clock.now()):
            await self.finalize(application_id)

    async def finalize(
        self, application_id: str, now: datetime | None = None
    ) -> FinalizationResult:
        """
        Finalize an application (idempotent).

        The first caller computes and stores the result; every later or
        concurrent caller gets that stored result back, never a recomputation.

        Raises:
            ApplicationCancelledError: Application was cancelled
            FinalizationNotReadyError: Neither deadline nor quorum reached
        """
        state = self.get_state(application_id)
        runtime = self._runtime(state.application.guild_id)

        async with self._locks[application_id]:
            if state.finalization is not None:
                logger.debug(f"Application {application_id} already finalized")
                return state.finalization
            if state.phase == VotingPhase.CANCELLED:
                raise ApplicationCancelledError(
                    f"Application {application_id} was cancelled"
                )

            now = now or clock.now()
            runtime.phase.advance(state, now)
            votes = runtime.ledger.votes_for(application_id)
            if not runtime.phase.ready_to_finalize(state, votes, now):
                raise FinalizationNotReadyError(
                    f"Application {application_id} is still collecting votes "
                    f"({len(votes)}/{len(state.assignments)})"
                )

            result = self._compute_finalization(state, runtime, votes, now)

            # All-or-nothing: the batch append validates before writing.
            self._reputation.append_batch(result.reputation_events)
            state.finalization = result
            runtime.phase.mark_finalized(state)
            self._effects.extend(result.effects)

        logger.info(
            f"Finalized {application_id}: "
            f"{result.outcome.value if result.outcome else 'expired'}, "
            f"{len(result.reputation_events)} reputation events, "
            f"{len(result.effects)} ledger effects"
        )
        return result

    def _compute_finalization(
        self,
        state: ApplicationState,
        runtime: _GuildRuntime,
        votes: tuple[Vote, ...],
        now: datetime,
    ) -> FinalizationResult:
        """Pure computation of a finalization; mutates nothing."""
        application = state.application
        treasury = treasury_account(application.guild_id)

        try:
            consensus = runtime.aggregator.aggregate(application.application_id, votes, now)
        except NoVotesError:
            logger.warning(
                f"Application {application.application_id} expired without votes"
            )
            expired_effects: tuple[LedgerEffect, ...] = ()
            if application.reward_pool > 0:
                expired_effects = (
                    LedgerEffect(
                        effect_id=f"{application.application_id}:treasury_return",
                        kind=EffectKind.TREASURY_RETURN,
                        application_id=application.application_id,
                        account_id=treasury,
                        amount=application.reward_pool,
                        reference="expired",
                    ),
                )
            return FinalizationResult(
                application_id=application.application_id,
                guild_id=application.guild_id,
                finalized_at=now,
                consensus=None,
                alignments=(),
                distribution=RewardDistribution(
                    application_id=application.application_id,
                    reward_pool=application.reward_pool,
                    returned_to_treasury=application.reward_pool,
                ),
                reputation_events=(),
                effects=expired_effects,
            )

        alignments = runtime.alignment.evaluate(votes, consensus)
        aligned_reputations = {
            r.reviewer_id: self._reputation.reputation_of(r.reviewer_id)
            for r in alignments
            if r.is_aligned
        }
        distribution = runtime.distributor.distribute(
            application.application_id, application.reward_pool, aligned_reputations
        )

        events = tuple(
            ReputationEvent.for_alignment(
                application.application_id,
                record,
                distribution.get_amount(record.reviewer_id),
                now,
            )
            for record in alignments
        )

        effects: list[LedgerEffect] = [
            LedgerEffect(
                effect_id=f"{application.application_id}:{share.reviewer_id}:reward",
                kind=EffectKind.REWARD_TRANSFER,
                application_id=application.application_id,
                account_id=share.reviewer_id,
                amount=share.amount,
            )
            for share in distribution.shares
            if share.amount > 0
        ]
        if distribution.returned_to_treasury > 0:
            effects.append(
                LedgerEffect(
                    effect_id=f"{application.application_id}:treasury_return",
                    kind=EffectKind.TREASURY_RETURN,
                    application_id=application.application_id,
                    account_id=treasury,
                    amount=distribution.returned_to_treasury,
                    reference="no_aligned_reviewers",
                )
            )
        effects.extend(
            LedgerEffect(
                effect_id=f"{application.application_id}:{record.reviewer_id}:slash",
                kind=EffectKind.STAKE_SLASH,
                application_id=application.application_id,
                account_id=record.reviewer_id,
                amount=record.slash_amount,
                reference=record.reason.value,
            )
            for record in alignments
            if record.slash_amount > 0
        )

        return FinalizationResult(
            application_id=application.application_id,
            guild_id=application.guild_id,
            finalized_at=now,
            consensus=consensus,
            alignments=alignments,
            distribution=distribution,
            reputation_events=events,
            effects=tuple(effects),
        )

    async def sweep(self, now: datetime | None = None) -> list[FinalizationResult]:
        """
        Deadline-driven pass over open applications and appeals.

        Finalizes every application whose deadline elapsed (or quorum was
        reached) and resolves every appeal whose panel is done or timed out.
        A failure on one application is logged and does not stop the others.

        Returns:
            Results finalized during this sweep
        """
        now = now or clock.now()
        finalized: list[FinalizationResult] = []

        for application_id, state in list(self._states.items()):
            if state.phase.is_terminal:
                continue
            runtime = self._runtime(state.application.guild_id)
            async with self._locks[application_id]:
                runtime.phase.advance(state, now)
            votes = runtime.ledger.votes_for(application_id)
            if not runtime.phase.ready_to_finalize(state, votes, now):
                continue
            try:
                finalized.append(await self.finalize(application_id, now))
            except ApplicationCancelledError:
                logger.info(f"Application {application_id} was cancelled before finalization")
            except (ConsensusError, ReputationError, IncentiveError) as e:
                logger.error(f"Failed to finalize {application_id}: {e}", exc_info=True)

        for appeal in list(self._appeals.values()):
            state = self._states[appeal.application_id]
            runtime = self._runtime(state.application.guild_id)
            if not runtime.arbitrator.ready_to_resolve(appeal, now):
                continue
            try:
                await self.resolve_appeal(appeal.appeal_id, now)
            except (AppealError, ReputationError) as e:
                logger.error(f"Failed to resolve appeal {appeal.appeal_id}: {e}", exc_info=True)

        if finalized:
            logger.info(f"Sweep finalized {len(finalized)} applications")
        return finalized

    def run_decay(self, now: datetime | None = None) -> list[ReputationEvent]:
        """Run one inactivity decay cycle over every known reviewer."""
        return self._decay.run_cycle(now or clock.now())

    # --- Appeals ---

    def _panel_candidates(self, guild_id: str) -> set[str]:
        """Every reviewer ever assigned within the guild."""
        candidates: set[str] = set()
        for state in self._states.values():
            if state.application.guild_id == guild_id:
                candidates.update(state.assignments)
        return candidates

    async def file_appeal(
        self,
        application_id: str,
        appellant_id: str,
        justification: str,
        stake_amount: int,
        filed_at: datetime | None = None,
        panel_candidates: Iterable[str] | None = None,
    ) -> Appeal:
        """
        File an appeal against a finalized application.

        Args:
            application_id: Finalized application
            appellant_id: Rejected applicant or deviating reviewer
            justification: Appellant's reasoning
            stake_amount: Appeal stake in token base units
            filed_at: Filing time (defaults to now)
            panel_candidates: Reviewers eligible to sit on the panel. Defaults to
                every reviewer assigned within the guild.

        Raises:
            AppealNotAllowedError, AppealWindowClosedError, InsufficientPanelSizeError
        """
        state = self.get_state(application_id)
        runtime = self._runtime(state.application.guild_id)
        candidate_ids = (
            set(panel_candidates)
            if panel_candidates is not None
            else self._panel_candidates(state.application.guild_id)
        )

        async with self._locks[application_id]:
            if any(a.application_id == application_id for a in self._appeals.values()):
                raise AppealNotAllowedError(
                    f"Application {application_id} already has an appeal"
                )
            appeal = runtime.arbitrator.file(
                state,
                appellant_id,
                justification,
                stake_amount,
                self._reputation.reputations(candidate_ids),
                filed_at or clock.now(),
            )
            self._appeals[appeal.appeal_id] = appeal
            return appeal

    async def cast_appeal_vote(
        self,
        appeal_id: str,
        panelist_id: str,
        decision: AppealDecision | str,
        reasoning: str,
        cast_at: datetime | None = None,
    ) -> AppealVote:
        """
        Record a panelist's decision; resolves the appeal once the panel is done.

        Raises:
            UnknownAppealError, AppealClosedError, NotPanelMemberError,
            DuplicateAppealVoteError
        """
        appeal = self.get_appeal(appeal_id)
        state = self.get_state(appeal.application_id)
        runtime = self._runtime(state.application.guild_id)
        cast_at = cast_at or clock.now()

        async with self._locks[appeal.application_id]:
            vote = runtime.arbitrator.cast_vote(
                appeal, panelist_id, AppealDecision(decision), reasoning, cast_at
            )

        if runtime.arbitrator.ready_to_resolve(appeal, cast_at):
            await self.resolve_appeal(appeal_id, cast_at)
        return vote

    async def resolve_appeal(
        self, appeal_id: str, now: datetime | None = None
    ) -> AppealResolution:
        """Resolve an appeal (idempotent; returns the stored resolution if any)."""
        appeal = self.get_appeal(appeal_id)
        state = self.get_state(appeal.application_id)
        runtime = self._runtime(state.application.guild_id)

        async with self._locks[appeal.application_id]:
            if appeal.resolution is not None:
                return appeal.resolution
            resolution = runtime.arbitrator.resolve(appeal, state, now or clock.now())
            self._reputation.append_batch(resolution.reputation_events)
            appeal.resolution = resolution
            state.appeal_resolution = resolution
            self._effects.extend(resolution.effects)
            return resolution
