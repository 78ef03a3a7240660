"""Alignment scoring: how far each vote landed from consensus."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from .models import AlignmentConfig, AlignmentRecord, ReputationReason

if TYPE_CHECKING:
    from ..consensus.models import ConsensusResult
    from ..voting.models import Vote

logger = logging.getLogger(__name__)


class AlignmentEngine:
    """
    Classifies every vote (outliers included) against the consensus score.

    distance = |score - consensus|
    - aligned            distance < aligned_below     (+10)
    - mild_deviation     distance < mild_below        (-5)
    - moderate_deviation distance <= moderate_up_to   (-10)
    - severe_deviation   otherwise                    (-20)

    Votes excluded by the outlier filter always get severe treatment,
    whatever their raw distance.
    """

    def __init__(self, config: AlignmentConfig | None = None):
        self._config = config or AlignmentConfig()

    @property
    def config(self) -> AlignmentConfig:
        return self._config

    def evaluate(
        self,
        votes: Sequence[Vote],
        consensus: ConsensusResult,
    ) -> tuple[AlignmentRecord, ...]:
        """
        Score every vote against consensus.

        Args:
            votes: All ledgered votes for the application
            consensus: Consensus computed from those votes

        Returns:
            One AlignmentRecord per vote, in vote order
        """
        records: list[AlignmentRecord] = []
        for vote in votes:
            distance = abs(vote.score - consensus.consensus_score)
            is_outlier = consensus.is_outlier(vote.vote_id)
            reason = (
                ReputationReason.SEVERE_DEVIATION
                if is_outlier
                else self._config.classify(distance)
            )
            slash_percent = self._config.slash_percent_for(reason)
            records.append(
                AlignmentRecord(
                    vote_id=vote.vote_id,
                    reviewer_id=vote.reviewer_id,
                    score=vote.score,
                    alignment_distance=distance,
                    reason=reason,
                    is_outlier=is_outlier,
                    reputation_delta=self._config.delta_for(reason),
                    stake_amount=vote.stake_amount,
                    slash_percent=slash_percent,
                    slash_amount=vote.stake_amount * slash_percent // 100,
                )
            )

        aligned = sum(1 for r in records if r.is_aligned)
        logger.info(
            f"Alignment for {consensus.application_id}: {aligned}/{len(records)} aligned"
        )
        for record in records:
            logger.debug(
                f"  {record.reviewer_id}: distance={record.alignment_distance:.2f} "
                f"{record.reason.value} ({record.reputation_delta:+d})"
            )
        return tuple(records)
