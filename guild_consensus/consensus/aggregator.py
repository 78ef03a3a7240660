"""Outlier-resistant consensus over reviewer scores."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime
from typing import TYPE_CHECKING

import numpy as np

from .errors import NoVotesError
from .models import ConsensusConfig, ConsensusResult, IqrSummary, Outcome

if TYPE_CHECKING:
    from ..voting.models import Vote

logger = logging.getLogger(__name__)


class ConsensusAggregator:
    """
    Computes a single consensus score from all valid votes.

    1. Fewer than `min_votes_for_outlier_filter` votes: plain mean.
    2. Otherwise fence at [Q1 - k*IQR, Q3 + k*IQR]; votes outside are outliers,
       excluded from the mean but kept for alignment scoring.
    3. If the fences would exclude every vote, fall back to the unfiltered mean.
    4. Approved when consensus >= approval threshold.

    Usage:
        aggregator = ConsensusAggregator(ConsensusConfig(approval_threshold=60))
        result = aggregator.aggregate("app-1", votes, finalized_at=now)
    """

    def __init__(self, config: ConsensusConfig | None = None):
        self._config = config or ConsensusConfig()

    @property
    def approval_threshold(self) -> float:
        return self._config.approval_threshold

    def aggregate(
        self,
        application_id: str,
        votes: Sequence[Vote],
        finalized_at: datetime,
    ) -> ConsensusResult:
        """
        Aggregate votes into a ConsensusResult.

        Raises:
            NoVotesError: If there are no votes
        """
        if not votes:
            raise NoVotesError(f"No votes to aggregate for {application_id}")

        scores = np.asarray([v.score for v in votes], dtype=np.float64)
        iqr_summary: IqrSummary | None = None
        outlier_ids: tuple[str, ...] = ()

        if len(scores) < self._config.min_votes_for_outlier_filter:
            consensus = float(np.mean(scores))
        else:
            q1, median, q3 = (float(q) for q in np.percentile(scores, [25, 50, 75]))
            iqr = q3 - q1
            lower = q1 - self._config.iqr_multiplier * iqr
            upper = q3 + self._config.iqr_multiplier * iqr
            inside = (scores >= lower) & (scores <= upper)

            if inside.any():
                consensus = float(np.mean(scores[inside]))
                outlier_ids = tuple(
                    v.vote_id for v, keep in zip(votes, inside, strict=True) if not keep
                )
            else:
                logger.warning(
                    f"Outlier filter excluded every vote for {application_id}; "
                    f"using unfiltered mean"
                )
                consensus = float(np.mean(scores))

            iqr_summary = IqrSummary(
                median=median,
                q1=q1,
                q3=q3,
                iqr=iqr,
                lower_bound=lower,
                upper_bound=upper,
                included_count=len(votes) - len(outlier_ids),
                excluded_count=len(outlier_ids),
            )

        outcome = (
            Outcome.APPROVED
            if consensus >= self._config.approval_threshold
            else Outcome.REJECTED
        )

        logger.info(
            f"Consensus for {application_id}: {consensus:.2f} ({outcome.value}) "
            f"from {len(votes)} votes, {len(outlier_ids)} outliers"
        )

        return ConsensusResult(
            application_id=application_id,
            consensus_score=consensus,
            outcome=outcome,
            outlier_vote_ids=outlier_ids,
            participation_count=len(votes),
            approval_threshold=self._config.approval_threshold,
            finalized_at=finalized_at,
            iqr=iqr_summary,
        )
