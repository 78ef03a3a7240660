"""Rubric scoring: criterion points minus red flag deductions."""

from __future__ import annotations

import logging

from .errors import (
    CriterionScoreOutOfRangeError,
    IncompleteRubricError,
    UnknownCriterionError,
    UnknownRedFlagError,
)
from .models import RubricScore, RubricSubmission, RubricTemplate

logger = logging.getLogger(__name__)

VOTE_SCALE_MAX = 100.0


class RubricScorer:
    """
    Turns a reviewer's per-criterion inputs into a bounded score.

    overall = clamp(sum(criteria) - sum(triggered red flag deductions), 0, rubric_max)

    Every scored criterion that is required (or that the reviewer chose to score)
    needs both points and a non-blank justification, since the score feeds
    reputation and reward outcomes and must be auditable.

    Usage:
        scorer = RubricScorer(template)
        result = scorer.score(RubricSubmission(
            criteria_scores={"depth": 18},
            justifications={"depth": "Concrete examples from two projects"},
        ))
    """

    def __init__(self, template: RubricTemplate):
        self._template = template

    @property
    def template(self) -> RubricTemplate:
        return self._template

    def score(self, submission: RubricSubmission) -> RubricScore:
        """
        Score a submission against the template.

        Raises:
            UnknownCriterionError: Criterion id not in template
            CriterionScoreOutOfRangeError: Points outside [0, max_points]
            UnknownRedFlagError: Red flag id not in template
            IncompleteRubricError: Scored criterion missing points or justification
        """
        template = self._template

        for criterion_id, points in submission.criteria_scores.items():
            criterion = template.get_criterion(criterion_id)
            if criterion is None:
                raise UnknownCriterionError(
                    f"Unknown criterion '{criterion_id}' for template {template.template_id}"
                )
            if points < 0 or points > criterion.max_points:
                raise CriterionScoreOutOfRangeError(
                    f"Criterion '{criterion_id}' scored {points}, "
                    f"allowed range is 0-{criterion.max_points}"
                )

        deductions = 0.0
        for flag_id in sorted(submission.red_flags):
            flag = template.get_red_flag(flag_id)
            if flag is None:
                raise UnknownRedFlagError(
                    f"Unknown red flag '{flag_id}' for template {template.template_id}"
                )
            deductions += flag.deduction

        missing: list[str] = []
        for criterion in template.scored_criteria:
            has_score = criterion.id in submission.criteria_scores
            justification = submission.justifications.get(criterion.id, "")
            has_justification = bool(justification and justification.strip())
            if not has_score and not criterion.required:
                continue
            if not has_score or not has_justification:
                missing.append(criterion.id)
        if missing:
            raise IncompleteRubricError(missing)

        criteria_scores = tuple(
            (c.id, float(submission.criteria_scores[c.id]))
            for c in template.scored_criteria
            if c.id in submission.criteria_scores
        )
        raw_total = sum(points for _, points in criteria_scores)
        overall = min(max(raw_total - deductions, 0.0), template.rubric_max)
        normalized = overall / template.rubric_max * VOTE_SCALE_MAX

        logger.debug(
            f"Scored rubric {template.template_id} v{template.version}: "
            f"raw={raw_total}, deductions={deductions}, overall={overall}"
        )

        return RubricScore(
            template_id=template.template_id,
            template_version=template.version,
            criteria_scores=criteria_scores,
            red_flag_deductions=deductions,
            raw_total=raw_total,
            overall_score=overall,
            normalized_score=normalized,
        )
