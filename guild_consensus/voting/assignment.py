"""Reviewer assignment at application open time."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from .models import Application, ReviewerAssignment

logger = logging.getLogger(__name__)


def assign_reviewers(
    application: Application,
    candidate_stakes: Mapping[str, int],
) -> dict[str, ReviewerAssignment]:
    """
    Build the reviewer assignment for an application.

    Reviewers whose stake is below the application's required stake are not
    eligible and are left out.

    Args:
        application: Application being opened
        candidate_stakes: Mapping of reviewer id -> current stake

    Returns:
        Mapping of reviewer id -> ReviewerAssignment, in reviewer id order
    """
    assignments: dict[str, ReviewerAssignment] = {}
    dropped: list[str] = []
    for reviewer_id in sorted(candidate_stakes):
        stake = candidate_stakes[reviewer_id]
        if stake < application.required_stake:
            dropped.append(reviewer_id)
            continue
        assignments[reviewer_id] = ReviewerAssignment(reviewer_id=reviewer_id, stake=stake)

    if dropped:
        logger.warning(
            f"Application {application.application_id}: {len(dropped)} reviewers "
            f"below required stake {application.required_stake}: {', '.join(dropped)}"
        )
    return assignments
