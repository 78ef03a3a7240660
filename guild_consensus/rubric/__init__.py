"""
Rubric module for turning per-criterion reviewer input into a vote score.

Usage:
    from guild_consensus.rubric import RubricScorer, RubricSubmission

    scorer = RubricScorer(template)
    result = scorer.score(submission)
    vote_score = result.normalized_score
"""

from .errors import (
    CriterionScoreOutOfRangeError,
    IncompleteRubricError,
    RubricError,
    RubricTemplateError,
    RubricTemplateNotFoundError,
    UnknownCriterionError,
    UnknownRedFlagError,
)
from .models import (
    InterpretationBand,
    RedFlag,
    RubricCriterion,
    RubricScore,
    RubricSubmission,
    RubricTemplate,
)
from .scorer import VOTE_SCALE_MAX, RubricScorer

__all__ = [
    # Main components
    "RubricScorer",
    "VOTE_SCALE_MAX",
    # Models
    "InterpretationBand",
    "RedFlag",
    "RubricCriterion",
    "RubricScore",
    "RubricSubmission",
    "RubricTemplate",
    # Errors
    "CriterionScoreOutOfRangeError",
    "IncompleteRubricError",
    "RubricError",
    "RubricTemplateError",
    "RubricTemplateNotFoundError",
    "UnknownCriterionError",
    "UnknownRedFlagError",
]
