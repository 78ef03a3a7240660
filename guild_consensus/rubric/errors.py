"""Exceptions for rubric scoring."""


class RubricError(Exception):
    """Base exception for rubric errors."""

    pass


class IncompleteRubricError(RubricError):
    """
    Raised when a scored criterion lacks a score or a justification.

    This can happen when:
    - A required scored criterion has no points entered
    - A scored criterion has points but an empty justification
    """

    def __init__(self, missing: list[str]):
        self.missing = tuple(missing)
        super().__init__(
            f"Incomplete rubric: missing score or justification for {', '.join(missing)}"
        )


class UnknownCriterionError(RubricError):
    """Raised when a submission scores a criterion the template does not define."""

    pass


class UnknownRedFlagError(RubricError):
    """Raised when a submission triggers a red flag the template does not define."""

    pass


class CriterionScoreOutOfRangeError(RubricError):
    """Raised when points awarded fall outside [0, max_points] for a criterion."""

    pass


class RubricTemplateError(RubricError):
    """
    Raised when a rubric template is malformed.

    This can happen when:
    - Criterion or red flag ids are duplicated
    - A criterion has non-positive max points
    - A red flag deduction is negative
    """

    pass


class RubricTemplateNotFoundError(RubricError):
    """Raised when no template is configured for an expertise level."""

    pass
