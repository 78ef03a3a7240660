"""Exceptions for appeals arbitration."""


class AppealError(Exception):
    """Base exception for appeal errors."""

    pass


class UnknownAppealError(AppealError):
    """Raised when an appeal id does not exist."""

    pass


class AppealNotAllowedError(AppealError):
    """
    Raised when an appeal cannot be filed.

    This can happen when:
    - The application is not finalized, or expired without votes
    - The appellant is neither the rejected applicant nor a deviating reviewer
    - The application already has an appeal
    - The appeal stake is below the guild minimum
    """

    pass


class AppealWindowClosedError(AppealError):
    """Raised when an appeal is filed after the appeal window."""

    pass


class InsufficientPanelSizeError(AppealError):
    """Raised when too few eligible reviewers exist to seat a panel."""

    pass


class NotPanelMemberError(AppealError):
    """Raised when a reviewer outside the panel casts an appeal vote."""

    pass


class DuplicateAppealVoteError(AppealError):
    """Raised when a panelist votes twice on the same appeal."""

    pass


class AppealClosedError(AppealError):
    """Raised when voting on an appeal that is resolved or past its deadline."""

    pass
