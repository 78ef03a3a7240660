"""Pytest configuration and shared fixtures."""

import pytest

from guild_consensus.utils import reset_clock


@pytest.fixture(autouse=True)
def reset_clock_after_test():
    """
    Put the system clock back after each test.

    Tests pin submission times and deadlines with set_clock(); without this
    a pinned clock would leak into the next test.

    Usage in tests:
        from guild_consensus.utils import set_clock

        def test_vote_on_deadline():
            set_clock(lambda: application.voting_deadline)
            ...
    """
    yield
    reset_clock()
