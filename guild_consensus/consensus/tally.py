"""Majority tally shared by panel-style votes."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from typing import TypeVar

from .models import TallyResult

T = TypeVar("T")


def tally_decisions(decisions: Iterable[T], default: T) -> TallyResult[T]:
    """
    Tally discrete decisions by strict majority.

    The winner must hold more votes than every other option; otherwise
    (tie or no votes) the status quo `default` wins.

    Example:
        >>> tally_decisions(["keep", "flip"], default="keep").winner
        'keep'
    """
    counter = Counter(decisions)
    total = sum(counter.values())
    ranked = counter.most_common()

    if not ranked or (len(ranked) > 1 and ranked[0][1] == ranked[1][1]):
        return TallyResult(
            winner=default,
            counts=tuple(ranked),
            total=total,
            decided_by_default=True,
        )

    return TallyResult(
        winner=ranked[0][0],
        counts=tuple(ranked),
        total=total,
        decided_by_default=False,
    )
