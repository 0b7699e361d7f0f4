from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from functools import cmp_to_key

from .models import Bug

Less = Callable[[Bug, Bug], bool]

_EPOCH_MIN = datetime.min.replace(tzinfo=UTC)


def sort_bugs(bugs: list[Bug], by: Less) -> None:
    """Sort ``bugs`` in place, ``by(a, b)`` returning True when ``a`` goes first."""

    def compare(a: Bug, b: Bug) -> int:
        if by(a, b):
            return -1
        if by(b, a):
            return 1
        return 0

    bugs.sort(key=cmp_to_key(compare))


class By:
    def __init__(self, less: Less):
        self.less = less

    def sort(self, bugs: list[Bug]) -> None:
        sort_bugs(bugs, self.less)


def last_change_time(b1: Bug, b2: Bug) -> bool:
    # Bugs without a last change time sort first.
    return (b1.last_change_time or _EPOCH_MIN) < (b2.last_change_time or _EPOCH_MIN)
