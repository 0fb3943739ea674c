"""
Time budget helpers for long-running analysis passes.
"""

import time
from typing import Iterable, Iterator, Optional, TypeVar

from txgraph.exceptions import DeadlineExceeded


T = TypeVar("T")

# How many items to process between clock reads.
CHECK_EVERY = 1024


class Deadline:
    """A monotonic time budget shared by one analysis request."""

    def __init__(self, budget_seconds: float):
        if budget_seconds <= 0:
            raise ValueError("budget_seconds must be positive")
        self.budget_seconds = budget_seconds
        self._started = time.monotonic()

    @classmethod
    def after(cls, budget_seconds: Optional[float]) -> Optional["Deadline"]:
        """Build a deadline, or None when no budget is set."""
        if budget_seconds is None:
            return None
        return cls(budget_seconds)

    def elapsed(self) -> float:
        return time.monotonic() - self._started

    def remaining(self) -> float:
        return self.budget_seconds - self.elapsed()

    def expired(self) -> bool:
        return self.remaining() <= 0

    def check(self, stage: str = "analysis") -> None:
        """Raise DeadlineExceeded once the budget is spent."""
        elapsed = self.elapsed()
        if elapsed >= self.budget_seconds:
            raise DeadlineExceeded(
                f"{stage} exceeded its {self.budget_seconds}s budget",
                budget_seconds=self.budget_seconds,
                elapsed_seconds=elapsed,
                details={"stage": stage},
            )


def checked(
    items: Iterable[T],
    deadline: Optional[Deadline],
    stage: str = "analysis",
    every: int = CHECK_EVERY,
) -> Iterator[T]:
    """Yield items, checking the deadline every `every` items."""
    if deadline is None:
        yield from items
        return
    deadline.check(stage)
    for i, item in enumerate(items, 1):
        yield item
        if i % every == 0:
            deadline.check(stage)
    deadline.check(stage)
