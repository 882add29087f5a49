"""Data model for star history acquisition."""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Tuple

from .errors import BudgetExhausted

logger = logging.getLogger(__name__)

REPO_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")


def normalize_repo_key(repo: str) -> str:
    """Return the case-insensitive lookup key for an ``owner/name`` string."""
    return repo.strip().lower()


@dataclass(frozen=True)
class StarEvent:
    """Cumulative star count reached at a point in time."""
    timestamp: datetime
    count: int

    def __post_init__(self):
        if self.count < 0:
            raise ValueError(f"Star count must not be negative: {self.count}")


@dataclass(frozen=True)
class StarSeries:
    """
    Reconstructed star growth curve of one repository.

    Events are ordered and non-decreasing in both timestamp and count.
    ``total_stars`` is the authoritative count at fetch time and is never
    below the last event's count.
    """

    repo: str
    events: Tuple[StarEvent, ...]
    total_stars: int
    sampled: bool = False

    def __post_init__(self):
        # Accept any iterable, store a tuple so the series stays immutable
        object.__setattr__(self, 'events', tuple(self.events))

        for previous, current in zip(self.events, self.events[1:]):
            if current.timestamp < previous.timestamp:
                raise ValueError(f"Events for {self.repo} are not ordered by timestamp")
            if current.count < previous.count:
                raise ValueError(f"Star counts for {self.repo} decrease at {current.timestamp}")

        if self.events and self.events[-1].count > self.total_stars:
            raise ValueError(
                f"Last event count {self.events[-1].count} exceeds total stars {self.total_stars} for {self.repo}"
            )

    def __len__(self) -> int:
        return len(self.events)

    @property
    def first(self) -> StarEvent:
        return self.events[0]

    @property
    def last(self) -> StarEvent:
        return self.events[-1]


@dataclass(frozen=True)
class CacheEntry:
    """Cached series for one repository, replaced wholesale on every fetch."""
    repo: str
    series: StarSeries
    total_stars: int
    last_fetched_at: float


class RequestBudget:
    """
    Upper bound on upstream calls for one repository in one aggregation.

    The budget is decremented before each call and never exceeded: once it
    is spent, :meth:`consume` raises :class:`BudgetExhausted`.
    """

    def __init__(self, limit: int):
        if limit < 1:
            raise ValueError(f"Request budget must be at least 1, got {limit}")
        self.limit = limit
        self.used = 0

    @property
    def remaining(self) -> int:
        return self.limit - self.used

    def consume(self) -> None:
        """Account for one upstream call."""
        if self.used >= self.limit:
            raise BudgetExhausted(f"Request budget of {self.limit} calls exhausted")
        self.used += 1

    def __repr__(self) -> str:
        return f"RequestBudget(limit={self.limit}, used={self.used})"


@dataclass
class AggregateResult:
    """Per-repository outcome of one aggregation request."""

    series: Dict[str, StarSeries] = field(default_factory=dict)
    failures: Dict[str, Exception] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """True when every requested repository succeeded."""
        return not self.failures

    @property
    def partial(self) -> bool:
        """True when some, but not all, repositories failed."""
        return bool(self.series) and bool(self.failures)
