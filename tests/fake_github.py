"""In-memory stand-in for GitHubAPIClient used by fetcher and aggregator tests."""

import threading
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from star_history.api.github_api import StargazerPage
from star_history.config import GitHubConfig
from star_history.errors import RateLimited, RepositoryNotFound

BASE_TIME = datetime(2020, 1, 1, tzinfo=timezone.utc)


def star_times(count: int, start: datetime = BASE_TIME) -> List[datetime]:
    """One star per hour starting at ``start``."""
    return [start + timedelta(hours=i) for i in range(count)]


class FakeGitHubClient:
    """Serves stargazer pages from in-memory star lists and records every call."""

    def __init__(self, repos: Optional[Dict[str, List[datetime]]] = None, per_page: int = 100):
        self.config = GitHubConfig(per_page=per_page)
        self.repos = dict(repos or {})
        self.page_calls = []  # (repo, page, token)
        self.count_calls = []  # (repo, token)
        self.rate_limited_tokens = set()
        self.probe_errors: Dict[str, Exception] = {}
        self.page_errors: Dict[str, Exception] = {}
        self.blockers: Dict[str, threading.Event] = {}
        self._lock = threading.Lock()

    def add_stars(self, repo: str, count: int) -> None:
        stars = self.repos[repo]
        start = stars[-1] + timedelta(hours=1) if stars else BASE_TIME
        stars.extend(star_times(count, start))

    def reset_calls(self) -> None:
        self.page_calls = []
        self.count_calls = []

    def _check(self, repo: str, token: Optional[str]) -> None:
        if token in self.rate_limited_tokens:
            raise RateLimited("Rate limit exceeded", reset_time=0, token=token)
        if repo not in self.repos:
            raise RepositoryNotFound(f"Repository not found: {repo}", repo=repo)

    def get_star_count(self, repo: str, token: Optional[str] = None) -> int:
        with self._lock:
            self.count_calls.append((repo, token))
        if repo in self.probe_errors:
            raise self.probe_errors[repo]
        self._check(repo, token)
        return len(self.repos[repo])

    def get_stargazers_page(self, repo: str, page: int, token: Optional[str] = None,
                            per_page: Optional[int] = None) -> StargazerPage:
        with self._lock:
            self.page_calls.append((repo, page, token))
        if repo in self.blockers:
            self.blockers[repo].wait(5)
        if repo in self.page_errors:
            raise self.page_errors[repo]
        self._check(repo, token)

        per_page = per_page or self.config.per_page
        stars = self.repos[repo]
        last_page = max(1, -(-len(stars) // per_page))
        start = (page - 1) * per_page
        return StargazerPage(page=page, starred_at=stars[start:start + per_page], last_page=last_page)
