"""
Star history fetcher.

Reconstructs the star growth curve of a single repository from the
paginated stargazer listing. Small repositories are read completely;
repositories with more pages than the request budget allows are sampled
at evenly spaced pages, so no repository costs more than the budget.

Each fetched page contributes one point: the time of the last star on the
page and the number of stars up to and including that page.
"""

import logging
from datetime import datetime
from typing import List, Optional

from ..api.github_api import GitHubAPIClient, StargazerPage
from ..errors import UpstreamError
from ..models import RequestBudget, StarEvent, StarSeries
from .sampling import sample_pages

logger = logging.getLogger(__name__)


class HistoryFetcher:
    """Fetches star series for repositories within a request budget."""

    def __init__(self, client: GitHubAPIClient, per_page: Optional[int] = None):
        """
        Initialize fetcher.

        Args:
            client: GitHub API client used for all upstream calls
            per_page: Page size, defaults to the client's configured page size
        """
        self.client = client
        self.per_page = per_page or client.config.per_page

    def _get_page(self, repo: str, page: int, token: Optional[str],
                  budget: RequestBudget) -> StargazerPage:
        budget.consume()
        return self.client.get_stargazers_page(repo, page, token=token, per_page=self.per_page)

    def fetch(self, repo: str, token: Optional[str], budget: RequestBudget) -> StarSeries:
        """
        Fetch the star series of a repository.

        Args:
            repo: Repository in ``owner/name`` form
            token: Token to authenticate with, or None for anonymous access
            budget: Upstream calls this fetch may spend

        Returns:
            StarSeries with one point per fetched page

        Raises:
            RepositoryNotFound: If the repository does not exist
            RateLimited: If the token's rate limit is exhausted
            UpstreamError: On network errors, 5xx responses or malformed data
            PaginationLimitExceeded: If a sampled page lies beyond GitHub's
                pagination cap; on the live API this affects repositories with
                more than 400 pages (40000 stars at 100 per page)
        """
        capacity = budget.remaining
        first = self._get_page(repo, 1, token, budget)
        total_pages = first.last_page

        if not first.starred_at:
            if total_pages > 1:
                raise UpstreamError(f"First stargazer page of {repo} is empty but {total_pages} pages are reported")
            logger.info(f"Repository {repo} has no stars")
            return StarSeries(repo=repo, events=(), total_stars=0)

        pages = sample_pages(total_pages, capacity)
        sampled = len(pages) < total_pages
        if sampled:
            logger.info(f"Sampling {len(pages)} of {total_pages} stargazer pages for {repo}")
        else:
            logger.debug(f"Fetching all {total_pages} stargazer pages for {repo}")

        fetched = [first]
        for page in pages[1:]:
            fetched.append(self._get_page(repo, page, token, budget))

        events = self._build_events(repo, fetched)
        total_stars = events[-1].count if events else 0

        logger.info(f"Fetched {repo}: {total_stars} stars, {len(events)} points, "
                    f"{budget.used} requests")
        return StarSeries(repo=repo, events=events, total_stars=total_stars, sampled=sampled)

    def _build_events(self, repo: str, pages: List[StargazerPage]) -> List[StarEvent]:
        events = []
        latest: Optional[datetime] = None

        for page in sorted(pages, key=lambda p: p.page):
            if not page.starred_at:
                # Stars removed since the first page was read
                logger.debug(f"Stargazer page {page.page} of {repo} is empty")
                continue

            timestamp = max(page.starred_at)
            # Keep timestamps monotonic even if the listing order shifted between calls
            if latest is not None and timestamp < latest:
                timestamp = latest
            latest = timestamp

            count = (page.page - 1) * self.per_page + len(page.starred_at)
            events.append(StarEvent(timestamp=timestamp, count=count))

        return events
