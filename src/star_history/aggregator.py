"""
Star history aggregation.

The aggregator serves one chart request: for every requested repository it
reuses the cached series when the repository's star count is unchanged,
and otherwise fetches a new series within the request budget. Repositories
are processed in parallel and independently, so one failing repository
never prevents the others from being returned.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import replace
from typing import Iterable, List, Optional

from .api.cache import StarDataCache
from .api.token_pool import TokenPool
from .config import AggregatorConfig
from .errors import (
    DeadlineExceeded,
    InvalidRepositoryList,
    ProbeFailed,
    RateLimited,
    StarHistoryError,
)
from .history.fetcher import HistoryFetcher
from .models import AggregateResult, RequestBudget, StarSeries, normalize_repo_key

logger = logging.getLogger(__name__)


def unique_repos(repos: Iterable[str]) -> List[str]:
    """Drop case-insensitive duplicates, keeping the first spelling and the order."""
    seen = set()
    result = []
    for repo in repos:
        key = normalize_repo_key(repo)
        if key and key not in seen:
            seen.add(key)
            result.append(repo.strip())
    return result


class StarHistoryAggregator:
    """
    Orchestrates cache, token pool and fetcher for a list of repositories.

    The cache and token pool are shared between requests; both are safe for
    concurrent use. Without a token pool all calls are made anonymously.
    """

    def __init__(self, fetcher: HistoryFetcher, cache: StarDataCache,
                 token_pool: Optional[TokenPool] = None,
                 config: Optional[AggregatorConfig] = None):
        """
        Initialize aggregator.

        Args:
            fetcher: History fetcher, whose client also serves count probes
            cache: Star data cache shared between requests
            token_pool: Optional token pool shared between requests
            config: Aggregation limits, defaults to AggregatorConfig()
        """
        self.fetcher = fetcher
        self.client = fetcher.client
        self.cache = cache
        self.token_pool = token_pool
        self.config = config or AggregatorConfig()

    def aggregate(self, repos: Iterable[str], budget_per_repo: Optional[int] = None,
                  timeout: Optional[float] = None) -> AggregateResult:
        """
        Build star series for a set of repositories.

        Args:
            repos: Repositories in ``owner/name`` form
            budget_per_repo: Upstream calls allowed per repository fetch,
                defaults to the configured request budget
            timeout: Deadline for the whole aggregation in seconds,
                defaults to the configured timeout (0 for none)

        Returns:
            AggregateResult with a series for every successful repository
            and the error for every failed one

        Raises:
            InvalidRepositoryList: If no repository was requested
            StarHistoryError: The first failure in request order, if every
                repository failed
        """
        repos = unique_repos(repos)
        if not repos:
            raise InvalidRepositoryList("At least one repository is required")

        budget_limit = self.config.request_budget if budget_per_repo is None else budget_per_repo
        if budget_limit < 2:
            raise ValueError(f"Request budget must be at least 2, got {budget_limit}")

        if timeout is None:
            timeout = self.config.timeout

        workers = min(len(repos), self.config.max_workers)
        logger.info(f"Aggregating star history for {len(repos)} repositories "
                    f"(budget {budget_limit}, {workers} workers)")

        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="star-history")
        try:
            future_to_repo = {
                executor.submit(self._process_repo, repo, budget_limit): repo
                for repo in repos
            }
            _, not_done = wait(future_to_repo, timeout=timeout or None)
        finally:
            # Fetches still running after the deadline are abandoned
            executor.shutdown(wait=False, cancel_futures=True)

        result = AggregateResult()
        repo_to_future = {repo: future for future, repo in future_to_repo.items()}
        for repo in repos:
            future = repo_to_future[repo]
            if future in not_done:
                future.cancel()
                logger.error(f"Deadline of {timeout}s exceeded for {repo}")
                result.failures[repo] = DeadlineExceeded(
                    f"Star history for {repo} was not fetched within {timeout}s", repo=repo
                )
                continue

            error = future.exception()
            if error is not None:
                logger.error(f"Failed to get star history for {repo}: {error}")
                result.failures[repo] = error
            else:
                result.series[repo] = future.result()

        if not result.series:
            first_error = result.failures[repos[0]]
            logger.error(f"All {len(repos)} repositories failed")
            raise first_error

        if result.failures:
            logger.warning(f"Partial result: {len(result.failures)} of {len(repos)} repositories failed: "
                           f"{', '.join(result.failures)}")
        return result

    def _next_token(self) -> Optional[str]:
        return self.token_pool.next_token() if self.token_pool else None

    def _process_repo(self, repo: str, budget_limit: int) -> StarSeries:
        """Return the series of one repository, from cache or upstream."""
        token = self._next_token()
        exhausted: List[Optional[str]] = []
        probed_total = None

        entry = self.cache.get(repo)
        if entry is not None:
            try:
                probed_total = self.client.get_star_count(repo, token=token)
            except RateLimited as e:
                logger.warning(str(ProbeFailed(repo, e)))
                # The fetch must not start on the token the count check just exhausted
                exhausted.append(token)
                token = self.token_pool.next_token_excluding(exhausted) if self.token_pool else None
                if token is None:
                    raise
            except StarHistoryError as e:
                logger.warning(str(ProbeFailed(repo, e)))
            else:
                if probed_total == entry.total_stars:
                    logger.info(f"Cache hit for {repo} ({probed_total} stars)")
                    return self._as_requested(entry.series, repo)
                logger.info(f"Cached series for {repo} is stale "
                            f"({entry.total_stars} -> {probed_total} stars)")

        series = self._fetch_with_retry(repo, token, budget_limit, exhausted)

        # The next freshness check compares against the probed count
        total = series.total_stars
        if probed_total is not None and probed_total > total:
            total = probed_total
        self.cache.put(repo, series, total)
        return series

    @staticmethod
    def _as_requested(series: StarSeries, repo: str) -> StarSeries:
        """Label a cached series with the spelling used in this request."""
        if series.repo == repo:
            return series
        return replace(series, repo=repo)

    def _fetch_with_retry(self, repo: str, token: Optional[str], budget_limit: int,
                          exhausted: Optional[List[Optional[str]]] = None) -> StarSeries:
        """
        Fetch a series, retrying with other tokens after RateLimited.

        Tokens in ``exhausted`` are already known to be rate limited and are
        never handed to a retry.
        """
        tried = list(exhausted or []) + [token]
        retries = 0

        while True:
            try:
                return self.fetcher.fetch(repo, token, RequestBudget(budget_limit))
            except RateLimited:
                if retries >= self.config.rate_limit_retries or self.token_pool is None:
                    raise
                token = self.token_pool.next_token_excluding(tried)
                if token is None:
                    raise
                retries += 1
                tried.append(token)
                logger.warning(f"Rate limited while fetching {repo}, retrying with another token "
                               f"({retries}/{self.config.rate_limit_retries})")
