"""
GitHub API Client Implementation.

This module provides the two upstream call shapes used for star history:
- a cheap probe of a repository's current stargazer count
- a single page of the stargazer listing with starring timestamps

Rate limit headers are reported back to the token pool, and every failure
is translated into the error taxonomy of :mod:`star_history.errors`.
The client never retries; retry policy belongs to the aggregator.
"""

import logging
import requests
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Any, Optional, Tuple
from urllib.parse import urlparse, parse_qs
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..config import GitHubConfig
from ..errors import (
    GitHubAPIError,
    PaginationLimitExceeded,
    RateLimited,
    RepositoryNotFound,
    UpstreamError,
)
from .token_pool import TokenPool, mask_token

logger = logging.getLogger(__name__)

# Constants for API endpoints
REPOS_ENDPOINT = "/repos"
STARGAZERS_ENDPOINT = "/stargazers"

# Accept header that makes GitHub include "starred_at" in stargazer listings
STAR_MEDIA_TYPE = "application/vnd.github.v3.star+json"
JSON_MEDIA_TYPE = "application/vnd.github.v3+json"


@dataclass
class StargazerPage:
    """One page of the stargazer listing."""
    page: int
    starred_at: List[datetime]  # Starring times in listing order
    last_page: int  # Total number of pages reported by the Link header


def parse_starred_at(value: str) -> datetime:
    """Parse a GitHub timestamp like ``2021-03-04T05:06:07Z``."""
    return datetime.fromisoformat(value.replace('Z', '+00:00'))


def parse_last_page(links: Dict[str, Dict[str, str]], current_page: int) -> int:
    """
    Determine the total page count from parsed Link header relations.

    Args:
        links: ``response.links`` of a paginated response
        current_page: Page that was requested

    Returns:
        Number of the last page; ``current_page`` when there is no "last"
        relation (single page, or the last page itself)
    """
    last = links.get('last')
    if not last or 'url' not in last:
        return current_page

    query = parse_qs(urlparse(last['url']).query)
    try:
        return int(query['page'][0])
    except (KeyError, IndexError, ValueError):
        raise UpstreamError(f"Malformed Link header: {last['url']}")


class GitHubAPIClient:
    """
    GitHub API client for stargazer data.

    Credentials are passed per call so that callers can rotate tokens.
    When a token pool is given, rate limit headers of every response are
    recorded on it.
    """

    def __init__(self, config: GitHubConfig, token_pool: Optional[TokenPool] = None,
                 pool_size: int = 10):
        """
        Initialize GitHub API client.

        Args:
            config: GitHub API configuration
            token_pool: Optional TokenPool receiving rate limit updates
            pool_size: Connection pool size, at least the number of workers
        """
        self.config = config
        self.token_pool = token_pool

        # Transport errors are surfaced immediately, never retried here
        self.session = requests.Session()
        adapter = HTTPAdapter(
            pool_connections=pool_size,
            pool_maxsize=pool_size,
            max_retries=Retry(total=0, raise_on_status=False)
        )
        self.session.mount('https://', adapter)
        self.session.mount('http://', adapter)
        self.session.headers.update({
            'Accept': JSON_MEDIA_TYPE,
            'User-Agent': 'star-history-service'
        })

        logger.info(f"GitHub API client initialized for {config.api_url} "
                    f"({'token pool' if token_pool else 'per-call tokens'})")

    def _make_request(self, endpoint: str, token: Optional[str] = None,
                      params: Optional[Dict[str, Any]] = None,
                      accept: Optional[str] = None,
                      repo: Optional[str] = None) -> Tuple[Any, requests.Response]:
        """
        Make a request to the GitHub API with proper error handling.

        Args:
            endpoint: API endpoint (relative to base URL)
            token: Token to authenticate with, or None for anonymous access
            params: Optional query parameters
            accept: Optional Accept header overriding the session default
            repo: Repository the request is about, used in error messages

        Returns:
            Tuple of decoded JSON body and the raw response

        Raises:
            RateLimited: When the token's rate limit is exhausted
            RepositoryNotFound: When the repository does not exist
            UpstreamError: For network errors, timeouts, 5xx responses and malformed payloads
            GitHubAPIError: For other API errors
        """
        url = f"{self.config.api_url}{endpoint}"

        headers = {}
        if token:
            headers['Authorization'] = f'token {token}'
        if accept:
            headers['Accept'] = accept

        timeout = self.config.request_timeout

        try:
            logger.debug(f"Making request to {url} params={params}")
            response = self.session.get(url, params=params, headers=headers, timeout=timeout)
        except requests.exceptions.Timeout:
            logger.error(f"Request to {url} timed out after {timeout} seconds")
            raise UpstreamError(f"Request timed out after {timeout} seconds")
        except requests.exceptions.RequestException as e:
            logger.error(f"Connection error for {url}: {e}")
            raise UpstreamError(f"Connection error: {e}")

        self._record_rate_limit(token, response)

        if response.status_code >= 400:
            self._raise_for_status(response, token, repo)

        try:
            return response.json(), response
        except ValueError as e:
            raise UpstreamError(f"Malformed JSON from {url}: {e}", status_code=502)

    def _record_rate_limit(self, token: Optional[str], response: requests.Response) -> None:
        """Report rate limit headers of a response to the token pool."""
        if not token or not self.token_pool:
            return

        remaining = response.headers.get('X-RateLimit-Remaining')
        reset = response.headers.get('X-RateLimit-Reset')
        if remaining is None or reset is None:
            return

        try:
            self.token_pool.update_token_usage(token, int(remaining), float(reset))
        except ValueError:
            logger.debug(f"Ignoring unparsable rate limit headers: {remaining!r}, {reset!r}")

    def _raise_for_status(self, response: requests.Response, token: Optional[str],
                          repo: Optional[str]) -> None:
        """Translate an error response into an exception."""
        status = response.status_code
        try:
            data = response.json()
        except ValueError:
            data = None
        message = (data.get('message') or '') if isinstance(data, dict) else response.text[:200]

        if status in (403, 429) and self._is_rate_limited(response, message):
            reset = response.headers.get('X-RateLimit-Reset')
            reset_time = float(reset) if reset and reset.isdigit() else None
            who = mask_token(token) if token else 'anonymous access'
            logger.warning(f"Rate limit exceeded for {who}")
            raise RateLimited(f"Rate limit exceeded: {message}", reset_time=reset_time,
                              status_code=status, token=token, response_data=data)

        if status == 404:
            raise RepositoryNotFound(f"Repository not found: {repo or response.url}",
                                     repo=repo or '', response_data=data)

        if status >= 500:
            raise UpstreamError(f"GitHub API error: {status} - {message}",
                                status_code=502, response_data=data)

        raise GitHubAPIError(f"GitHub API error: {status} - {message}",
                             status_code=status, response_data=data)

    @staticmethod
    def _is_rate_limited(response: requests.Response, message: str) -> bool:
        if response.headers.get('X-RateLimit-Remaining') == '0':
            return True
        if 'Retry-After' in response.headers:
            return True
        return 'rate limit' in message.lower()

    def get_star_count(self, repo: str, token: Optional[str] = None) -> int:
        """
        Get the current stargazer count of a repository.

        Args:
            repo: Repository in ``owner/name`` form
            token: Token to authenticate with

        Returns:
            Current number of stars
        """
        data, _ = self._make_request(f"{REPOS_ENDPOINT}/{repo}", token=token, repo=repo)

        count = data.get('stargazers_count') if isinstance(data, dict) else None
        if not isinstance(count, int):
            raise UpstreamError(f"Repository payload for {repo} has no stargazers_count")
        return count

    def get_stargazers_page(self, repo: str, page: int, token: Optional[str] = None,
                            per_page: Optional[int] = None) -> StargazerPage:
        """
        Get one page of a repository's stargazers with starring times.

        Args:
            repo: Repository in ``owner/name`` form
            page: 1-based page number
            token: Token to authenticate with
            per_page: Page size, defaults to the configured page size

        Returns:
            StargazerPage with the page's starring times and the total page count

        Raises:
            PaginationLimitExceeded: When GitHub refuses the page with 422, which
                happens for pages beyond 400 of very large repositories
        """
        params = {
            'per_page': per_page or self.config.per_page,
            'page': page
        }
        try:
            data, response = self._make_request(
                f"{REPOS_ENDPOINT}/{repo}{STARGAZERS_ENDPOINT}",
                token=token,
                params=params,
                accept=STAR_MEDIA_TYPE,
                repo=repo
            )
        except GitHubAPIError as e:
            if e.status_code != 422:
                raise
            raise PaginationLimitExceeded(
                f"GitHub refused stargazer page {page} of {repo}: {e.message}",
                repo=repo, page=page, response_data=e.response_data
            )

        if not isinstance(data, list):
            raise UpstreamError(f"Stargazer listing for {repo} page {page} is not a list")

        try:
            starred_at = [parse_starred_at(item['starred_at']) for item in data]
        except (TypeError, KeyError, ValueError) as e:
            raise UpstreamError(f"Malformed stargazer entry for {repo} page {page}: {e}")

        return StargazerPage(
            page=page,
            starred_at=starred_at,
            last_page=parse_last_page(response.links, page)
        )
