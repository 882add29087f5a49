"""
Error classes for star history acquisition.

This module defines the error taxonomy shared by the token pool, the
GitHub client, the history fetcher and the aggregator. Every error carries
an HTTP-style status code so the front door can map outcomes directly.
"""

import logging
from typing import Optional

logger = logging.getLogger(__name__)


class StarHistoryError(Exception):
    """Base class for all star history errors."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        """Initialize error."""
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NoTokensConfigured(StarHistoryError):
    """Token pool was created without any credentials."""


class InvalidRepositoryList(StarHistoryError):
    """Repository list from the caller is empty or malformed."""

    status_code = 400


class BudgetExhausted(StarHistoryError):
    """An upstream call was attempted after the request budget ran out."""


class DeadlineExceeded(StarHistoryError):
    """Aggregation deadline passed before the repository was fetched."""

    status_code = 504

    def __init__(self, message: str, repo: str):
        super().__init__(message)
        self.repo = repo


class GitHubAPIError(StarHistoryError):
    """Error in GitHub API requests."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 response_data: Optional[dict] = None):
        """
        Initialize GitHub API error.

        Args:
            message: Error message
            status_code: HTTP status code
            response_data: Optional API response data for debugging
        """
        super().__init__(message, status_code)
        self.response_data = response_data


class UpstreamError(GitHubAPIError):
    """Network failure, timeout, 5xx response or malformed payload."""

    status_code = 502


class RepositoryNotFound(GitHubAPIError):
    """Repository does not exist or is not visible to the token used."""

    status_code = 404

    def __init__(self, message: str, repo: str,
                 response_data: Optional[dict] = None):
        """
        Initialize not found error.

        Args:
            message: Error message
            repo: Repository key that was requested
            response_data: Optional API response data for debugging
        """
        super().__init__(message, response_data=response_data)
        self.repo = repo


class RateLimited(GitHubAPIError):
    """GitHub API rate limit exhausted for the token used."""

    status_code = 403

    def __init__(self, message: str, reset_time: Optional[float] = None,
                 status_code: int = 403, token: Optional[str] = None,
                 response_data: Optional[dict] = None):
        """
        Initialize rate limit error.

        Args:
            message: Error message
            reset_time: Unix timestamp when the rate limit will be reset
            status_code: HTTP status code (403 or 429)
            token: Token that hit the limit, so callers can avoid reusing it
            response_data: Optional API response data for debugging
        """
        super().__init__(message, status_code, response_data)
        self.reset_time = reset_time
        self.token = token


class ProbeFailed(StarHistoryError):
    """Current star count could not be probed; treated as a cache miss."""

    def __init__(self, repo: str, cause: Exception):
        super().__init__(f"Star count probe failed for {repo}: {cause}")
        self.repo = repo
        self.cause = cause


class PaginationLimitExceeded(GitHubAPIError):
    """GitHub refused a stargazer page beyond its pagination cap (page 400)."""

    status_code = 422

    def __init__(self, message: str, repo: str, page: int,
                 response_data: Optional[dict] = None):
        super().__init__(message, response_data=response_data)
        self.repo = repo
        self.page = page
