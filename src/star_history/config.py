"""
Central configuration for the star history service.

This module provides configuration classes for all components:
- GitHub API access and token list
- Star data cache bounds
- Aggregation limits (request budget, workers, retries, deadline)

Values are read from environment variables; a ``.env`` file in the working
directory is loaded first if present.
"""

import os
import logging
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Shared with client-side renderers so both reconstruct comparable curves
DEFAULT_REQUEST_BUDGET = 15
DEFAULT_PER_PAGE = 100
DEFAULT_MAX_WORKERS = 10


def _split_tokens(value: str) -> List[str]:
    """Split a comma-separated token list, dropping blanks."""
    return [t.strip() for t in value.split(',') if t.strip()]


@dataclass
class GitHubConfig:
    """
    GitHub API configuration.

    An empty token list is valid: requests are then made unauthenticated
    with GitHub's lower anonymous rate limit.
    """

    tokens: List[str] = field(default_factory=list)
    api_url: str = "https://api.github.com"
    per_page: int = DEFAULT_PER_PAGE  # Stargazers per page (GitHub maximum is 100)
    request_timeout: float = 10.0  # Per-call timeout in seconds

    def __post_init__(self):
        """Validate configuration after initialization."""
        if not 1 <= self.per_page <= 100:
            raise ValueError(f"per_page must be between 1 and 100, got {self.per_page}")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")
        # Remove duplicates, keep order
        self.tokens = list(dict.fromkeys(self.tokens))

    @classmethod
    def from_env(cls) -> 'GitHubConfig':
        """Create configuration from environment variables."""
        tokens = _split_tokens(os.getenv('GITHUB_TOKENS', ''))

        # Single token variables are added to the pool as well
        for name in ('GITHUB_TOKEN', 'GITHUB_API_TOKEN'):
            token = os.getenv(name, '').strip()
            if token:
                tokens.append(token)

        return cls(
            tokens=tokens,
            api_url=os.getenv('GITHUB_API_URL', 'https://api.github.com'),
            per_page=int(os.getenv('GITHUB_PER_PAGE', str(DEFAULT_PER_PAGE))),
            request_timeout=float(os.getenv('GITHUB_REQUEST_TIMEOUT', '10.0'))
        )


@dataclass
class CacheConfig:
    """
    Star data cache bounds.

    Both limits default to 0 (unbounded); set them for long-running
    processes that see many distinct repositories.
    """

    max_size: int = 0  # Maximum number of repositories kept
    max_age: int = 0  # Maximum age of cache entries in seconds

    def __post_init__(self):
        if self.max_size < 0 or self.max_age < 0:
            raise ValueError("Cache bounds must not be negative")

    @classmethod
    def from_env(cls) -> 'CacheConfig':
        """Create cache configuration from environment variables."""
        return cls(
            max_size=int(os.getenv('STAR_CACHE_MAX_SIZE', '0')),
            max_age=int(os.getenv('STAR_CACHE_MAX_AGE', '0'))
        )


@dataclass
class AggregatorConfig:
    """Limits applied to one aggregation request."""

    request_budget: int = DEFAULT_REQUEST_BUDGET  # Upstream calls per repository
    max_workers: int = DEFAULT_MAX_WORKERS  # Repositories fetched in parallel
    rate_limit_retries: int = 1  # Retries with a different token after RateLimited
    timeout: float = 0  # Deadline for a whole aggregation in seconds, 0 for none

    def __post_init__(self):
        if self.request_budget < 2:
            raise ValueError(f"request_budget must be at least 2, got {self.request_budget}")
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if self.rate_limit_retries < 0:
            raise ValueError("rate_limit_retries must not be negative")
        if self.timeout < 0:
            raise ValueError("timeout must not be negative")

    @classmethod
    def from_env(cls) -> 'AggregatorConfig':
        """Create aggregation configuration from environment variables."""
        return cls(
            request_budget=int(os.getenv('STAR_HISTORY_REQUEST_BUDGET', str(DEFAULT_REQUEST_BUDGET))),
            max_workers=int(os.getenv('STAR_HISTORY_MAX_WORKERS', str(DEFAULT_MAX_WORKERS))),
            rate_limit_retries=int(os.getenv('STAR_HISTORY_RATE_LIMIT_RETRIES', '1')),
            timeout=float(os.getenv('STAR_HISTORY_TIMEOUT', '0'))
        )


@dataclass
class ServiceConfig:
    """Complete configuration of the star history service."""

    github: GitHubConfig = field(default_factory=GitHubConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    aggregator: AggregatorConfig = field(default_factory=AggregatorConfig)

    @classmethod
    def from_env(cls) -> 'ServiceConfig':
        """Create configuration from environment variables."""
        return cls(
            github=GitHubConfig.from_env(),
            cache=CacheConfig.from_env(),
            aggregator=AggregatorConfig.from_env()
        )


def load_config(dotenv: bool = True) -> ServiceConfig:
    """
    Central function for loading the configuration.

    Args:
        dotenv: Load a ``.env`` file into the environment first

    Returns:
        ServiceConfig: Fully initialized configuration
    """
    if dotenv:
        load_dotenv()

    try:
        config = ServiceConfig.from_env()
    except ValueError as e:
        logger.error(f"Error loading configuration: {e}")
        raise

    logger.info(f"Configuration loaded: {len(config.github.tokens)} token(s), "
                f"request budget {config.aggregator.request_budget}")
    return config
