"""
Star history acquisition for GitHub repositories.

Builds star growth series for a list of repositories with a bounded number
of GitHub API requests, rotating API tokens and caching series between
requests.
"""

from .errors import (
    StarHistoryError,
    NoTokensConfigured,
    InvalidRepositoryList,
    GitHubAPIError,
    RepositoryNotFound,
    RateLimited,
    UpstreamError,
    ProbeFailed,
    BudgetExhausted,
    DeadlineExceeded,
    PaginationLimitExceeded
)
from .models import StarEvent, StarSeries, CacheEntry, RequestBudget, AggregateResult
from .config import GitHubConfig, CacheConfig, AggregatorConfig, ServiceConfig, load_config
from .api import TokenPool, StarDataCache, GitHubAPIClient
from .history import HistoryFetcher, sample_pages
from .aggregator import StarHistoryAggregator
from .chart import ChartMode, parse_repo_list, to_chart_data

__version__ = "0.1.0"

__all__ = [
    'StarHistoryError',
    'NoTokensConfigured',
    'InvalidRepositoryList',
    'GitHubAPIError',
    'RepositoryNotFound',
    'RateLimited',
    'UpstreamError',
    'ProbeFailed',
    'BudgetExhausted',
    'DeadlineExceeded',
    'PaginationLimitExceeded',
    'StarEvent',
    'StarSeries',
    'CacheEntry',
    'RequestBudget',
    'AggregateResult',
    'GitHubConfig',
    'CacheConfig',
    'AggregatorConfig',
    'ServiceConfig',
    'load_config',
    'TokenPool',
    'StarDataCache',
    'GitHubAPIClient',
    'HistoryFetcher',
    'sample_pages',
    'StarHistoryAggregator',
    'ChartMode',
    'parse_repo_list',
    'to_chart_data'
]
