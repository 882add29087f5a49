"""
API package for star history acquisition.

This package provides the interfaces to the GitHub API:

1. GitHub API client for star counts and stargazer pages
2. Token pool rotating multiple API tokens
3. In-memory cache of fetched star series
"""

from .token_pool import TokenPool
from .cache import StarDataCache
from .github_api import GitHubAPIClient, StargazerPage

__all__ = [
    'TokenPool',
    'StarDataCache',
    'GitHubAPIClient',
    'StargazerPage'
]
