"""
Token pool for spreading GitHub API calls over multiple tokens.

This module implements a round-robin token pool. Rotation does not depend
on whether a call with a token succeeded: the pool only spreads load evenly
so no single token is drained first. Rate limit information reported by
GitHub is recorded per token for statistics, on a best-effort basis.
"""

import itertools
import time
import logging
from typing import List, Dict, Any, Optional

from ..errors import NoTokensConfigured

# Configure logger
logger = logging.getLogger(__name__)


def mask_token(token: str) -> str:
    """Return a printable form of a token that does not leak the secret."""
    if len(token) <= 8:
        return "****"
    return f"{token[:4]}...{token[-4:]}"


class TokenPool:
    """
    Pool of GitHub API tokens handed out in round-robin order.

    The cursor is an ``itertools.count`` instance; ``next()`` on it is a
    single atomic step under the GIL, so concurrent callers never receive
    the same position and no lock is taken on the hot path.

    Attributes:
        tokens: List of API tokens
        rate_limits: Last reported remaining requests per token (None if unknown)
        reset_times: Last reported reset time per token (None if unknown)
        last_used: Time each token was last handed out (None if never)
        usage_count: Number of times each token was handed out
    """

    def __init__(self, tokens: List[str]):
        """
        Initialize token pool.

        Args:
            tokens: List of GitHub API tokens

        Raises:
            NoTokensConfigured: If no tokens are provided
        """
        if not tokens:
            raise NoTokensConfigured("Token pool requires at least one token")

        self.tokens = list(tokens)
        self._cursor = itertools.count()
        self.rate_limits: List[Optional[int]] = [None for _ in self.tokens]
        self.reset_times: List[Optional[float]] = [None for _ in self.tokens]
        self.last_used: List[Optional[float]] = [None for _ in self.tokens]
        self.usage_count = [0 for _ in self.tokens]

        logger.info(f"Token pool initialized with {len(self.tokens)} tokens")

    def __len__(self) -> int:
        return len(self.tokens)

    def next_token(self) -> str:
        """
        Get the next token in round-robin order.

        Returns:
            Token string
        """
        idx = next(self._cursor) % len(self.tokens)
        # Bookkeeping below is informational; lost updates are acceptable
        self.last_used[idx] = time.time()
        self.usage_count[idx] += 1
        return self.tokens[idx]

    def next_token_excluding(self, excluded: List[str]) -> Optional[str]:
        """
        Get the next token that is not in ``excluded``.

        Used to retry a rate limited call with a different credential.
        Returns None when every token in the pool is excluded.
        """
        for _ in range(len(self.tokens)):
            token = self.next_token()
            if token not in excluded:
                return token
        return None

    def update_token_usage(self, token: str, remaining: int, reset_time: float) -> None:
        """
        Update rate limit information for a token.

        This method is called after an API request with the rate limit
        headers returned by the GitHub server.

        Args:
            token: The token string that was used
            remaining: Remaining requests
            reset_time: Unix timestamp for reset time
        """
        try:
            token_idx = self.tokens.index(token)
        except ValueError:
            logger.error("Token not found in pool")
            return

        old_remaining = self.rate_limits[token_idx]
        self.rate_limits[token_idx] = remaining
        self.reset_times[token_idx] = reset_time

        if remaining <= 100 and (old_remaining is None or old_remaining > 100):
            logger.warning(f"Token {token_idx}: only {remaining} requests remaining, reset at {time.ctime(reset_time)}")
        else:
            logger.debug(f"Token {token_idx}: {remaining} requests remaining")

    def get_stats(self) -> List[Dict[str, Any]]:
        """
        Get statistics for all tokens.

        Returns:
            List of dictionaries with statistics for each token
        """
        current_time = time.time()
        stats = []

        for i, token in enumerate(self.tokens):
            remaining = self.rate_limits[i]
            reset_time = self.reset_times[i]
            stats.append({
                "index": i,
                "token": mask_token(token),
                "rate_limit_remaining": remaining,
                "reset_time": reset_time,
                "reset_in_seconds": max(0.0, reset_time - current_time) if reset_time else None,
                "last_used": self.last_used[i],
                "usage_count": self.usage_count[i],
                "status": "exhausted" if remaining == 0 else "active"
            })

        return stats

    @classmethod
    def from_config(cls, github_config) -> Optional['TokenPool']:
        """
        Create TokenPool from GitHub configuration.

        Args:
            github_config: GitHubConfig object with the configured tokens

        Returns:
            TokenPool instance, or None when no token is configured and
            requests have to be made unauthenticated
        """
        try:
            return cls(github_config.tokens)
        except NoTokensConfigured:
            logger.warning("No GitHub tokens configured, falling back to unauthenticated "
                           "requests with a lower rate limit")
            return None
