"""Tests for configuration loading."""

import os
import unittest
from unittest.mock import patch

from star_history.config import (
    DEFAULT_REQUEST_BUDGET,
    AggregatorConfig,
    CacheConfig,
    GitHubConfig,
    ServiceConfig,
    load_config,
)


class TestConfig(unittest.TestCase):

    @patch.dict(os.environ, {}, clear=True)
    def test_defaults_without_tokens(self):
        config = ServiceConfig.from_env()

        self.assertEqual(config.github.tokens, [])
        self.assertEqual(config.github.per_page, 100)
        self.assertEqual(config.aggregator.request_budget, DEFAULT_REQUEST_BUDGET)
        self.assertEqual(config.aggregator.max_workers, 10)
        self.assertEqual(config.aggregator.rate_limit_retries, 1)
        self.assertEqual(config.cache.max_size, 0)

    @patch.dict(os.environ, {
        'GITHUB_TOKENS': 'tok-a, tok-b,,tok-a',
        'GITHUB_TOKEN': 'tok-c',
        'STAR_HISTORY_REQUEST_BUDGET': '20',
        'STAR_HISTORY_MAX_WORKERS': '4',
        'STAR_HISTORY_TIMEOUT': '30',
        'STAR_CACHE_MAX_SIZE': '500'
    }, clear=True)
    def test_from_env(self):
        config = load_config(dotenv=False)

        self.assertEqual(config.github.tokens, ['tok-a', 'tok-b', 'tok-c'])
        self.assertEqual(config.aggregator.request_budget, 20)
        self.assertEqual(config.aggregator.max_workers, 4)
        self.assertEqual(config.aggregator.timeout, 30.0)
        self.assertEqual(config.cache.max_size, 500)

    @patch.dict(os.environ, {'STAR_HISTORY_REQUEST_BUDGET': '1'}, clear=True)
    def test_invalid_budget_from_env(self):
        with self.assertRaises(ValueError):
            load_config(dotenv=False)

    def test_validation(self):
        with self.assertRaises(ValueError):
            GitHubConfig(per_page=101)
        with self.assertRaises(ValueError):
            GitHubConfig(request_timeout=0)
        with self.assertRaises(ValueError):
            CacheConfig(max_size=-1)
        with self.assertRaises(ValueError):
            AggregatorConfig(max_workers=0)
        with self.assertRaises(ValueError):
            AggregatorConfig(rate_limit_retries=-1)


if __name__ == '__main__':
    unittest.main()
