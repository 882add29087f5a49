"""Test configuration and fixtures."""

import os
import pytest

from tests.fake_github import FakeGitHubClient, star_times


@pytest.fixture(autouse=True)
def setup_test_env():
    """Isolate tests from tokens and limits set in the developer's environment."""
    # Save original environment
    original_env = dict(os.environ)

    for name in list(os.environ):
        if name.startswith(('GITHUB_', 'STAR_HISTORY_', 'STAR_CACHE_')):
            del os.environ[name]

    os.environ.update({
        'GITHUB_API_URL': 'https://api.github.com',
        'GITHUB_REQUEST_TIMEOUT': '5'
    })

    yield

    # Restore original environment
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def fake_client():
    """Fake GitHub client with repositories of different sizes."""
    return FakeGitHubClient({
        "small/repo": star_times(50),
        "medium/repo": star_times(950),
        "huge/repo": star_times(100000),
        "empty/repo": []
    })
