"""Tests for the GitHub API client."""

import unittest
from datetime import datetime, timezone
from unittest.mock import Mock

import requests

from star_history.api.github_api import (
    STAR_MEDIA_TYPE,
    GitHubAPIClient,
    parse_last_page,
    parse_starred_at,
)
from star_history.api.token_pool import TokenPool
from star_history.config import GitHubConfig
from star_history.errors import (
    GitHubAPIError,
    PaginationLimitExceeded,
    RateLimited,
    RepositoryNotFound,
    UpstreamError,
)


def make_response(status_code=200, data=None, headers=None, links=None):
    response = Mock()
    response.status_code = status_code
    response.headers = headers or {}
    response.links = links or {}
    response.url = "https://api.github.com/test"
    response.text = str(data)
    if isinstance(data, Exception):
        response.json.side_effect = data
    else:
        response.json.return_value = data
    return response


class TestGitHubAPIClient(unittest.TestCase):
    """Test cases for GitHubAPIClient class."""

    def setUp(self):
        self.pool = TokenPool(["token-aaaa-1111", "token-bbbb-2222"])
        self.client = GitHubAPIClient(GitHubConfig(tokens=self.pool.tokens), token_pool=self.pool)
        self.client.session.get = Mock()

    def test_get_star_count(self):
        self.client.session.get.return_value = make_response(data={"stargazers_count": 1234})

        count = self.client.get_star_count("owner/repo", token="token-aaaa-1111")

        self.assertEqual(count, 1234)
        args, kwargs = self.client.session.get.call_args
        self.assertEqual(args[0], "https://api.github.com/repos/owner/repo")
        self.assertEqual(kwargs["headers"]["Authorization"], "token token-aaaa-1111")
        self.assertEqual(kwargs["timeout"], 10.0)

    def test_get_star_count_without_token(self):
        self.client.session.get.return_value = make_response(data={"stargazers_count": 3})

        self.client.get_star_count("owner/repo")

        _, kwargs = self.client.session.get.call_args
        self.assertNotIn("Authorization", kwargs["headers"])

    def test_get_star_count_malformed(self):
        self.client.session.get.return_value = make_response(data={"name": "repo"})

        with self.assertRaises(UpstreamError):
            self.client.get_star_count("owner/repo")

    def test_get_stargazers_page(self):
        links = {
            "next": {"url": "https://api.github.com/repositories/1/stargazers?per_page=100&page=2"},
            "last": {"url": "https://api.github.com/repositories/1/stargazers?per_page=100&page=57"}
        }
        data = [
            {"starred_at": "2021-03-04T05:06:07Z", "user": {"login": "a"}},
            {"starred_at": "2021-03-05T00:00:00Z", "user": {"login": "b"}}
        ]
        self.client.session.get.return_value = make_response(data=data, links=links)

        page = self.client.get_stargazers_page("owner/repo", 1, token="token-aaaa-1111")

        self.assertEqual(page.page, 1)
        self.assertEqual(page.last_page, 57)
        self.assertEqual(page.starred_at[0], datetime(2021, 3, 4, 5, 6, 7, tzinfo=timezone.utc))
        _, kwargs = self.client.session.get.call_args
        self.assertEqual(kwargs["params"], {"per_page": 100, "page": 1})
        self.assertEqual(kwargs["headers"]["Accept"], STAR_MEDIA_TYPE)

    def test_get_stargazers_single_page(self):
        self.client.session.get.return_value = make_response(data=[])

        page = self.client.get_stargazers_page("owner/repo", 1)

        self.assertEqual(page.last_page, 1)
        self.assertEqual(page.starred_at, [])

    def test_get_stargazers_malformed_entry(self):
        self.client.session.get.return_value = make_response(data=[{"user": {"login": "a"}}])

        with self.assertRaises(UpstreamError):
            self.client.get_stargazers_page("owner/repo", 1)

    def test_get_stargazers_not_a_list(self):
        self.client.session.get.return_value = make_response(data={"message": "odd"})

        with self.assertRaises(UpstreamError):
            self.client.get_stargazers_page("owner/repo", 1)

    def test_not_found(self):
        self.client.session.get.return_value = make_response(404, {"message": "Not Found"})

        with self.assertRaises(RepositoryNotFound) as ctx:
            self.client.get_star_count("owner/missing")
        self.assertEqual(ctx.exception.repo, "owner/missing")
        self.assertEqual(ctx.exception.status_code, 404)

    def test_rate_limited(self):
        headers = {"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "1700000000"}
        self.client.session.get.return_value = make_response(
            403, {"message": "API rate limit exceeded"}, headers=headers
        )

        with self.assertRaises(RateLimited) as ctx:
            self.client.get_star_count("owner/repo", token="token-aaaa-1111")

        self.assertEqual(ctx.exception.reset_time, 1700000000.0)
        self.assertEqual(ctx.exception.token, "token-aaaa-1111")
        self.assertEqual(self.pool.rate_limits[0], 0)

    def test_secondary_rate_limit(self):
        self.client.session.get.return_value = make_response(
            429, {"message": "You have exceeded a secondary rate limit"}, headers={"Retry-After": "60"}
        )

        with self.assertRaises(RateLimited) as ctx:
            self.client.get_star_count("owner/repo")
        self.assertEqual(ctx.exception.status_code, 429)

    def test_forbidden_without_rate_limit(self):
        self.client.session.get.return_value = make_response(
            403, {"message": "Resource not accessible"}, headers={"X-RateLimit-Remaining": "4000"}
        )

        with self.assertRaises(GitHubAPIError) as ctx:
            self.client.get_star_count("owner/repo")
        self.assertNotIsInstance(ctx.exception, RateLimited)
        self.assertEqual(ctx.exception.status_code, 403)

    def test_page_beyond_pagination_cap(self):
        self.client.session.get.return_value = make_response(
            422, {"message": "In order to keep the API fast for everyone, pagination is limited for this resource."}
        )

        with self.assertRaises(PaginationLimitExceeded) as ctx:
            self.client.get_stargazers_page("owner/repo", 401, token="token-aaaa-1111")
        self.assertEqual(ctx.exception.status_code, 422)
        self.assertEqual(ctx.exception.page, 401)
        self.assertEqual(ctx.exception.repo, "owner/repo")
        self.assertIn("pagination is limited", str(ctx.exception))

    def test_unprocessable_star_count_stays_generic(self):
        self.client.session.get.return_value = make_response(422, {"message": "Validation Failed"})

        with self.assertRaises(GitHubAPIError) as ctx:
            self.client.get_star_count("owner/repo")
        self.assertNotIsInstance(ctx.exception, PaginationLimitExceeded)

    def test_server_error(self):
        self.client.session.get.return_value = make_response(502, ValueError("no json"))

        with self.assertRaises(UpstreamError):
            self.client.get_star_count("owner/repo")

    def test_timeout(self):
        self.client.session.get.side_effect = requests.exceptions.Timeout()

        with self.assertRaises(UpstreamError):
            self.client.get_star_count("owner/repo")

    def test_connection_error(self):
        self.client.session.get.side_effect = requests.exceptions.ConnectionError("refused")

        with self.assertRaises(UpstreamError):
            self.client.get_star_count("owner/repo")

    def test_malformed_json(self):
        self.client.session.get.return_value = make_response(200, ValueError("bad json"))

        with self.assertRaises(UpstreamError):
            self.client.get_star_count("owner/repo")

    def test_rate_limit_headers_recorded(self):
        headers = {"X-RateLimit-Remaining": "4321", "X-RateLimit-Reset": "1700000000"}
        self.client.session.get.return_value = make_response(data={"stargazers_count": 1}, headers=headers)

        self.client.get_star_count("owner/repo", token="token-bbbb-2222")

        self.assertEqual(self.pool.rate_limits[1], 4321)
        self.assertEqual(self.pool.reset_times[1], 1700000000.0)


class TestParsing(unittest.TestCase):

    def test_parse_last_page_without_link(self):
        self.assertEqual(parse_last_page({}, 3), 3)

    def test_parse_last_page_malformed(self):
        with self.assertRaises(UpstreamError):
            parse_last_page({"last": {"url": "https://api.github.com/stargazers?page=abc"}}, 1)

    def test_parse_starred_at(self):
        self.assertEqual(parse_starred_at("2020-01-01T00:00:00Z"),
                         datetime(2020, 1, 1, tzinfo=timezone.utc))


if __name__ == '__main__':
    unittest.main()
