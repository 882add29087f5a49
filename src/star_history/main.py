"""Command line entry point for star history aggregation.

Fetches the star history of one or more repositories and prints a summary,
optionally exporting the chart points as CSV.
"""

import argparse
import logging
import sys
from dataclasses import replace
from typing import List, Optional

from .aggregator import StarHistoryAggregator
from .api.cache import StarDataCache
from .api.github_api import GitHubAPIClient
from .api.token_pool import TokenPool
from .chart import ChartMode, normalize_chart_mode, parse_repo_list, series_to_frame, to_chart_data
from .config import ServiceConfig, load_config
from .errors import StarHistoryError
from .history.fetcher import HistoryFetcher

logger = logging.getLogger(__name__)


def build_aggregator(config: ServiceConfig) -> StarHistoryAggregator:
    """Wire token pool, client, fetcher and cache into an aggregator."""
    token_pool = TokenPool.from_config(config.github)
    client = GitHubAPIClient(config.github, token_pool=token_pool,
                             pool_size=config.aggregator.max_workers)
    fetcher = HistoryFetcher(client)
    cache = StarDataCache.from_config(config.cache)
    return StarHistoryAggregator(fetcher, cache, token_pool=token_pool, config=config.aggregator)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Reconstruct GitHub star history for one or more repositories"
    )
    parser.add_argument(
        "repos",
        help="Comma-separated repositories, e.g. owner/name,owner2/name2"
    )
    parser.add_argument(
        "--mode",
        default=ChartMode.DATE.value,
        help="Chart mode: Date or Timeline (default: Date)"
    )
    parser.add_argument(
        "--budget",
        type=int,
        default=None,
        help="Maximum upstream requests per repository (default: STAR_HISTORY_REQUEST_BUDGET or 15)"
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Repositories fetched in parallel (default: 10)"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Deadline for the whole aggregation in seconds (default: none)"
    )
    parser.add_argument(
        "--tokens",
        nargs="+",
        default=None,
        help="GitHub API tokens to rotate (default: GITHUB_TOKENS / GITHUB_TOKEN from environment)"
    )
    parser.add_argument(
        "--csv",
        default=None,
        help="Write chart points to this CSV file"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging"
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Run the command line tool and return the exit status."""
    args = parse_args(argv)

    # Configure logging
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        repos = parse_repo_list(args.repos)
        config = load_config()
        if args.tokens:
            config.github.tokens = list(dict.fromkeys(args.tokens))
        overrides = {
            name: value for name, value in (
                ("request_budget", args.budget),
                ("max_workers", args.workers),
                ("timeout", args.timeout)
            ) if value is not None
        }
        # Rebuilding runs AggregatorConfig validation on the command line values
        config.aggregator = replace(config.aggregator, **overrides)
    except (StarHistoryError, ValueError) as e:
        logger.error(f"Invalid arguments: {e}")
        return 2

    mode = normalize_chart_mode(args.mode)
    aggregator = build_aggregator(config)

    try:
        result = aggregator.aggregate(repos)
    except StarHistoryError as e:
        logger.error(f"Failed to get star history ({e.status_code}): {e}")
        return 1

    for dataset in to_chart_data(result.series, mode):
        series = result.series[dataset['label']]
        kind = "sampled" if series.sampled else "exact"
        print(f"{dataset['label']}: {series.total_stars} stars, {len(dataset['points'])} points ({kind})")
        for point in dataset['points']:
            print(f"  {point['x']}\t{point['y']}")

    for repo, error in result.failures.items():
        print(f"{repo}: failed - {error}", file=sys.stderr)

    if args.csv:
        frame = series_to_frame(result.series)
        frame.to_csv(args.csv, index=False)
        logger.info(f"Chart points for {len(result.series)} repositories written to {args.csv}")

    if aggregator.token_pool:
        for stat in aggregator.token_pool.get_stats():
            logger.debug(f"Token {stat['index']} ({stat['token']}): used {stat['usage_count']} times, "
                         f"{stat['rate_limit_remaining']} requests remaining")

    return 0


if __name__ == "__main__":
    sys.exit(main())
