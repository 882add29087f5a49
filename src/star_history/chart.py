"""
Chart input and output helpers.

Parses the repository list and chart mode supplied by the HTTP front door,
and converts aggregated star series into the point lists a renderer
consumes. Rendering itself happens elsewhere.
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Mapping

import pandas as pd

from .errors import InvalidRepositoryList
from .models import REPO_PATTERN, StarSeries

logger = logging.getLogger(__name__)


class ChartMode(str, Enum):
    """X axis of a star history chart."""
    DATE = "Date"  # Wall-clock time of each point
    TIMELINE = "Timeline"  # Position of each point in its series


def normalize_chart_mode(value) -> ChartMode:
    """Return the chart mode for a query value; unknown values mean Date."""
    try:
        return ChartMode(value)
    except ValueError:
        logger.debug(f"Unknown chart mode {value!r}, using {ChartMode.DATE.value}")
        return ChartMode.DATE


def parse_repo_list(value: str) -> List[str]:
    """
    Parse a comma-separated repository list such as ``"a/b,c/d"``.

    Args:
        value: Raw query value

    Returns:
        Repositories in the given order, blanks removed

    Raises:
        InvalidRepositoryList: If the list is empty or an entry is not ``owner/name``
    """
    repos = [r.strip() for r in (value or '').split(',') if r.strip()]
    if not repos:
        raise InvalidRepositoryList("Repos required")

    invalid = [r for r in repos if not REPO_PATTERN.match(r)]
    if invalid:
        raise InvalidRepositoryList(f"Invalid repository name(s): {', '.join(invalid)}")
    return repos


def to_chart_data(series_map: Mapping[str, StarSeries], mode: ChartMode = ChartMode.DATE) -> List[Dict[str, Any]]:
    """
    Convert series into renderer input.

    Args:
        series_map: Series per repository, in display order
        mode: Date uses event timestamps as x values, Timeline uses the
            index of each event in its series

    Returns:
        One dictionary per repository with ``label`` and ``points``,
        each point a dictionary with ``x`` and ``y``
    """
    mode = normalize_chart_mode(mode)
    datasets = []
    for repo, series in series_map.items():
        if mode is ChartMode.DATE:
            points = [{'x': e.timestamp, 'y': e.count} for e in series.events]
        else:
            points = [{'x': i, 'y': e.count} for i, e in enumerate(series.events)]
        datasets.append({'label': repo, 'points': points})
    return datasets


def series_to_frame(series_map: Mapping[str, StarSeries]) -> pd.DataFrame:
    """
    Flatten series into a long-format DataFrame.

    Columns: ``repo``, ``index``, ``timestamp``, ``stars``, ``total_stars``
    and ``sampled``.
    """
    rows = []
    for repo, series in series_map.items():
        for i, event in enumerate(series.events):
            rows.append({
                'repo': repo,
                'index': i,
                'timestamp': event.timestamp,
                'stars': event.count,
                'total_stars': series.total_stars,
                'sampled': series.sampled
            })
    return pd.DataFrame(rows, columns=['repo', 'index', 'timestamp', 'stars', 'total_stars', 'sampled'])
