"""Star history reconstruction from paginated stargazer listings."""

from .fetcher import HistoryFetcher
from .sampling import sample_pages

__all__ = ['HistoryFetcher', 'sample_pages']
