"""Selection of stargazer pages under a request budget."""

from typing import List

import numpy as np


def sample_pages(total_pages: int, budget: int) -> List[int]:
    """
    Choose which stargazer pages to request.

    When every page fits in the budget all pages are returned. Otherwise
    ``budget`` page numbers are spread evenly over ``1..total_pages``,
    always including the first and the last page. The result depends only
    on the two arguments, so repeated calls select the same pages.

    Args:
        total_pages: Number of pages in the stargazer listing
        budget: Maximum number of pages that may be requested

    Returns:
        Sorted, distinct, 1-based page numbers
    """
    if total_pages <= 0:
        return []
    if total_pages <= budget:
        return list(range(1, total_pages + 1))
    if budget < 2:
        raise ValueError(f"Sampling {total_pages} pages needs a budget of at least 2, got {budget}")

    # Spacing is above 1 here, so rounding cannot produce duplicates
    points = np.linspace(1, total_pages, num=budget)
    return [int(p) for p in np.floor(points + 0.5)]
