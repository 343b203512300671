"""
Ranking and analysis history.
"""

import logging
from collections import deque
from dataclasses import replace
from typing import Deque, List

from siting.models import AnalysisSummary, Site

log = logging.getLogger(__name__)


def rank_sites(scored_sites: List[Site]) -> List[Site]:
    """
    Sort by score (highest first) and number the result 1..n.

    The sort is stable, so tied sites keep their input order, and ranks
    never repeat or skip.
    """
    ordered = sorted(scored_sites, key=lambda site: site.score or 0.0, reverse=True)
    return [replace(site, rank=index + 1) for index, site in enumerate(ordered)]


class AnalysisHistory:
    """
    Bounded list of analysis summaries. When full, the oldest is evicted.
    """

    def __init__(self, limit: int = 10):
        if limit < 0:
            raise ValueError(f"History limit must be >= 0, got {limit}")
        self.limit = limit
        self._entries: Deque[AnalysisSummary] = deque(maxlen=limit)

    def append(self, summary: AnalysisSummary):
        """Record a summary. With a limit of 0 nothing is kept."""
        if self.limit and len(self._entries) == self.limit:
            log.debug(f"History full, evicting {self._entries[0].id}")
        self._entries.append(summary)

    def entries(self) -> List[AnalysisSummary]:
        """Summaries, oldest first."""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self):
        self._entries.clear()
