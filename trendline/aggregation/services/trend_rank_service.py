from __future__ import annotations

import logging
import math
from collections import defaultdict
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from trendline.aggregation.config import ScoringConfig
from trendline.aggregation.models.trend import AggregationResult, ScoredTrend, TrendAnalytics

logger = logging.getLogger(__name__)

DEFAULT_SORT = "relevance"


def _recency_key(trend: ScoredTrend) -> float:
    published = trend.candidate.published()
    if published is None:
        return -math.inf
    return published.timestamp()


class TrendRankService:
    """Sorts scored trends, caps each source and summarises the result."""

    def __init__(self, config: ScoringConfig | None = None) -> None:
        self.config = config or ScoringConfig()
        topic_weight = self.config.cross_platform.sort_topic_weight
        self.strategies: Dict[str, Callable[[ScoredTrend], float]] = {
            "relevance": lambda trend: trend.relevance_score,
            "hotness": lambda trend: trend.hotness_score,
            "viral": lambda trend: trend.viral_potential,
            "impact": lambda trend: trend.impact_score,
            "cross-platform": lambda trend: trend.cross_platform_bonus + topic_weight * len(trend.cross_platform_topics),
            "recent": _recency_key,
        }

    def sort(self, scored: Sequence[ScoredTrend], sort_by: str = DEFAULT_SORT) -> List[ScoredTrend]:
        key = self.strategies.get(sort_by)
        if key is None:
            raise ValueError(f"Unknown sort strategy '{sort_by}'. Expected one of: {', '.join(self.strategies)}")
        # sorted() is stable, so equal keys keep their pool order.
        return sorted(scored, key=key, reverse=True)

    def aggregate(
        self,
        scored: Sequence[ScoredTrend],
        sort_by: str = DEFAULT_SORT,
        limit_per_source: int = 6,
        sources: Optional[Sequence[str]] = None,
        failures: Optional[Mapping[str, str]] = None,
    ) -> AggregationResult:
        ranked = self.sort(scored, sort_by)
        trends = self.cap_per_source(ranked, limit_per_source)
        analytics = self.analytics(trends)
        logger.info(
            "TrendRankService kept %d/%d trends (sort_by=%s, limit_per_source=%d)",
            len(trends),
            len(scored),
            sort_by,
            limit_per_source,
        )
        return AggregationResult(
            trends=trends,
            sources=list(sources) if sources is not None else _sources_of(trends),
            sort_by=sort_by,
            analytics=analytics,
            failures=dict(failures or {}),
        )

    @staticmethod
    def cap_per_source(ranked: Sequence[ScoredTrend], limit_per_source: int) -> List[ScoredTrend]:
        groups: Dict[str, List[ScoredTrend]] = defaultdict(list)
        for trend in ranked:
            groups[trend.source].append(trend)
        capped: List[ScoredTrend] = []
        for group in groups.values():
            capped.extend(group[: max(0, limit_per_source)])
        return capped

    @staticmethod
    def analytics(trends: Sequence[ScoredTrend]) -> TrendAnalytics:
        return TrendAnalytics(
            hot_trends=sum(1 for t in trends if t.hotness_rating in ("hot", "very-hot")),
            viral_trends=sum(1 for t in trends if t.viral_rating in ("viral", "very-viral")),
            cross_platform_trends=sum(1 for t in trends if t.cross_platform_topics),
            high_impact_trends=sum(1 for t in trends if t.impact_rating == "high-impact"),
        )


def _sources_of(trends: Sequence[ScoredTrend]) -> List[str]:
    return list(dict.fromkeys(trend.source for trend in trends))
