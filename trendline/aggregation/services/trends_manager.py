from __future__ import annotations

import asyncio
import logging
import os
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Union

from trendline.aggregation.config import ScoringConfig, load_config
from trendline.aggregation.connectors import load_connectors
from trendline.aggregation.connectors.base import BaseConnector
from trendline.aggregation.models.segment import Segment
from trendline.aggregation.models.trend import (
    AggregationFailure,
    AggregationResult,
    RelevanceMatch,
    TrendResponse,
    utc_now,
)
from trendline.aggregation.services.relevance_score_service import RelevanceScoreService
from trendline.aggregation.services.segment_keyword_service import SegmentKeywordService
from trendline.aggregation.services.trend_cache_service import TrendCache
from trendline.aggregation.services.trend_fetch_service import TrendFetchService
from trendline.aggregation.services.trend_rank_service import DEFAULT_SORT, TrendRankService
from trendline.aggregation.services.trend_score_service import TrendScoreService

logger = logging.getLogger(__name__)

DEFAULT_LIMIT_PER_SOURCE = 6

AggregationOutcome = Union[AggregationResult, AggregationFailure]


class TrendsManager:
    """Co-ordinates fetch, relevance filtering, scoring and ranking across sources."""

    def __init__(
        self,
        connectors: Iterable[BaseConnector],
        cache: TrendCache | None = None,
        scoring: ScoringConfig | None = None,
        limit_per_source: int = DEFAULT_LIMIT_PER_SOURCE,
        sort_by: str = DEFAULT_SORT,
        single_flight: bool = True,
        keyword_service: SegmentKeywordService | None = None,
    ) -> None:
        scoring = scoring or ScoringConfig()
        self.cache = cache if cache is not None else TrendCache()
        self.fetcher = TrendFetchService(connectors, self.cache, single_flight=single_flight)
        self.keywords = keyword_service or SegmentKeywordService()
        self.relevance = RelevanceScoreService(scoring.relevance)
        self.scoring = TrendScoreService(scoring)
        self.ranker = TrendRankService(scoring)
        self.limit_per_source = limit_per_source
        self.sort_by = sort_by

    @property
    def connectors(self):
        return self.fetcher.connectors

    def enabled_sources(self) -> List[str]:
        return [name for name, connector in self.connectors.items() if connector.enabled]

    def enable_source(self, source: str, enabled: bool = True) -> None:
        connector = self.connectors.get(source)
        if connector is None:
            logger.warning("Cannot toggle unknown source %s", source)
            return
        connector.enabled = enabled
        logger.info("Source %s %s", source, "enabled" if enabled else "disabled")

    async def get_trends(
        self, source: str, segments: Optional[Sequence[Segment]] = None, limit: Optional[int] = None
    ) -> TrendResponse:
        return await self.fetcher.get_trends(source, segments, limit)

    async def get_all_trends(
        self,
        sources: Optional[Sequence[str]] = None,
        segments: Optional[Sequence[Segment]] = None,
        limit_per_source: Optional[int] = None,
        sort_by: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AggregationOutcome:
        sources = list(sources) if sources is not None else self.enabled_sources()
        segments = list(segments or [])
        limit_per_source = limit_per_source or self.limit_per_source
        sort_by = sort_by or self.sort_by
        if sort_by not in self.ranker.strategies:
            raise ValueError(f"Unknown sort strategy '{sort_by}'")

        logger.info(
            "Fetching %d trends per source from %s (segments: %s, sort_by=%s)",
            limit_per_source,
            ", ".join(sources) or "none",
            ", ".join(segment.name for segment in segments) or "none",
            sort_by,
        )
        if not sources:
            logger.warning("No trend sources enabled")
            return AggregationFailure(error="No sources enabled")

        outcome = await self.fetcher.fetch_all(sources, segments, limit_per_source)
        if not outcome.succeeded_sources:
            error = "; ".join(f"{source}: {message}" for source, message in outcome.failures.items())
            logger.error("All trend sources failed: %s", error)
            return AggregationFailure(error=error or "Failed to fetch trends", failures=dict(outcome.failures))

        if segments:
            keywords = self.keywords.build(segments)
            matches = self.relevance.score(outcome.candidates, segments, keywords)
        else:
            matches = [RelevanceMatch.unscored(candidate) for candidate in outcome.candidates]

        scored = self.scoring.score(matches, now=now or utc_now())
        result = self.ranker.aggregate(
            scored,
            sort_by=sort_by,
            limit_per_source=limit_per_source,
            sources=outcome.succeeded_sources,
            failures=outcome.failures,
        )
        logger.info(
            "Aggregated %d trends (%d hot, %d viral, %d cross-platform, %d high-impact)",
            result.total_count,
            result.analytics.hot_trends,
            result.analytics.viral_trends,
            result.analytics.cross_platform_trends,
            result.analytics.high_impact_trends,
        )
        return result


def build_trends_manager(config_path: str | os.PathLike[str] | None = None) -> TrendsManager:
    config = load_config(config_path)
    connectors = load_connectors(config.get("sources", {}), shared={"categories": config.get("categories")})
    cache_cfg = config.get("cache", {}) or {}
    aggregation_cfg = config.get("aggregation", {}) or {}
    cache = TrendCache(
        ttl_seconds=cache_cfg.get("ttl_seconds", 300),
        max_entries=cache_cfg.get("max_entries", 256),
    )
    return TrendsManager(
        connectors,
        cache=cache,
        scoring=ScoringConfig.from_mapping(config.get("scoring")),
        limit_per_source=aggregation_cfg.get("limit_per_source", DEFAULT_LIMIT_PER_SOURCE),
        sort_by=aggregation_cfg.get("sort_by", DEFAULT_SORT),
        single_flight=cache_cfg.get("single_flight", True),
    )


def run_sync(
    config_path: str | os.PathLike[str] | None = None,
    sources: Optional[Sequence[str]] = None,
    segments: Optional[Sequence[Segment]] = None,
    limit_per_source: Optional[int] = None,
    sort_by: Optional[str] = None,
) -> AggregationOutcome:
    manager = build_trends_manager(config_path)
    return asyncio.run(
        manager.get_all_trends(sources=sources, segments=segments, limit_per_source=limit_per_source, sort_by=sort_by)
    )
