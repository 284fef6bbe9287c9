from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from trendline.aggregation.connectors.base import BaseConnector
from trendline.aggregation.models.segment import Segment
from trendline.aggregation.models.trend import FAILURE_FETCH, FAILURE_UNAVAILABLE, TrendCandidate, TrendResponse
from trendline.aggregation.services.trend_cache_service import TrendCache, segment_key

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class FetchOutcome:
    candidates: List[TrendCandidate] = field(default_factory=list)
    succeeded_sources: List[str] = field(default_factory=list)
    failures: Dict[str, str] = field(default_factory=dict)


class TrendFetchService:
    """Fans out to every requested source, consulting the cache first."""

    def __init__(self, connectors: Iterable[BaseConnector], cache: TrendCache, single_flight: bool = True) -> None:
        self.connectors: Dict[str, BaseConnector] = {connector.name: connector for connector in connectors}
        self.cache = cache
        self.single_flight = single_flight
        self._in_flight: Dict[str, "asyncio.Task[TrendResponse]"] = {}

    async def get_trends(
        self, source: str, segments: Optional[Sequence[Segment]] = None, limit: Optional[int] = None
    ) -> TrendResponse:
        connector = self.connectors.get(source)
        if connector is None or not connector.enabled:
            return TrendResponse.failure(source, f"Source {source} is not available", FAILURE_UNAVAILABLE)

        seg_key = segment_key(segments)
        cached = self.cache.get(source, seg_key)
        if cached is not None:
            logger.debug("Trend cache hit for %s", TrendCache.key(source, seg_key))
            return cached.response

        if not self.single_flight:
            return await self._fetch_and_store(connector, seg_key, segments, limit)

        key = TrendCache.key(source, seg_key)
        pending = self._in_flight.get(key)
        if pending is None:
            pending = asyncio.ensure_future(self._fetch_and_store(connector, seg_key, segments, limit))
            self._in_flight[key] = pending
            pending.add_done_callback(lambda _task, key=key: self._in_flight.pop(key, None))
        else:
            logger.debug("Joining in-flight fetch for %s", key)
        return await asyncio.shield(pending)

    async def fetch_all(
        self, sources: Sequence[str], segments: Optional[Sequence[Segment]] = None, limit_per_source: Optional[int] = None
    ) -> FetchOutcome:
        results = await asyncio.gather(
            *(self.get_trends(source, segments, limit_per_source) for source in sources),
            return_exceptions=True,
        )

        outcome = FetchOutcome()
        for source, result in zip(sources, results, strict=False):
            if isinstance(result, BaseException):
                logger.warning("Source %s raised during fetch: %s", source, result)
                outcome.failures[source] = str(result) or result.__class__.__name__
                continue
            if not result.success:
                logger.warning("Source %s returned error (%s): %s", source, result.error_kind, result.error)
                outcome.failures[source] = result.error or "Unknown error"
                continue
            outcome.candidates.extend(result.data)
            outcome.succeeded_sources.append(source)
            logger.info("Source %s produced %d trends", source, result.count)
        return outcome

    async def _fetch_and_store(
        self,
        connector: BaseConnector,
        seg_key: str,
        segments: Optional[Sequence[Segment]],
        limit: Optional[int],
    ) -> TrendResponse:
        response = await connector.fetch(segments, limit)
        if response.success:
            self.cache.put(connector.name, seg_key, response)
        elif response.error_kind is None:
            response.error_kind = FAILURE_FETCH
        return response
