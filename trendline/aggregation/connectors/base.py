from __future__ import annotations

import abc
import hashlib
import logging
from typing import Any, Dict, List, Optional, Sequence

from trendline.aggregation.models.segment import Segment
from trendline.aggregation.models.trend import FAILURE_FETCH, FAILURE_UNAVAILABLE, TrendCandidate, TrendResponse
from trendline.aggregation.utils.text import slugify

logger = logging.getLogger(__name__)


class ConnectorError(Exception):
    pass


class BaseConnector(abc.ABC):
    """Abstract connector interface for pluggable trend sources.

    ``fetch`` never raises: disabled connectors and failed fetches come back as
    failed ``TrendResponse`` objects so the caller can keep sibling sources.
    """

    name: str = "base"
    default_limit: int = 10

    def __init__(self, config: Dict[str, Any] | None = None) -> None:
        self.config = config or {}
        self.enabled: bool = self.config.get("enabled", True)
        self.limit: int = int(self.config.get("limit", self.default_limit))

    async def fetch(self, segments: Optional[Sequence[Segment]] = None, limit: Optional[int] = None) -> TrendResponse:
        if not self.enabled:
            logger.info("Connector %s disabled via config", self.name)
            return TrendResponse.failure(self.name, f"Source {self.name} is not available", FAILURE_UNAVAILABLE)
        try:
            candidates = await self._fetch_impl(list(segments or []), limit or self.limit)
        except Exception as err:  # pylint: disable=broad-except
            logger.exception("Connector %s failed: %s", self.name, err)
            return TrendResponse.failure(self.name, str(err) or err.__class__.__name__, FAILURE_FETCH)
        logger.info("Connector %s produced %d candidates", self.name, len(candidates))
        return TrendResponse.ok(self.name, candidates)

    @abc.abstractmethod
    def build_keywords(self, segments: Sequence[Segment]) -> List[str]:
        """Search keywords for the given segments, or the connector defaults when empty."""
        raise NotImplementedError

    @abc.abstractmethod
    async def _fetch_impl(self, segments: List[Segment], limit: int) -> List[TrendCandidate]:
        raise NotImplementedError

    def candidate_id(self, title: str, url: str = "") -> str:
        digest = hashlib.sha1(f"{title}\n{url}".encode("utf-8")).hexdigest()[:10]
        return f"{self.name}-{slugify(title)[:48]}-{digest}"
