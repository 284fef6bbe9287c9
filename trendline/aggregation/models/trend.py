from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from dateutil import parser as dateparser

FAILURE_UNAVAILABLE = "unavailable"
FAILURE_FETCH = "fetch_failure"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def isoformat(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parses an ISO-8601 string (or datetime) into an aware UTC datetime, None when unusable."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = dateparser.isoparse(value.strip())
        except (ValueError, OverflowError):
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def round_score(value: float) -> int:
    """Rounds half up and clamps at zero; scores are never negative."""
    return max(0, math.floor(value + 0.5))


def _number(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if number != number:  # NaN
        return 0.0
    return number


@dataclass(slots=True)
class TrendMetadata:
    """Closed set of optional per-source details carried by a candidate."""

    publisher: Optional[str] = None
    published_at: Optional[str] = None
    is_breaking: Optional[bool] = None
    query: Optional[str] = None
    engagement: Optional[float] = None
    subreddit: Optional[str] = None
    comments: Optional[int] = None
    permalink: Optional[str] = None
    region: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "TrendMetadata":
        data = data or {}
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})

    def to_dict(self) -> Dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}


@dataclass(slots=True)
class TrendCandidate:
    """Raw, unscored trend item produced by a connector."""

    id: str
    title: str
    source: str
    description: str = ""
    score: float = 0.0
    change: float = 0.0
    category: str = ""
    tags: List[str] = field(default_factory=list)
    url: str = ""
    timestamp: str = ""
    metadata: TrendMetadata = field(default_factory=TrendMetadata)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TrendCandidate":
        return cls(
            id=str(data.get("id") or ""),
            title=str(data.get("title") or ""),
            source=str(data.get("source") or ""),
            description=str(data.get("description") or ""),
            score=_number(data.get("score")),
            change=_number(data.get("change")),
            category=str(data.get("category") or ""),
            tags=[str(tag) for tag in data.get("tags") or []],
            url=str(data.get("url") or ""),
            timestamp=str(data.get("timestamp") or ""),
            metadata=TrendMetadata.from_dict(data.get("metadata")),
        )

    def published(self) -> Optional[datetime]:
        return parse_timestamp(self.timestamp)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "source": self.source,
            "score": self.score,
            "change": self.change,
            "category": self.category,
            "tags": list(self.tags),
            "url": self.url,
            "timestamp": self.timestamp,
            "metadata": self.metadata.to_dict(),
        }


@dataclass(slots=True)
class TrendResponse:
    """Outcome of one source fetch. Failures are values, never exceptions."""

    success: bool
    source: str
    timestamp: str
    data: List[TrendCandidate] = field(default_factory=list)
    error: Optional[str] = None
    error_kind: Optional[str] = None

    @classmethod
    def ok(cls, source: str, data: List[TrendCandidate]) -> "TrendResponse":
        return cls(success=True, source=source, timestamp=isoformat(utc_now()), data=list(data))

    @classmethod
    def failure(cls, source: str, error: str, error_kind: str = FAILURE_FETCH) -> "TrendResponse":
        return cls(
            success=False,
            source=source,
            timestamp=isoformat(utc_now()),
            error=error or "Unknown error",
            error_kind=error_kind,
        )

    @property
    def count(self) -> int:
        return len(self.data)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"success": self.success, "source": self.source, "timestamp": self.timestamp}
        if self.success:
            result["data"] = [candidate.to_dict() for candidate in self.data]
            result["count"] = self.count
        else:
            result["error"] = self.error
            result["error_kind"] = self.error_kind
        return result


@dataclass(slots=True)
class RelevanceMatch:
    candidate: TrendCandidate
    relevance_score: Optional[int] = None
    matched_keywords: List[str] = field(default_factory=list)
    commercial_signals: List[str] = field(default_factory=list)
    business_impact: Optional[str] = None
    content_opportunity: Optional[str] = None

    @classmethod
    def unscored(cls, candidate: TrendCandidate) -> "RelevanceMatch":
        return cls(candidate=candidate)


@dataclass(slots=True)
class CrossPlatformTopic:
    word: str
    sources: List[str]
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"word": self.word, "sources": list(self.sources), "count": self.count}


@dataclass(slots=True)
class ScoredTrend:
    candidate: TrendCandidate
    relevance_score: int
    hotness_score: int
    viral_potential: int
    impact_score: int
    cross_platform_bonus: int
    hotness_rating: str
    viral_rating: str
    impact_rating: str
    cross_platform_topics: List[CrossPlatformTopic] = field(default_factory=list)
    matched_keywords: List[str] = field(default_factory=list)
    commercial_signals: List[str] = field(default_factory=list)
    business_impact: Optional[str] = None
    content_opportunity: Optional[str] = None
    diagnostics: Dict[str, Any] = field(default_factory=dict)

    @property
    def source(self) -> str:
        return self.candidate.source

    @property
    def title(self) -> str:
        return self.candidate.title

    def to_dict(self) -> Dict[str, Any]:
        result = self.candidate.to_dict()
        result.update(
            {
                "relevance_score": self.relevance_score,
                "hotness_score": self.hotness_score,
                "viral_potential": self.viral_potential,
                "impact_score": self.impact_score,
                "cross_platform_bonus": self.cross_platform_bonus,
                "hotness_rating": self.hotness_rating,
                "viral_rating": self.viral_rating,
                "impact_rating": self.impact_rating,
                "cross_platform_topics": [topic.to_dict() for topic in self.cross_platform_topics],
                "matched_keywords": list(self.matched_keywords),
                "commercial_signals": list(self.commercial_signals),
                "business_impact": self.business_impact,
                "content_opportunity": self.content_opportunity,
                "diagnostics": dict(self.diagnostics),
            }
        )
        return result


@dataclass(slots=True)
class TrendAnalytics:
    hot_trends: int = 0
    viral_trends: int = 0
    cross_platform_trends: int = 0
    high_impact_trends: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass(slots=True)
class AggregationResult:
    trends: List[ScoredTrend]
    sources: List[str]
    sort_by: str
    analytics: TrendAnalytics
    last_updated: str = field(default_factory=lambda: isoformat(utc_now()))
    failures: Dict[str, str] = field(default_factory=dict)

    success = True

    @property
    def total_count(self) -> int:
        return len(self.trends)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "data": {
                "trends": [trend.to_dict() for trend in self.trends],
                "sources": list(self.sources),
                "total_count": self.total_count,
                "last_updated": self.last_updated,
                "sort_by": self.sort_by,
                "analytics": self.analytics.to_dict(),
                "failures": dict(self.failures),
            },
        }


@dataclass(slots=True)
class AggregationFailure:
    error: str
    failures: Dict[str, str] = field(default_factory=dict)

    success = False

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "error": self.error, "failures": dict(self.failures)}
