from __future__ import annotations

import asyncio
import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote_plus, urlparse

import feedparser
import httpx
from dateutil import parser as dateparser

from trendline.aggregation.connectors.base import BaseConnector, ConnectorError
from trendline.aggregation.models.segment import Segment
from trendline.aggregation.models.trend import TrendCandidate, TrendMetadata, isoformat, utc_now
from trendline.aggregation.utils.category import CategoryRouter
from trendline.aggregation.utils.text import (
    clean_html,
    clean_news_title,
    contains_word,
    dedupe,
    is_meaningful,
    significant_words,
    truncate_on_word,
)

logger = logging.getLogger(__name__)

DEFAULT_KEYWORDS = [
    "startup funding", "tech innovation", "digital transformation", "AI breakthrough",
    "business growth", "market analysis", "industry report", "product launch",
    "merger acquisition", "IPO news", "venture capital", "technology adoption",
]
NEWS_CONTEXTS = [
    "news", "breakthrough", "launch", "announcement", "report", "study", "research",
    "development", "funding", "acquisition", "partnership", "innovation",
]
BUSINESS_CONTEXTS = ["market", "industry", "company", "startup", "enterprise", "technology", "software", "platform"]

DEFAULT_CATEGORIES = {
    "AI & Technology": {"keywords": ["ai", "artificial intelligence", "machine learning"]},
    "Startups & Funding": {"keywords": ["startup", "funding", "venture"]},
    "Software & SaaS": {"keywords": ["saas", "software", "platform"]},
    "Marketing & Sales": {"keywords": ["marketing", "sales", "customer"]},
    "Crypto & Blockchain": {"keywords": ["crypto", "blockchain", "bitcoin"]},
    "Mergers & Acquisitions": {"keywords": ["acquisition", "merger", "ipo"]},
}

TAG_RULES = [
    ("ai", "AI"), ("machine learning", "Machine Learning"), ("saas", "SaaS"), ("startup", "Startup"),
    ("funding", "Funding"), ("marketing", "Marketing"), ("software", "Software"), ("platform", "Platform"),
    ("automation", "Automation"), ("cloud", "Cloud"), ("revenue", "Revenue"), ("growth", "Growth"),
    ("acquisition", "Acquisition"), ("ipo", "IPO"), ("investment", "Investment"),
]
MAX_TAGS = 5
MAX_KEYWORDS = 15
MAX_DESCRIPTION_CHARS = 300
BREAKING_HOURS = 2


def extract_tags(title: str, description: str) -> List[str]:
    text = f"{title} {description}"
    tags = [tag for needle, tag in TAG_RULES if contains_word(text, needle)]
    return dedupe(tags + ["Business", "Technology"])[:MAX_TAGS]


class GoogleNewsConnector(BaseConnector):
    """News source backed by the Google News RSS search endpoint."""

    name = "google"
    default_limit = 15
    RSS_URL = "https://news.google.com/rss/search"

    def __init__(self, config: dict | None = None) -> None:
        super().__init__(config)
        self.geo = self.config.get("geo", "US")
        self.hl = self.config.get("hl", "en")
        self.max_queries = int(self.config.get("max_queries", 8))
        self.timeout = self.config.get("timeout", 10)
        self.category_router = CategoryRouter(self.config.get("categories") or DEFAULT_CATEGORIES)

    def build_keywords(self, segments: Sequence[Segment]) -> List[str]:
        if not segments:
            return list(DEFAULT_KEYWORDS)

        keywords: List[str] = []
        for segment in segments:
            name_words = significant_words(segment.name)
            for context in NEWS_CONTEXTS:
                keywords.append(f"{segment.name} {context}")
                keywords.extend(f"{word} {context}" for word in name_words)
            for context in BUSINESS_CONTEXTS:
                keywords.append(f"{context} {segment.name}")
                keywords.extend(f"{context} {word}" for word in name_words)
            for word in name_words:
                if len(word) > 3:
                    keywords.extend(
                        [
                            f"{word} startup news",
                            f"{word} company news",
                            f"{word} technology news",
                            f"{word} innovation news",
                            f"new {word} platform",
                            f"{word} funding round",
                            f"{word} market news",
                        ]
                    )
            if segment.description:
                description_words = significant_words(segment.description, min_length=4)[:8]
                for word in description_words:
                    if len(word) > 4:
                        keywords.extend(
                            [f"{word} news", f"{word} announcement", f"{word} development", f"new {word} technology"]
                        )

        unique = [kw for kw in dedupe(keywords) if len(kw.strip()) > 5]
        unique.sort(
            key=lambda kw: (
                not any(context in kw for context in NEWS_CONTEXTS),
                -len(kw.split()),
                -len(kw),
            )
        )
        return unique[:MAX_KEYWORDS]

    async def _fetch_impl(self, segments: List[Segment], limit: int) -> List[TrendCandidate]:
        queries = self.build_keywords(segments)[: self.max_queries]
        per_query = max(1, math.ceil(limit / len(queries)))
        now = utc_now()

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            tasks = [self._fetch_query(client, query, per_query, now) for query in queries]
            results = await asyncio.gather(*tasks, return_exceptions=True)

        candidates: List[TrendCandidate] = []
        failed = 0
        for query, result in zip(queries, results, strict=False):
            if isinstance(result, list):
                candidates.extend(result)
            else:
                failed += 1
                logger.warning("GoogleNewsConnector query %r failed: %s", query, result)
        if failed == len(queries):
            raise ConnectorError(f"All {failed} Google News queries failed")

        unique: Dict[str, TrendCandidate] = {}
        for candidate in candidates:
            unique.setdefault(candidate.title, candidate)
        ranked = sorted(unique.values(), key=lambda c: c.score, reverse=True)
        return ranked[:limit]

    async def _fetch_query(
        self, client: httpx.AsyncClient, query: str, limit: int, now: datetime
    ) -> List[TrendCandidate]:
        params = {"q": query, "hl": self.hl, "gl": self.geo, "ceid": f"{self.geo}:{self.hl}"}
        resp = await client.get(self.RSS_URL, params=params, headers={"User-Agent": "Trendline/1.0"})
        resp.raise_for_status()
        feed = feedparser.parse(resp.text)
        return [self._build_candidate(entry, query, now) for entry in feed.entries[:limit]]

    def _build_candidate(self, entry: Any, query: str, now: datetime) -> TrendCandidate:
        raw_title = entry.get("title", "")
        title = clean_news_title(raw_title) or "News Update"
        link = entry.get("link", "")

        raw_description = entry.get("summary", "") or entry.get("description", "")
        if len(raw_description) < 20 and entry.get("content"):
            raw_description = entry["content"][0].get("value", raw_description)
        category = self.category_router.route(f"{title} {clean_html(raw_description)}")
        description = self._describe(raw_title, raw_description, title, category)

        published = self._published(entry) or now
        hours_old = max(0.0, (now - published).total_seconds() / 3600)
        score = math.floor(max(100 - hours_old * 2, 20))
        change = round(max(-5.0, min(5.0, 5 - hours_old)), 1)

        return TrendCandidate(
            id=self.candidate_id(title, link),
            title=title,
            source=self.name,
            description=description,
            score=score,
            change=change,
            category=category,
            tags=extract_tags(title, description),
            url=link or f"https://news.google.com/search?q={quote_plus(title)}",
            timestamp=isoformat(published),
            metadata=TrendMetadata(
                publisher=self._publisher(entry, link),
                published_at=isoformat(published),
                is_breaking=hours_old < BREAKING_HOURS,
                query=query,
                engagement=score,
                region=self.geo,
            ),
        )

    @staticmethod
    def _describe(raw_title: str, raw_description: str, title: str, category: str) -> str:
        description = clean_html(raw_description)
        if not is_meaningful(description):
            fallback = clean_html(raw_title[:200])
            if is_meaningful(fallback):
                description = fallback
            else:
                suffix = "..." if len(title) > 100 else ""
                description = f"Latest {category} news - {title[:100]}{suffix}"
        return truncate_on_word(description, MAX_DESCRIPTION_CHARS, 250)

    @staticmethod
    def _published(entry: Any) -> Optional[datetime]:
        raw = entry.get("published") or entry.get("updated")
        if not raw:
            return None
        try:
            parsed = dateparser.parse(raw)
        except (ValueError, OverflowError):
            return None
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed

    @staticmethod
    def _publisher(entry: Any, link: str) -> str:
        source = entry.get("source") or {}
        if source.get("title"):
            return clean_news_title(source["title"])
        domain = urlparse(link).netloc.lower()
        if domain.startswith("www."):
            domain = domain[4:]
        name = domain.split(".")[0] if domain else ""
        return name.capitalize() if name else "Google News"
