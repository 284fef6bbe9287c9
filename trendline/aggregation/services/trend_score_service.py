"""Multi-factor scoring: hotness, viral potential, impact and cross-source correlation.

Cross-source correlation needs the whole pool, so ``score`` works on the full
list of surviving candidates at once. Everything here is a pure function of
the candidates, the scoring config and the supplied ``now``.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from trendline.aggregation.config import HotnessRules, ImpactRules, ScoringConfig, ViralRules
from trendline.aggregation.models.trend import (
    CrossPlatformTopic,
    RelevanceMatch,
    ScoredTrend,
    TrendCandidate,
    round_score,
    utc_now,
)
from trendline.aggregation.utils.text import starts_any_word, title_words

logger = logging.getLogger(__name__)


def _rate(score: int, ratings: Sequence[Tuple[int, str]], floor_rating: str) -> str:
    for threshold, label in ratings:
        if score > threshold:
            return label
    return floor_rating


def rate_hotness(score: int, rules: HotnessRules | None = None) -> str:
    rules = rules or HotnessRules()
    return _rate(score, rules.ratings, rules.floor_rating)


def rate_viral(score: int, rules: ViralRules | None = None) -> str:
    rules = rules or ViralRules()
    return _rate(score, rules.ratings, rules.floor_rating)


def rate_impact(score: int, rules: ImpactRules | None = None) -> str:
    rules = rules or ImpactRules()
    return _rate(score, rules.ratings, rules.floor_rating)


class TrendScoreService:
    def __init__(self, config: ScoringConfig | None = None) -> None:
        self.config = config or ScoringConfig()

    def score(self, matches: Sequence[RelevanceMatch], now: Optional[datetime] = None) -> List[ScoredTrend]:
        now = now or utc_now()
        topics = self.cross_platform_topics([match.candidate for match in matches])
        if topics:
            logger.info(
                "Found %d cross-platform topics: %s",
                len(topics),
                ", ".join(f"{topic.word}({topic.count})" for topic in list(topics.values())[:5]),
            )
        scored = [self._score_one(match, topics, now) for match in matches]
        logger.info("TrendScoreService scored %d trends", len(scored))
        return scored

    def cross_platform_topics(self, candidates: Sequence[TrendCandidate]) -> Dict[str, CrossPlatformTopic]:
        """Title words seen in at least ``min_sources`` distinct sources, in first-seen order."""
        rules = self.config.cross_platform
        index: Dict[str, List[str]] = defaultdict(list)
        for candidate in candidates:
            for word in title_words(candidate.title, rules.topic_word_min_length):
                if candidate.source not in index[word]:
                    index[word].append(candidate.source)

        return {
            word: CrossPlatformTopic(word=word, sources=sources, count=len(sources))
            for word, sources in index.items()
            if len(sources) >= rules.min_sources
        }

    def hotness(self, candidate: TrendCandidate, hours_old: float) -> int:
        rules = self.config.hotness
        points = 0
        for max_hours, bonus in rules.recency_buckets:
            if hours_old < max_hours:
                points += bonus
                break
        points += _first_above(candidate.score, rules.engagement_buckets)
        points += _first_above(candidate.change, rules.momentum_buckets)
        return points

    def viral_potential(self, candidate: TrendCandidate, hours_old: float) -> Tuple[int, bool]:
        rules = self.config.viral
        points = 0
        for min_score, min_change, bonus in rules.velocity_rules:
            if candidate.score > min_score and candidate.change > min_change:
                points += bonus
                break

        if candidate.source in rules.forum_sources and candidate.score > rules.forum_score_threshold:
            points += rules.forum_bonus
        if candidate.source in rules.social_sources and candidate.change > rules.social_change_threshold:
            points += rules.social_bonus
        if candidate.source in rules.news_sources and hours_old < rules.news_max_hours:
            points += rules.news_bonus

        viral_language = starts_any_word(f"{candidate.title} {candidate.description}", rules.language_keywords)
        if viral_language:
            points += rules.language_bonus
        return points, viral_language

    def impact(self, candidate: TrendCandidate) -> Tuple[int, Dict[str, bool]]:
        rules = self.config.impact
        hits = {
            "business": starts_any_word(candidate.title, rules.business_keywords),
            "tech": starts_any_word(candidate.title, rules.tech_keywords),
            "market": starts_any_word(f"{candidate.title} {candidate.description}", rules.market_keywords),
        }
        points = 0
        if hits["business"]:
            points += rules.business_bonus
        if hits["tech"]:
            points += rules.tech_bonus
        if hits["market"]:
            points += rules.market_bonus
        return points, hits

    def _score_one(self, match: RelevanceMatch, topics: Dict[str, CrossPlatformTopic], now: datetime) -> ScoredTrend:
        candidate = match.candidate
        hours_old = _hours_old(candidate, now)

        words = set(title_words(candidate.title, self.config.cross_platform.topic_word_min_length))
        shared = [topic for word, topic in topics.items() if word in words]
        cross_bonus = sum(topic.count * self.config.cross_platform.bonus_per_source for topic in shared)

        hotness = self.hotness(candidate, hours_old)
        viral, viral_language = self.viral_potential(candidate, hours_old)
        impact, impact_hits = self.impact(candidate)

        weights = self.config.composite
        prior = match.relevance_score if match.relevance_score is not None else candidate.score
        composite = (
            prior
            + hotness * weights.hotness
            + viral * weights.viral
            + cross_bonus * weights.cross_platform
            + impact * weights.impact
        )

        return ScoredTrend(
            candidate=candidate,
            relevance_score=round_score(composite),
            hotness_score=round_score(hotness),
            viral_potential=round_score(viral),
            impact_score=round_score(impact),
            cross_platform_bonus=round_score(cross_bonus),
            hotness_rating=rate_hotness(hotness, self.config.hotness),
            viral_rating=rate_viral(viral, self.config.viral),
            impact_rating=rate_impact(impact, self.config.impact),
            cross_platform_topics=[
                CrossPlatformTopic(word=topic.word, sources=list(topic.sources), count=topic.count) for topic in shared
            ],
            matched_keywords=list(match.matched_keywords),
            commercial_signals=list(match.commercial_signals),
            business_impact=match.business_impact,
            content_opportunity=match.content_opportunity,
            diagnostics={
                "hours_old": round(hours_old, 1) if math.isfinite(hours_old) else None,
                "base_score": candidate.score,
                "change": candidate.change,
                "has_viral_language": viral_language,
                "has_business_impact": impact_hits["business"],
                "has_tech_impact": impact_hits["tech"],
                "has_market_scale": impact_hits["market"],
            },
        )


def _first_above(value: float, buckets: Sequence[Tuple[float, int]]) -> int:
    for threshold, bonus in buckets:
        if value > threshold:
            return bonus
    return 0


def _hours_old(candidate: TrendCandidate, now: datetime) -> float:
    published = candidate.published()
    if published is None:
        return math.inf
    return (now - published).total_seconds() / 3600
