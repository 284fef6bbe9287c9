from __future__ import annotations

import logging
from typing import List, Sequence

from trendline.aggregation.models.segment import Segment
from trendline.aggregation.utils.text import dedupe, significant_words

logger = logging.getLogger(__name__)

DEFAULT_KEYWORDS = [
    "digital marketing", "business growth", "startup trends", "technology innovation",
    "marketing automation", "customer acquisition", "business intelligence",
]
COMMERCIAL_CONTEXTS = [
    "trends", "news", "breakthrough", "innovation", "solution", "tool", "strategy", "growth",
    "success", "tips", "guide", "review", "comparison", "alternatives",
]
PRIORITY_TERMS = ("solution", "tool", "alternative", "vs", "review", "breakthrough", "innovation")


class SegmentKeywordService:
    """Derives commercially-oriented keywords from segment names, descriptions and ICP profiles."""

    def __init__(self, keyword_limit: int = 25) -> None:
        self.keyword_limit = keyword_limit

    def build(self, segments: Sequence[Segment]) -> List[str]:
        if not segments:
            return list(DEFAULT_KEYWORDS)

        keywords: List[str] = []
        for segment in segments:
            keywords.append(segment.name)
            keywords.extend(self._profile_keywords(segment))
            for word in significant_words(segment.name):
                keywords.extend(f"{word} {context}" for context in COMMERCIAL_CONTEXTS)
            if segment.description:
                for word in significant_words(segment.description, min_length=4)[:5]:
                    if len(word) > 4:
                        keywords.extend([f"{word} trends", f"{word} breakthrough", f"{word} innovation"])

        unique = [kw for kw in dedupe(keywords) if len(kw.strip()) > 3]
        unique.sort(key=lambda kw: (not any(term in kw.lower() for term in PRIORITY_TERMS), -len(kw)))
        result = unique[: self.keyword_limit]
        logger.info("SegmentKeywordService built %d keywords for %d segments", len(result), len(segments))
        return result

    @staticmethod
    def _profile_keywords(segment: Segment) -> List[str]:
        profile = segment.profile
        if profile is None:
            return []

        keywords: List[str] = []
        for pain in profile.pain_points:
            keywords.extend([pain, f"{pain} solution", f"{pain} trends", f"solve {pain}"])
        for goal in profile.goals:
            keywords.extend([goal, f"{goal} strategy", f"achieve {goal}", f"{goal} tips"])
        if profile.industry:
            industry = profile.industry
            keywords.extend([f"{industry} trends", f"{industry} innovation", f"{industry} news", f"{industry} technology"])
        for tool in profile.current_tools:
            keywords.extend([f"{tool} alternative", f"{tool} vs", f"better than {tool}"])
        for tool in profile.desired_tools:
            keywords.extend([tool, f"{tool} review", f"{tool} trends"])
        for interest in profile.interests:
            keywords.append(interest)
            keywords.extend(f"{interest} {context}" for context in COMMERCIAL_CONTEXTS)
        for topic in profile.content_topics:
            keywords.extend([topic, f"{topic} news"])
        if profile.audience:
            audience = profile.audience
            keywords.extend([f"{audience} trends", f"{audience} challenges", f"{audience} solutions"])
        return keywords
