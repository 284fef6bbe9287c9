from __future__ import annotations

import logging
from typing import List, Sequence

from trendline.aggregation.config import RelevanceRules
from trendline.aggregation.models.segment import Segment
from trendline.aggregation.models.trend import RelevanceMatch, TrendCandidate, round_score
from trendline.aggregation.utils.text import split_terms

logger = logging.getLogger(__name__)

NAME_SEPARATORS = r"[\s,\-_]+"
DESCRIPTION_SEPARATORS = r"[\s,\-_.!?]+"


class RelevanceScoreService:
    """Boosts candidates matching the requesting segments and drops the ones that do not."""

    def __init__(self, rules: RelevanceRules | None = None) -> None:
        self.rules = rules or RelevanceRules()

    def score(
        self, candidates: Sequence[TrendCandidate], segments: Sequence[Segment], keywords: Sequence[str]
    ) -> List[RelevanceMatch]:
        assessed = [self.assess(candidate, segments, keywords) for candidate in candidates]
        kept = self.filter(assessed)
        logger.info(
            "Relevance filter kept %d/%d candidates for segments %s",
            len(kept),
            len(assessed),
            ", ".join(segment.name for segment in segments),
        )
        return kept

    def assess(self, candidate: TrendCandidate, segments: Sequence[Segment], keywords: Sequence[str]) -> RelevanceMatch:
        rules = self.rules
        score = candidate.score
        matched: List[str] = []
        signals: List[str] = []
        text = f"{candidate.title} {candidate.description}".lower()
        title = candidate.title.lower()
        description = candidate.description.lower()

        direct = False
        for segment in segments:
            for word in self._name_terms(segment):
                if word in text:
                    score += rules.segment_name_weight
                    matched.append(f"segment-direct:{word}")
                    direct = True
            for word in self._description_terms(segment):
                if word in text:
                    score += rules.segment_description_weight
                    matched.append(f"segment-desc:{word}")
                    direct = True

        for word in rules.commercial_keywords:
            if word in text:
                score += rules.commercial_weight_direct if direct else rules.commercial_weight_indirect
                signals.append(f"commercial:{word}")

        for word in rules.impact_keywords:
            if word in text:
                score += rules.impact_weight_direct if direct else rules.impact_weight_indirect
                signals.append(f"impact:{word}")

        for keyword in keywords:
            needle = keyword.lower()
            commercial = any(word in needle for word in rules.commercial_keywords)
            weight = rules.keyword_weight_commercial if commercial else rules.keyword_weight_plain
            if needle in title:
                score += weight + rules.keyword_title_bonus
                matched.append(f"title:{keyword}")
            if description and needle in description:
                score += weight
                matched.append(f"desc:{keyword}")

        if not direct and not matched:
            score = max(0, score - rules.low_relevance_penalty)
            signals.append("low-segment-relevance")

        if direct and len(matched) >= rules.high_relevance_min_matches:
            score += rules.high_relevance_bonus
            signals.append("high-segment-relevance")

        if direct and signals:
            business_impact = "high"
            score += rules.high_business_impact_bonus
        elif len(matched) > 2:
            business_impact = "medium"
            score += rules.medium_business_impact_bonus
        else:
            business_impact = "low"

        if direct:
            content_opportunity = "high"
        elif len(matched) > 1:
            content_opportunity = "medium"
        else:
            content_opportunity = "low"

        return RelevanceMatch(
            candidate=candidate,
            relevance_score=round_score(score),
            matched_keywords=matched,
            commercial_signals=signals,
            business_impact=business_impact,
            content_opportunity=content_opportunity,
        )

    def filter(self, matches: Sequence[RelevanceMatch]) -> List[RelevanceMatch]:
        kept = [match for match in matches if self.is_relevant(match)]
        if matches and not kept:
            logger.warning("Relevance filter removed all %d candidates", len(matches))
        return kept

    def is_relevant(self, match: RelevanceMatch) -> bool:
        # Segment hits are recorded in matched_keywords too, so this covers direct matches.
        if not match.matched_keywords:
            return False
        return (match.relevance_score or 0) > match.candidate.score + self.rules.filter_margin

    def _name_terms(self, segment: Segment) -> List[str]:
        # Repeated terms score once per occurrence.
        terms = split_terms(segment.name, NAME_SEPARATORS)
        return [term for term in terms if len(term) >= self.rules.segment_name_min_length]

    def _description_terms(self, segment: Segment) -> List[str]:
        if not segment.description:
            return []
        terms = split_terms(segment.description, DESCRIPTION_SEPARATORS)
        long_terms = [term for term in terms if len(term) >= self.rules.description_term_min_length]
        return long_terms[: self.rules.description_term_limit]
