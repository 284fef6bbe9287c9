"""Tests for segment relevance scoring and filtering."""

from trendline.aggregation.models.segment import Segment
from trendline.aggregation.services.relevance_score_service import RelevanceScoreService


class TestAssess:
    def test_direct_segment_match(self, candidate_factory, marketing_segment):
        candidate = candidate_factory("Marketing automation tools boost revenue", score=50)
        match = RelevanceScoreService().assess(candidate, [marketing_segment], ["marketing automation"])

        assert "segment-direct:marketing" in match.matched_keywords
        assert "segment-direct:automation" in match.matched_keywords
        assert "title:marketing automation" in match.matched_keywords
        assert {"commercial:tool", "commercial:automation", "commercial:revenue", "impact:boost"} <= set(
            match.commercial_signals
        )
        assert "high-segment-relevance" in match.commercial_signals
        assert match.business_impact == "high"
        assert match.content_opportunity == "high"
        # 50 + 200 name + 150 commercial + 40 impact + 45 keyword + 30 high relevance + 15 high impact
        assert match.relevance_score == 530

    def test_description_terms_count_as_direct(self, candidate_factory):
        segment = Segment(id="s", name="Ops", description="Warehouse robotics buyers")
        candidate = candidate_factory("New warehouse robots arrive", score=10)
        match = RelevanceScoreService().assess(candidate, [segment], [])

        assert match.matched_keywords == ["segment-desc:warehouse"]
        assert match.content_opportunity == "high"

    def test_repeated_description_terms_score_each_occurrence(self, candidate_factory):
        segment = Segment(id="s", name="Ops", description="warehouse robots warehouse teams warehouse")
        candidate = candidate_factory("New warehouse layout", score=10)
        match = RelevanceScoreService().assess(candidate, [segment], [])

        assert match.matched_keywords == ["segment-desc:warehouse"] * 3
        # 10 + 3 * 60 + 30 high relevance + 15 high impact
        assert match.relevance_score == 235

    def test_unrelated_candidate_is_penalised_to_zero(self, candidate_factory, marketing_segment):
        candidate = candidate_factory("Local weather forecast sunny", score=40)
        match = RelevanceScoreService().assess(candidate, [marketing_segment], ["marketing automation"])

        assert match.relevance_score == 0
        assert match.matched_keywords == []
        assert match.commercial_signals == ["low-segment-relevance"]
        assert match.business_impact == "low"
        assert match.content_opportunity == "low"

    def test_keyword_in_description(self, candidate_factory, marketing_segment):
        candidate = candidate_factory(
            "Quarterly results are in", score=10, description="Analysts cite email campaigns as a driver"
        )
        match = RelevanceScoreService().assess(candidate, [marketing_segment], ["email campaigns"])

        assert match.matched_keywords == ["desc:email campaigns"]
        assert match.relevance_score == 25


class TestFilter:
    def test_keeps_direct_matches(self, candidate_factory, marketing_segment):
        service = RelevanceScoreService()
        kept = service.score(
            [candidate_factory("Marketing teams adopt new automation", score=80)], [marketing_segment], []
        )
        assert len(kept) == 1

    def test_drops_commercial_only_matches(self, candidate_factory, marketing_segment):
        # Four commercial words lift the score well above the margin, but nothing ties it to the segment.
        candidate = candidate_factory("Revenue growth strategy solution", score=10)
        service = RelevanceScoreService()
        match = service.assess(candidate, [marketing_segment], [])

        assert match.relevance_score == 60
        assert service.filter([match]) == []

    def test_requires_margin_over_base(self, candidate_factory, marketing_segment):
        candidate = candidate_factory("Quarterly results are in", score=10, description="email campaigns")
        service = RelevanceScoreService()
        match = service.assess(candidate, [marketing_segment], ["email campaigns"])

        assert match.relevance_score == 25
        assert service.is_relevant(match) is False

    def test_score_returns_only_kept(self, candidate_factory, marketing_segment):
        candidates = [
            candidate_factory("Marketing automation tools boost revenue", score=50),
            candidate_factory("Local weather forecast sunny", score=40),
        ]
        kept = RelevanceScoreService().score(candidates, [marketing_segment], ["marketing automation"])
        assert [m.candidate.title for m in kept] == ["Marketing automation tools boost revenue"]
