"""Tests for trend and segment models."""

from datetime import datetime, timezone

from trendline.aggregation.models.segment import Segment, SegmentProfile, segment_ids
from trendline.aggregation.models.trend import (
    FAILURE_UNAVAILABLE,
    AggregationFailure,
    TrendCandidate,
    TrendMetadata,
    TrendResponse,
    parse_timestamp,
    round_score,
)


class TestTrendCandidate:
    def test_from_dict_defaults_missing_numbers_to_zero(self):
        candidate = TrendCandidate.from_dict({"id": "x", "title": "Hello", "source": "google", "score": "n/a"})
        assert candidate.score == 0.0
        assert candidate.change == 0.0
        assert candidate.tags == []

    def test_metadata_drops_unknown_keys(self):
        metadata = TrendMetadata.from_dict({"publisher": "Reuters", "mood": "happy"})
        assert metadata.to_dict() == {"publisher": "Reuters"}

    def test_published_parses_iso_timestamp(self):
        candidate = TrendCandidate(id="x", title="t", source="s", timestamp="2026-01-15T11:30:00Z")
        assert candidate.published() == datetime(2026, 1, 15, 11, 30, tzinfo=timezone.utc)

    def test_unparseable_timestamp_is_none(self):
        assert parse_timestamp("yesterday-ish") is None
        assert parse_timestamp("") is None
        assert parse_timestamp(None) is None

    def test_naive_timestamp_is_treated_as_utc(self):
        assert parse_timestamp("2026-01-15T11:30:00").tzinfo == timezone.utc


class TestRoundScore:
    def test_rounds_half_up(self):
        assert round_score(2.5) == 3
        assert round_score(117.5) == 118
        assert round_score(2.4) == 2

    def test_never_negative(self):
        assert round_score(-4) == 0


class TestTrendResponse:
    def test_failure_payload(self):
        response = TrendResponse.failure("reddit", "Source reddit is not available", FAILURE_UNAVAILABLE)
        payload = response.to_dict()
        assert payload["success"] is False
        assert payload["error_kind"] == "unavailable"
        assert "data" not in payload

    def test_ok_payload_counts_items(self):
        candidate = TrendCandidate(id="x", title="t", source="google")
        payload = TrendResponse.ok("google", [candidate]).to_dict()
        assert payload["success"] is True
        assert payload["count"] == 1
        assert payload["data"][0]["id"] == "x"

    def test_aggregation_failure_has_no_data(self):
        payload = AggregationFailure(error="google: down").to_dict()
        assert payload == {"success": False, "error": "google: down", "failures": {}}


class TestSegment:
    def test_from_dict_reads_nested_icp(self):
        segment = Segment.from_dict(
            {
                "id": 7,
                "name": "Growth Marketers",
                "icp": {
                    "industry": "SaaS",
                    "pain_points": ["lead quality"],
                    "profile": {
                        "professionalContext": {"tools": {"current": ["HubSpot"], "desired": ["Clay"]}},
                        "psychographics": {"interests": ["automation"]},
                    },
                },
                "topics": {"blog": ["attribution"]},
            }
        )
        assert segment.id == "7"
        assert segment.profile == SegmentProfile(
            industry="SaaS",
            pain_points=("lead quality",),
            current_tools=("HubSpot",),
            desired_tools=("Clay",),
            interests=("automation",),
            content_topics=("attribution",),
        )

    def test_segment_ids_sorted(self):
        segments = [Segment(id="b", name="B"), Segment(id="a", name="A")]
        assert segment_ids(segments) == ["a", "b"]
