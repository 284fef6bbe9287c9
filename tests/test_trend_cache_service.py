"""Tests for the TTL trend cache."""

import pytest

from trendline.aggregation.models.segment import Segment
from trendline.aggregation.models.trend import TrendResponse
from trendline.aggregation.services.trend_cache_service import TrendCache, segment_key


def _response(source="google"):
    return TrendResponse.ok(source, [])


class TestSegmentKey:
    def test_default_without_segments(self):
        assert segment_key(None) == "default"
        assert segment_key([]) == "default"

    def test_order_independent(self):
        a, b = Segment(id="b", name="B"), Segment(id="a", name="A")
        assert segment_key([a, b]) == segment_key([b, a]) == "a,b"


class TestTrendCache:
    def test_hit_within_ttl(self, fake_clock):
        cache = TrendCache(ttl_seconds=300, clock=fake_clock)
        response = _response()
        cache.put("google", "default", response)
        fake_clock.advance(299)
        assert cache.get("google", "default").response is response

    def test_miss_at_ttl(self, fake_clock):
        cache = TrendCache(ttl_seconds=300, clock=fake_clock)
        cache.put("google", "default", _response())
        fake_clock.advance(300)
        assert cache.get("google", "default") is None

    def test_keys_are_per_source_and_segments(self, fake_clock):
        cache = TrendCache(clock=fake_clock)
        cache.put("google", "a,b", _response())
        assert cache.get("google", "default") is None
        assert cache.get("reddit", "a,b") is None
        assert "google-a,b" in cache

    def test_put_replaces_entry(self, fake_clock):
        cache = TrendCache(clock=fake_clock)
        cache.put("google", "default", _response())
        fresh = _response()
        cache.put("google", "default", fresh)
        assert len(cache) == 1
        assert cache.get("google", "default").response is fresh

    def test_evicts_least_recently_used(self, fake_clock):
        cache = TrendCache(ttl_seconds=300, max_entries=2, clock=fake_clock)
        cache.put("google", "a", _response())
        cache.put("google", "b", _response())
        cache.get("google", "a")
        cache.put("google", "c", _response())
        assert "google-a" in cache
        assert "google-b" not in cache
        assert "google-c" in cache

    def test_sweeps_expired_before_lru(self, fake_clock):
        cache = TrendCache(ttl_seconds=10, max_entries=2, clock=fake_clock)
        cache.put("google", "old", _response())
        fake_clock.advance(5)
        cache.put("google", "recent", _response())
        fake_clock.advance(6)
        cache.put("reddit", "new", _response())
        assert "google-old" not in cache
        assert len(cache) == 2

    def test_rejects_empty_bound(self):
        with pytest.raises(ValueError):
            TrendCache(max_entries=0)
