"""Shared fixtures for the trend aggregation tests."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest

from trendline.aggregation.connectors.base import BaseConnector, ConnectorError
from trendline.aggregation.models.segment import Segment
from trendline.aggregation.models.trend import TrendCandidate, isoformat

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Monotonic clock stand-in that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubConnector(BaseConnector):
    """Connector returning canned candidates and counting fetches."""

    def __init__(self, name: str, candidates: List[TrendCandidate], fail: Optional[str] = None, **config):
        self.name = name
        super().__init__(config)
        self.candidates = candidates
        self.fail = fail
        self.calls = 0

    def build_keywords(self, segments):
        return [segment.name for segment in segments]

    async def _fetch_impl(self, segments, limit):
        self.calls += 1
        await asyncio.sleep(0)
        if self.fail:
            raise ConnectorError(self.fail)
        return self.candidates[:limit]


def make_candidate(
    title: str,
    source: str = "alpha",
    score: float = 50,
    change: float = 0,
    minutes_old: Optional[float] = 30,
    description: str = "",
    **kwargs,
) -> TrendCandidate:
    timestamp = isoformat(NOW - timedelta(minutes=minutes_old)) if minutes_old is not None else "not-a-date"
    return TrendCandidate(
        id=kwargs.pop("id", f"{source}-{title.lower().replace(' ', '-')}"),
        title=title,
        source=source,
        description=description,
        score=score,
        change=change,
        timestamp=timestamp,
        **kwargs,
    )


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def candidate_factory():
    return make_candidate


@pytest.fixture
def stub_factory():
    return StubConnector


@pytest.fixture
def startup_pair():
    """One candidate per source sharing the words "startup" and "funding"."""
    return [
        make_candidate("Startup Funding Breakthrough", source="alpha", score=90, change=18, minutes_old=30),
        make_candidate("New Startup Funding Platform", source="beta", score=60, change=12, minutes_old=45),
    ]


@pytest.fixture
def marketing_segment():
    return Segment(id="seg-1", name="Marketing Automation")
