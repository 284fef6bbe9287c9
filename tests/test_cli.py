"""Tests for the command-line entry point."""

import argparse
import json
from unittest.mock import AsyncMock, Mock, patch

import pytest

from trendline.__main__ import main, parse_segment
from trendline.aggregation.models.trend import AggregationFailure


class TestParseSegment:
    def test_with_description(self):
        segment = parse_segment("s1:Marketing Automation:B2B growth teams")
        assert (segment.id, segment.name, segment.description) == ("s1", "Marketing Automation", "B2B growth teams")

    def test_without_description(self):
        assert parse_segment("s1:Founders").description == ""

    def test_rejects_missing_name(self):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_segment("s1")


class TestMain:
    def test_prints_json_and_exit_code(self, capsys):
        manager = Mock()
        manager.get_all_trends = AsyncMock(return_value=AggregationFailure(error="google: down"))
        with patch("trendline.__main__.build_trends_manager", return_value=manager) as build:
            code = main(["--source", "google", "--segment", "s1:Founders", "--limit", "2", "--sort-by", "viral"])

        assert code == 1
        build.assert_called_once_with(None)
        kwargs = manager.get_all_trends.call_args.kwargs
        assert kwargs["sources"] == ["google"]
        assert kwargs["limit_per_source"] == 2
        assert kwargs["sort_by"] == "viral"
        assert [s.name for s in kwargs["segments"]] == ["Founders"]
        assert json.loads(capsys.readouterr().out) == {"success": False, "error": "google: down", "failures": {}}
