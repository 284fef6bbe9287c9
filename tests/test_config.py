"""Tests for configuration loading."""

import pytest

from trendline.aggregation.config import HotnessRules, ScoringConfig, load_config


class TestLoadConfig:
    def test_default_config_has_both_sources(self):
        config = load_config()
        assert set(config["sources"]) == {"google", "reddit"}
        assert config["aggregation"]["limit_per_source"] == 6
        assert config["cache"]["ttl_seconds"] == 300

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_non_mapping_raises(self, tmp_path):
        path = tmp_path / "trends.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_config(path)

    def test_empty_file_is_empty_mapping(self, tmp_path):
        path = tmp_path / "trends.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(path) == {}


class TestScoringConfig:
    def test_empty_mapping_gives_defaults(self):
        assert ScoringConfig.from_mapping({}) == ScoringConfig()
        assert ScoringConfig.from_mapping(None) == ScoringConfig()

    def test_overrides_single_key_and_freezes_lists(self):
        config = ScoringConfig.from_mapping({"hotness": {"ratings": [[70, "very-hot"], [50, "hot"]]}})
        assert config.hotness.ratings == ((70, "very-hot"), (50, "hot"))
        assert config.hotness.recency_buckets == HotnessRules().recency_buckets
        assert config.viral == ScoringConfig().viral

    def test_unknown_key_raises(self):
        with pytest.raises(ValueError, match="Unknown scoring.viral keys"):
            ScoringConfig.from_mapping({"viral": {"sparkle": 1}})

    def test_unknown_section_raises(self):
        with pytest.raises(ValueError, match="Unknown scoring sections"):
            ScoringConfig.from_mapping({"vibes": {}})

    def test_section_must_be_mapping(self):
        with pytest.raises(ValueError):
            ScoringConfig.from_mapping({"impact": [1, 2]})
