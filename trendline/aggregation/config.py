import dataclasses
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple

import yaml


DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[1] / "config" / "trends.yaml"


def load_config(path: str | os.PathLike[str] | None = None) -> Dict[str, Any]:
    config_path = Path(path) if path else DEFAULT_CONFIG_PATH
    if not config_path.exists():
        raise FileNotFoundError(f"Trend aggregation config not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError("Trend aggregation config must be a mapping")

    return data


@dataclass(frozen=True)
class RelevanceRules:
    segment_name_weight: int = 100
    segment_name_min_length: int = 4
    segment_description_weight: int = 60
    description_term_min_length: int = 5
    description_term_limit: int = 5
    commercial_keywords: Tuple[str, ...] = (
        "solution", "tool", "strategy", "optimization", "automation", "efficiency",
        "roi", "revenue", "growth", "scale", "opportunity",
    )
    commercial_weight_direct: int = 50
    commercial_weight_indirect: int = 25
    impact_keywords: Tuple[str, ...] = (
        "increase", "boost", "improve", "optimize", "productivity", "conversion", "retention",
    )
    impact_weight_direct: int = 40
    impact_weight_indirect: int = 15
    keyword_weight_commercial: int = 30
    keyword_weight_plain: int = 15
    keyword_title_bonus: int = 15
    low_relevance_penalty: int = 50
    high_relevance_bonus: int = 30
    high_relevance_min_matches: int = 3
    high_business_impact_bonus: int = 15
    medium_business_impact_bonus: int = 8
    filter_margin: int = 20


@dataclass(frozen=True)
class HotnessRules:
    # (exclusive upper bound in hours, points)
    recency_buckets: Tuple[Tuple[float, int], ...] = ((1, 50), (6, 35), (12, 20), (24, 10))
    # (exclusive lower bound, points), checked in order
    engagement_buckets: Tuple[Tuple[float, int], ...] = ((100, 30), (50, 20), (20, 10))
    momentum_buckets: Tuple[Tuple[float, int], ...] = ((20, 25), (10, 15), (0, 5))
    ratings: Tuple[Tuple[int, str], ...] = ((60, "very-hot"), (40, "hot"), (20, "warm"))
    floor_rating: str = "cool"


@dataclass(frozen=True)
class ViralRules:
    # (score above, change above, points), first match wins
    velocity_rules: Tuple[Tuple[float, float, int], ...] = ((80, 15, 40), (50, 10, 25), (30, 5, 15))
    forum_sources: Tuple[str, ...] = ("reddit",)
    forum_score_threshold: float = 100
    forum_bonus: int = 20
    social_sources: Tuple[str, ...] = ("twitter", "x")
    social_change_threshold: float = 25
    social_bonus: int = 25
    news_sources: Tuple[str, ...] = ("google",)
    news_max_hours: float = 2
    news_bonus: int = 15
    language_keywords: Tuple[str, ...] = (
        "breaking", "viral", "trending", "explosive", "massive", "unprecedented", "shocking",
    )
    language_bonus: int = 20
    ratings: Tuple[Tuple[int, str], ...] = ((50, "very-viral"), (30, "viral"), (15, "growing"))
    floor_rating: str = "stable"


@dataclass(frozen=True)
class ImpactRules:
    business_keywords: Tuple[str, ...] = (
        "launch", "funding", "acquisition", "ipo", "partnership", "breakthrough", "revolution",
    )
    business_bonus: int = 30
    tech_keywords: Tuple[str, ...] = ("ai", "blockchain", "automation", "cloud", "saas", "api", "platform")
    tech_bonus: int = 25
    market_keywords: Tuple[str, ...] = ("enterprise", "b2b", "billion", "million", "global", "worldwide")
    market_bonus: int = 20
    ratings: Tuple[Tuple[int, str], ...] = ((40, "high-impact"), (20, "medium-impact"))
    floor_rating: str = "low-impact"


@dataclass(frozen=True)
class CrossPlatformRules:
    topic_word_min_length: int = 5
    min_sources: int = 2
    bonus_per_source: int = 15
    sort_topic_weight: int = 10


@dataclass(frozen=True)
class CompositeWeights:
    hotness: float = 0.3
    viral: float = 0.25
    cross_platform: float = 0.2
    impact: float = 0.25


@dataclass(frozen=True)
class ScoringConfig:
    """Every threshold, weight and vocabulary used by the scoring services."""

    relevance: RelevanceRules = field(default_factory=RelevanceRules)
    hotness: HotnessRules = field(default_factory=HotnessRules)
    viral: ViralRules = field(default_factory=ViralRules)
    impact: ImpactRules = field(default_factory=ImpactRules)
    cross_platform: CrossPlatformRules = field(default_factory=CrossPlatformRules)
    composite: CompositeWeights = field(default_factory=CompositeWeights)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "ScoringConfig":
        """Builds a config from the ``scoring`` section, overriding defaults key by key."""
        data = data or {}
        if not isinstance(data, Mapping):
            raise ValueError("scoring config must be a mapping")

        default = cls()
        sections: Dict[str, Any] = {}
        for section_field in dataclasses.fields(cls):
            name = section_field.name
            current = getattr(default, name)
            overrides = data.get(name)
            if overrides is None:
                sections[name] = current
                continue
            if not isinstance(overrides, Mapping):
                raise ValueError(f"scoring.{name} must be a mapping")
            known = {f.name for f in dataclasses.fields(current)}
            unknown = set(overrides) - known
            if unknown:
                raise ValueError(f"Unknown scoring.{name} keys: {', '.join(sorted(unknown))}")
            sections[name] = dataclasses.replace(
                current, **{key: _freeze(value) for key, value in overrides.items()}
            )

        unknown_sections = set(data) - set(sections)
        if unknown_sections:
            raise ValueError(f"Unknown scoring sections: {', '.join(sorted(unknown_sections))}")
        return cls(**sections)


def _freeze(value: Any) -> Any:
    if isinstance(value, list):
        return tuple(_freeze(item) for item in value)
    return value
