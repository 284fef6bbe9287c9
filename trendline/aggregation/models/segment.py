from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple


def _strings(values: Any) -> Tuple[str, ...]:
    if not values:
        return ()
    if isinstance(values, str):
        return (values,)
    return tuple(str(value) for value in values if value)


@dataclass(frozen=True, slots=True)
class SegmentProfile:
    """Structured ideal-customer profile attached to a segment."""

    industry: Optional[str] = None
    pain_points: Tuple[str, ...] = ()
    goals: Tuple[str, ...] = ()
    current_tools: Tuple[str, ...] = ()
    desired_tools: Tuple[str, ...] = ()
    interests: Tuple[str, ...] = ()
    content_topics: Tuple[str, ...] = ()
    audience: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "SegmentProfile":
        """Accepts either the flat field names or the dashboard's nested ICP shape."""
        data = data or {}
        profile = data.get("profile") or {}
        tools = (profile.get("professionalContext") or {}).get("tools") or {}
        interests = (profile.get("psychographics") or {}).get("interests")
        return cls(
            industry=data.get("industry"),
            pain_points=_strings(data.get("pain_points")),
            goals=_strings(data.get("goals")),
            current_tools=_strings(data.get("current_tools") or tools.get("current")),
            desired_tools=_strings(data.get("desired_tools") or tools.get("desired")),
            interests=_strings(data.get("interests") or interests),
            content_topics=_strings(data.get("content_topics")),
            audience=data.get("audience"),
        )


@dataclass(frozen=True, slots=True)
class Segment:
    id: str
    name: str
    description: str = ""
    profile: Optional[SegmentProfile] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Segment":
        icp = data.get("icp") or data.get("profile")
        profile = SegmentProfile.from_dict(icp) if icp else None
        topics = (data.get("topics") or {}).get("blog")
        audience = data.get("audience")
        if topics or audience:
            profile = profile or SegmentProfile()
            profile = replace(
                profile,
                content_topics=profile.content_topics or _strings(topics),
                audience=profile.audience or audience,
            )
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            description=str(data.get("description") or ""),
            profile=profile,
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"id": self.id, "name": self.name, "description": self.description}
        if self.profile:
            result["profile"] = {
                "industry": self.profile.industry,
                "pain_points": list(self.profile.pain_points),
                "goals": list(self.profile.goals),
                "current_tools": list(self.profile.current_tools),
                "desired_tools": list(self.profile.desired_tools),
                "interests": list(self.profile.interests),
                "content_topics": list(self.profile.content_topics),
                "audience": self.profile.audience,
            }
        return result


def segment_ids(segments: List[Segment] | None) -> List[str]:
    return sorted(segment.id for segment in segments or [])
