from __future__ import annotations

from typing import Dict, List

from trendline.aggregation.utils.text import contains_word


class CategoryRouter:
    """Picks the configured category whose keywords occur most often in a text.

    Ties go to the category listed first; texts matching nothing get the fallback.
    """

    def __init__(self, category_config: Dict[str, Dict[str, List[str]]], fallback: str = "Business & Technology"):
        self.category_config = category_config or {}
        self.fallback = fallback
        self._normalized = {
            key: [kw.lower() for kw in (values or {}).get("keywords", [])]
            for key, values in self.category_config.items()
        }

    def route(self, text: str, fallback: str | None = None) -> str:
        blob = text.lower()
        best_category = fallback or self.fallback
        best_score = 0

        for category, keywords in self._normalized.items():
            score = sum(1 for kw in keywords if contains_word(blob, kw))
            if score > best_score:
                best_score = score
                best_category = category

        return best_category
