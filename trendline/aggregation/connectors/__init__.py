from __future__ import annotations

from typing import Any, Dict, List

from trendline.aggregation.connectors.base import BaseConnector, ConnectorError
from trendline.aggregation.connectors.google_news import GoogleNewsConnector
from trendline.aggregation.connectors.reddit_discussions import RedditDiscussionsConnector

CONNECTOR_REGISTRY = {
    "google": GoogleNewsConnector,
    "reddit": RedditDiscussionsConnector,
}


def load_connectors(connector_config: Dict[str, Dict], shared: Dict[str, Any] | None = None) -> List[BaseConnector]:
    """Instantiates the registered connectors named in config; ``shared`` settings are defaults for each."""
    connectors: List[BaseConnector] = []
    for name, params in connector_config.items():
        connector_cls = CONNECTOR_REGISTRY.get(name)
        if not connector_cls:
            continue
        connector = connector_cls({**(shared or {}), **(params or {})})
        connectors.append(connector)
    return connectors


__all__ = [
    "BaseConnector",
    "ConnectorError",
    "CONNECTOR_REGISTRY",
    "GoogleNewsConnector",
    "RedditDiscussionsConnector",
    "load_connectors",
]
