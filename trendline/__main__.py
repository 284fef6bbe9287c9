from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from trendline.aggregation.models.segment import Segment
from trendline.aggregation.services.trend_rank_service import DEFAULT_SORT
from trendline.aggregation.services.trends_manager import build_trends_manager

SORT_CHOICES = ["relevance", "hotness", "viral", "impact", "cross-platform", "recent"]


def parse_segment(value: str) -> Segment:
    """Parses ``id:name[:description]`` into a Segment."""
    parts = value.split(":", 2)
    if len(parts) < 2 or not parts[0] or not parts[1]:
        raise argparse.ArgumentTypeError(f"Segment must look like id:name[:description], got {value!r}")
    return Segment(id=parts[0], name=parts[1], description=parts[2] if len(parts) == 3 else "")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="trendline", description="Aggregate and rank trends across sources")
    parser.add_argument("--config", help="Path to a trends.yaml config file")
    parser.add_argument(
        "--source",
        action="append",
        dest="sources",
        help="Source to query (repeatable); defaults to every enabled source",
    )
    parser.add_argument(
        "--segment",
        action="append",
        dest="segments",
        type=parse_segment,
        help="Audience segment as id:name[:description] (repeatable)",
    )
    parser.add_argument("--limit", type=int, help="Maximum trends per source")
    parser.add_argument("--sort-by", choices=SORT_CHOICES, default=None, help=f"Ranking strategy (default: {DEFAULT_SORT})")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    manager = build_trends_manager(args.config)
    result = asyncio.run(
        manager.get_all_trends(
            sources=args.sources,
            segments=args.segments,
            limit_per_source=args.limit,
            sort_by=args.sort_by,
        )
    )
    print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
