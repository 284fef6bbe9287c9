from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Sequence

import asyncpraw
import httpx

from trendline.aggregation.connectors.base import BaseConnector
from trendline.aggregation.models.segment import Segment
from trendline.aggregation.models.trend import TrendCandidate, TrendMetadata, isoformat, utc_now
from trendline.aggregation.utils.text import dedupe, significant_words

logger = logging.getLogger(__name__)

DEFAULT_KEYWORDS = [
    "startup", "business", "entrepreneur", "marketing", "technology",
    "SaaS", "digital marketing", "growth hacking", "productivity",
]
DISCUSSION_CONTEXTS = ["tips", "advice", "tools", "strategy", "success", "growth", "help", "guide", "best", "how"]
BUSINESS_SUBREDDITS = ["entrepreneur", "business", "startups", "smallbusiness"]
KEYWORD_SUBREDDITS = {
    "marketing": ["marketing", "digitalmarketing", "advertising"],
    "digital": ["digitalmarketing", "webdev", "technology"],
    "tech": ["technology", "programming", "webdev"],
    "software": ["software", "programming", "webdev"],
    "ecommerce": ["ecommerce", "shopify", "retail"],
    "finance": ["personalfinance", "investing", "fintech"],
    "health": ["health", "fitness", "medical"],
    "food": ["food", "cooking", "restaurant"],
    "education": ["education", "teaching", "learning"],
    "real estate": ["realestate", "investing"],
    "consulting": ["consulting", "freelance"],
    "design": ["design", "graphic_design", "webdesign"],
    "content": ["content", "writing", "blogging"],
    "social": ["socialmedia", "marketing"],
    "data": ["analytics", "datascience", "business"],
}
MAX_SUBREDDITS = 5
MAX_KEYWORDS = 15
MIN_POST_RELEVANCE = 2
DESCRIPTION_TEMPLATES = [
    '"{title}" - Hot discussion with {comments} comments in r/{subreddit}',
    'Trending in r/{subreddit}: "{short}..." ({comments} comments)',
    'r/{subreddit} users are discussing: "{short}..." - {comments} replies',
    'Popular thread in r/{subreddit}: "{short}..." • {comments} comments',
    'Top thread in r/{subreddit}: "{short}..." • Active discussion with {comments} comments',
]


def select_subreddits(segments: Sequence[Segment], fallback: str) -> str:
    if not segments:
        return fallback
    text = " ".join(f"{segment.name} {segment.description}" for segment in segments).lower()
    candidates = list(BUSINESS_SUBREDDITS)
    for keyword, subreddits in KEYWORD_SUBREDDITS.items():
        if keyword in text:
            candidates.extend(subreddits)
    return "+".join(dedupe(candidates)[:MAX_SUBREDDITS])


def score_post(post: Dict[str, Any], keywords: Sequence[str]) -> tuple[float, List[str]]:
    """Keyword relevance of one post, boosted by engagement; returns (score, matches)."""
    title = post["title"].lower()
    title_words = title.split()
    selftext = (post.get("selftext") or "").lower()
    subreddit = (post.get("subreddit") or "").lower()

    relevance = 0.0
    matched: List[str] = []
    for keyword in keywords:
        needle = keyword.lower()
        if needle in title:
            relevance += 5
            matched.append(f"title:{keyword}")
        if needle in title_words:
            relevance += 8
            matched.append(f"title-exact:{keyword}")
        if needle in selftext:
            relevance += 2
            matched.append(f"content:{keyword}")
        if needle in subreddit:
            relevance += 3
            matched.append(f"subreddit:{keyword}")

    if len(matched) > 1:
        relevance += len(matched) * 2
    relevance += min((post.get("score") or 0) / 100, 3) + min((post.get("num_comments") or 0) / 20, 2)
    return round(relevance, 1), matched


def momentum(score: float, comments: int) -> float:
    ratio = score / comments if comments > 0 else score
    return round(min(max(ratio * 0.1 - 5, -30), 30), 1)


class RedditDiscussionsConnector(BaseConnector):
    """Discussion-forum source reading subreddit listings.

    Uses the authenticated API through asyncpraw when client credentials are
    configured and the public JSON listing otherwise.
    """

    name = "reddit"
    default_limit = 15
    PUBLIC_URL = "https://www.reddit.com/r/{subreddit}/{sort}.json"

    def __init__(self, config: dict | None = None) -> None:
        super().__init__(config)
        self.subreddit = self.config.get("subreddit", "all")
        self.sort_by = self.config.get("sort_by", "hot")
        self.timeframe = self.config.get("timeframe", "day")
        self.timeout = self.config.get("timeout", 10)
        self.client_id = self.config.get("client_id") or os.getenv("REDDIT_CLIENT_ID")
        self.client_secret = self.config.get("client_secret") or os.getenv("REDDIT_CLIENT_SECRET")
        self.user_agent = self.config.get("user_agent") or os.getenv("REDDIT_USER_AGENT", "Trendline/1.0")

    def build_keywords(self, segments: Sequence[Segment]) -> List[str]:
        if not segments:
            return list(DEFAULT_KEYWORDS)

        keywords: List[str] = []
        for segment in segments:
            name_words = significant_words(segment.name)
            keywords.append(segment.name)
            keywords.extend(name_words)
            for word in name_words:
                for context in DISCUSSION_CONTEXTS:
                    keywords.append(f"{word} {context}")
                    keywords.append(f"{context} {word}")
            keywords.extend(f"{segment.name} {suffix}" for suffix in ("business", "startup", "industry", "market"))
            if segment.description:
                description_words = significant_words(segment.description, min_length=4)[:8]
                keywords.extend(description_words)
                for word in description_words:
                    if len(word) > 4:
                        keywords.extend([f"{word} tips", f"{word} advice", f"best {word}"])

        return [kw for kw in dedupe(keywords) if len(kw.strip()) > 2][:MAX_KEYWORDS]

    async def _fetch_impl(self, segments: List[Segment], limit: int) -> List[TrendCandidate]:
        subreddit = select_subreddits(segments, self.subreddit)
        fetch_limit = max(50, limit * 3)
        logger.info("RedditDiscussionsConnector reading r/%s (%s, limit=%d)", subreddit, self.sort_by, fetch_limit)

        if self.client_id and self.client_secret:
            posts = await self._fetch_authenticated(subreddit, fetch_limit)
        else:
            posts = await self._fetch_public(subreddit, fetch_limit)

        if segments:
            keywords = self.build_keywords(segments)
            scored = []
            for post in posts:
                relevance, _ = score_post(post, keywords)
                if relevance > MIN_POST_RELEVANCE:
                    scored.append((relevance, post))
            scored.sort(key=lambda item: item[0], reverse=True)
            logger.info("RedditDiscussionsConnector kept %d/%d segment-relevant posts", len(scored), len(posts))
            posts = [post for _, post in scored]

        return [self._build_candidate(post, index) for index, post in enumerate(posts[:limit])]

    async def _fetch_authenticated(self, subreddit_name: str, limit: int) -> List[Dict[str, Any]]:
        reddit = asyncpraw.Reddit(
            client_id=self.client_id,
            client_secret=self.client_secret,
            user_agent=self.user_agent,
        )
        try:
            subreddit = await reddit.subreddit(subreddit_name)
            listing = getattr(subreddit, self.sort_by)
            kwargs = {"limit": limit}
            if self.sort_by in ("top", "controversial"):
                kwargs["time_filter"] = self.timeframe
            posts: List[Dict[str, Any]] = []
            async for submission in listing(**kwargs):
                posts.append(
                    {
                        "title": submission.title,
                        "score": submission.score,
                        "num_comments": submission.num_comments,
                        "created_utc": submission.created_utc,
                        "subreddit": submission.subreddit.display_name,
                        "permalink": submission.permalink,
                        "url": submission.url,
                        "selftext": submission.selftext,
                    }
                )
            return posts
        finally:
            await reddit.close()

    async def _fetch_public(self, subreddit: str, limit: int) -> List[Dict[str, Any]]:
        url = self.PUBLIC_URL.format(subreddit=subreddit, sort=self.sort_by)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.get(
                url,
                params={"limit": limit, "t": self.timeframe},
                headers={"User-Agent": self.user_agent},
            )
            resp.raise_for_status()
            payload = resp.json()
        children = (payload.get("data") or {}).get("children") or []
        return [child["data"] for child in children if child.get("data", {}).get("title")]

    def _build_candidate(self, post: Dict[str, Any], index: int) -> TrendCandidate:
        title = post["title"]
        subreddit = post.get("subreddit") or "business"
        comments = int(post.get("num_comments") or 0)
        score = float(post.get("score") or 0)
        permalink = post.get("permalink") or ""
        created = post.get("created_utc")
        published = datetime.fromtimestamp(created, tz=timezone.utc) if created else utc_now()
        template = DESCRIPTION_TEMPLATES[index % len(DESCRIPTION_TEMPLATES)]

        return TrendCandidate(
            id=self.candidate_id(title, permalink),
            title=title,
            source=self.name,
            description=template.format(title=title, short=title[:50], comments=comments, subreddit=subreddit),
            score=score,
            change=momentum(score, comments),
            category=subreddit,
            tags=[subreddit, "reddit", "discussion"],
            url=f"https://www.reddit.com{permalink}" if permalink else post.get("url", ""),
            timestamp=isoformat(published),
            metadata=TrendMetadata(
                subreddit=subreddit,
                comments=comments,
                permalink=permalink,
                engagement=score,
                region="Global",
            ),
        )
