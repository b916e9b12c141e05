"""Output parsing for free-form model responses.

Every content kind is parsed by an ordered chain of strategies:

1. **Structured** — the JSON document the prompt asked for (fences and
   surrounding prose tolerated).
2. **Heuristic** — line-based extraction from whatever text came back.
3. **Fallback** — a fixed, hard-coded value.

Each strategy takes the raw text and returns a non-empty result, ``None``,
or raises ``ParseFailure``. The first non-empty result wins. The public
functions never raise; a caller always receives something usable.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Iterator, Sequence
from typing import Optional, TypeVar

from pydantic import ValidationError

from briefing.errors import ParseFailure
from briefing.models import TrendingTopic

logger = logging.getLogger(__name__)

T = TypeVar("T")
Strategy = Callable[[str], Optional[list[T]]]

# ── Limits ─────────────────────────────────────────────────────────────────

MAX_POSTS = 3
MAX_TOPICS = 3
#: Longest post kept as-is; longer ones are cut and end with ``ELLIPSIS``.
MAX_POST_LENGTH = 280
#: Heuristic lines shorter than this are never treated as posts.
MIN_POST_LENGTH = 10
ELLIPSIS = "…"

# ── Fixed fallbacks ────────────────────────────────────────────────────────

GENERIC_POSTS: tuple[str, ...] = (
    "Big things are happening in the news today. Stay curious and stay informed! 📰",
    "Knowledge is power: catch up on the stories shaping the world right now. 💡",
    "The world moves fast. Here is what you need to know today. ⚡",
)

FALLBACK_TOPICS: tuple[TrendingTopic, ...] = (
    TrendingTopic(title="Technology Updates", description="Latest tech developments"),
    TrendingTopic(title="Global Politics", description="Recent political developments"),
    TrendingTopic(title="Economic News", description="Financial market updates"),
)

# ── Patterns ───────────────────────────────────────────────────────────────

_FENCE = re.compile(r"^\s*```")
_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)
_JSON_ARRAY = re.compile(r"\[.*\]", re.DOTALL)
#: Lines that are JSON scaffolding rather than content, e.g. ``"tweets": [``.
_JSON_SYNTAX = re.compile(r"^[\[\]{}]|[\[{]$")
_LINE_PREFIX = re.compile(r"^\s*(?:[-*•>]+\s*|\d+[.)]\s+|#+\s*)*")
_TWEET_LABEL = re.compile(r"^tweet\s*#?\d*\s*[:\-]\s*", re.IGNORECASE)
_SELF_REFERENCE = re.compile(
    r"^(?:here(?:'s| is| are)|sure|okay|ok)\b.*\btweets?\b|\btweets?\b.*:$",
    re.IGNORECASE,
)
_MARKUP = re.compile(r"[*_`#]+")
_PREAMBLE = re.compile(r"^(?:here(?:'s| is| are)|sure|okay|ok)\b", re.IGNORECASE)


# ── Shared helpers ─────────────────────────────────────────────────────────


def _json_candidates(text: str) -> Iterator[str]:
    stripped = text.strip()
    yield stripped
    for pattern in (_JSON_OBJECT, _JSON_ARRAY):
        match = pattern.search(stripped)
        if match:
            yield match.group(0)


def _load_json(text: str) -> object:
    """Parse the first JSON document found in *text*.

    Raises:
        ParseFailure: If no candidate substring is valid JSON.
    """
    for candidate in _json_candidates(text):
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    raise ParseFailure("no JSON document found in model output")


def _first_success(
    text: str,
    strategies: Sequence[Strategy[T]],
    fallback: Sequence[T],
    kind: str,
) -> list[T]:
    for strategy in strategies:
        try:
            result = strategy(text)
        except ParseFailure as exc:
            logger.debug("%s strategy %s failed: %s", kind, strategy.__name__, exc)
            continue
        if result:
            return result
    logger.warning("Could not extract %s from model output; using fallback", kind)
    return list(fallback)


def truncate_post(post: str, limit: int = MAX_POST_LENGTH) -> str:
    """Cut *post* to at most *limit* characters, marking the cut with ``…``."""
    if len(post) <= limit:
        return post
    return post[: limit - len(ELLIPSIS)].rstrip() + ELLIPSIS


# ── Social posts ───────────────────────────────────────────────────────────


def posts_from_json(text: str) -> Optional[list[str]]:
    """Read ``{"tweets": [...]}`` (or a bare JSON list of strings)."""
    data = _load_json(text)
    items = data.get("tweets", data.get("posts")) if isinstance(data, dict) else data
    if not isinstance(items, list):
        raise ParseFailure("expected a list of posts")
    posts = [item.strip() for item in items if isinstance(item, str) and item.strip()]
    return posts[:MAX_POSTS] or None


def _clean_post_line(line: str) -> str:
    line = _LINE_PREFIX.sub("", line).replace("**", "")
    line = _TWEET_LABEL.sub("", line.strip())
    return line.rstrip(",").strip().strip('"“”').strip()


def posts_from_lines(text: str) -> Optional[list[str]]:
    """Take the first three lines that look like posts."""
    posts: list[str] = []
    for raw in text.splitlines():
        stripped = raw.strip().rstrip(",").strip()
        if not stripped or _FENCE.match(stripped) or _JSON_SYNTAX.search(stripped):
            continue
        line = _clean_post_line(stripped)
        if len(line) < MIN_POST_LENGTH or _SELF_REFERENCE.search(line):
            continue
        posts.append(line)
        if len(posts) == MAX_POSTS:
            break
    return posts or None


SOCIAL_POST_STRATEGIES: tuple[Strategy[str], ...] = (posts_from_json, posts_from_lines)


def parse_social_posts(text: str) -> list[str]:
    """Extract 1–3 posts from *text*, each at most ``MAX_POST_LENGTH`` long."""
    posts = _first_success(text or "", SOCIAL_POST_STRATEGIES, GENERIC_POSTS, "social posts")
    return [truncate_post(post) for post in posts[:MAX_POSTS]]


# ── Trending topics ────────────────────────────────────────────────────────


def topics_from_json(text: str) -> Optional[list[TrendingTopic]]:
    """Read ``{"topics": [{"title": ..., "description": ...}, ...]}``."""
    data = _load_json(text)
    items = data.get("topics") if isinstance(data, dict) else data
    if not isinstance(items, list):
        raise ParseFailure("expected a list of topics")

    topics: list[TrendingTopic] = []
    for item in items:
        try:
            topic = TrendingTopic.model_validate(item)
        except ValidationError:
            continue
        if topic.title.strip():
            topics.append(TrendingTopic(
                title=topic.title.strip(),
                description=topic.description.strip(),
            ))
    return topics[:MAX_TOPICS] or None


def topics_from_lines(text: str) -> Optional[list[TrendingTopic]]:
    """Split numbered/bulleted lines into ``title: description`` pairs."""
    topics: list[TrendingTopic] = []
    for raw in text.splitlines():
        stripped = raw.strip()
        if not stripped or _FENCE.match(stripped) or _JSON_SYNTAX.search(stripped):
            continue
        line = _LINE_PREFIX.sub("", _MARKUP.sub("", stripped)).strip()
        if not line or _PREAMBLE.match(line):
            continue

        title, _, description = line.partition(":")
        title = title.strip().strip('"').strip()
        if len(title) < 3:
            continue
        topics.append(TrendingTopic(title=title, description=description.strip()))
        if len(topics) == MAX_TOPICS:
            break
    return topics or None


TRENDING_STRATEGIES: tuple[Strategy[TrendingTopic], ...] = (topics_from_json, topics_from_lines)


def parse_trending_topics(text: str) -> list[TrendingTopic]:
    """Extract 1–3 trending topics from *text*."""
    topics = _first_success(text or "", TRENDING_STRATEGIES, FALLBACK_TOPICS, "trending topics")
    return topics[:MAX_TOPICS]
