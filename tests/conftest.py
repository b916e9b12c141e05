"""
Shared fixtures: explicit settings, a fresh registry and a scripted provider.
"""

from __future__ import annotations

import asyncio
import re

import pytest

from briefing.errors import BackendError
from briefing.models import ProviderId
from briefing.providers import BriefingProvider
from briefing.registry import ModelRegistry
from config.settings import Settings

_TOPIC_RE = re.compile(r'"([^"]+)"')

DEFAULT_POSTS = '{"tweets": ["First fake post about it", "Second fake post about it"]}'
DEFAULT_TRENDING = (
    '{"topics": ['
    '{"title": "Chip Exports", "description": "New controls"}, '
    '{"title": "AI Regulation", "description": "EU AI Act"}, '
    '{"title": "Climate Summit", "description": "Leaders meet"}]}'
)


class FakeProvider(BriefingProvider):
    """Provider whose backend is a script instead of a network service."""

    display_name = "Fake"

    def __init__(
        self,
        settings: Settings,
        registry: ModelRegistry,
        provider_id: ProviderId = ProviderId.GROQ,
        *,
        available: bool = True,
        models: tuple[str, ...] = ("fake-model",),
        fail_topics: tuple[str, ...] = (),
        empty_topics: tuple[str, ...] = (),
        posts_text: str = DEFAULT_POSTS,
        post_error: bool | Exception = False,
        trending_text: str = DEFAULT_TRENDING,
        trending_error: bool | Exception = False,
        delay: float = 0.0,
    ) -> None:
        super().__init__(settings, registry)
        self.provider_id = provider_id
        self.available = available
        self.models = models
        self.fail_topics = fail_topics
        self.empty_topics = empty_topics
        self.posts_text = posts_text
        self.post_error = post_error
        self.trending_text = trending_text
        self.trending_error = trending_error
        self.delay = delay
        self.calls: list[tuple[str, str]] = []
        self.active = 0
        self.peak = 0

    def is_available(self) -> bool:
        return self.available

    async def list_models(self) -> list[str]:
        return list(self.models)

    async def _complete(self, prompt: str, *, model: str, kind: str) -> str:
        self.calls.append((kind, model))
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if kind == "summary":
                topic = _TOPIC_RE.search(prompt).group(1)
                if topic in self.fail_topics:
                    raise BackendError(f"backend exploded on {topic}")
                if topic in self.empty_topics:
                    return "   "
                return f"Summary for {topic}"
            if kind == "posts":
                if isinstance(self.post_error, Exception):
                    raise self.post_error
                if self.post_error:
                    raise BackendError("post generation failed")
                return self.posts_text
            if isinstance(self.trending_error, Exception):
                raise self.trending_error
            if self.trending_error:
                raise BackendError("trending discovery failed")
            return self.trending_text
        finally:
            self.active -= 1


@pytest.fixture
def settings() -> Settings:
    return Settings(
        anthropic_api_key="test-key",
        groq_api_key="test-key",
        ollama_host="http://ollama.test:11434",
        groq_base_url="https://api.groq.com/openai/v1",
        max_search_results=5,
        max_web_searches=3,
        search_supplement=False,
        max_concurrency=4,
        request_timeout=5.0,
    )


@pytest.fixture
def registry() -> ModelRegistry:
    return ModelRegistry()


@pytest.fixture
def make_provider(settings, registry):
    """Factory for ``FakeProvider`` instances sharing one registry."""

    def factory(provider_id: ProviderId = ProviderId.GROQ, **kwargs) -> FakeProvider:
        return FakeProvider(settings, registry, provider_id, **kwargs)

    return factory
