"""
Provider adapters: one uniform contract over three generative-AI backends.

Backends
────────
claude  — Anthropic Messages API with the built-in web_search tool. The
          summary call streams and captures grounding sources; there is a
          single configured model.
groq    — OpenAI-compatible REST API. Models are listed from ``/models``
          and one must be selected.
ollama  — Local model server (``/api/tags``, ``/api/generate``). Models are
          listed from the server; an unreachable server lists nothing.

Every adapter turns SDK / transport failures into ``BackendError`` and
missing credentials or model selection into ``ProviderUnavailable``, before
any network call is made.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

import anthropic
import httpx

from briefing.errors import BackendError, ProviderUnavailable
from briefing.models import ProviderId, Source, SummaryLength, TrendingTopic
from briefing.parsing import parse_social_posts, parse_trending_topics
from briefing.prompts import TRENDING_PROMPT, social_posts_prompt, summary_prompt

if TYPE_CHECKING:
    from briefing.registry import ModelRegistry
    from briefing.search import WikipediaSearch
    from config.settings import Settings

logger = logging.getLogger(__name__)

#: Token budget and sampling temperature per call kind.
MAX_TOKENS: dict[str, int] = {"summary": 1000, "posts": 500, "trending": 800}
TEMPERATURE: dict[str, float] = {"summary": 0.7, "posts": 0.9, "trending": 0.7}

#: Beta header name for the Claude web_search tool.
WEB_SEARCH_BETA = "web-search-2025-03-05"
#: Tool definition passed to the Claude beta messages API.
WEB_SEARCH_TOOL = {"type": "web_search_20250305", "name": "web_search"}


# ── Base class ─────────────────────────────────────────────────────────────


class BriefingProvider(ABC):
    """Uniform contract implemented by every backend adapter.

    Subclasses supply ``_complete`` (one prompt in, raw text out) plus the
    cheap availability check and model listing. Summary, post and trending
    generation are shared and can be overridden where a backend does more,
    e.g. search grounding.
    """

    provider_id: ProviderId
    display_name: str = ""
    #: Generation needs a model selected in the registry.
    requires_model: bool = True

    def __init__(
        self,
        settings: Settings,
        registry: ModelRegistry,
        searcher: Optional[WikipediaSearch] = None,
    ) -> None:
        self.settings = settings
        self.registry = registry
        self.searcher = searcher

    @property
    def name(self) -> str:
        """Human-readable identifier for logs and the UI."""
        return self.display_name or self.provider_id.value

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.provider_id.value}>"

    # ── Capability checks ──────────────────────────────────────────────────

    @abstractmethod
    def is_available(self) -> bool:
        """Cheap synchronous check; never touches the network."""

    @abstractmethod
    async def list_models(self) -> list[str]:
        """Model ids offered by the backend, with adapter-specific fallback."""

    def _resolve_model(self, model: Optional[str]) -> str:
        """Return the model to call, failing fast if the call cannot be made."""
        if not self.is_available():
            raise ProviderUnavailable(f"{self.name} API key not configured")
        resolved = model or self.registry.selected(self.provider_id)
        if not resolved:
            raise ProviderUnavailable(f"No {self.name} model selected")
        return resolved

    # ── Backend call ───────────────────────────────────────────────────────

    @abstractmethod
    async def _complete(self, prompt: str, *, model: str, kind: str) -> str:
        """Send *prompt* and return the generated text.

        Raises:
            BackendError: If the call fails or the response is malformed.
        """

    # ── Shared operations ──────────────────────────────────────────────────

    async def generate_summary(
        self,
        topic: str,
        length: SummaryLength,
        model: Optional[str] = None,
    ) -> tuple[str, list[Source]]:
        """Summarise recent developments in *topic*.

        Returns the summary text and any supplementary sources.
        """
        resolved = self._resolve_model(model)
        logger.info("%s summary topic=%r length=%s model=%s",
                    self.name, topic, SummaryLength(length).value, resolved)
        text = (await self._complete(summary_prompt(topic, length), model=resolved, kind="summary")).strip()
        sources = await self._supplement(topic) if text else []
        return text, sources

    async def _supplement(self, topic: str) -> list[Source]:
        if self.searcher is None:
            return []
        return await self.searcher.search(topic, self.settings.max_search_results)

    async def generate_social_posts(self, summary: str, model: Optional[str] = None) -> list[str]:
        """Return 1–3 short posts based on *summary*."""
        resolved = self._resolve_model(model)
        text = await self._complete(social_posts_prompt(summary), model=resolved, kind="posts")
        return parse_social_posts(text)

    async def list_trending_topics(self, model: Optional[str] = None) -> list[TrendingTopic]:
        """Return 1–3 currently significant news topics."""
        resolved = self._resolve_model(model)
        text = await self._complete(TRENDING_PROMPT, model=resolved, kind="trending")
        return parse_trending_topics(text)


# ── Claude + web search ────────────────────────────────────────────────────


class ClaudeSearchProvider(BriefingProvider):
    """Anthropic backend; summaries are grounded with the web_search tool."""

    provider_id = ProviderId.CLAUDE
    display_name = "Claude (web search)"
    requires_model = False

    def is_available(self) -> bool:
        return bool(self.settings.anthropic_api_key)

    async def list_models(self) -> list[str]:
        # No enumeration: the configured model is the only choice.
        return [self.settings.search_model]

    def _resolve_model(self, model: Optional[str]) -> str:
        if not self.is_available():
            raise ProviderUnavailable("Anthropic API key not configured")
        return self.settings.search_model

    def _client(self) -> anthropic.AsyncAnthropic:
        # One client per call; its connection pool belongs to the running loop.
        return anthropic.AsyncAnthropic(
            api_key=self.settings.anthropic_api_key,
            max_retries=3,
            timeout=self.settings.request_timeout,
        )

    async def generate_summary(
        self,
        topic: str,
        length: SummaryLength,
        model: Optional[str] = None,
    ) -> tuple[str, list[Source]]:
        resolved = self._resolve_model(model)
        tool = {**WEB_SEARCH_TOOL, "max_uses": self.settings.max_web_searches}
        sources: list[Source] = []
        text_parts: list[str] = []

        logger.info("%s summary topic=%r length=%s", self.name, topic, SummaryLength(length).value)
        try:
            async with self._client() as client, client.beta.messages.stream(
                model=resolved,
                max_tokens=MAX_TOKENS["summary"],
                betas=[WEB_SEARCH_BETA],
                tools=[tool],
                messages=[{"role": "user", "content": summary_prompt(topic, length)}],
            ) as stream:
                async for event in stream:
                    event_type = getattr(event, "type", None)

                    # ── Capture sources from web_search_result blocks ──────
                    if event_type == "content_block_start":
                        block = getattr(event, "content_block", None)
                        if block and getattr(block, "type", None) == "web_search_tool_result":
                            for item in getattr(block, "content", []) or []:
                                if (getattr(item, "type", None) == "web_search_result"
                                        and len(sources) < self.settings.max_search_results):
                                    sources.append(Source(
                                        title=getattr(item, "title", "") or "",
                                        url=getattr(item, "url", "") or "",
                                        snippet=getattr(item, "page_age", "") or "",
                                    ))

                    # ── Collect the text response ──────────────────────────
                    elif event_type == "content_block_delta":
                        delta = getattr(event, "delta", None)
                        if delta and getattr(delta, "type", None) == "text_delta":
                            text_parts.append(delta.text)
        except anthropic.APIError as exc:
            raise BackendError(f"Claude request failed: {exc}") from exc

        logger.info("%s summary complete: %d sources", self.name, len(sources))
        return "".join(text_parts).strip(), sources

    async def _complete(self, prompt: str, *, model: str, kind: str) -> str:
        try:
            async with self._client() as client:
                response = await client.messages.create(
                    model=model,
                    max_tokens=MAX_TOKENS[kind],
                    temperature=TEMPERATURE[kind],
                    messages=[{"role": "user", "content": prompt}],
                )
        except anthropic.APIError as exc:
            raise BackendError(f"Claude request failed: {exc}") from exc

        return "".join(
            getattr(block, "text", "") or ""
            for block in response.content
            if getattr(block, "type", None) == "text"
        )


# ── Groq ───────────────────────────────────────────────────────────────────


class GroqProvider(BriefingProvider):
    """Low-latency cloud inference through Groq's OpenAI-compatible API."""

    provider_id = ProviderId.GROQ
    display_name = "Groq"

    def __init__(
        self,
        settings: Settings,
        registry: ModelRegistry,
        searcher: Optional[WikipediaSearch] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(settings, registry, searcher)
        self._transport = transport

    def is_available(self) -> bool:
        return bool(self.settings.groq_api_key)

    def _http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.settings.groq_base_url,
            headers={"Authorization": f"Bearer {self.settings.groq_api_key}"},
            timeout=self.settings.request_timeout,
            transport=self._transport,
        )

    async def list_models(self) -> list[str]:
        """List Llama models, falling back to the configured default."""
        fallback = [self.settings.groq_model]
        if not self.is_available():
            logger.warning("Groq API key not configured; using default model list")
            return fallback

        try:
            async with self._http() as client:
                response = await client.get("/models")
                response.raise_for_status()
                data = response.json()
            items = data.get("data") if isinstance(data, dict) else None
            if not isinstance(items, list):
                raise ValueError(f"unexpected /models payload: {data!r:.200}")
            ids = [item.get("id") for item in items if isinstance(item, dict)]
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Failed to list Groq models: %s", exc)
            return fallback

        models = sorted(i for i in ids if isinstance(i, str) and "llama" in i)
        logger.info("Loaded %d Groq models", len(models))
        return models or fallback

    async def _complete(self, prompt: str, *, model: str, kind: str) -> str:
        payload = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": TEMPERATURE[kind],
            "max_tokens": MAX_TOKENS[kind],
        }
        try:
            async with self._http() as client:
                response = await client.post("/chat/completions", json=payload)
                response.raise_for_status()
                data = response.json()
            content = data["choices"][0]["message"]["content"]
        except httpx.HTTPError as exc:
            raise BackendError(f"Groq request failed: {exc}") from exc
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise BackendError(f"Unexpected Groq response: {exc!r}") from exc

        if content is None:
            return ""
        if not isinstance(content, str):
            raise BackendError(f"Unexpected Groq response: content is {type(content).__name__}")
        return content


# ── Ollama ─────────────────────────────────────────────────────────────────


class OllamaProvider(BriefingProvider):
    """Locally hosted models served by Ollama."""

    provider_id = ProviderId.OLLAMA
    display_name = "Ollama"

    def __init__(
        self,
        settings: Settings,
        registry: ModelRegistry,
        searcher: Optional[WikipediaSearch] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(settings, registry, searcher)
        self._transport = transport

    def is_available(self) -> bool:
        # Reachability is only known after list_models() talks to the server.
        return True

    def _http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.settings.ollama_host,
            timeout=self.settings.request_timeout,
            transport=self._transport,
        )

    async def list_models(self) -> list[str]:
        """List installed models; an unreachable server yields ``[]``."""
        try:
            async with self._http() as client:
                response = await client.get("/api/tags")
                response.raise_for_status()
                data = response.json()
            items = data.get("models") if isinstance(data, dict) else None
            if not isinstance(items, list):
                raise ValueError(f"unexpected /api/tags payload: {data!r:.200}")
            models = [
                m["name"] for m in items
                if isinstance(m, dict) and isinstance(m.get("name"), str) and m["name"]
            ]
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Failed to list Ollama models at %s: %s", self.settings.ollama_host, exc)
            return []

        logger.info("Loaded %d Ollama models", len(models))
        return models

    async def _complete(self, prompt: str, *, model: str, kind: str) -> str:
        payload = {
            "model": model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": TEMPERATURE[kind],
                "num_predict": MAX_TOKENS[kind],
            },
        }
        try:
            async with self._http() as client:
                response = await client.post("/api/generate", json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as exc:
            raise BackendError(f"Ollama request failed: {exc}") from exc
        except ValueError as exc:
            raise BackendError(f"Unexpected Ollama response: {exc!r}") from exc

        if not isinstance(data, dict):
            raise BackendError(f"Unexpected Ollama response: {type(data).__name__} payload")
        text = data.get("response")
        if text is None:
            return ""
        if not isinstance(text, str):
            raise BackendError(f"Unexpected Ollama response: response is {type(text).__name__}")
        return text
