"""Briefing orchestration.

``BriefingService`` is the single entry point used by ``web/app.py``:

1. **Resolve provider** — the requested backend if available, otherwise the
   first available one; with none available the call ends with one error.
2. **Resolve topics** — caller-supplied interests, or up to three topics
   discovered by the provider's trending-topics call.
3. **Fan out** — one pipeline per topic, run concurrently under a
   semaphore: summary → social posts (post failure is non-fatal).
4. **Aggregate** — results in request order; every failed topic becomes an
   error entry plus a message in ``errors``. Siblings are never aborted.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Optional

from briefing.errors import BriefingError, EmptyResult
from briefing.models import (
    BriefingResponse,
    BriefingResult,
    ConnectionResult,
    GenerationRequest,
    ProviderId,
    SummaryLength,
)
from briefing.parsing import MAX_POSTS, MAX_TOPICS
from briefing.providers import ClaudeSearchProvider, GroqProvider, OllamaProvider
from briefing.registry import ModelRegistry
from briefing.search import WikipediaSearch

if TYPE_CHECKING:
    from briefing.providers import BriefingProvider
    from config.settings import Settings

logger = logging.getLogger(__name__)

NO_PROVIDER_MESSAGE = "No AI providers available. Please configure at least one provider."
NO_TRENDING_MESSAGE = "Unable to fetch trending topics. Please try again later."
CONNECTION_TEST_TOPIC = "artificial intelligence"


def placeholder_posts(topic: str) -> list[str]:
    """Posts used when social-post generation fails for *topic*."""
    return [
        f"Breaking: New developments in {topic}! 🚀",
        f"Stay informed about the latest {topic} updates. Knowledge is power! 💡",
        f"Another day, another {topic} breakthrough. The future is now! ⚡",
    ]


class BriefingService:
    """Owns the adapters and the model registry they share.

    Args:
        providers: Adapters in preference order; the first available one is
            the fallback when a requested provider is unavailable.
        registry: Model state shared with the adapters.
        max_concurrency: Upper bound on pipelines running at once.
    """

    def __init__(
        self,
        providers: Sequence[BriefingProvider],
        registry: ModelRegistry,
        max_concurrency: int = 4,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.providers: dict[ProviderId, BriefingProvider] = {p.provider_id: p for p in providers}
        self.registry = registry
        self.max_concurrency = max_concurrency

    @classmethod
    def from_settings(cls, settings: Settings) -> BriefingService:
        """Build the three standard adapters and seed their model state."""
        settings.validate()
        registry = ModelRegistry()
        registry.seed(ProviderId.CLAUDE, [settings.search_model], settings.search_model)
        registry.seed(ProviderId.GROQ, [settings.groq_model], settings.groq_model)

        searcher = (
            WikipediaSearch(timeout=min(settings.request_timeout, 10.0))
            if settings.search_supplement else None
        )
        providers = [
            ClaudeSearchProvider(settings, registry),
            GroqProvider(settings, registry, searcher=searcher),
            OllamaProvider(settings, registry, searcher=searcher),
        ]
        return cls(providers, registry, max_concurrency=settings.max_concurrency)

    def provider(self, provider_id: ProviderId) -> BriefingProvider:
        """Return the adapter for *provider_id*.

        Raises:
            KeyError: If no adapter is registered under that id.
        """
        return self.providers[ProviderId(provider_id)]

    # ── Models & availability ──────────────────────────────────────────────

    async def list_models(self, provider_id: ProviderId) -> list[str]:
        """Refresh and return the model list for *provider_id*."""
        provider = self.provider(provider_id)
        models = await provider.list_models()
        self.registry.record_models(provider.provider_id, models)
        return models

    def select_model(self, provider_id: ProviderId, model: str) -> None:
        """Select *model*; raises ``UnknownModel`` if it was not last listed."""
        self.registry.select(self.provider(provider_id).provider_id, model)

    def get_selected_model(self, provider_id: ProviderId) -> Optional[str]:
        return self.registry.selected(self.provider(provider_id).provider_id)

    async def list_providers(self) -> list[ProviderId]:
        """Providers usable right now, in preference order.

        Model-requiring adapters also need a non-empty model listing.
        """
        available: list[ProviderId] = []
        for provider_id, provider in self.providers.items():
            if not provider.is_available():
                continue
            if provider.requires_model and not await self.list_models(provider_id):
                logger.info("%s has no models; treating as unavailable", provider.name)
                continue
            available.append(provider_id)
        return available

    async def _resolve_provider(self, requested: ProviderId) -> Optional[BriefingProvider]:
        requested = ProviderId(requested)
        available = await self.list_providers()
        if not available:
            logger.warning("No AI providers available")
            return None
        chosen = requested if requested in available else available[0]
        if chosen != requested:
            logger.info("Provider %s unavailable; falling back to %s", requested.value, chosen.value)
        return self.providers[chosen]

    async def test_provider_connection(self, provider_id: ProviderId) -> ConnectionResult:
        """Run a short summary against *provider_id* and report the outcome."""
        provider_id = ProviderId(provider_id)
        if provider_id not in await self.list_providers():
            return ConnectionResult(
                success=False,
                message=f"{provider_id.value} is not available. Please check your configuration.",
            )

        provider = self.providers[provider_id]
        try:
            summary, _sources = await provider.generate_summary(
                CONNECTION_TEST_TOPIC, SummaryLength.SHORT,
                model=self.registry.selected(provider_id),
            )
        except Exception as exc:
            logger.warning("Connection test failed for %s: %s", provider.name, exc)
            return ConnectionResult(success=False, message=f"{provider_id.value} test failed: {exc}")

        if not summary:
            return ConnectionResult(success=False, message=f"{provider_id.value} returned empty response.")
        return ConnectionResult(success=True, message=f"{provider_id.value} is working correctly!")

    # ── Briefings ──────────────────────────────────────────────────────────

    async def generate_briefing(
        self,
        topics: Sequence[str],
        length: SummaryLength = SummaryLength.MEDIUM,
        provider_id: ProviderId = ProviderId.CLAUDE,
    ) -> BriefingResponse:
        """Generate one briefing per topic, concurrently."""
        provider = await self._resolve_provider(provider_id)
        if provider is None:
            return BriefingResponse(errors=[NO_PROVIDER_MESSAGE])
        return await self._fan_out(provider, list(topics), SummaryLength(length), label="")

    async def generate_trending_briefing(
        self,
        length: SummaryLength = SummaryLength.MEDIUM,
        provider_id: ProviderId = ProviderId.CLAUDE,
    ) -> BriefingResponse:
        """Discover up to three trending topics, then brief each of them."""
        provider = await self._resolve_provider(provider_id)
        if provider is None:
            return BriefingResponse(errors=[NO_PROVIDER_MESSAGE])

        try:
            trending = await provider.list_trending_topics(
                model=self.registry.selected(provider.provider_id),
            )
        except Exception as exc:
            logger.warning(
                "Trending discovery failed on %s: %s", provider.name, exc,
                exc_info=not isinstance(exc, BriefingError),
            )
            return BriefingResponse(
                errors=[f"Failed to generate trending briefing: {exc}"],
                provider=provider.provider_id,
            )

        titles = [topic.title for topic in trending[:MAX_TOPICS]]
        if not titles:
            return BriefingResponse(errors=[NO_TRENDING_MESSAGE], provider=provider.provider_id)

        logger.info("Trending topics from %s: %s", provider.name, titles)
        return await self._fan_out(provider, titles, SummaryLength(length), label="trending topic ")

    async def _fan_out(
        self,
        provider: BriefingProvider,
        topics: list[str],
        length: SummaryLength,
        label: str,
    ) -> BriefingResponse:
        # Snapshot the selected model once; every pipeline sees the same one.
        model = self.registry.snapshot(provider.provider_id).selected_model
        requests = [
            GenerationRequest(topic=topic, length=length, provider=provider.provider_id, model=model)
            for topic in topics
        ]
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def bounded(request: GenerationRequest) -> BriefingResult:
            async with semaphore:
                return await self._pipeline(provider, request)

        outcomes = await asyncio.gather(*(bounded(r) for r in requests), return_exceptions=True)

        response = BriefingResponse(provider=provider.provider_id)
        for request, outcome in zip(requests, outcomes):
            if isinstance(outcome, BriefingResult):
                response.briefings.append(outcome)
                continue
            if not isinstance(outcome, Exception):
                raise outcome
            if not isinstance(outcome, BriefingError):
                logger.error(
                    "Unexpected error generating briefing for %r",
                    request.topic, exc_info=outcome,
                )
            message = str(outcome) or type(outcome).__name__
            response.errors.append(f'Failed to generate briefing for {label}"{request.topic}": {message}')
            response.briefings.append(BriefingResult(interest=request.topic, error=message))

        logger.info(
            "Briefing on %s: %d topics, %d errors",
            provider.name, len(requests), len(response.errors),
        )
        return response

    async def _pipeline(self, provider: BriefingProvider, request: GenerationRequest) -> BriefingResult:
        """Summary then social posts for a single topic."""
        summary, sources = await provider.generate_summary(request.topic, request.length, model=request.model)
        if not summary:
            raise EmptyResult("Empty summary generated")

        try:
            tweets = await provider.generate_social_posts(summary, model=request.model)
        except Exception as exc:
            # Post failure is non-fatal.
            logger.warning(
                "Failed to generate posts for %r: %s", request.topic, exc,
                exc_info=not isinstance(exc, BriefingError),
            )
            tweets = placeholder_posts(request.topic)

        return BriefingResult(
            interest=request.topic,
            summary=summary,
            sources=sources,
            tweets=tweets[:MAX_POSTS],
        )
