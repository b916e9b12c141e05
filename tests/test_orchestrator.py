"""
Tests for briefing/orchestrator.py

Run with: pytest tests/test_orchestrator.py
"""

from __future__ import annotations

import asyncio

import httpx
import pytest

from briefing.errors import ProviderUnavailable, UnknownModel
from briefing.models import ProviderId, SummaryLength
from briefing.orchestrator import (
    NO_PROVIDER_MESSAGE,
    BriefingService,
    placeholder_posts,
)
from briefing.parsing import FALLBACK_TOPICS
from briefing.providers import OllamaProvider


def make_service(registry, *providers, max_concurrency: int = 4) -> BriefingService:
    return BriefingService(list(providers), registry, max_concurrency=max_concurrency)


# ── generate_briefing ──────────────────────────────────────────────────────


class TestGenerateBriefing:
    @pytest.mark.asyncio
    async def test_results_follow_topic_order(self, registry, make_provider):
        provider = make_provider()
        service = make_service(registry, provider)
        topics = ["rust", "quantum computing", "space"]

        response = await service.generate_briefing(topics, SummaryLength.SHORT, ProviderId.GROQ)

        assert [b.interest for b in response.briefings] == topics
        assert [b.summary for b in response.briefings] == [f"Summary for {t}" for t in topics]
        assert response.errors == []
        assert response.provider == ProviderId.GROQ
        for briefing in response.briefings:
            assert briefing.error is None
            assert briefing.tweets == ["First fake post about it", "Second fake post about it"]

    @pytest.mark.asyncio
    async def test_one_failure_is_isolated(self, registry, make_provider):
        provider = make_provider(fail_topics=("space",))
        service = make_service(registry, provider)

        response = await service.generate_briefing(["rust", "space", "biology"], "medium", "groq")

        assert len(response.briefings) == 3
        failed = response.briefings[1]
        assert failed.interest == "space"
        assert failed.summary == ""
        assert failed.tweets == []
        assert failed.sources == []
        assert "backend exploded" in failed.error
        assert len(response.errors) == 1
        assert '"space"' in response.errors[0]
        assert response.briefings[0].summary == "Summary for rust"
        assert response.briefings[2].summary == "Summary for biology"

    @pytest.mark.asyncio
    async def test_failing_summary_end_to_end(self, registry, make_provider):
        provider = make_provider(fail_topics=("quantum computing",))
        service = make_service(registry, provider)

        response = await service.generate_briefing(["quantum computing"], SummaryLength.SHORT, ProviderId.GROQ)

        assert len(response.briefings) == 1
        briefing = response.briefings[0]
        assert briefing.interest == "quantum computing"
        assert briefing.summary == ""
        assert briefing.tweets == []
        assert briefing.error
        assert len(response.errors) == 1

    @pytest.mark.asyncio
    async def test_empty_summary_is_a_failure(self, registry, make_provider):
        provider = make_provider(empty_topics=("silence",))
        service = make_service(registry, provider)

        response = await service.generate_briefing(["silence"], SummaryLength.SHORT, ProviderId.GROQ)

        assert response.briefings[0].error == "Empty summary generated"
        assert ("posts", "fake-model") not in provider.calls

    @pytest.mark.asyncio
    async def test_post_failure_uses_topic_placeholders(self, registry, make_provider):
        provider = make_provider(post_error=True)
        service = make_service(registry, provider)

        response = await service.generate_briefing(["rust"], SummaryLength.SHORT, ProviderId.GROQ)

        assert response.errors == []
        assert response.briefings[0].summary == "Summary for rust"
        assert response.briefings[0].tweets == placeholder_posts("rust")
        assert all("rust" in tweet for tweet in response.briefings[0].tweets)

    @pytest.mark.asyncio
    async def test_unexpected_post_error_keeps_summary(self, registry, make_provider):
        provider = make_provider(post_error=AttributeError("'list' object has no attribute 'strip'"))
        service = make_service(registry, provider)

        response = await service.generate_briefing(["rust"], SummaryLength.SHORT, ProviderId.GROQ)

        assert response.errors == []
        assert response.briefings[0].summary == "Summary for rust"
        assert response.briefings[0].tweets == placeholder_posts("rust")

    @pytest.mark.asyncio
    async def test_no_provider_available(self, registry, make_provider):
        claude = make_provider(ProviderId.CLAUDE, available=False)
        ollama = make_provider(ProviderId.OLLAMA, models=())
        service = make_service(registry, claude, ollama)

        response = await service.generate_briefing(["rust", "space"], SummaryLength.SHORT, ProviderId.CLAUDE)

        assert response.briefings == []
        assert response.errors == [NO_PROVIDER_MESSAGE]
        assert claude.calls == []
        assert ollama.calls == []

    @pytest.mark.asyncio
    async def test_falls_back_to_first_available(self, registry, make_provider):
        claude = make_provider(ProviderId.CLAUDE, available=False)
        groq = make_provider(ProviderId.GROQ)
        service = make_service(registry, claude, groq)

        response = await service.generate_briefing(["rust"], SummaryLength.SHORT, ProviderId.CLAUDE)

        assert response.provider == ProviderId.GROQ
        assert claude.calls == []
        assert groq.calls

    @pytest.mark.asyncio
    async def test_selected_model_is_used_for_every_call(self, registry, make_provider):
        provider = make_provider(models=("small", "large"))
        service = make_service(registry, provider)
        await service.list_models(ProviderId.GROQ)
        service.select_model(ProviderId.GROQ, "large")

        await service.generate_briefing(["a topic", "b topic"], SummaryLength.SHORT, ProviderId.GROQ)

        assert provider.calls
        assert {model for _kind, model in provider.calls} == {"large"}

    @pytest.mark.asyncio
    async def test_selection_change_mid_briefing_is_not_seen(self, registry, make_provider):
        provider = make_provider(models=("small", "large"), delay=0.02)
        service = make_service(registry, provider, max_concurrency=1)
        await service.list_models(ProviderId.GROQ)

        task = asyncio.create_task(
            service.generate_briefing(["a1", "b2", "c3"], SummaryLength.SHORT, ProviderId.GROQ)
        )
        await asyncio.sleep(0.01)
        service.select_model(ProviderId.GROQ, "large")
        response = await task

        assert response.errors == []
        assert {model for _kind, model in provider.calls} == {"small"}

    @pytest.mark.asyncio
    async def test_pipelines_run_concurrently(self, registry, make_provider):
        provider = make_provider(delay=0.02)
        service = make_service(registry, provider, max_concurrency=4)

        await service.generate_briefing(["a1", "b2", "c3", "d4"], SummaryLength.SHORT, ProviderId.GROQ)

        assert provider.peak == 4

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self, registry, make_provider):
        provider = make_provider(delay=0.01)
        service = make_service(registry, provider, max_concurrency=2)

        response = await service.generate_briefing(
            [f"topic {i}" for i in range(6)], SummaryLength.SHORT, ProviderId.GROQ,
        )

        assert len(response.briefings) == 6
        assert provider.peak <= 2

    def test_invalid_concurrency_rejected(self, registry):
        with pytest.raises(ValueError):
            BriefingService([], registry, max_concurrency=0)


# ── generate_trending_briefing ─────────────────────────────────────────────


class TestGenerateTrendingBriefing:
    @pytest.mark.asyncio
    async def test_three_topics_give_three_results(self, registry, make_provider):
        provider = make_provider(fail_topics=("AI Regulation",))
        service = make_service(registry, provider)

        response = await service.generate_trending_briefing(SummaryLength.SHORT, ProviderId.GROQ)

        assert [b.interest for b in response.briefings] == ["Chip Exports", "AI Regulation", "Climate Summit"]
        assert len(response.errors) == 1
        assert 'trending topic "AI Regulation"' in response.errors[0]

    @pytest.mark.asyncio
    async def test_unparseable_discovery_uses_fallback_topics(self, registry, make_provider):
        provider = make_provider(trending_text="")
        service = make_service(registry, provider)

        response = await service.generate_trending_briefing(SummaryLength.SHORT, ProviderId.GROQ)

        assert [b.interest for b in response.briefings] == [t.title for t in FALLBACK_TOPICS]
        assert response.errors == []

    @pytest.mark.asyncio
    async def test_discovery_failure_returns_single_error(self, registry, make_provider):
        provider = make_provider(trending_error=True)
        service = make_service(registry, provider)

        response = await service.generate_trending_briefing(SummaryLength.SHORT, ProviderId.GROQ)

        assert response.briefings == []
        assert len(response.errors) == 1
        assert "trending discovery failed" in response.errors[0]

    @pytest.mark.asyncio
    async def test_unexpected_discovery_error_returns_single_error(self, registry, make_provider):
        provider = make_provider(trending_error=TypeError("bad payload"))
        service = make_service(registry, provider)

        response = await service.generate_trending_briefing(SummaryLength.SHORT, ProviderId.GROQ)

        assert response.briefings == []
        assert response.errors == ["Failed to generate trending briefing: bad payload"]

    @pytest.mark.asyncio
    async def test_no_provider_available(self, registry, make_provider):
        service = make_service(registry, make_provider(available=False))

        response = await service.generate_trending_briefing(SummaryLength.SHORT, ProviderId.GROQ)

        assert response.briefings == []
        assert response.errors == [NO_PROVIDER_MESSAGE]


# ── Models & availability ──────────────────────────────────────────────────


class TestModels:
    @pytest.mark.asyncio
    async def test_list_models_records_and_selects_first(self, registry, make_provider):
        service = make_service(registry, make_provider(models=("m1", "m2")))

        assert await service.list_models(ProviderId.GROQ) == ["m1", "m2"]
        assert service.get_selected_model(ProviderId.GROQ) == "m1"

    @pytest.mark.asyncio
    async def test_select_listed_model(self, registry, make_provider):
        service = make_service(registry, make_provider(models=("m1", "m2")))
        await service.list_models(ProviderId.GROQ)

        service.select_model(ProviderId.GROQ, "m2")

        assert service.get_selected_model(ProviderId.GROQ) == "m2"

    @pytest.mark.asyncio
    async def test_select_unknown_model_keeps_previous(self, registry, make_provider):
        service = make_service(registry, make_provider(models=("m1", "m2")))
        await service.list_models(ProviderId.GROQ)
        service.select_model(ProviderId.GROQ, "m2")

        with pytest.raises(UnknownModel):
            service.select_model(ProviderId.GROQ, "not-a-model")

        assert service.get_selected_model(ProviderId.GROQ) == "m2"

    @pytest.mark.asyncio
    async def test_list_providers_requires_models(self, registry, make_provider):
        service = make_service(
            registry,
            make_provider(ProviderId.CLAUDE, available=False),
            make_provider(ProviderId.GROQ),
            make_provider(ProviderId.OLLAMA, models=()),
        )

        assert await service.list_providers() == [ProviderId.GROQ]

    @pytest.mark.asyncio
    async def test_malformed_listing_does_not_break_briefing(self, settings, registry, make_provider):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"models": None}))
        ollama = OllamaProvider(settings, registry, transport=transport)
        service = make_service(registry, make_provider(ProviderId.GROQ), ollama)

        response = await service.generate_briefing(["rust"], SummaryLength.SHORT, ProviderId.GROQ)

        assert response.errors == []
        assert response.briefings[0].summary == "Summary for rust"
        assert await service.list_providers() == [ProviderId.GROQ]

    @pytest.mark.asyncio
    async def test_generation_without_selected_model_fails_fast(self, registry, make_provider):
        provider = make_provider()

        with pytest.raises(ProviderUnavailable, match="No Fake model selected"):
            await provider.generate_summary("rust", SummaryLength.SHORT)

        assert provider.calls == []


# ── test_provider_connection ───────────────────────────────────────────────


class TestProviderConnection:
    @pytest.mark.asyncio
    async def test_success(self, registry, make_provider):
        service = make_service(registry, make_provider())

        result = await service.test_provider_connection(ProviderId.GROQ)

        assert result.success is True
        assert "working correctly" in result.message

    @pytest.mark.asyncio
    async def test_unavailable_provider(self, registry, make_provider):
        service = make_service(registry, make_provider(available=False))

        result = await service.test_provider_connection(ProviderId.GROQ)

        assert result.success is False
        assert "not available" in result.message

    @pytest.mark.asyncio
    async def test_backend_failure(self, registry, make_provider):
        service = make_service(registry, make_provider(fail_topics=("artificial intelligence",)))

        result = await service.test_provider_connection(ProviderId.GROQ)

        assert result.success is False
        assert "test failed" in result.message

    @pytest.mark.asyncio
    async def test_empty_response(self, registry, make_provider):
        service = make_service(registry, make_provider(empty_topics=("artificial intelligence",)))

        result = await service.test_provider_connection(ProviderId.GROQ)

        assert result.success is False
        assert "empty response" in result.message
