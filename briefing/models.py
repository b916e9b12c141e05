"""
Pydantic models shared across the briefing core.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SummaryLength(str, Enum):
    """Requested summary length; only changes the prompt phrasing."""

    SHORT = "short"
    MEDIUM = "medium"
    DETAILED = "detailed"


class ProviderId(str, Enum):
    """Identifier of a generative-AI backend."""

    CLAUDE = "claude"    # Anthropic with the web_search tool
    GROQ = "groq"        # Low-latency cloud inference
    OLLAMA = "ollama"    # Locally hosted model server


class Source(BaseModel):
    """A single web source cited alongside a summary."""

    title: str
    url: str
    snippet: str = ""


class TrendingTopic(BaseModel):
    """A topic discovered by the trending-topics call."""

    title: str
    description: str = ""

    @field_validator("description", mode="before")
    @classmethod
    def _null_description(cls, value):
        return "" if value is None else value


class GenerationRequest(BaseModel):
    """One topic's worth of work for a single orchestration call."""

    model_config = ConfigDict(frozen=True)

    topic: str
    length: SummaryLength
    provider: ProviderId
    #: Model selected when the call started; ``None`` for fixed-model backends.
    model: Optional[str] = None


class BriefingResult(BaseModel):
    """The briefing produced for one topic, or the error that prevented it."""

    interest: str
    summary: str = ""
    sources: list[Source] = Field(default_factory=list)
    tweets: list[str] = Field(default_factory=list)
    error: Optional[str] = None


class BriefingResponse(BaseModel):
    """Everything an orchestration call returns: partial results plus errors."""

    briefings: list[BriefingResult] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    provider: Optional[ProviderId] = None


class ConnectionResult(BaseModel):
    """Outcome of a provider connection test."""

    success: bool
    message: str
