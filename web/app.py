"""
Flask JSON API for the interest briefing service.

Routes
──────
GET  /api/providers                     Available providers, preference order
POST /api/briefing                      Briefings for the given interests
POST /api/briefing/trending             Briefings for discovered trending topics
POST /api/briefing/export               Markdown export of briefings
POST /api/providers/<id>/test           Connection test
GET  /api/providers/<id>/models         Refresh + list models
GET  /api/providers/<id>/model          Currently selected model
PUT  /api/providers/<id>/model          Select a model
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, Response, jsonify, request
from pydantic import BaseModel, Field, ValidationError

# Allow running as `python web/app.py` from the project root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

load_dotenv()

from briefing.errors import UnknownModel
from briefing.export import format_briefing_markdown
from briefing.models import BriefingResult, ProviderId, SummaryLength
from briefing.orchestrator import BriefingService
from config.settings import Settings

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = Flask(__name__)

settings = Settings()
service = BriefingService.from_settings(settings)


# ── Request bodies ─────────────────────────────────────────────────────────


class BriefingRequest(BaseModel):
    interests: list[str] = Field(min_length=1)
    length: SummaryLength = SummaryLength.MEDIUM
    provider: ProviderId = ProviderId.CLAUDE


class TrendingRequest(BaseModel):
    length: SummaryLength = SummaryLength.MEDIUM
    provider: ProviderId = ProviderId.CLAUDE


class ExportRequest(BaseModel):
    title: str = "News Briefing"
    briefings: list[BriefingResult]


class ModelSelection(BaseModel):
    model: str = Field(min_length=1)


def _body() -> dict:
    return request.get_json(silent=True) or {}


def _provider_or_none(raw: str) -> Optional[ProviderId]:
    try:
        return ProviderId(raw)
    except ValueError:
        return None


def _unknown_provider(raw: str):
    return jsonify({"error": f"Unknown provider: {raw}"}), 404


@app.errorhandler(ValidationError)
def invalid_body(exc: ValidationError):
    details = exc.errors(include_url=False, include_context=False)
    return jsonify({"error": "Invalid request body", "details": details}), 400


@app.errorhandler(UnknownModel)
def unknown_model(exc: UnknownModel):
    return jsonify({"error": str(exc)}), 400


# ── Providers & models ─────────────────────────────────────────────────────


@app.route("/api/providers")
async def list_providers():
    """Return the providers usable right now."""
    providers = await service.list_providers()
    return jsonify({"providers": [p.value for p in providers]})


@app.route("/api/providers/<provider>/test", methods=["POST"])
async def test_provider(provider: str):
    provider_id = _provider_or_none(provider)
    if provider_id is None:
        return _unknown_provider(provider)
    result = await service.test_provider_connection(provider_id)
    return jsonify(result.model_dump())


@app.route("/api/providers/<provider>/models")
async def list_models(provider: str):
    """Refresh the model list and return it with the current selection."""
    provider_id = _provider_or_none(provider)
    if provider_id is None:
        return _unknown_provider(provider)
    models = await service.list_models(provider_id)
    return jsonify({"models": models, "selected": service.get_selected_model(provider_id)})


@app.route("/api/providers/<provider>/model")
def get_selected_model(provider: str):
    provider_id = _provider_or_none(provider)
    if provider_id is None:
        return _unknown_provider(provider)
    return jsonify({"selected": service.get_selected_model(provider_id)})


@app.route("/api/providers/<provider>/model", methods=["PUT"])
def select_model(provider: str):
    provider_id = _provider_or_none(provider)
    if provider_id is None:
        return _unknown_provider(provider)
    body = ModelSelection.model_validate(_body())
    service.select_model(provider_id, body.model)
    logger.info("Selected model %s for %s", body.model, provider_id.value)
    return jsonify({"selected": service.get_selected_model(provider_id)})


# ── Briefings ──────────────────────────────────────────────────────────────


@app.route("/api/briefing", methods=["POST"])
async def generate_briefing():
    """Generate briefings for the user's interests.

    Body: ``{"interests": [...], "length": "short|medium|detailed", "provider": "..."}``
    """
    body = BriefingRequest.model_validate(_body())
    result = await service.generate_briefing(body.interests, body.length, body.provider)
    return jsonify(result.model_dump(mode="json"))


@app.route("/api/briefing/trending", methods=["POST"])
async def generate_trending_briefing():
    body = TrendingRequest.model_validate(_body())
    result = await service.generate_trending_briefing(body.length, body.provider)
    return jsonify(result.model_dump(mode="json"))


@app.route("/api/briefing/export", methods=["POST"])
def export_briefing():
    """Return the posted briefings as a markdown download."""
    body = ExportRequest.model_validate(_body())
    markdown = format_briefing_markdown(body.briefings, body.title)
    return Response(
        markdown,
        mimetype="text/markdown",
        headers={"Content-Disposition": 'attachment; filename="briefing.md"'},
    )


# ── Entry point ────────────────────────────────────────────────────────────

if __name__ == "__main__":
    app.run(debug=settings.debug, host="0.0.0.0", port=settings.port)
