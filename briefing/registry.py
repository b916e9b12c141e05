"""
Per-provider model state.

The registry is the only mutable state owned by the core. It is a soft
cache: every entry can be rebuilt from the backend's model-listing endpoint,
so losing it only costs one listing call.

Writes happen from ``BriefingService.list_models`` / ``select_model`` /
``list_providers``, never from inside a fan-out. A fan-out takes one
``snapshot`` and builds every ``GenerationRequest`` from it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from briefing.errors import UnknownModel
from briefing.models import ProviderId

logger = logging.getLogger(__name__)


@dataclass
class ProviderState:
    """Known models and the currently selected one for a single provider."""

    models: list[str] = field(default_factory=list)
    selected_model: Optional[str] = None


class ModelRegistry:
    """Owns a ``ProviderState`` per provider.

    Created once per ``BriefingService`` and injected into every adapter.
    """

    def __init__(self) -> None:
        self._states: dict[ProviderId, ProviderState] = {}

    def _state(self, provider: ProviderId) -> ProviderState:
        return self._states.setdefault(ProviderId(provider), ProviderState())

    def seed(self, provider: ProviderId, models: list[str], selected: Optional[str] = None) -> None:
        """Initialise a provider's state without a listing call."""
        self._states[ProviderId(provider)] = ProviderState(
            models=list(models),
            selected_model=selected,
        )

    def record_models(self, provider: ProviderId, models: list[str]) -> None:
        """Store a fresh model listing.

        The current selection survives if it is still listed; otherwise the
        first listed model becomes selected. An empty listing clears it.
        """
        state = self._state(provider)
        state.models = list(models)
        if state.selected_model not in state.models:
            state.selected_model = state.models[0] if state.models else None
        logger.info(
            "Recorded %d models for %s (selected=%s)",
            len(state.models), ProviderId(provider).value, state.selected_model,
        )

    def selected(self, provider: ProviderId) -> Optional[str]:
        return self._state(provider).selected_model

    def select(self, provider: ProviderId, model: str) -> None:
        """Select *model* for *provider*.

        Raises:
            UnknownModel: If *model* was not in the provider's last listing.
                The previous selection is left untouched.
        """
        state = self._state(provider)
        if model not in state.models:
            raise UnknownModel(
                f"Model {model!r} is not available for {ProviderId(provider).value}. "
                f"Known models: {', '.join(state.models) or '(none)'}"
            )
        state.selected_model = model

    def snapshot(self, provider: ProviderId) -> ProviderState:
        """Return a copy of *provider*'s state, safe to read while it changes."""
        state = self._state(provider)
        return ProviderState(models=list(state.models), selected_model=state.selected_model)
