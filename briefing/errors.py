"""
Exceptions raised by the provider adapters, registry and parser.
"""

from __future__ import annotations


class BriefingError(Exception):
    """Base class for every error raised by the briefing core."""


class ProviderUnavailable(BriefingError):
    """Credentials are missing or no model is selected for the provider."""


class BackendError(BriefingError):
    """The underlying network or SDK call failed, timed out or returned junk."""


class EmptyResult(BriefingError):
    """A generation call succeeded but produced no usable text."""


class ParseFailure(BriefingError):
    """Model output could not be parsed. Always recovered inside ``parsing``."""


class UnknownModel(BriefingError, ValueError):
    """A model id was selected that the provider did not last list."""
