"""
Error taxonomy for adaptive response generation.

Every error carries a machine-readable kind. The orchestration boundary
converts all of them (and anything unexpected) into fallback responses.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class AdaptiveResponseError(Exception):
    """Base class for adaptation failures."""

    kind = "internal"

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = dict(context or {})
        self.timestamp = datetime.now(timezone.utc).isoformat()


class InvalidInputError(AdaptiveResponseError, ValueError):
    """Malformed age or missing required request fields."""

    kind = "invalid_input"


class UpstreamFailureError(AdaptiveResponseError):
    """The text generator failed or returned nothing."""

    kind = "upstream_failure"


class HistoryUnavailableError(AdaptiveResponseError):
    """Interaction history store unreachable, slow or empty."""

    kind = "history_unavailable"


def error_kind(error: BaseException) -> str:
    """Taxonomy kind for any exception; unknown exceptions are 'internal'."""
    kind = getattr(error, "kind", None) if isinstance(error, AdaptiveResponseError) else None
    return kind if isinstance(kind, str) else "internal"
