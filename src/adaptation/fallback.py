"""
Fallback Producer - safe response when generation or adaptation fails.

generate_fallback_response() is the last line of defense and never raises.
The displayed text is a fixed, level-appropriate message; error details go
to the log and to response_metadata only as a type name and kind.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

try:
    from ..config import AdaptationConfig
    from ..models.adaptive_response import (
        AdaptationFactor,
        AdaptationStrategy,
        AdaptiveRequest,
        AdaptiveResponse,
        ResponseOutcome,
    )
    from ..models.development_level import DevelopmentLevel
    from .errors import error_kind
    from .level_classifier import classify
except ImportError:
    from src.config import AdaptationConfig
    from src.models.adaptive_response import (
        AdaptationFactor,
        AdaptationStrategy,
        AdaptiveRequest,
        AdaptiveResponse,
        ResponseOutcome,
    )
    from src.models.development_level import DevelopmentLevel
    from src.adaptation.errors import error_kind
    from src.adaptation.level_classifier import classify

logger = logging.getLogger(__name__)


FALLBACK_MESSAGES = {
    DevelopmentLevel.EARLY_ELEMENTARY: (
        'You asked about "{prompt}". Let\'s look at it together, one small step at a time. '
        "What part do you want to start with?",
        "Let's look at your question together, one small step at a time. "
        "What part do you want to start with?",
    ),
    DevelopmentLevel.LATE_ELEMENTARY: (
        'You asked about "{prompt}". Let\'s work through it step by step. '
        "Which part would you like to start with?",
        "Let's work through your question step by step. "
        "Which part would you like to start with?",
    ),
    DevelopmentLevel.MIDDLE_SCHOOL: (
        'I understand you\'re asking about: "{prompt}". Let me help you explore this step by step. '
        "What specific part would you like to focus on first?",
        "Let me help you explore your question step by step. "
        "What specific part would you like to focus on first?",
    ),
    DevelopmentLevel.HIGH_SCHOOL: (
        'I understand you\'re asking about: "{prompt}". Let\'s break this down and reason through it together. '
        "Which aspect would you like to examine first?",
        "Let's break your question down and reason through it together. "
        "Which aspect would you like to examine first?",
    ),
}

LAST_RESORT_TEXT = (
    "Let's work through your question step by step. "
    "What part would you like to start with?"
)


def _context_value(context: Any, *names: str) -> Any:
    if isinstance(context, AdaptiveRequest):
        context = context.as_context()
    if not isinstance(context, Mapping):
        return None
    for name in names:
        value = context.get(name)
        if value is not None:
            return value
    return None


def resolve_fallback_level(
    context: Any, config: Optional[AdaptationConfig] = None
) -> tuple[DevelopmentLevel, str]:
    """
    Resolve a level from whatever the context carries.

    Returns:
        Tuple of (level, source) where source is "context", "age" or "default"
    """
    config = config or AdaptationConfig()

    level = _context_value(context, "development_level", "developmentLevel")
    if level is not None:
        try:
            return DevelopmentLevel.parse(level), "context"
        except ValueError:
            pass

    age = _context_value(context, "student_age", "studentAge")
    if age is not None:
        try:
            return classify(age, config=config), "age"
        except ValueError:
            pass

    return DevelopmentLevel.parse(config.default_level), "default"


def _prompt_preview(prompt: Any, limit: int) -> Optional[str]:
    if not isinstance(prompt, str):
        return None
    preview = " ".join(prompt.split()).replace('"', "'")
    if not preview:
        return None
    if len(preview) > limit:
        preview = preview[: limit - 3].rstrip() + "..."
    return preview


def fallback_text(level: DevelopmentLevel, prompt: Optional[str]) -> str:
    with_prompt, without_prompt = FALLBACK_MESSAGES[level]
    if prompt:
        return with_prompt.format(prompt=prompt)
    return without_prompt


def generate_fallback_response(
    context: Any,
    error: Any = None,
    config: Optional[AdaptationConfig] = None,
) -> AdaptiveResponse:
    """
    Build a safe AdaptiveResponse instead of propagating a failure.

    Args:
        context: Mapping or AdaptiveRequest carrying original_prompt and
            student_age (or an already-resolved development_level)
        error: The triggering failure; never re-raised, never shown
        config: Adaptation configuration

    Returns:
        AdaptiveResponse with outcome FALLBACK and metadata fallback=True
    """
    try:
        config = config or AdaptationConfig()
        level, source = resolve_fallback_level(context, config)
        prompt = _prompt_preview(
            _context_value(context, "original_prompt", "originalPrompt"),
            config.fallback_prompt_preview_chars,
        )
        kind = error_kind(error)
        error_type = type(error).__name__ if error is not None else None

        logger.error(
            "Adaptive response fell back to %s for student %s (%s: %s)",
            level.value,
            _context_value(context, "student_id", "studentId"),
            kind,
            error_type,
        )
        logger.debug("Fallback cause: %r", error)

        return AdaptiveResponse(
            text=fallback_text(level, prompt),
            development_level=level,
            adaptation_factors=[
                AdaptationFactor(
                    AdaptationStrategy.FALLBACK,
                    "Used fallback response due to adaptation error",
                )
            ],
            response_metadata={
                "fallback": True,
                "adapted": False,
                "error_type": error_type,
                "error_kind": kind,
                "level_source": source,
            },
            outcome=ResponseOutcome.FALLBACK,
            learning_profile={"level": level.value, "default": True},
        )
    except Exception:  # noqa: BLE001 - must never raise
        logger.exception("Fallback response construction failed")
        return AdaptiveResponse(
            text=LAST_RESORT_TEXT,
            development_level=DevelopmentLevel.MIDDLE_SCHOOL,
            adaptation_factors=[
                AdaptationFactor(AdaptationStrategy.FALLBACK, "Used last-resort fallback")
            ],
            response_metadata={"fallback": True, "adapted": False, "error_kind": "internal"},
            outcome=ResponseOutcome.FALLBACK,
        )
