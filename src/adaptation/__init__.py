"""
Adaptation pipeline for age-appropriate responses.

This module contains the pure (non-LLM) building blocks:
- level_classifier: age/performance to DevelopmentLevel and LearningProfile
- text_adapter: vocabulary, sentence, phrase, tone and encouragement rewrites
- token_budget: max-token budget per level and performance
- fallback: safe level-appropriate responses when adaptation fails
- errors: error kinds surfaced in fallback metadata

Orchestration lives in src/orchestrator.py.
"""

from .errors import (
    AdaptiveResponseError,
    HistoryUnavailableError,
    InvalidInputError,
    UpstreamFailureError,
    error_kind,
)
from .level_classifier import (
    analyze_emotional_patterns,
    assess_performance_level,
    build_learning_profile,
    classify,
    level_for_age,
    level_for_performance,
    validate_age,
)
from .text_adapter import (
    adapt_emotional_tone,
    adapt_phrases,
    adapt_sentence_structure,
    adapt_text,
    adapt_vocabulary,
    add_encouragement,
    average_sentence_length,
    split_sentences,
)
from .token_budget import calculate_max_tokens
from .fallback import generate_fallback_response, resolve_fallback_level

__all__ = [
    # Errors
    "AdaptiveResponseError",
    "HistoryUnavailableError",
    "InvalidInputError",
    "UpstreamFailureError",
    "error_kind",
    # Level classification
    "analyze_emotional_patterns",
    "assess_performance_level",
    "build_learning_profile",
    "classify",
    "level_for_age",
    "level_for_performance",
    "validate_age",
    # Text adaptation
    "adapt_emotional_tone",
    "adapt_phrases",
    "adapt_sentence_structure",
    "adapt_text",
    "adapt_vocabulary",
    "add_encouragement",
    "average_sentence_length",
    "split_sentences",
    # Token budget
    "calculate_max_tokens",
    # Fallback
    "generate_fallback_response",
    "resolve_fallback_level",
]
