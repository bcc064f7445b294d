"""
Data models for adaptive responses.

This module contains core data models:
- DevelopmentLevel / PerformanceLevel: tiers and their immutable tables
- LearningProfile: per-request snapshot of a student's level and history
- AdaptiveRequest / AdaptiveResponse: engine input and tagged output
"""

from .development_level import (
    ADAPTATION_STRATEGIES,
    EXAMPLE_FRAMEWORKS,
    VOCABULARY_LEVELS,
    DevelopmentLevel,
    ExampleFramework,
    LevelTables,
    PerformanceLevel,
    PerformanceStrategy,
    SentenceLength,
    VocabularyLevel,
    vocabulary_for,
)
from .learning_profile import (
    EmotionalProfile,
    LearningPatterns,
    LearningProfile,
    coerce_profile,
)
from .adaptive_response import (
    AdaptationFactor,
    AdaptationStrategy,
    AdaptiveRequest,
    AdaptiveResponse,
    ResponseOutcome,
)

__all__ = [
    # Levels and tables
    "DevelopmentLevel",
    "PerformanceLevel",
    "SentenceLength",
    "VocabularyLevel",
    "ExampleFramework",
    "PerformanceStrategy",
    "LevelTables",
    "VOCABULARY_LEVELS",
    "EXAMPLE_FRAMEWORKS",
    "ADAPTATION_STRATEGIES",
    "vocabulary_for",
    # Profiles
    "LearningProfile",
    "LearningPatterns",
    "EmotionalProfile",
    "coerce_profile",
    # Requests and responses
    "AdaptiveRequest",
    "AdaptiveResponse",
    "AdaptationFactor",
    "AdaptationStrategy",
    "ResponseOutcome",
]
