"""
Level Classifier - maps a student's age and history to a development level.

Classification is total: every positive integer age maps to exactly one
level, ages outside the configured bands clamp to the nearest boundary.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

try:
    from ..config import AdaptationConfig
    from ..models.development_level import (
        DevelopmentLevel,
        LevelTables,
        PerformanceLevel,
    )
    from ..models.learning_profile import (
        EmotionalProfile,
        LearningPatterns,
        LearningProfile,
    )
    from .errors import InvalidInputError
except ImportError:
    from src.config import AdaptationConfig
    from src.models.development_level import (
        DevelopmentLevel,
        LevelTables,
        PerformanceLevel,
    )
    from src.models.learning_profile import (
        EmotionalProfile,
        LearningPatterns,
        LearningProfile,
    )
    from src.adaptation.errors import InvalidInputError

logger = logging.getLogger(__name__)


NEGATIVE_EMOTIONS = frozenset({"frustrated", "confused", "anxious", "bored", "overwhelmed"})
POSITIVE_EMOTIONS = frozenset({"engaged", "confident", "curious", "excited", "proud"})

EMOTION_RECOMMENDATIONS: Dict[str, tuple[str, ...]] = {
    "frustrated": (
        "Use calming, supportive language",
        "Break down complex concepts into smaller steps",
        "Provide extra encouragement",
    ),
    "confused": (
        "Use clear, simple explanations",
        "Provide multiple examples",
        "Check understanding frequently",
    ),
    "confident": (
        "Provide appropriate challenges",
        "Encourage deeper exploration",
        "Use achievement-focused language",
    ),
    "engaged": (
        "Build on curiosity",
        "Introduce related concepts",
        "Encourage questions",
    ),
    "anxious": (
        "Use reassuring, patient tone",
        "Normalize struggle and mistakes",
        "Provide structure and predictability",
    ),
}


def validate_age(age: Any) -> int:
    """
    Check that age is a positive integer.

    Raises:
        InvalidInputError: For booleans, non-integers and ages <= 0
    """
    if isinstance(age, bool) or not isinstance(age, int):
        # Whole floats and numeric strings from JSON payloads are accepted
        if isinstance(age, float) and age.is_integer():
            age = int(age)
        elif isinstance(age, str) and age.strip().isdigit():
            age = int(age.strip())
        else:
            raise InvalidInputError(
                f"Age must be a positive integer, got {age!r}", {"age": repr(age)}
            )
    if age <= 0:
        raise InvalidInputError(f"Age must be a positive integer, got {age}", {"age": age})
    return age


def classify(
    age: Optional[int],
    hints: Optional[Mapping[str, Any]] = None,
    config: Optional[AdaptationConfig] = None,
) -> DevelopmentLevel:
    """
    Classify a student into a development level.

    Resolution order:
    1. An explicit ``development_assessment`` hint (an educator-recorded level)
    2. The age, clamped to the configured bands
    3. ``average_performance`` from history, when no age is known
    4. The configured default level

    Args:
        age: Student age in years, or None when unknown
        hints: Optional mapping with development_assessment / average_performance
        config: Band configuration (defaults to AdaptationConfig())

    Returns:
        DevelopmentLevel

    Raises:
        InvalidInputError: If age is given but is not a positive integer
    """
    config = config or AdaptationConfig()
    hints = hints or {}

    assessment = hints.get("development_assessment")
    if assessment:
        return DevelopmentLevel.parse(assessment)

    if age is not None:
        return level_for_age(validate_age(age), config)

    average = hints.get("average_performance")
    if average is not None:
        return level_for_performance(float(average), config)

    return DevelopmentLevel.parse(config.default_level)


def level_for_age(age: int, config: AdaptationConfig) -> DevelopmentLevel:
    """Band lookup with clamping at both ends."""
    bands = sorted(config.age_bands.items(), key=lambda kv: kv[1][0])

    if age < bands[0][1][0]:
        return DevelopmentLevel.parse(bands[0][0])
    if age > bands[-1][1][1]:
        return DevelopmentLevel.parse(bands[-1][0])

    for level, (low, high) in bands:
        if low <= age <= high:
            return DevelopmentLevel.parse(level)

    # Unreachable while AdaptationConfig enforces contiguous bands
    return DevelopmentLevel.parse(config.default_level)


def level_for_performance(average: float, config: AdaptationConfig) -> DevelopmentLevel:
    """Estimate a level from average accuracy when age is unknown."""
    for level, cutoff in sorted(
        config.performance_level_cutoffs.items(), key=lambda kv: kv[1]
    ):
        if average < cutoff:
            return DevelopmentLevel.parse(level)
    return DevelopmentLevel.HIGH_SCHOOL


def assess_performance_level(
    patterns: Optional[LearningPatterns],
    config: Optional[AdaptationConfig] = None,
) -> PerformanceLevel:
    """
    Map average accuracy onto a performance level.

    No performance data means DEVELOPING.
    """
    config = config or AdaptationConfig()
    if patterns is None or not patterns.has_performance_data:
        return PerformanceLevel.DEVELOPING

    average = patterns.average_performance
    thresholds = config.performance_thresholds
    for level in (
        PerformanceLevel.ADVANCED,
        PerformanceLevel.PROFICIENT,
        PerformanceLevel.DEVELOPING,
    ):
        if average >= thresholds[level.value]:
            return level
    return PerformanceLevel.STRUGGLING


def analyze_emotional_patterns(patterns: Optional[LearningPatterns]) -> EmotionalProfile:
    """Summarize the three most frequent recent emotions."""
    counts = patterns.emotional_patterns if patterns else {}
    if not counts:
        return EmotionalProfile()

    dominant = tuple(
        emotion
        for emotion, _ in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))[:3]
    )

    recommendations = []
    for emotion in dominant:
        recommendations.extend(EMOTION_RECOMMENDATIONS.get(emotion, ()))

    return EmotionalProfile(
        dominant_emotions=dominant,
        needs_support=any(e in NEGATIVE_EMOTIONS for e in dominant),
        showing_positivity=any(e in POSITIVE_EMOTIONS for e in dominant),
        recommendations=tuple(recommendations),
    )


def build_learning_profile(
    student_id: Optional[str],
    student_age: Optional[int],
    patterns: Optional[LearningPatterns] = None,
    config: Optional[AdaptationConfig] = None,
    tables: Optional[LevelTables] = None,
    development_level: Optional[DevelopmentLevel] = None,
) -> LearningProfile:
    """
    Assemble a LearningProfile from an age and (optional) learning patterns.

    Without patterns the profile is age-only and flagged ``is_default``.
    """
    config = config or AdaptationConfig()
    tables = tables or LevelTables()

    hints: Dict[str, Any] = {}
    if development_level is not None:
        hints["development_assessment"] = development_level
    if patterns is not None:
        if patterns.development_assessment is not None and development_level is None:
            hints["development_assessment"] = patterns.development_assessment
        if patterns.has_performance_data:
            hints["average_performance"] = patterns.average_performance

    level = classify(student_age, hints, config)
    performance = assess_performance_level(patterns, config)

    return LearningProfile(
        student_id=student_id,
        development_level=level,
        vocabulary_level=tables.vocabulary[level],
        performance_level=performance,
        example_framework=tables.examples[level],
        adaptation_strategy=tables.strategies[performance],
        encouragements=tables.encouragements[level],
        emotional_profile=analyze_emotional_patterns(patterns),
        learning_patterns=patterns or LearningPatterns.empty(),
        student_age=student_age if student_age is None else validate_age(student_age),
        is_default=patterns is None or patterns.total_interactions == 0,
    )
