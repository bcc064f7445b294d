"""
Learning Profile: per-request snapshot of a student's level and history.

Profiles are created on demand for each request and never shared or
mutated afterwards. Persistence of raw interactions lives in
utils.history_store; this module only holds the derived view.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

try:
    from .development_level import (
        ADAPTATION_STRATEGIES,
        ENCOURAGEMENTS,
        EXAMPLE_FRAMEWORKS,
        DevelopmentLevel,
        ExampleFramework,
        PerformanceLevel,
        PerformanceStrategy,
        VocabularyLevel,
        vocabulary_for,
    )
except ImportError:
    from src.models.development_level import (
        ADAPTATION_STRATEGIES,
        ENCOURAGEMENTS,
        EXAMPLE_FRAMEWORKS,
        DevelopmentLevel,
        ExampleFramework,
        PerformanceLevel,
        PerformanceStrategy,
        VocabularyLevel,
        vocabulary_for,
    )


@dataclass(frozen=True)
class LearningPatterns:
    """
    Aggregated view of a student's recent interactions.

    Attributes:
        total_interactions: Interactions inside the analysis window
        average_performance: Mean accuracy in [0, 1], None without data
        performance_trend: "improving", "stable", "declining" or "insufficient_data"
        struggle_areas: (subject-difficulty, count) pairs, most frequent first
        strength_areas: (subject-difficulty, count) pairs, most frequent first
        emotional_patterns: emotion -> occurrence count
        development_assessment: Explicit level recorded by an educator, if any
    """

    total_interactions: int = 0
    average_performance: Optional[float] = None
    performance_trend: str = "insufficient_data"
    struggle_areas: Tuple[Tuple[str, int], ...] = ()
    strength_areas: Tuple[Tuple[str, int], ...] = ()
    emotional_patterns: Dict[str, int] = field(default_factory=dict)
    development_assessment: Optional[DevelopmentLevel] = None

    @classmethod
    def empty(cls) -> LearningPatterns:
        return cls()

    @property
    def has_performance_data(self) -> bool:
        return self.average_performance is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_interactions": self.total_interactions,
            "average_performance": self.average_performance,
            "performance_trend": self.performance_trend,
            "struggle_areas": [list(a) for a in self.struggle_areas],
            "strength_areas": [list(a) for a in self.strength_areas],
            "emotional_patterns": dict(self.emotional_patterns),
            "development_assessment": (
                self.development_assessment.value if self.development_assessment else None
            ),
        }


@dataclass(frozen=True)
class EmotionalProfile:
    """Dominant recent emotions and what they imply for tone."""

    dominant_emotions: Tuple[str, ...] = ("neutral",)
    needs_support: bool = False
    showing_positivity: bool = False
    recommendations: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dominant_emotions": list(self.dominant_emotions),
            "needs_support": self.needs_support,
            "showing_positivity": self.showing_positivity,
            "recommendations": list(self.recommendations),
        }


@dataclass(frozen=True)
class LearningProfile:
    """
    Tagged record combining a student's level, vocabulary budget and
    performance estimate.

    Use LearningProfile.for_level() to build one from a level alone; the
    classifier builds richer profiles from history.
    """

    student_id: Optional[str]
    development_level: DevelopmentLevel
    vocabulary_level: VocabularyLevel
    performance_level: PerformanceLevel = PerformanceLevel.DEVELOPING
    example_framework: Optional[ExampleFramework] = None
    adaptation_strategy: Optional[PerformanceStrategy] = None
    encouragements: Tuple[str, ...] = ()
    emotional_profile: EmotionalProfile = field(default_factory=EmotionalProfile)
    learning_patterns: LearningPatterns = field(default_factory=LearningPatterns)
    student_age: Optional[int] = None
    is_default: bool = False

    def __post_init__(self):
        if self.vocabulary_level.level is not self.development_level:
            raise ValueError(
                f"vocabulary_level is for {self.vocabulary_level.level.value}, "
                f"profile is {self.development_level.value}"
            )
        # Frozen dataclass: fill derived defaults through object.__setattr__
        if self.example_framework is None:
            object.__setattr__(
                self, "example_framework", EXAMPLE_FRAMEWORKS[self.development_level]
            )
        if self.adaptation_strategy is None:
            object.__setattr__(
                self, "adaptation_strategy", ADAPTATION_STRATEGIES[self.performance_level]
            )
        if not self.encouragements:
            object.__setattr__(
                self, "encouragements", ENCOURAGEMENTS[self.development_level]
            )

    @classmethod
    def for_level(
        cls,
        development_level: DevelopmentLevel | str,
        performance_level: PerformanceLevel | str = PerformanceLevel.DEVELOPING,
        student_id: Optional[str] = None,
        student_age: Optional[int] = None,
        is_default: bool = True,
    ) -> LearningProfile:
        """Build an age-only profile for a level."""
        level = DevelopmentLevel.parse(development_level)
        return cls(
            student_id=student_id,
            development_level=level,
            vocabulary_level=vocabulary_for(level),
            performance_level=PerformanceLevel.parse(performance_level),
            student_age=student_age,
            is_default=is_default,
        )

    @property
    def target_reading_level(self) -> float:
        return self.vocabulary_level.reading_level

    def summary(self) -> Dict[str, Any]:
        """Compact view attached to responses."""
        summary: Dict[str, Any] = {
            "level": self.development_level.value,
            "performance": self.performance_level.value,
            "reading_level": self.target_reading_level,
            "adaptation_needs": self.adaptation_strategy.to_dict(),
            "emotional_considerations": list(self.emotional_profile.dominant_emotions),
            "struggles_in": [area for area, _ in self.learning_patterns.struggle_areas],
            "strengths_in": [area for area, _ in self.learning_patterns.strength_areas],
        }
        if self.is_default:
            summary["default"] = True
        return summary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "student_id": self.student_id,
            "student_age": self.student_age,
            "development_level": self.development_level.value,
            "performance_level": self.performance_level.value,
            "vocabulary_level": self.vocabulary_level.to_dict(),
            "emotional_profile": self.emotional_profile.to_dict(),
            "learning_patterns": self.learning_patterns.to_dict(),
            "is_default": self.is_default,
        }

    def __repr__(self) -> str:
        return (
            f"LearningProfile(student={self.student_id}, "
            f"level={self.development_level.value}, "
            f"performance={self.performance_level.value})"
        )


def coerce_profile(profile: Any) -> LearningProfile:
    """
    Accept a LearningProfile or a mapping with development_level (and
    optionally performance_level), as produced by callers that only know the
    level.

    Raises:
        TypeError: If profile is None or of an unsupported type
        ValueError: If the level names are unknown
    """
    if isinstance(profile, LearningProfile):
        return profile
    if profile is None:
        raise TypeError("A learning profile is required")
    if isinstance(profile, dict):
        level = profile.get("development_level", profile.get("developmentLevel"))
        if level is None:
            raise ValueError("Profile mapping has no development_level")
        performance = profile.get(
            "performance_level", profile.get("performanceLevel", PerformanceLevel.DEVELOPING)
        )
        return LearningProfile.for_level(
            level,
            performance,
            student_id=profile.get("student_id"),
        )
    raise TypeError(f"Unsupported profile type: {type(profile).__name__}")


def top_areas(counts: Dict[str, int], k: int = 5) -> List[Tuple[str, int]]:
    """Most frequent areas first, ties broken alphabetically."""
    return sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))[:k]
