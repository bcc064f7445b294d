"""
Developmental levels and the immutable vocabulary tables attached to them.

Levels are ordered by increasing complexity tolerance. Each level owns one
VocabularyLevel (sentence bounds, substitution tables, reading grade) and one
ExampleFramework. Each performance level owns one PerformanceStrategy.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional


class DevelopmentLevel(str, Enum):
    """Reading/comprehension tier keyed by age."""

    EARLY_ELEMENTARY = "EARLY_ELEMENTARY"
    LATE_ELEMENTARY = "LATE_ELEMENTARY"
    MIDDLE_SCHOOL = "MIDDLE_SCHOOL"
    HIGH_SCHOOL = "HIGH_SCHOOL"

    @classmethod
    def ordered(cls) -> list[DevelopmentLevel]:
        """Levels from least to most complex."""
        return [
            cls.EARLY_ELEMENTARY,
            cls.LATE_ELEMENTARY,
            cls.MIDDLE_SCHOOL,
            cls.HIGH_SCHOOL,
        ]

    @property
    def rank(self) -> int:
        return DevelopmentLevel.ordered().index(self)

    @property
    def label(self) -> str:
        """Human-readable name, e.g. 'early elementary'."""
        return self.value.replace("_", " ").lower()

    @classmethod
    def parse(cls, value) -> DevelopmentLevel:
        """Accept a DevelopmentLevel or its (case-insensitive) name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper().replace(" ", "_"))
            except ValueError:
                pass
        raise ValueError(f"Unknown development level: {value!r}")


class PerformanceLevel(str, Enum):
    """Performance tier derived from recent accuracy."""

    STRUGGLING = "STRUGGLING"
    DEVELOPING = "DEVELOPING"
    PROFICIENT = "PROFICIENT"
    ADVANCED = "ADVANCED"

    @classmethod
    def parse(cls, value) -> PerformanceLevel:
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        raise ValueError(f"Unknown performance level: {value!r}")


@dataclass(frozen=True)
class SentenceLength:
    """Word-count bounds for one sentence."""

    min: int
    max: Optional[int]  # None means unbounded

    @property
    def bounded(self) -> bool:
        return self.max is not None


@dataclass(frozen=True)
class VocabularyLevel:
    """
    Vocabulary and sentence-structure budget for one development level.

    Attributes:
        level: Owning development level
        sentence_length: Word-count bounds; max is also the split threshold
        max_syllables: Preferred upper bound on syllables per word
        preferred_words: Words that suit this level
        avoid_words: Words that should not reach a student at this level
        substitutions: Single complex term -> simpler term or phrase
        phrase_substitutions: Multi-word phrase/metaphor -> simpler phrase
        reading_level: Target reading grade
    """

    level: DevelopmentLevel
    sentence_length: SentenceLength
    max_syllables: int
    preferred_words: tuple[str, ...]
    avoid_words: tuple[str, ...]
    substitutions: Mapping[str, str]
    phrase_substitutions: Mapping[str, str]
    reading_level: float

    def __post_init__(self):
        # Substituted output must never re-trigger a substitution.
        keys = {k.lower() for k in self.substitutions}
        for replacement in self.substitutions.values():
            clash = keys.intersection(replacement.lower().split())
            if clash:
                raise ValueError(
                    f"{self.level.value}: substitution '{replacement}' contains key(s) {sorted(clash)}"
                )

    def to_dict(self) -> dict:
        return {
            "level": self.level.value,
            "sentence_length": {
                "min": self.sentence_length.min,
                "max": self.sentence_length.max,
            },
            "max_syllables": self.max_syllables,
            "reading_level": self.reading_level,
            "substitution_count": len(self.substitutions),
        }


@dataclass(frozen=True)
class ExampleFramework:
    """Metaphors, example types and contexts suited to a level."""

    metaphors: tuple[str, ...]
    examples: tuple[str, ...]
    contexts: tuple[str, ...]


@dataclass(frozen=True)
class PerformanceStrategy:
    """How much scaffolding a performance level gets."""

    simplification: str
    encouragement: str
    examples: str
    pacing: str
    repetition: str
    confidence_building: bool = False
    challenge_extension: bool = False

    def to_dict(self) -> dict:
        return {
            "simplification": self.simplification,
            "encouragement": self.encouragement,
            "examples": self.examples,
            "pacing": self.pacing,
            "repetition": self.repetition,
            "confidence_building": self.confidence_building,
            "challenge_extension": self.challenge_extension,
        }


def _table(**entries: str) -> Mapping[str, str]:
    return MappingProxyType(dict(entries))


def _phrases(entries: dict) -> Mapping[str, str]:
    return MappingProxyType(dict(entries))


VOCABULARY_LEVELS: Mapping[DevelopmentLevel, VocabularyLevel] = MappingProxyType(
    {
        DevelopmentLevel.EARLY_ELEMENTARY: VocabularyLevel(
            level=DevelopmentLevel.EARLY_ELEMENTARY,
            sentence_length=SentenceLength(min=5, max=12),
            max_syllables=2,
            preferred_words=(
                "big", "small", "make", "find", "look", "think",
                "good", "bad", "easy", "hard",
            ),
            avoid_words=(
                "analyze", "synthesize", "evaluate", "conceptualize",
                "fundamental", "theoretical",
            ),
            substitutions=_table(
                analyze="look at",
                synthesize="put together",
                evaluate="check",
                methodology="way",
                fundamental="basic",
                theoretical="idea",
                conceptualize="think about",
                conceptual="idea",
                framework="plan",
                comprehensive="full",
                sophisticated="fancy",
                paradigm="idea",
                mathematical="math",
            ),
            phrase_substitutions=_phrases(
                {
                    "theoretical framework": "set of ideas",
                    "systematic approach": "step-by-step way",
                    "like conducting research": "like building with blocks",
                }
            ),
            reading_level=2.0,
        ),
        DevelopmentLevel.LATE_ELEMENTARY: VocabularyLevel(
            level=DevelopmentLevel.LATE_ELEMENTARY,
            sentence_length=SentenceLength(min=8, max=18),
            max_syllables=3,
            preferred_words=(
                "understand", "discover", "explore", "compare",
                "different", "similar", "important", "example",
            ),
            avoid_words=(
                "conceptual", "theoretical", "sophisticated",
                "comprehensive", "paradigm", "methodology",
            ),
            substitutions=_table(
                analyze="study",
                synthesize="combine",
                evaluate="judge",
                methodology="method",
                fundamental="important",
                theoretical="concept",
                conceptualize="understand",
                conceptual="idea-based",
                comprehensive="complete",
                sophisticated="advanced",
                paradigm="model",
            ),
            phrase_substitutions=_phrases(
                {
                    "theoretical framework": "way of thinking",
                    "systematic approach": "organized method",
                    "like conducting research": "like solving a puzzle",
                }
            ),
            reading_level=4.0,
        ),
        DevelopmentLevel.MIDDLE_SCHOOL: VocabularyLevel(
            level=DevelopmentLevel.MIDDLE_SCHOOL,
            sentence_length=SentenceLength(min=10, max=25),
            max_syllables=4,
            preferred_words=(
                "analyze", "evaluate", "investigate", "relationship",
                "pattern", "strategy", "evidence", "conclusion",
            ),
            avoid_words=(
                "paradigmatic", "epistemological", "ontological",
                "phenomenological", "heuristic",
            ),
            substitutions=_table(
                paradigmatic="typical",
                epistemological="knowledge-based",
                ontological="about what exists",
                phenomenological="experience-based",
                heuristic="rule of thumb",
            ),
            phrase_substitutions=_phrases(
                {"like conducting research": "like conducting an experiment"}
            ),
            reading_level=6.5,
        ),
        DevelopmentLevel.HIGH_SCHOOL: VocabularyLevel(
            level=DevelopmentLevel.HIGH_SCHOOL,
            sentence_length=SentenceLength(min=12, max=None),
            max_syllables=5,
            preferred_words=(
                "synthesize", "conceptualize", "hypothesis", "methodology",
                "theoretical", "comprehensive", "sophisticated",
            ),
            avoid_words=(),
            substitutions=_table(),
            phrase_substitutions=_phrases({}),
            reading_level=9.0,
        ),
    }
)


EXAMPLE_FRAMEWORKS: Mapping[DevelopmentLevel, ExampleFramework] = MappingProxyType(
    {
        DevelopmentLevel.EARLY_ELEMENTARY: ExampleFramework(
            metaphors=(
                "like building with blocks", "like counting toys",
                "like sorting colors", "like playing a game",
            ),
            examples=(
                "using fingers to count", "drawing pictures",
                "using real objects", "acting it out",
            ),
            contexts=("home", "playground", "classroom", "family", "pets", "toys"),
        ),
        DevelopmentLevel.LATE_ELEMENTARY: ExampleFramework(
            metaphors=(
                "like solving a puzzle", "like following a recipe",
                "like being a detective", "like exploring a map",
            ),
            examples=(
                "sports statistics", "cooking measurements",
                "nature observations", "simple experiments",
            ),
            contexts=(
                "school subjects", "hobbies", "community",
                "simple science", "basic history",
            ),
        ),
        DevelopmentLevel.MIDDLE_SCHOOL: ExampleFramework(
            metaphors=(
                "like conducting an experiment", "like being an architect",
                "like solving a mystery", "like building a bridge",
            ),
            examples=(
                "social media analytics", "video game strategies",
                "environmental data", "historical patterns",
            ),
            contexts=(
                "technology", "social issues", "current events",
                "interdisciplinary connections",
            ),
        ),
        DevelopmentLevel.HIGH_SCHOOL: ExampleFramework(
            metaphors=(
                "like developing a theory", "like conducting research",
                "like creating a model", "like analyzing systems",
            ),
            examples=(
                "economic trends", "scientific research",
                "literary analysis", "philosophical questions",
            ),
            contexts=(
                "abstract concepts", "complex systems",
                "real-world applications", "future implications",
            ),
        ),
    }
)


ADAPTATION_STRATEGIES: Mapping[PerformanceLevel, PerformanceStrategy] = MappingProxyType(
    {
        PerformanceLevel.STRUGGLING: PerformanceStrategy(
            simplification="high",
            encouragement="frequent",
            examples="concrete_multiple",
            pacing="slow",
            repetition="high",
            confidence_building=True,
        ),
        PerformanceLevel.DEVELOPING: PerformanceStrategy(
            simplification="moderate",
            encouragement="regular",
            examples="mixed_concrete_abstract",
            pacing="moderate",
            repetition="moderate",
            confidence_building=True,
        ),
        PerformanceLevel.PROFICIENT: PerformanceStrategy(
            simplification="minimal",
            encouragement="periodic",
            examples="abstract_with_concrete",
            pacing="normal",
            repetition="low",
        ),
        PerformanceLevel.ADVANCED: PerformanceStrategy(
            simplification="none",
            encouragement="achievement_focused",
            examples="abstract_complex",
            pacing="fast",
            repetition="minimal",
            challenge_extension=True,
        ),
    }
)


# Closing lines appended when a strategy asks for frequent encouragement
ENCOURAGEMENTS: Mapping[DevelopmentLevel, tuple[str, ...]] = MappingProxyType(
    {
        DevelopmentLevel.EARLY_ELEMENTARY: (
            "You're such a good learner!",
            "Keep up the great work!",
            "I'm proud of your thinking!",
        ),
        DevelopmentLevel.LATE_ELEMENTARY: (
            "You're developing strong problem-solving skills!",
            "Your thinking is getting stronger!",
            "Great job working through this!",
        ),
        DevelopmentLevel.MIDDLE_SCHOOL: (
            "Your analytical thinking is impressive!",
            "You're developing sophisticated reasoning skills!",
            "I appreciate your thoughtful approach!",
        ),
        DevelopmentLevel.HIGH_SCHOOL: (
            "Your intellectual curiosity is excellent!",
            "You're demonstrating advanced critical thinking!",
            "Your reasoning shows real depth!",
        ),
    }
)


# Openers prepended for students whose recent emotions call for support
SUPPORTIVE_OPENERS: tuple[str, ...] = (
    "You're doing great!",
    "This is a normal part of learning.",
    "Take your time with this.",
    "I believe you can figure this out.",
)


def vocabulary_for(level: DevelopmentLevel) -> VocabularyLevel:
    """Look up the vocabulary table for a level."""
    return VOCABULARY_LEVELS[DevelopmentLevel.parse(level)]


@dataclass(frozen=True)
class LevelTables:
    """Bundle of the read-only per-level tables handed to the engine."""

    vocabulary: Mapping[DevelopmentLevel, VocabularyLevel] = field(
        default_factory=lambda: VOCABULARY_LEVELS
    )
    examples: Mapping[DevelopmentLevel, ExampleFramework] = field(
        default_factory=lambda: EXAMPLE_FRAMEWORKS
    )
    strategies: Mapping[PerformanceLevel, PerformanceStrategy] = field(
        default_factory=lambda: ADAPTATION_STRATEGIES
    )
    encouragements: Mapping[DevelopmentLevel, tuple[str, ...]] = field(
        default_factory=lambda: ENCOURAGEMENTS
    )
