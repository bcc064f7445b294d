"""
Request and response records for adaptive response generation.

AdaptiveResponse carries an explicit outcome tag (ADAPTED or FALLBACK) so
callers branch on the result type instead of catching exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

try:
    from .development_level import DevelopmentLevel
except ImportError:
    from src.models.development_level import DevelopmentLevel


class AdaptationStrategy(str, Enum):
    """Rewriting technique applied to a response."""

    VOCABULARY_SUBSTITUTION = "vocabulary_substitution"
    SENTENCE_SPLITTING = "sentence_splitting"
    PHRASE_SUBSTITUTION = "phrase_substitution"
    EMOTIONAL_TONE = "emotional_tone"
    ENCOURAGEMENT = "encouragement"
    FALLBACK = "fallback"

    @property
    def tag(self) -> str:
        """Short factor tag used in logs and metadata."""
        return _FACTOR_TAGS[self]


_FACTOR_TAGS = {
    AdaptationStrategy.VOCABULARY_SUBSTITUTION: "vocabulary-simplified",
    AdaptationStrategy.SENTENCE_SPLITTING: "sentence-shortened",
    AdaptationStrategy.PHRASE_SUBSTITUTION: "metaphor-adapted",
    AdaptationStrategy.EMOTIONAL_TONE: "tone-adapted",
    AdaptationStrategy.ENCOURAGEMENT: "encouragement-added",
    AdaptationStrategy.FALLBACK: "fallback-used",
}


@dataclass(frozen=True)
class AdaptationFactor:
    """A transformation that changed the text, with a readable note."""

    strategy: AdaptationStrategy
    description: str
    changes: int = 1

    @property
    def tag(self) -> str:
        return self.strategy.tag

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy.value,
            "tag": self.tag,
            "description": self.description,
            "changes": self.changes,
        }

    def __str__(self) -> str:
        return self.description


class ResponseOutcome(str, Enum):
    ADAPTED = "adapted"
    FALLBACK = "fallback"


@dataclass
class AdaptiveResponse:
    """
    Output of the adaptive response engine.

    Attributes:
        text: Adapted (or fallback) text shown to the student
        development_level: Level the text was written for
        adaptation_factors: Transformations that changed the text, in order
        response_metadata: Diagnostics; always has "fallback" and "adapted"
        outcome: ADAPTED on the success path, FALLBACK otherwise
        learning_profile: Profile summary used for the adaptation
    """

    text: str
    development_level: DevelopmentLevel
    adaptation_factors: List[AdaptationFactor] = field(default_factory=list)
    response_metadata: Dict[str, Any] = field(default_factory=dict)
    outcome: ResponseOutcome = ResponseOutcome.ADAPTED
    learning_profile: Dict[str, Any] = field(default_factory=dict)
    created_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    def __post_init__(self):
        is_fallback = self.outcome is ResponseOutcome.FALLBACK
        self.response_metadata.setdefault("fallback", is_fallback)
        self.response_metadata.setdefault("adapted", not is_fallback)

    @property
    def is_fallback(self) -> bool:
        return self.outcome is ResponseOutcome.FALLBACK

    @property
    def factor_tags(self) -> List[str]:
        return [factor.tag for factor in self.adaptation_factors]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "text": self.text,
            "development_level": self.development_level.value,
            "adaptation_factors": [f.to_dict() for f in self.adaptation_factors],
            "response_metadata": dict(self.response_metadata),
            "outcome": self.outcome.value,
            "learning_profile": dict(self.learning_profile),
            "created_at": self.created_at,
        }


# Accepted spellings for request fields; the camelCase forms match payloads
# sent by JSON clients.
_REQUEST_ALIASES = {
    "student_id": ("student_id", "studentId"),
    "original_prompt": ("original_prompt", "originalPrompt"),
    "raw_response": ("raw_response", "rawResponse"),
    "student_age": ("student_age", "studentAge"),
    "development_level": ("development_level", "developmentLevel"),
    "subject": ("subject",),
    "difficulty": ("difficulty",),
    "emotional_state": ("emotional_state", "emotionalState"),
}


@dataclass(frozen=True)
class AdaptiveRequest:
    """A request to adapt (or generate and adapt) a response for a student."""

    student_id: Optional[str]
    original_prompt: Optional[str]
    raw_response: Optional[str] = None
    student_age: Optional[int] = None
    development_level: Optional[DevelopmentLevel] = None
    subject: str = "general"
    difficulty: str = "medium"
    emotional_state: Optional[str] = None

    @staticmethod
    def normalize(data: Mapping[str, Any]) -> Dict[str, Any]:
        """Map camelCase / snake_case keys onto snake_case, dropping unknowns."""
        normalized: Dict[str, Any] = {}
        for name, aliases in _REQUEST_ALIASES.items():
            for alias in aliases:
                if alias in data and data[alias] is not None:
                    normalized[name] = data[alias]
                    break
        return normalized

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AdaptiveRequest:
        """
        Build a request from a mapping without validating it.

        Validation against the request schema happens in
        utils.validation.AdaptiveRequestValidator.
        """
        fields = cls.normalize(data)
        level = fields.pop("development_level", None)
        return cls(
            development_level=DevelopmentLevel.parse(level) if level is not None else None,
            **{
                "student_id": fields.get("student_id"),
                "original_prompt": fields.get("original_prompt"),
                "raw_response": fields.get("raw_response"),
                "student_age": fields.get("student_age"),
                "subject": fields.get("subject", "general"),
                "difficulty": fields.get("difficulty", "medium"),
                "emotional_state": fields.get("emotional_state"),
            },
        )

    def as_context(self) -> Dict[str, Any]:
        """Context mapping understood by the fallback producer."""
        return {
            "student_id": self.student_id,
            "original_prompt": self.original_prompt,
            "student_age": self.student_age,
            "development_level": self.development_level,
        }
