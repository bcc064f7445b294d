"""
Adaptive Response Orchestrator

Runs the complete adaptation pipeline for one request:
1. Request validation
2. Learning profile resolution (age + optional interaction history)
3. Raw response generation when the request carries none
4. Vocabulary, sentence, phrase, tone and encouragement adaptation
5. Fallback response on any failure

generate_adaptive_response() never raises; failures come back as
AdaptiveResponse objects with outcome FALLBACK.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, Iterable, Mapping, Optional

from .adaptation.errors import (
    HistoryUnavailableError,
    InvalidInputError,
    UpstreamFailureError,
)
from .adaptation.fallback import generate_fallback_response
from .adaptation.level_classifier import build_learning_profile
from .adaptation.text_adapter import adapt_sentence_structure, adapt_text, adapt_vocabulary
from .adaptation.token_budget import calculate_max_tokens
from .config import AdaptationConfig, config
from .models.adaptive_response import AdaptiveRequest, AdaptiveResponse, ResponseOutcome
from .models.development_level import DevelopmentLevel, LevelTables
from .models.learning_profile import LearningProfile
from .utils.history_store import fetch_history_with_timeout
from .utils.learning_patterns import analyze_learning_patterns
from .utils.validation import AdaptiveRequestValidator

logger = logging.getLogger(__name__)


SERVICE_NAME = "adaptive-response-engine"


class AdaptiveResponseEngine:
    """
    Adaptive response engine.

    Holds only read-only collaborators: the adaptation config, the level
    tables, an optional history store and an optional response generator.
    Every request builds its own profile and response.
    """

    def __init__(
        self,
        adaptation_config: Optional[AdaptationConfig] = None,
        tables: Optional[LevelTables] = None,
        history_store: Any = None,
        generator: Any = None,
        validate_requests: bool = True,
    ):
        """
        Initialize the engine.

        Args:
            adaptation_config: Bands, budgets and timeouts (default: config.adaptation)
            tables: Per-level vocabulary/example/strategy tables
            history_store: Object with get_interactions(student_id, limit); optional
            generator: Object with generate(prompt, profile, subject, emotional_state);
                used when a request has no raw response
            validate_requests: Validate mapping requests against the request schema
        """
        self.adaptation_config = adaptation_config or config.adaptation
        self.tables = tables or LevelTables()
        self.history_store = history_store
        self.generator = generator
        self.validate_requests = validate_requests
        self._request_validator: Optional[AdaptiveRequestValidator] = None

    # ==================== Profiles ====================

    def get_student_learning_profile(
        self,
        student_id: Optional[str],
        prompt: Optional[str] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> LearningProfile:
        """
        Build a LearningProfile for a student.

        Consults the history store (bounded by history_timeout_seconds) and
        degrades to age-only classification when history is unavailable.

        Args:
            student_id: Student identifier
            prompt: Current prompt (kept for interface parity with history lookups)
            context: Mapping with studentAge/student_age and optionally
                development_level

        Raises:
            InvalidInputError: If the age is present but not a positive integer
        """
        context = AdaptiveRequest.normalize(context or {})
        student_age = context.get("student_age")
        level = context.get("development_level")

        patterns = None
        if self.history_store is not None and student_id:
            try:
                interactions = fetch_history_with_timeout(
                    self.history_store,
                    student_id,
                    timeout=self.adaptation_config.history_timeout_seconds,
                    limit=self.adaptation_config.history_max_interactions,
                )
                patterns = self._analyze_history(student_id, interactions)
            except HistoryUnavailableError as e:
                logger.warning(
                    "History unavailable for %s, using age-only profile: %s", student_id, e
                )

        return build_learning_profile(
            student_id,
            student_age,
            patterns=patterns,
            config=self.adaptation_config,
            tables=self.tables,
            development_level=DevelopmentLevel.parse(level) if level is not None else None,
        )

    def _analyze_history(self, student_id: str, interactions: Any):
        # Store output is untrusted; unreadable records count as missing history
        try:
            return analyze_learning_patterns(
                interactions, window_days=self.adaptation_config.history_window_days
            )
        except (TypeError, ValueError, AttributeError) as e:
            raise HistoryUnavailableError(
                f"History for {student_id} could not be analyzed: {type(e).__name__}",
                {"student_id": student_id},
            ) from e

    # ==================== Pure operations ====================

    def adapt_vocabulary(self, text: str, profile: Any, history: Optional[Iterable] = None) -> str:
        return adapt_vocabulary(text, profile, history)

    def adapt_sentence_structure(
        self, text: str, profile: Any, history: Optional[Iterable] = None
    ) -> str:
        return adapt_sentence_structure(text, profile, history)

    def calculate_max_tokens(self, profile: Any) -> int:
        return calculate_max_tokens(profile, self.adaptation_config)

    def generate_fallback_response(self, context: Any, error: Any = None) -> AdaptiveResponse:
        return generate_fallback_response(context, error, self.adaptation_config)

    # ==================== Orchestration ====================

    def _coerce_request(self, request: Any) -> AdaptiveRequest:
        """Validate and convert a request mapping into an AdaptiveRequest."""
        if isinstance(request, AdaptiveRequest):
            parsed = request
        elif isinstance(request, Mapping):
            if self.validate_requests:
                if self._request_validator is None:
                    self._request_validator = AdaptiveRequestValidator()
                result = self._request_validator.validate(request, auto_repair=True)
                if not result.valid:
                    raise InvalidInputError(
                        "Invalid adaptive request: " + "; ".join(result.errors)
                    )
                request = result.data
            parsed = AdaptiveRequest.from_dict(request)
        else:
            raise InvalidInputError(
                f"Request must be a mapping or AdaptiveRequest, got {type(request).__name__}"
            )

        if not parsed.student_id or not parsed.original_prompt:
            raise InvalidInputError("student_id and original_prompt are required")
        return parsed

    def _raw_text(self, request: AdaptiveRequest, profile: LearningProfile) -> tuple[str, bool]:
        """Return (raw text, whether it was generated here)."""
        if request.raw_response is None:
            if self.generator is None:
                raise UpstreamFailureError(
                    "No raw response supplied and no generator configured",
                    {"student_id": request.student_id},
                )
            raw = self.generator.generate(
                request.original_prompt,
                profile,
                subject=request.subject,
                emotional_state=request.emotional_state,
            )
            generated = True
        else:
            raw, generated = request.raw_response, False

        if not isinstance(raw, str) or not raw.strip():
            raise UpstreamFailureError(
                "Upstream generator returned no text", {"student_id": request.student_id}
            )
        return raw, generated

    def generate_adaptive_response(self, request: Any) -> AdaptiveResponse:
        """
        Adapt (or generate and adapt) a response for a student.

        Args:
            request: AdaptiveRequest or mapping with studentId, originalPrompt,
                rawResponse, studentAge (snake_case keys also accepted)

        Returns:
            AdaptiveResponse; outcome FALLBACK on any failure
        """
        fallback_context: Any = request
        try:
            parsed = self._coerce_request(request)
            fallback_context = parsed

            profile = self.get_student_learning_profile(
                parsed.student_id,
                parsed.original_prompt,
                {
                    "student_age": parsed.student_age,
                    "development_level": parsed.development_level,
                },
            )
            raw, generated = self._raw_text(parsed, profile)

            text, factors = adapt_text(raw, profile)
            if not text.strip():
                raise UpstreamFailureError("Adaptation produced empty text")

            vocab = profile.vocabulary_level
            response = AdaptiveResponse(
                text=text,
                development_level=profile.development_level,
                adaptation_factors=factors,
                response_metadata={
                    "fallback": False,
                    "adapted": True,
                    "generated": generated,
                    "original_length": len(raw),
                    "adapted_length": len(text),
                    "reading_level": vocab.reading_level,
                    "sentence_length": {
                        "min": vocab.sentence_length.min,
                        "max": vocab.sentence_length.max,
                    },
                    "performance_level": profile.performance_level.value,
                    "max_tokens": self.calculate_max_tokens(profile),
                    "adaptation_strategies": profile.adaptation_strategy.to_dict(),
                    "profile_source": "age_only" if profile.is_default else "history",
                },
                outcome=ResponseOutcome.ADAPTED,
                learning_profile=profile.summary(),
            )
            self._log_adaptation(parsed, response)
            return response

        except Exception as e:  # noqa: BLE001 - orchestration boundary
            return self.generate_fallback_response(fallback_context, e)

    def _log_adaptation(self, request: AdaptiveRequest, response: AdaptiveResponse) -> None:
        if not config.logging.log_adaptations:
            return
        logger.info(
            "Adapted response for %s at %s: %s (%d -> %d chars)",
            request.student_id,
            response.development_level.value,
            ", ".join(response.factor_tags) or "no changes",
            response.response_metadata["original_length"],
            response.response_metadata["adapted_length"],
        )

    # ==================== Health ====================

    def health_check(self) -> Dict[str, Any]:
        """Report dependency availability and table sizes."""
        dependencies: Dict[str, Any] = {
            "response_generator": self.generator is not None,
            "history_store": False,
        }
        status = "healthy"

        if self.history_store is not None:
            history_dir = getattr(self.history_store, "history_dir", None)
            dependencies["history_store"] = history_dir is None or history_dir.exists()
            if not dependencies["history_store"]:
                status = "degraded"

        return {
            "status": status,
            "service": SERVICE_NAME,
            "dependencies": dependencies,
            "features": {
                "vocabulary_levels": len(self.tables.vocabulary),
                "example_frameworks": len(self.tables.examples),
                "adaptation_strategies": len(self.tables.strategies),
            },
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }


@lru_cache(maxsize=1)
def default_engine() -> AdaptiveResponseEngine:
    """Engine built from the default configuration, without history or generator."""
    return AdaptiveResponseEngine()


# Module-level conveniences bound to the default engine
def get_student_learning_profile(
    student_id: Optional[str],
    prompt: Optional[str] = None,
    context: Optional[Mapping[str, Any]] = None,
) -> LearningProfile:
    return default_engine().get_student_learning_profile(student_id, prompt, context)


def generate_adaptive_response(request: Any) -> AdaptiveResponse:
    return default_engine().generate_adaptive_response(request)
