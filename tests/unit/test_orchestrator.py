"""
Unit tests for the adaptive response engine.

Tests the full request flow: validation, profile resolution with and
without history, raw response generation, adaptation and fallback.
"""

import json
import logging
import time
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from src.adaptation.errors import UpstreamFailureError
from src.config import AdaptationConfig
from src.models import (
    AdaptiveRequest,
    DevelopmentLevel,
    LearningProfile,
    PerformanceLevel,
    ResponseOutcome,
)
from src.models.development_level import ENCOURAGEMENTS, LevelTables
from src.orchestrator import (
    AdaptiveResponseEngine,
    generate_adaptive_response,
    get_student_learning_profile,
)


EXAMPLE_REQUEST = {
    "studentId": "student-7",
    "originalPrompt": "How does addition work?",
    "rawResponse": (
        "To synthesize the mathematical framework for addition, "
        "we must analyze the fundamental concepts."
    ),
    "studentAge": 7,
}


@pytest.fixture
def engine():
    return AdaptiveResponseEngine()


class TestGenerateAdaptiveResponse:
    """Test suite for the success path."""

    def test_end_to_end_example(self, engine):
        """Test the reference request for a seven-year-old."""
        response = engine.generate_adaptive_response(EXAMPLE_REQUEST)

        assert response.outcome is ResponseOutcome.ADAPTED
        assert response.text
        assert response.development_level is DevelopmentLevel.EARLY_ELEMENTARY
        assert len(response.adaptation_factors) >= 1
        assert response.response_metadata["fallback"] is False
        assert response.response_metadata["adapted"] is True
        assert "synthesize" not in response.text.lower()

    def test_metadata(self, engine):
        """Test the diagnostics attached to an adapted response."""
        response = engine.generate_adaptive_response(EXAMPLE_REQUEST)
        metadata = response.response_metadata

        assert metadata["original_length"] == len(EXAMPLE_REQUEST["rawResponse"])
        assert metadata["adapted_length"] == len(response.text)
        assert metadata["reading_level"] == 2.0
        assert metadata["sentence_length"] == {"min": 5, "max": 12}
        assert metadata["performance_level"] == "DEVELOPING"
        assert metadata["max_tokens"] == 300
        assert metadata["generated"] is False
        assert metadata["profile_source"] == "age_only"
        assert response.factor_tags == ["vocabulary-simplified", "sentence-shortened"]
        assert response.learning_profile["level"] == "EARLY_ELEMENTARY"

    def test_snake_case_and_request_object(self, engine):
        """Test that all request spellings behave the same."""
        snake = {
            "student_id": "student-7",
            "original_prompt": EXAMPLE_REQUEST["originalPrompt"],
            "raw_response": EXAMPLE_REQUEST["rawResponse"],
            "student_age": 7,
        }
        request = AdaptiveRequest.from_dict(EXAMPLE_REQUEST)

        expected = engine.generate_adaptive_response(EXAMPLE_REQUEST).text
        assert engine.generate_adaptive_response(snake).text == expected
        assert engine.generate_adaptive_response(request).text == expected

    def test_age_string_repaired(self, engine):
        """Test that a numeric string age is coerced."""
        request = dict(EXAMPLE_REQUEST, studentAge="7")
        response = engine.generate_adaptive_response(request)
        assert response.outcome is ResponseOutcome.ADAPTED
        assert response.development_level is DevelopmentLevel.EARLY_ELEMENTARY

    def test_high_school_text_unchanged(self, engine):
        """Test that older students get the raw text back."""
        response = engine.generate_adaptive_response(dict(EXAMPLE_REQUEST, studentAge=16))
        assert response.outcome is ResponseOutcome.ADAPTED
        assert response.text == EXAMPLE_REQUEST["rawResponse"]
        assert response.adaptation_factors == []

    def test_explicit_level_overrides_age(self, engine):
        """Test that a level in the request wins over age."""
        request = dict(EXAMPLE_REQUEST, developmentLevel="HIGH_SCHOOL")
        response = engine.generate_adaptive_response(request)
        assert response.development_level is DevelopmentLevel.HIGH_SCHOOL

    def test_lowercase_level_accepted(self, engine):
        """Test that a lowercase level name is honored rather than rejected."""
        request = dict(EXAMPLE_REQUEST, studentAge=16, developmentLevel="early_elementary")
        response = engine.generate_adaptive_response(request)
        assert response.outcome is ResponseOutcome.ADAPTED
        assert response.development_level is DevelopmentLevel.EARLY_ELEMENTARY

    def test_adaptation_logged(self, engine, caplog):
        """Test that successful adaptations are logged with factor tags."""
        with caplog.at_level(logging.INFO, logger="src.orchestrator"):
            engine.generate_adaptive_response(EXAMPLE_REQUEST)
        assert "student-7" in caplog.text
        assert "vocabulary-simplified" in caplog.text

    def test_module_level_function(self):
        """Test the convenience function bound to the default engine."""
        response = generate_adaptive_response(EXAMPLE_REQUEST)
        assert response.development_level is DevelopmentLevel.EARLY_ELEMENTARY
        assert response.outcome is ResponseOutcome.ADAPTED


class TestFallbackPaths:
    """Test suite for failures routed to the fallback producer."""

    @pytest.mark.parametrize(
        "missing", ["studentId", "originalPrompt"]
    )
    def test_missing_required_field(self, engine, missing):
        """Test that missing id or prompt yields a fallback."""
        request = {k: v for k, v in EXAMPLE_REQUEST.items() if k != missing}
        response = engine.generate_adaptive_response(request)

        assert response.outcome is ResponseOutcome.FALLBACK
        assert response.response_metadata["fallback"] is True
        assert response.response_metadata["error_kind"] == "invalid_input"
        assert response.text

    def test_blank_prompt(self, engine):
        """Test that a whitespace-only prompt is rejected."""
        response = engine.generate_adaptive_response(dict(EXAMPLE_REQUEST, originalPrompt="   "))
        assert response.is_fallback
        assert response.response_metadata["error_kind"] == "invalid_input"

    @pytest.mark.parametrize("age", [-3, 0, 7.5, "seven"])
    def test_invalid_age(self, engine, age):
        """Test that invalid ages produce a default-level fallback."""
        response = engine.generate_adaptive_response(dict(EXAMPLE_REQUEST, studentAge=age))
        assert response.is_fallback
        assert response.response_metadata["error_kind"] == "invalid_input"
        assert response.development_level is DevelopmentLevel.MIDDLE_SCHOOL

    def test_invalid_age_on_request_object(self, engine):
        """Test that unvalidated request objects are still checked."""
        request = AdaptiveRequest(
            student_id="s1", original_prompt="Hi", raw_response="Hello.", student_age=-1
        )
        response = engine.generate_adaptive_response(request)
        assert response.is_fallback
        assert response.response_metadata["error_kind"] == "invalid_input"

    def test_non_mapping_request(self, engine):
        """Test that garbage input still returns a response."""
        for request in (None, "hello", 42, ["a"]):
            response = engine.generate_adaptive_response(request)
            assert response.is_fallback
            assert response.text

    def test_missing_raw_response_without_generator(self, engine):
        """Test the upstream failure when nothing can produce text."""
        request = {k: v for k, v in EXAMPLE_REQUEST.items() if k != "rawResponse"}
        response = engine.generate_adaptive_response(request)

        assert response.is_fallback
        assert response.response_metadata["error_kind"] == "upstream_failure"
        assert response.development_level is DevelopmentLevel.EARLY_ELEMENTARY
        assert "How does addition work?" in response.text

    def test_empty_raw_response(self, engine):
        """Test that an empty raw response is an upstream failure."""
        response = engine.generate_adaptive_response(dict(EXAMPLE_REQUEST, rawResponse="  "))
        assert response.is_fallback
        assert response.response_metadata["error_kind"] == "upstream_failure"

    def test_unexpected_error_contained(self, engine, monkeypatch):
        """Test that a bug inside adaptation never escapes."""
        import src.orchestrator as orchestrator

        def boom(*args, **kwargs):
            raise RuntimeError("internal detail")

        monkeypatch.setattr(orchestrator, "adapt_text", boom)
        response = engine.generate_adaptive_response(EXAMPLE_REQUEST)

        assert response.is_fallback
        assert response.response_metadata["error_kind"] == "internal"
        assert "internal detail" not in response.text
        assert response.development_level is DevelopmentLevel.EARLY_ELEMENTARY


class TestGenerator:
    """Test suite for requests without a raw response."""

    def request_without_raw(self):
        return {k: v for k, v in EXAMPLE_REQUEST.items() if k != "rawResponse"}

    def test_generator_used(self):
        """Test that the generator output is adapted."""
        generator = Mock()
        generator.generate.return_value = "We analyze numbers. Adding puts them together."
        engine = AdaptiveResponseEngine(generator=generator)

        response = engine.generate_adaptive_response(self.request_without_raw())

        assert response.outcome is ResponseOutcome.ADAPTED
        assert response.text == "We look at numbers. Adding puts them together."
        assert response.response_metadata["generated"] is True
        args, kwargs = generator.generate.call_args
        assert args[0] == "How does addition work?"
        assert isinstance(args[1], LearningProfile)
        assert args[1].development_level is DevelopmentLevel.EARLY_ELEMENTARY

    def test_raw_response_skips_generator(self):
        """Test that a supplied raw response is never regenerated."""
        generator = Mock()
        engine = AdaptiveResponseEngine(generator=generator)
        engine.generate_adaptive_response(EXAMPLE_REQUEST)
        generator.generate.assert_not_called()

    def test_generator_failure(self):
        """Test that a failing generator yields a fallback."""
        generator = Mock()
        generator.generate.side_effect = UpstreamFailureError("model down")
        engine = AdaptiveResponseEngine(generator=generator)

        response = engine.generate_adaptive_response(self.request_without_raw())
        assert response.is_fallback
        assert response.response_metadata["error_kind"] == "upstream_failure"

    def test_generator_returns_nothing(self):
        """Test that an empty completion yields a fallback."""
        generator = Mock()
        generator.generate.return_value = ""
        engine = AdaptiveResponseEngine(generator=generator)

        response = engine.generate_adaptive_response(self.request_without_raw())
        assert response.is_fallback
        assert response.response_metadata["error_kind"] == "upstream_failure"


class TestLearningProfileWithHistory:
    """Test suite for profile resolution against a history store."""

    def test_profile_without_store_is_age_only(self, engine):
        """Test the default engine profile."""
        profile = engine.get_student_learning_profile("s1", "Hi", {"studentAge": 10})
        assert profile.development_level is DevelopmentLevel.LATE_ELEMENTARY
        assert profile.is_default

    def test_history_sets_performance(self, history_store):
        """Test that recorded interactions shape the profile."""
        for _ in range(3):
            history_store.record_interaction(
                "s1", subject="math", difficulty="hard", accuracy=0.2,
                emotional_state="frustrated",
            )
        engine = AdaptiveResponseEngine(history_store=history_store)

        profile = engine.get_student_learning_profile("s1", "Hi", {"student_age": 7})

        assert not profile.is_default
        assert profile.performance_level is PerformanceLevel.STRUGGLING
        assert profile.emotional_profile.needs_support
        assert profile.learning_patterns.struggle_areas == (("math-hard", 3),)

    def test_history_shapes_response(self, history_store):
        """Test that a struggling, frustrated student gets supportive tone."""
        for _ in range(2):
            history_store.record_interaction("s1", accuracy=0.1, emotional_state="anxious")
        engine = AdaptiveResponseEngine(history_store=history_store)

        response = engine.generate_adaptive_response(
            dict(EXAMPLE_REQUEST, studentId="s1")
        )

        assert response.outcome is ResponseOutcome.ADAPTED
        assert "tone-adapted" in response.factor_tags
        assert response.response_metadata["profile_source"] == "history"
        assert response.response_metadata["performance_level"] == "STRUGGLING"
        assert response.response_metadata["max_tokens"] == 240

    def test_slow_history_degrades_to_age_only(self, fast_config, slow_store, caplog):
        """Test that a hung store does not block the request."""
        engine = AdaptiveResponseEngine(adaptation_config=fast_config, history_store=slow_store)

        start = time.monotonic()
        with caplog.at_level(logging.WARNING, logger="src.orchestrator"):
            response = engine.generate_adaptive_response(EXAMPLE_REQUEST)
        elapsed = time.monotonic() - start

        assert elapsed < 1.0
        assert response.outcome is ResponseOutcome.ADAPTED
        assert response.development_level is DevelopmentLevel.EARLY_ELEMENTARY
        assert response.response_metadata["profile_source"] == "age_only"
        assert "History unavailable" in caplog.text

    def test_failing_history_degrades_to_age_only(self, failing_store):
        """Test that store errors do not fail the request."""
        engine = AdaptiveResponseEngine(history_store=failing_store)
        profile = engine.get_student_learning_profile("s1", "Hi", {"studentAge": 13})
        assert profile.development_level is DevelopmentLevel.MIDDLE_SCHOOL
        assert profile.is_default

    def test_history_only_from_injected_store(self, tmp_path, monkeypatch):
        """Test that an engine without a store ignores the configured history dir."""
        from src.config import config
        from src.utils.history_store import InteractionHistoryStore

        monkeypatch.setattr(config.paths, "history_dir", tmp_path / "history")
        InteractionHistoryStore().record_interaction("s1", accuracy=0.1)

        profile = AdaptiveResponseEngine().get_student_learning_profile(
            "s1", "Hi", {"studentAge": 10}
        )
        assert profile.is_default
        assert profile.performance_level is PerformanceLevel.DEVELOPING

        injected = AdaptiveResponseEngine(history_store=InteractionHistoryStore())
        profile = injected.get_student_learning_profile("s1", "Hi", {"studentAge": 10})
        assert not profile.is_default
        assert profile.performance_level is PerformanceLevel.STRUGGLING

    def test_malformed_history_records_ignored(self, history_store):
        """Test that hand-edited history files still yield an adapted response."""
        records = [
            {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "accuracy": 0.5,
                "emotional_state": ["frustrated"],
            },
            None,
        ]
        (history_store.history_dir / "s1.json").write_text(json.dumps(records))
        engine = AdaptiveResponseEngine(history_store=history_store)

        response = engine.generate_adaptive_response(
            dict(EXAMPLE_REQUEST, studentId="s1", studentAge=8)
        )

        assert response.outcome is ResponseOutcome.ADAPTED
        assert response.response_metadata["fallback"] is False
        assert response.development_level is DevelopmentLevel.EARLY_ELEMENTARY
        assert response.response_metadata["profile_source"] == "history"

    def test_unreadable_history_degrades_to_age_only(self, caplog):
        """Test that store output the analysis cannot read counts as no history."""
        store = Mock()
        store.get_interactions.return_value = 42
        engine = AdaptiveResponseEngine(history_store=store)

        with caplog.at_level(logging.WARNING, logger="src.orchestrator"):
            profile = engine.get_student_learning_profile("s1", "Hi", {"studentAge": 8})

        assert profile.development_level is DevelopmentLevel.EARLY_ELEMENTARY
        assert profile.is_default
        assert "could not be analyzed" in caplog.text

    def test_module_level_profile(self):
        """Test the convenience profile lookup."""
        profile = get_student_learning_profile("s1", "Hi", {"studentAge": 16})
        assert profile.development_level is DevelopmentLevel.HIGH_SCHOOL


class TestEngineOperations:
    """Test suite for the engine's pass-through operations."""

    def test_pure_operations(self, engine, early_profile):
        """Test the engine methods mirror the module functions."""
        assert engine.adapt_vocabulary("Evaluate it.", early_profile) == "Check it."
        assert engine.adapt_sentence_structure("Short one.", early_profile) == "Short one."
        assert engine.calculate_max_tokens(early_profile) == 300

    def test_custom_config_budget(self, early_profile):
        """Test that the engine uses its own configuration."""
        config = AdaptationConfig(
            base_token_budgets={
                "EARLY_ELEMENTARY": 220,
                "LATE_ELEMENTARY": 500,
                "MIDDLE_SCHOOL": 800,
                "HIGH_SCHOOL": 1200,
            }
        )
        assert AdaptiveResponseEngine(adaptation_config=config).calculate_max_tokens(
            early_profile
        ) == 220

    def test_custom_encouragements_used(self, history_store):
        """Test that closing lines come from the engine's tables."""
        closing = "Keep going, fraction fan!"
        tables = LevelTables(
            encouragements={**ENCOURAGEMENTS, DevelopmentLevel.LATE_ELEMENTARY: (closing,)}
        )
        for _ in range(2):
            history_store.record_interaction("s1", accuracy=0.1)
        engine = AdaptiveResponseEngine(tables=tables, history_store=history_store)

        response = engine.generate_adaptive_response(
            dict(EXAMPLE_REQUEST, studentId="s1", studentAge=10)
        )

        assert response.response_metadata["performance_level"] == "STRUGGLING"
        assert "encouragement-added" in response.factor_tags
        assert response.text.endswith(closing)

    def test_fallback_operation(self, engine):
        """Test the engine fallback method."""
        response = engine.generate_fallback_response({"student_age": 9}, Exception("x"))
        assert response.development_level is DevelopmentLevel.LATE_ELEMENTARY
        assert response.is_fallback

    def test_health_check(self, engine, history_store):
        """Test the health report."""
        health = engine.health_check()
        assert health["status"] == "healthy"
        assert health["dependencies"]["response_generator"] is False
        assert health["dependencies"]["history_store"] is False
        assert health["features"]["vocabulary_levels"] == 4

        with_store = AdaptiveResponseEngine(history_store=history_store).health_check()
        assert with_store["dependencies"]["history_store"] is True
