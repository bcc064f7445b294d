"""
Unit tests for the Response Generator agent.

The LLM is mocked; tests cover prompt rendering, token budgets and
upstream failure handling.
"""

import unittest
from dataclasses import replace
from unittest.mock import MagicMock, Mock

from langchain_core.messages import AIMessage

from src.adaptation.errors import UpstreamFailureError
from src.agents.response_generator import (
    ADAPTIVE_PROMPT,
    ResponseGenerator,
    build_guidance,
)
from src.models import EmotionalProfile, LearningProfile


def make_llm(content="Adding means putting numbers together."):
    llm = MagicMock()
    llm.bind.return_value.invoke.return_value = AIMessage(content=content)
    return llm


class TestBuildGuidance(unittest.TestCase):
    """Test guidance lines derived from the profile."""

    def test_struggling_student_guidance(self):
        """Test scaffolding instructions for struggling students."""
        profile = LearningProfile.for_level("EARLY_ELEMENTARY", "STRUGGLING")
        guidance = build_guidance(profile)
        self.assertIn("frequent positive reinforcement", guidance)
        self.assertIn("concrete, real-world examples", guidance)
        self.assertIn("small, digestible chunks", guidance)
        self.assertNotIn("extension challenge", guidance)

    def test_advanced_student_guidance(self):
        """Test challenge instructions for advanced students."""
        profile = LearningProfile.for_level("HIGH_SCHOOL", "ADVANCED")
        guidance = build_guidance(profile)
        self.assertIn("extension challenge", guidance)
        self.assertNotIn("emotional support", guidance)

    def test_emotional_support_from_state_or_profile(self):
        """Test support guidance from the request or the profile."""
        profile = LearningProfile.for_level("MIDDLE_SCHOOL")
        self.assertIn("emotional support", build_guidance(profile, "frustrated"))
        self.assertNotIn("emotional support", build_guidance(profile, "curious"))

        supported = replace(
            profile,
            emotional_profile=EmotionalProfile(("anxious",), needs_support=True),
        )
        self.assertIn("emotional support", build_guidance(supported))

    def test_developing_student_has_no_guidance(self):
        """Test that a neutral developing student needs no extra lines."""
        profile = LearningProfile.for_level("MIDDLE_SCHOOL", "DEVELOPING")
        self.assertEqual(build_guidance(profile), "")


class TestResponseGenerator(unittest.TestCase):
    """Test ResponseGenerator with a mocked LLM."""

    def setUp(self):
        self.llm = make_llm()
        self.generator = ResponseGenerator(llm=self.llm)
        self.profile = LearningProfile.for_level("EARLY_ELEMENTARY")

    def test_template_variables(self):
        """Test the prompt template inputs."""
        self.assertIn("level", ADAPTIVE_PROMPT.input_variables)
        self.assertIn("prompt", ADAPTIVE_PROMPT.input_variables)

    def test_build_adaptive_prompt(self):
        """Test the rendered prompt for a young student."""
        prompt = self.generator.build_adaptive_prompt(
            "How does addition work?", self.profile, subject="math"
        )
        self.assertIn("early elementary level", prompt)
        self.assertIn("grade 2.0 reading level", prompt)
        self.assertIn("between 5-12 words", prompt)
        self.assertIn("playground", prompt)
        self.assertIn("Subject: math", prompt)
        self.assertIn("How does addition work?", prompt)

    def test_unbounded_sentences_rendered(self):
        """Test that HIGH_SCHOOL gets a finite sentence range in the prompt."""
        prompt = self.generator.build_adaptive_prompt(
            "Explain entropy.", LearningProfile.for_level("HIGH_SCHOOL")
        )
        self.assertIn("between 12-30 words", prompt)
        self.assertNotIn("None", prompt)

    def test_generate_uses_token_budget(self):
        """Test that the LLM is bound to the profile's token budget."""
        text = self.generator.generate("How does addition work?", self.profile)

        self.assertEqual(text, "Adding means putting numbers together.")
        self.llm.bind.assert_called_once_with(max_tokens=300)
        rendered = self.llm.bind.return_value.invoke.call_args[0][0]
        self.assertIn("How does addition work?", rendered)

    def test_generate_strips_output(self):
        """Test whitespace trimming of model output."""
        generator = ResponseGenerator(llm=make_llm("  Ten is two fives.\n"))
        self.assertEqual(generator.generate("What is ten?", self.profile), "Ten is two fives.")

    def test_empty_output_raises(self):
        """Test that an empty completion is an upstream failure."""
        generator = ResponseGenerator(llm=make_llm("   "))
        with self.assertRaises(UpstreamFailureError):
            generator.generate("What is ten?", self.profile)

    def test_client_error_raises(self):
        """Test that client errors are wrapped."""
        llm = Mock()
        llm.bind.return_value.invoke.side_effect = ConnectionError("network down")
        generator = ResponseGenerator(llm=llm, model_name="test-model")

        with self.assertRaises(UpstreamFailureError) as ctx:
            generator.generate("What is ten?", self.profile)

        self.assertEqual(ctx.exception.context["model"], "test-model")
        self.assertIsInstance(ctx.exception.__cause__, ConnectionError)

    def test_temperature_override(self):
        """Test explicit temperature."""
        generator = ResponseGenerator(llm=self.llm, temperature=0.2)
        self.assertEqual(generator.temperature, 0.2)


if __name__ == "__main__":
    unittest.main()
