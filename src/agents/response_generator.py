"""
Response Generator - LLM-based generation of level-aware raw responses.

Builds an adaptive prompt from a LearningProfile and asks the model for an
answer capped at the profile's token budget. The output still goes through
the text adapter afterwards.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from langchain_core.prompts import PromptTemplate
from langchain_openai import ChatOpenAI

try:
    from ..adaptation.errors import UpstreamFailureError
    from ..adaptation.token_budget import calculate_max_tokens
    from ..config import AdaptationConfig, config
    from ..models.learning_profile import LearningProfile
except ImportError:
    from src.adaptation.errors import UpstreamFailureError
    from src.adaptation.token_budget import calculate_max_tokens
    from src.config import AdaptationConfig, config
    from src.models.learning_profile import LearningProfile

logger = logging.getLogger(__name__)


ADAPTIVE_PROMPT = PromptTemplate(
    input_variables=[
        "level",
        "performance",
        "reading_level",
        "sentence_min",
        "sentence_max",
        "guidance",
        "contexts",
        "subject",
        "prompt",
    ],
    template="""You are an educational AI assistant helping a student.
The student is at {level} level. Their current performance level is {performance}.
Use vocabulary appropriate for grade {reading_level} reading level.
Keep sentences between {sentence_min}-{sentence_max} words.
{guidance}Use examples from these contexts: {contexts}.
Subject: {subject}

Student's question or content: {prompt}""",
)


def build_guidance(profile: LearningProfile, emotional_state: Optional[str] = None) -> str:
    """Extra instructions derived from the profile's strategy and emotions."""
    lines = []
    if profile.emotional_profile.needs_support or emotional_state in (
        "frustrated",
        "confused",
        "anxious",
        "overwhelmed",
    ):
        lines.append(
            "The student may need emotional support. Use encouraging, patient language."
        )

    strategy = profile.adaptation_strategy
    if strategy.encouragement == "frequent":
        lines.append("Provide frequent positive reinforcement.")
    if strategy.examples == "concrete_multiple":
        lines.append("Use multiple concrete, real-world examples.")
    if strategy.pacing == "slow":
        lines.append("Break information into small, digestible chunks.")
    if strategy.challenge_extension:
        lines.append("Offer an optional extension challenge at the end.")

    return "".join(f"{line}\n" for line in lines)


class ResponseGenerator:
    """
    Upstream text generator for requests that arrive without a raw response.

    Uses a LangChain chat model; any client error or empty completion is
    reported as UpstreamFailureError.
    """

    def __init__(
        self,
        model_name: Optional[str] = None,
        temperature: Optional[float] = None,
        llm: Any = None,
        adaptation_config: Optional[AdaptationConfig] = None,
    ):
        """
        Initialize response generator.

        Args:
            model_name: LLM model name
            temperature: Sampling temperature
            llm: Pre-built chat model (skips ChatOpenAI construction)
            adaptation_config: Token budget tables
        """
        self.model_name = model_name or config.model.model_name
        self.temperature = (
            temperature if temperature is not None else config.model.temperature
        )
        self.adaptation_config = adaptation_config or AdaptationConfig()

        self.llm = llm or ChatOpenAI(
            model=self.model_name,
            temperature=self.temperature,
            api_key=config.model.api_key or None,
            base_url=config.model.base_url,
            top_p=config.model.top_p,
            timeout=config.model.request_timeout,
            max_retries=config.model.max_retries,
        )

    def build_adaptive_prompt(
        self,
        original_prompt: str,
        profile: LearningProfile,
        subject: str = "general",
        emotional_state: Optional[str] = None,
    ) -> str:
        """Render the level-aware prompt for a student question."""
        vocab = profile.vocabulary_level
        sentence_max = vocab.sentence_length.max
        return ADAPTIVE_PROMPT.format(
            level=profile.development_level.label,
            performance=profile.performance_level.value.lower(),
            reading_level=vocab.reading_level,
            sentence_min=vocab.sentence_length.min,
            sentence_max=sentence_max if sentence_max is not None else 30,
            guidance=build_guidance(profile, emotional_state),
            contexts=", ".join(profile.example_framework.contexts),
            subject=subject,
            prompt=original_prompt,
        )

    def generate(
        self,
        original_prompt: str,
        profile: LearningProfile,
        subject: str = "general",
        emotional_state: Optional[str] = None,
    ) -> str:
        """
        Generate a raw response for the student.

        Returns:
            Model output text (stripped)

        Raises:
            UpstreamFailureError: If the model call fails or returns nothing
        """
        prompt = self.build_adaptive_prompt(original_prompt, profile, subject, emotional_state)
        max_tokens = calculate_max_tokens(profile, self.adaptation_config)

        try:
            message = self.llm.bind(max_tokens=max_tokens).invoke(prompt)
        except Exception as e:
            raise UpstreamFailureError(
                f"Response generation failed: {type(e).__name__}",
                {"model": self.model_name},
            ) from e

        content = getattr(message, "content", message)
        if not isinstance(content, str) or not content.strip():
            raise UpstreamFailureError(
                "Response generation returned no text", {"model": self.model_name}
            )

        logger.debug(
            "Generated %d chars for %s (max_tokens=%d)",
            len(content),
            profile.development_level.value,
            max_tokens,
        )
        return content.strip()
