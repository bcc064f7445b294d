"""
AI agents for adaptive responses.

This module contains LangChain-based agents (LLM-powered components):
- Response generation (level-aware prompting with token budgets)

Note: the adaptation pipeline itself is pure logic and lives in src/adaptation.
"""

from .response_generator import (
    ADAPTIVE_PROMPT,
    ResponseGenerator,
    build_guidance,
)

__all__ = [
    "ADAPTIVE_PROMPT",
    "ResponseGenerator",
    "build_guidance",
]
