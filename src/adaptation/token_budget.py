"""
Token Budgeter - generation length cap for a learning profile.

Younger levels get smaller budgets; performance scales the base budget
within the level's configured range.
"""

from __future__ import annotations

from typing import Any, Optional

try:
    from ..config import AdaptationConfig
    from ..models.learning_profile import coerce_profile
except ImportError:
    from src.config import AdaptationConfig
    from src.models.learning_profile import coerce_profile


def calculate_max_tokens(profile: Any, config: Optional[AdaptationConfig] = None) -> int:
    """
    Compute the max_tokens cap for upstream generation.

    base(level) * multiplier(performance), rounded and clamped to the
    level's [min, max] range. Always a positive integer.

    Args:
        profile: LearningProfile, or mapping with development_level and
            optionally performance_level
        config: Budget tables (defaults to AdaptationConfig())

    Returns:
        Token budget

    Example:
        >>> calculate_max_tokens({"development_level": "EARLY_ELEMENTARY",
        ...                       "performance_level": "DEVELOPING"})
        300
    """
    config = config or AdaptationConfig()
    profile = coerce_profile(profile)

    level = profile.development_level.value
    performance = profile.performance_level.value

    base = config.base_token_budgets.get(level, config.default_token_budget)
    multiplier = config.performance_multipliers.get(performance, 1.0)
    budget = int(round(base * multiplier))

    low, high = config.token_budget_ranges.get(level, (1, max(budget, 1)))
    return max(1, low, min(high, budget))
