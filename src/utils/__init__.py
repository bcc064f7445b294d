"""
Utility modules for the adaptive response engine.

This module contains utility functions:
- validation: JSON Schema validation with auto-repair
- history_store: Per-student interaction history with bounded-time reads
- learning_patterns: Analytics over recorded interactions
"""

from .validation import (
    AdaptiveRequestValidator,
    InteractionValidator,
    validate_adaptive_request,
    validate_interaction,
)
from .history_store import (
    InteractionHistoryStore,
    fetch_history_with_timeout,
)
from .learning_patterns import (
    analyze_learning_patterns,
    performance_trend,
    recent_interactions,
)

__all__ = [
    # Validation
    "AdaptiveRequestValidator",
    "InteractionValidator",
    "validate_adaptive_request",
    "validate_interaction",
    # History
    "InteractionHistoryStore",
    "fetch_history_with_timeout",
    # Analytics
    "analyze_learning_patterns",
    "performance_trend",
    "recent_interactions",
]
