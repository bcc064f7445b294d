"""
Learning pattern analytics over recorded interactions.

Provides:
- Average accuracy and performance trend
- Struggle and strength areas keyed by subject-difficulty
- Emotional pattern counts
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import numpy as np

try:
    from ..models.development_level import DevelopmentLevel
    from ..models.learning_profile import LearningPatterns, top_areas
except ImportError:
    from src.models.development_level import DevelopmentLevel
    from src.models.learning_profile import LearningPatterns, top_areas


STRUGGLE_THRESHOLD = 0.4
STRENGTH_THRESHOLD = 0.8
TREND_DELTA = 0.1


def _parse_timestamp(value: str) -> Optional[datetime]:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def recent_interactions(
    interactions: List[Dict],
    window_days: int = 30,
    now: Optional[datetime] = None,
) -> List[Dict]:
    """
    Interactions inside the window, oldest first.

    Non-dict entries and entries with unparseable timestamps are skipped.
    """
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(days=window_days)

    dated = []
    for interaction in interactions:
        if not isinstance(interaction, dict):
            continue
        ts = _parse_timestamp(interaction.get("timestamp", ""))
        if ts is not None and ts >= cutoff:
            dated.append((ts, interaction))

    dated.sort(key=lambda pair: pair[0])
    return [interaction for _, interaction in dated]


def _is_score(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def performance_trend(accuracies: List[float]) -> str:
    """
    Compare the mean of the later half against the earlier half.

    Returns:
        "improving", "declining", "stable" or "insufficient_data" (< 4 points)
    """
    if len(accuracies) < 4:
        return "insufficient_data"

    values = np.asarray(accuracies, dtype=float)
    half = len(values) // 2
    delta = float(values[half:].mean() - values[:half].mean())

    if delta > TREND_DELTA:
        return "improving"
    if delta < -TREND_DELTA:
        return "declining"
    return "stable"


def analyze_learning_patterns(
    interactions: List[Dict],
    window_days: int = 30,
    now: Optional[datetime] = None,
) -> LearningPatterns:
    """
    Summarize interactions into LearningPatterns.

    Args:
        interactions: Interaction dicts (see schemas/interaction.schema.json)
        window_days: Only interactions this recent are considered
        now: Reference time (defaults to current UTC time)

    Returns:
        LearningPatterns (empty when no interaction falls in the window)

    Example:
        >>> patterns = analyze_learning_patterns(store.get_interactions("s1"))
        >>> patterns.average_performance
        0.72
    """
    recent = recent_interactions(interactions, window_days, now)
    if not recent:
        return LearningPatterns.empty()

    scored = [i for i in recent if _is_score(i.get("accuracy"))]
    accuracies = [float(i["accuracy"]) for i in scored]
    average = round(float(np.mean(accuracies)), 4) if accuracies else None

    struggles: Counter = Counter()
    strengths: Counter = Counter()
    for interaction in scored:
        area = f"{interaction.get('subject', 'general')}-{interaction.get('difficulty', 'medium')}"
        if interaction["accuracy"] < STRUGGLE_THRESHOLD:
            struggles[area] += 1
        elif interaction["accuracy"] > STRENGTH_THRESHOLD:
            strengths[area] += 1

    emotions = Counter(
        i["emotional_state"]
        for i in recent
        if isinstance(i.get("emotional_state"), str) and i["emotional_state"]
    )

    # Most recent recorded level wins
    assessment = None
    for interaction in reversed(recent):
        level = interaction.get("development_level")
        if level:
            try:
                assessment = DevelopmentLevel.parse(level)
            except ValueError:
                continue
            break

    return LearningPatterns(
        total_interactions=len(recent),
        average_performance=average,
        performance_trend=performance_trend(accuracies),
        struggle_areas=tuple(top_areas(dict(struggles))),
        strength_areas=tuple(top_areas(dict(strengths))),
        emotional_patterns=dict(emotions),
        development_assessment=assessment,
    )
