"""
Shared pytest fixtures and configuration for adaptive response tests.

This file is automatically discovered by pytest and provides
fixtures available to all tests.
"""

import pytest
import sys
import threading
from dataclasses import replace
from pathlib import Path

# Add project root to path so `src.` imports resolve for all tests
sys.path.insert(0, str(Path(__file__).parent.parent))


COMPLEX_TEXT = (
    "To synthesize the mathematical framework for addition, "
    "we must analyze the fundamental concepts."
)

RUN_ON_TEXT = (
    "The water cycle moves water around the planet, and the sun heats the "
    "ocean so the water rises into the sky as vapor."
)


@pytest.fixture
def complex_text():
    """Sentence with several terms that young readers should not see."""
    return COMPLEX_TEXT


@pytest.fixture
def run_on_text():
    """A 23-word sentence with a comma and two conjunctions."""
    return RUN_ON_TEXT


@pytest.fixture
def early_profile():
    from src.models import LearningProfile

    return LearningProfile.for_level("EARLY_ELEMENTARY", student_id="student-early")


@pytest.fixture
def late_profile():
    from src.models import LearningProfile

    return LearningProfile.for_level("LATE_ELEMENTARY", student_id="student-late")


@pytest.fixture
def middle_profile():
    from src.models import LearningProfile

    return LearningProfile.for_level("MIDDLE_SCHOOL", student_id="student-middle")


@pytest.fixture
def high_profile():
    from src.models import LearningProfile

    return LearningProfile.for_level("HIGH_SCHOOL", student_id="student-high")


@pytest.fixture
def profiles(early_profile, late_profile, middle_profile, high_profile):
    """One age-only profile per development level, youngest first."""
    return [early_profile, late_profile, middle_profile, high_profile]


@pytest.fixture
def supported_profile(early_profile):
    """EARLY_ELEMENTARY profile for a frustrated student."""
    from src.models import EmotionalProfile

    return replace(
        early_profile,
        emotional_profile=EmotionalProfile(
            dominant_emotions=("frustrated",), needs_support=True
        ),
    )


@pytest.fixture
def history_store(tmp_path):
    """
    Fixture providing an empty interaction store in a temp directory.

    Returns:
        InteractionHistoryStore
    """
    from src.utils.history_store import InteractionHistoryStore

    return InteractionHistoryStore(history_dir=tmp_path / "history")


@pytest.fixture
def fast_config():
    """Adaptation config with a short history timeout."""
    from src.config import AdaptationConfig

    return AdaptationConfig(history_timeout_seconds=0.05)


class SlowStore:
    """History store whose lookups block until released."""

    def __init__(self):
        self.release = threading.Event()
        self.calls = 0

    def get_interactions(self, student_id, limit=None):
        self.calls += 1
        self.release.wait(timeout=2.0)
        return []


class FailingStore:
    """History store whose lookups always fail."""

    def get_interactions(self, student_id, limit=None):
        raise RuntimeError("history backend offline")


@pytest.fixture
def slow_store():
    store = SlowStore()
    yield store
    store.release.set()


@pytest.fixture
def failing_store():
    return FailingStore()


@pytest.fixture
def temp_schema_file(tmp_path):
    """
    Fixture providing a temporary schema file for testing.

    Args:
        tmp_path: pytest's tmp_path fixture

    Returns:
        Path: Path to temporary schema file
    """
    import json

    schema = {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "type": "object",
        "additionalProperties": False,
        "properties": {"name": {"type": "string"}, "count": {"type": "integer"}},
        "required": ["name"],
    }

    schema_file = tmp_path / "test.schema.json"
    with open(schema_file, "w") as f:
        json.dump(schema, f)

    return schema_file


# Pytest hooks for better test output


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark tests in unit/ directory as unit tests
        if "unit" in str(item.path):
            item.add_marker(pytest.mark.unit)

        # Mark tests in integration/ directory as integration tests
        if "integration" in str(item.path):
            item.add_marker(pytest.mark.integration)
