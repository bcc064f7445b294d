"""
Adaptive response example: the same explanation for four ages.

Demonstrates end-to-end use of the engine:
1. Adapt one raw response for students aged 7, 10, 13 and 16
2. Record interaction history and see the profile change
3. Trigger the fallback path with an invalid request
4. Optionally generate the raw response with an LLM (needs OPENAI_API_KEY)
"""

import json
import sys
import tempfile
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.config import config, configure_logging
from src.orchestrator import AdaptiveResponseEngine
from src.utils.history_store import InteractionHistoryStore


RAW_RESPONSE = (
    "To synthesize the mathematical framework for addition, we must analyze the "
    "fundamental concepts, and a systematic approach helps us evaluate each step "
    "before we conceptualize larger numbers."
)


def banner(title: str) -> None:
    print("=" * 60)
    print(title)
    print("=" * 60)


def main():
    configure_logging("WARNING")

    # ==================== Step 1: Same text, four ages ====================
    banner("STEP 1: Adapting one response for four ages")

    engine = AdaptiveResponseEngine()
    for age in (7, 10, 13, 16):
        response = engine.generate_adaptive_response(
            {
                "studentId": f"demo-{age}",
                "originalPrompt": "How does addition work?",
                "rawResponse": RAW_RESPONSE,
                "studentAge": age,
            }
        )
        print(f"Age {age} → {response.development_level.value}")
        print(f"  {response.text}")
        print(f"  Factors: {', '.join(response.factor_tags) or 'none'}")
        print(f"  Token budget: {response.response_metadata['max_tokens']}")
        print()

    # ==================== Step 2: History-aware profile ====================
    banner("STEP 2: Profile shaped by interaction history")

    with tempfile.TemporaryDirectory() as tmp:
        store = InteractionHistoryStore(history_dir=tmp)
        for accuracy in (0.2, 0.3, 0.25):
            store.record_interaction(
                "demo-history",
                subject="math",
                difficulty="medium",
                accuracy=accuracy,
                emotional_state="frustrated",
            )

        engine = AdaptiveResponseEngine(history_store=store)
        profile = engine.get_student_learning_profile(
            "demo-history", "How does addition work?", {"studentAge": 8}
        )
        print(f"Profile: {profile}")
        print(f"  Struggles in: {[area for area, _ in profile.learning_patterns.struggle_areas]}")
        print(f"  Needs support: {profile.emotional_profile.needs_support}")

        response = engine.generate_adaptive_response(
            {
                "studentId": "demo-history",
                "originalPrompt": "How does addition work?",
                "rawResponse": RAW_RESPONSE,
                "studentAge": 8,
            }
        )
        print(f"  {response.text}")
        print()

    # ==================== Step 3: Fallback ====================
    banner("STEP 3: Fallback for an invalid request")

    response = AdaptiveResponseEngine().generate_adaptive_response(
        {"studentId": "demo-bad", "originalPrompt": "What is a fraction?", "studentAge": -2}
    )
    print(json.dumps(response.to_dict(), indent=2, default=str))
    print()

    # ==================== Step 4: LLM generation ====================
    banner("STEP 4: Generating the raw response with an LLM")

    if not config.model.api_key:
        print("OPENAI_API_KEY not set, skipping.")
        return

    from src.agents.response_generator import ResponseGenerator

    engine = AdaptiveResponseEngine(generator=ResponseGenerator())
    response = engine.generate_adaptive_response(
        {"studentId": "demo-llm", "originalPrompt": "Why do leaves change color?", "studentAge": 9}
    )
    print(f"{response.outcome.value}: {response.text}")


if __name__ == "__main__":
    main()
