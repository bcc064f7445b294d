"""
Interaction history persistence with validation.

Stores one JSON file per student holding a list of interactions, and
provides a bounded-time lookup used when building learning profiles.
"""

from __future__ import annotations

import json
import logging
import threading
import uuid
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

try:
    from ..adaptation.errors import HistoryUnavailableError, InvalidInputError
    from ..config import config
    from .validation import InteractionValidator
except ImportError:
    from src.adaptation.errors import HistoryUnavailableError, InvalidInputError
    from src.config import config
    from src.utils.validation import InteractionValidator

logger = logging.getLogger(__name__)

# Keep per-student files bounded
MAX_INTERACTIONS_PER_STUDENT = 500


class InteractionHistoryStore:
    """
    Handles persistence of student interactions.

    Features:
    - Validate interactions against interaction.schema.json
    - One file per student under the history directory
    - Newest-first reads with an optional limit
    - Thread-safe writes
    """

    _lock = threading.Lock()

    def __init__(self, history_dir: Path | str = None, validate: bool = True):
        """
        Initialize the store.

        Args:
            history_dir: Directory for history files (default: config.paths.history_dir)
            validate: Whether to validate interactions before saving
        """
        self.history_dir = Path(history_dir) if history_dir else config.paths.history_dir
        self.history_dir.mkdir(parents=True, exist_ok=True)
        self.validator = InteractionValidator() if validate else None

    def _path_for(self, student_id: str) -> Path:
        safe_id = "".join(c if c.isalnum() or c in "-_" else "_" for c in student_id)
        if not safe_id:
            raise InvalidInputError("student_id cannot be empty")
        return self.history_dir / f"{safe_id}.json"

    def _read(self, student_id: str) -> List[Dict[str, Any]]:
        filepath = self._path_for(student_id)
        if not filepath.exists():
            return []
        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"History file {filepath} does not hold a list")
        return data

    def record_interaction(
        self,
        student_id: str,
        prompt: Optional[str] = None,
        subject: str = "general",
        difficulty: str = "medium",
        accuracy: Optional[float] = None,
        emotional_state: Optional[str] = None,
        development_level: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Append an interaction to a student's history.

        Returns:
            The stored interaction dict

        Raises:
            InvalidInputError: If the interaction fails schema validation
        """
        interaction = {
            "interaction_id": f"int-{uuid.uuid4()}",
            "student_id": student_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "subject": subject,
            "difficulty": difficulty,
            "accuracy": accuracy,
            "emotional_state": emotional_state,
            "development_level": development_level,
        }
        if prompt is not None:
            interaction["prompt"] = prompt

        if self.validator is not None:
            result = self.validator.validate(interaction)
            if not result.valid:
                raise InvalidInputError(
                    "Invalid interaction: " + "; ".join(result.errors),
                    {"student_id": student_id},
                )

        with self._lock:
            history = self._read(student_id)
            history.append(interaction)
            history = history[-MAX_INTERACTIONS_PER_STUDENT:]
            with open(self._path_for(student_id), "w", encoding="utf-8") as f:
                json.dump(history, f, indent=2, ensure_ascii=False)

        return interaction

    def get_interactions(
        self, student_id: str, limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """
        Load a student's interactions, newest first.

        Args:
            student_id: Student identifier
            limit: Maximum number of interactions to return

        Returns:
            List of interaction dicts (empty when the student has none)
        """
        history = [i for i in self._read(student_id) if isinstance(i, dict)]
        history.sort(key=lambda i: str(i.get("timestamp", "")), reverse=True)
        if limit:
            return history[:limit]
        return history

    def clear(self, student_id: str) -> None:
        """Delete a student's history file if present."""
        with self._lock:
            filepath = self._path_for(student_id)
            if filepath.exists():
                filepath.unlink()


def fetch_history_with_timeout(
    store: Any,
    student_id: str,
    timeout: float,
    limit: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """
    Read a student's interactions without blocking longer than ``timeout``.

    The store only needs a ``get_interactions(student_id, limit)`` method.

    Raises:
        HistoryUnavailableError: On timeout, store failure or missing store
    """
    if store is None:
        raise HistoryUnavailableError("No history store configured")

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="history")
    try:
        future = executor.submit(store.get_interactions, student_id, limit)
        return future.result(timeout=timeout)
    except FutureTimeoutError as e:
        raise HistoryUnavailableError(
            f"History lookup timed out after {timeout}s", {"student_id": student_id}
        ) from e
    except HistoryUnavailableError:
        raise
    except Exception as e:
        raise HistoryUnavailableError(
            f"History lookup failed: {type(e).__name__}", {"student_id": student_id}
        ) from e
    finally:
        # Do not wait on a hung lookup; the worker thread finishes on its own
        executor.shutdown(wait=False)
