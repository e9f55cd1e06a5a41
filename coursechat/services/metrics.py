from __future__ import annotations

from collections import defaultdict
from threading import Lock
from typing import Dict


class MetricsTracker:
    """Thread-safe counters of question outcomes per user."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._per_user: Dict[str, Dict[str, int]] = defaultdict(lambda: {"total": 0})
        self._outcomes: Dict[str, int] = defaultdict(int)
        self._sessions_started = 0
        self._grand_total = 0

    def record_session(self) -> None:
        with self._lock:
            self._sessions_started += 1

    def record(self, user_id: str, outcome: str) -> None:
        normalized_user = user_id.strip()
        normalized_outcome = outcome.strip().lower()
        with self._lock:
            user_entry = self._per_user[normalized_user]
            user_entry["total"] = user_entry.get("total", 0) + 1
            outcome_key = f"outcome:{normalized_outcome}"
            user_entry[outcome_key] = user_entry.get(outcome_key, 0) + 1
            self._outcomes[normalized_outcome] += 1
            self._grand_total += 1

    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            return {
                "grand_total": self._grand_total,
                "sessions_started": self._sessions_started,
                "outcomes": dict(self._outcomes),
                "per_user": {user: dict(counts) for user, counts in self._per_user.items()},
            }
