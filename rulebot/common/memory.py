"""
Memory

Keeps track of the current and historic state of the robot.
State parameters are added on first write; every write is kept in a
per-parameter history with a millisecond timestamp.

Memory is shared between the interaction loop thread, the foreground
executor and robot event callbacks, so every operation takes one lock.
No operation raises: unknown names give None or empty results.
"""

import time
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

CONVERSATION_HISTORY_PARAM = "conversationHistory"


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


@dataclass(frozen=True)
class StateEntry:
    """A state parameter value with the time it was set"""
    value: Any
    timestamp: int


def _within(entry: StateEntry, start: Optional[int], end: Optional[int]) -> bool:
    if start is not None and entry.timestamp < start:
        return False
    if end is not None and entry.timestamp > end:
        return False
    return True


class Memory:
    """
    Timestamped state store.

    Two mappings keyed by parameter name (case-sensitive):
    - current: name -> latest value
    - history: name -> list of StateEntry in the order they were set

    A name that was never set has no history at all (not an empty list).
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._current: Dict[str, Any] = {}
        self._history: Dict[str, List[StateEntry]] = {}
        self._last_timestamp = 0

    def _next_timestamp(self) -> int:
        # Wall clock, but never earlier than the previous entry
        self._last_timestamp = max(_now_ms(), self._last_timestamp)
        return self._last_timestamp

    def set_state_param(self, name: str, value: Any) -> None:
        """Set the current value and append it to the parameter's history"""
        with self._lock:
            self._current[name] = value
            entry = StateEntry(value=value, timestamp=self._next_timestamp())
            self._history.setdefault(name, []).append(entry)

    def get_state_param(self, name: str) -> Any:
        """Current value of a parameter, or None if it was never set"""
        with self._lock:
            return self._current.get(name)

    def get_state_param_history(
        self,
        name: str,
        start: Optional[int] = None,
        end: Optional[int] = None,
    ) -> List[StateEntry]:
        """
        History of one parameter, optionally limited to a time window.

        Args:
            name: Parameter name
            start: Inclusive lower timestamp bound (ms)
            end: Inclusive upper timestamp bound (ms)
        """
        with self._lock:
            history = self._history.get(name)
            if not history:
                return []
            return [entry for entry in history if _within(entry, start, end)]

    def get_previous_state_param(self, name: str) -> Any:
        """Value before the current one, or None with fewer than two entries"""
        with self._lock:
            history = self._history.get(name)
            if not history or len(history) < 2:
                return None
            return history[-2].value

    def get_state(self) -> Dict[str, Any]:
        """Snapshot of all current values"""
        with self._lock:
            return dict(self._current)

    def get_state_history(
        self,
        start: Optional[int] = None,
        end: Optional[int] = None,
    ) -> Dict[str, List[StateEntry]]:
        """Snapshot of the history of every parameter, optionally windowed"""
        with self._lock:
            return {
                name: [entry for entry in history if _within(entry, start, end)]
                for name, history in self._history.items()
            }

    def has_history(self, name: str) -> bool:
        with self._lock:
            return name in self._history

    def clear_history(self) -> None:
        """Drop all history, keep current values"""
        with self._lock:
            self._history.clear()

    def reset(self) -> None:
        """Drop current values and history"""
        with self._lock:
            self._current.clear()
            self._history.clear()

    def add_to_conversation_history(self, role: str, message: str) -> None:
        """Append a (role, content) turn to the conversationHistory parameter"""
        with self._lock:
            turns = list(self.get_conversation_history())
            turns.append((role, message))
            self.set_state_param(CONVERSATION_HISTORY_PARAM, turns)

    def get_conversation_history(self) -> List[Tuple[str, str]]:
        with self._lock:
            turns = self._current.get(CONVERSATION_HISTORY_PARAM)
            if not isinstance(turns, list):
                return []
            return list(turns)
