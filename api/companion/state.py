"""
Per-user emotional state: the only mutable thing in the companion pipeline.

Each user gets one EmotionalState, created on first contact and folded forward
on every message. Callers never see the live object: update() and read() both
hand back deep copies, so a router serialising a response can't race with the
next request appending to the same history.

Derived fields (trend, spikes_in_row, average_anxiety) are recomputed here on
every update. Nothing outside this module is allowed to set them.
"""
import logging
import math
import threading
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field

from api.config import settings

logger = logging.getLogger("companion-api.state")

# A sample at or above this level counts as a spike
SPIKE_THRESHOLD = 7
# How many of the newest samples the trend looks at
TREND_WINDOW = 3

MIN_ANXIETY = 0
MAX_ANXIETY = 10


class Trend(str, Enum):
    RISING = "rising"
    FALLING = "falling"
    STABLE = "stable"
    UNKNOWN = "unknown"


class AnxietySample(BaseModel):
    message: str
    anxiety_level: int
    timestamp: datetime


class EmotionalState(BaseModel):
    user_id: str
    anxiety_level: int = 0
    anxiety_history: list[int] = Field(default_factory=list)
    samples: list[AnxietySample] = Field(default_factory=list)
    trend: Trend = Trend.UNKNOWN
    spikes_in_row: int = 0
    average_anxiety: float = 0.0
    last_message: str = ""
    message_count: int = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


def clamp_anxiety(value) -> int:
    """Round half up and pin a reading into [0, 10]. Out-of-range input is corrected, not rejected."""
    return max(MIN_ANXIETY, min(MAX_ANXIETY, math.floor(float(value) + 0.5)))


def derive_trend(history: list[int]) -> Trend:
    """Strictly increasing over the window → rising, strictly decreasing → falling."""
    if len(history) < 2:
        return Trend.UNKNOWN
    window = history[-TREND_WINDOW:]
    pairs = list(zip(window, window[1:]))
    if all(b > a for a, b in pairs):
        return Trend.RISING
    if all(b < a for a, b in pairs):
        return Trend.FALLING
    return Trend.STABLE


def next_spike_streak(previous: int, level: int) -> int:
    return previous + 1 if level >= SPIKE_THRESHOLD else 0


class _Entry:
    __slots__ = ("state", "lock")

    def __init__(self, state: EmotionalState):
        self.state = state
        self.lock = threading.Lock()


class EmotionalStateStore:
    """In-memory keyed store: user id → EmotionalState.

    Advisory only; it lives as long as the process. Same-user updates are
    serialised through a per-user lock so concurrent requests can't lose
    history entries or double-count a spike; different users never contend.
    """

    def __init__(self, history_limit: int | None = None, idle_ttl_seconds: int | None = None):
        self.history_limit = (
            history_limit if history_limit is not None else settings.state_history_limit
        )
        self.idle_ttl_seconds = (
            idle_ttl_seconds if idle_ttl_seconds is not None else settings.state_idle_ttl_seconds
        )
        if self.history_limit < 1:
            raise ValueError("history_limit must be at least 1")
        self._entries: dict[str, _Entry] = {}
        self._table_lock = threading.Lock()

    def _entry(self, user_id: str) -> _Entry:
        with self._table_lock:
            entry = self._entries.get(user_id)
            if entry is None:
                entry = _Entry(EmotionalState(user_id=user_id))
                self._entries[user_id] = entry
                logger.info("Created emotional state for user %s", user_id)
            return entry

    def update(self, user_id: str, message: str, anxiety_level) -> EmotionalState:
        """Fold one message into the user's state and return a copy of the result."""
        level = clamp_anxiety(anxiety_level)
        now = datetime.now(timezone.utc)
        while True:
            entry = self._entry(user_id)
            with entry.lock:
                # evict_idle may have dropped the entry after _entry() handed it out
                with self._table_lock:
                    if self._entries.get(user_id) is not entry:
                        continue
                current = entry.state
                history = (current.anxiety_history + [level])[-self.history_limit:]
                samples = (current.samples + [
                    AnxietySample(message=message, anxiety_level=level, timestamp=now)
                ])[-self.history_limit:]

                entry.state = current.model_copy(update={
                    "anxiety_level": level,
                    "anxiety_history": history,
                    "samples": samples,
                    "trend": derive_trend(history),
                    "spikes_in_row": next_spike_streak(current.spikes_in_row, level),
                    "average_anxiety": sum(history) / len(history),
                    "last_message": message,
                    "message_count": current.message_count + 1,
                    "updated_at": now,
                })
                return entry.state.model_copy(deep=True)

    def read(self, user_id: str) -> EmotionalState | None:
        with self._table_lock:
            entry = self._entries.get(user_id)
        if entry is None:
            return None
        with entry.lock:
            return entry.state.model_copy(deep=True)

    def reset(self, user_id: str) -> bool:
        with self._table_lock:
            return self._entries.pop(user_id, None) is not None

    def evict_idle(self, now: datetime | None = None) -> int:
        """Drop states nobody has touched for idle_ttl_seconds. Returns how many went."""
        now = now or datetime.now(timezone.utc)
        with self._table_lock:
            stale = []
            for uid, entry in list(self._entries.items()):
                if (now - entry.state.updated_at).total_seconds() <= self.idle_ttl_seconds:
                    continue
                # An entry whose lock is held is mid-update, so it is not idle
                if not entry.lock.acquire(blocking=False):
                    continue
                try:
                    del self._entries[uid]
                    stale.append(uid)
                finally:
                    entry.lock.release()
        if stale:
            logger.info("Evicted %d idle emotional states", len(stale))
        return len(stale)

    def __len__(self) -> int:
        with self._table_lock:
            return len(self._entries)
