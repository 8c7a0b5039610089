"""Data models for ConvoCue."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Optional, Tuple
import time


Speaker = Literal["me", "them"]


@dataclass
class TranscriptEntry:
    """A single recognized utterance, attributed to a speaker."""
    text: str
    speaker: Speaker
    intent: str
    timestamp: float = field(default_factory=time.time)

    def to_dict(self):
        return {
            "text": self.text,
            "speaker": self.speaker,
            "intent": self.intent,
            "timestamp": self.timestamp,
        }


@dataclass
class ChatMessage:
    """A message in the rolling window sent to the suggestion service."""
    role: Literal["user", "assistant"]
    content: str

    def to_dict(self):
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class Persona:
    """Immutable coaching persona selected per session."""
    id: str
    label: str
    drain_rate_multiplier: float
    prompt_template: str
    description: str = ""
    silence_breakers: Tuple[str, ...] = ()


@dataclass
class SuggestionCacheEntry:
    suggestion_text: str
    inserted_at: float


class TaskKind(Enum):
    """Kind of request sent to an external service."""
    STT = "stt"
    LLM_SUGGEST = "llm-suggest"
    LLM_SUMMARIZE = "llm-summarize"


class TaskStatus(Enum):
    """Status of a dispatched task."""
    PENDING = "pending"
    RESOLVED = "resolved"
    TIMED_OUT = "timed-out"
    STALE = "stale"
    FAILED = "failed"


@dataclass
class Task:
    """A single request to an external service and its state."""
    id: int
    kind: TaskKind
    generation: int
    issued_at: float = field(default_factory=time.monotonic)
    status: TaskStatus = TaskStatus.PENDING
    error: Optional[str] = None

    @property
    def is_open(self) -> bool:
        """True while a response may still be applied."""
        return self.status in (TaskStatus.PENDING, TaskStatus.TIMED_OUT)


@dataclass
class SuggestionContext:
    """Context sent with a suggestion request."""
    persona_label: str
    intent_label: str
    battery_percent: int
    is_exhausted: bool
    recent_intents_window: str

    def to_dict(self):
        return {
            "persona": self.persona_label,
            "intent": self.intent_label,
            "battery": self.battery_percent,
            "isExhausted": self.is_exhausted,
            "recentIntents": self.recent_intents_window,
        }


@dataclass
class SuggestionResult:
    """Normalized suggestion service response."""
    suggestion_text: str
    intent_label: Optional[str] = None
    speaker_toggle_hint: bool = False
    provider: str = ""


@dataclass
class SummaryStats:
    total_count: int
    me_count: int
    them_count: int
    total_drain_percent: int

    def to_dict(self):
        return {
            "totalCount": self.total_count,
            "meCount": self.me_count,
            "themCount": self.them_count,
            "totalDrainPercent": self.total_drain_percent,
        }
