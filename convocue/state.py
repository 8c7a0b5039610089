from dataclasses import dataclass, field
from typing import List, Optional
import time

from convocue import config
from convocue.models import TranscriptEntry


@dataclass
class ServiceStatus:
    ready: bool = False
    progress: int = 0
    stage: str = "initializing"
    error: Optional[str] = None

    def to_dict(self):
        return {
            "ready": self.ready,
            "progress": self.progress,
            "stage": self.stage,
            "error": self.error,
        }


@dataclass
class Session:
    persona_id: str
    transcript: List[TranscriptEntry] = field(default_factory=list)
    initial_energy: float = config.INITIAL_ENERGY
    started_at: float = field(default_factory=lambda: time.time())
    suggestion: str = ""
    suggestion_intent: Optional[str] = None
    is_processing: bool = False
    detected_intent: str = "general"
    summary: Optional[str] = None
    is_summarizing: bool = False
    summary_error: Optional[str] = None
    last_error: Optional[str] = None
    consecutive_count: int = 0
