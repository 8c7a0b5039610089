"""Configuration management for service settings and pipeline tunables."""

import os
from typing import Optional
from pathlib import Path

from dotenv import load_dotenv

# config.py is in convocue/, .env is in project root
load_dotenv(Path(__file__).parent.parent / ".env", override=True)


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


# ---------------------------------------------------------------------------
# Pipeline tunables
# ---------------------------------------------------------------------------

# Audio buffer: 48 kHz mono, flush after ~1s or 300ms of silence
SAMPLE_RATE_HZ = 48000
FLUSH_SAMPLE_THRESHOLD = 48000
FLUSH_IDLE_SECONDS = 0.3

# Speaker attribution
INITIAL_ME_VOLUME = 0.15
INITIAL_THEM_VOLUME = 0.05
VOLUME_EMA_WEIGHT = 0.1
FREE_OVERRIDE_TOGGLES = 3
GUESS_OVERRIDE_PROBABILITY = 0.3

# Intent classifier
INTENT_THRESHOLD = 0.7
INTENT_WINDOW_SECONDS = 30.0
INTENT_HISTORY_SIZE = 5
INTENT_HISTORY_KEY_SIZE = 3

# Social energy
INITIAL_ENERGY = 100.0
ENERGY_BASE_RATE = _env_float("ENERGY_BASE_RATE", 0.1)
INTENT_DRAIN_MULTIPLIERS = {
    "social": 0.8,
    "professional": 1.2,
    "conflict": 2.0,
    "empathy": 1.1,
    "positive": 0.5,
    "general": 1.0,
}
EXHAUSTED_THRESHOLD = 15.0
FATIGUE_THRESHOLD = 40.0
SENSITIVITY_LEVELS = {
    "low": 0.5,
    "normal": 1.0,
    "high": 1.5,
}
DEFAULT_SENSITIVITY = "normal"

# Suggestion cache
CACHE_TTL_SECONDS = 45.0
CACHE_CAPACITY = 75

# Dispatcher
SOFT_TIMEOUT_SECONDS = 3.0

# Session
MESSAGE_WINDOW = 6
SILENCE_POLL_SECONDS = 2.0
SILENCE_THRESHOLD_SECONDS = 8.0


class Config:
    """Application configuration from environment variables."""

    # Service selection
    STT_PROVIDER: str = os.getenv("STT_PROVIDER", "none")  # "deepgram" or "none" (text-only)
    LLM_PROVIDER: str = os.getenv("LLM_PROVIDER", "ollama")  # "ollama" or "gemini"

    # Deepgram API key (required when STT_PROVIDER=deepgram)
    DEEPGRAM_API_KEY: Optional[str] = os.getenv("DEEPGRAM_API_KEY")
    DEEPGRAM_URL: str = os.getenv("DEEPGRAM_URL", "https://api.deepgram.com")
    DEEPGRAM_MODEL: str = os.getenv("DEEPGRAM_MODEL", "nova-2")

    # Ollama settings (no API key needed, it's local)
    OLLAMA_URL: str = os.getenv("OLLAMA_URL", "http://127.0.0.1:11434")
    OLLAMA_MODEL: str = os.getenv("OLLAMA_MODEL", "gemma3:4b")

    # Gemini settings
    GEMINI_API_KEY: Optional[str] = os.getenv("GEMINI_API_KEY")
    GEMINI_BASE_URL: str = os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")

    # HTTP timeout for a single service request
    REQUEST_TIMEOUT_SECONDS: float = _env_float("REQUEST_TIMEOUT_SECONDS", 90.0)

    # Session defaults
    DEFAULT_PERSONA: str = os.getenv("DEFAULT_PERSONA", "anxiety")

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def validate(cls) -> list[str]:
        """Validate configuration and return list of missing required settings."""
        missing = []

        if cls.STT_PROVIDER == "deepgram" and not cls.DEEPGRAM_API_KEY:
            missing.append("DEEPGRAM_API_KEY (required when STT_PROVIDER=deepgram)")

        if cls.LLM_PROVIDER == "gemini" and not cls.GEMINI_API_KEY:
            missing.append("GEMINI_API_KEY (required when LLM_PROVIDER=gemini)")

        return missing
