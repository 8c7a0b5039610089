"""Deepgram pre-recorded transcription for flushed audio buffers."""

from __future__ import annotations
from typing import Optional

import httpx
import numpy as np

from convocue.config import Config, SAMPLE_RATE_HZ
from convocue.errors import RequestFailureError, ServiceLoadError
from convocue.providers.base import STTService


def float_to_pcm16(samples: np.ndarray) -> bytes:
    """float32 in [-1, 1] -> PCM16 little-endian bytes."""
    clipped = np.clip(np.asarray(samples, dtype=np.float32), -1.0, 1.0)
    return (clipped * 32767.0).astype("<i2").tobytes()


class DeepgramService(STTService):
    """POST {url}/v1/listen with raw linear16 audio."""

    name = "deepgram"

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None,
                 base_url: Optional[str] = None, sample_rate: int = SAMPLE_RATE_HZ,
                 timeout: Optional[float] = None):
        self.api_key = api_key or Config.DEEPGRAM_API_KEY
        self.model = model or Config.DEEPGRAM_MODEL
        self.base_url = (base_url or Config.DEEPGRAM_URL).rstrip("/")
        self.sample_rate = int(sample_rate)
        self.timeout = timeout or Config.REQUEST_TIMEOUT_SECONDS

    async def load(self) -> None:
        if not self.api_key:
            raise ServiceLoadError("DEEPGRAM_API_KEY is not set.")

    async def transcribe(self, samples: np.ndarray) -> str:
        params = {
            "model": self.model,
            "encoding": "linear16",
            "sample_rate": self.sample_rate,
            "channels": 1,
            "smart_format": "true",
        }
        headers = {
            "Authorization": f"Token {self.api_key}",
            "Content-Type": "application/octet-stream",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                r = await client.post(
                    f"{self.base_url}/v1/listen",
                    params=params,
                    headers=headers,
                    content=float_to_pcm16(samples),
                )
                r.raise_for_status()
                data = r.json()
        except httpx.HTTPStatusError as e:
            raise RequestFailureError(f"Deepgram HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise RequestFailureError(f"Deepgram request failed: {e!s}") from e
        except ValueError as e:
            raise RequestFailureError("Deepgram returned invalid JSON") from e

        # results.channels[0].alternatives[0].transcript
        transcript = ""
        channels = (data.get("results") or {}).get("channels")
        if isinstance(channels, list) and channels and isinstance(channels[0], dict):
            alts = channels[0].get("alternatives")
            if isinstance(alts, list) and alts and isinstance(alts[0], dict):
                transcript = (alts[0].get("transcript") or "").strip()
        return transcript


class TextOnlySTT(STTService):
    """Placeholder for sessions fed through text ingestion only."""

    name = "none"
    accepts_audio = False

    async def transcribe(self, samples: np.ndarray) -> str:
        return ""
