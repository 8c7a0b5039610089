"""Abstract service contracts for speech recognition and text generation."""

from abc import ABC, abstractmethod
from typing import List

import httpx
import numpy as np

from convocue.errors import RequestFailureError
from convocue.models import ChatMessage, SuggestionContext, SuggestionResult, SummaryStats, TranscriptEntry
from convocue.prompt import build_suggestion_prompt, build_summary_prompt
from convocue.schema import parse_suggestion_response


class STTService(ABC):
    """Speech-to-text: one request per buffer flush."""

    name: str = "stt"
    accepts_audio: bool = True

    async def load(self) -> None:
        """Prepare the service.

        Raises:
            ServiceLoadError: If the service cannot be used
        """

    @abstractmethod
    async def transcribe(self, samples: np.ndarray) -> str:
        """Transcribe float32 mono samples in [-1, 1].

        Raises:
            RequestFailureError: If the service returned an error
        """

    async def aclose(self) -> None:
        pass


class LLMService(ABC):
    """Text generation for suggestions and session summaries."""

    name: str = "llm"

    async def load(self) -> None:
        """Prepare the service.

        Raises:
            ServiceLoadError: If the service cannot be used
        """

    @abstractmethod
    async def suggest(
        self,
        messages: List[ChatMessage],
        context: SuggestionContext,
        instruction: str,
    ) -> SuggestionResult:
        pass

    @abstractmethod
    async def summarize(self, transcript: List[TranscriptEntry], stats: SummaryStats) -> str:
        pass

    async def aclose(self) -> None:
        pass


class PromptLLMService(LLMService):
    """LLM service built on a single text-completion call.

    Subclasses only implement `_complete`; prompts and response parsing are
    shared.
    """

    suggest_max_tokens = 64
    summary_max_tokens = 150

    @abstractmethod
    async def _complete(self, prompt: str, *, max_tokens: int, temperature: float) -> str:
        pass

    async def suggest(self, messages, context, instruction):
        prompt = build_suggestion_prompt(messages, context, instruction)
        text = await self._complete(prompt, max_tokens=self.suggest_max_tokens, temperature=0.6)
        return parse_suggestion_response(text, provider=self.name, fallback_intent=context.intent_label)

    async def summarize(self, transcript, stats):
        prompt = build_summary_prompt(transcript, stats)
        text = await self._complete(prompt, max_tokens=self.summary_max_tokens, temperature=0.5)
        return text.strip()


async def post_json(url: str, *, json: dict, headers: dict = None, timeout: float = 90) -> dict:
    """POST and decode JSON, translating transport errors into RequestFailureError."""
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            r = await client.post(url, json=json, headers=headers)
            r.raise_for_status()
            return r.json()
    except httpx.HTTPStatusError as e:
        raise RequestFailureError(f"HTTP {e.response.status_code} from {url}") from e
    except httpx.HTTPError as e:
        raise RequestFailureError(f"Request to {url} failed: {e!s}") from e
    except ValueError as e:
        raise RequestFailureError(f"Invalid JSON from {url}") from e
