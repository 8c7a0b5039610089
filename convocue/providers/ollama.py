from __future__ import annotations
from typing import Optional

import httpx

from convocue.config import Config
from convocue.errors import ServiceLoadError
from convocue.providers.base import PromptLLMService, post_json


class OllamaService(PromptLLMService):
    """Local Ollama server via POST {url}/api/chat."""

    name = "ollama"

    def __init__(self, base_url: Optional[str] = None, model: Optional[str] = None,
                 timeout: Optional[float] = None):
        self.base_url = (base_url or Config.OLLAMA_URL).rstrip("/")
        self.model = model or Config.OLLAMA_MODEL
        self.timeout = timeout or Config.REQUEST_TIMEOUT_SECONDS

    async def load(self) -> None:
        try:
            async with httpx.AsyncClient(timeout=10) as client:
                r = await client.get(f"{self.base_url}/api/tags")
                r.raise_for_status()
                data = r.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ServiceLoadError(
                f"Cannot connect to Ollama at {self.base_url}. Please ensure Ollama is running."
            ) from e

        names = {str(m.get("name", "")) for m in data.get("models") or [] if isinstance(m, dict)}
        if names and self.model not in names and f"{self.model}:latest" not in names:
            raise ServiceLoadError(
                f"Model '{self.model}' not found. Install it with: ollama pull {self.model}"
            )

    async def _complete(self, prompt: str, *, max_tokens: int, temperature: float) -> str:
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "stream": False,
            "options": {
                "temperature": temperature,
                "num_predict": max_tokens,
            },
        }
        data = await post_json(f"{self.base_url}/api/chat", json=payload, timeout=self.timeout)
        return (data.get("message") or {}).get("content", "") or ""
