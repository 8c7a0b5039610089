from __future__ import annotations
from typing import Optional

from convocue.config import Config
from convocue.errors import ServiceLoadError
from convocue.providers.base import PromptLLMService, post_json


class GeminiService(PromptLLMService):
    """
    Gemini Developer API generateContent endpoint.
    Only used when LLM_PROVIDER=gemini.
    """

    name = "gemini"

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None,
                 base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.api_key = (api_key or Config.GEMINI_API_KEY or "").strip()
        self.model = (model or Config.GEMINI_MODEL).strip()
        self.base_url = (base_url or Config.GEMINI_BASE_URL).rstrip("/")
        self.timeout = timeout or Config.REQUEST_TIMEOUT_SECONDS

    async def load(self) -> None:
        if not self.api_key:
            raise ServiceLoadError("GEMINI_API_KEY is not set. Add it to .env to enable Gemini.")

    async def _complete(self, prompt: str, *, max_tokens: int, temperature: float) -> str:
        # Gemini REST: POST /v1beta/models/{model}:generateContent
        url = f"{self.base_url}/v1beta/models/{self.model}:generateContent"
        body = {
            "contents": [
                {"role": "user", "parts": [{"text": prompt}]}
            ],
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_tokens,
            },
        }
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key,
        }
        data = await post_json(url, json=body, headers=headers, timeout=self.timeout)

        # Extract text
        candidates = data.get("candidates") or []
        if not candidates or not isinstance(candidates[0], dict):
            return ""
        parts = ((candidates[0].get("content") or {}).get("parts") or [])
        return "".join(p.get("text", "") for p in parts if isinstance(p, dict))
