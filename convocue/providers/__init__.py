"""Service factory for STT and LLM providers."""

from convocue.providers.base import LLMService, STTService


def create_llm_service(provider: str = "ollama") -> LLMService:
    """Factory function to create an LLM service based on type.

    Args:
        provider: Type of service to create ("ollama" or "gemini")

    Returns:
        LLMService instance

    Raises:
        ValueError: If provider is not supported
    """
    provider = provider.strip().lower()

    if provider == "ollama":
        from convocue.providers.ollama import OllamaService
        return OllamaService()
    elif provider == "gemini":
        from convocue.providers.gemini import GeminiService
        return GeminiService()
    else:
        raise ValueError(
            f"Unsupported LLM provider: '{provider}'. "
            f"Supported types are: 'ollama', 'gemini'"
        )


def create_stt_service(provider: str = "none") -> STTService:
    """Factory function to create an STT service ("deepgram" or "none")."""
    provider = provider.strip().lower()

    if provider == "deepgram":
        from convocue.providers.deepgram import DeepgramService
        return DeepgramService()
    elif provider == "none":
        from convocue.providers.deepgram import TextOnlySTT
        return TextOnlySTT()
    else:
        raise ValueError(
            f"Unsupported STT provider: '{provider}'. "
            f"Supported types are: 'deepgram', 'none'"
        )


__all__ = ["create_llm_service", "create_stt_service", "LLMService", "STTService"]
