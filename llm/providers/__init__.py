"""
LLM Provider implementations.
"""

from typing import Any, Optional, Protocol, runtime_checkable

from qualification.exceptions import ConfigurationError

from .bedrock import BedrockProvider, check_aws_credentials
from .openai_provider import OpenAIProvider, check_api_key, mask_key


@runtime_checkable
class ReasoningProvider(Protocol):
    """Anything that can turn a prompt into completion text."""

    async def agenerate(self, prompt: str, system: Optional[str] = None) -> str:
        ...


def create_provider(settings: Any) -> ReasoningProvider:
    """
    Build the configured provider.

    Credentials are validated first, so a bad key fails here with
    ConfigurationError before any client or network call exists.
    """
    provider = (settings.llm_provider or "").lower()

    if provider == "openai":
        return OpenAIProvider(
            api_key=settings.openai_api_key,
            model_id=settings.openai_llm_model,
            max_tokens=settings.max_tokens,
            temperature=settings.temperature,
            timeout=settings.llm_timeout_seconds,
        )
    if provider == "bedrock":
        return BedrockProvider(
            model_id=settings.bedrock_llm_model_id,
            region=settings.aws_region,
            access_key_id=settings.aws_access_key_id,
            secret_access_key=settings.aws_secret_access_key,
            max_tokens=settings.max_tokens,
            temperature=settings.temperature,
            timeout=settings.llm_timeout_seconds,
        )

    raise ConfigurationError(
        f"Unsupported LLM provider: {settings.llm_provider!r}",
        remediation="Set LLM_PROVIDER to 'openai' or 'bedrock'.",
    )


__all__ = [
    "BedrockProvider",
    "OpenAIProvider",
    "ReasoningProvider",
    "check_api_key",
    "check_aws_credentials",
    "create_provider",
    "mask_key",
]
