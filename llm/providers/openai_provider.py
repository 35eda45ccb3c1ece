"""
OpenAI LLM Provider.
"""

import asyncio
import logging
from typing import Optional

import openai
from openai import AsyncOpenAI

from qualification.exceptions import ConfigurationError, ProviderCallError

logger = logging.getLogger(__name__)

API_KEY_PREFIX = "sk-"

KEY_REMEDIATION = (
    "Double check that your OpenAI API key was saved and is correct, that it has usage quota left, "
    "and that outbound requests to https://api.openai.com are not blocked."
)


def mask_key(api_key: str) -> str:
    """Loggable form of a secret: first 7 and last 3 characters."""
    if len(api_key) <= 10:
        return "***"
    return f"{api_key[:7]}...{api_key[-3:]}"


def check_api_key(api_key: Optional[str]) -> str:
    """
    Pre-flight check of an OpenAI key before any request is made.

    Returns:
        The stripped key

    Raises:
        ConfigurationError: key missing or not shaped like an OpenAI key
    """
    key = (api_key or "").strip()
    if not key:
        raise ConfigurationError(
            "OpenAI API key missing",
            remediation="Set OPENAI_API_KEY in the environment or .env file to enable conversation.",
        )
    if not key.startswith(API_KEY_PREFIX):
        raise ConfigurationError(
            "OpenAI API key format invalid",
            remediation=f"The supplied API key doesn't start with '{API_KEY_PREFIX}'. Please re-enter your key.",
        )
    return key


class OpenAIProvider:
    """
    OpenAI LLM provider.

    One chat completion per call, bounded by ``timeout`` seconds and never
    retried; SDK failures are raised as ProviderCallError.
    """

    DEFAULT_MODEL = "gpt-4.1-2025-04-14"

    def __init__(
        self,
        api_key: Optional[str],
        model_id: str = DEFAULT_MODEL,
        max_tokens: int = 1024,
        temperature: float = 0.3,
        timeout: float = 30.0,
    ):
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key, validated before the client is built
            model_id: Model ID
            max_tokens: Maximum tokens
            temperature: Generation temperature
            timeout: Seconds before a request counts as failed
        """
        key = check_api_key(api_key)

        self._client = AsyncOpenAI(api_key=key, timeout=timeout, max_retries=0)
        self.model_id = model_id
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout

        logger.info(f"OpenAI provider initialized: {model_id} (key {mask_key(key)})")

    @property
    def name(self) -> str:
        return "openai"

    async def agenerate(
        self,
        prompt: str,
        system: Optional[str] = None,
    ) -> str:
        """
        Generate a completion.

        Args:
            prompt: User prompt
            system: System prompt

        Returns:
            Completion text ("" when the model returned no content)
        """
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        try:
            response = await asyncio.wait_for(
                self._client.chat.completions.create(
                    model=self.model_id,
                    messages=messages,
                    max_tokens=self.max_tokens,
                    temperature=self.temperature,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.error(f"OpenAI request timed out after {self.timeout}s")
            raise ProviderCallError(
                f"AI service did not respond within {self.timeout:g} seconds",
                kind="timeout",
                remediation="Check your internet connection and try sending the message again.",
            )
        except openai.AuthenticationError as e:
            logger.error(f"OpenAI authentication failed: {e}")
            raise ProviderCallError(
                "AI service rejected the API key", status_code=e.status_code, kind="auth",
                remediation=KEY_REMEDIATION,
            )
        except openai.RateLimitError as e:
            logger.error(f"OpenAI rate limit: {e}")
            raise ProviderCallError(
                "AI service rate limit or quota exceeded", status_code=e.status_code, kind="rate_limit",
                remediation="Wait a moment and resend, or check the usage quota of your OpenAI account.",
            )
        except openai.APITimeoutError as e:
            logger.error(f"OpenAI request timed out: {e}")
            raise ProviderCallError(
                "AI service request timed out", kind="timeout",
                remediation="Check your internet connection and try sending the message again.",
            )
        except openai.APIConnectionError as e:
            logger.error(f"OpenAI connection failed: {e}")
            raise ProviderCallError(
                "There was a problem connecting to the AI service", kind="connection",
                remediation=KEY_REMEDIATION,
            )
        except openai.APIStatusError as e:
            logger.error(f"OpenAI API error {e.status_code}: {e}")
            raise ProviderCallError(
                f"AI service returned an error (status {e.status_code})", status_code=e.status_code,
                remediation=KEY_REMEDIATION,
            )
        except openai.OpenAIError as e:
            logger.error(f"OpenAI generation failed: {e}")
            raise ProviderCallError(f"AI service request failed: {e}", remediation=KEY_REMEDIATION)

        if not response.choices:
            return ""
        content = response.choices[0].message.content
        return (content or "").strip()
