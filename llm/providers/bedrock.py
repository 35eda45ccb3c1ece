"""
AWS Bedrock LLM Provider.
"""

import asyncio
import json
import logging
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from qualification.exceptions import ConfigurationError, ProviderCallError

logger = logging.getLogger(__name__)

AUTH_ERROR_CODES = {"AccessDeniedException", "UnrecognizedClientException", "ExpiredTokenException"}
THROTTLE_ERROR_CODES = {"ThrottlingException", "ServiceQuotaExceededException"}

AWS_REMEDIATION = (
    "Check AWS_ACCESS_KEY_ID / AWS_SECRET_ACCESS_KEY and AWS_REGION, and that the account "
    "has been granted access to the configured Bedrock model."
)


def check_aws_credentials(
    region: Optional[str],
    access_key_id: Optional[str],
    secret_access_key: Optional[str],
) -> None:
    """Pre-flight check of Bedrock settings before the client is built."""
    if not (region or "").strip():
        raise ConfigurationError("AWS region missing", remediation="Set AWS_REGION to a Bedrock-enabled region.")
    if bool((access_key_id or "").strip()) != bool((secret_access_key or "").strip()):
        raise ConfigurationError(
            "Incomplete AWS credentials",
            remediation="Set both AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY, or neither to use the default chain.",
        )


class BedrockProvider:
    """
    AWS Bedrock LLM provider.

    Supports Claude models via Bedrock.
    """

    DEFAULT_MODEL = "us.anthropic.claude-sonnet-4-20250514-v1:0"

    def __init__(
        self,
        model_id: str = DEFAULT_MODEL,
        region: str = "us-east-1",
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        max_tokens: int = 1024,
        temperature: float = 0.3,
        timeout: float = 30.0,
    ):
        """
        Initialize Bedrock provider.

        Args:
            model_id: Bedrock model ID
            region: AWS region
            access_key_id: Optional explicit access key
            secret_access_key: Optional explicit secret key
            max_tokens: Maximum tokens for response
            temperature: Generation temperature
            timeout: Seconds before a request counts as failed
        """
        check_aws_credentials(region, access_key_id, secret_access_key)

        self.model_id = model_id
        self.region = region
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout

        client_kwargs = {
            "region_name": region,
            "config": Config(
                connect_timeout=timeout,
                read_timeout=timeout,
                retries={"max_attempts": 0},
            ),
        }
        if access_key_id:
            client_kwargs["aws_access_key_id"] = access_key_id
            client_kwargs["aws_secret_access_key"] = secret_access_key

        self._client = boto3.client("bedrock-runtime", **client_kwargs)
        logger.info(f"Bedrock provider initialized: {model_id} in {region}")

    @property
    def name(self) -> str:
        return "bedrock"

    def _invoke(self, prompt: str, system: Optional[str]) -> str:
        body = {
            "anthropic_version": "bedrock-2023-05-31",
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": [
                {
                    "role": "user",
                    "content": [{"type": "text", "text": prompt}]
                }
            ]
        }

        if system:
            body["system"] = system

        response = self._client.invoke_model(
            modelId=self.model_id,
            body=json.dumps(body),
            contentType="application/json",
            accept="application/json",
        )

        try:
            response_body = json.loads(response["body"].read())
            content = response_body.get("content") or []
            text = content[0].get("text", "") if content else ""
        except (ValueError, KeyError, AttributeError, IndexError) as e:
            logger.warning(f"Unreadable response body from Bedrock: {e}")
            return ""

        if isinstance(text, str) and text.strip():
            return text.strip()

        logger.warning("Empty response from Bedrock")
        return ""

    async def agenerate(
        self,
        prompt: str,
        system: Optional[str] = None,
    ) -> str:
        """Generate a completion; the boto3 call runs in a worker thread."""
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._invoke, prompt, system),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.error(f"Bedrock request timed out after {self.timeout}s")
            raise ProviderCallError(
                f"AI service did not respond within {self.timeout:g} seconds",
                kind="timeout",
                remediation="Check your network connection and try sending the message again.",
            )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            status = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
            logger.error(f"Bedrock API error {code}: {e}")
            if code in AUTH_ERROR_CODES:
                kind = "auth"
            elif code in THROTTLE_ERROR_CODES:
                kind = "rate_limit"
            else:
                kind = "request"
            raise ProviderCallError(
                f"AI service returned an error ({code or 'unknown'})", status_code=status, kind=kind,
                remediation=AWS_REMEDIATION,
            )
        except BotoCoreError as e:
            logger.error(f"Bedrock connection failed: {e}")
            raise ProviderCallError(
                "There was a problem connecting to the AI service", kind="connection",
                remediation=AWS_REMEDIATION,
            )
