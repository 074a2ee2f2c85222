"""OpenAI-compatible oracle client implementation."""

import os
from collections.abc import Mapping, Sequence
from typing import Any

import httpx
from openai import (
    APIConnectionError,
    APIResponseValidationError,
    APIStatusError,
    AsyncOpenAI,
)

from vent_ai.core.config import Settings
from vent_ai.core.errors import (
    OracleEmptyReplyError,
    OracleRejectedError,
    OracleUnavailableError,
)
from vent_ai.core.logging import get_logger
from vent_ai.oracle.base import BaseOracle, ChatTurn, build_payload

logger = get_logger(__name__)


def _error_details(error: APIStatusError) -> Any:
    """Pull the provider's error object out of an error response.

    The client already unwraps the ``error`` key of a JSON body.
    """
    body = error.body
    if isinstance(body, Mapping):
        return dict(body)
    return body or error.message


class OpenAICompatOracle(BaseOracle):
    """OpenAI API-compatible chat completion oracle.

    Makes exactly one request per reply: the client is built without
    retries and with a bounded timeout. Timeouts surface as
    OracleUnavailableError.

    Example usage:
        # GitHub Models
        oracle = OpenAICompatOracle(
            api_key=os.getenv("OPENAI_API_KEY"),
            base_url="https://models.github.ai/inference",
            model="openai/gpt-4.1",
        )

        # Ollama
        oracle = OpenAICompatOracle(
            base_url="http://localhost:11434/v1",
            model="llama3.2",
        )
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str = "openai/gpt-4.1",
        temperature: float = 0.7,
        top_p: float = 1.0,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the oracle client.

        Args:
            api_key: API key for authentication. Defaults to OPENAI_API_KEY env var.
            base_url: Base URL for API. Defaults to OPENAI_BASE_URL env var or OpenAI.
            model: Model name to use.
            temperature: Sampling temperature sent with every request.
            top_p: Nucleus sampling value sent with every request.
            timeout: Request timeout in seconds.
            http_client: Custom httpx client (used by tests).
        """
        self.model = model
        self.temperature = temperature
        self.top_p = top_p
        self.timeout = timeout

        resolved_api_key = api_key or os.getenv("OPENAI_API_KEY", "unset")
        resolved_base_url = base_url or os.getenv("OPENAI_BASE_URL")

        self.client = AsyncOpenAI(
            api_key=resolved_api_key,
            base_url=resolved_base_url,
            timeout=timeout,
            max_retries=0,
            http_client=http_client,
        )

        logger.info(
            "oracle_client_initialized",
            model=model,
            base_url=resolved_base_url or "default",
            timeout_s=timeout,
        )

    @classmethod
    def from_settings(
        cls, settings: Settings, http_client: httpx.AsyncClient | None = None
    ) -> "OpenAICompatOracle":
        """Build an oracle from application settings."""
        return cls(
            api_key=settings.oracle_api_key,
            base_url=settings.oracle_base_url,
            model=settings.oracle_model,
            temperature=settings.oracle_temperature,
            top_p=settings.oracle_top_p,
            timeout=settings.oracle_timeout_s,
            http_client=http_client,
        )

    async def reply(self, turns: Sequence[ChatTurn], system_prompt: str) -> str:
        """Get one completion for the given history.

        Args:
            turns: Prior turns, oldest first.
            system_prompt: Instruction prepended as a system message.

        Returns:
            The reply text.
        """
        messages = build_payload(turns, system_prompt)
        logger.info("oracle_request_start", model=self.model, message_count=len(messages))

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,  # type: ignore[arg-type]
                temperature=self.temperature,
                top_p=self.top_p,
            )
        except APIStatusError as e:
            details = _error_details(e)
            logger.error("oracle_rejected", status=e.status_code, details=details)
            raise OracleRejectedError(e.status_code, details) from e
        except APIConnectionError as e:
            logger.error("oracle_unavailable", error=str(e))
            raise OracleUnavailableError(f"AI service unreachable: {e}") from e
        except APIResponseValidationError as e:
            logger.error("oracle_invalid_response", error=str(e))
            raise OracleEmptyReplyError("AI service returned an unreadable response") from e
        except ValueError as e:
            # Success status with a body that is not JSON, e.g. a gateway page.
            logger.error("oracle_undecodable_response", error=str(e))
            raise OracleEmptyReplyError("AI service returned an unreadable response") from e

        choices = getattr(response, "choices", None)
        if not choices:
            logger.error("oracle_empty_reply", reason="no_choices")
            raise OracleEmptyReplyError("No response from AI")

        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None)
        if not isinstance(content, str) or not content.strip():
            logger.error("oracle_empty_reply", reason="no_content")
            raise OracleEmptyReplyError("No response from AI")

        logger.info("oracle_request_completed", response_length=len(content))
        return content

    async def close(self) -> None:
        await self.client.close()
