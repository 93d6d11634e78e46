"""Client for an OpenAI-compatible chat completions endpoint."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from app.core.config import settings
from app.exceptions.completion import (
    CompletionRateLimitError,
    CompletionTimeoutError,
    CompletionTransportError,
    CompletionUnavailableError,
    map_completion_error,
)


logger = logging.getLogger(__name__)


@dataclass
class CompletionResult:
    """Assistant reply returned by the provider."""

    content: str
    model: str | None = None
    usage: dict[str, Any] = field(default_factory=dict)

    @property
    def tokens_used(self) -> int | None:
        return self.usage.get("total_tokens")


class CompletionClient:
    """Sends an ordered role/content list and returns the assistant reply.

    Rate limits and upstream unavailability are retried with exponential
    backoff. The whole call, retries included, is bounded by `timeout`;
    a timeout is not retried.
    """

    def __init__(
        self,
        base_url: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.base_url = (base_url or settings.llm_api_base_url).rstrip("/")
        self.model = model or settings.llm_model
        self.timeout = timeout or settings.ai_request_timeout
        self._http_client = http_client

    async def complete(self, messages: list[dict[str, str]], api_key: str) -> CompletionResult:
        try:
            return await asyncio.wait_for(
                self._complete_with_retry(messages, api_key),
                timeout=self.timeout,
            )
        except TimeoutError:
            logger.error(f"Completion request timed out after {self.timeout}s")
            raise CompletionTimeoutError() from None

    @retry(
        retry=retry_if_exception_type((CompletionRateLimitError, CompletionUnavailableError)),
        stop=stop_after_attempt(settings.ai_max_retry_attempts),
        wait=wait_exponential(
            multiplier=settings.ai_retry_backoff_factor,
            min=settings.ai_retry_min_wait,
            max=settings.ai_retry_max_wait,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _complete_with_retry(self, messages: list[dict[str, str]], api_key: str) -> CompletionResult:
        response = await self._post(messages, api_key)
        return self._parse_response(response)

    async def _post(self, messages: list[dict[str, str]], api_key: str) -> httpx.Response:
        payload = {"model": self.model, "messages": messages}
        headers = {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}
        url = f"{self.base_url}/chat/completions"

        try:
            if self._http_client is not None:
                response = await self._http_client.post(url, json=payload, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(url, json=payload, headers=headers)
        except httpx.TimeoutException as e:
            raise CompletionTimeoutError() from e
        except httpx.HTTPError as e:
            logger.warning(f"Completion provider unreachable: {str(e)}")
            raise CompletionUnavailableError(f"Completion service is unreachable: {str(e)}") from e

        if response.status_code >= 400:
            raise self._error_for(response)
        return response

    def _error_for(self, response: httpx.Response) -> CompletionTransportError:
        upstream = _extract_error_message(response)
        details = {"upstream_status": response.status_code, "error": upstream}
        if response.status_code in (401, 403):
            message = "Invalid API key. Please check your API key."
        elif response.status_code == 429:
            message = "Rate limit exceeded. Please try again later."
        elif response.status_code >= 500:
            message = f"Completion service error: {upstream}"
        else:
            message = f"Completion request rejected: {upstream}"
        logger.warning(f"Completion provider returned {response.status_code}: {upstream}")
        return map_completion_error(response.status_code, message, details)

    def _parse_response(self, response: httpx.Response) -> CompletionResult:
        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.error(f"Malformed completion response: {str(e)}")
            raise CompletionTransportError("Completion response was malformed") from e

        if not content or not content.strip():
            raise CompletionTransportError("Completion service returned an empty response")

        return CompletionResult(
            content=content,
            model=data.get("model") or self.model,
            usage=data.get("usage") or {},
        )


def _extract_error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return error.get("message") or str(error)
    if error:
        return str(error)
    return response.text or response.reason_phrase
