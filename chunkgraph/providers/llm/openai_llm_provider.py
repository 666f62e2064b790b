"""OpenAI chat-completions provider."""

import asyncio
import random
from typing import Any

import openai
from loguru import logger
from openai import AsyncOpenAI

from chunkgraph.interfaces.llm_provider import CompletionOptions, LLMProvider, LLMResponse

_RETRYABLE_ERRORS = (
    openai.RateLimitError,
    openai.APITimeoutError,
    openai.APIConnectionError,
    openai.InternalServerError,
)


class OpenAILLMProvider(LLMProvider):
    """Text generation over the OpenAI (or compatible) chat-completions API."""

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float = 60.0,
        max_retries: int = 3,
        client: AsyncOpenAI | None = None,
    ):
        self._model = model
        self._timeout = timeout
        self._max_retries = max_retries
        self._client = client or AsyncOpenAI(
            api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0
        )

        # Usage tracking
        self._requests_made = 0
        self._tokens_used = 0
        self._prompt_tokens = 0
        self._completion_tokens = 0

    @property
    def name(self) -> str:
        return "openai"

    @property
    def model(self) -> str:
        return self._model

    async def complete(
        self,
        messages: list[dict[str, str]],
        options: CompletionOptions | None = None,
    ) -> LLMResponse:
        options = options or CompletionOptions()
        request: dict[str, Any] = {
            "model": self._model,
            "messages": messages,
            "max_completion_tokens": options.max_completion_tokens,
            "timeout": options.timeout if options.timeout is not None else self._timeout,
            **options.extra,
        }
        if options.temperature is not None:
            request["temperature"] = options.temperature

        last_error: Exception | None = None
        for attempt in range(self._max_retries):
            try:
                response = await self._client.chat.completions.create(**request)
            except _RETRYABLE_ERRORS as e:
                last_error = e
                if attempt < self._max_retries - 1:
                    delay = min(60, (2**attempt) + random.uniform(0, 1))
                    logger.warning(
                        f"OpenAI {type(e).__name__} on attempt {attempt + 1}, "
                        f"retrying in {delay:.2f}s"
                    )
                    await asyncio.sleep(delay)
                    continue
                break
            except openai.APIError as e:
                logger.error(f"OpenAI completion failed: {e}")
                raise RuntimeError(f"LLM completion failed: {e}") from e

            choice = response.choices[0]
            usage = response.usage
            prompt_tokens = usage.prompt_tokens if usage else 0
            completion_tokens = usage.completion_tokens if usage else 0
            self._requests_made += 1
            self._prompt_tokens += prompt_tokens
            self._completion_tokens += completion_tokens
            self._tokens_used += prompt_tokens + completion_tokens
            return LLMResponse(
                content=choice.message.content or "",
                tokens_used=prompt_tokens + completion_tokens,
                model=self._model,
                finish_reason=choice.finish_reason,
            )

        raise RuntimeError(
            f"LLM completion failed after {self._max_retries} attempts"
        ) from last_error

    def get_usage_stats(self) -> dict[str, Any]:
        return {
            "requests_made": self._requests_made,
            "total_tokens": self._tokens_used,
            "prompt_tokens": self._prompt_tokens,
            "completion_tokens": self._completion_tokens,
        }
