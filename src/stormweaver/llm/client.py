"""Generative-model capability and its OpenAI-compatible implementation.

The engine only depends on :class:`GenerativeModel`. :class:`OpenAIGenerativeModel`
implements it on top of ``openai.AsyncOpenAI`` with a concurrency cap and
exponential-backoff retries. Build one instance per process and inject it through
``GenerationOptions``.
"""

from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass
from typing import Any, Literal, Protocol, TypeVar

from openai import AsyncOpenAI
from openai.types.chat import ChatCompletion
from pydantic import BaseModel, ValidationError

from stormweaver.config import Settings
from stormweaver.errors import GenerationError
from stormweaver.logging import get_logger
from stormweaver.tools.registry import ToolRegistry
from stormweaver.utils.tags import extract_json_object

logger = get_logger(__name__)

Role = Literal["system", "user", "assistant"]

M = TypeVar("M", bound=BaseModel)

_OBJECT_INSTRUCTIONS = (
    "Respond with a single JSON object that validates against this JSON schema. "
    "Output ONLY raw JSON, without markdown code fences.\n\n"
    "JSON schema:\n{schema}"
)


@dataclass(frozen=True)
class ChatMessage:
    """A chat message."""

    role: Role
    content: str

    def to_payload(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


class GenerativeModel(Protocol):
    """Structured-object and free-text generation."""

    async def generate_object(self, prompt: str, schema: type[M], *, system: str | None = None) -> M:
        """Generate an instance of ``schema``; raise ``GenerationError`` on failure."""

    async def generate_text(
        self,
        prompt: str,
        *,
        system: str | None = None,
        tools: ToolRegistry | None = None,
        max_steps: int = 1,
    ) -> str:
        """Generate free text, optionally calling tools for up to ``max_steps`` rounds."""


def build_messages(prompt: str, system: str | None = None) -> list[ChatMessage]:
    messages: list[ChatMessage] = []
    if system:
        messages.append(ChatMessage(role="system", content=system))
    messages.append(ChatMessage(role="user", content=prompt))
    return messages


class OpenAIGenerativeModel:
    """GenerativeModel backed by the OpenAI Chat Completions API."""

    def __init__(
        self,
        settings: Settings,
        *,
        client: AsyncOpenAI | None = None,
        max_concurrent: int | None = None,
        max_retries: int | None = None,
        retry_backoff: float | None = None,
        temperature: float = 0.7,
    ) -> None:
        """Initialize the model.

        Args:
            settings: Application settings.
            client: Pre-built async client; one is created from settings when omitted.
            max_concurrent: Maximum concurrent requests.
            max_retries: Retry attempts after the first failure.
            retry_backoff: Backoff multiplier for retries, in seconds.
            temperature: Sampling temperature.
        """
        self._settings = settings
        if client is None:
            if not settings.openai_api_key:
                raise ValueError(
                    "Missing STORMWEAVER_OPENAI_API_KEY. "
                    "Set it in environment variables or a .env file."
                )
            client = AsyncOpenAI(
                api_key=settings.openai_api_key,
                base_url=settings.openai_base_url,
                max_retries=0,  # retried here
            )
        self._client = client
        self._semaphore = asyncio.Semaphore(max_concurrent or settings.llm_max_concurrent)
        self._max_retries = settings.llm_max_retries if max_retries is None else max_retries
        self._retry_backoff = settings.llm_retry_backoff_s if retry_backoff is None else retry_backoff
        self._temperature = temperature

        self._request_count = 0
        self._error_count = 0
        self._total_tokens = 0

    @property
    def model_id(self) -> str:
        return self._settings.openai_model

    async def generate_object(self, prompt: str, schema: type[M], *, system: str | None = None) -> M:
        """Generate a structured object validated against ``schema``.

        Raises:
            GenerationError: The request failed, or the output is not valid JSON for the schema.
        """

        instructions = _OBJECT_INSTRUCTIONS.format(schema=json.dumps(schema.model_json_schema()))
        system_text = f"{system}\n\n{instructions}" if system else instructions
        messages = [m.to_payload() for m in build_messages(prompt, system_text)]

        resp = await self._create(messages=messages, response_format={"type": "json_object"})
        raw = _message_text(resp)

        data = extract_json_object(raw)
        if data is None:
            logger.warning(
                "Structured output is not JSON",
                extra={"schema": schema.__name__, "raw_preview": raw[:200]},
            )
            raise GenerationError(f"model returned no JSON object for {schema.__name__}")
        try:
            return schema.model_validate(data)
        except ValidationError as e:
            raise GenerationError(f"model output does not match {schema.__name__}: {e}") from e

    async def generate_text(
        self,
        prompt: str,
        *,
        system: str | None = None,
        tools: ToolRegistry | None = None,
        max_steps: int = 1,
    ) -> str:
        """Generate free text.

        With tools, the model may request tool calls; each round of calls counts as one step.
        After ``max_steps`` rounds the model is asked to answer without tools.
        """

        messages: list[dict[str, Any]] = [m.to_payload() for m in build_messages(prompt, system)]
        if not tools:
            resp = await self._create(messages=messages)
            return _message_text(resp).strip()

        for step in range(max_steps):
            resp = await self._create(messages=messages, tools=tools.openai_tools())
            message = resp.choices[0].message
            if not message.tool_calls:
                return (message.content or "").strip()

            messages.append(
                {
                    "role": "assistant",
                    "content": message.content or "",
                    "tool_calls": [
                        {
                            "id": call.id,
                            "type": "function",
                            "function": {"name": call.function.name, "arguments": call.function.arguments},
                        }
                        for call in message.tool_calls
                    ],
                }
            )
            for call in message.tool_calls:
                try:
                    arguments = json.loads(call.function.arguments or "{}")
                except json.JSONDecodeError:
                    arguments = {}
                logger.info("Tool call", extra={"tool": call.function.name, "tool_step": step + 1})
                result = await tools.execute(call.function.name, arguments)
                messages.append({"role": "tool", "tool_call_id": call.id, "content": result.as_message()})

        logger.info("Tool step budget exhausted", extra={"max_steps": max_steps})
        resp = await self._create(messages=messages)
        return _message_text(resp).strip()

    async def _create(self, **kwargs: Any) -> ChatCompletion:
        async with self._semaphore:
            return await self._create_with_retry(**kwargs)

    async def _create_with_retry(self, **kwargs: Any) -> ChatCompletion:
        last_error: Exception | None = None
        for attempt in range(self._max_retries + 1):
            try:
                start_time = time.monotonic()
                resp: ChatCompletion = await self._client.chat.completions.create(
                    model=self._settings.openai_model,
                    temperature=self._temperature,
                    timeout=self._settings.openai_timeout_s,
                    **kwargs,
                )
                latency = time.monotonic() - start_time
                self._request_count += 1
                if resp.usage:
                    self._total_tokens += resp.usage.total_tokens

                logger.debug(
                    "LLM completion successful",
                    extra={
                        "model": self._settings.openai_model,
                        "latency_ms": latency * 1000,
                        "tokens": resp.usage.total_tokens if resp.usage else None,
                    },
                )
                return resp

            except Exception as e:
                last_error = e
                self._error_count += 1

                if attempt < self._max_retries:
                    wait_time = self._retry_backoff * (2**attempt)
                    logger.warning(
                        "LLM request failed, retrying",
                        extra={
                            "attempt": attempt + 1,
                            "max_retries": self._max_retries,
                            "wait_time": wait_time,
                            "error": str(e),
                        },
                    )
                    await asyncio.sleep(wait_time)
                else:
                    logger.error("LLM request failed after retries", extra={"error": str(e)})

        raise GenerationError(
            f"LLM request failed after {self._max_retries} retries: {last_error}"
        ) from last_error

    def get_metrics(self) -> dict[str, Any]:
        """Get client metrics."""
        error_rate = self._error_count / self._request_count if self._request_count > 0 else 0.0
        return {
            "request_count": self._request_count,
            "error_count": self._error_count,
            "error_rate": error_rate,
            "total_tokens": self._total_tokens,
        }


def _message_text(resp: ChatCompletion) -> str:
    if not resp.choices:
        raise GenerationError("LLM response has no choices")
    choice = resp.choices[0]
    if not choice.message or choice.message.content is None:
        return ""
    return choice.message.content
