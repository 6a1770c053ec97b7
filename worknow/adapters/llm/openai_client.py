"""OpenAI LLM client adapter."""

import json
from typing import Any

from openai import AsyncOpenAI

from worknow.adapters.llm.base import AbstractLLMClient
from worknow.core.errors import LLMAppError

_PASSTHROUGH_PARAMS = ("max_tokens", "top_p", "seed")


class OpenAIClient(AbstractLLMClient):
    """Chat-completions client returning parsed JSON objects."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        timeout_seconds: float = 30.0,
    ) -> None:
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
        )
        self.model = model

    async def generate_json(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Ask the model for a JSON object.

        Args:
            prompt: User message.
            system_prompt: Optional instructions prepended as the system message.
            **kwargs: temperature, max_tokens, top_p, seed.

        Returns:
            dict[str, Any]: Parsed JSON object from the response.

        Raises:
            LLMAppError: If the API call fails or the content is not a JSON object.
        """
        messages = [
            {
                "role": "system",
                "content": system_prompt or "Output JSON only. No extra text or markdown formatting.",
            },
            {"role": "user", "content": prompt},
        ]

        request_params: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": kwargs.pop("temperature", 0.3),
            "response_format": {"type": "json_object"},
        }
        for param in _PASSTHROUGH_PARAMS:
            if param in kwargs:
                request_params[param] = kwargs[param]

        try:
            response = await self.client.chat.completions.create(**request_params)
        except Exception as exc:
            raise LLMAppError(
                code="llm_request_failed",
                message=f"OpenAI API error: {exc}",
                details={"model": self.model, "error_type": type(exc).__name__},
            ) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise LLMAppError(code="llm_empty_response", message="LLM returned empty response")

        try:
            parsed = json.loads(content.strip())
        except json.JSONDecodeError as exc:
            raise LLMAppError(
                code="llm_invalid_json",
                message=f"LLM returned invalid JSON: {exc}",
            ) from exc

        if not isinstance(parsed, dict):
            raise LLMAppError(code="llm_invalid_json", message="LLM returned a non-object JSON value")
        return parsed
