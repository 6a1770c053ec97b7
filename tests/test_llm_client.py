"""Tests for the LLM factory and the OpenAI adapter (no network calls)."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from worknow.adapters.llm import OpenAIClient, create_llm_client
from worknow.core.config import LLMSettings
from worknow.core.errors import LLMAppError, ValidationAppError


def _completion(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def openai_client() -> OpenAIClient:
    client = OpenAIClient(api_key="sk-test", model="gpt-3.5-turbo")
    client.client = MagicMock()
    client.client.chat.completions.create = AsyncMock()
    return client


class TestFactory:
    def test_missing_api_key(self) -> None:
        with pytest.raises(ValidationAppError) as exc_info:
            create_llm_client(LLMSettings(provider="openai", api_key=None))
        assert exc_info.value.code == "llm_missing_api_key"

    def test_unknown_provider(self) -> None:
        with pytest.raises(ValidationAppError) as exc_info:
            create_llm_client(LLMSettings(provider="acme", api_key="x"))
        assert exc_info.value.code == "llm_unknown_provider"

    def test_openai_client_created(self) -> None:
        client = create_llm_client(LLMSettings(provider="OpenAI", api_key="sk-test", model="gpt-4o-mini"))

        assert isinstance(client, OpenAIClient)
        assert client.model == "gpt-4o-mini"


class TestOpenAIClient:
    @pytest.mark.asyncio
    async def test_returns_parsed_object(self, openai_client: OpenAIClient) -> None:
        openai_client.client.chat.completions.create.return_value = _completion('{"title": "Повар"}')

        result = await openai_client.generate_json("prompt", system_prompt="sys", max_tokens=50)

        assert result == {"title": "Повар"}
        params = openai_client.client.chat.completions.create.call_args.kwargs
        assert params["max_tokens"] == 50
        assert params["response_format"] == {"type": "json_object"}
        assert params["messages"][0] == {"role": "system", "content": "sys"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("content", "code"),
        [
            (None, "llm_empty_response"),
            ("not json", "llm_invalid_json"),
            ('["a list"]', "llm_invalid_json"),
        ],
    )
    async def test_bad_responses_raise(self, openai_client: OpenAIClient, content, code: str) -> None:
        openai_client.client.chat.completions.create.return_value = _completion(content)

        with pytest.raises(LLMAppError) as exc_info:
            await openai_client.generate_json("prompt")
        assert exc_info.value.code == code

    @pytest.mark.asyncio
    async def test_provider_error_is_wrapped(self, openai_client: OpenAIClient) -> None:
        openai_client.client.chat.completions.create.side_effect = RuntimeError("quota exceeded")

        with pytest.raises(LLMAppError) as exc_info:
            await openai_client.generate_json("prompt")
        assert exc_info.value.code == "llm_request_failed"
        assert exc_info.value.details["error_type"] == "RuntimeError"
