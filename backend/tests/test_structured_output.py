"""Tests for the structured output extraction."""

from unittest.mock import MagicMock

import pytest
from langchain_core.runnables import RunnableLambda

from domain.errors import UpstreamProviderError
from domain.models import StructuredChatOutput
from main import app, get_structured_output_service
from services.structured_output import StructuredOutputService, count_words


def _structured_llm(result):
    """Model stub whose structured-output runnable returns a fixed result."""
    llm = MagicMock()
    llm.with_structured_output.return_value = RunnableLambda(lambda _: result)
    return llm


TEXAS = StructuredChatOutput(
    tone="positive",
    entity="Texas",
    word_count=5,
    chat_response="Texas sunshine is hard to beat!",
    final_punctuation="!",
)


def test_count_words():
    assert count_words("I love sunny days in Texas!") == 6
    assert count_words("  spaced   out  ") == 2
    assert count_words("") == 0


def test_binds_schema():
    llm = _structured_llm(TEXAS)

    StructuredOutputService(llm)

    llm.with_structured_output.assert_called_once_with(StructuredChatOutput)


@pytest.mark.asyncio
async def test_word_count_corrected():
    """A miscounted word_count is replaced with the local count"""
    service = StructuredOutputService(_structured_llm(TEXAS))

    result = await service.extract("I love sunny days in Texas!")

    assert result["word_count"] == 6
    assert result["tone"] == "positive"
    assert result["entity"] == "Texas"
    assert result["final_punctuation"] == "!"


@pytest.mark.asyncio
async def test_dict_result_validated():
    payload = TEXAS.model_dump()
    payload["final_punctuation"] = None
    service = StructuredOutputService(_structured_llm(payload))

    result = await service.extract("I love sunny days in Texas")

    assert set(result) == {"tone", "entity", "word_count", "chat_response", "final_punctuation"}
    assert result["final_punctuation"] is None


class TestStructuredOutputEndpoint:
    """Test cases for POST /api/chat/structured_output."""

    def test_returns_json_object(self, client):
        app.dependency_overrides[get_structured_output_service] = (
            lambda: StructuredOutputService(_structured_llm(TEXAS))
        )

        response = client.post(
            "/api/chat/structured_output",
            json={"messages": [
                {"role": "user", "content": "Hello"},
                {"role": "user", "content": "I love sunny days in Texas!"},
            ]}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["word_count"] == 6
        assert data["tone"] in ("positive", "negative", "neutral")

    def test_model_failure_returns_500(self, client):
        def _raise(_):
            raise RuntimeError("invalid schema")

        llm = MagicMock()
        llm.with_structured_output.return_value = RunnableLambda(_raise)
        app.dependency_overrides[get_structured_output_service] = lambda: StructuredOutputService(llm)

        response = client.post(
            "/api/chat/structured_output",
            json={"messages": [{"role": "user", "content": "Hi"}]}
        )

        assert response.status_code == 500
        assert response.json() == {"error": "invalid schema"}

    def test_empty_messages_returns_400(self, client):
        app.dependency_overrides[get_structured_output_service] = (
            lambda: StructuredOutputService(_structured_llm(TEXAS))
        )

        response = client.post("/api/chat/structured_output", json={"messages": []})

        assert response.status_code == 400


@pytest.mark.asyncio
async def test_missing_structured_result_is_upstream_error():
    service = StructuredOutputService(_structured_llm(None))

    with pytest.raises(UpstreamProviderError, match="Model returned no structured output"):
        await service.extract("I love sunny days in Texas!")


def test_missing_structured_result_returns_clean_500(client):
    app.dependency_overrides[get_structured_output_service] = (
        lambda: StructuredOutputService(_structured_llm(None))
    )

    response = client.post(
        "/api/chat/structured_output",
        json={"messages": [{"role": "user", "content": "Hi"}]}
    )

    assert response.status_code == 500
    assert response.json() == {"error": "Model returned no structured output"}
