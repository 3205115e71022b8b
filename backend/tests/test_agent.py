"""Tests for the tool-calling agent and the pirate graph."""

import json

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel
from langchain_core.messages import AIMessage, HumanMessage

from main import app, get_agent_model
from services.agent import run_agent
from services.pirate_graph import PIRATE_SYSTEM_PROMPT, build_pirate_graph
from fakes import FakeToolChatModel


class BrokenChatModel(FakeToolChatModel):
    def _generate(self, messages, stop=None, run_manager=None, **kwargs):
        raise RuntimeError("model unavailable")


def _agent_model(text="It is sunny."):
    return FakeToolChatModel(messages=iter([AIMessage(content=text)]))


class TestRunAgent:
    """Test cases for run_agent event streaming."""

    @pytest.mark.asyncio
    async def test_streams_json_events(self):
        events = [event async for event in run_agent("What's the weather?", llm=_agent_model(), tools=[])]

        assert events
        assert events[0]["event"] == "on_chain_start"
        assert any(event["event"].startswith("on_chat_model") for event in events)
        json.dumps(events)

    @pytest.mark.asyncio
    async def test_ends_with_root_chain_end(self):
        events = [event async for event in run_agent("hi", llm=_agent_model(), tools=[])]

        assert events[-1]["event"] == "on_chain_end"

    @pytest.mark.asyncio
    async def test_model_failure_reaches_consumer(self):
        with pytest.raises(RuntimeError, match="model unavailable"):
            async for _ in run_agent("hi", llm=BrokenChatModel(messages=iter([])), tools=[]):
                pass


class TestAgentEndpoint:
    """Test cases for POST /api/agent."""

    def test_streams_ndjson_events(self, client):
        app.dependency_overrides[get_agent_model] = _agent_model

        response = client.post("/api/agent", json={"input": "hello"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/x-ndjson")
        events = [json.loads(line) for line in response.text.splitlines() if line]
        assert events[0]["event"] == "on_chain_start"

    def test_missing_credentials_returns_500(self, client):
        response = client.post("/api/agent", json={"input": "hello"})

        assert response.status_code == 500
        assert "No API key found" in response.json()["error"]


class TestPirateGraph:
    """Test cases for the single-node LangGraph agent."""

    @pytest.mark.asyncio
    async def test_appends_reply_and_timestamp(self):
        graph = build_pirate_graph(FakeListChatModel(responses=["Arr, ahoy matey!"]))

        state = await graph.ainvoke({"messages": [HumanMessage(content="Hello")]})

        assert [m.content for m in state["messages"]] == ["Hello", "Arr, ahoy matey!"]
        assert isinstance(state["timestamp"], int)

    def test_system_prompt_names_patchy(self):
        assert "Patchy" in PIRATE_SYSTEM_PROMPT

    def test_endpoint_returns_messages(self, client):
        app.dependency_overrides[get_agent_model] = lambda: FakeListChatModel(responses=["Yo ho ho!"])

        response = client.post(
            "/api/langgraph/agent",
            json={"messages": [{"role": "user", "content": "Hi"}]}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["messages"][-1] == {"role": "ai", "content": "Yo ho ho!"}
        assert data["messages"][0] == {"role": "human", "content": "Hi"}
        assert isinstance(data["timestamp"], int)

    def test_endpoint_empty_messages_returns_400(self, client):
        app.dependency_overrides[get_agent_model] = lambda: FakeListChatModel(responses=["unused"])

        response = client.post("/api/langgraph/agent", json={"messages": []})

        assert response.status_code == 400
