"""
Service layer - Tool-calling agent built on LangGraph's prebuilt ReAct graph.

Every execution event (model start, token, tool start/end, chain end, ...) is
pushed to the caller unchanged, converted to plain JSON data.
"""
from typing import Optional
import logging

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage
from langgraph.prebuilt import create_react_agent

from services.model_selection import select_chat_model
from services.streaming import StreamableValue, to_jsonable
import services.tools_langchain as tools_module

logger = logging.getLogger(__name__)

AGENT_SYSTEM_PROMPT = "You are a helpful assistant. Use the tools provided to best assist the user."
AGENT_TEMPERATURE = 0


def build_agent(llm: BaseChatModel, tools: Optional[list] = None):
    """Compile the agent graph: model with tools bound, ToolNode, loop until no tool calls."""
    tools = tools if tools is not None else tools_module.get_agent_tools()
    return create_react_agent(llm, tools, prompt=AGENT_SYSTEM_PROMPT)


def run_agent(
    input: str,
    llm: Optional[BaseChatModel] = None,
    tools: Optional[list] = None
) -> StreamableValue:
    """
    Start the agent in the background and return its event stream.

    Must be called from a running event loop.
    """
    stream = StreamableValue()

    async def produce(stream: StreamableValue) -> None:
        model = llm or select_chat_model(AGENT_TEMPERATURE)
        agent = build_agent(model, tools)
        logger.info(f"Agent run started: {input[:100]}")

        event_count = 0
        async for event in agent.astream_events(
            {"messages": [HumanMessage(content=input)]},
            version="v2"
        ):
            stream.update(to_jsonable(event))
            event_count += 1

        logger.info(f"Agent run finished after {event_count} events")

    return stream.run(produce)
