"""
Service layer - Single-node LangGraph agent that answers as a pirate.

Flow: START → agent → END
"""
from typing import Optional
import logging
import time

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import SystemMessage
from langgraph.graph import StateGraph, MessagesState, START, END

from services.model_selection import select_chat_model

logger = logging.getLogger(__name__)

PIRATE_SYSTEM_PROMPT = (
    "You are a pirate named Patchy. "
    "All responses must be extremely verbose and in pirate dialect."
)


class PirateState(MessagesState):
    """Conversation messages plus the time of the last model call (ms)."""
    timestamp: int


def build_pirate_graph(llm: Optional[BaseChatModel] = None):
    """Compile the pirate graph. The model is selected lazily when not given."""
    model = llm or select_chat_model(0)

    async def agent_node(state: PirateState):
        message = await model.ainvoke(
            [SystemMessage(content=PIRATE_SYSTEM_PROMPT), *state["messages"]]
        )
        return {"messages": [message], "timestamp": int(time.time() * 1000)}

    builder = StateGraph(PirateState)
    builder.add_node("agent", agent_node)
    builder.add_edge(START, "agent")
    builder.add_edge("agent", END)

    graph = builder.compile()
    logger.info("Pirate graph compiled")
    return graph
