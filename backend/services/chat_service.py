"""
Service layer - Plain chat: prompt | model | output parser, streamed.
"""
from typing import Any, AsyncIterator, Dict, List
import logging

from langchain_core.language_models import BaseChatModel
from langchain_core.prompts import PromptTemplate

from config import ProviderConfig
from domain.errors import InvalidRequestError
from domain.models import ChatMessage
from services.output_parsers import output_parser_for

logger = logging.getLogger(__name__)

CHAT_TEMPLATE = """You are a helpful assistant.

Current conversation:
{chat_history}

User: {input}
AI:"""

CHAT_PROMPT = PromptTemplate.from_template(CHAT_TEMPLATE)

CHAT_TEMPERATURE = 0.8


def format_message(message: ChatMessage) -> str:
    return f"{message.role}: {message.content}"


def build_chat_inputs(messages: List[ChatMessage]) -> Dict[str, str]:
    """Split messages into the prompt's chat_history block and current input."""
    if not messages:
        raise InvalidRequestError("messages must contain at least one message")
    return {
        "chat_history": "\n".join(format_message(m) for m in messages[:-1]),
        "input": messages[-1].content,
    }


class ChatService:
    """Streams a single completion for the latest message."""

    def __init__(self, llm: BaseChatModel, provider_config: ProviderConfig):
        self.llm = llm
        self.provider_config = provider_config
        self.chain = CHAT_PROMPT | llm | output_parser_for(provider_config)
        logger.info(f"Chat chain ready (provider={provider_config.provider})")

    def stream(self, messages: List[ChatMessage]) -> AsyncIterator[Any]:
        """Yield str (Google) or bytes (OpenAI) chunks in provider order."""
        return self.chain.astream(build_chat_inputs(messages))
