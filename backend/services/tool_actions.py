"""
Service layer - Weather-schema tool with three strategies.

- wso: bind the Weather schema through the model's structured-output support
- Google without wso: ask for JSON via format instructions and parse it
- otherwise: plain prompting, streaming raw message chunks
"""
from typing import Optional
import logging

from langchain_core.language_models import BaseChatModel
from langchain_core.output_parsers import PydanticOutputParser
from langchain_core.prompts import ChatPromptTemplate
from langchain_core.runnables import Runnable

from config import ProviderConfig
from domain.models import Weather
from services.model_selection import ProviderSelector
from services.streaming import StreamableValue, to_jsonable

logger = logging.getLogger(__name__)

TOOL_SYSTEM_PROMPT = "You are a helpful assistant. Use the tools provided to best assist the user."
TOOL_TEMPERATURE = 0

STRUCTURED = "structured_output"
FORMAT_INSTRUCTIONS = "format_instructions"
PLAIN = "plain"


def choose_strategy(wso: bool, provider_config: ProviderConfig) -> str:
    if wso:
        return STRUCTURED
    if provider_config.is_google:
        return FORMAT_INSTRUCTIONS
    return PLAIN


def build_tool_chain(strategy: str, llm: BaseChatModel) -> Runnable:
    if strategy == STRUCTURED:
        prompt = ChatPromptTemplate.from_messages([
            ("system", TOOL_SYSTEM_PROMPT),
            ("human", "{input}"),
        ])
        return prompt | llm.with_structured_output(Weather)

    if strategy == FORMAT_INSTRUCTIONS:
        parser = PydanticOutputParser(pydantic_object=Weather)
        prompt = ChatPromptTemplate.from_messages([
            (
                "system",
                TOOL_SYSTEM_PROMPT + " To get the weather, respond with the following JSON:"
                "\n\n{format_instructions}"
            ),
            ("human", "{input}"),
        ]).partial(format_instructions=parser.get_format_instructions())
        return prompt | llm | parser

    prompt = ChatPromptTemplate.from_messages([
        ("system", TOOL_SYSTEM_PROMPT),
        ("human", "{input}"),
    ])
    return prompt | llm


def execute_tool(
    input: str,
    wso: bool = False,
    llm: Optional[BaseChatModel] = None,
    provider_config: Optional[ProviderConfig] = None
) -> StreamableValue:
    """
    Start the weather tool chain in the background and return its chunk stream.

    Must be called from a running event loop.
    """
    stream = StreamableValue()

    async def produce(stream: StreamableValue) -> None:
        config = provider_config or ProviderConfig.from_env()
        model = llm or ProviderSelector(config).chat_model(TOOL_TEMPERATURE)
        strategy = choose_strategy(wso, config)
        logger.info(f"Weather tool using strategy: {strategy}")

        chain = build_tool_chain(strategy, model)
        async for item in chain.astream({"input": input}):
            stream.update(to_jsonable(item))

    return stream.run(produce)
