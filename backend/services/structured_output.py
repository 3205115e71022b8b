"""
Service layer - Structured output extraction with a fixed schema.
"""
from typing import Any, Dict
import logging

from langchain_core.language_models import BaseChatModel
from langchain_core.prompts import PromptTemplate

from domain.errors import UpstreamProviderError
from domain.models import StructuredChatOutput

logger = logging.getLogger(__name__)

EXTRACTION_TEMPLATE = """Extract the requested fields from the input.

The field "entity" refers to the first mentioned entity in the input.

Input:

{input}"""

EXTRACTION_PROMPT = PromptTemplate.from_template(EXTRACTION_TEMPLATE)

STRUCTURED_TEMPERATURE = 0.8


def count_words(text: str) -> int:
    return len(text.split())


class StructuredOutputService:
    """Binds StructuredChatOutput to the model and invokes it once."""

    def __init__(self, llm: BaseChatModel):
        self.chain = EXTRACTION_PROMPT | llm.with_structured_output(StructuredChatOutput)

    async def extract(self, text: str) -> Dict[str, Any]:
        result = await self.chain.ainvoke({"input": text})
        if result is None:
            # None when the model answers without calling the schema tool.
            raise UpstreamProviderError("Model returned no structured output")
        if isinstance(result, dict):
            result = StructuredChatOutput.model_validate(result)

        # Word count is computed locally; models miscount.
        actual = count_words(text)
        if result.word_count != actual:
            logger.info(f"Model word_count {result.word_count} corrected to {actual}")
            result = result.model_copy(update={"word_count": actual})

        return result.model_dump()
