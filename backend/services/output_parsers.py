"""
Service layer - Output adapters for streaming model text to HTTP clients.
"""
from langchain_core.output_parsers import StrOutputParser
from langchain_core.output_parsers.transform import BaseTransformOutputParser

from config import ProviderConfig


class BytesOutputParser(BaseTransformOutputParser[bytes]):
    """Parse model output into UTF-8 encoded bytes, chunk by chunk."""

    @property
    def _type(self) -> str:
        return "bytes_output_parser"

    def parse(self, text: str) -> bytes:
        return text.encode("utf-8")


def output_parser_for(config: ProviderConfig):
    """Plain text for Google models, bytes for OpenAI models."""
    if config.is_google:
        return StrOutputParser()
    return BytesOutputParser()
