"""
Service layer - Logging interceptor around any LangChain embeddings client.

Records text previews, batch sizes, vector dimensionality and a short prefix
of the first vector. Vectors are returned untouched.
"""
from typing import List, Optional
import logging

from langchain_core.embeddings import Embeddings

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 50
PREFIX_VALUES = 5


def _preview(text: str) -> str:
    return text[:PREVIEW_CHARS] + ("..." if len(text) > PREVIEW_CHARS else "")


class LoggingEmbeddings(Embeddings):
    """Decorator that logs every embedding call and delegates the work."""

    def __init__(self, embeddings: Embeddings, name: Optional[str] = None):
        self.embeddings = embeddings
        self.name = name or embeddings.__class__.__name__

    def _log_query(self, text: str) -> None:
        logger.info(f"[{self.name}] Embedding query: \"{_preview(text)}\"")

    def _log_documents(self, texts: List[str]) -> None:
        logger.info(f"[{self.name}] Embedding {len(texts)} documents")
        if texts:
            logger.info(f"[{self.name}] First document preview: \"{_preview(texts[0])}\"")

    def _log_vectors(self, vectors: List[List[float]]) -> None:
        first = vectors[0] if vectors else []
        logger.info(f"[{self.name}] Embedding dimensions: {len(first)}")
        logger.info(f"[{self.name}] First {PREFIX_VALUES} values: {list(first[:PREFIX_VALUES])}")

    def embed_query(self, text: str) -> List[float]:
        self._log_query(text)
        vector = self.embeddings.embed_query(text)
        self._log_vectors([vector])
        return vector

    def embed_documents(self, texts: List[str]) -> List[List[float]]:
        self._log_documents(texts)
        vectors = self.embeddings.embed_documents(texts)
        self._log_vectors(vectors)
        return vectors

    async def aembed_query(self, text: str) -> List[float]:
        self._log_query(text)
        vector = await self.embeddings.aembed_query(text)
        self._log_vectors([vector])
        return vector

    async def aembed_documents(self, texts: List[str]) -> List[List[float]]:
        self._log_documents(texts)
        vectors = await self.embeddings.aembed_documents(texts)
        self._log_vectors(vectors)
        return vectors
