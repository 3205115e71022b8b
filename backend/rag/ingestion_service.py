"""
Document ingestion service for RAG.

Handles the complete pipeline:
1. Text chunking
2. Embedding generation
3. Vector store persistence
"""

import logging
from typing import Any, Dict, List, Optional

from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings

from config import AppConfig, DEMO_MODE_MESSAGE
from domain.errors import ModeRestrictionError
from .chunking import MarkdownChunker
from .vector_store import IVectorStore

logger = logging.getLogger(__name__)


def ensure_ingest_allowed(app_config: AppConfig) -> None:
    """Raise ModeRestrictionError in demo mode. Checked before any client is built."""
    if app_config.demo_mode:
        logger.warning("Ingest rejected: demo mode is enabled")
        raise ModeRestrictionError(DEMO_MODE_MESSAGE)


class IngestionService:
    """
    Service for ingesting text into the vector store.

    Pipeline: text → chunks → embeddings → vector store
    """

    def __init__(
        self,
        chunker: MarkdownChunker,
        embeddings: Embeddings,
        vector_store: IVectorStore
    ):
        self.chunker = chunker
        self.embeddings = embeddings
        self.vector_store = vector_store

        logger.info("Initialized ingestion service")

    async def ingest_text(
        self,
        text: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> List[Document]:
        """
        Split, embed and store text.

        Args:
            text: Raw text (Markdown aware)
            metadata: Metadata copied onto every chunk

        Returns:
            The stored chunk documents
        """
        logger.info(f"Ingest: splitting {len(text)} chars")
        chunks = self.chunker.split(text, metadata)

        if not chunks:
            logger.warning("Ingest: no chunks were created; nothing to store")
            return []

        embeddings = await self.embeddings.aembed_documents(
            [chunk.page_content for chunk in chunks]
        )
        await self.vector_store.add_documents(chunks, embeddings)

        logger.info(f"Ingest: stored {len(chunks)} chunks")
        return chunks
