"""
Language-aware overlapping text chunker for RAG.

Wraps RecursiveCharacterTextSplitter with the separators of the configured
language (Markdown by default: headings, code fences, rules, paragraphs).
"""

import logging
from typing import Any, Dict, List, Optional

from langchain_core.documents import Document
from langchain_text_splitters import Language, RecursiveCharacterTextSplitter

from .config import ChunkingConfig

logger = logging.getLogger(__name__)


class MarkdownChunker:
    """Splits text into overlapping Documents ready for embedding."""

    def __init__(self, config: Optional[ChunkingConfig] = None):
        self.config = config or ChunkingConfig()
        self.splitter = RecursiveCharacterTextSplitter.from_language(
            Language(self.config.language),
            chunk_size=self.config.chunk_size,
            chunk_overlap=self.config.chunk_overlap,
        )

    def split(self, text: str, metadata: Optional[Dict[str, Any]] = None) -> List[Document]:
        """
        Chunk text into overlapping documents.

        Each chunk carries the given metadata plus its chunk_index.
        """
        if not text or not text.strip():
            logger.warning("Empty text provided for chunking")
            return []

        documents = self.splitter.create_documents([text], metadatas=[dict(metadata or {})])
        for index, document in enumerate(documents):
            document.metadata["chunk_index"] = index

        logger.info(f"Created {len(documents)} chunks from {len(text)} chars")
        if documents:
            logger.debug(f"First chunk: {documents[0].page_content[:100]}...")
        return documents
