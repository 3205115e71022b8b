"""
Vector store implementations for RAG.

Provides repository pattern abstraction over:
- Supabase (pgvector table + match_documents RPC), when configured
- ChromaDB (local persistent collection), otherwise

Rows are (content, metadata, embedding). The table schema and the similarity
function are provisioned outside this service.
"""

import asyncio
import json
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import chromadb
from chromadb.config import Settings
from langchain_core.documents import Document
from supabase import Client, create_client

from .config import VectorStoreConfig

logger = logging.getLogger(__name__)


class IVectorStore(ABC):
    """Interface for vector store operations."""

    @abstractmethod
    async def add_documents(
        self,
        documents: List[Document],
        embeddings: List[List[float]]
    ) -> List[str]:
        """Upsert documents with their embeddings. Returns row ids."""
        pass

    @abstractmethod
    async def similarity_search(
        self,
        query_embedding: List[float],
        k: int = 3
    ) -> List[Document]:
        """Return the k most similar documents, most similar first."""
        pass

    @abstractmethod
    async def fetch(self, limit: int = 3) -> List[Document]:
        """Return up to limit documents in the store's natural order."""
        pass

    @abstractmethod
    async def count(self) -> int:
        """Number of stored rows."""
        pass


def _check_lengths(documents: List[Document], embeddings: List[List[float]]) -> None:
    if len(documents) != len(embeddings):
        raise ValueError(
            f"Documents and embeddings length mismatch: {len(documents)} vs {len(embeddings)}"
        )


class SupabaseVectorStore(IVectorStore):
    """
    Supabase/pgvector implementation of vector store.

    The Supabase client is synchronous; every request runs in the default
    executor so the event loop keeps serving other requests.
    """

    def __init__(self, config: VectorStoreConfig, client: Optional[Client] = None):
        self.config = config
        self.client = client or create_client(config.supabase_url, config.supabase_key)
        logger.info(f"Initialized Supabase vector store: table={config.table_name}")

    async def add_documents(
        self,
        documents: List[Document],
        embeddings: List[List[float]]
    ) -> List[str]:
        if not documents:
            logger.warning("No documents to add")
            return []
        _check_lengths(documents, embeddings)

        rows = [
            {
                "content": document.page_content,
                "metadata": document.metadata,
                "embedding": embedding,
            }
            for document, embedding in zip(documents, embeddings)
        ]
        loop = asyncio.get_running_loop()
        try:
            ids = await loop.run_in_executor(None, self._insert_sync, rows)
        except Exception as e:
            logger.error(f"Error inserting rows into Supabase: {e}")
            raise

        logger.info(f"Added {len(rows)} rows to {self.config.table_name}")
        return ids

    def _insert_sync(self, rows: List[Dict[str, Any]]) -> List[str]:
        response = self.client.table(self.config.table_name).insert(rows).execute()
        return [str(row.get("id", "")) for row in (response.data or [])]

    async def similarity_search(
        self,
        query_embedding: List[float],
        k: int = 3
    ) -> List[Document]:
        loop = asyncio.get_running_loop()
        try:
            rows = await loop.run_in_executor(None, self._match_sync, query_embedding, k)
        except Exception as e:
            logger.error(f"Error calling {self.config.query_name}: {e}")
            raise

        documents = [self._to_document(row) for row in rows][:k]
        logger.info(f"Similarity search returned {len(documents)} rows")
        return documents

    def _match_sync(self, query_embedding: List[float], k: int) -> List[Dict[str, Any]]:
        response = self.client.rpc(
            self.config.query_name,
            {"query_embedding": query_embedding, "match_count": k}
        ).execute()
        return response.data or []

    async def fetch(self, limit: int = 3) -> List[Document]:
        loop = asyncio.get_running_loop()
        try:
            rows = await loop.run_in_executor(None, self._select_sync, limit)
        except Exception as e:
            logger.error(f"Error fetching rows from Supabase: {e}")
            raise

        documents = [self._to_document(row) for row in rows]
        logger.info(f"Fetched {len(documents)} rows from {self.config.table_name}")
        return documents

    def _select_sync(self, limit: int) -> List[Dict[str, Any]]:
        response = (
            self.client.table(self.config.table_name)
            .select("content, metadata")
            .limit(limit)
            .execute()
        )
        return response.data or []

    async def count(self) -> int:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._count_sync)

    def _count_sync(self) -> int:
        response = (
            self.client.table(self.config.table_name)
            .select("id", count="exact")
            .limit(1)
            .execute()
        )
        return response.count or 0

    @staticmethod
    def _to_document(row: Dict[str, Any]) -> Document:
        return Document(page_content=row.get("content") or "", metadata=row.get("metadata") or {})


class ChromaVectorStore(IVectorStore):
    """
    ChromaDB implementation of vector store.

    The collection is named after the configured table. Collection calls
    block, so they run in the default executor.
    """

    def __init__(self, config: VectorStoreConfig, client: Optional[Any] = None):
        self.config = config

        if client is None:
            config.persist_directory.mkdir(parents=True, exist_ok=True)
            client = chromadb.PersistentClient(
                path=str(config.persist_directory),
                settings=Settings(anonymized_telemetry=False)
            )
        self.client = client

        self.collection = self.client.get_or_create_collection(
            name=config.table_name,
            metadata={"hnsw:space": config.distance_function}
        )

        logger.info(
            f"Initialized ChromaDB vector store: {config.table_name} "
            f"at {config.persist_directory}"
        )

    async def add_documents(
        self,
        documents: List[Document],
        embeddings: List[List[float]]
    ) -> List[str]:
        if not documents:
            logger.warning("No documents to add")
            return []
        _check_lengths(documents, embeddings)

        ids = [str(uuid.uuid4()) for _ in documents]
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._add_sync, ids, documents, embeddings)
        except Exception as e:
            logger.error(f"Error adding documents to ChromaDB: {e}")
            raise

        logger.info(f"Added {len(ids)} documents to ChromaDB")
        return ids

    def _add_sync(
        self,
        ids: List[str],
        documents: List[Document],
        embeddings: List[List[float]]
    ) -> None:
        self.collection.add(
            ids=ids,
            embeddings=embeddings,
            documents=[document.page_content for document in documents],
            metadatas=[self._flatten(document.metadata) for document in documents]
        )

    async def similarity_search(
        self,
        query_embedding: List[float],
        k: int = 3
    ) -> List[Document]:
        loop = asyncio.get_running_loop()
        try:
            results = await loop.run_in_executor(None, self._query_sync, query_embedding, k)
        except Exception as e:
            logger.error(f"Error searching ChromaDB: {e}")
            raise

        if not results["ids"] or not results["ids"][0]:
            logger.info("No results found")
            return []

        documents = [
            Document(page_content=text or "", metadata=dict(metadata or {}))
            for text, metadata in zip(results["documents"][0], results["metadatas"][0])
        ]
        logger.info(f"Similarity search returned {len(documents)} documents")
        return documents

    def _query_sync(self, query_embedding: List[float], k: int) -> Dict[str, Any]:
        return self.collection.query(
            query_embeddings=[query_embedding],
            n_results=k,
            include=["documents", "metadatas", "distances"]
        )

    async def fetch(self, limit: int = 3) -> List[Document]:
        loop = asyncio.get_running_loop()
        try:
            results = await loop.run_in_executor(None, self._get_sync, limit)
        except Exception as e:
            logger.error(f"Error fetching from ChromaDB: {e}")
            raise

        documents = [
            Document(page_content=text or "", metadata=dict(metadata or {}))
            for text, metadata in zip(results["documents"], results["metadatas"])
        ]
        logger.info(f"Fetched {len(documents)} documents from ChromaDB")
        return documents

    def _get_sync(self, limit: int) -> Dict[str, Any]:
        return self.collection.get(limit=limit, include=["documents", "metadatas"])

    async def count(self) -> int:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.collection.count)

    @staticmethod
    def _flatten(metadata: Dict[str, Any]) -> Dict[str, Any]:
        """Chroma only stores scalar metadata values; others are JSON-encoded."""
        flat = {}
        for key, value in metadata.items():
            if value is None:
                continue
            if isinstance(value, (str, int, float, bool)):
                flat[key] = value
            else:
                flat[key] = json.dumps(value, default=str)
        return flat or {"source": "unknown"}


def create_vector_store(config: VectorStoreConfig) -> IVectorStore:
    """Supabase when its URL and key are configured, ChromaDB otherwise."""
    if config.use_supabase:
        return SupabaseVectorStore(config)
    return ChromaVectorStore(config)
