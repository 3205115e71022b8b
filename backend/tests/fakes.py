"""
Test doubles shared by the test modules.
"""

from typing import List, Optional

from langchain_core.documents import Document
from langchain_core.language_models.fake_chat_models import GenericFakeChatModel

from rag.vector_store import IVectorStore


class InMemoryVectorStore(IVectorStore):
    """List-backed store. Similarity search returns rows in insertion order."""

    def __init__(self, documents: Optional[List[Document]] = None):
        self.rows = [(document, []) for document in (documents or [])]
        self.queries: List[List[float]] = []
        self.fetch_calls = 0
        self.count_calls = 0

    async def add_documents(self, documents, embeddings):
        self.rows.extend(zip(documents, embeddings))
        return [str(i) for i in range(len(documents))]

    async def similarity_search(self, query_embedding, k=3):
        self.queries.append(query_embedding)
        return [document for document, _ in self.rows[:k]]

    async def fetch(self, limit=3):
        self.fetch_calls += 1
        return [document for document, _ in self.rows[:limit]]

    async def count(self):
        self.count_calls += 1
        return len(self.rows)


class FailingVectorStore(InMemoryVectorStore):
    """Store whose every call fails like a remote outage."""

    def __init__(self, message: str = "connection refused"):
        super().__init__()
        self.message = message

    async def add_documents(self, documents, embeddings):
        raise RuntimeError(self.message)

    async def similarity_search(self, query_embedding, k=3):
        raise RuntimeError(self.message)

    async def fetch(self, limit=3):
        raise RuntimeError(self.message)


class FakeToolChatModel(GenericFakeChatModel):
    """Fake chat model that accepts tool binding and ignores it."""

    def bind_tools(self, tools, **kwargs):
        return self
