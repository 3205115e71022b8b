"""Tests for chunking and the ingestion endpoint."""

from unittest.mock import MagicMock

import pytest
from langchain_core.embeddings import DeterministicFakeEmbedding

import main
from config import AppConfig, DEMO_MODE_MESSAGE
from domain.errors import ModeRestrictionError
from main import app, get_ingestion_service
from rag.chunking import MarkdownChunker
from rag.config import ChunkingConfig
from rag.ingestion_service import IngestionService, ensure_ingest_allowed
from fakes import FailingVectorStore, InMemoryVectorStore

MARKDOWN = "\n\n".join(
    [f"## Section {i}\n\n" + ("Paragraph text about retrieval pipelines. " * 8) for i in range(4)]
)


class TestMarkdownChunker:
    """Test cases for MarkdownChunker."""

    def test_chunks_respect_size(self):
        chunks = MarkdownChunker().split(MARKDOWN)

        assert len(chunks) > 1
        assert all(len(chunk.page_content) <= 256 for chunk in chunks)

    def test_chunk_index_and_metadata(self):
        chunks = MarkdownChunker().split(MARKDOWN, {"source": "guide.md"})

        assert [chunk.metadata["chunk_index"] for chunk in chunks] == list(range(len(chunks)))
        assert all(chunk.metadata["source"] == "guide.md" for chunk in chunks)

    def test_blank_text_gives_no_chunks(self):
        assert MarkdownChunker().split("") == []
        assert MarkdownChunker().split("   \n ") == []

    def test_short_text_single_chunk(self):
        chunks = MarkdownChunker().split("# Title\n\nShort body.")

        assert len(chunks) == 1

    def test_invalid_overlap_rejected(self):
        with pytest.raises(ValueError):
            ChunkingConfig(chunk_size=20, chunk_overlap=20)


class TestIngestionService:
    """Test cases for IngestionService."""

    @pytest.mark.asyncio
    async def test_stores_every_chunk_with_embedding(self):
        store = InMemoryVectorStore()
        service = IngestionService(MarkdownChunker(), DeterministicFakeEmbedding(size=4), store)

        chunks = await service.ingest_text(MARKDOWN)

        assert await store.count() == len(chunks)
        assert all(len(embedding) == 4 for _, embedding in store.rows)

    @pytest.mark.asyncio
    async def test_empty_text_stores_nothing(self):
        store = InMemoryVectorStore()
        service = IngestionService(MarkdownChunker(), DeterministicFakeEmbedding(size=4), store)

        assert await service.ingest_text("") == []
        assert await store.count() == 0


def test_demo_mode_guard():
    with pytest.raises(ModeRestrictionError) as exc_info:
        ensure_ingest_allowed(AppConfig(demo_mode=True))

    assert exc_info.value.status_code == 403
    assert exc_info.value.message == DEMO_MODE_MESSAGE

    ensure_ingest_allowed(AppConfig(demo_mode=False))


class TestIngestEndpoint:
    """Test cases for POST /api/retrieval/ingest."""

    @pytest.mark.parametrize("text", ["", "# Notes", MARKDOWN])
    def test_demo_mode_rejects_without_side_effects(self, client, monkeypatch, text):
        """No provider or store client is built in demo mode"""
        monkeypatch.setenv("DEMO_MODE", "true")
        monkeypatch.setenv("OPENAI_API_KEY", "test-key")
        create_store = MagicMock()
        selector = MagicMock()
        monkeypatch.setattr(main, "create_vector_store", create_store)
        monkeypatch.setattr(main, "ProviderSelector", selector)

        response = client.post("/api/retrieval/ingest", json={"text": text})

        assert response.status_code == 403
        assert response.json() == {"error": DEMO_MODE_MESSAGE}
        create_store.assert_not_called()
        selector.assert_not_called()

    def test_ingest_ok(self, client):
        store = InMemoryVectorStore()
        app.dependency_overrides[get_ingestion_service] = lambda: IngestionService(
            MarkdownChunker(), DeterministicFakeEmbedding(size=4), store
        )

        response = client.post("/api/retrieval/ingest", json={"text": MARKDOWN})

        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert len(store.rows) > 1

    def test_store_failure_returns_500(self, client):
        app.dependency_overrides[get_ingestion_service] = lambda: IngestionService(
            MarkdownChunker(), DeterministicFakeEmbedding(size=4), FailingVectorStore("permission denied")
        )

        response = client.post("/api/retrieval/ingest", json={"text": MARKDOWN})

        assert response.status_code == 500
        assert response.json() == {"error": "permission denied"}

    def test_missing_credentials_returns_500(self, client):
        response = client.post("/api/retrieval/ingest", json={"text": "# Notes"})

        assert response.status_code == 500
        assert "No API key found" in response.json()["error"]

    def test_wires_configured_store(self, client, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "test-key")
        store = InMemoryVectorStore()
        monkeypatch.setattr(main, "create_vector_store", lambda config: store)
        selector = MagicMock()
        selector.return_value.embeddings.return_value = DeterministicFakeEmbedding(size=4)
        monkeypatch.setattr(main, "ProviderSelector", selector)

        response = client.post("/api/retrieval/ingest", json={"text": MARKDOWN})

        assert response.status_code == 200
        assert len(store.rows) > 1
