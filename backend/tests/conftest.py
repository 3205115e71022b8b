"""
Pytest configuration and fixtures.
"""

import sys
from pathlib import Path

import pytest
from langchain_core.documents import Document

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import ProviderConfig  # noqa: E402

PROVIDER_VARS = ("GOOGLE_API_KEY", "OPENAI_API_KEY")
STORE_VARS = ("SUPABASE_URL", "SUPABASE_PRIVATE_KEY", "RAG_RETRIEVAL_STRATEGY")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Start every test from an environment with no credentials or modes set."""
    for var in PROVIDER_VARS + STORE_VARS + ("DEMO_MODE", "TAVILY_API_KEY"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("CHROMA_PERSIST_DIR", str(tmp_path / "chroma"))


@pytest.fixture
def openai_config():
    return ProviderConfig(provider="openai", api_key="test-key", credential_var="OPENAI_API_KEY")


@pytest.fixture
def google_config():
    return ProviderConfig(provider="google", api_key="test-key", credential_var="GOOGLE_API_KEY")


@pytest.fixture
def client():
    """Test client for the app; dependency overrides are cleared afterwards."""
    from fastapi.testclient import TestClient
    from main import app

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def sample_documents():
    return [
        Document(page_content="LangChain is a framework for building LLM applications.", metadata={"source": "a.md"}),
        Document(page_content="Supabase offers Postgres with the pgvector extension.", metadata={"source": "b.md"}),
        Document(page_content="Short doc", metadata={}),
    ]
