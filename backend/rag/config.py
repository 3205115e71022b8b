"""
RAG configuration dataclasses for all RAG components.

Provides centralized configuration with sensible defaults for:
- Chunking (size, overlap, language-aware separators)
- Vector store (table/query names, Supabase or ChromaDB connection)
- Retrieval (top_k, strategy)
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional
import os

SIMILARITY = "similarity"
FLAT = "flat"


@dataclass
class ChunkingConfig:
    """Configuration for text chunking."""

    chunk_size: int = 256  # Characters per chunk
    chunk_overlap: int = 20
    language: str = "markdown"  # Separator set for RecursiveCharacterTextSplitter

    def __post_init__(self):
        """Validate configuration."""
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError("chunk_overlap must be less than chunk_size")


@dataclass
class VectorStoreConfig:
    """Configuration for the vector store. Supabase wins when both keys are set."""

    table_name: str = "documents"
    query_name: str = "match_documents"
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    persist_directory: Path = field(default_factory=lambda: Path("data/rag/chroma"))
    distance_function: str = "cosine"

    def __post_init__(self):
        self.persist_directory = Path(self.persist_directory)

    @property
    def use_supabase(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


@dataclass
class RetrievalConfig:
    """Configuration for retrieval."""

    top_k: int = 3
    strategy: str = SIMILARITY  # "similarity" or "flat" (natural store order)

    def __post_init__(self):
        """Validate configuration."""
        if self.top_k <= 0:
            raise ValueError("top_k must be positive")
        if self.strategy not in (SIMILARITY, FLAT):
            raise ValueError(f"strategy must be '{SIMILARITY}' or '{FLAT}'")


@dataclass
class RAGConfig:
    """Aggregated RAG configuration."""

    chunking: ChunkingConfig = field(default_factory=ChunkingConfig)
    vector_store: VectorStoreConfig = field(default_factory=VectorStoreConfig)
    retrieval: RetrievalConfig = field(default_factory=RetrievalConfig)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RAGConfig":
        """Create configuration with environment variable overrides."""
        env = os.environ if environ is None else environ
        config = cls()

        config.vector_store.supabase_url = env.get("SUPABASE_URL") or None
        config.vector_store.supabase_key = env.get("SUPABASE_PRIVATE_KEY") or None

        if persist_dir := env.get("CHROMA_PERSIST_DIR"):
            config.vector_store.persist_directory = Path(persist_dir)

        if strategy := env.get("RAG_RETRIEVAL_STRATEGY"):
            config.retrieval = RetrievalConfig(
                top_k=config.retrieval.top_k,
                strategy=strategy.strip().lower()
            )

        return config
