"""
RAG (Retrieval-Augmented Generation) module for document-based answers.

This module implements the retrieval pipeline using:
- Supabase (pgvector) or ChromaDB for vector storage
- Google Generative AI or OpenAI embeddings, selected from the environment
- Markdown-aware recursive text chunking

Retrieval is driven by the condensed standalone question.
"""

__version__ = "1.0.0"
