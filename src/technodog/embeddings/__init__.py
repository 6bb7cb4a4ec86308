"""Embedding providers for stored document chunks."""

from technodog.embeddings.base import EmbeddingProvider

__all__ = ["EmbeddingProvider"]
