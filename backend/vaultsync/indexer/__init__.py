"""Indexer module - metadata store, vector store, embedding, and indexing"""

from .database import MetadataStore
from .vectorstore import VectorStore
from .embedder import get_embedding_provider, OpenAIEmbedding, OllamaEmbedding
from .manager import Indexer

__all__ = [
    "MetadataStore",
    "VectorStore",
    "get_embedding_provider",
    "OpenAIEmbedding",
    "OllamaEmbedding",
    "Indexer",
]
