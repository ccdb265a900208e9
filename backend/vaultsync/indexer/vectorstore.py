"""ChromaDB vector store for vault chunks"""

import logging

import chromadb

from ..config import get_settings
from ..models import Chunk
from .database import normalize_vault_id

logger = logging.getLogger(__name__)


class VectorStore:
    """
    Vault-scoped ChromaDB vector store.

    All vaults share one collection; every chunk carries ``vault_path`` and
    ``file_path`` metadata so deletes and existence checks can be scoped.
    """

    def __init__(self, client=None, collection_name: str | None = None):
        settings = get_settings()
        self.collection_name = collection_name or settings.collection_name
        self._client = client
        self._collection = None

    @property
    def client(self):
        if self._client is None:
            settings = get_settings()
            self._client = chromadb.HttpClient(
                host=settings.chroma_host,
                port=settings.chroma_port,
                ssl=settings.chroma_ssl,
                tenant=settings.chroma_tenant,
                database=settings.chroma_database,
            )
        return self._client

    @property
    def collection(self):
        if self._collection is None:
            self._collection = self.client.get_or_create_collection(
                name=self.collection_name,
                metadata={"hnsw:space": "cosine"},
                embedding_function=None,
            )
        return self._collection

    def add_chunks(self, chunks: list[Chunk], embeddings: list[list[float]]):
        """Add chunks with their embeddings to the store"""
        if not chunks:
            return

        self.collection.upsert(
            ids=[c.chunk_id for c in chunks],
            documents=[c.content for c in chunks],
            embeddings=embeddings,
            metadatas=[_metadata(c) for c in chunks],
        )

    def has_vault_data(self, vault_path: str) -> bool:
        """Whether any chunk exists for the vault"""
        results = self.collection.get(
            where=_in_vault(vault_path),
            limit=1,
            include=[],
        )
        return bool(results["ids"])

    def delete_by_vault_and_file(self, vault_path: str, file_path: str):
        """Delete all chunks of one file within a vault"""
        self.collection.delete(
            where=_in_vault(vault_path, file_path)
        )

    def delete_by_file_path(self, file_path: str):
        """Delete chunks of a file path in every vault"""
        self.collection.delete(where={"file_path": file_path})

    def clear_vault(self, vault_path: str):
        """Delete every chunk belonging to one vault"""
        self.collection.delete(where=_in_vault(vault_path))
        logger.info("Cleared all vectors for vault: %s", vault_path)

    def clear(self):
        """Drop and recreate the whole collection (affects every vault)"""
        self.client.delete_collection(self.collection_name)
        self._collection = None
        logger.warning("Cleared the entire collection %s", self.collection_name)

    def get_chunk_count(self, vault_path: str | None = None) -> int:
        """Total chunks, or chunks of one vault"""
        if vault_path is None:
            return self.collection.count()
        results = self.collection.get(where=_in_vault(vault_path), include=[])
        return len(results["ids"])

    def get_files(self, vault_path: str) -> list[str]:
        """Distinct file paths that have chunks in a vault"""
        results = self.collection.get(
            where=_in_vault(vault_path),
            include=["metadatas"],
        )
        files = set()
        for metadata in results.get("metadatas") or []:
            if metadata and metadata.get("file_path"):
                files.add(metadata["file_path"])
        return sorted(files)

    def get_by_file(self, vault_path: str, file_path: str) -> list[Chunk]:
        """All chunks of a file in document order"""
        results = self.collection.get(
            where=_in_vault(vault_path, file_path),
            include=["documents", "metadatas"],
        )

        chunks = []
        ids = results.get("ids") or []
        documents = results.get("documents") or []
        metadatas = results.get("metadatas") or []
        for i, chunk_id in enumerate(ids):
            chunks.append(Chunk.from_metadata(
                chunk_id=chunk_id,
                content=documents[i] if i < len(documents) else "",
                metadata=metadatas[i] if i < len(metadatas) else {},
            ))

        chunks.sort(key=lambda c: c.position)
        return chunks


def _in_vault(vault_path: str, file_path: str | None = None) -> dict:
    clause = {"vault_path": normalize_vault_id(vault_path)}
    if file_path is None:
        return clause
    return {"$and": [clause, {"file_path": file_path}]}


def _metadata(chunk: Chunk) -> dict:
    metadata = chunk.to_metadata()
    metadata["vault_path"] = normalize_vault_id(chunk.vault_path)
    return metadata
