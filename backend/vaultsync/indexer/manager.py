"""Indexer - parses, chunks, embeds, and upserts vault files"""

import logging
from pathlib import Path
from typing import Callable, Optional

from ..config import get_settings
from ..errors import IndexingError
from ..vault import scan_vault, parse_markdown, chunk_document
from .vectorstore import VectorStore
from .embedder import EmbeddingProvider, get_embedding_provider

logger = logging.getLogger(__name__)

# (vault_path, indexed_files, hashes)
CompletionCallback = Callable[[str, list[str], dict[str, str]], None]
# (current, total, message)
FileProgressCallback = Callable[[int, int, str], None]


class Indexer:
    """Indexes vault files into the vector store"""

    def __init__(
        self,
        vectorstore: VectorStore | None = None,
        embedder: EmbeddingProvider | None = None,
        chunk_size: int | None = None,
        chunk_overlap: int | None = None,
    ):
        settings = get_settings()
        self.vectorstore = vectorstore or VectorStore()
        self._embedder = embedder
        self.chunk_size = chunk_size or settings.chunk_size
        self.chunk_overlap = chunk_overlap if chunk_overlap is not None else settings.chunk_overlap

    @property
    def embedder(self) -> EmbeddingProvider:
        if self._embedder is None:
            self._embedder = get_embedding_provider()
        return self._embedder

    def full_reindex(
        self,
        vault_path: str,
        existing_hashes: dict[str, str] | None = None,
        on_complete: Optional[CompletionCallback] = None,
        progress_callback: Optional[FileProgressCallback] = None,
    ) -> dict[str, str]:
        """
        Index every markdown file of a vault.

        Does not clear the vector store first. Files whose hash matches
        ``existing_hashes`` are skipped and keep their recorded hash.
        Individual file failures are logged and the file is left out of the
        result.

        Args:
            vault_path: Vault root
            existing_hashes: Optional path -> hash of already indexed files
            on_complete: Called once with the resulting hashes
            progress_callback: Optional callback(current, total, message)

        Returns:
            path -> hash of every file now indexed

        Raises:
            IndexingError: vault unreadable, or no file could be indexed
        """
        vault = Path(vault_path)
        if not vault.is_dir():
            raise IndexingError(f"Vault path does not exist: {vault_path}")

        try:
            files = list(scan_vault(vault))
        except OSError as e:
            raise IndexingError(f"Failed to scan vault {vault_path}: {e}") from e

        logger.info("Found %d markdown files to index in %s", len(files), vault_path)
        if not files:
            logger.warning("No markdown files found to index")

        existing = existing_hashes or {}
        hashes = self._index_files(vault, vault_path, files, existing, progress_callback)

        if files and not hashes:
            raise IndexingError(f"None of {len(files)} files could be indexed in {vault_path}")

        logger.info("Indexed %d/%d files successfully", len(hashes), len(files))

        if on_complete is not None:
            on_complete(vault_path, sorted(hashes), hashes)
        return hashes

    def index_modified_files(
        self,
        file_paths: list[str],
        vault_path: str,
        on_complete: Optional[CompletionCallback] = None,
        progress_callback: Optional[FileProgressCallback] = None,
    ) -> dict[str, str]:
        """
        Index only the given vault-relative files (incremental update).

        Returns:
            path -> hash of the files that were indexed
        """
        vault = Path(vault_path)
        if not vault.is_dir():
            raise IndexingError(f"Vault path does not exist: {vault_path}")

        logger.info("Indexing %d modified files", len(file_paths))
        hashes = self._index_files(vault, vault_path, file_paths, {}, progress_callback)
        logger.info("Indexed %d/%d modified files successfully", len(hashes), len(file_paths))

        if on_complete is not None and hashes:
            on_complete(vault_path, sorted(hashes), hashes)
        return hashes

    def _index_files(
        self,
        vault: Path,
        vault_path: str,
        files: list[str],
        existing: dict[str, str],
        progress_callback: Optional[FileProgressCallback],
    ) -> dict[str, str]:
        hashes: dict[str, str] = {}
        total = len(files)

        for i, relative in enumerate(files):
            try:
                file_hash = self._index_file(vault, vault_path, relative, existing.get(relative))
                hashes[relative] = file_hash
            except Exception as e:
                logger.error("Failed to index file %s: %s", relative, e)

            if progress_callback:
                progress_callback(i + 1, total, relative)

        return hashes

    def _index_file(
        self,
        vault: Path,
        vault_path: str,
        relative: str,
        known_hash: str | None = None,
    ) -> str:
        """Index a single file and return its content hash"""
        document = parse_markdown(vault, relative)
        if known_hash is not None and known_hash == document.hash:
            logger.debug("Skipping unchanged file %s", relative)
            return document.hash

        chunks = chunk_document(
            document,
            vault_path,
            chunk_size=self.chunk_size,
            chunk_overlap=self.chunk_overlap,
        )

        # Remove stale chunks (e.g. the file got shorter); upsert overwrites the rest
        try:
            self.vectorstore.delete_by_vault_and_file(vault_path, relative)
        except Exception as e:
            logger.warning("Failed to delete existing chunks for %s (will upsert anyway): %s", relative, e)

        if not chunks:
            logger.debug("File %s has no chunkable content", relative)
            return document.hash

        embeddings = self.embedder.embed([c.content for c in chunks])
        if len(embeddings) != len(chunks):
            raise IndexingError(
                f"Embedding count mismatch for {relative}: "
                f"expected {len(chunks)}, got {len(embeddings)}"
            )

        self.vectorstore.add_chunks(chunks, embeddings)
        logger.debug("Upserted %d chunks for %s", len(chunks), relative)
        return document.hash
