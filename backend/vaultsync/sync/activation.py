"""Activation manager - brings a vault in sync with the vector index"""

import logging
import time
from typing import Callable, Optional

from ..config import get_settings
from ..errors import ProvisioningError
from ..indexer.database import normalize_vault_id
from ..models import ActivationResult, HealthStatus, SyncStatus
from .locks import VaultLocks
from .progress import ProgressCallback, report
from .protocols import (
    ChangeDetector,
    HealthProbe,
    Indexer,
    MetadataStore,
    VaultProbe,
    VaultScopedClear,
    VaultScopedDelete,
    VectorStore,
)

logger = logging.getLogger(__name__)

Confirm = Callable[[], bool]

BANNER = "=" * 60


class ActivationManager:
    """
    Orchestrates health checks, change detection, and ingestion.

    ``activate_rag`` and ``rebuild`` are the public entry points and never
    raise; they return an ActivationResult. The pipeline methods raise on the
    first fatal step.
    """

    def __init__(
        self,
        health_probe: HealthProbe,
        change_detector: ChangeDetector,
        indexer: Indexer,
        metadata_store: MetadataStore,
        vector_store: VectorStore,
        settle_delay: float | None = None,
        locks: VaultLocks | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        settings = get_settings()
        self.health_probe = health_probe
        self.change_detector = change_detector
        self.indexer = indexer
        self.metadata_store = metadata_store
        self.vector_store = vector_store
        self.settle_delay = settings.settle_delay if settle_delay is None else settle_delay
        self.locks = locks or VaultLocks(reject_concurrent=settings.reject_concurrent)
        self._sleep = sleep

    # === Public entry points ===

    def activate_rag(
        self,
        vault_path: Optional[str],
        on_ingestion_needed: Confirm,
        on_reindex_needed: Confirm,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ActivationResult:
        """
        Activate retrieval for a vault.

        1. Health check
        2. Cold start: ask, then run a full ingestion
        3. Otherwise check sync status; if drifted ask, then sync incrementally

        Args:
            vault_path: Vault root; None or empty is an error
            on_ingestion_needed: Confirmation for the first full ingestion
            on_reindex_needed: Confirmation for an incremental sync
            on_progress: Optional callback(stage, fraction)
        """
        try:
            if self.health_probe.check_health() == HealthStatus.UNHEALTHY:
                logger.error("Vector database is unavailable")
                return ActivationResult.ERROR

            if not vault_path:
                logger.warning("No vault path provided")
                return ActivationResult.ERROR

            vault_path = normalize_vault_id(vault_path)
            with self.locks.hold(vault_path):
                return self._activate(vault_path, on_ingestion_needed, on_reindex_needed, on_progress)
        except Exception as e:
            logger.exception("Failed to activate RAG for %s: %s", vault_path, e)
            return ActivationResult.ERROR

    def rebuild(
        self,
        vault_path: Optional[str],
        on_progress: Optional[ProgressCallback] = None,
    ) -> ActivationResult:
        """Non-raising forced rebuild"""
        if not vault_path:
            logger.warning("No vault path provided")
            return ActivationResult.ERROR
        try:
            self.force_reindex(vault_path, on_progress)
        except Exception as e:
            logger.exception("Forced rebuild failed for %s: %s", vault_path, e)
            return ActivationResult.ERROR
        return ActivationResult.ENABLED

    def force_reindex(self, vault_path: str, on_progress: Optional[ProgressCallback] = None):
        """
        Drop the vault's vectors and metadata, then run a full ingestion.

        Runs even when the vault is already synced. Raises on failure.
        """
        vault_path = normalize_vault_id(vault_path)
        with self.locks.hold(vault_path):
            logger.info("Forcing full reindex of %s", vault_path)
            self._provision()
            self._clear_vault_vectors(vault_path)
            self.metadata_store.clear_vault_metadata(vault_path)
            self.perform_ingestion(vault_path, on_progress)

    # === Activation protocol ===

    def _activate(
        self,
        vault_path: str,
        on_ingestion_needed: Confirm,
        on_reindex_needed: Confirm,
        on_progress: Optional[ProgressCallback],
    ) -> ActivationResult:
        if self.is_cold_start(vault_path):
            if not on_ingestion_needed():
                logger.info("Initial ingestion declined for %s", vault_path)
                return ActivationResult.CANCELLED
            self.perform_ingestion(vault_path, on_progress)
            return ActivationResult.ENABLED

        status = self.change_detector.check_sync_status(vault_path)

        if status == SyncStatus.UNAVAILABLE:
            logger.error("Vector database is unavailable")
            return ActivationResult.ERROR

        if status == SyncStatus.SYNCED:
            logger.debug("Vault %s is already synced", vault_path)
            return ActivationResult.ENABLED

        if status == SyncStatus.NOT_INDEXED:
            logger.warning(
                "Vault %s has vectors but no metadata; treating it as out of sync",
                vault_path,
            )

        if not on_reindex_needed():
            logger.info("Re-indexing declined for %s", vault_path)
            return ActivationResult.CANCELLED

        self.perform_incremental_ingestion(vault_path, on_progress)
        return ActivationResult.ENABLED

    def is_cold_start(self, vault_path: str) -> bool:
        """
        Whether the vault has never been indexed.

        The vector store answers when it can probe a vault; otherwise the
        metadata store is consulted. Disagreement is logged and the vector
        store wins.
        """
        has_metadata = self.metadata_store.has_vault_entries(vault_path)
        if not isinstance(self.vector_store, VaultProbe):
            return not has_metadata

        has_vectors = self.vector_store.has_vault_data(vault_path)
        if has_vectors != has_metadata:
            logger.warning(
                "Cold-start checks disagree for %s: vectors=%s metadata=%s",
                vault_path, has_vectors, has_metadata,
            )
        return not has_vectors

    # === Pipelines ===

    def perform_ingestion(self, vault_path: str, on_progress: Optional[ProgressCallback] = None):
        """Full ingestion: provision, reindex everything, record hashes"""
        logger.info(BANNER)
        logger.info("Starting ingestion pipeline for %s", vault_path)
        logger.info(BANNER)
        try:
            report(on_progress, "provisioning", 0.0)
            self._provision()

            report(on_progress, "indexing", 0.1)
            recorded: dict[str, str] = {}

            def on_complete(path: str, files: list[str], hashes: dict[str, str]):
                self.metadata_store.update_vault_metadata(path, hashes)
                recorded.update(hashes)

            self.indexer.full_reindex(
                vault_path,
                on_complete=on_complete,
                progress_callback=_scaled(on_progress, "indexing", 0.1, 0.95),
            )

            report(on_progress, "finalizing", 0.95)
            self._settle()
            self._verify(vault_path, recorded)

            report(on_progress, "complete", 1.0)
        except Exception as e:
            logger.error("Ingestion pipeline failed for %s: %s", vault_path, e)
            raise

        logger.info("Ingestion pipeline complete for %s (%d files)", vault_path, len(recorded))

    def perform_incremental_ingestion(
        self,
        vault_path: str,
        on_progress: Optional[ProgressCallback] = None,
    ):
        """
        Incremental sync: drop vectors of deleted files, index new and
        modified ones, and persist the merged hash map.

        Deleted-file hashes are dropped even when the vector delete fails.
        """
        try:
            report(on_progress, "provisioning", 0.0)
            self._provision()

            report(on_progress, "detecting", 0.05)
            changes = self.change_detector.detect_changes(vault_path)
            metadata = self.metadata_store.get_vault_metadata(vault_path)
            existing = dict(metadata.indexed_file_hashes) if metadata else {}

            report(on_progress, "removing", 0.1)
            for path in sorted(changes.deleted_files):
                self._delete_file_vectors(vault_path, path)
                existing.pop(path, None)

            to_index = changes.files_to_index
            if to_index:
                report(on_progress, "indexing", 0.2)

                def merge(path: str, files: list[str], hashes: dict[str, str]):
                    existing.update(hashes)
                    self.metadata_store.update_vault_metadata(path, existing)

                self.indexer.index_modified_files(
                    to_index,
                    vault_path,
                    on_complete=merge,
                    progress_callback=_scaled(on_progress, "indexing", 0.2, 0.95),
                )

            # Deletions must land even when nothing was indexed
            self.metadata_store.update_vault_metadata(vault_path, existing)

            if not changes.is_empty:
                report(on_progress, "finalizing", 0.95)
                self._settle()

            report(on_progress, "complete", 1.0)
        except Exception as e:
            logger.error("Incremental ingestion failed for %s: %s", vault_path, e)
            raise

        logger.info(
            "Incremental ingestion complete for %s: %d indexed, %d removed",
            vault_path, len(changes.files_to_index), len(changes.deleted_files),
        )

    # === Helpers ===

    def _provision(self):
        try:
            self.health_probe.ensure_tenant_and_database()
        except ProvisioningError:
            raise
        except Exception as e:
            raise ProvisioningError(f"Failed to provision tenant and database: {e}") from e

    def _settle(self):
        if self.settle_delay > 0:
            self._sleep(self.settle_delay)

    def _verify(self, vault_path: str, expected: dict[str, str]):
        try:
            metadata = self.metadata_store.get_vault_metadata(vault_path)
        except Exception as e:
            logger.warning("Could not re-read metadata for %s: %s", vault_path, e)
            return

        if metadata is None:
            logger.warning("Metadata for %s not visible after ingestion", vault_path)
            return

        missing = set(expected) - set(metadata.indexed_file_hashes)
        if missing:
            logger.warning(
                "Metadata for %s is missing %d indexed files", vault_path, len(missing)
            )
        else:
            logger.debug("Verified metadata for %s (%d files)", vault_path, len(expected))

    def _delete_file_vectors(self, vault_path: str, file_path: str):
        try:
            if isinstance(self.vector_store, VaultScopedDelete):
                self.vector_store.delete_by_vault_and_file(vault_path, file_path)
            else:
                self.vector_store.delete_by_file_path(file_path)
        except Exception as e:
            logger.warning("Failed to delete vectors for %s: %s", file_path, e)

    def _clear_vault_vectors(self, vault_path: str):
        if isinstance(self.vector_store, VaultScopedClear):
            self.vector_store.clear_vault(vault_path)
            return
        logger.warning(
            "Vector store cannot clear a single vault; clearing the whole store for %s",
            vault_path,
        )
        self.vector_store.clear()


def _scaled(
    on_progress: Optional[ProgressCallback],
    stage: str,
    start: float,
    end: float,
) -> Optional[Callable[[int, int, str], None]]:
    """Map per-file progress (current, total) onto [start, end]"""
    if on_progress is None:
        return None

    def callback(current: int, total: int, message: str):
        if total > 0:
            on_progress(stage, start + (end - start) * current / total)

    return callback
