"""Hash-based change detection between a vault and its indexed record"""

import logging

from ..models import ChangeSet, HealthStatus, SyncStatus
from ..vault import current_vault_hashes, diff_hashes
from .protocols import HealthProbe, MetadataStore

logger = logging.getLogger(__name__)


class ChangeDetector:
    """Derives sync status and change sets from content hashes"""

    def __init__(self, metadata_store: MetadataStore, health_probe: HealthProbe):
        self.metadata_store = metadata_store
        self.health_probe = health_probe

    def check_sync_status(self, vault_path: str) -> SyncStatus:
        if self.health_probe.check_health() == HealthStatus.UNHEALTHY:
            return SyncStatus.UNAVAILABLE

        metadata = self.metadata_store.get_vault_metadata(vault_path)
        if metadata is None:
            return SyncStatus.NOT_INDEXED

        changes = diff_hashes(
            current_vault_hashes(vault_path),
            metadata.indexed_file_hashes,
        )
        if changes.is_empty:
            return SyncStatus.SYNCED

        logger.debug(
            "Vault %s out of sync: %d new, %d modified, %d deleted",
            vault_path,
            len(changes.new_files),
            len(changes.modified_files),
            len(changes.deleted_files),
        )
        return SyncStatus.OUT_OF_SYNC

    def detect_changes(self, vault_path: str) -> ChangeSet:
        """
        Compare the vault against the last persisted metadata.

        Without metadata every file on disk counts as new.
        """
        metadata = self.metadata_store.get_vault_metadata(vault_path)
        indexed = metadata.indexed_file_hashes if metadata else {}
        return diff_hashes(current_vault_hashes(vault_path), indexed)

    def get_new_files(self, vault_path: str) -> list[str]:
        return sorted(self.detect_changes(vault_path).new_files)

    def get_modified_files(self, vault_path: str) -> list[str]:
        return sorted(self.detect_changes(vault_path).modified_files)

    def get_deleted_files(self, vault_path: str) -> list[str]:
        return sorted(self.detect_changes(vault_path).deleted_files)

    def get_files_to_reindex(self, vault_path: str) -> list[str]:
        return self.detect_changes(vault_path).files_to_index
