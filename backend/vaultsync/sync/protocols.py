"""Collaborator interfaces consumed by the activation manager"""

from typing import Callable, Optional, Protocol, runtime_checkable

from ..models import ChangeSet, HealthStatus, SyncStatus, VaultMetadata


class HealthProbe(Protocol):
    def check_health(self) -> HealthStatus: ...

    def ensure_tenant_and_database(self) -> None: ...


class ChangeDetector(Protocol):
    def check_sync_status(self, vault_path: str) -> SyncStatus: ...

    def detect_changes(self, vault_path: str) -> ChangeSet: ...


class MetadataStore(Protocol):
    def get_vault_metadata(self, vault_id: str) -> Optional[VaultMetadata]: ...

    def update_vault_metadata(self, vault_id: str, hashes: dict[str, str]) -> None: ...

    def clear_vault_metadata(self, vault_id: str) -> None: ...

    def has_vault_entries(self, vault_id: str) -> bool: ...


class Indexer(Protocol):
    def full_reindex(
        self,
        vault_path: str,
        existing_hashes: Optional[dict[str, str]] = None,
        on_complete: Optional[Callable] = None,
        progress_callback: Optional[Callable] = None,
    ) -> dict[str, str]: ...

    def index_modified_files(
        self,
        file_paths: list[str],
        vault_path: str,
        on_complete: Optional[Callable] = None,
        progress_callback: Optional[Callable] = None,
    ) -> dict[str, str]: ...


class VectorStore(Protocol):
    def delete_by_file_path(self, file_path: str) -> None: ...

    def clear(self) -> None: ...


@runtime_checkable
class VaultProbe(Protocol):
    """Optional capability: answer whether a vault has any vectors"""

    def has_vault_data(self, vault_path: str) -> bool: ...


@runtime_checkable
class VaultScopedDelete(Protocol):
    def delete_by_vault_and_file(self, vault_path: str, file_path: str) -> None: ...


@runtime_checkable
class VaultScopedClear(Protocol):
    def clear_vault(self, vault_path: str) -> None: ...
