"""Shared fixtures and in-memory collaborators."""

from pathlib import Path

import pytest

from vaultsync.errors import IndexingError
from vaultsync.models import ChangeSet, HealthStatus, SyncStatus, VaultMetadata


class FakeHealthProbe:
    def __init__(self, status=HealthStatus.HEALTHY, provision_error=None):
        self.status = status
        self.provision_error = provision_error
        self.provision_calls = 0

    def check_health(self):
        return self.status

    def ensure_tenant_and_database(self):
        self.provision_calls += 1
        if self.provision_error is not None:
            raise self.provision_error


class FakeMetadataStore:
    def __init__(self):
        self.vaults: dict[str, dict[str, str]] = {}
        self.writes: list[tuple[str, dict[str, str]]] = []
        self.clears: list[str] = []

    def get_vault_metadata(self, vault_id):
        if vault_id not in self.vaults:
            return None
        return VaultMetadata(vault_id=vault_id, indexed_file_hashes=dict(self.vaults[vault_id]))

    def update_vault_metadata(self, vault_id, hashes):
        self.vaults[vault_id] = dict(hashes)
        self.writes.append((vault_id, dict(hashes)))

    def clear_vault_metadata(self, vault_id):
        self.vaults.pop(vault_id, None)
        self.clears.append(vault_id)

    def has_vault_entries(self, vault_id):
        return bool(self.vaults.get(vault_id))


class FakeVectorStore:
    """Tracks which files of which vault have vectors."""

    def __init__(self, fail_deletes=False):
        self.files: dict[str, set[str]] = {}
        self.fail_deletes = fail_deletes
        self.mutations: list[tuple] = []

    def has_vault_data(self, vault_path):
        return bool(self.files.get(vault_path))

    def add_file(self, vault_path, file_path):
        self.files.setdefault(vault_path, set()).add(file_path)

    def add_chunks(self, chunks, embeddings):
        self.mutations.append(("add", len(chunks)))
        for chunk in chunks:
            self.add_file(chunk.vault_path, chunk.file_path)

    def delete_by_vault_and_file(self, vault_path, file_path):
        self.mutations.append(("delete", vault_path, file_path))
        if self.fail_deletes:
            raise RuntimeError("delete failed")
        self.files.get(vault_path, set()).discard(file_path)

    def delete_by_file_path(self, file_path):
        self.mutations.append(("delete_any", file_path))
        for files in self.files.values():
            files.discard(file_path)

    def clear_vault(self, vault_path):
        self.mutations.append(("clear_vault", vault_path))
        self.files.pop(vault_path, None)

    def clear(self):
        self.mutations.append(("clear",))
        self.files.clear()


class PathOnlyVectorStore:
    """A store without any vault-scoped capability."""

    def __init__(self):
        self.deleted: list[str] = []
        self.cleared = 0
        self.files: dict[str, set[str]] = {}

    def add_file(self, vault_path, file_path):
        # Test-side hook used by FakeIndexer; not a store capability.
        self.files.setdefault(vault_path, set()).add(file_path)

    def delete_by_file_path(self, file_path):
        self.deleted.append(file_path)

    def clear(self):
        self.cleared += 1


class FakeIndexer:
    """Indexes a simulated vault: vault path -> {file path: hash}."""

    def __init__(self, vector_store, disk=None, fail=False):
        self.vector_store = vector_store
        self.disk: dict[str, dict[str, str]] = disk or {}
        self.fail = fail
        self.full_calls: list[str] = []
        self.modified_calls: list[list[str]] = []

    @property
    def call_count(self):
        return len(self.full_calls) + len(self.modified_calls)

    def full_reindex(self, vault_path, existing_hashes=None, on_complete=None, progress_callback=None):
        self.full_calls.append(vault_path)
        if self.fail:
            raise IndexingError("embedding service down")
        hashes = dict(self.disk.get(vault_path, {}))
        for i, path in enumerate(sorted(hashes)):
            self.vector_store.add_file(vault_path, path)
            if progress_callback:
                progress_callback(i + 1, len(hashes), path)
        if on_complete:
            on_complete(vault_path, sorted(hashes), hashes)
        return hashes

    def index_modified_files(self, file_paths, vault_path, on_complete=None, progress_callback=None):
        self.modified_calls.append(list(file_paths))
        if self.fail:
            raise IndexingError("embedding service down")
        on_disk = self.disk.get(vault_path, {})
        hashes = {p: on_disk[p] for p in file_paths if p in on_disk}
        for path in hashes:
            self.vector_store.add_file(vault_path, path)
        if on_complete and hashes:
            on_complete(vault_path, sorted(hashes), hashes)
        return hashes


class FakeChangeDetector:
    def __init__(self, status=SyncStatus.SYNCED, changes=None):
        self.status = status
        self.changes = changes or ChangeSet()
        self.status_calls = 0

    def check_sync_status(self, vault_path):
        self.status_calls += 1
        return self.status

    def detect_changes(self, vault_path):
        return self.changes


class FakeEmbedder:
    def __init__(self, dim=4):
        self.dim = dim
        self.calls: list[list[str]] = []

    def embed(self, texts):
        self.calls.append(list(texts))
        return [[float(len(t) % 7), 1.0, 0.5, float(i)][: self.dim] for i, t in enumerate(texts)]


def write_note(vault: Path, relative: str, text: str) -> Path:
    path = vault / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def vault(tmp_path: Path) -> Path:
    root = tmp_path / "vault"
    root.mkdir()
    write_note(root, "alpha.md", "# Alpha\n\nFirst note.\n")
    write_note(root, "projects/beta.md", "---\ntitle: Beta\n---\n\n## Plan\n\nShip it.\n")
    return root
