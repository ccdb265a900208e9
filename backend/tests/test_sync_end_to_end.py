"""Activation against a real vault, SQLite metadata store, and indexer."""

from pathlib import Path

from vaultsync.indexer import Indexer, MetadataStore
from vaultsync.models import ActivationResult, SyncStatus
from vaultsync.sync import ActivationManager, ChangeDetector
from vaultsync.vault import compute_file_hash

from conftest import FakeEmbedder, FakeHealthProbe, FakeVectorStore, write_note


def build(tmp_path: Path):
    probe = FakeHealthProbe()
    metadata = MetadataStore(db_path=tmp_path / "data" / "vaultsync.db")
    vectors = FakeVectorStore()
    manager = ActivationManager(
        health_probe=probe,
        change_detector=ChangeDetector(metadata, probe),
        indexer=Indexer(vectorstore=vectors, embedder=FakeEmbedder(), chunk_size=200, chunk_overlap=20),
        metadata_store=metadata,
        vector_store=vectors,
        settle_delay=0,
    )
    return manager, metadata, vectors


def refuse():
    raise AssertionError("should not prompt")


def test_cold_start_then_synced(tmp_path: Path, vault: Path):
    manager, metadata, vectors = build(tmp_path)
    vault_path = str(vault)

    result = manager.activate_rag(vault_path, lambda: True, refuse)

    assert result == ActivationResult.ENABLED
    record = metadata.get_vault_metadata(vault_path)
    assert record is not None
    assert record.indexed_file_hashes == {
        "alpha.md": compute_file_hash(vault / "alpha.md"),
        "projects/beta.md": compute_file_hash(vault / "projects/beta.md"),
    }
    assert vectors.files[vault_path] == {"alpha.md", "projects/beta.md"}
    assert manager.change_detector.check_sync_status(vault_path) == SyncStatus.SYNCED

    # Second activation is a no-op
    assert manager.activate_rag(vault_path, refuse, refuse) == ActivationResult.ENABLED


def test_drift_is_synced_incrementally(tmp_path: Path, vault: Path):
    manager, metadata, vectors = build(tmp_path)
    vault_path = str(vault)
    manager.activate_rag(vault_path, lambda: True, refuse)

    write_note(vault, "alpha.md", "# Alpha\n\nRewritten.\n")
    write_note(vault, "gamma.md", "# Gamma\n\nNew note.\n")
    (vault / "projects" / "beta.md").unlink()

    assert manager.change_detector.check_sync_status(vault_path) == SyncStatus.OUT_OF_SYNC
    changes = manager.change_detector.detect_changes(vault_path)
    assert changes.modified_files == {"alpha.md"}
    assert changes.new_files == {"gamma.md"}
    assert changes.deleted_files == {"projects/beta.md"}

    asked = []
    result = manager.activate_rag(vault_path, refuse, lambda: asked.append(True) or True)

    assert result == ActivationResult.ENABLED
    assert asked == [True]
    record = metadata.get_vault_metadata(vault_path)
    assert record.indexed_file_hashes == {
        "alpha.md": compute_file_hash(vault / "alpha.md"),
        "gamma.md": compute_file_hash(vault / "gamma.md"),
    }
    assert vectors.files[vault_path] == {"alpha.md", "gamma.md"}
    assert manager.change_detector.check_sync_status(vault_path) == SyncStatus.SYNCED


def test_forced_rebuild_matches_fresh_index(tmp_path: Path, vault: Path):
    manager, metadata, _ = build(tmp_path)
    vault_path = str(vault)

    assert manager.rebuild(vault_path) == ActivationResult.ENABLED
    first = metadata.get_vault_metadata(vault_path).indexed_file_hashes
    assert manager.rebuild(vault_path) == ActivationResult.ENABLED
    second = metadata.get_vault_metadata(vault_path).indexed_file_hashes

    assert first == second
    assert set(first) == {"alpha.md", "projects/beta.md"}
