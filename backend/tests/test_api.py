"""HTTP routes with an in-memory activation manager."""

import json

import pytest
from fastapi.testclient import TestClient

from vaultsync.api.routes import get_manager
from vaultsync.main import app
from vaultsync.models import ChangeSet, HealthStatus, SyncStatus
from vaultsync.sync import ActivationManager, VaultLocks

from conftest import (
    FakeChangeDetector,
    FakeHealthProbe,
    FakeIndexer,
    FakeMetadataStore,
    FakeVectorStore,
)

V = "/notes/vault"
DISK = {"a.md": "sha256:a", "b.md": "sha256:b"}


class Deps:
    def __init__(self, status=SyncStatus.SYNCED, changes=None, health=HealthStatus.HEALTHY, fail=False):
        self.vectors = FakeVectorStore()
        self.metadata = FakeMetadataStore()
        self.detector = FakeChangeDetector(status=status, changes=changes)
        self.manager = ActivationManager(
            health_probe=FakeHealthProbe(status=health),
            change_detector=self.detector,
            indexer=FakeIndexer(self.vectors, disk={V: dict(DISK)}, fail=fail),
            metadata_store=self.metadata,
            vector_store=self.vectors,
            settle_delay=0,
            locks=VaultLocks(),
            sleep=lambda _: None,
        )


@pytest.fixture
def deps():
    return Deps()


@pytest.fixture
def client(deps):
    app.dependency_overrides[get_manager] = lambda: deps.manager
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health_reports_vector_db(client):
    resp = client.get("/api/health")

    assert resp.status_code == 200
    assert resp.json()["vector_db"] == "healthy"
    assert "X-Request-ID" in resp.headers


def test_status_includes_changes_when_drifted(client, deps):
    deps.detector.status = SyncStatus.OUT_OF_SYNC
    deps.detector.changes = ChangeSet(new_files={"c.md"})

    data = client.get("/api/vault/status", params={"vault_path": V}).json()

    assert data["status"] == "out_of_sync"
    assert data["changes"]["new_files"] == ["c.md"]


def test_status_of_synced_vault_has_no_changes(client):
    data = client.get("/api/vault/status", params={"vault_path": V}).json()

    assert data == {"vault_path": V, "status": "synced", "changes": None}


def test_cold_start_activation_needs_consent(client, deps):
    data = client.post("/api/vault/activate", json={"vault_path": V}).json()

    assert data["result"] == "cancelled"
    assert deps.metadata.vaults == {}


def test_cold_start_activation_ingests(client, deps):
    data = client.post("/api/vault/activate", json={"vault_path": V, "ingest": True}).json()

    assert data["result"] == "enabled"
    assert deps.metadata.vaults[V] == DISK
    stages = [event["stage"] for event in data["progress"]]
    assert stages[0] == "provisioning"
    assert stages[-1] == "complete"


def test_activation_errors_when_db_down(client, deps):
    deps.manager.health_probe.status = HealthStatus.UNHEALTHY

    data = client.post("/api/vault/activate", json={"vault_path": V, "ingest": True}).json()

    assert data["result"] == "error"


def test_rebuild_returns_json(client, deps):
    deps.vectors.add_file(V, "stale.md")
    deps.metadata.vaults[V] = {"stale.md": "sha256:old"}

    data = client.post("/api/vault/rebuild", json={"vault_path": V}).json()

    assert data["result"] == "enabled"
    assert deps.metadata.vaults[V] == DISK
    assert deps.vectors.files[V] == set(DISK)


def test_rebuild_streams_progress(client):
    resp = client.post(
        "/api/vault/rebuild",
        json={"vault_path": V},
        headers={"Accept": "text/event-stream"},
    )

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/event-stream")
    blocks = [b for b in resp.text.split("\n\n") if b.strip()]
    events = [(b.split("\n")[0][len("event: "):], json.loads(b.split("\n")[1][len("data: "):])) for b in blocks]
    assert events[0][0] == "progress"
    assert events[-1] == ("result", {"vault_path": V, "result": "enabled"})
